"""Streaming reader for the control file of Debian packages.

A .deb is an ar archive containing:
- debian-binary: format version ("2.0\\n")
- control.tar[.gz|.xz|.bz2|.zst]: control file and maintainer scripts
- data.tar.*: package contents

Only the archive members up to the control tarball are read, so the data
member is never pulled from the stream.
"""

import io
import lzma
import tarfile
import zlib
from types import MappingProxyType
from typing import BinaryIO, Dict, Mapping, Optional, Tuple

import zstandard

from ..common.logger import get_logger

logger = get_logger("parser.control")

AR_MAGIC = b"!<arch>\n"
AR_HEADER_SIZE = 60
AR_HEADER_END = b"`\n"

# Control archive member name -> tarfile mode
CONTROL_TAR_MODES = {
    "control.tar": "r:",
    "control.tar.gz": "r:gz",
    "control.tar.xz": "r:xz",
    "control.tar.bz2": "r:bz2",
    # tarfile has no zstd support; decompressed before opening
    "control.tar.zst": "r:",
}

ZSTD_MEMBERS = ("control.tar.zst",)

CONTROL_FILE_NAMES = ("./control", "control")

_SKIP_CHUNK = 64 * 1024


class ControlError(ValueError):
    """The stream is not a readable Debian package."""


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    """Read exactly ``size`` bytes or fail with a truncation error."""
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    data = b"".join(chunks)
    if len(data) != size:
        raise ControlError(f"Truncated {what}: expected {size} bytes, got {len(data)}")
    return data


def _skip(stream: BinaryIO, size: int, what: str) -> None:
    while size > 0:
        size -= len(_read_exact(stream, min(size, _SKIP_CHUNK), what))


def _read_member_header(stream: BinaryIO) -> Optional[Tuple[str, int]]:
    """Read the next ar member header.

    Returns:
        Tuple of (member name, data size), or None at end of archive
    """
    first = stream.read(1)
    if not first:
        return None
    header = first + _read_exact(stream, AR_HEADER_SIZE - 1, "ar member header")

    if header[58:60] != AR_HEADER_END:
        raise ControlError("Corrupt ar member header")

    # GNU ar terminates names with "/"
    name = header[0:16].decode("ascii", errors="replace").rstrip(" ").rstrip("/")
    try:
        size = int(header[48:58].decode("ascii").strip())
    except ValueError:
        raise ControlError(f"Invalid size in ar member header for {name!r}") from None

    return name, size


def parse_control_fields(content: str) -> Dict[str, str]:
    """Parse RFC822-style control file content.

    Only the first paragraph is read; continuation lines are folded into
    the preceding field separated by newlines.

    Args:
        content: Control file content

    Returns:
        Ordered mapping of field name to value
    """
    fields: Dict[str, str] = {}
    current_key = None
    current_value = []

    for line in content.split("\n"):
        if line.startswith(" ") or line.startswith("\t"):
            if current_key:
                current_value.append(line.strip())
        elif ":" in line:
            if current_key:
                fields[current_key] = "\n".join(current_value)
            key, value = line.split(":", 1)
            current_key = key.strip()
            current_value = [value.strip()]
        elif fields or current_key:
            # Blank line ends the paragraph
            break

    if current_key:
        fields[current_key] = "\n".join(current_value)

    return fields


class DebControl:
    """Parsed control file of a Debian package.

    Field lookups are case-insensitive, as in deb822.

    Raises:
        ControlError: If the Package or Version field is missing
    """

    def __init__(self, fields: Mapping[str, str]):
        self._fields = dict(fields)
        self._lookup = {key.lower(): value for key, value in self._fields.items()}

        for required in ("Package", "Version"):
            if not self.get(required):
                raise ControlError(f"Control file has no {required} field")

    @classmethod
    def from_text(cls, content: str) -> "DebControl":
        """Build from raw control file content."""
        return cls(parse_control_fields(content))

    @property
    def fields(self) -> Mapping[str, str]:
        """All control fields in file order."""
        return MappingProxyType(self._fields)

    def name(self) -> str:
        return self._lookup["package"]

    def version(self) -> str:
        return self._lookup["version"]

    def get(self, field_name: str) -> Optional[str]:
        """Look up a control field by name, or None if absent."""
        return self._lookup.get(field_name.lower())

    def __repr__(self) -> str:
        return f"<DebControl {self.name()} {self.version()}>"


def _decompress_zstd(data: bytes) -> bytes:
    """Decompress a zstd frame, including frames without a content size."""
    try:
        with zstandard.ZstdDecompressor().stream_reader(io.BytesIO(data)) as reader:
            return reader.read()
    except zstandard.ZstdError as e:
        raise ControlError(f"Unreadable control archive: {e}") from e


def _extract_control(data: bytes, mode: str) -> str:
    """Pull the control file out of the control tarball."""
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode=mode) as tar:
            for member in tar:
                if member.isfile() and member.name in CONTROL_FILE_NAMES:
                    control = tar.extractfile(member)
                    return control.read().decode("utf-8", errors="replace")
    except (tarfile.TarError, EOFError, OSError, zlib.error, lzma.LZMAError) as e:
        raise ControlError(f"Unreadable control archive: {e}") from e

    raise ControlError("Control archive has no control file")


def parse_deb(stream: BinaryIO) -> DebControl:
    """Parse the control file from a Debian package stream.

    Args:
        stream: Readable stream positioned at the start of the .deb

    Returns:
        DebControl handle

    Raises:
        ControlError: If the stream is not a valid Debian package
        OSError: If reading the stream fails
    """
    magic = _read_exact(stream, len(AR_MAGIC), "ar magic")
    if magic != AR_MAGIC:
        raise ControlError("Not an ar archive")

    while True:
        member = _read_member_header(stream)
        if member is None:
            raise ControlError("Package has no control archive")
        name, size = member

        if name.startswith("control.tar"):
            mode = CONTROL_TAR_MODES.get(name)
            if mode is None:
                raise ControlError(f"Unsupported control archive compression: {name}")
            data = _read_exact(stream, size, name)
            logger.debug(f"Read {name} ({size} bytes)")
            if name in ZSTD_MEMBERS:
                data = _decompress_zstd(data)
            return DebControl.from_text(_extract_control(data, mode))

        # Members are aligned to even offsets
        _skip(stream, size + size % 2, name)
