"""Streaming reader for RPM package headers.

RPM packages contain:
- Lead: 96 bytes, RPM magic and legacy name/arch info
- Signature: a header structure, padded to an 8-byte boundary
- Header: tagged metadata (name, version, release, arch, ...)
- Payload: cpio archive (usually gzip/xz/zstd compressed)

Only the lead and both headers are read; the payload is left in the stream.
"""

import struct
from types import MappingProxyType
from typing import Any, BinaryIO, Dict, Mapping, Optional

from ..common.logger import get_logger

logger = get_logger("parser.rpmheader")

RPM_MAGIC = b"\xed\xab\xee\xdb"
LEAD_SIZE = 96
HEADER_MAGIC = b"\x8e\xad\xe8"
HEADER_SIGNATURE_TYPE = 5

# Sanity bounds for index entry count and data store size
MAX_INDEX_ENTRIES = 0xFFFF
MAX_STORE_SIZE = 256 * 1024 * 1024

# Header tags
RPMTAG_NAME = 1000
RPMTAG_VERSION = 1001
RPMTAG_RELEASE = 1002
RPMTAG_EPOCH = 1003
RPMTAG_SUMMARY = 1004
RPMTAG_LICENSE = 1014
RPMTAG_PACKAGER = 1015
RPMTAG_URL = 1020
RPMTAG_ARCH = 1022

# Header entry data types
RPM_INT8_TYPE = 2
RPM_INT16_TYPE = 3
RPM_INT32_TYPE = 4
RPM_INT64_TYPE = 5
RPM_STRING_TYPE = 6
RPM_STRING_ARRAY_TYPE = 8
RPM_I18NSTRING_TYPE = 9

_INT_FORMATS = {
    RPM_INT8_TYPE: ">B",
    RPM_INT16_TYPE: ">H",
    RPM_INT32_TYPE: ">I",
    RPM_INT64_TYPE: ">Q",
}

_STRING_TYPES = (RPM_STRING_TYPE, RPM_STRING_ARRAY_TYPE, RPM_I18NSTRING_TYPE)


class RpmHeaderError(ValueError):
    """The stream is not a readable RPM package."""


class TagNotFoundError(RpmHeaderError):
    """A requested tag is absent from the header."""

    def __init__(self, tag_name: str):
        self.tag_name = tag_name
        super().__init__(f"Tag not found in RPM header: {tag_name}")


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
        raise RpmHeaderError(f"Truncated {what}: expected {size} bytes, got {len(data)}")
    return data


def _decode_entry(store: bytes, data_type: int, offset: int, count: int) -> Any:
    """Decode the first value of a header entry, or None for unhandled types."""
    if offset >= len(store):
        raise RpmHeaderError(f"Header entry offset {offset} outside data store")

    if data_type in _STRING_TYPES:
        end = store.find(b"\x00", offset)
        if end < 0:
            raise RpmHeaderError("Unterminated string in header data store")
        return store[offset:end].decode("utf-8", errors="replace")

    fmt = _INT_FORMATS.get(data_type)
    if fmt is not None and count > 0:
        try:
            return struct.unpack_from(fmt, store, offset)[0]
        except struct.error as e:
            raise RpmHeaderError(f"Truncated integer in header data store: {e}") from e

    return None


def _read_header_structure(stream: BinaryIO, what: str) -> Dict[int, Any]:
    """Read one header structure (intro, index entries, data store).

    Returns:
        Mapping of tag number to decoded value
    """
    intro = _read_exact(stream, 16, f"{what} header")
    if intro[0:3] != HEADER_MAGIC:
        raise RpmHeaderError(f"Bad {what} header magic")

    nindex, hsize = struct.unpack(">II", intro[8:16])
    if nindex > MAX_INDEX_ENTRIES or hsize > MAX_STORE_SIZE:
        raise RpmHeaderError(
            f"Implausible {what} header size ({nindex} entries, {hsize} bytes)"
        )

    index = _read_exact(stream, nindex * 16, f"{what} header index")
    store = _read_exact(stream, hsize, f"{what} header data")

    tags: Dict[int, Any] = {}
    for i in range(nindex):
        tag, data_type, offset, count = struct.unpack_from(">IIII", index, i * 16)
        value = _decode_entry(store, data_type, offset, count)
        if value is not None:
            tags[tag] = value
    return tags


class RpmHeader:
    """Parsed metadata header of an RPM package.

    The ``get_*`` accessors raise ``TagNotFoundError`` for absent tags;
    ``get`` returns None instead.
    """

    def __init__(self, tags: Mapping[int, Any], lead_name: str = ""):
        self._tags = dict(tags)
        self.lead_name = lead_name

    @property
    def tags(self) -> Mapping[int, Any]:
        return MappingProxyType(self._tags)

    def get(self, tag: int) -> Optional[Any]:
        return self._tags.get(tag)

    def _get_string(self, tag: int, tag_name: str) -> str:
        value = self._tags.get(tag)
        if value is None:
            raise TagNotFoundError(tag_name)
        return str(value)

    def get_name(self) -> str:
        return self._get_string(RPMTAG_NAME, "name")

    def get_version(self) -> str:
        return self._get_string(RPMTAG_VERSION, "version")

    def get_release(self) -> str:
        return self._get_string(RPMTAG_RELEASE, "release")

    def get_arch(self) -> str:
        return self._get_string(RPMTAG_ARCH, "arch")

    def get_epoch(self) -> Optional[int]:
        epoch = self._tags.get(RPMTAG_EPOCH)
        return int(epoch) if epoch is not None else None

    def __repr__(self) -> str:
        return f"<RpmHeader {self._tags.get(RPMTAG_NAME, self.lead_name)}>"


def parse_rpm(stream: BinaryIO) -> RpmHeader:
    """Parse the metadata header from an RPM package stream.

    Args:
        stream: Readable stream positioned at the start of the .rpm

    Returns:
        RpmHeader handle

    Raises:
        RpmHeaderError: If the stream is not a valid RPM package
        OSError: If reading the stream fails
    """
    lead = _read_exact(stream, LEAD_SIZE, "lead")
    if lead[0:4] != RPM_MAGIC:
        raise RpmHeaderError("Not an RPM package (bad lead magic)")

    signature_type = struct.unpack(">H", lead[78:80])[0]
    if signature_type != HEADER_SIGNATURE_TYPE:
        raise RpmHeaderError(f"Unsupported RPM signature type: {signature_type}")

    lead_name = lead[10:76].split(b"\x00", 1)[0].decode("utf-8", errors="replace")

    # Signature header is padded so the main header starts 8-byte aligned
    signature = _read_exact(stream, 16, "signature header")
    if signature[0:3] != HEADER_MAGIC:
        raise RpmHeaderError("Bad signature header magic")
    nindex, hsize = struct.unpack(">II", signature[8:16])
    if nindex > MAX_INDEX_ENTRIES or hsize > MAX_STORE_SIZE:
        raise RpmHeaderError(
            f"Implausible signature header size ({nindex} entries, {hsize} bytes)"
        )
    padding = (8 - hsize % 8) % 8
    skipped = nindex * 16 + hsize + padding
    _read_exact(stream, skipped, "signature header data")

    tags = _read_header_structure(stream, "main")
    logger.debug(f"Read RPM header with {len(tags)} tags")
    return RpmHeader(tags, lead_name=lead_name)
