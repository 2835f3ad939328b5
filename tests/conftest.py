"""Pytest configuration and shared fixtures.

Builds minimal but structurally valid .deb and .rpm packages in memory,
and provides stream doubles that behave like network bodies (short reads,
no seeking, mid-stream failures).
"""

import io
import os
import struct
import tarfile
from typing import Dict, List, Optional, Tuple

import pytest
import zstandard

RPM_INT32_TYPE = 4
RPM_STRING_TYPE = 6
RPM_I18NSTRING_TYPE = 9


def create_ar_member(name: str, content: bytes) -> bytes:
    """Create an ar archive member."""
    name_padded = name.ljust(16)
    timestamp = "0".ljust(12)
    owner = "0".ljust(6)
    group = "0".ljust(6)
    mode = "100644".ljust(8)
    size_str = str(len(content)).ljust(10)
    header = f"{name_padded}{timestamp}{owner}{group}{mode}{size_str}`\n".encode()
    result = header + content
    if len(content) % 2:
        result += b"\n"  # Padding for even alignment
    return result


def create_tar(files: Dict[str, bytes], compression: str = "gz") -> bytes:
    """Create a tar archive with the given files."""
    if compression == "zst":
        return zstandard.ZstdCompressor().compress(create_tar(files, ""))
    buffer = io.BytesIO()
    mode = f"w:{compression}" if compression else "w"
    with tarfile.open(fileobj=buffer, mode=mode) as tf:
        for name, content in files.items():
            if isinstance(content, str):
                content = content.encode()
            info = tarfile.TarInfo(name=name)
            info.size = len(content)
            tf.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def create_control(fields: Dict[str, str]) -> str:
    """Render control fields as a control file."""
    lines = []
    for key, value in fields.items():
        first, *rest = value.split("\n")
        lines.append(f"{key}: {first}")
        lines.extend(f" {line}" for line in rest)
    return "\n".join(lines) + "\n"


def create_deb_package(
    name: str = "test-package",
    version: str = "1.0.0",
    arch: Optional[str] = "amd64",
    control_fields: Optional[Dict[str, str]] = None,
    compression: str = "gz",
    data_size: int = 4096,
    data_compression: str = "gz",
) -> bytes:
    """Create a minimal valid .deb package."""
    if control_fields is None:
        control_fields = {"Package": name, "Version": version}
        if arch is not None:
            control_fields["Architecture"] = arch
        control_fields["Maintainer"] = "Test <test@example.com>"
        control_fields["Description"] = f"Test package {name}\nA package built for tests."

    control_tar = create_tar({"./control": create_control(control_fields)}, compression)
    member_name = f"control.tar.{compression}" if compression else "control.tar"
    data_tar = create_tar(
        {"./usr/share/doc/test/README": os.urandom(data_size)}, data_compression
    )

    result = b"!<arch>\n"
    result += create_ar_member("debian-binary", b"2.0\n")
    result += create_ar_member(member_name, control_tar)
    result += create_ar_member(f"data.tar.{data_compression}", data_tar)
    return result


def create_rpm_header(entries: List[Tuple[int, int, object]]) -> bytes:
    """Create an RPM header structure from (tag, type, value) entries."""
    store = bytearray()
    index = b""
    for tag, data_type, value in entries:
        if data_type == RPM_INT32_TYPE:
            while len(store) % 4:
                store += b"\x00"
            offset = len(store)
            store += struct.pack(">I", value)
        else:
            offset = len(store)
            store += str(value).encode() + b"\x00"
        index += struct.pack(">IIII", tag, data_type, offset, 1)

    intro = b"\x8e\xad\xe8\x01" + b"\x00" * 4
    intro += struct.pack(">II", len(entries), len(store))
    return intro + index + bytes(store)


def create_rpm_package(
    name: Optional[str] = "test-package",
    version: Optional[str] = "1.0.0",
    release: Optional[str] = "1",
    arch: Optional[str] = "x86_64",
    epoch: Optional[int] = None,
    summary: Optional[str] = None,
    payload_size: int = 4096,
) -> bytes:
    """Create an RPM package with a lead, signature, header and payload."""
    lead_name = "-".join(part for part in (name, version, release) if part)
    lead = b"\xed\xab\xee\xdb"  # RPM magic
    lead += struct.pack(">B", 3)  # Major version
    lead += struct.pack(">B", 0)  # Minor version
    lead += struct.pack(">H", 0)  # Type (binary)
    lead += struct.pack(">H", 1)  # Arch code
    lead += lead_name.encode().ljust(66, b"\x00")[:66]  # Name
    lead += struct.pack(">H", 1)  # OS
    lead += struct.pack(">H", 5)  # Signature type (header-style)
    lead += b"\x00" * 16  # Reserved

    # Signature store of 45 bytes forces 3 bytes of alignment padding
    signature = create_rpm_header([
        (1000, RPM_INT32_TYPE, payload_size),
        (269, RPM_STRING_TYPE, "0" * 40),
    ])
    signature += b"\x00" * ((8 - (len(signature) - 16) % 8) % 8)

    entries = []
    if name is not None:
        entries.append((1000, RPM_STRING_TYPE, name))
    if version is not None:
        entries.append((1001, RPM_STRING_TYPE, version))
    if release is not None:
        entries.append((1002, RPM_STRING_TYPE, release))
    if epoch is not None:
        entries.append((1003, RPM_INT32_TYPE, epoch))
    if summary is not None:
        entries.append((1004, RPM_I18NSTRING_TYPE, summary))
    if arch is not None:
        entries.append((1022, RPM_STRING_TYPE, arch))
    header = create_rpm_header(entries)

    payload = b"\x1f\x8b\x08\x00" + os.urandom(payload_size)
    return lead + signature + header + payload


class TrickleStream(io.RawIOBase):
    """Non-seekable stream that returns at most ``chunk`` bytes per read.

    With ``fail_at`` set, reading at or past that offset raises OSError.
    """

    def __init__(self, data: bytes, chunk: int = 7, fail_at: Optional[int] = None):
        super().__init__()
        self._data = data
        self._chunk = chunk
        self._fail_at = fail_at
        self.position = 0
        self.reads = 0

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        self.reads += 1
        if self._fail_at is not None and self.position >= self._fail_at:
            raise OSError("Connection reset by peer")
        limit = len(self._data) - self.position
        if self._fail_at is not None:
            limit = min(limit, self._fail_at - self.position)
        count = min(len(buffer), self._chunk, limit)
        buffer[:count] = self._data[self.position:self.position + count]
        self.position += count
        return count


class ReadOnlySource:
    """Byte source exposing nothing but ``read``."""

    def __init__(self, data: bytes, chunk: int = 5):
        self._data = data
        self._chunk = chunk
        self.position = 0

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            size = len(self._data)
        size = min(size, self._chunk)
        data = self._data[self.position:self.position + size]
        self.position += len(data)
        return data


@pytest.fixture
def make_deb():
    """Factory for in-memory .deb packages."""
    return create_deb_package


@pytest.fixture
def make_rpm():
    """Factory for in-memory .rpm packages."""
    return create_rpm_package


@pytest.fixture
def trickle_stream():
    """TrickleStream class for network-like reads."""
    return TrickleStream


@pytest.fixture
def read_only_source():
    """ReadOnlySource class for sources without readinto."""
    return ReadOnlySource


@pytest.fixture
def debian_faq_deb():
    """Debian package matching debian-faq_10.1_all.deb's control fields."""
    return create_deb_package(name="debian-faq", version="10.1", arch="all")


@pytest.fixture
def kibana_rpm():
    """RPM package with kibana-8.2.1-1.x86_64 header fields."""
    return create_rpm_package(
        name="kibana", version="8.2.1", release="1", arch="x86_64"
    )


@pytest.fixture
def sample_config():
    """Sample configuration dictionary."""
    return {
        "enabled_formats": ["deb", "rpm"],
        "peek_size": 2048,
        "http": {
            "timeout": 10,
            "user_agent": "remotepkg-tests",
            "follow_redirects": False,
            "headers": {"X-Mirror": "test"},
        },
        "logging": {
            "level": "DEBUG",
            "file_logging": False,
        },
    }
