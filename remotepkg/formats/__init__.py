"""Package format adapters.

Each supported format family (Debian, RPM) has an adapter exposing the
same read-only RemotePackage interface, plus signature sniffing to pick
the adapter for an unknown stream.
"""

from .base import (
    ControlHandle,
    FormatTag,
    MetadataHandle,
    PackageMetadata,
    RemotePackage,
)
from .deb import DebRemotePackage
from .rpm import RpmRemotePackage
from .registry import (
    FormatRegistry,
    SniffResult,
    auto_register_formats,
    get_adapter,
    get_registry,
    register_adapter,
    sniff,
)

auto_register_formats()

__all__ = [
    "ControlHandle",
    "FormatTag",
    "MetadataHandle",
    "PackageMetadata",
    "RemotePackage",
    "DebRemotePackage",
    "RpmRemotePackage",
    "FormatRegistry",
    "SniffResult",
    "auto_register_formats",
    "get_adapter",
    "get_registry",
    "register_adapter",
    "sniff",
]
