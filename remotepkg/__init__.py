"""Identify remote Debian and RPM packages from byte streams.

Reads just enough of a package (from a URL, file or any readable stream)
to detect its format and report its name, version, architecture and
iteration through one interface.
"""

__version__ = "0.1.0"

from .errors import (
    AdapterParseError,
    FetchError,
    FieldNotFoundError,
    PkgError,
    SniffError,
    UnknownPackageTypeError,
)
from .factory import identify, identify_path, identify_url
from .formats import (
    DebRemotePackage,
    FormatTag,
    PackageMetadata,
    RemotePackage,
    RpmRemotePackage,
)

__all__ = [
    "__version__",
    "identify",
    "identify_path",
    "identify_url",
    "FormatTag",
    "PackageMetadata",
    "RemotePackage",
    "DebRemotePackage",
    "RpmRemotePackage",
    "PkgError",
    "SniffError",
    "UnknownPackageTypeError",
    "AdapterParseError",
    "FieldNotFoundError",
    "FetchError",
]
