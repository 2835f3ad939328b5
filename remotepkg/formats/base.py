"""Base classes for remote package format adapters.

Defines the closed set of supported format tags, the read-only
``RemotePackage`` interface every adapter implements, and the metadata
summary shared by all formats.
"""

import io
from abc import ABC, abstractmethod
from contextlib import closing
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, Protocol, Union

from ..common.config import HttpConfig
from ..sources import open_path, open_url


class FormatTag(str, Enum):
    """Supported package format families."""

    DEB = "deb"
    RPM = "rpm"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Any) -> "FormatTag":
        """Convert a tag or case-insensitive format name to a FormatTag.

        Raises:
            ValueError: If the name is not a supported format
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            supported = ", ".join(tag.value for tag in cls)
            raise ValueError(
                f"Unsupported package format: {value!r} (supported: {supported})"
            ) from None


@dataclass
class PackageMetadata:
    """Standardized package metadata across all formats."""

    name: str
    version: str
    format_type: str  # deb, rpm
    architecture: Optional[str] = None
    description: Optional[str] = None
    maintainer: Optional[str] = None
    homepage: Optional[str] = None
    license: Optional[str] = None
    raw_metadata: Dict[str, Any] = field(default_factory=dict)

    # Format-specific identifiers
    release: Optional[str] = None  # RPM release / Debian revision
    epoch: Optional[int] = None  # RPM/DEB epoch

    def get_package_key(self) -> str:
        """Get a unique key for this package.

        Returns:
            Format-appropriate package key string
        """
        if self.format_type == "deb":
            arch = self.architecture or "all"
            return f"{self.name}_{self.version}_{arch}"
        elif self.format_type == "rpm":
            arch = self.architecture or "noarch"
            release = self.release or "1"
            return f"{self.name}-{self.version}-{release}.{arch}"
        else:
            return f"{self.name}-{self.version}"


class RemotePackage(ABC):
    """Read-only view of a remote package's identifying metadata.

    Instances are created by the format adapters (usually through
    ``remotepkg.identify``) and hold the parsed metadata handle for their
    whole lifetime. Nothing here ever reads the byte source again.
    """

    format_tag: FormatTag

    @classmethod
    @abstractmethod
    def from_stream(cls, stream: BinaryIO, parser=None) -> "RemotePackage":
        """Parse a package stream with the format parser.

        Args:
            stream: Readable stream positioned at the start of the package
            parser: Replacement for the default format parser

        Raises:
            AdapterParseError: If the parser rejects the stream
        """
        pass

    @classmethod
    def from_url(
        cls, url: str, http_config: Optional[HttpConfig] = None
    ) -> "RemotePackage":
        """Fetch and parse a package of this format from a URL.

        The format is assumed, not sniffed; use ``remotepkg.identify_url``
        to detect it.

        Raises:
            FetchError: If the request fails
            AdapterParseError: If the body is not a package of this format
        """
        with closing(open_url(url, http_config)) as source:
            return cls.from_stream(io.BufferedReader(source))

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "RemotePackage":
        """Parse a local package file of this format."""
        with open_path(path) as source:
            return cls.from_stream(source)

    @property
    def package_type(self) -> FormatTag:
        """Return the format tag of this package."""
        return self.format_tag

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the package name.

        Raises:
            FieldNotFoundError: If the name is unavailable
        """
        pass

    @property
    @abstractmethod
    def version(self) -> str:
        """Return the package version.

        Raises:
            FieldNotFoundError: If the version is unavailable
        """
        pass

    @property
    @abstractmethod
    def arch(self) -> str:
        """Return the package architecture.

        Raises:
            FieldNotFoundError: If the architecture is unavailable
        """
        pass

    @property
    @abstractmethod
    def iteration(self) -> Optional[str]:
        """Return the package iteration (revision/release), or None."""
        pass

    @abstractmethod
    def metadata(self) -> PackageMetadata:
        """Return a metadata summary of the package."""
        pass

    def package_key(self) -> str:
        """Get unique package key from metadata.

        Returns:
            Unique package key string
        """
        return self.metadata().get_package_key()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} type={self.package_type.value}>"


class ControlHandle(Protocol):
    """Protocol for parsed Debian control data (see ``parsers.control``)."""

    def name(self) -> str: ...

    def version(self) -> str: ...

    def get(self, field_name: str) -> Optional[str]: ...


class MetadataHandle(Protocol):
    """Protocol for parsed RPM header data (see ``parsers.rpmheader``).

    The ``get_*`` accessors raise when the tag is absent.
    """

    def get_name(self) -> str: ...

    def get_version(self) -> str: ...

    def get_release(self) -> str: ...

    def get_arch(self) -> str: ...

    def get(self, tag: int) -> Optional[Any]: ...
