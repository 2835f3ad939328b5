"""RPM package format adapter.

Exposes the metadata header of an RPM package through the RemotePackage
interface.
"""

from typing import BinaryIO, Callable, Optional

from ..common.logger import get_logger
from ..errors import AdapterParseError, FieldNotFoundError
from ..parsers.rpmheader import (
    RPMTAG_EPOCH,
    RPMTAG_LICENSE,
    RPMTAG_PACKAGER,
    RPMTAG_SUMMARY,
    RPMTAG_URL,
    parse_rpm,
)
from .base import FormatTag, MetadataHandle, PackageMetadata, RemotePackage

logger = get_logger("format.rpm")

# Raised by header accessors for absent tags
_LOOKUP_ERRORS = (ValueError, LookupError)


class RpmRemotePackage(RemotePackage):
    """Remote RPM package backed by its parsed metadata header.

    The iteration is the header's release tag; a missing release is not an
    error.
    """

    format_tag = FormatTag.RPM

    def __init__(self, header: MetadataHandle):
        self._header = header

    @classmethod
    def from_stream(
        cls,
        stream: BinaryIO,
        parser: Optional[Callable[[BinaryIO], MetadataHandle]] = None,
    ) -> "RpmRemotePackage":
        parser = parser or parse_rpm
        try:
            header = parser(stream)
        except (ValueError, EOFError, OSError) as e:
            logger.debug(f"Header parsing failed: {e}")
            raise AdapterParseError(FormatTag.RPM, e) from e
        return cls(header)

    @property
    def header(self) -> MetadataHandle:
        return self._header

    def _required(self, getter: Callable[[], str], field_name: str) -> str:
        try:
            value = getter()
        except _LOOKUP_ERRORS as e:
            raise FieldNotFoundError(field_name) from e
        if not value:
            raise FieldNotFoundError(field_name)
        return value

    @property
    def name(self) -> str:
        return self._required(self._header.get_name, "name")

    @property
    def version(self) -> str:
        return self._required(self._header.get_version, "version")

    @property
    def arch(self) -> str:
        return self._required(self._header.get_arch, "arch")

    @property
    def iteration(self) -> Optional[str]:
        try:
            return self._header.get_release()
        except _LOOKUP_ERRORS:
            return None

    def metadata(self) -> PackageMetadata:
        try:
            arch = self._header.get_arch()
        except _LOOKUP_ERRORS:
            arch = None
        epoch = self._header.get(RPMTAG_EPOCH)
        return PackageMetadata(
            name=self.name,
            version=self.version,
            format_type=self.format_tag.value,
            architecture=arch,
            description=self._header.get(RPMTAG_SUMMARY),
            maintainer=self._header.get(RPMTAG_PACKAGER),
            homepage=self._header.get(RPMTAG_URL),
            license=self._header.get(RPMTAG_LICENSE),
            release=self.iteration,
            epoch=int(epoch) if epoch is not None else None,
        )
