"""Debian package (.deb) format adapter.

Exposes the control file of a Debian package through the RemotePackage
interface.
"""

import re
from typing import BinaryIO, Callable, Optional

from ..common.logger import get_logger
from ..errors import AdapterParseError, FieldNotFoundError
from ..parsers.control import parse_deb
from .base import ControlHandle, FormatTag, PackageMetadata, RemotePackage

logger = get_logger("format.deb")

# [epoch:]upstream_version[-debian_revision]
_EPOCH_RE = re.compile(r"^(\d+):")


class DebRemotePackage(RemotePackage):
    """Remote Debian package backed by its parsed control file.

    The iteration is the debian_revision: everything after the last ``-``
    of the version. An upstream version that itself contains a hyphen but
    has no revision is split the same way.
    """

    format_tag = FormatTag.DEB

    def __init__(self, control: ControlHandle):
        self._control = control

    @classmethod
    def from_stream(
        cls,
        stream: BinaryIO,
        parser: Optional[Callable[[BinaryIO], ControlHandle]] = None,
    ) -> "DebRemotePackage":
        parser = parser or parse_deb
        try:
            control = parser(stream)
        except (ValueError, EOFError, OSError) as e:
            logger.debug(f"Control parsing failed: {e}")
            raise AdapterParseError(FormatTag.DEB, e) from e
        return cls(control)

    @property
    def control(self) -> ControlHandle:
        return self._control

    @property
    def name(self) -> str:
        name = self._control.name()
        if not name:
            raise FieldNotFoundError("Package")
        return name

    @property
    def version(self) -> str:
        version = self._control.version()
        if not version:
            raise FieldNotFoundError("Version")
        return version

    @property
    def arch(self) -> str:
        arch = self._control.get("Architecture")
        if arch is None:
            raise FieldNotFoundError("Architecture")
        return arch

    @property
    def iteration(self) -> Optional[str]:
        version = self._control.version()
        if "-" not in version:
            return None
        return version.rsplit("-", 1)[1]

    def metadata(self) -> PackageMetadata:
        epoch_match = _EPOCH_RE.match(self.version)
        return PackageMetadata(
            name=self.name,
            version=self.version,
            format_type=self.format_tag.value,
            architecture=self._control.get("Architecture"),
            description=self._control.get("Description"),
            maintainer=self._control.get("Maintainer"),
            homepage=self._control.get("Homepage"),
            release=self.iteration,
            epoch=int(epoch_match.group(1)) if epoch_match else None,
        )
