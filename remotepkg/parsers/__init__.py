"""Default streaming parsers for package metadata.

Each parser takes a readable, non-seekable stream positioned at the start
of a package and returns a metadata handle without reading the payload.
"""

from .control import ControlError, DebControl, parse_deb
from .rpmheader import RpmHeader, RpmHeaderError, TagNotFoundError, parse_rpm

__all__ = [
    "ControlError",
    "DebControl",
    "parse_deb",
    "RpmHeader",
    "RpmHeaderError",
    "TagNotFoundError",
    "parse_rpm",
]
