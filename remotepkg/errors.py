"""Exception hierarchy for remote package identification.

Every failure raised by :func:`remotepkg.identify` is a :class:`PkgError`
subclass, tagged with the phase that failed:

- :class:`SniffError`: the peek window could not be read
- :class:`UnknownPackageTypeError`: the signature is unknown or disabled
- :class:`AdapterParseError`: the format parser rejected the stream
- :class:`FieldNotFoundError`: a required metadata field is missing
"""

from typing import Optional


class PkgError(Exception):
    """Base class for all remotepkg errors."""


class SniffError(PkgError):
    """Reading the peek window from the byte source failed."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Failed to read package signature: {cause}")


class UnknownPackageTypeError(PkgError):
    """The stream signature is unrecognized, or its format is disabled.

    Attributes:
        hint: Descriptive guess of what the stream is ("unknown" if none)
        format_tag: Detected format when it was recognized but disabled
    """

    def __init__(self, hint: Optional[str] = None, format_tag=None):
        self.hint = hint or "unknown"
        self.format_tag = format_tag
        if format_tag is not None:
            message = f"Package type not enabled: {self.hint}"
        else:
            message = f"Unknown package type: {self.hint}"
        super().__init__(message)


class AdapterParseError(PkgError):
    """The format-specific parser rejected the reconstructed stream."""

    def __init__(self, format_tag, cause: BaseException):
        self.format_tag = format_tag
        self.cause = cause
        super().__init__(f"Failed to parse {format_tag} package: {cause}")


class FieldNotFoundError(PkgError):
    """A required metadata field was absent from the parsed package."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Field not found: {field_name}")


class FetchError(PkgError):
    """Opening a remote byte source failed before any byte was read."""

    def __init__(self, url: str, cause: BaseException):
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to fetch {url}: {cause}")
