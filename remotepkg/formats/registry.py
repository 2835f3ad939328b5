"""Format registry for signature sniffing and adapter lookup.

Classifies a peeked byte prefix by magic bytes and maps each format tag to
the adapter class that parses it.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Type

import filetype

from ..common.logger import get_logger
from .base import FormatTag, RemotePackage

logger = get_logger("format_registry")


# Magic byte signatures at offset 0, with the minimum prefix length needed
MAGIC_SIGNATURES: Dict[FormatTag, bytes] = {
    # ar archive whose first member is debian-binary
    FormatTag.DEB: b"!<arch>\ndebian-binary",
    FormatTag.RPM: b"\xed\xab\xee\xdb",
}

MIN_PREFIX_LENGTH: Dict[FormatTag, int] = {
    FormatTag.DEB: len(MAGIC_SIGNATURES[FormatTag.DEB]),
    # Full lead
    FormatTag.RPM: 96,
}


@dataclass(frozen=True)
class SniffResult:
    """Outcome of classifying a peeked prefix.

    Attributes:
        format_tag: Detected format, or None if unrecognized
        prefix: The bytes that were peeked
        hint: Descriptive guess of the content (mime type), or None
    """

    format_tag: Optional[FormatTag]
    prefix: bytes
    hint: Optional[str] = None

    @property
    def is_known(self) -> bool:
        return self.format_tag is not None


def match_signature(prefix: bytes) -> Optional[FormatTag]:
    """Return the format whose signature the prefix starts with, if any."""
    for tag, magic in MAGIC_SIGNATURES.items():
        if len(prefix) >= MIN_PREFIX_LENGTH[tag] and prefix.startswith(magic):
            return tag
    return None


def guess_content_type(prefix: bytes) -> Optional[str]:
    """Guess a generic mime type for an unrecognized prefix."""
    if not prefix:
        return None
    kind = filetype.guess(prefix)
    if kind is None:
        return None
    return kind.mime


def sniff(prefix: bytes) -> SniffResult:
    """Classify a peeked prefix by magic bytes.

    Args:
        prefix: Leading bytes of the stream

    Returns:
        SniffResult with the detected format or a content hint
    """
    tag = match_signature(prefix)
    if tag is not None:
        logger.debug(f"Detected format '{tag.value}' from {len(prefix)} byte prefix")
        return SniffResult(format_tag=tag, prefix=prefix, hint=tag.value)

    hint = guess_content_type(prefix)
    logger.debug(f"No package signature matched (hint: {hint or 'none'})")
    return SniffResult(format_tag=None, prefix=prefix, hint=hint)


class FormatRegistry:
    """Registry of format adapters keyed by format tag."""

    _instance: Optional["FormatRegistry"] = None
    _adapters: Dict[FormatTag, Type[RemotePackage]]

    def __new__(cls) -> "FormatRegistry":
        """Singleton pattern for global registry."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._adapters = {}
        return cls._instance

    def register(self, adapter: Type[RemotePackage]) -> None:
        """Register an adapter class under its format tag.

        Args:
            adapter: RemotePackage subclass with a ``format_tag``
        """
        tag = adapter.format_tag
        if tag in self._adapters:
            logger.warning(f"Overwriting existing adapter for format: {tag.value}")
        self._adapters[tag] = adapter
        logger.debug(f"Registered format adapter: {tag.value}")

    def unregister(self, format_tag: FormatTag) -> None:
        """Unregister the adapter for a format."""
        if format_tag in self._adapters:
            del self._adapters[format_tag]
            logger.debug(f"Unregistered format adapter: {format_tag.value}")

    def get_adapter(self, format_tag: FormatTag) -> Optional[Type[RemotePackage]]:
        """Get the adapter class for a format, or None if not registered."""
        return self._adapters.get(format_tag)

    def list_formats(self) -> List[FormatTag]:
        """List all registered format tags."""
        return list(self._adapters.keys())

    def clear(self) -> None:
        """Clear all registered adapters (mainly for testing)."""
        self._adapters.clear()


# Global registry instance
_registry = FormatRegistry()


def get_registry() -> FormatRegistry:
    """Get the global format registry."""
    return _registry


def register_adapter(adapter: Type[RemotePackage]) -> None:
    """Register an adapter class with the global registry."""
    _registry.register(adapter)


def get_adapter(format_tag: FormatTag) -> Optional[Type[RemotePackage]]:
    """Get an adapter class by format tag from the global registry."""
    return _registry.get_adapter(format_tag)


def auto_register_formats() -> None:
    """Register the built-in Debian and RPM adapters."""
    # Import adapters here to avoid circular imports
    from .deb import DebRemotePackage
    from .rpm import RpmRemotePackage

    register_adapter(DebRemotePackage)
    register_adapter(RpmRemotePackage)
