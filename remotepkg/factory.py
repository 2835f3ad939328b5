"""Identify remote packages from byte streams.

``identify`` peeks at the start of a byte source, classifies it by
signature, replays the peeked bytes ahead of the remainder and hands the
reconstructed stream to exactly one format adapter. Sniffing is
authoritative: if the chosen adapter fails, no other format is tried.
"""

import io
from contextlib import closing
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Set, Union

from .common.config import RemotePkgConfig, get_enabled_formats
from .common.logger import get_logger
from .errors import UnknownPackageTypeError
from .formats.base import FormatTag, RemotePackage
from .formats.registry import get_registry, sniff
from .sources import open_path, open_url
from .stream import PEEK_SIZE, PrefixedStream, peek

logger = get_logger("factory")

FormatSpec = Union[FormatTag, str]


def _resolve_formats(enabled_formats: Optional[Iterable[FormatSpec]]) -> Set[FormatTag]:
    if enabled_formats is None:
        return set(get_registry().list_formats())
    if isinstance(enabled_formats, (str, FormatTag)):
        enabled_formats = [enabled_formats]
    return {FormatTag.parse(fmt) for fmt in enabled_formats}


def identify(
    source: BinaryIO,
    enabled_formats: Optional[Iterable[FormatSpec]] = None,
    peek_size: int = PEEK_SIZE,
) -> RemotePackage:
    """Detect the package format of a byte source and parse its metadata.

    The source is read sequentially and never seeked. It is not closed.

    Args:
        source: Readable byte source positioned at the start of the package
        enabled_formats: Formats to accept (tags or names); None for all
            registered formats
        peek_size: Number of leading bytes used for sniffing

    Returns:
        RemotePackage for the detected format

    Raises:
        SniffError: If reading the peek window fails
        UnknownPackageTypeError: If the format is unrecognized or disabled
        AdapterParseError: If the format parser rejects the stream
        ValueError: If enabled_formats names an unsupported format
    """
    formats = _resolve_formats(enabled_formats)

    prefix = peek(source, peek_size)
    result = sniff(prefix)

    if result.format_tag is None:
        logger.warning(f"Unknown package type (hint: {result.hint or 'unknown'})")
        raise UnknownPackageTypeError(result.hint)

    adapter = get_registry().get_adapter(result.format_tag)
    if result.format_tag not in formats or adapter is None:
        logger.warning(f"Package type '{result.format_tag.value}' is not enabled")
        raise UnknownPackageTypeError(result.hint, format_tag=result.format_tag)

    logger.debug(f"Parsing {result.format_tag.value} package with {adapter.__name__}")
    stream = io.BufferedReader(PrefixedStream(result.prefix, source))
    package = adapter.from_stream(stream)
    logger.info(f"Identified {package.package_type.value} package")
    return package


def identify_path(
    path: Union[str, Path],
    enabled_formats: Optional[Iterable[FormatSpec]] = None,
    peek_size: int = PEEK_SIZE,
) -> RemotePackage:
    """Identify a local package file.

    Raises:
        OSError: If the file cannot be opened
        PkgError: As for ``identify``
    """
    with open_path(path) as source:
        return identify(source, enabled_formats, peek_size)


def identify_url(
    url: str,
    enabled_formats: Optional[Iterable[FormatSpec]] = None,
    config: Optional[RemotePkgConfig] = None,
) -> RemotePackage:
    """Identify a package served over HTTP(S) without downloading all of it.

    This blocks for the duration of the request; callers in async code
    should run it in a worker thread.

    Args:
        url: Package URL
        enabled_formats: Formats to accept; defaults to the configured ones
        config: Configuration for HTTP settings, peek size and formats

    Raises:
        FetchError: If the request fails before the body is read
        PkgError: As for ``identify``
    """
    config = config or RemotePkgConfig()
    if enabled_formats is None:
        enabled_formats = get_enabled_formats(config)

    with closing(open_url(url, config.http)) as source:
        return identify(source, enabled_formats, config.peek_size)
