"""Peek and reconstruct non-seekable byte streams.

Format sniffing has to look at the leading bytes of a package before the
format parser sees it, but network bodies cannot be rewound. ``peek`` reads
a bounded prefix and ``PrefixedStream`` replays that prefix ahead of the
rest of the source so the parser reads exactly what the source produced.
"""

import io
from typing import BinaryIO, Union

from .common.logger import get_logger
from .errors import SniffError

logger = get_logger("stream")

# Large enough for every supported container signature
PEEK_SIZE = 1024


def _read_chunk(source: BinaryIO, size: int) -> bytes:
    """Single read from source, tolerating raw streams that return None."""
    data = source.read(size)
    if data is None:
        # Non-blocking raw stream with no data available yet
        return b""
    return bytes(data)


def peek(source: BinaryIO, size: int = PEEK_SIZE) -> bytes:
    """Read up to ``size`` bytes from the start of a byte source.

    Keeps reading until the window is full or the source reports EOF, since
    network bodies routinely return short reads. Whatever was read is kept.

    Args:
        source: Readable byte source, positioned at its start
        size: Window size in bytes

    Returns:
        The retained prefix (shorter than ``size`` only at EOF)

    Raises:
        SniffError: If reading the source fails
        ValueError: If size is not positive
    """
    if size <= 0:
        raise ValueError(f"Peek size must be positive, got {size}")

    chunks = []
    remaining = size
    try:
        while remaining > 0:
            chunk = _read_chunk(source, remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
    except OSError as e:
        raise SniffError(e) from e

    prefix = b"".join(chunks)
    logger.debug(f"Peeked {len(prefix)} of {size} bytes")
    return prefix


class PrefixedStream(io.RawIOBase):
    """Read-only stream that yields ``prefix`` followed by the rest of ``source``.

    The stream is not seekable and does not require the source to be either.
    ``tell()`` reports the logical offset from the start of the prefix.
    """

    def __init__(
        self,
        prefix: Union[bytes, bytearray, memoryview],
        source: BinaryIO,
        close_source: bool = False,
    ):
        super().__init__()
        self._prefix = memoryview(bytes(prefix))
        self._prefix_pos = 0
        self._source = source
        self._close_source = close_source
        self._position = 0

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def tell(self) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        return self._position

    def readinto(self, buffer) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        view = memoryview(buffer).cast("B")
        if not len(view):
            return 0

        if self._prefix_pos < len(self._prefix):
            # Never mix prefix and source bytes in one call; a short read is valid
            count = min(len(view), len(self._prefix) - self._prefix_pos)
            view[:count] = self._prefix[self._prefix_pos:self._prefix_pos + count]
            self._prefix_pos += count
        elif hasattr(self._source, "readinto"):
            count = self._source.readinto(view) or 0
        else:
            data = _read_chunk(self._source, len(view))
            count = len(data)
            view[:count] = data

        self._position += count
        return count

    def close(self) -> None:
        if not self.closed and self._close_source:
            self._source.close()
        super().close()
