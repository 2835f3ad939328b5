"""Byte sources for local files and HTTP package URLs.

HTTP bodies are streamed through a blocking ``httpx`` client and never
buffered whole; identification stops reading once the metadata has been
parsed. Callers running inside an event loop should offload these calls
to a worker thread.
"""

import io
from pathlib import Path
from typing import BinaryIO, Optional, Union

import httpx

from .common.config import HttpConfig
from .common.logger import get_logger
from .errors import FetchError

logger = get_logger("sources")


class HttpByteSource(io.RawIOBase):
    """Sequential, non-seekable reader over a streamed HTTP response body.

    Transport errors raised while reading the body surface as ``OSError``.
    Closing the source closes the response, and the client when owned.
    """

    def __init__(
        self,
        url: str,
        response: httpx.Response,
        client: httpx.Client,
        owns_client: bool = True,
    ):
        super().__init__()
        self.url = url
        self._response = response
        self._client = client
        self._owns_client = owns_client
        # Unsized so each network chunk is handed on as soon as it arrives
        self._iterator = response.iter_bytes()
        self._pending = b""
        self._exhausted = False

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        view = memoryview(buffer).cast("B")

        while not self._pending:
            if self._exhausted:
                return 0
            try:
                self._pending = next(self._iterator)
            except StopIteration:
                self._exhausted = True
                return 0
            except httpx.HTTPError as e:
                raise OSError(f"Error reading {self.url}: {e}") from e

        count = min(len(view), len(self._pending))
        view[:count] = self._pending[:count]
        self._pending = self._pending[count:]
        return count

    def close(self) -> None:
        if not self.closed:
            try:
                self._response.close()
            finally:
                if self._owns_client:
                    self._client.close()
        super().close()


def open_url(
    url: str,
    http_config: Optional[HttpConfig] = None,
    client: Optional[httpx.Client] = None,
) -> HttpByteSource:
    """Start a streaming GET request for a package URL.

    Args:
        url: HTTP(S) URL of the package
        http_config: Timeout, redirect and header settings
        client: Existing client to send the request with (not closed by
            the returned source)

    Returns:
        HttpByteSource positioned at the start of the body

    Raises:
        FetchError: On connection failure or a non-success status code
    """
    config = http_config or HttpConfig()
    owns_client = client is None
    if client is None:
        headers = {"User-Agent": config.user_agent}
        headers.update(config.headers)
        client = httpx.Client(
            timeout=config.timeout,
            follow_redirects=config.follow_redirects,
            headers=headers,
        )

    response = None
    try:
        request = client.build_request("GET", url)
        response = client.send(request, stream=True)
        response.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        if response is not None:
            response.close()
        if owns_client:
            client.close()
        raise FetchError(url, e) from e

    logger.debug(f"Opened {url} (HTTP {response.status_code})")
    return HttpByteSource(url, response, client, owns_client=owns_client)


def open_path(path: Union[str, Path]) -> BinaryIO:
    """Open a local package file for sequential reading.

    Raises:
        OSError: If the file cannot be opened
    """
    return open(Path(path).expanduser(), "rb")
