"""HTTP transport used to probe origins and fetch media bytes."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Optional, Protocol

import aiohttp

from .errors import ResourceUnavailable
from .models import ClientConfig

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Operations the resolver and the delivery streams need from HTTP."""

    async def probe(self, url: str) -> bool:
        ...

    def iter_range(
        self, url: str, start: int = 0, end: Optional[int] = None
    ) -> AsyncIterator[bytes]:
        ...

    async def fetch(
        self, url: str, start: Optional[int] = None, end: Optional[int] = None
    ) -> bytes:
        ...

    async def fetch_text(self, url: str) -> str:
        ...

    async def content_length(self, url: str) -> int:
        ...


def range_header(start: int, end: Optional[int] = None) -> str:
    """Format an HTTP ``Range`` header value for an inclusive byte range."""
    return f"bytes={start}-{'' if end is None else end}"


class AiohttpTransport:
    """:class:`Transport` backed by an aiohttp client session."""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        config: Optional[ClientConfig] = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            session: Optional aiohttp session. If None, one is created on enter.
            config: Timeouts, headers and chunk size.
        """
        self.session = session
        self.config = config or ClientConfig()
        self._own_session = session is None

    async def __aenter__(self) -> "AiohttpTransport":
        if self._own_session:
            timeout = aiohttp.ClientTimeout(
                total=None,
                sock_connect=self.config.connect_timeout,
                sock_read=self.config.read_timeout,
            )
            self.session = aiohttp.ClientSession(
                headers=self.config.headers or {}, timeout=timeout
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._own_session and self.session:
            await self.session.close()
            self.session = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            raise RuntimeError("Session not initialized. Use 'async with' context manager.")
        return self.session

    async def probe(self, url: str) -> bool:
        """Return True when *url* answers with a non-error status."""
        session = self._require_session()
        try:
            async with session.get(url) as response:
                ok = response.status < 400
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("Probe of %s failed: %s", url, exc)
            return False
        if not ok:
            logger.warning("Probe of %s returned HTTP %s", url, response.status)
        return ok

    async def iter_range(
        self, url: str, start: int = 0, end: Optional[int] = None
    ) -> AsyncIterator[bytes]:
        """Yield the bytes of ``[start, end]`` of *url* as they arrive."""
        session = self._require_session()
        headers = {"Range": range_header(start, end)}
        async with session.get(url, headers=headers) as response:
            response.raise_for_status()
            async for chunk in response.content.iter_chunked(self.config.chunk_size):
                yield chunk

    async def fetch(
        self, url: str, start: Optional[int] = None, end: Optional[int] = None
    ) -> bytes:
        """Download *url*, optionally restricted to a byte range."""
        session = self._require_session()
        headers = {"Range": range_header(start, end)} if start is not None else None
        async with session.get(url, headers=headers) as response:
            response.raise_for_status()
            return await response.read()

    async def fetch_text(self, url: str) -> str:
        session = self._require_session()
        async with session.get(url) as response:
            response.raise_for_status()
            return await response.text()

    async def content_length(self, url: str) -> int:
        """Ask the origin for the length of *url* with a HEAD request."""
        session = self._require_session()
        try:
            async with session.head(url, allow_redirects=True) as response:
                response.raise_for_status()
                length = response.content_length
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ResourceUnavailable(f"Could not read content length: {exc}", url=url) from exc
        if length is None:
            raise ResourceUnavailable("Origin did not report a content length", url=url)
        return length
