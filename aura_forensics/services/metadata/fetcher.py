"""Bounded artifact download into a scoped temporary file."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Optional

import httpx

from aura_forensics.config.settings import settings

logger = logging.getLogger(__name__)


class ArtifactFetchError(Exception):
    """Raised when an artifact cannot be downloaded within the configured bounds."""


class ArtifactFetcher:
    """
    Download evidence files with a hard timeout and size limit.

    The downloaded file only lives inside the ``download`` context; it is
    removed on every exit path, including fetch and reader failures.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_bytes: Optional[int] = None,
        temp_prefix: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout if timeout is not None else settings.FETCH_TIMEOUT_SECONDS
        self.max_bytes = max_bytes if max_bytes is not None else settings.MAX_FILE_SIZE
        self.temp_prefix = temp_prefix or settings.TEMP_FILE_PREFIX
        self.transport = transport

    @asynccontextmanager
    async def download(self, url: str) -> AsyncIterator[Path]:
        fd, name = tempfile.mkstemp(prefix=self.temp_prefix)
        path = Path(name)
        try:
            with os.fdopen(fd, "wb") as handle:
                try:
                    await asyncio.wait_for(self._stream_into(url, handle), timeout=self.timeout)
                except asyncio.TimeoutError as exc:
                    raise ArtifactFetchError(f"download exceeded {self.timeout}s") from exc
            yield path
        finally:
            try:
                path.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.warning(f"Failed to remove temporary artifact {path}: {cleanup_error}")

    async def _stream_into(self, url: str, handle: BinaryIO) -> int:
        received = 0
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self.transport,
                follow_redirects=True,
            ) as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()

                    declared_length = response.headers.get("content-length")
                    if declared_length and declared_length.isdigit() and int(declared_length) > self.max_bytes:
                        raise ArtifactFetchError(
                            f"declared size {declared_length} exceeds limit {self.max_bytes}"
                        )

                    async for chunk in response.aiter_bytes():
                        received += len(chunk)
                        if received > self.max_bytes:
                            raise ArtifactFetchError(f"artifact exceeds size limit {self.max_bytes}")
                        handle.write(chunk)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ArtifactFetchError(f"GET {url} failed: {exc}") from exc

        logger.debug(f"Downloaded {received} bytes from {url}")
        return received
