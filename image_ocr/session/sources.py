"""
Image acquisition for the non-live modes.

- read_local_file: bytes of a user-chosen file (aiofiles)
- RemoteImageFetcher: body of an HTTP(S) GET (aiohttp)

Both return the bytes untouched; the recognition engine decodes them.
"""

from __future__ import annotations

import asyncio
import mimetypes
from pathlib import Path
from typing import Optional, Union

import aiofiles
import aiohttp
from yarl import URL

from image_ocr.core.errors import AcquisitionError
from image_ocr.core.logging_utils import get_module_logger
from image_ocr.core.settings import DEFAULT_FETCH_TIMEOUT
from image_ocr.ocr.buffer import DEFAULT_CONTENT_TYPE, ImageBuffer

logger = get_module_logger("Sources")

ALLOWED_SCHEMES = ("http", "https")


async def read_local_file(path: Union[str, Path, None]) -> ImageBuffer:
    if path is None or not str(path).strip():
        raise AcquisitionError("No file selected")

    file_path = Path(path).expanduser()
    try:
        async with aiofiles.open(file_path, "rb") as f:
            data = await f.read()
    except FileNotFoundError:
        raise AcquisitionError(f"File not found: {file_path}") from None
    except IsADirectoryError:
        raise AcquisitionError(f"Not a file: {file_path}") from None
    except OSError as exc:
        logger.error("Failed to read %s: %s", file_path, exc)
        raise AcquisitionError(f"Could not read {file_path}: {exc.strerror or exc}") from exc

    if not data:
        raise AcquisitionError(f"File is empty: {file_path}")

    content_type, _ = mimetypes.guess_type(file_path.name)
    logger.debug("Read %d bytes from %s", len(data), file_path)
    return ImageBuffer(data=data, content_type=content_type or DEFAULT_CONTENT_TYPE, source=str(file_path))


def parse_image_url(raw: Optional[str]) -> URL:
    text = (raw or "").strip()
    if not text:
        raise AcquisitionError("No URL entered")
    try:
        url = URL(text)
    except (TypeError, ValueError) as exc:
        raise AcquisitionError(f"Invalid URL: {text}") from exc
    if url.scheme.lower() not in ALLOWED_SCHEMES or not url.host:
        raise AcquisitionError(f"Unsupported URL (expected http or https): {text}")
    return url


class RemoteImageFetcher:
    """Fetches an image body over HTTP(S) with an optional total timeout."""

    def __init__(
        self,
        timeout: Optional[float] = DEFAULT_FETCH_TIMEOUT,
        *,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.timeout = timeout
        self._session = session

    async def fetch(self, raw_url: Optional[str]) -> ImageBuffer:
        url = parse_image_url(raw_url)
        logger.info("Fetching image from %s", url)

        try:
            if self._session is not None:
                return await self._fetch_with(self._session, url)
            async with aiohttp.ClientSession() as session:
                return await self._fetch_with(session, url)
        except asyncio.TimeoutError:
            raise AcquisitionError(f"Timed out fetching {url}") from None
        except aiohttp.ClientError as exc:
            logger.error("Fetch of %s failed: %s", url, exc)
            raise AcquisitionError(f"Could not fetch {url}: {exc}") from exc

    async def _fetch_with(self, session: aiohttp.ClientSession, url: URL) -> ImageBuffer:
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=self.timeout)) as response:
            if not 200 <= response.status < 300:
                raise AcquisitionError(f"Fetching {url} failed with HTTP {response.status}")
            data = await response.read()
            content_type = response.content_type or DEFAULT_CONTENT_TYPE

        if not data:
            raise AcquisitionError(f"No image data at {url}")
        logger.debug("Fetched %d bytes (%s) from %s", len(data), content_type, url)
        return ImageBuffer(data=data, content_type=content_type, source=str(url))


__all__ = ["RemoteImageFetcher", "parse_image_url", "read_local_file"]
