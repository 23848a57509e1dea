import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from services.image_validation import normalize_image_mime_type, sniff_image_mime_type
from services.storage import StorageBackend

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"


class ImageFetchError(Exception):
    """Source image could not be fetched."""


@dataclass(frozen=True)
class FetchedImage:
    data: bytes
    mime_type: str


def resolve_image_mime_type(data: bytes, declared: Optional[str]) -> str:
    """Sniffed type first, then the declared type, then JPEG."""
    sniffed = sniff_image_mime_type(data)
    if sniffed:
        return sniffed
    normalized = normalize_image_mime_type(declared or "")
    if normalized.startswith("image/"):
        return normalized
    return DEFAULT_IMAGE_MIME_TYPE


class ImageFetcher:
    """
    Loads the bytes behind an asset URL.

    URLs owned by the storage backend are read through it (this covers the
    relative ``/storage/...`` URLs of local storage); anything else is
    streamed over HTTP with a timeout and a size cap.
    """

    def __init__(
        self,
        storage: StorageBackend,
        *,
        timeout: float = 30.0,
        max_size: int = 10 * 1024 * 1024,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.storage = storage
        self.timeout = timeout
        self.max_size = max_size
        self._transport = transport

    async def fetch(self, url: str) -> FetchedImage:
        if self.storage.owns_url(url):
            try:
                data = await self.storage.download_bytes(url)
            except Exception as e:
                raise ImageFetchError(f"Storage read failed for {url}: {e}") from e
            return FetchedImage(data=data, mime_type=resolve_image_mime_type(data, None))

        data, declared = await self._fetch_remote(url)
        return FetchedImage(data=data, mime_type=resolve_image_mime_type(data, declared))

    async def _fetch_remote(self, url: str) -> tuple[bytes, Optional[str]]:
        """
        Fetch remote image with streaming and size limits.

        Streams the download and aborts if size exceeds limit.
        """
        try:
            async with httpx.AsyncClient(
                follow_redirects=True,
                max_redirects=3,
                transport=self._transport,
            ) as client:
                async with client.stream("GET", url, timeout=self.timeout) as response:
                    response.raise_for_status()

                    # Check content-length header if available
                    content_length = response.headers.get("content-length")
                    if content_length and int(content_length) > self.max_size:
                        raise ImageFetchError(
                            f"Remote image too large (Content-Length): {content_length} bytes"
                        )

                    # Stream download with size check
                    chunks = []
                    total_size = 0

                    async for chunk in response.aiter_bytes(chunk_size=8192):
                        total_size += len(chunk)
                        if total_size > self.max_size:
                            raise ImageFetchError(
                                f"Remote image exceeded size limit during download: "
                                f"{total_size} bytes (max: {self.max_size})"
                            )
                        chunks.append(chunk)

                    return b"".join(chunks), response.headers.get("content-type")

        except httpx.TimeoutException as e:
            raise ImageFetchError(f"Timeout fetching remote image: {url}") from e
        except httpx.HTTPStatusError as e:
            raise ImageFetchError(f"HTTP error fetching remote image: {e}") from e
        except httpx.HTTPError as e:
            raise ImageFetchError(f"Error fetching remote image: {e}") from e
