"""
Blob upload gateway.

Stores one client file in the configured storage backend under
``uploads/{millisecond timestamp}-{filename}`` and returns its public URL.

Key uniqueness relies on the timestamp only: two uploads of the same
filename within the same millisecond share a key and the later one
overwrites the earlier.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from services.errors import BadRequest, UploadFailed
from services.image_validation import resolve_declared_content_type
from services.storage import StorageBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedAsset:
    url: str


def _basename(filename: str) -> str:
    return filename.replace("\\", "/").rsplit("/", 1)[-1]


def build_upload_key(prefix: str, filename: str, timestamp_ms: int) -> str:
    return f"{prefix.strip('/')}/{timestamp_ms}-{_basename(filename)}"


class BlobUploadGateway:
    def __init__(
        self,
        storage: StorageBackend,
        *,
        prefix: str = "uploads",
        max_size_bytes: int = 10 * 1024 * 1024,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self.prefix = prefix
        self.max_size_bytes = max_size_bytes
        self._clock = clock

    async def upload(
        self,
        data: Optional[bytes],
        filename: Optional[str],
        content_type: Optional[str],
    ) -> UploadedAsset:
        if not data or not filename or not _basename(filename):
            raise BadRequest("No file provided")
        if len(data) > self.max_size_bytes:
            raise BadRequest(
                f"File too large. Max size is {self.max_size_bytes // (1024 * 1024)}MB"
            )

        key = build_upload_key(self.prefix, filename, int(self._clock() * 1000))
        stored_type = resolve_declared_content_type(content_type)

        try:
            url = await self.storage.upload_bytes(data, key, stored_type)
        except Exception as e:
            logger.exception("Upload error (key=%s): %s", key, e)
            raise UploadFailed() from e

        logger.info("Uploaded %d bytes as %s", len(data), key)
        return UploadedAsset(url=url)
