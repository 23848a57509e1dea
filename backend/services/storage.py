"""
Blob storage for uploaded photos and generated images.

Two backends share one small interface:

- ``LocalStorage`` writes under ``LOCAL_STORAGE_DIR`` and returns relative
  ``/storage/...`` URLs served by the app's static mount (development).
- ``S3Storage`` writes to any S3-compatible bucket (AWS, Railway, R2, MinIO)
  and returns absolute public URLs. Objects get the ``public-read`` ACL unless
  ``S3_PUBLIC_READ`` is off, since the URL is handed to browsers and fetched
  back by the model gateways.

Keys are ``{folder}/{name}``; URLs percent-quote the key.
"""

import asyncio
import logging
import urllib.parse
from pathlib import Path
from typing import Optional, Protocol

from config import Settings

logger = logging.getLogger(__name__)

LOCAL_URL_PREFIX = "/storage/"


class StorageBackend(Protocol):
    async def upload_bytes(self, data: bytes, key: str, content_type: str) -> str:
        """Store *data* under *key* and return its public URL."""
        ...

    async def download_bytes(self, url_or_path: str) -> bytes:
        ...

    def owns_url(self, url: str) -> bool:
        """True if *url* points at an object stored by this backend."""
        ...


class LocalStorage:
    def __init__(self, settings: Settings):
        self.base_dir = Path(settings.LOCAL_STORAGE_DIR)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Local storage at %s", self.base_dir.resolve())

    def _resolve(self, key: str) -> Path:
        """Map a key to a file under ``base_dir``, refusing anything outside it."""
        path = (self.base_dir / key.lstrip("/")).resolve()
        if not path.is_relative_to(self.base_dir.resolve()):
            raise ValueError("Invalid path: path traversal attempt detected")
        return path

    def _key_from_url(self, url: str) -> str:
        path = urllib.parse.unquote(urllib.parse.urlparse(url).path)
        if path.startswith(LOCAL_URL_PREFIX):
            return path[len(LOCAL_URL_PREFIX):]
        return path.lstrip("/")

    async def upload_bytes(self, data: bytes, key: str, content_type: str) -> str:
        key = key.lstrip("/")
        path = self._resolve(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("Stored %s locally (%d bytes, %s)", key, len(data), content_type)
        return LOCAL_URL_PREFIX + urllib.parse.quote(key)

    async def download_bytes(self, url_or_path: str) -> bytes:
        path = self._resolve(self._key_from_url(url_or_path))
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return path.read_bytes()

    def owns_url(self, url: str) -> bool:
        return url.startswith(LOCAL_URL_PREFIX)


def _public_base_url(bucket: str, region: str, endpoint_url: Optional[str], public_url: str) -> str:
    if public_url:
        return public_url.rstrip("/")
    if endpoint_url:
        # S3-compatible providers are addressed path-style
        return f"{endpoint_url.rstrip('/')}/{bucket}"
    if region == "us-east-1":
        return f"https://{bucket}.s3.amazonaws.com"
    return f"https://{bucket}.s3.{region}.amazonaws.com"


def _make_s3_client(settings: Settings, region: str, endpoint_url: Optional[str]):
    import boto3
    from botocore.config import Config

    # Railway exposes AWS_* names; explicit S3_* settings win.
    return boto3.client(
        "s3",
        aws_access_key_id=settings.S3_ACCESS_KEY_ID or settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY or settings.AWS_SECRET_ACCESS_KEY or None,
        region_name=region,
        endpoint_url=endpoint_url,
        config=Config(signature_version="s3v4"),
    )


class S3Storage:
    def __init__(self, settings: Settings, client=None):
        if settings.STORAGE_BACKEND != "s3":
            raise RuntimeError("S3 storage backend is not enabled")

        self.bucket = settings.S3_BUCKET or settings.BUCKET_NAME
        if not self.bucket:
            raise RuntimeError("S3_BUCKET is required")

        self.prefix = settings.S3_PREFIX.strip("/")
        self.public_read = settings.S3_PUBLIC_READ
        self.region = settings.S3_REGION or settings.AWS_REGION or "us-east-1"
        self.endpoint_url = settings.S3_ENDPOINT_URL or settings.BUCKET_ENDPOINT or None
        self.public_base_url = _public_base_url(
            self.bucket, self.region, self.endpoint_url, settings.S3_PUBLIC_URL
        )
        self.client = client or _make_s3_client(settings, self.region, self.endpoint_url)

        logger.info(
            "S3 storage: bucket=%s prefix=%s endpoint=%s",
            self.bucket,
            self.prefix or "<none>",
            self.endpoint_url or "AWS",
        )

    def _build_key(self, key: str) -> str:
        key = key.lstrip("/")
        return f"{self.prefix}/{key}" if self.prefix else key

    def _build_public_url(self, s3_key: str) -> str:
        return f"{self.public_base_url}/{urllib.parse.quote(s3_key)}"

    def _key_from_url(self, url_or_path: str) -> str:
        if self.owns_url(url_or_path):
            return urllib.parse.unquote(url_or_path[len(self.public_base_url) + 1:])
        if url_or_path.startswith(("http://", "https://")):
            # Same bucket behind another host name (e.g. internal endpoint)
            path = urllib.parse.unquote(urllib.parse.urlparse(url_or_path).path.lstrip("/"))
            return path.removeprefix(self.bucket + "/")
        return self._build_key(url_or_path)

    async def upload_bytes(self, data: bytes, key: str, content_type: str) -> str:
        s3_key = self._build_key(key)
        extra = {"ACL": "public-read"} if self.public_read else {}
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=s3_key,
                Body=data,
                ContentType=content_type,
                **extra,
            )
        except Exception as e:
            logger.error("S3 upload failed: bucket=%s key=%s error=%s", self.bucket, s3_key, e)
            raise

        logger.info("Uploaded s3://%s/%s (%d bytes)", self.bucket, s3_key, len(data))
        return self._build_public_url(s3_key)

    async def download_bytes(self, url_or_path: str) -> bytes:
        s3_key = self._key_from_url(url_or_path)
        try:
            response = await asyncio.to_thread(self.client.get_object, Bucket=self.bucket, Key=s3_key)
            return response["Body"].read()
        except Exception as e:
            logger.error("S3 download failed: bucket=%s key=%s error=%s", self.bucket, s3_key, e)
            raise

    def owns_url(self, url: str) -> bool:
        return url.startswith(self.public_base_url + "/")


def build_storage(settings: Settings) -> StorageBackend:
    if settings.STORAGE_BACKEND == "local":
        return LocalStorage(settings)
    if settings.STORAGE_BACKEND == "s3":
        return S3Storage(settings)
    raise RuntimeError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")
