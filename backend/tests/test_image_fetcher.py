"""
Tests for MIME handling and source image fetching.
"""

import httpx
import pytest

from services.image_fetcher import ImageFetcher, ImageFetchError, resolve_image_mime_type
from services.image_validation import (
    normalize_image_mime_type,
    resolve_declared_content_type,
    sniff_image_mime_type,
)


class TestMimeHelpers:
    @pytest.mark.parametrize(
        "claimed,expected",
        [
            ("image/jpg", "image/jpeg"),
            ("IMAGE/PNG", "image/png"),
            ('"image/webp"', "image/webp"),
            ("image/png; charset=binary", "image/png"),
            ("image/x-png, image/png", "image/png"),
            ("", ""),
        ],
    )
    def test_normalize(self, claimed, expected):
        assert normalize_image_mime_type(claimed) == expected

    def test_declared_content_type_fallback(self):
        assert resolve_declared_content_type(None) == "application/octet-stream"
        assert resolve_declared_content_type("image/pjpeg") == "image/jpeg"

    def test_sniff(self, sample_image_bytes, sample_jpeg_bytes):
        assert sniff_image_mime_type(sample_image_bytes) == "image/png"
        assert sniff_image_mime_type(sample_jpeg_bytes) == "image/jpeg"
        assert sniff_image_mime_type(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == "image/webp"
        assert sniff_image_mime_type(b"hello") is None

    def test_resolve_prefers_sniffed_type(self, sample_jpeg_bytes):
        assert resolve_image_mime_type(sample_jpeg_bytes, "image/png") == "image/jpeg"
        assert resolve_image_mime_type(b"???", "image/gif") == "image/gif"
        assert resolve_image_mime_type(b"???", "text/html") == "image/jpeg"


class TestImageFetcher:
    @pytest.mark.asyncio
    async def test_owned_url_reads_storage(self, mock_storage, sample_image_bytes):
        mock_storage.owns_url.return_value = True
        mock_storage.download_bytes.return_value = sample_image_bytes
        fetcher = ImageFetcher(mock_storage)

        image = await fetcher.fetch("/storage/uploads/1-face.png")

        assert image.data == sample_image_bytes
        assert image.mime_type == "image/png"

    @pytest.mark.asyncio
    async def test_storage_error_is_fetch_error(self, mock_storage):
        mock_storage.owns_url.return_value = True
        mock_storage.download_bytes.side_effect = FileNotFoundError("gone")
        fetcher = ImageFetcher(mock_storage)

        with pytest.raises(ImageFetchError):
            await fetcher.fetch("/storage/uploads/1-face.png")

    @pytest.mark.asyncio
    async def test_remote_url_over_http(self, mock_storage, sample_jpeg_bytes):
        def handler(request: httpx.Request):
            return httpx.Response(200, content=sample_jpeg_bytes, headers={"content-type": "image/jpeg"})

        fetcher = ImageFetcher(mock_storage, transport=httpx.MockTransport(handler))

        image = await fetcher.fetch("https://cdn.example/uploads/1-face.jpg")

        assert image.data == sample_jpeg_bytes
        assert image.mime_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_remote_404(self, mock_storage):
        fetcher = ImageFetcher(
            mock_storage, transport=httpx.MockTransport(lambda request: httpx.Response(404))
        )

        with pytest.raises(ImageFetchError, match="HTTP error"):
            await fetcher.fetch("https://cdn.example/missing.png")

    @pytest.mark.asyncio
    async def test_remote_too_large(self, mock_storage):
        fetcher = ImageFetcher(
            mock_storage,
            max_size=10,
            transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b"x" * 100)),
        )

        with pytest.raises(ImageFetchError, match="too large|size limit"):
            await fetcher.fetch("https://cdn.example/big.png")

    @pytest.mark.asyncio
    async def test_remote_timeout(self, mock_storage):
        def handler(request: httpx.Request):
            raise httpx.ReadTimeout("slow", request=request)

        fetcher = ImageFetcher(mock_storage, transport=httpx.MockTransport(handler))

        with pytest.raises(ImageFetchError, match="Timeout"):
            await fetcher.fetch("https://cdn.example/slow.png")
