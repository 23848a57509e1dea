"""
Test fixtures and configuration for pytest.
"""

import os
import sys
from io import BytesIO
from types import SimpleNamespace
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Settings
from services.gemini_client import LazyGeminiClient


def make_image_bytes(color: str = "red", size=(100, 100), fmt: str = "PNG") -> bytes:
    img = Image.new("RGB", size, color=color)
    buffer = BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def make_image_response(image_bytes: bytes):
    """Gemini-shaped response carrying one inline image part."""
    part = SimpleNamespace(text=None, inline_data=SimpleNamespace(data=image_bytes))
    return SimpleNamespace(parts=[part], candidates=None, text=None)


# ============== Settings ==============


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Local-storage settings rooted in a temporary directory."""
    return Settings(
        _env_file=None,
        APP_MODE="dev",
        STORAGE_BACKEND="local",
        LOCAL_STORAGE_DIR=str(tmp_path / "storage"),
        GOOGLE_API_KEY="test-api-key",
        API_TIMEOUT_SECONDS=5,
        IMAGE_FETCH_TIMEOUT_SECONDS=5.0,
    )


# ============== Mock Fixtures ==============


@pytest.fixture
def mock_storage():
    """Storage backend double that owns nothing and returns a fixed URL."""
    storage = MagicMock()
    storage.upload_bytes = AsyncMock(
        return_value="https://test-bucket.s3.amazonaws.com/uploads/file.png"
    )
    storage.download_bytes = AsyncMock(return_value=b"")
    storage.owns_url = MagicMock(return_value=False)
    return storage


@pytest.fixture
def mock_vision_model():
    """Gemini SDK double for the vision model."""
    gemini = MagicMock()
    gemini.models.generate_content.return_value = SimpleNamespace(
        text='[{"title": "Textured Crop", "description": "Short textured crop with a soft fringe"}]'
    )
    return gemini


@pytest.fixture
def mock_image_model():
    """Gemini SDK double for the image model."""
    gemini = MagicMock()
    gemini.models.generate_content.return_value = make_image_response(
        make_image_bytes("purple", size=(512, 512))
    )
    return gemini


# ============== Test Data Fixtures ==============


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Generate sample PNG image bytes for testing."""
    return make_image_bytes("red")


@pytest.fixture
def sample_jpeg_bytes() -> bytes:
    """Generate sample JPEG image bytes for testing."""
    return make_image_bytes("blue", fmt="JPEG")


@pytest.fixture
def sample_image_file(tmp_path, sample_image_bytes):
    """PNG photo on disk for wizard/CLI tests."""
    path = tmp_path / "face.png"
    path.write_bytes(sample_image_bytes)
    return path


# ============== Client Fixtures ==============


@pytest.fixture
def app(test_settings, mock_vision_model, mock_image_model):
    """Application on local storage with both Gemini models mocked."""
    from main import create_app

    application = create_app(test_settings)
    gateways = application.state.gateways
    gateways.analysis.client = LazyGeminiClient("", client=mock_vision_model)
    gateways.generation.client = LazyGeminiClient("", client=mock_image_model)
    return application


@pytest_asyncio.fixture(scope="function")
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client for the application."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
