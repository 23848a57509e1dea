"""HTTP client for the FluxStyle Studio API."""

import logging
from pathlib import Path
from typing import Any, List, Optional, Union

import httpx

from wizard.state import guess_mime_type

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_TIMEOUT_SECONDS = 180.0


class StudioAPIError(Exception):
    """Non-2xx response (or no response at all) from the API."""

    def __init__(self, status_code: Optional[int], message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        return fallback
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return fallback


class StudioClient:
    """
    Thin wrapper over ``httpx.AsyncClient`` for upload, analyze and generate.

    Use as an async context manager, or call ``aclose()`` when done.
    Relative URLs returned by a local-storage server (``/storage/...``) are
    resolved against ``base_url``.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "StudioClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, fallback: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise StudioAPIError(None, f"{fallback}: {e}") from e

        if response.status_code >= 400:
            raise StudioAPIError(response.status_code, _error_message(response, fallback))
        return response

    @staticmethod
    def _json_field(response: httpx.Response, key: str, fallback: str) -> Any:
        """Read *key* from a 2xx JSON body; an unusable body is an API error too."""
        try:
            return response.json()[key]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Unexpected %s response body: %s", response.url.path, e)
            raise StudioAPIError(response.status_code, fallback) from e

    async def upload(self, path: Union[str, Path]) -> str:
        path = Path(path)
        data = path.read_bytes()
        files = {"file": (path.name, data, guess_mime_type(path.name))}
        response = await self._request("POST", "/api/upload", "Upload failed", files=files)
        return self._json_field(response, "url", "Upload failed")

    async def analyze(self, image_url: str) -> List[Any]:
        response = await self._request(
            "POST", "/api/analyze", "Analysis failed", json={"imageUrl": image_url}
        )
        recommendations = self._json_field(response, "recommendations", "Analysis failed")
        if not isinstance(recommendations, list):
            raise StudioAPIError(response.status_code, "Analysis failed")
        return recommendations

    async def generate(self, image_url: str, prompt: str) -> str:
        response = await self._request(
            "POST",
            "/api/generate",
            "Image generation failed",
            json={"imageUrl": image_url, "prompt": prompt},
        )
        return self._json_field(response, "generatedImageUrl", "Image generation failed")

    async def download(self, url: str, path: Union[str, Path]) -> Path:
        """Save the image behind *url* to *path*, creating parent directories."""
        response = await self._request("GET", url, "Download failed")
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(response.content)
        logger.info("Saved %d bytes to %s", len(response.content), path)
        return path
