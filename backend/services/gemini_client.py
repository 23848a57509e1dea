"""
Shared Google Gemini plumbing for the analysis and generation gateways.

The SDK is synchronous, so calls run in a worker thread under
``asyncio.wait_for``.
"""

import asyncio
import logging
from typing import Callable, Optional, TypeVar

from google import genai

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GeminiNotConfigured(RuntimeError):
    pass


class LazyGeminiClient:
    """Creates the ``genai.Client`` on first use so startup never needs a key."""

    def __init__(self, api_key: str, client: Optional[object] = None):
        self._api_key = api_key
        self._client = client

    @property
    def is_available(self) -> bool:
        return self._client is not None or bool(self._api_key)

    def get(self) -> object:
        if self._client is None:
            if not self._api_key:
                raise GeminiNotConfigured(
                    "Google Gemini API not available! Set GOOGLE_API_KEY in .env"
                )
            self._client = genai.Client(api_key=self._api_key)
            logger.info("Google Gemini client initialized")
        return self._client


async def run_with_timeout(call: Callable[[], T], timeout: float) -> T:
    """Run a blocking SDK call with timeout."""
    return await asyncio.wait_for(asyncio.to_thread(call), timeout=timeout)
