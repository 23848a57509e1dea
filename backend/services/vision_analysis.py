"""
Vision analysis gateway: hairstyle recommendations from a face photo.

Sends the source image and a fixed instruction to a Gemini vision model and
turns the free-text reply into recommendations.

The reply is parsed into one of two results:

- ``StructuredRecommendations`` when the text is a JSON array; the parsed
  list is returned as-is, items are not validated.
- ``FallbackRecommendation`` otherwise (prose, markdown-fenced JSON,
  malformed JSON, or JSON that is not an array). The whole raw text becomes
  the description of a single "AI Analysis Complete" item.

A parse failure is therefore never an error. Errors before parsing
(fetching the image, the model call) raise ``AnalysisFailed``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Union

from google.genai import types

from services.errors import AnalysisFailed, BadRequest
from services.gemini_client import LazyGeminiClient, run_with_timeout
from services.image_fetcher import ImageFetcher

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = (
    "Analyze this person's face and hairstyle. Provide 3-4 specific hairstyle "
    "recommendations that would suit their face shape, current hair texture, and "
    "features. Be specific about cuts, colors, and styling suggestions. Format your "
    "response as a JSON array with objects containing 'title' and 'description' fields."
)

FALLBACK_TITLE = "AI Analysis Complete"


@dataclass(frozen=True)
class StructuredRecommendations:
    items: list[Any]

    def as_list(self) -> list[Any]:
        return self.items


@dataclass(frozen=True)
class FallbackRecommendation:
    raw_text: str

    @property
    def item(self) -> dict[str, str]:
        return {"title": FALLBACK_TITLE, "description": self.raw_text}

    def as_list(self) -> list[Any]:
        return [self.item]


AnalysisResult = Union[StructuredRecommendations, FallbackRecommendation]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _load_json_array(text: str) -> list[Any] | None:
    # Strict JSON: NaN and Infinity are not numbers here.
    try:
        payload = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, TypeError, RecursionError):
        return None
    if isinstance(payload, list):
        return payload
    return None


def parse_recommendations(text: str) -> AnalysisResult:
    """Parse the model reply; never raises."""
    items = _load_json_array(text)
    if items is None:
        return FallbackRecommendation(raw_text=text)
    return StructuredRecommendations(items=items)


class VisionAnalysisGateway:
    def __init__(
        self,
        client: LazyGeminiClient,
        fetcher: ImageFetcher,
        *,
        model: str,
        timeout: float = 120,
    ):
        self.client = client
        self.fetcher = fetcher
        self.model = model
        self.timeout = timeout

    async def analyze(self, image_url: str | None) -> AnalysisResult:
        if not image_url or not image_url.strip():
            raise BadRequest("Image URL is required")

        try:
            image = await self.fetcher.fetch(image_url)
            gemini = self.client.get()
            response = await run_with_timeout(
                lambda: gemini.models.generate_content(
                    model=self.model,
                    contents=[
                        ANALYSIS_PROMPT,
                        types.Part.from_bytes(data=image.data, mime_type=image.mime_type),
                    ],
                ),
                self.timeout,
            )
            text = response.text or ""
        except asyncio.TimeoutError as e:
            logger.error("Analysis error: model call timed out after %ss", self.timeout)
            raise AnalysisFailed() from e
        except Exception as e:
            logger.exception("Analysis error: %s", e)
            raise AnalysisFailed() from e

        result = parse_recommendations(text)
        if isinstance(result, FallbackRecommendation):
            logger.info(
                "Vision reply is not a JSON array; using fallback recommendation (%d chars)",
                len(text),
            )
        else:
            logger.info("Vision reply parsed into %d recommendations", len(result.items))
        return result
