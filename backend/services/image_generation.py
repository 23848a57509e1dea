"""
Image generation gateway.

Edits the uploaded photo according to a free-text prompt using a Gemini
image model. The source image and the prompt are the conditioning inputs;
output is a single square 1024x1024 image, stored through the storage
backend. The gateway returns the URL of the stored image.

One fixed model is used. Upstream errors raise ``GenerationFailed`` with
no retry and no placeholder image.
"""

import asyncio
import base64
import logging
import time
import uuid
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, Iterable, Optional

from google.genai import types
from PIL import Image

from services.errors import BadRequest, GenerationFailed
from services.gemini_client import LazyGeminiClient, run_with_timeout
from services.image_fetcher import ImageFetcher
from services.storage import StorageBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedAsset:
    url: str


class NoImageInResponse(Exception):
    pass


class ImageGenerationGateway:
    IMAGE_ASPECT_RATIO = "1:1"
    IMAGE_SIZE = "1K"
    OUTPUT_SIZE = (1024, 1024)
    RESPONSE_MODALITIES = ["TEXT", "IMAGE"]

    def __init__(
        self,
        client: LazyGeminiClient,
        fetcher: ImageFetcher,
        storage: StorageBackend,
        *,
        model: str,
        prefix: str = "generated",
        timeout: float = 120,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.fetcher = fetcher
        self.storage = storage
        self.model = model
        self.prefix = prefix.strip("/")
        self.timeout = timeout
        self._clock = clock

    @classmethod
    def _build_generation_config(cls) -> types.GenerateContentConfig:
        image_config = None
        for image_config_kwargs in (
            {"aspect_ratio": cls.IMAGE_ASPECT_RATIO, "image_size": cls.IMAGE_SIZE},
            {"aspect_ratio": cls.IMAGE_ASPECT_RATIO},
        ):
            try:
                image_config = types.ImageConfig(**image_config_kwargs)
                break
            except (TypeError, ValueError) as e:
                logger.warning(
                    "Failed to construct ImageConfig with %s: %s",
                    image_config_kwargs,
                    e,
                )
        config_kwargs: dict[str, object] = {"response_modalities": cls.RESPONSE_MODALITIES}
        if image_config is not None:
            config_kwargs["image_config"] = image_config
        return types.GenerateContentConfig(**config_kwargs)

    @staticmethod
    def _iter_response_parts(response: object) -> Iterable[object]:
        """Yield candidate parts across SDK response layouts."""
        direct_parts = getattr(response, "parts", None)
        if direct_parts:
            for part in direct_parts:
                yield part

        candidates = getattr(response, "candidates", None)
        if not candidates:
            return
        for candidate in candidates:
            content = getattr(candidate, "content", None)
            if content is None:
                continue
            parts = getattr(content, "parts", None)
            if not parts:
                continue
            for part in parts:
                yield part

    @classmethod
    def _extract_image_from_response(cls, response: object) -> Optional[Image.Image]:
        """Extract first inline image from Gemini response."""
        for part in cls._iter_response_parts(response):
            inline_data = getattr(part, "inline_data", None)
            data = getattr(inline_data, "data", None) if inline_data is not None else None
            if not data:
                continue
            if isinstance(data, str):
                data = base64.b64decode(data)
            try:
                pil_image = Image.open(BytesIO(data))
                pil_image.load()
                return pil_image
            except OSError as e:
                logger.warning("Skipping undecodable inline image part: %s", e)
                continue
        return None

    @classmethod
    def _to_output_png(cls, image: Image.Image) -> bytes:
        if image.size != cls.OUTPUT_SIZE:
            image = image.convert("RGB").resize(cls.OUTPUT_SIZE, Image.LANCZOS)
        buffer = BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()

    def _build_output_key(self) -> str:
        return f"{self.prefix}/{int(self._clock() * 1000)}-{uuid.uuid4().hex}.png"

    async def generate(self, image_url: Optional[str], prompt: Optional[str]) -> GeneratedAsset:
        if not image_url or not image_url.strip() or not prompt or not prompt.strip():
            raise BadRequest("Image URL and prompt are required")
        prompt = prompt.strip()

        logger.debug("Generating image: %.80s...", prompt)

        try:
            source = await self.fetcher.fetch(image_url)
            gemini = self.client.get()
            response = await run_with_timeout(
                lambda: gemini.models.generate_content(
                    model=self.model,
                    # Follow common multimodal ordering: image first, then text prompt.
                    contents=[
                        types.Part.from_bytes(data=source.data, mime_type=source.mime_type),
                        prompt,
                    ],
                    config=self._build_generation_config(),
                ),
                self.timeout,
            )
            image = self._extract_image_from_response(response)
            if image is None:
                raise NoImageInResponse("No image in Gemini response")
            output = self._to_output_png(image)
            url = await self.storage.upload_bytes(output, self._build_output_key(), "image/png")
        except asyncio.TimeoutError as e:
            logger.error("Generation error: model call timed out after %ss", self.timeout)
            raise GenerationFailed() from e
        except Exception as e:
            logger.exception("Generation error: %s", e)
            raise GenerationFailed() from e

        logger.info("Generated image stored at %s", url)
        return GeneratedAsset(url=url)
