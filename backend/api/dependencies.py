from dataclasses import dataclass

from fastapi import Request

from config import Settings
from services.gemini_client import LazyGeminiClient
from services.image_fetcher import ImageFetcher
from services.image_generation import ImageGenerationGateway
from services.storage import StorageBackend, build_storage
from services.upload_gateway import BlobUploadGateway
from services.vision_analysis import VisionAnalysisGateway


@dataclass
class Gateways:
    storage: StorageBackend
    upload: BlobUploadGateway
    analysis: VisionAnalysisGateway
    generation: ImageGenerationGateway


def build_gateways(settings: Settings) -> Gateways:
    """Construct every gateway from one settings object."""
    storage = build_storage(settings)
    fetcher = ImageFetcher(
        storage,
        timeout=settings.IMAGE_FETCH_TIMEOUT_SECONDS,
        max_size=settings.MAX_UPLOAD_SIZE_BYTES,
    )
    gemini = LazyGeminiClient(settings.GOOGLE_API_KEY)
    return Gateways(
        storage=storage,
        upload=BlobUploadGateway(
            storage,
            prefix=settings.UPLOAD_DIR,
            max_size_bytes=settings.MAX_UPLOAD_SIZE_BYTES,
        ),
        analysis=VisionAnalysisGateway(
            gemini,
            fetcher,
            model=settings.VISION_MODEL,
            timeout=settings.API_TIMEOUT_SECONDS,
        ),
        generation=ImageGenerationGateway(
            gemini,
            fetcher,
            storage,
            model=settings.IMAGE_MODEL,
            prefix=settings.GENERATED_DIR,
            timeout=settings.API_TIMEOUT_SECONDS,
        ),
    )


def get_gateways(request: Request) -> Gateways:
    return request.app.state.gateways


def get_upload_gateway(request: Request) -> BlobUploadGateway:
    return get_gateways(request).upload


def get_analysis_gateway(request: Request) -> VisionAnalysisGateway:
    return get_gateways(request).analysis


def get_generation_gateway(request: Request) -> ImageGenerationGateway:
    return get_gateways(request).generation
