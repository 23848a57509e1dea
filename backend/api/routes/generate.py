from fastapi import APIRouter, Depends

from api.dependencies import get_generation_gateway
from schemas.common import ErrorResponse
from schemas.studio import GenerateRequest, GenerateResponse
from services.image_generation import ImageGenerationGateway

router = APIRouter(tags=["generate"])


@router.post(
    "/generate",
    response_model=GenerateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def generate_image(
    request: GenerateRequest,
    gateway: ImageGenerationGateway = Depends(get_generation_gateway),
) -> GenerateResponse:
    """Згенерувати нове зображення за фото та текстовим описом"""
    asset = await gateway.generate(request.image_url, request.prompt)
    return GenerateResponse(generated_image_url=asset.url)
