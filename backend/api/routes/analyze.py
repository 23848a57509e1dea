from fastapi import APIRouter, Depends

from api.dependencies import get_analysis_gateway
from schemas.common import ErrorResponse
from schemas.studio import AnalyzeRequest, AnalyzeResponse
from services.vision_analysis import VisionAnalysisGateway

router = APIRouter(tags=["analyze"])


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyze_image(
    request: AnalyzeRequest,
    gateway: VisionAnalysisGateway = Depends(get_analysis_gateway),
) -> AnalyzeResponse:
    """Проаналізувати обличчя та зачіску і повернути рекомендації"""
    result = await gateway.analyze(request.image_url)
    return AnalyzeResponse(recommendations=result.as_list())
