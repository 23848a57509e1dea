import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from api.dependencies import get_upload_gateway
from schemas.common import ErrorResponse
from schemas.studio import UploadResponse
from services.upload_gateway import BlobUploadGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["upload"])


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    gateway: BlobUploadGateway = Depends(get_upload_gateway),
) -> UploadResponse:
    """Завантажити фото в сховище та повернути публічний URL"""
    data = await file.read() if file is not None else None
    asset = await gateway.upload(
        data,
        file.filename if file is not None else None,
        file.content_type if file is not None else None,
    )
    return UploadResponse(url=asset.url, download_url=asset.url)
