from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AnalyzeRequest(BaseModel):
    """Запит на аналіз завантаженого фото"""

    model_config = ConfigDict(populate_by_name=True)

    image_url: Optional[str] = Field(
        None,
        alias="imageUrl",
        description="Public URL returned by /api/upload",
    )


class GenerateRequest(BaseModel):
    """Запит на генерацію зображення"""

    model_config = ConfigDict(populate_by_name=True)

    image_url: Optional[str] = Field(None, alias="imageUrl")
    prompt: Optional[str] = Field(
        None,
        description="Free-form description of the change",
        examples=["Change hair color to blonde", "Give me a bob cut"],
    )


class UploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    download_url: str = Field(..., alias="downloadUrl")


class AnalyzeResponse(BaseModel):
    # Items are passed through exactly as the model produced them.
    recommendations: List[Any]


class GenerateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    generated_image_url: str = Field(..., alias="generatedImageUrl")
