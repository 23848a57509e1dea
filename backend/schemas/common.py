"""Common schemas used across the API.

This module contains reusable schema components for consistent API responses.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standard error response format.

    All API errors use this format. Upstream failures always carry a generic
    message; details stay in the server log.
    """
    error: str = Field(..., description="Human-readable error description")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"error": "Image URL is required"},
                {"error": "Analysis failed"},
            ]
        }
    }


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    mode: str
    ai_enabled: bool
    storage_backend: Optional[str] = None
