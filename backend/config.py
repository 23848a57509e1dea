import logging
from enum import Enum
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


logger = logging.getLogger(__name__)


class AppMode(str, Enum):
    DEV = "dev"
    PROD = "prod"


class Settings(BaseSettings):
    # Application mode - defaults to DEV
    APP_MODE: AppMode = AppMode.DEV

    # Debug mode - MUST be False in production
    DEBUG: bool = False

    # Server configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Storage backend: "local" for dev, "s3" for production
    STORAGE_BACKEND: str = "local"

    # Storage key prefixes
    UPLOAD_DIR: str = "uploads"
    GENERATED_DIR: str = "generated"

    # Local storage root (served at /storage)
    LOCAL_STORAGE_DIR: str = "storage"

    # S3 settings (used when STORAGE_BACKEND="s3")
    S3_BUCKET: str = ""
    S3_REGION: str = "us-east-1"
    S3_ACCESS_KEY_ID: str = ""
    S3_SECRET_ACCESS_KEY: str = ""
    S3_PREFIX: str = ""
    # S3 endpoint (for Railway, Cloudflare R2, MinIO, etc.)
    S3_ENDPOINT_URL: str = ""
    # Public base URL when it differs from the endpoint (CDN, MinIO in Docker)
    S3_PUBLIC_URL: str = ""
    # Uploaded objects get the public-read ACL
    S3_PUBLIC_READ: bool = True

    # Railway Object Storage (alternative names)
    BUCKET_NAME: str = ""
    BUCKET_ENDPOINT: str = ""
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = ""

    # Google Gemini API
    GOOGLE_API_KEY: str = ""
    VISION_MODEL: str = "models/gemini-2.0-flash"
    IMAGE_MODEL: str = "models/gemini-2.5-flash-image"

    # Upstream timeouts (seconds)
    API_TIMEOUT_SECONDS: int = 120
    IMAGE_FETCH_TIMEOUT_SECONDS: float = 30.0

    MAX_UPLOAD_SIZE_BYTES: int = 10 * 1024 * 1024  # 10MB

    # Comma-separated list of additional allowed origins
    CORS_ALLOWED_ORIGINS: str = ""

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """
        Get allowed CORS origins.

        In production only the explicitly configured origins are allowed.
        """
        origins = []

        if self.APP_MODE == AppMode.DEV:
            origins = [
                "http://localhost:3000",
                "http://localhost:5173",
                "http://127.0.0.1:3000",
                "http://127.0.0.1:5173",
            ]

        if self.CORS_ALLOWED_ORIGINS:
            custom_origins = [
                o.strip() for o in self.CORS_ALLOWED_ORIGINS.split(",") if o.strip()
            ]
            origins.extend(custom_origins)

        return origins

    @property
    def ai_enabled(self) -> bool:
        return bool(self.GOOGLE_API_KEY)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env variables


def _validate_settings(settings: Settings) -> Settings:
    """
    Validate settings and warn/error on misconfiguration.

    Fails fast on settings that must never reach production.
    """
    if settings.APP_MODE == AppMode.PROD:
        if settings.DEBUG:
            error_msg = (
                "CRITICAL ERROR: DEBUG=True in production! "
                "Debug mode exposes internal details in error responses. "
                "Set DEBUG=False or remove the DEBUG environment variable."
            )
            logger.critical(error_msg)
            raise ValueError(error_msg)

        if not settings.CORS_ORIGINS:
            logger.warning(
                "No CORS_ALLOWED_ORIGINS configured in production. "
                "Cross-origin requests will be blocked."
            )

        if settings.STORAGE_BACKEND == "local":
            logger.warning(
                "STORAGE_BACKEND=local in production. "
                "Uploaded files live on this host's disk only."
            )

    if not settings.GOOGLE_API_KEY:
        logger.warning(
            "GOOGLE_API_KEY is not configured. "
            "Analysis and generation requests will fail until it is set."
        )

    return settings


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Validates settings on first access and raises errors
    for critical misconfigurations in production.
    """
    settings = Settings()
    return _validate_settings(settings)
