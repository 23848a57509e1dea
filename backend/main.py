import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.requests import Request

from api.dependencies import build_gateways
from api.routes import analyze, generate, upload
from config import AppMode, Settings, get_settings
from middleware.logging import RequestLoggingMiddleware, configure_request_logging
from middleware.security import SecurityHeadersMiddleware
from schemas.common import HealthResponse
from services.errors import GatewayError

APP_NAME = "FluxStyle Studio API"
APP_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    # Налаштування логування
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    # Заглушити шумні логгери
    for noisy in ("botocore", "boto3", "urllib3", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Malformed bodies are client-fixable, same as missing fields.
    logger.warning("Invalid request to %s: %d validation errors", request.url.path, len(exc.errors()))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body"},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application with every gateway constructed from *settings*."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifecycle events - startup та shutdown"""
        logger.info(f"Starting {APP_NAME} in {settings.APP_MODE.value} mode...")
        logger.info(f"Storage backend: {settings.STORAGE_BACKEND}")
        if not settings.ai_enabled:
            logger.warning("No GOOGLE_API_KEY configured. Set it in .env")

        yield

        logger.info(f"Shutting down {APP_NAME}...")

    app = FastAPI(
        title="FluxStyle Studio",
        description="Upload a photo, get AI hairstyle recommendations, generate the new look",
        version=APP_VERSION,
        lifespan=lifespan,
        debug=settings.DEBUG,
    )
    app.state.settings = settings
    app.state.gateways = build_gateways(settings)

    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

    # Middlewares (order matters - first added = last executed)
    app.add_middleware(
        SecurityHeadersMiddleware,
        is_production=settings.APP_MODE == AppMode.PROD,
    )

    if settings.APP_MODE == AppMode.DEV:
        configure_request_logging(settings.LOG_LEVEL)
        app.add_middleware(RequestLoggingMiddleware)

    # CORS middleware - must be last (first to process incoming requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Static files для завантажених та згенерованих зображень (лише для local storage)
    if settings.STORAGE_BACKEND == "local":
        storage_dir = app.state.gateways.storage.base_dir
        app.mount("/storage", StaticFiles(directory=str(storage_dir)), name="storage")

    api_router = APIRouter(prefix="/api")
    api_router.include_router(upload.router)
    api_router.include_router(analyze.router)
    api_router.include_router(generate.router)
    app.include_router(api_router)

    @app.get("/")
    async def root():
        """Головна сторінка API"""
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "docs": "/docs",
            "endpoints": {
                "upload": "/api/upload",
                "analyze": "/api/analyze",
                "generate": "/api/generate",
            },
        }

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint"""
        return HealthResponse(
            status="healthy",
            mode=settings.APP_MODE.value,
            ai_enabled=settings.ai_enabled,
            storage_backend=settings.STORAGE_BACKEND,
        )

    return app


configure_logging(get_settings())
app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=(settings.APP_MODE == AppMode.DEV),
    )


if __name__ == "__main__":
    run()
