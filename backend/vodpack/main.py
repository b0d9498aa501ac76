"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from vodpack.core.config import Settings, settings
from vodpack.core.logging import setup_logging
from vodpack.core.metrics import get_content_type, get_metrics, set_app_info
from vodpack.core.middleware import (
    CorrelationIdMiddleware,
    MetricsMiddleware,
    RequestLoggingMiddleware,
    TracingMiddleware,
)
from vodpack.core.storage import LocalStorage, ensure_storage_directories
from vodpack.core.tracing import setup_tracing, shutdown_tracing
from vodpack.modules.transcoding.models import HardwareAccel, JobKind
from vodpack.modules.transcoding.service import TranscodeOrchestrator
from vodpack.modules.video import router as video_router
from vodpack.modules.video.service import VideoService

logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build the application.

    The hardware profile and storage root are read from settings here, once,
    and handed to the orchestrator and video service stored on
    ``app.state``.
    """
    app_settings = app_settings or settings
    environment = "development" if app_settings.DEBUG else "production"
    storage_root = Path(app_settings.STORAGE_PATH)
    hw_accel = HardwareAccel.parse(app_settings.HW_ACCEL)

    setup_logging(
        level="DEBUG" if app_settings.DEBUG else app_settings.LOG_LEVEL,
        json_format=app_settings.LOG_JSON,
        include_stack_trace=True,
        service_name=app_settings.PROJECT_NAME,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        ensure_storage_directories(storage_root)
        setup_tracing(
            service_name=app_settings.PROJECT_NAME,
            service_version=app_settings.VERSION,
            environment=environment,
            otlp_endpoint=app_settings.OTLP_ENDPOINT,
            enable_console_export=app_settings.DEBUG,
        )
        logger.info(
            "Service started",
            extra={"storage_path": str(storage_root), "hw_accel": hw_accel.value},
        )
        yield
        shutdown_tracing()

    app = FastAPI(
        title=app_settings.PROJECT_NAME,
        version=app_settings.VERSION,
        description="Upload a video and receive HLS and DASH packagings of it.",
        lifespan=lifespan,
    )

    orchestrator = TranscodeOrchestrator(
        hw_accel=hw_accel,
        base_url=app_settings.BASE_URL,
        ffmpeg_path=app_settings.FFMPEG_PATH,
        cancel_sibling_on_failure=app_settings.CANCEL_SIBLING_ON_FAILURE,
    )
    storage = LocalStorage(storage_root, chunk_size=app_settings.MAX_UPLOAD_CHUNK_BYTES)
    app.state.settings = app_settings
    app.state.video_service = VideoService(orchestrator, storage)

    set_app_info(
        version=app_settings.VERSION,
        environment=environment,
        hw_accel=hw_accel.value,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_methods=["POST", "GET", "OPTIONS", "PUT", "DELETE"],
        allow_headers=["Content-Type"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(TracingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(MetricsMiddleware)

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.get("/metrics", include_in_schema=False)
    async def prometheus_metrics() -> Response:
        """Prometheus metrics in text exposition format."""
        return Response(content=get_metrics(), media_type=get_content_type())

    app.include_router(video_router, prefix=app_settings.API_PREFIX)

    for kind in JobKind:
        app.mount(
            f"/{kind.value}",
            StaticFiles(directory=storage_root / kind.value, check_dir=False),
            name=kind.value,
        )

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the application with uvicorn."""
    uvicorn.run(
        "vodpack.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    run()
