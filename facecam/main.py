"""Main application module for the webcam face service."""
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from facecam.api import router as api_v1_router
from facecam.core.config import settings
from facecam.core.exceptions import StartupError
from facecam.core.logging import get_logger, setup_logging
from facecam.core.session import FaceSession
from facecam.infrastructure.media.webcam import WebcamSource
from facecam.infrastructure.storage.gallery_store import JsonFileGalleryStore, MemoryGalleryStore

setup_logging()
logger = get_logger(__name__)


def build_session() -> FaceSession:
    """Create the session from settings; an empty GALLERY_PATH keeps the gallery in memory."""
    store = JsonFileGalleryStore() if settings.GALLERY_PATH else MemoryGalleryStore()
    return FaceSession(video=WebcamSource(), store=store)


def create_app(session_factory: Callable[[], FaceSession] = build_session) -> FastAPI:
    """Create the FastAPI application.

    Args:
        session_factory: Builds the FaceSession served by the routes

    Returns:
        FastAPI: Configured application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[Any, None]:
        """Handle application startup and shutdown events.

        A model load failure does not abort startup: the session records it,
        the status endpoint reports it and the action routes answer 503.
        """
        logger.info(
            "Starting up webcam face service",
            version=settings.VERSION,
            environment=settings.ENVIRONMENT,
            backend=settings.ANALYZER_BACKEND,
        )

        session = session_factory()
        app.state.session = session
        try:
            await session.initialize()
            logger.info("Initialized face session")
        except StartupError as e:
            logger.error("Face session failed to start", error=str(e), **e.details)

        yield

        logger.info("Shutting down webcam face service")
        await session.shutdown()
        logger.info("Cleaned up application resources")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    @app.get("/health")
    async def health_check() -> dict:
        """Basic health check endpoint.

        Returns:
            dict: Health status
        """
        logger.info("Health check requested")
        return {"status": "healthy"}

    return app


app = create_app()
