"""
FastAPI application with assembled routers.

Initializes FastAPI app with the generation and health routers and
configures uvicorn server.

Dependencies: fastapi, media_studio.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from media_studio.api import api_router
from media_studio.api.deps.dependencies import get_service_cache
from media_studio.api.routers.ai.ai_error_handling import studio_exception_handler
from media_studio.configs import get_settings
from media_studio.core.exceptions import StudioException
from media_studio.observability.logger import configure_logging
from media_studio.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    logger = logging.getLogger("uvicorn")

    # Startup
    missing = get_settings().missing_runtime_config()
    if missing:
        logger.warning(f"Missing runtime settings, /ai will fail closed: {', '.join(missing)}")

    yield

    # Shutdown
    await get_service_cache().aclose()
    logger.info("Service cache cleared")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Media Studio API",
        description="Text-to-image, image-to-video and upscale jobs relayed into object storage",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Runway-Version"],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(StudioException, studio_exception_handler)

    app.include_router(api_router)

    return app


app = create_app()


def main() -> None:
    """Run the API server."""
    uvicorn.run(
        "media_studio.api.main:app",
        host="0.0.0.0",
        port=8000,
    )


if __name__ == "__main__":
    main()
