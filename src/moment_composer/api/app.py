"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from moment_composer.api.devices import router as devices_router
from moment_composer.api.gallery import router as gallery_router
from moment_composer.api.google import router as google_router
from moment_composer.app_logging import configure_logging
from moment_composer.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        settings = app.state.container.settings
        logger.info(
            "Starting in %s: google=%s shopping=%s captions=%s songs=%s",
            settings.environment,
            settings.google_configured,
            settings.knot_configured,
            bool(settings.openai_api_key),
            bool(settings.suno_api_key),
        )
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(devices_router)
    app.include_router(gallery_router)
    app.include_router(google_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
