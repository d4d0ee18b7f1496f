"""FastAPI application entry point for TOFU Consent."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tofu_consent import __version__
from tofu_consent.api.routes import router, get_engine
from tofu_consent.config import Settings, get_settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings.

    Runs from the lifespan startup hook, never at import.
    """
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
    logging.getLogger().setLevel(settings.log_level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    settings = get_settings()
    configure_logging(settings)
    app.debug = settings.debug

    logger.info(f"Starting TOFU Consent Server v{__version__}")
    logger.info(f"Debug mode: {settings.debug}")
    if not settings.protocol_api_key:
        logger.info("Consent routes disabled (set PROTOCOL_API_KEY to enable)")
    if not settings.admin_api_key:
        logger.info("Admin routes disabled (set ADMIN_API_KEY to enable)")

    # Build stores and engine up front so configuration errors surface now
    get_engine()

    yield

    # Shutdown
    logger.info("Shutting down TOFU Consent Server")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="TOFU Consent",
        description="Trust-on-first-use consent decisions for OAuth2 authorization",
        version=__version__,
        lifespan=lifespan,
    )

    app.include_router(router)

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "tofu_consent.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
