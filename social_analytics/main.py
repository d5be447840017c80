"""FastAPI application factory.

Creates and configures the FastAPI app:
  - Includes route routers (API, import, auth)
  - Initializes the database on startup via lifespan context manager
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from social_analytics.config import settings
from social_analytics.database import init_db
from social_analytics.routes.api import router as api_router
from social_analytics.routes.auth_routes import router as auth_router
from social_analytics.routes.upload import router as upload_router

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: initialize database on startup."""
    logger.info("Starting Social Analytics on port %s", settings.app_port)
    import social_analytics.database as db_module
    init_db(db_module.engine)
    logger.info("Database ready at %s", settings.db_path)
    yield
    logger.info("Shutting down Social Analytics.")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="Social Analytics",
        description="Import YouTube, Instagram and TikTok analytics exports and compare them.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.include_router(api_router)
    application.include_router(upload_router)
    application.include_router(auth_router)

    return application


app = create_app()
