"""PlaceShare API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map PlaceShareError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager
    - Uploaded images served read-only under /uploads/images
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from placeshare.api.error_handlers import register_error_handlers
from placeshare.api.routes import health, places, users
from placeshare.config import get_settings
from placeshare.infrastructure.database import init_db
from placeshare.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    if not settings.jwt_secret:
        logger.warning("JWT_SECRET is not set; signup and login will fail")
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_create_tables:
        await manager.create_tables()
    os.makedirs(settings.upload_dir, exist_ok=True)
    logger.info("PlaceShare API started")
    yield
    await manager.dispose()
    logger.info("PlaceShare API shutting down")


app = FastAPI(title="PlaceShare API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
)

app.include_router(health.router)
app.include_router(users.router)
app.include_router(places.router)

app.mount(
    "/uploads/images",
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)

register_error_handlers(app)
