"""Starter API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map StarterError → ApiResponse error envelopes
    - CORS configured from settings (not hardcoded)
    - Database and identity client initialized/closed via the lifespan context manager
    - Swagger UI at settings.docs_url reading the OpenAPI document at settings.openapi_url
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.routes import auth, health, index, test_items, users
from app.config import get_settings
from app.infrastructure.database import close_db, init_db
from app.infrastructure.identity_client import close_identity_client
from app.infrastructure.observability import RequestLoggingMiddleware, setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info(f"{settings.app_name} started")
    yield
    await close_identity_client()
    await close_db()
    logger.info(f"{settings.app_name} shutting down")


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url=settings.docs_url,
    openapi_url=settings.openapi_url,
    redoc_url=None,
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(index.router)
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(test_items.router)

register_error_handlers(app)
