"""walletpin API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map WalletPinError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from walletpin.api.error_handlers import register_error_handlers
from walletpin.api.routes import health, wallet_pin
from walletpin.config import get_settings
from walletpin.infrastructure import database
from walletpin.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    if not settings.secure_store_key:
        logger.warning("SECURE_STORE_KEY is not set; PIN routes will fail until it is")
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("walletpin API started")
    yield
    if database.db_manager:
        await database.db_manager.dispose()
    logger.info("walletpin API shutting down")


app = FastAPI(
    title="walletpin API", version="1.0.0", lifespan=lifespan,
)

# CORS: origins come from settings
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(health.router)
app.include_router(wallet_pin.router)

register_error_handlers(app)
