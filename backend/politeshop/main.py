"""POLITEShop API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map PoliteShopError -> structured JSON responses
    - CORS configured from settings (not hardcoded); credentials allowed because
      every authenticated route reads cookies
    - Database initialized on startup via lifespan context manager
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import politeshop.infrastructure.database as database
from politeshop.api.error_handlers import register_error_handlers
from politeshop.infrastructure.observability import setup_logging
from politeshop.config import get_settings
from politeshop.api.routes import health, modules, sync

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("POLITEShop API started")
    yield
    if database.db_manager:
        await database.db_manager.dispose()
    logger.info("POLITEShop API shutting down")


app = FastAPI(
    title="POLITEShop API", version="0.1.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(sync.router)
app.include_router(modules.router)

register_error_handlers(app)
