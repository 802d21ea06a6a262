"""statebox API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map StateBoxError → structured JSON responses
    - The store registry is built once in the lifespan and closed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: owns construction and teardown of the
      registry, the DB engine and every container in one place
    - build_registry() separate from lifespan: tests and scripts reuse it
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from statebox.api.error_handlers import register_error_handlers
from statebox.api.routes import health, stores
from statebox.config import get_settings
from statebox.core.repository_protocols import ItemRepository
from statebox.infrastructure.database import init_db
from statebox.infrastructure.item_repository import SqlItemRepository
from statebox.infrastructure.observability import setup_logging
from statebox.services.item_store import ItemStore
from statebox.services.store_registry import StoreRegistry

logger = logging.getLogger(__name__)


def build_registry(item_repository: ItemRepository) -> StoreRegistry:
    """Construct every application-scoped container."""
    registry = StoreRegistry()
    registry.register(ItemStore(item_repository))
    return registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_create_tables:
        await db.create_tables()

    registry = build_registry(SqlItemRepository(db))
    app.state.registry = registry
    if settings.items_load_on_startup:
        await registry.get(ItemStore.name).mutate({"action": "list"})
    logger.info("statebox API started")
    yield
    logger.info("statebox API shutting down")
    registry.close()
    await db.dispose()


app = FastAPI(title="statebox API", version="0.1.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(stores.router)

register_error_handlers(app)
