"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ecobingo.bingo.catalog import CatalogService
from ecobingo.bingo.locks import UserLocks
from ecobingo.bingo.router import router as bingo_router
from ecobingo.bingo.types import Topic
from ecobingo.config import Settings, get_settings
from ecobingo.database import close_db, init_db, session_scope
from ecobingo.db.stores import SqlCatalogStore
from ecobingo.events.broadcaster import EventBroadcaster
from ecobingo.events.bus import EventBus, InMemoryEventBus, RedisEventBus
from ecobingo.health.router import router as health_router
from ecobingo.middleware import setup_middleware
from ecobingo.redis_client import close_redis, init_redis
from ecobingo.ws.manager import ConnectionManager
from ecobingo.ws.router import router as ws_router

logger = logging.getLogger(__name__)


async def _seed_catalog() -> None:
    """Insert the default item set into an empty catalog."""
    try:
        async with session_scope() as db:
            await CatalogService(SqlCatalogStore(db)).list_active()
    except Exception:
        logger.warning("Catalog seeding failed (tables may not exist yet)", exc_info=True)


async def _build_bus(settings: Settings) -> EventBus:
    if settings.event_backend == "redis":
        return RedisEventBus(await init_redis(settings.redis_url))
    return InMemoryEventBus()


def wire_events(app: FastAPI, bus: EventBus, settings: Settings) -> EventBroadcaster:
    """Point a new broadcaster at ``bus`` and fan its topics out to WebSocket clients."""
    connections: ConnectionManager = app.state.connections
    for topic in Topic:
        bus.subscribe(topic.value, connections.deliver)
    broadcaster = EventBroadcaster(bus, maxsize=settings.event_queue_size)
    app.state.event_bus = bus
    app.state.broadcaster = broadcaster
    return broadcaster


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.seed_catalog_on_startup:
        await _seed_catalog()

    bus = await _build_bus(settings)
    broadcaster = wire_events(app, bus, settings)
    await bus.start()
    await broadcaster.start()

    yield

    await broadcaster.stop()
    await bus.stop()
    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="EcoBingo API",
        description="Sustainability bingo: boards, scoring, leaderboard and live events",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.user_locks = UserLocks()
    app.state.connections = ConnectionManager(
        max_connections_per_user=settings.ws_max_connections_per_user,
    )
    wire_events(app, InMemoryEventBus(), settings)

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(bingo_router)
    app.include_router(ws_router)

    return app


app = create_app()
