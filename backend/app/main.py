"""FastAPI application wiring the catalog, resolver, simulator and spot router."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import Settings, load_settings
from app.instruments import InstrumentCatalog, MemoryCatalog, SpotResolver
from app.market import SimulatorDataSource, SubscriptionRegistry, TickCache, create_stream_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, catalog: InstrumentCatalog | None = None) -> FastAPI:
    """Build the app. The simulator starts and stops with the app lifespan."""
    settings = settings or load_settings()
    if catalog is None:
        if settings.instruments_csv:
            catalog = MemoryCatalog.from_csv(settings.instruments_csv)
        else:
            logger.warning("INSTRUMENTS_CSV not set; only index underlyings will resolve")
            catalog = MemoryCatalog()

    tick_cache = TickCache()
    source = SimulatorDataSource(tick_cache, update_interval=settings.simulator_update_interval)
    # Every SSE connection subscribes through the registry so views never release each other's tokens
    subscriptions = SubscriptionRegistry(source)
    resolver = SpotResolver.default(catalog)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await source.start()
        try:
            yield
        finally:
            await source.stop()

    app = FastAPI(title="Spot price service", lifespan=lifespan)
    app.state.tick_cache = tick_cache
    app.state.source = source
    app.state.subscriptions = subscriptions
    app.state.resolver = resolver
    app.include_router(create_stream_router(resolver, catalog, tick_cache, subscriptions, settings))
    return app
