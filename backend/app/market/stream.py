"""HTTP endpoints: spot resolution and an SSE stream of live spot prices."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from datetime import date

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from app.config import Settings
from app.instruments import InstrumentCatalog, LookupFailure, SpotResolver

from .cache import TickCache
from .interface import MarketDataSource
from .view import ChainView

logger = logging.getLogger(__name__)


def create_stream_router(
    resolver: SpotResolver,
    catalog: InstrumentCatalog,
    tick_cache: TickCache,
    source: MarketDataSource,
    settings: Settings,
) -> APIRouter:
    """Create the spot router with its collaborators injected.

    This factory pattern lets us inject the cache and resolver without globals.
    """
    router = APIRouter(prefix="/api", tags=["spot"])

    @router.get("/spot/{underlying}")
    async def get_spot(underlying: str, segment: str = Query(...)) -> dict:
        """Resolve the spot reference instrument for an underlying.

        Not found is a normal answer ({"status": "not_found"}); a catalog
        failure is a 502 so clients know to retry.
        """
        try:
            info = await resolver.resolve(underlying, segment)
        except LookupFailure as e:
            raise HTTPException(status_code=502, detail=str(e)) from e
        if info is None:
            return {"status": "not_found"}
        return {"status": "found", **info.to_dict()}

    @router.get("/stream/spot/{underlying}")
    async def stream_spot(
        underlying: str,
        request: Request,
        segment: str = Query(...),
        expiry: date | None = Query(None),
    ) -> StreamingResponse:
        """SSE endpoint for the live spot price of one underlying.

        Each connection is its own view with one reconciliation session; its
        subscriptions are counted in the shared registry and released when the
        client goes away. Events:

            event: chain   the option chain snapshot at connect time
            event: spot    {"token": ..., "price": ..., "timestamp": ...}
            event: status  {"status": "not_found" | "error", ...}
        """
        view = ChainView(
            resolver,
            catalog,
            tick_cache,
            source,
            channel=settings.subscription_channel,
            throttle_ms=settings.throttle_ms,
            sample_interval=settings.sample_interval,
        )
        return StreamingResponse(
            _generate_events(view, request, underlying, segment, expiry),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    return router


def _event(name: str, data: dict) -> str:
    return f"event: {name}\ndata: {json.dumps(data)}\n\n"


async def _generate_events(
    view: ChainView,
    request: Request,
    underlying: str,
    segment: str,
    expiry: date | None = None,
    keepalive: float = 15.0,
) -> AsyncGenerator[str, None]:
    """Async generator that yields SSE-formatted spot price events.

    Stops when the client disconnects or the session goes Idle, and always
    tears the view down on the way out.
    """
    # Tell the client to retry after 1 second if the connection drops
    yield "retry: 1000\n\n"

    client_ip = request.client.host if request.client else "unknown"
    logger.info("SSE client connected: %s (%s %s)", client_ip, underlying, segment)

    try:
        await view.select(underlying, segment, expiry)
        yield _event("chain", view.snapshot())

        if view.lookup_error is not None:
            yield _event("status", {"status": "error", "detail": str(view.lookup_error)})
            return
        if view.spot is None:
            yield _event("status", {"status": "not_found"})
            return

        prices = view.stream()
        while True:
            if await request.is_disconnected():
                logger.info("SSE client disconnected: %s", client_ip)
                break
            try:
                emission = await asyncio.wait_for(prices.__anext__(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            except StopAsyncIteration:
                break
            yield _event("spot", emission.to_dict())
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled for: %s", client_ip)
    finally:
        await view.close()
