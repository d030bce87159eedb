"""Spot price reconciliation: turn a shared tick cache into a throttled price stream."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from enum import Enum

from .cache import TickCache
from .models import PriceEmission

logger = logging.getLogger(__name__)

DEFAULT_THROTTLE_MS = 50.0  # At most 20 emissions per second
DEFAULT_SAMPLE_INTERVAL = 1 / 60  # Roughly one sample per display frame


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class PriceStream:
    """Async iterator over a session's emissions.

    Ends silently when the session goes Idle:

        stream = session.stream()
        async for emission in stream:
            ...
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[PriceEmission | None] = asyncio.Queue()
        self._closed = False

    def push(self, emission: PriceEmission) -> None:
        if not self._closed:
            self._queue.put_nowait(emission)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(None)

    def __aiter__(self) -> PriceStream:
        return self

    async def __anext__(self) -> PriceEmission:
        item = await self._queue.get()
        if item is None:
            raise StopAsyncIteration
        return item


class ReconciliationSession:
    """Watches one token in the TickCache and publishes its price on change.

    State machine:
        IDLE --activate(token)--> ACTIVE --deactivate()--> IDLE

    While ACTIVE a background task samples the cache every `sample_interval`
    seconds. A price is emitted only when it is strictly positive, differs from
    the last emitted price, and at least `throttle_ms` has passed since the
    previous emission. Sampling continues through throttled samples, so the
    latest cached price is always the one that eventually gets emitted.

    The cache is passed in explicitly and only read. Each consuming view owns
    exactly one session.
    """

    def __init__(
        self,
        tick_cache: TickCache,
        on_price: Callable[[PriceEmission], None] | None = None,
        throttle_ms: float = DEFAULT_THROTTLE_MS,
        sample_interval: float = DEFAULT_SAMPLE_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache = tick_cache
        self._on_price = on_price
        self._throttle_ms = throttle_ms
        self._interval = sample_interval
        self._clock = clock

        self._state = SessionState.IDLE
        self._token: int | None = None
        self._last_emitted_price: float | None = None
        self._last_emit_time: float | None = None
        self._task: asyncio.Task | None = None
        self._streams: list[PriceStream] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def token(self) -> int | None:
        return self._token

    @property
    def last_emitted_price(self) -> float | None:
        return self._last_emitted_price

    @property
    def last_emit_time(self) -> float | None:
        return self._last_emit_time

    def stream(self) -> PriceStream:
        """Register a new async iterator of emissions for the current activation."""
        stream = PriceStream()
        if self._state is SessionState.IDLE:
            stream.close()
        else:
            self._streams.append(stream)
        return stream

    async def activate(self, token: int) -> None:
        """Start watching `token`. Switching tokens tears the old activation down first."""
        if self._state is SessionState.ACTIVE:
            if token == self._token:
                return
            await self.deactivate()

        self._token = token
        self._state = SessionState.ACTIVE
        self._task = asyncio.create_task(self._run_loop(), name=f"spot-reconciler-{token}")
        logger.info("Reconciliation session active for token %s", token)

    async def deactivate(self) -> None:
        """Stop sampling and forget the last emitted price.

        Once this returns no further emission happens, even if ticks keep
        arriving for the token. Safe to call when already Idle.
        """
        if self._state is SessionState.IDLE and self._task is None:
            return

        token = self._token
        task = self._task
        self._state = SessionState.IDLE
        self._task = None
        self._token = None
        self._last_emitted_price = None
        self._last_emit_time = None

        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        for stream in self._streams:
            stream.close()
        self._streams = []
        logger.info("Reconciliation session idle (was token %s)", token)

    def sample(self) -> PriceEmission | None:
        """Run one sampling step. Returns the emission, or None when withheld."""
        if self._state is not SessionState.ACTIVE or self._token is None:
            return None

        tick = self._cache.get(self._token)
        if tick is None or not tick.has_price:
            # Awaiting first update
            return None

        price = tick.last_traded_price
        if price == self._last_emitted_price:
            return None

        now = self._clock()
        if self._last_emit_time is not None and (now - self._last_emit_time) * 1000 < self._throttle_ms:
            logger.debug("Throttled %s for token %s", price, self._token)
            return None

        emission = PriceEmission(token=self._token, price=price, timestamp=tick.timestamp)
        self._last_emitted_price = price
        self._last_emit_time = now
        self._publish(emission)
        return emission

    # --- Internal ---

    def _publish(self, emission: PriceEmission) -> None:
        for stream in self._streams:
            stream.push(emission)
        if self._on_price is None:
            return
        try:
            self._on_price(emission)
        except Exception:
            logger.exception("Spot price callback failed for token %s", emission.token)

    async def _run_loop(self) -> None:
        """Core loop: sample the cache, yield, repeat until cancelled."""
        while True:
            try:
                self.sample()
            except Exception:
                logger.exception("Spot price sample failed for token %s", self._token)
            await asyncio.sleep(self._interval)
