"""One consumer's option chain with a live spot price."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import date

from app.instruments import (
    CatalogQuery,
    ChainRow,
    InstrumentCatalog,
    LookupFailure,
    SpotInstrumentInfo,
    SpotResolver,
    atm_strike,
    build_option_chain,
    leg_tokens,
)

from .cache import TickCache
from .interface import MarketDataSource
from .models import PriceEmission
from .reconciler import DEFAULT_SAMPLE_INTERVAL, DEFAULT_THROTTLE_MS, PriceStream, ReconciliationSession
from .subscriptions import DEFAULT_CHANNEL, SubscriptionManager, required_tokens

logger = logging.getLogger(__name__)


class ChainView:
    """Owns the subscriptions and the spot reconciliation session of one view.

    Every parameter change goes through select(): the session drops to Idle
    (clearing the previous spot price), the spot instrument is resolved again,
    and subscriptions are reconciled to exactly the chain legs plus the spot
    token. close() releases everything.
    """

    def __init__(
        self,
        resolver: SpotResolver,
        catalog: InstrumentCatalog,
        tick_cache: TickCache,
        source: MarketDataSource,
        channel: str = DEFAULT_CHANNEL,
        throttle_ms: float = DEFAULT_THROTTLE_MS,
        sample_interval: float = DEFAULT_SAMPLE_INTERVAL,
        on_price: Callable[[PriceEmission], None] | None = None,
    ) -> None:
        self._resolver = resolver
        self._catalog = catalog
        self._cache = tick_cache
        self._subscriptions = SubscriptionManager(source, channel=channel)
        self._session = ReconciliationSession(
            tick_cache,
            on_price=on_price,
            throttle_ms=throttle_ms,
            sample_interval=sample_interval,
        )
        self._lock = asyncio.Lock()

        self.underlying: str | None = None
        self.segment: str | None = None
        self.expiry: date | None = None
        self.rows: list[ChainRow] = []
        self.spot: SpotInstrumentInfo | None = None
        self.lookup_error: LookupFailure | None = None

    @property
    def session(self) -> ReconciliationSession:
        return self._session

    @property
    def subscribed_tokens(self) -> frozenset[int]:
        return self._subscriptions.current

    @property
    def spot_price(self) -> float | None:
        return self._session.last_emitted_price

    @property
    def spot_status(self) -> str:
        """'idle' (nothing selected), 'error', 'not_found', 'pending' (no price yet) or 'live'."""
        if self.underlying is None:
            return "idle"
        if self.lookup_error is not None:
            return "error"
        if self.spot is None:
            return "not_found"
        return "live" if self.spot_price is not None else "pending"

    def stream(self) -> PriceStream:
        """Spot prices for the current selection; ends on the next select() or close()."""
        return self._session.stream()

    async def select(self, underlying: str, segment: str, expiry: date | None = None) -> None:
        """Switch the view to a new underlying, segment or expiry.

        Raises CatalogError if the option legs cannot be loaded; the view is
        left unchanged in that case. A failed spot lookup is recorded in
        `lookup_error` and the spot token is simply left out. If the source
        rejects the subscription change the error propagates with the session
        Idle; selecting the same parameters again retries the rejected part.
        """
        async with self._lock:
            underlying = underlying.strip().upper()
            segment = segment.strip().upper()
            rows = await self._load_chain(underlying, segment, expiry)

            await self._session.deactivate()
            self.underlying, self.segment, self.expiry = underlying, segment, expiry
            self.rows = rows
            self.spot = None
            self.lookup_error = None

            try:
                self.spot = await self._resolver.resolve(underlying, segment)
            except LookupFailure as e:
                logger.warning("Spot unavailable for %s (%s): %s", underlying, segment, e)
                self.lookup_error = e

            spot_token = self.spot.token if self.spot else None
            await self._subscriptions.apply(required_tokens(leg_tokens(rows), spot_token))
            if spot_token is not None:
                await self._session.activate(spot_token)

    async def retry_spot(self) -> None:
        """Re-run spot resolution after a lookup failure for the current selection."""
        if self.underlying is None or self.lookup_error is None:
            return
        await self.select(self.underlying, self.segment or "", self.expiry)

    async def close(self) -> None:
        """Tear down the session and release every subscription."""
        async with self._lock:
            await self._session.deactivate()
            await self._subscriptions.close()
            self.underlying = self.segment = self.expiry = None
            self.rows = []
            self.spot = None
            self.lookup_error = None

    def snapshot(self) -> dict:
        """Current chain with leg prices, spot price and the ATM strike."""
        strikes = [row.strike for row in self.rows]
        return {
            "underlying": self.underlying,
            "segment": self.segment,
            "expiry": self.expiry.isoformat() if self.expiry else None,
            "spot": self.spot.to_dict() if self.spot else None,
            "spot_status": self.spot_status,
            "spot_price": self.spot_price,
            "atm_strike": atm_strike(strikes, self.spot_price),
            "rows": [self._row_dict(row) for row in self.rows],
        }

    # --- Internal ---

    async def _load_chain(self, underlying: str, segment: str, expiry: date | None) -> list[ChainRow]:
        if expiry is None:
            return []
        records = await self._catalog.find(CatalogQuery(name=underlying, segment=segment, expiry=expiry))
        return build_option_chain(records)

    def _row_dict(self, row: ChainRow) -> dict:
        def leg(record):
            if record is None:
                return None
            tick = self._cache.get(record.token)
            return {
                "token": record.token,
                "tradingsymbol": record.tradingsymbol,
                "ltp": tick.last_traded_price if tick else None,
                "open_interest": tick.open_interest if tick else None,
            }

        return {"strike": row.strike, "call": leg(row.call), "put": leg(row.put)}
