"""Spot instrument resolution for option chain underlyings.

Given an underlying name and the segment its options trade in, find the one
instrument whose ticks represent the underlying's spot price. Strategies are
tried in a fixed order and the first one that produces a result wins:

    1. IndexStrategy            static index table (no catalog access)
    2. StockStrategy            cash equity record for F&O stocks
    3. CommodityFutureStrategy  nearest-expiry future for commodities

No match is a normal outcome and resolves to None. A catalog failure is
raised as LookupFailure so callers can tell it apart and retry.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from datetime import date, datetime
from zoneinfo import ZoneInfo

from .catalog import CatalogQuery, InstrumentCatalog
from .errors import LookupFailure
from .index_table import INDEX_TABLE, IndexEntry
from .models import InstrumentType, SpotInstrumentInfo, SpotType
from .segments import equity_segment_for, futures_segment_for, is_commodity_segment

logger = logging.getLogger(__name__)

EXCHANGE_TZ = ZoneInfo("Asia/Kolkata")


def exchange_today() -> date:
    """Today's date on the exchange calendar."""
    return datetime.now(EXCHANGE_TZ).date()


class SpotStrategy(ABC):
    """One way of finding a spot instrument; evaluated independently of the others."""

    name: str = "strategy"

    @abstractmethod
    def applies(self, underlying: str, segment: str) -> bool:
        """Whether this strategy should be tried for the pair at all."""

    @abstractmethod
    async def lookup(self, underlying: str, segment: str) -> SpotInstrumentInfo | None:
        """The resolved instrument, or None if this strategy has no match."""


class IndexStrategy(SpotStrategy):
    name = "index"

    def __init__(self, table: dict[str, IndexEntry] | None = None) -> None:
        self._table = INDEX_TABLE if table is None else table

    def applies(self, underlying: str, segment: str) -> bool:
        return underlying in self._table

    async def lookup(self, underlying: str, segment: str) -> SpotInstrumentInfo | None:
        entry = self._table.get(underlying)
        if entry is None or entry.token is None:
            return None
        return SpotInstrumentInfo(
            token=entry.token,
            type=SpotType.INDEX,
            tradingsymbol=entry.tradingsymbol,
            exchange=entry.exchange,
        )


class StockStrategy(SpotStrategy):
    name = "stock"

    def __init__(self, catalog: InstrumentCatalog) -> None:
        self._catalog = catalog

    def applies(self, underlying: str, segment: str) -> bool:
        return equity_segment_for(segment) is not None

    async def lookup(self, underlying: str, segment: str) -> SpotInstrumentInfo | None:
        equity_segment = equity_segment_for(segment)
        record = await self._catalog.find_one(
            CatalogQuery(tradingsymbol=underlying, segment=equity_segment)
        )
        if record is None:
            return None
        return SpotInstrumentInfo(
            token=record.token,
            type=SpotType.STOCK,
            tradingsymbol=record.tradingsymbol,
            exchange=record.exchange,
            lot_size=record.lot_size,
        )


class CommodityFutureStrategy(SpotStrategy):
    """Commodities have no cash market feed; the nearest live future stands in.

    Only the earliest non-expired contract is acceptable. Far months carry
    carry-cost premia and would misstate spot.
    """

    name = "commodity_future"

    def __init__(self, catalog: InstrumentCatalog, today: Callable[[], date] = exchange_today) -> None:
        self._catalog = catalog
        self._today = today

    def applies(self, underlying: str, segment: str) -> bool:
        return is_commodity_segment(segment)

    async def lookup(self, underlying: str, segment: str) -> SpotInstrumentInfo | None:
        record = await self._catalog.find_one(
            CatalogQuery(
                name=underlying,
                segment=futures_segment_for(segment),
                instrument_type=InstrumentType.FUT,
                expiry_from=self._today(),
                sort_by_expiry=True,
            )
        )
        if record is None:
            return None
        return SpotInstrumentInfo(
            token=record.token,
            type=SpotType.COMMODITY_FUTURE,
            tradingsymbol=record.tradingsymbol,
            exchange=record.exchange,
            lot_size=record.lot_size,
        )


class SpotResolver:
    """Runs the spot strategies in order and returns the first match."""

    def __init__(self, strategies: Sequence[SpotStrategy]) -> None:
        self._strategies = list(strategies)

    @classmethod
    def default(
        cls,
        catalog: InstrumentCatalog,
        today: Callable[[], date] = exchange_today,
        index_table: dict[str, IndexEntry] | None = None,
    ) -> SpotResolver:
        return cls(
            [
                IndexStrategy(index_table),
                StockStrategy(catalog),
                CommodityFutureStrategy(catalog, today=today),
            ]
        )

    async def resolve(self, underlying: str, segment: str) -> SpotInstrumentInfo | None:
        """Resolve (underlying, segment) to a spot instrument.

        Returns None when no strategy matches. Raises LookupFailure when a
        catalog query fails.
        """
        underlying = underlying.strip().upper()
        segment = segment.strip().upper()

        for strategy in self._strategies:
            if not strategy.applies(underlying, segment):
                continue
            try:
                info = await strategy.lookup(underlying, segment)
            except Exception as e:
                logger.error(
                    "Spot lookup via %s failed for %s (%s): %s",
                    strategy.name,
                    underlying,
                    segment,
                    e,
                )
                raise LookupFailure(underlying, segment, str(e)) from e
            if info is not None:
                logger.debug("Resolved %s (%s) via %s -> %s", underlying, segment, strategy.name, info.token)
                return info

        logger.debug("No spot instrument for %s (%s)", underlying, segment)
        return None
