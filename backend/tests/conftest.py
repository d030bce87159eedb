"""Pytest configuration and fixtures."""

from collections.abc import Iterable
from datetime import date, timedelta

import pytest

from app.instruments.catalog import MemoryCatalog
from app.instruments.models import InstrumentRecord, InstrumentType
from app.market.cache import TickCache
from app.market.interface import MarketDataSource

TODAY = date(2025, 1, 15)
NIFTY_EXPIRY = date(2025, 1, 23)


class RecordingSource(MarketDataSource):
    """MarketDataSource that only records calls, in order.

    Add "subscribe" or "unsubscribe" to `fail_next` to reject the next such
    call with ConnectionError (nothing is recorded for it).
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[int], str]] = []
        self.tokens: set[int] = set()
        self.fail_next: set[str] = set()

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    async def subscribe(self, tokens: Iterable[int], channel: str) -> None:
        self._maybe_fail("subscribe")
        tokens = list(tokens)
        self.calls.append(("subscribe", tokens, channel))
        self.tokens.update(tokens)

    async def unsubscribe(self, tokens: Iterable[int], channel: str) -> None:
        self._maybe_fail("unsubscribe")
        tokens = list(tokens)
        self.calls.append(("unsubscribe", tokens, channel))
        self.tokens.difference_update(tokens)

    def get_tokens(self) -> list[int]:
        return sorted(self.tokens)

    def _maybe_fail(self, action: str) -> None:
        if action in self.fail_next:
            self.fail_next.discard(action)
            raise ConnectionError(f"{action} rejected")


def _option(token: int, name: str, strike: float, kind: InstrumentType, expiry: date, segment: str = "NFO-OPT"):
    exchange = segment.split("-")[0]
    return InstrumentRecord(
        token=token,
        tradingsymbol=f"{name}25JAN{int(strike)}{kind.value}",
        name=name,
        exchange=exchange,
        segment=segment,
        instrument_type=kind,
        expiry=expiry,
        strike=strike,
        lot_size=75,
    )


def _gold_future(token: int, days: int) -> InstrumentRecord:
    expiry = TODAY + timedelta(days=days)
    return InstrumentRecord(
        token=token,
        tradingsymbol=f"GOLD{expiry:%y%b}FUT".upper(),
        name="GOLD",
        exchange="MCX",
        segment="MCX-FUT",
        instrument_type=InstrumentType.FUT,
        expiry=expiry,
        lot_size=1,
    )


@pytest.fixture
def records() -> list[InstrumentRecord]:
    """A small instruments universe covering index, stock and commodity cases."""
    return [
        InstrumentRecord(341249, "HDFCBANK", "HDFC BANK", "NSE", "NSE", InstrumentType.EQ, lot_size=1),
        InstrumentRecord(
            12345602, "HDFCBANK25JANFUT", "HDFCBANK", "NFO", "NFO-FUT", InstrumentType.FUT,
            expiry=date(2025, 1, 30), lot_size=550,
        ),
        InstrumentRecord(500180, "HDFCBANK", "HDFC BANK", "BSE", "BSE", InstrumentType.EQ, lot_size=1),
        # Listed out of expiry order on purpose
        _gold_future(53001, 40),
        _gold_future(53002, 5),
        _gold_future(53003, 20),
        _gold_future(53004, -3),  # expired
        InstrumentRecord(
            53100, "GOLDM25JANFUT", "GOLDM", "MCX", "MCX-FUT", InstrumentType.FUT,
            expiry=TODAY + timedelta(days=1), lot_size=1,
        ),
        _option(9001, "NIFTY", 24300, InstrumentType.CE, NIFTY_EXPIRY),
        _option(9002, "NIFTY", 24300, InstrumentType.PE, NIFTY_EXPIRY),
        _option(9003, "NIFTY", 24350, InstrumentType.CE, NIFTY_EXPIRY),
        _option(9004, "NIFTY", 24350, InstrumentType.PE, NIFTY_EXPIRY),
        _option(9005, "NIFTY", 24400, InstrumentType.CE, NIFTY_EXPIRY),
        _option(9101, "NIFTY", 24300, InstrumentType.CE, date(2025, 1, 30)),
    ]


@pytest.fixture
def catalog(records) -> MemoryCatalog:
    return MemoryCatalog(records)


@pytest.fixture
def tick_cache() -> TickCache:
    return TickCache()


@pytest.fixture
def source() -> RecordingSource:
    return RecordingSource()
