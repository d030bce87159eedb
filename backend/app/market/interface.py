"""Abstract interface for market data sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable


class MarketDataSource(ABC):
    """Contract for market-data gateways.

    Implementations push ticks into a shared TickCache for every subscribed
    token on their own schedule. Downstream code never asks the source for a
    price; it reads the cache.

    Lifecycle:
        source = SimulatorDataSource(cache)
        await source.start()
        await source.subscribe([256265, 260105], "full")
        # ... app runs ...
        await source.unsubscribe([260105], "full")
        # ... app shutting down ...
        await source.stop()
    """

    @abstractmethod
    async def start(self) -> None:
        """Begin producing ticks for subscribed tokens.

        Starts a background task that periodically writes to the TickCache.
        Must be called exactly once.
        """

    @abstractmethod
    async def stop(self) -> None:
        """Stop the background task and release resources.

        Safe to call multiple times. After stop(), the source will not write
        to the cache again.
        """

    @abstractmethod
    async def subscribe(self, tokens: Iterable[int], channel: str) -> None:
        """Start streaming the given tokens on a channel (e.g. "ltp", "full").

        Fire-and-forget: callers do not wait for the first tick.
        """

    @abstractmethod
    async def unsubscribe(self, tokens: Iterable[int], channel: str) -> None:
        """Stop streaming the given tokens. Unknown tokens are ignored."""

    @abstractmethod
    def get_tokens(self) -> list[int]:
        """Return the tokens currently being streamed."""
