"""Thread-safe in-memory tick cache."""

from __future__ import annotations

import time
from threading import Lock

from .models import Tick


class TickCache:
    """Thread-safe in-memory cache of the latest tick for each instrument token.

    Writers: the market-data source (one at a time).
    Readers: reconciliation sessions, option chain snapshots, HTTP handlers.
    Readers never mutate the cache.
    """

    def __init__(self) -> None:
        self._ticks: dict[int, Tick] = {}
        self._lock = Lock()
        self._version: int = 0  # Monotonically increasing; bumped on every update

    def update(
        self,
        token: int,
        last_traded_price: float,
        open_interest: float | None = None,
        volume: float | None = None,
        timestamp: float | None = None,
    ) -> Tick:
        """Record a new tick for a token. Returns the stored Tick.

        Open interest and volume carry over from the previous tick when the
        feed omits them (LTP-only packets).
        """
        with self._lock:
            ts = timestamp or time.time()
            prev = self._ticks.get(token)
            if open_interest is None:
                open_interest = prev.open_interest if prev else 0.0
            if volume is None:
                volume = prev.volume if prev else 0.0

            tick = Tick(
                token=token,
                last_traded_price=round(last_traded_price, 2),
                open_interest=open_interest,
                volume=volume,
                timestamp=ts,
            )
            self._ticks[token] = tick
            self._version += 1
            return tick

    def get(self, token: int) -> Tick | None:
        """Get the latest tick for a single token, or None if nothing arrived yet."""
        with self._lock:
            return self._ticks.get(token)

    def get_all(self) -> dict[int, Tick]:
        """Snapshot of all current ticks. Returns a shallow copy."""
        with self._lock:
            return dict(self._ticks)

    def get_price(self, token: int) -> float | None:
        """Convenience: get just the last traded price, or None."""
        tick = self.get(token)
        return tick.last_traded_price if tick else None

    def remove(self, token: int) -> None:
        """Drop a token from the cache (e.g., after it is unsubscribed)."""
        with self._lock:
            self._ticks.pop(token, None)

    @property
    def version(self) -> int:
        """Current version counter. Useful for cheap change detection."""
        return self._version

    def __len__(self) -> int:
        with self._lock:
            return len(self._ticks)

    def __contains__(self, token: int) -> bool:
        with self._lock:
            return token in self._ticks
