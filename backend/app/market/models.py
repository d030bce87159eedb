"""Data models for market data."""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Tick:
    """Immutable snapshot of the latest market data for one instrument token."""

    token: int
    last_traded_price: float
    open_interest: float = 0.0
    volume: float = 0.0
    timestamp: float = field(default_factory=time.time)  # Unix seconds

    @property
    def has_price(self) -> bool:
        """False until the feed has delivered a strictly positive LTP."""
        return self.last_traded_price > 0

    def to_dict(self) -> dict:
        """Serialize for JSON / SSE transmission."""
        return {
            "token": self.token,
            "last_traded_price": self.last_traded_price,
            "open_interest": self.open_interest,
            "volume": self.volume,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class PriceEmission:
    """A spot price published by a reconciliation session."""

    token: int
    price: float
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {"token": self.token, "price": self.price, "timestamp": self.timestamp}


@dataclass(frozen=True, slots=True)
class SubscriptionDelta:
    """Tokens to add to and drop from the market-data subscription."""

    to_subscribe: frozenset[int] = frozenset()
    to_unsubscribe: frozenset[int] = frozenset()

    def __bool__(self) -> bool:
        return bool(self.to_subscribe or self.to_unsubscribe)
