"""Tests for market data models."""

import pytest

from app.market.models import PriceEmission, SubscriptionDelta, Tick


class TestTick:
    """Unit tests for the Tick model."""

    def test_tick_creation(self):
        tick = Tick(token=256265, last_traded_price=24350.5, open_interest=0, volume=10, timestamp=1234567890.0)
        assert tick.token == 256265
        assert tick.last_traded_price == 24350.5
        assert tick.timestamp == 1234567890.0

    def test_has_price(self):
        assert Tick(token=1, last_traded_price=0.05).has_price
        assert not Tick(token=1, last_traded_price=0.0).has_price
        assert not Tick(token=1, last_traded_price=-1.0).has_price

    def test_to_dict(self):
        tick = Tick(token=9001, last_traded_price=120.0, open_interest=5000, volume=42, timestamp=1.0)
        assert tick.to_dict() == {
            "token": 9001,
            "last_traded_price": 120.0,
            "open_interest": 5000,
            "volume": 42,
            "timestamp": 1.0,
        }

    def test_immutability(self):
        """Test that Tick is immutable."""
        tick = Tick(token=1, last_traded_price=100.0)
        with pytest.raises(AttributeError):
            tick.last_traded_price = 200.0


class TestPriceEmission:
    def test_to_dict(self):
        emission = PriceEmission(token=256265, price=24350.5, timestamp=1234567890.0)
        assert emission.to_dict() == {"token": 256265, "price": 24350.5, "timestamp": 1234567890.0}


class TestSubscriptionDelta:
    def test_empty_delta_is_falsy(self):
        assert not SubscriptionDelta()

    def test_non_empty_delta_is_truthy(self):
        assert SubscriptionDelta(to_subscribe=frozenset({1}))
        assert SubscriptionDelta(to_unsubscribe=frozenset({1}))
