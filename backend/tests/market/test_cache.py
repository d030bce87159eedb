"""Tests for TickCache."""

from app.market.cache import TickCache


class TestTickCache:
    """Unit tests for the TickCache."""

    def test_update_and_get(self):
        """Test updating and getting a tick."""
        cache = TickCache()
        tick = cache.update(256265, 24350.50)
        assert tick.token == 256265
        assert tick.last_traded_price == 24350.50
        assert cache.get(256265) == tick

    def test_get_unknown_token(self):
        """Test that an unknown token has no tick yet."""
        cache = TickCache()
        assert cache.get(256265) is None

    def test_update_with_activity(self):
        """Test that open interest and volume are stored."""
        cache = TickCache()
        tick = cache.update(9001, 120.0, open_interest=5000, volume=12000)
        assert tick.open_interest == 5000
        assert tick.volume == 12000

    def test_ltp_only_update_keeps_activity(self):
        """Test that an LTP-only update carries open interest and volume forward."""
        cache = TickCache()
        cache.update(9001, 120.0, open_interest=5000, volume=12000)
        tick = cache.update(9001, 121.0)
        assert tick.last_traded_price == 121.0
        assert tick.open_interest == 5000
        assert tick.volume == 12000

    def test_first_ltp_only_update_has_zero_activity(self):
        cache = TickCache()
        tick = cache.update(9001, 120.0)
        assert tick.open_interest == 0.0
        assert tick.volume == 0.0

    def test_remove(self):
        """Test removing a token from cache."""
        cache = TickCache()
        cache.update(256265, 24350.00)
        cache.remove(256265)
        assert cache.get(256265) is None

    def test_remove_nonexistent(self):
        """Test removing a token that doesn't exist."""
        cache = TickCache()
        cache.remove(256265)  # Should not raise

    def test_get_all(self):
        """Test getting all ticks."""
        cache = TickCache()
        cache.update(256265, 24350.00)
        cache.update(260105, 52100.00)
        assert set(cache.get_all().keys()) == {256265, 260105}

    def test_get_all_is_a_copy(self):
        cache = TickCache()
        cache.update(256265, 24350.00)
        snapshot = cache.get_all()
        cache.update(260105, 52100.00)
        assert 260105 not in snapshot

    def test_version_increments(self):
        """Test that version counter increments."""
        cache = TickCache()
        v0 = cache.version
        cache.update(256265, 24350.00)
        assert cache.version == v0 + 1
        cache.update(256265, 24351.00)
        assert cache.version == v0 + 2

    def test_get_price_convenience(self):
        """Test the convenience get_price method."""
        cache = TickCache()
        cache.update(256265, 24350.50)
        assert cache.get_price(256265) == 24350.50
        assert cache.get_price(1) is None

    def test_len_and_contains(self):
        cache = TickCache()
        assert len(cache) == 0
        cache.update(256265, 24350.00)
        assert len(cache) == 1
        assert 256265 in cache
        assert 260105 not in cache

    def test_custom_timestamp(self):
        """Test updating with a custom timestamp."""
        cache = TickCache()
        tick = cache.update(256265, 24350.50, timestamp=1234567890.0)
        assert tick.timestamp == 1234567890.0

    def test_price_rounding(self):
        """Test that prices are rounded to 2 decimal places."""
        cache = TickCache()
        tick = cache.update(256265, 24350.12345)
        assert tick.last_traded_price == 24350.12
