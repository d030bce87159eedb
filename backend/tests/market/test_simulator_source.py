"""Integration tests for SimulatorDataSource."""

import asyncio

import pytest

from app.market.cache import TickCache
from app.market.simulator import SimulatorDataSource

NIFTY = 256265
BANKNIFTY = 260105


@pytest.mark.asyncio
class TestSimulatorDataSource:
    """Integration tests for the SimulatorDataSource."""

    async def test_subscribe_populates_cache(self):
        """Test that subscribe() seeds the cache before the first loop tick."""
        cache = TickCache()
        source = SimulatorDataSource(tick_cache=cache, update_interval=0.1)
        await source.start()
        await source.subscribe([NIFTY, BANKNIFTY], "full")

        assert cache.get(NIFTY) is not None
        assert cache.get(BANKNIFTY) is not None

        await source.stop()

    async def test_ticks_update_over_time(self):
        """Test that ticks are written periodically."""
        cache = TickCache()
        source = SimulatorDataSource(tick_cache=cache, update_interval=0.05)
        await source.subscribe([NIFTY], "full")
        await source.start()

        initial_version = cache.version
        await asyncio.sleep(0.3)  # Several update cycles

        assert cache.version > initial_version

        await source.stop()

    async def test_stop_is_clean(self):
        """Test that stop() is clean and idempotent."""
        cache = TickCache()
        source = SimulatorDataSource(tick_cache=cache, update_interval=0.1)
        await source.start()
        await source.stop()
        await source.stop()

    async def test_unsubscribe_removes_from_cache(self):
        cache = TickCache()
        source = SimulatorDataSource(tick_cache=cache, update_interval=0.1)
        await source.start()
        await source.subscribe([NIFTY, BANKNIFTY], "full")

        await source.unsubscribe([BANKNIFTY], "full")
        assert BANKNIFTY not in source.get_tokens()
        assert cache.get(BANKNIFTY) is None
        assert cache.get(NIFTY) is not None

        await source.stop()

    async def test_unsubscribe_unknown_token_is_noop(self):
        cache = TickCache()
        source = SimulatorDataSource(tick_cache=cache, update_interval=0.1)
        await source.subscribe([NIFTY], "full")
        await source.unsubscribe([1], "full")
        assert source.get_tokens() == [NIFTY]

    async def test_no_ticks_after_unsubscribe(self):
        cache = TickCache()
        source = SimulatorDataSource(tick_cache=cache, update_interval=0.01)
        await source.start()
        await source.subscribe([NIFTY], "full")
        await source.unsubscribe([NIFTY], "full")

        await asyncio.sleep(0.05)
        assert cache.get(NIFTY) is None

        await source.stop()

    async def test_ltp_channel_has_no_activity(self):
        cache = TickCache()
        source = SimulatorDataSource(tick_cache=cache, update_interval=0.01)
        await source.subscribe([9001], "ltp")
        await source.start()
        await asyncio.sleep(0.05)

        tick = cache.get(9001)
        assert tick is not None
        assert tick.open_interest == 0.0
        assert tick.volume == 0.0

        await source.stop()

    async def test_full_channel_carries_open_interest(self):
        cache = TickCache()
        source = SimulatorDataSource(tick_cache=cache, update_interval=0.1)
        await source.subscribe([9001], "full")
        assert cache.get(9001).open_interest > 0

    async def test_seed_prices_override(self):
        cache = TickCache()
        source = SimulatorDataSource(tick_cache=cache, seed_prices={9001: 120.0})
        await source.subscribe([9001], "full")
        assert cache.get_price(9001) == 120.0

    async def test_empty_start(self):
        """Test starting with nothing subscribed."""
        cache = TickCache()
        source = SimulatorDataSource(tick_cache=cache, update_interval=0.1)
        await source.start()

        assert len(cache) == 0
        assert source.get_tokens() == []

        await source.stop()

    async def test_loop_keeps_running(self):
        """Test that the simulator task stays alive across cycles."""
        cache = TickCache()
        source = SimulatorDataSource(tick_cache=cache, update_interval=0.05)
        await source.start()
        await source.subscribe([NIFTY], "full")
        await asyncio.sleep(0.15)

        assert source._task is not None
        assert not source._task.done()

        await source.stop()
