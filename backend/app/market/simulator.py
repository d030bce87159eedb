"""GBM-based market data simulator for subscribed instrument tokens."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Iterable

import numpy as np

from .cache import TickCache
from .interface import MarketDataSource
from .seed_prices import (
    DEFAULT_CORR,
    DEFAULT_OPEN_INTEREST,
    DEFAULT_PARAMS,
    DEFAULT_PRICE_RANGE,
    INDEX_TOKENS,
    INTRA_INDEX_CORR,
    SEED_PRICES,
    TOKEN_PARAMS,
)

logger = logging.getLogger(__name__)

LTP_CHANNEL = "ltp"


class GBMSimulator:
    """Correlated Geometric Brownian Motion over a set of instrument tokens.

    Per step, for every token i:
        S_i *= exp((mu_i - sigma_i^2/2) * dt + sigma_i * sqrt(dt) * Z_i)

    with Z = L @ N(0, I), L the Cholesky factor of the token correlation
    matrix. State is kept in parallel numpy arrays indexed by slot; a token's
    slot is its position in `_tokens`. Every token accumulates volume;
    non-index tokens also carry a drifting open interest.
    """

    # 500ms expressed as a fraction of a trading year
    # 250 trading days * 6.25 hours/day * 3600 seconds/hour = 5,625,000 seconds
    TRADING_SECONDS_PER_YEAR = 250 * 6.25 * 3600
    DEFAULT_DT = 0.5 / TRADING_SECONDS_PER_YEAR  # ~8.9e-8

    def __init__(
        self,
        tokens: Iterable[int] = (),
        dt: float = DEFAULT_DT,
        event_probability: float = 0.001,
        seed_prices: dict[int, float] | None = None,
    ) -> None:
        self._dt = dt
        self._event_prob = event_probability
        self._seeds = {**SEED_PRICES, **(seed_prices or {})}

        self._tokens: list[int] = []
        self._prices = np.empty(0)
        self._mu = np.empty(0)
        self._sigma = np.empty(0)
        self._volume = np.empty(0)
        self._open_interest = np.empty(0)
        self._cholesky: np.ndarray | None = None

        for token in tokens:
            self._append(token)
        self._rebuild_cholesky()

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, token: int) -> bool:
        return token in self._tokens

    def step(self) -> dict[int, float]:
        """Advance every token by one time step. Returns {token: new_price}."""
        n = len(self._tokens)
        if n == 0:
            return {}

        z = np.random.standard_normal(n)
        if self._cholesky is not None:
            z = self._cholesky @ z
        self._prices *= np.exp((self._mu - 0.5 * self._sigma**2) * self._dt + self._sigma * np.sqrt(self._dt) * z)

        # Occasional gap moves on news
        shocked = np.random.random(n) < self._event_prob
        if shocked.any():
            size = np.random.uniform(0.005, 0.02, n) * np.random.choice([-1.0, 1.0], n)
            self._prices[shocked] *= 1 + size[shocked]
            logger.debug("Random event on %s", [self._tokens[i] for i in np.flatnonzero(shocked)])

        self._volume += np.random.poisson(25.0, n)
        self._open_interest = np.maximum(0.0, self._open_interest * (1 + np.random.normal(0.0, 0.0005, n)))
        return dict(zip(self._tokens, np.round(self._prices, 2).tolist()))

    def quote(self, token: int) -> tuple[float, float, float] | None:
        """(price, open_interest, volume) for a token, or None if not simulated."""
        if token not in self._tokens:
            return None
        i = self._tokens.index(token)
        return round(float(self._prices[i]), 2), float(self._open_interest[i]), float(self._volume[i])

    def add_token(self, token: int) -> None:
        if token in self._tokens:
            return
        self._append(token)
        self._rebuild_cholesky()

    def remove_token(self, token: int) -> None:
        if token not in self._tokens:
            return
        i = self._tokens.index(token)
        del self._tokens[i]
        self._prices = np.delete(self._prices, i)
        self._mu = np.delete(self._mu, i)
        self._sigma = np.delete(self._sigma, i)
        self._volume = np.delete(self._volume, i)
        self._open_interest = np.delete(self._open_interest, i)
        self._rebuild_cholesky()

    def _append(self, token: int) -> None:
        params = TOKEN_PARAMS.get(token, DEFAULT_PARAMS)
        price = self._seeds.get(token) or random.uniform(*DEFAULT_PRICE_RANGE)
        self._tokens.append(token)
        self._prices = np.append(self._prices, price)
        self._mu = np.append(self._mu, params["mu"])
        self._sigma = np.append(self._sigma, params["sigma"])
        self._volume = np.append(self._volume, 0.0)
        self._open_interest = np.append(self._open_interest, 0.0 if token in INDEX_TOKENS else DEFAULT_OPEN_INTEREST)

    def _rebuild_cholesky(self) -> None:
        """Indices correlate at INTRA_INDEX_CORR with each other, all other pairs at DEFAULT_CORR."""
        n = len(self._tokens)
        if n <= 1:
            self._cholesky = None
            return
        is_index = np.array([t in INDEX_TOKENS for t in self._tokens])
        corr = np.where(np.outer(is_index, is_index), INTRA_INDEX_CORR, DEFAULT_CORR)
        np.fill_diagonal(corr, 1.0)
        self._cholesky = np.linalg.cholesky(corr)


class SimulatorDataSource(MarketDataSource):
    """MarketDataSource backed by the GBM simulator.

    Runs a background asyncio task that calls GBMSimulator.step() every
    `update_interval` seconds and writes ticks for subscribed tokens to the
    TickCache. Tokens on the "ltp" channel receive price-only ticks.
    Subscribing an already streamed token only switches its channel.
    Holds no per-consumer reference counts; put a SubscriptionRegistry in
    front of it when several views share it.
    """

    def __init__(
        self,
        tick_cache: TickCache,
        update_interval: float = 0.5,
        event_probability: float = 0.001,
        seed_prices: dict[int, float] | None = None,
    ) -> None:
        self._cache = tick_cache
        self._interval = update_interval
        self._sim = GBMSimulator(event_probability=event_probability, seed_prices=seed_prices)
        self._channels: dict[int, str] = {}
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        self._task = asyncio.create_task(self._run_loop(), name="simulator-loop")
        logger.info("Simulator started with %d tokens", len(self._channels))

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Simulator stopped")

    async def subscribe(self, tokens: Iterable[int], channel: str) -> None:
        tokens = list(tokens)
        for token in tokens:
            self._channels[token] = channel
            self._sim.add_token(token)
            # Seed cache immediately so the token has a tick right away
            self._write_tick(token)
        logger.info("Simulator: subscribed %d tokens on %s", len(tokens), channel)

    async def unsubscribe(self, tokens: Iterable[int], channel: str) -> None:
        removed = 0
        for token in tokens:
            if self._channels.pop(token, None) is None:
                continue
            self._sim.remove_token(token)
            self._cache.remove(token)
            removed += 1
        logger.info("Simulator: unsubscribed %d tokens on %s", removed, channel)

    def get_tokens(self) -> list[int]:
        return list(self._channels)

    def _write_tick(self, token: int) -> None:
        quote = self._sim.quote(token)
        if quote is None:
            return
        price, open_interest, volume = quote
        if self._channels.get(token) == LTP_CHANNEL:
            self._cache.update(token=token, last_traded_price=price)
        else:
            self._cache.update(token=token, last_traded_price=price, open_interest=open_interest, volume=volume)

    async def _run_loop(self) -> None:
        """Core loop: step the simulation, write to cache, sleep."""
        while True:
            try:
                for token in self._sim.step():
                    self._write_tick(token)
            except Exception:
                logger.exception("Simulator step failed")
            await asyncio.sleep(self._interval)
