"""Subscription diffing between required token sets and the market-data source."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Iterable

from .interface import MarketDataSource
from .models import SubscriptionDelta

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL = "full"

# Richer channels carry everything the poorer ones do
CHANNEL_RANK: dict[str, int] = {"ltp": 0, "quote": 1, "full": 2}


def required_tokens(leg_tokens: Iterable[int], spot_token: int | None = None) -> frozenset[int]:
    """The token set a view needs streamed: all option legs plus the spot token."""
    tokens = set(leg_tokens)
    if spot_token is not None:
        tokens.add(spot_token)
    return frozenset(tokens)


class SubscriptionManager:
    """Keeps one view's market-data subscriptions equal to its required token set.

    Each call diffs the new required set against the one it remembered, so a
    token is only ever subscribed once until it is unsubscribed again. Owned
    by a single consuming view; never shared.
    """

    def __init__(self, source: MarketDataSource, channel: str = DEFAULT_CHANNEL) -> None:
        self._source = source
        self._channel = channel
        self._current: frozenset[int] = frozenset()

    @property
    def current(self) -> frozenset[int]:
        """Tokens this manager has subscribed and not yet released."""
        return self._current

    def diff(self, required: Iterable[int]) -> SubscriptionDelta:
        """Delta from the remembered set to `required`, without remembering it."""
        new = frozenset(required)
        return SubscriptionDelta(to_subscribe=new - self._current, to_unsubscribe=self._current - new)

    def reconcile(self, required: Iterable[int]) -> SubscriptionDelta:
        """Diff `required` against the remembered set and remember `required`.

        Pure bookkeeping; nothing is sent to the source.
        """
        delta = self.diff(required)
        self._current = frozenset(required)
        return delta

    async def apply(self, required: Iterable[int]) -> SubscriptionDelta:
        """Push the delta to the source, unsubscribes first.

        Each half is remembered only once the source accepted it, so after a
        source error the next apply() with the same set retries what failed.
        """
        delta = self.diff(required)
        if delta.to_unsubscribe:
            await self._source.unsubscribe(sorted(delta.to_unsubscribe), self._channel)
            self._current = self._current - delta.to_unsubscribe
        if delta.to_subscribe:
            await self._source.subscribe(sorted(delta.to_subscribe), self._channel)
            self._current = self._current | delta.to_subscribe
        if delta:
            logger.info(
                "Subscriptions: +%d -%d (now %d)",
                len(delta.to_subscribe),
                len(delta.to_unsubscribe),
                len(self._current),
            )
        return delta

    async def close(self) -> SubscriptionDelta:
        """Release every token this manager holds."""
        return await self.apply(())


class SubscriptionRegistry(MarketDataSource):
    """Reference-counted front for a market-data source shared by many views.

    The source only sees a token subscribed when its first holder arrives
    and unsubscribed when its last holder leaves. While held on several
    channels a token streams on the richest of them; when that holder leaves
    the token is re-subscribed on the richest remaining channel. If the source
    rejects a call the counts are restored and the error propagates.
    """

    def __init__(self, source: MarketDataSource) -> None:
        self._source = source
        self._holders: dict[int, Counter[str]] = {}
        self._lock = asyncio.Lock()

    async def start(self) -> None:
        await self._source.start()

    async def stop(self) -> None:
        await self._source.stop()

    def get_tokens(self) -> list[int]:
        return list(self._holders)

    def holders(self, token: int) -> int:
        """How many subscriptions currently hold `token`, across channels."""
        return sum(self._holders.get(token, Counter()).values())

    def channel_for(self, token: int) -> str | None:
        """The channel `token` is streamed on, or None when nobody holds it."""
        held = self._holders.get(token)
        if not held:
            return None
        return max(held, key=lambda ch: CHANNEL_RANK.get(ch, 0))

    async def subscribe(self, tokens: Iterable[int], channel: str) -> None:
        async with self._lock:
            tokens = list(tokens)
            saved = self._save(tokens)
            push: list[int] = []
            for token in tokens:
                before = self.channel_for(token)
                self._holders.setdefault(token, Counter())[channel] += 1
                if self.channel_for(token) != before:
                    push.append(token)
            try:
                if push:
                    await self._source.subscribe(push, channel)
            except Exception:
                self._restore(saved)
                raise

    async def unsubscribe(self, tokens: Iterable[int], channel: str) -> None:
        async with self._lock:
            tokens = list(tokens)
            saved = self._save(tokens)
            released: list[int] = []
            downgraded: dict[str, list[int]] = {}
            for token in tokens:
                held = self._holders.get(token)
                if not held or held[channel] == 0:
                    continue
                before = self.channel_for(token)
                held[channel] -= 1
                if held[channel] == 0:
                    del held[channel]
                if not held:
                    del self._holders[token]
                    released.append(token)
                elif self.channel_for(token) != before:
                    downgraded.setdefault(self.channel_for(token), []).append(token)
            try:
                if released:
                    await self._source.unsubscribe(released, channel)
                for ch, moved in downgraded.items():
                    await self._source.subscribe(moved, ch)
            except Exception:
                self._restore(saved)
                raise

    def _save(self, tokens: list[int]) -> dict[int, Counter[str] | None]:
        return {t: Counter(self._holders[t]) if t in self._holders else None for t in tokens}

    def _restore(self, saved: dict[int, Counter[str] | None]) -> None:
        for token, held in saved.items():
            if held is None:
                self._holders.pop(token, None)
            else:
                self._holders[token] = held
