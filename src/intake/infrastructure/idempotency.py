"""Inbound delivery dedup keyed by provider message id."""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Callable

from redis.asyncio import Redis


class RedisDeliveryLedger:
    def __init__(self, redis: Redis, *, ttl_seconds: int = 86400, prefix: str = "intake:delivery:"):
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    async def mark(self, message_id: str) -> bool:
        result = await self.redis.set(f"{self.prefix}{message_id}", "1", nx=True, ex=self.ttl_seconds)
        return bool(result)


class InMemoryDeliveryLedger:
    """Single-process fallback; oldest ids are evicted past `max_entries`."""

    def __init__(
        self,
        *,
        ttl_seconds: int = 86400,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._seen: "OrderedDict[str, float]" = OrderedDict()

    async def mark(self, message_id: str) -> bool:
        now = self._clock()
        self._evict(now)
        if message_id in self._seen:
            return False
        self._seen[message_id] = now + self.ttl_seconds
        return True

    def _evict(self, now: float) -> None:
        # insertion order == expiry order (constant ttl)
        while self._seen:
            _, expires_at = next(iter(self._seen.items()))
            if expires_at > now and len(self._seen) < self.max_entries:
                break
            self._seen.popitem(last=False)
