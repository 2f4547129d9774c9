"""
Per-identity locks.

InProcessKeyedLock serialises within one event loop (single worker).
RedisKeyedLock is a lease (SET NX EX + token) for several workers sharing
one session store; release only deletes the key while it still holds our token.
"""

from __future__ import annotations

import asyncio
import secrets
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict

from redis.asyncio import Redis

from src.intake.domain.errors import LockTimeoutError
from src.shared.logging import get_logger

logger = get_logger(__name__)

RELEASE_SCRIPT = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


@dataclass(slots=True)
class _Entry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class InProcessKeyedLock:
    def __init__(self, *, wait_seconds: float = 10.0):
        self.wait_seconds = wait_seconds
        self._entries: Dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        entry = self._entries.setdefault(key, _Entry())
        entry.users += 1
        try:
            try:
                await asyncio.wait_for(entry.lock.acquire(), timeout=self.wait_seconds)
            except asyncio.TimeoutError as e:
                raise LockTimeoutError(f"lock for {key} not acquired in {self.wait_seconds}s") from e
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            entry.users -= 1
            if entry.users == 0:
                self._entries.pop(key, None)


class RedisKeyedLock:
    def __init__(
        self,
        redis: Redis,
        *,
        ttl_seconds: int = 30,
        wait_seconds: float = 10.0,
        poll_interval: float = 0.05,
        prefix: str = "intake:lock:",
    ):
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.wait_seconds = wait_seconds
        self.poll_interval = poll_interval
        self.prefix = prefix

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        name = f"{self.prefix}{key}"
        token = secrets.token_hex(16)
        await self._acquire(name, token)
        try:
            yield
        finally:
            released = await self.redis.eval(RELEASE_SCRIPT, 1, name, token)
            if not released:
                # lease ran out while we were working; someone else may own it now
                logger.warning("redis_lock_expired_before_release", ttl_seconds=self.ttl_seconds)

    async def _acquire(self, name: str, token: str) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.wait_seconds
        while True:
            if await self.redis.set(name, token, nx=True, ex=self.ttl_seconds):
                return
            if loop.time() >= deadline:
                raise LockTimeoutError(f"redis lock {name} busy for {self.wait_seconds}s")
            await asyncio.sleep(self.poll_interval)
