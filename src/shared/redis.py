# src/shared/redis.py
from __future__ import annotations

from typing import Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import RedisError

from src.config import Settings
from src.shared.logging import get_logger

logger = get_logger(__name__)


async def create_redis(settings: Settings) -> Optional[Redis]:
    """
    Create and verify an async Redis client, or None when REDIS_URL is unset.

    Redis is ONLY used for coordination (locks, delivery dedup), never as the
    source of truth for sessions.
    """
    if not settings.REDIS_URL:
        logger.info("redis_disabled")
        return None
    # NOTE: from_url is sync; do NOT await it
    client = redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,            # return str instead of bytes
        health_check_interval=30,         # ping occasionally
        socket_connect_timeout=5.0,
        socket_timeout=5.0,
        retry_on_timeout=True,
    )
    try:
        await client.ping()
    except RedisError:
        await client.aclose()
        raise
    logger.info("redis_connected")
    return client
