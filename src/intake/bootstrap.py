# src/intake/bootstrap.py
"""Composition root of the intake context: ports -> adapters per settings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.config import Settings
from src.intake.application.engine import DialogueEngine
from src.intake.application.lifecycle import SessionLifecycle
from src.intake.application.service import IntakeService
from src.intake.infrastructure.evolution_gateway import EvolutionGateway
from src.intake.infrastructure.idempotency import InMemoryDeliveryLedger, RedisDeliveryLedger
from src.intake.infrastructure.locks import InProcessKeyedLock, RedisKeyedLock
from src.intake.infrastructure.repositories import SqlAlchemyIntakeRepository, SqlAlchemySessionRepository
from src.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class IntakeContainer:
    service: IntakeService
    gateway: EvolutionGateway

    async def aclose(self) -> None:
        await self.gateway.aclose()


def build_intake(
    settings: Settings,
    *,
    session_factory: async_sessionmaker[AsyncSession],
    redis: Optional[Redis] = None,
    gateway: Optional[EvolutionGateway] = None,
) -> IntakeContainer:
    tz = ZoneInfo(settings.TIMEZONE)

    gateway = gateway or EvolutionGateway(
        base_url=settings.EVOLUTION_API_URL,
        api_key=settings.EVOLUTION_API_KEY,
        instance_name=settings.EVOLUTION_INSTANCE_NAME,
        send_delay_ms=settings.EVOLUTION_SEND_DELAY_MS,
        timeout=settings.EVOLUTION_TIMEOUT_SECONDS,
    )
    intake_repo = SqlAlchemyIntakeRepository(
        session_factory=session_factory,
        tracking_prefix=settings.TRACKING_CODE_PREFIX,
        max_code_attempts=settings.TRACKING_CODE_MAX_ATTEMPTS,
        tz=tz,
    )
    lifecycle = SessionLifecycle(
        SqlAlchemySessionRepository(session_factory=session_factory),
        timeout=timedelta(minutes=settings.SESSION_TIMEOUT_MINUTES),
    )

    if redis is not None:
        lock = RedisKeyedLock(
            redis,
            ttl_seconds=settings.SESSION_LOCK_TTL_SECONDS,
            wait_seconds=settings.SESSION_LOCK_WAIT_SECONDS,
        )
        ledger = RedisDeliveryLedger(redis, ttl_seconds=settings.IDEMPOTENCY_TTL_SECONDS)
    else:
        lock = InProcessKeyedLock(wait_seconds=settings.SESSION_LOCK_WAIT_SECONDS)
        ledger = InMemoryDeliveryLedger(ttl_seconds=settings.IDEMPOTENCY_TTL_SECONDS)
    logger.info("intake_coordination", backend="redis" if redis is not None else "in_process")

    service = IntakeService(
        engine=DialogueEngine(repository=intake_repo, tz=tz),
        lifecycle=lifecycle,
        gateway=gateway,
        lock=lock,
        ledger=ledger,
        country_code=settings.DEFAULT_COUNTRY_CODE,
        notify_expiry=settings.NOTIFY_SESSION_EXPIRY,
    )
    return IntakeContainer(service=service, gateway=gateway)
