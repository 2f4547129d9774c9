# src/intake/application/lifecycle.py
from __future__ import annotations

from dataclasses import fields
from datetime import datetime, timedelta
from typing import Any, Tuple

from src.intake.domain.entities import Session
from src.intake.domain.repositories import SessionRepository
from src.shared.logging import get_logger

logger = get_logger(__name__)

_MUTABLE_FIELDS = frozenset(
    f.name for f in fields(Session) if f.name not in {"identity", "version", "created_at"}
)


class SessionLifecycle:
    """
    Read/expire/save/reset policy on top of the session store.

    Timeout is cooperative: a session is only found to be expired when its
    identity writes again. An expired session is replaced in memory by a
    fresh one carrying the stored version, so the replacement is persisted by
    the same compare-and-swap write as the step that follows it.
    """

    def __init__(self, repository: SessionRepository, *, timeout: timedelta):
        self._repository = repository
        self._timeout = timeout

    async def get_or_create(self, identity: str, now: datetime) -> Tuple[Session, bool]:
        """Returns (session, expired)."""
        session = await self._repository.get(identity)
        if session is None:
            created = await self._repository.create(Session.start(identity, now))
            logger.info("session_created")
            return created, False

        if session.is_expired(now, self._timeout):
            idle = int((now - session.last_activity_at).total_seconds())
            logger.info("session_expired", idle_seconds=idle, state=str(session.state))
            return session.restarted(now), True

        return session, False

    async def save(self, session: Session, now: datetime, **changes: Any) -> Session:
        """Merge `changes`, refresh activity and write with compare-and-swap."""
        unknown = set(changes) - _MUTABLE_FIELDS
        if unknown:
            raise TypeError(f"not a mutable session field: {', '.join(sorted(unknown))}")
        for name, value in changes.items():
            setattr(session, name, value)
        session.last_activity_at = now
        return await self._repository.save(session)

    async def overwrite(self, session: Session, now: datetime) -> Session:
        """Write `session` regardless of the stored version (resets, rollbacks)."""
        session.last_activity_at = now
        return await self._repository.reset(session)
