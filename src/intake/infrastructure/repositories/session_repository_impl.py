# Begin: src/intake/infrastructure/repositories/session_repository_impl.py ***
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from ...domain.entities import CollectedData, Session
from ...domain.errors import SessionConflictError
from ...domain.repositories.session_repository import SessionRepository
from ...domain.states import DialogueState
from ...domain.value_objects import OptionRegistry
from ..models import IntakeSessionORM
from src.shared.logging import get_logger

logger = get_logger(__name__)

_RESET_ATTEMPTS = 3


def _aware(dt: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone=True columns
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class SqlAlchemySessionRepository(SessionRepository):
    """
    SessionRepository on an async SQLAlchemy engine.
    - `save` is a compare-and-swap on the `version` column (mapper version_id_col).
    - `create` is idempotent under concurrent first messages (PK conflict -> read back).
    - `reset` ignores the stored version.
    """

    def __init__(self, *, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._sf = session_factory

    # -------------------- mapping --------------------
    @staticmethod
    def _to_domain(row: IntakeSessionORM) -> Session:
        payload: Dict[str, Any] = dict(row.collected or {})
        registry: Optional[OptionRegistry] = None
        raw_registry = payload.get("pending_options")
        if raw_registry:
            try:
                registry = OptionRegistry.from_json(raw_registry)
            except (KeyError, TypeError, ValueError):
                # a selection state without a registry is reset by the engine
                logger.warning("session_registry_unreadable", state=row.state)

        return Session(
            identity=row.identity,
            state=DialogueState.parse(row.state),
            last_activity_at=_aware(row.last_activity_at),
            municipality=row.municipality,
            selected_office_id=row.selected_office_id,
            collected=CollectedData.from_json(payload.get("data")),
            pending_options=registry,
            options_version=int(payload.get("options_version") or 0),
            version=row.version,
            created_at=_aware(row.created_at),
        )

    @staticmethod
    def _columns(session: Session) -> Dict[str, Any]:
        state = session.state or DialogueState.START
        return {
            "state": state.value,
            "municipality": session.municipality,
            "selected_office_id": session.selected_office_id,
            "collected": {
                "data": session.collected.to_json(),
                "pending_options": session.pending_options.to_json() if session.pending_options else None,
                "options_version": session.options_version,
            },
            "last_activity_at": session.last_activity_at,
        }

    @staticmethod
    def _new_row(session: Session, values: Dict[str, Any]) -> IntakeSessionORM:
        return IntakeSessionORM(
            identity=session.identity,
            created_at=session.created_at or session.last_activity_at,
            **values,
        )

    # -------------------- operations --------------------
    async def get(self, identity: str) -> Optional[Session]:
        async with self._sf() as s:
            row = await s.get(IntakeSessionORM, identity)
            return self._to_domain(row) if row is not None else None

    async def create(self, session: Session) -> Session:
        row = self._new_row(session, self._columns(session))
        async with self._sf() as s:
            s.add(row)
            try:
                await s.commit()
            except IntegrityError:
                await s.rollback()
                logger.info("session_create_raced")
                existing = await s.get(IntakeSessionORM, session.identity)
                if existing is None:
                    raise
                return self._to_domain(existing)
            return self._to_domain(row)

    async def save(self, session: Session) -> Session:
        async with self._sf() as s:
            row = await s.get(IntakeSessionORM, session.identity)
            if row is None or row.version != session.version:
                raise SessionConflictError(
                    f"session {session.identity} moved: expected version {session.version}, "
                    f"found {row.version if row is not None else 'none'}"
                )
            for key, value in self._columns(session).items():
                setattr(row, key, value)
            try:
                await s.commit()
            except StaleDataError as exc:
                await s.rollback()
                raise SessionConflictError(f"session {session.identity} changed concurrently") from exc
            return self._to_domain(row)

    async def reset(self, session: Session) -> Session:
        values = self._columns(session)
        for _ in range(_RESET_ATTEMPTS):
            async with self._sf() as s:
                # Core UPDATE: no version predicate, just bump it
                result = await s.execute(
                    sa.update(IntakeSessionORM)
                    .where(IntakeSessionORM.identity == session.identity)
                    .values(**values, version=IntakeSessionORM.version + 1)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount:
                    await s.commit()
                    row = await s.get(IntakeSessionORM, session.identity, populate_existing=True)
                    return self._to_domain(row)

                s.add(self._new_row(session, values))
                try:
                    await s.commit()
                except IntegrityError:
                    # inserted by someone else between our UPDATE and INSERT; update it instead
                    await s.rollback()
                    continue
                row = await s.get(IntakeSessionORM, session.identity, populate_existing=True)
                return self._to_domain(row)
        raise SessionConflictError(f"session {session.identity} could not be reset")
# End: src/intake/infrastructure/repositories/session_repository_impl.py ***
