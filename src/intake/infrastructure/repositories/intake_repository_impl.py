# Begin: src/intake/infrastructure/repositories/intake_repository_impl.py ***
from __future__ import annotations

import random
from datetime import datetime, timezone, tzinfo
from typing import List, Optional
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ...domain.errors import RepositoryError
from ...domain.repositories.intake_repository import IntakeRepository
from ...domain.services.tracking_code import generate_tracking_code
from ...domain.value_objects import Category, ContactDraft, CreatedRequest, Office, RequestDraft
from ..models import CategoryORM, ContactORM, OfficeORM, RequestHistoryORM, ServiceRequestORM
from src.shared.logging import get_logger

logger = get_logger(__name__)

INITIAL_STATUS = "recebida"
DEFAULT_PRIORITY = "media"
HISTORY_NOTE = "Providência registrada via WhatsApp"


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlAlchemyIntakeRepository(IntakeRepository):
    """
    Offices, categories, contacts and requests on an async SQLAlchemy engine.

    Tracking codes are generated here and retried on a unique violation, so
    the code handed back to the dialogue is always the stored one.
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        tracking_prefix: str = "PROV",
        max_code_attempts: int = 5,
        tz: tzinfo = timezone.utc,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._sf = session_factory
        self._prefix = tracking_prefix
        self._max_attempts = max(1, max_code_attempts)
        self._tz = tz
        self._rng = rng

    # -------------------- lookups --------------------
    async def find_offices_by_municipality(self, municipality: str) -> List[Office]:
        pattern = f"%{_escape_like(municipality.strip())}%"
        stmt = (
            sa.select(OfficeORM)
            .where(OfficeORM.municipality.ilike(pattern, escape="\\"))
            .where(OfficeORM.is_active.is_(True))
            .order_by(OfficeORM.name)
        )
        async with self._sf() as s:
            rows = (await s.execute(stmt)).scalars().all()
        return [Office(id=r.id, name=r.name, municipality=r.municipality or "") for r in rows]

    async def list_municipalities_with_offices(self) -> List[str]:
        stmt = (
            sa.select(OfficeORM.municipality)
            .where(OfficeORM.is_active.is_(True))
            .where(OfficeORM.municipality.is_not(None))
            .where(OfficeORM.municipality != "")
            .distinct()
            .order_by(OfficeORM.municipality)
        )
        async with self._sf() as s:
            return list((await s.execute(stmt)).scalars().all())

    async def find_categories_for_office(self, office_id: UUID) -> List[Category]:
        async with self._sf() as s:
            rows = await self._categories(s, CategoryORM.office_id == office_id)
            if not rows:
                rows = await self._categories(s, CategoryORM.office_id.is_(None))
        return [Category(id=r.id, name=r.name) for r in rows]

    @staticmethod
    async def _categories(s: AsyncSession, scope) -> List[CategoryORM]:
        stmt = (
            sa.select(CategoryORM)
            .where(scope)
            .where(CategoryORM.is_active.is_(True))
            .order_by(CategoryORM.name)
        )
        return list((await s.execute(stmt)).scalars().all())

    # -------------------- writes --------------------
    async def upsert_contact(self, draft: ContactDraft) -> UUID:
        stmt = (
            sa.select(ContactORM)
            .where(sa.or_(ContactORM.phone == draft.phone, ContactORM.mobile == draft.phone))
            .order_by(ContactORM.created_at)
            .limit(1)
        )
        async with self._sf() as s:
            existing = (await s.execute(stmt)).scalars().first()
            if existing is not None:
                changed = False
                for attr in ("name", "tax_id", "city"):
                    value = getattr(draft, attr)
                    if value and value != getattr(existing, attr):
                        setattr(existing, attr, value)
                        changed = True
                if changed:
                    existing.updated_at = datetime.now(timezone.utc)
                    await s.commit()
                    logger.info("contact_updated", contact_id=str(existing.id))
                return existing.id

            contact = ContactORM(
                name=draft.name,
                mobile=draft.phone,
                tax_id=draft.tax_id,
                city=draft.city,
                office_id=draft.office_id,
            )
            s.add(contact)
            await s.commit()
            logger.info("contact_created", contact_id=str(contact.id))
            return contact.id

    async def create_request(self, draft: RequestDraft) -> CreatedRequest:
        for attempt in range(1, self._max_attempts + 1):
            code = generate_tracking_code(self._prefix, datetime.now(self._tz), self._rng)
            request = ServiceRequestORM(
                tracking_code=code,
                office_id=draft.office_id,
                contact_id=draft.contact_id,
                category_id=draft.category_id,
                title=draft.title,
                description=draft.description,
                status=INITIAL_STATUS,
                priority=DEFAULT_PRIORITY,
                channel=draft.channel,
            )
            async with self._sf() as s:
                s.add(request)
                try:
                    await s.flush()
                except IntegrityError:
                    await s.rollback()
                    logger.warning("tracking_code_collision", attempt=attempt)
                    continue
                s.add(
                    RequestHistoryORM(
                        request_id=request.id,
                        action="criacao",
                        previous_status=None,
                        new_status=INITIAL_STATUS,
                        note=HISTORY_NOTE,
                    )
                )
                await s.commit()
            return CreatedRequest(id=request.id, tracking_code=code)
        raise RepositoryError(f"no free tracking code after {self._max_attempts} attempts")
# End: src/intake/infrastructure/repositories/intake_repository_impl.py ***
