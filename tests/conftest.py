import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

import pytest

from src.config import Settings
from src.intake.application.engine import DialogueEngine
from src.intake.application.lifecycle import SessionLifecycle
from src.intake.application.service import IntakeService
from src.intake.domain.entities import Session
from src.intake.domain.errors import SessionConflictError
from src.intake.domain.repositories import IntakeRepository, SessionRepository
from src.intake.domain.services.tracking_code import generate_tracking_code
from src.intake.domain.value_objects import Category, CreatedRequest, Office
from src.intake.infrastructure import models  # noqa: F401  (registers tables on Base.metadata)
from src.intake.infrastructure.idempotency import InMemoryDeliveryLedger
from src.intake.infrastructure.locks import InProcessKeyedLock
from src.shared.database import create_all, create_engine, create_session_factory

T0 = datetime(2025, 3, 10, 15, 30, tzinfo=timezone.utc)
PORTO_VELHO = ZoneInfo("America/Porto_Velho")
PHONE = "5569999089202"
SQLITE_URL = "sqlite+aiosqlite:///:memory:"


# -------------------------------------------------------------------
# Port fakes
# -------------------------------------------------------------------
class InMemorySessionRepository(SessionRepository):
    """Keeps clones so callers can never mutate stored state by accident."""

    def __init__(self):
        self.rows: Dict[str, Session] = {}

    async def get(self, identity: str) -> Optional[Session]:
        await asyncio.sleep(0)  # let concurrent handlers interleave
        row = self.rows.get(identity)
        return row.clone() if row is not None else None

    async def create(self, session: Session) -> Session:
        if session.identity in self.rows:
            return self.rows[session.identity].clone()
        return self._store(session, 1)

    async def save(self, session: Session) -> Session:
        await asyncio.sleep(0)
        current = self.rows.get(session.identity)
        if current is None or current.version != session.version:
            raise SessionConflictError(session.identity)
        return self._store(session, current.version + 1)

    async def reset(self, session: Session) -> Session:
        current = self.rows.get(session.identity)
        return self._store(session, (current.version if current else 0) + 1)

    def _store(self, session: Session, version: int) -> Session:
        stored = session.clone()
        stored.version = version
        self.rows[session.identity] = stored
        return stored.clone()


class FakeIntakeRepository(IntakeRepository):
    def __init__(self, offices: Optional[List[Office]] = None, categories: Optional[Dict[UUID, List[Category]]] = None):
        self.offices = offices or []
        self.categories = categories or {}
        self.contacts = []
        self.requests = []
        self.fail_lookups = False

    async def find_offices_by_municipality(self, municipality: str) -> List[Office]:
        if self.fail_lookups:
            raise RuntimeError("database unavailable")
        needle = municipality.casefold()
        return sorted((o for o in self.offices if needle in o.municipality.casefold()), key=lambda o: o.name)

    async def list_municipalities_with_offices(self) -> List[str]:
        return sorted({o.municipality for o in self.offices})

    async def find_categories_for_office(self, office_id: UUID) -> List[Category]:
        if self.fail_lookups:
            raise RuntimeError("database unavailable")
        return list(self.categories.get(office_id, []))

    async def upsert_contact(self, draft) -> UUID:
        self.contacts.append(draft)
        return uuid4()

    async def create_request(self, draft) -> CreatedRequest:
        self.requests.append(draft)
        return CreatedRequest(id=uuid4(), tracking_code=generate_tracking_code("PROV", T0))


class RecordingGateway:
    def __init__(self, ok: bool = True):
        self.ok = ok
        self.sent = []

    async def send(self, identity: str, text: str) -> bool:
        self.sent.append((identity, text))
        return self.ok

    def texts(self, identity: str = PHONE) -> List[str]:
        return [t for i, t in self.sent if i == identity]


class Clock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# -------------------------------------------------------------------
# Fixtures
# -------------------------------------------------------------------
@pytest.fixture
def office():
    return Office(id=uuid4(), name="Gabinete Dep. Ana Souza", municipality="Porto Velho")


@pytest.fixture
def category():
    return Category(id=uuid4(), name="Infraestrutura")


@pytest.fixture
def intake_repo(office, category):
    return FakeIntakeRepository(offices=[office], categories={office.id: [category]})


@pytest.fixture
def session_repo():
    return InMemorySessionRepository()


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def engine(intake_repo):
    return DialogueEngine(repository=intake_repo, tz=PORTO_VELHO)


@pytest.fixture
def lifecycle(session_repo):
    return SessionLifecycle(session_repo, timeout=timedelta(minutes=30))


@pytest.fixture
def make_service(engine, lifecycle, gateway, clock):
    def _make(**overrides) -> IntakeService:
        kwargs = dict(
            engine=engine,
            lifecycle=lifecycle,
            gateway=gateway,
            lock=InProcessKeyedLock(wait_seconds=1.0),
            ledger=InMemoryDeliveryLedger(),
            clock=clock,
        )
        kwargs.update(overrides)
        return IntakeService(**kwargs)

    return _make


@pytest.fixture
def service(make_service):
    return make_service()


# -------------------------------------------------------------------
# Database (aiosqlite, in-memory)
# -------------------------------------------------------------------
@pytest.fixture
def sqlite_settings():
    return Settings(DATABASE_URL=SQLITE_URL, ENVIRONMENT="test", CREATE_TABLES=True, REDIS_URL=None)


@pytest.fixture
async def db_engine(sqlite_settings):
    engine = create_engine(sqlite_settings)
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)
