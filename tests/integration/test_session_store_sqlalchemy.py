from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
import sqlalchemy as sa

from src.intake.domain.entities import Session
from src.intake.domain.errors import SessionConflictError
from src.intake.domain.states import DialogueState
from src.intake.domain.value_objects import OptionEntry
from src.intake.infrastructure.models import IntakeSessionORM
from src.intake.infrastructure.repositories import SqlAlchemySessionRepository

PHONE = "5569999089202"
NOW = datetime(2025, 3, 10, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def repo(session_factory):
    return SqlAlchemySessionRepository(session_factory=session_factory)


async def test_get_missing_returns_none(repo):
    assert await repo.get(PHONE) is None


async def test_create_then_get_round_trips_everything(repo):
    session = Session.start(PHONE, NOW)
    created = await repo.create(session)
    assert created.version == 1

    created.municipality = "Porto Velho"
    created.issue_options(DialogueState.AWAIT_OFFICE, [OptionEntry(id=uuid4(), name="Gabinete A")])
    created.collected.full_name = "Maria Silva"
    await repo.save(created)

    loaded = await repo.get(PHONE)
    assert loaded.state == DialogueState.AWAIT_OFFICE
    assert loaded.municipality == "Porto Velho"
    assert loaded.collected.full_name == "Maria Silva"
    assert loaded.pending_options == created.pending_options
    assert loaded.options_version == 1
    assert loaded.last_activity_at == NOW
    assert loaded.last_activity_at.tzinfo is not None
    assert loaded.version == 2


async def test_second_create_returns_the_stored_session(repo):
    first = await repo.create(Session.start(PHONE, NOW))
    first.state = DialogueState.AWAIT_NAME
    await repo.save(first)

    second = await repo.create(Session.start(PHONE, NOW + timedelta(minutes=1)))
    assert second.state == DialogueState.AWAIT_NAME
    assert second.version == 2


async def test_save_is_compare_and_swap(repo):
    created = await repo.create(Session.start(PHONE, NOW))
    a = created.clone()
    b = created.clone()

    a.state = DialogueState.AWAIT_MUNICIPALITY
    await repo.save(a)

    b.state = DialogueState.DONE
    with pytest.raises(SessionConflictError):
        await repo.save(b)
    assert (await repo.get(PHONE)).state == DialogueState.AWAIT_MUNICIPALITY


async def test_save_of_missing_session_conflicts(repo):
    with pytest.raises(SessionConflictError):
        await repo.save(Session.start(PHONE, NOW))


async def test_reset_ignores_version_and_bumps_it(repo):
    created = await repo.create(Session.start(PHONE, NOW))
    created.state = DialogueState.CONFIRM
    await repo.save(created)

    stale = Session.start(PHONE, NOW + timedelta(hours=1))
    reset = await repo.reset(stale)
    assert reset.state == DialogueState.START
    assert reset.version == 3


async def test_reset_inserts_when_missing(repo):
    reset = await repo.reset(Session.start(PHONE, NOW))
    assert reset.version == 1
    assert (await repo.get(PHONE)).state == DialogueState.START


async def test_unknown_stored_state_loads_as_none(repo, session_factory):
    await repo.create(Session.start(PHONE, NOW))
    async with session_factory() as s:
        await s.execute(
            sa.update(IntakeSessionORM)
            .where(IntakeSessionORM.identity == PHONE)
            .values(state="legacy_state")
            .execution_options(synchronize_session=False)
        )
        await s.commit()
    assert (await repo.get(PHONE)).state is None


async def test_unreadable_registry_is_dropped(repo, session_factory):
    await repo.create(Session.start(PHONE, NOW))
    async with session_factory() as s:
        await s.execute(
            sa.update(IntakeSessionORM)
            .where(IntakeSessionORM.identity == PHONE)
            .values(state="await_office", collected={"pending_options": {"scope": "nope"}})
            .execution_options(synchronize_session=False)
        )
        await s.commit()
    loaded = await repo.get(PHONE)
    assert loaded.state == DialogueState.AWAIT_OFFICE
    assert loaded.pending_options is None
