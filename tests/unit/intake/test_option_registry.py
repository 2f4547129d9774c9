from datetime import datetime, timezone
from uuid import uuid4

import pytest

from src.intake.domain.entities import Session
from src.intake.domain.errors import CorruptedSessionError
from src.intake.domain.states import DialogueState
from src.intake.domain.value_objects import OptionEntry, OptionRegistry

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


def entries(*names):
    return [OptionEntry(id=uuid4(), name=n) for n in names]


def test_resolve_is_one_based_and_bounded():
    registry = OptionRegistry(scope=DialogueState.AWAIT_OFFICE, version=1, entries=tuple(entries("A", "B")))
    assert registry.resolve(1).name == "A"
    assert registry.resolve(2).name == "B"
    assert registry.resolve(0) is None
    assert registry.resolve(3) is None
    assert registry.resolve(None) is None


def test_render_numbered_menu():
    registry = OptionRegistry(scope=DialogueState.AWAIT_CATEGORY, version=1, entries=tuple(entries("Saúde", "Educação")))
    assert registry.render() == "  *1.* Saúde\n  *2.* Educação"


def test_empty_registry_is_refused():
    with pytest.raises(ValueError):
        OptionRegistry(scope=DialogueState.AWAIT_OFFICE, version=1, entries=())


def test_json_round_trip_keeps_scope_and_version():
    registry = OptionRegistry(scope=DialogueState.AWAIT_OFFICE, version=7, entries=tuple(entries("A")))
    assert OptionRegistry.from_json(registry.to_json()) == registry


def test_each_issue_bumps_the_version():
    session = Session.start("5569999089202", NOW)
    first = session.issue_options(DialogueState.AWAIT_OFFICE, entries("A", "B"))
    second = session.issue_options(DialogueState.AWAIT_OFFICE, entries("C"))
    assert second.version == first.version + 1
    assert session.active_registry() is second


def test_leaving_the_selection_state_drops_the_registry():
    session = Session.start("5569999089202", NOW)
    session.issue_options(DialogueState.AWAIT_OFFICE, entries("A"))
    session.move_to(DialogueState.AWAIT_NAME)
    assert session.pending_options is None


def test_registry_of_another_state_never_resolves():
    session = Session.start("5569999089202", NOW)
    session.issue_options(DialogueState.AWAIT_OFFICE, entries("A"))
    session.state = DialogueState.AWAIT_CATEGORY
    with pytest.raises(CorruptedSessionError):
        session.active_registry()
