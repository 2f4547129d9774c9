# src/intake/application/engine.py
"""
Dialogue engine: the transition table of the intake flow.

`step` never touches the session store or the messaging gateway. It takes a
session and a parsed utterance and returns the next session together with the
replies to send, so a failure anywhere leaves the caller's session untouched.
Domain repository calls (lookups, and the final contact/request writes on
confirmation) happen inside the step.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Awaitable, Callable, Dict, FrozenSet, List

from src.intake.application import messages
from src.intake.domain.entities import CollectedData, Session
from src.intake.domain.errors import CorruptedSessionError
from src.intake.domain.repositories import IntakeRepository
from src.intake.domain.states import DialogueState
from src.intake.domain.validators import (
    MAX_NAME_LENGTH,
    validate_confirmation,
    validate_description,
    validate_full_name,
    validate_municipality,
    validate_selection,
    validate_tax_id,
)
from src.intake.domain.value_objects import (
    Command,
    ContactDraft,
    OptionEntry,
    RequestDraft,
    Utterance,
)
from src.shared.logging import get_logger

logger = get_logger(__name__)

SUCCESS_TIMESTAMP_FORMAT = "%d/%m/%Y às %H:%M"


@dataclass(slots=True)
class StepOutcome:
    """
    Result of one dialogue step.

    `overwrite` asks the caller to replace the stored session unconditionally
    (resets) instead of doing a compare-and-swap save. `committed` marks a
    step whose domain writes already happened.
    """
    session: Session
    replies: List[str] = field(default_factory=list)
    overwrite: bool = False
    committed: bool = False


Handler = Callable[[Session, Utterance, datetime], Awaitable[StepOutcome]]


class DialogueEngine:
    def __init__(self, *, repository: IntakeRepository, tz: tzinfo):
        self._repository = repository
        self._tz = tz
        self._handlers: Dict[DialogueState, Handler] = {
            DialogueState.START: self._on_start,
            DialogueState.AWAIT_MUNICIPALITY: self._on_municipality,
            DialogueState.AWAIT_OFFICE: self._on_office,
            DialogueState.AWAIT_NAME: self._on_name,
            DialogueState.AWAIT_TAX_ID: self._on_tax_id,
            DialogueState.AWAIT_CATEGORY: self._on_category,
            DialogueState.AWAIT_DESCRIPTION: self._on_description,
            DialogueState.CONFIRM: self._on_confirm,
            DialogueState.DONE: self._on_done,
        }

    @property
    def handled_states(self) -> FrozenSet[DialogueState]:
        return frozenset(self._handlers)

    async def step(self, session: Session, utterance: Utterance, now: datetime) -> StepOutcome:
        work = session.clone()

        # reserved control words win over any state-specific rule
        if utterance.has(Command.RESET):
            logger.info("session_reset_requested", state=str(session.state))
            return self._restart(work, now)

        handler = self._handlers.get(work.state) if work.state is not None else None
        if handler is None:
            logger.warning("session_state_unknown", state=str(session.state))
            return self._restart(work, now)

        try:
            return await handler(work, utterance, now)
        except CorruptedSessionError as exc:
            logger.warning("session_corrupted", state=str(session.state), reason=str(exc))
            return StepOutcome(session=work.restarted(now), replies=[messages.ERROR], overwrite=True)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _restart(self, work: Session, now: datetime) -> StepOutcome:
        fresh = work.restarted(now)
        fresh.move_to(DialogueState.AWAIT_MUNICIPALITY)
        return StepOutcome(session=fresh, replies=[messages.WELCOME], overwrite=True)

    @staticmethod
    def _reject(work: Session, reply: str) -> StepOutcome:
        logger.debug("input_rejected", state=str(work.state))
        return StepOutcome(session=work, replies=[reply])

    def _format_timestamp(self, now: datetime) -> str:
        return now.astimezone(self._tz).strftime(SUCCESS_TIMESTAMP_FORMAT)

    # ------------------------------------------------------------------
    # per-state handlers
    # ------------------------------------------------------------------
    async def _on_start(self, work: Session, utterance: Utterance, now: datetime) -> StepOutcome:
        work.move_to(DialogueState.AWAIT_MUNICIPALITY)
        return StepOutcome(session=work, replies=[messages.WELCOME])

    async def _on_municipality(self, work: Session, utterance: Utterance, now: datetime) -> StepOutcome:
        query = validate_municipality(utterance)
        offices = await self._repository.find_offices_by_municipality(query) if query else []
        if not offices:
            municipalities = await self._repository.list_municipalities_with_offices()
            return self._reject(work, messages.municipality_not_found(municipalities))

        municipality = offices[0].municipality or query
        work.municipality = municipality
        registry = work.issue_options(
            DialogueState.AWAIT_OFFICE,
            [OptionEntry(id=o.id, name=o.name) for o in offices],
        )
        logger.debug("office_options_issued", count=len(registry), options_version=registry.version)
        return StepOutcome(
            session=work,
            replies=[messages.SELECT_OFFICE.format(municipality=municipality, options=registry.render())],
        )

    async def _on_office(self, work: Session, utterance: Utterance, now: datetime) -> StepOutcome:
        registry = work.active_registry()
        entry = validate_selection(utterance, registry)
        if entry is None:
            return self._reject(work, messages.invalid_option(len(registry)))

        work.selected_office_id = entry.id
        work.collected.office_name = entry.name
        work.move_to(DialogueState.AWAIT_NAME)
        return StepOutcome(session=work, replies=[messages.ASK_NAME.format(office=entry.name)])

    async def _on_name(self, work: Session, utterance: Utterance, now: datetime) -> StepOutcome:
        name = validate_full_name(utterance)
        if name is None:
            too_long = len(utterance.raw) > MAX_NAME_LENGTH
            return self._reject(work, messages.NAME_TOO_LONG if too_long else messages.NAME_TOO_SHORT)

        work.collected.full_name = name
        work.move_to(DialogueState.AWAIT_TAX_ID)
        return StepOutcome(session=work, replies=[messages.ASK_TAX_ID.format(name=name)])

    async def _on_tax_id(self, work: Session, utterance: Utterance, now: datetime) -> StepOutcome:
        decision = validate_tax_id(utterance)
        if decision is None:
            return self._reject(work, messages.TAX_ID_INVALID)

        office_id = work.require_office()
        categories = await self._repository.find_categories_for_office(office_id)
        work.collected.tax_id = decision.tax_id

        if not categories:
            work.collected.category_id = None
            work.collected.category_name = messages.DEFAULT_CATEGORY
            work.move_to(DialogueState.AWAIT_DESCRIPTION)
            return StepOutcome(session=work, replies=[messages.ASK_DESCRIPTION_NO_CATEGORY])

        registry = work.issue_options(
            DialogueState.AWAIT_CATEGORY,
            [OptionEntry(id=c.id, name=c.name) for c in categories],
        )
        return StepOutcome(session=work, replies=[messages.SELECT_CATEGORY.format(options=registry.render())])

    async def _on_category(self, work: Session, utterance: Utterance, now: datetime) -> StepOutcome:
        registry = work.active_registry()
        entry = validate_selection(utterance, registry)
        if entry is None:
            return self._reject(work, messages.invalid_option(len(registry)))

        work.collected.category_id = entry.id
        work.collected.category_name = entry.name
        work.move_to(DialogueState.AWAIT_DESCRIPTION)
        return StepOutcome(session=work, replies=[messages.ASK_DESCRIPTION.format(category=entry.name)])

    async def _on_description(self, work: Session, utterance: Utterance, now: datetime) -> StepOutcome:
        description = validate_description(utterance)
        if description is None:
            return self._reject(work, messages.DESCRIPTION_TOO_SHORT)

        work.collected.description = description
        work.move_to(DialogueState.CONFIRM)
        summary = messages.confirm_summary(
            name=work.collected.full_name,
            municipality=work.municipality,
            office=work.collected.office_name,
            category=work.collected.category_name,
            description=description,
        )
        return StepOutcome(session=work, replies=[summary])

    async def _on_confirm(self, work: Session, utterance: Utterance, now: datetime) -> StepOutcome:
        confirmed = validate_confirmation(utterance)
        if confirmed is None:
            return self._reject(work, messages.CONFIRM_REPROMPT)

        if not confirmed:
            logger.info("request_cancelled")
            return StepOutcome(session=work.restarted(now), replies=[messages.CANCELLED], overwrite=True)

        office_id = work.require_office()
        collected = work.collected
        description = collected.description or ""

        contact_id = await self._repository.upsert_contact(
            ContactDraft(
                phone=work.identity,
                name=collected.full_name or messages.DEFAULT_CONTACT_NAME,
                office_id=office_id,
                city=work.municipality,
                tax_id=collected.tax_id,
            )
        )
        created = await self._repository.create_request(
            RequestDraft(
                office_id=office_id,
                contact_id=contact_id,
                category_id=collected.category_id,
                title=messages.request_title(collected.category_name, description),
                description=description,
            )
        )
        logger.info("request_created", request_id=str(created.id), tracking_code=created.tracking_code)

        work.collected = CollectedData()
        work.move_to(DialogueState.DONE)
        reply = messages.REQUEST_CREATED.format(
            tracking_code=created.tracking_code,
            timestamp=self._format_timestamp(now),
        )
        return StepOutcome(session=work, replies=[reply], committed=True)

    async def _on_done(self, work: Session, utterance: Utterance, now: datetime) -> StepOutcome:
        return self._restart(work, now)
