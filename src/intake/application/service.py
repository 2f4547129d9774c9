# src/intake/application/service.py
"""
IntakeService: the single entry point for one inbound text message.

handle() is the top-level error boundary of the intake flow: it never raises.
Every event ends in a transition plus its replies, a generic error reply, or
a logged drop (invalid identity, duplicate delivery).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from src.intake.application import messages
from src.intake.application.engine import DialogueEngine
from src.intake.application.lifecycle import SessionLifecycle
from src.intake.domain.entities import Session
from src.intake.domain.protocols import DeliveryLedger, KeyedLock, MessagingGateway
from src.intake.domain.value_objects import Utterance, normalize_identity
from src.shared.logging import bind_context, clear_context, get_logger, set_correlation_id

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IntakeService:
    def __init__(
        self,
        *,
        engine: DialogueEngine,
        lifecycle: SessionLifecycle,
        gateway: MessagingGateway,
        lock: KeyedLock,
        ledger: Optional[DeliveryLedger] = None,
        country_code: str = "55",
        notify_expiry: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._engine = engine
        self._lifecycle = lifecycle
        self._gateway = gateway
        self._lock = lock
        self._ledger = ledger
        self._country_code = country_code
        self._notify_expiry = notify_expiry
        self._clock = clock

    async def handle(self, identity: str, text: str, message_id: Optional[str] = None) -> None:
        try:
            key = normalize_identity(identity, self._country_code)
        except ValueError:
            logger.warning("inbound_identity_invalid", raw_identity=identity)
            return

        set_correlation_id(message_id)
        bind_context(identity=key, message_id=message_id)
        try:
            if message_id and not await self._first_delivery(message_id):
                logger.info("inbound_duplicate_dropped")
                return
            try:
                async with self._lock.hold(key):
                    await self._process(key, text)
            except Exception:
                logger.exception("inbound_processing_failed")
                await self._send(key, messages.ERROR)
        finally:
            clear_context()

    async def _process(self, key: str, text: str) -> None:
        now = self._clock()
        session, expired = await self._lifecycle.get_or_create(key, now)
        utterance = Utterance.parse(text)

        outcome = await self._engine.step(session, utterance, now)
        if outcome.overwrite:
            saved = await self._lifecycle.overwrite(outcome.session, now)
        else:
            saved = await self._lifecycle.save(outcome.session, now)
        logger.info(
            "session_advanced",
            from_state=str(session.state),
            to_state=str(saved.state),
            version=saved.version,
        )

        replies = list(outcome.replies)
        if expired and self._notify_expiry:
            replies.insert(0, messages.SESSION_EXPIRED)
        # replies go out while the identity is still locked, so they keep their order
        for reply in replies:
            if not await self._send(key, reply):
                await self._undeliverable(key, session, outcome.committed, now)
                return

    async def _undeliverable(self, key: str, before: Session, committed: bool, now: datetime) -> None:
        """
        Put the pre-step session back so the next message retries the same
        step. A step that already registered a request is never rolled back.
        """
        if committed:
            logger.error("request_confirmation_undelivered")
            return
        restored = await self._lifecycle.overwrite(before, now)
        logger.warning("session_rolled_back", state=str(restored.state), version=restored.version)
        await self._send(key, messages.ERROR)

    async def _first_delivery(self, message_id: str) -> bool:
        if self._ledger is None:
            return True
        try:
            return await self._ledger.mark(message_id)
        except Exception:
            # the per-identity lock and the version check still guard the session
            logger.warning("delivery_ledger_unavailable", exc_info=True)
            return True

    async def _send(self, key: str, text: str) -> bool:
        try:
            ok = await self._gateway.send(key, text)
        except Exception:
            logger.exception("outbound_send_failed")
            return False
        if not ok:
            logger.warning("outbound_send_rejected")
        return ok
