#*** Begin: src/intake/domain/entities.py ***
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Optional
from uuid import UUID

from .errors import CorruptedSessionError
from .states import DialogueState
from .value_objects import OptionEntry, OptionRegistry


@dataclass(slots=True)
class CollectedData:
    """Fields captured so far; every step only ever adds to it."""
    office_name: Optional[str] = None
    full_name: Optional[str] = None
    tax_id: Optional[str] = None
    category_id: Optional[UUID] = None
    category_name: Optional[str] = None
    description: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "office_name": self.office_name,
            "full_name": self.full_name,
            "tax_id": self.tax_id,
            "category_id": str(self.category_id) if self.category_id else None,
            "category_name": self.category_name,
            "description": self.description,
        }

    @classmethod
    def from_json(cls, data: Optional[Dict[str, Any]]) -> "CollectedData":
        data = data or {}
        category_id = data.get("category_id")
        return cls(
            office_name=data.get("office_name"),
            full_name=data.get("full_name"),
            tax_id=data.get("tax_id"),
            category_id=UUID(str(category_id)) if category_id else None,
            category_name=data.get("category_name"),
            description=data.get("description"),
        )


@dataclass(slots=True)
class Session:
    """
    Dialogue state for one identity (normalized phone number).

    `state` is None when the stored value is unknown; the engine treats that
    as a corrupted session. `version` is owned by the store (0 = never stored).
    """
    identity: str
    state: Optional[DialogueState]
    last_activity_at: datetime

    municipality: Optional[str] = None
    selected_office_id: Optional[UUID] = None
    collected: CollectedData = field(default_factory=CollectedData)
    pending_options: Optional[OptionRegistry] = None
    options_version: int = 0

    version: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def start(cls, identity: str, now: datetime) -> "Session":
        return cls(identity=identity, state=DialogueState.START, last_activity_at=now, created_at=now)

    def is_expired(self, now: datetime, timeout: timedelta) -> bool:
        return now - self.last_activity_at > timeout

    def clone(self) -> "Session":
        # OptionRegistry is frozen; only the mutable bag needs copying
        return replace(self, collected=replace(self.collected))

    def restarted(self, now: datetime) -> "Session":
        """Fresh START session for the same identity, keeping store bookkeeping."""
        fresh = Session.start(self.identity, now)
        fresh.version = self.version
        fresh.options_version = self.options_version
        fresh.created_at = self.created_at or now
        return fresh

    # --- transitions ---
    def move_to(self, state: DialogueState) -> None:
        if self.pending_options is not None and self.pending_options.scope != state:
            self.pending_options = None
        self.state = state

    def issue_options(self, scope: DialogueState, entries: Iterable[OptionEntry]) -> OptionRegistry:
        """Enter a selection state with a brand-new numbered registry."""
        self.options_version += 1
        registry = OptionRegistry(scope=scope, version=self.options_version, entries=tuple(entries))
        self.state = scope
        self.pending_options = registry
        return registry

    def active_registry(self) -> OptionRegistry:
        registry = self.pending_options
        if registry is None or registry.scope != self.state:
            raise CorruptedSessionError(f"no option registry for state {self.state}")
        return registry

    def require_office(self) -> UUID:
        if self.selected_office_id is None:
            raise CorruptedSessionError("no office selected")
        return self.selected_office_id
#*** End: src/intake/domain/entities.py ***
