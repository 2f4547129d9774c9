# src/intake/domain/value_objects/option_registry.py
"""
Numbered option list shown to a citizen.

A registry is bound to the state that issued it (its scope) and carries a
version. A numeric reply is only resolved against the registry of the
current state, so a late "2" can never pick from a stale list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

from ..states import DialogueState


@dataclass(frozen=True, slots=True)
class OptionEntry:
    id: UUID
    name: str


@dataclass(frozen=True, slots=True)
class OptionRegistry:
    scope: DialogueState
    version: int
    entries: Tuple[OptionEntry, ...]

    def __post_init__(self) -> None:
        if not self.entries:
            raise ValueError("an option registry needs at least one entry")

    def __len__(self) -> int:
        return len(self.entries)

    def resolve(self, choice: Optional[int]) -> Optional[OptionEntry]:
        """1-based lookup; None for anything outside 1..len."""
        if choice is None or choice < 1 or choice > len(self.entries):
            return None
        return self.entries[choice - 1]

    def render(self) -> str:
        return "\n".join(f"  *{i}.* {entry.name}" for i, entry in enumerate(self.entries, start=1))

    # ---- persistence ----
    def to_json(self) -> Dict[str, Any]:
        return {
            "scope": self.scope.value,
            "version": self.version,
            "entries": [{"id": str(e.id), "name": e.name} for e in self.entries],
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "OptionRegistry":
        """Raises KeyError/ValueError on malformed payloads; callers treat that as corruption."""
        scope = DialogueState(data["scope"])
        entries = tuple(OptionEntry(id=UUID(str(e["id"])), name=str(e["name"])) for e in data["entries"])
        return cls(scope=scope, version=int(data["version"]), entries=entries)
