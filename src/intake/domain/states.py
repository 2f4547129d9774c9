# src/intake/domain/states.py
"""Dialogue states of the intake flow."""

from __future__ import annotations

from enum import StrEnum
from typing import Optional


class DialogueState(StrEnum):
    """Position of a session in the intake dialogue (stored as its value)."""

    START = "start"
    AWAIT_MUNICIPALITY = "await_municipality"
    AWAIT_OFFICE = "await_office"
    AWAIT_NAME = "await_name"
    AWAIT_TAX_ID = "await_tax_id"
    AWAIT_CATEGORY = "await_category"
    AWAIT_DESCRIPTION = "await_description"
    CONFIRM = "confirm"
    DONE = "done"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["DialogueState"]:
        """Map a stored value to a state; unknown or empty values yield None."""
        if not raw:
            return None
        try:
            return cls(raw)
        except ValueError:
            return None
