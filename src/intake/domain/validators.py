# src/intake/domain/validators.py
"""
Per-state input rules.

Pure functions: each returns the accepted value, or None when the input must
be re-prompted. None of them raise for bad user input.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .value_objects import Command, OptionEntry, OptionRegistry, Utterance

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 200  # contacts.name
MIN_DESCRIPTION_LENGTH = 10
TAX_ID_DIGITS = 11

_NON_ASCII_DIGITS = re.compile(r"[^0-9]+")


@dataclass(frozen=True, slots=True)
class TaxIdDecision:
    """Accepted tax-id answer; `tax_id` is None when the citizen skipped it."""
    tax_id: Optional[str]

    @property
    def skipped(self) -> bool:
        return self.tax_id is None


def validate_municipality(utterance: Utterance) -> Optional[str]:
    return utterance.raw or None


def validate_selection(utterance: Utterance, registry: OptionRegistry) -> Optional[OptionEntry]:
    return registry.resolve(utterance.number)


def validate_full_name(utterance: Utterance) -> Optional[str]:
    name = utterance.raw
    return name if MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH else None


def validate_tax_id(utterance: Utterance) -> Optional[TaxIdDecision]:
    if utterance.has(Command.SKIP):
        return TaxIdDecision(tax_id=None)
    digits = _NON_ASCII_DIGITS.sub("", utterance.raw)
    if len(digits) != TAX_ID_DIGITS:
        return None
    return TaxIdDecision(tax_id=digits)


def validate_description(utterance: Utterance) -> Optional[str]:
    text = utterance.raw
    return text if len(text) >= MIN_DESCRIPTION_LENGTH else None


def validate_confirmation(utterance: Utterance) -> Optional[bool]:
    """True to confirm, False to cancel, None when neither was recognised."""
    if utterance.has(Command.AFFIRM):
        return True
    if utterance.has(Command.DENY):
        return False
    return None
