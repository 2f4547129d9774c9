# src/intake/domain/value_objects/identity.py
from __future__ import annotations

import re

_NON_DIGITS = re.compile(r"[^0-9]+")
MAX_IDENTITY_DIGITS = 15  # E.164


def normalize_identity(raw: str, country_code: str = "55") -> str:
    """
    Canonical conversation identity: digits only, country code prefixed.

    "+55 (69) 99999-0000" -> "5569999990000"
    "069999990000"        -> "5569999990000" (leading trunk zero dropped)

    Raises ValueError when nothing usable remains or the result is longer
    than an E.164 number.
    """
    digits = _NON_DIGITS.sub("", raw or "")
    if digits.startswith("0"):
        digits = digits[1:]
    if not digits:
        raise ValueError("identity has no digits")
    if not digits.startswith(country_code):
        digits = f"{country_code}{digits}"
    if len(digits) > MAX_IDENTITY_DIGITS:
        raise ValueError("identity longer than an E.164 number")
    return digits
