# src/intake/domain/value_objects/utterance.py
"""
Parsed inbound text.

Every message is classified once, so that reset words, yes/no answers and
numeric choices are recognised the same way in every dialogue state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import FrozenSet, Optional


class Command(StrEnum):
    RESET = "reset"
    AFFIRM = "affirm"
    DENY = "deny"
    SKIP = "skip"


RESET_WORDS: FrozenSet[str] = frozenset({"reset", "reiniciar", "menu", "start", "inicio", "início"})
AFFIRM_WORDS: FrozenSet[str] = frozenset({"sim", "s", "confirmar", "1"})
DENY_WORDS: FrozenSet[str] = frozenset({"não", "nao", "n", "cancelar", "2"})
SKIP_WORDS: FrozenSet[str] = frozenset({"pular", "não", "nao", "0"})

_WORDS = {
    Command.RESET: RESET_WORDS,
    Command.AFFIRM: AFFIRM_WORDS,
    Command.DENY: DENY_WORDS,
    Command.SKIP: SKIP_WORDS,
}

# ASCII only: str.isdigit() would also accept "²" or Arabic-Indic digits.
# Bounded so a long digit-only description never reaches int().
_NUMBER = re.compile(r"[0-9]{1,9}")


@dataclass(frozen=True, slots=True)
class Utterance:
    raw: str
    normalized: str
    commands: FrozenSet[Command] = field(default_factory=frozenset)
    number: Optional[int] = None

    @classmethod
    def parse(cls, text: Optional[str]) -> "Utterance":
        raw = (text or "").strip()
        normalized = raw.casefold()
        commands = frozenset(cmd for cmd, words in _WORDS.items() if normalized in words)
        number = int(normalized) if _NUMBER.fullmatch(normalized) else None
        return cls(raw=raw, normalized=normalized, commands=commands, number=number)

    def has(self, command: Command) -> bool:
        return command in self.commands

    @property
    def is_empty(self) -> bool:
        return not self.raw
