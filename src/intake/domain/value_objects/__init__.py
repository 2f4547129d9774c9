# src/intake/domain/value_objects/__init__.py
from .identity import normalize_identity
from .option_registry import OptionEntry, OptionRegistry
from .records import Category, ContactDraft, CreatedRequest, Office, RequestDraft
from .utterance import Command, Utterance

__all__ = [
    "normalize_identity",
    "OptionEntry",
    "OptionRegistry",
    "Category",
    "ContactDraft",
    "CreatedRequest",
    "Office",
    "RequestDraft",
    "Command",
    "Utterance",
]
