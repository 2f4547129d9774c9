# src/intake/domain/value_objects/records.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Office:
    id: UUID
    name: str
    municipality: str


@dataclass(frozen=True, slots=True)
class Category:
    id: UUID
    name: str


@dataclass(frozen=True, slots=True)
class ContactDraft:
    """Citizen data to upsert into the contact book, keyed by phone."""
    phone: str
    name: str
    office_id: UUID
    city: Optional[str] = None
    tax_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class RequestDraft:
    office_id: UUID
    contact_id: UUID
    title: str
    description: str
    category_id: Optional[UUID] = None
    channel: str = "whatsapp"


@dataclass(frozen=True, slots=True)
class CreatedRequest:
    id: UUID
    tracking_code: str
