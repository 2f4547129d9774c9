# src/intake/domain/repositories/intake_repository.py
"""Domain data the dialogue reads from and finally writes to."""

from abc import ABC, abstractmethod
from typing import List
from uuid import UUID

from src.intake.domain.value_objects import Category, ContactDraft, CreatedRequest, Office, RequestDraft


class IntakeRepository(ABC):

    @abstractmethod
    async def find_offices_by_municipality(self, municipality: str) -> List[Office]:
        """Active offices whose municipality contains the text (case-insensitive), by name."""
        pass

    @abstractmethod
    async def list_municipalities_with_offices(self) -> List[str]:
        """Distinct, sorted municipality names that have at least one active office."""
        pass

    @abstractmethod
    async def find_categories_for_office(self, office_id: UUID) -> List[Category]:
        """Active categories of the office; general categories when it has none."""
        pass

    @abstractmethod
    async def upsert_contact(self, draft: ContactDraft) -> UUID:
        """Find the contact by phone (or mobile) and update it, or create it. Returns its id."""
        pass

    @abstractmethod
    async def create_request(self, draft: RequestDraft) -> CreatedRequest:
        """Persist the request with a unique tracking code."""
        pass
