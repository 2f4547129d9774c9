# src/intake/domain/repositories/session_repository.py
"""Session store contract."""

from abc import ABC, abstractmethod
from typing import Optional

from src.intake.domain.entities import Session


class SessionRepository(ABC):
    """One session record per identity."""

    @abstractmethod
    async def get(self, identity: str) -> Optional[Session]:
        """Load the session for an identity, or None."""
        pass

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """
        Insert a new session (read-or-create).

        When a concurrent writer inserted the same identity first, the stored
        session is returned instead and nothing is overwritten.
        """
        pass

    @abstractmethod
    async def save(self, session: Session) -> Session:
        """
        Compare-and-swap write: succeeds only while the stored version equals
        `session.version`; returns the session with its new version.

        Raises:
            SessionConflictError: the stored version moved or the row vanished.
        """
        pass

    @abstractmethod
    async def reset(self, session: Session) -> Session:
        """Unconditionally overwrite (or insert) the stored session."""
        pass
