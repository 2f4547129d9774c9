from src.intake.domain.repositories.intake_repository import IntakeRepository
from src.intake.domain.repositories.session_repository import SessionRepository

__all__ = ["IntakeRepository", "SessionRepository"]
