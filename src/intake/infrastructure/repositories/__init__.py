from .intake_repository_impl import SqlAlchemyIntakeRepository
from .session_repository_impl import SqlAlchemySessionRepository

__all__ = ["SqlAlchemyIntakeRepository", "SqlAlchemySessionRepository"]
