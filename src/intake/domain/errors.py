# Begin: src/intake/domain/errors.py ***
from __future__ import annotations


class IntakeError(Exception):
    """Base class for infrastructure-level failures raised while handling an inbound event."""
    pass


class SessionConflictError(IntakeError):
    """Raised when a session write loses a compare-and-swap race (stored version moved)."""
    pass


class LockTimeoutError(IntakeError):
    """Raised when the per-identity lock could not be acquired in time."""
    pass


class GatewayError(IntakeError):
    """Raised when the messaging provider cannot be reached or answers with garbage."""
    pass


class RepositoryError(IntakeError):
    """Raised by the domain repository when a write could not be completed."""
    pass


class CorruptedSessionError(IntakeError):
    """
    Raised when a stored session is missing data its state depends on
    (selected office, option registry). The session is reset.
    """
    pass
# End: src/intake/domain/errors.py ***
