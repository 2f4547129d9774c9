# src/intake/api/dependencies.py
"""Request-scoped access to the objects built at startup (see src.main lifespan)."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import Request

from src.intake.application.service import IntakeService
from src.shared.exceptions import ServiceUnavailableError


def get_intake_service(request: Request) -> IntakeService:
    service: Optional[IntakeService] = getattr(request.app.state, "intake_service", None)
    if service is None:
        raise ServiceUnavailableError("Intake service is not configured")
    return service


def get_status_gateway(request: Request) -> Optional[Any]:
    """Gateway exposing `connection_state()`, or None when none is wired."""
    return getattr(request.app.state, "messaging_gateway", None)
