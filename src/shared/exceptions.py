from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from src.shared.error_codes import ERROR_CODES
from src.shared.logging import get_logger

logger = get_logger(__name__)


# ───────────────────────── Base & Domain Exceptions ─────────────────────────
class DomainError(Exception):
    """Base class for domain-level errors. Services should raise these, never HTTPException."""
    code: str = "domain_error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str
    details: Optional[Dict[str, Any]]

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message or self.__class__.__name__)
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.message = message or self.__class__.__name__
        self.details = details


class ServiceUnavailableError(DomainError):
    code = "service_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


# ───────────────────────────── Helpers ──────────────────────────────────────

def _problem(
    req: Request,
    code: str,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    status_code: Optional[int] = None,
) -> JSONResponse:
    """Render the `{code, message, details?, correlation_id?}` error body."""
    entry = ERROR_CODES.get(code, {})
    body: Dict[str, Any] = {"code": code, "message": message or entry.get("message", code)}
    if details:
        body["details"] = details
    correlation_id = getattr(req.state, "correlation_id", None)
    if correlation_id:
        body["correlation_id"] = correlation_id
    http = status_code or int(entry.get("http", status.HTTP_500_INTERNAL_SERVER_ERROR))
    return JSONResponse(status_code=http, content=body)


def _code_for_status(http: int) -> str:
    for code, entry in ERROR_CODES.items():
        if entry["http"] == http:
            return code
    return "internal_error"


# ─────────────────────────── Registration ───────────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def handle_domain_error(req: Request, exc: DomainError):
        logger.warning("domain_error", code=exc.code, path=req.url.path)
        return _problem(req, exc.code, exc.message, exc.details, exc.status_code)

    @app.exception_handler(RequestValidationError)
    @app.exception_handler(PydanticValidationError)
    async def handle_validation(req: Request, exc):
        return _problem(req, "validation_error", details={"errors": exc.errors()})

    @app.exception_handler(HTTPException)
    async def handle_http_exception(req: Request, exc: HTTPException):
        detail = exc.detail
        if isinstance(detail, str):
            return _problem(req, _code_for_status(exc.status_code), detail, status_code=exc.status_code)
        details = detail if isinstance(detail, dict) else None
        return _problem(req, _code_for_status(exc.status_code), details=details, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unhandled(req: Request, exc: Exception):
        logger.exception("unhandled_exception", path=req.url.path)
        return _problem(req, "internal_error", details={"type": exc.__class__.__name__})
