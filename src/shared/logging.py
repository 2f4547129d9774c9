"""
Structured logging using structlog with:
- JSON/console switchable format
- contextvars-bound request context (identity, message_id, correlation_id)
- PII redaction (phone numbers / MSISDN, CPF tax ids, emails)
- Safe defaults for Uvicorn/SQLAlchemy/httpx

"""

from __future__ import annotations

import logging
import logging.config
import re
import sys
import uuid
from typing import Any, Iterable, Optional

import structlog

# ---------------------------------------------------------------------
# PII redaction
# ---------------------------------------------------------------------


class PIIRedactionProcessor:
    """
    Structlog processor to redact PII from strings inside event_dict (recursively).
    - Email: keep domain, redact local-part.
    - Phone/MSISDN: keep the first 2 and the last 4 digits.
    - CPF (formatted 000.000.000-00): full redact.
    """
    P_EMAIL = re.compile(r"\b([A-Za-z0-9._%+-]+)@([A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")
    P_CPF = re.compile(r"\b\d{3}\.\d{3}\.\d{3}-\d{2}\b")
    # Bare digit runs: Brazilian mobiles with country code are 12-13 digits, CPF is 11
    P_MSISDN = re.compile(r"\+?\b\d{10,15}\b")

    def __call__(self, logger, method_name, event_dict):
        return self._redact(event_dict)

    def _redact(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: self._redact(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._redact(v) for v in value]
        if isinstance(value, str):
            return self._redact_str(value)
        return value

    def _redact_str(self, s: str) -> str:
        s = self.P_EMAIL.sub(lambda m: f"***@{m.group(2)}", s)
        s = self.P_CPF.sub("***REDACTED***", s)

        def _mask_msisdn(m: re.Match) -> str:
            g = m.group(0)
            return f"{g[:2]}****{g[-4:]}"

        return self.P_MSISDN.sub(_mask_msisdn, s)


def _passthrough(_logger, _method_name, event_dict):
    return event_dict


# ---------------------------------------------------------------------
# Public helpers to use from API/worker code
# ---------------------------------------------------------------------


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Generate/bind a correlation_id if not provided; returns the id."""
    cid = correlation_id or str(uuid.uuid4())
    structlog.contextvars.bind_contextvars(correlation_id=cid)
    return cid


def bind_context(**kwargs: Any) -> None:
    """
    Bind context variables to all subsequent log entries of the current task.

    Usage:
        bind_context(identity=identity, message_id=message_id)
    """
    structlog.contextvars.bind_contextvars(**{k: v for k, v in kwargs.items() if v is not None})


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


# ---------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------


def _level_name_to_int(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def configure_logging(log_level: str = "INFO", json_logs: bool = True, redact_pii: bool = True) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: JSON output (prod) or colored console output (dev)
        redact_pii: Mask phone numbers / tax ids in every event
    """
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"plain": {"format": "%(message)s"}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                    "stream": sys.stdout,
                },
            },
            "root": {"level": _level_name_to_int(log_level), "handlers": ["console"]},
            "loggers": {
                # Quiet noisy libs, but keep errors
                "uvicorn.access": {"level": "WARNING"},
                "sqlalchemy.engine": {"level": "WARNING"},
                "httpx": {"level": "WARNING"},
            },
        }
    )

    processors: Iterable[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        PIIRedactionProcessor() if redact_pii else _passthrough,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(colors=True),
    ]

    structlog.configure(
        processors=list(processors),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("session_reset", identity=identity)
    """
    return structlog.get_logger(name)
