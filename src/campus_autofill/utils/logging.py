"""Structured logging configuration using structlog."""

import logging
import sys
from typing import Any, Dict

import structlog
from rich.logging import RichHandler

from campus_autofill.config import settings


def configure_logging() -> None:
    """Configure structured logging with rich output."""

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper()),
        handlers=[RichHandler(rich_tracebacks=True, markup=True)],
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper())
        ),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def log_session_state(session: Any) -> Dict[str, Any]:
    """Create a log context for an automation session."""
    diagnostics = getattr(session, "diagnostics", None)
    return {
        "session_state": {
            "session_id": getattr(session, "id", None),
            "user_key": getattr(session, "user_key", None),
            "state": getattr(getattr(session, "state", None), "value", None),
            "fields_filled": len(diagnostics.fields_filled) if diagnostics else 0,
            "unmatched_mandatory": len(diagnostics.unmatched_mandatory) if diagnostics else 0,
        }
    }
