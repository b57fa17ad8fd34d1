"""
Logging configuration for the Redline comparison service.

Events are structured (snake_case name plus keyword fields). Request and job
scoped fields such as ``request_id``, ``job_id`` and the document names are
bound once through structlog contextvars and then appear on every event logged
while that request or task runs, including events from worker threads started
with ``asyncio.to_thread`` or ``run_in_threadpool``.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.typing import EventDict, Processor

from redline.core.config import get_settings

NOISY_LOGGERS = {
    "uvicorn": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    "celery": logging.INFO,
    "kombu": logging.WARNING,
    "openai": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}


def add_app_context(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add service name, version and environment to every event."""
    settings = get_settings()
    event_dict["app"] = "redline"
    event_dict["version"] = settings.api_version
    event_dict["environment"] = "development" if settings.debug else "production"
    return event_dict


def configure_logging() -> None:
    """
    Configure structlog and the standard library root logger.

    With ``log_format=text`` events are rendered for the console; otherwise
    each event is one JSON object per line with structured tracebacks.
    """
    settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
    ]

    if settings.log_format == "text":
        renderers: list[Processor] = [
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=settings.debug),
        ]
    else:
        renderers = [
            structlog.processors.dict_tracebacks,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=shared_processors + renderers,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def bind_log_context(**fields: Any) -> None:
    """Bind non-empty fields to every later event of the current request or task."""
    structlog.contextvars.bind_contextvars(
        **{key: value for key, value in fields.items() if value is not None}
    )


def clear_log_context() -> None:
    """Drop all request or task scoped fields."""
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance for the specified name.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("sections_aligned", comparisons=12)
    """
    return structlog.get_logger(name)
