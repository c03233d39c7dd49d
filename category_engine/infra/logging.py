"""Structured logging for the category engine.

Every event carries the service name and environment. Request handlers
bind method, path and acting user through contextvars, so service-level
events ("Category moved", "Category operation rejected") can be traced
back to the request that caused them.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from category_engine.config import settings

SERVICE_NAME = "category-engine"

# Chatty libraries kept at WARNING regardless of log_level
QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "sqlalchemy.engine", "redis", "asyncio")


def add_service_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Stamp each event with the service name and environment."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def build_processors(use_json: bool) -> list[Processor]:
    """Processor chain: context, level, timestamp, then a renderer."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service_context,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if use_json:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    return processors


def setup_logging() -> None:
    """Configure structlog and the stdlib root logger.

    JSON lines outside dev when `log_json` is set, console output otherwise.
    Stdlib records from libraries go to stdout at the same level.
    """
    level = logging.getLevelName(settings.log_level.upper())
    use_json = settings.log_json and settings.environment != "dev"

    structlog.configure(
        processors=build_processors(use_json),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_request_context(**context: Any) -> None:
    """Attach request-scoped fields to every event logged in this context."""
    structlog.contextvars.bind_contextvars(**context)


def clear_request_context() -> None:
    """Drop request-scoped fields once the request is done."""
    structlog.contextvars.clear_contextvars()


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """Get a logger, optionally pre-bound with `initial_context`."""
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
