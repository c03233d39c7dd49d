"""Infrastructure - Database, logging."""

from category_engine.infra.database import (
    DatabaseSession,
    close_db_engine,
    get_db_session,
    transactional_session,
)
from category_engine.infra.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)

__all__ = [
    "get_db_session",
    "transactional_session",
    "DatabaseSession",
    "close_db_engine",
    "setup_logging",
    "bind_request_context",
    "clear_request_context",
    "get_logger",
]
