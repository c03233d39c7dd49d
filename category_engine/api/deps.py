"""FastAPI dependencies for dependency injection.

Provides:
- The category service wired to the global database, cache and audit trail
- The acting user id from the request headers
"""

from typing import Annotated

from fastapi import Depends, Header

from category_engine.infra.database import get_db_session
from category_engine.infra.logging import get_logger
from category_engine.services.activity import SqlActivityRecorder
from category_engine.services.cache import get_category_cache
from category_engine.services.category_service import CategoryService

logger = get_logger(__name__)


def get_category_service() -> CategoryService:
    """Build the category service for a request."""
    return CategoryService(
        session_scope=get_db_session,
        cache=get_category_cache(),
        activity=SqlActivityRecorder(get_db_session),
    )


async def get_acting_user(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str | None:
    """Extract the acting user id from the `X-User-Id` header.

    Authentication happens upstream; this only carries the id into the
    audit trail. Missing ids are allowed and simply not audited.
    """
    if not x_user_id:
        logger.debug("No X-User-Id header, mutation will not be audited")
        return None
    return x_user_id


# Type aliases for cleaner annotations
Categories = Annotated[CategoryService, Depends(get_category_service)]
ActingUser = Annotated[str | None, Depends(get_acting_user)]
