"""Activity recorder - audit trail for category mutations.

Recording happens after the mutation has committed, in its own transaction.
A failed write is logged and never undoes or fails the mutation.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from enum import Enum
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from category_engine.infra.logging import get_logger
from category_engine.models.activity_log import ActivityLog

logger = get_logger(__name__)


class ActivityAction(str, Enum):
    """Audited category actions (a move is an update with a move payload)."""

    CREATE_CATEGORY = "CREATE_CATEGORY"
    UPDATE_CATEGORY = "UPDATE_CATEGORY"
    DELETE_CATEGORY = "DELETE_CATEGORY"


class ActivityRecorder(Protocol):
    """Receives one call per successful mutation."""

    async def record(
        self,
        action: ActivityAction,
        entity_id: str,
        user_id: str | None,
        details: dict[str, Any] | None = None,
    ) -> None: ...


class NullActivityRecorder:
    """Recorder that drops everything."""

    async def record(
        self,
        action: ActivityAction,
        entity_id: str,
        user_id: str | None,
        details: dict[str, Any] | None = None,
    ) -> None:
        return None


class SqlActivityRecorder:
    """Writes mutations to the `activity_logs` table."""

    def __init__(
        self,
        session_scope: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        """Initialize the recorder.

        Args:
            session_scope: Returns a transactional session context manager
        """
        self._session_scope = session_scope

    async def record(
        self,
        action: ActivityAction,
        entity_id: str,
        user_id: str | None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Persist one activity entry.

        Anonymous mutations (no acting user) are not recorded.
        """
        if not user_id:
            logger.debug("Skipping activity record without user", action=action.value)
            return

        try:
            async with self._session_scope() as session:
                session.add(
                    ActivityLog(
                        action=action.value,
                        entity_type="CATEGORY",
                        entity_id=entity_id,
                        details=details,
                        user_id=user_id,
                    )
                )
        except SQLAlchemyError as e:
            logger.warning(
                "Failed to record activity",
                action=action.value,
                entity_id=entity_id,
                error=str(e),
            )
