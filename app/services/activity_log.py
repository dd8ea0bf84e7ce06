"""Activity log sinks for post staging events."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from functools import lru_cache
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.db_kernel import db_write_no_retry
from app.models.activity import ActivityLogEntry
from app.models.generated_dtos import ActivityLogEntryCreateDTO

logger = logging.getLogger(__name__)

WriteFn = Callable[..., Awaitable[Any]]


class ActivityLog(Protocol):
    """Audit sink. Callers treat failures as non-fatal."""

    async def record(
        self,
        *,
        action: str,
        user_id: str | None,
        entity_id: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Record one activity entry."""


class LoggingActivityLog:
    """Writes activity entries to the application log."""

    async def record(
        self,
        *,
        action: str,
        user_id: str | None,
        entity_id: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        logger.info(
            "Activity recorded",
            extra={
                "activity_action": action,
                "user_id": user_id,
                "entity_id": entity_id,
                "activity_metadata": metadata or {},
            },
        )


class DatabaseActivityLog:
    """Persists activity entries in their own short-lived session.

    The entry is committed independently of the request unit of work, so a
    failed audit write never rolls back a content change.
    """

    def __init__(self, write: WriteFn = db_write_no_retry) -> None:
        self._write = write

    async def record(
        self,
        *,
        action: str,
        user_id: str | None,
        entity_id: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        async def _insert(session: AsyncSession) -> None:
            ActivityLogEntry.create(
                session,
                ActivityLogEntryCreateDTO(
                    action=action,
                    user_id=user_id,
                    entity_type="post",
                    entity_id=entity_id,
                    details=metadata or {},
                ),
            )

        await self._write(_insert, operation_name=f"activity_log:{action}")


@lru_cache
def get_activity_log() -> ActivityLog:
    """Return the configured activity log backend."""
    if settings.activity_log_backend == "database":
        return DatabaseActivityLog()
    return LoggingActivityLog()
