"""Database kernel utilities for short-lived writes and error translation."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from time import monotonic
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session_context
from app.core.db_retry import is_transient_connection_error
from app.core.exceptions import PersistenceFailureError

logger = logging.getLogger(__name__)

_ResultT = TypeVar("_ResultT")


class DbKernelError(RuntimeError):
    """Base error for DB kernel operations."""


class TransientDbError(DbKernelError):
    """Transient DB failure that can usually be retried."""


class ConflictError(DbKernelError):
    """Write conflict (usually integrity/unique constraint)."""


class PermanentDbError(DbKernelError):
    """Non-transient DB failure."""


def _translate_error(exc: Exception) -> DbKernelError:
    if isinstance(exc, IntegrityError):
        return ConflictError(str(exc))
    if is_transient_connection_error(exc):
        return TransientDbError(str(exc))
    return PermanentDbError(str(exc))


async def db_write_no_retry(
    fn: Callable[[AsyncSession], Awaitable[_ResultT]],
    *,
    operation_name: str,
) -> _ResultT:
    """Execute a write operation in a short-lived session without retries."""
    started = monotonic()
    try:
        async with get_session_context(commit_on_exit=False) as session:
            result = await fn(session)
            await session.commit()
        logger.debug(
            "DB write operation completed",
            extra={
                "operation": operation_name,
                "duration_ms": round((monotonic() - started) * 1000, 2),
            },
        )
        return result
    except Exception as exc:
        translated = _translate_error(exc)
        logger.warning(
            "DB write operation failed",
            extra={
                "operation": operation_name,
                "duration_ms": round((monotonic() - started) * 1000, 2),
                "failure_class": type(translated).__name__,
            },
        )
        raise translated from exc


@asynccontextmanager
async def persistence_guard(session: AsyncSession, operation_name: str) -> AsyncIterator[None]:
    """Run one unit of work on ``session``; roll it back if anything inside fails.

    Store errors are re-raised as PersistenceFailureError. Domain errors keep their type.
    """
    started = monotonic()
    try:
        yield
    except Exception as exc:
        await session.rollback()
        if not isinstance(exc, SQLAlchemyError):
            raise
        translated = _translate_error(exc)
        logger.warning(
            "Unit of work failed",
            extra={
                "operation": operation_name,
                "duration_ms": round((monotonic() - started) * 1000, 2),
                "failure_class": type(translated).__name__,
            },
        )
        raise PersistenceFailureError(operation_name, str(translated)) from exc
