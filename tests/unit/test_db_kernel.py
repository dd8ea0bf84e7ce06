"""Unit tests for DB kernel helpers."""

from __future__ import annotations

from contextlib import asynccontextmanager

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.db_kernel import (
    ConflictError,
    PermanentDbError,
    TransientDbError,
    db_write_no_retry,
    persistence_guard,
)
from app.core.exceptions import InvalidInputError, PersistenceFailureError


class _FakeSession:
    def __init__(self) -> None:
        self.commit_calls = 0

    async def commit(self) -> None:
        self.commit_calls += 1


@pytest.fixture
def fake_session(monkeypatch: pytest.MonkeyPatch) -> _FakeSession:
    session = _FakeSession()

    @asynccontextmanager
    async def _fake_context(*, commit_on_exit: bool = True):
        assert commit_on_exit is False
        yield session

    monkeypatch.setattr("app.core.db_kernel.get_session_context", _fake_context)
    return session


@pytest.mark.asyncio
async def test_db_write_no_retry_commits_once(fake_session: _FakeSession) -> None:
    async def _operation(_session: _FakeSession) -> str:
        return "written"

    result = await db_write_no_retry(_operation, operation_name="activity_log:post.reverted")

    assert result == "written"
    assert fake_session.commit_calls == 1


@pytest.mark.asyncio
async def test_db_write_no_retry_translates_integrity_conflict(fake_session: _FakeSession) -> None:
    async def _operation(_session: _FakeSession) -> None:
        raise IntegrityError("INSERT ...", {}, Exception("duplicate key"))

    with pytest.raises(ConflictError):
        await db_write_no_retry(_operation, operation_name="unit_write_conflict")
    assert fake_session.commit_calls == 0


@pytest.mark.asyncio
async def test_db_write_no_retry_classifies_locked_database_as_transient(
    fake_session: _FakeSession,
) -> None:
    async def _operation(_session: _FakeSession) -> None:
        raise OperationalError("INSERT ...", {}, Exception("database is locked"))

    with pytest.raises(TransientDbError):
        await db_write_no_retry(_operation, operation_name="unit_write_locked")


@pytest.mark.asyncio
async def test_db_write_no_retry_does_not_retry_permanent_errors(fake_session: _FakeSession) -> None:
    calls = {"count": 0}

    async def _operation(_session: _FakeSession) -> None:
        calls["count"] += 1
        raise ValueError("bad payload")

    with pytest.raises(PermanentDbError):
        await db_write_no_retry(_operation, operation_name="unit_write_perm")
    assert calls["count"] == 1


class _UnitOfWorkSession:
    def __init__(self) -> None:
        self.rollback_calls = 0

    async def rollback(self) -> None:
        self.rollback_calls += 1


@pytest.mark.asyncio
async def test_persistence_guard_wraps_store_errors_and_rolls_back() -> None:
    session = _UnitOfWorkSession()

    with pytest.raises(PersistenceFailureError) as exc_info:
        async with persistence_guard(session, "approve_review"):
            raise IntegrityError("UPDATE posts ...", {}, Exception("unique violation"))

    assert exc_info.value.details == {"operation": "approve_review"}
    assert isinstance(exc_info.value.__cause__, IntegrityError)
    assert session.rollback_calls == 1


@pytest.mark.asyncio
async def test_persistence_guard_rolls_back_domain_errors_without_translating() -> None:
    session = _UnitOfWorkSession()

    with pytest.raises(InvalidInputError):
        async with persistence_guard(session, "save_review_draft"):
            raise InvalidInputError("Draft payload must be an object")

    assert session.rollback_calls == 1


@pytest.mark.asyncio
async def test_persistence_guard_leaves_successful_work_alone() -> None:
    session = _UnitOfWorkSession()

    async with persistence_guard(session, "update_source"):
        pass

    assert session.rollback_calls == 0
