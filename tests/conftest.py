"""Shared fixtures: in-memory SQLite unit of work and collaborator fakes."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
from sqlalchemy.dialects.sqlite.base import SQLiteTypeCompiler
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.models import Base, User
from app.models.generated_dtos import UserCreateDTO
from app.services.module_fields import StaticModuleFieldRegistry
from app.services.staging.authorization import Actor, RolePermissionGate, build_actor
from app.services.staging.placements import PlacementEditor
from app.services.staging.promotion import PromotionStateMachine
from app.services.staging.restore import SnapshotRestorer

# JSONB columns are stored as plain JSON on SQLite.
SQLiteTypeCompiler.visit_JSONB = lambda self, type_, **kw: self.visit_JSON(type_, **kw)  # type: ignore[attr-defined]


class RecordingActivityLog:
    """Activity log fake keeping every entry."""

    def __init__(self, *, fail: bool = False) -> None:
        self.entries: list[dict[str, Any]] = []
        self.fail = fail

    async def record(
        self,
        *,
        action: str,
        user_id: str | None,
        entity_id: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        if self.fail:
            raise RuntimeError("activity store unavailable")
        self.entries.append(
            {
                "action": action,
                "user_id": user_id,
                "entity_id": entity_id,
                "metadata": metadata or {},
            }
        )

    @property
    def actions(self) -> list[str]:
        return [entry["action"] for entry in self.entries]


class RecordingWebhooks:
    """Webhook dispatcher fake keeping every event."""

    def __init__(self, *, fail: bool = False) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []
        self.fail = fail

    async def dispatch(self, event_type: str, payload: dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("webhook endpoint returned 502")
        self.events.append((event_type, payload))


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    db_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield db_engine
    finally:
        await db_engine.dispose()


@pytest.fixture
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with maker() as db_session:
        yield db_session


UserFactory = Callable[..., Awaitable[User]]


@pytest.fixture
def user_factory(session: AsyncSession) -> UserFactory:
    async def _make(email: str, role: str = "editor", *, is_active: bool = True) -> User:
        user = User.create(session, UserCreateDTO(email=email, role=role, is_active=is_active))
        await session.flush()
        return user

    return _make


@pytest.fixture
async def admin_user(user_factory: UserFactory) -> User:
    return await user_factory("admin@example.com", role="admin")


@pytest.fixture
async def editor_user(user_factory: UserFactory) -> User:
    return await user_factory("editor@example.com", role="editor")


@pytest.fixture
def admin(admin_user: User) -> Actor:
    return build_actor(admin_user.id, "admin")


@pytest.fixture
def editor(editor_user: User) -> Actor:
    return build_actor(editor_user.id, "editor")


@pytest.fixture
def ai_agent() -> Actor:
    return build_actor(None, "ai_agent")


@pytest.fixture
def gate() -> RolePermissionGate:
    return RolePermissionGate()


@pytest.fixture
def activity_log() -> RecordingActivityLog:
    return RecordingActivityLog()


@pytest.fixture
def webhooks() -> RecordingWebhooks:
    return RecordingWebhooks()


@pytest.fixture
def registry() -> StaticModuleFieldRegistry:
    return StaticModuleFieldRegistry({"hero": ["heading", "subheading", "items"]})


@pytest.fixture
def machine(
    session: AsyncSession,
    gate: RolePermissionGate,
    activity_log: RecordingActivityLog,
    webhooks: RecordingWebhooks,
) -> PromotionStateMachine:
    return PromotionStateMachine(session, gate, activity_log=activity_log, webhooks=webhooks)


@pytest.fixture
def editor_modules(
    session: AsyncSession,
    gate: RolePermissionGate,
    registry: StaticModuleFieldRegistry,
) -> PlacementEditor:
    return PlacementEditor(session, gate, registry)


@pytest.fixture
def restorer(
    session: AsyncSession,
    gate: RolePermissionGate,
    activity_log: RecordingActivityLog,
    webhooks: RecordingWebhooks,
) -> SnapshotRestorer:
    return SnapshotRestorer(session, gate, activity_log=activity_log, webhooks=webhooks)
