"""Restoring posts from composite and single-tier revisions."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, PersistenceFailureError, RevisionNotFoundError
from app.models.module import ModuleInstance
from app.models.revision import PostRevision
from app.services.post_webhooks import POST_REVERTED_EVENT
from app.services.staging.authorization import PERM_REVISIONS_MANAGE, Actor
from app.services.staging.placement_rows import load_placements
from app.services.staging.placements import PlacementEditor
from app.services.staging.promotion import PromotionStateMachine
from app.services.staging.restore import SnapshotRestorer
from app.services.staging.tiers import Tier


@pytest.mark.asyncio
async def test_composite_restore_round_trip(
    session: AsyncSession,
    machine: PromotionStateMachine,
    editor_modules: PlacementEditor,
    restorer: SnapshotRestorer,
    admin: Actor,
    editor: Actor,
    activity_log,
    webhooks,
) -> None:
    created = await machine.create_post(editor, post_type="page", slug="about", title="Draft A")
    post = created.post
    added = await editor_modules.add_module(post.id, editor, module_type="hero", props={"heading": "One"})
    await machine.update_source(post.id, {"title": "Draft B"}, editor)
    await editor_modules.edit_field(post.id, added.post_module_id, editor, path="heading", value="Two")

    result = await restorer.restore(post.id, added.revision_id, admin)

    assert result.kind == "active-versions"
    assert result.restored_modules == [added.post_module_id]
    assert result.skipped_modules == []
    assert post.title == "Draft A"
    module = await ModuleInstance.get(session, added.module_instance_id)
    assert module.props == {"heading": "One"}

    new_revision = await PostRevision.get(session, result.new_revision_id)
    assert new_revision.action == "revert"
    assert new_revision.mode == "source"
    assert new_revision.snapshot["post"]["title"] == "Draft A"
    assert activity_log.actions[-1] == "post.reverted"
    assert webhooks.events[-1][0] == POST_REVERTED_EVENT


@pytest.mark.asyncio
async def test_restore_leaves_later_placements_alone(
    session: AsyncSession,
    machine: PromotionStateMachine,
    editor_modules: PlacementEditor,
    restorer: SnapshotRestorer,
    admin: Actor,
    editor: Actor,
) -> None:
    created = await machine.create_post(editor, post_type="page", slug="about", title="About")
    await editor_modules.add_module(created.post.id, editor, module_type="hero", props={"heading": "Later"})

    result = await restorer.restore(created.post.id, created.revision_id, admin)

    assert result.restored_modules == []
    rows = await load_placements(session, created.post.id)
    assert len(rows) == 1
    assert rows[0].module.props == {"heading": "Later"}


@pytest.mark.asyncio
async def test_restore_skips_modules_that_no_longer_exist(
    session: AsyncSession,
    machine: PromotionStateMachine,
    editor_modules: PlacementEditor,
    restorer: SnapshotRestorer,
    admin: Actor,
    editor: Actor,
) -> None:
    created = await machine.create_post(editor, post_type="page", slug="about", title="About")
    added = await editor_modules.add_module(created.post.id, editor, module_type="hero")
    await editor_modules.remove_module(created.post.id, added.post_module_id, editor)

    result = await restorer.restore(created.post.id, added.revision_id, admin)

    assert result.skipped_modules == [added.post_module_id]
    assert result.restored_modules == []
    assert await load_placements(session, created.post.id) == []


@pytest.mark.asyncio
async def test_revision_of_another_post_is_not_found(
    machine: PromotionStateMachine,
    restorer: SnapshotRestorer,
    admin: Actor,
    editor: Actor,
) -> None:
    first = await machine.create_post(editor, post_type="page", slug="first", title="First")
    second = await machine.create_post(editor, post_type="page", slug="second", title="Second")

    with pytest.raises(RevisionNotFoundError):
        await restorer.restore(second.post.id, first.revision_id, admin)
    with pytest.raises(RevisionNotFoundError):
        await restorer.restore(second.post.id, "missing", admin)


@pytest.mark.asyncio
async def test_draft_revision_restores_only_its_tier(
    machine: PromotionStateMachine,
    restorer: SnapshotRestorer,
    admin: Actor,
    editor: Actor,
) -> None:
    created = await machine.create_post(editor, post_type="page", slug="about", title="About")
    post = created.post
    first = await machine.save_draft(post.id, Tier.REVIEW, {"title": "B1"}, editor)
    await machine.save_draft(post.id, Tier.REVIEW, {"title": "B2", "excerpt": "Later"}, editor)

    result = await restorer.restore(post.id, first.revision_id, admin)

    assert result.kind == "draft"
    assert post.review_draft == {"title": "B1"}
    assert post.title == "About"


@pytest.mark.asyncio
async def test_restore_requires_revision_permission(
    machine: PromotionStateMachine,
    restorer: SnapshotRestorer,
    editor: Actor,
) -> None:
    created = await machine.create_post(editor, post_type="page", slug="about", title="About")

    with pytest.raises(ForbiddenError):
        await restorer.restore(created.post.id, created.revision_id, editor)


@pytest.mark.asyncio
async def test_restore_checks_status_permission(
    machine: PromotionStateMachine,
    restorer: SnapshotRestorer,
    admin: Actor,
    editor: Actor,
) -> None:
    created = await machine.create_post(editor, post_type="page", slug="about", title="About")
    published = await machine.update_source(created.post.id, {"status": "published"}, admin)
    await machine.update_source(created.post.id, {"status": "draft"}, admin)
    archivist = Actor(user_id=None, role="archivist", permissions=frozenset({PERM_REVISIONS_MANAGE}))

    with pytest.raises(ForbiddenError):
        await restorer.restore(created.post.id, published.revision_id, archivist)
    assert created.post.status == "draft"


@pytest.mark.asyncio
async def test_failed_restore_keeps_current_state(
    session: AsyncSession,
    machine: PromotionStateMachine,
    restorer: SnapshotRestorer,
    admin: Actor,
    editor: Actor,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    created = await machine.create_post(editor, post_type="page", slug="about", title="Draft A")
    post = created.post
    post_id = post.id
    await machine.update_source(post_id, {"title": "Live title", "excerpt": "Intro"}, editor)
    count = select(func.count()).select_from(PostRevision).where(PostRevision.post_id == post_id)
    revisions_before = await session.scalar(count)

    async def _failing_capture(*args: Any, **kwargs: Any) -> PostRevision:
        raise OperationalError("INSERT INTO post_revisions ...", {}, Exception("disk I/O error"))

    monkeypatch.setattr(restorer.snapshots, "capture_active_versions", _failing_capture)

    with pytest.raises(PersistenceFailureError):
        await restorer.restore(post_id, created.revision_id, admin)

    await session.refresh(post)
    assert post.title == "Live title"
    assert post.excerpt == "Intro"
    assert await session.scalar(count) == revisions_before
