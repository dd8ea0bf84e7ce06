"""Draft save, approve, promote and reject transitions against a real unit of work."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    ForbiddenError,
    InvalidDraftPayloadError,
    InvalidInputError,
    InvalidStatusError,
    PersistenceFailureError,
)
from app.models.module import ModuleInstance
from app.models.revision import PostRevision
from app.services.post_webhooks import POST_APPROVED_EVENT
from app.services.staging.authorization import PERM_REVIEW_APPROVE, Actor
from app.services.staging.placement_rows import load_placements
from app.services.staging.post_fields import PostFieldWriter
from app.services.staging.promotion import PromotionStateMachine, TierState
from app.services.staging.read_model import build_post_view
from app.services.staging.tiers import Tier


async def _revisions(session: AsyncSession, post_id: str) -> list[PostRevision]:
    result = await session.execute(
        select(PostRevision).where(PostRevision.post_id == post_id).order_by(PostRevision.sequence)
    )
    return list(result.scalars().all())


async def _create(machine: PromotionStateMachine, actor: Actor, **fields: Any):
    created = await machine.create_post(
        actor,
        post_type="page",
        slug=fields.pop("slug", "about"),
        title=fields.pop("title", "Draft A"),
        fields=fields or None,
    )
    return created.post


@pytest.mark.asyncio
async def test_review_draft_is_isolated_until_approved(
    session: AsyncSession,
    machine: PromotionStateMachine,
    admin: Actor,
    editor: Actor,
    activity_log,
    webhooks,
) -> None:
    post = await _create(machine, editor)

    saved = await machine.save_draft(post.id, Tier.REVIEW, {"title": "Draft B"}, editor)

    assert saved.draft == {"title": "Draft B"}
    source_view = await build_post_view(session, post.id, Tier.SOURCE)
    review_view = await build_post_view(session, post.id, Tier.REVIEW)
    assert source_view.fields["title"] == "Draft A"
    assert review_view.fields["title"] == "Draft B"
    assert review_view.tier_states["review"] is TierState.DIRTY

    result = await machine.approve_review(post.id, admin)

    assert result.promoted is True
    assert result.action == "approve-review"
    assert post.title == "Draft B"
    assert post.review_draft is None
    assert await machine.tier_state(post.id, Tier.REVIEW) is TierState.CLEAN

    revisions = await _revisions(session, post.id)
    assert [revision.action for revision in revisions] == ["create", "save-review", "approve-review"]
    assert revisions[-1].mode == "review"
    assert revisions[-1].id == result.revision_id
    assert revisions[-1].snapshot["post"]["title"] == "Draft B"

    assert activity_log.actions == ["post.review_approved"]
    assert [event for event, _ in webhooks.events] == [POST_APPROVED_EVENT]
    assert all(outcome.ok for outcome in result.side_effects)


@pytest.mark.asyncio
async def test_approve_without_staged_changes_is_reported_noop(
    session: AsyncSession,
    machine: PromotionStateMachine,
    admin: Actor,
    editor: Actor,
    activity_log,
) -> None:
    post = await _create(machine, editor)

    result = await machine.approve_review(post.id, admin)

    assert result.promoted is False
    assert result.message == "Nothing to promote"
    assert len(await _revisions(session, post.id)) == 1
    assert activity_log.actions == []


@pytest.mark.asyncio
async def test_forbidden_approval_writes_nothing(
    session: AsyncSession,
    machine: PromotionStateMachine,
    editor: Actor,
) -> None:
    post = await _create(machine, editor)
    await machine.save_draft(post.id, Tier.REVIEW, {"title": "Draft B"}, editor)

    with pytest.raises(ForbiddenError):
        await machine.approve_review(post.id, editor)

    assert post.title == "Draft A"
    assert post.review_draft == {"title": "Draft B"}
    assert len(await _revisions(session, post.id)) == 2


@pytest.mark.asyncio
async def test_approval_checks_publish_permission_for_effective_status(
    session: AsyncSession,
    machine: PromotionStateMachine,
    admin: Actor,
    editor: Actor,
) -> None:
    post = await _create(machine, editor)
    await machine.save_draft(post.id, Tier.REVIEW, {"status": "published"}, editor)
    reviewer = Actor(user_id=None, role="reviewer", permissions=frozenset({PERM_REVIEW_APPROVE}))

    with pytest.raises(ForbiddenError):
        await machine.approve_review(post.id, reviewer)
    assert post.status == "draft"

    await machine.approve_review(post.id, admin)

    assert post.status == "published"
    assert post.published_at is not None


@pytest.mark.asyncio
async def test_failed_activity_log_does_not_fail_approval(
    session: AsyncSession,
    gate,
    webhooks,
    admin: Actor,
    editor: Actor,
) -> None:
    class _BrokenActivityLog:
        async def record(self, **_: Any) -> None:
            raise RuntimeError("activity store unavailable")

    machine = PromotionStateMachine(session, gate, activity_log=_BrokenActivityLog(), webhooks=webhooks)
    post = await _create(machine, editor)
    await machine.save_draft(post.id, Tier.REVIEW, {"title": "Draft B"}, editor)

    result = await machine.approve_review(post.id, admin)

    assert result.promoted is True
    assert post.title == "Draft B"
    outcomes = {outcome.name: outcome for outcome in result.side_effects}
    assert outcomes["activity_log"].ok is False
    assert outcomes["activity_log"].error == "activity store unavailable"
    assert outcomes["webhook"].ok is True


@pytest.mark.asyncio
async def test_drafts_merge_per_key_and_custom_fields_per_slug(
    machine: PromotionStateMachine,
    editor: Actor,
) -> None:
    post = await _create(machine, editor)

    await machine.save_draft(post.id, Tier.REVIEW, {"title": "One", "custom_fields": {"a": 1}}, editor)
    saved = await machine.save_draft(
        post.id,
        Tier.REVIEW,
        {"excerpt": None, "custom_fields": {"b": 2}},
        editor,
    )

    assert saved.draft == {"title": "One", "excerpt": None, "custom_fields": {"a": 1, "b": 2}}


@pytest.mark.asyncio
async def test_save_draft_rejects_source_tier_and_unknown_fields(
    machine: PromotionStateMachine,
    editor: Actor,
) -> None:
    post = await _create(machine, editor)

    with pytest.raises(InvalidInputError):
        await machine.save_draft(post.id, Tier.SOURCE, {"title": "x"}, editor)
    with pytest.raises(InvalidDraftPayloadError):
        await machine.save_draft(post.id, Tier.REVIEW, {"type": "post"}, editor)
    with pytest.raises(InvalidDraftPayloadError):
        await machine.save_draft(post.id, Tier.REVIEW, ["title"], editor)
    with pytest.raises(InvalidStatusError):
        await machine.save_draft(post.id, Tier.REVIEW, {"status": "live"}, editor)


@pytest.mark.asyncio
async def test_ai_agent_cannot_write_review_tier(
    machine: PromotionStateMachine,
    editor: Actor,
    ai_agent: Actor,
) -> None:
    post = await _create(machine, editor)

    with pytest.raises(ForbiddenError):
        await machine.save_draft(post.id, Tier.REVIEW, {"title": "x"}, ai_agent)


@pytest.mark.asyncio
async def test_promote_ai_review_moves_draft_into_review_only(
    session: AsyncSession,
    machine: PromotionStateMachine,
    admin: Actor,
    editor: Actor,
    ai_agent: Actor,
    activity_log,
) -> None:
    post = await _create(machine, editor)
    await machine.save_draft(post.id, Tier.REVIEW, {"title": "Human title"}, editor)
    await machine.save_draft(post.id, Tier.AI_REVIEW, {"excerpt": "AI intro"}, ai_agent)

    ai_view = await build_post_view(session, post.id, Tier.AI_REVIEW)
    assert ai_view.fields["title"] == "Human title"
    assert ai_view.fields["excerpt"] == "AI intro"

    result = await machine.promote_ai_review(post.id, admin)

    assert result.promoted is True
    assert post.review_draft == {"title": "Human title", "excerpt": "AI intro"}
    assert post.ai_review_draft is None
    assert post.title == "Draft A"
    assert post.excerpt is None
    revisions = await _revisions(session, post.id)
    assert revisions[-1].action == "promote-ai-review"
    assert revisions[-1].mode == "review"
    assert activity_log.actions == ["post.ai_review_promoted"]


@pytest.mark.asyncio
async def test_reject_review_removes_staged_placements(
    session: AsyncSession,
    machine: PromotionStateMachine,
    editor_modules,
    admin: Actor,
    editor: Actor,
    activity_log,
) -> None:
    post = await _create(machine, editor)
    await machine.save_draft(post.id, Tier.REVIEW, {"title": "Draft B"}, editor)
    added = await editor_modules.add_module(
        post.id,
        editor,
        module_type="hero",
        props={"heading": "Staged"},
        tier=Tier.REVIEW,
    )
    assert added.staged is True

    source_view = await build_post_view(session, post.id, Tier.SOURCE)
    assert source_view.modules == []

    result = await machine.reject(post.id, Tier.REVIEW, admin)

    assert result.rejected is True
    assert result.removed_placements == [added.post_module_id]
    assert post.review_draft is None
    assert post.title == "Draft A"
    assert await load_placements(session, post.id) == []
    assert await ModuleInstance.get(session, added.module_instance_id) is None
    assert activity_log.actions == ["post.review_rejected"]


@pytest.mark.asyncio
async def test_reject_without_draft_is_noop(
    machine: PromotionStateMachine,
    admin: Actor,
    editor: Actor,
) -> None:
    post = await _create(machine, editor)

    result = await machine.reject(post.id, Tier.AI_REVIEW, admin)

    assert result.rejected is False
    assert result.message == "Nothing to reject"


@pytest.mark.asyncio
async def test_staged_removal_applies_on_approval(
    session: AsyncSession,
    machine: PromotionStateMachine,
    editor_modules,
    admin: Actor,
    editor: Actor,
) -> None:
    post = await _create(machine, editor)
    added = await editor_modules.add_module(post.id, editor, module_type="hero", props={"heading": "Live"})

    removal = await editor_modules.remove_module(post.id, added.post_module_id, editor, tier=Tier.REVIEW)

    assert removal.staged is True
    assert removal.removed is False
    assert len((await build_post_view(session, post.id, Tier.SOURCE)).modules) == 1
    assert (await build_post_view(session, post.id, Tier.REVIEW)).modules == []

    await machine.approve_review(post.id, admin)

    assert await load_placements(session, post.id) == []


@pytest.mark.asyncio
async def test_approval_promotes_review_props_and_custom_fields(
    session: AsyncSession,
    machine: PromotionStateMachine,
    editor_modules,
    admin: Actor,
    editor: Actor,
) -> None:
    post = await _create(machine, editor, custom_fields={"size": "L"})
    added = await editor_modules.add_module(post.id, editor, module_type="hero", props={"heading": "Live"})
    await editor_modules.edit_field(
        post.id,
        added.post_module_id,
        editor,
        path="heading",
        value="Reviewed",
        tier=Tier.REVIEW,
    )
    await machine.save_draft(post.id, Tier.REVIEW, {"custom_fields": {"color": "red"}}, editor)

    await machine.approve_review(post.id, admin)

    rows = await load_placements(session, post.id)
    assert rows[0].module.props == {"heading": "Reviewed"}
    assert rows[0].module.review_props is None
    assert await PostFieldWriter(session).custom_field_values(post.id) == {"color": "red", "size": "L"}


@pytest.mark.asyncio
async def test_update_source_writes_directly(
    session: AsyncSession,
    machine: PromotionStateMachine,
    editor: Actor,
    webhooks,
) -> None:
    post = await _create(machine, editor)

    unchanged = await machine.update_source(post.id, {}, editor)
    result = await machine.update_source(
        post.id,
        {"title": "Live edit", "taxonomy_term_ids": ["t2", "t1", "t2"]},
        editor,
    )

    assert unchanged.promoted is False
    assert unchanged.message == "No changes"
    assert result.promoted is True
    assert post.title == "Live edit"
    assert await PostFieldWriter(session).taxonomy_term_ids(post.id) == ["t1", "t2"]
    assert (await _revisions(session, post.id))[-1].action == "update-source"
    assert len(webhooks.events) == 1

    with pytest.raises(ForbiddenError):
        await machine.update_source(post.id, {"status": "published"}, editor)


async def _failing_capture(*args: Any, **kwargs: Any) -> PostRevision:
    raise OperationalError("INSERT INTO post_revisions ...", {}, Exception("disk I/O error"))


@pytest.mark.asyncio
async def test_failed_approval_leaves_source_and_review_untouched(
    session: AsyncSession,
    machine: PromotionStateMachine,
    editor_modules,
    admin: Actor,
    editor: Actor,
    activity_log,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    post = await _create(machine, editor)
    post_id = post.id
    added = await editor_modules.add_module(post_id, editor, module_type="hero", props={"heading": "One"})
    await editor_modules.edit_field(
        post_id, added.post_module_id, editor, path="heading", value="Two", tier=Tier.REVIEW
    )
    await machine.save_draft(post_id, Tier.REVIEW, {"title": "Draft B"}, editor)
    module = await ModuleInstance.get(session, added.module_instance_id)
    await session.commit()
    revisions_before = len(await _revisions(session, post_id))
    monkeypatch.setattr(machine.snapshots, "capture_active_versions", _failing_capture)

    with pytest.raises(PersistenceFailureError):
        await machine.approve_review(post_id, admin)

    assert not session.in_transaction()
    await session.refresh(post)
    await session.refresh(module)
    assert post.title == "Draft A"
    assert post.review_draft == {"title": "Draft B"}
    assert module.props == {"heading": "One"}
    assert module.review_props == {"heading": "Two"}
    assert len(await _revisions(session, post_id)) == revisions_before
    assert "post.review_approved" not in activity_log.actions
