"""Revision listing and comparison."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import PostNotFoundError, RevisionNotFoundError
from app.services.staging.authorization import Actor
from app.services.staging.promotion import PromotionStateMachine
from app.services.staging.revision_queries import compare_revision, get_revision, list_revisions
from app.services.staging.tiers import Tier


@pytest.mark.asyncio
async def test_revisions_listed_newest_first_with_author_email(
    session: AsyncSession,
    machine: PromotionStateMachine,
    editor: Actor,
    ai_agent: Actor,
) -> None:
    created = await machine.create_post(editor, post_type="page", slug="about", title="About")
    await machine.save_draft(created.post.id, Tier.AI_REVIEW, {"excerpt": "AI"}, ai_agent)

    revisions = await list_revisions(session, created.post.id)

    assert [(item.sequence, item.action) for item in revisions] == [(2, "save-ai-review"), (1, "create")]
    assert revisions[0].user_email is None
    assert revisions[1].user_email == "editor@example.com"
    assert revisions[0].mode == "ai-review"


@pytest.mark.asyncio
async def test_revision_limit_is_clamped(
    session: AsyncSession,
    machine: PromotionStateMachine,
    editor: Actor,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings, "revision_list_max_limit", 2)
    created = await machine.create_post(editor, post_type="page", slug="about", title="About")
    for title in ("One", "Two", "Three"):
        await machine.update_source(created.post.id, {"title": title}, editor)

    assert len(await list_revisions(session, created.post.id, limit=100)) == 2
    assert len(await list_revisions(session, created.post.id, limit=0)) == 1


@pytest.mark.asyncio
async def test_compare_reports_changed_source_fields(
    session: AsyncSession,
    machine: PromotionStateMachine,
    editor: Actor,
) -> None:
    created = await machine.create_post(editor, post_type="page", slug="about", title="Draft A")
    latest = await machine.update_source(created.post.id, {"title": "Draft B"}, editor)

    comparison = await compare_revision(session, created.post.id, created.revision_id)
    unchanged = await compare_revision(session, created.post.id, latest.revision_id)

    assert comparison.diff == {"title": {"current": "Draft B", "revision": "Draft A"}}
    assert comparison.has_changes
    assert not unchanged.has_changes


@pytest.mark.asyncio
async def test_compare_draft_revision_uses_recorded_draft(
    session: AsyncSession,
    machine: PromotionStateMachine,
    editor: Actor,
) -> None:
    created = await machine.create_post(editor, post_type="page", slug="about", title="Draft A")
    saved = await machine.save_draft(created.post.id, Tier.REVIEW, {"title": "Proposed"}, editor)

    comparison = await compare_revision(session, created.post.id, saved.revision_id)

    assert comparison.diff == {"title": {"current": "Draft A", "revision": "Proposed"}}


@pytest.mark.asyncio
async def test_lookup_errors(
    session: AsyncSession,
    machine: PromotionStateMachine,
    editor: Actor,
) -> None:
    first = await machine.create_post(editor, post_type="page", slug="first", title="First")
    second = await machine.create_post(editor, post_type="page", slug="second", title="Second")

    with pytest.raises(RevisionNotFoundError):
        await get_revision(session, second.post.id, first.revision_id)
    with pytest.raises(PostNotFoundError):
        await list_revisions(session, "missing")
