"""Read-side queries over post revisions."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import RevisionNotFoundError
from app.models.post import Post
from app.models.revision import PostRevision
from app.models.user import User
from app.services.staging.post_fields import require_post
from app.services.staging.snapshots import SNAPSHOT_KIND_ACTIVE_VERSIONS

COMPARE_FIELDS = (
    "slug",
    "title",
    "status",
    "excerpt",
    "meta_title",
    "meta_description",
    "canonical_url",
)


@dataclass(slots=True)
class RevisionSummary:
    id: str
    sequence: int
    mode: str
    action: str
    created_at: datetime
    user_id: str | None
    user_email: str | None


@dataclass(slots=True)
class RevisionComparison:
    revision_id: str
    diff: dict[str, dict[str, Any]]

    @property
    def has_changes(self) -> bool:
        return bool(self.diff)


def _json_equal(left: Any, right: Any) -> bool:
    return json.dumps(left, sort_keys=True, default=str) == json.dumps(right, sort_keys=True, default=str)


def _recorded_post_fields(revision: PostRevision) -> dict[str, Any]:
    """Post values a revision recorded; draft revisions record their sparse draft."""
    snapshot = revision.snapshot or {}
    if revision.kind == SNAPSHOT_KIND_ACTIVE_VERSIONS:
        return dict(snapshot.get("post") or {})
    return dict(snapshot.get("post_draft") or {})


async def list_revisions(
    session: AsyncSession,
    post_id: str,
    limit: int | None = None,
) -> list[RevisionSummary]:
    """Newest revisions first, ``limit`` clamped to the configured range."""
    await require_post(session, post_id)
    result = await session.execute(
        select(PostRevision, User.email)
        .outerjoin(User, User.id == PostRevision.user_id)
        .where(PostRevision.post_id == post_id)
        .order_by(PostRevision.sequence.desc())
        .limit(settings.clamp_revision_limit(limit))
    )
    return [
        RevisionSummary(
            id=revision.id,
            sequence=revision.sequence,
            mode=revision.mode,
            action=revision.action,
            created_at=revision.created_at,
            user_id=revision.user_id,
            user_email=email,
        )
        for revision, email in result.all()
    ]


async def get_revision(session: AsyncSession, post_id: str, revision_id: str) -> PostRevision:
    await require_post(session, post_id)
    revision = await PostRevision.get(session, revision_id)
    if revision is None or revision.post_id != post_id:
        raise RevisionNotFoundError(revision_id, post_id=post_id)
    return revision


async def compare_revision(
    session: AsyncSession,
    post_id: str,
    revision_id: str,
) -> RevisionComparison:
    """Diff the current source fields against the fields a revision recorded."""
    revision = await get_revision(session, post_id, revision_id)
    post = await session.get(Post, post_id)
    recorded = _recorded_post_fields(revision)

    diff: dict[str, dict[str, Any]] = {}
    for name in COMPARE_FIELDS:
        if name not in recorded:
            continue
        current = getattr(post, name)
        if not _json_equal(current, recorded[name]):
            diff[name] = {"current": current, "revision": recorded[name]}
    return RevisionComparison(revision_id=revision.id, diff=diff)
