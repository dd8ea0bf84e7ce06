"""Revision snapshots of a post and its module placements.

Two payload shapes are stored in ``PostRevision.snapshot``:

``active-versions``
    Full point-in-time copy: post row, custom fields, taxonomy term ids, both
    drafts, and every placement with all three tiers of module props and
    placement overrides plus the structural flags.

``draft``
    Only one tier: the post draft and each placement's props/overrides/flags
    for that tier. Recorded by draft saves.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import utc_now
from app.models.generated_dtos import PostRevisionCreateDTO
from app.models.post import Post
from app.models.revision import PostRevision
from app.services.staging.placement_rows import PlacementRow, load_placements
from app.services.staging.post_fields import (
    DRAFTABLE_POST_FIELDS,
    PostFieldWriter,
    require_post,
)
from app.services.staging.tiers import Tier

logger = logging.getLogger(__name__)

SNAPSHOT_KIND_ACTIVE_VERSIONS = "active-versions"
SNAPSHOT_KIND_DRAFT = "draft"

POST_SNAPSHOT_FIELDS = (
    "id",
    "type",
    "locale",
    *DRAFTABLE_POST_FIELDS,
    "ab_group_id",
    "ab_variation",
    "author_id",
    "published_at",
    "deleted_at",
    "created_at",
    "updated_at",
)

MODULE_TIER_FIELDS = (
    "props",
    "review_props",
    "ai_review_props",
)
PLACEMENT_TIER_FIELDS = (
    "overrides",
    "review_overrides",
    "ai_review_overrides",
    "review_added",
    "review_deleted",
    "ai_review_added",
    "ai_review_deleted",
)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def _composite_module_entry(row: PlacementRow) -> dict[str, Any]:
    placement, module = row.placement, row.module
    entry: dict[str, Any] = {
        "post_module_id": placement.id,
        "module_instance_id": module.id,
        "type": module.type,
        "scope": module.scope,
        "global_slug": module.global_slug,
        "order_index": placement.order_index,
        "locked": placement.locked,
        "admin_label": placement.admin_label,
    }
    for name in MODULE_TIER_FIELDS:
        entry[name] = getattr(module, name)
    for name in PLACEMENT_TIER_FIELDS:
        entry[name] = getattr(placement, name)
    return _jsonable(entry)


def _draft_module_entry(row: PlacementRow, tier: Tier) -> dict[str, Any]:
    placement, module = row.placement, row.module
    return _jsonable(
        {
            "post_module_id": placement.id,
            "module_instance_id": module.id,
            "type": module.type,
            "scope": module.scope,
            "props": getattr(module, tier.column("props")),
            "overrides": getattr(placement, tier.column("overrides")),
            "added": getattr(placement, tier.added_flag),
            "deleted": getattr(placement, tier.deleted_flag),
        }
    )


class SnapshotRecorder:
    """Persists post revisions inside the caller's unit of work."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def capture_active_versions(
        self,
        post_id: str,
        *,
        mode: Tier | str,
        action: str,
        user_id: str | None,
    ) -> PostRevision:
        """Record a composite snapshot of the post's current state."""
        await self.session.flush()
        post = await self._load_post(post_id)
        writer = PostFieldWriter(self.session)

        snapshot = {
            "kind": SNAPSHOT_KIND_ACTIVE_VERSIONS,
            "action": action,
            "captured_at": utc_now().isoformat(),
            "post": _jsonable({name: getattr(post, name) for name in POST_SNAPSHOT_FIELDS}),
            "custom_fields": _jsonable(await writer.custom_field_values(post_id)),
            "taxonomy_term_ids": await writer.taxonomy_term_ids(post_id),
            "drafts": {
                "review": _jsonable(post.review_draft),
                "ai_review": _jsonable(post.ai_review_draft),
            },
            "modules": [
                _composite_module_entry(row) for row in await load_placements(self.session, post_id)
            ],
        }
        return await self._record(post_id, Tier(mode), action, snapshot, user_id)

    async def capture_draft(
        self,
        post_id: str,
        tier: Tier | str,
        *,
        action: str,
        user_id: str | None,
    ) -> PostRevision:
        """Record the draft state of one tier."""
        resolved_tier = Tier(tier)
        await self.session.flush()
        post = await self._load_post(post_id)

        snapshot = {
            "kind": SNAPSHOT_KIND_DRAFT,
            "tier": resolved_tier.value,
            "action": action,
            "captured_at": utc_now().isoformat(),
            "post_draft": _jsonable(getattr(post, resolved_tier.draft_column)),
            "modules": [
                _draft_module_entry(row, resolved_tier)
                for row in await load_placements(self.session, post_id)
            ],
        }
        return await self._record(post_id, resolved_tier, action, snapshot, user_id)

    async def _load_post(self, post_id: str) -> Post:
        return await require_post(self.session, post_id)

    async def _next_sequence(self, post_id: str) -> int:
        result = await self.session.execute(
            select(func.max(PostRevision.sequence)).where(PostRevision.post_id == post_id)
        )
        current = result.scalar_one_or_none()
        return 1 if current is None else int(current) + 1

    async def _record(
        self,
        post_id: str,
        mode: Tier,
        action: str,
        snapshot: dict[str, Any],
        user_id: str | None,
    ) -> PostRevision:
        revision = PostRevision.create(
            self.session,
            PostRevisionCreateDTO(
                post_id=post_id,
                sequence=await self._next_sequence(post_id),
                mode=mode.value,
                action=action,
                snapshot=snapshot,
                user_id=user_id,
            ),
        )
        await self.session.flush()
        logger.info(
            "Revision recorded",
            extra={
                "post_id": post_id,
                "revision_id": revision.id,
                "sequence": revision.sequence,
                "mode": mode.value,
                "revision_action": action,
                "snapshot_kind": snapshot["kind"],
            },
        )
        return revision
