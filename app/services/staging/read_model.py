"""Tier-aware read model of a post and its modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.services.staging.override_merger import effective_props
from app.services.staging.placement_rows import has_staged_changes, is_visible, load_placements
from app.services.staging.post_fields import PostFieldWriter, require_post, resolve_post_fields
from app.services.staging.promotion import TierState, post_has_staged_changes
from app.services.staging.tiers import DRAFT_TIERS, Tier


@dataclass(slots=True)
class ModuleView:
    post_module_id: str
    module_instance_id: str
    type: str
    scope: str
    global_slug: str | None
    order_index: int
    locked: bool
    admin_label: str | None
    props: dict[str, Any]
    staged: bool = False


@dataclass(slots=True)
class PostView:
    id: str
    type: str
    locale: str
    tier: Tier
    fields: dict[str, Any]
    modules: list[ModuleView] = field(default_factory=list)
    tier_states: dict[str, TierState] = field(default_factory=dict)
    author_id: str | None = None
    published_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


async def build_post_view(session: AsyncSession, post_id: str, tier: Tier) -> PostView:
    """Resolve post fields and visible modules as ``tier`` shows them."""
    post = await require_post(session, post_id)
    source = await PostFieldWriter(session).source_values(post)
    fields = resolve_post_fields(tier, source, post.review_draft, post.ai_review_draft)

    rows = await load_placements(session, post.id)
    modules = [
        ModuleView(
            post_module_id=row.placement.id,
            module_instance_id=row.module.id,
            type=row.module.type,
            scope=row.module.scope,
            global_slug=row.module.global_slug,
            order_index=row.placement.order_index,
            locked=row.placement.locked,
            admin_label=row.placement.admin_label,
            props=effective_props(row.module, row.placement, tier),
            staged=any(has_staged_changes(row, layer) for layer in tier.chain if layer.is_draft),
        )
        for row in rows
        if is_visible(row.placement, tier)
    ]

    return PostView(
        id=post.id,
        type=post.type,
        locale=post.locale,
        tier=tier,
        fields=fields,
        modules=modules,
        tier_states={
            draft_tier.value: (
                TierState.DIRTY if post_has_staged_changes(post, rows, draft_tier) else TierState.CLEAN
            )
            for draft_tier in DRAFT_TIERS
        },
        author_id=post.author_id,
        published_at=post.published_at,
        created_at=post.created_at,
        updated_at=post.updated_at,
    )
