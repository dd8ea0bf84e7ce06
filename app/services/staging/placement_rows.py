"""Placement loading and per-tier visibility."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ModuleOwnershipError, PostModuleNotFoundError
from app.models.module import ModuleInstance, PostModule
from app.services.staging.tiers import Tier, is_empty

# Flags that hide a placement when reading each tier.
_HIDDEN_WHEN: dict[Tier, tuple[str, ...]] = {
    Tier.SOURCE: ("review_added", "ai_review_added"),
    Tier.REVIEW: ("ai_review_added", "review_deleted"),
    Tier.AI_REVIEW: ("review_deleted", "ai_review_deleted"),
}


@dataclass(slots=True)
class PlacementRow:
    placement: PostModule
    module: ModuleInstance


def is_visible(placement: PostModule, tier: Tier) -> bool:
    return not any(getattr(placement, flag) for flag in _HIDDEN_WHEN[tier])


def has_staged_changes(row: PlacementRow, tier: Tier) -> bool:
    """Whether ``tier`` holds module props, overrides or structural flags for a row."""
    placement = row.placement
    return (
        not is_empty(getattr(row.module, tier.column("props")))
        or not is_empty(getattr(placement, tier.column("overrides")))
        or bool(getattr(placement, tier.added_flag))
        or bool(getattr(placement, tier.deleted_flag))
    )


async def load_placements(session: AsyncSession, post_id: str) -> list[PlacementRow]:
    """All placements of a post with their module, in display order."""
    result = await session.execute(
        select(PostModule, ModuleInstance)
        .join(ModuleInstance, ModuleInstance.id == PostModule.module_id)
        .where(PostModule.post_id == post_id)
        .order_by(PostModule.order_index, PostModule.created_at, PostModule.id)
    )
    return [PlacementRow(placement=placement, module=module) for placement, module in result.all()]


async def get_placement(
    session: AsyncSession,
    post_id: str,
    post_module_id: str,
) -> PlacementRow:
    """Load one placement, checking it belongs to ``post_id``."""
    placement = await PostModule.get(session, post_module_id)
    if placement is None:
        raise PostModuleNotFoundError(post_module_id)
    if placement.post_id != post_id:
        raise ModuleOwnershipError(post_module_id, post_id)
    module = await ModuleInstance.get(session, placement.module_id)
    if module is None:
        raise PostModuleNotFoundError(post_module_id)
    return PlacementRow(placement=placement, module=module)


async def count_module_placements(session: AsyncSession, module_id: str) -> int:
    result = await session.execute(
        select(func.count()).select_from(PostModule).where(PostModule.module_id == module_id)
    )
    return int(result.scalar_one())


async def next_order_index(session: AsyncSession, post_id: str) -> int:
    result = await session.execute(
        select(func.max(PostModule.order_index)).where(PostModule.post_id == post_id)
    )
    current = result.scalar_one_or_none()
    return 0 if current is None else int(current) + 1


async def delete_placement(session: AsyncSession, row: PlacementRow) -> bool:
    """Delete a placement and its local module once nothing else uses it.

    Returns True when the module instance was deleted as well.
    """
    await row.placement.delete(session)
    await session.flush()
    if row.module.is_global:
        return False
    if await count_module_placements(session, row.module.id) > 0:
        return False
    await row.module.delete(session)
    await session.flush()
    return True
