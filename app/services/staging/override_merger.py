"""Effective module props for a placement at a tier."""

from __future__ import annotations

import copy
from typing import Any

from app.models.module import ModuleInstance, PostModule
from app.services.staging.draft_resolver import resolve_tiered
from app.services.staging.tiers import Tier, TieredValue


def deep_merge(base: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """Merge ``patch`` into a copy of ``base``; nested objects merge recursively."""
    merged = copy.deepcopy(base)
    for key, value in patch.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def module_props(module: ModuleInstance, tier: Tier | str) -> dict[str, Any]:
    """Resolved props of the module instance itself."""
    return resolve_tiered(TieredValue.from_columns(module, "props"), tier)


def placement_overrides(placement: PostModule, tier: Tier | str) -> dict[str, Any]:
    """Resolved per-placement overrides."""
    return resolve_tiered(TieredValue.from_columns(placement, "overrides"), tier)


def effective_props(
    module: ModuleInstance,
    placement: PostModule | None,
    tier: Tier | str,
) -> dict[str, Any]:
    """Props a placement renders with at ``tier``.

    Local modules use their own resolved props. Global modules start from the
    shared resolved props and lay the placement's resolved overrides on top,
    key by key; keys missing from the overrides fall through to the shared value.
    """
    props = module_props(module, tier)
    if module.scope != "global" or placement is None:
        return props
    return {**props, **placement_overrides(placement, tier)}
