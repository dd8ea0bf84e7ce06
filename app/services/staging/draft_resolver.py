"""Effective value resolution across the source, review and ai-review tiers.

Fallback chain: ``ai-review`` -> ``review`` -> ``source``. A tier value that is
empty (missing, or an object without keys) falls through to the tier below.

Object values resolve key by key: every non-empty layer in the chain is laid
over the source object in order, so a draft only replaces the keys it holds.
A key present with ``None`` is a real "clear" override; an absent key inherits.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from app.services.staging.tiers import (
    Clear,
    Set,
    Tier,
    TieredValue,
    draft_value,
    is_empty,
)


def resolve(
    tier: Tier | str,
    source_value: Any,
    review_value: Any = None,
    ai_review_value: Any = None,
) -> Any:
    """Return the effective value for ``tier``.

    Mapping values resolve key-level (see module docstring); any other value is
    taken whole from the highest non-empty tier in the chain.
    """
    resolved_tier = Tier(tier)
    tiered = TieredValue(source=source_value, review=review_value, ai_review=ai_review_value)

    if any(isinstance(value, Mapping) for _, value in tiered.layers(resolved_tier)):
        return resolve_object(resolved_tier, source_value, review_value, ai_review_value)

    for layer_tier, value in reversed(tiered.layers(resolved_tier)):
        if layer_tier is Tier.SOURCE or not is_empty(value):
            return value
    return source_value


def resolve_object(
    tier: Tier | str,
    source: Mapping[str, Any] | None,
    review: Mapping[str, Any] | None = None,
    ai_review: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Key-level resolution of object-shaped tier values. Returns a new dict."""
    resolved_tier = Tier(tier)
    tiered = TieredValue(source=source, review=review, ai_review=ai_review)

    result: dict[str, Any] = dict(source) if isinstance(source, Mapping) else {}
    for layer_tier, layer in tiered.layers(resolved_tier):
        if layer_tier is Tier.SOURCE or is_empty(layer) or not isinstance(layer, Mapping):
            continue
        result.update(layer)
    return copy.deepcopy(result)


def resolve_tiered(tiered: TieredValue[Any], tier: Tier | str) -> dict[str, Any]:
    """Resolve an object-shaped :class:`TieredValue` at ``tier``."""
    return resolve_object(tier, tiered.source, tiered.review, tiered.ai_review)


def resolve_field(
    tier: Tier | str,
    key: str,
    source: Mapping[str, Any],
    review_draft: Mapping[str, Any] | None = None,
    ai_review_draft: Mapping[str, Any] | None = None,
) -> Any:
    """Resolve a single field through the sparse drafts of the chain."""
    resolved_tier = Tier(tier)
    drafts = TieredValue(source=None, review=review_draft, ai_review=ai_review_draft)

    for layer_tier, draft in reversed(drafts.layers(resolved_tier)):
        if layer_tier is Tier.SOURCE:
            break
        item = draft_value(draft, key)
        if isinstance(item, Set):
            return copy.deepcopy(item.value)
        if isinstance(item, Clear):
            return None
    return copy.deepcopy(source.get(key))


def staged_keys(tier: Tier | str, review_draft: Any, ai_review_draft: Any) -> set[str]:
    """Keys that some draft in the chain of ``tier`` overrides."""
    resolved_tier = Tier(tier)
    drafts = TieredValue(source=None, review=review_draft, ai_review=ai_review_draft)
    keys: set[str] = set()
    for layer_tier, draft in drafts.layers(resolved_tier):
        if layer_tier is not Tier.SOURCE and isinstance(draft, Mapping):
            keys.update(draft.keys())
    return keys
