"""Unit tests for global module override merging."""

from __future__ import annotations

from app.models.module import ModuleInstance, PostModule
from app.services.staging.override_merger import deep_merge, effective_props, placement_overrides
from app.services.staging.tiers import Tier


def _global_module(**tiers: dict) -> ModuleInstance:
    return ModuleInstance(
        type="cta",
        scope="global",
        global_slug="newsletter",
        props=tiers.get("props", {"label": "Join", "color": "blue"}),
        review_props=tiers.get("review_props"),
        ai_review_props=tiers.get("ai_review_props"),
    )


def _placement(**overrides: dict | None) -> PostModule:
    return PostModule(
        post_id="post_1",
        module_id="module_1",
        overrides=overrides.get("overrides"),
        review_overrides=overrides.get("review_overrides"),
        ai_review_overrides=overrides.get("ai_review_overrides"),
    )


def test_two_placements_share_base_but_isolate_overrides() -> None:
    module = _global_module()
    first = _placement(overrides={"label": "Subscribe"})
    second = _placement(overrides={"label": "Sign up"})

    first_props = effective_props(module, first, Tier.SOURCE)
    second_props = effective_props(module, second, Tier.SOURCE)

    assert first_props["label"] == "Subscribe"
    assert second_props["label"] == "Sign up"
    assert first_props["color"] == second_props["color"] == "blue"


def test_local_module_ignores_placement_overrides() -> None:
    module = ModuleInstance(type="hero", scope="local", props={"heading": "Hi"})
    placement = _placement(overrides={"heading": "ignored"})

    assert effective_props(module, placement, Tier.SOURCE) == {"heading": "Hi"}


def test_review_overrides_layer_on_resolved_review_props() -> None:
    module = _global_module(review_props={"color": "green"})
    placement = _placement(overrides={"label": "Live"}, review_overrides={"label": "Staged"})

    assert effective_props(module, placement, Tier.SOURCE) == {"label": "Live", "color": "blue"}
    assert effective_props(module, placement, Tier.REVIEW) == {"label": "Staged", "color": "green"}


def test_ai_review_sees_review_overrides_as_baseline() -> None:
    placement = _placement(
        overrides={"label": "Live", "size": "s"},
        review_overrides={"label": "Human"},
        ai_review_overrides={"size": "l"},
    )

    assert placement_overrides(placement, Tier.AI_REVIEW) == {"label": "Human", "size": "l"}


def test_global_module_without_placement_uses_shared_props() -> None:
    assert effective_props(_global_module(), None, "source") == {"label": "Join", "color": "blue"}


def test_deep_merge_merges_nested_objects_without_mutating_base() -> None:
    base = {"hero": {"title": "A", "image": {"src": "a.png", "alt": "A"}}, "items": [1]}

    merged = deep_merge(base, {"hero": {"image": {"alt": "B"}}, "items": [2]})

    assert merged == {"hero": {"title": "A", "image": {"src": "a.png", "alt": "B"}}, "items": [2]}
    assert base["hero"]["image"]["alt"] == "A"
