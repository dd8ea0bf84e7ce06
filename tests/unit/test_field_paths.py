"""Unit tests for dot/bracket field paths."""

from __future__ import annotations

import pytest

from app.core.exceptions import InvalidFieldPathError
from app.services.staging.field_paths import get_at_path, parse_path, root_key, set_at_path


def test_parse_path_accepts_dot_and_bracket_indexes() -> None:
    assert parse_path("hero.title") == ["hero", "title"]
    assert parse_path("items[2].label") == ["items", 2, "label"]
    assert parse_path("items.2.label") == ["items", 2, "label"]
    assert root_key("items[0].label") == "items"


@pytest.mark.parametrize("path", ["", "   ", ".title", "title.", "items[x]", "[0].title", "a..b", "a b"])
def test_parse_path_rejects_malformed_paths(path: str) -> None:
    with pytest.raises(InvalidFieldPathError):
        parse_path(path)


def test_parse_path_rejects_oversized_index() -> None:
    with pytest.raises(InvalidFieldPathError):
        parse_path("items[5000]")


def test_set_at_path_creates_missing_containers() -> None:
    updated = set_at_path({}, "items[1].label", "Second")

    assert updated == {"items": [None, {"label": "Second"}]}


def test_set_at_path_does_not_mutate_input() -> None:
    original = {"hero": {"title": "Old", "subtitle": "Keep"}}

    updated = set_at_path(original, "hero.title", "New")

    assert updated == {"hero": {"title": "New", "subtitle": "Keep"}}
    assert original["hero"]["title"] == "Old"


def test_set_at_path_replaces_scalar_with_container() -> None:
    updated = set_at_path({"hero": "flat"}, "hero.title", "New")

    assert updated == {"hero": {"title": "New"}}


def test_get_at_path_returns_none_for_missing_segments() -> None:
    data = {"items": [{"label": "First"}]}

    assert get_at_path(data, "items[0].label") == "First"
    assert get_at_path(data, "items[3].label") is None
    assert get_at_path(data, "hero.title") is None
    assert get_at_path(None, "hero") is None
