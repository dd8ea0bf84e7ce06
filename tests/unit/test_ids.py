"""Unit tests for CUID generation utilities."""

from __future__ import annotations

from app.core.ids import _to_base36, generate_cuid


def test_generated_ids_fit_primary_key_column() -> None:
    ids = {generate_cuid() for _ in range(500)}

    assert len(ids) == 500
    for item in ids:
        assert item[0] == "c"
        assert len(item) == 24 <= 32
        assert item.isalnum() and item == item.lower()


def test_custom_length_and_minimum_body() -> None:
    assert len(generate_cuid(30)) == 30
    assert len(generate_cuid(4)) == 9


def test_base36_padding() -> None:
    assert _to_base36(0) == "0"
    assert _to_base36(35) == "z"
    assert _to_base36(36, width=4) == "0010"
