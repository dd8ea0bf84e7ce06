"""Tests for the DTO generator and its drift check."""

from __future__ import annotations

from scripts.generate_model_dtos import (
    OUTPUT_PATH,
    build_output,
    find_allowlist_drift,
    find_drift,
    main,
    model_specs,
)


def _spec(name: str):
    return next(spec for spec in model_specs() if spec.name == name)


def test_committed_dtos_match_models() -> None:
    specs = model_specs()

    assert find_drift(OUTPUT_PATH.read_text(encoding="utf-8"), specs) == []
    assert find_allowlist_drift(specs) == []
    assert main(["--check"]) == 0


def test_rendered_output_has_no_drift() -> None:
    specs = model_specs()

    assert find_drift(build_output(specs), specs) == []


def test_specs_skip_managed_columns_and_order_required_first() -> None:
    post = _spec("Post")
    names = [field.name for field in post.fields]

    assert not {"id", "created_at", "updated_at"} & set(names)
    assert names[:3] == ["type", "slug", "title"]
    assert post.required_names == {"type", "slug", "title"}
    assert post.drop_none_names == {"locale", "status", "order_index"}


def test_activity_entry_uses_attribute_name_for_renamed_column() -> None:
    entry = _spec("ActivityLogEntry")

    assert "details" in entry.field_names
    assert "metadata" not in entry.field_names


def test_drift_reports_missing_and_unknown_fields() -> None:
    specs = model_specs()
    source = OUTPUT_PATH.read_text(encoding="utf-8")
    stale = source.replace(
        "    ai_review_draft: dict[str, Any] | None = None\n",
        "    legacy_draft: dict[str, Any] | None = None\n",
        1,
    )

    problems = find_drift(stale, specs)

    assert "PostCreateDTO: missing field ai_review_draft" in problems
    assert "PostCreateDTO: unknown field legacy_draft" in problems
    assert not any(problem.startswith("PostPatchDTO") for problem in problems)


def test_drift_reports_required_and_drop_none_changes() -> None:
    specs = model_specs()
    source = OUTPUT_PATH.read_text(encoding="utf-8")
    stale = source.replace("    role: str | None = None\n", "    role: str\n", 1).replace(
        '        "role",\n        "is_active",\n',
        '        "is_active",\n',
        1,
    )

    problems = find_drift(stale, specs)

    assert any(problem.startswith("UserCreateDTO: required fields") for problem in problems)
    assert any(problem.startswith("UserCreateDTO: _DROP_NONE_FIELDS") for problem in problems)


def test_drift_reports_missing_dto_class() -> None:
    specs = model_specs()
    source = OUTPUT_PATH.read_text(encoding="utf-8").replace(
        "class PostTaxonomyTermPatchDTO:",
        "class PostTaxonomyTermPatch:",
    )

    assert "PostTaxonomyTermPatchDTO: missing" in find_drift(source, specs)
