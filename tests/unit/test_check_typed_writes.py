"""Tests for the typed-write guardrail scanner."""

from __future__ import annotations

from pathlib import Path

from scripts.check_typed_writes import append_only_model_names, find_violations, main

ROOT = Path(__file__).resolve().parents[2]

UNTYPED_WRITES = """
async def approve(session, revision_id):
    revision = await PostRevision.get(session, revision_id)
    revision.patch(session, PostRevisionPatchDTO.from_partial({"action": "edited"}))
    await revision.delete(session)
    session.add(Post(type="page", slug="about", title="About"))
    await session.delete(revision)
"""


def _write(path: Path, source: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(source, encoding="utf-8")
    return path


def test_application_tree_has_no_untyped_writes() -> None:
    assert find_violations([ROOT / "app", ROOT / "app" / "dependencies.py"]) == []


def test_append_only_models_come_from_adapters() -> None:
    assert append_only_model_names() == {"ActivityLogEntry", "PostRevision"}


def test_scanner_reports_each_rule(tmp_path: Path) -> None:
    file_path = _write(tmp_path / "app" / "services" / "sample.py", UNTYPED_WRITES)

    violations = find_violations([tmp_path / "app"])

    assert {violation.path for violation in violations} == {file_path}
    assert {(violation.lineno, violation.rule) for violation in violations} == {
        (4, "append-only"),
        (5, "append-only"),
        (6, "session-write"),
        (6, "constructor"),
        (7, "session-write"),
    }


def test_append_only_binding_is_scoped_to_its_function(tmp_path: Path) -> None:
    _write(
        tmp_path / "app" / "services" / "scoped.py",
        "async def load(session, revision_id):\n"
        "    revision = await PostRevision.get(session, revision_id)\n"
        "    return revision\n"
        "\n"
        "def touch(session, revision, dto):\n"
        "    revision.patch(session, dto)\n",
    )

    assert find_violations([tmp_path / "app"]) == []


def test_scanner_ignores_adapters_models_comments_and_errors(tmp_path: Path) -> None:
    app_dir = tmp_path / "app"
    _write(
        app_dir / "services" / "lookup.py",
        "raise PostNotFoundError(post_id)\n# PostRevision(post_id=...) is never built here\n",
    )
    _write(app_dir / "models" / "factory.py", "revision = PostRevision(sequence=1)\n")
    _write(
        app_dir / "persistence" / "typed" / "adapters" / "extra.py",
        "def create(session, payload):\n    session.add(Post(**payload))\n",
    )

    assert find_violations([app_dir]) == []


def test_strict_mode_exit_code(tmp_path: Path) -> None:
    clean = _write(tmp_path / "clean" / "ok.py", "def noop():\n    return None\n")
    dirty = _write(tmp_path / "dirty" / "bad.py", "user = User(email='a@example.com')\n")

    assert main(["--strict", "--roots", str(clean.parent)]) == 0
    assert main(["--strict", "--roots", str(dirty)]) == 1
    assert main(["--roots", str(dirty)]) == 0
