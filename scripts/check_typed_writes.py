"""Guardrail check for writes that bypass the typed adapters.

Rules:

- ``constructor``: a mapped model is instantiated directly instead of through
  ``Model.create``.
- ``session-write``: ``session.add``/``add_all``/``delete``/``merge`` is called
  outside the adapters.
- ``append-only``: a revision or activity entry is patched or deleted. Their
  adapters refuse both; this catches it before runtime.

Default mode is warning-only; ``--strict`` fails on violations.
"""

from __future__ import annotations

import argparse
import ast
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from app.models import Base
from app.persistence.typed.registry import get_adapter

DEFAULT_SCAN_ROOTS = ("app/services", "app/api", "app/core", "app/dependencies.py")
IGNORE_PATH_PARTS = (
    "app/persistence/typed/adapters",
    "app/models",
)
SESSION_WRITE_METHODS = frozenset({"add", "add_all", "delete", "merge"})
INSTANCE_WRITE_METHODS = frozenset({"patch", "delete"})


@dataclass(frozen=True, slots=True)
class Violation:
    path: Path
    lineno: int
    rule: str
    line: str


def mapped_model_names() -> frozenset[str]:
    return frozenset(mapper.class_.__name__ for mapper in Base.registry.mappers)


def append_only_model_names() -> frozenset[str]:
    """Models whose adapter refuses deletes (and allows no patch columns)."""
    return frozenset(
        mapper.class_.__name__
        for mapper in Base.registry.mappers
        if not get_adapter(mapper.class_).deletable
    )


def should_scan(path: Path) -> bool:
    if path.suffix != ".py":
        return False
    path_str = path.as_posix()
    return not any(ignored in path_str for ignored in IGNORE_PATH_PARTS)


def _receiver_name(node: ast.expr) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def _bound_from_append_only(node: ast.AST, append_only: frozenset[str]) -> bool:
    """``x = await PostRevision.get(...)`` style bindings."""
    if isinstance(node, ast.Await):
        node = node.value
    if not isinstance(node, ast.Call) or not isinstance(node.func, ast.Attribute):
        return False
    owner = node.func.value
    return isinstance(owner, ast.Name) and owner.id in append_only


class _WriteVisitor(ast.NodeVisitor):
    def __init__(self, models: frozenset[str], append_only: frozenset[str]) -> None:
        self.models = models
        self.append_only = append_only
        self.append_only_dtos = frozenset(f"{name}PatchDTO" for name in append_only)
        self.hits: list[tuple[int, str]] = []
        self._append_only_names: list[set[str]] = [set()]

    def _visit_function(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        self._append_only_names.append(set())
        self.generic_visit(node)
        self._append_only_names.pop()

    visit_FunctionDef = _visit_function
    visit_AsyncFunctionDef = _visit_function

    def visit_Assign(self, node: ast.Assign) -> None:
        if _bound_from_append_only(node.value, self.append_only):
            for target in node.targets:
                if isinstance(target, ast.Name):
                    self._append_only_names[-1].add(target.id)
        self.generic_visit(node)

    def visit_Name(self, node: ast.Name) -> None:
        if node.id in self.append_only_dtos:
            self.hits.append((node.lineno, "append-only"))

    def visit_Call(self, node: ast.Call) -> None:
        func = node.func
        if isinstance(func, ast.Name) and func.id in self.models:
            self.hits.append((node.lineno, "constructor"))
        elif isinstance(func, ast.Attribute):
            receiver = _receiver_name(func.value)
            if func.attr in SESSION_WRITE_METHODS and receiver and receiver.endswith("session"):
                self.hits.append((node.lineno, "session-write"))
            elif func.attr in INSTANCE_WRITE_METHODS and receiver in self._append_only_names[-1]:
                self.hits.append((node.lineno, "append-only"))
        self.generic_visit(node)


def _iter_files(roots: Iterable[Path]) -> Iterable[Path]:
    for root in roots:
        if root.is_file():
            candidates: Iterable[Path] = [root]
        elif root.is_dir():
            candidates = sorted(root.rglob("*.py"))
        else:
            continue
        for path in candidates:
            if should_scan(path):
                yield path


def find_violations(roots: Sequence[Path]) -> list[Violation]:
    models = mapped_model_names()
    append_only = append_only_model_names()
    violations: list[Violation] = []

    for path in _iter_files(roots):
        source = path.read_text(encoding="utf-8")
        visitor = _WriteVisitor(models, append_only)
        visitor.visit(ast.parse(source, filename=str(path)))
        lines = source.splitlines()
        for lineno, rule in sorted(set(visitor.hits)):
            violations.append(Violation(path, lineno, rule, lines[lineno - 1].strip()))

    return violations


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--strict", action="store_true", help="Exit non-zero on violations")
    parser.add_argument(
        "--roots",
        nargs="*",
        default=list(DEFAULT_SCAN_ROOTS),
        help="Directories or files to scan",
    )
    args = parser.parse_args(argv)

    violations = find_violations([Path(root) for root in args.roots])
    if not violations:
        print("typed-writes check: no untyped writes found")
        return 0

    print(f"typed-writes check: {len(violations)} untyped write(s)")
    for violation in violations:
        print(f"  {violation.path}:{violation.lineno} [{violation.rule}] {violation.line}")

    return 1 if args.strict else 0


if __name__ == "__main__":
    sys.exit(main())
