"""Generate the typed write DTOs in app/models/generated_dtos.py.

Every mapped model gets a ``<Model>CreateDTO`` and a sparse ``<Model>PatchDTO``.
Which patch columns are accepted is decided by the typed adapters; append-only
models (revisions, activity entries) still get a patch DTO so their adapter can
refuse it.

``--check`` parses the committed file and compares it with the mappers: DTO
field names, required create fields, ``_DROP_NONE_FIELDS`` and the adapter
patch allowlists. Formatting differences are ignored.
"""

from __future__ import annotations

import argparse
import ast
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy.orm import Mapper

from app.models import Base
from app.models.base import StringUUID
from app.persistence.typed.registry import get_adapter

ROOT = Path(__file__).resolve().parents[1]
OUTPUT_PATH = ROOT / "app" / "models" / "generated_dtos.py"
# Filled by mixins and column defaults, never by callers.
MANAGED_COLUMNS = frozenset({"id", "created_at", "updated_at"})
INTERNAL_DTO_FIELDS = frozenset({"_provided_fields"})

_PYTHON_TYPE_NAMES = {
    str: "str",
    int: "int",
    float: "float",
    bool: "bool",
    dict: "dict[str, Any]",
    list: "list[Any]",
}

HEADER = '''"""Auto-generated dataclass DTOs from SQLAlchemy models.

Generated by: scripts/generate_model_dtos.py
Do not edit manually; regenerate instead.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, ClassVar

'''

CREATE_METHODS = '''
    def to_orm_kwargs(self) -> dict[str, Any]:
        payload = asdict(self)
        for key in self._DROP_NONE_FIELDS:
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload
'''

PATCH_METHODS = '''    _provided_fields: set[str] = field(
        default_factory=set,
        repr=False,
        compare=False,
    )

    @classmethod
    def from_partial(cls, payload: dict[str, Any]) -> "{dto_name}":
        obj = cls(**payload)
        obj._provided_fields = set(payload.keys())
        return obj

    def to_patch_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("_provided_fields", None)
        return {{
            key: value
            for key, value in payload.items()
            if key in self._provided_fields
        }}
'''


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """One caller-writable column as the DTOs see it."""

    name: str
    annotation: str
    required: bool
    drop_none: bool

    @property
    def optional_annotation(self) -> str:
        if "None" in self.annotation:
            return self.annotation
        return f"{self.annotation} | None"


@dataclass(frozen=True, slots=True)
class ModelSpec:
    name: str
    fields: tuple[FieldSpec, ...]

    @property
    def create_dto(self) -> str:
        return f"{self.name}CreateDTO"

    @property
    def patch_dto(self) -> str:
        return f"{self.name}PatchDTO"

    @property
    def field_names(self) -> set[str]:
        return {spec.name for spec in self.fields}

    @property
    def required_names(self) -> set[str]:
        return {spec.name for spec in self.fields if spec.required}

    @property
    def drop_none_names(self) -> set[str]:
        return {spec.name for spec in self.fields if spec.drop_none}


def _annotation(mapper: Mapper[Any], name: str) -> str:
    for owner in mapper.class_.__mro__:
        declared = getattr(owner, "__annotations__", {}).get(name)
        if isinstance(declared, str):
            text = declared.strip()
            if text.startswith("Mapped[") and text.endswith("]"):
                return text[len("Mapped[") : -1]
            return text

    column_type = mapper.columns[name].type
    if isinstance(column_type, StringUUID):
        return "str"
    try:
        python_type = column_type.python_type
    except NotImplementedError:
        return "Any"
    if python_type.__name__ == "datetime":
        return "datetime"
    return _PYTHON_TYPE_NAMES.get(python_type, "Any")


def model_spec(mapper: Mapper[Any]) -> ModelSpec:
    fields: list[FieldSpec] = []
    for name, column in mapper.columns.items():
        if name in MANAGED_COLUMNS:
            continue
        has_default = column.default is not None or column.server_default is not None
        fields.append(
            FieldSpec(
                name=name,
                annotation=_annotation(mapper, name),
                required=not (column.primary_key or column.nullable or has_default),
                drop_none=not column.nullable and has_default,
            )
        )
    # Dataclass fields without defaults must come first.
    ordered = [spec for spec in fields if spec.required] + [spec for spec in fields if not spec.required]
    return ModelSpec(name=mapper.class_.__name__, fields=tuple(ordered))


def model_specs() -> list[ModelSpec]:
    mappers = sorted(Base.registry.mappers, key=lambda mapper: mapper.class_.__name__)
    return [model_spec(mapper) for mapper in mappers]


def render_create_dto(spec: ModelSpec) -> str:
    lines = [
        "@dataclass(slots=True)",
        f"class {spec.create_dto}:",
        f'    """Create DTO for `{spec.name}`."""',
        "",
    ]
    for item in spec.fields:
        if item.required:
            lines.append(f"    {item.name}: {item.annotation}")
        else:
            lines.append(f"    {item.name}: {item.optional_annotation} = None")
    lines.append("")

    drop_none = [item.name for item in spec.fields if item.drop_none]
    if drop_none:
        lines.append("    _DROP_NONE_FIELDS: ClassVar[set[str]] = {")
        lines.extend(f'        "{name}",' for name in drop_none)
        lines.append("    }")
    else:
        lines.append("    _DROP_NONE_FIELDS: ClassVar[set[str]] = set()")
    return "\n".join(lines) + "\n" + CREATE_METHODS


def render_patch_dto(spec: ModelSpec) -> str:
    lines = [
        "@dataclass(slots=True)",
        f"class {spec.patch_dto}:",
        f'    """Sparse patch DTO for `{spec.name}`."""',
        "",
    ]
    lines.extend(f"    {item.name}: {item.optional_annotation} = None" for item in spec.fields)
    return "\n".join(lines) + "\n" + PATCH_METHODS.format(dto_name=spec.patch_dto)


def build_output(specs: Sequence[ModelSpec]) -> str:
    blocks = [HEADER]
    exported: list[str] = []
    for spec in specs:
        blocks.append(render_create_dto(spec))
        blocks.append(render_patch_dto(spec))
        exported.extend([spec.create_dto, spec.patch_dto])

    exports = "\n".join(f'    "{name}",' for name in exported)
    blocks.append(f"__all__ = [\n{exports}\n]\n")
    return "\n".join(blocks)


def _declared_dtos(source: str) -> dict[str, dict[str, Any]]:
    """Map DTO class name to its declared fields, required fields and drop-none set."""
    declared: dict[str, dict[str, Any]] = {}
    for node in ast.parse(source).body:
        if not isinstance(node, ast.ClassDef):
            continue
        fields: set[str] = set()
        required: set[str] = set()
        drop_none: set[str] = set()
        for statement in node.body:
            if not isinstance(statement, ast.AnnAssign) or not isinstance(statement.target, ast.Name):
                continue
            name = statement.target.id
            if name == "_DROP_NONE_FIELDS":
                if isinstance(statement.value, ast.Set):
                    drop_none = {
                        element.value
                        for element in statement.value.elts
                        if isinstance(element, ast.Constant)
                    }
                continue
            if name in INTERNAL_DTO_FIELDS:
                continue
            fields.add(name)
            if statement.value is None:
                required.add(name)
        declared[node.name] = {"fields": fields, "required": required, "drop_none": drop_none}
    return declared


def find_drift(source: str, specs: Sequence[ModelSpec]) -> list[str]:
    """Describe every difference between a generated DTO module and the mappers."""
    declared = _declared_dtos(source)
    problems: list[str] = []
    for spec in specs:
        for dto_name, expected_required, expected_drop in (
            (spec.create_dto, spec.required_names, spec.drop_none_names),
            (spec.patch_dto, set(), set()),
        ):
            found = declared.get(dto_name)
            if found is None:
                problems.append(f"{dto_name}: missing")
                continue
            for name in sorted(spec.field_names - found["fields"]):
                problems.append(f"{dto_name}: missing field {name}")
            for name in sorted(found["fields"] - spec.field_names):
                problems.append(f"{dto_name}: unknown field {name}")
            if found["required"] != expected_required:
                problems.append(
                    f"{dto_name}: required fields {sorted(found['required'])} != {sorted(expected_required)}"
                )
            if found["drop_none"] != expected_drop:
                problems.append(
                    f"{dto_name}: _DROP_NONE_FIELDS {sorted(found['drop_none'])} != {sorted(expected_drop)}"
                )
    return problems


def find_allowlist_drift(specs: Sequence[ModelSpec]) -> list[str]:
    """Adapter patch allowlists may only name columns the patch DTO carries."""
    models = {mapper.class_.__name__: mapper.class_ for mapper in Base.registry.mappers}
    problems: list[str] = []
    for spec in specs:
        adapter = get_adapter(models[spec.name])
        for name in sorted(adapter.patch_allowlist - spec.field_names):
            problems.append(f"{spec.name} adapter: allowlisted column {name} does not exist")
    return problems


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--check",
        action="store_true",
        help="Exit non-zero when the generated file has drifted from the models.",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    specs = model_specs()

    if args.check:
        current = OUTPUT_PATH.read_text(encoding="utf-8") if OUTPUT_PATH.exists() else ""
        problems = find_drift(current, specs) + find_allowlist_drift(specs)
        if problems:
            print(f"Stale DTOs: {OUTPUT_PATH} (run scripts/generate_model_dtos.py)")
            for problem in problems:
                print(f"  {problem}")
            return 1
        print(f"DTOs up to date: {OUTPUT_PATH}")
        return 0

    OUTPUT_PATH.write_text(build_output(specs), encoding="utf-8")
    print(f"Generated DTOs: {OUTPUT_PATH}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
