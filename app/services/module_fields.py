"""Module field registry used to validate inline edits."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from functools import lru_cache
from typing import Protocol

from app.config import settings

# Root keys accepted on every module type.
RESERVED_ROOT_KEYS = frozenset({"_useReact"})


class ModuleFieldRegistry(Protocol):
    """Knows which root fields a module type declares."""

    def validate_field_path(self, module_type: str, root_key: str) -> bool:
        """Return True when ``root_key`` is an editable field of ``module_type``."""


class StaticModuleFieldRegistry:
    """Registry backed by a ``module type -> field slugs`` mapping.

    Module types without a declared schema accept any root key.
    """

    def __init__(self, schema: Mapping[str, Iterable[str]] | None = None) -> None:
        self._schema = {
            module_type: frozenset(fields)
            for module_type, fields in (schema or {}).items()
        }

    def declares(self, module_type: str) -> bool:
        return module_type in self._schema

    def validate_field_path(self, module_type: str, root_key: str) -> bool:
        if not root_key:
            return False
        fields = self._schema.get(module_type)
        if fields is None:
            return True
        return root_key in fields or root_key in RESERVED_ROOT_KEYS


@lru_cache
def get_module_field_registry() -> ModuleFieldRegistry:
    """Registry built from ``MODULE_FIELD_SCHEMA`` settings."""
    return StaticModuleFieldRegistry(settings.module_field_schema)
