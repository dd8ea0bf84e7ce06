"""Typed write layer errors."""

from __future__ import annotations


class TypedWriteError(RuntimeError):
    """Base error for typed write layer."""


class AdapterNotFoundError(TypedWriteError):
    """Raised when no write adapter is registered for a model."""

    def __init__(self, model_name: str) -> None:
        super().__init__(f"No typed write adapter registered for model: {model_name}")


class InvalidPatchFieldError(TypedWriteError):
    """Raised when a patch payload contains disallowed fields."""

    def __init__(self, model_name: str, fields: list[str]) -> None:
        invalid = ", ".join(sorted(fields))
        self.fields = sorted(fields)
        super().__init__(f"Invalid patch fields for {model_name}: {invalid}")


class ImmutableRecordError(TypedWriteError):
    """Raised when deleting a record from an append-only table."""

    def __init__(self, model_name: str) -> None:
        super().__init__(f"{model_name} records are append-only and cannot be deleted")
