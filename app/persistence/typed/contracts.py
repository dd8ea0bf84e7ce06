"""Contracts for typed SQLAlchemy writes."""

from __future__ import annotations

from typing import Any, Protocol, TypeVar, runtime_checkable

from sqlalchemy.ext.asyncio import AsyncSession

ModelT = TypeVar("ModelT")
CreateDTOT = TypeVar("CreateDTOT", bound="CreateDTOProtocol")
PatchDTOT = TypeVar("PatchDTOT", bound="PatchDTOProtocol")


@runtime_checkable
class CreateDTOProtocol(Protocol):
    """Protocol for generated create DTOs."""

    def to_orm_kwargs(self) -> dict[str, Any]:
        """Convert DTO to ORM constructor payload."""


@runtime_checkable
class PatchDTOProtocol(Protocol):
    """Protocol for generated patch DTOs."""

    def to_patch_dict(self) -> dict[str, Any]:
        """Convert DTO to sparse patch payload."""


class WriteAdapter(Protocol[ModelT, CreateDTOT, PatchDTOT]):
    """Adapter contract for one model.

    ``patch_allowlist`` lists the columns a patch may touch; tier columns are
    included only where staging writes them. Append-only models (revisions,
    activity entries) set ``deletable`` to False.
    """

    model_cls: type[ModelT]
    patch_allowlist: set[str]
    deletable: bool

    def create(self, session: AsyncSession, dto: CreateDTOT) -> ModelT:
        """Create and add a model instance to the session."""

    def patch(self, session: AsyncSession, instance: ModelT, dto: PatchDTOT) -> ModelT:
        """Patch an existing model instance."""

    async def delete(self, session: AsyncSession, instance: ModelT) -> None:
        """Delete a model instance from the session."""
