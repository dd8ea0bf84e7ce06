"""Facade for typed write operations."""

from __future__ import annotations

import logging
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from app.persistence.typed.contracts import CreateDTOProtocol, PatchDTOProtocol
from app.persistence.typed.registry import get_adapter

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")
CreateDTOT = TypeVar("CreateDTOT", bound=CreateDTOProtocol)
PatchDTOT = TypeVar("PatchDTOT", bound=PatchDTOProtocol)


def create(
    session: AsyncSession,
    model_cls: type[ModelT],
    dto: CreateDTOT,
) -> ModelT:
    """Create model instance via registered adapter."""
    adapter = get_adapter(model_cls)
    return adapter.create(session, dto)


def patch(
    session: AsyncSession,
    model_cls: type[ModelT],
    instance: ModelT,
    dto: PatchDTOT,
) -> ModelT:
    """Patch model instance via registered adapter.

    Patched column names are logged at debug level so staged tier writes can
    be traced per row.
    """
    adapter = get_adapter(model_cls)
    patched = adapter.patch(session, instance, dto)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Typed patch applied",
            extra={
                "model": model_cls.__name__,
                "row_id": getattr(instance, "id", None),
                "columns": sorted(dto.to_patch_dict()),
            },
        )
    return patched


async def delete(
    session: AsyncSession,
    model_cls: type[ModelT],
    instance: ModelT,
) -> None:
    """Delete model instance via registered adapter."""
    adapter = get_adapter(model_cls)
    await adapter.delete(session, instance)
    logger.debug(
        "Typed delete applied",
        extra={"model": model_cls.__name__, "row_id": getattr(instance, "id", None)},
    )
