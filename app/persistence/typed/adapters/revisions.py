"""Revision write adapter (append-only)."""

from __future__ import annotations

from app.models.generated_dtos import PostRevisionCreateDTO, PostRevisionPatchDTO
from app.models.revision import PostRevision
from app.persistence.typed.adapters._base import BaseWriteAdapter

POST_REVISION_PATCH_ALLOWLIST: set[str] = set()

_POST_REVISION_ADAPTER = BaseWriteAdapter[
    PostRevision,
    PostRevisionCreateDTO,
    PostRevisionPatchDTO,
](
    model_cls=PostRevision,
    patch_allowlist=POST_REVISION_PATCH_ALLOWLIST,
    deletable=False,
)


def register() -> None:
    """Register revision adapter."""
    from app.persistence.typed.registry import register_adapter

    register_adapter(PostRevision, _POST_REVISION_ADAPTER)
