"""Module instance and placement write adapters."""

from __future__ import annotations

from app.models.generated_dtos import (
    ModuleInstanceCreateDTO,
    ModuleInstancePatchDTO,
    PostModuleCreateDTO,
    PostModulePatchDTO,
)
from app.models.module import ModuleInstance, PostModule
from app.persistence.typed.adapters._base import BaseWriteAdapter

MODULE_INSTANCE_PATCH_ALLOWLIST = {
    "props",
    "review_props",
    "ai_review_props",
    "global_label",
}

POST_MODULE_PATCH_ALLOWLIST = {
    "order_index",
    "locked",
    "admin_label",
    "overrides",
    "review_overrides",
    "ai_review_overrides",
    "review_added",
    "review_deleted",
    "ai_review_added",
    "ai_review_deleted",
}

_MODULE_INSTANCE_ADAPTER = BaseWriteAdapter[
    ModuleInstance,
    ModuleInstanceCreateDTO,
    ModuleInstancePatchDTO,
](
    model_cls=ModuleInstance,
    patch_allowlist=MODULE_INSTANCE_PATCH_ALLOWLIST,
)

_POST_MODULE_ADAPTER = BaseWriteAdapter[
    PostModule,
    PostModuleCreateDTO,
    PostModulePatchDTO,
](
    model_cls=PostModule,
    patch_allowlist=POST_MODULE_PATCH_ALLOWLIST,
)


def register() -> None:
    """Register module adapters."""
    from app.persistence.typed.registry import register_adapter

    register_adapter(ModuleInstance, _MODULE_INSTANCE_ADAPTER)
    register_adapter(PostModule, _POST_MODULE_ADAPTER)
