"""Tier-aware module placement editing.

Structural edits on a draft tier are staged with the placement flags
(``<tier>_added`` / ``<tier>_deleted``) and picked up by approval. Edits on
the source tier apply directly and record a composite revision.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    ForbiddenError,
    InvalidInputError,
    LockedModuleError,
    UnknownModuleFieldError,
)
from app.models.generated_dtos import (
    ModuleInstanceCreateDTO,
    ModuleInstancePatchDTO,
    PostModuleCreateDTO,
    PostModulePatchDTO,
)
from app.models.module import MODULE_SCOPES, ModuleInstance, PostModule
from app.models.post import Post
from app.services.module_fields import ModuleFieldRegistry, get_module_field_registry
from app.services.staging.authorization import Actor, AuthorizationGate
from app.services.staging.field_paths import root_key, set_at_path
from app.services.staging.override_merger import deep_merge, module_props, placement_overrides
from app.services.staging.placement_rows import (
    delete_placement,
    get_placement,
    next_order_index,
)
from app.services.staging.post_fields import require_post
from app.services.staging.snapshots import SnapshotRecorder
from app.services.staging.tiers import Tier

logger = logging.getLogger(__name__)

INLINE_EDIT_TARGETS = ("props", "overrides")


@dataclass(slots=True)
class PlacementChange:
    """Outcome of a structural placement edit."""

    post_module_id: str
    module_instance_id: str
    tier: Tier
    removed: bool = False
    staged: bool = False
    revision_id: str | None = None


@dataclass(slots=True)
class InlineEditResult:
    post_module_id: str
    scope: str
    target: str
    value: dict[str, Any]
    revision_id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {"scope": self.scope, self.target: self.value}


class PlacementEditor:
    """Adds, removes and edits module placements of one post at a tier."""

    def __init__(
        self,
        session: AsyncSession,
        gate: AuthorizationGate,
        registry: ModuleFieldRegistry | None = None,
    ) -> None:
        self.session = session
        self.gate = gate
        self.registry = registry or get_module_field_registry()
        self.snapshots = SnapshotRecorder(session)

    async def add_module(
        self,
        post_id: str,
        actor: Actor,
        *,
        module_type: str,
        scope: str = "local",
        props: dict[str, Any] | None = None,
        global_slug: str | None = None,
        global_label: str | None = None,
        order_index: int | None = None,
        locked: bool = False,
        admin_label: str | None = None,
        tier: Tier = Tier.SOURCE,
    ) -> PlacementChange:
        post = await self._authorized_post(post_id, actor, tier)
        module_type = str(module_type or "").strip()
        if not module_type:
            raise InvalidInputError("Module type is required")
        if scope not in MODULE_SCOPES:
            raise InvalidInputError(f"Invalid module scope: {scope}", {"scope": scope})
        if props is not None and not isinstance(props, dict):
            raise InvalidInputError("Module props must be an object")

        overrides: dict[str, Any] | None = None
        if scope == "global":
            module, created = await self._global_module(module_type, global_slug, global_label, props)
            if not created and props:
                # Existing shared props stay untouched; the payload becomes placement overrides.
                overrides = props
        else:
            module = ModuleInstance.create(
                self.session,
                ModuleInstanceCreateDTO(type=module_type, scope="local", props=props or {}),
            )
            await self.session.flush()

        if order_index is None:
            order_index = await next_order_index(self.session, post.id)

        placement_payload: dict[str, Any] = {}
        if tier.is_draft:
            placement_payload[tier.added_flag] = True
            if overrides is not None:
                placement_payload[tier.column("overrides")] = overrides
        elif overrides is not None:
            placement_payload["overrides"] = overrides

        placement = PostModule.create(
            self.session,
            PostModuleCreateDTO(
                post_id=post.id,
                module_id=module.id,
                order_index=order_index,
                locked=locked,
                admin_label=admin_label,
                **placement_payload,
            ),
        )
        await self.session.flush()

        change = PlacementChange(
            post_module_id=placement.id,
            module_instance_id=module.id,
            tier=tier,
            staged=tier.is_draft,
        )
        if not tier.is_draft:
            change.revision_id = await self._record_source_revision(post, actor, "add-module")

        logger.info(
            "Module placement added",
            extra={
                "post_id": post.id,
                "post_module_id": placement.id,
                "module_type": module_type,
                "scope": scope,
                "tier": tier.value,
            },
        )
        return change

    async def remove_module(
        self,
        post_id: str,
        post_module_id: str,
        actor: Actor,
        *,
        tier: Tier = Tier.SOURCE,
    ) -> PlacementChange:
        post = await self._authorized_post(post_id, actor, tier)
        row = await get_placement(self.session, post.id, post_module_id)
        if row.placement.locked:
            raise LockedModuleError(post_module_id)

        change = PlacementChange(
            post_module_id=row.placement.id,
            module_instance_id=row.module.id,
            tier=tier,
        )
        if tier.is_draft and not getattr(row.placement, tier.added_flag):
            row.placement.patch(
                self.session,
                PostModulePatchDTO.from_partial({tier.deleted_flag: True}),
            )
            await self.session.flush()
            change.staged = True
        else:
            # Source removals, and removals of placements only staged on this tier, are real deletes.
            await delete_placement(self.session, row)
            change.removed = True
            if not tier.is_draft:
                change.revision_id = await self._record_source_revision(post, actor, "remove-module")

        logger.info(
            "Module placement removed",
            extra={
                "post_id": post.id,
                "post_module_id": post_module_id,
                "tier": tier.value,
                "staged": change.staged,
            },
        )
        return change

    async def update_placement(
        self,
        post_id: str,
        post_module_id: str,
        actor: Actor,
        *,
        tier: Tier = Tier.SOURCE,
        order_index: int | None = None,
        overrides: dict[str, Any] | None = None,
        locked: bool | None = None,
        admin_label: str | None = None,
    ) -> PlacementChange:
        post = await self._authorized_post(post_id, actor, tier)
        row = await get_placement(self.session, post.id, post_module_id)
        placement, module = row.placement, row.module

        if tier.is_draft and (order_index is not None or admin_label is not None):
            raise InvalidInputError("Order and label can only change on the source tier")
        if order_index is not None and placement.locked and order_index != placement.order_index:
            raise LockedModuleError(post_module_id)
        if overrides is not None and not isinstance(overrides, dict):
            raise InvalidInputError("Overrides must be an object")

        placement_updates: dict[str, Any] = {}
        if order_index is not None:
            placement_updates["order_index"] = order_index
        if admin_label is not None:
            placement_updates["admin_label"] = admin_label
        if locked is not None:
            placement_updates["locked"] = locked

        if overrides is not None:
            if module.is_global:
                placement_updates[tier.column("overrides")] = overrides
            else:
                merged = deep_merge(module_props(module, tier), overrides)
                module.patch(
                    self.session,
                    ModuleInstancePatchDTO.from_partial({tier.column("props"): merged}),
                )

        if placement_updates:
            placement.patch(self.session, PostModulePatchDTO.from_partial(placement_updates))
        await self.session.flush()

        change = PlacementChange(
            post_module_id=placement.id,
            module_instance_id=module.id,
            tier=tier,
            staged=tier.is_draft,
        )
        if not tier.is_draft:
            change.revision_id = await self._record_source_revision(post, actor, "update-placement")
        return change

    async def edit_field(
        self,
        post_id: str,
        post_module_id: str,
        actor: Actor,
        *,
        path: str,
        value: Any,
        target: str | None = None,
        tier: Tier = Tier.SOURCE,
    ) -> InlineEditResult:
        """Write one value at ``path`` inside a module's props or placement overrides."""
        post = await self._authorized_post(post_id, actor, tier)
        row = await get_placement(self.session, post.id, post_module_id)
        placement, module = row.placement, row.module

        resolved_target = target or ("overrides" if module.is_global else "props")
        if resolved_target not in INLINE_EDIT_TARGETS:
            raise InvalidInputError(
                f"Invalid edit target: {resolved_target}",
                {"target": resolved_target},
            )

        field = root_key(path)
        if not self.registry.validate_field_path(module.type, field):
            raise UnknownModuleFieldError(module.type, field)

        column = tier.column(resolved_target)
        if resolved_target == "props":
            updated = set_at_path(module_props(module, tier), path, value)
            module.patch(self.session, ModuleInstancePatchDTO.from_partial({column: updated}))
        else:
            updated = set_at_path(placement_overrides(placement, tier), path, value)
            placement.patch(self.session, PostModulePatchDTO.from_partial({column: updated}))
        await self.session.flush()

        result = InlineEditResult(
            post_module_id=placement.id,
            scope=module.scope,
            target=resolved_target,
            value=updated,
        )
        if not tier.is_draft:
            result.revision_id = await self._record_source_revision(post, actor, "edit-module")

        logger.info(
            "Module field edited",
            extra={
                "post_id": post.id,
                "post_module_id": placement.id,
                "field_path": path,
                "target": resolved_target,
                "tier": tier.value,
            },
        )
        return result

    async def _authorized_post(self, post_id: str, actor: Actor, tier: Tier) -> Post:
        post = await require_post(self.session, post_id)
        if not self.gate.can_edit_modules(actor, tier, post.type):
            raise ForbiddenError(
                "Not allowed to edit modules",
                {"post_id": post_id, "tier": tier.value},
            )
        return post

    async def _global_module(
        self,
        module_type: str,
        global_slug: str | None,
        global_label: str | None,
        props: dict[str, Any] | None,
    ) -> tuple[ModuleInstance, bool]:
        slug = str(global_slug or "").strip()
        if not slug:
            raise InvalidInputError("Global modules require a global slug")

        result = await self.session.execute(
            select(ModuleInstance).where(ModuleInstance.global_slug == slug)
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            if existing.type != module_type:
                raise InvalidInputError(
                    f"Global module '{slug}' has type {existing.type}",
                    {"global_slug": slug, "type": existing.type},
                )
            return existing, False

        module = ModuleInstance.create(
            self.session,
            ModuleInstanceCreateDTO(
                type=module_type,
                scope="global",
                global_slug=slug,
                global_label=global_label,
                props=props or {},
            ),
        )
        await self.session.flush()
        return module, True

    async def _record_source_revision(self, post: Post, actor: Actor, action: str) -> str:
        revision = await self.snapshots.capture_active_versions(
            post.id,
            mode=Tier.SOURCE,
            action=action,
            user_id=actor.user_id,
        )
        return revision.id
