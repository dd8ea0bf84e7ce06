"""Revert a post to a stored revision.

Scalar values are restored exactly. Structure is restored approximately:
module instances and placements that no longer exist are reported as skipped
and never recreated, and placements created after the revision are left alone.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db_kernel import persistence_guard
from app.core.exceptions import ForbiddenError, InvalidInputError, RevisionNotFoundError
from app.models.generated_dtos import ModuleInstancePatchDTO, PostModulePatchDTO, PostPatchDTO
from app.models.module import ModuleInstance, PostModule
from app.models.post import Post
from app.models.revision import PostRevision
from app.services.activity_log import ActivityLog, get_activity_log
from app.services.post_webhooks import POST_REVERTED_EVENT, WebhookDispatcher, get_webhook_dispatcher
from app.services.staging.authorization import Actor, AuthorizationGate
from app.services.staging.post_fields import DRAFTABLE_POST_FIELDS, PostFieldWriter, require_post
from app.services.staging.side_effects import SideEffectOutcome, SideEffects
from app.services.staging.snapshots import (
    MODULE_TIER_FIELDS,
    PLACEMENT_TIER_FIELDS,
    SNAPSHOT_KIND_ACTIVE_VERSIONS,
    SNAPSHOT_KIND_DRAFT,
    SnapshotRecorder,
)
from app.services.staging.tiers import Tier

logger = logging.getLogger(__name__)

_PLACEMENT_LAYOUT_FIELDS = ("order_index", "locked", "admin_label")


@dataclass(slots=True)
class RestoreResult:
    revision_id: str
    kind: str
    new_revision_id: str | None = None
    restored_modules: list[str] = field(default_factory=list)
    skipped_modules: list[str] = field(default_factory=list)
    side_effects: list[SideEffectOutcome] = field(default_factory=list)


class SnapshotRestorer:
    """Re-applies composite or single-tier snapshots onto live rows."""

    def __init__(
        self,
        session: AsyncSession,
        gate: AuthorizationGate,
        *,
        activity_log: ActivityLog | None = None,
        webhooks: WebhookDispatcher | None = None,
    ) -> None:
        self.session = session
        self.gate = gate
        self.activity_log = activity_log or get_activity_log()
        self.webhooks = webhooks or get_webhook_dispatcher()
        self.writer = PostFieldWriter(session)
        self.snapshots = SnapshotRecorder(session)

    async def restore(self, post_id: str, revision_id: str, actor: Actor) -> RestoreResult:
        post = await require_post(self.session, post_id)
        revision = await PostRevision.get(self.session, revision_id)
        if revision is None or revision.post_id != post.id:
            raise RevisionNotFoundError(revision_id, post_id=post_id)
        if not self.gate.can_revert_revision(actor, post.type):
            raise ForbiddenError("Not allowed to revert revisions", {"post_id": post_id})

        snapshot = revision.snapshot or {}
        kind = revision.kind
        if kind == SNAPSHOT_KIND_ACTIVE_VERSIONS:
            target_status = (snapshot.get("post") or {}).get("status")
            if not self.gate.can_update_status(actor, target_status, post.type):
                raise ForbiddenError(
                    "Not allowed to restore this status",
                    {"post_id": post_id, "status": target_status},
                )
        elif kind != SNAPSHOT_KIND_DRAFT:
            raise InvalidInputError("Unsupported revision snapshot", {"revision_id": revision_id})

        result = RestoreResult(revision_id=revision.id, kind=kind)
        async with persistence_guard(self.session, "restore_revision"):
            if kind == SNAPSHOT_KIND_ACTIVE_VERSIONS:
                await self._restore_composite(post, snapshot, result)
                new_revision = await self.snapshots.capture_active_versions(
                    post.id,
                    mode=Tier.SOURCE,
                    action="revert",
                    user_id=actor.user_id,
                )
            else:
                tier = Tier.parse(snapshot.get("tier") or revision.mode)
                await self._restore_draft(post, tier, snapshot, result)
                new_revision = await self.snapshots.capture_draft(
                    post.id,
                    tier,
                    action="revert",
                    user_id=actor.user_id,
                )
            result.new_revision_id = new_revision.id
            await self.session.commit()

        logger.info(
            "Revision restored",
            extra={
                "post_id": post.id,
                "revision_id": revision.id,
                "snapshot_kind": kind,
                "restored_modules": len(result.restored_modules),
                "skipped_modules": len(result.skipped_modules),
            },
        )

        effects = SideEffects(context={"post_id": post.id, "transition": "revert"})
        await effects.run(
            "activity_log",
            lambda: self.activity_log.record(
                action="post.reverted",
                user_id=actor.user_id,
                entity_id=post.id,
                metadata={
                    "revision_id": revision.id,
                    "new_revision_id": result.new_revision_id,
                    "skipped_modules": result.skipped_modules,
                },
            ),
        )
        await effects.run(
            "webhook",
            lambda: self.webhooks.dispatch(
                POST_REVERTED_EVENT,
                {
                    "post_id": post.id,
                    "revision_id": revision.id,
                    "new_revision_id": result.new_revision_id,
                    "status": post.status,
                    "user_id": actor.user_id,
                },
            ),
        )
        result.side_effects = effects.outcomes
        return result

    async def _restore_composite(
        self,
        post: Post,
        snapshot: Mapping[str, Any],
        result: RestoreResult,
    ) -> None:
        recorded_post = snapshot.get("post") or {}
        fields = {name: recorded_post[name] for name in DRAFTABLE_POST_FIELDS if name in recorded_post}
        if fields:
            await self.writer.apply_fields(post, fields)
        await self.writer.replace_custom_fields(post.id, snapshot.get("custom_fields") or {})
        await self.writer.replace_taxonomy_terms(post.id, snapshot.get("taxonomy_term_ids") or [])

        drafts = snapshot.get("drafts") or {}
        post.patch(
            self.session,
            PostPatchDTO.from_partial(
                {
                    "review_draft": drafts.get("review"),
                    "ai_review_draft": drafts.get("ai_review"),
                }
            ),
        )

        for entry in snapshot.get("modules") or []:
            module_updates: dict[str, Any] = {}
            if entry.get("props") is not None:
                module_updates["props"] = entry["props"]
            for name in MODULE_TIER_FIELDS[1:]:
                if name in entry:
                    module_updates[name] = entry[name]

            placement_updates = {
                name: entry[name]
                for name in PLACEMENT_TIER_FIELDS + _PLACEMENT_LAYOUT_FIELDS
                if name in entry
            }
            await self._apply_module_entry(post, entry, module_updates, placement_updates, result)
        await self.session.flush()

    async def _restore_draft(
        self,
        post: Post,
        tier: Tier,
        snapshot: Mapping[str, Any],
        result: RestoreResult,
    ) -> None:
        post.patch(
            self.session,
            PostPatchDTO.from_partial({tier.draft_column: snapshot.get("post_draft")}),
        )
        for entry in snapshot.get("modules") or []:
            module_updates: dict[str, Any] = {}
            if "props" in entry:
                module_updates[tier.column("props")] = entry["props"]

            placement_updates: dict[str, Any] = {}
            if "overrides" in entry:
                placement_updates[tier.column("overrides")] = entry["overrides"]
            if "added" in entry:
                placement_updates[tier.added_flag] = bool(entry["added"])
            if "deleted" in entry:
                placement_updates[tier.deleted_flag] = bool(entry["deleted"])
            await self._apply_module_entry(post, entry, module_updates, placement_updates, result)
        await self.session.flush()

    async def _apply_module_entry(
        self,
        post: Post,
        entry: Mapping[str, Any],
        module_updates: dict[str, Any],
        placement_updates: dict[str, Any],
        result: RestoreResult,
    ) -> None:
        post_module_id = str(entry.get("post_module_id") or "")
        module_id = str(entry.get("module_instance_id") or "")

        module = await ModuleInstance.get(self.session, module_id) if module_id else None
        placement = await PostModule.get(self.session, post_module_id) if post_module_id else None
        if placement is not None and placement.post_id != post.id:
            placement = None

        if module is None and placement is None:
            result.skipped_modules.append(post_module_id or module_id)
            return

        if module is not None and module_updates:
            module.patch(self.session, ModuleInstancePatchDTO.from_partial(module_updates))
        if placement is not None and placement_updates:
            placement.patch(self.session, PostModulePatchDTO.from_partial(placement_updates))
        result.restored_modules.append(post_module_id or module_id)
