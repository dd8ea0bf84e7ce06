"""Save, approve, reject and promote transitions between content tiers.

Every transition receives the calling :class:`Actor` explicitly, authorizes
and validates before writing anything, and records a revision after the
mutation inside the same unit of work. Committing transitions commit once at
the end and only then run best-effort side effects (activity log, webhooks).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db_kernel import persistence_guard
from app.core.exceptions import ForbiddenError, InvalidInputError, InvalidStatusError
from app.models.generated_dtos import ModuleInstancePatchDTO, PostModulePatchDTO, PostPatchDTO
from app.models.post import POST_STATUSES, Post
from app.services.activity_log import ActivityLog, get_activity_log
from app.services.post_webhooks import (
    POST_AI_REVIEW_PROMOTED_EVENT,
    POST_APPROVED_EVENT,
    POST_SOURCE_UPDATED_EVENT,
    WebhookDispatcher,
    get_webhook_dispatcher,
)
from app.services.staging.authorization import Actor, AuthorizationGate
from app.services.staging.draft_resolver import staged_keys
from app.services.staging.override_merger import module_props, placement_overrides
from app.services.staging.placement_rows import (
    PlacementRow,
    delete_placement,
    has_staged_changes,
    load_placements,
)
from app.services.staging.post_fields import (
    CUSTOM_FIELDS_KEY,
    PostFieldWriter,
    require_post,
    resolve_post_fields,
    validate_draftable_payload,
)
from app.services.staging.side_effects import SideEffectOutcome, SideEffects
from app.services.staging.snapshots import SnapshotRecorder
from app.services.staging.tiers import Tier, is_empty

logger = logging.getLogger(__name__)

NOTHING_TO_PROMOTE_MESSAGE = "Nothing to promote"
NOTHING_TO_REJECT_MESSAGE = "Nothing to reject"
NO_CHANGES_MESSAGE = "No changes"


class TierState(StrEnum):
    CLEAN = "clean"
    DIRTY = "dirty"


@dataclass(slots=True)
class PromotionResult:
    """Outcome of a committing transition.

    ``promoted=False`` is a reported no-op, not an error.
    """

    promoted: bool
    message: str
    tier: Tier
    action: str | None = None
    revision_id: str | None = None
    side_effects: list[SideEffectOutcome] = field(default_factory=list)


@dataclass(slots=True)
class RejectionResult:
    rejected: bool
    message: str
    tier: Tier
    removed_placements: list[str] = field(default_factory=list)
    side_effects: list[SideEffectOutcome] = field(default_factory=list)


@dataclass(slots=True)
class DraftSaveResult:
    tier: Tier
    draft: dict[str, Any]
    revision_id: str


@dataclass(slots=True)
class PostCreateResult:
    post: Post
    revision_id: str


def merge_draft(current: Mapping[str, Any] | None, incoming: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``incoming`` keys over a sparse draft; custom fields merge per slug."""
    merged = dict(current or {})
    for key, value in incoming.items():
        existing = merged.get(key)
        if key == CUSTOM_FIELDS_KEY and isinstance(existing, Mapping) and isinstance(value, Mapping):
            merged[key] = {**existing, **value}
        else:
            merged[key] = value
    return merged


def post_has_staged_changes(post: Post, rows: list[PlacementRow], tier: Tier) -> bool:
    """Non-empty check over the post draft, module props and placement state."""
    if not tier.is_draft:
        return False
    if not is_empty(getattr(post, tier.draft_column)):
        return True
    return any(has_staged_changes(row, tier) for row in rows)


def _validate_status(payload: Mapping[str, Any]) -> None:
    if "status" in payload and payload["status"] is not None and payload["status"] not in POST_STATUSES:
        raise InvalidStatusError(str(payload["status"]))


class PromotionStateMachine:
    """Transitions of one post's tiers."""

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

    async def tier_state(self, post_id: str, tier: Tier) -> TierState:
        post = await require_post(self.session, post_id)
        rows = await load_placements(self.session, post.id)
        return TierState.DIRTY if post_has_staged_changes(post, rows, tier) else TierState.CLEAN

    async def create_post(
        self,
        actor: Actor,
        *,
        post_type: str,
        slug: str,
        title: str,
        locale: str = "en",
        fields: Mapping[str, Any] | None = None,
    ) -> PostCreateResult:
        if not self.gate.can_create_post(actor, post_type):
            raise ForbiddenError("Not allowed to create posts", {"post_type": post_type})
        if fields:
            fields = validate_draftable_payload(fields)
            if not self.gate.can_update_status(actor, fields.get("status"), post_type):
                raise ForbiddenError("Not allowed to set this status", {"status": fields.get("status")})

        async with persistence_guard(self.session, "create_post"):
            post = await self.writer.create_post(
                post_type=post_type,
                slug=slug,
                title=title,
                locale=locale,
                author_id=actor.user_id,
                fields=fields,
            )
            revision = await self.snapshots.capture_active_versions(
                post.id,
                mode=Tier.SOURCE,
                action="create",
                user_id=actor.user_id,
            )
        return PostCreateResult(post=post, revision_id=revision.id)

    async def save_draft(
        self,
        post_id: str,
        tier: Tier,
        payload: Any,
        actor: Actor,
    ) -> DraftSaveResult:
        """Merge ``payload`` into the tier's sparse draft (last write wins per key)."""
        if not tier.is_draft:
            raise InvalidInputError("Drafts can only be saved on the review or ai-review tier")
        post = await require_post(self.session, post_id)
        if not self.gate.can_save_draft(actor, tier, post.type):
            raise ForbiddenError(
                "Not allowed to save this draft",
                {"post_id": post_id, "tier": tier.value},
            )
        values = validate_draftable_payload(payload)
        _validate_status(values)

        async with persistence_guard(self.session, f"save_{tier.name.lower()}_draft"):
            draft = merge_draft(getattr(post, tier.draft_column), values)
            post.patch(self.session, PostPatchDTO.from_partial({tier.draft_column: draft}))
            revision = await self.snapshots.capture_draft(
                post.id,
                tier,
                action=f"save-{tier.value}",
                user_id=actor.user_id,
            )

        logger.info(
            "Draft saved",
            extra={"post_id": post.id, "tier": tier.value, "fields": sorted(values)},
        )
        return DraftSaveResult(tier=tier, draft=draft, revision_id=revision.id)

    async def approve_review(self, post_id: str, actor: Actor) -> PromotionResult:
        """Apply the effective review tier onto source and clear review state."""
        post = await require_post(self.session, post_id)
        if not self.gate.can_approve(actor, Tier.REVIEW, post.type):
            raise ForbiddenError("Not allowed to approve review", {"post_id": post_id})

        rows = await load_placements(self.session, post.id)
        if not post_has_staged_changes(post, rows, Tier.REVIEW):
            return PromotionResult(promoted=False, message=NOTHING_TO_PROMOTE_MESSAGE, tier=Tier.REVIEW)

        source = await self.writer.source_values(post)
        effective = resolve_post_fields(Tier.REVIEW, source, post.review_draft)
        if not self.gate.can_update_status(actor, effective["status"], post.type):
            raise ForbiddenError(
                "Not allowed to set this status",
                {"post_id": post_id, "status": effective["status"]},
            )

        async with persistence_guard(self.session, "approve_review"):
            staged = staged_keys(Tier.REVIEW, post.review_draft, None)
            if staged:
                await self.writer.write_source(post, {key: effective[key] for key in staged})

            promoted_modules: set[str] = set()
            for row in rows:
                placement, module = row.placement, row.module
                if placement.review_deleted:
                    await delete_placement(self.session, row)
                    continue
                if module.id not in promoted_modules and not is_empty(module.review_props):
                    module.patch(
                        self.session,
                        ModuleInstancePatchDTO.from_partial(
                            {"props": module_props(module, Tier.REVIEW), "review_props": None}
                        ),
                    )
                    promoted_modules.add(module.id)
                placement_updates: dict[str, Any] = {"review_added": False}
                if not is_empty(placement.review_overrides):
                    placement_updates["overrides"] = placement_overrides(placement, Tier.REVIEW)
                placement_updates["review_overrides"] = None
                placement.patch(self.session, PostModulePatchDTO.from_partial(placement_updates))

            post.patch(self.session, PostPatchDTO.from_partial({"review_draft": None}))
            revision = await self.snapshots.capture_active_versions(
                post.id,
                mode=Tier.REVIEW,
                action="approve-review",
                user_id=actor.user_id,
            )
            await self.session.commit()

        result = PromotionResult(
            promoted=True,
            message="Review approved",
            tier=Tier.REVIEW,
            action="approve-review",
            revision_id=revision.id,
        )
        result.side_effects = await self._after_commit(
            post,
            actor,
            activity_action="post.review_approved",
            event_type=POST_APPROVED_EVENT,
            revision_id=revision.id,
        )
        return result

    async def promote_ai_review(self, post_id: str, actor: Actor) -> PromotionResult:
        """Move the effective ai-review tier into review. Source is not touched."""
        post = await require_post(self.session, post_id)
        if not self.gate.can_approve(actor, Tier.AI_REVIEW, post.type):
            raise ForbiddenError("Not allowed to approve ai-review", {"post_id": post_id})

        rows = await load_placements(self.session, post.id)
        if not post_has_staged_changes(post, rows, Tier.AI_REVIEW):
            return PromotionResult(
                promoted=False,
                message=NOTHING_TO_PROMOTE_MESSAGE,
                tier=Tier.AI_REVIEW,
            )

        async with persistence_guard(self.session, "promote_ai_review"):
            review_draft = merge_draft(post.review_draft, post.ai_review_draft or {})
            post.patch(
                self.session,
                PostPatchDTO.from_partial(
                    {"review_draft": review_draft or None, "ai_review_draft": None}
                ),
            )

            promoted_modules: set[str] = set()
            for row in rows:
                placement, module = row.placement, row.module
                if module.id not in promoted_modules and not is_empty(module.ai_review_props):
                    module.patch(
                        self.session,
                        ModuleInstancePatchDTO.from_partial(
                            {
                                "review_props": module_props(module, Tier.AI_REVIEW),
                                "ai_review_props": None,
                            }
                        ),
                    )
                    promoted_modules.add(module.id)
                placement_updates: dict[str, Any] = {
                    "review_added": placement.review_added or placement.ai_review_added,
                    "review_deleted": placement.review_deleted or placement.ai_review_deleted,
                    "ai_review_added": False,
                    "ai_review_deleted": False,
                    "ai_review_overrides": None,
                }
                if not is_empty(placement.ai_review_overrides):
                    placement_updates["review_overrides"] = placement_overrides(
                        placement, Tier.AI_REVIEW
                    )
                placement.patch(self.session, PostModulePatchDTO.from_partial(placement_updates))

            revision = await self.snapshots.capture_active_versions(
                post.id,
                mode=Tier.REVIEW,
                action="promote-ai-review",
                user_id=actor.user_id,
            )
            await self.session.commit()

        result = PromotionResult(
            promoted=True,
            message="AI review promoted to review",
            tier=Tier.AI_REVIEW,
            action="promote-ai-review",
            revision_id=revision.id,
        )
        result.side_effects = await self._after_commit(
            post,
            actor,
            activity_action="post.ai_review_promoted",
            event_type=POST_AI_REVIEW_PROMOTED_EVENT,
            revision_id=revision.id,
        )
        return result

    async def reject(self, post_id: str, tier: Tier, actor: Actor) -> RejectionResult:
        """Discard a draft tier, removing placements that only it added."""
        if not tier.is_draft:
            raise InvalidInputError("Only review and ai-review drafts can be rejected")
        post = await require_post(self.session, post_id)
        if not self.gate.can_approve(actor, tier, post.type):
            raise ForbiddenError(
                "Not allowed to reject this draft",
                {"post_id": post_id, "tier": tier.value},
            )

        rows = await load_placements(self.session, post.id)
        if not post_has_staged_changes(post, rows, tier):
            return RejectionResult(rejected=False, message=NOTHING_TO_REJECT_MESSAGE, tier=tier)

        props_column = tier.column("props")
        overrides_column = tier.column("overrides")
        removed: list[str] = []
        async with persistence_guard(self.session, f"reject_{tier.name.lower()}"):
            cleared_modules: set[str] = set()
            for row in rows:
                placement, module = row.placement, row.module
                if getattr(placement, tier.added_flag):
                    removed.append(placement.id)
                    await delete_placement(self.session, row)
                    continue
                if module.id not in cleared_modules and getattr(module, props_column) is not None:
                    module.patch(self.session, ModuleInstancePatchDTO.from_partial({props_column: None}))
                    cleared_modules.add(module.id)
                placement.patch(
                    self.session,
                    PostModulePatchDTO.from_partial({overrides_column: None, tier.deleted_flag: False}),
                )

            post.patch(self.session, PostPatchDTO.from_partial({tier.draft_column: None}))
            await self.session.commit()

        logger.info(
            "Draft rejected",
            extra={"post_id": post.id, "tier": tier.value, "removed_placements": removed},
        )
        effects = SideEffects(context={"post_id": post.id, "transition": f"reject-{tier.value}"})
        await effects.run(
            "activity_log",
            lambda: self.activity_log.record(
                action=f"post.{tier.name.lower()}_rejected",
                user_id=actor.user_id,
                entity_id=post.id,
                metadata={"removed_placements": removed},
            ),
        )
        return RejectionResult(
            rejected=True,
            message=f"{tier.value} draft rejected",
            tier=tier,
            removed_placements=removed,
            side_effects=effects.outcomes,
        )

    async def update_source(
        self,
        post_id: str,
        payload: Any,
        actor: Actor,
    ) -> PromotionResult:
        """Write values directly to the source tier."""
        post = await require_post(self.session, post_id)
        if not self.gate.can_update_source(actor, post.type):
            raise ForbiddenError("Not allowed to update this post", {"post_id": post_id})
        values = validate_draftable_payload(payload)
        _validate_status(values)
        if "status" in values and not self.gate.can_update_status(actor, values["status"], post.type):
            raise ForbiddenError(
                "Not allowed to set this status",
                {"post_id": post_id, "status": values["status"]},
            )
        if not values:
            return PromotionResult(promoted=False, message=NO_CHANGES_MESSAGE, tier=Tier.SOURCE)

        async with persistence_guard(self.session, "update_source"):
            await self.writer.write_source(post, values)
            revision = await self.snapshots.capture_active_versions(
                post.id,
                mode=Tier.SOURCE,
                action="update-source",
                user_id=actor.user_id,
            )
            await self.session.commit()

        result = PromotionResult(
            promoted=True,
            message="Source updated",
            tier=Tier.SOURCE,
            action="update-source",
            revision_id=revision.id,
        )
        result.side_effects = await self._after_commit(
            post,
            actor,
            activity_action="post.source_updated",
            event_type=POST_SOURCE_UPDATED_EVENT,
            revision_id=revision.id,
        )
        return result

    async def _after_commit(
        self,
        post: Post,
        actor: Actor,
        *,
        activity_action: str,
        event_type: str,
        revision_id: str,
    ) -> list[SideEffectOutcome]:
        effects = SideEffects(context={"post_id": post.id, "transition": activity_action})
        metadata = {"revision_id": revision_id, "status": post.status}
        await effects.run(
            "activity_log",
            lambda: self.activity_log.record(
                action=activity_action,
                user_id=actor.user_id,
                entity_id=post.id,
                metadata=metadata,
            ),
        )
        await effects.run(
            "webhook",
            lambda: self.webhooks.dispatch(
                event_type,
                {
                    "post_id": post.id,
                    "type": post.type,
                    "locale": post.locale,
                    "slug": post.slug,
                    "status": post.status,
                    "revision_id": revision_id,
                    "user_id": actor.user_id,
                },
            ),
        )
        return effects.outcomes
