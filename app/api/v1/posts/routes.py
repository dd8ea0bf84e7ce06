"""Post staging, module placement and revision endpoints."""

import logging

from fastapi import APIRouter, Query, status

from app.api.v1.posts.errors import http_error
from app.core.exceptions import StrataError
from app.dependencies import (
    ActivityLogDep,
    CurrentActor,
    DbSession,
    Gate,
    ModuleRegistryDep,
    WebhooksDep,
)
from app.schemas.module import (
    InlineEditRequest,
    InlineEditResponse,
    ModuleAddRequest,
    PlacementChangeResponse,
    PlacementUpdateRequest,
)
from app.schemas.post import (
    ModuleViewResponse,
    PostCreate,
    PostCreateResponse,
    PostTransitionResponse,
    PostUpdate,
    PostViewResponse,
    SideEffectOutcomeResponse,
)
from app.schemas.revision import (
    RestoreResponse,
    RevisionCompareResponse,
    RevisionDetailResponse,
    RevisionListResponse,
    RevisionSummaryResponse,
    RevisionUserResponse,
)
from app.services.staging.placements import PlacementChange, PlacementEditor
from app.services.staging.promotion import PromotionStateMachine
from app.services.staging.read_model import PostView, build_post_view
from app.services.staging.restore import SnapshotRestorer
from app.services.staging.revision_queries import (
    compare_revision,
    get_revision,
    list_revisions,
)
from app.services.staging.tiers import Tier

logger = logging.getLogger(__name__)

router = APIRouter()


def _view_response(view: PostView) -> PostViewResponse:
    return PostViewResponse(
        id=view.id,
        type=view.type,
        locale=view.locale,
        tier=view.tier.value,
        fields=view.fields,
        modules=[ModuleViewResponse.model_validate(module) for module in view.modules],
        tier_states={tier: state.value for tier, state in view.tier_states.items()},
        author_id=view.author_id,
        published_at=view.published_at,
        created_at=view.created_at,
        updated_at=view.updated_at,
    )


def _placement_response(change: PlacementChange) -> PlacementChangeResponse:
    return PlacementChangeResponse(
        post_module_id=change.post_module_id,
        module_instance_id=change.module_instance_id,
        tier=change.tier.value,
        removed=change.removed,
        staged=change.staged,
        revision_id=change.revision_id,
    )


@router.post(
    "",
    response_model=PostCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create post",
    description="Create a post in draft status and record its first source revision.",
)
async def create_post(
    payload: PostCreate,
    actor: CurrentActor,
    session: DbSession,
    gate: Gate,
    activity_log: ActivityLogDep,
    webhooks: WebhooksDep,
) -> PostCreateResponse:
    machine = PromotionStateMachine(session, gate, activity_log=activity_log, webhooks=webhooks)
    try:
        created = await machine.create_post(
            actor,
            post_type=payload.type,
            slug=payload.slug,
            title=payload.title,
            locale=payload.locale,
            fields=payload.fields,
        )
        view = await build_post_view(session, created.post.id, Tier.SOURCE)
    except StrataError as exc:
        raise http_error(exc) from exc
    return PostCreateResponse(post=_view_response(view), revision_id=created.revision_id)


@router.get(
    "/{post_id}",
    response_model=PostViewResponse,
    summary="Get post at tier",
    description="Return post fields and visible modules as resolved for the requested tier.",
)
async def get_post(
    post_id: str,
    actor: CurrentActor,
    session: DbSession,
    tier: str = Query(default=Tier.SOURCE.value),
) -> PostViewResponse:
    try:
        view = await build_post_view(session, post_id, Tier.parse(tier, default=Tier.SOURCE))
    except StrataError as exc:
        raise http_error(exc) from exc
    return _view_response(view)


@router.patch(
    "/{post_id}",
    response_model=PostTransitionResponse,
    summary="Update post",
    description=(
        "Save a review or ai-review draft, publish to source, approve review, "
        "promote ai-review into review, or reject a draft tier."
    ),
)
async def update_post(
    post_id: str,
    payload: PostUpdate,
    actor: CurrentActor,
    session: DbSession,
    gate: Gate,
    activity_log: ActivityLogDep,
    webhooks: WebhooksDep,
) -> PostTransitionResponse:
    machine = PromotionStateMachine(session, gate, activity_log=activity_log, webhooks=webhooks)
    fields = payload.changed_fields()
    try:
        if payload.mode in ("review", "ai-review"):
            saved = await machine.save_draft(post_id, Tier.parse(payload.mode), fields, actor)
            return PostTransitionResponse(
                mode=payload.mode,
                promoted=False,
                message="Draft saved",
                revision_id=saved.revision_id,
                draft=saved.draft,
            )

        if payload.mode in ("reject-review", "reject-ai-review"):
            tier = Tier.REVIEW if payload.mode == "reject-review" else Tier.AI_REVIEW
            rejected = await machine.reject(post_id, tier, actor)
            return PostTransitionResponse(
                mode=payload.mode,
                promoted=False,
                message=rejected.message,
                removed_placements=rejected.removed_placements,
                side_effects=[
                    SideEffectOutcomeResponse.model_validate(outcome)
                    for outcome in rejected.side_effects
                ],
            )

        if payload.mode == "approve":
            result = await machine.approve_review(post_id, actor)
        elif payload.mode == "approve-ai-review":
            result = await machine.promote_ai_review(post_id, actor)
        else:
            result = await machine.update_source(post_id, fields, actor)
    except StrataError as exc:
        raise http_error(exc) from exc

    return PostTransitionResponse(
        mode=payload.mode,
        promoted=result.promoted,
        message=result.message,
        revision_id=result.revision_id,
        side_effects=[
            SideEffectOutcomeResponse.model_validate(outcome) for outcome in result.side_effects
        ],
    )


@router.get(
    "/{post_id}/revisions",
    response_model=RevisionListResponse,
    summary="List revisions",
    description="Return revisions newest first. The limit is clamped to the configured range.",
)
async def get_revisions(
    post_id: str,
    actor: CurrentActor,
    session: DbSession,
    limit: int | None = Query(default=None),
) -> RevisionListResponse:
    try:
        revisions = await list_revisions(session, post_id, limit)
    except StrataError as exc:
        raise http_error(exc) from exc
    return RevisionListResponse(
        data=[
            RevisionSummaryResponse(
                id=revision.id,
                sequence=revision.sequence,
                mode=revision.mode,
                action=revision.action,
                created_at=revision.created_at,
                user=(
                    RevisionUserResponse(id=revision.user_id, email=revision.user_email)
                    if revision.user_id
                    else None
                ),
            )
            for revision in revisions
        ]
    )


@router.get(
    "/{post_id}/revisions/{revision_id}",
    response_model=RevisionDetailResponse,
    summary="Get revision",
)
async def get_revision_detail(
    post_id: str,
    revision_id: str,
    actor: CurrentActor,
    session: DbSession,
) -> RevisionDetailResponse:
    try:
        revision = await get_revision(session, post_id, revision_id)
    except StrataError as exc:
        raise http_error(exc) from exc
    return RevisionDetailResponse.model_validate(revision)


@router.post(
    "/{post_id}/revisions/{revision_id}/revert",
    response_model=RestoreResponse,
    summary="Revert to revision",
    description=(
        "Restore post fields, drafts and existing module rows from a revision. "
        "Deleted modules are reported as skipped and are not recreated."
    ),
)
async def revert_revision(
    post_id: str,
    revision_id: str,
    actor: CurrentActor,
    session: DbSession,
    gate: Gate,
    activity_log: ActivityLogDep,
    webhooks: WebhooksDep,
) -> RestoreResponse:
    restorer = SnapshotRestorer(session, gate, activity_log=activity_log, webhooks=webhooks)
    try:
        result = await restorer.restore(post_id, revision_id, actor)
    except StrataError as exc:
        raise http_error(exc) from exc
    return RestoreResponse.model_validate(result)


@router.post(
    "/{post_id}/revisions/{revision_id}/compare",
    response_model=RevisionCompareResponse,
    summary="Compare revision",
    description="Diff current source fields against the fields recorded by a revision.",
)
async def compare_revision_fields(
    post_id: str,
    revision_id: str,
    actor: CurrentActor,
    session: DbSession,
) -> RevisionCompareResponse:
    try:
        comparison = await compare_revision(session, post_id, revision_id)
    except StrataError as exc:
        raise http_error(exc) from exc
    return RevisionCompareResponse(diff=comparison.diff, has_changes=comparison.has_changes)


@router.post(
    "/{post_id}/modules",
    response_model=PlacementChangeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add module",
)
async def add_module(
    post_id: str,
    payload: ModuleAddRequest,
    actor: CurrentActor,
    session: DbSession,
    gate: Gate,
    registry: ModuleRegistryDep,
) -> PlacementChangeResponse:
    editor = PlacementEditor(session, gate, registry)
    try:
        change = await editor.add_module(
            post_id,
            actor,
            module_type=payload.type,
            scope=payload.scope,
            props=payload.props,
            global_slug=payload.global_slug,
            global_label=payload.global_label,
            order_index=payload.order_index,
            locked=payload.locked,
            admin_label=payload.admin_label,
            tier=Tier.parse(payload.mode),
        )
    except StrataError as exc:
        raise http_error(exc) from exc
    return _placement_response(change)


@router.patch(
    "/{post_id}/modules/{post_module_id}/placement",
    response_model=PlacementChangeResponse,
    summary="Update module placement",
)
async def update_placement(
    post_id: str,
    post_module_id: str,
    payload: PlacementUpdateRequest,
    actor: CurrentActor,
    session: DbSession,
    gate: Gate,
    registry: ModuleRegistryDep,
) -> PlacementChangeResponse:
    editor = PlacementEditor(session, gate, registry)
    try:
        change = await editor.update_placement(
            post_id,
            post_module_id,
            actor,
            tier=Tier.parse(payload.mode),
            order_index=payload.order_index,
            overrides=payload.overrides,
            locked=payload.locked,
            admin_label=payload.admin_label,
        )
    except StrataError as exc:
        raise http_error(exc) from exc
    return _placement_response(change)


@router.delete(
    "/{post_id}/modules/{post_module_id}",
    response_model=PlacementChangeResponse,
    summary="Remove module",
    description="Delete a placement on source, or stage its removal on a draft tier.",
)
async def remove_module(
    post_id: str,
    post_module_id: str,
    actor: CurrentActor,
    session: DbSession,
    gate: Gate,
    registry: ModuleRegistryDep,
    mode: str = Query(default=Tier.SOURCE.value),
) -> PlacementChangeResponse:
    editor = PlacementEditor(session, gate, registry)
    try:
        change = await editor.remove_module(
            post_id,
            post_module_id,
            actor,
            tier=Tier.parse(mode, default=Tier.SOURCE),
        )
    except StrataError as exc:
        raise http_error(exc) from exc
    return _placement_response(change)


@router.patch(
    "/{post_id}/modules/{post_module_id}",
    response_model=InlineEditResponse,
    summary="Inline edit module field",
)
async def edit_module_field(
    post_id: str,
    post_module_id: str,
    payload: InlineEditRequest,
    actor: CurrentActor,
    session: DbSession,
    gate: Gate,
    registry: ModuleRegistryDep,
) -> InlineEditResponse:
    editor = PlacementEditor(session, gate, registry)
    try:
        result = await editor.edit_field(
            post_id,
            post_module_id,
            actor,
            path=payload.path,
            value=payload.value,
            target=payload.scope,
            tier=Tier.parse(payload.mode),
        )
    except StrataError as exc:
        raise http_error(exc) from exc
    return InlineEditResponse(**result.to_payload(), revision_id=result.revision_id)
