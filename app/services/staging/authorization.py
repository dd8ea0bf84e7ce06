"""Role and permission checks for staging transitions.

Callers pass an explicit :class:`Actor` into every transition. Permissions may be
scoped to one post type with a ``:<post_type>`` suffix, e.g. ``posts.publish:page``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from app.config import settings
from app.services.staging.tiers import Tier

PERM_POSTS_CREATE = "posts.create"
PERM_POSTS_EDIT = "posts.edit"
PERM_POSTS_PUBLISH = "posts.publish"
PERM_POSTS_ARCHIVE = "posts.archive"
PERM_REVISIONS_MANAGE = "posts.revisions.manage"
PERM_REVIEW_SAVE = "posts.review.save"
PERM_REVIEW_APPROVE = "posts.review.approve"
PERM_AI_REVIEW_SAVE = "posts.ai-review.save"
PERM_AI_REVIEW_APPROVE = "posts.ai-review.approve"
WILDCARD = "*"

_SAVE_PERMISSIONS = {
    Tier.REVIEW: PERM_REVIEW_SAVE,
    Tier.AI_REVIEW: PERM_AI_REVIEW_SAVE,
}
_APPROVE_PERMISSIONS = {
    Tier.REVIEW: PERM_REVIEW_APPROVE,
    Tier.AI_REVIEW: PERM_AI_REVIEW_APPROVE,
}

# Statuses any editor may set; everything else needs publish/archive rights.
OPEN_STATUSES = frozenset({"draft", "review"})

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    "admin": frozenset({WILDCARD}),
    "editor_admin": frozenset(
        {
            PERM_POSTS_CREATE,
            PERM_POSTS_EDIT,
            PERM_POSTS_PUBLISH,
            PERM_POSTS_ARCHIVE,
            PERM_REVISIONS_MANAGE,
            PERM_REVIEW_SAVE,
            PERM_REVIEW_APPROVE,
            PERM_AI_REVIEW_SAVE,
            PERM_AI_REVIEW_APPROVE,
        }
    ),
    "editor": frozenset(
        {
            PERM_POSTS_CREATE,
            PERM_POSTS_EDIT,
            PERM_REVIEW_SAVE,
            PERM_AI_REVIEW_SAVE,
        }
    ),
    "translator": frozenset({PERM_POSTS_EDIT, PERM_REVIEW_SAVE}),
    "ai_agent": frozenset({PERM_AI_REVIEW_SAVE}),
}


@dataclass(frozen=True, slots=True)
class Actor:
    """Caller identity for one request."""

    user_id: str | None
    role: str | None
    permissions: frozenset[str] = field(default_factory=frozenset)

    def allows(self, permission: str, post_type: str | None = None) -> bool:
        if WILDCARD in self.permissions or permission in self.permissions:
            return True
        return bool(post_type) and f"{permission}:{post_type}" in self.permissions


def build_actor(
    user_id: str | None,
    role: str | None,
    extra_permissions: Iterable[str] = (),
) -> Actor:
    """Build an actor from the role table plus configured and explicit grants."""
    normalized_role = (role or "").strip().lower() or None
    permissions = set(ROLE_PERMISSIONS.get(normalized_role or "", frozenset()))
    permissions.update(settings.role_permission_overrides.get(normalized_role or "", []))
    permissions.update(extra_permissions)
    return Actor(user_id=user_id, role=normalized_role, permissions=frozenset(permissions))


class AuthorizationGate(Protocol):
    """Authorization decisions consumed by the staging engine."""

    def can_update_status(self, actor: Actor, target_status: str | None, post_type: str) -> bool:
        """Whether ``actor`` may commit ``target_status`` on a post of ``post_type``."""

    def can_approve(self, actor: Actor, tier: Tier, post_type: str) -> bool:
        """Whether ``actor`` may approve or reject the ``tier`` draft."""

    def can_save_draft(self, actor: Actor, tier: Tier, post_type: str) -> bool:
        """Whether ``actor`` may write into the ``tier`` draft."""

    def can_update_source(self, actor: Actor, post_type: str) -> bool:
        """Whether ``actor`` may write source columns directly."""

    def can_revert_revision(self, actor: Actor, post_type: str) -> bool:
        """Whether ``actor`` may restore a revision."""

    def can_edit_modules(self, actor: Actor, tier: Tier, post_type: str) -> bool:
        """Whether ``actor`` may change module placements at ``tier``."""

    def can_create_post(self, actor: Actor, post_type: str) -> bool:
        """Whether ``actor`` may create posts of ``post_type``."""


class RolePermissionGate:
    """Permission-key based implementation of :class:`AuthorizationGate`."""

    def can_update_status(self, actor: Actor, target_status: str | None, post_type: str) -> bool:
        if not target_status or target_status in OPEN_STATUSES:
            return True
        if target_status == "archived":
            return actor.allows(PERM_POSTS_ARCHIVE, post_type)
        return actor.allows(PERM_POSTS_PUBLISH, post_type)

    def can_approve(self, actor: Actor, tier: Tier, post_type: str) -> bool:
        permission = _APPROVE_PERMISSIONS.get(tier)
        return permission is not None and actor.allows(permission, post_type)

    def can_save_draft(self, actor: Actor, tier: Tier, post_type: str) -> bool:
        permission = _SAVE_PERMISSIONS.get(tier)
        return permission is not None and actor.allows(permission, post_type)

    def can_update_source(self, actor: Actor, post_type: str) -> bool:
        return actor.allows(PERM_POSTS_EDIT, post_type)

    def can_revert_revision(self, actor: Actor, post_type: str) -> bool:
        return actor.allows(PERM_REVISIONS_MANAGE, post_type)

    def can_edit_modules(self, actor: Actor, tier: Tier, post_type: str) -> bool:
        if tier is Tier.SOURCE:
            return self.can_update_source(actor, post_type)
        return self.can_save_draft(actor, tier, post_type)

    def can_create_post(self, actor: Actor, post_type: str) -> bool:
        return actor.allows(PERM_POSTS_CREATE, post_type) or actor.allows(PERM_POSTS_EDIT, post_type)
