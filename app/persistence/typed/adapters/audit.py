"""User and activity log write adapters."""

from __future__ import annotations

from app.models.activity import ActivityLogEntry
from app.models.generated_dtos import (
    ActivityLogEntryCreateDTO,
    ActivityLogEntryPatchDTO,
    UserCreateDTO,
    UserPatchDTO,
)
from app.models.user import User
from app.persistence.typed.adapters._base import BaseWriteAdapter

USER_PATCH_ALLOWLIST = {
    "full_name",
    "role",
    "is_active",
}

ACTIVITY_LOG_ENTRY_PATCH_ALLOWLIST: set[str] = set()

_USER_ADAPTER = BaseWriteAdapter[
    User,
    UserCreateDTO,
    UserPatchDTO,
](
    model_cls=User,
    patch_allowlist=USER_PATCH_ALLOWLIST,
)

_ACTIVITY_LOG_ENTRY_ADAPTER = BaseWriteAdapter[
    ActivityLogEntry,
    ActivityLogEntryCreateDTO,
    ActivityLogEntryPatchDTO,
](
    model_cls=ActivityLogEntry,
    patch_allowlist=ACTIVITY_LOG_ENTRY_PATCH_ALLOWLIST,
    deletable=False,
)


def register() -> None:
    """Register user and audit adapters."""
    from app.persistence.typed.registry import register_adapter

    register_adapter(User, _USER_ADAPTER)
    register_adapter(ActivityLogEntry, _ACTIVITY_LOG_ENTRY_ADAPTER)
