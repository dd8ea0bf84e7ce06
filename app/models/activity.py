"""Activity log model."""

from __future__ import annotations

from typing import Any

from sqlalchemy import String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, StringUUID, TimestampMixin, TypedModelMixin, UUIDMixin
from app.models.generated_dtos import ActivityLogEntryCreateDTO, ActivityLogEntryPatchDTO


class ActivityLogEntry(
    TypedModelMixin[ActivityLogEntryCreateDTO, ActivityLogEntryPatchDTO],
    Base,
    UUIDMixin,
    TimestampMixin,
):
    """Audit trail entry written by the database activity log backend."""

    __tablename__ = "activity_log_entries"

    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    user_id: Mapped[str | None] = mapped_column(StringUUID(), nullable=True)
    entity_type: Mapped[str] = mapped_column(String(50), default="post", nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    details: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSONB, nullable=True)

    def __repr__(self) -> str:
        return f"<ActivityLogEntry {self.action} {self.entity_id}>"
