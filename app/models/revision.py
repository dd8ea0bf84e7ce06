"""Append-only post revision model."""

from __future__ import annotations

from typing import Any

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, StringUUID, TimestampMixin, TypedModelMixin, UUIDMixin
from app.models.generated_dtos import PostRevisionCreateDTO, PostRevisionPatchDTO


class PostRevision(
    TypedModelMixin[PostRevisionCreateDTO, PostRevisionPatchDTO],
    Base,
    UUIDMixin,
    TimestampMixin,
):
    """Immutable snapshot of a post recorded after a committing mutation.

    ``snapshot["kind"]`` is ``active-versions`` for composite snapshots and
    ``draft`` for single-tier ones. ``sequence`` orders revisions per post.
    """

    __tablename__ = "post_revisions"
    __table_args__ = (
        UniqueConstraint("post_id", "sequence", name="uq_post_revisions_post_sequence"),
    )

    post_id: Mapped[str] = mapped_column(
        StringUUID(),
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    mode: Mapped[str] = mapped_column(String(20), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    snapshot: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    user_id: Mapped[str | None] = mapped_column(
        StringUUID(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    @property
    def kind(self) -> str:
        return str((self.snapshot or {}).get("kind") or "")

    def __repr__(self) -> str:
        return f"<PostRevision {self.post_id}#{self.sequence} {self.action}>"
