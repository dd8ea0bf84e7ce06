"""Module instance and post placement models."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, StringUUID, TimestampMixin, TypedModelMixin, UUIDMixin
from app.models.generated_dtos import (
    ModuleInstanceCreateDTO,
    ModuleInstancePatchDTO,
    PostModuleCreateDTO,
    PostModulePatchDTO,
)

MODULE_SCOPES = ("local", "global")


class ModuleInstance(
    TypedModelMixin[ModuleInstanceCreateDTO, ModuleInstancePatchDTO],
    Base,
    UUIDMixin,
    TimestampMixin,
):
    """Reusable content block.

    Local instances belong to exactly one post. Global instances are shared by
    slug and never edited per placement; placements carry overrides instead.
    """

    __tablename__ = "module_instances"

    type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    scope: Mapped[str] = mapped_column(String(10), default="local", nullable=False)
    global_slug: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    global_label: Mapped[str | None] = mapped_column(String(255), nullable=True)

    props: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, nullable=False)
    review_props: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    ai_review_props: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    @property
    def is_global(self) -> bool:
        return self.scope == "global"

    def __repr__(self) -> str:
        return f"<ModuleInstance {self.type} ({self.scope})>"


class PostModule(
    TypedModelMixin[PostModuleCreateDTO, PostModulePatchDTO],
    Base,
    UUIDMixin,
    TimestampMixin,
):
    """Placement of a module instance on a post."""

    __tablename__ = "post_modules"
    __table_args__ = (Index("ix_post_modules_post_order", "post_id", "order_index"),)

    post_id: Mapped[str] = mapped_column(
        StringUUID(),
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    module_id: Mapped[str] = mapped_column(
        StringUUID(),
        ForeignKey("module_instances.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    admin_label: Mapped[str | None] = mapped_column(String(255), nullable=True)

    overrides: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    review_overrides: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    ai_review_overrides: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    # Staged structural changes
    review_added: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    review_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    ai_review_added: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    ai_review_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<PostModule {self.post_id}:{self.order_index}>"
