"""Post, custom field and taxonomy assignment models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, StringUUID, TimestampMixin, TypedModelMixin, UUIDMixin
from app.models.generated_dtos import (
    PostCreateDTO,
    PostCustomFieldValueCreateDTO,
    PostCustomFieldValuePatchDTO,
    PostPatchDTO,
    PostTaxonomyTermCreateDTO,
    PostTaxonomyTermPatchDTO,
)

POST_STATUSES = ("draft", "review", "scheduled", "published", "archived")


class Post(TypedModelMixin[PostCreateDTO, PostPatchDTO], Base, UUIDMixin, TimestampMixin):
    """Editable content record with review and ai-review draft slots.

    ``review_draft`` / ``ai_review_draft`` hold only the keys an editor changed.
    A missing key inherits from the tier below; a key set to ``None`` clears it.
    """

    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_locale_slug", "locale", "slug"),
        Index("ix_posts_type_status", "type", "status"),
    )

    type: Mapped[str] = mapped_column(String(50), nullable=False)
    locale: Mapped[str] = mapped_column(String(10), default="en", nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)
    excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)

    # SEO
    meta_title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    meta_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    canonical_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    robots_json: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    jsonld_overrides: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    # Hierarchy
    parent_id: Mapped[str | None] = mapped_column(
        StringUUID(),
        ForeignKey("posts.id", ondelete="SET NULL"),
        nullable=True,
    )
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    featured_image_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Staged drafts
    review_draft: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    ai_review_draft: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    # A/B testing linkage
    ab_group_id: Mapped[str | None] = mapped_column(StringUUID(), nullable=True, index=True)
    ab_variation: Mapped[str | None] = mapped_column(String(10), nullable=True)

    author_id: Mapped[str | None] = mapped_column(
        StringUUID(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Post {self.locale}/{self.slug}>"


class PostCustomFieldValue(
    TypedModelMixin[PostCustomFieldValueCreateDTO, PostCustomFieldValuePatchDTO],
    Base,
    UUIDMixin,
    TimestampMixin,
):
    """Value of a post-type custom field for one post."""

    __tablename__ = "post_custom_field_values"
    __table_args__ = (
        UniqueConstraint("post_id", "field_slug", name="uq_post_custom_field_values_post_slug"),
    )

    post_id: Mapped[str] = mapped_column(
        StringUUID(),
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    field_slug: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[Any | None] = mapped_column(JSONB, nullable=True)

    def __repr__(self) -> str:
        return f"<PostCustomFieldValue {self.field_slug}>"


class PostTaxonomyTerm(
    TypedModelMixin[PostTaxonomyTermCreateDTO, PostTaxonomyTermPatchDTO],
    Base,
    UUIDMixin,
    TimestampMixin,
):
    """Assignment of a taxonomy term to a post."""

    __tablename__ = "post_taxonomy_terms"
    __table_args__ = (
        UniqueConstraint("post_id", "taxonomy_term_id", name="uq_post_taxonomy_terms_post_term"),
    )

    post_id: Mapped[str] = mapped_column(
        StringUUID(),
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    taxonomy_term_id: Mapped[str] = mapped_column(String(64), nullable=False)

    def __repr__(self) -> str:
        return f"<PostTaxonomyTerm {self.taxonomy_term_id}>"
