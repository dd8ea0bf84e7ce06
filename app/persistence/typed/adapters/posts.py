"""Post-related write adapters."""

from __future__ import annotations

from app.models.generated_dtos import (
    PostCreateDTO,
    PostCustomFieldValueCreateDTO,
    PostCustomFieldValuePatchDTO,
    PostPatchDTO,
    PostTaxonomyTermCreateDTO,
    PostTaxonomyTermPatchDTO,
)
from app.models.post import Post, PostCustomFieldValue, PostTaxonomyTerm
from app.persistence.typed.adapters._base import BaseWriteAdapter

# Identity columns (type, locale, author) are fixed at creation.
POST_PATCH_ALLOWLIST = {
    "slug",
    "title",
    "status",
    "excerpt",
    "meta_title",
    "meta_description",
    "canonical_url",
    "robots_json",
    "jsonld_overrides",
    "parent_id",
    "order_index",
    "featured_image_id",
    "review_draft",
    "ai_review_draft",
    "ab_group_id",
    "ab_variation",
    "published_at",
    "deleted_at",
}

POST_CUSTOM_FIELD_VALUE_PATCH_ALLOWLIST = {
    "value",
}

POST_TAXONOMY_TERM_PATCH_ALLOWLIST: set[str] = set()

_POST_ADAPTER = BaseWriteAdapter[
    Post,
    PostCreateDTO,
    PostPatchDTO,
](
    model_cls=Post,
    patch_allowlist=POST_PATCH_ALLOWLIST,
)

_POST_CUSTOM_FIELD_VALUE_ADAPTER = BaseWriteAdapter[
    PostCustomFieldValue,
    PostCustomFieldValueCreateDTO,
    PostCustomFieldValuePatchDTO,
](
    model_cls=PostCustomFieldValue,
    patch_allowlist=POST_CUSTOM_FIELD_VALUE_PATCH_ALLOWLIST,
)

_POST_TAXONOMY_TERM_ADAPTER = BaseWriteAdapter[
    PostTaxonomyTerm,
    PostTaxonomyTermCreateDTO,
    PostTaxonomyTermPatchDTO,
](
    model_cls=PostTaxonomyTerm,
    patch_allowlist=POST_TAXONOMY_TERM_PATCH_ALLOWLIST,
)


def register() -> None:
    """Register post adapters."""
    from app.persistence.typed.registry import register_adapter

    register_adapter(Post, _POST_ADAPTER)
    register_adapter(PostCustomFieldValue, _POST_CUSTOM_FIELD_VALUE_ADAPTER)
    register_adapter(PostTaxonomyTerm, _POST_TAXONOMY_TERM_ADAPTER)
