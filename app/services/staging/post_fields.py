"""Field-level write path for post columns, custom fields and taxonomy terms."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    InvalidDraftPayloadError,
    InvalidInputError,
    InvalidStatusError,
    PostNotFoundError,
    SlugConflictError,
)
from app.models.base import utc_now
from app.models.generated_dtos import (
    PostCreateDTO,
    PostCustomFieldValueCreateDTO,
    PostCustomFieldValuePatchDTO,
    PostPatchDTO,
    PostTaxonomyTermCreateDTO,
)
from app.models.post import POST_STATUSES, Post, PostCustomFieldValue, PostTaxonomyTerm
from app.services.staging.draft_resolver import resolve_field, resolve_object
from app.services.staging.tiers import Tier

logger = logging.getLogger(__name__)

DRAFTABLE_POST_FIELDS = (
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
)
CUSTOM_FIELDS_KEY = "custom_fields"
TAXONOMY_TERMS_KEY = "taxonomy_term_ids"
DRAFTABLE_KEYS = frozenset(DRAFTABLE_POST_FIELDS) | {CUSTOM_FIELDS_KEY, TAXONOMY_TERMS_KEY}

_REQUIRED_TEXT_FIELDS = ("slug", "title")
_OBJECT_FIELDS = ("robots_json", "jsonld_overrides")


def validate_draftable_payload(payload: Any) -> dict[str, Any]:
    """Check a draft or source payload is an object of draftable keys."""
    if not isinstance(payload, Mapping):
        raise InvalidDraftPayloadError("Draft payload must be an object")
    unknown = sorted(set(payload) - DRAFTABLE_KEYS)
    if unknown:
        raise InvalidDraftPayloadError(
            f"Unknown post fields: {', '.join(unknown)}",
            {"fields": unknown},
        )
    custom_fields = payload.get(CUSTOM_FIELDS_KEY)
    if custom_fields is not None and not isinstance(custom_fields, Mapping):
        raise InvalidDraftPayloadError("custom_fields must be an object")
    term_ids = payload.get(TAXONOMY_TERMS_KEY)
    if term_ids is not None and not isinstance(term_ids, list):
        raise InvalidDraftPayloadError("taxonomy_term_ids must be a list")
    for name in _OBJECT_FIELDS:
        value = payload.get(name)
        if value is not None and not isinstance(value, Mapping):
            raise InvalidDraftPayloadError(f"{name} must be an object")
    return dict(payload)


def resolve_post_fields(
    tier: Tier | str,
    source: Mapping[str, Any],
    review_draft: Mapping[str, Any] | None = None,
    ai_review_draft: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Effective draftable values at ``tier``.

    Custom fields resolve slug by slug; every other key resolves through the
    sparse drafts as a whole value.
    """
    resolved: dict[str, Any] = {}
    for key in DRAFTABLE_POST_FIELDS + (TAXONOMY_TERMS_KEY,):
        resolved[key] = resolve_field(tier, key, source, review_draft, ai_review_draft)

    resolved[CUSTOM_FIELDS_KEY] = resolve_object(
        tier,
        source.get(CUSTOM_FIELDS_KEY) or {},
        (review_draft or {}).get(CUSTOM_FIELDS_KEY),
        (ai_review_draft or {}).get(CUSTOM_FIELDS_KEY),
    )
    if resolved[TAXONOMY_TERMS_KEY] is None:
        resolved[TAXONOMY_TERMS_KEY] = []
    return resolved


async def require_post(session: AsyncSession, post_id: str) -> Post:
    """Load a live (not soft-deleted) post or raise :class:`PostNotFoundError`."""
    post = await Post.get(session, post_id)
    if post is None or post.deleted_at is not None:
        raise PostNotFoundError(post_id)
    return post


def _dedupe_term_ids(term_ids: Iterable[Any]) -> list[str]:
    seen: dict[str, None] = {}
    for term_id in term_ids:
        value = str(term_id or "").strip()
        if value:
            seen.setdefault(value, None)
    return list(seen)


class PostFieldWriter:
    """Writes source values of one post through the typed write layer."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_post(
        self,
        *,
        post_type: str,
        slug: str,
        title: str,
        locale: str = "en",
        author_id: str | None = None,
        fields: Mapping[str, Any] | None = None,
    ) -> Post:
        """Create a post in ``draft`` and apply its initial source values."""
        slug = self._require_text("slug", slug)
        title = self._require_text("title", title)
        await self._ensure_slug_available(slug, locale, exclude_post_id=None)

        post = Post.create(
            self.session,
            PostCreateDTO(
                type=post_type,
                slug=slug,
                title=title,
                locale=locale,
                status="draft",
                author_id=author_id,
            ),
        )
        await self.session.flush()

        if fields:
            await self.write_source(post, fields, partial_custom_fields=False)
        logger.info(
            "Post created",
            extra={"post_id": post.id, "post_type": post_type, "locale": locale},
        )
        return post

    async def write_source(
        self,
        post: Post,
        values: Mapping[str, Any],
        *,
        partial_custom_fields: bool = True,
    ) -> None:
        """Write draftable values (columns, custom fields, taxonomy) to source."""
        payload = validate_draftable_payload(values)
        columns = {key: value for key, value in payload.items() if key in DRAFTABLE_POST_FIELDS}
        if columns:
            await self.apply_fields(post, columns)
        if CUSTOM_FIELDS_KEY in payload:
            custom_fields = payload[CUSTOM_FIELDS_KEY] or {}
            if partial_custom_fields:
                await self.upsert_custom_fields(post.id, custom_fields)
            else:
                await self.replace_custom_fields(post.id, custom_fields)
        if TAXONOMY_TERMS_KEY in payload:
            await self.replace_taxonomy_terms(post.id, payload[TAXONOMY_TERMS_KEY] or [])

    async def apply_fields(self, post: Post, fields: Mapping[str, Any]) -> Post:
        """Validate and patch source post columns."""
        unknown = sorted(set(fields) - set(DRAFTABLE_POST_FIELDS))
        if unknown:
            raise InvalidInputError(
                f"Fields cannot be written: {', '.join(unknown)}",
                {"fields": unknown},
            )

        updates = dict(fields)
        for name in _REQUIRED_TEXT_FIELDS:
            if name in updates:
                updates[name] = self._require_text(name, updates[name])

        if "status" in updates:
            status = updates["status"]
            if status not in POST_STATUSES:
                raise InvalidStatusError(str(status))
            if status == "published" and post.published_at is None:
                updates["published_at"] = utc_now()

        if "order_index" in updates:
            order_index = updates["order_index"]
            if order_index is None:
                updates["order_index"] = 0
            elif isinstance(order_index, bool) or not isinstance(order_index, int):
                raise InvalidInputError("order_index must be an integer")

        if updates.get("parent_id") is not None and updates["parent_id"] == post.id:
            raise InvalidInputError("A post cannot be its own parent")

        if "slug" in updates and updates["slug"] != post.slug:
            await self._ensure_slug_available(updates["slug"], post.locale, exclude_post_id=post.id)

        post.patch(self.session, PostPatchDTO.from_partial(updates))
        await self.session.flush()
        return post

    async def custom_field_values(self, post_id: str) -> dict[str, Any]:
        rows = await self._custom_field_rows(post_id)
        return {row.field_slug: row.value for row in rows}

    async def taxonomy_term_ids(self, post_id: str) -> list[str]:
        rows = await self._taxonomy_rows(post_id)
        return sorted(row.taxonomy_term_id for row in rows)

    async def upsert_custom_fields(self, post_id: str, values: Mapping[str, Any]) -> None:
        """Insert or update the given custom field slugs; other slugs are kept."""
        existing = {row.field_slug: row for row in await self._custom_field_rows(post_id)}
        self._write_custom_fields(post_id, values, existing)
        await self.session.flush()

    async def replace_custom_fields(self, post_id: str, values: Mapping[str, Any]) -> None:
        """Make the post's custom field rows equal ``values``."""
        kept: dict[str, PostCustomFieldValue] = {}
        for row in await self._custom_field_rows(post_id):
            if row.field_slug in values:
                kept[row.field_slug] = row
            else:
                await row.delete(self.session)
        self._write_custom_fields(post_id, values, kept)
        await self.session.flush()

    def _write_custom_fields(
        self,
        post_id: str,
        values: Mapping[str, Any],
        existing: Mapping[str, PostCustomFieldValue],
    ) -> None:
        for slug, value in values.items():
            row = existing.get(str(slug))
            if row is None:
                PostCustomFieldValue.create(
                    self.session,
                    PostCustomFieldValueCreateDTO(post_id=post_id, field_slug=str(slug), value=value),
                )
            else:
                row.patch(self.session, PostCustomFieldValuePatchDTO.from_partial({"value": value}))

    async def replace_taxonomy_terms(self, post_id: str, term_ids: Iterable[Any]) -> None:
        """Make the post's taxonomy assignments equal ``term_ids`` (order-insensitive)."""
        wanted = _dedupe_term_ids(term_ids)
        current: set[str] = set()
        for row in await self._taxonomy_rows(post_id):
            if row.taxonomy_term_id in wanted:
                current.add(row.taxonomy_term_id)
            else:
                await row.delete(self.session)
        for term_id in wanted:
            if term_id not in current:
                PostTaxonomyTerm.create(
                    self.session,
                    PostTaxonomyTermCreateDTO(post_id=post_id, taxonomy_term_id=term_id),
                )
        await self.session.flush()

    async def source_values(self, post: Post) -> dict[str, Any]:
        """Current source values for every draftable key."""
        values = {name: getattr(post, name) for name in DRAFTABLE_POST_FIELDS}
        values[CUSTOM_FIELDS_KEY] = await self.custom_field_values(post.id)
        values[TAXONOMY_TERMS_KEY] = await self.taxonomy_term_ids(post.id)
        return values

    async def _custom_field_rows(self, post_id: str) -> list[PostCustomFieldValue]:
        result = await self.session.execute(
            select(PostCustomFieldValue)
            .where(PostCustomFieldValue.post_id == post_id)
            .order_by(PostCustomFieldValue.field_slug)
        )
        return list(result.scalars().all())

    async def _taxonomy_rows(self, post_id: str) -> list[PostTaxonomyTerm]:
        result = await self.session.execute(
            select(PostTaxonomyTerm).where(PostTaxonomyTerm.post_id == post_id)
        )
        return list(result.scalars().all())

    async def _ensure_slug_available(
        self,
        slug: str,
        locale: str,
        *,
        exclude_post_id: str | None,
    ) -> None:
        query = select(Post.id).where(
            Post.locale == locale,
            Post.slug == slug,
            Post.deleted_at.is_(None),
        )
        if exclude_post_id is not None:
            query = query.where(Post.id != exclude_post_id)
        result = await self.session.execute(query.limit(1))
        if result.scalar_one_or_none() is not None:
            raise SlugConflictError(slug, locale)

    @staticmethod
    def _require_text(name: str, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise InvalidInputError(f"{name} is required", {"field": name})
        return text
