"""Auto-generated dataclass DTOs from SQLAlchemy models.

Generated by: scripts/generate_model_dtos.py
Do not edit manually; regenerate instead.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, ClassVar


@dataclass(slots=True)
class ActivityLogEntryCreateDTO:
    """Create DTO for `ActivityLogEntry`."""

    action: str
    user_id: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    details: dict[str, Any] | None = None

    _DROP_NONE_FIELDS: ClassVar[set[str]] = {
        "entity_type",
    }

    def to_orm_kwargs(self) -> dict[str, Any]:
        payload = asdict(self)
        for key in self._DROP_NONE_FIELDS:
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload

@dataclass(slots=True)
class ActivityLogEntryPatchDTO:
    """Sparse patch DTO for `ActivityLogEntry`."""

    action: str | None = None
    user_id: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    details: dict[str, Any] | None = None
    _provided_fields: set[str] = field(
        default_factory=set,
        repr=False,
        compare=False,
    )

    @classmethod
    def from_partial(cls, payload: dict[str, Any]) -> "ActivityLogEntryPatchDTO":
        obj = cls(**payload)
        obj._provided_fields = set(payload.keys())
        return obj

    def to_patch_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("_provided_fields", None)
        return {
            key: value
            for key, value in payload.items()
            if key in self._provided_fields
        }

@dataclass(slots=True)
class ModuleInstanceCreateDTO:
    """Create DTO for `ModuleInstance`."""

    type: str
    scope: str | None = None
    global_slug: str | None = None
    global_label: str | None = None
    props: dict[str, Any] | None = None
    review_props: dict[str, Any] | None = None
    ai_review_props: dict[str, Any] | None = None

    _DROP_NONE_FIELDS: ClassVar[set[str]] = {
        "scope",
        "props",
    }

    def to_orm_kwargs(self) -> dict[str, Any]:
        payload = asdict(self)
        for key in self._DROP_NONE_FIELDS:
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload

@dataclass(slots=True)
class ModuleInstancePatchDTO:
    """Sparse patch DTO for `ModuleInstance`."""

    type: str | None = None
    scope: str | None = None
    global_slug: str | None = None
    global_label: str | None = None
    props: dict[str, Any] | None = None
    review_props: dict[str, Any] | None = None
    ai_review_props: dict[str, Any] | None = None
    _provided_fields: set[str] = field(
        default_factory=set,
        repr=False,
        compare=False,
    )

    @classmethod
    def from_partial(cls, payload: dict[str, Any]) -> "ModuleInstancePatchDTO":
        obj = cls(**payload)
        obj._provided_fields = set(payload.keys())
        return obj

    def to_patch_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("_provided_fields", None)
        return {
            key: value
            for key, value in payload.items()
            if key in self._provided_fields
        }

@dataclass(slots=True)
class PostCreateDTO:
    """Create DTO for `Post`."""

    type: str
    slug: str
    title: str
    locale: str | None = None
    status: str | None = None
    excerpt: str | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    canonical_url: str | None = None
    robots_json: dict[str, Any] | None = None
    jsonld_overrides: dict[str, Any] | None = None
    parent_id: str | None = None
    order_index: int | None = None
    featured_image_id: str | None = None
    review_draft: dict[str, Any] | None = None
    ai_review_draft: dict[str, Any] | None = None
    ab_group_id: str | None = None
    ab_variation: str | None = None
    author_id: str | None = None
    published_at: datetime | None = None
    deleted_at: datetime | None = None

    _DROP_NONE_FIELDS: ClassVar[set[str]] = {
        "locale",
        "status",
        "order_index",
    }

    def to_orm_kwargs(self) -> dict[str, Any]:
        payload = asdict(self)
        for key in self._DROP_NONE_FIELDS:
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload

@dataclass(slots=True)
class PostPatchDTO:
    """Sparse patch DTO for `Post`."""

    type: str | None = None
    locale: str | None = None
    slug: str | None = None
    title: str | None = None
    status: str | None = None
    excerpt: str | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    canonical_url: str | None = None
    robots_json: dict[str, Any] | None = None
    jsonld_overrides: dict[str, Any] | None = None
    parent_id: str | None = None
    order_index: int | None = None
    featured_image_id: str | None = None
    review_draft: dict[str, Any] | None = None
    ai_review_draft: dict[str, Any] | None = None
    ab_group_id: str | None = None
    ab_variation: str | None = None
    author_id: str | None = None
    published_at: datetime | None = None
    deleted_at: datetime | None = None
    _provided_fields: set[str] = field(
        default_factory=set,
        repr=False,
        compare=False,
    )

    @classmethod
    def from_partial(cls, payload: dict[str, Any]) -> "PostPatchDTO":
        obj = cls(**payload)
        obj._provided_fields = set(payload.keys())
        return obj

    def to_patch_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("_provided_fields", None)
        return {
            key: value
            for key, value in payload.items()
            if key in self._provided_fields
        }

@dataclass(slots=True)
class PostCustomFieldValueCreateDTO:
    """Create DTO for `PostCustomFieldValue`."""

    post_id: str
    field_slug: str
    value: Any | None = None

    _DROP_NONE_FIELDS: ClassVar[set[str]] = set()

    def to_orm_kwargs(self) -> dict[str, Any]:
        payload = asdict(self)
        for key in self._DROP_NONE_FIELDS:
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload

@dataclass(slots=True)
class PostCustomFieldValuePatchDTO:
    """Sparse patch DTO for `PostCustomFieldValue`."""

    post_id: str | None = None
    field_slug: str | None = None
    value: Any | None = None
    _provided_fields: set[str] = field(
        default_factory=set,
        repr=False,
        compare=False,
    )

    @classmethod
    def from_partial(cls, payload: dict[str, Any]) -> "PostCustomFieldValuePatchDTO":
        obj = cls(**payload)
        obj._provided_fields = set(payload.keys())
        return obj

    def to_patch_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("_provided_fields", None)
        return {
            key: value
            for key, value in payload.items()
            if key in self._provided_fields
        }

@dataclass(slots=True)
class PostModuleCreateDTO:
    """Create DTO for `PostModule`."""

    post_id: str
    module_id: str
    order_index: int | None = None
    locked: bool | None = None
    admin_label: str | None = None
    overrides: dict[str, Any] | None = None
    review_overrides: dict[str, Any] | None = None
    ai_review_overrides: dict[str, Any] | None = None
    review_added: bool | None = None
    review_deleted: bool | None = None
    ai_review_added: bool | None = None
    ai_review_deleted: bool | None = None

    _DROP_NONE_FIELDS: ClassVar[set[str]] = {
        "order_index",
        "locked",
        "review_added",
        "review_deleted",
        "ai_review_added",
        "ai_review_deleted",
    }

    def to_orm_kwargs(self) -> dict[str, Any]:
        payload = asdict(self)
        for key in self._DROP_NONE_FIELDS:
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload

@dataclass(slots=True)
class PostModulePatchDTO:
    """Sparse patch DTO for `PostModule`."""

    post_id: str | None = None
    module_id: str | None = None
    order_index: int | None = None
    locked: bool | None = None
    admin_label: str | None = None
    overrides: dict[str, Any] | None = None
    review_overrides: dict[str, Any] | None = None
    ai_review_overrides: dict[str, Any] | None = None
    review_added: bool | None = None
    review_deleted: bool | None = None
    ai_review_added: bool | None = None
    ai_review_deleted: bool | None = None
    _provided_fields: set[str] = field(
        default_factory=set,
        repr=False,
        compare=False,
    )

    @classmethod
    def from_partial(cls, payload: dict[str, Any]) -> "PostModulePatchDTO":
        obj = cls(**payload)
        obj._provided_fields = set(payload.keys())
        return obj

    def to_patch_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("_provided_fields", None)
        return {
            key: value
            for key, value in payload.items()
            if key in self._provided_fields
        }

@dataclass(slots=True)
class PostRevisionCreateDTO:
    """Create DTO for `PostRevision`."""

    post_id: str
    sequence: int
    mode: str
    action: str
    snapshot: dict[str, Any]
    user_id: str | None = None

    _DROP_NONE_FIELDS: ClassVar[set[str]] = set()

    def to_orm_kwargs(self) -> dict[str, Any]:
        payload = asdict(self)
        for key in self._DROP_NONE_FIELDS:
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload

@dataclass(slots=True)
class PostRevisionPatchDTO:
    """Sparse patch DTO for `PostRevision`."""

    post_id: str | None = None
    sequence: int | None = None
    mode: str | None = None
    action: str | None = None
    snapshot: dict[str, Any] | None = None
    user_id: str | None = None
    _provided_fields: set[str] = field(
        default_factory=set,
        repr=False,
        compare=False,
    )

    @classmethod
    def from_partial(cls, payload: dict[str, Any]) -> "PostRevisionPatchDTO":
        obj = cls(**payload)
        obj._provided_fields = set(payload.keys())
        return obj

    def to_patch_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("_provided_fields", None)
        return {
            key: value
            for key, value in payload.items()
            if key in self._provided_fields
        }

@dataclass(slots=True)
class PostTaxonomyTermCreateDTO:
    """Create DTO for `PostTaxonomyTerm`."""

    post_id: str
    taxonomy_term_id: str

    _DROP_NONE_FIELDS: ClassVar[set[str]] = set()

    def to_orm_kwargs(self) -> dict[str, Any]:
        payload = asdict(self)
        for key in self._DROP_NONE_FIELDS:
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload

@dataclass(slots=True)
class PostTaxonomyTermPatchDTO:
    """Sparse patch DTO for `PostTaxonomyTerm`."""

    post_id: str | None = None
    taxonomy_term_id: str | None = None
    _provided_fields: set[str] = field(
        default_factory=set,
        repr=False,
        compare=False,
    )

    @classmethod
    def from_partial(cls, payload: dict[str, Any]) -> "PostTaxonomyTermPatchDTO":
        obj = cls(**payload)
        obj._provided_fields = set(payload.keys())
        return obj

    def to_patch_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("_provided_fields", None)
        return {
            key: value
            for key, value in payload.items()
            if key in self._provided_fields
        }

@dataclass(slots=True)
class UserCreateDTO:
    """Create DTO for `User`."""

    email: str
    full_name: str | None = None
    role: str | None = None
    is_active: bool | None = None

    _DROP_NONE_FIELDS: ClassVar[set[str]] = {
        "role",
        "is_active",
    }

    def to_orm_kwargs(self) -> dict[str, Any]:
        payload = asdict(self)
        for key in self._DROP_NONE_FIELDS:
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload

@dataclass(slots=True)
class UserPatchDTO:
    """Sparse patch DTO for `User`."""

    email: str | None = None
    full_name: str | None = None
    role: str | None = None
    is_active: bool | None = None
    _provided_fields: set[str] = field(
        default_factory=set,
        repr=False,
        compare=False,
    )

    @classmethod
    def from_partial(cls, payload: dict[str, Any]) -> "UserPatchDTO":
        obj = cls(**payload)
        obj._provided_fields = set(payload.keys())
        return obj

    def to_patch_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("_provided_fields", None)
        return {
            key: value
            for key, value in payload.items()
            if key in self._provided_fields
        }

__all__ = [
    "ActivityLogEntryCreateDTO",
    "ActivityLogEntryPatchDTO",
    "ModuleInstanceCreateDTO",
    "ModuleInstancePatchDTO",
    "PostCreateDTO",
    "PostPatchDTO",
    "PostCustomFieldValueCreateDTO",
    "PostCustomFieldValuePatchDTO",
    "PostModuleCreateDTO",
    "PostModulePatchDTO",
    "PostRevisionCreateDTO",
    "PostRevisionPatchDTO",
    "PostTaxonomyTermCreateDTO",
    "PostTaxonomyTermPatchDTO",
    "UserCreateDTO",
    "UserPatchDTO",
]
