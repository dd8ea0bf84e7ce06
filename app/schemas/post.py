"""Post schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

PostUpdateMode = Literal[
    "publish",
    "review",
    "ai-review",
    "approve",
    "approve-ai-review",
    "reject-review",
    "reject-ai-review",
]


class PostCreate(BaseModel):
    """Schema for creating a post."""

    type: str = Field(..., min_length=1, max_length=50)
    slug: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=500)
    locale: str = Field(default="en", min_length=2, max_length=10)
    fields: dict[str, Any] | None = None

    @field_validator("slug", "title", "type")
    @classmethod
    def _strip(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Value must not be blank")
        return stripped


class PostUpdate(BaseModel):
    """Transition request. Changed post fields are sent alongside ``mode``."""

    model_config = ConfigDict(extra="allow")

    mode: PostUpdateMode

    def changed_fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class SideEffectOutcomeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    ok: bool
    error: str | None = None


class PostTransitionResponse(BaseModel):
    """Result of a PATCH transition."""

    mode: PostUpdateMode
    promoted: bool
    message: str
    revision_id: str | None = None
    draft: dict[str, Any] | None = None
    removed_placements: list[str] = Field(default_factory=list)
    side_effects: list[SideEffectOutcomeResponse] = Field(default_factory=list)


class ModuleViewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    post_module_id: str
    module_instance_id: str
    type: str
    scope: str
    global_slug: str | None
    order_index: int
    locked: bool
    admin_label: str | None
    props: dict[str, Any]
    staged: bool


class PostViewResponse(BaseModel):
    """Post as resolved for one tier."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    locale: str
    tier: str
    fields: dict[str, Any]
    modules: list[ModuleViewResponse]
    tier_states: dict[str, str]
    author_id: str | None = None
    published_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PostCreateResponse(BaseModel):
    post: PostViewResponse
    revision_id: str
