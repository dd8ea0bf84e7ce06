"""Module placement schemas."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

TierMode = Literal["source", "review", "ai-review"]


class ModuleAddRequest(BaseModel):
    """Schema for placing a module on a post."""

    type: str = Field(..., min_length=1, max_length=100)
    scope: Literal["local", "global"] = "local"
    props: dict[str, Any] | None = None
    global_slug: str | None = Field(default=None, max_length=255)
    global_label: str | None = Field(default=None, max_length=255)
    order_index: int | None = Field(default=None, ge=0)
    locked: bool = False
    admin_label: str | None = Field(default=None, max_length=255)
    mode: TierMode = "source"


class PlacementUpdateRequest(BaseModel):
    order_index: int | None = Field(default=None, ge=0)
    overrides: dict[str, Any] | None = None
    locked: bool | None = None
    admin_label: str | None = Field(default=None, max_length=255)
    mode: TierMode = "source"


class InlineEditRequest(BaseModel):
    """Single field edit; ``scope`` selects props or placement overrides."""

    path: str = Field(..., min_length=1, max_length=500)
    value: Any = None
    scope: Literal["props", "overrides"] | None = None
    mode: TierMode = "source"


class PlacementChangeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    post_module_id: str
    module_instance_id: str
    tier: str
    removed: bool
    staged: bool
    revision_id: str | None = None


class InlineEditResponse(BaseModel):
    scope: str
    props: dict[str, Any] | None = None
    overrides: dict[str, Any] | None = None
    revision_id: str | None = None
