"""Revision schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.post import SideEffectOutcomeResponse


class RevisionUserResponse(BaseModel):
    id: str
    email: str | None = None


class RevisionSummaryResponse(BaseModel):
    id: str
    sequence: int
    mode: str
    action: str
    created_at: datetime
    user: RevisionUserResponse | None = None


class RevisionListResponse(BaseModel):
    data: list[RevisionSummaryResponse]


class RevisionDetailResponse(BaseModel):
    """Full revision including its snapshot payload."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    post_id: str
    sequence: int
    mode: str
    action: str
    snapshot: dict[str, Any]
    user_id: str | None
    created_at: datetime


class RevisionCompareResponse(BaseModel):
    diff: dict[str, dict[str, Any]]
    has_changes: bool


class RestoreResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    revision_id: str
    kind: str
    new_revision_id: str | None = None
    restored_modules: list[str] = Field(default_factory=list)
    skipped_modules: list[str] = Field(default_factory=list)
    side_effects: list[SideEffectOutcomeResponse] = Field(default_factory=list)
