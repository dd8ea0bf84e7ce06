"""Tests for typed write layer."""

from __future__ import annotations

from typing import cast

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.generated_dtos import (
    PostModuleCreateDTO,
    PostPatchDTO,
    PostRevisionPatchDTO,
    UserCreateDTO,
    UserPatchDTO,
)
from app.models.module import PostModule
from app.models.post import Post
from app.models.revision import PostRevision
from app.models.user import User
from app.persistence.typed.errors import ImmutableRecordError, InvalidPatchFieldError


class FakeAsyncSession:
    """Minimal async session stub for adapter tests."""

    def __init__(self) -> None:
        self.added: list[object] = []
        self.deleted: list[object] = []
        self.fetched: dict[tuple[type[object], str], object] = {}

    def add(self, instance: object) -> None:
        self.added.append(instance)

    async def delete(self, instance: object) -> None:
        self.deleted.append(instance)

    async def get(self, model_cls: type[object], model_id: str) -> object | None:
        return self.fetched.get((model_cls, model_id))


def test_model_create_and_patch_user() -> None:
    session = FakeAsyncSession()
    typed_session = cast(AsyncSession, session)

    user = User.create(typed_session, UserCreateDTO(email="user@example.com", role="translator"))

    assert isinstance(user, User)
    assert user.email == "user@example.com"
    assert user.role == "translator"
    assert session.added == [user]

    user.patch(typed_session, UserPatchDTO.from_partial({"full_name": "Test User"}))

    assert user.full_name == "Test User"


def test_create_drops_unset_defaults() -> None:
    session = FakeAsyncSession()

    placement = PostModule.create(
        cast(AsyncSession, session),
        PostModuleCreateDTO(post_id="post-1", module_id="module-1", review_added=True),
    )

    assert placement.review_added is True
    assert placement.locked is None
    assert placement.ai_review_added is None


@pytest.mark.asyncio
async def test_model_get_uses_session_get() -> None:
    session = FakeAsyncSession()
    typed_session = cast(AsyncSession, session)
    user = User(email="fetch@example.com")
    session.fetched[(User, "user-1")] = user

    found = await User.get(typed_session, "user-1")

    assert found is user


def test_patch_rejects_identity_post_fields() -> None:
    session = FakeAsyncSession()
    typed_session = cast(AsyncSession, session)
    post = Post(type="page", slug="about", title="About", locale="en")

    with pytest.raises(InvalidPatchFieldError):
        post.patch(typed_session, PostPatchDTO.from_partial({"type": "post"}))
    with pytest.raises(InvalidPatchFieldError):
        post.patch(typed_session, PostPatchDTO.from_partial({"locale": "de"}))


def test_patch_copies_json_payloads() -> None:
    session = FakeAsyncSession()
    post = Post(type="page", slug="about", title="About", locale="en")
    draft = {"custom_fields": {"color": "red"}}

    post.patch(cast(AsyncSession, session), PostPatchDTO.from_partial({"review_draft": draft}))
    draft["custom_fields"]["color"] = "blue"

    assert post.review_draft == {"custom_fields": {"color": "red"}}


@pytest.mark.asyncio
async def test_revisions_are_append_only() -> None:
    session = FakeAsyncSession()
    typed_session = cast(AsyncSession, session)
    revision = PostRevision(post_id="post-1", sequence=1, mode="source", action="create", snapshot={})

    with pytest.raises(InvalidPatchFieldError):
        revision.patch(typed_session, PostRevisionPatchDTO.from_partial({"action": "edited"}))
    with pytest.raises(ImmutableRecordError):
        await revision.delete(typed_session)
    assert session.deleted == []


def test_patch_dto_is_sparse() -> None:
    dto = PostPatchDTO.from_partial({"title": "Updated", "excerpt": None})

    assert dto.to_patch_dict() == {"title": "Updated", "excerpt": None}
