"""User model referenced by posts and revisions."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, TypedModelMixin, UUIDMixin
from app.models.generated_dtos import UserCreateDTO, UserPatchDTO


class User(TypedModelMixin[UserCreateDTO, UserPatchDTO], Base, UUIDMixin, TimestampMixin):
    """CMS user. Credentials live with the external identity provider."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(50), default="editor", nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.email}>"
