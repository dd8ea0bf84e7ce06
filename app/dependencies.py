"""FastAPI dependencies shared across routes."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.models.user import User
from app.services.activity_log import ActivityLog, get_activity_log
from app.services.module_fields import ModuleFieldRegistry, get_module_field_registry
from app.services.post_webhooks import WebhookDispatcher, get_webhook_dispatcher
from app.services.staging.authorization import (
    Actor,
    AuthorizationGate,
    RolePermissionGate,
    build_actor,
)

MISSING_IDENTITY_DETAIL = "Missing caller identity"
UNKNOWN_USER_DETAIL = "Unknown or inactive user"

DbSession = Annotated[AsyncSession, Depends(get_session)]


async def get_current_actor(
    session: DbSession,
    x_user_id: Annotated[str | None, Header()] = None,
) -> Actor:
    """Build the caller from upstream identity headers.

    Authentication happens before this service; the user id must still match an
    active user row, and the role always comes from that row.
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=MISSING_IDENTITY_DETAIL,
        )

    user = await session.get(User, user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNKNOWN_USER_DETAIL,
        )

    return build_actor(user.id, user.role)


def get_authorization_gate() -> AuthorizationGate:
    return RolePermissionGate()


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
Gate = Annotated[AuthorizationGate, Depends(get_authorization_gate)]
ActivityLogDep = Annotated[ActivityLog, Depends(get_activity_log)]
WebhooksDep = Annotated[WebhookDispatcher, Depends(get_webhook_dispatcher)]
ModuleRegistryDep = Annotated[ModuleFieldRegistry, Depends(get_module_field_registry)]
