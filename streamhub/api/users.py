"""User profile endpoints."""

from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends

from streamhub.api.dependencies import (
    AuthContext,
    get_user_service,
    optional_auth,
    require_admin_or_owner,
)
from streamhub.models.auth import (
    MessageResponse,
    PublicProfile,
    UpdateProfileRequest,
    UserSummary,
)
from streamhub.models.user import User
from streamhub.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])

require_owner = require_admin_or_owner("user_id")


@router.get("/{user_id}", response_model_exclude_none=True)
async def get_profile(
    user_id: UUID,
    context: Optional[AuthContext] = Depends(optional_auth),
    user_service: UserService = Depends(get_user_service),
) -> PublicProfile:
    """Public profile; the email is included for the owner or an admin."""
    user = await user_service.get_user(user_id)

    show_email = False
    if context is not None:
        if context.user_id == user.id:
            show_email = True
        else:
            viewer = await user_service.store.find_by_id(context.user_id)
            show_email = viewer is not None and viewer.is_admin

    return PublicProfile(
        id=user.id,
        name=user.name,
        avatar=user.avatar,
        bio=user.bio,
        is_verified=user.is_verified,
        created_at=user.created_at,
        email=user.email if show_email else None,
    )


@router.put("/{user_id}")
async def update_profile(
    user_id: UUID,
    request: UpdateProfileRequest,
    actor: User = Depends(require_owner),
    user_service: UserService = Depends(get_user_service),
) -> UserSummary:
    """Update name, avatar or bio (owner or admin).

    Raises:
        ForbiddenError 403: If the caller is neither the owner nor an admin
        NotFoundError 404: If the user does not exist
    """
    user = await user_service.update_profile(
        user_id,
        name=request.name,
        avatar=request.avatar,
        bio=request.bio,
    )
    logger.info("profile_update_requested", actor_id=str(actor.id), user_id=str(user_id))
    return UserSummary.from_user(user)


@router.delete("/{user_id}")
async def delete_account(
    user_id: UUID,
    actor: User = Depends(require_owner),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Delete an account (owner or admin).

    Raises:
        ForbiddenError 403: If the caller is neither the owner nor an admin,
            or an admin targets their own account
        NotFoundError 404: If the user does not exist
    """
    # Admins go through the same self-delete guard as /api/admin/users
    acting_admin_id = actor.id if actor.is_admin else None
    await user_service.delete_user(user_id, acting_admin_id=acting_admin_id)
    logger.info("account_deleted", actor_id=str(actor.id), user_id=str(user_id))
    return MessageResponse(message="User deleted successfully")
