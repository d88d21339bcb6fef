"""Admin API endpoints for user management."""

from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query, status

from streamhub.api.dependencies import get_user_service, require_admin
from streamhub.models.auth import (
    AdminCreateUserRequest,
    AdminStatsResponse,
    AdminUpdateUserRequest,
    MessageResponse,
    UserListResponse,
    UserSummary,
)
from streamhub.models.user import User
from streamhub.services.user_service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/stats")
async def get_stats(
    admin: User = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> AdminStatsResponse:
    """User and admin counts for the dashboard (admin only)."""
    return await user_service.stats()


@router.get("/users")
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = Query(default=None, max_length=100),
    admin: User = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserListResponse:
    """List users newest first, paged and optionally filtered (admin only).

    ``search`` matches name or email, case-insensitively.
    """
    result = await user_service.list_users(page=page, limit=limit, search=search)
    return UserListResponse(
        users=[UserSummary.from_user(u) for u in result.users],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
    )


@router.get("/users/{user_id}")
async def get_user(
    user_id: UUID,
    admin: User = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserSummary:
    """Get one user (admin only).

    Raises:
        NotFoundError 404: If user not found
    """
    user = await user_service.get_user(user_id)
    return UserSummary.from_user(user)


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: AdminCreateUserRequest,
    admin: User = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserSummary:
    """Create a new user (admin only).

    Raises:
        ValidationError 400: On missing or malformed fields
        ConflictError 409: If the email already exists
    """
    user = await user_service.admin_create_user(
        name=request.name,
        email=request.email,
        password=request.password,
        is_admin=request.is_admin,
    )

    logger.info(
        "admin_created_user",
        admin_id=str(admin.id),
        new_user_id=str(user.id),
        is_admin=user.is_admin,
    )

    return UserSummary.from_user(user)


@router.put("/users/{user_id}")
async def update_user(
    user_id: UUID,
    request: AdminUpdateUserRequest,
    admin: User = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserSummary:
    """Update user details (admin only).

    Raises:
        ForbiddenError 403: If an admin revokes their own admin flag
        NotFoundError 404: If user not found
        ConflictError 409: If the new email is taken
    """
    user = await user_service.admin_update_user(
        acting_admin_id=admin.id,
        user_id=user_id,
        name=request.name,
        email=request.email,
        avatar=request.avatar,
        bio=request.bio,
        is_admin=request.is_admin,
        is_active=request.is_active,
        is_verified=request.is_verified,
        password=request.password,
    )
    return UserSummary.from_user(user)


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: UUID,
    admin: User = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Delete a user (admin only).

    Admins cannot delete themselves to prevent lockout.

    Raises:
        ForbiddenError 403: If admin tries to delete themselves
        NotFoundError 404: If user not found
    """
    await user_service.delete_user(user_id, acting_admin_id=admin.id)

    logger.info(
        "admin_deleted_user",
        admin_id=str(admin.id),
        deleted_user_id=str(user_id),
    )
    return MessageResponse(message="User deleted successfully")
