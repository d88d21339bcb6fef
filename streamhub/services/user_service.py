"""User management service for profile edits and admin CRUD."""

import math
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

import structlog

from streamhub.errors import (
    ConflictError,
    DuplicateError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from streamhub.models.auth import AdminStatsResponse, UserPage
from streamhub.models.user import DEFAULT_AVATAR, User, UserDraft
from streamhub.services.password_service import PasswordHasher
from streamhub.services.user_store import CredentialStore
from streamhub.services.validators import (
    validate_bio,
    validate_email,
    validate_name,
    validate_new_password,
)

logger = structlog.get_logger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class UserService:
    """Service for user CRUD operations on top of the credential store."""

    def __init__(self, store: CredentialStore, hasher: PasswordHasher):
        self.store = store
        self.hasher = hasher

    async def get_user(self, user_id: UUID) -> User:
        """Get a user by id.

        Raises:
            NotFoundError: If no such user exists
        """
        user = await self.store.find_by_id(user_id)
        if user is None:
            raise NotFoundError()
        return user

    async def list_users(
        self,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        search: Optional[str] = None,
    ) -> UserPage:
        """List users newest first, one page at a time.

        Args:
            page: 1-based page number
            limit: Page size, 1 to MAX_PAGE_SIZE
            search: Case-insensitive match on name or email

        Raises:
            ValidationError: If page or limit is out of range
        """
        if page < 1:
            raise ValidationError("Page must be at least 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")

        search = search.strip() if search else None
        total = await self.store.count_users(search=search)
        users = await self.store.list_users(
            offset=(page - 1) * limit, limit=limit, search=search
        )

        return UserPage(
            users=users,
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit),
        )

    async def stats(self) -> AdminStatsResponse:
        return AdminStatsResponse(
            total_users=await self.store.count_users(),
            total_admins=await self.store.count_users(is_admin=True),
        )

    async def _apply(self, user_id: UUID, changes: dict[str, Any]) -> User:
        """Persist ``changes`` for an existing user; no-op when empty."""
        if not changes:
            return await self.get_user(user_id)
        try:
            return await self.store.update(user_id, **changes)
        except DuplicateError as e:
            raise ConflictError() from e

    async def update_profile(
        self,
        user_id: UUID,
        name: Optional[str] = None,
        avatar: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> User:
        """Update owner-editable profile fields that are not None."""
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = validate_name(name)
        if avatar is not None:
            changes["avatar"] = avatar.strip() or DEFAULT_AVATAR
        if bio is not None:
            changes["bio"] = validate_bio(bio)

        user = await self._apply(user_id, changes)
        logger.info("profile_updated", user_id=str(user_id))
        return user

    async def admin_create_user(
        self,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        is_admin: bool = False,
    ) -> User:
        """Create a user on behalf of an admin.

        Raises:
            ValidationError: On missing or malformed input
            ConflictError: If the email is already registered
        """
        if not name or not email or not password:
            raise ValidationError("Name, email and password are required")

        normalized_email = validate_email(email)
        validate_new_password(password)
        clean_name = validate_name(name)

        password_hash = await self.hasher.hash_async(password)

        try:
            user = await self.store.create(
                UserDraft(
                    name=clean_name,
                    email=normalized_email,
                    password_hash=password_hash,
                    is_admin=is_admin,
                )
            )
        except DuplicateError as e:
            raise ConflictError() from e

        return user

    async def admin_update_user(
        self,
        acting_admin_id: UUID,
        user_id: UUID,
        name: Optional[str] = None,
        email: Optional[str] = None,
        avatar: Optional[str] = None,
        bio: Optional[str] = None,
        is_admin: Optional[bool] = None,
        is_active: Optional[bool] = None,
        is_verified: Optional[bool] = None,
        password: Optional[str] = None,
    ) -> User:
        """Update any field of a user that is not None.

        A new password is hashed and stamps ``password_changed_at``.

        Raises:
            NotFoundError: If the user does not exist
            ForbiddenError: If an admin tries to revoke their own admin flag
                or deactivate themselves
            ValidationError: On malformed input
            ConflictError: If the new email is already in use
        """
        if acting_admin_id == user_id and (is_admin is False or is_active is False):
            raise ForbiddenError("Admins cannot revoke their own admin access or deactivate themselves")

        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = validate_name(name)
        if email is not None:
            changes["email"] = validate_email(email)
        if avatar is not None:
            changes["avatar"] = avatar.strip() or DEFAULT_AVATAR
        if bio is not None:
            changes["bio"] = validate_bio(bio)
        if is_admin is not None:
            changes["is_admin"] = is_admin
        if is_active is not None:
            changes["is_active"] = is_active
        if is_verified is not None:
            changes["is_verified"] = is_verified
        if password is not None:
            validate_new_password(password)
            changes["password_hash"] = await self.hasher.hash_async(password)
            changes["password_changed_at"] = datetime.now(timezone.utc)

        user = await self._apply(user_id, changes)

        logger.info(
            "admin_updated_user",
            admin_id=str(acting_admin_id),
            target_user_id=str(user_id),
        )
        return user

    async def delete_user(self, user_id: UUID, acting_admin_id: Optional[UUID] = None) -> None:
        """Hard-delete a user.

        Outstanding tokens for the user stop working because their subject
        no longer resolves.

        Raises:
            ForbiddenError: If an admin tries to delete their own account
            NotFoundError: If the user does not exist
        """
        if acting_admin_id is not None and acting_admin_id == user_id:
            raise ForbiddenError("Cannot delete your own admin account")

        if not await self.store.delete(user_id):
            raise NotFoundError()
