"""Auth and user-management request/response models.

Bodies travel as camelCase JSON (``accessToken``, ``confirmPassword``) to
match the web client; Python code uses the snake_case field names.

Request fields are optional at the schema level: presence and format rules
live in the services so that direct callers and HTTP callers get the same
``ValidationError`` messages.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from streamhub.models.user import User


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class RegisterRequest(CamelModel):
    """Self-service registration.

    Attributes:
        name: Display name (2-100 chars after trimming)
        email: Login email, matched case-insensitively
        password: At least 6 characters
        confirm_password: When given, must equal ``password``
    """

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = None


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


class VerifyRequest(CamelModel):
    token: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None
    confirm_password: Optional[str] = None


class UpdateProfileRequest(CamelModel):
    """Owner-editable profile fields; omitted fields are left unchanged."""

    name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None


class AdminCreateUserRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    is_admin: bool = False


class AdminUpdateUserRequest(CamelModel):
    """Admin edit of any user; omitted fields are left unchanged."""

    name: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    is_admin: Optional[bool] = None
    is_active: Optional[bool] = None
    is_verified: Optional[bool] = None
    password: Optional[str] = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class UserSummary(CamelModel):
    """User representation for API responses; never carries the hash."""

    id: UUID
    email: str
    name: str
    avatar: str
    bio: str
    is_admin: bool
    is_active: bool
    is_verified: bool
    last_login: Optional[datetime] = None
    password_changed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls.model_validate(user.model_dump())


class PublicProfile(CamelModel):
    """Profile visible to anyone; ``email`` only for the owner or an admin."""

    id: UUID
    name: str
    avatar: str
    bio: str
    is_verified: bool
    created_at: datetime
    email: Optional[str] = None


class TokenPair(CamelModel):
    """Access + refresh tokens issued together.

    Attributes:
        access_token: Short-lived JWT for API access
        refresh_token: Long-lived JWT used only to mint access tokens
        expires_in: Access token lifetime in seconds
    """

    access_token: str
    refresh_token: str
    expires_in: int


class AuthResponse(CamelModel):
    message: str
    user: UserSummary
    tokens: TokenPair


class RefreshResponse(CamelModel):
    access_token: str
    expires_in: int


class VerifiedUser(CamelModel):
    id: str
    email: str
    name: str


class VerifyResponse(CamelModel):
    valid: bool
    user: Optional[VerifiedUser] = None
    reason: Optional[str] = None


class UserListResponse(CamelModel):
    """One page of the admin user listing.

    Attributes:
        users: Users on this page, newest first
        total: Users matching the search across all pages
        page: 1-based page number
        limit: Page size
        pages: Number of pages at this size
    """

    users: list[UserSummary]
    total: int
    page: int
    limit: int
    pages: int


class AdminStatsResponse(CamelModel):
    total_users: int
    total_admins: int


class MessageResponse(CamelModel):
    message: str


# ---------------------------------------------------------------------------
# Service results
# ---------------------------------------------------------------------------


class AuthResult(BaseModel):
    """Outcome of a successful register or login."""

    user: User
    tokens: TokenPair


class VerifyResult(BaseModel):
    """Advisory verification outcome; ``reason`` is set when invalid."""

    valid: bool
    user_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    reason: Optional[str] = None


class UserPage(BaseModel):
    """A page of users plus the paging metadata."""

    users: list[User]
    total: int
    page: int
    limit: int
    pages: int
