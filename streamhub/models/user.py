"""User record models."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

DEFAULT_AVATAR = "👤"


class UserDraft(BaseModel):
    """Fields needed to insert a new user; the hash is already computed."""

    name: str
    email: str
    password_hash: str
    avatar: str = DEFAULT_AVATAR
    bio: str = ""
    is_admin: bool = False
    is_active: bool = True
    is_verified: bool = False


class User(BaseModel):
    """A persisted user including credential state.

    ``password_hash`` is excluded from every dump so a record can never leak
    it through serialization.
    """

    id: UUID
    email: str
    password_hash: str = Field(exclude=True, repr=False)
    name: str
    avatar: str = DEFAULT_AVATAR
    bio: str = ""
    is_admin: bool = False
    is_active: bool = True
    is_verified: bool = False
    last_login: Optional[datetime] = None
    password_changed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
