"""In-process credential store for development and tests."""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from streamhub.errors import DuplicateError, NotFoundError
from streamhub.models.user import User, UserDraft
from streamhub.services.user_store import MUTABLE_COLUMNS

logger = structlog.get_logger(__name__)


def _matches(user: User, search: Optional[str], is_admin: Optional[bool]) -> bool:
    if is_admin is not None and user.is_admin != is_admin:
        return False
    if search:
        needle = search.lower()
        return needle in user.name.lower() or needle in user.email.lower()
    return True


class InMemoryUserStore:
    """CredentialStore holding users in a dict keyed by id.

    No method awaits between reading and writing, so a check-and-insert in
    ``create`` is atomic with respect to other coroutines on the loop.
    Records are copied on the way in and out, and ``update`` applies only
    the named fields to the stored record.
    """

    def __init__(self):
        self._users: dict[UUID, User] = {}

    def _id_for_email(self, email: str) -> Optional[UUID]:
        key = email.strip().lower()
        for user_id, user in self._users.items():
            if user.email.lower() == key:
                return user_id
        return None

    async def find_by_email(self, email: str) -> Optional[User]:
        user_id = self._id_for_email(email)
        if user_id is None:
            return None
        return self._users[user_id].model_copy()

    async def find_by_id(self, user_id: UUID) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy() if user is not None else None

    async def create(self, draft: UserDraft) -> User:
        if self._id_for_email(draft.email) is not None:
            raise DuplicateError(draft.email)

        now = datetime.now(timezone.utc)
        user = User(
            id=uuid4(),
            email=draft.email,
            password_hash=draft.password_hash,
            name=draft.name,
            avatar=draft.avatar,
            bio=draft.bio,
            is_admin=draft.is_admin,
            is_active=draft.is_active,
            is_verified=draft.is_verified,
            created_at=now,
            updated_at=now,
        )
        self._users[user.id] = user
        logger.info("user_created", user_id=str(user.id), is_admin=user.is_admin)
        return user.model_copy()

    async def update(self, user_id: UUID, **changes: Any) -> User:
        unknown = set(changes) - MUTABLE_COLUMNS
        if unknown:
            raise ValueError(f"Not updatable: {', '.join(sorted(unknown))}")

        current = self._users.get(user_id)
        if current is None:
            raise NotFoundError()

        email = changes.get("email")
        if email is not None:
            owner = self._id_for_email(email)
            if owner is not None and owner != user_id:
                raise DuplicateError(email)

        stored = current.model_copy(
            update={**changes, "updated_at": datetime.now(timezone.utc)}
        )
        self._users[user_id] = stored
        return stored.model_copy()

    async def record_login(self, user_id: UUID, at: datetime) -> User:
        return await self.update(user_id, last_login=at)

    async def delete(self, user_id: UUID) -> bool:
        deleted = self._users.pop(user_id, None) is not None
        if deleted:
            logger.info("user_deleted", user_id=str(user_id))
        return deleted

    async def list_users(
        self,
        offset: int = 0,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> list[User]:
        users = sorted(
            (u for u in self._users.values() if _matches(u, search, None)),
            key=lambda u: u.created_at,
            reverse=True,
        )
        end = None if limit is None else offset + limit
        return [u.model_copy() for u in users[offset:end]]

    async def count_users(
        self, search: Optional[str] = None, is_admin: Optional[bool] = None
    ) -> int:
        return sum(1 for u in self._users.values() if _matches(u, search, is_admin))
