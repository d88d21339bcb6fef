"""Credential store protocol and its PostgreSQL implementation."""

from datetime import datetime, timezone
from typing import Any, Optional, Protocol
from uuid import UUID, uuid4

import asyncpg
import structlog

from streamhub.errors import DuplicateError, NotFoundError
from streamhub.models.user import User, UserDraft

logger = structlog.get_logger(__name__)

USER_COLUMNS = (
    "id, email, password_hash, name, avatar, bio, is_admin, is_active, is_verified, "
    "last_login, password_changed_at, created_at, updated_at"
)

# id and created_at are fixed at insert; updated_at is stamped by the store
MUTABLE_COLUMNS = frozenset({
    "email",
    "password_hash",
    "name",
    "avatar",
    "bio",
    "is_admin",
    "is_active",
    "is_verified",
    "last_login",
    "password_changed_at",
})


class CredentialStore(Protocol):
    """Persistence boundary for user records.

    Implementations own email uniqueness (case-insensitive) and must raise
    DuplicateError from ``create`` when the email is taken, even under
    concurrent inserts. Writes after insert are per-column: ``update`` and
    ``record_login`` change only the fields they are given.
    """

    async def find_by_email(self, email: str) -> Optional[User]: ...

    async def find_by_id(self, user_id: UUID) -> Optional[User]: ...

    async def create(self, draft: UserDraft) -> User: ...

    async def update(self, user_id: UUID, **changes: Any) -> User: ...

    async def record_login(self, user_id: UUID, at: datetime) -> User: ...

    async def delete(self, user_id: UUID) -> bool: ...

    async def list_users(
        self,
        offset: int = 0,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> list[User]: ...

    async def count_users(
        self, search: Optional[str] = None, is_admin: Optional[bool] = None
    ) -> int: ...


def like_pattern(search: str) -> str:
    """Wrap ``search`` for ILIKE, escaping its own wildcards."""
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _filters(search: Optional[str] = None, is_admin: Optional[bool] = None):
    """Build a WHERE clause and its bound arguments."""
    conditions = []
    args: list[Any] = []
    if search:
        args.append(like_pattern(search))
        conditions.append(f"(name ILIKE ${len(args)} OR email ILIKE ${len(args)})")
    if is_admin is not None:
        args.append(is_admin)
        conditions.append(f"is_admin = ${len(args)}")
    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return where, args


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        password_hash=row["password_hash"],
        name=row["name"],
        avatar=row["avatar"],
        bio=row["bio"],
        is_admin=row["is_admin"],
        is_active=row["is_active"],
        is_verified=row["is_verified"],
        last_login=row["last_login"],
        password_changed_at=row["password_changed_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresUserStore:
    """CredentialStore backed by the ``users`` table.

    Uniqueness is enforced by the ``users_email_lower_idx`` unique index, so
    two racing inserts for the same email yield exactly one row.
    """

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def find_by_email(self, email: str) -> Optional[User]:
        """Get a user by email (case-insensitive).

        Args:
            email: Email to look up

        Returns:
            User including password hash, or None if not found
        """
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {USER_COLUMNS}
                FROM users
                WHERE LOWER(email) = LOWER($1)
                """,
                email,
            )

        if row is None:
            return None
        return _row_to_user(row)

    async def find_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by UUID.

        Args:
            user_id: User UUID

        Returns:
            User or None if not found
        """
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {USER_COLUMNS}
                FROM users
                WHERE id = $1
                """,
                user_id,
            )

        if row is None:
            return None
        return _row_to_user(row)

    async def create(self, draft: UserDraft) -> User:
        """Insert a new user row.

        Args:
            draft: New user fields with an already-hashed password

        Returns:
            Created User

        Raises:
            DuplicateError: If the email is already registered
        """
        user_id = uuid4()
        now = datetime.now(timezone.utc)

        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO users (
                        id, email, password_hash, name, avatar, bio,
                        is_admin, is_active, is_verified, created_at, updated_at
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
                    RETURNING {USER_COLUMNS}
                    """,
                    user_id,
                    draft.email,
                    draft.password_hash,
                    draft.name,
                    draft.avatar,
                    draft.bio,
                    draft.is_admin,
                    draft.is_active,
                    draft.is_verified,
                    now,
                    now,
                )
        except asyncpg.UniqueViolationError as e:
            logger.warning("user_create_duplicate_email", user_id=str(user_id))
            raise DuplicateError(draft.email) from e

        logger.info("user_created", user_id=str(user_id), is_admin=draft.is_admin)
        return _row_to_user(row)

    async def update(self, user_id: UUID, **changes: Any) -> User:
        """Write only the named columns of one user and bump ``updated_at``.

        Columns that are not named keep whatever the row holds now, so two
        writers touching different fields cannot undo each other.

        Args:
            user_id: User UUID
            **changes: Column values keyed by ``MUTABLE_COLUMNS`` names

        Returns:
            The updated User

        Raises:
            ValueError: If a key is not an updatable column
            DuplicateError: If the email was changed to one already in use
            NotFoundError: If the row no longer exists
        """
        unknown = set(changes) - MUTABLE_COLUMNS
        if unknown:
            raise ValueError(f"Not updatable: {', '.join(sorted(unknown))}")

        values = {**changes, "updated_at": datetime.now(timezone.utc)}
        # Column names come from MUTABLE_COLUMNS only; values are bound
        assignments = ", ".join(
            f"{column} = ${position}" for position, column in enumerate(values, start=1)
        )

        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    UPDATE users
                    SET {assignments}
                    WHERE id = ${len(values) + 1}
                    RETURNING {USER_COLUMNS}
                    """,
                    *values.values(),
                    user_id,
                )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(changes.get("email", "")) from e

        if row is None:
            logger.warning("user_update_not_found", user_id=str(user_id))
            raise NotFoundError()

        return _row_to_user(row)

    async def record_login(self, user_id: UUID, at: datetime) -> User:
        """Stamp ``last_login`` without touching any other credential column.

        Raises:
            NotFoundError: If the row no longer exists
        """
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE users
                SET last_login = $1, updated_at = $2
                WHERE id = $3
                RETURNING {USER_COLUMNS}
                """,
                at,
                datetime.now(timezone.utc),
                user_id,
            )

        if row is None:
            logger.warning("user_login_stamp_not_found", user_id=str(user_id))
            raise NotFoundError()

        return _row_to_user(row)

    async def delete(self, user_id: UUID) -> bool:
        """Hard-delete a user.

        Returns:
            True if the user was deleted, False if not found
        """
        async with self.pool.acquire() as conn:
            result = await conn.execute("DELETE FROM users WHERE id = $1", user_id)

        deleted = result == "DELETE 1"

        if deleted:
            logger.info("user_deleted", user_id=str(user_id))
        else:
            logger.warning("user_delete_not_found", user_id=str(user_id))

        return deleted

    async def list_users(
        self,
        offset: int = 0,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> list[User]:
        """Return users newest first.

        Args:
            offset: Rows to skip
            limit: Maximum rows to return; None for all
            search: Case-insensitive substring of name or email
        """
        where, args = _filters(search=search)
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {USER_COLUMNS}
                FROM users
                {where}
                ORDER BY created_at DESC
                OFFSET ${len(args) + 1}
                LIMIT ${len(args) + 2}
                """,
                *args,
                offset,
                limit,
            )

        return [_row_to_user(row) for row in rows]

    async def count_users(
        self, search: Optional[str] = None, is_admin: Optional[bool] = None
    ) -> int:
        """Count users matching ``search`` and, when given, the admin flag."""
        where, args = _filters(search=search, is_admin=is_admin)
        async with self.pool.acquire() as conn:
            count = await conn.fetchval(f"SELECT COUNT(*) FROM users {where}", *args)

        return count
