"""Authentication service: registration, login and token lifecycle."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import structlog

from streamhub.config import Settings
from streamhub.errors import (
    AuthError,
    ConflictError,
    DuplicateError,
    ForbiddenError,
    NotFoundError,
    TokenError,
    ValidationError,
)
from streamhub.models.auth import AuthResult, RefreshResponse, TokenPair, VerifyResult
from streamhub.models.token import TokenKind
from streamhub.models.user import DEFAULT_AVATAR, User, UserDraft
from streamhub.services.password_service import PasswordHasher
from streamhub.services.token_service import TokenIssuer
from streamhub.services.user_store import CredentialStore
from streamhub.services.validators import (
    normalize_email,
    validate_email,
    validate_name,
    validate_new_password,
)

logger = structlog.get_logger(__name__)

# Identical for unknown email and wrong password
INVALID_CREDENTIALS = "Invalid email or password"


def parse_subject(subject: str) -> Optional[UUID]:
    """Convert a token subject to a user id, or None if it is not a UUID."""
    try:
        return UUID(subject)
    except ValueError:
        return None


class AuthService:
    """Orchestrates the credential store, password hasher and token issuer.

    Holds no per-session state: every operation is a single pass over its
    collaborators, and anything it hands out is a self-contained token.
    """

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        settings: Settings,
    ):
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.settings = settings

    def _issue_pair(self, user: User) -> TokenPair:
        user_id = str(user.id)
        return TokenPair(
            access_token=self.tokens.issue_access_token(user_id),
            refresh_token=self.tokens.issue_refresh_token(user_id),
            expires_in=self.settings.access_token_expire_seconds,
        )

    async def register(
        self,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        confirm_password: Optional[str] = None,
    ) -> AuthResult:
        """Create a self-service account and sign it in.

        Args:
            name: Display name
            email: Login email (stored lowercased)
            password: Plain-text password, at least 6 characters
            confirm_password: Optional confirmation, must equal password

        Returns:
            AuthResult with the new user and a fresh token pair

        Raises:
            ValidationError: On missing or malformed input (before any lookup)
            ConflictError: If the email is already registered
        """
        if not name or not email or not password:
            raise ValidationError("Name, email and password are required")

        normalized_email = validate_email(email)
        validate_new_password(password, confirm_password)
        clean_name = validate_name(name)

        if await self.store.find_by_email(normalized_email) is not None:
            logger.info("registration_conflict")
            raise ConflictError()

        password_hash = await self.hasher.hash_async(password)

        try:
            user = await self.store.create(
                UserDraft(
                    name=clean_name,
                    email=normalized_email,
                    password_hash=password_hash,
                    avatar=DEFAULT_AVATAR,
                    bio="",
                    is_admin=False,
                    is_active=True,
                    is_verified=False,
                )
            )
        except DuplicateError as e:
            # Lost a race with a concurrent registration of the same email
            logger.info("registration_conflict", concurrent=True)
            raise ConflictError() from e

        logger.info("user_registered", user_id=str(user.id))
        return AuthResult(user=user, tokens=self._issue_pair(user))

    async def login(self, email: Optional[str], password: Optional[str]) -> AuthResult:
        """Authenticate with email and password.

        Raises:
            ValidationError: If email or password is missing
            AuthError: If the email is unknown or the password is wrong
                (same message for both)
            ForbiddenError: If the credentials are right but the account is
                disabled
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = await self.store.find_by_email(normalize_email(email))

        if user is None:
            logger.info("login_failed", reason="unknown_email")
            raise AuthError(INVALID_CREDENTIALS)

        if not await self.hasher.verify_async(password, user.password_hash):
            logger.info("login_failed", reason="wrong_password", user_id=str(user.id))
            raise AuthError(INVALID_CREDENTIALS)

        if not user.is_active:
            logger.info("login_rejected_inactive", user_id=str(user.id))
            raise ForbiddenError("Your account has been deactivated", code="ACCOUNT_DISABLED")

        # last_login only; concurrent edits to other columns are kept
        try:
            user = await self.store.record_login(user.id, datetime.now(timezone.utc))
        except NotFoundError as e:
            raise AuthError(INVALID_CREDENTIALS) from e

        logger.info("user_logged_in", user_id=str(user.id))
        return AuthResult(user=user, tokens=self._issue_pair(user))

    async def refresh(self, refresh_token: Optional[str]) -> RefreshResponse:
        """Mint a new access token from a refresh token.

        The refresh token itself is not rotated and stays valid until it
        expires.

        Raises:
            ValidationError: If no token is given
            ExpiredError: If the refresh token has expired
            InvalidSignatureError: If it is malformed, tampered or not a
                refresh token
            NotFoundError: If its subject no longer exists (401)
        """
        if not refresh_token:
            raise ValidationError("Refresh token is required")

        payload = self.tokens.verify(refresh_token, TokenKind.REFRESH)
        user_id = parse_subject(payload.subject)
        if user_id is None:
            logger.info("refresh_rejected_unknown_user", subject=payload.subject)
            raise NotFoundError(status_code=401)

        return await self.refresh_for_subject(user_id)

    async def refresh_for_subject(self, user_id: UUID) -> RefreshResponse:
        """Mint an access token for the subject of an already-verified refresh token.

        Raises:
            NotFoundError: If the user no longer exists (401)
        """
        user = await self.store.find_by_id(user_id)

        if user is None:
            logger.info("refresh_rejected_unknown_user", subject=str(user_id))
            raise NotFoundError(status_code=401)

        logger.info("access_token_refreshed", user_id=str(user.id))
        return RefreshResponse(
            access_token=self.tokens.issue_access_token(str(user.id)),
            expires_in=self.settings.access_token_expire_seconds,
        )

    async def verify(self, token: str) -> VerifyResult:
        """Check an access token without failing the caller.

        Returns:
            VerifyResult; when invalid, ``reason`` holds the error code
        """
        try:
            payload = self.tokens.verify(token, TokenKind.ACCESS)
        except TokenError as e:
            return VerifyResult(valid=False, reason=e.code)

        user_id = parse_subject(payload.subject)
        user = await self.store.find_by_id(user_id) if user_id else None

        if user is None:
            return VerifyResult(valid=False, reason=NotFoundError.code)

        return VerifyResult(
            valid=True,
            user_id=str(user.id),
            email=user.email,
            name=user.name,
        )

    async def change_password(
        self,
        user_id: UUID,
        current_password: Optional[str],
        new_password: Optional[str],
        confirm_password: Optional[str] = None,
    ) -> User:
        """Replace the password of an already-authenticated user.

        Args:
            user_id: Id from the verified access token, never from the body

        Raises:
            ValidationError: On missing fields, reused password, short
                password or confirmation mismatch
            NotFoundError: If the user no longer exists (401)
            AuthError: If ``current_password`` is wrong
        """
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")
        if current_password == new_password:
            raise ValidationError("New password must differ from the current password")
        validate_new_password(new_password, confirm_password, field="New password")

        user = await self.store.find_by_id(user_id)
        if user is None:
            raise NotFoundError(status_code=401)

        if not await self.hasher.verify_async(current_password, user.password_hash):
            logger.info("password_change_rejected", user_id=str(user_id))
            raise AuthError("Current password is incorrect")

        try:
            user = await self.store.update(
                user_id,
                password_hash=await self.hasher.hash_async(new_password),
                password_changed_at=datetime.now(timezone.utc),
            )
        except NotFoundError as e:
            raise NotFoundError(status_code=401) from e

        logger.info("password_changed", user_id=str(user_id))
        return user

    async def logout(self) -> str:
        """Stateless logout; the client is responsible for discarding tokens."""
        return "Logout successful. Please discard your tokens on the client"
