"""JWT access and refresh token issuance and verification."""

import time
from typing import Callable, Optional

import jwt
import structlog
from pydantic import ValidationError as PayloadValidationError

from streamhub.config import Settings
from streamhub.errors import ExpiredError, InternalError, InvalidSignatureError
from streamhub.models.token import TokenKind, TokenPayload

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["sub", "kind", "iat", "exp"]


class TokenIssuer:
    """Creates and verifies self-contained signed tokens.

    Each kind is signed with its own secret. There is no server-side token
    store: a token stays valid until ``exp`` no matter what happens to the
    session, so revocation before expiry is not possible.
    """

    def __init__(self, settings: Settings, clock: Optional[Callable[[], float]] = None):
        self.settings = settings
        self._clock = clock or time.time

    def _secret(self, kind: TokenKind) -> str:
        if kind is TokenKind.REFRESH:
            return self.settings.jwt_refresh_secret
        return self.settings.jwt_access_secret

    def _lifetime(self, kind: TokenKind) -> int:
        if kind is TokenKind.REFRESH:
            return self.settings.refresh_token_expire_seconds
        return self.settings.access_token_expire_seconds

    def issue(self, user_id: str, kind: TokenKind) -> str:
        """Create a signed token of the given kind for ``user_id``.

        Raises:
            InternalError: If signing fails
        """
        now = int(self._clock())
        payload = TokenPayload(
            subject=str(user_id),
            kind=kind,
            issued_at=now,
            expires_at=now + self._lifetime(kind),
        )
        try:
            token = jwt.encode(payload.to_claims(), self._secret(kind), algorithm=JWT_ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            logger.error("token_signing_failed", kind=kind.value, error=str(e))
            raise InternalError("Token signing failed") from e
        logger.debug(
            "token_issued",
            user_id=str(user_id),
            kind=kind.value,
            expires_at=payload.expires_at,
        )
        return token

    def issue_access_token(self, user_id: str) -> str:
        return self.issue(user_id, TokenKind.ACCESS)

    def issue_refresh_token(self, user_id: str) -> str:
        return self.issue(user_id, TokenKind.REFRESH)

    def verify(self, token: str, expected_kind: TokenKind) -> TokenPayload:
        """Decode a token and check signature, shape, kind and expiry.

        Expiry is checked against the injected clock; a token is expired once
        ``now >= exp + token_leeway_seconds``.

        Args:
            token: Encoded JWT string
            expected_kind: Kind the caller is willing to accept

        Returns:
            Validated TokenPayload

        Raises:
            ExpiredError: If the token has expired
            InvalidSignatureError: If the token is malformed, tampered, has an
                unexpected payload shape, or is of the wrong kind
        """
        try:
            claims = jwt.decode(
                token,
                self._secret(expected_kind),
                algorithms=[JWT_ALGORITHM],
                options={"verify_exp": False, "verify_iat": False, "require": REQUIRED_CLAIMS},
            )
        except jwt.InvalidTokenError as e:
            logger.info("token_rejected", kind=expected_kind.value, error=str(e))
            raise InvalidSignatureError(kind=expected_kind) from e

        try:
            payload = TokenPayload.model_validate(claims)
        except PayloadValidationError as e:
            logger.info("token_payload_invalid", kind=expected_kind.value)
            raise InvalidSignatureError(kind=expected_kind) from e

        if payload.kind is not expected_kind:
            logger.info(
                "token_kind_mismatch",
                expected=expected_kind.value,
                actual=payload.kind.value,
            )
            raise InvalidSignatureError("Token type is invalid", kind=expected_kind)

        if self._clock() >= payload.expires_at + self.settings.token_leeway_seconds:
            raise ExpiredError(kind=expected_kind)

        return payload
