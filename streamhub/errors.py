"""Typed error taxonomy shared by services, dependencies and handlers.

Every error carries the HTTP status it renders as and a machine-readable
code. Callers switch on the class, clients switch on ``code``.
"""

from typing import Optional

from streamhub.models.token import TokenKind


class StreamHubError(Exception):
    """Base class for all errors rendered by the API boundary."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(self.message)


class ValidationError(StreamHubError):
    """Malformed or missing input."""

    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class ConflictError(StreamHubError):
    """Email address already registered."""

    status_code = 409
    code = "EMAIL_TAKEN"
    default_message = "Email is already registered"


class AuthError(StreamHubError):
    """Bad credentials or bad current password."""

    status_code = 401
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


class ForbiddenError(StreamHubError):
    """Inactive account or insufficient role."""

    status_code = 403
    code = "FORBIDDEN"
    default_message = "Access denied"


class MissingTokenError(StreamHubError):
    status_code = 401
    code = "TOKEN_MISSING"
    default_message = "Token not provided. Use: Authorization: Bearer <token>"


class TokenError(StreamHubError):
    """Base for token verification failures; remembers the expected kind."""

    status_code = 401

    def __init__(self, message: Optional[str] = None, *, kind: TokenKind = TokenKind.ACCESS):
        self.kind = kind
        super().__init__(message)


class ExpiredError(TokenError):
    default_message = "Token has expired"

    @property
    def code(self) -> str:  # type: ignore[override]
        if self.kind is TokenKind.REFRESH:
            return "REFRESH_TOKEN_EXPIRED"
        return "TOKEN_EXPIRED"


class InvalidSignatureError(TokenError):
    code = "TOKEN_INVALID"
    default_message = "Token is invalid"


class NotFoundError(StreamHubError):
    """Referenced user no longer exists (404, or 401 in auth contexts)."""

    status_code = 404
    code = "USER_NOT_FOUND"
    default_message = "User not found"


class InternalError(StreamHubError):
    """Hashing or signing infrastructure failure."""


class DuplicateError(Exception):
    """Raised by a credential store when the email is already present."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Duplicate email: {email}")
