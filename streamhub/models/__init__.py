"""Models package exports."""

from streamhub.models.auth import (
    AuthResponse,
    AuthResult,
    TokenPair,
    UserSummary,
    VerifyResult,
)
from streamhub.models.token import TokenKind, TokenPayload
from streamhub.models.user import User, UserDraft

__all__ = [
    "AuthResponse",
    "AuthResult",
    "TokenKind",
    "TokenPair",
    "TokenPayload",
    "User",
    "UserDraft",
    "UserSummary",
    "VerifyResult",
]
