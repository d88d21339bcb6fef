"""Decoded JWT payload models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TokenKind(str, Enum):
    """Kind claim embedded in every signed token."""

    ACCESS = "access"
    REFRESH = "refresh"


class TokenPayload(BaseModel):
    """Validated claims of an access or refresh token.

    Built from the raw JWT claims dict, so field aliases follow the JWT
    registered claim names (``sub``, ``iat``, ``exp``).

    Attributes:
        subject: User id the token was issued for
        kind: access or refresh
        issued_at: NumericDate (seconds since epoch)
        expires_at: NumericDate (seconds since epoch)
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    subject: str = Field(..., alias="sub", min_length=1)
    kind: TokenKind
    issued_at: int = Field(..., alias="iat")
    expires_at: int = Field(..., alias="exp")

    def to_claims(self) -> dict:
        return {
            "sub": self.subject,
            "kind": self.kind.value,
            "iat": self.issued_at,
            "exp": self.expires_at,
        }
