"""FastAPI dependencies for authentication and authorization.

Each gate is an independent dependency. Services are built once by the app
factory and read from ``request.app.state``.
"""

from typing import Optional
from uuid import UUID

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from streamhub.errors import (
    ForbiddenError,
    InvalidSignatureError,
    MissingTokenError,
    NotFoundError,
    TokenError,
    ValidationError,
)
from streamhub.models.auth import RefreshRequest
from streamhub.models.token import TokenKind, TokenPayload
from streamhub.models.user import User
from streamhub.services.auth_service import AuthService, parse_subject
from streamhub.services.token_service import TokenIssuer
from streamhub.services.user_service import UserService
from streamhub.services.user_store import CredentialStore

logger = structlog.get_logger(__name__)

# auto_error=False so a missing header surfaces as MissingTokenError (401)
bearer_scheme = HTTPBearer(auto_error=False)


class AuthContext(BaseModel):
    """Identity attached to a request by a verified token."""

    user_id: UUID
    payload: TokenPayload


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_user_store(request: Request) -> CredentialStore:
    return request.app.state.user_store


def _context_from_token(tokens: TokenIssuer, token: str, kind: TokenKind) -> AuthContext:
    payload = tokens.verify(token, kind)
    user_id = parse_subject(payload.subject)
    if user_id is None:
        raise InvalidSignatureError(kind=kind)
    return AuthContext(user_id=user_id, payload=payload)


async def require_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> AuthContext:
    """Require a valid access token in the ``Authorization: Bearer`` header.

    Returns:
        AuthContext, also stored on ``request.state.auth``

    Raises:
        MissingTokenError: If the header is absent or not a Bearer token
        ExpiredError: If the token has expired (code TOKEN_EXPIRED)
        InvalidSignatureError: If the token is invalid or not an access token
    """
    if credentials is None:
        raise MissingTokenError()

    context = _context_from_token(tokens, credentials.credentials, TokenKind.ACCESS)
    request.state.auth = context
    return context


async def require_refresh_token(
    request: Request,
    body: Optional[RefreshRequest] = None,
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> AuthContext:
    """Require a valid refresh token in the JSON body (``refreshToken``).

    Raises:
        ValidationError: If the body carries no refresh token
        ExpiredError: If the token has expired (code REFRESH_TOKEN_EXPIRED)
        InvalidSignatureError: If the token is invalid or not a refresh token
    """
    if body is None or not body.refresh_token:
        raise ValidationError("Refresh token is required")

    context = _context_from_token(tokens, body.refresh_token, TokenKind.REFRESH)
    request.state.auth = context
    return context


async def require_admin(
    request: Request,
    context: AuthContext = Depends(require_access_token),
    store: CredentialStore = Depends(get_user_store),
) -> User:
    """Require the token's user to exist and have admin privileges.

    Raises:
        NotFoundError: If the user no longer exists (401)
        ForbiddenError: If the user is not an admin (403)
    """
    user = await store.find_by_id(context.user_id)

    if user is None:
        raise NotFoundError(status_code=401)

    if not user.is_admin:
        logger.info("admin_access_denied", user_id=str(context.user_id))
        raise ForbiddenError("Access denied. Only admins can access this resource.")

    request.state.user = user
    return user


def require_admin_or_owner(owner_param: str):
    """Build a dependency allowing admins or the owner named by a path param.

    Args:
        owner_param: Path parameter holding the owning user's id

    Returns:
        Dependency resolving to the acting User
    """

    async def dependency(
        request: Request,
        context: AuthContext = Depends(require_access_token),
        store: CredentialStore = Depends(get_user_store),
    ) -> User:
        user = await store.find_by_id(context.user_id)

        if user is None:
            raise NotFoundError(status_code=401)

        owner_id = parse_subject(str(request.path_params.get(owner_param, "")))

        if not user.is_admin and owner_id != context.user_id:
            logger.info(
                "ownership_denied",
                user_id=str(context.user_id),
                owner_param=owner_param,
            )
            raise ForbiddenError("Access denied. You can only modify your own resources.")

        request.state.user = user
        return user

    return dependency


async def optional_auth(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> Optional[AuthContext]:
    """Attach identity when a valid access token is present; never rejects."""
    request.state.auth = None

    if credentials is None:
        return None

    try:
        context = _context_from_token(tokens, credentials.credentials, TokenKind.ACCESS)
    except TokenError:
        return None

    request.state.auth = context
    return context
