"""Authentication API endpoints."""

import structlog
from fastapi import APIRouter, Depends, status

from streamhub.api.dependencies import (
    AuthContext,
    get_auth_service,
    get_user_service,
    require_access_token,
    require_refresh_token,
)
from streamhub.errors import ValidationError
from streamhub.models.auth import (
    AuthResponse,
    AuthResult,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RefreshResponse,
    RegisterRequest,
    UserSummary,
    VerifiedUser,
    VerifyRequest,
    VerifyResponse,
)
from streamhub.services.auth_service import AuthService
from streamhub.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _auth_response(result: AuthResult, message: str) -> AuthResponse:
    return AuthResponse(
        message=message,
        user=UserSummary.from_user(result.user),
        tokens=result.tokens,
    )


@router.post("/login")
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Login with email and password.

    Raises:
        ValidationError 400: If email or password is missing
        AuthError 401: If credentials are invalid
        ForbiddenError 403: If the account is disabled
    """
    result = await auth_service.login(request.email, request.password)
    return _auth_response(result, "Login successful")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Register a new account and return it with a token pair.

    Raises:
        ValidationError 400: On missing or malformed fields
        ConflictError 409: If the email is already registered
    """
    result = await auth_service.register(
        name=request.name,
        email=request.email,
        password=request.password,
        confirm_password=request.confirm_password,
    )
    return _auth_response(result, "Registration successful")


@router.post("/refresh")
async def refresh(
    context: AuthContext = Depends(require_refresh_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> RefreshResponse:
    """Exchange a refresh token for a new access token.

    The refresh token is not rotated.

    Raises:
        ValidationError 400: If no refresh token is given
        ExpiredError 401: REFRESH_TOKEN_EXPIRED
        InvalidSignatureError 401: TOKEN_INVALID
    """
    # require_refresh_token has already verified the token
    return await auth_service.refresh_for_subject(context.user_id)


@router.post("/logout")
async def logout(auth_service: AuthService = Depends(get_auth_service)) -> MessageResponse:
    """Stateless logout; tokens must be discarded client-side."""
    return MessageResponse(message=await auth_service.logout())


@router.post("/verify", response_model_exclude_none=True)
async def verify(
    request: VerifyRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> VerifyResponse:
    """Advisory check of an access token; invalid tokens still return 200.

    Raises:
        ValidationError 400: If no token is given
    """
    if not request.token:
        raise ValidationError("Token is required")

    result = await auth_service.verify(request.token)

    if not result.valid:
        return VerifyResponse(valid=False, reason=result.reason)

    return VerifyResponse(
        valid=True,
        user=VerifiedUser(id=result.user_id, email=result.email, name=result.name),
    )


@router.post("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    context: AuthContext = Depends(require_access_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Change the authenticated user's password.

    Raises:
        ValidationError 400: On missing, reused, short or mismatched passwords
        AuthError 401: If the current password is wrong
    """
    await auth_service.change_password(
        user_id=context.user_id,
        current_password=request.current_password,
        new_password=request.new_password,
        confirm_password=request.confirm_password,
    )
    return MessageResponse(message="Password changed successfully")


@router.get("/me")
async def get_me(
    context: AuthContext = Depends(require_access_token),
    user_service: UserService = Depends(get_user_service),
) -> UserSummary:
    """Get the authenticated user's account.

    Raises:
        NotFoundError 404: If the user was deleted after the token was issued
    """
    user = await user_service.get_user(context.user_id)
    return UserSummary.from_user(user)
