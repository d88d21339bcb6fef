"""Services package exports."""

from streamhub.services.auth_service import AuthService
from streamhub.services.logging_service import configure_logging, get_logger
from streamhub.services.password_service import PasswordHasher
from streamhub.services.token_service import TokenIssuer
from streamhub.services.user_service import UserService

__all__ = [
    "AuthService",
    "PasswordHasher",
    "TokenIssuer",
    "UserService",
    "configure_logging",
    "get_logger",
]
