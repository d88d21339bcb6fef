"""Password hashing with bcrypt."""

import bcrypt
import structlog
from starlette.concurrency import run_in_threadpool

from streamhub.config import Settings
from streamhub.errors import InternalError

logger = structlog.get_logger(__name__)

# bcrypt only consumes the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Salted adaptive hashing for stored passwords.

    The cost factor is read from settings on every call, so changing
    ``bcrypt_rounds`` affects new hashes without rebuilding the hasher.
    Existing hashes keep verifying because bcrypt embeds the cost and salt.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash string

        Raises:
            InternalError: If bcrypt fails
        """
        rounds = self.settings.bcrypt_rounds
        try:
            salt = bcrypt.gensalt(rounds=rounds)
            hashed = bcrypt.hashpw(_encode(password), salt)
        except (ValueError, TypeError) as e:
            logger.error("password_hash_failed", rounds=rounds, error=str(e))
            raise InternalError("Password hashing failed") from e
        return hashed.decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            password: Plain-text password to check
            password_hash: Bcrypt hash to verify against

        Returns:
            True if the password matches, False otherwise

        Raises:
            InternalError: If the stored hash is malformed
        """
        try:
            return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
        except (ValueError, TypeError) as e:
            logger.error("password_verify_failed", error=str(e))
            raise InternalError("Password verification failed") from e

    async def hash_async(self, password: str) -> str:
        return await run_in_threadpool(self.hash, password)

    async def verify_async(self, password: str, password_hash: str) -> bool:
        return await run_in_threadpool(self.verify, password, password_hash)
