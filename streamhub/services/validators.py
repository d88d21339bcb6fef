"""Input rules shared by registration, password change and user management."""

import re
from typing import Optional

from streamhub.errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 100
MAX_BIO_LENGTH = 500


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: str) -> str:
    """Return the normalized email or raise ValidationError."""
    normalized = normalize_email(email)
    if not EMAIL_PATTERN.match(normalized):
        raise ValidationError("Email format is invalid")
    return normalized


def validate_new_password(
    password: str,
    confirm_password: Optional[str] = None,
    *,
    field: str = "Password",
) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"{field} must be at least {MIN_PASSWORD_LENGTH} characters")
    # An empty confirmation counts as not provided
    if confirm_password and password != confirm_password:
        raise ValidationError("Password and confirmation password do not match")


def validate_name(name: str) -> str:
    trimmed = name.strip()
    if not MIN_NAME_LENGTH <= len(trimmed) <= MAX_NAME_LENGTH:
        raise ValidationError(
            f"Name must be between {MIN_NAME_LENGTH} and {MAX_NAME_LENGTH} characters"
        )
    return trimmed


def validate_bio(bio: str) -> str:
    trimmed = bio.strip()
    if len(trimmed) > MAX_BIO_LENGTH:
        raise ValidationError(f"Bio must be at most {MAX_BIO_LENGTH} characters")
    return trimmed
