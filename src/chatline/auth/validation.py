"""Client-side form validation.

Checks run before any request is made; failures raise ValidationError
and never reach the backend.
"""

import re

from ..config import MIN_NAME_LENGTH, MIN_PASSWORD_LENGTH
from .errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
AVATAR_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


def validate_email(email: str) -> str:
    """Return the trimmed email or raise ValidationError."""
    value = (email or "").strip()
    if not EMAIL_PATTERN.match(value):
        raise ValidationError("email", "Enter a valid email address.")
    return value


def validate_password(password: str, field: str = "password") -> str:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            field, f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
        )
    return password


def validate_name(name: str) -> str:
    """Return the trimmed name or raise ValidationError."""
    value = (name or "").strip()
    if len(value) < MIN_NAME_LENGTH:
        raise ValidationError("name", f"Name must be at least {MIN_NAME_LENGTH} characters.")
    return value


def validate_avatar(avatar: str | None) -> str:
    """Return the trimmed avatar URL; empty is allowed."""
    value = (avatar or "").strip()
    if value and not AVATAR_PATTERN.match(value):
        raise ValidationError("avatar", "Avatar URL must start with http:// or https://")
    return value


def validate_login(email: str, password: str) -> tuple[str, str]:
    return validate_email(email), validate_password(password)


def validate_signup(
    name: str,
    email: str,
    password: str,
    avatar: str = ""
) -> tuple[str, str, str, str]:
    """Validate a signup form.

    Returns:
        Tuple of (name, email, password, avatar) with whitespace trimmed
    """
    return (
        validate_name(name),
        validate_email(email),
        validate_password(password),
        validate_avatar(avatar),
    )


def validate_password_change(
    old_password: str,
    new_password: str,
    confirm_password: str | None = None
) -> None:
    """Validate a change-password form.

    Args:
        old_password: Current password
        new_password: Desired password
        confirm_password: Repeat of the new password (skipped if None)
    """
    fields = [old_password, new_password]
    if confirm_password is not None:
        fields.append(confirm_password)
    if not all(fields):
        raise ValidationError("password", "All fields are required.")
    if confirm_password is not None and new_password != confirm_password:
        raise ValidationError(
            "confirm_password", "New password and confirm password do not match."
        )
    validate_password(new_password, field="new_password")
