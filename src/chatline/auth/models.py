"""Backend payload models and user-record normalization."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ..credentials import UserProfile
from .errors import MalformedResponseError


class AuthResponse(BaseModel):
    """Raw login/register payload.

    Unknown fields are preserved so callers see the backend's payload as is.
    """

    model_config = ConfigDict(extra="allow")

    token: str | None = Field(default=None, description="Bearer token on success")
    user: dict[str, Any] | None = Field(default=None, description="User record as sent by the backend")
    message: str | None = Field(default=None)
    success: bool | None = Field(default=None)


class ProfileUpdate(BaseModel):
    """Partial profile update body."""

    name: str | None = None
    avatar: str | None = None

    def to_payload(self) -> dict[str, str]:
        return self.model_dump(exclude_none=True)


def normalize_user(payload: Any) -> UserProfile:
    """Map a nested ``{"user": {...}}`` or flat profile payload to a UserProfile.

    Args:
        payload: Decoded JSON body from /me or /profile

    Returns:
        Canonical user record

    Raises:
        MalformedResponseError: If the payload lacks id, name or email
    """
    if not isinstance(payload, dict):
        raise MalformedResponseError("Malformed user response")

    nested = payload.get("user")
    record = nested if isinstance(nested, dict) else {
        "id": payload.get("id"),
        "name": payload.get("name"),
        "email": payload.get("email"),
        "avatar": payload.get("avatar"),
    }

    missing = [f for f in ("id", "name", "email") if record.get(f) in (None, "")]
    if missing:
        raise MalformedResponseError(f"Malformed user response: missing {', '.join(missing)}")

    try:
        return UserProfile.model_validate(record)
    except PydanticValidationError as e:
        raise MalformedResponseError(f"Malformed user response: {e.errors()[0]['msg']}") from e
