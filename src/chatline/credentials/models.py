"""Data models for stored credentials."""

from enum import Enum
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import AVATAR_PLACEHOLDER_URL


class CredentialScope(str, Enum):
    """Where a credential is persisted."""

    DURABLE = "durable"      # Survives restarts (local storage)
    EPHEMERAL = "ephemeral"  # Cleared when the context ends (session storage)


class UserProfile(BaseModel):
    """Canonical user record cached alongside the token."""

    model_config = ConfigDict(extra="ignore")

    id: int | str = Field(description="Backend user identifier")
    name: str = Field(description="Display name")
    email: str = Field(description="Email address")
    avatar: str = Field(default="", description="Avatar URL, empty when unset")

    @field_validator("avatar", mode="before")
    @classmethod
    def _none_avatar(cls, value: object) -> object:
        return "" if value is None else value

    @property
    def avatar_url(self) -> str:
        """Avatar URL, or a generated placeholder keyed by name."""
        if self.avatar.strip():
            return self.avatar
        return AVATAR_PLACEHOLDER_URL.format(name=quote(self.name or "User"))


class Credential(BaseModel):
    """A token and its cached profile as read from one scope."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(description="Opaque bearer token")
    user: UserProfile | None = Field(default=None)
    scope: CredentialScope
