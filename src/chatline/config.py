"""Client configuration.

Centralizes storage keys, endpoint defaults and fixed user-facing texts,
and loads runtime settings from environment variables.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Persisted keys (shared by both storage scopes)
TOKEN_KEY = "token"
USER_KEY = "user"
CHAT_MESSAGES_KEY = "chat_messages"

# Endpoint defaults
DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_CHAT_TIMEOUT = 20.0  # Seconds before a chat round trip is abandoned
DEFAULT_HTTP_TIMEOUT = 10.0
DEFAULT_STORAGE_PATH = "~/.chatline/storage.db"

# Fallback messages for normalized errors
LOGIN_FAILED_MESSAGE = "Login failed"
SIGNUP_FAILED_MESSAGE = "Signup failed"
REQUEST_FAILED_MESSAGE = "Request failed"

# Chat texts
CHAT_TIMEOUT_MESSAGE = "Request timed out. Try again."
CHAT_FAILURE_MESSAGE = "Error contacting the AI service. Please retry."
CHAT_EMPTY_REPLY_MESSAGE = "I didn't get a response. Please try again."
CHAT_GREETING = "Hi! It's nice to meet you. How can I help you today?"

# Avatar placeholder
AVATAR_PLACEHOLDER_URL = "https://ui-avatars.com/api/?name={name}&background=2563eb&color=fff"

# Form constraints
MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2


class ClientSettings(BaseModel):
    """Runtime settings for a chatline client."""

    api_url: str = Field(default=DEFAULT_API_URL, description="Backend API base URL")
    auth_url: str | None = Field(
        default=None,
        description="Auth endpoints base URL (defaults to <api_url>/auth)"
    )
    chat_timeout: float = Field(default=DEFAULT_CHAT_TIMEOUT, gt=0)
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0)
    storage_path: Path = Field(default=Path(DEFAULT_STORAGE_PATH))
    log_level: str = Field(default="WARNING")

    @property
    def resolved_auth_url(self) -> str:
        """Auth base URL with the default applied."""
        return self.auth_url or f"{self.api_url.rstrip('/')}/auth"


def load_settings() -> ClientSettings:
    """Build settings from environment variables.

    Environment variables:
        CHATLINE_API_URL: Backend API base URL (default: http://localhost:5000/api)
        CHATLINE_AUTH_URL: Auth base URL (default: <api url>/auth)
        CHATLINE_CHAT_TIMEOUT: Chat round-trip bound in seconds (default: 20)
        CHATLINE_HTTP_TIMEOUT: Auth request timeout in seconds (default: 10)
        CHATLINE_STORAGE_PATH: Durable storage file (default: ~/.chatline/storage.db)
        CHATLINE_LOG_LEVEL: Log level name (default: WARNING)
    """
    load_dotenv()
    return ClientSettings(
        api_url=os.getenv("CHATLINE_API_URL", DEFAULT_API_URL),
        auth_url=os.getenv("CHATLINE_AUTH_URL") or None,
        chat_timeout=float(os.getenv("CHATLINE_CHAT_TIMEOUT", str(DEFAULT_CHAT_TIMEOUT))),
        http_timeout=float(os.getenv("CHATLINE_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT))),
        storage_path=Path(os.getenv("CHATLINE_STORAGE_PATH", DEFAULT_STORAGE_PATH)).expanduser(),
        log_level=os.getenv("CHATLINE_LOG_LEVEL", "WARNING"),
    )
