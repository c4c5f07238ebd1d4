"""Data models for the chat message log."""

import secrets
import time
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def new_message_id(suffix: str = "") -> str:
    """Time-based id with a random part, e.g. ``lx3k9a1c-4f0q2m8z1t-u``."""
    stamp = _to_base36(time.time_ns() // 1_000_000)
    return f"{stamp}-{_to_base36(secrets.randbits(52))}{suffix}"


class Sender(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """A single immutable entry of the message log."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique, roughly time-ordered identifier")
    sender: Sender
    text: str = Field(description="Message body")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("sender", mode="before")
    @classmethod
    def _legacy_sender(cls, value: object) -> object:
        # Older logs stored the assistant as "ai" or "bot"
        if value in ("ai", "bot"):
            return Sender.ASSISTANT
        return value

    @classmethod
    def create(cls, sender: Sender, text: str, suffix: str = "") -> "ChatMessage":
        return cls(id=new_message_id(suffix), sender=sender, text=text)


_LOG_ADAPTER = TypeAdapter(list[ChatMessage])


def dump_log(messages: list[ChatMessage]) -> str:
    """Serialize the whole log to JSON."""
    return _LOG_ADAPTER.dump_json(messages).decode()


def load_log(raw: str) -> list[ChatMessage]:
    """Parse a serialized log.

    Raises:
        pydantic.ValidationError: If the payload is not a valid log
    """
    return _LOG_ADAPTER.validate_json(raw)
