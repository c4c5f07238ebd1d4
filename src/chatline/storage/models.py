"""Data models for storage change notifications."""

from collections.abc import Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field


class StorageEvent(BaseModel):
    """A change to one key of a storage area.

    Mirrors the browser ``storage`` event: listeners get the raw old and
    new values, never a parsed view of them.
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Key that changed")
    old_value: str | None = Field(default=None, description="Raw value before the change")
    new_value: str | None = Field(default=None, description="Raw value after the change (None if removed)")
    area: str = Field(description="Backend type of the area that changed")
    source: str | None = Field(default=None, description="Context id of the writer")
    external: bool = Field(default=True, description="True when written by another context")


StorageListener = Callable[[StorageEvent], Awaitable[None]]
