"""Abstract base class for key-value storage areas.

This module defines the interface shared by the durable and ephemeral
areas the credential store and chat session persist into.
The abstraction hides:
- Storage medium (process memory, SQLite file)
- Connection management
- Delivery of change notifications to other contexts
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

from .models import StorageEvent, StorageListener

logger = logging.getLogger(__name__)


class StorageArea(ABC):
    """Abstract key-value storage area with change subscriptions.

    Values are raw strings; callers own serialization. Every mutation that
    changes a value is announced to subscribers, except those registered
    under the writer's own context id, matching how a browser tab does not
    receive ``storage`` events for its own writes.

    Supports async context manager protocol:
        async with area:
            await area.set_item("token", "abc")
    """

    def __init__(self) -> None:
        self._listeners: list[tuple[str | None, StorageListener]] = []

    @abstractmethod
    async def connect(self) -> None:
        """Open the storage area."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the storage area gracefully."""

    @abstractmethod
    async def get_item(self, key: str) -> str | None:
        """Return the raw value for ``key`` or None if absent.

        Raises:
            StorageError: If the area cannot be read
        """

    @abstractmethod
    async def keys(self) -> list[str]:
        """Return all keys currently stored."""

    @abstractmethod
    async def _write(self, key: str, value: str) -> None:
        """Store ``value`` under ``key`` without notifying."""

    @abstractmethod
    async def _delete(self, key: str) -> None:
        """Remove ``key`` without notifying."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    async def set_item(self, key: str, value: str, source: str | None = None) -> None:
        """Store a value and notify subscribers if it changed.

        Args:
            key: Key to write
            value: Raw string value
            source: Context id of the writer (excluded from notification)

        Raises:
            StorageError: If the write fails
        """
        old_value = await self.get_item(key)
        await self._write(key, value)
        if old_value != value:
            await self._notify(key, old_value, value, source)

    async def remove_item(self, key: str, source: str | None = None) -> None:
        """Remove a key and notify subscribers if it existed.

        Raises:
            StorageError: If the removal fails
        """
        old_value = await self.get_item(key)
        if old_value is None:
            return
        await self._delete(key)
        await self._notify(key, old_value, None, source)

    def subscribe(
        self,
        listener: StorageListener,
        context_id: str | None = None
    ) -> Callable[[], None]:
        """Register a change listener.

        Args:
            listener: Async callable receiving a StorageEvent
            context_id: Context the listener belongs to; writes tagged with
                the same id are not delivered to it

        Returns:
            Callable that removes the listener
        """
        entry = (context_id, listener)
        self._listeners.append(entry)

        def unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    async def _notify(
        self,
        key: str,
        old_value: str | None,
        new_value: str | None,
        source: str | None
    ) -> None:
        event = StorageEvent(
            key=key,
            old_value=old_value,
            new_value=new_value,
            area=self.backend_type,
            source=source,
        )
        for context_id, listener in list(self._listeners):
            if source is not None and context_id == source:
                continue
            try:
                await listener(event)
            except Exception:
                logger.exception("Storage listener failed for key '%s'", key)

    async def __aenter__(self) -> "StorageArea":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()
