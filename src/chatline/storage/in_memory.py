"""In-memory storage area.

Simple dict-based storage for session-scoped data.
Data is lost when the application exits.
"""

from .base import StorageArea
from .errors import StorageError, StorageQuotaError


class InMemoryStorageArea(StorageArea):
    """In-memory storage area (session-only).

    Plays the role of a tab's session storage. The optional quota and the
    ``available`` switch emulate a full or disabled browser store.
    """

    def __init__(self, quota_bytes: int | None = None, available: bool = True):
        super().__init__()
        self._items: dict[str, str] = {}
        self._quota_bytes = quota_bytes
        self.available = available

    async def connect(self) -> None:
        """Initialize storage (no-op for in-memory)."""

    async def disconnect(self) -> None:
        """Close storage (no-op for in-memory)."""

    def _check_available(self) -> None:
        if not self.available:
            raise StorageError("In-memory storage is unavailable")

    async def get_item(self, key: str) -> str | None:
        self._check_available()
        return self._items.get(key)

    async def keys(self) -> list[str]:
        self._check_available()
        return list(self._items)

    async def _write(self, key: str, value: str) -> None:
        self._check_available()
        if self._quota_bytes is not None:
            used = sum(
                len(k) + len(v)
                for k, v in self._items.items()
                if k != key
            )
            size = used + len(key) + len(value)
            if size > self._quota_bytes:
                raise StorageQuotaError(key, size, self._quota_bytes)
        self._items[key] = value

    async def _delete(self, key: str) -> None:
        self._check_available()
        self._items.pop(key, None)

    @property
    def backend_type(self) -> str:
        return "memory"
