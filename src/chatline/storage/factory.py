"""Factory for creating storage areas."""

from typing import Any

from .base import StorageArea


def create_storage_area(
    backend: str = "memory",
    **kwargs: Any
) -> StorageArea:
    """Create a storage area.

    Args:
        backend: Backend type ("memory" or "sqlite")
        **kwargs: Backend-specific configuration
            For memory:
                - quota_bytes: int | None
                - available: bool (default: True)
            For sqlite:
                - path: str | Path

    Returns:
        StorageArea instance (not yet connected)

    Raises:
        ValueError: If backend type is not supported
    """
    if backend == "memory":
        from .in_memory import InMemoryStorageArea
        return InMemoryStorageArea(**kwargs)

    elif backend == "sqlite":
        from .sqlite import SQLiteStorageArea
        return SQLiteStorageArea(**kwargs)

    raise ValueError(
        f"Unsupported storage backend: {backend}. "
        f"Supported backends: memory, sqlite"
    )
