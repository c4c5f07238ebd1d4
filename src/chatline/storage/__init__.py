"""Key-value storage areas for chatline.

Provides the durable and session-scoped stores credentials and chat
history are persisted into.
"""

from .base import StorageArea
from .errors import StorageError, StorageQuotaError
from .factory import create_storage_area
from .in_memory import InMemoryStorageArea
from .models import StorageEvent, StorageListener

__all__ = [
    "InMemoryStorageArea",
    "StorageArea",
    "StorageError",
    "StorageEvent",
    "StorageListener",
    "StorageQuotaError",
    "create_storage_area",
]
