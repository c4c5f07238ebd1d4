"""Storage error types."""


class StorageError(Exception):
    """A storage area could not be read or written."""


class StorageQuotaError(StorageError):
    """A write would exceed the storage area's quota."""

    def __init__(self, key: str, size: int, quota: int):
        super().__init__(f"Quota exceeded writing '{key}': {size} > {quota} bytes")
        self.key = key
        self.size = size
        self.quota = quota
