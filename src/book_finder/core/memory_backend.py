"""In-memory storage backend."""

from typing import Optional

from book_finder.core.errors import QuotaExceededError
from book_finder.core.interfaces import StorageBackend


class MemoryStorageBackend(StorageBackend):
    """Keep serialized values in a dict; nothing survives the process."""
    
    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self.quota_bytes = quota_bytes
        self._data: dict[str, str] = {}
    
    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)
    
    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            used = sum(
                len(v.encode("utf-8")) for k, v in self._data.items() if k != key
            )
            if used + len(value.encode("utf-8")) > self.quota_bytes:
                raise QuotaExceededError(
                    f"Writing '{key}' would exceed quota of {self.quota_bytes} bytes"
                )
        self._data[key] = value
    
    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)
    
    def keys(self) -> list[str]:
        return list(self._data)
