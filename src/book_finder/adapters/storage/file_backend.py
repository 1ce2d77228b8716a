"""File storage backend: one JSON document per key."""

import re
from pathlib import Path
from typing import Optional

from book_finder.core.errors import QuotaExceededError
from book_finder.core.interfaces import StorageBackend


class FileStorageBackend(StorageBackend):
    """Store each key as ``<key>.json`` inside a data directory."""
    
    def __init__(self, storage_dir: Path, quota_bytes: Optional[int] = None) -> None:
        self.storage_dir = storage_dir
        self.quota_bytes = quota_bytes
        self.storage_dir.mkdir(parents=True, exist_ok=True)
    
    def get_item(self, key: str) -> Optional[str]:
        path = self._get_path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")
    
    def set_item(self, key: str, value: str) -> None:
        path = self._get_path(key)
        if self.quota_bytes is not None:
            used = sum(
                p.stat().st_size for p in self.storage_dir.glob("*.json") if p != path
            )
            if used + len(value.encode("utf-8")) > self.quota_bytes:
                raise QuotaExceededError(
                    f"Writing '{key}' would exceed quota of {self.quota_bytes} bytes"
                )
        
        # Readers never see a partially written document
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)
    
    def remove_item(self, key: str) -> None:
        path = self._get_path(key)
        if path.exists():
            path.unlink()
    
    def keys(self) -> list[str]:
        return sorted(p.stem for p in self.storage_dir.glob("*.json"))
    
    def _get_path(self, key: str) -> Path:
        """Get path for a key, keeping file names safe."""
        safe_key = re.sub(r"[^\w.-]", "_", key)
        return self.storage_dir / f"{safe_key}.json"
