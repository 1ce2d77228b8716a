"""Persistent key-value store with JSON serialization.

All operations fail soft: errors are reported on the console and a
safe default (``False`` / the caller's default) is returned instead of
raising.
"""

import json
from enum import Enum
from typing import Any, Optional

from book_finder.core.errors import QuotaExceededError
from book_finder.core.interfaces import StorageBackend
from book_finder.core.memory_backend import MemoryStorageBackend

PROBE_KEY = "__storage_probe__"


class StorageKey(str, Enum):
    """Keys of the application's persisted documents."""

    DISCUSSIONS = "bookDiscussions"
    AGENDA = "readingAgenda"
    USER_PREFERENCES = "userPreferences"
    SEARCH_HISTORY = "searchHistory"
    BOOKMARKS = "bookmarks"


DEFAULT_USER_PREFERENCES = {
    "userName": "Book Lover",
    "theme": "light",
    "notifications": True,
    "readingGoal": 12,
}


class PersistentStore:
    """JSON document store on top of a storage backend."""

    def __init__(self, backend: Optional[StorageBackend] = None, search_history_limit: int = 20) -> None:
        self.backend = backend if backend is not None else MemoryStorageBackend()
        self.search_history_limit = search_history_limit
        self.persistent = True
        self.degraded = False

        if not self.is_available():
            print("⚠️  Warning: storage is not available, changes will not persist this session")
            self.backend = MemoryStorageBackend()
            self.persistent = False

    def is_available(self) -> bool:
        """Probe the backend with a throwaway write and delete."""
        try:
            self.backend.set_item(PROBE_KEY, PROBE_KEY)
            self.backend.remove_item(PROBE_KEY)
            return True
        except Exception:
            return False

    def set(self, key: str, value: Any) -> bool:
        """Serialize and store value."""
        try:
            serialized = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            print(f"⚠️  Warning: could not serialize '{key}': {e}")
            return False

        try:
            self.backend.set_item(key, serialized)
            return True
        except QuotaExceededError as e:
            print(f"⚠️  Warning: storage quota exceeded while saving '{key}': {e}")
            self._free_space()
            return False
        except Exception as e:
            print(f"⚠️  Warning: could not save '{key}': {e}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """Load and deserialize value, or return default."""
        try:
            raw = self.backend.get_item(key)
        except Exception as e:
            print(f"⚠️  Warning: could not read '{key}': {e}")
            return default

        if raw is None:
            return default

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            print(f"⚠️  Warning: stored '{key}' is not valid JSON: {e}")
            return default

    def remove(self, key: str) -> bool:
        try:
            self.backend.remove_item(key)
            return True
        except Exception as e:
            print(f"⚠️  Warning: could not remove '{key}': {e}")
            return False

    def clear_all_app_data(self) -> bool:
        """Remove every application key."""
        results = [self.remove(key.value) for key in StorageKey]
        return all(results)

    def usage_report(self) -> dict[str, Any]:
        """Report stored size per application key."""
        total_size = 0
        usage: dict[str, dict[str, Any]] = {}

        for key in StorageKey:
            try:
                raw = self.backend.get_item(key.value)
            except Exception:
                raw = None
            if raw:
                size = len(raw.encode("utf-8"))
                usage[key.value] = {"size": size, "sizeKB": f"{size / 1024:.2f}"}
                total_size += size

        return {
            "totalSize": total_size,
            "totalSizeKB": f"{total_size / 1024:.2f}",
            "usage": usage,
            "persistent": self.persistent,
            "degraded": self.degraded,
        }

    def _free_space(self) -> None:
        """Evict the least critical document (search history) once."""
        self.remove(StorageKey.SEARCH_HISTORY.value)
        self.degraded = True
        print("⚠️  Cleared search history to free up storage space")

    # Discussions

    def save_discussions(self, discussions: dict[str, list[dict]]) -> bool:
        return self.set(StorageKey.DISCUSSIONS.value, discussions)

    def load_discussions(self) -> dict[str, list[dict]]:
        return self.get(StorageKey.DISCUSSIONS.value, {})

    # Agenda

    def save_agenda(self, agenda: dict[str, Any]) -> bool:
        return self.set(StorageKey.AGENDA.value, agenda)

    def load_agenda(self) -> Optional[dict[str, Any]]:
        return self.get(StorageKey.AGENDA.value, None)

    # User preferences

    def save_user_preferences(self, preferences: dict[str, Any]) -> bool:
        return self.set(StorageKey.USER_PREFERENCES.value, preferences)

    def load_user_preferences(self) -> dict[str, Any]:
        stored = self.get(StorageKey.USER_PREFERENCES.value, {})
        if not isinstance(stored, dict):
            stored = {}
        return {**DEFAULT_USER_PREFERENCES, **stored}

    # Search history

    def save_search_history(self, searches: list[str]) -> bool:
        return self.set(StorageKey.SEARCH_HISTORY.value, searches[-self.search_history_limit:])

    def load_search_history(self) -> list[str]:
        history = self.get(StorageKey.SEARCH_HISTORY.value, [])
        return history if isinstance(history, list) else []

    def add_search_query(self, query: str) -> bool:
        """Append query to history, skipping a repeat of the last entry."""
        query = query.strip()
        if not query:
            return False
        history = self.load_search_history()
        if history and history[-1] == query:
            return True
        history.append(query)
        return self.save_search_history(history)

    # Bookmarks

    def save_bookmarks(self, bookmarks: list[str]) -> bool:
        return self.set(StorageKey.BOOKMARKS.value, bookmarks)

    def load_bookmarks(self) -> list[str]:
        bookmarks = self.get(StorageKey.BOOKMARKS.value, [])
        return bookmarks if isinstance(bookmarks, list) else []

    def toggle_bookmark(self, book_id: str) -> bool:
        """Add or remove a bookmark. Returns True if the book is now bookmarked."""
        bookmarks = self.load_bookmarks()
        if book_id in bookmarks:
            bookmarks.remove(book_id)
            bookmarked = False
        else:
            bookmarks.append(book_id)
            bookmarked = True
        self.save_bookmarks(bookmarks)
        return bookmarked
