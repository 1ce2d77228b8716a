"""Tests for the persistent store and its backends."""

import json
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from book_finder.adapters.storage import FileStorageBackend
from book_finder.core import (
    MemoryStorageBackend,
    PersistentStore,
    QuotaExceededError,
    StorageBackend,
    StorageKey,
)


class BrokenBackend(StorageBackend):
    """Backend whose every operation fails."""
    
    def get_item(self, key):
        raise OSError("disk on fire")
    
    def set_item(self, key, value):
        raise OSError("disk on fire")
    
    def remove_item(self, key):
        raise OSError("disk on fire")
    
    def keys(self):
        return []


def test_set_and_get_round_trip(store: PersistentStore) -> None:
    assert store.set("bookmarks", ["b1", "b2"])
    assert store.get("bookmarks") == ["b1", "b2"]
    assert store.get("missing", default="fallback") == "fallback"


def test_set_fails_soft_on_unserializable_value(store: PersistentStore) -> None:
    assert store.set("bookmarks", {"ids": {"b1"}}) is False
    assert store.get("bookmarks") is None


def test_get_returns_default_for_corrupt_json(
    backend: MemoryStorageBackend, store: PersistentStore
) -> None:
    backend.set_item("readingAgenda", "{not json")
    
    assert store.get("readingAgenda", default={}) == {}


def test_remove(store: PersistentStore) -> None:
    store.set("bookmarks", ["b1"])
    
    assert store.remove("bookmarks")
    assert store.get("bookmarks") is None


def test_quota_exceeded_evicts_search_history() -> None:
    """Quota errors drop search history once and leave the write undone."""
    backend = MemoryStorageBackend(quota_bytes=200)
    store = PersistentStore(backend)
    
    assert store.save_search_history(["dune", "foundation", "hyperion"])
    assert not store.degraded
    
    assert store.set("readingAgenda", {"blob": "x" * 500}) is False
    assert store.degraded
    assert store.load_search_history() == []
    assert store.get("readingAgenda") is None


def test_memory_backend_quota() -> None:
    backend = MemoryStorageBackend(quota_bytes=10)

    with pytest.raises(QuotaExceededError):
        backend.set_item("k", "x" * 11)
    assert backend.get_item("k") is None


def test_default_backend_is_in_memory() -> None:
    store = PersistentStore()
    
    assert isinstance(store.backend, MemoryStorageBackend)
    assert store.persistent is True
    assert store.set("bookmarks", ["b1"])
    assert store.backend.keys() == ["bookmarks"]


def test_unavailable_backend_falls_back_to_memory() -> None:
    store = PersistentStore(BrokenBackend())
    
    assert store.persistent is False
    assert isinstance(store.backend, MemoryStorageBackend)
    # In-memory operation still works for this session
    assert store.set("bookmarks", ["b1"])
    assert store.get("bookmarks") == ["b1"]


def test_usage_report(store: PersistentStore) -> None:
    store.save_bookmarks(["b1"])
    store.save_search_history(["dune"])
    
    report = store.usage_report()
    
    expected_size = len(json.dumps(["b1"]).encode("utf-8"))
    assert report["usage"]["bookmarks"]["size"] == expected_size
    assert set(report["usage"]) == {"bookmarks", "searchHistory"}
    assert report["totalSize"] == sum(u["size"] for u in report["usage"].values())
    assert report["persistent"] is True


def test_search_history_capped_to_last_20(store: PersistentStore) -> None:
    for i in range(25):
        store.add_search_query(f"query {i}")
    
    history = store.load_search_history()
    assert len(history) == 20
    assert history[0] == "query 5"
    assert history[-1] == "query 24"


def test_search_history_skips_repeated_query(store: PersistentStore) -> None:
    store.add_search_query("dune")
    store.add_search_query(" dune ")
    
    assert store.load_search_history() == ["dune"]
    assert store.add_search_query("   ") is False


def test_toggle_bookmark(store: PersistentStore) -> None:
    assert store.toggle_bookmark("b1") is True
    assert store.load_bookmarks() == ["b1"]
    assert store.toggle_bookmark("b1") is False
    assert store.load_bookmarks() == []


def test_user_preferences_merge_defaults(store: PersistentStore) -> None:
    store.save_user_preferences({"userName": "Ann"})
    
    preferences = store.load_user_preferences()
    assert preferences["userName"] == "Ann"
    assert preferences["theme"] == "light"
    assert preferences["readingGoal"] == 12


def test_clear_all_app_data(store: PersistentStore) -> None:
    store.save_bookmarks(["b1"])
    store.save_agenda({"toReadList": []})
    store.set("unrelated", 1)
    
    assert store.clear_all_app_data()
    assert store.get(StorageKey.BOOKMARKS.value) is None
    assert store.get(StorageKey.AGENDA.value) is None
    assert store.get("unrelated") == 1


def test_file_backend_persists_between_instances() -> None:
    """Data written by one store is visible to a new one on the same directory."""
    with TemporaryDirectory() as tmpdir:
        storage_dir = Path(tmpdir)
        store = PersistentStore(FileStorageBackend(storage_dir))
        store.save_bookmarks(["b1"])
        
        assert (storage_dir / "bookmarks.json").exists()
        assert not (storage_dir / "__storage_probe__.json").exists()
        
        store2 = PersistentStore(FileStorageBackend(storage_dir))
        assert store2.load_bookmarks() == ["b1"]


def test_file_backend_quota() -> None:
    with TemporaryDirectory() as tmpdir:
        backend = FileStorageBackend(Path(tmpdir), quota_bytes=300)
        store = PersistentStore(backend)
        
        assert store.save_search_history(["dune"])
        assert store.set("readingAgenda", "x" * 1000) is False
        assert store.degraded
        assert backend.keys() == []
