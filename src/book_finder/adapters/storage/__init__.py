"""Storage backends for the persistent store."""

from book_finder.adapters.storage.file_backend import FileStorageBackend

__all__ = ["FileStorageBackend"]
