"""Core interfaces for adapters."""

from abc import ABC, abstractmethod
from typing import Optional

from book_finder.core.entities import BookRef


class StorageBackend(ABC):
    """Interface for durable key-value storage holding serialized strings."""
    
    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return stored value or None if key is absent."""
        pass
    
    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store value, raising QuotaExceededError when out of space."""
        pass
    
    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove key if present."""
        pass
    
    @abstractmethod
    def keys(self) -> list[str]:
        """List stored keys."""
        pass


class BookSource(ABC):
    """Interface for external book catalogs."""
    
    name: str = "book source"
    
    @abstractmethod
    async def search_books(self, query: str, max_results: int = 12) -> list[BookRef]:
        """Search catalog by free text."""
        pass
    
    @abstractmethod
    async def get_book_details(self, book_id: str) -> Optional[BookRef]:
        """Fetch full details of a single book."""
        pass
    
    @abstractmethod
    async def search_by_subject(self, subject: str, max_results: int = 6) -> list[BookRef]:
        """Fetch books filed under a subject/genre."""
        pass
