"""Core domain layer."""

from book_finder.core.agenda import AgendaEngine
from book_finder.core.discussions import DiscussionEngine
from book_finder.core.entities import (
    Agenda,
    AgendaItem,
    BookRef,
    DiscussionRoom,
    Message,
    Priority,
    ReadingGoal,
    ReadingProfile,
    ReadingSession,
    ReadingStats,
    ReadingStatus,
    RecommendedBook,
    Reply,
    Timeframe,
)
from book_finder.core.errors import (
    BookFinderError,
    ExternalFetchError,
    NotFoundError,
    QuotaExceededError,
    RoomClosedError,
    StorageError,
    ValidationError,
)
from book_finder.core.interfaces import BookSource, StorageBackend
from book_finder.core.memory_backend import MemoryStorageBackend
from book_finder.core.store import PersistentStore, StorageKey

__all__ = [
    "Agenda",
    "AgendaEngine",
    "AgendaItem",
    "BookFinderError",
    "BookRef",
    "BookSource",
    "DiscussionEngine",
    "DiscussionRoom",
    "ExternalFetchError",
    "MemoryStorageBackend",
    "Message",
    "NotFoundError",
    "PersistentStore",
    "Priority",
    "QuotaExceededError",
    "ReadingGoal",
    "ReadingProfile",
    "ReadingSession",
    "ReadingStats",
    "ReadingStatus",
    "RecommendedBook",
    "Reply",
    "RoomClosedError",
    "StorageBackend",
    "StorageError",
    "StorageKey",
    "Timeframe",
    "ValidationError",
]
