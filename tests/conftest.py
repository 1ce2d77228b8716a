"""Shared fixtures."""

from datetime import datetime, timedelta

import pytest

from book_finder.core import BookRef, MemoryStorageBackend, PersistentStore


class FakeClock:
    """Callable clock that only moves when told to."""
    
    def __init__(self, now: datetime) -> None:
        self.now = now
    
    def __call__(self) -> datetime:
        return self.now
    
    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 6, 15, 20, 0, 0))


@pytest.fixture
def backend() -> MemoryStorageBackend:
    return MemoryStorageBackend()


@pytest.fixture
def store(backend: MemoryStorageBackend) -> PersistentStore:
    return PersistentStore(backend)


@pytest.fixture
def dune() -> BookRef:
    return BookRef(
        id="b1",
        title="Dune",
        authors=["Herrbert"],
        page_count=400,
        categories=["Science Fiction", "Classics"],
    )
