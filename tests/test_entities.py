"""Tests for core entities."""

from datetime import datetime

import pytest

from book_finder.core import Agenda, BookRef, DiscussionRoom, Message, ValidationError
from book_finder.core.entities import decode_set, encode_set, parse_datetime


def test_book_ref_creation() -> None:
    """Test creating a valid book reference."""
    book = BookRef(id="b1", title="Dune", authors=["Frank Herbert"], page_count=412)
    
    assert book.title == "Dune"
    assert book.has_known_page_count
    assert book.categories == []


def test_book_ref_validation() -> None:
    """Test book reference validation."""
    with pytest.raises(ValidationError, match="Book id cannot be empty"):
        BookRef(id="", title="Dune")
    
    with pytest.raises(ValidationError, match="Book title cannot be empty"):
        BookRef(id="b1", title="")


def test_book_ref_defaults_unknown_author() -> None:
    book = BookRef.from_dict({"id": "b1", "title": "Dune", "authors": []})
    
    assert book.authors == ["Unknown Author"]
    assert not book.has_known_page_count


def test_decode_set_collapses_duplicates() -> None:
    """Stored duplicates must not survive as duplicate likes or members."""
    assert decode_set(["ann", "bob", "ann"]) == {"ann", "bob"}
    assert decode_set(None) == set()
    
    with pytest.raises(ValueError):
        decode_set("ann")
    with pytest.raises(ValueError):
        decode_set([1, 2])


def test_encode_set_is_sorted_and_unique() -> None:
    assert encode_set({"bob", "ann"}) == ["ann", "bob"]


def test_room_set_fields_survive_serialization() -> None:
    """Members and likes come back as sets."""
    created = datetime(2025, 1, 1, 10, 0)
    room = DiscussionRoom(
        room_id="room_1",
        book_id="b1",
        book_title="Dune",
        book_author="Frank Herbert",
        name="Discussion: Dune",
        description="Discuss",
        created_at=created,
        members={"ann", "bob"},
        messages=[
            Message(
                message_id="msg_1",
                user_name="ann",
                message="Spice!",
                timestamp=created,
                likes={"bob"},
            )
        ],
    )
    
    data = room.to_dict()
    assert data["members"] == ["ann", "bob"]
    
    restored = DiscussionRoom.from_dict(data)
    assert isinstance(restored.members, set)
    assert restored.members == {"ann", "bob"}
    assert restored.messages[0].likes == {"bob"}
    assert restored.created_at == created


def test_parse_datetime_converts_utc_to_local_naive() -> None:
    parsed = parse_datetime("2025-03-01T12:00:00.000Z")
    
    assert parsed.tzinfo is None
    assert parse_datetime(None) is None
    assert parse_datetime("") is None


def test_agenda_from_dict_tolerates_missing_lists() -> None:
    agenda = Agenda.from_dict({"toReadList": "garbage", "readingStats": None})
    
    assert agenda.to_read_list == []
    assert agenda.finished_books == []
    assert agenda.reading_stats.total_books_read == 0
