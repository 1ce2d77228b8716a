"""Book discussion rooms: membership, messages, likes and replies."""

from datetime import datetime
from typing import Any, Callable, Optional

from book_finder.core.agenda import new_id, validate_rating
from book_finder.core.entities import DiscussionRoom, Message, Reply
from book_finder.core.errors import NotFoundError, RoomClosedError, ValidationError
from book_finder.core.store import PersistentStore

MAX_MESSAGE_LENGTH = 500


def default_tags(book_title: str) -> list[str]:
    """First three words of the title plus the generic room tags."""
    words = book_title.lower().split()[:3]
    return [*words, "book-club", "discussion"]


def _clean_text(text: str, what: str) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationError(f"{what} cannot be empty")
    if len(cleaned) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"{what} cannot exceed {MAX_MESSAGE_LENGTH} characters")
    return cleaned


def _require_user(user_name: str) -> str:
    user_name = (user_name or "").strip()
    if not user_name:
        raise ValidationError("User name cannot be empty")
    return user_name


class DiscussionEngine:
    """Owns discussion rooms grouped by book id."""

    def __init__(
        self,
        store: PersistentStore,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.clock = clock
        self.discussions: dict[str, list[DiscussionRoom]] = {}
        self.load_from_storage()

    def load_from_storage(self) -> None:
        stored = self.store.load_discussions()
        if not stored:
            return

        try:
            if not isinstance(stored, dict):
                raise ValueError("discussions document must be an object")
            self.discussions = {
                str(book_id): [DiscussionRoom.from_dict(room) for room in rooms]
                for book_id, rooms in stored.items()
            }
        except (KeyError, TypeError, ValueError) as e:
            print(f"⚠️  Warning: stored discussions are malformed, starting fresh: {e}")
            self.discussions = {}

    def save_to_storage(self) -> bool:
        return self.store.save_discussions({
            book_id: [room.to_dict() for room in rooms]
            for book_id, rooms in self.discussions.items()
        })

    # Rooms

    def create_discussion_room(
        self,
        book_id: str,
        book_title: str,
        book_author: str,
        room_name: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> DiscussionRoom:
        if not book_id or not book_title:
            raise ValidationError("Book id and title are required to create a room")

        now = self.clock()
        room = DiscussionRoom(
            room_id=new_id("room"),
            book_id=book_id,
            book_title=book_title,
            book_author=book_author or "",
            name=room_name or f"Discussion: {book_title}",
            description=description or f'Discuss "{book_title}" by {book_author}',
            created_at=now,
            tags=default_tags(book_title),
            category=category,
            created_by=created_by,
            last_activity=now,
        )
        self.discussions.setdefault(book_id, []).append(room)
        self.save_to_storage()
        return room

    def find_room_by_id(self, room_id: str) -> Optional[DiscussionRoom]:
        for rooms in self.discussions.values():
            for room in rooms:
                if room.room_id == room_id:
                    return room
        return None

    def get_discussions_for_book(self, book_id: str) -> list[DiscussionRoom]:
        return list(self.discussions.get(book_id, []))

    def get_all_active_discussions(self) -> list[DiscussionRoom]:
        """Active rooms across all books, newest first."""
        active = [
            room for rooms in self.discussions.values() for room in rooms if room.is_active
        ]
        return sorted(active, key=lambda room: room.created_at, reverse=True)

    def get_recent_discussions(self, limit: int = 5) -> list[DiscussionRoom]:
        return self.get_all_active_discussions()[:limit]

    def join_room(self, room_id: str, user_name: str) -> bool:
        user_name = _require_user(user_name)
        room = self.find_room_by_id(room_id)
        if room is None or not room.is_active:
            return False
        if user_name in room.members:
            return True

        room.members.add(user_name)
        self.save_to_storage()
        return True

    def leave_room(self, room_id: str, user_name: str) -> bool:
        room = self.find_room_by_id(room_id)
        if room is None or user_name not in room.members:
            return False

        room.members.discard(user_name)
        self.save_to_storage()
        return True

    def close_room(self, room_id: str, user_name: str) -> bool:
        """Deactivate a room. Closed rooms cannot be reopened."""
        room = self.find_room_by_id(room_id)
        if room is None or not room.is_active:
            return False

        room.is_active = False
        room.closed_by = user_name
        room.closed_at = self.clock()
        self.save_to_storage()
        return True

    # Messages

    def post_message(
        self,
        room_id: str,
        user_name: str,
        message: str,
        rating: Optional[int] = None,
    ) -> Message:
        room = self._get_open_room(room_id)
        user_name = _require_user(user_name)
        text = _clean_text(message, "Message")
        validate_rating(rating)

        now = self.clock()
        posted = Message(
            message_id=new_id("msg"),
            user_name=user_name,
            message=text,
            timestamp=now,
            rating=rating,
        )
        room.messages.append(posted)
        room.members.add(user_name)
        room.last_activity = now

        self.save_to_storage()
        return posted

    def like_message(self, room_id: str, message_id: str, user_name: str) -> bool:
        """Toggle user's like on a message."""
        user_name = _require_user(user_name)
        room = self.find_room_by_id(room_id)
        if room is None:
            return False
        message = room.find_message(message_id)
        if message is None:
            return False

        if user_name in message.likes:
            message.likes.discard(user_name)
        else:
            message.likes.add(user_name)

        self.save_to_storage()
        return True

    def post_reply(self, room_id: str, message_id: str, user_name: str, reply: str) -> Reply:
        room = self._get_open_room(room_id)
        parent = room.find_message(message_id)
        if parent is None:
            raise NotFoundError(f"Message not found: {message_id}")
        user_name = _require_user(user_name)
        text = _clean_text(reply, "Reply")

        now = self.clock()
        posted = Reply(
            reply_id=new_id("reply"),
            user_name=user_name,
            message=text,
            timestamp=now,
        )
        parent.replies.append(posted)
        room.members.add(user_name)
        room.last_activity = now

        self.save_to_storage()
        return posted

    # Queries

    def search_discussions(self, query: str) -> list[DiscussionRoom]:
        """Case-insensitive substring search across all books' rooms."""
        term = (query or "").strip().lower()
        results = []
        for rooms in self.discussions.values():
            for room in rooms:
                haystack = [
                    room.name,
                    room.book_title,
                    room.book_author,
                    room.description,
                    *room.tags,
                ]
                if any(term in value.lower() for value in haystack):
                    results.append(room)
        return results

    def get_statistics(self) -> dict[str, Any]:
        total_rooms = 0
        total_messages = 0
        members: set[str] = set()

        for rooms in self.discussions.values():
            total_rooms += len(rooms)
            for room in rooms:
                total_messages += len(room.messages)
                members.update(room.members)

        return {
            "totalRooms": total_rooms,
            "totalMessages": total_messages,
            "totalMembers": len(members),
            "activeRooms": len(self.get_all_active_discussions()),
        }

    def clear_all_data(self) -> None:
        self.discussions = {}
        self.save_to_storage()

    def _get_open_room(self, room_id: str) -> DiscussionRoom:
        room = self.find_room_by_id(room_id)
        if room is None:
            raise NotFoundError(f"Discussion room not found: {room_id}")
        if not room.is_active:
            raise RoomClosedError(f"Discussion room is closed: {room_id}")
        return room
