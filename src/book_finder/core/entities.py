"""Core domain entities.

Every entity knows how to encode itself into the JSON document layout
used by the persistent store (camelCase keys) and how to rebuild itself
from that layout. Timestamps are kept as local naive datetimes.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Optional

from book_finder.core.errors import ValidationError

UNKNOWN_AUTHOR = "Unknown Author"


class Priority(str, Enum):
    """Priority of a to-read item."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Timeframe(str, Enum):
    """Span of a reading goal."""

    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class ReadingStatus(str, Enum):
    """Agenda list a book currently lives in."""

    TO_READ = "toRead"
    READING = "reading"
    FINISHED = "finished"


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp into a local naive datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def encode_set(values: Iterable[str]) -> list[str]:
    """Encode a set-valued field as a sorted list of unique strings."""
    return sorted(set(values))


def decode_set(raw: Any) -> set[str]:
    """Rebuild a set-valued field; duplicate entries collapse to one."""
    if raw is None:
        return set()
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"Expected a list for set-valued field, got {type(raw).__name__}")
    values = set()
    for value in raw:
        if not isinstance(value, str):
            raise ValueError(f"Set-valued field may only hold strings, got {value!r}")
        values.add(value)
    if len(values) != len(raw):
        print(f"⚠️  Warning: dropped {len(raw) - len(values)} duplicate entries from stored set")
    return values


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


@dataclass
class BookRef:
    """Normalized, source-agnostic snapshot of a book's catalog metadata."""

    id: str
    title: str
    authors: list[str] = field(default_factory=lambda: [UNKNOWN_AUTHOR])
    thumbnail: Optional[str] = None
    page_count: Optional[int] = None
    published_date: Optional[str] = None
    categories: list[str] = field(default_factory=list)
    description: Optional[str] = None
    average_rating: Optional[float] = None
    ratings_count: Optional[int] = None
    source: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationError("Book id cannot be empty")
        if not self.title:
            raise ValidationError("Book title cannot be empty")
        if not self.authors:
            self.authors = [UNKNOWN_AUTHOR]

    @property
    def has_known_page_count(self) -> bool:
        return bool(self.page_count and self.page_count > 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "authors": list(self.authors),
            "thumbnail": self.thumbnail,
            "pageCount": self.page_count,
            "publishedDate": self.published_date,
            "categories": list(self.categories),
            "description": self.description,
            "averageRating": self.average_rating,
            "ratingsCount": self.ratings_count,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BookRef":
        return cls(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or ""),
            authors=list(data.get("authors") or []),
            thumbnail=data.get("thumbnail"),
            page_count=_optional_int(data.get("pageCount")),
            published_date=data.get("publishedDate"),
            categories=list(data.get("categories") or []),
            description=data.get("description"),
            average_rating=data.get("averageRating"),
            ratings_count=_optional_int(data.get("ratingsCount")),
            source=data.get("source"),
        )


@dataclass
class ReadingSession:
    """One sitting of reading, owned by an agenda item."""

    date: datetime
    pages_read: int
    minutes_spent: int
    start_page: int
    end_page: int

    @property
    def pages_advanced(self) -> int:
        return self.end_page - self.start_page

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": format_datetime(self.date),
            "pagesRead": self.pages_read,
            "minutesSpent": self.minutes_spent,
            "startPage": self.start_page,
            "endPage": self.end_page,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReadingSession":
        return cls(
            date=parse_datetime(data["date"]),
            pages_read=int(data.get("pagesRead", 0)),
            minutes_spent=int(data.get("minutesSpent") or 0),
            start_page=int(data.get("startPage", 0)),
            end_page=int(data.get("endPage", 0)),
        )


@dataclass
class AgendaItem:
    """A book in the user's agenda.

    The reading fields (``start_date``, ``current_page``, ``last_read``,
    ``reading_sessions``) are filled once reading starts and the finish
    fields (``finish_date``, ``rating``, ``review``, ``reading_time``) once
    the book is finished. They are carried along as the item moves
    between lists.
    """

    item_id: str
    book_id: str
    title: str
    authors: list[str]
    thumbnail: Optional[str] = None
    page_count: Optional[int] = None
    published_date: Optional[str] = None
    categories: list[str] = field(default_factory=list)
    priority: Priority = Priority.MEDIUM
    date_added: Optional[datetime] = None
    notes: str = ""
    planned_read_date: Optional[datetime] = None
    is_read: bool = False
    start_date: Optional[datetime] = None
    current_page: int = 0
    last_read: Optional[datetime] = None
    reading_sessions: list[ReadingSession] = field(default_factory=list)
    finish_date: Optional[datetime] = None
    rating: Optional[int] = None
    review: str = ""
    reading_time: int = 0

    @classmethod
    def from_book(cls, item_id: str, book: BookRef, **kwargs: Any) -> "AgendaItem":
        """Snapshot a catalog book into a new agenda item."""
        return cls(
            item_id=item_id,
            book_id=book.id,
            title=book.title,
            authors=list(book.authors),
            thumbnail=book.thumbnail,
            page_count=book.page_count,
            published_date=book.published_date,
            categories=list(book.categories),
            **kwargs,
        )

    @property
    def has_known_page_count(self) -> bool:
        return bool(self.page_count and self.page_count > 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "itemId": self.item_id,
            "bookId": self.book_id,
            "title": self.title,
            "authors": list(self.authors),
            "thumbnail": self.thumbnail,
            "pageCount": self.page_count,
            "publishedDate": self.published_date,
            "categories": list(self.categories),
            "priority": self.priority.value,
            "dateAdded": format_datetime(self.date_added),
            "notes": self.notes,
            "plannedReadDate": format_datetime(self.planned_read_date),
            "isRead": self.is_read,
            "startDate": format_datetime(self.start_date),
            "currentPage": self.current_page,
            "lastRead": format_datetime(self.last_read),
            "readingSessions": [s.to_dict() for s in self.reading_sessions],
            "finishDate": format_datetime(self.finish_date),
            "rating": self.rating,
            "review": self.review,
            "readingTime": self.reading_time,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AgendaItem":
        sessions = data.get("readingSessions")
        return cls(
            item_id=str(data["itemId"]),
            book_id=str(data["bookId"]),
            title=str(data["title"]),
            authors=list(data.get("authors") or [UNKNOWN_AUTHOR]),
            thumbnail=data.get("thumbnail"),
            page_count=_optional_int(data.get("pageCount")),
            published_date=data.get("publishedDate"),
            categories=list(data.get("categories") or []),
            priority=Priority(data.get("priority") or Priority.MEDIUM.value),
            date_added=parse_datetime(data.get("dateAdded")),
            notes=data.get("notes") or "",
            planned_read_date=parse_datetime(data.get("plannedReadDate")),
            is_read=bool(data.get("isRead", False)),
            start_date=parse_datetime(data.get("startDate")),
            current_page=int(data.get("currentPage") or 0),
            last_read=parse_datetime(data.get("lastRead")),
            reading_sessions=[
                ReadingSession.from_dict(s) for s in sessions
            ] if isinstance(sessions, list) else [],
            finish_date=parse_datetime(data.get("finishDate")),
            rating=_optional_int(data.get("rating")),
            review=data.get("review") or "",
            reading_time=int(data.get("readingTime") or 0),
        )


@dataclass
class ReadingGoal:
    """A target number of books within a time window."""

    goal_id: str
    target_books: int
    timeframe: Timeframe
    start_date: datetime
    end_date: datetime
    description: str
    books_completed: int = 0
    is_completed: bool = False
    progress: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "goalId": self.goal_id,
            "targetBooks": self.target_books,
            "timeframe": self.timeframe.value,
            "startDate": format_datetime(self.start_date),
            "endDate": format_datetime(self.end_date),
            "description": self.description,
            "booksCompleted": self.books_completed,
            "isCompleted": self.is_completed,
            "progress": self.progress,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReadingGoal":
        return cls(
            goal_id=str(data["goalId"]),
            target_books=int(data["targetBooks"]),
            timeframe=Timeframe(data.get("timeframe") or Timeframe.YEAR.value),
            start_date=parse_datetime(data["startDate"]),
            end_date=parse_datetime(data["endDate"]),
            description=data.get("description") or "",
            books_completed=int(data.get("booksCompleted") or 0),
            is_completed=bool(data.get("isCompleted", False)),
            progress=float(data.get("progress") or 0.0),
        )


@dataclass
class ReadingStats:
    """Aggregates derived from the agenda lists."""

    books_read_this_year: int = 0
    pages_read_this_year: int = 0
    reading_streak: int = 0
    average_rating: float = 0.0
    favorite_genres: list[str] = field(default_factory=list)
    reading_time_per_week: int = 0
    goals_completed: int = 0
    total_books_read: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "booksReadThisYear": self.books_read_this_year,
            "pagesReadThisYear": self.pages_read_this_year,
            "readingStreak": self.reading_streak,
            "averageRating": self.average_rating,
            "favoriteGenres": list(self.favorite_genres),
            "readingTimePerWeek": self.reading_time_per_week,
            "goalsCompleted": self.goals_completed,
            "totalBooksRead": self.total_books_read,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReadingStats":
        return cls(
            books_read_this_year=int(data.get("booksReadThisYear") or 0),
            pages_read_this_year=int(data.get("pagesReadThisYear") or 0),
            reading_streak=int(data.get("readingStreak") or 0),
            average_rating=float(data.get("averageRating") or 0.0),
            favorite_genres=list(data.get("favoriteGenres") or []),
            reading_time_per_week=int(data.get("readingTimePerWeek") or 0),
            goals_completed=int(data.get("goalsCompleted") or 0),
            total_books_read=int(data.get("totalBooksRead") or 0),
        )


def _list_of(raw: Any) -> list:
    return raw if isinstance(raw, list) else []


@dataclass
class Agenda:
    """The user's personal reading state: three lists plus goals and stats."""

    reading_goals: list[ReadingGoal] = field(default_factory=list)
    to_read_list: list[AgendaItem] = field(default_factory=list)
    currently_reading: list[AgendaItem] = field(default_factory=list)
    finished_books: list[AgendaItem] = field(default_factory=list)
    reading_stats: ReadingStats = field(default_factory=ReadingStats)
    last_updated: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "readingGoals": [g.to_dict() for g in self.reading_goals],
            "toReadList": [i.to_dict() for i in self.to_read_list],
            "currentlyReading": [i.to_dict() for i in self.currently_reading],
            "finishedBooks": [i.to_dict() for i in self.finished_books],
            "readingStats": self.reading_stats.to_dict(),
            "lastUpdated": format_datetime(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Agenda":
        if not isinstance(data, dict):
            raise ValueError("Agenda document must be an object")
        stats = data.get("readingStats")
        return cls(
            reading_goals=[ReadingGoal.from_dict(g) for g in _list_of(data.get("readingGoals"))],
            to_read_list=[AgendaItem.from_dict(i) for i in _list_of(data.get("toReadList"))],
            currently_reading=[AgendaItem.from_dict(i) for i in _list_of(data.get("currentlyReading"))],
            finished_books=[AgendaItem.from_dict(i) for i in _list_of(data.get("finishedBooks"))],
            reading_stats=ReadingStats.from_dict(stats) if isinstance(stats, dict) else ReadingStats(),
            last_updated=parse_datetime(data.get("lastUpdated")),
        )


@dataclass
class Reply:
    """Reply to a discussion message."""

    reply_id: str
    user_name: str
    message: str
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "replyId": self.reply_id,
            "userName": self.user_name,
            "message": self.message,
            "timestamp": format_datetime(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Reply":
        return cls(
            reply_id=str(data["replyId"]),
            user_name=str(data["userName"]),
            message=str(data.get("message") or ""),
            timestamp=parse_datetime(data["timestamp"]),
        )


@dataclass
class Message:
    """Message posted in a discussion room."""

    message_id: str
    user_name: str
    message: str
    timestamp: datetime
    rating: Optional[int] = None
    likes: set[str] = field(default_factory=set)
    replies: list[Reply] = field(default_factory=list)

    @property
    def like_count(self) -> int:
        return len(self.likes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "messageId": self.message_id,
            "userName": self.user_name,
            "message": self.message,
            "rating": self.rating,
            "timestamp": format_datetime(self.timestamp),
            "likes": encode_set(self.likes),
            "replies": [r.to_dict() for r in self.replies],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        return cls(
            message_id=str(data["messageId"]),
            user_name=str(data["userName"]),
            message=str(data.get("message") or ""),
            timestamp=parse_datetime(data["timestamp"]),
            rating=_optional_int(data.get("rating")),
            likes=decode_set(data.get("likes")),
            replies=[Reply.from_dict(r) for r in _list_of(data.get("replies"))],
        )


@dataclass
class DiscussionRoom:
    """Discussion thread scoped to one book."""

    room_id: str
    book_id: str
    book_title: str
    book_author: str
    name: str
    description: str
    created_at: datetime
    tags: list[str] = field(default_factory=list)
    category: Optional[str] = None
    created_by: Optional[str] = None
    members: set[str] = field(default_factory=set)
    messages: list[Message] = field(default_factory=list)
    is_active: bool = True
    closed_by: Optional[str] = None
    closed_at: Optional[datetime] = None
    last_activity: Optional[datetime] = None

    def find_message(self, message_id: str) -> Optional[Message]:
        return next((m for m in self.messages if m.message_id == message_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "roomId": self.room_id,
            "bookId": self.book_id,
            "bookTitle": self.book_title,
            "bookAuthor": self.book_author,
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags),
            "category": self.category,
            "createdAt": format_datetime(self.created_at),
            "createdBy": self.created_by,
            "members": encode_set(self.members),
            "messages": [m.to_dict() for m in self.messages],
            "isActive": self.is_active,
            "closedBy": self.closed_by,
            "closedAt": format_datetime(self.closed_at),
            "lastActivity": format_datetime(self.last_activity),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiscussionRoom":
        return cls(
            room_id=str(data["roomId"]),
            book_id=str(data["bookId"]),
            book_title=str(data.get("bookTitle") or ""),
            book_author=str(data.get("bookAuthor") or ""),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            created_at=parse_datetime(data["createdAt"]),
            tags=list(data.get("tags") or []),
            category=data.get("category"),
            created_by=data.get("createdBy"),
            members=decode_set(data.get("members")),
            messages=[Message.from_dict(m) for m in _list_of(data.get("messages"))],
            is_active=bool(data.get("isActive", True)),
            closed_by=data.get("closedBy"),
            closed_at=parse_datetime(data.get("closedAt")),
            last_activity=parse_datetime(data.get("lastActivity")),
        )


@dataclass
class ReadingProfile:
    """Preference profile derived from finished books."""

    favorite_genres: list[str]
    favorite_authors: list[str]
    average_rating: float = 0.0


@dataclass
class RecommendedBook:
    """Recommendation candidate with its static relevance score."""

    book: BookRef
    relevance_score: float
    reason: str
    strategy: str
    is_weekly_pick: bool = False

    @property
    def id(self) -> str:
        return self.book.id
