"""Reading agenda: to-read, reading and finished lists plus goals and stats."""

import calendar
import json
import uuid
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional, Union

from book_finder.core.entities import (
    Agenda,
    AgendaItem,
    BookRef,
    Priority,
    ReadingGoal,
    ReadingSession,
    ReadingStats,
    ReadingStatus,
    Timeframe,
    format_datetime,
    parse_datetime,
)
from book_finder.core.errors import ValidationError
from book_finder.core.store import PersistentStore

EXPORT_VERSION = "1.0"
SUPPORTED_EXPORT_VERSIONS = {"1.0"}
FAVORITE_GENRES_LIMIT = 5


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def goal_end_date(timeframe: Timeframe, now: datetime) -> datetime:
    """Last moment of the goal window starting at ``now``."""
    if timeframe == Timeframe.MONTH:
        year, month = now.year, now.month
    elif timeframe == Timeframe.QUARTER:
        month_index = now.month - 1 + 2
        year, month = now.year + month_index // 12, month_index % 12 + 1
    else:
        year, month = now.year, 12
    last_day = calendar.monthrange(year, month)[1]
    return datetime(year, month, last_day, 23, 59, 59, 999999)


def validate_rating(rating: Optional[int]) -> None:
    if rating is None:
        return
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError(f"Rating must be an integer from 1 to 5, got {rating!r}")


class AgendaEngine:
    """Owns the reading-list state machine (toRead -> reading -> finished).

    Every mutating call persists the agenda before returning. Lookups of
    unknown item ids return ``False``; invalid input raises
    ``ValidationError`` before any state is touched.
    """

    def __init__(
        self,
        store: PersistentStore,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.clock = clock
        self.agenda = Agenda()
        self.load_from_storage()

    def load_from_storage(self) -> None:
        """Load agenda from the store, falling back to an empty agenda."""
        stored = self.store.load_agenda()
        if stored is None:
            return

        try:
            self.agenda = Agenda.from_dict(stored)
        except (KeyError, TypeError, ValueError) as e:
            print(f"⚠️  Warning: stored agenda is malformed, starting fresh: {e}")
            self.agenda = Agenda()
            self.save_to_storage()
            return

        # Streak and weekly time depend on today
        self.recompute_stats()

    def save_to_storage(self) -> bool:
        self.agenda.last_updated = self.clock()
        return self.store.save_agenda(self.agenda.to_dict())

    # Lists

    def add_to_reading_list(
        self,
        book: Union[BookRef, dict[str, Any]],
        priority: Union[Priority, str] = Priority.MEDIUM,
        notes: str = "",
        planned_read_date: Optional[datetime] = None,
    ) -> AgendaItem:
        """Add a book to the to-read list.

        An unread item for the same book is updated in place (keeping its
        item id and date added) instead of being duplicated.
        """
        if isinstance(book, dict):
            book = BookRef.from_dict(book)
        if book is None or not book.id or not book.title:
            raise ValidationError("Invalid book data: id and title are required")
        try:
            priority = Priority(priority)
        except ValueError:
            raise ValidationError(f"Unknown priority: {priority!r}") from None

        existing_index = next(
            (
                i for i, item in enumerate(self.agenda.to_read_list)
                if item.book_id == book.id and not item.is_read
            ),
            None,
        )

        now = self.clock()
        item = AgendaItem.from_book(
            new_id("book"),
            book,
            priority=priority,
            date_added=now,
            notes=notes,
            planned_read_date=parse_datetime(planned_read_date),
        )

        if existing_index is None:
            self.agenda.to_read_list.append(item)
        else:
            existing = self.agenda.to_read_list[existing_index]
            item.item_id = existing.item_id
            item.date_added = existing.date_added
            self.agenda.to_read_list[existing_index] = item

        self.save_to_storage()
        return item

    def start_reading(self, item_id: str, current_page: int = 0) -> bool:
        """Move an item from the to-read list to currently reading."""
        if current_page < 0:
            raise ValidationError("Current page cannot be negative")

        index = self._index_of(self.agenda.to_read_list, item_id)
        if index is None:
            return False

        item = self.agenda.to_read_list.pop(index)
        now = self.clock()
        item.start_date = now
        item.current_page = self._clamp_page(item, current_page)
        item.reading_sessions = []
        item.last_read = now
        self.agenda.currently_reading.append(item)

        self.save_to_storage()
        return True

    def add_reading_session(self, item_id: str, pages_read: int, minutes_spent: int = 0) -> bool:
        """Log a reading session for a book that is currently being read."""
        if isinstance(pages_read, bool) or not isinstance(pages_read, int) or pages_read <= 0:
            raise ValidationError("Pages read must be a positive integer")
        if isinstance(minutes_spent, bool) or not isinstance(minutes_spent, int) or minutes_spent < 0:
            raise ValidationError("Minutes spent cannot be negative")

        index = self._index_of(self.agenda.currently_reading, item_id)
        if index is None:
            return False

        item = self.agenda.currently_reading[index]
        now = self.clock()
        new_page = self._clamp_page(item, item.current_page + pages_read)
        session = ReadingSession(
            date=now,
            pages_read=pages_read,
            minutes_spent=minutes_spent,
            start_page=item.current_page,
            end_page=new_page,
        )
        item.current_page = new_page
        item.last_read = now
        item.reading_sessions.append(session)

        self.recompute_stats()
        self.save_to_storage()
        return True

    def finish_reading(
        self,
        item_id: str,
        rating: Optional[int] = None,
        review: str = "",
        finish_date: Optional[datetime] = None,
    ) -> bool:
        """Move an item from currently reading to finished books."""
        validate_rating(rating)

        index = self._index_of(self.agenda.currently_reading, item_id)
        if index is None:
            return False

        item = self.agenda.currently_reading.pop(index)
        item.finish_date = parse_datetime(finish_date) or self.clock()
        item.rating = rating
        item.review = review
        item.is_read = True
        item.reading_time = sum(s.minutes_spent for s in item.reading_sessions)
        self.agenda.finished_books.append(item)

        self.recompute_stats()
        self._check_goals_completion()
        self.save_to_storage()
        return True

    def update_book_notes(self, item_id: str, notes: str) -> bool:
        item = self.find_book_by_id(item_id)
        if item is None:
            return False
        item.notes = notes
        self.save_to_storage()
        return True

    def find_book_by_id(self, item_id: str) -> Optional[AgendaItem]:
        for books in (
            self.agenda.to_read_list,
            self.agenda.currently_reading,
            self.agenda.finished_books,
        ):
            for item in books:
                if item.item_id == item_id:
                    return item
        return None

    def get_books_by_status(self, status: Union[ReadingStatus, str]) -> list[AgendaItem]:
        try:
            status = ReadingStatus(status)
        except ValueError:
            return []
        if status == ReadingStatus.TO_READ:
            return list(self.agenda.to_read_list)
        if status == ReadingStatus.READING:
            return list(self.agenda.currently_reading)
        return list(self.agenda.finished_books)

    # Goals

    def set_reading_goal(
        self,
        target_books: int,
        timeframe: Union[Timeframe, str] = Timeframe.YEAR,
        end_date: Optional[datetime] = None,
        description: str = "",
    ) -> ReadingGoal:
        if isinstance(target_books, bool) or not isinstance(target_books, int) or target_books <= 0:
            raise ValidationError("Target books must be a positive integer")
        try:
            timeframe = Timeframe(timeframe)
        except ValueError:
            raise ValidationError(f"Unknown timeframe: {timeframe!r}") from None

        now = self.clock()
        goal = ReadingGoal(
            goal_id=new_id("goal"),
            target_books=target_books,
            timeframe=timeframe,
            start_date=now,
            end_date=parse_datetime(end_date) or goal_end_date(timeframe, now),
            description=description or f"Read {target_books} books this {timeframe.value}",
        )
        self.agenda.reading_goals.append(goal)
        self.save_to_storage()
        return goal

    def check_goals_completion(self) -> list[ReadingGoal]:
        """Recount finished books for every incomplete goal.

        Returns the goals that became completed during this call.
        """
        completed = self._check_goals_completion()
        self.save_to_storage()
        return completed

    def _check_goals_completion(self) -> list[ReadingGoal]:
        completed = []
        for goal in self.agenda.reading_goals:
            if goal.is_completed:
                continue

            books_in_period = sum(
                1 for book in self.agenda.finished_books
                if book.finish_date is not None
                and goal.start_date <= book.finish_date <= goal.end_date
            )
            goal.books_completed = books_in_period
            goal.progress = min(100.0, books_in_period / goal.target_books * 100)

            if books_in_period >= goal.target_books:
                goal.is_completed = True
                self.agenda.reading_stats.goals_completed += 1
                completed.append(goal)
        return completed

    def get_active_goals(self) -> list[ReadingGoal]:
        now = self.clock()
        return [
            goal for goal in self.agenda.reading_goals
            if not goal.is_completed and goal.end_date > now
        ]

    # Stats

    def recompute_stats(self) -> ReadingStats:
        """Rebuild every aggregate from the agenda lists."""
        now = self.clock()
        finished = self.agenda.finished_books
        stats = self.agenda.reading_stats
        sessions = self._all_sessions()

        stats.books_read_this_year = sum(
            1 for book in finished
            if book.finish_date is not None and book.finish_date.year == now.year
        )
        stats.pages_read_this_year = sum(
            s.pages_advanced for s in sessions if s.date.year == now.year
        )
        stats.reading_streak = self.calculate_reading_streak()
        stats.reading_time_per_week = self.calculate_weekly_reading_time()

        ratings = [book.rating for book in finished if book.rating]
        stats.average_rating = sum(ratings) / len(ratings) if ratings else 0.0
        stats.favorite_genres = self.calculate_favorite_genres()
        stats.goals_completed = sum(1 for goal in self.agenda.reading_goals if goal.is_completed)
        stats.total_books_read = len(finished)
        return stats

    def calculate_reading_streak(self) -> int:
        """Count consecutive days, ending today, with at least one session."""
        days = {s.date.date() for s in self._all_sessions()}
        streak = 0
        current: date = self.clock().date()
        while current in days:
            streak += 1
            current -= timedelta(days=1)
        return streak

    def calculate_weekly_reading_time(self) -> int:
        week_ago = self.clock() - timedelta(days=7)
        return sum(s.minutes_spent for s in self._all_sessions() if s.date >= week_ago)

    def calculate_favorite_genres(self) -> list[str]:
        counts: Counter[str] = Counter()
        for book in self.agenda.finished_books:
            counts.update(book.categories)
        return [genre for genre, _ in counts.most_common(FAVORITE_GENRES_LIMIT)]

    def get_reading_stats(self) -> ReadingStats:
        return self.agenda.reading_stats

    def get_agenda_summary(self) -> dict[str, Any]:
        return {
            "toReadCount": len(self.agenda.to_read_list),
            "currentlyReadingCount": len(self.agenda.currently_reading),
            "finishedCount": len(self.agenda.finished_books),
            "activeGoals": len(self.get_active_goals()),
            "readingStats": self.agenda.reading_stats.to_dict(),
        }

    # Import / export

    def export_agenda_data(self) -> str:
        agenda = self.agenda
        return json.dumps(
            {
                "version": EXPORT_VERSION,
                "exportDate": format_datetime(self.clock()),
                "agenda": agenda.to_dict(),
                "metadata": {
                    "totalBooks": len(agenda.to_read_list)
                    + len(agenda.currently_reading)
                    + len(agenda.finished_books),
                    "totalGoals": len(agenda.reading_goals),
                },
            },
            indent=2,
            ensure_ascii=False,
        )

    def import_agenda_data(self, data: Union[str, dict[str, Any]]) -> bool:
        """Replace the agenda with an exported payload.

        The current state is left untouched unless the payload is valid.
        """
        try:
            parsed = json.loads(data) if isinstance(data, str) else data
        except json.JSONDecodeError as e:
            print(f"⚠️  Warning: import payload is not valid JSON: {e}")
            return False

        if not isinstance(parsed, dict):
            return False
        if parsed.get("version") not in SUPPORTED_EXPORT_VERSIONS:
            print(f"⚠️  Warning: unsupported export version: {parsed.get('version')!r}")
            return False
        if not isinstance(parsed.get("agenda"), dict):
            return False

        try:
            imported = Agenda.from_dict({**Agenda().to_dict(), **parsed["agenda"]})
        except (KeyError, TypeError, ValueError) as e:
            print(f"⚠️  Warning: import payload is malformed: {e}")
            return False

        item_ids = [
            item.item_id
            for items in (imported.to_read_list, imported.currently_reading, imported.finished_books)
            for item in items
        ]
        if len(item_ids) != len(set(item_ids)):
            print("⚠️  Warning: import payload lists the same item more than once")
            return False

        self.agenda = imported
        self.recompute_stats()
        self.save_to_storage()
        return True

    def clear_all_data(self) -> None:
        self.agenda = Agenda()
        self.save_to_storage()

    # Helpers

    def _all_sessions(self) -> list[ReadingSession]:
        return [
            session
            for book in self.agenda.currently_reading + self.agenda.finished_books
            for session in book.reading_sessions
        ]

    @staticmethod
    def _index_of(items: list[AgendaItem], item_id: str) -> Optional[int]:
        return next((i for i, item in enumerate(items) if item.item_id == item_id), None)

    @staticmethod
    def _clamp_page(item: AgendaItem, page: int) -> int:
        if item.has_known_page_count:
            return min(page, item.page_count)
        return page
