"""CLI entry point for book finder."""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from book_finder.adapters.sources import GoogleBooksSource, OpenLibrarySource
from book_finder.adapters.storage import FileStorageBackend
from book_finder.config import Settings, get_settings
from book_finder.core import (
    AgendaEngine,
    AgendaItem,
    BookFinderError,
    BookRef,
    DiscussionEngine,
    DiscussionRoom,
    ExternalFetchError,
    PersistentStore,
)
from book_finder.use_cases import RecommendationEngine, SearchService

cli = typer.Typer(help="Discover books, track your reading agenda and discuss books.")


@dataclass
class AppContext:
    """Engines wired over the configured data directory."""
    settings: Settings
    store: PersistentStore
    agenda: AgendaEngine
    discussions: DiscussionEngine
    google_books: GoogleBooksSource
    open_library: OpenLibrarySource


def build_context(config: Path = Path("config.yaml")) -> AppContext:
    settings = get_settings(config)
    store = PersistentStore(
        FileStorageBackend(settings.data_dir, quota_bytes=settings.storage.quota_bytes),
        search_history_limit=settings.storage.search_history_limit,
    )
    return AppContext(
        settings=settings,
        store=store,
        agenda=AgendaEngine(store),
        discussions=DiscussionEngine(store),
        google_books=GoogleBooksSource(
            api_key=settings.google_books_api_key,
            base_url=settings.sources.google_books_url,
            timeout=settings.sources.timeout,
        ),
        open_library=OpenLibrarySource(
            base_url=settings.sources.open_library_url,
            covers_url=settings.sources.open_library_covers_url,
            timeout=settings.sources.timeout,
        ),
    )


def _format_book(book: BookRef) -> str:
    year = f" ({book.published_date[:4]})" if book.published_date else ""
    return f"{book.title} by {', '.join(book.authors)}{year} [{book.source}:{book.id}]"


def _format_item(item: AgendaItem) -> str:
    line = f"{item.item_id}  {item.title} by {', '.join(item.authors)}"
    if item.start_date and not item.is_read:
        total = f"/{item.page_count}" if item.has_known_page_count else ""
        line += f"  (page {item.current_page}{total})"
    if item.is_read and item.rating:
        line += f"  {'★' * item.rating}{'☆' * (5 - item.rating)}"
    if not item.start_date:
        line += f"  [{item.priority.value}]"
    return line


def _format_room(room: DiscussionRoom) -> str:
    status = "open" if room.is_active else "closed"
    return (
        f"{room.room_id}  {room.name} ({status}, "
        f"{len(room.members)} members, {len(room.messages)} messages)"
    )


def _fail(message: str) -> None:
    print(f"❌ {message}")
    raise typer.Exit(code=1)


@cli.command()
def search(query: str, config: Path = Path("config.yaml")) -> None:
    """Search Google Books and Open Library."""
    ctx = build_context(config)
    service = SearchService(
        ctx.google_books,
        ctx.open_library,
        store=ctx.store,
        max_results=ctx.settings.sources.max_results,
        max_merged_results=ctx.settings.sources.max_merged_results,
    )
    results = asyncio.run(service.search(query))

    if not results:
        print("No books found")
        return
    print(f"\n📚 Search results ({len(results)} books)")
    for book in results:
        print(f"  • {_format_book(book)}")


@cli.command()
def add(
    book_id: str,
    source: str = typer.Option("google", help="google or openlibrary"),
    priority: str = typer.Option("medium", help="low, medium or high"),
    notes: str = "",
    config: Path = Path("config.yaml"),
) -> None:
    """Add a catalog book to the to-read list."""
    ctx = build_context(config)
    service = SearchService(ctx.google_books, ctx.open_library)
    try:
        book = asyncio.run(service.get_book_details(book_id, source))
    except ExternalFetchError as e:
        _fail(f"Failed to load book details: {e}")
    if book is None:
        _fail(f"Book not found: {book_id}")

    try:
        item = ctx.agenda.add_to_reading_list(book, priority=priority, notes=notes)
    except BookFinderError as e:
        _fail(str(e))
    print(f"✓ Added to reading list: {_format_item(item)}")


@cli.command()
def start(item_id: str, page: int = 0, config: Path = Path("config.yaml")) -> None:
    """Start reading a to-read item."""
    ctx = build_context(config)
    if not ctx.agenda.start_reading(item_id, page):
        _fail(f"Not in to-read list: {item_id}")
    print(f"✓ Started reading {item_id}")


@cli.command("log")
def log_session(
    item_id: str,
    pages: int,
    minutes: int = 0,
    config: Path = Path("config.yaml"),
) -> None:
    """Log a reading session."""
    ctx = build_context(config)
    try:
        logged = ctx.agenda.add_reading_session(item_id, pages, minutes)
    except BookFinderError as e:
        _fail(str(e))
    if not logged:
        _fail(f"Not currently reading: {item_id}")

    item = ctx.agenda.find_book_by_id(item_id)
    stats = ctx.agenda.get_reading_stats()
    print(f"✓ Session logged, now on page {item.current_page}")
    print(f"  🔥 Streak: {stats.reading_streak} days, {stats.reading_time_per_week} min this week")


@cli.command()
def finish(
    item_id: str,
    rating: Optional[int] = None,
    review: str = "",
    config: Path = Path("config.yaml"),
) -> None:
    """Mark a book as finished."""
    ctx = build_context(config)
    try:
        finished = ctx.agenda.finish_reading(item_id, rating=rating, review=review)
    except BookFinderError as e:
        _fail(str(e))
    if not finished:
        _fail(f"Not currently reading: {item_id}")
    print(f"✓ Finished {item_id}. Total books read: {ctx.agenda.get_reading_stats().total_books_read}")


@cli.command()
def notes(item_id: str, text: str, config: Path = Path("config.yaml")) -> None:
    """Replace the notes of an agenda item."""
    ctx = build_context(config)
    if not ctx.agenda.update_book_notes(item_id, text):
        _fail(f"Unknown item: {item_id}")
    print("✓ Notes updated")


@cli.command()
def goal(
    target: int,
    timeframe: str = typer.Option("year", help="month, quarter or year"),
    description: str = "",
    config: Path = Path("config.yaml"),
) -> None:
    """Set a reading goal."""
    ctx = build_context(config)
    try:
        new_goal = ctx.agenda.set_reading_goal(target, timeframe, description=description)
    except BookFinderError as e:
        _fail(str(e))
    print(f"🎯 {new_goal.description} (until {new_goal.end_date.date().isoformat()})")


@cli.command("list")
def list_books(
    status: str = typer.Argument("toRead", help="toRead, reading or finished"),
    config: Path = Path("config.yaml"),
) -> None:
    """List agenda books by status."""
    ctx = build_context(config)
    books = ctx.agenda.get_books_by_status(status)
    if not books:
        print(f"No books in '{status}'")
        return
    for item in books:
        print(f"  • {_format_item(item)}")


@cli.command()
def stats(config: Path = Path("config.yaml")) -> None:
    """Show agenda summary, goals and reading stats."""
    ctx = build_context(config)
    summary = ctx.agenda.get_agenda_summary()
    reading_stats = ctx.agenda.get_reading_stats()

    print("\n📊 Agenda")
    print(f"  • To read: {summary['toReadCount']}")
    print(f"  • Reading: {summary['currentlyReadingCount']}")
    print(f"  • Finished: {summary['finishedCount']}")
    print(f"  • Books this year: {reading_stats.books_read_this_year}")
    print(f"  • Pages this year: {reading_stats.pages_read_this_year}")
    print(f"  • Streak: {reading_stats.reading_streak} days")
    print(f"  • Average rating: {reading_stats.average_rating:.1f}")
    if reading_stats.favorite_genres:
        print(f"  • Favorite genres: {', '.join(reading_stats.favorite_genres)}")

    goals = ctx.agenda.get_active_goals()
    if goals:
        print("\n🎯 Active goals")
        for active in goals:
            print(f"  • {active.description}: {active.books_completed}/{active.target_books} ({active.progress:.0f}%)")


@cli.command("export")
def export_agenda(output: Path, config: Path = Path("config.yaml")) -> None:
    """Export the agenda as JSON."""
    ctx = build_context(config)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(ctx.agenda.export_agenda_data(), encoding="utf-8")
    print(f"✓ Agenda exported to {output}")


@cli.command("import")
def import_agenda(source: Path, config: Path = Path("config.yaml")) -> None:
    """Import an exported agenda, replacing the current one."""
    ctx = build_context(config)
    if not ctx.agenda.import_agenda_data(source.read_text(encoding="utf-8")):
        _fail(f"Could not import {source}")
    print(f"✓ Agenda imported from {source}")


@cli.command()
def rooms(
    query: Optional[str] = typer.Argument(None, help="Search term"),
    limit: int = 5,
    config: Path = Path("config.yaml"),
) -> None:
    """List recent discussion rooms or search them."""
    ctx = build_context(config)
    if query:
        found = ctx.discussions.search_discussions(query)
    else:
        found = ctx.discussions.get_recent_discussions(limit)

    room_stats = ctx.discussions.get_statistics()
    print(f"\n💬 {room_stats['activeRooms']} active rooms, {room_stats['totalMessages']} messages")
    for room in found:
        print(f"  • {_format_room(room)}")


@cli.command("room-create")
def room_create(
    book_id: str,
    title: str,
    author: str,
    name: Optional[str] = None,
    config: Path = Path("config.yaml"),
) -> None:
    """Create a discussion room for a book."""
    ctx = build_context(config)
    try:
        room = ctx.discussions.create_discussion_room(
            book_id, title, author, name, created_by=ctx.settings.user_name
        )
    except BookFinderError as e:
        _fail(str(e))
    print(f"✓ Created {_format_room(room)}")


@cli.command()
def post(
    room_id: str,
    message: str,
    rating: Optional[int] = None,
    config: Path = Path("config.yaml"),
) -> None:
    """Post a message to a room."""
    ctx = build_context(config)
    try:
        posted = ctx.discussions.post_message(room_id, ctx.settings.user_name, message, rating)
    except BookFinderError as e:
        _fail(str(e))
    print(f"✓ Posted {posted.message_id}")


@cli.command()
def like(room_id: str, message_id: str, config: Path = Path("config.yaml")) -> None:
    """Toggle your like on a message."""
    ctx = build_context(config)
    try:
        liked = ctx.discussions.like_message(room_id, message_id, ctx.settings.user_name)
    except BookFinderError as e:
        _fail(str(e))
    if not liked:
        _fail(f"Message not found: {message_id}")
    message = ctx.discussions.find_room_by_id(room_id).find_message(message_id)
    print(f"👍 {message.like_count} likes")


@cli.command()
def reply(room_id: str, message_id: str, text: str, config: Path = Path("config.yaml")) -> None:
    """Reply to a message."""
    ctx = build_context(config)
    try:
        posted = ctx.discussions.post_reply(room_id, message_id, ctx.settings.user_name, text)
    except BookFinderError as e:
        _fail(str(e))
    print(f"✓ Replied {posted.reply_id}")


@cli.command()
def close(room_id: str, config: Path = Path("config.yaml")) -> None:
    """Close a discussion room."""
    ctx = build_context(config)
    if not ctx.discussions.close_room(room_id, ctx.settings.user_name):
        _fail(f"No open room: {room_id}")
    print(f"✓ Closed {room_id}")


@cli.command()
def recommend(
    weekly: bool = typer.Option(False, "--weekly", help="Also show this week's picks"),
    config: Path = Path("config.yaml"),
) -> None:
    """Generate personalized recommendations."""
    ctx = build_context(config)
    rec_config = ctx.settings.recommendations
    engine = RecommendationEngine(
        ctx.agenda,
        ctx.google_books,
        ctx.open_library,
        max_results=rec_config.max_results,
        genre_limit=rec_config.genre_limit,
        per_genre=rec_config.per_genre,
        popular_limit=rec_config.popular_limit,
        award_limit=rec_config.award_limit,
        weights=rec_config.weights,
    )
    profile = engine.analyze_user_preferences()
    print(f"\n✨ Based on: {', '.join(profile.favorite_genres)}")

    recommendations = asyncio.run(engine.generate_recommendations())
    for rec in recommendations:
        print(f"  • [{rec.relevance_score:.0%}] {_format_book(rec.book)}")
        print(f"     └─ {rec.reason}")

    if weekly:
        picks = asyncio.run(engine.get_weekly_picks())
        if picks:
            print(f"\n📅 {picks[0].reason}s")
        for pick in picks:
            print(f"  • {_format_book(pick.book)}")


@cli.command()
def storage(config: Path = Path("config.yaml")) -> None:
    """Show storage usage."""
    ctx = build_context(config)
    report = ctx.store.usage_report()
    print(f"\n💾 Storage: {report['totalSizeKB']} KB")
    for key, usage in report["usage"].items():
        print(f"  • {key}: {usage['sizeKB']} KB")
    if not report["persistent"]:
        print("  ⚠️  Storage unavailable, nothing is persisted")


@cli.command()
def clear(
    yes: bool = typer.Option(False, "--yes", help="Skip confirmation"),
    config: Path = Path("config.yaml"),
) -> None:
    """Delete all agenda and discussion data."""
    if not yes and not typer.confirm("Delete all book finder data?"):
        raise typer.Abort()
    ctx = build_context(config)
    ctx.agenda.clear_all_data()
    ctx.discussions.clear_all_data()
    ctx.store.clear_all_app_data()
    print("✓ All data cleared")


def app() -> None:
    """CLI entry point."""
    cli()


if __name__ == "__main__":
    app()
