"""Business logic use cases that reach external catalogs."""

import asyncio
import random
from collections import Counter
from datetime import date
from typing import Any, Optional

from book_finder.core import (
    AgendaEngine,
    BookRef,
    BookSource,
    PersistentStore,
    ReadingProfile,
    RecommendedBook,
)

DEFAULT_GENRES = ["Fiction", "Mystery", "Science Fiction"]

WEEKLY_GENRES = [
    "Fiction",
    "Mystery",
    "Science Fiction",
    "Fantasy",
    "Romance",
    "Thriller",
    "Biography",
    "History",
    "Science",
    "Self-Help",
]

AWARDS = ["Pulitzer", "National Book Award", "Booker Prize"]

DEFAULT_WEIGHTS = {"genre": 0.8, "award": 0.7, "popular": 0.6, "weekly": 0.9}

FALLBACK_SCORE = 0.5

FALLBACK_RECOMMENDATIONS = [
    (
        "fallback-1",
        "The Midnight Library",
        "Matt Haig",
        "A novel about a library that contains books that let you experience the lives you could have lived.",
        "https://covers.openlibrary.org/b/id/10598730-M.jpg",
        "Popular fiction with philosophical themes",
    ),
    (
        "fallback-2",
        "Project Hail Mary",
        "Andy Weir",
        "A lone astronaut must save the earth from disaster in this high-stakes sci-fi thriller.",
        "https://covers.openlibrary.org/b/id/11080272-M.jpg",
        "Engaging science fiction adventure",
    ),
    (
        "fallback-3",
        "The Vanishing Half",
        "Brit Bennett",
        "The story of twin sisters, their diverging paths, and their daughters.",
        "https://covers.openlibrary.org/b/id/10837363-M.jpg",
        "Acclaimed literary fiction",
    ),
    (
        "fallback-4",
        "Atomic Habits",
        "James Clear",
        "A guide to building good habits and breaking bad ones.",
        "https://covers.openlibrary.org/b/id/10418849-M.jpg",
        "Life-changing self-help book",
    ),
]


def fallback_recommendations() -> list[RecommendedBook]:
    """Curated list used when no catalog could be reached."""
    return [
        RecommendedBook(
            book=BookRef(
                id=book_id,
                title=title,
                authors=[author],
                description=description,
                thumbnail=thumbnail,
                source="curated",
            ),
            relevance_score=FALLBACK_SCORE,
            reason=reason,
            strategy="fallback",
        )
        for book_id, title, author, description, thumbnail, reason in FALLBACK_RECOMMENDATIONS
    ]


class RecommendationEngine:
    """Derive a preference profile and merge candidates from several strategies."""

    def __init__(
        self,
        agenda: AgendaEngine,
        google_books: BookSource,
        open_library: BookSource,
        max_results: int = 12,
        genre_limit: int = 2,
        per_genre: int = 4,
        popular_limit: int = 8,
        award_limit: int = 6,
        weights: Optional[dict[str, float]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.agenda = agenda
        self.google_books = google_books
        self.open_library = open_library
        self.max_results = max_results
        self.genre_limit = genre_limit
        self.per_genre = per_genre
        self.popular_limit = popular_limit
        self.award_limit = award_limit
        self.weights = {**DEFAULT_WEIGHTS, **(weights or {})}
        self.rng = rng or random.Random()
        self.recommendations: list[RecommendedBook] = []

    def analyze_user_preferences(self) -> ReadingProfile:
        """Frequency-count genres and authors across finished books."""
        genre_count: Counter[str] = Counter()
        author_count: Counter[str] = Counter()
        ratings = []

        for book in self.agenda.get_books_by_status("finished"):
            genre_count.update(book.categories)
            author_count.update(book.authors)
            if book.rating:
                ratings.append(book.rating)

        favorite_genres = [genre for genre, _ in genre_count.most_common(3)]
        return ReadingProfile(
            favorite_genres=favorite_genres or list(DEFAULT_GENRES),
            favorite_authors=[author for author, _ in author_count.most_common(3)],
            average_rating=sum(ratings) / len(ratings) if ratings else 0.0,
        )

    async def generate_recommendations(self) -> list[RecommendedBook]:
        """Gather all strategies, merge by id and rank by relevance score.

        Never raises: a failing strategy contributes nothing and a run
        with no candidates at all returns the curated fallback list.
        """
        try:
            profile = self.analyze_user_preferences()
            strategies = {
                "genre": self._genre_based(profile.favorite_genres),
                "popular": self._popular_books(),
                "award": self._award_winners(),
            }
            results = await asyncio.gather(*strategies.values(), return_exceptions=True)

            combined: list[RecommendedBook] = []
            used_ids: set[str] = set()
            for name, result in zip(strategies, results):
                if isinstance(result, BaseException):
                    print(f"  ⚠️  Recommendation strategy '{name}' failed: {result}")
                    continue
                for candidate in result:
                    if candidate.id not in used_ids:
                        used_ids.add(candidate.id)
                        combined.append(candidate)

            combined.sort(key=lambda r: r.relevance_score, reverse=True)
            recommendations = combined[:self.max_results]
        except Exception as e:
            print(f"⚠️  Error generating recommendations: {e}")
            recommendations = []

        if not recommendations:
            recommendations = fallback_recommendations()

        self.recommendations = recommendations
        return recommendations

    async def get_weekly_picks(self, today: Optional[date] = None) -> list[RecommendedBook]:
        """Newest books of a genre that rotates with the ISO week number."""
        today = today or date.today()
        week_number = today.isocalendar()[1]
        genre = WEEKLY_GENRES[week_number % len(WEEKLY_GENRES)]

        try:
            books = await self.google_books.search_by_subject(genre, 4)
        except Exception as e:
            print(f"  ⚠️  Failed to fetch weekly picks: {e}")
            return []

        return [
            RecommendedBook(
                book=book,
                relevance_score=self.weights["weekly"],
                reason=f"Weekly {genre} pick",
                strategy="weekly",
                is_weekly_pick=True,
            )
            for book in books
        ]

    def get_stats(self) -> dict[str, Any]:
        return {
            "totalRecommendations": len(self.recommendations),
            "sources": sorted({r.book.source for r in self.recommendations if r.book.source}),
            "genres": sorted({c for r in self.recommendations for c in r.book.categories}),
        }

    async def _genre_based(self, favorite_genres: list[str]) -> list[RecommendedBook]:
        recommendations: list[RecommendedBook] = []

        for genre in favorite_genres[:self.genre_limit]:
            try:
                books = await self.open_library.search_by_subject(genre, self.per_genre + 2)
            except Exception as e:
                print(f"  ⚠️  Failed to fetch {genre} recommendations: {e}")
                continue

            recommendations.extend(
                RecommendedBook(
                    book=book,
                    relevance_score=self.weights["genre"],
                    reason=f"Because you enjoy {genre} books",
                    strategy="genre",
                )
                for book in books[:self.per_genre]
            )

        return recommendations

    async def _popular_books(self) -> list[RecommendedBook]:
        books = await self.google_books.search_books("subject:bestseller", self.popular_limit)
        return [
            RecommendedBook(
                book=book,
                relevance_score=self.weights["popular"],
                reason="Popular bestseller",
                strategy="popular",
            )
            for book in books
        ]

    async def _award_winners(self) -> list[RecommendedBook]:
        award = self.rng.choice(AWARDS)
        books = await self.google_books.search_books(f"{award} award", self.award_limit)
        return [
            RecommendedBook(
                book=book,
                relevance_score=self.weights["award"],
                reason=f"{award} award winner",
                strategy="award",
            )
            for book in books
        ]


class SearchService:
    """Search both catalogs and merge their results."""

    def __init__(
        self,
        google_books: BookSource,
        open_library: BookSource,
        store: Optional[PersistentStore] = None,
        max_results: int = 12,
        max_merged_results: int = 20,
    ) -> None:
        self.google_books = google_books
        self.open_library = open_library
        self.store = store
        self.max_results = max_results
        self.max_merged_results = max_merged_results
        self.current_results: list[BookRef] = []

    async def search(self, query: str) -> list[BookRef]:
        """Query both sources concurrently; a failing source contributes nothing."""
        query = query.strip()
        if not query:
            return []

        google_results, open_library_results = await asyncio.gather(
            self.google_books.search_books(query, self.max_results),
            self.open_library.search_books(query, self.max_results),
            return_exceptions=True,
        )

        if isinstance(google_results, BaseException):
            print(f"  ⚠️  Google Books search failed: {google_results}")
            google_results = []
        if isinstance(open_library_results, BaseException):
            print(f"  ⚠️  Open Library search failed: {open_library_results}")
            open_library_results = []

        results = self.merge_results(google_results, open_library_results)
        self.current_results = results

        if self.store is not None:
            self.store.add_search_query(query)

        return results

    def merge_results(self, primary: list[BookRef], secondary: list[BookRef]) -> list[BookRef]:
        """Keep primary results, append secondary ones with unseen titles."""
        merged = list(primary)
        used_titles = {book.title.lower() for book in primary}

        for book in secondary:
            title = book.title.lower()
            if title not in used_titles:
                merged.append(book)
                used_titles.add(title)

        return merged[:self.max_merged_results]

    async def get_book_details(self, book_id: str, source: str = "google") -> Optional[BookRef]:
        if source == self.open_library.name:
            return await self.open_library.get_book_details(book_id)
        return await self.google_books.get_book_details(book_id)
