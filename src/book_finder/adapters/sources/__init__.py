"""Source adapters for external book catalogs."""

from book_finder.adapters.sources.google_books_source import GoogleBooksSource
from book_finder.adapters.sources.open_library_source import OpenLibrarySource

__all__ = ["GoogleBooksSource", "OpenLibrarySource"]
