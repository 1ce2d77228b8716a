"""Error taxonomy for the book finder core."""


class BookFinderError(Exception):
    """Base class for all book finder errors."""


class ValidationError(BookFinderError, ValueError):
    """Input rejected before any state was touched."""


class NotFoundError(BookFinderError, LookupError):
    """Referenced item, room or message does not exist."""


class RoomClosedError(BookFinderError):
    """Discussion room is no longer active."""


class StorageError(BookFinderError):
    """Persistence failed (serialization or backend error)."""


class QuotaExceededError(StorageError):
    """Storage backend ran out of space."""


class ExternalFetchError(BookFinderError):
    """Request to an external book catalog failed."""
