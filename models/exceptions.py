from typing import Any, Optional


class SongLibraryError(Exception):
    """
    Base error of the song library.

    Keeps the failing operation name and the parameters that identify the
    request, so callers can log the failure without re-deriving the context.
    """
    def __init__(self, message: str, operation: Optional[str] = None, **context: Any):
        self.message = message
        self.operation = operation
        self.context = context
        super().__init__(message)

    def __str__(self):
        prefix = f"{self.operation}: " if self.operation else ""
        cause = f": {self.__cause__}" if self.__cause__ else ""
        return f"{prefix}{self.message}{cause}"


class NotFoundError(SongLibraryError):
    pass


class NoFieldsToUpdateError(SongLibraryError):
    pass


class PersistenceFailedError(SongLibraryError):
    pass


class UpstreamLookupFailedError(SongLibraryError):
    pass


class UpstreamLookupError(Exception):
    """Raised by the music info client when the lookup cannot produce a song detail."""
