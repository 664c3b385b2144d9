from __future__ import annotations


class NotesError(Exception):
    """Base class for notes domain errors."""


class NoteStorageError(NotesError):
    """Unexpected storage failure, wrapped behind a generic message.

    The underlying exception is chained via ``__cause__`` and logged where it
    is caught; it is never surfaced to API callers.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
