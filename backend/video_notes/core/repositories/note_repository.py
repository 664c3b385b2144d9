from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from video_notes.core.models.note import Note
    from video_notes.core.schemas.note_search import NoteDigest
    from video_notes.core.search.filters import NoteFilter, NoteOrder


class NoteRepository(ABC):
    """Abstract repository interface for notes.

    Every lookup and mutation is scoped by owner: a note belonging to another
    user behaves exactly like a missing one. Tag values cross this boundary as
    ``list[str]``; storage encoding is the implementation's concern.
    """

    @abstractmethod
    async def create(self, note: Note) -> Note:  # pragma: no cover - interface only
        """Persist a new note and return the stored entity."""

    @abstractmethod
    async def find_by_id(self, note_id: UUID, user_id: str) -> Note | None:  # pragma: no cover
        """Fetch the user's note by id or return None."""

    @abstractmethod
    async def update(self, note_id: UUID, user_id: str, changes: dict) -> Note | None:  # pragma: no cover
        """Apply a partial update to the user's note; None if it is not theirs or missing."""

    @abstractmethod
    async def delete(self, note_id: UUID, user_id: str) -> bool:  # pragma: no cover
        """Delete the user's note. Return True if a row was removed."""

    @abstractmethod
    async def find_many(
        self,
        note_filter: NoteFilter,
        *,
        order: NoteOrder,
        skip: int = 0,
        take: int | None = None,
    ) -> Sequence[Note]:  # pragma: no cover
        """Return notes matching the filter in the given order and window."""

    @abstractmethod
    async def count(self, note_filter: NoteFilter) -> int:  # pragma: no cover
        """Return the number of notes matching the filter."""

    @abstractmethod
    async def scan(self, user_id: str) -> Sequence[NoteDigest]:  # pragma: no cover
        """Return video id, content and tags of every note the user owns."""

    @abstractmethod
    async def ping(self) -> None:  # pragma: no cover
        """Raise if the store cannot be reached."""
