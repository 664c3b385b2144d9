from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from video_notes.core.exceptions import NoteStorageError
from video_notes.core.models.note import Note
from video_notes.core.schemas.note_search import NoteStats
from video_notes.core.search.filters import NoteFilter, NoteOrder
from video_notes.utils.logging import get_logger
from video_notes.utils.validation import normalize_content, normalize_tags

if TYPE_CHECKING:
    from collections.abc import Sequence

    from video_notes.core.repositories.note_repository import NoteRepository

logger = get_logger(__name__)


def _parse_note_id(note_id: str | UUID) -> UUID | None:
    try:
        return UUID(str(note_id))
    except ValueError:
        return None


class NoteService:
    """Owner-scoped note management.

    Missing notes and notes owned by someone else are reported the same way
    (``None`` / ``False``) so callers cannot probe for other users' notes.
    Validation problems raise ``ValueError``; storage failures are logged and
    re-raised as :class:`NoteStorageError`.
    """

    def __init__(self, repo: NoteRepository) -> None:
        self._repo = repo

    async def create_note(self, create_dto, user_id: str) -> Note:
        content = normalize_content(create_dto.content)
        video_id = (create_dto.video_id or "").strip()
        if not video_id:
            raise ValueError("Video ID is required")

        note = Note(
            video_id=video_id,
            content=content,
            tags=normalize_tags(getattr(create_dto, "tags", None)),
            user_id=user_id,
        )
        try:
            created = await self._repo.create(note)
        except Exception as err:
            logger.error("Error creating note", extra={"user_id": user_id, "error": str(err)})
            raise NoteStorageError("Failed to create note") from err
        logger.info("Note created", extra={"note_id": str(created.id), "user_id": user_id})
        return created

    async def get_note(self, note_id: str | UUID, user_id: str) -> Note | None:
        """Return note if it exists and belongs to the user; otherwise None."""
        note_uuid = _parse_note_id(note_id)
        if note_uuid is None:
            return None
        try:
            return await self._repo.find_by_id(note_uuid, user_id)
        except Exception as err:
            logger.error("Error fetching note", extra={"note_id": str(note_id), "error": str(err)})
            raise NoteStorageError("Failed to fetch note") from err

    async def update_note(self, note_id: str | UUID, update_dto, user_id: str) -> Note | None:
        """Apply the fields explicitly set on ``update_dto``; others stay untouched."""
        note_uuid = _parse_note_id(note_id)
        if note_uuid is None:
            return None

        raw_changes = update_dto.model_dump(exclude_unset=True)
        changes: dict = {}
        if raw_changes.get("content") is not None:
            changes["content"] = normalize_content(raw_changes["content"])
        if raw_changes.get("video_id") is not None:
            video_id = raw_changes["video_id"].strip()
            if not video_id:
                raise ValueError("Video ID is required")
            changes["video_id"] = video_id
        if raw_changes.get("tags") is not None:
            changes["tags"] = normalize_tags(raw_changes["tags"])

        try:
            updated = await self._repo.update(note_uuid, user_id, changes)
        except Exception as err:
            logger.error("Error updating note", extra={"note_id": str(note_id), "error": str(err)})
            raise NoteStorageError("Failed to update note") from err
        if updated is not None:
            logger.info("Note updated", extra={"note_id": str(note_uuid), "fields": sorted(changes)})
        return updated

    async def delete_note(self, note_id: str | UUID, user_id: str) -> bool:
        note_uuid = _parse_note_id(note_id)
        if note_uuid is None:
            return False
        try:
            deleted = await self._repo.delete(note_uuid, user_id)
        except Exception as err:
            logger.error("Error deleting note", extra={"note_id": str(note_id), "error": str(err)})
            raise NoteStorageError("Failed to delete note") from err
        if deleted:
            logger.info("Note deleted", extra={"note_id": str(note_uuid), "user_id": user_id})
        return deleted

    async def list_video_notes(self, video_id: str, user_id: str) -> Sequence[Note]:
        """All of the user's notes for one video, newest first."""
        try:
            return await self._repo.find_many(
                NoteFilter(user_id=user_id, video_id=video_id),
                order=NoteOrder("created_at", descending=True),
            )
        except Exception as err:
            logger.error("Error fetching notes for video", extra={"video_id": video_id, "error": str(err)})
            raise NoteStorageError("Failed to fetch notes for video") from err

    async def get_stats(self, user_id: str, *, now: datetime | None = None) -> NoteStats:
        now = now or datetime.now(UTC)
        month_start = now.astimezone(UTC).replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        try:
            total = await self._repo.count(NoteFilter(user_id=user_id))
            this_month = await self._repo.count(NoteFilter(user_id=user_id, created_from=month_start))
            digests = await self._repo.scan(user_id)
        except Exception as err:
            logger.error("Error fetching notes stats", extra={"user_id": user_id, "error": str(err)})
            raise NoteStorageError("Failed to fetch notes statistics") from err
        return NoteStats(
            total_notes=total,
            notes_this_month=this_month,
            unique_videos=len({d.video_id for d in digests}),
        )
