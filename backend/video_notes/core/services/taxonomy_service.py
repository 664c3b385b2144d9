from __future__ import annotations

from typing import TYPE_CHECKING

from video_notes.core.exceptions import NoteStorageError
from video_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from video_notes.core.repositories.note_repository import NoteRepository


logger = get_logger(__name__)


def merge_tags(tag_lists: Iterable[list[str]]) -> list[str]:
    """Union tag lists case-insensitively and sort them.

    The first spelling seen for a tag is the one kept.
    """
    by_key: dict[str, str] = {}
    for tags in tag_lists:
        for tag in tags:
            cleaned = tag.strip()
            if cleaned:
                by_key.setdefault(cleaned.casefold(), cleaned)
    return sorted(by_key.values(), key=lambda t: (t.casefold(), t))


async def list_user_tags(*, user_id: str, repo: NoteRepository) -> list[str]:
    """Return every distinct tag the user has attached to a note."""
    try:
        digests = await repo.scan(user_id)
    except Exception as err:
        logger.error("Failed to build tag catalog for user %s: %s", user_id, err)
        raise NoteStorageError("Failed to fetch user tags") from err
    return merge_tags(d.tags for d in digests)
