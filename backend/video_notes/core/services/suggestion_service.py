from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from video_notes.core.exceptions import NoteStorageError
from video_notes.core.schemas.note_search import SearchSuggestion, SuggestionKind, SuggestionType
from video_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from video_notes.core.repositories.note_repository import NoteRepository
    from video_notes.core.schemas.note_search import NoteDigest, SuggestionRequest

logger = get_logger(__name__)

_NON_WORD = re.compile(r"[^\w\s]")
MIN_TOKEN_LENGTH = 3
CONTEXT_RADIUS = 30
MAX_CONTEXTS = 3


def tokenize(content: str) -> list[str]:
    """Lower-case, replace punctuation with spaces, split on whitespace."""
    return _NON_WORD.sub(" ", content.lower()).split()


def context_around(content: str, token: str) -> str | None:
    index = content.lower().find(token)
    if index == -1:
        return None
    start = max(0, index - CONTEXT_RADIUS)
    end = min(len(content), index + len(token) + CONTEXT_RADIUS)
    return content[start:end].strip()


@dataclass(slots=True)
class _TokenStats:
    count: int = 0
    contexts: list[str] = field(default_factory=list)


def content_suggestions(notes: Iterable[NoteDigest], query: str) -> list[SearchSuggestion]:
    needle = query.lower()
    words: dict[str, _TokenStats] = {}

    for note in notes:
        seen_in_note: set[str] = set()
        for word in tokenize(note.content):
            if len(word) < MIN_TOKEN_LENGTH or needle not in word or word == needle:
                continue
            stats = words.setdefault(word, _TokenStats())
            stats.count += 1
            if word in seen_in_note or len(stats.contexts) >= MAX_CONTEXTS:
                continue
            seen_in_note.add(word)
            context = context_around(note.content, word)
            if context:
                stats.contexts.append(context)

    return [
        SearchSuggestion(
            text=word,
            type=SuggestionKind.CONTENT,
            frequency=stats.count,
            context=stats.contexts[0] if stats.contexts else None,
        )
        for word, stats in words.items()
    ]


def tag_suggestions(notes: Iterable[NoteDigest], query: str) -> list[SearchSuggestion]:
    needle = query.lower()
    frequency: dict[str, int] = {}
    for note in notes:
        for tag in note.tags:
            lowered = tag.lower()
            if needle in lowered and lowered != needle:
                frequency[tag] = frequency.get(tag, 0) + 1
    return [
        SearchSuggestion(text=tag, type=SuggestionKind.TAG, frequency=count)
        for tag, count in frequency.items()
    ]


class SuggestionService:
    """Autocomplete from the words and tags in a user's own notes.

    Loads every note the user owns and ranks candidates by occurrence count.
    Ties keep first-seen order, content words ahead of tags.
    """

    def __init__(self, repo: NoteRepository) -> None:
        self._repo = repo

    async def suggest(self, *, user_id: str, request: SuggestionRequest) -> list[SearchSuggestion]:
        try:
            notes = await self._repo.scan(user_id)
        except Exception as err:
            logger.error("Error getting search suggestions", extra={"user_id": user_id, "error": str(err)})
            raise NoteStorageError("Failed to get search suggestions") from err

        suggestions: list[SearchSuggestion] = []
        if request.type in (SuggestionType.CONTENT, SuggestionType.BOTH):
            suggestions.extend(content_suggestions(notes, request.query))
        if request.type in (SuggestionType.TAGS, SuggestionType.BOTH):
            suggestions.extend(tag_suggestions(notes, request.query))

        ranked = sorted(suggestions, key=lambda s: s.frequency, reverse=True)
        return ranked[: request.limit]
