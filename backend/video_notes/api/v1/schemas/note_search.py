from __future__ import annotations

from video_notes.api.v1.schemas.common import ApiModel
from video_notes.api.v1.schemas.note import NoteRead
from video_notes.core.schemas.note_search import SuggestionKind  # noqa: TCH001


class NoteSearchHitPublic(NoteRead):
    highlighted_content: str | None = None


class PaginationPublic(ApiModel):
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next: bool
    has_prev: bool


class NoteSearchPagePublic(ApiModel):
    notes: list[NoteSearchHitPublic]
    pagination: PaginationPublic


class SearchSuggestionPublic(ApiModel):
    text: str
    type: SuggestionKind
    frequency: int
    context: str | None = None
