from __future__ import annotations

from enum import Enum

from pydantic import Field, field_validator

from video_notes.core.models.base import AppBaseModel
from video_notes.core.models.note import Note

MAX_PAGE_SIZE = 100
MAX_SUGGESTIONS = 20


class NoteOrderBy(str, Enum):
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    CONTENT = "content"
    RELEVANCE = "relevance"

    @property
    def column(self) -> str:
        return _ORDER_COLUMNS[self]


_ORDER_COLUMNS = {
    NoteOrderBy.CREATED_AT: "created_at",
    NoteOrderBy.UPDATED_AT: "updated_at",
    NoteOrderBy.CONTENT: "content",
    # No ranking function exists; without a query relevance falls back to creation time.
    NoteOrderBy.RELEVANCE: "created_at",
}


class OrderDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SuggestionType(str, Enum):
    CONTENT = "content"
    TAGS = "tags"
    BOTH = "both"


class SuggestionKind(str, Enum):
    CONTENT = "content"
    TAG = "tag"


class NoteSearchRequest(AppBaseModel):
    """Search criteria for a single user's notes."""

    query: str | None = None
    tags: list[str] | None = None
    video_id: str | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=MAX_PAGE_SIZE)
    order_by: NoteOrderBy = NoteOrderBy.CREATED_AT
    order_direction: OrderDirection = OrderDirection.DESC
    include_highlights: bool = False


class NoteSearchHit(Note):
    highlighted_content: str | None = None


class Pagination(AppBaseModel):
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next: bool
    has_prev: bool


class NoteSearchPage(AppBaseModel):
    notes: list[NoteSearchHit]
    pagination: Pagination


class SuggestionRequest(AppBaseModel):
    query: str = Field(min_length=1)
    limit: int = Field(default=10, ge=1, le=MAX_SUGGESTIONS)
    type: SuggestionType = SuggestionType.BOTH

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Query is required")
        return stripped


class SearchSuggestion(AppBaseModel):
    text: str
    type: SuggestionKind
    frequency: int
    context: str | None = None


class NoteDigest(AppBaseModel):
    """Slim projection of a note used by full-scan features (suggestions, tags, stats)."""

    video_id: str
    content: str
    tags: list[str] = Field(default_factory=list)


class NoteStats(AppBaseModel):
    total_notes: int
    notes_this_month: int
    unique_videos: int
