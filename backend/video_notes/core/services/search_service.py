from __future__ import annotations

import asyncio
import math
import re
from typing import TYPE_CHECKING

from video_notes.core.exceptions import NoteStorageError
from video_notes.core.schemas.note_search import (
    MAX_PAGE_SIZE,
    NoteOrderBy,
    NoteSearchHit,
    NoteSearchPage,
    OrderDirection,
    Pagination,
)
from video_notes.core.search.filters import NoteOrder
from video_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from video_notes.core.models.note import Note
    from video_notes.core.repositories.note_repository import NoteRepository
    from video_notes.core.schemas.note_search import NoteSearchRequest
    from video_notes.core.search.query_builder import QueryBuilder

logger = get_logger(__name__)

# Offsets past this cannot address a stored row and overflow 64-bit storage integers.
MAX_OFFSET = 2**53


def resolve_order(order_by: NoteOrderBy, direction: OrderDirection, query: str | None) -> NoteOrder:
    """Map the requested ordering onto a concrete column.

    ``relevance`` with a query uses recency (``updated_at desc``) as a proxy;
    there is no scoring function behind it.
    """
    if order_by is NoteOrderBy.RELEVANCE and query and query.strip():
        return NoteOrder("updated_at", descending=True)
    return NoteOrder(order_by.column, descending=direction is OrderDirection.DESC)


def highlight(content: str, term: str) -> str:
    pattern = re.compile(f"({re.escape(term)})", re.IGNORECASE)
    return pattern.sub(r"<mark>\1</mark>", content)


class SearchService:
    """Paginated, filtered search over one user's notes."""

    def __init__(self, repo: NoteRepository, query_builder: QueryBuilder) -> None:
        self._repo = repo
        self._query_builder = query_builder

    async def search(self, *, user_id: str, request: NoteSearchRequest) -> NoteSearchPage:
        page = max(1, request.page)
        limit = max(1, min(MAX_PAGE_SIZE, request.limit))

        note_filter = self._query_builder.build(
            user_id=user_id,
            query=request.query,
            tags=request.tags,
            video_id=request.video_id,
        )
        order = resolve_order(request.order_by, request.order_direction, request.query)
        skip = (page - 1) * limit

        # Page and count share the same filter object; no transaction spans them.
        try:
            if skip > MAX_OFFSET:
                notes, total_count = [], await self._repo.count(note_filter)
            else:
                notes, total_count = await asyncio.gather(
                    self._repo.find_many(note_filter, order=order, skip=skip, take=limit),
                    self._repo.count(note_filter),
                )
        except Exception as err:
            logger.error("Error searching notes", extra={"user_id": user_id, "error": str(err)})
            raise NoteStorageError("Failed to search notes") from err

        term = (request.query or "").strip()
        hits = [self._to_hit(n, term if request.include_highlights else "") for n in notes]

        total_pages = math.ceil(total_count / limit)
        logger.info(
            "Search performed",
            extra={
                "user_id": user_id,
                "has_query": bool(term),
                "tag_count": len(request.tags or []),
                "results": len(hits),
                "total": total_count,
            },
        )
        return NoteSearchPage(
            notes=hits,
            pagination=Pagination(
                page=page,
                limit=limit,
                total_count=total_count,
                total_pages=total_pages,
                has_next=page < total_pages,
                has_prev=page > 1,
            ),
        )

    @staticmethod
    def _to_hit(note: Note, term: str) -> NoteSearchHit:
        hit = NoteSearchHit.model_validate(note.model_dump())
        if term:
            hit.highlighted_content = highlight(note.content, term)
        return hit
