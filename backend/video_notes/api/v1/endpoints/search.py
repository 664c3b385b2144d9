from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Query

from video_notes.api.v1.schemas.common import APIResponse
from video_notes.api.v1.schemas.note_search import NoteSearchPagePublic, SearchSuggestionPublic
from video_notes.core.schemas.note_search import (
    NoteOrderBy,
    NoteSearchRequest,
    OrderDirection,
    SuggestionRequest,
    SuggestionType,
)
from video_notes.dependencies import (
    get_rate_limited_user,
    get_search_service,
    get_suggestion_service,
)
from video_notes.utils.validation import split_csv

if TYPE_CHECKING:
    from video_notes.core.schemas.auth import AuthUser
    from video_notes.core.services.search_service import SearchService
    from video_notes.core.services.suggestion_service import SuggestionService

router = APIRouter()


@router.get("/search", response_model=APIResponse[NoteSearchPagePublic])
async def search_notes(
    query: str | None = None,
    tags: str | None = Query(default=None, description="Comma-separated tags"),
    video_id: str | None = Query(default=None, alias="videoId"),
    page: int = 1,
    limit: int = 20,
    order_by: NoteOrderBy = Query(default=NoteOrderBy.RELEVANCE, alias="orderBy"),
    order_direction: OrderDirection = Query(default=OrderDirection.DESC, alias="orderDirection"),
    include_highlights: bool = Query(default=False, alias="includeHighlights"),
    current_user: AuthUser = Depends(get_rate_limited_user),
    service: SearchService = Depends(get_search_service),
):
    """Search the caller's notes.

    Text and tag criteria must both match when both are given. ``relevance``
    ordering is approximated by most recently updated.
    """
    request = NoteSearchRequest(
        query=query,
        tags=split_csv(tags),
        video_id=video_id,
        page=page,
        limit=limit,
        order_by=order_by,
        order_direction=order_direction,
        include_highlights=include_highlights,
    )
    result = await service.search(user_id=current_user.id, request=request)
    return APIResponse(success=True, data=NoteSearchPagePublic.model_validate(result))


@router.get("/suggestions", response_model=APIResponse[list[SearchSuggestionPublic]])
async def get_suggestions(
    query: str = "",
    limit: int = 10,
    type: SuggestionType = SuggestionType.BOTH,  # noqa: A002
    current_user: AuthUser = Depends(get_rate_limited_user),
    service: SuggestionService = Depends(get_suggestion_service),
):
    """Autocomplete suggestions drawn from the caller's note words and tags."""
    request = SuggestionRequest(query=query, limit=limit, type=type)
    suggestions = await service.suggest(user_id=current_user.id, request=request)
    return APIResponse(success=True, data=[SearchSuggestionPublic.model_validate(s) for s in suggestions])
