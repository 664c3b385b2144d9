from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TCH003

from fastapi import APIRouter, Depends, HTTPException, Query, status

from video_notes.api.v1.schemas.common import APIResponse
from video_notes.api.v1.schemas.note import NoteCreate, NoteRead, NoteStatsRead, NoteUpdate
from video_notes.api.v1.schemas.note_search import NoteSearchPagePublic
from video_notes.core.schemas.note_search import NoteOrderBy, NoteSearchRequest, OrderDirection
from video_notes.dependencies import (
    get_note_service,
    get_rate_limited_user,
    get_search_service,
)
from video_notes.utils.validation import split_csv

if TYPE_CHECKING:
    from video_notes.core.schemas.auth import AuthUser
    from video_notes.core.services.note_service import NoteService
    from video_notes.core.services.search_service import SearchService

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")


@router.get("/", response_model=APIResponse[NoteSearchPagePublic])
async def list_notes(
    query: str | None = None,
    tags: str | None = Query(default=None, description="Comma-separated tags"),
    video_id: str | None = Query(default=None, alias="videoId"),
    page: int = 1,
    limit: int = 20,
    order_by: NoteOrderBy = Query(default=NoteOrderBy.CREATED_AT, alias="orderBy"),
    order_direction: OrderDirection = Query(default=OrderDirection.DESC, alias="orderDirection"),
    current_user: AuthUser = Depends(get_rate_limited_user),
    service: SearchService = Depends(get_search_service),
):
    """List the caller's notes with optional filters and pagination."""
    if order_by is NoteOrderBy.RELEVANCE:
        raise ValueError("orderBy must be one of createdAt, updatedAt, content")
    request = NoteSearchRequest(
        query=query,
        tags=split_csv(tags),
        video_id=video_id,
        page=page,
        limit=limit,
        order_by=order_by,
        order_direction=order_direction,
    )
    result = await service.search(user_id=current_user.id, request=request)
    return APIResponse(success=True, data=NoteSearchPagePublic.model_validate(result))


@router.post("/", response_model=APIResponse[NoteRead], status_code=status.HTTP_201_CREATED)
async def create_note(
    payload: NoteCreate,
    current_user: AuthUser = Depends(get_rate_limited_user),
    service: NoteService = Depends(get_note_service),
):
    note = await service.create_note(payload, user_id=current_user.id)
    return APIResponse(success=True, data=NoteRead.model_validate(note), message="Note created successfully")


@router.get("/stats", response_model=APIResponse[NoteStatsRead])
async def get_notes_stats(
    current_user: AuthUser = Depends(get_rate_limited_user),
    service: NoteService = Depends(get_note_service),
):
    stats = await service.get_stats(current_user.id)
    return APIResponse(success=True, data=NoteStatsRead.model_validate(stats))


@router.get("/videos/{video_id}", response_model=APIResponse[list[NoteRead]])
async def list_video_notes(
    video_id: str,
    current_user: AuthUser = Depends(get_rate_limited_user),
    service: NoteService = Depends(get_note_service),
):
    notes = await service.list_video_notes(video_id, user_id=current_user.id)
    return APIResponse(success=True, data=[NoteRead.model_validate(n) for n in notes])


@router.get("/{note_id}", response_model=APIResponse[NoteRead])
async def get_note(
    note_id: UUID,
    current_user: AuthUser = Depends(get_rate_limited_user),
    service: NoteService = Depends(get_note_service),
):
    note = await service.get_note(note_id, user_id=current_user.id)
    if not note:
        raise _not_found()
    return APIResponse(success=True, data=NoteRead.model_validate(note))


@router.patch("/{note_id}", response_model=APIResponse[NoteRead])
async def update_note(
    note_id: UUID,
    payload: NoteUpdate,
    current_user: AuthUser = Depends(get_rate_limited_user),
    service: NoteService = Depends(get_note_service),
):
    note = await service.update_note(note_id, payload, user_id=current_user.id)
    if not note:
        raise _not_found()
    return APIResponse(success=True, data=NoteRead.model_validate(note), message="Note updated successfully")


@router.delete("/{note_id}", response_model=APIResponse[None])
async def delete_note(
    note_id: UUID,
    current_user: AuthUser = Depends(get_rate_limited_user),
    service: NoteService = Depends(get_note_service),
):
    deleted = await service.delete_note(note_id, user_id=current_user.id)
    if not deleted:
        raise _not_found()
    return APIResponse(success=True, message="Note deleted successfully")
