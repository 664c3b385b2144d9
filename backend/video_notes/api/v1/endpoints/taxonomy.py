from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends

from video_notes.api.v1.schemas.common import APIResponse
from video_notes.core.services.taxonomy_service import list_user_tags
from video_notes.dependencies import get_note_repository, get_rate_limited_user

if TYPE_CHECKING:
    from video_notes.core.repositories.note_repository import NoteRepository
    from video_notes.core.schemas.auth import AuthUser


router = APIRouter()


@router.get("/tags", response_model=APIResponse[list[str]])
async def get_user_tags(
    current_user: AuthUser = Depends(get_rate_limited_user),
    repo: NoteRepository = Depends(get_note_repository),
):
    """Return every distinct tag the caller uses, sorted case-insensitively."""
    tags = await list_user_tags(user_id=current_user.id, repo=repo)
    return APIResponse(success=True, data=tags)
