from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from video_notes.config import settings
from video_notes.dependencies import get_note_repository
from video_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from video_notes.core.repositories.note_repository import NoteRepository

logger = get_logger(__name__)

router = APIRouter()


@router.get("/")
async def health_check():
    """Health check endpoint."""
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "success": True,
            "data": {"status": "healthy", "service": "video-notes-api", "version": "0.1.0"},
        }
    )


@router.get("/ready")
async def readiness_check(repo: NoteRepository = Depends(get_note_repository)):
    """Readiness check: verifies the notes store answers a trivial query."""
    try:
        await repo.ping()
    except Exception as err:
        logger.warning("Readiness check failed", extra={"error": str(err)})
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"success": False, "error": "Storage unavailable"},
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "success": True,
            "data": {
                "status": "ready",
                "storage_dialect": settings.storage_dialect.value,
                "api_prefix": settings.api_prefix,
            },
        }
    )
