from __future__ import annotations

from fastapi import APIRouter

from .endpoints import health, notes, search, taxonomy

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
# Fixed paths under /notes must be registered before /notes/{note_id}
api_router.include_router(search.router, prefix="/notes", tags=["search"])
api_router.include_router(taxonomy.router, prefix="/notes", tags=["tags"])
api_router.include_router(notes.router, prefix="/notes", tags=["notes"])
