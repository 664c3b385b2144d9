from __future__ import annotations

import asyncio
import math
import time
from functools import lru_cache
from typing import TYPE_CHECKING

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from video_notes.config import AuthMode, StorageDialect, settings
from video_notes.core.dialects import build_filter_strategy, build_tag_codec
from video_notes.core.repositories.implementations.sqlite.note_repository import (
    SqliteNoteRepository,
)
from video_notes.core.repositories.implementations.supabase.note_repository import (
    SupabaseNoteRepository,
)
from video_notes.core.schemas.auth import AuthUser
from video_notes.core.search.query_builder import QueryBuilder
from video_notes.core.services.note_service import NoteService
from video_notes.core.services.search_service import SearchService
from video_notes.core.services.suggestion_service import SuggestionService
from video_notes.db.base import create_request_supabase_client, get_sqlite_connection
from video_notes.utils.logging import get_logger
from video_notes.utils.rate_limit import RateLimiter, client_identifier

logger = get_logger(__name__)

# Use auto_error=False to handle missing tokens gracefully
http_bearer = HTTPBearer(auto_error=False)

if TYPE_CHECKING:
    from supabase import Client

    from video_notes.core.repositories.note_repository import NoteRepository


notes_rate_limiter = RateLimiter(
    window_seconds=settings.notes_rate_limit_window_seconds,
    max_requests=settings.notes_rate_limit_max_requests,
)

USER_ID_HEADER = "X-User-Id"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip()
    return None


def get_request_supabase_client(request: Request) -> Client:
    """Request-scoped Supabase client carrying the caller's JWT for RLS."""
    return create_request_supabase_client(_bearer_token(request))


@lru_cache(maxsize=1)
def _sqlite_note_repository() -> SqliteNoteRepository:
    codec = build_tag_codec(StorageDialect.JSON)
    return SqliteNoteRepository(get_sqlite_connection(), codec)


def get_note_repository(request: Request) -> NoteRepository:
    """Return the repository for the configured storage dialect."""
    if settings.storage_dialect is StorageDialect.ARRAY:
        codec = build_tag_codec(StorageDialect.ARRAY)
        return SupabaseNoteRepository(get_request_supabase_client(request), codec)
    return _sqlite_note_repository()


def get_query_builder() -> QueryBuilder:
    dialect = settings.storage_dialect
    return QueryBuilder(build_filter_strategy(dialect, build_tag_codec(dialect)))


def get_note_service(repo: NoteRepository = Depends(get_note_repository)) -> NoteService:
    return NoteService(repo)


def get_search_service(
    repo: NoteRepository = Depends(get_note_repository),
    query_builder: QueryBuilder = Depends(get_query_builder),
) -> SearchService:
    return SearchService(repo, query_builder)


def get_suggestion_service(repo: NoteRepository = Depends(get_note_repository)) -> SuggestionService:
    return SuggestionService(repo)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(http_bearer),
) -> AuthUser:
    """Resolve the calling user.

    ``header`` mode trusts ``X-User-Id`` (local development); ``supabase``
    mode validates the bearer JWT with Supabase Auth.
    """
    if settings.auth_mode is AuthMode.HEADER:
        user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
        if not user_id:
            raise _unauthorized("Authentication required")
        return AuthUser(id=user_id)

    if not credentials:
        raise _unauthorized("Authentication required")
    jwt = credentials.credentials
    if not jwt or len(jwt.split(".")) != 3:
        raise _unauthorized("Invalid token format")

    supabase = create_request_supabase_client(jwt)
    try:
        resp = await asyncio.to_thread(lambda: supabase.auth.get_user(jwt))
    except Exception as err:
        error_msg = str(err).lower()
        logger.warning(
            "JWT validation failed",
            extra={
                "error_type": type(err).__name__,
                "error_summary": error_msg[:100] if error_msg else "Unknown error",
            }
        )
        if "invalid" in error_msg or "expired" in error_msg:
            raise _unauthorized("Token is invalid or expired") from err
        raise _unauthorized("Authentication failed") from err

    user = getattr(resp, "user", None)
    user_id = getattr(user, "id", None) if user else None
    if not user_id:
        raise _unauthorized("Invalid user data")
    return AuthUser(
        id=str(user_id),
        email=getattr(user, "email", None),
        role=getattr(user, "role", None),
    )


def get_rate_limited_user(
    request: Request,
    current_user: AuthUser = Depends(get_current_user),
) -> AuthUser:
    """Authenticated user, after charging the request to their rate-limit window."""
    if not settings.enable_rate_limiting:
        return current_user

    client_ip = request.client.host if request.client else None
    result = notes_rate_limiter.check(client_identifier(current_user.id, client_ip))
    if not result.allowed:
        logger.warning("Rate limited notes request", extra={"user_id": current_user.id, "ip": client_ip})
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded",
            headers={
                "Retry-After": str(max(1, math.ceil(result.reset_at - time.time()))),
                "X-RateLimit-Limit": str(notes_rate_limiter.max_requests),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(int(result.reset_at)),
            },
        )
    return current_user
