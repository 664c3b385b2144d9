from __future__ import annotations

from functools import lru_cache

from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from video_notes.config import settings
from video_notes.db.sqlite import connect_db, init_db
from video_notes.utils.logging import get_logger

logger = get_logger(__name__)


def create_request_supabase_client(bearer_token: str | None = None) -> Client:
    """Create a request-scoped Supabase client using the anon key.

    If a JWT is provided, set it as the PostgREST bearer so that RLS policies
    apply to every table operation in this request.
    """
    logger.debug("Creating request-scoped Supabase client")
    if not settings.supabase_url or not settings.supabase_anon_key:
        raise RuntimeError("supabase_url and supabase_anon_key are required for the array storage dialect")

    client = create_client(
        settings.supabase_url,
        settings.supabase_anon_key,
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )
    if bearer_token:
        client.postgrest.auth(bearer_token)
    return client


@lru_cache(maxsize=1)
def get_sqlite_connection():
    """Return the process-wide SQLite connection, creating the schema on first use."""
    logger.info("Opening SQLite notes store", extra={"path": settings.sqlite_path})
    conn = connect_db(settings.sqlite_path)
    init_db(conn)
    return conn
