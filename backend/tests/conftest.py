import os

# Settings are read at import time; pin a hermetic configuration first.
os.environ["APP_AUTH_MODE"] = "header"
os.environ["APP_STORAGE_DIALECT"] = "json"
os.environ["APP_SQLITE_PATH"] = ":memory:"
os.environ["APP_ENABLE_RATE_LIMITING"] = "true"

from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from video_notes.core.models.note import Note
from video_notes.core.repositories.implementations.sqlite.note_repository import SqliteNoteRepository
from video_notes.core.repositories.tag_codec import JsonStringTagCodec
from video_notes.core.search.filter_strategy import JsonStringFilterStrategy
from video_notes.core.search.query_builder import QueryBuilder
from video_notes.db.sqlite import connect_db, init_db

BASE_TIME = datetime(2025, 8, 1, 12, 0, tzinfo=UTC)


@pytest.fixture()
def sqlite_conn():
    conn = connect_db(":memory:")
    init_db(conn)
    yield conn
    conn.close()


@pytest.fixture()
def sqlite_repo(sqlite_conn):
    return SqliteNoteRepository(sqlite_conn, JsonStringTagCodec())


@pytest.fixture()
def json_query_builder():
    return QueryBuilder(JsonStringFilterStrategy(JsonStringTagCodec()))


@pytest.fixture()
def make_note():
    """Build notes with increasing timestamps so ordering is deterministic."""
    counter = {"n": 0}

    def _make(content="some note", *, user_id="user-a", video_id="vid-1", tags=None, minutes=None):
        counter["n"] += 1
        offset = counter["n"] if minutes is None else minutes
        ts = BASE_TIME + timedelta(minutes=offset)
        return Note(
            video_id=video_id,
            content=content,
            tags=tags or [],
            user_id=user_id,
            created_at=ts,
            updated_at=ts,
        )

    return _make


@pytest.fixture()
def client(sqlite_repo):
    from video_notes.dependencies import get_note_repository, notes_rate_limiter
    from video_notes.main import app

    app.dependency_overrides[get_note_repository] = lambda: sqlite_repo
    notes_rate_limiter.reset()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    notes_rate_limiter.reset()
