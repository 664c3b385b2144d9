from __future__ import annotations

import sqlite3
from pathlib import Path

from video_notes.utils.logging import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS notes (
    id TEXT NOT NULL PRIMARY KEY,
    video_id TEXT NOT NULL,
    content TEXT NOT NULL,
    tags TEXT NOT NULL DEFAULT '[]',
    user_id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS notes_user_id_idx ON notes(user_id);
CREATE INDEX IF NOT EXISTS notes_video_id_idx ON notes(video_id);
CREATE INDEX IF NOT EXISTS notes_user_id_video_id_idx ON notes(user_id, video_id);
CREATE INDEX IF NOT EXISTS notes_user_id_created_at_idx ON notes(user_id, created_at);
"""


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


def connect_db(sqlite_path: str) -> sqlite3.Connection:
    if sqlite_path != ":memory:":
        Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(sqlite_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.create_function("casefold", 1, _casefold, deterministic=True)
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    logger.debug("Ensuring SQLite notes schema")
    conn.executescript(SCHEMA_SQL)
    conn.commit()
