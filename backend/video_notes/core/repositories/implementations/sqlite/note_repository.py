from __future__ import annotations

import asyncio
import threading
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from video_notes.core.models.base import utc_now
from video_notes.core.models.note import Note
from video_notes.core.repositories.note_repository import NoteRepository
from video_notes.core.repositories.tag_codec import JsonStringTagCodec, TagCodec
from video_notes.core.schemas.note_search import NoteDigest
from video_notes.core.search.filters import Condition, MatchOp, NoteFilter, NoteOrder
from video_notes.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Callable, Sequence
    from uuid import UUID


_COLUMNS = {"id", "video_id", "content", "tags", "user_id", "created_at", "updated_at"}
_MUTABLE_COLUMNS = {"video_id", "content", "tags"}


def _to_db_time(value: datetime) -> str:
    # Fixed-width UTC strings keep lexicographic order equal to time order.
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


class SqliteNoteRepository(NoteRepository):
    """SQLite implementation storing tags as a JSON-encoded string.

    The connection is shared by the process; statements run in a worker
    thread and are serialized with a lock.
    """

    TABLE_NAME = "notes"

    def __init__(self, conn: sqlite3.Connection, codec: TagCodec | None = None) -> None:
        self._conn = conn
        self._codec = codec or JsonStringTagCodec()
        self._lock = threading.Lock()

    async def create(self, note: Note) -> Note:
        encoded = self._codec.encode(note.tags)

        def _insert() -> None:
            with self._conn:
                self._conn.execute(
                    f"""
                    INSERT INTO {self.TABLE_NAME} (id, video_id, content, tags, user_id, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        str(note.id),
                        note.video_id,
                        note.content,
                        encoded,
                        note.user_id,
                        _to_db_time(note.created_at),
                        _to_db_time(note.updated_at),
                    ),
                )

        await self._run(_insert)
        return note.model_copy(update={"tags": self._codec.decode(encoded)})

    async def find_by_id(self, note_id: UUID, user_id: str) -> Note | None:
        row = await self._run(lambda: self._select_one(note_id, user_id))
        return self._row_to_note(row) if row else None

    async def update(self, note_id: UUID, user_id: str, changes: dict) -> Note | None:
        sanitized: dict[str, Any] = {k: v for k, v in (changes or {}).items() if k in _MUTABLE_COLUMNS}
        if not sanitized:
            return await self.find_by_id(note_id, user_id)
        if "tags" in sanitized:
            sanitized["tags"] = self._codec.encode(sanitized["tags"])
        sanitized["updated_at"] = _to_db_time(utc_now())

        assignments = ", ".join(f"{column} = ?" for column in sanitized)
        params = [*sanitized.values(), str(note_id), user_id]

        def _update() -> sqlite3.Row | None:
            with self._conn:
                cur = self._conn.execute(
                    f"UPDATE {self.TABLE_NAME} SET {assignments} WHERE id = ? AND user_id = ?",
                    params,
                )
            if cur.rowcount == 0:
                return None
            return self._select_one(note_id, user_id)

        row = await self._run(_update)
        return self._row_to_note(row) if row else None

    async def delete(self, note_id: UUID, user_id: str) -> bool:
        def _delete() -> int:
            with self._conn:
                cur = self._conn.execute(
                    f"DELETE FROM {self.TABLE_NAME} WHERE id = ? AND user_id = ?",
                    (str(note_id), user_id),
                )
            return cur.rowcount

        return await self._run(_delete) > 0

    async def find_many(
        self,
        note_filter: NoteFilter,
        *,
        order: NoteOrder,
        skip: int = 0,
        take: int | None = None,
    ) -> Sequence[Note]:
        where, params = self._render_filter(note_filter)
        if order.column not in _COLUMNS:
            raise ValueError(f"Unsupported order column: {order.column}")
        direction = "DESC" if order.descending else "ASC"
        sql = (
            f"SELECT * FROM {self.TABLE_NAME} WHERE {where} "
            f"ORDER BY {order.column} {direction}, id ASC LIMIT ? OFFSET ?"
        )
        params.extend([take if take is not None else -1, max(0, skip)])
        rows = await self._run(lambda: self._conn.execute(sql, params).fetchall())
        return [self._row_to_note(r) for r in rows]

    async def count(self, note_filter: NoteFilter) -> int:
        where, params = self._render_filter(note_filter)
        sql = f"SELECT COUNT(1) AS c FROM {self.TABLE_NAME} WHERE {where}"
        row = await self._run(lambda: self._conn.execute(sql, params).fetchone())
        return int(row["c"]) if row else 0

    async def scan(self, user_id: str) -> Sequence[NoteDigest]:
        rows = await self._run(
            lambda: self._conn.execute(
                f"SELECT video_id, content, tags FROM {self.TABLE_NAME} WHERE user_id = ?",
                (user_id,),
            ).fetchall()
        )
        return [
            NoteDigest(video_id=r["video_id"], content=r["content"], tags=self._codec.decode(r["tags"]))
            for r in rows
        ]

    async def ping(self) -> None:
        await self._run(lambda: self._conn.execute("SELECT 1").fetchone())

    async def _run(self, func: Callable[[], Any]) -> Any:
        def _locked() -> Any:
            with self._lock:
                return func()

        return await asyncio.to_thread(_locked)

    def _select_one(self, note_id: UUID, user_id: str) -> sqlite3.Row | None:
        return self._conn.execute(
            f"SELECT * FROM {self.TABLE_NAME} WHERE id = ? AND user_id = ? LIMIT 1",
            (str(note_id), user_id),
        ).fetchone()

    def _render_filter(self, note_filter: NoteFilter) -> tuple[str, list[Any]]:
        clauses = ["user_id = ?"]
        params: list[Any] = [note_filter.user_id]
        if note_filter.video_id:
            clauses.append("video_id = ?")
            params.append(note_filter.video_id)
        if note_filter.created_from is not None:
            clauses.append("created_at >= ?")
            params.append(_to_db_time(note_filter.created_from))
        for group in note_filter.any_of:
            if not group:
                continue
            parts = [self._render_condition(c, params) for c in group]
            clauses.append("(" + " OR ".join(parts) + ")")
        return " AND ".join(clauses), params

    @staticmethod
    def _render_condition(condition: Condition, params: list[Any]) -> str:
        column = condition.column
        if column not in _COLUMNS:
            raise ValueError(f"Unsupported filter column: {column}")
        if condition.op is MatchOp.ILIKE:
            # casefold() is registered by connect_db; LIKE would only fold ASCII
            params.append(condition.value.casefold())
            return f"instr(casefold({column}), ?) > 0"
        if condition.op is MatchOp.SUBSTRING:
            params.append(condition.value)
            return f"instr({column}, ?) > 0"
        if condition.op is MatchOp.HAS:
            params.append(condition.value)
            return f"EXISTS (SELECT 1 FROM json_each({column}) WHERE json_each.value = ?)"
        raise ValueError(f"Unsupported match operation: {condition.op}")

    def _row_to_note(self, row: sqlite3.Row) -> Note:
        normalized = dict(row)
        normalized["tags"] = self._codec.decode(normalized.get("tags"))
        return Note.model_validate(normalized)
