from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from video_notes.core.models.base import utc_now
from video_notes.core.models.note import Note
from video_notes.core.repositories.note_repository import NoteRepository
from video_notes.core.repositories.tag_codec import ArrayTagCodec, TagCodec
from video_notes.core.schemas.note_search import NoteDigest
from video_notes.core.search.filters import Condition, MatchOp, NoteFilter, NoteOrder
from video_notes.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from uuid import UUID

    from supabase import Client


_MUTABLE_COLUMNS = {"video_id", "content", "tags"}
_POSTGREST_RESERVED = set(',.:()"\\ ')


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _postgrest_value(value: str) -> str:
    """Quote a value for use inside an ``or=(...)`` expression."""
    if not any(ch in _POSTGREST_RESERVED for ch in value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class SupabaseNoteRepository(NoteRepository):
    """Supabase implementation of the NoteRepository.

    Uses PostgREST for all queries against a ``notes`` table whose ``tags``
    column is a native ``text[]``. Ownership is enforced with an explicit
    ``user_id`` predicate on every call, in addition to any RLS policies.
    """

    TABLE_NAME = "notes"
    SCAN_PAGE_SIZE = 1000

    def __init__(self, client: Client, codec: TagCodec | None = None) -> None:
        self._client: Client = client
        self._codec = codec or ArrayTagCodec()

    async def create(self, note: Note) -> Note:
        row = self._note_to_row(note)
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .insert(row)
            .execute()
        )
        data = self._first(resp.data)
        return self._row_to_note(data) if data else note

    async def find_by_id(self, note_id: UUID, user_id: str) -> Note | None:
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .select("*")
            .eq("id", str(note_id))
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        return self._row_to_note(items[0])

    async def update(self, note_id: UUID, user_id: str, changes: dict) -> Note | None:
        sanitized: dict[str, Any] = {k: v for k, v in (changes or {}).items() if k in _MUTABLE_COLUMNS}
        if not sanitized:
            return await self.find_by_id(note_id, user_id)
        if "tags" in sanitized:
            sanitized["tags"] = self._codec.encode(sanitized["tags"])
        sanitized["updated_at"] = utc_now().isoformat()

        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .update(sanitized)
            .eq("id", str(note_id))
            .eq("user_id", user_id)
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        return self._row_to_note(items[0])

    async def delete(self, note_id: UUID, user_id: str) -> bool:
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .delete()
            .eq("id", str(note_id))
            .eq("user_id", user_id)
            .execute()
        )
        items = resp.data or []
        return len(items) > 0

    async def find_many(
        self,
        note_filter: NoteFilter,
        *,
        order: NoteOrder,
        skip: int = 0,
        take: int | None = None,
    ) -> Sequence[Note]:
        def _query():
            q = self._apply_filter(self._client.table(self.TABLE_NAME).select("*"), note_filter)
            q = q.order(order.column, desc=order.descending).order("id")
            if take is not None:
                start = max(0, skip)
                q = q.range(start, start + take - 1)
            return q.execute()

        resp = await self._run(_query)
        items = resp.data or []
        return [self._row_to_note(i) for i in items]

    async def count(self, note_filter: NoteFilter) -> int:
        resp = await self._run(
            lambda: self._apply_filter(
                self._client.table(self.TABLE_NAME).select("id", count="exact", head=True),
                note_filter,
            ).execute()
        )
        return int(resp.count or 0)

    async def scan(self, user_id: str) -> Sequence[NoteDigest]:
        offset = 0
        digests: list[NoteDigest] = []

        while True:
            def _fetch_page(start: int, size: int) -> Any:
                return (
                    self._client
                    .table(self.TABLE_NAME)
                    .select("video_id,content,tags")
                    .eq("user_id", user_id)
                    .order("id")
                    .range(start, start + size - 1)
                    .execute()
                )

            resp = await self._run(lambda: _fetch_page(offset, self.SCAN_PAGE_SIZE))
            rows: list[dict[str, Any]] = resp.data or []
            digests.extend(
                NoteDigest(
                    video_id=row.get("video_id") or "",
                    content=row.get("content") or "",
                    tags=self._codec.decode(row.get("tags")),
                )
                for row in rows
            )
            if len(rows) < self.SCAN_PAGE_SIZE:
                break
            offset += self.SCAN_PAGE_SIZE

        return digests

    async def ping(self) -> None:
        await self._run(lambda: self._client.table(self.TABLE_NAME).select("id").limit(1).execute())

    def _apply_filter(self, query: Any, note_filter: NoteFilter) -> Any:
        query = query.eq("user_id", note_filter.user_id)
        if note_filter.video_id:
            query = query.eq("video_id", note_filter.video_id)
        if note_filter.created_from is not None:
            query = query.gte("created_at", note_filter.created_from.isoformat())
        for group in note_filter.any_of:
            query = self._apply_group(query, group)
        return query

    @staticmethod
    def _apply_group(query: Any, group: tuple[Condition, ...]) -> Any:
        if not group:
            return query
        if len(group) == 1:
            cond = group[0]
            if cond.op is MatchOp.ILIKE:
                return query.ilike(cond.column, f"%{_escape_like(cond.value)}%")
            if cond.op is MatchOp.SUBSTRING:
                return query.like(cond.column, f"%{_escape_like(cond.value)}%")
            return query.contains(cond.column, [cond.value])

        columns = {c.column for c in group}
        if all(c.op is MatchOp.HAS for c in group) and len(columns) == 1:
            # Any-of element membership is array overlap.
            return query.overlaps(group[0].column, [c.value for c in group])

        parts = []
        for cond in group:
            if cond.op is MatchOp.HAS:
                raise ValueError("Array membership cannot be mixed with other conditions in one group")
            operator = "ilike" if cond.op is MatchOp.ILIKE else "like"
            pattern = f"*{_escape_like(cond.value)}*"
            parts.append(f"{cond.column}.{operator}.{_postgrest_value(pattern)}")
        return query.or_(",".join(parts))

    @staticmethod
    async def _run(func: Callable[[], Any]) -> Any:
        return await asyncio.to_thread(func)

    @staticmethod
    def _first(data: Any) -> dict[str, Any]:
        if isinstance(data, list) and data:
            return data[0]
        if isinstance(data, dict):
            return data
        return {}

    def _row_to_note(self, row: dict[str, Any]) -> Note:
        # Drop columns the table may carry that are not part of the Note model
        normalized = {k: v for k, v in row.items() if k in Note.model_fields}
        normalized["tags"] = self._codec.decode(normalized.get("tags"))
        return Note.model_validate(normalized)

    def _note_to_row(self, note: Note) -> dict[str, Any]:
        data = note.model_dump()
        data["id"] = str(note.id)
        # PostgREST expects JSON-serializable values
        data["created_at"] = note.created_at.isoformat()
        data["updated_at"] = note.updated_at.isoformat()
        data["tags"] = self._codec.encode(note.tags)
        return data
