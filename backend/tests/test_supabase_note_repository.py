import uuid
from types import SimpleNamespace

import pytest

from video_notes.core.repositories.implementations.supabase.note_repository import SupabaseNoteRepository
from video_notes.core.search.filter_strategy import ArrayFilterStrategy
from video_notes.core.search.filters import Condition, MatchOp, NoteFilter, NoteOrder
from video_notes.core.search.query_builder import QueryBuilder


class FakeQuery:
    """Records the PostgREST builder chain and returns a queued response."""

    def __init__(self, client, table):
        self.client = client
        self.calls = [("table", table)]
        client.queries.append(self)

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, *args, *sorted(kwargs.items())))
        return self

    def select(self, *columns, **kwargs):
        return self._record("select", *columns, **kwargs)

    def insert(self, row):
        return self._record("insert", row)

    def update(self, values):
        return self._record("update", values)

    def delete(self):
        return self._record("delete")

    def eq(self, column, value):
        return self._record("eq", column, value)

    def gte(self, column, value):
        return self._record("gte", column, value)

    def ilike(self, column, pattern):
        return self._record("ilike", column, pattern)

    def like(self, column, pattern):
        return self._record("like", column, pattern)

    def contains(self, column, value):
        return self._record("contains", column, value)

    def overlaps(self, column, value):
        return self._record("overlaps", column, value)

    def or_(self, filters):
        return self._record("or_", filters)

    def order(self, column, desc=False):
        return self._record("order", column, desc)

    def range(self, start, end):
        return self._record("range", start, end)

    def limit(self, n):
        return self._record("limit", n)

    def execute(self):
        if self.client.responses:
            return self.client.responses.pop(0)
        return SimpleNamespace(data=[], count=0)


class FakeClient:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.queries = []

    def table(self, name):
        return FakeQuery(self, name)


def _row(**overrides):
    row = {
        "id": str(uuid.uuid4()),
        "video_id": "vid-1",
        "content": "react hooks tutorial",
        "tags": ["js"],
        "user_id": "user-a",
        "created_at": "2025-08-01T12:00:00+00:00",
        "updated_at": "2025-08-01T12:00:00+00:00",
    }
    row.update(overrides)
    return row


@pytest.mark.asyncio
async def test_search_filter_uses_array_operators() -> None:
    client = FakeClient(SimpleNamespace(data=[_row()], count=None))
    repo = SupabaseNoteRepository(client)
    note_filter = QueryBuilder(ArrayFilterStrategy()).build(
        user_id="user-a", query="react", tags=["js", "python"], video_id="vid-1"
    )

    notes = await repo.find_many(note_filter, order=NoteOrder("updated_at", descending=True), skip=20, take=10)

    calls = client.queries[0].calls
    assert ("eq", "user_id", "user-a") in calls
    assert ("eq", "video_id", "vid-1") in calls
    assert ("ilike", "content", "%react%") in calls
    assert ("overlaps", "tags", ["js", "python"]) in calls
    assert ("order", "updated_at", True) in calls
    assert ("range", 20, 29) in calls
    assert notes[0].tags == ["js"]


@pytest.mark.asyncio
async def test_single_tag_uses_contains() -> None:
    client = FakeClient()
    repo = SupabaseNoteRepository(client)
    note_filter = QueryBuilder(ArrayFilterStrategy()).build(user_id="user-a", tags=["js"])

    await repo.find_many(note_filter, order=NoteOrder())

    assert ("contains", "tags", ["js"]) in client.queries[0].calls


@pytest.mark.asyncio
async def test_mixed_group_is_rendered_as_or_expression() -> None:
    client = FakeClient()
    repo = SupabaseNoteRepository(client)
    group = (
        Condition("content", MatchOp.ILIKE, "react"),
        Condition("tags", MatchOp.ILIKE, "a,b"),
    )

    await repo.count(NoteFilter(user_id="user-a", any_of=(group,)))

    calls = client.queries[0].calls
    assert ("or_", 'content.ilike.*react*,tags.ilike."*a,b*"') in calls
    assert ("select", "id", ("count", "exact"), ("head", True)) in calls


@pytest.mark.asyncio
async def test_count_reads_exact_count() -> None:
    client = FakeClient(SimpleNamespace(data=[], count=7))
    repo = SupabaseNoteRepository(client)
    assert await repo.count(NoteFilter(user_id="user-a")) == 7


@pytest.mark.asyncio
async def test_update_is_owner_scoped_and_returns_none_when_nothing_matched() -> None:
    client = FakeClient(SimpleNamespace(data=[], count=None))
    repo = SupabaseNoteRepository(client)
    note_id = uuid.uuid4()

    result = await repo.update(note_id, "user-b", {"content": "x", "user_id": "user-b"})

    assert result is None
    calls = client.queries[0].calls
    assert ("eq", "id", str(note_id)) in calls
    assert ("eq", "user_id", "user-b") in calls
    update_values = next(c[1] for c in calls if c[0] == "update")
    assert "user_id" not in update_values
    assert update_values["content"] == "x"
    assert "updated_at" in update_values


@pytest.mark.asyncio
async def test_rows_are_normalized_into_notes() -> None:
    client = FakeClient(SimpleNamespace(data=[_row(tags=None, rank=0.5)], count=None))
    repo = SupabaseNoteRepository(client)

    note = await repo.find_by_id(uuid.uuid4(), "user-a")

    assert note is not None
    assert note.tags == []


@pytest.mark.asyncio
async def test_create_sends_native_tag_array() -> None:
    from video_notes.core.models.note import Note

    note = Note(video_id="vid-1", content="content", tags=["a", "b"], user_id="user-a")
    client = FakeClient(SimpleNamespace(data=[_row(id=str(note.id), tags=["a", "b"])], count=None))
    repo = SupabaseNoteRepository(client)

    created = await repo.create(note)

    row = next(c[1] for c in client.queries[0].calls if c[0] == "insert")
    assert row["tags"] == ["a", "b"]
    assert row["id"] == str(note.id)
    assert created.tags == ["a", "b"]


@pytest.mark.asyncio
async def test_scan_pages_through_all_rows() -> None:
    client = FakeClient(
        SimpleNamespace(data=[_row(content="one"), _row(content="two")], count=None),
        SimpleNamespace(data=[_row(content="three", tags=None)], count=None),
    )
    repo = SupabaseNoteRepository(client)
    repo.SCAN_PAGE_SIZE = 2

    digests = await repo.scan("user-a")

    assert [d.content for d in digests] == ["one", "two", "three"]
    assert digests[2].tags == []
    assert ("range", 2, 3) in client.queries[1].calls
