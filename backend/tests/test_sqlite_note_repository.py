import uuid

import pytest

from video_notes.core.search.filters import Condition, MatchOp, NoteFilter, NoteOrder


@pytest.mark.asyncio
async def test_create_and_find_round_trips_tags(sqlite_repo, make_note) -> None:
    note = await sqlite_repo.create(make_note("hooks deep dive", tags=["react", "hooks"]))

    found = await sqlite_repo.find_by_id(note.id, "user-a")
    assert found is not None
    assert found.content == "hooks deep dive"
    assert set(found.tags) == {"react", "hooks"}
    assert found.created_at == note.created_at


@pytest.mark.asyncio
async def test_other_users_note_is_not_found(sqlite_repo, make_note) -> None:
    note = await sqlite_repo.create(make_note(user_id="user-a"))

    assert await sqlite_repo.find_by_id(note.id, "user-b") is None
    assert await sqlite_repo.update(note.id, "user-b", {"content": "stolen"}) is None
    assert await sqlite_repo.delete(note.id, "user-b") is False

    still_there = await sqlite_repo.find_by_id(note.id, "user-a")
    assert still_there is not None
    assert still_there.content == "some note"


@pytest.mark.asyncio
async def test_update_only_touches_given_fields(sqlite_repo, make_note) -> None:
    note = await sqlite_repo.create(make_note("original", video_id="vid-1", tags=["a"]))

    updated = await sqlite_repo.update(note.id, "user-a", {"tags": ["b", "c"]})
    assert updated is not None
    assert updated.content == "original"
    assert updated.video_id == "vid-1"
    assert updated.tags == ["b", "c"]
    assert updated.updated_at > note.updated_at
    assert updated.created_at == note.created_at


@pytest.mark.asyncio
async def test_update_ignores_immutable_columns(sqlite_repo, make_note) -> None:
    note = await sqlite_repo.create(make_note())
    updated = await sqlite_repo.update(note.id, "user-a", {"user_id": "user-b", "id": "x"})
    assert updated is not None
    assert updated.user_id == "user-a"
    assert updated.id == note.id


@pytest.mark.asyncio
async def test_delete_removes_row(sqlite_repo, make_note) -> None:
    note = await sqlite_repo.create(make_note())
    assert await sqlite_repo.delete(note.id, "user-a") is True
    assert await sqlite_repo.find_by_id(note.id, "user-a") is None
    assert await sqlite_repo.delete(note.id, "user-a") is False


@pytest.mark.asyncio
async def test_malformed_stored_tags_read_as_empty(sqlite_repo, sqlite_conn) -> None:
    note_id = str(uuid.uuid4())
    with sqlite_conn:
        sqlite_conn.execute(
            "INSERT INTO notes (id, video_id, content, tags, user_id, created_at, updated_at) "
            "VALUES (?, 'vid', 'content', '[broken', 'user-a', "
            "'2025-08-01T12:00:00.000000+00:00', '2025-08-01T12:00:00.000000+00:00')",
            (note_id,),
        )

    found = await sqlite_repo.find_by_id(uuid.UUID(note_id), "user-a")
    assert found is not None
    assert found.tags == []
    digests = await sqlite_repo.scan("user-a")
    assert digests[0].tags == []


@pytest.mark.asyncio
async def test_and_of_or_groups(sqlite_repo, make_note) -> None:
    await sqlite_repo.create(make_note("react hooks tutorial", tags=["js"]))
    await sqlite_repo.create(make_note("python basics", tags=["python"]))

    text = (Condition("content", MatchOp.ILIKE, "react"), Condition("tags", MatchOp.ILIKE, "react"))
    python_tag = (Condition("tags", MatchOp.SUBSTRING, '"python"'),)
    js_tag = (Condition("tags", MatchOp.SUBSTRING, '"js"'),)

    assert await sqlite_repo.count(NoteFilter(user_id="user-a", any_of=(text, python_tag))) == 0
    matches = await sqlite_repo.find_many(
        NoteFilter(user_id="user-a", any_of=(text, js_tag)), order=NoteOrder()
    )
    assert [n.content for n in matches] == ["react hooks tutorial"]


@pytest.mark.asyncio
async def test_text_match_is_case_insensitive_and_escapes_wildcards(sqlite_repo, make_note) -> None:
    await sqlite_repo.create(make_note("Discount of 50% today"))
    await sqlite_repo.create(make_note("Discount of 50 today"))

    pct = NoteFilter(user_id="user-a", any_of=((Condition("content", MatchOp.ILIKE, "50%"),),))
    assert await sqlite_repo.count(pct) == 1
    upper = NoteFilter(user_id="user-a", any_of=((Condition("content", MatchOp.ILIKE, "DISCOUNT"),),))
    assert await sqlite_repo.count(upper) == 2


@pytest.mark.asyncio
async def test_text_match_folds_case_beyond_ascii(sqlite_repo, make_note) -> None:
    await sqlite_repo.create(make_note("Über cool", tags=["Straße"]))
    await sqlite_repo.create(make_note("ascii only"))

    def text(term):
        return NoteFilter(user_id="user-a", any_of=((Condition("content", MatchOp.ILIKE, term),),))

    assert await sqlite_repo.count(text("über")) == 1
    assert await sqlite_repo.count(text("ÜBER")) == 1
    raw_tags = NoteFilter(user_id="user-a", any_of=((Condition("tags", MatchOp.ILIKE, "STRASSE"),),))
    assert await sqlite_repo.count(raw_tags) == 1


@pytest.mark.asyncio
async def test_array_membership_renders_with_json_each(sqlite_repo, make_note) -> None:
    await sqlite_repo.create(make_note(tags=["js", "react"]))
    await sqlite_repo.create(make_note(tags=["jsx"]))

    f = NoteFilter(user_id="user-a", any_of=((Condition("tags", MatchOp.HAS, "js"),),))
    assert await sqlite_repo.count(f) == 1


@pytest.mark.asyncio
async def test_find_many_orders_and_windows(sqlite_repo, make_note) -> None:
    for i in range(5):
        await sqlite_repo.create(make_note(f"note {i}"))

    newest_first = await sqlite_repo.find_many(
        NoteFilter(user_id="user-a"), order=NoteOrder("created_at", descending=True), skip=1, take=2
    )
    assert [n.content for n in newest_first] == ["note 3", "note 2"]

    by_content = await sqlite_repo.find_many(
        NoteFilter(user_id="user-a"), order=NoteOrder("content", descending=False)
    )
    assert [n.content for n in by_content] == [f"note {i}" for i in range(5)]


@pytest.mark.asyncio
async def test_find_many_rejects_unknown_order_column(sqlite_repo) -> None:
    with pytest.raises(ValueError):
        await sqlite_repo.find_many(NoteFilter(user_id="user-a"), order=NoteOrder("password"))


@pytest.mark.asyncio
async def test_video_and_created_from_filters(sqlite_repo, make_note) -> None:
    early = make_note(video_id="vid-1", minutes=1)
    late = make_note(video_id="vid-2", minutes=60)
    await sqlite_repo.create(early)
    await sqlite_repo.create(late)
    await sqlite_repo.create(make_note(user_id="user-b", video_id="vid-1"))

    assert await sqlite_repo.count(NoteFilter(user_id="user-a", video_id="vid-1")) == 1
    assert await sqlite_repo.count(NoteFilter(user_id="user-a", created_from=late.created_at)) == 1
    assert await sqlite_repo.count(NoteFilter(user_id="user-a")) == 2
