import pytest

from video_notes.core.exceptions import NoteStorageError
from video_notes.core.services.taxonomy_service import list_user_tags, merge_tags


def test_merge_dedupes_case_insensitively_and_sorts() -> None:
    merged = merge_tags([["b", "A"], ["a", "c"], ["B", " "]])
    assert merged == ["A", "b", "c"]


def test_merge_of_nothing_is_empty() -> None:
    assert merge_tags([]) == []
    assert merge_tags([[], []]) == []


@pytest.mark.asyncio
async def test_catalog_only_includes_callers_tags(sqlite_repo, make_note) -> None:
    await sqlite_repo.create(make_note(tags=["b", "A"]))
    await sqlite_repo.create(make_note(tags=["a", "c"]))
    await sqlite_repo.create(make_note(user_id="user-b", tags=["zzz"]))

    assert await list_user_tags(user_id="user-a", repo=sqlite_repo) == ["A", "b", "c"]
    assert await list_user_tags(user_id="nobody", repo=sqlite_repo) == []


@pytest.mark.asyncio
async def test_storage_error_is_wrapped() -> None:
    class Broken:
        async def scan(self, user_id):
            raise RuntimeError("down")

    with pytest.raises(NoteStorageError, match="Failed to fetch user tags"):
        await list_user_tags(user_id="user-a", repo=Broken())
