from __future__ import annotations

from typing import TYPE_CHECKING

from video_notes.core.search.filters import NoteFilter
from video_notes.utils.validation import normalize_tags

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from video_notes.core.search.filter_strategy import FilterStrategy


class QueryBuilder:
    """Translates search criteria into a :class:`NoteFilter`.

    The text group and the tag group are ANDed together; within each group
    any one condition is enough. Blank queries and empty tag lists add no
    group at all.
    """

    def __init__(self, strategy: FilterStrategy) -> None:
        self._strategy = strategy

    def build(
        self,
        *,
        user_id: str,
        query: str | None = None,
        tags: Sequence[str] | None = None,
        video_id: str | None = None,
        created_from: datetime | None = None,
    ) -> NoteFilter:
        groups = []

        term = query.strip() if query else ""
        if term:
            groups.append(self._strategy.text_conditions(term))

        wanted = normalize_tags(tags)
        if wanted:
            groups.append(self._strategy.tag_conditions(wanted))

        return NoteFilter(
            user_id=user_id,
            video_id=video_id or None,
            created_from=created_from,
            any_of=tuple(groups),
        )
