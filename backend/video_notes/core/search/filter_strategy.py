from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from video_notes.core.search.filters import Condition, MatchOp

if TYPE_CHECKING:
    from collections.abc import Sequence

    from video_notes.core.repositories.tag_codec import JsonStringTagCodec


class FilterStrategy(ABC):
    """Builds the text and tag match conditions for one storage dialect."""

    @abstractmethod
    def text_conditions(self, term: str) -> tuple[Condition, ...]:  # pragma: no cover - interface only
        """Conditions of which at least one must match a free-text term."""

    @abstractmethod
    def tag_conditions(self, tags: Sequence[str]) -> tuple[Condition, ...]:  # pragma: no cover
        """Conditions of which at least one must match for the requested tags."""


class ArrayFilterStrategy(FilterStrategy):
    """Native array storage: tags are not scannable text, so text search covers content only."""

    def text_conditions(self, term: str) -> tuple[Condition, ...]:
        return (Condition("content", MatchOp.ILIKE, term),)

    def tag_conditions(self, tags: Sequence[str]) -> tuple[Condition, ...]:
        return tuple(Condition("tags", MatchOp.HAS, tag) for tag in tags)


class JsonStringFilterStrategy(FilterStrategy):
    """JSON-string storage: tags match on their quoted form, text also scans the raw tag string."""

    def __init__(self, codec: JsonStringTagCodec) -> None:
        self._codec = codec

    def text_conditions(self, term: str) -> tuple[Condition, ...]:
        return (
            Condition("content", MatchOp.ILIKE, term),
            Condition("tags", MatchOp.ILIKE, term),
        )

    def tag_conditions(self, tags: Sequence[str]) -> tuple[Condition, ...]:
        return tuple(Condition("tags", MatchOp.SUBSTRING, self._codec.quote(tag)) for tag in tags)
