from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from video_notes.utils.logging import get_logger
from video_notes.utils.validation import normalize_tags

logger = get_logger(__name__)


class TagCodec(ABC):
    """Converts a note's tag sequence to and from its storage encoding.

    Callers above the repository boundary only ever see ``list[str]``.
    """

    @abstractmethod
    def encode(self, tags: list[str]) -> Any:  # pragma: no cover - interface only
        """Return the value stored in the ``tags`` column."""

    @abstractmethod
    def decode(self, raw: Any) -> list[str]:  # pragma: no cover
        """Return the tag list for a stored value. Malformed values decode to ``[]``."""


class ArrayTagCodec(TagCodec):
    """Native array storage (Postgres ``text[]``)."""

    def encode(self, tags: list[str]) -> list[str]:
        return normalize_tags(tags)

    def decode(self, raw: Any) -> list[str]:
        if raw is None:
            return []
        if isinstance(raw, (list, tuple)):
            return normalize_tags(raw)
        logger.warning("Unexpected tag array value, using empty tags", extra={"type": type(raw).__name__})
        return []


class JsonStringTagCodec(TagCodec):
    """Tags stored as a JSON-encoded list inside a text column."""

    def encode(self, tags: list[str]) -> str:
        return json.dumps(normalize_tags(tags), ensure_ascii=False)

    def quote(self, tag: str) -> str:
        """Encoded form of a single tag as it appears inside :meth:`encode` output."""
        return json.dumps(tag, ensure_ascii=False)

    def decode(self, raw: Any) -> list[str]:
        if raw is None or raw == "":
            return []
        if isinstance(raw, list):
            return normalize_tags(raw)
        try:
            parsed = json.loads(raw)
        except (TypeError, ValueError) as err:
            logger.warning("Failed to parse stored tags, using empty tags: %s", err)
            return []
        if not isinstance(parsed, list):
            logger.warning("Stored tags are not a JSON list, using empty tags")
            return []
        return normalize_tags(parsed)
