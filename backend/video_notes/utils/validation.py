from __future__ import annotations

from collections.abc import Iterable

MAX_CONTENT_LENGTH = 10_000


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """Trim tags, drop blanks and repeated entries. First occurrence wins."""
    if not tags:
        return []
    normalized: list[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            continue
        cleaned = tag.strip()
        if cleaned and cleaned not in normalized:
            normalized.append(cleaned)
    return normalized


def normalize_content(content: str) -> str:
    """Return trimmed note content or raise ValueError if nothing is left."""
    if len(content) > MAX_CONTENT_LENGTH:
        raise ValueError(f"Note content must be at most {MAX_CONTENT_LENGTH} characters")
    stripped = content.strip()
    if not stripped:
        raise ValueError("Note content cannot be empty")
    return stripped


def split_csv(value: str | None) -> list[str] | None:
    """Split a comma-separated query parameter, ignoring blank items."""
    if value is None:
        return None
    items = [item.strip() for item in value.split(",")]
    return [item for item in items if item]
