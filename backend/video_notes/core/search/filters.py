"""Backend-neutral filter and ordering descriptions for note queries.

Repositories translate these into their own query language (PostgREST
filters, SQL ``WHERE`` clauses). A :class:`NoteFilter` always carries the
owner's id, so no rendered query can cross user boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime  # noqa: TCH003
from enum import Enum


class MatchOp(str, Enum):
    ILIKE = "ilike"  # case-insensitive substring
    SUBSTRING = "substring"  # case-sensitive substring
    HAS = "has"  # array contains element


@dataclass(frozen=True, slots=True)
class Condition:
    column: str
    op: MatchOp
    value: str


@dataclass(frozen=True, slots=True)
class NoteFilter:
    """``user_id = U [AND video_id = V] [AND created_at >= T] AND (g1) AND (g2) ...``

    Each group in ``any_of`` is satisfied when at least one of its conditions
    matches.
    """

    user_id: str
    video_id: str | None = None
    created_from: datetime | None = None
    any_of: tuple[tuple[Condition, ...], ...] = ()


@dataclass(frozen=True, slots=True)
class NoteOrder:
    column: str = "created_at"
    descending: bool = True
