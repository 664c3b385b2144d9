from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from uuid import UUID  # noqa: TCH003

from pydantic import Field, field_validator

from video_notes.api.v1.schemas.common import ApiModel
from video_notes.utils.validation import MAX_CONTENT_LENGTH, normalize_content, normalize_tags


class NoteCreate(ApiModel):
    video_id: str = Field(min_length=1, description="Video the note belongs to")
    content: str = Field(min_length=1, max_length=MAX_CONTENT_LENGTH, description="Note content")
    tags: list[str] = Field(default_factory=list, description="Tags for categorization")

    @field_validator("video_id")
    @classmethod
    def validate_video_id(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Video ID is required")
        return stripped

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return normalize_content(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return normalize_tags(v)


class NoteUpdate(ApiModel):
    """Partial update; only fields present in the payload are changed."""

    video_id: str | None = Field(default=None, min_length=1)
    content: str | None = Field(default=None, min_length=1, max_length=MAX_CONTENT_LENGTH)
    tags: list[str] | None = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return normalize_content(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return normalize_tags(v)


class NoteRead(ApiModel):
    id: UUID
    video_id: str
    content: str
    tags: list[str]
    user_id: str
    created_at: datetime
    updated_at: datetime


class NoteStatsRead(ApiModel):
    total_notes: int
    notes_this_month: int
    unique_videos: int
