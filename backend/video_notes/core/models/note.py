from __future__ import annotations

from uuid import UUID, uuid4

from pydantic import Field, field_validator

from video_notes.utils.validation import MAX_CONTENT_LENGTH, normalize_content, normalize_tags

from .base import TimestampedModel


class Note(TimestampedModel):
    """A user-authored annotation tied to one video."""

    id: UUID = Field(default_factory=uuid4, description="Unique note identifier")
    video_id: str = Field(min_length=1, description="Identifier of the annotated video")
    content: str = Field(max_length=MAX_CONTENT_LENGTH, description="Note content")
    tags: list[str] = Field(default_factory=list, description="Tags for categorization")
    user_id: str = Field(min_length=1, description="Owner of the note")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return normalize_content(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return normalize_tags(v)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": str(uuid4()),
                    "video_id": "dQw4w9WgXcQ",
                    "content": "Intro explains hooks at 02:15, revisit the useEffect cleanup part.",
                    "tags": ["react", "tutorial"],
                    "user_id": "user-123",
                }
            ]
        }
    }
