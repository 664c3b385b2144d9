from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from video_notes.core.models.base import AppBaseModel

T = TypeVar("T")


class ApiModel(AppBaseModel):
    """Public schema base: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel)


class APIResponse(ApiModel, Generic[T]):
    """Response envelope shared by every endpoint."""

    success: bool
    data: T | None = None
    error: str | None = None
    message: str | None = None
