from __future__ import annotations

from video_notes.core.models.base import AppBaseModel


class AuthUser(AppBaseModel):
    """Caller identity resolved at the session boundary."""

    id: str
    email: str | None = None
    role: str | None = None
