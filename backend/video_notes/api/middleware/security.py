from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

from video_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from fastapi import Request
    from starlette.types import ASGIApp

logger = get_logger(__name__)

_MUTATING_METHODS = {"POST", "PATCH", "PUT", "DELETE"}


class SecurityMiddleware(BaseHTTPMiddleware):
    """Adds security headers to every response and audits note mutations."""

    def __init__(self, app: ASGIApp, *, audit_prefix: str = "/api/v1/notes"):
        super().__init__(app)
        self.audit_prefix = audit_prefix

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"

        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"

        # Note payloads are private to their owner
        response.headers["Cache-Control"] = "no-store"

        if request.method in _MUTATING_METHODS and request.url.path.startswith(self.audit_prefix):
            logger.info(
                "Note mutation",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "status": response.status_code,
                    "ip": request.client.host if request.client else "unknown",
                }
            )

        return response
