from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from .api.middleware.security import SecurityMiddleware
from .api.v1.router import api_router
from .config import settings
from .core.exceptions import NotesError
from .utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _envelope(status_code: int, error: str, message: str | None = None, headers=None) -> JSONResponse:
    content = {"success": False, "error": error}
    if message:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _describe_errors(errors) -> str:
    parts = []
    for err in errors:
        location = ".".join(str(p) for p in err.get("loc", ()) if p not in ("query", "body"))
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return ", ".join(parts)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _envelope(status.HTTP_400_BAD_REQUEST, "Invalid request parameters", _describe_errors(exc.errors()))


async def model_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _envelope(status.HTTP_400_BAD_REQUEST, "Invalid request parameters", _describe_errors(exc.errors()))


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return _envelope(status.HTTP_400_BAD_REQUEST, str(exc))


async def notes_error_handler(request: Request, exc: NotesError) -> JSONResponse:
    # The storage failure itself was logged where it was wrapped
    logger.error("Request failed", extra={"path": request.url.path, "error": str(exc)})
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", str(exc))


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(
        title="Video Notes API",
        debug=settings.debug,
        version="0.1.0",
        root_path=settings.root_path or "",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=[
            "Accept",
            "Content-Type",
            "Authorization",
            "X-Requested-With",
            "X-User-Id",
        ],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
        max_age=600,  # Cache preflight requests for 10 minutes
    )

    # Proxy headers (X-Forwarded-*) so rate limiting sees the real client address
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    app.add_middleware(SecurityMiddleware, audit_prefix=f"{settings.api_prefix}/notes")

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, model_validation_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(NotesError, notes_error_handler)

    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()
