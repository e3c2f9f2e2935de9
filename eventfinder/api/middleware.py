"""API middleware: CORS, request logging, and error handling.

Starlette middleware runs as a stack, last added first:

    app.add_middleware(ErrorHandlingMiddleware)    # inner
    app.add_middleware(RequestLoggingMiddleware)   # outer

so the request log sees the final status, including errors that the inner
middleware turned into JSON bodies.

``EventFinderError`` subclasses become ``ErrorResponse`` bodies carrying the
exception's ``public_code``, ``public_message`` and ``http_status``.  The
internal message and provider name are logged and never sent.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from eventfinder.api.schemas import ErrorResponse
from eventfinder.utils.errors import EventFinderError, InputValidationError
from eventfinder.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]`` for
        development; pass the deployed origin in production.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


def error_response(exc: EventFinderError) -> JSONResponse:
    """Build the sanitized JSON response for an application error."""
    body = ErrorResponse(error=exc.public_code, detail=exc.public_message)
    return JSONResponse(status_code=exc.http_status, content=body.model_dump())


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch ``EventFinderError`` subclasses and return structured JSON errors.

    Upstream detail (URLs, status codes, provider names) goes to the log
    only.  Errors that are not ``EventFinderError`` propagate to FastAPI's
    default 500 handler.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except EventFinderError as exc:
            log = _logger.warning if exc.http_status < 500 else _logger.error
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            return error_response(exc)


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Invalid {location}: {first.get('msg', 'invalid value')}" if location else "Invalid request"
    _logger.info("request_validation_failed", path=str(request.url.path), errors=len(errors))
    return error_response(InputValidationError(message))


def register_exception_handlers(app: FastAPI) -> None:
    """Report malformed request bodies and query strings as 400 ``validation_error``."""
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
