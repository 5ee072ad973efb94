"""Error mapping and request logging for FastAPI applications."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import cast

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
from ulid import ULID

from taskkit.core.exceptions import (
    ExecutionFault,
    NotFoundError,
    StoreUnavailableError,
    TaskkitError,
    UnsafeCommandError,
    ValidationError,
)
from taskkit.core.logging import add_request_context, clear_request_context, get_logger

logger = get_logger(__name__)

ERROR_CODE_HEADER = "X-Error-Code"
REQUEST_ID_HEADER = "X-Request-ID"

_STATUS_BY_ERROR: dict[type[TaskkitError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ExecutionFault: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _status_for(exc: TaskkitError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[error_type]  # type: ignore[index]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def unsafe_command_handler(request: Request, exc: Exception) -> Response:
    """Answer unsafe commands with the exact plain-text body clients match on."""
    error = cast(UnsafeCommandError, exc)
    return PlainTextResponse(
        "Unsafe command",
        status_code=status.HTTP_400_BAD_REQUEST,
        headers={ERROR_CODE_HEADER: error.code},
    )


async def domain_error_handler(request: Request, exc: Exception) -> Response:
    """Map domain errors to their status code with the message as detail."""
    error = cast(TaskkitError, exc)
    status_code = _status_for(error)
    detail = f"Execution fault: {error.message}" if isinstance(error, ExecutionFault) else error.message
    if status_code >= 500:
        logger.error("http.domain_error", error=error.code, detail=error.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail},
        headers={ERROR_CODE_HEADER: error.code},
    )


async def store_unavailable_handler(request: Request, exc: Exception) -> Response:
    """Hide infrastructure details behind a generic 503."""
    error = cast(StoreUnavailableError, exc)
    logger.error("http.store_unavailable", detail=error.message, cause=repr(error.__cause__))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Service temporarily unavailable"},
        headers={ERROR_CODE_HEADER: error.code},
    )


def add_error_handlers(app: FastAPI) -> None:
    """Install handlers translating domain errors to HTTP responses."""
    app.add_exception_handler(UnsafeCommandError, unsafe_command_handler)
    app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)
    app.add_exception_handler(TaskkitError, domain_error_handler)


def add_logging_middleware(app: FastAPI) -> None:
    """Bind a request id to the logging context and log each request's outcome."""

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(ULID())
        clear_request_context()
        add_request_context(request_id=request_id, method=request.method, path=request.url.path)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "http.request.failed",
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            raise

        logger.info(
            "http.request.completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
