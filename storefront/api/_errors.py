"""
HTTP error mapping — the one place ErrorKind becomes a status code.
"""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from kungfu import Result, Ok, Error

from storefront._errors import CatalogError, ErrorKind

logger = logging.getLogger(__name__)

_STATUS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_REQUEST: 400,
    ErrorKind.INVALID_CURSOR: 400,
    ErrorKind.CAPACITY_EXCEEDED: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


def status_for(kind: ErrorKind) -> int:
    return _STATUS[kind]


class ApiError(Exception):
    """Raised inside route handlers, rendered by the app's exception handler."""

    def __init__(self, status: int, kind: str, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.kind = kind
        self.message = message

    @classmethod
    def of(cls, error: CatalogError) -> ApiError:
        return cls(status_for(error.kind), error.kind.name, error.message)

    @classmethod
    def unauthorized(cls, message: str = "Authentication required") -> ApiError:
        return cls(401, "UNAUTHORIZED", message)

    @classmethod
    def forbidden(cls, message: str = "Admin access required") -> ApiError:
        return cls(403, "FORBIDDEN", message)


def unwrap[T](result: Result[T, CatalogError]) -> T:
    match result:
        case Ok(value):
            return value
        case Error(e):
            if e.kind is ErrorKind.INTERNAL:
                logger.error("Request failed: %s (cause: %r)", e.message, e.cause)
            raise ApiError.of(e)


def error_body(kind: str, message: str) -> dict[str, object]:
    return {"success": False, "kind": kind, "message": message}


async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status, content=error_body(exc.kind, exc.message))


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        where = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{where}: {first.get('msg', 'invalid value')}" if where else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=status_for(ErrorKind.INVALID_REQUEST),
        content=error_body(ErrorKind.INVALID_REQUEST.name, message),
    )


__all__ = (
    "status_for",
    "ApiError",
    "unwrap",
    "error_body",
    "handle_api_error",
    "handle_validation_error",
)
