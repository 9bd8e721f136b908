from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class ElearningError(Exception):
    """Base class for errors surfaced to RPC callers."""

    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ElearningError):
    code = "validation_error"
    status_code = 422


class NotFoundError(ElearningError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class PermissionDeniedError(ElearningError):
    code = "permission_denied"
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(ElearningError):
    code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class TransientError(ElearningError):
    """Backend or network failure; the same call is safe to retry."""

    code = "transient_error"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


async def _handle_elearning_error(_: Request, exc: ElearningError) -> JSONResponse:
    headers = {"Retry-After": "1"} if isinstance(exc, TransientError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "code": exc.code},
        headers=headers,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ElearningError, _handle_elearning_error)


__all__ = [
    "ElearningError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    "ConflictError",
    "TransientError",
    "register_error_handlers",
]
