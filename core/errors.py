# core/errors.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DataError, IntegrityError, StatementError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "A record with this data already exists"
INTERNAL_MESSAGE = "Internal server error"


# ----------------- Error types -----------------
class AppError(Exception):
    """Operational error carrying the HTTP status it should surface with."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT


class InvalidTransitionError(ConflictError):
    def __init__(self, entity: str, current: str, requested: str):
        super().__init__(f"Cannot move {entity} from {current} to {requested}")
        self.current = current
        self.requested = requested


# ----------------- Handlers -----------------
def error_body(message: str) -> dict:
    return {"status": "error", "message": message}


def _json(code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=code, content=error_body(message), headers=headers)


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s -> %s", request.method, request.url.path, exc.message)
    return _json(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return _json(status.HTTP_400_BAD_REQUEST, "; ".join(parts) or "Invalid request")


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return _json(status.HTTP_409_CONFLICT, DUPLICATE_MESSAGE)


async def data_error_handler(request: Request, exc: StatementError):
    # 400 only for DataError or a bind-value cast failure; other DB errors are 500s
    if not isinstance(exc, DataError) and not isinstance(exc.orig, (ValueError, LookupError)):
        return await unhandled_error_handler(request, exc)
    logger.warning("Bad value on %s %s: %s", request.method, request.url.path, exc.orig)
    return _json(status.HTTP_400_BAD_REQUEST, "Invalid value supplied")


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _json(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _json(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(DataError, data_error_handler)
    app.add_exception_handler(StatementError, data_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
