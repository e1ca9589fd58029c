import logging
from collections import defaultdict
from typing import Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


def flatten_validation_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    """Группирует ошибки валидации по имени поля"""
    errors: Dict[str, List[str]] = defaultdict(list)
    for error in exc.errors():
        # loc выглядит как ("body", "name") или ("query", "limit")
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "__root__"
        errors[field].append(error.get("msg", "Invalid value"))
    return dict(errors)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid input", "errors": flatten_validation_errors(exc)},
    )


def is_unique_violation(exc: IntegrityError) -> bool:
    """Нарушение уникальности: SQLite и PostgreSQL сообщают об этом по-разному"""
    message = str(exc.orig).lower()
    return "unique constraint" in message or "duplicate key" in message


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    if is_unique_violation(exc):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": "Resource already exists"},
        )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid input"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
