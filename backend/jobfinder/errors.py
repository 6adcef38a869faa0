"""
Application errors and their FastAPI exception handlers.

Services raise AppError with a stable machine-readable code; the handler
renders it as:

    {"error": "<message>", "code": "<CODE>", "field": "<field or null>"}
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class AppError(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.field = field

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, "field": self.field}


def not_found(message: str, code: str) -> AppError:
    return AppError(message, 404, code)


def conflict(message: str, code: str, field: Optional[str] = None) -> AppError:
    return AppError(message, 409, code, field)


def bad_request(message: str, code: str, field: Optional[str] = None) -> AppError:
    return AppError(message, 400, code, field)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=409,
        content={"error": "Resource already exists", "code": "DUPLICATE_RESOURCE", "field": None},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
