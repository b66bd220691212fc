from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from packages.shared.schemas.envelope_v1 import EnvelopeV1, ErrorCategoryV1
from services.api.app.services.errors import StorefrontError

logger = structlog.get_logger(__name__)

_HTTP_CATEGORIES = {
    400: ErrorCategoryV1.VALIDATION_FAILED,
    401: ErrorCategoryV1.UNAUTHORIZED,
    403: ErrorCategoryV1.FORBIDDEN,
    404: ErrorCategoryV1.NOT_FOUND,
    405: ErrorCategoryV1.NOT_FOUND,
    409: ErrorCategoryV1.CONFLICT,
}


def error_response(status_code: int, category: ErrorCategoryV1, message: str) -> JSONResponse:
    body = EnvelopeV1(success=False, error=category, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True))


async def _storefront_error(request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            path=request.url.path,
            category=exc.category.value,
            error=exc.message,
        )
    return error_response(exc.status_code, exc.category, exc.message)


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else first["msg"]
    else:
        message = "Invalid request"
    return error_response(400, ErrorCategoryV1.VALIDATION_FAILED, message)


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    category = _HTTP_CATEGORIES.get(exc.status_code, ErrorCategoryV1.STORAGE_ERROR)
    return error_response(exc.status_code, category, str(exc.detail))


async def _storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    # Driver detail stays in the logs.
    logger.error("Storage error", path=request.url.path, error=str(exc), exc_info=exc)
    return error_response(500, ErrorCategoryV1.STORAGE_ERROR, "A storage error occurred")


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error", path=request.url.path, exc_info=exc)
    return error_response(500, ErrorCategoryV1.STORAGE_ERROR, "Internal Server Error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, _storefront_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(SQLAlchemyError, _storage_error)
    app.add_exception_handler(Exception, _unexpected_error)
