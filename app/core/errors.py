from __future__ import annotations

import logging
from decimal import Decimal
from http import HTTPStatus

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.schemas.results import Result

logger = logging.getLogger(__name__)

_REQUEST_SECTIONS = {"body", "query", "path", "header"}


def _default_code(status_code: int) -> str:
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        422: "validation_error",
        429: "rate_limited",
    }
    return mapping.get(status_code, "http_error")


def _default_message(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Request failed"


def envelope(
    status_code: int,
    code: str,
    message: str,
    field_errors: dict[str, str] | None = None,
) -> JSONResponse:
    payload = {
        "success": False,
        "code": code,
        "message": message,
        "data": None,
        "field_errors": field_errors or None,
    }
    return JSONResponse(status_code=status_code, content=payload)


def result_response(result: Result, success_status: int = 200) -> JSONResponse:
    """Render a pipeline result with the HTTP status of its kind."""
    status_code = success_status if result.success else result.status_code
    content = jsonable_encoder(
        result.model_dump(),
        custom_encoder={Decimal: str},
    )
    return JSONResponse(status_code=status_code, content=content)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    message = detail if isinstance(detail, str) else _default_message(exc.status_code)
    response = envelope(exc.status_code, _default_code(exc.status_code), message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    field_errors: dict[str, str] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc") or () if part not in _REQUEST_SECTIONS]
        field_errors.setdefault(".".join(loc) or "root", error.get("msg") or "Invalid value")
    return envelope(422, "validation_error", "Validation failed", field_errors)


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    response = envelope(429, "rate_limited", _default_message(429))
    headers = getattr(exc, "headers", None)
    if isinstance(headers, dict):
        response.headers.update(headers)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return envelope(500, "internal_error", "Internal server error")


def register_exception_handlers(app) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = [
    "envelope",
    "register_exception_handlers",
    "result_response",
]
