from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from math import ceil
from typing import Any

from pydantic import BaseModel, Field, ValidationError


class ResultKind(str, Enum):
    SUCCESS = "success"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ResultKind.SUCCESS: 200,
    ResultKind.UNAUTHORIZED: 401,
    ResultKind.FORBIDDEN: 403,
    ResultKind.VALIDATION_ERROR: 422,
    ResultKind.NOT_FOUND: 404,
    ResultKind.CONFLICT: 409,
    ResultKind.INTERNAL: 500,
}

_DEFAULT_CODES = {
    ResultKind.UNAUTHORIZED: "unauthorized",
    ResultKind.FORBIDDEN: "forbidden",
    ResultKind.VALIDATION_ERROR: "validation_error",
    ResultKind.NOT_FOUND: "not_found",
    ResultKind.CONFLICT: "conflict",
    ResultKind.INTERNAL: "internal_error",
}


def _default_message(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Request failed"


class PageMeta(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: int, page_size: int) -> "PageMeta":
        return cls(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=ceil(total / page_size) if page_size else 0,
        )


class Result(BaseModel):
    """Outcome of a pipeline operation; expected failures are values, not exceptions."""

    success: bool
    kind: ResultKind = Field(exclude=True)
    code: str
    message: str
    data: Any = None
    field_errors: dict[str, str] | None = None
    meta: PageMeta | None = None

    @property
    def status_code(self) -> int:
        return self.kind.http_status

    @classmethod
    def ok(cls, code: str, data: Any = None, *, meta: PageMeta | None = None) -> "Result":
        return cls(
            success=True,
            kind=ResultKind.SUCCESS,
            code=code,
            message=_default_message(200),
            data=data,
            meta=meta,
        )

    @classmethod
    def fail(
        cls,
        kind: ResultKind,
        code: str | None = None,
        field_errors: dict[str, str] | None = None,
    ) -> "Result":
        return cls(
            success=False,
            kind=kind,
            code=code or _DEFAULT_CODES[kind],
            message=_default_message(kind.http_status),
            field_errors=field_errors or None,
        )

    @classmethod
    def unauthorized(cls) -> "Result":
        return cls.fail(ResultKind.UNAUTHORIZED)

    @classmethod
    def forbidden(cls) -> "Result":
        return cls.fail(ResultKind.FORBIDDEN)

    @classmethod
    def not_found(cls) -> "Result":
        return cls.fail(ResultKind.NOT_FOUND)

    @classmethod
    def invalid(cls, field_errors: dict[str, str]) -> "Result":
        return cls.fail(ResultKind.VALIDATION_ERROR, field_errors=field_errors)

    @classmethod
    def conflict(cls, code: str | None = None, field: str | None = None) -> "Result":
        errors = {field or "root": code} if code else None
        return cls.fail(ResultKind.CONFLICT, code=code, field_errors=errors)

    @classmethod
    def internal(cls) -> "Result":
        return cls.fail(ResultKind.INTERNAL)


def field_errors_from(exc: ValidationError) -> dict[str, str]:
    """Flatten pydantic errors into ``{"dotted.location": message}``; first error per field wins."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc") or ()) or "root"
        errors.setdefault(loc, error.get("msg") or "Invalid value")
    return errors
