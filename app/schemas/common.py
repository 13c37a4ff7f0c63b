from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.settings import settings
from app.core.tenant import normalize_bank_id

_MOBILE_RE = re.compile(r"^\+?\d{10,15}$")


class PageRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default_factory=lambda: settings.default_page_size, ge=1)
    sort_by: str | None = None
    sort_order: Literal["asc", "desc"] = "desc"
    search: str | None = None
    bank_id: str | None = None

    @field_validator("page_size")
    @classmethod
    def clamp_page_size(cls, v: int) -> int:
        return min(v, settings.max_page_size)

    @field_validator("search")
    @classmethod
    def strip_search(cls, v: str | None) -> str | None:
        value = (v or "").strip()
        return value or None

    @field_validator("bank_id")
    @classmethod
    def normalize_bank(cls, v: str | None) -> str | None:
        return normalize_bank_id(v) if v else None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class SubjectPayload(BaseModel):
    """Base for create/update payloads: unknown keys are ignored, strings stripped."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    bank_id: str | None = None

    @field_validator("bank_id")
    @classmethod
    def normalize_bank(cls, v: str | None) -> str | None:
        return normalize_bank_id(v) if v else None


def reject_null(v):
    if v is None:
        raise ValueError("Value cannot be null")
    return v


def validate_mobile(v: str | None) -> str | None:
    if v is None:
        return v
    cleaned = v.replace(" ", "").replace("-", "")
    if not _MOBILE_RE.fullmatch(cleaned):
        raise ValueError("Mobile number must contain 10 to 15 digits")
    return cleaned
