from __future__ import annotations

from pydantic import BaseModel


class VisibilityView(BaseModel):
    """Advisory UI affordances; the pipeline enforces independently."""

    subject: str
    actions: dict[str, bool]
    readable: dict[str, bool]
    writable: dict[str, bool]
