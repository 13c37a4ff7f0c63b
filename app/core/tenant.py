from __future__ import annotations

import re


BANK_ID_MIN_LENGTH = 2
BANK_ID_MAX_LENGTH = 64
_BANK_ID_RE = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


def normalize_bank_id(value: str) -> str:
    cleaned = value.strip().lower()
    if len(cleaned) < BANK_ID_MIN_LENGTH or len(cleaned) > BANK_ID_MAX_LENGTH:
        raise ValueError(
            f"bank_id must be between {BANK_ID_MIN_LENGTH} and {BANK_ID_MAX_LENGTH} characters"
        )
    if not _BANK_ID_RE.fullmatch(cleaned):
        raise ValueError(
            "bank_id may only contain lowercase letters, numbers, '-' and '_'"
        )
    return cleaned
