from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

from jose import JWTError, jwt

from app.core.settings import settings


def create_access_token(
    subject: str,
    role: str,
    bank_id: str | None = None,
    manage: Iterable[str] = (),
    expires_delta: timedelta | None = None,
) -> str:
    """Issue a bearer token carrying the claims the identity source reads back."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode: dict[str, Any] = {"sub": subject, "role": role, "exp": expire, "type": "access"}
    if bank_id:
        to_encode["bank"] = bank_id
    manage_list = list(manage)
    if manage_list:
        to_encode["manage"] = manage_list
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, expected_type: str | None = "access") -> dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    if expected_type and payload.get("type") != expected_type:
        raise ValueError(f"Unexpected token type: {payload.get('type')}")
    return payload
