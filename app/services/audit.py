from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_audit_logger
from app.models.audit_log import AuditLog
from app.services.authz import Actor

audit_logger = get_audit_logger()


def serialize_for_audit(value: Any) -> Any:
    return jsonable_encoder(
        value,
        custom_encoder={
            Decimal: str,
            UUID: str,
            datetime: lambda v: v.isoformat(),
            date: lambda v: v.isoformat(),
        },
    )


def model_snapshot(instance: Any, *, exclude: Iterable[str] = ()) -> dict[str, Any]:
    """Column values of ``instance`` minus ``exclude`` (national identifiers and the like)."""
    if instance is None:
        return {}
    excluded = set(exclude)
    return serialize_for_audit(
        {
            column.name: getattr(instance, column.name)
            for column in instance.__table__.columns
            if column.name not in excluded
        }
    )


def diff_snapshots(old: dict[str, Any] | None, new: dict[str, Any] | None) -> dict[str, dict[str, Any]]:
    old = old or {}
    new = new or {}
    return {
        key: {"from": old.get(key), "to": new.get(key)}
        for key in sorted(set(old) | set(new))
        if old.get(key) != new.get(key)
    }


def _summary(action: str, changes: dict[str, Any]) -> str:
    if not changes:
        return action
    keys = list(changes)
    suffix = "..." if len(keys) > 3 else ""
    return f"{action}: {', '.join(keys[:3])}{suffix}"


def record_audit_log(
    db: AsyncSession,
    actor: Actor,
    *,
    bank_id: str | None,
    action: str,
    resource_type: str,
    resource_id: str,
    old_value: dict[str, Any] | None = None,
    new_value: dict[str, Any] | None = None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction; it commits with the mutation."""
    changes = diff_snapshots(old_value, new_value) if old_value is not None and new_value is not None else None
    summary = _summary(action, changes or {})
    entry = AuditLog(
        bank_id=bank_id,
        actor_id=actor.id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        old_value=old_value,
        new_value=new_value,
        changes=changes or None,
        summary=summary,
    )
    db.add(entry)
    audit_logger.info(summary, extra={"subject": resource_type, "resource_id": resource_id})
    return entry
