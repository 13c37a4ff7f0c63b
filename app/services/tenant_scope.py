"""Tenant isolation and soft-delete filtering for every default read.

``scoped_select`` is the one place default queries are built; callers never
add the ``bank_id`` or ``deleted_at`` criteria themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from app.services.authz import Actor


@dataclass(frozen=True, slots=True)
class TenantFilter:
    tenant_id: str | None = None

    @property
    def restricted(self) -> bool:
        return self.tenant_id is not None

    @classmethod
    def unrestricted(cls) -> "TenantFilter":
        return cls(None)

    @classmethod
    def restrict_to(cls, tenant_id: str) -> "TenantFilter":
        return cls(tenant_id)

    def permits(self, instance: Any) -> bool:
        if not self.restricted:
            return True
        return getattr(instance, "bank_id", None) == self.tenant_id


def scope(actor: Actor) -> TenantFilter:
    if actor.is_platform:
        return TenantFilter.unrestricted()
    return TenantFilter.restrict_to(actor.tenant_id)


def not_deleted(model):
    return model.deleted_at.is_(None)


def scoped_select(model, tenant_filter: TenantFilter, *criteria) -> Select:
    stmt = select(model).where(not_deleted(model))
    if tenant_filter.restricted:
        stmt = stmt.where(model.bank_id == tenant_filter.tenant_id)
    if criteria:
        stmt = stmt.where(*criteria)
    return stmt


async def scoped_count(db: AsyncSession, model, tenant_filter: TenantFilter, *criteria) -> int:
    stmt = scoped_select(model, tenant_filter, *criteria)
    total = await db.scalar(select(func.count()).select_from(stmt.subquery()))
    return int(total or 0)


def resolve_create_tenant(tenant_filter: TenantFilter, requested: str | None) -> str | None:
    """A restricted actor's own bank always wins over the requested one."""
    if tenant_filter.restricted:
        return tenant_filter.tenant_id
    return requested
