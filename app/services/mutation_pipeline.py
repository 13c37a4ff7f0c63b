"""Generic permission-filtered CRUD for one subject type.

Every operation follows the same steps: authenticate, coarse permission,
structural validation, scoped load, field-level write filtering, lifecycle
guards, persist, reload and shape. Expected failures come back as ``Result``
values; only unexpected errors are logged with a traceback.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Mapping
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import false, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import Action
from app.schemas.common import PageRequest
from app.schemas.results import PageMeta, Result, field_errors_from
from app.schemas.visibility import VisibilityView
from app.services.audit import model_snapshot, record_audit_log
from app.services.authz import Actor, can
from app.services.lifecycle import GuardContext, run_guards
from app.services.subjects.base import SubjectDefinition
from app.services.tenant_scope import (
    TenantFilter,
    resolve_create_tenant,
    scope,
    scoped_select,
)
from app.services.visibility import action_map, read_map, row_values, shape, write_map

logger = logging.getLogger(__name__)

PROTECTED_FIELDS = frozenset({"id", "bank_id"})
DEFAULT_SORT = "created_at"
LIKE_ESCAPE = "\\"


def build_change_set(
    payload: Mapping[str, Any],
    writable: Mapping[str, bool],
    protected: frozenset[str] = PROTECTED_FIELDS,
) -> dict[str, Any]:
    """Keep only keys the actor may write; identity and tenant keys never pass."""
    return {
        key: value
        for key, value in payload.items()
        if key not in protected and writable.get(key, False)
    }


def escape_like(term: str) -> str:
    """Search terms match literally; LIKE wildcards in them are escaped."""
    escaped = term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
    for wildcard in ("%", "_"):
        escaped = escaped.replace(wildcard, LIKE_ESCAPE + wildcard)
    return escaped


def _schema_defaults(schema) -> dict[str, Any]:
    defaults: dict[str, Any] = {}
    for name, info in schema.model_fields.items():
        if info.is_required():
            continue
        value = info.get_default(call_default_factory=True)
        if isinstance(value, Enum):
            value = value.value
        if value is not None:
            defaults[name] = value
    return defaults


def _parse_id(record_id: Any) -> UUID | None:
    if isinstance(record_id, UUID):
        return record_id
    try:
        return UUID(str(record_id))
    except (TypeError, ValueError):
        return None


class MutationPipeline:
    def __init__(self, definition: SubjectDefinition) -> None:
        self.definition = definition

    @property
    def model(self):
        return self.definition.model

    def _code(self, outcome: str) -> str:
        return f"{self.definition.resource}.{outcome}"

    def _log_extra(self, resource_id: Any = None) -> dict[str, Any]:
        return {"subject": self.definition.subject_type.value, "resource_id": resource_id}

    def visibility(self, actor: Actor | None) -> Result:
        if actor is None:
            return Result.unauthorized()
        view = VisibilityView(
            subject=self.definition.subject_type.value,
            actions=action_map(actor, self.definition),
            readable=read_map(actor, self.definition),
            writable=write_map(actor, self.definition),
        )
        return Result.ok(self._code("visibility"), view.model_dump())

    async def create(self, db: AsyncSession, actor: Actor | None, payload: Mapping[str, Any] | None) -> Result:
        return await self._guarded(db, "create", self._create(db, actor, payload or {}))

    async def update(
        self,
        db: AsyncSession,
        actor: Actor | None,
        record_id: Any,
        payload: Mapping[str, Any] | None,
    ) -> Result:
        return await self._guarded(db, "update", self._update(db, actor, record_id, payload or {}))

    async def remove(self, db: AsyncSession, actor: Actor | None, record_id: Any) -> Result:
        return await self._guarded(db, "delete", self._remove(db, actor, record_id))

    async def get(self, db: AsyncSession, actor: Actor | None, record_id: Any) -> Result:
        return await self._guarded(db, "get", self._get(db, actor, record_id))

    async def list(
        self,
        db: AsyncSession,
        actor: Actor | None,
        filters: Mapping[str, Any] | None = None,
        page: PageRequest | None = None,
    ) -> Result:
        return await self._guarded(db, "list", self._list(db, actor, filters or {}, page or PageRequest()))

    async def _guarded(self, db: AsyncSession, operation: str, work: Awaitable[Result]) -> Result:
        try:
            return await work
        except IntegrityError as exc:
            await db.rollback()
            result = self._conflict_from(exc)
            logger.info(
                "%s %s rejected by constraint",
                self.definition.resource,
                operation,
                extra={**self._log_extra(), "code": result.code},
            )
            return result
        except Exception:
            logger.exception(
                "%s %s failed",
                self.definition.resource,
                operation,
                extra=self._log_extra(),
            )
            await db.rollback()
            return Result.internal()

    def _conflict_from(self, exc: IntegrityError) -> Result:
        message = str(exc.orig) if exc.orig is not None else str(exc)
        for rule in self.definition.unique_rules:
            if rule.matches(message, self.definition.table):
                return Result.conflict(rule.code, rule.field)
        return Result.conflict()

    async def _load(self, db: AsyncSession, tenant_filter: TenantFilter, record_id: Any):
        key = _parse_id(record_id)
        if key is None:
            return None
        stmt = scoped_select(self.model, TenantFilter.unrestricted(), self.model.id == key)
        instance = await db.scalar(stmt.execution_options(populate_existing=True))
        if instance is None:
            return None
        if not tenant_filter.permits(instance):
            logger.info("Cross-bank access refused", extra=self._log_extra(str(key)))
            return None
        return instance

    async def _reload(self, db: AsyncSession, tenant_filter: TenantFilter, key: UUID):
        stmt = scoped_select(self.model, tenant_filter, self.model.id == key)
        return await db.scalar(stmt.execution_options(populate_existing=True))

    def _view(self, actor: Actor, instance: Any) -> dict[str, Any]:
        return shape(row_values(instance, self.definition), read_map(actor, self.definition), self.definition)

    def _missing_required(self, validated, values: Mapping[str, Any]) -> dict[str, str]:
        missing = {}
        for name, info in type(validated).model_fields.items():
            if name in PROTECTED_FIELDS:
                continue
            if info.is_required() and name not in values:
                missing[name] = "Field required"
        return missing

    async def _create(self, db: AsyncSession, actor: Actor | None, payload: Mapping[str, Any]) -> Result:
        definition = self.definition
        if actor is None:
            return Result.unauthorized()
        if not can(actor, Action.CREATE, definition.subject_type):
            return Result.forbidden()
        try:
            validated = definition.create_schema.model_validate(payload)
        except ValidationError as exc:
            return Result.invalid(field_errors_from(exc))

        tenant_filter = scope(actor)
        supplied = validated.model_dump(exclude_unset=True)
        values = build_change_set(supplied, write_map(actor, definition, Action.CREATE))
        # Keys left out or dropped fall back to the schema default.
        for key, value in _schema_defaults(definition.create_schema).items():
            if key in definition.fields and key not in PROTECTED_FIELDS:
                values.setdefault(key, value)
        missing = self._missing_required(validated, values)
        if missing:
            return Result.invalid(missing)

        values["bank_id"] = resolve_create_tenant(tenant_filter, validated.bank_id)
        if definition.populate is not None:
            definition.populate(actor, values)

        ctx = GuardContext(db, actor, tenant_filter, Action.CREATE, None, values)
        decision = await run_guards(definition.guards.for_action(Action.CREATE), ctx)
        if not decision.allowed:
            return Result.conflict(decision.code, decision.field)

        instance = self.model(**values)
        db.add(instance)
        await db.flush()
        created = await self._reload(db, tenant_filter, instance.id)
        if created is None:
            await db.rollback()
            return Result.not_found()
        if definition.after_write is not None:
            await definition.after_write(ctx, None, created)
        record_audit_log(
            db,
            actor,
            bank_id=created.bank_id,
            action=self._code("created"),
            resource_type=definition.subject_type.value,
            resource_id=str(created.id),
            new_value=model_snapshot(created, exclude=definition.sensitive_fields),
        )
        await db.commit()
        return Result.ok(self._code("created"), self._view(actor, created))

    async def _update(
        self,
        db: AsyncSession,
        actor: Actor | None,
        record_id: Any,
        payload: Mapping[str, Any],
    ) -> Result:
        definition = self.definition
        if actor is None:
            return Result.unauthorized()
        if not can(actor, Action.UPDATE, definition.subject_type):
            return Result.forbidden()
        try:
            validated = definition.update_schema.model_validate(payload)
        except ValidationError as exc:
            return Result.invalid(field_errors_from(exc))

        tenant_filter = scope(actor)
        existing = await self._load(db, tenant_filter, record_id)
        if existing is None:
            return Result.not_found()

        changes = build_change_set(
            validated.model_dump(exclude_unset=True),
            write_map(actor, definition, Action.UPDATE),
        )
        if not changes:
            return Result.ok(self._code("unchanged"), self._view(actor, existing))

        ctx = GuardContext(db, actor, tenant_filter, Action.UPDATE, existing, changes)
        decision = await run_guards(definition.guards.for_action(Action.UPDATE), ctx)
        if not decision.allowed:
            return Result.conflict(decision.code, decision.field)

        before = model_snapshot(existing, exclude=definition.sensitive_fields)
        await db.execute(
            update(self.model)
            .where(self.model.id == existing.id, self.model.deleted_at.is_(None))
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        updated = await self._reload(db, tenant_filter, existing.id)
        if updated is None:
            await db.rollback()
            return Result.not_found()
        if definition.after_write is not None:
            await definition.after_write(ctx, before, updated)
        record_audit_log(
            db,
            actor,
            bank_id=updated.bank_id,
            action=self._code("updated"),
            resource_type=definition.subject_type.value,
            resource_id=str(updated.id),
            old_value=before,
            new_value=model_snapshot(updated, exclude=definition.sensitive_fields),
        )
        await db.commit()
        return Result.ok(self._code("updated"), self._view(actor, updated))

    async def _remove(self, db: AsyncSession, actor: Actor | None, record_id: Any) -> Result:
        definition = self.definition
        if actor is None:
            return Result.unauthorized()
        if not can(actor, Action.DELETE, definition.subject_type):
            return Result.forbidden()

        tenant_filter = scope(actor)
        existing = await self._load(db, tenant_filter, record_id)
        if existing is None:
            return Result.not_found()

        ctx = GuardContext(db, actor, tenant_filter, Action.DELETE, existing, {})
        decision = await run_guards(definition.guards.for_action(Action.DELETE), ctx)
        if not decision.allowed:
            return Result.conflict(decision.code, decision.field)

        before = model_snapshot(existing, exclude=definition.sensitive_fields)
        outcome = await db.execute(
            update(self.model)
            .where(self.model.id == existing.id, self.model.deleted_at.is_(None))
            .values(deleted_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        if outcome.rowcount == 0:
            # Removed concurrently between the load and the tombstone write.
            await db.rollback()
            return Result.not_found()
        record_audit_log(
            db,
            actor,
            bank_id=existing.bank_id,
            action=self._code("deleted"),
            resource_type=definition.subject_type.value,
            resource_id=str(existing.id),
            old_value=before,
        )
        await db.commit()
        return Result.ok(self._code("deleted"), {"id": str(existing.id)})

    async def _get(self, db: AsyncSession, actor: Actor | None, record_id: Any) -> Result:
        if actor is None:
            return Result.unauthorized()
        if not can(actor, Action.READ, self.definition.subject_type):
            return Result.forbidden()
        instance = await self._load(db, scope(actor), record_id)
        if instance is None:
            return Result.not_found()
        return Result.ok(self._code("retrieved"), self._view(actor, instance))

    async def _list(
        self,
        db: AsyncSession,
        actor: Actor | None,
        filters: Mapping[str, Any],
        page: PageRequest,
    ) -> Result:
        definition = self.definition
        if actor is None:
            return Result.unauthorized()
        if not can(actor, Action.READ, definition.subject_type):
            return Result.forbidden()

        readable = read_map(actor, definition)
        sort_by = page.sort_by or DEFAULT_SORT
        if page.sort_by and not (page.sort_by in definition.fields and readable.get(page.sort_by)):
            return Result.invalid({"sort_by": "Unsupported sort field"})

        criteria = []
        if definition.filter_schema is not None:
            try:
                parsed = definition.filter_schema.model_validate(dict(filters))
            except ValidationError as exc:
                return Result.invalid(field_errors_from(exc))
            if definition.apply_filters is not None:
                criteria.extend(definition.apply_filters(parsed))

        tenant_filter = scope(actor)
        if not tenant_filter.restricted and page.bank_id:
            criteria.append(self.model.bank_id == page.bank_id)

        if page.search:
            columns = [
                getattr(self.model, name)
                for name in definition.search_fields
                if readable.get(name)
            ]
            pattern = f"%{escape_like(page.search)}%"
            matches = [column.ilike(pattern, escape=LIKE_ESCAPE) for column in columns]
            criteria.append(or_(*matches) if matches else false())

        stmt = scoped_select(self.model, tenant_filter, *criteria)
        total = await db.scalar(select(func.count()).select_from(stmt.subquery()))

        sort_column = getattr(self.model, sort_by)
        ordering = sort_column.asc() if page.sort_order == "asc" else sort_column.desc()
        stmt = stmt.order_by(ordering, self.model.id.asc()).offset(page.offset).limit(page.page_size)
        rows = (await db.scalars(stmt)).all()

        data = [shape(row_values(row, definition), readable, definition) for row in rows]
        meta = PageMeta.build(int(total or 0), page.page, page.page_size)
        return Result.ok(self._code("listed"), data, meta=meta)
