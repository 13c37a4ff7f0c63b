"""Cross-entity lifecycle guards run before a mutation is persisted.

A guard is an async callable taking a ``GuardContext`` and returning a
``GuardDecision``. Guards may read (counts, parent lookups) but never write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Collection, Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import Action
from app.services.authz import Actor
from app.services.tenant_scope import TenantFilter, scoped_count, scoped_select

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GuardDecision:
    allowed: bool
    code: str | None = None
    field: str | None = None

    @classmethod
    def allow(cls) -> "GuardDecision":
        return cls(True)

    @classmethod
    def deny(cls, code: str, field: str | None = None) -> "GuardDecision":
        return cls(False, code, field)


@dataclass(slots=True)
class GuardContext:
    db: AsyncSession
    actor: Actor
    scope: TenantFilter
    action: Action
    existing: Any | None
    changes: Mapping[str, Any]

    def value(self, name: str) -> Any:
        """Value after the mutation: the change if present, else the stored one."""
        if name in self.changes:
            return self.changes[name]
        return getattr(self.existing, name, None)

    def changed(self, name: str) -> bool:
        if name not in self.changes:
            return False
        if self.existing is None:
            return True
        return getattr(self.existing, name, None) != self.changes[name]


Guard = Callable[[GuardContext], Awaitable[GuardDecision]]


@dataclass(frozen=True)
class GuardSet:
    create: tuple[Guard, ...] = ()
    update: tuple[Guard, ...] = ()
    delete: tuple[Guard, ...] = ()

    def for_action(self, action: Action) -> tuple[Guard, ...]:
        if action is Action.CREATE:
            return self.create
        if action is Action.UPDATE:
            return self.update
        if action is Action.DELETE:
            return self.delete
        return ()


async def run_guards(guards: tuple[Guard, ...], ctx: GuardContext) -> GuardDecision:
    for guard in guards:
        decision = await guard(ctx)
        if not decision.allowed:
            logger.info(
                "Lifecycle guard rejected %s",
                ctx.action.value,
                extra={"code": decision.code},
            )
            return decision
    return GuardDecision.allow()


def no_active_dependents(
    model,
    foreign_key: str,
    code: str,
    *,
    terminal_statuses: Collection[str] = (),
) -> Guard:
    """Block when live dependents still reference the record being removed."""

    async def guard(ctx: GuardContext) -> GuardDecision:
        criteria = [getattr(model, foreign_key) == ctx.existing.id]
        if terminal_statuses:
            criteria.append(model.status.not_in(list(terminal_statuses)))
        active = await scoped_count(ctx.db, model, TenantFilter.unrestricted(), *criteria)
        if active:
            return GuardDecision.deny(code)
        return GuardDecision.allow()

    return guard


def status_workflow(
    resource: str,
    terminal: Collection[str],
    transitions: Mapping[str, Collection[str]],
    field_name: str = "status",
) -> Guard:
    async def guard(ctx: GuardContext) -> GuardDecision:
        if not ctx.changed(field_name):
            return GuardDecision.allow()
        current = getattr(ctx.existing, field_name)
        target = ctx.changes[field_name]
        if current in terminal:
            return GuardDecision.deny(f"{resource}.status_terminal", field_name)
        if target not in transitions.get(current, ()):
            return GuardDecision.deny(f"{resource}.invalid_status_transition", field_name)
        return GuardDecision.allow()

    return guard


def initial_status(resource: str, allowed: Collection[str], field_name: str = "status") -> Guard:
    async def guard(ctx: GuardContext) -> GuardDecision:
        if ctx.value(field_name) not in allowed:
            return GuardDecision.deny(f"{resource}.invalid_initial_status", field_name)
        return GuardDecision.allow()

    return guard


def deny_when_status(statuses: Collection[str], code: str, field_name: str = "status") -> Guard:
    async def guard(ctx: GuardContext) -> GuardDecision:
        if getattr(ctx.existing, field_name, None) in statuses:
            return GuardDecision.deny(code)
        return GuardDecision.allow()

    return guard


def parent_visible(parent_model, field_name: str, code: str = "parent_not_found") -> Guard:
    """The referenced parent must be live, visible to the actor and in the same bank."""

    async def guard(ctx: GuardContext) -> GuardDecision:
        if ctx.existing is not None and not ctx.changed(field_name):
            return GuardDecision.allow()
        parent_id = ctx.value(field_name)
        if parent_id is None:
            return GuardDecision.deny(code, field_name)
        parent = await ctx.db.scalar(scoped_select(parent_model, ctx.scope, parent_model.id == parent_id))
        if parent is None or parent.bank_id != ctx.value("bank_id"):
            return GuardDecision.deny(code, field_name)
        return GuardDecision.allow()

    return guard


def parent_not_terminal(
    parent_model,
    field_name: str,
    terminal: Collection[str],
    code: str,
) -> Guard:
    """Children of a closed parent are frozen, including moving them away from it."""

    async def guard(ctx: GuardContext) -> GuardDecision:
        parent_ids = {ctx.value(field_name)}
        if ctx.existing is not None:
            parent_ids.add(getattr(ctx.existing, field_name))
        parent_ids.discard(None)
        if not parent_ids:
            return GuardDecision.allow()
        statuses = await ctx.db.scalars(
            select(parent_model.status).where(parent_model.id.in_(list(parent_ids)))
        )
        if any(status in terminal for status in statuses):
            return GuardDecision.deny(code)
        return GuardDecision.allow()

    return guard


def immutable(code: str) -> Guard:
    async def guard(ctx: GuardContext) -> GuardDecision:
        return GuardDecision.deny(code)

    return guard
