"""Policy evaluation: who may do what to which subject type and field.

Rules are plain data assembled once per request from the actor's role (see
``app.core.permissions``). ``can`` is a pure function of the actor and its
arguments; there is no ambient "current ability".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from app.core.permissions import (
    Action,
    PolicyRule,
    Role,
    SubjectType,
    is_tenant_scoped_role,
    rules_for_role,
)
from app.core.tenant import normalize_bank_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Actor:
    id: str
    role: str
    tenant_id: str | None = None
    manage_scope: frozenset[SubjectType] = frozenset()
    rules: tuple[PolicyRule, ...] = field(default=(), repr=False)

    @property
    def is_platform(self) -> bool:
        return self.tenant_id is None


def build_actor(
    actor_id: str,
    role: Role | str,
    tenant_id: str | None = None,
    manage_scope: Iterable[SubjectType | str] = (),
) -> Actor:
    """Assemble an immutable actor with its rule set for one request."""
    role_value = role.value if isinstance(role, Role) else str(role)
    tenant = normalize_bank_id(tenant_id) if tenant_id else None

    scope: set[SubjectType] = set()
    for value in manage_scope:
        subject = SubjectType.parse(value)
        if subject is not None:
            scope.add(subject)

    if tenant is None and is_tenant_scoped_role(role_value):
        # A bank role without a bank grants nothing.
        logger.warning("Actor %s has bank role %s without a bank assignment", actor_id, role_value)
        rules: tuple[PolicyRule, ...] = ()
    else:
        rules = rules_for_role(role_value) + tuple(
            PolicyRule(action=Action.MANAGE, subject_type=subject)
            for subject in sorted(scope, key=lambda s: s.value)
        )
    return Actor(
        id=str(actor_id),
        role=role_value,
        tenant_id=tenant,
        manage_scope=frozenset(scope),
        rules=rules,
    )


def can(
    actor: Actor | None,
    action: Action | str,
    subject_type: SubjectType | str,
    field: str | None = None,
) -> bool:
    """Return True when an allow rule grants ``action`` on ``subject_type`` (and ``field``).

    Resolution:

    * a field-less ``manage`` rule allows everything on the subject type;
    * without a field, any rule for the action (or ``manage``) allows;
    * with a field, a field-less rule for the action matches every field and a
      field-qualified rule matches only the fields its pattern names.

    Unknown actions or subject types are denied.
    """
    if actor is None:
        return False
    resolved_action = Action.parse(action)
    resolved_subject = SubjectType.parse(subject_type)
    if resolved_action is None or resolved_subject is None:
        return False

    relevant = [rule for rule in actor.rules if rule.covers_subject(resolved_subject)]
    if any(rule.action is Action.MANAGE and rule.field is None for rule in relevant):
        return True

    candidates = [rule for rule in relevant if rule.action in (resolved_action, Action.MANAGE)]
    if field is None:
        return bool(candidates)

    return any(rule.matches_field(field) for rule in candidates)


def permitted_fields(
    actor: Actor | None,
    action: Action | str,
    subject_type: SubjectType | str,
    fields: Iterable[str],
) -> dict[str, bool]:
    return {name: can(actor, action, subject_type, name) for name in fields}
