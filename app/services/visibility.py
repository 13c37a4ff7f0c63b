"""Per-actor field visibility for a subject type.

Maps are rebuilt on every call from the actor's rules; nothing is cached.
"""

from __future__ import annotations

from typing import Any

from app.core.permissions import Action
from app.services.authz import Actor, can, permitted_fields
from app.services.subjects.base import READ_ONLY_FIELDS, SubjectDefinition

UI_ACTIONS = (Action.CREATE, Action.READ, Action.UPDATE, Action.DELETE)


def read_map(actor: Actor | None, definition: SubjectDefinition) -> dict[str, bool]:
    readable = permitted_fields(actor, Action.READ, definition.subject_type, definition.fields)
    for derived in definition.derived:
        readable[derived.name] = any(readable.get(source, False) for source in derived.sources)
    return readable


def write_map(
    actor: Actor | None,
    definition: SubjectDefinition,
    action: Action = Action.UPDATE,
) -> dict[str, bool]:
    granted = permitted_fields(actor, action, definition.subject_type, definition.fields)
    writable = {name: allowed and name not in READ_ONLY_FIELDS for name, allowed in granted.items()}
    for derived in definition.derived:
        writable[derived.name] = False
    return writable


def action_map(actor: Actor | None, definition: SubjectDefinition) -> dict[str, bool]:
    return {action.value: can(actor, action, definition.subject_type) for action in UI_ACTIONS}


def row_values(instance: Any, definition: SubjectDefinition) -> dict[str, Any]:
    return {name: getattr(instance, name) for name in definition.fields}


def shape(
    values: dict[str, Any],
    readable: dict[str, bool],
    definition: SubjectDefinition,
) -> dict[str, Any]:
    """Drop unreadable keys, then compute derived fields from what is left."""
    visible = {key: value for key, value in values.items() if readable.get(key, False)}
    derived_values = {
        derived.name: derived.compute(visible)
        for derived in definition.derived
        if readable.get(derived.name, False)
    }
    visible.update(derived_values)
    return visible
