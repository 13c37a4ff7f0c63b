from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Mapping

from pydantic import BaseModel

from app.core.permissions import SubjectType
from app.services.authz import Actor
from app.services.lifecycle import GuardContext, GuardSet

# Columns the pipeline manages; never part of a client change set.
READ_ONLY_FIELDS = frozenset({"id", "bank_id", "created_at", "updated_at", "deleted_at"})


@dataclass(frozen=True)
class DerivedField:
    """Computed, read-only field; readable when any of ``sources`` is readable."""

    name: str
    sources: tuple[str, ...]
    compute: Callable[[Mapping[str, Any]], Any]


@dataclass(frozen=True)
class UniqueRule:
    """Maps a unique constraint violation to a domain conflict code."""

    constraint: str
    columns: tuple[str, ...]
    code: str
    field: str | None = None

    def matches(self, message: str, table: str) -> bool:
        if self.constraint in message:
            return True
        # SQLite reports the columns rather than the index name.
        return ", ".join(f"{table}.{column}" for column in self.columns) in message


@dataclass(frozen=True)
class SubjectDefinition:
    subject_type: SubjectType
    model: Any
    resource: str
    path: str
    create_schema: type[BaseModel]
    update_schema: type[BaseModel]
    fields: tuple[str, ...]
    derived: tuple[DerivedField, ...] = ()
    filter_schema: type[BaseModel] | None = None
    apply_filters: Callable[[Any], list] | None = None
    search_fields: tuple[str, ...] = ()
    guards: GuardSet = field(default_factory=GuardSet)
    unique_rules: tuple[UniqueRule, ...] = ()
    sensitive_fields: frozenset[str] = frozenset()
    populate: Callable[[Actor, dict[str, Any]], None] | None = None
    # Runs inside the mutation's transaction once the row is written: (ctx, snapshot before, row).
    after_write: Callable[[GuardContext, dict[str, Any] | None, Any], Awaitable[None]] | None = None

    @property
    def table(self) -> str:
        return self.model.__tablename__


def declared_fields(model, exclude: Iterable[str] = ("deleted_at",)) -> tuple[str, ...]:
    excluded = set(exclude)
    return tuple(column.name for column in model.__table__.columns if column.name not in excluded)


def join_present(values: Mapping[str, Any], names: Iterable[str], sep: str) -> str | None:
    parts = [str(values[name]) for name in names if values.get(name)]
    return sep.join(parts) or None
