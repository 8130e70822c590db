"""Store-agnostic predicate and order clause trees for admin table queries.

Predicates are immutable trees of small dataclasses. Resource adapters build them,
stores compile them. Field names are attribute paths on the resource entity; a
dotted path (``student.first_name``) walks a relationship.

Every predicate handed to a store must be an ``And`` whose first clause is a
``TenantScope``. ``assert_tenant_scoped`` checks that shape mechanically.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterator, Literal, Union

SortDir = Literal["asc", "desc"]


@dataclass(frozen=True)
class TenantScope:
    tenant_id: uuid.UUID
    field: str = "tenant_id"


@dataclass(frozen=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True)
class In:
    field: str
    values: tuple[Any, ...]


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match."""

    field: str
    value: str


@dataclass(frozen=True)
class Range:
    """Half-open range: ``gte <= field < lt``. Either bound may be omitted."""

    field: str
    gte: Any = None
    lt: Any = None


@dataclass(frozen=True)
class HasRelated:
    field: str
    present: bool = True


@dataclass(frozen=True)
class And:
    clauses: tuple["Predicate", ...]


@dataclass(frozen=True)
class Or:
    clauses: tuple["Predicate", ...]


Predicate = Union[TenantScope, Eq, In, Contains, Range, HasRelated, And, Or]


@dataclass(frozen=True)
class OrderKey:
    field: str
    dir: SortDir = "asc"


class UnscopedPredicateError(ValueError):
    pass


def assert_tenant_scoped(predicate: Predicate) -> TenantScope:
    if not isinstance(predicate, And) or not predicate.clauses:
        raise UnscopedPredicateError("predicate root must be a non-empty And")
    head = predicate.clauses[0]
    if not isinstance(head, TenantScope) or head.tenant_id is None:
        raise UnscopedPredicateError("first conjunct must be a TenantScope")
    return head


def search_any(fields: tuple[str, ...], text: str) -> Or:
    return Or(tuple(Contains(field, text) for field in fields))


def walk(predicate: Predicate) -> Iterator[Predicate]:
    yield predicate
    if isinstance(predicate, (And, Or)):
        for clause in predicate.clauses:
            yield from walk(clause)


def parse_date_start(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.combine(date.fromisoformat(value), time.min, tzinfo=timezone.utc)


def parse_date_end_exclusive(value: str | None) -> datetime | None:
    start = parse_date_start(value)
    if start is None:
        return None
    return start + timedelta(days=1)


def date_range(field: str, date_from: str | None, date_to: str | None) -> Range | None:
    # Date-only bounds: inclusive start of `from`, exclusive start of the day after `to`.
    start = parse_date_start(date_from)
    end_exclusive = parse_date_end_exclusive(date_to)
    if start is None and end_exclusive is None:
        return None
    return Range(field, gte=start, lt=end_exclusive)
