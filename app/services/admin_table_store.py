from __future__ import annotations

import asyncio
from typing import Any, Callable, Sequence

from sqlalchemy import and_, asc, desc, false, func, or_, select, true
from sqlalchemy.orm import Query, RelationshipProperty, Session, aliased

from app.core.config import settings
from app.services.admin_table_predicates import (
    And,
    Contains,
    Eq,
    HasRelated,
    In,
    Or,
    OrderKey,
    Predicate,
    Range,
    TenantScope,
    assert_tenant_scoped,
)


class UnknownFieldError(ValueError):
    pass


def _attribute(entity, name: str):
    attr = getattr(entity, name, None)
    if attr is None or not hasattr(attr, "property"):
        raise UnknownFieldError(f"{getattr(entity, '__name__', entity)!r} has no mapped attribute {name!r}")
    return attr


def _relationship(attr) -> RelationshipProperty | None:
    prop = attr.property
    return prop if isinstance(prop, RelationshipProperty) else None


def _on_path(entity, path: str, build: Callable[[Any], Any]):
    head, _, rest = path.partition(".")
    attr = _attribute(entity, head)
    if not rest:
        return build(attr)
    rel = _relationship(attr)
    if rel is None:
        raise UnknownFieldError(f"{head!r} is not a relationship in path {path!r}")
    inner = _on_path(rel.mapper.class_, rest, build)
    return attr.any(inner) if rel.uselist else attr.has(inner)


def _has_related(attr, present: bool):
    rel = _relationship(attr)
    if rel is None:
        raise UnknownFieldError(f"{attr.key!r} is not a relationship")
    clause = attr.any() if rel.uselist else attr.has()
    return clause if present else ~clause


def _range(attr, node: Range):
    bounds = []
    if node.gte is not None:
        bounds.append(attr >= node.gte)
    if node.lt is not None:
        bounds.append(attr < node.lt)
    return and_(*bounds) if bounds else true()


def _compile(model, node: Predicate):
    if isinstance(node, TenantScope):
        return _attribute(model, node.field) == node.tenant_id
    if isinstance(node, And):
        return and_(*[_compile(model, clause) for clause in node.clauses]) if node.clauses else true()
    if isinstance(node, Or):
        return or_(*[_compile(model, clause) for clause in node.clauses]) if node.clauses else false()
    if isinstance(node, Eq):
        return _on_path(model, node.field, lambda col: col == node.value)
    if isinstance(node, In):
        return _on_path(model, node.field, lambda col: col.in_(list(node.values)))
    if isinstance(node, Contains):
        return _on_path(model, node.field, lambda col: col.icontains(node.value, autoescape=True))
    if isinstance(node, Range):
        return _on_path(model, node.field, lambda col: _range(col, node))
    if isinstance(node, HasRelated):
        return _on_path(model, node.field, lambda attr: _has_related(attr, node.present))
    raise TypeError(f"unsupported predicate node {type(node).__name__}")


def compile_predicate(model, predicate: Predicate):
    # Refuse to touch the database with a predicate that lacks the tenant conjunct.
    assert_tenant_scoped(predicate)
    return _compile(model, predicate)


def apply_order(query: Query, model, order_by: Sequence[OrderKey]) -> Query:
    joined: dict[str, Any] = {}
    columns = []
    for key in order_by:
        entity = model
        parts = key.field.split(".")
        prefix = ""
        for part in parts[:-1]:
            attr = _attribute(entity, part)
            rel = _relationship(attr)
            if rel is None or rel.uselist:
                raise UnknownFieldError(f"cannot order through {part!r} in {key.field!r}")
            prefix = f"{prefix}.{part}" if prefix else part
            target = joined.get(prefix)
            if target is None:
                target = aliased(rel.mapper.class_)
                query = query.outerjoin(attr.of_type(target))
                joined[prefix] = target
            entity = target
        col = _attribute(entity, parts[-1])
        columns.append(asc(col) if key.dir == "asc" else desc(col))
    return query.order_by(*columns)


def apply_statement_timeout(db: Session, timeout_ms: int) -> None:
    # Transaction-local, so it ends with the session; SQLite has no per-statement timeout.
    if timeout_ms <= 0 or db.get_bind().dialect.name != "postgresql":
        return
    db.execute(select(func.set_config("statement_timeout", str(int(timeout_ms)), true())))


class SqlAlchemyEntityStore:
    """Count/find capability for one mapped entity.

    Each call opens its own session from ``session_factory`` and runs in a worker
    thread, so a count and a page fetch can be awaited together. A cancelled caller
    cannot stop a worker thread, so each call runs under ``statement_timeout_ms``
    where the database supports it. Rows come back detached; ``load_options``
    must eager-load whatever the row mapper reads.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        model,
        *,
        load_options: Sequence[Any] = (),
        statement_timeout_ms: int = settings.REPORT_STATEMENT_TIMEOUT_MS,
    ):
        self.session_factory = session_factory
        self.model = model
        self.load_options = tuple(load_options)
        self.statement_timeout_ms = statement_timeout_ms

    def count_sync(self, where: Predicate) -> int:
        criteria = compile_predicate(self.model, where)
        with self.session_factory() as db:
            apply_statement_timeout(db, self.statement_timeout_ms)
            return int(db.query(self.model).filter(criteria).count())

    def find_sync(self, where: Predicate, order_by: Sequence[OrderKey], *, skip: int, take: int) -> list[Any]:
        criteria = compile_predicate(self.model, where)
        with self.session_factory() as db:
            apply_statement_timeout(db, self.statement_timeout_ms)
            query = db.query(self.model).filter(criteria)
            query = apply_order(query, self.model, order_by)
            if self.load_options:
                query = query.options(*self.load_options)
            return list(query.offset(skip).limit(take).all())

    async def count(self, where: Predicate) -> int:
        return await asyncio.to_thread(self.count_sync, where)

    async def find(self, where: Predicate, order_by: Sequence[OrderKey], *, skip: int, take: int) -> list[Any]:
        return await asyncio.to_thread(self.find_sync, where, order_by, skip=skip, take=take)
