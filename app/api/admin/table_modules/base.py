from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, ClassVar, Sequence

from sqlalchemy.orm import Session

from app.schemas.admin_table import Dir, TableFilters
from app.services.admin_table_csv import CsvColumn
from app.services.admin_table_predicates import And, OrderKey, Predicate, TenantScope, search_any
from app.services.admin_table_query import QueryContract
from app.services.admin_table_store import SqlAlchemyEntityStore

TIEBREAKER = OrderKey("id", "asc")

SortColumn = str | OrderKey


class ResourceAdapter(ABC):
    """Resource-specific knowledge plugged into the shared admin table engine.

    Subclasses declare the model, contract, search allow-list, sort mapping and
    CSV manifest, and implement ``map_row`` plus any filter conjuncts. The tenant
    conjunct and the ``id`` tiebreaker are added here and cannot be skipped.
    """

    key: ClassVar[str]
    model: ClassVar[type]
    contract: ClassVar[QueryContract]
    search_fields: ClassVar[tuple[str, ...]] = ()
    # API sort field -> attribute paths; a bare path follows the requested direction.
    sort_columns: ClassVar[dict[str, tuple[SortColumn, ...]]] = {}
    csv_columns: ClassVar[tuple[CsvColumn, ...]] = ()

    def scope_conjuncts(self) -> list[Predicate]:
        return []

    def build_filter_conjuncts(self, filters: TableFilters) -> list[Predicate]:
        return []

    def build_where(self, *, tenant_id: uuid.UUID, search: str | None, filters: TableFilters) -> And:
        clauses: list[Predicate] = [TenantScope(tenant_id)]
        clauses.extend(self.scope_conjuncts())
        if search and self.search_fields:
            clauses.append(search_any(self.search_fields, search))
        clauses.extend(self.build_filter_conjuncts(filters))
        return And(tuple(clauses))

    def build_order_by(self, field: str, dir: Dir) -> tuple[OrderKey, ...]:
        keys = [
            OrderKey(column, dir) if isinstance(column, str) else column
            for column in self.sort_columns[field]
        ]
        if not keys or keys[-1] != TIEBREAKER:
            keys.append(TIEBREAKER)
        return tuple(keys)

    def load_options(self) -> Sequence[Any]:
        return ()

    @abstractmethod
    def map_row(self, row: Any) -> dict[str, Any]:
        ...

    def store(self, session_factory: Callable[[], Session]) -> SqlAlchemyEntityStore:
        return SqlAlchemyEntityStore(session_factory, self.model, load_options=self.load_options())

    def meta(self) -> dict[str, Any]:
        return {
            "resource": self.key,
            "sortFields": list(self.contract.allowed_sort_fields),
            "defaultSort": {"field": self.contract.default_sort.field, "dir": self.contract.default_sort.dir},
            "defaultPageSize": self.contract.default_page_size,
            "maxPageSize": self.contract.max_page_size,
            "maxExportRows": self.contract.max_export_rows,
            "filterKeys": self.contract.filter_keys(),
            "csvHeaders": [column.header for column in self.csv_columns],
        }


def filter_uuid(value: str | None) -> uuid.UUID | None:
    return uuid.UUID(value) if value else None


def iso_utc(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def display_name(first_name: str, last_name: str, preferred_name: str | None = None) -> str:
    if preferred_name and preferred_name.strip():
        return preferred_name.strip()
    return f"{first_name} {last_name}".strip()


def staff_name(user: Any) -> str:
    name = str(getattr(user, "name", None) or "").strip()
    return name or str(getattr(user, "email", "") or "")
