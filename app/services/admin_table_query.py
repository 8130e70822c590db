"""Shared query contract, parser and executor behind every admin list/export endpoint.

Request parameters are validated against a closed per-resource ``QueryContract``
before any predicate is built or any store call is issued. List and export modes
share one predicate/order construction path so an export reproduces what the list
shows, bounded by the export cap.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, Sequence

from pydantic import ValidationError

from app.core.config import settings
from app.schemas.admin_table import AdminTableQueryParams, Dir, SortSpec, TableFilters
from app.services.admin_table_predicates import OrderKey, Predicate
from app.services.report_errors import ReportApiError, internal_error, invalid_query

logger = logging.getLogger(__name__)

BASE_PARAM_KEYS = ("search", "page", "pageSize", "sortField", "sortDir", "filters")

# Largest row offset a store can bind (signed 64-bit).
MAX_ROW_OFFSET = 2**63 - 1


@dataclass(frozen=True)
class ReportLimits:
    default_page_size: int
    max_page_size: int
    max_export_rows: int
    max_search_length: int


REPORT_LIMITS = ReportLimits(
    default_page_size=settings.REPORT_DEFAULT_PAGE_SIZE,
    max_page_size=settings.REPORT_MAX_PAGE_SIZE,
    max_export_rows=settings.REPORT_MAX_EXPORT_ROWS,
    max_search_length=settings.REPORT_MAX_SEARCH_LENGTH,
)


@dataclass(frozen=True)
class QueryContract:
    filter_schema: type[TableFilters]
    allowed_sort_fields: tuple[str, ...]
    default_sort: SortSpec
    default_page_size: int = REPORT_LIMITS.default_page_size
    max_page_size: int = REPORT_LIMITS.max_page_size
    max_export_rows: int = REPORT_LIMITS.max_export_rows

    def __post_init__(self) -> None:
        if self.default_sort.field not in self.allowed_sort_fields:
            raise ValueError(f"default sort field {self.default_sort.field!r} is not an allowed sort field")
        if not 1 <= self.default_page_size <= self.max_page_size:
            raise ValueError("default page size must be between 1 and max page size")
        if self.max_export_rows < 1:
            raise ValueError("max export rows must be positive")

    def filter_keys(self) -> list[str]:
        return [info.alias or name for name, info in self.filter_schema.model_fields.items()]


@dataclass(frozen=True)
class ParsedAdminTableQuery:
    search: str | None
    filters: TableFilters
    applied_filters: dict[str, Any]
    page: int
    page_size: int
    sort: SortSpec


@dataclass
class AdminTableQueryResult:
    rows: list[dict[str, Any]]
    total_count: int
    page: int
    page_size: int
    sort: SortSpec
    applied_filters: dict[str, Any] = field(default_factory=dict)
    export_truncated: bool | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "rows": self.rows,
            "totalCount": self.total_count,
            "page": self.page,
            "pageSize": self.page_size,
            "sort": {"field": self.sort.field, "dir": self.sort.dir},
            "appliedFilters": self.applied_filters,
        }
        if self.export_truncated is not None:
            payload["exportTruncated"] = self.export_truncated
        return payload


class TableResource(Protocol):
    key: str
    contract: QueryContract

    def build_where(self, *, tenant_id: uuid.UUID, search: str | None, filters: TableFilters) -> Predicate: ...

    def build_order_by(self, field: str, dir: Dir) -> tuple[OrderKey, ...]: ...

    def map_row(self, row: Any) -> dict[str, Any]: ...


class EntityStore(Protocol):
    async def count(self, where: Predicate) -> int: ...

    async def find(self, where: Predicate, order_by: Sequence[OrderKey], *, skip: int, take: int) -> list[Any]: ...


def _validation_issues(exc: ValidationError) -> list[dict[str, str]]:
    return [
        {"code": str(err.get("type") or "invalid"), "path": ".".join(str(part) for part in err.get("loc") or ())}
        for err in exc.errors()
    ]


def _parse_filters(raw_filters: str | None, schema: type[TableFilters]) -> TableFilters:
    if not raw_filters:
        try:
            return schema.model_validate({})
        except ValidationError:
            raise invalid_query(field="filters")

    try:
        decoded = json.loads(raw_filters)
    except (ValueError, RecursionError):
        raise invalid_query(field="filters", reason="INVALID_JSON")

    if not isinstance(decoded, dict):
        raise invalid_query(field="filters", reason="INVALID_OBJECT")

    try:
        return schema.model_validate(decoded)
    except ValidationError as exc:
        raise invalid_query(field="filters", issues=_validation_issues(exc))


def _assert_date_range_if_present(filters: Mapping[str, Any]) -> None:
    date_from = filters.get("from") if isinstance(filters.get("from"), str) else None
    date_to = filters.get("to") if isinstance(filters.get("to"), str) else None
    # YYYY-MM-DD strings order the same way as the dates they name.
    if date_from and date_to and date_from > date_to:
        raise invalid_query(field="filters", reason="INVALID_RANGE")


def to_applied_filters(filters: Mapping[str, Any]) -> dict[str, Any]:
    applied: dict[str, Any] = {}
    for key, value in filters.items():
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        if isinstance(value, (list, tuple, set, frozenset, dict)) and not value:
            continue
        applied[key] = value
    return applied


def parse_admin_table_query(params: Mapping[str, str], contract: QueryContract) -> ParsedAdminTableQuery:
    raw = {key: params.get(key) for key in BASE_PARAM_KEYS}
    try:
        base = AdminTableQueryParams.model_validate(raw)
    except ValidationError as exc:
        raise invalid_query(field="query", issues=_validation_issues(exc))

    # Oversized page sizes are capped, not rejected.
    page_size = min(base.pageSize or contract.default_page_size, contract.max_page_size)
    page = base.page or 1
    if (page - 1) * page_size > MAX_ROW_OFFSET:
        raise invalid_query(field="page", reason="OUT_OF_RANGE")

    sort_field = base.sortField or contract.default_sort.field
    if sort_field not in contract.allowed_sort_fields:
        raise invalid_query(field="sortField", allowed=list(contract.allowed_sort_fields))
    sort_dir = base.sortDir or contract.default_sort.dir

    filters = _parse_filters(base.filters, contract.filter_schema)
    filter_values = filters.model_dump(by_alias=True)
    _assert_date_range_if_present(filter_values)

    return ParsedAdminTableQuery(
        search=base.search or None,
        filters=filters,
        applied_filters=to_applied_filters(filter_values),
        page=page,
        page_size=page_size,
        sort=SortSpec(field=sort_field, dir=sort_dir),
    )


async def _count_and_find(
    resource: TableResource,
    store: EntityStore,
    where: Predicate,
    order_by: Sequence[OrderKey],
    *,
    skip: int,
    take: int,
) -> tuple[int, list[Any]]:
    # Both reads share one predicate; wait for both before assembling the result.
    total_count, rows = await asyncio.gather(
        store.count(where),
        store.find(where, order_by, skip=skip, take=take),
        return_exceptions=True,
    )
    for outcome in (total_count, rows):
        if isinstance(outcome, ReportApiError):
            raise outcome
        if isinstance(outcome, Exception):
            logger.error("admin table store call failed resource=%s", resource.key, exc_info=outcome)
            raise internal_error() from outcome
        if isinstance(outcome, BaseException):
            raise outcome
    return int(total_count), list(rows)


def _build_clauses(resource: TableResource, tenant_id: uuid.UUID, parsed_query: ParsedAdminTableQuery):
    where = resource.build_where(tenant_id=tenant_id, search=parsed_query.search, filters=parsed_query.filters)
    order_by = resource.build_order_by(parsed_query.sort.field, parsed_query.sort.dir)
    return where, order_by


async def run_admin_table_query(
    resource: TableResource,
    store: EntityStore,
    *,
    tenant_id: uuid.UUID,
    parsed_query: ParsedAdminTableQuery,
) -> AdminTableQueryResult:
    where, order_by = _build_clauses(resource, tenant_id, parsed_query)
    skip = (parsed_query.page - 1) * parsed_query.page_size
    take = parsed_query.page_size

    total_count, store_rows = await _count_and_find(resource, store, where, order_by, skip=skip, take=take)

    return AdminTableQueryResult(
        rows=[resource.map_row(row) for row in store_rows],
        total_count=total_count,
        page=parsed_query.page,
        page_size=parsed_query.page_size,
        sort=parsed_query.sort,
        applied_filters=parsed_query.applied_filters,
    )


async def run_admin_table_export_query(
    resource: TableResource,
    store: EntityStore,
    *,
    tenant_id: uuid.UUID,
    parsed_query: ParsedAdminTableQuery,
) -> AdminTableQueryResult:
    max_export_rows = resource.contract.max_export_rows
    where, order_by = _build_clauses(resource, tenant_id, parsed_query)

    total_count, store_rows = await _count_and_find(resource, store, where, order_by, skip=0, take=max_export_rows)

    return AdminTableQueryResult(
        rows=[resource.map_row(row) for row in store_rows],
        total_count=total_count,
        page=1,
        page_size=max_export_rows,
        sort=parsed_query.sort,
        applied_filters=parsed_query.applied_filters,
        export_truncated=total_count > max_export_rows,
    )
