from __future__ import annotations

from typing import Any, Optional

from pydantic import Field
from sqlalchemy.orm import joinedload

from app.models.program import Program
from app.schemas.admin_table import FilterId, SortSpec, TableFilters
from app.services.admin_table_csv import CsvColumn
from app.services.admin_table_predicates import Eq, Predicate
from app.services.admin_table_query import QueryContract

from .base import ResourceAdapter, filter_uuid, iso_utc


class ProgramFilters(TableFilters):
    is_active: Optional[bool] = Field(default=None, alias="isActive")
    level_id: Optional[FilterId] = Field(default=None, alias="levelId")


class ProgramsTable(ResourceAdapter):
    key = "programs"
    model = Program
    contract = QueryContract(
        filter_schema=ProgramFilters,
        allowed_sort_fields=("name", "createdAt"),
        default_sort=SortSpec(field="name", dir="asc"),
    )
    search_fields = ("name",)
    sort_columns = {
        "name": ("name",),
        "createdAt": ("created_at",),
    }
    csv_columns = (
        CsvColumn("name", "Name", lambda row: row["name"]),
        CsvColumn("levelName", "Level", lambda row: row["levelName"] or ""),
        CsvColumn("isActive", "Active", lambda row: "Yes" if row["isActive"] else "No"),
        CsvColumn("createdAt", "Created At", lambda row: row["createdAt"]),
    )

    def build_filter_conjuncts(self, filters: ProgramFilters) -> list[Predicate]:
        clauses: list[Predicate] = []
        if filters.is_active is not None:
            clauses.append(Eq("is_active", filters.is_active))
        if filters.level_id:
            clauses.append(Eq("level_id", filter_uuid(filters.level_id)))
        return clauses

    def load_options(self):
        return (joinedload(Program.level),)

    def map_row(self, row: Program) -> dict[str, Any]:
        return {
            "id": str(row.id),
            "name": row.name,
            "levelId": str(row.level_id) if row.level_id else None,
            "levelName": row.level.name if row.level is not None else None,
            "isActive": bool(row.is_active),
            "createdAt": iso_utc(row.created_at),
            "updatedAt": iso_utc(row.updated_at),
        }
