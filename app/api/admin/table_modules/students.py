from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import Field
from sqlalchemy.orm import joinedload, selectinload

from app.models.student import (
    STUDENT_STATUS_ACTIVE,
    STUDENT_STATUS_ARCHIVED,
    STUDENT_STATUS_INACTIVE,
    Student,
)
from app.schemas.admin_table import FilterId, SortSpec, TableFilters
from app.services.admin_table_csv import CsvColumn
from app.services.admin_table_predicates import Eq, HasRelated, In, Predicate
from app.services.admin_table_query import QueryContract

from .base import ResourceAdapter, display_name, filter_uuid, iso_utc


class StudentFilters(TableFilters):
    status: Optional[Literal["ACTIVE", "INACTIVE", "ALL"]] = None
    level_id: Optional[FilterId] = Field(default=None, alias="levelId")
    has_parents: Optional[bool] = Field(default=None, alias="hasParents")


class StudentsTable(ResourceAdapter):
    key = "students"
    model = Student
    contract = QueryContract(
        filter_schema=StudentFilters,
        allowed_sort_fields=("name", "status", "createdAt"),
        default_sort=SortSpec(field="name", dir="asc"),
    )
    # Names only; notes and birth dates never take part in search.
    search_fields = ("first_name", "last_name", "preferred_name")
    sort_columns = {
        "name": ("last_name", "first_name"),
        "status": ("status",),
        "createdAt": ("created_at",),
    }
    csv_columns = (
        CsvColumn("name", "Name", lambda row: row["name"]),
        CsvColumn("status", "Status", lambda row: row["status"]),
        CsvColumn("levelName", "Level", lambda row: row["levelName"] or ""),
        CsvColumn("parentCount", "Parent Count", lambda row: row["parentCount"]),
        CsvColumn("createdAt", "Created At", lambda row: row["createdAt"]),
    )

    def build_filter_conjuncts(self, filters: StudentFilters) -> list[Predicate]:
        clauses: list[Predicate] = []
        if filters.status == "ACTIVE":
            clauses.append(Eq("status", STUDENT_STATUS_ACTIVE))
        elif filters.status == "INACTIVE":
            clauses.append(In("status", (STUDENT_STATUS_INACTIVE, STUDENT_STATUS_ARCHIVED)))
        if filters.level_id:
            clauses.append(Eq("level_id", filter_uuid(filters.level_id)))
        if filters.has_parents is not None:
            clauses.append(HasRelated("parents", present=filters.has_parents))
        return clauses

    def load_options(self):
        return (joinedload(Student.level), selectinload(Student.parents))

    def map_row(self, row: Student) -> dict[str, Any]:
        return {
            "id": str(row.id),
            "name": display_name(row.first_name, row.last_name, row.preferred_name),
            "status": row.status,
            "levelName": row.level.name if row.level is not None else None,
            "parentCount": len(row.parents),
            "createdAt": iso_utc(row.created_at),
        }
