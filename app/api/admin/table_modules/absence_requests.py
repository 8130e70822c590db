from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import Field
from sqlalchemy.orm import joinedload

from app.models.parent_request import REQUEST_TYPE_ABSENCE, ParentRequest
from app.models.tutoring_session import TutoringSession
from app.schemas.admin_table import DateOnly, FilterId, SortSpec, TableFilters
from app.services.admin_table_csv import CsvColumn
from app.services.admin_table_predicates import Eq, OrderKey, Predicate, date_range
from app.services.admin_table_query import QueryContract

from .base import ResourceAdapter, display_name, filter_uuid, iso_utc, staff_name


class AbsenceRequestFilters(TableFilters):
    from_: Optional[DateOnly] = Field(default=None, alias="from")
    to: Optional[DateOnly] = None
    student_id: Optional[FilterId] = Field(default=None, alias="studentId")
    tutor_id: Optional[FilterId] = Field(default=None, alias="tutorId")
    status: Optional[Literal["PENDING", "APPROVED", "DECLINED", "WITHDRAWN", "ALL"]] = None


class AbsenceRequestsTable(ResourceAdapter):
    key = "requests"
    model = ParentRequest
    contract = QueryContract(
        filter_schema=AbsenceRequestFilters,
        allowed_sort_fields=("createdAt", "updatedAt", "status"),
        default_sort=SortSpec(field="createdAt", dir="desc"),
    )
    # Parent messages stay out of search.
    search_fields = (
        "parent.email",
        "student.first_name",
        "student.last_name",
        "student.preferred_name",
        "session.tutor.name",
        "session.tutor.email",
    )
    sort_columns = {
        "createdAt": ("created_at",),
        "updatedAt": ("updated_at",),
        "status": ("status", OrderKey("created_at", "desc")),
    }
    csv_columns = (
        CsvColumn("status", "Status", lambda row: row["status"]),
        CsvColumn("createdAt", "Created At", lambda row: row["createdAt"]),
        CsvColumn("updatedAt", "Updated At", lambda row: row["updatedAt"]),
        CsvColumn("studentName", "Student", lambda row: row["studentName"]),
        CsvColumn("parentEmail", "Parent Email", lambda row: row["parentEmail"]),
        CsvColumn("sessionStartAt", "Session Start", lambda row: row["sessionStartAt"]),
        CsvColumn("tutorName", "Tutor", lambda row: row["tutorName"]),
    )

    def scope_conjuncts(self) -> list[Predicate]:
        return [Eq("type", REQUEST_TYPE_ABSENCE)]

    def build_filter_conjuncts(self, filters: AbsenceRequestFilters) -> list[Predicate]:
        clauses: list[Predicate] = []
        window = date_range("created_at", filters.from_, filters.to)
        if window is not None:
            clauses.append(window)
        if filters.student_id:
            clauses.append(Eq("student_id", filter_uuid(filters.student_id)))
        if filters.tutor_id:
            clauses.append(Eq("session.tutor_id", filter_uuid(filters.tutor_id)))
        if filters.status and filters.status != "ALL":
            clauses.append(Eq("status", filters.status))
        return clauses

    def load_options(self):
        return (
            joinedload(ParentRequest.student),
            joinedload(ParentRequest.parent),
            joinedload(ParentRequest.session).joinedload(TutoringSession.tutor),
        )

    def map_row(self, row: ParentRequest) -> dict[str, Any]:
        return {
            "id": str(row.id),
            "status": row.status,
            "createdAt": iso_utc(row.created_at),
            "updatedAt": iso_utc(row.updated_at),
            "studentName": display_name(row.student.first_name, row.student.last_name, row.student.preferred_name),
            "parentEmail": row.parent.email,
            "sessionStartAt": iso_utc(row.session.start_at),
            "tutorName": staff_name(row.session.tutor),
        }
