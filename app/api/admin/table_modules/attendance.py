from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import Field
from sqlalchemy.orm import joinedload

from app.models.attendance import Attendance
from app.models.tutoring_session import TutoringSession
from app.schemas.admin_table import DateOnly, FilterId, SortSpec, TableFilters
from app.services.admin_table_csv import CsvColumn
from app.services.admin_table_predicates import Eq, OrderKey, Predicate, date_range
from app.services.admin_table_query import QueryContract

from .base import ResourceAdapter, display_name, filter_uuid, iso_utc, staff_name


class AttendanceFilters(TableFilters):
    from_: Optional[DateOnly] = Field(default=None, alias="from")
    to: Optional[DateOnly] = None
    student_id: Optional[FilterId] = Field(default=None, alias="studentId")
    tutor_id: Optional[FilterId] = Field(default=None, alias="tutorId")
    group_id: Optional[FilterId] = Field(default=None, alias="groupId")
    status: Optional[Literal["PRESENT", "ABSENT", "LATE", "EXCUSED", "ALL"]] = None


class AttendanceTable(ResourceAdapter):
    key = "attendance"
    model = Attendance
    contract = QueryContract(
        filter_schema=AttendanceFilters,
        allowed_sort_fields=("markedAt", "status", "sessionStartAt"),
        default_sort=SortSpec(field="markedAt", dir="desc"),
    )
    search_fields = (
        "student.first_name",
        "student.last_name",
        "student.preferred_name",
        "session.tutor.name",
        "session.tutor.email",
        "session.group.name",
    )
    sort_columns = {
        "markedAt": ("marked_at",),
        "status": ("status", OrderKey("marked_at", "desc")),
        "sessionStartAt": ("session.start_at",),
    }
    csv_columns = (
        CsvColumn("status", "Status", lambda row: row["status"]),
        CsvColumn("markedAt", "Marked At", lambda row: row["markedAt"]),
        CsvColumn("studentName", "Student", lambda row: row["studentName"]),
        CsvColumn("sessionStartAt", "Session Start", lambda row: row["sessionStartAt"]),
        CsvColumn("sessionType", "Session Type", lambda row: row["sessionType"]),
        CsvColumn("tutorName", "Tutor", lambda row: row["tutorName"]),
        CsvColumn("groupName", "Group", lambda row: row["groupName"] or ""),
    )

    def build_filter_conjuncts(self, filters: AttendanceFilters) -> list[Predicate]:
        clauses: list[Predicate] = []
        window = date_range("session.start_at", filters.from_, filters.to)
        if window is not None:
            clauses.append(window)
        if filters.student_id:
            clauses.append(Eq("student_id", filter_uuid(filters.student_id)))
        if filters.tutor_id:
            clauses.append(Eq("session.tutor_id", filter_uuid(filters.tutor_id)))
        if filters.group_id:
            clauses.append(Eq("session.group_id", filter_uuid(filters.group_id)))
        if filters.status and filters.status != "ALL":
            clauses.append(Eq("status", filters.status))
        return clauses

    def load_options(self):
        return (
            joinedload(Attendance.student),
            joinedload(Attendance.session).joinedload(TutoringSession.tutor),
            joinedload(Attendance.session).joinedload(TutoringSession.group),
        )

    def map_row(self, row: Attendance) -> dict[str, Any]:
        session = row.session
        return {
            "id": str(row.id),
            "status": row.status,
            "markedAt": iso_utc(row.marked_at),
            "studentName": display_name(row.student.first_name, row.student.last_name, row.student.preferred_name),
            "sessionStartAt": iso_utc(session.start_at),
            "sessionType": session.session_type,
            "tutorName": staff_name(session.tutor),
            "groupName": session.group.name if session.group is not None else None,
        }
