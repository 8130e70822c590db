from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import Field
from sqlalchemy.orm import joinedload, selectinload

from app.models.group import Group
from app.models.tutoring_session import TutoringSession
from app.schemas.admin_table import DateOnly, FilterId, SortSpec, TableFilters
from app.services.admin_table_csv import CsvColumn
from app.services.admin_table_predicates import Eq, Predicate, date_range
from app.services.admin_table_query import QueryContract

from .base import ResourceAdapter, filter_uuid, iso_utc, staff_name


class SessionFilters(TableFilters):
    from_: Optional[DateOnly] = Field(default=None, alias="from")
    to: Optional[DateOnly] = None
    tutor_id: Optional[FilterId] = Field(default=None, alias="tutorId")
    group_id: Optional[FilterId] = Field(default=None, alias="groupId")
    center_id: Optional[FilterId] = Field(default=None, alias="centerId")
    session_type: Optional[Literal["ONE_ON_ONE", "GROUP", "CLASS"]] = Field(default=None, alias="sessionType")


class SessionsTable(ResourceAdapter):
    key = "sessions"
    model = TutoringSession
    contract = QueryContract(
        filter_schema=SessionFilters,
        allowed_sort_fields=("startAt", "endAt", "createdAt"),
        default_sort=SortSpec(field="startAt", dir="asc"),
    )
    search_fields = (
        "tutor.name",
        "tutor.email",
        "center.name",
        "group.name",
        "group.program.name",
    )
    sort_columns = {
        "startAt": ("start_at",),
        "endAt": ("end_at",),
        "createdAt": ("created_at",),
    }
    csv_columns = (
        CsvColumn("startAt", "Start At", lambda row: row["startAt"]),
        CsvColumn("endAt", "End At", lambda row: row["endAt"]),
        CsvColumn("sessionType", "Session Type", lambda row: row["sessionType"]),
        CsvColumn("centerName", "Center", lambda row: row["centerName"]),
        CsvColumn("tutorName", "Tutor", lambda row: row["tutorName"]),
        CsvColumn("groupName", "Group", lambda row: row["groupName"] or ""),
        CsvColumn("programName", "Program", lambda row: row["programName"] or ""),
        CsvColumn("rosterCount", "Roster Count", lambda row: row["rosterCount"]),
    )

    def build_filter_conjuncts(self, filters: SessionFilters) -> list[Predicate]:
        clauses: list[Predicate] = []
        window = date_range("start_at", filters.from_, filters.to)
        if window is not None:
            clauses.append(window)
        if filters.tutor_id:
            clauses.append(Eq("tutor_id", filter_uuid(filters.tutor_id)))
        if filters.group_id:
            clauses.append(Eq("group_id", filter_uuid(filters.group_id)))
        if filters.center_id:
            clauses.append(Eq("center_id", filter_uuid(filters.center_id)))
        if filters.session_type:
            clauses.append(Eq("session_type", filters.session_type))
        return clauses

    def load_options(self):
        return (
            joinedload(TutoringSession.center),
            joinedload(TutoringSession.tutor),
            joinedload(TutoringSession.group).joinedload(Group.program),
            selectinload(TutoringSession.roster),
        )

    def map_row(self, row: TutoringSession) -> dict[str, Any]:
        group = row.group
        return {
            "id": str(row.id),
            "startAt": iso_utc(row.start_at),
            "endAt": iso_utc(row.end_at),
            "sessionType": row.session_type,
            "centerName": row.center.name,
            "tutorName": staff_name(row.tutor),
            "groupName": group.name if group is not None else None,
            "programName": group.program.name if group is not None else None,
            "rosterCount": len(row.roster),
        }
