from __future__ import annotations

from app.services.report_errors import not_found

from .absence_requests import AbsenceRequestsTable
from .announcements import AnnouncementsTable
from .attendance import AttendanceTable
from .base import ResourceAdapter
from .programs import ProgramsTable
from .sessions import SessionsTable
from .students import StudentsTable

# Fixed allowlist: resource keys are bound by server routes, never read from client input.
TABLE_RESOURCES: dict[str, ResourceAdapter] = {
    adapter.key: adapter
    for adapter in (
        ProgramsTable(),
        StudentsTable(),
        SessionsTable(),
        AttendanceTable(),
        AbsenceRequestsTable(),
        AnnouncementsTable(),
    )
}


def list_resource_keys() -> list[str]:
    return list(TABLE_RESOURCES)


def get_resource_adapter(key: str) -> ResourceAdapter:
    adapter = TABLE_RESOURCES.get(key)
    if adapter is None:
        raise not_found()
    return adapter
