from __future__ import annotations

import logging
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.deps import TenantContext
from app.models.audit_log import AuditLog
from app.services.admin_table_query import AdminTableQueryResult, ParsedAdminTableQuery

logger = logging.getLogger(__name__)

REPORT_EXPORTED = "REPORT_EXPORTED"


def export_audit_metadata(parsed_query: ParsedAdminTableQuery, result: AdminTableQueryResult) -> dict[str, Any]:
    # Filter keys only; search text and filter values never reach the audit trail.
    return {
        "filterKeys": sorted(parsed_query.applied_filters),
        "hasSearch": bool(parsed_query.search),
        "sort": {"field": parsed_query.sort.field, "dir": parsed_query.sort.dir},
        "rowCount": len(result.rows),
        "totalCount": result.total_count,
        "truncated": bool(result.export_truncated),
    }


def record_export_audit(
    session_factory: Callable[[], Session],
    ctx: TenantContext,
    resource_key: str,
    parsed_query: ParsedAdminTableQuery,
    result: AdminTableQueryResult,
) -> bool:
    entry = AuditLog(
        tenant_id=ctx.tenant_id,
        actor_user_id=ctx.user_id,
        actor_display=ctx.email or None,
        entity="report",
        entity_id=resource_key,
        action=REPORT_EXPORTED,
        diff=export_audit_metadata(parsed_query, result),
    )
    try:
        with session_factory() as db:
            db.add(entry)
            db.commit()
    except SQLAlchemyError:
        # Audit trail must not block the export the admin already asked for.
        logger.warning("export audit write failed tenant=%s resource=%s", ctx.tenant_id, resource_key, exc_info=True)
        return False
    return True
