from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.deps import TenantContext, bearer, get_current_admin, tenant_context_from_claims
from app.db.session import get_session_factory
from app.models.user import ROLE_ADMIN, ROLE_OWNER
from app.services.admin_table_csv import build_csv_file_name, to_csv
from app.services.admin_table_query import (
    parse_admin_table_query,
    run_admin_table_export_query,
    run_admin_table_query,
)
from app.services.report_errors import ReportApiError, internal_error, role_error

from .audit import record_export_audit
from .base import ResourceAdapter
from .registry import TABLE_RESOURCES, get_resource_adapter

logger = logging.getLogger(__name__)

TABLE_ROLES = (ROLE_OWNER, ROLE_ADMIN)

router = APIRouter()


def require_table_access(creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> TenantContext:
    try:
        admin = get_current_admin(creds)
        ctx = tenant_context_from_claims(admin)
    except HTTPException as exc:
        raise role_error(exc.status_code)
    if ctx.role not in TABLE_ROLES:
        raise role_error(403)
    return ctx


@router.get("/tables")
def list_tables_meta(ctx: TenantContext = Depends(require_table_access)):
    return {"tables": [adapter.meta() for adapter in TABLE_RESOURCES.values()]}


@router.get("/tables/{resource_key}")
def get_table_meta(resource_key: str, ctx: TenantContext = Depends(require_table_access)):
    return get_resource_adapter(resource_key).meta()


def _export_headers(resource_key: str, total_count: int, row_count: int, truncated: bool) -> dict[str, str]:
    file_name = build_csv_file_name(resource_key, datetime.now(timezone.utc))
    return {
        "Content-Disposition": f'attachment; filename="{file_name}"',
        "Cache-Control": "no-store",
        "X-Export-Truncated": "true" if truncated else "false",
        "X-Export-Total-Count": str(total_count),
        "X-Export-Row-Count": str(row_count),
    }


def _register_table_routes(adapter: ResourceAdapter) -> None:
    async def list_rows(
        request: Request,
        ctx: TenantContext = Depends(require_table_access),
        session_factory: Callable[[], Session] = Depends(get_session_factory),
    ):
        parsed = parse_admin_table_query(request.query_params, adapter.contract)
        try:
            result = await run_admin_table_query(
                adapter,
                adapter.store(session_factory),
                tenant_id=ctx.tenant_id,
                parsed_query=parsed,
            )
        except ReportApiError:
            raise
        except Exception:
            logger.exception("admin table list failed tenant=%s resource=%s", ctx.tenant_id, adapter.key)
            raise internal_error()
        return result.to_payload()

    async def export_rows(
        request: Request,
        ctx: TenantContext = Depends(require_table_access),
        session_factory: Callable[[], Session] = Depends(get_session_factory),
    ):
        parsed = parse_admin_table_query(request.query_params, adapter.contract)
        try:
            result = await run_admin_table_export_query(
                adapter,
                adapter.store(session_factory),
                tenant_id=ctx.tenant_id,
                parsed_query=parsed,
            )
            body = to_csv(adapter.csv_columns, result.rows)
        except ReportApiError:
            raise
        except Exception:
            logger.exception("admin table export failed tenant=%s resource=%s", ctx.tenant_id, adapter.key)
            raise internal_error()

        truncated = bool(result.export_truncated)
        await run_in_threadpool(record_export_audit, session_factory, ctx, adapter.key, parsed, result)
        logger.info(
            "admin table exported tenant=%s resource=%s rows=%s total=%s truncated=%s",
            ctx.tenant_id,
            adapter.key,
            len(result.rows),
            result.total_count,
            truncated,
        )
        return Response(
            content=body,
            media_type="text/csv; charset=utf-8",
            headers=_export_headers(adapter.key, result.total_count, len(result.rows), truncated),
        )

    router.add_api_route(f"/{adapter.key}", list_rows, methods=["GET"], name=f"list_{adapter.key}")
    router.add_api_route(f"/{adapter.key}/export", export_rows, methods=["GET"], name=f"export_{adapter.key}")


for _adapter in TABLE_RESOURCES.values():
    _register_table_routes(_adapter)
