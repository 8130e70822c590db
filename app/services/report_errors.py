from __future__ import annotations

import logging
from typing import Any, Literal

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

ReportErrorCode = Literal[
    "INVALID_QUERY",
    "UNAUTHORIZED",
    "FORBIDDEN",
    "NOT_FOUND",
    "INTERNAL_ERROR",
]

_LOG = logging.getLogger("app.reports")


class ReportApiError(Exception):
    def __init__(self, status: int, code: ReportErrorCode, details: dict[str, Any] | None = None):
        super().__init__(code)
        self.status = status
        self.code = code
        self.details = details

    def payload(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code}
        if self.details:
            error["details"] = self.details
        return {"error": error}


def invalid_query(**details: Any) -> ReportApiError:
    return ReportApiError(400, "INVALID_QUERY", details)


def not_found() -> ReportApiError:
    return ReportApiError(404, "NOT_FOUND")


def internal_error() -> ReportApiError:
    return ReportApiError(500, "INTERNAL_ERROR")


def role_error(status_code: int) -> ReportApiError:
    if status_code == 401:
        return ReportApiError(401, "UNAUTHORIZED")
    if status_code == 403:
        return ReportApiError(403, "FORBIDDEN")
    if status_code == 404:
        return ReportApiError(404, "NOT_FOUND")
    return ReportApiError(400, "INVALID_QUERY")


def to_report_error_response(error: ReportApiError) -> JSONResponse:
    return JSONResponse(error.payload(), status_code=error.status)


def install_report_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ReportApiError)
    async def _report_api_error_handler(request: Request, exc: ReportApiError):
        if exc.status >= 500:
            _LOG.error("%s %s failed code=%s", request.method, request.url.path, exc.code)
        return to_report_error_response(exc)
