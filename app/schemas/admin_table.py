import uuid
from datetime import date
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints

from app.core.config import settings

Dir = Literal["asc", "desc"]

DATE_ONLY_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def _calendar_date(value: str) -> str:
    # Pattern alone lets through impossible days like 2024-02-30.
    date.fromisoformat(value)
    return value


def _uuid_text(value: str) -> str:
    return str(uuid.UUID(value))


DateOnly = Annotated[str, StringConstraints(pattern=DATE_ONLY_PATTERN), AfterValidator(_calendar_date)]
FilterId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=64), AfterValidator(_uuid_text)]


class AdminTableQueryParams(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    search: Optional[str] = Field(default=None, max_length=settings.REPORT_MAX_SEARCH_LENGTH)
    page: Optional[int] = Field(default=None, ge=1)
    pageSize: Optional[int] = Field(default=None, ge=1)
    sortField: Optional[str] = Field(default=None, min_length=1)
    sortDir: Optional[Dir] = None
    filters: Optional[str] = None


class TableFilters(BaseModel):
    """Base for per-resource filter payloads: unknown keys and loose types are rejected."""

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)


class SortSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    dir: Dir
