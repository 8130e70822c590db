from __future__ import annotations

from typing import Annotated, Any, Literal, Optional

from pydantic import Field, StringConstraints
from sqlalchemy.orm import joinedload

from app.models.announcement import Announcement
from app.schemas.admin_table import DateOnly, SortSpec, TableFilters
from app.services.admin_table_csv import CsvColumn
from app.services.admin_table_predicates import And, Contains, Eq, In, Or, Predicate, date_range
from app.services.admin_table_query import QueryContract

from .base import ResourceAdapter, iso_utc, staff_name

AuthorText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)]


class AnnouncementFilters(TableFilters):
    status: Optional[Literal["DRAFT", "PUBLISHED", "ARCHIVED"]] = None
    from_: Optional[DateOnly] = Field(default=None, alias="from")
    to: Optional[DateOnly] = None
    author: Optional[AuthorText] = None


class AnnouncementsTable(ResourceAdapter):
    key = "announcements"
    model = Announcement
    contract = QueryContract(
        filter_schema=AnnouncementFilters,
        allowed_sort_fields=("createdAt", "publishedAt", "status", "title"),
        default_sort=SortSpec(field="createdAt", dir="desc"),
    )
    # Title only; bodies are not searchable.
    search_fields = ("title",)
    sort_columns = {
        "createdAt": ("created_at",),
        "publishedAt": ("published_at",),
        "status": ("status",),
        "title": ("title",),
    }
    csv_columns = (
        CsvColumn("title", "Title", lambda row: row["title"]),
        CsvColumn("status", "Status", lambda row: row["status"]),
        CsvColumn("publishedAt", "Published At", lambda row: row["publishedAt"] or ""),
        CsvColumn("createdAt", "Created At", lambda row: row["createdAt"]),
        CsvColumn("authorName", "Author", lambda row: row["authorName"] or ""),
    )

    def build_filter_conjuncts(self, filters: AnnouncementFilters) -> list[Predicate]:
        clauses: list[Predicate] = []
        if filters.status:
            clauses.append(Eq("status", filters.status))
        if filters.author:
            clauses.append(
                Or(
                    (
                        Contains("created_by_user.name", filters.author),
                        Contains("created_by_user.email", filters.author),
                    )
                )
            )
        created_window = date_range("created_at", filters.from_, filters.to)
        if created_window is not None:
            published_window = date_range("published_at", filters.from_, filters.to)
            # Drafts are placed on the timeline by creation, everything else by publication.
            if filters.status == "DRAFT":
                clauses.append(created_window)
            elif filters.status in ("PUBLISHED", "ARCHIVED"):
                clauses.append(published_window)
            else:
                clauses.append(
                    Or(
                        (
                            And((Eq("status", "DRAFT"), created_window)),
                            And((In("status", ("PUBLISHED", "ARCHIVED")), published_window)),
                        )
                    )
                )
        return clauses

    def load_options(self):
        return (joinedload(Announcement.created_by_user),)

    def map_row(self, row: Announcement) -> dict[str, Any]:
        author = row.created_by_user
        return {
            "id": str(row.id),
            "title": row.title,
            "status": row.status,
            "publishedAt": iso_utc(row.published_at),
            "createdAt": iso_utc(row.created_at),
            "authorName": staff_name(author) if author is not None else None,
        }
