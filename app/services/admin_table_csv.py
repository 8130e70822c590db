from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Generic, Iterable, Sequence, TypeVar

RowT = TypeVar("RowT")


@dataclass(frozen=True)
class CsvColumn(Generic[RowT]):
    key: str
    header: str
    get_value: Callable[[RowT], Any]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_csv(columns: Sequence[CsvColumn[RowT]], rows: Iterable[RowT]) -> str:
    """Render rows through the column manifest only; nothing outside it reaches the file."""
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow([column.header for column in columns])
    for row in rows:
        writer.writerow([_cell(column.get_value(row)) for column in columns])
    return output.getvalue()


def build_csv_file_name(resource_key: str, now: datetime) -> str:
    return f"{resource_key}-{now:%Y%m%d-%H%M}.csv"
