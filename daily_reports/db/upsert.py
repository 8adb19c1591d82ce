from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import psycopg2
from psycopg2.extras import execute_values

from ..models.parsed_row import METRIC_FIELDS, ParsedRow

"""Daily report upsert.

Rows are written with psycopg2.extras.execute_values as
INSERT ... ON CONFLICT (location_id, date) DO UPDATE, one page at a time.
Each page runs under a savepoint; when a page fails it is rolled back and
replayed row by row (each row under its own savepoint) so that only the
offending rows are reported and the surrounding transaction stays usable.
A page that upserts the same (location, date) twice also lands in the
row-by-row path, where the later row wins.
"""

__all__ = [
    "REPORT_COLUMNS",
    "RowError",
    "UpsertError",
    "UpsertResult",
    "upsert_daily_reports",
]

REPORTS_TABLE = "daily_reports"
REPORT_COLUMNS: tuple[str, ...] = ("location_id", "date", *METRIC_FIELDS, "import_batch_id")
CONFLICT_COLUMNS = ("location_id", "date")

_PAGE_SAVEPOINT = "daily_reports_page"
_ROW_SAVEPOINT = "daily_reports_row"


class UpsertError(Exception):
    pass


@dataclass(frozen=True)
class RowError:
    row: ParsedRow
    message: str

    def describe(self) -> str:
        """`YYYY-MM-DD: message` as reported per sheet."""
        return f"{self.row.date.isoformat()}: {self.message}"


@dataclass(frozen=True)
class UpsertResult:
    upserted_rows: int
    errors: list[RowError] = field(default_factory=list)


def _upsert_sql(single_row: bool) -> str:
    cols_sql = ",".join(f'"{c}"' for c in REPORT_COLUMNS)
    updates = ",".join(f'"{c}" = EXCLUDED."{c}"' for c in REPORT_COLUMNS if c not in CONFLICT_COLUMNS)
    values = "(" + ",".join(["%s"] * len(REPORT_COLUMNS)) + ")" if single_row else "%s"
    conflict = ",".join(f'"{c}"' for c in CONFLICT_COLUMNS)
    return (
        f"INSERT INTO {REPORTS_TABLE} ({cols_sql}) VALUES {values} "
        f"ON CONFLICT ({conflict}) DO UPDATE SET {updates}"
    )


def report_values(row: ParsedRow, location_id: Any, batch_id: Any = None) -> tuple[Any, ...]:
    return (location_id, row.date, *(getattr(row, name) for name in METRIC_FIELDS), batch_id)


def _error_message(e: Exception) -> str:
    text = str(e).strip()
    return text.splitlines()[0] if text else type(e).__name__


def _upsert_rows_one_by_one(cursor: Any, rows: Sequence[ParsedRow], values: list[tuple[Any, ...]]) -> UpsertResult:
    sql = _upsert_sql(single_row=True)
    ok = 0
    errors: list[RowError] = []
    for row, row_values in zip(rows, values, strict=True):
        cursor.execute(f"SAVEPOINT {_ROW_SAVEPOINT}")
        try:
            cursor.execute(sql, row_values)
        except psycopg2.Error as e:
            cursor.execute(f"ROLLBACK TO SAVEPOINT {_ROW_SAVEPOINT}")
            errors.append(RowError(row=row, message=_error_message(e)))
        else:
            cursor.execute(f"RELEASE SAVEPOINT {_ROW_SAVEPOINT}")
            ok += 1
    return UpsertResult(upserted_rows=ok, errors=errors)


def upsert_daily_reports(
    cursor: Any,
    location_id: Any,
    rows: Sequence[ParsedRow],
    batch_id: Any = None,
    page_size: int = 500,
) -> UpsertResult:
    """Upsert the daily reports of one location.

    Parameters
    ----------
    cursor: psycopg2 cursor inside an open transaction
    location_id: id of the location the rows belong to
    rows: parsed rows of one sheet
    batch_id: import batch the rows are tagged with (None leaves them orphaned)
    page_size: rows per execute_values statement

    Raises
    ------
    UpsertError: a savepoint statement itself failed (transaction unusable)
    """
    if not rows:
        return UpsertResult(upserted_rows=0)

    sql = _upsert_sql(single_row=False)
    upserted = 0
    errors: list[RowError] = []
    try:
        for start in range(0, len(rows), page_size):
            page = rows[start : start + page_size]
            values = [report_values(r, location_id, batch_id) for r in page]
            cursor.execute(f"SAVEPOINT {_PAGE_SAVEPOINT}")
            try:
                execute_values(cursor, sql, values, page_size=len(values))
            except psycopg2.Error:
                cursor.execute(f"ROLLBACK TO SAVEPOINT {_PAGE_SAVEPOINT}")
                result = _upsert_rows_one_by_one(cursor, page, values)
                upserted += result.upserted_rows
                errors.extend(result.errors)
            else:
                cursor.execute(f"RELEASE SAVEPOINT {_PAGE_SAVEPOINT}")
                upserted += len(page)
    except psycopg2.Error as e:
        raise UpsertError(_error_message(e)) from e
    return UpsertResult(upserted_rows=upserted, errors=errors)
