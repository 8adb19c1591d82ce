from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

"""Import batch bookkeeping.

Every imported workbook creates one row in import_batches; the daily reports
it wrote carry its id. Deleting a batch deletes its reports. Reports written
before batches existed (import_batch_id IS NULL) are "orphaned" and can be
purged in one go.
"""

__all__ = [
    "ImportBatch",
    "create_batch",
    "delete_batch",
    "delete_orphaned_reports",
    "finalize_batch",
    "list_batches",
]


@dataclass(frozen=True)
class ImportBatch:
    id: Any
    file_name: str
    imported_by: str | None
    record_count: int
    created_at: datetime | None
    report_count: int  # reports still tagged with this batch


def create_batch(cursor: Any, file_name: str, imported_by: str | None = None) -> Any:
    cursor.execute(
        "INSERT INTO import_batches (file_name, imported_by) VALUES (%s, %s) RETURNING id",
        (file_name, imported_by),
    )
    return cursor.fetchone()[0]


def finalize_batch(cursor: Any, batch_id: Any, record_count: int) -> None:
    cursor.execute(
        "UPDATE import_batches SET record_count = %s WHERE id = %s",
        (record_count, batch_id),
    )


def list_batches(cursor: Any) -> tuple[list[ImportBatch], int]:
    """Batches newest first, plus the number of orphaned reports."""
    cursor.execute(
        "SELECT b.id, b.file_name, b.imported_by, b.record_count, b.created_at, COUNT(r.date) "
        "FROM import_batches b LEFT JOIN daily_reports r ON r.import_batch_id = b.id "
        "GROUP BY b.id, b.file_name, b.imported_by, b.record_count, b.created_at "
        "ORDER BY b.created_at DESC"
    )
    batches = [ImportBatch(*row) for row in cursor.fetchall()]
    cursor.execute("SELECT COUNT(*) FROM daily_reports WHERE import_batch_id IS NULL")
    orphaned = cursor.fetchone()[0]
    return batches, orphaned


def delete_batch(cursor: Any, batch_id: Any) -> int | None:
    """Delete a batch and its reports; returns deleted report count, None if no such batch."""
    cursor.execute("SELECT id FROM import_batches WHERE id = %s", (batch_id,))
    if cursor.fetchone() is None:
        return None
    cursor.execute("DELETE FROM daily_reports WHERE import_batch_id = %s", (batch_id,))
    deleted = cursor.rowcount
    cursor.execute("DELETE FROM import_batches WHERE id = %s", (batch_id,))
    return deleted


def delete_orphaned_reports(cursor: Any) -> int:
    cursor.execute("DELETE FROM daily_reports WHERE import_batch_id IS NULL")
    return cursor.rowcount
