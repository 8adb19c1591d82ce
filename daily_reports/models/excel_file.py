from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from .import_result import SheetResult

"""ExcelFile domain model and FileStatus enum.

ExcelFile is the processing context of one report workbook, tracked from
discovery to success/failure. Each workbook is imported as one batch in one
transaction.
"""


class FileStatus(Enum):
    """Status of a workbook during a run.

    State transitions: pending → processing → (success | failed)
    """
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ExcelFile:
    path: Path
    name: str
    sheets: list[SheetResult] = field(default_factory=list)
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: FileStatus = FileStatus.PENDING
    imported_rows: int = 0  # rows upserted across all sheets
    skipped_rows: int = 0  # rows the parser skipped across all sheets
    row_errors: int = 0  # rows whose upsert failed
    batch_id: int | None = None
    error: str | None = None  # failure reason summary

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()
