from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Processing result models: per-file statistics and the run summary."""


@dataclass(frozen=True)
class FileStat:
    """Per-file processing statistics."""
    file_name: str
    status: str  # success/failed
    sheets: int  # sheets in the workbook
    imported_rows: int
    skipped_rows: int
    row_errors: int
    elapsed_seconds: float


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results of a run, rendered into the SUMMARY line."""
    success_files: int
    failed_files: int
    total_sheets: int
    total_imported_rows: int
    total_skipped_rows: int
    total_row_errors: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_stats: list[FileStat] | None = None

    @property
    def total_files(self) -> int:
        return self.success_files + self.failed_files
