from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

Supports row=-1 as the marker for file-level errors where no sheet row
applies (decode failures, rejected files, transaction errors).
"""

__all__ = [
    "FILE_LEVEL_SHEET",
    "ErrorRecord",
]

FILE_LEVEL_SHEET = "<FILE_LEVEL>"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: workbook file name
        sheet: sheet (location) name, FILE_LEVEL_SHEET for file-level errors
        row: 1-based worksheet row, -1 when no row applies
        error_type: classification in UPPER_SNAKE_CASE
        db_message: database error message or description
    """
    timestamp: str
    file: str
    sheet: str
    row: int
    error_type: str
    db_message: str

    @staticmethod
    def create(file: str, sheet: str, row: int, error_type: str, db_message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            error_type=error_type,
            db_message=db_message,
        )

    @staticmethod
    def file_level(file: str, error_type: str, message: str) -> ErrorRecord:
        return ErrorRecord.create(file, FILE_LEVEL_SHEET, -1, error_type, message)

    def to_json_line(self) -> str:
        """Serialize to one JSON line with exactly the dataclass keys."""
        return json.dumps(asdict(self), ensure_ascii=False)
