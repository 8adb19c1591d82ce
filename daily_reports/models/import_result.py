from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .parsed_row import ParsedRow

if TYPE_CHECKING:
    from ..excel.layout import SectionLayout

"""Result shapes of parsing and importing one workbook.

WorkbookParse is what the parser hands to its callers; SheetResult and
ImportSummary are what the import service reports back once the rows have
been stored.
"""

__all__ = [
    "ImportSummary",
    "SheetResult",
    "WorkbookParse",
]


@dataclass(frozen=True)
class WorkbookParse:
    """Parsed rows and skip counts per sheet, sheets in workbook order."""
    sheet_names: list[str]
    rows_by_sheet: dict[str, list[ParsedRow]]
    skipped_by_sheet: dict[str, int]
    # Detected layout per sheet; None when the sheet has no header row
    layouts: dict[str, SectionLayout | None] = field(default_factory=dict)

    @property
    def total_rows(self) -> int:
        return sum(len(rows) for rows in self.rows_by_sheet.values())

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped_by_sheet.values())


@dataclass(frozen=True)
class SheetResult:
    sheet_name: str
    imported: int
    skipped: int
    errors: list[str] = field(default_factory=list)  # "YYYY-MM-DD: message" per failed row


@dataclass(frozen=True)
class ImportSummary:
    """Outcome of importing one workbook (one import batch)."""
    sheets: list[SheetResult]
    total_imported: int
    total_skipped: int
    total_errors: int
    sheet_names: list[str]
    batch_id: int | None = None  # None in dry-run mode

    @classmethod
    def from_sheets(cls, sheets: list[SheetResult], batch_id: int | None = None) -> ImportSummary:
        return cls(
            sheets=sheets,
            total_imported=sum(s.imported for s in sheets),
            total_skipped=sum(s.skipped for s in sheets),
            total_errors=sum(len(s.errors) for s in sheets),
            sheet_names=[s.sheet_name for s in sheets],
            batch_id=batch_id,
        )
