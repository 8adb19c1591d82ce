from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

"""Config dataclasses for the daily report importer.

ImportConfig is the root object built by daily_reports.config.loader from
config/import.yml. ParserOptions carries the parser thresholds and is also
usable on its own (defaults match the report sheets in use).
"""


@dataclass(frozen=True)
class ParserOptions:
    """Thresholds that decide which sheet rows count as daily records."""
    header_scan_rows: int = 20  # header marker must appear within these rows
    min_row_cells: int = 10  # shorter rows are never data rows
    min_date_serial: int = 40000  # smaller serials are not report dates
    years_back: int = 2  # plausible years: today.year - years_back ...
    years_ahead: int = 1  # ... today.year + years_ahead (inclusive)

    def plausible_years(self, today: date | None = None) -> range:
        """Inclusive year window anchored at `today` (defaults to the current date)."""
        year = (today or date.today()).year
        return range(year - self.years_back, year + self.years_ahead + 1)


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback; environment variables take precedence."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for the import process."""
    source_directory: str  # Directory scanned for report workbooks
    parser: ParserOptions = field(default_factory=ParserOptions)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    imported_by: str | None = None  # recorded on every import batch
