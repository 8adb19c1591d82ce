"""Domain models for the daily report importer.

Parser output (ParsedRow, WorkbookParse), import outcomes (SheetResult,
ImportSummary, ExcelFile, ProcessingResult), error log records and the
configuration dataclasses.
"""

from .config_models import DatabaseConfig, ImportConfig, ParserOptions
from .error_record import ErrorRecord
from .excel_file import ExcelFile, FileStatus
from .import_result import ImportSummary, SheetResult, WorkbookParse
from .parsed_row import METRIC_FIELDS, ParsedRow
from .processing_result import FileStat, ProcessingResult

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    "ParserOptions",
    # Parser output
    "METRIC_FIELDS",
    "ParsedRow",
    "WorkbookParse",
    # Import outcomes
    "ErrorRecord",
    "ExcelFile",
    "FileStat",
    "FileStatus",
    "ImportSummary",
    "ProcessingResult",
    "SheetResult",
]
