from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from ..db.batches import create_batch, finalize_batch
from ..db.locations import find_or_create_location
from ..db.upsert import UpsertError, upsert_daily_reports
from ..excel.parser import parse_workbook
from ..excel.reader import WorkbookDecodeError
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ImportConfig, ParserOptions
from ..models.error_record import ErrorRecord
from ..models.excel_file import ExcelFile, FileStatus
from ..models.import_result import ImportSummary, SheetResult
from ..models.processing_result import FileStat, ProcessingResult
from .progress import ProgressTracker, SheetProgressIndicator

"""Import orchestration.

import_workbook() is the unit of work: parse one workbook, create its import
batch, find or create a location per sheet and upsert the sheet's rows.
process_all() runs it over every workbook of a run, one transaction per
file, and aggregates the results.

With cursor=None (dry run) nothing touches the database and every parsed
row counts as imported.
"""

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = (".xlsx", ".xlsm", ".xls")
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MiB


class ProcessingError(Exception):
    """Fatal error that stops the whole run."""


class FileRejectedError(ProcessingError):
    """A workbook refused before parsing (wrong type, too large)."""


def check_workbook_file(file_name: str, size: int) -> None:
    """Reject files the importer does not read.

    Raises:
        FileRejectedError: not an .xlsx/.xlsm/.xls file, or larger than MAX_FILE_SIZE
    """
    if not file_name.lower().endswith(EXCEL_SUFFIXES):
        raise FileRejectedError(f"not an Excel workbook (.xlsx/.xlsm/.xls): {file_name}")
    if size > MAX_FILE_SIZE:
        raise FileRejectedError(
            f"file too large: {file_name} ({size} bytes, max {MAX_FILE_SIZE})"
        )


def scan_excel_files(directory: Path) -> list[Path]:
    """List workbooks in a directory (non-recursive, name order).

    Raises:
        ProcessingError: directory missing or unreadable
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")

    try:
        return sorted(
            p for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() in EXCEL_SUFFIXES and not p.name.startswith("~$")
        )
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e


def import_workbook(
    buffer: bytes,
    file_name: str,
    cursor: Any = None,
    *,
    imported_by: str | None = None,
    options: ParserOptions | None = None,
    today: date | None = None,
    error_log: ErrorLogBuffer | None = None,
    on_sheet: Callable[[SheetResult], None] | None = None,
) -> ImportSummary:
    """Parse a workbook and store its rows as one import batch.

    Args:
        buffer: workbook content
        file_name: original file name (recorded on the batch and in error logs)
        cursor: psycopg2 cursor inside an open transaction (None = dry run)
        on_sheet: called with each sheet's result as soon as it is stored

    Raises:
        WorkbookDecodeError: buffer is not a readable workbook
        UpsertError: the database refused a savepoint (transaction unusable)
    """
    parsed = parse_workbook(buffer, options=options, today=today)

    sheets: list[SheetResult] = []
    if cursor is None:
        for name in parsed.sheet_names:
            result = SheetResult(
                sheet_name=name,
                imported=len(parsed.rows_by_sheet[name]),
                skipped=parsed.skipped_by_sheet[name],
            )
            sheets.append(result)
            if on_sheet is not None:
                on_sheet(result)
        return ImportSummary.from_sheets(sheets)

    batch_id = create_batch(cursor, file_name, imported_by)
    for name in parsed.sheet_names:
        rows = parsed.rows_by_sheet[name]
        location_id, created = find_or_create_location(cursor, name)
        if created:
            logger.info("created location %s (id=%s)", name, location_id)

        upserted = upsert_daily_reports(cursor, location_id, rows, batch_id=batch_id)
        for row_error in upserted.errors:
            logger.warning("file=%s sheet=%s row=%d upsert failed: %s",
                           file_name, name, row_error.row.row_number, row_error.message)
            if error_log is not None:
                error_log.append(ErrorRecord.create(
                    file=file_name,
                    sheet=name,
                    row=row_error.row.row_number,
                    error_type="UPSERT_ERROR",
                    db_message=row_error.message,
                ))

        result = SheetResult(
            sheet_name=name,
            imported=upserted.upserted_rows,
            skipped=parsed.skipped_by_sheet[name],
            errors=[e.describe() for e in upserted.errors],
        )
        sheets.append(result)
        if on_sheet is not None:
            on_sheet(result)

    summary = ImportSummary.from_sheets(sheets, batch_id=batch_id)
    finalize_batch(cursor, batch_id, summary.total_imported)
    return summary


def process_all(
    config: ImportConfig,
    cursor: Any = None,
    files: list[Path] | None = None,
    *,
    today: date | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ProcessingResult:
    """Import every workbook of a run.

    Args:
        config: import configuration
        cursor: database cursor (None = dry run)
        files: workbooks to import; None scans config.source_directory

    Raises:
        ProcessingError: source directory missing or unreadable
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()

    if files is None:
        files = scan_excel_files(Path(config.source_directory))

    file_stats: list[FileStat] = []
    success_count = 0
    failed_count = 0
    total_sheets = 0
    total_imported = 0
    total_skipped = 0
    total_row_errors = 0

    with ProgressTracker(len(files), description="Importing workbooks") as progress:
        for file_path in files:
            progress.start_file(file_path)
            excel_file = _process_single_file(file_path, config, cursor, error_log, today)

            if excel_file.status == FileStatus.SUCCESS:
                success_count += 1
                total_sheets += len(excel_file.sheets)
                total_imported += excel_file.imported_rows
                total_skipped += excel_file.skipped_rows
                total_row_errors += excel_file.row_errors
                logger.info(
                    "file=%s sheets=%d imported=%d skipped=%d errors=%d batch=%s",
                    excel_file.name,
                    len(excel_file.sheets),
                    excel_file.imported_rows,
                    excel_file.skipped_rows,
                    excel_file.row_errors,
                    excel_file.batch_id,
                )
            else:
                failed_count += 1
                logger.error("file=%s failed: %s", excel_file.name, excel_file.error)

            progress.set_postfix(success=success_count, failed=failed_count, rows=total_imported)
            progress.finish_file(success=(excel_file.status == FileStatus.SUCCESS))

            file_stats.append(FileStat(
                file_name=excel_file.name,
                status=excel_file.status.value,
                sheets=len(excel_file.sheets),
                imported_rows=excel_file.imported_rows,
                skipped_rows=excel_file.skipped_rows,
                row_errors=excel_file.row_errors,
                elapsed_seconds=excel_file.elapsed_seconds,
            ))

    try:
        log_path = error_log.flush()
    except OSError as e:
        logger.warning("could not write error log: %s", e)
    else:
        if log_path is not None:
            logger.info("error log written to %s", log_path)

    end_time = datetime.now(UTC)
    return ProcessingResult(
        success_files=success_count,
        failed_files=failed_count,
        total_sheets=total_sheets,
        total_imported_rows=total_imported,
        total_skipped_rows=total_skipped,
        total_row_errors=total_row_errors,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        file_stats=file_stats,
    )


def _failed(file_path: Path, start_time: datetime, error: str, sheets: list[SheetResult] | None = None) -> ExcelFile:
    return ExcelFile(
        path=file_path,
        name=file_path.name,
        sheets=sheets or [],
        start_time=start_time,
        end_time=datetime.now(UTC),
        status=FileStatus.FAILED,
        error=error,
    )


def _rollback(cursor: Any, file_name: str, error_log: ErrorLogBuffer) -> None:
    if cursor is None:
        return
    try:
        cursor.execute("ROLLBACK")
    except Exception as e:
        error_log.append(ErrorRecord.file_level(file_name, "TRANSACTION_ROLLBACK_ERROR", str(e)))


def _process_single_file(
    file_path: Path,
    config: ImportConfig,
    cursor: Any,
    error_log: ErrorLogBuffer,
    today: date | None,
) -> ExcelFile:
    """Import one workbook inside its own transaction.

    On success the transaction is committed; on any failure it is rolled
    back, the failure goes to the error log and the run continues with the
    next file.
    """
    start_time = datetime.now(UTC)
    name = file_path.name

    if cursor is not None:
        try:
            cursor.execute("BEGIN")
        except Exception as e:
            error_log.append(ErrorRecord.file_level(name, "TRANSACTION_BEGIN_ERROR", str(e)))
            return _failed(file_path, start_time, f"Failed to begin transaction: {e}")

    indicator = SheetProgressIndicator(file_name=name)
    try:
        check_workbook_file(name, file_path.stat().st_size)
        summary = import_workbook(
            file_path.read_bytes(),
            name,
            cursor,
            imported_by=config.imported_by,
            options=config.parser,
            today=today,
            error_log=error_log,
            on_sheet=indicator.report,
        )
    except FileRejectedError as e:
        error_type, message = "FILE_REJECTED", str(e)
    except WorkbookDecodeError as e:
        error_type, message = "DECODE_ERROR", str(e)
    except UpsertError as e:
        error_type, message = "DATABASE_ERROR", str(e)
    except Exception as e:
        logger.debug("unexpected failure importing %s", name, exc_info=True)
        error_type, message = "PROCESSING_ERROR", str(e)
    else:
        if cursor is not None:
            try:
                cursor.execute("COMMIT")
            except Exception as e:
                _rollback(cursor, name, error_log)
                error_log.append(ErrorRecord.file_level(name, "TRANSACTION_COMMIT_ERROR", str(e)))
                return _failed(file_path, start_time, f"commit failed: {e}", summary.sheets)
        return ExcelFile(
            path=file_path,
            name=name,
            sheets=summary.sheets,
            start_time=start_time,
            end_time=datetime.now(UTC),
            status=FileStatus.SUCCESS,
            imported_rows=summary.total_imported,
            skipped_rows=summary.total_skipped,
            row_errors=summary.total_errors,
            batch_id=summary.batch_id,
        )

    _rollback(cursor, name, error_log)
    error_log.append(ErrorRecord.file_level(name, error_type, message))
    return _failed(file_path, start_time, message)
