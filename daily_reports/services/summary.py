from __future__ import annotations

from ..models.processing_result import ProcessingResult

"""SUMMARY line rendering.

The last line of every run:

    SUMMARY files=N/N success=S failed=F sheets=K imported=I skipped=K errors=E elapsed_sec=T
"""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # avoid scientific notation
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(total_files: int, result: ProcessingResult) -> str:
    """Render the SUMMARY line of a run.

    Args:
        total_files: number of workbooks the run picked up
        result: aggregated run result

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     success_files=1, failed_files=0, total_sheets=2,
        ...     total_imported_rows=31, total_skipped_rows=4, total_row_errors=0,
        ...     start_time=start, end_time=end, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(1, result)
        'SUMMARY files=1/1 success=1 failed=0 sheets=2 imported=31 skipped=4 errors=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY files={total_files}/{total_files} "
        f"success={result.success_files} "
        f"failed={result.failed_files} "
        f"sheets={result.total_sheets} "
        f"imported={result.total_imported_rows} "
        f"skipped={result.total_skipped_rows} "
        f"errors={result.total_row_errors} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
