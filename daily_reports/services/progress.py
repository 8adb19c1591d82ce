from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.import_result import SheetResult

"""Progress display with tqdm (TTY only).

One tqdm bar counts workbooks; each stored sheet gets a one-line indicator
below it. Outside a TTY (CI, redirected output) nothing is drawn so the
labeled log lines stay clean.
"""

__all__ = [
    "ProgressTracker",
    "SheetProgressIndicator",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True when stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress bar over the workbooks of a run.

    Disabled in non-TTY environments to avoid ANSI control sequence spam.
    """

    def __init__(self, total_files: int, *, description: str = "Processing files") -> None:
        self.total_files = total_files
        self.description = description
        self.current_file = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_files,
                desc=description,
                unit="file",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_file(self, file_path: Path) -> None:
        self.current_file += 1
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({file_path.name})")

    def finish_file(self, success: bool = True) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)

    def set_postfix(self, **kwargs: Any) -> None:
        """Show run statistics after the bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class SheetProgressIndicator:
    """One line per stored sheet (location) of a workbook.

    Sheets are quick to store, so no bar: just the sheet name, its counts
    and a check mark (a cross when some rows failed).
    """

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        self.reported = 0
        self.enabled = is_tty_enabled()

    def format_line(self, result: SheetResult) -> str:
        status = "✗" if result.errors else "✓"
        line = f"  Sheet {self.reported}: {result.sheet_name} - {result.imported} rows"
        if result.skipped:
            line += f", {result.skipped} skipped"
        if result.errors:
            line += f", {len(result.errors)} errors"
        return f"{line} {status}"

    def report(self, result: SheetResult) -> None:
        self.reported += 1
        if self.enabled:
            tqdm.write(self.format_line(result))
