from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict
from datetime import date
from pathlib import Path

import pandas as pd

from ..excel.parser import parse_workbook
from ..excel.reader import WorkbookDecodeError
from ..models.config_models import ParserOptions
from ..models.import_result import WorkbookParse

"""--inspect-data support.

Parses workbooks without touching the database and prints, per sheet, the
detected section columns, parsed/skipped counts and the first parsed rows
as a pandas table.
"""

__all__ = [
    "inspect_workbook",
    "rows_frame",
]

PREVIEW_COLUMNS = [
    "row_number",
    "date",
    "sales_plan",
    "sales_fact",
    "orders_fact",
    "loyalty_fact",
    "avg_check_fact",
    "productivity_fact",
    "order_delivery_time",
]


def rows_frame(parsed: WorkbookParse, sheet_name: str) -> pd.DataFrame:
    """Parsed rows of one sheet as a DataFrame (one column per ParsedRow field)."""
    records = [asdict(r) for r in parsed.rows_by_sheet.get(sheet_name, [])]
    frame = pd.DataFrame.from_records(records)
    if not frame.empty:
        frame = frame.drop(columns=["sheet_name"])
    return frame


def inspect_workbook(
    path: Path,
    *,
    options: ParserOptions | None = None,
    today: date | None = None,
    sample_rows: int = 3,
    out: Callable[[str], None] = print,
) -> WorkbookParse | None:
    """Print what the parser sees in a workbook; None when it cannot be decoded."""
    out(f"FILE: {path.name}")
    try:
        parsed = parse_workbook(path.read_bytes(), options=options, today=today)
    except (OSError, WorkbookDecodeError) as e:
        out(f"  read_error: {e}")
        return None

    for name in parsed.sheet_names:
        layout = parsed.layouts.get(name)
        rows = parsed.rows_by_sheet[name]
        skipped = parsed.skipped_by_sheet[name]
        if layout is None:
            out(f"  SHEET: {name} header=not found skipped={skipped}")
            continue
        out(f"  SHEET: {name} sections={layout.found()} parsed={len(rows)} skipped={skipped}")
        frame = rows_frame(parsed, name)
        if frame.empty:
            continue
        preview = frame[[c for c in PREVIEW_COLUMNS if c in frame.columns]].head(sample_rows)
        for line in preview.to_string(index=False).splitlines():
            out(f"    {line}")
    return parsed
