from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from datetime import date

from ..models.config_models import ParserOptions
from ..models.import_result import WorkbookParse
from ..models.parsed_row import ParsedRow
from .coerce import (
    CellValue,
    cell_text,
    excel_serial_to_date,
    is_number,
    round_half_up,
    to_number,
)
from .layout import (
    ABSENT,
    HEADER_MARKER,
    INTEGER_FIELDS,
    SECTION_FIELDS,
    TOTAL_MARKER,
    SectionLayout,
    build_layout,
    find_header_row,
)
from .reader import RawCell, SheetGrid, read_workbook

"""Daily report workbook parser.

Turns a report workbook (one sheet per location) into ParsedRow records:

1. find the header row and the section columns of every sheet,
2. keep rows that carry a plausible report date, skip and count the rest
   (titles, sub-headers, totals, blanks),
3. read every section field at its fixed offset through to_number().

The parser performs no I/O besides decoding the buffer it is given and keeps
no state between calls.
"""

__all__ = [
    "delivery_seconds",
    "extract_row",
    "parse_sheet",
    "parse_workbook",
    "read_delivery_time",
]

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400

# "3:11" / "27:20": minutes and seconds as the sheet shows them
_MINUTES_SECONDS_RE = re.compile(r"^(\d{1,3}):(\d{2})$")


def delivery_seconds(cell: RawCell | None) -> int:
    """Order delivery time of a cell in seconds.

    The displayed "mm:ss" text is authoritative. Without it the raw value
    is a day fraction when strictly between 0 and 1, otherwise a seconds
    count.
    """
    if cell is None:
        return 0
    match = _MINUTES_SECONDS_RE.match(cell.text.strip())
    if match:
        return int(match.group(1)) * 60 + int(match.group(2))
    raw = to_number(cell.value)
    if 0 < raw < 1:
        return round_half_up(raw * SECONDS_PER_DAY)
    return round_half_up(raw)


def read_delivery_time(grid: SheetGrid, sheet_row: int, column: int | None) -> int:
    """Delivery time at a 0-based worksheet row; 0 when the section is absent."""
    if column is ABSENT:
        return 0
    return delivery_seconds(grid.cell(sheet_row, grid.first_col + column))


def _is_placeholder(first_cell: str) -> bool:
    return first_cell == HEADER_MARKER or first_cell == "" or first_cell.lower() == TOTAL_MARKER


def _report_date(row: Sequence[CellValue], options: ParserOptions, years: range) -> date | None:
    """Date of a data row, or None when the row is not a daily record."""
    if row is None or len(row) < options.min_row_cells:
        return None
    if _is_placeholder(cell_text(row[0]).strip()):
        return None
    serial = row[1] if len(row) > 1 else None
    if not is_number(serial) or not serial or serial < options.min_date_serial:
        return None
    try:
        day = excel_serial_to_date(serial)
    except ValueError:
        return None
    if day.year not in years:
        return None
    return day


def _section_values(row: Sequence[CellValue], layout: SectionLayout) -> dict[str, float]:
    values: dict[str, float] = {}
    for section, names in SECTION_FIELDS.items():
        start = layout.start(section)
        if start is ABSENT:
            continue  # ParsedRow defaults are zero
        for offset, name in enumerate(names):
            if name is None:
                continue
            col = start + offset
            number = to_number(row[col]) if col < len(row) else 0
            values[name] = round_half_up(number) if name in INTEGER_FIELDS else number
    return values


def extract_row(
    row: Sequence[CellValue],
    layout: SectionLayout,
    years: range,
    *,
    options: ParserOptions | None = None,
    sheet_name: str = "",
    grid: SheetGrid | None = None,
    index: int = 0,
) -> ParsedRow | None:
    """Build the ParsedRow for one raw row, or None when the row is skipped.

    Args:
        row: raw cell values of the row
        layout: resolved section columns of the sheet
        years: plausible report years (see ParserOptions.plausible_years)
        grid, index: sheet the row belongs to and its index in grid.rows,
            used to read the delivery time display text
    """
    options = options or ParserOptions()
    day = _report_date(row, options, years)
    if day is None:
        return None
    sheet_row = (grid.first_row if grid is not None else 0) + index
    delivery = read_delivery_time(grid, sheet_row, layout.delivery_time) if grid is not None else 0
    return ParsedRow(
        sheet_name=sheet_name,
        row_number=sheet_row + 1,
        date=day,
        order_delivery_time=delivery,
        **_section_values(row, layout),
    )


def parse_sheet(
    grid: SheetGrid, options: ParserOptions, years: range
) -> tuple[list[ParsedRow], int, SectionLayout | None]:
    """Parse one sheet: (rows, skipped count, layout or None without header)."""
    header_index = find_header_row(grid.rows, options.header_scan_rows)
    if header_index is None:
        logger.debug("sheet=%s header row not found, skipping %d rows", grid.name, len(grid.rows))
        return [], len(grid.rows), None

    layout = build_layout(grid.rows, header_index)
    logger.debug("sheet=%s header_row=%d sections=%s", grid.name, header_index, layout.found())

    parsed: list[ParsedRow] = []
    skipped = 0
    for i, row in enumerate(grid.rows):
        record = extract_row(
            row, layout, years, options=options, sheet_name=grid.name, grid=grid, index=i
        )
        if record is None:
            skipped += 1
        else:
            parsed.append(record)
    logger.debug("sheet=%s parsed=%d skipped=%d", grid.name, len(parsed), skipped)
    return parsed, skipped, layout


def parse_workbook(
    buffer: bytes,
    *,
    options: ParserOptions | None = None,
    today: date | None = None,
) -> WorkbookParse:
    """Parse a report workbook buffer.

    Args:
        buffer: xlsx file content
        options: parser thresholds (defaults when None)
        today: anchor of the plausible year window (defaults to the current date)

    Raises:
        WorkbookDecodeError: the buffer is not a readable workbook
    """
    options = options or ParserOptions()
    years = options.plausible_years(today)

    sheet_names: list[str] = []
    rows_by_sheet: dict[str, list[ParsedRow]] = {}
    skipped_by_sheet: dict[str, int] = {}
    layouts: dict[str, SectionLayout | None] = {}
    for grid in read_workbook(buffer):
        rows, skipped, layout = parse_sheet(grid, options, years)
        sheet_names.append(grid.name)
        rows_by_sheet[grid.name] = rows
        skipped_by_sheet[grid.name] = skipped
        layouts[grid.name] = layout

    return WorkbookParse(
        sheet_names=sheet_names,
        rows_by_sheet=rows_by_sheet,
        skipped_by_sheet=skipped_by_sheet,
        layouts=layouts,
    )
