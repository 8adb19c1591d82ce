from __future__ import annotations

import datetime as dt
from collections.abc import Iterable
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any

import openpyxl
import xlrd
from openpyxl.utils.datetime import to_excel

from .coerce import CellValue
from .display import display_text, is_time_format

"""Workbook decoder.

Decodes an xlsx (openpyxl) or legacy BIFF xls (xlrd) byte buffer into
SheetGrid objects, one per worksheet in workbook order. A grid offers the
two views the parser needs:

- rows: header-less raw values, one list per worksheet row from the first
  used row to the last, trailing empty cells trimmed (a blank row is []).
- cell(row, col): the raw value of a single cell plus its display text,
  addressed by 0-based worksheet position.

Values are normalized at this boundary to None / int / float / str. Dates and
times that openpyxl hands back as datetime objects are turned back into Excel
serials so downstream code only ever sees numbers. xlrd already reports
serials; those of 1904-dated xls workbooks are shifted onto the 1900 system.
"""

__all__ = [
    "XLS_SIGNATURE",
    "RawCell",
    "SheetGrid",
    "WorkbookDecodeError",
    "normalize_value",
    "read_workbook",
]


# OLE2 compound document header of BIFF (.xls) workbooks
XLS_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

# Days between the 1900 and 1904 epochs as Excel serials count them
_EPOCH_1904_OFFSET = 1462


class WorkbookDecodeError(Exception):
    """Raised when a buffer cannot be decoded as a spreadsheet."""


@dataclass(frozen=True)
class RawCell:
    value: CellValue
    text: str  # display text, "" when the cell shows nothing


@dataclass(frozen=True)
class SheetGrid:
    name: str
    rows: list[list[CellValue]]
    first_row: int = 0  # 0-based worksheet row of rows[0]
    first_col: int = 0  # 0-based worksheet column of rows[*][0]
    # Number formats of numeric cells keyed by 0-based worksheet (row, col); General omitted
    formats: dict[tuple[int, int], str] = field(default_factory=dict)

    @classmethod
    def from_rows(
        cls,
        name: str,
        rows: Iterable[Iterable[Any]],
        formats: dict[tuple[int, int], str] | None = None,
        first_row: int = 0,
    ) -> SheetGrid:
        """Build a grid from plain Python rows (trailing None cells trimmed)."""
        return cls(
            name=name,
            rows=[_trim([normalize_value(v) for v in row]) for row in rows],
            first_row=first_row,
            formats=dict(formats or {}),
        )

    def cell(self, row: int, col: int) -> RawCell | None:
        """Look up a cell by 0-based worksheet position; None when empty."""
        r = row - self.first_row
        c = col - self.first_col
        if r < 0 or c < 0 or r >= len(self.rows) or c >= len(self.rows[r]):
            return None
        value = self.rows[r][c]
        if value is None:
            return None
        return RawCell(value=value, text=display_text(value, self.formats.get((row, col))))


def normalize_value(value: Any) -> CellValue:
    """Map a decoded cell value onto None / int / float / str."""
    if value is None or isinstance(value, (str, float)):
        return value
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, (dt.datetime, dt.date, dt.time, dt.timedelta)):
        return float(to_excel(value))
    return str(value)


def _trim(values: list[CellValue]) -> list[CellValue]:
    end = len(values)
    while end and values[end - 1] is None:
        end -= 1
    return values[:end]


def read_workbook(buffer: bytes) -> list[SheetGrid]:
    """Decode an xlsx or xls buffer into grids in workbook order.

    Raises:
        WorkbookDecodeError: the buffer is not a readable workbook
    """
    if buffer[:len(XLS_SIGNATURE)] == XLS_SIGNATURE:
        return _read_xls(buffer)
    try:
        wb = openpyxl.load_workbook(BytesIO(buffer), data_only=True)
    except Exception as e:  # zip, xml and openpyxl errors all mean "not a workbook"
        raise WorkbookDecodeError(f"cannot decode workbook: {e}") from e

    grids: list[SheetGrid] = []
    try:
        for ws in wb.worksheets:
            grids.append(_read_sheet(ws))
    finally:
        wb.close()
    return grids


def _read_sheet(ws: Any) -> SheetGrid:
    if ws.max_row == 1 and ws.max_column == 1 and ws.cell(row=1, column=1).value is None:
        # an untouched sheet still reports A1 as its used range
        return SheetGrid(name=ws.title, rows=[])
    first_row = ws.min_row - 1
    first_col = ws.min_column - 1
    rows: list[list[CellValue]] = []
    formats: dict[tuple[int, int], str] = {}
    for cells in ws.iter_rows(min_row=ws.min_row, max_row=ws.max_row, min_col=ws.min_column, max_col=ws.max_column):
        values: list[CellValue] = []
        for cell in cells:
            value = normalize_value(cell.value)
            values.append(value)
            if isinstance(value, (int, float)) and cell.number_format not in (None, "General"):
                formats[(cell.row - 1, cell.column - 1)] = cell.number_format
        rows.append(_trim(values))
    return SheetGrid(name=ws.title, rows=rows, first_row=first_row, first_col=first_col, formats=formats)


def _read_xls(buffer: bytes) -> list[SheetGrid]:
    try:
        book = xlrd.open_workbook(file_contents=buffer, formatting_info=True)
    except Exception as e:  # XLRDError and compound document errors alike
        raise WorkbookDecodeError(f"cannot decode workbook: {e}") from e
    try:
        return [_read_xls_sheet(book, book.sheet_by_index(i)) for i in range(book.nsheets)]
    finally:
        book.release_resources()


def _xls_number_format(book: Any, xf_index: int | None) -> str | None:
    if xf_index is None:
        return None
    fmt = book.format_map.get(book.xf_list[xf_index].format_key)
    return fmt.format_str if fmt is not None else None


def _xls_value(book: Any, cell: Any, number_format: str | None) -> CellValue:
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return None
    if cell.ctype == xlrd.XL_CELL_DATE:
        serial = float(cell.value)
        if book.datemode == 1 and not is_time_format(number_format):
            serial += _EPOCH_1904_OFFSET
        return serial
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return int(cell.value)
    if cell.ctype == xlrd.XL_CELL_ERROR:
        return xlrd.error_text_from_code.get(cell.value, "#N/A")
    return normalize_value(cell.value)


def _read_xls_sheet(book: Any, sheet: Any) -> SheetGrid:
    # xlrd addresses cells from A1; the grid starts at the first used cell
    cells: dict[tuple[int, int], CellValue] = {}
    formats: dict[tuple[int, int], str] = {}
    for r in range(sheet.nrows):
        for c in range(sheet.row_len(r)):
            cell = sheet.cell(r, c)
            number_format = _xls_number_format(book, cell.xf_index)
            value = _xls_value(book, cell, number_format)
            if value is None:
                continue
            cells[(r, c)] = value
            if isinstance(value, (int, float)) and number_format not in (None, "General"):
                formats[(r, c)] = number_format
    if not cells:
        return SheetGrid(name=sheet.name, rows=[])

    first_row = min(r for r, _ in cells)
    last_row = max(r for r, _ in cells)
    first_col = min(c for _, c in cells)
    rows = [
        _trim([cells.get((r, c)) for c in range(first_col, sheet.row_len(r))])
        for r in range(first_row, last_row + 1)
    ]
    return SheetGrid(name=sheet.name, rows=rows, first_row=first_row, first_col=first_col, formats=formats)
