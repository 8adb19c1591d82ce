from __future__ import annotations

import datetime as dt
from io import BytesIO

import openpyxl
import pytest

from daily_reports.excel.reader import (
    XLS_SIGNATURE,
    SheetGrid,
    WorkbookDecodeError,
    normalize_value,
    read_workbook,
)


def _save(wb: openpyxl.Workbook) -> bytes:
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def test_read_workbook_sheet_order_and_rows(workbook_bytes):
    buf = workbook_bytes({
        "Центр": [["title"], ["Дата", None, "Продажи"], ["пн", 45292, 10, None, None]],
        "Север": [["x", 1]],
    })
    grids = read_workbook(buf)
    assert [g.name for g in grids] == ["Центр", "Север"]
    center = grids[0]
    assert center.rows == [["title"], ["Дата", None, "Продажи"], ["пн", 45292, 10]]
    assert center.first_row == 0


def test_read_workbook_keeps_blank_rows_in_the_middle():
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "s"
    ws["A1"] = "a"
    ws["A3"] = "c"
    grid = read_workbook(_save(wb))[0]
    assert grid.rows == [["a"], [], ["c"]]


def test_read_workbook_used_range_offsets():
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "offset"
    ws["C3"] = "Дата"
    ws["D4"] = 0.5
    ws["D4"].number_format = "mm:ss"
    grid = read_workbook(_save(wb))[0]
    assert grid.first_row == 2
    assert grid.first_col == 2
    assert grid.rows == [["Дата"], [None, 0.5]]
    cell = grid.cell(3, 3)
    assert cell.value == 0.5
    assert cell.text == "00:00"


def test_read_workbook_dates_become_serials():
    wb = openpyxl.Workbook()
    ws = wb.active
    ws["A1"] = dt.datetime(2024, 1, 1)
    ws["B1"] = dt.date(2024, 1, 2)
    grid = read_workbook(_save(wb))[0]
    assert grid.rows == [[45292.0, 45293.0]]


def test_read_workbook_invalid_buffer():
    with pytest.raises(WorkbookDecodeError):
        read_workbook(b"not a workbook")
    with pytest.raises(WorkbookDecodeError):
        read_workbook(b"")
    with pytest.raises(WorkbookDecodeError):
        read_workbook(XLS_SIGNATURE + b"\x00" * 64)


def test_normalize_value():
    assert normalize_value(None) is None
    assert normalize_value("x") == "x"
    assert normalize_value(True) == 1
    assert normalize_value(3) == 3
    assert normalize_value(dt.time(0, 3, 11)) == pytest.approx(191 / 86400)
    assert normalize_value(dt.timedelta(minutes=27, seconds=20)) == pytest.approx(1640 / 86400)


def test_sheet_grid_from_rows_and_cell_lookup():
    grid = SheetGrid.from_rows("s", [["a", None, None], [1, 2.5]], formats={(1, 1): "0.0"})
    assert grid.rows == [["a"], [1, 2.5]]
    assert grid.cell(0, 0).text == "a"
    assert grid.cell(0, 1) is None
    assert grid.cell(1, 1).value == 2.5
    assert grid.cell(9, 9) is None
