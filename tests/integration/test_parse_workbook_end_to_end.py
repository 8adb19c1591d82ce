from __future__ import annotations

from datetime import date

import pytest

from daily_reports.excel.parser import parse_workbook
from daily_reports.models.config_models import ParserOptions

"""Parsing real xlsx bytes from header detection down to ParsedRow values."""


def _center_rows(serial) -> list[list[object]]:
    header = ["Дата", None, "Продажи"] + [None] * 14 + ["Кол-во заказов", None, None, "Средний чек"]
    rows: list[list[object]] = [["Отчет по точке Center"], header]
    for day in range(1, 6):
        d = date(2026, 4, day)
        row = ["пт", serial(d), 60000 + day, 61000.25, None, None, None, None, None, None, None, None, None]
        row += [None] * 4 + [120, 118.5, -1.5, 480, 512.5, 32.5]
        rows.append(row)
    return rows


def test_two_sheet_workbook(workbook_bytes, serial, today):
    north = [["Север"], ["пн", serial(date(2026, 4, 1)), 1, 2, 3, 4, 5, 6, 7, 8], [], ["итого", None, 5]]
    buf = workbook_bytes({"Center": _center_rows(serial), "North": north})

    parsed = parse_workbook(buf, today=today)

    assert parsed.sheet_names == ["Center", "North"]
    assert len(parsed.rows_by_sheet["Center"]) == 5
    assert parsed.skipped_by_sheet["Center"] == 2
    assert parsed.rows_by_sheet["North"] == []
    assert parsed.skipped_by_sheet["North"] == 4
    assert parsed.layouts["North"] is None

    first = parsed.rows_by_sheet["Center"][0]
    assert first.date == date(2026, 4, 1)
    assert first.row_number == 3
    assert first.sales_plan == 60001
    assert first.sales_fact == 61000.25
    # header row: "Кол-во заказов" at 17, "Средний чек" at 20
    assert first.orders_plan == 120
    assert first.orders_fact == 119
    assert first.avg_check_plan == 480
    assert first.avg_check_fact == 512.5
    # no loyalty / fill rate / productivity / delivery sections on this sheet
    assert first.loyalty_fact == 0
    assert first.fill_rate_fact == 0
    assert first.productivity_fact == 0
    assert first.order_delivery_time == 0


def test_full_layout_sheet(workbook_bytes, report_sheet, today):
    sheet = (
        report_sheet()
        .raw(["Апрель 2026"])
        .day(date(2026, 4, 1), {21: 40.5, 33: 2600}, delivery=200 / 86400)
        .day(date(2026, 4, 2), {4: "#REF!", 18: "n/a"}, delivery="3:45")
        .raw(["Дата"] + [None] * 36)
        .day(date(2023, 12, 31))
        .raw(["итого"] + [100] * 36)
    )
    parsed = parse_workbook(workbook_bytes({"Центр": sheet}), today=today)
    rows = parsed.rows_by_sheet["Центр"]
    assert [r.date for r in rows] == [date(2026, 4, 1), date(2026, 4, 2)]
    # title, header, sub-header, month title, repeated header, 2023 row, totals
    assert parsed.skipped_by_sheet["Центр"] == 7
    first, second = rows
    assert first.loyalty_fact == 41
    assert first.productivity_plan == 2600
    assert first.portions == 210
    assert first.order_delivery_time == 200
    assert second.discounts == 0
    assert second.orders_fact == 0
    assert second.order_delivery_time == 225


def test_date_floor_only_applies_below_40000(workbook_bytes, today):
    rows = [["Дата"] + [None] * 9, ["пн", 40000] + [1] * 8, ["пн", 39999] + [1] * 8]
    parsed = parse_workbook(workbook_bytes({"s": rows}), options=ParserOptions(years_back=20), today=today)
    assert [r.date for r in parsed.rows_by_sheet["s"]] == [date(2009, 7, 6)]


@pytest.mark.parametrize("offset, kept", [(-3, False), (-2, True), (0, True), (1, True), (2, False)])
def test_year_window_around_current_year(workbook_bytes, report_sheet, offset, kept):
    year = date.today().year + offset
    parsed = parse_workbook(workbook_bytes({"s": report_sheet().day(date(year, 6, 15))}))
    assert (len(parsed.rows_by_sheet["s"]) == 1) is kept


def test_header_beyond_scan_window(workbook_bytes, report_sheet, today):
    sheet = report_sheet(title=None)
    sheet.rows[:0] = [["filler"]] * 20
    sheet.day(date(2026, 1, 5))
    parsed = parse_workbook(workbook_bytes({"s": sheet}), today=today)
    assert parsed.rows_by_sheet["s"] == []
    assert parsed.skipped_by_sheet["s"] == 23
    wider = parse_workbook(workbook_bytes({"s": sheet}), options=ParserOptions(header_scan_rows=25), today=today)
    assert len(wider.rows_by_sheet["s"]) == 1
