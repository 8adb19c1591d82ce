#!/usr/bin/env python3
"""Sample daily report workbook generator.

Generates a synthetic coffee shop report workbook laid out the way the
store managers fill it in, one sheet per location:

- Row 1: title ("Отчет ...")
- Row 2: header row, "Дата" in column A, section labels along the row
- Row 3: sub-headers ("План", "Факт", ...)
- Row 4: month title ("Январь 2025", a single cell)
- Row 5+: one row per day (weekday, date, section values)
- Last row: "итого" totals

Useful for trying the importer (--dry-run / --inspect-data) without real data.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
from openpyxl.utils import get_column_letter

WIDTH = 37  # columns A..AK

HEADER_LABELS = {
    0: "Дата",
    2: "Продажи",
    13: "Списания",
    17: "Кол-во заказов",
    20: "Карты лояльности",
    24: "Средний чек",
    27: "Наполненность чека",
    32: "Производительность",
    36: "Время выдачи заказа",
}

SUB_HEADERS = {
    2: "План", 3: "Факт", 4: "Скидки", 5: "С учетом скидок", 6: "% скидок", 7: "Яндекс Еда",
    8: "Откл.", 9: "План месяц", 10: "Факт месяц", 11: "Откл. месяц", 12: "Откл. руб",
    17: "План", 18: "Факт", 19: "Откл.",
    20: "План", 21: "Факт", 22: "Проникновение", 23: "Откл.",
    24: "План", 25: "Факт", 26: "Откл.",
    27: "План", 28: "Факт", 29: "Откл.", 30: "Блюда", 31: "Напитки", 32: "Порции",
    33: "План", 34: "Часы", 35: "Факт",
    36: "мм:сс",
}

WEEKDAYS = ["пн", "вт", "ср", "чт", "пт", "сб", "вс"]
MONTHS = [
    "Январь", "Февраль", "Март", "Апрель", "Май", "Июнь",
    "Июль", "Август", "Сентябрь", "Октябрь", "Ноябрь", "Декабрь",
]

EXCEL_EPOCH = pd.Timestamp("1899-12-30")


def generate_days(start: pd.Timestamp, days: int, rng: np.random.Generator) -> pd.DataFrame:
    """Daily metrics for one location, one DataFrame row per day."""
    dates = pd.date_range(start, periods=days, freq="D")
    sales_plan = np.round(rng.uniform(40_000, 90_000, days), -2)
    sales_fact = np.round(sales_plan * rng.normal(1.0, 0.12, days), 2)
    discounts = np.round(sales_fact * rng.uniform(0.02, 0.08, days), 2)
    orders_plan = np.round(sales_plan / 450)
    orders_fact = np.round(orders_plan * rng.normal(1.0, 0.1, days))
    loyalty_plan = np.round(orders_plan * 0.4)
    loyalty_fact = np.round(orders_fact * rng.uniform(0.3, 0.5, days))
    hours = np.round(rng.uniform(20, 36, days), 1)
    delivery_sec = rng.integers(120, 600, days)

    frame = pd.DataFrame({
        "date": dates,
        "sales_plan": sales_plan,
        "sales_fact": sales_fact,
        "discounts": discounts,
        "sales_with_discounts": sales_fact - discounts,
        "discount_percent": np.round(discounts / sales_fact, 4),
        "yandex_food": np.round(sales_fact * rng.uniform(0.05, 0.15, days), 2),
        "orders_plan": orders_plan,
        "orders_fact": orders_fact,
        "loyalty_plan": loyalty_plan,
        "loyalty_fact": loyalty_fact,
        "avg_check_plan": np.full(days, 450.0),
        "avg_check_fact": np.round(sales_fact / np.maximum(orders_fact, 1), 2),
        "fill_rate_plan": np.full(days, 1.8),
        "fill_rate_fact": np.round(rng.uniform(1.4, 2.2, days), 2),
        "avg_dishes": np.round(rng.uniform(0.6, 1.2, days), 2),
        "avg_drinks": np.round(rng.uniform(0.8, 1.3, days), 2),
        "portions": np.round(orders_fact * rng.uniform(1.5, 2.0, days)),
        "productivity_plan": np.full(days, 2500.0),
        "hours_worked": hours,
        "productivity_fact": np.round(sales_fact / hours, 2),
        "delivery_sec": delivery_sec,
    })
    frame["sales_deviation"] = frame["sales_fact"] - frame["sales_plan"]
    frame["month_sales_plan"] = frame.groupby(frame["date"].dt.month)["sales_plan"].cumsum()
    frame["month_sales_fact"] = frame.groupby(frame["date"].dt.month)["sales_fact"].cumsum()
    return frame


def _day_row(day: pd.Series) -> list[Any]:
    row: list[Any] = [None] * WIDTH
    row[0] = WEEKDAYS[day["date"].dayofweek]
    row[1] = (day["date"] - EXCEL_EPOCH).days
    row[2:9] = [
        day["sales_plan"], day["sales_fact"], day["discounts"], day["sales_with_discounts"],
        day["discount_percent"], day["yandex_food"], day["sales_deviation"],
    ]
    month_dev = day["month_sales_fact"] - day["month_sales_plan"]
    row[9:13] = [day["month_sales_plan"], day["month_sales_fact"], month_dev / day["month_sales_plan"], month_dev]
    row[17:20] = [day["orders_plan"], day["orders_fact"], day["orders_fact"] - day["orders_plan"]]
    row[20:24] = [
        day["loyalty_plan"], day["loyalty_fact"],
        day["loyalty_fact"] / max(day["orders_fact"], 1), day["loyalty_fact"] - day["loyalty_plan"],
    ]
    row[24:27] = [day["avg_check_plan"], day["avg_check_fact"], day["avg_check_fact"] - day["avg_check_plan"]]
    row[27:33] = [
        day["fill_rate_plan"], day["fill_rate_fact"], day["fill_rate_fact"] - day["fill_rate_plan"],
        day["avg_dishes"], day["avg_drinks"], day["portions"],
    ]
    row[33:36] = [day["productivity_plan"], day["hours_worked"], day["productivity_fact"]]
    row[36] = day["delivery_sec"] / 86400  # day fraction, shown as mm:ss
    return row


def build_sheet_rows(frame: pd.DataFrame, title: str) -> list[list[Any]]:
    """Sheet content (title, headers, month titles, day rows, totals) as plain rows."""
    rows: list[list[Any]] = [[title]]
    header: list[Any] = [None] * WIDTH
    for col, label in HEADER_LABELS.items():
        header[col] = label
    sub: list[Any] = [None] * WIDTH
    for col, label in SUB_HEADERS.items():
        sub[col] = label
    rows += [header, sub]

    month = None
    for _, day in frame.iterrows():
        if day["date"].month != month:
            month = day["date"].month
            rows.append([f"{MONTHS[month - 1]} {day['date'].year}"])
        rows.append(_day_row(day))

    totals: list[Any] = [None] * WIDTH
    totals[0] = "итого"
    totals[2] = frame["sales_plan"].sum()
    totals[3] = frame["sales_fact"].sum()
    totals[18] = frame["orders_fact"].sum()
    rows.append(totals)
    return rows


def create_report_file(
    output_path: Path,
    locations: list[str],
    start: pd.Timestamp,
    days: int,
    seed: int = 42,
) -> None:
    """Write the sample workbook (one sheet per location)."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    rng = np.random.default_rng(seed)

    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        for location in locations:
            frame = generate_days(start, days, rng)
            rows = build_sheet_rows(frame, f"Отчет {location}")
            pd.DataFrame(rows).to_excel(writer, sheet_name=location, header=False, index=False)

            ws = writer.sheets[location]
            for r, row in enumerate(rows, start=1):
                if isinstance(row[0], str) and row[0] in WEEKDAYS:
                    ws.cell(row=r, column=2).number_format = "dd.mm.yyyy"
                    ws.cell(row=r, column=WIDTH).number_format = "mm:ss"
            ws.column_dimensions[get_column_letter(2)].width = 12

    print(f"Created report workbook: {output_path}")
    print(f"  Locations: {len(locations)} ({', '.join(locations)})")
    print(f"  Days per location: {days} from {start.date().isoformat()}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic daily report workbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # One location, January of the current year
  %(prog)s data/report.xlsx

  # Three locations, a whole quarter
  %(prog)s data/q1.xlsx --locations Центр Север Юг --start 2025-01-01 --days 90
        """,
    )
    parser.add_argument("output", type=Path, help="Output workbook path")
    parser.add_argument("--locations", nargs="+", default=["Центр"], help="Sheet (location) names")
    parser.add_argument(
        "--start",
        default=pd.Timestamp.today().strftime("%Y-01-01"),
        help="First report day (default: January 1st of the current year)",
    )
    parser.add_argument("--days", type=int, default=31, help="Days per location (default: 31)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.days <= 0:
        print("Error: --days must be positive", file=sys.stderr)
        return 1
    try:
        start = pd.Timestamp(args.start)
    except ValueError as e:
        print(f"Error: invalid --start: {e}", file=sys.stderr)
        return 1

    create_report_file(args.output, args.locations, start, args.days, args.seed)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
