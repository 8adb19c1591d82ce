# Shared pytest fixtures
from __future__ import annotations

import tempfile
from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Any

import openpyxl
import pytest

from daily_reports.logging.init import reset_logging

EXCEL_EPOCH = date(1899, 12, 30)
REPORT_WIDTH = 37

# Section labels along the header row (0-based columns)
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
    2: "План", 3: "Факт",
    17: "План", 18: "Факт",
    20: "План", 21: "Факт",
    24: "План", 25: "Факт",
    27: "План", 28: "Факт", 29: "Откл.", 30: "Блюда", 31: "Напитки", 32: "Порции",
    33: "План", 34: "Часы", 35: "Факт",
}

# Column -> value of an ordinary day
DEFAULT_DAY_VALUES = {
    2: 50000, 3: 52000.5, 4: 1500, 5: 50500.5, 6: 0.03, 7: 4200, 8: 2000.5,
    9: 50000, 10: 52000.5, 11: 0.04, 12: 2000.5,
    17: 110, 18: 112.6, 19: 2.6,
    20: 45, 21: 40.4, 22: 0.36, 23: -4.6,
    24: 450, 25: 464.3, 26: 14.3,
    27: 1.8, 28: 1.9, 29: 0.1, 30: 0.8, 31: 1.1, 32: 210,
    33: 2500, 34: 24, 35: 2166.69,
}


def excel_serial(d: date) -> int:
    return (d - EXCEL_EPOCH).days


def _padded(cells: dict[int, Any]) -> list[Any]:
    row: list[Any] = [None] * REPORT_WIDTH
    for col, value in cells.items():
        row[col] = value
    return row


class ReportSheet:
    """Rows of one report sheet: title, header, sub-header, then whatever is added."""

    def __init__(self, title: str | None = "Отчет за месяц") -> None:
        self.rows: list[list[Any]] = [[title]] if title else []
        self.formats: dict[tuple[int, int], str] = {}
        self.rows.append(_padded(HEADER_LABELS))
        self.rows.append(_padded(SUB_HEADERS))

    def day(
        self,
        d: date,
        values: dict[int, Any] | None = None,
        *,
        label: str = "пн",
        delivery: Any = None,
        delivery_format: str | None = "mm:ss",
    ) -> ReportSheet:
        row = _padded({**DEFAULT_DAY_VALUES, **(values or {})})
        row[0] = label
        row[1] = excel_serial(d)
        if delivery is not None:
            row[36] = delivery
            if delivery_format:
                self.formats[(len(self.rows), 36)] = delivery_format
        self.rows.append(row)
        return self

    def raw(self, row: list[Any]) -> ReportSheet:
        self.rows.append(list(row))
        return self


def make_workbook(sheets: dict[str, ReportSheet | list[list[Any]]]) -> bytes:
    """xlsx bytes with one worksheet per entry, in dict order."""
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, content in sheets.items():
        ws = wb.create_sheet(title=name)
        rows = content.rows if isinstance(content, ReportSheet) else content
        formats = content.formats if isinstance(content, ReportSheet) else {}
        for row in rows:
            ws.append(row)
        for (r, c), fmt in formats.items():
            ws.cell(row=r + 1, column=c + 1).number_format = fmt
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
imported_by: tester
parser:
  header_scan_rows: 20
  min_row_cells: 10
  years_back: 2
  years_ahead: 1
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def report_sheet():
    """ReportSheet factory."""
    return ReportSheet


@pytest.fixture()
def workbook_bytes():
    """make_workbook() as a fixture."""
    return make_workbook


@pytest.fixture()
def today() -> date:
    """Anchor of the plausible year window in tests (window 2024..2027)."""
    return date(2026, 6, 1)


@pytest.fixture()
def serial():
    return excel_serial
