from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, fields

from .coerce import CellValue, cell_text

"""Header row and section column detection for daily report sheets.

A report sheet has a header row whose first cell reads "Дата". Along that
row, merged labels mark where each section ("Продажи", "Кол-во заказов",
...) starts; the row below carries sub-headers ("План", "Факт", ...).
Every field of a section sits at a fixed offset from the section start.
"""

__all__ = [
    "ABSENT",
    "HEADER_MARKER",
    "INTEGER_FIELDS",
    "PLAN_MARKER",
    "SECTION_FIELDS",
    "SECTION_PATTERNS",
    "SALES_LABEL",
    "SectionLayout",
    "TOTAL_MARKER",
    "build_layout",
    "detect_sections",
    "find_header_row",
    "resolve_productivity_start",
]

HEADER_MARKER = "Дата"
TOTAL_MARKER = "итого"
PLAN_MARKER = "план"

# Matched exactly (after trim + lower-case)
SALES_LABEL = "продажи"

# Substring patterns, tried in this order. "время выдачи заказа" contains
# "заказ", so delivery time has to be tried before orders.
SECTION_PATTERNS: tuple[tuple[str, str], ...] = (
    ("delivery_time", "время выдачи"),
    ("orders", "заказ"),
    ("loyalty", "лояльност"),
    ("avg_check", "средний чек"),
    ("fill_rate", "наполненность"),
    ("productivity", "производительность"),
)

# Section column not present on the sheet
ABSENT: int | None = None

# Field names by offset from the section start; None marks a column that is
# present on the sheet but not kept (fill-rate deviation).
SECTION_FIELDS: dict[str, tuple[str | None, ...]] = {
    "sales": (
        "sales_plan",
        "sales_fact",
        "discounts",
        "sales_with_discounts",
        "discount_percent",
        "yandex_food",
        "sales_deviation",
        "month_sales_plan",
        "month_sales_fact",
        "month_sales_deviation",
        "month_sales_deviation_rub",
    ),
    "orders": ("orders_plan", "orders_fact", "orders_deviation"),
    "loyalty": ("loyalty_plan", "loyalty_fact", "loyalty_penetration", "loyalty_deviation"),
    "avg_check": ("avg_check_plan", "avg_check_fact", "avg_check_deviation"),
    "fill_rate": ("fill_rate_plan", "fill_rate_fact", None, "avg_dishes", "avg_drinks", "portions"),
    "productivity": ("productivity_plan", "hours_worked", "productivity_fact"),
}

# Counts stored as whole numbers
INTEGER_FIELDS = frozenset({"orders_fact", "loyalty_fact"})


@dataclass(frozen=True)
class SectionLayout:
    """Start column (0-based) of every section; ABSENT when not on the sheet."""

    sales: int | None = ABSENT
    orders: int | None = ABSENT
    loyalty: int | None = ABSENT
    avg_check: int | None = ABSENT
    fill_rate: int | None = ABSENT
    productivity: int | None = ABSENT
    delivery_time: int | None = ABSENT

    def start(self, section: str) -> int | None:
        return getattr(self, section)

    def found(self) -> dict[str, int]:
        """Sections present on the sheet mapped to their start column."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not ABSENT}


def find_header_row(rows: Sequence[Sequence[CellValue]], scan_limit: int = 20) -> int | None:
    """Index of the first row within scan_limit whose first cell is the header marker."""
    for i, row in enumerate(rows[:scan_limit]):
        if row and cell_text(row[0]).strip() == HEADER_MARKER:
            return i
    return None


def _match_section(label: str) -> str | None:
    if label == SALES_LABEL:
        return "sales"
    for section, pattern in SECTION_PATTERNS:
        if pattern in label:
            return section
    return None


def detect_sections(header_row: Sequence[CellValue]) -> SectionLayout:
    """Map section labels on the header row to their first column.

    Each cell matches at most one section; the first column carrying a
    section's label wins.
    """
    starts: dict[str, int] = {}
    for col, value in enumerate(header_row):
        label = cell_text(value).strip().lower()
        if not label:
            continue
        section = _match_section(label)
        if section is not None and section not in starts:
            starts[section] = col
    return SectionLayout(**starts)


def resolve_productivity_start(
    rows: Sequence[Sequence[CellValue]],
    header_index: int,
    section_col: int | None,
    window: int = 5,
) -> int | None:
    """Find the real first productivity column.

    The merged "Производительность" label can start over the last fill-rate
    sub-column ("Порции"). The sub-header row below names the plan column,
    so look for "план" in up to `window` columns from the detected start and
    fall back to the detected start when there is none.
    """
    if section_col is ABSENT:
        return ABSENT
    if header_index + 1 >= len(rows):
        return section_col
    sub_row = rows[header_index + 1]
    for col in range(section_col, min(section_col + window, len(sub_row))):
        if PLAN_MARKER in cell_text(sub_row[col]).strip().lower():
            return col
    return section_col


def build_layout(rows: Sequence[Sequence[CellValue]], header_index: int) -> SectionLayout:
    """Detect sections on the header row and settle the productivity start."""
    layout = detect_sections(rows[header_index])
    productivity = resolve_productivity_start(rows, header_index, layout.productivity)
    if productivity == layout.productivity:
        return layout
    return SectionLayout(**{**layout.found(), "productivity": productivity})
