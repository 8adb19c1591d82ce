from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date

"""ParsedRow model: one calendar day of one location's report sheet.

Every metric is always present; sections missing from the sheet leave
their metrics at zero.
"""

__all__ = [
    "METRIC_FIELDS",
    "ParsedRow",
]


@dataclass(frozen=True)
class ParsedRow:
    sheet_name: str  # location name
    row_number: int  # 1-based worksheet row
    date: date

    # Sales (day and month to date)
    sales_plan: float = 0
    sales_fact: float = 0
    discounts: float = 0
    sales_with_discounts: float = 0
    discount_percent: float = 0
    yandex_food: float = 0
    sales_deviation: float = 0
    month_sales_plan: float = 0
    month_sales_fact: float = 0
    month_sales_deviation: float = 0
    month_sales_deviation_rub: float = 0

    # Orders
    orders_plan: float = 0
    orders_fact: int = 0
    orders_deviation: float = 0

    # Loyalty cards
    loyalty_plan: float = 0
    loyalty_fact: int = 0
    loyalty_penetration: float = 0
    loyalty_deviation: float = 0

    # Average check
    avg_check_plan: float = 0
    avg_check_fact: float = 0
    avg_check_deviation: float = 0

    # Fill rate
    fill_rate_plan: float = 0
    fill_rate_fact: float = 0
    avg_dishes: float = 0
    avg_drinks: float = 0
    portions: float = 0

    # Productivity
    productivity_plan: float = 0
    hours_worked: float = 0
    productivity_fact: float = 0

    order_delivery_time: int = 0  # seconds

    def metrics(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in METRIC_FIELDS}


METRIC_FIELDS: tuple[str, ...] = tuple(
    f.name for f in fields(ParsedRow) if f.name not in ("sheet_name", "row_number", "date")
)
