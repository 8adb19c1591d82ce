from __future__ import annotations

import math
from datetime import date
from typing import Union

from openpyxl.utils.datetime import from_excel

"""Cell value coercion helpers.

Raw cell values handed over by the decoder are one of three kinds:
empty (None), number (int/float) or text (str). Every numeric read in the
parser goes through to_number(); nothing else inspects raw cells for numbers.
"""

__all__ = [
    "CellValue",
    "REF_ERROR_MARKER",
    "cell_text",
    "excel_serial_to_date",
    "is_number",
    "round_half_up",
    "to_number",
]

CellValue = Union[None, int, float, str]

# Broken formula references show up as "#REF!" text once the workbook is cached
REF_ERROR_MARKER = "#REF"


def is_number(value: CellValue) -> bool:
    """True for int/float cell values (bool is not a number here)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value: CellValue) -> float:
    """Tolerant numeric coercion.

    None, empty text and anything carrying the reference-error marker become 0.
    Text is parsed as a decimal number after trimming; unparseable text and
    non-finite results also become 0. Numbers pass through unchanged.
    """
    if value is None or value == "":
        return 0
    if REF_ERROR_MARKER in str(value):
        return 0
    if isinstance(value, bool):
        return int(value)
    if is_number(value):
        return 0 if math.isnan(value) else value
    text = str(value).strip()
    if not text:
        return 0
    # float() accepts digit separators, spreadsheet text never means them
    if "_" in text:
        return 0
    try:
        number = float(text)
    except ValueError:
        return 0
    if not math.isfinite(number):
        return 0
    return number


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards +infinity."""
    return math.floor(value + 0.5)


def cell_text(value: CellValue) -> str:
    """Text of a cell the way the layout detectors compare it.

    Empty and falsy cells (None, 0, "", False) read as "". True reads "true"
    and integral floats drop the trailing ".0" so that a numeric 5.0 reads "5".
    """
    if not value:
        return ""
    if value is True:
        return "true"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def excel_serial_to_date(serial: float) -> date:
    """Convert an Excel serial day number to a calendar date.

    Uses the 1900 date system including its phantom 1900-02-29, so serial 1
    is 1900-01-01 and serials from 61 on count from 1899-12-30. The time of
    day part of the serial is discarded.

    Raises:
        ValueError: serial is outside the representable date range
    """
    day = math.floor(serial)
    if day < 1:
        # from_excel() answers a time of day for the 0 serial
        raise ValueError(f"serial out of range: {serial}")
    try:
        return from_excel(day).date()
    except OverflowError as e:
        raise ValueError(f"serial out of range: {serial}") from e
