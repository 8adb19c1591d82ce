from __future__ import annotations

import pytest

from daily_reports.excel.display import display_text, general_text, is_time_format


@pytest.mark.parametrize(
    "fmt, expected",
    [
        ("mm:ss", True),
        ("[mm]:ss", True),
        ("h:mm:ss", True),
        ("[h]:mm:ss", True),
        ("h:mm AM/PM", True),
        ("dd.mm.yyyy", False),
        ("yyyy-mm-dd h:mm", False),
        ("0.00", False),
        ("General", False),
        (None, False),
        ('"мин" 0', False),
    ],
)
def test_is_time_format(fmt, expected):
    assert is_time_format(fmt) is expected


@pytest.mark.parametrize(
    "value, fmt, expected",
    [
        (191 / 86400, "mm:ss", "03:11"),
        (1640 / 86400, "mm:ss", "27:20"),
        (1640 / 86400, "[mm]:ss", "27:20"),
        (3725 / 86400, "[mm]:ss", "62:05"),
        (3725 / 86400, "h:mm:ss", "1:02:05"),
        (0.5, "h:mm AM/PM", "12:00 PM"),
        (45292, "dd.mm.yyyy", "45292"),
    ],
)
def test_display_text_time_formats(value, fmt, expected):
    assert display_text(value, fmt) == expected


def test_display_text_plain_values():
    assert display_text(None) == ""
    assert display_text("3:11") == "3:11"
    assert display_text(191) == "191"
    assert display_text(0.1) == "0.1"
    assert display_text(2.0, "0.00") == "2"


def test_display_text_negative_time_falls_back_to_number():
    assert display_text(-0.5, "mm:ss") == "-0.5"


def test_general_text():
    assert general_text(3.0) == "3"
    assert general_text(1 / 3) == "0.3333333333"
    assert general_text(12) == "12"
