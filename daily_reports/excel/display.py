from __future__ import annotations

import re

from .coerce import CellValue, round_half_up

"""Display text of numeric cells.

Spreadsheet software keeps times as day fractions and only the number format
turns them into the "27:20" people read. The decoder keeps the format string
of every numeric cell and this module renders the text for the time and
duration layouts (h, m, s tokens, bracketed elapsed units, AM/PM). Any other
format, dates included, renders as a General number.
"""

__all__ = [
    "display_text",
    "general_text",
    "is_time_format",
]

SECONDS_PER_DAY = 86400

_ELAPSED_RE = re.compile(r"^\[(h+|m+|s+)\]$", re.IGNORECASE)


def general_text(value: float) -> str:
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{value:.10g}"
    return str(value)


def _tokenize(fmt: str) -> list[tuple[str, str]]:
    """Split a single format section into (kind, text) tokens.

    kinds: "lit" quoted or escaped literal, "char" bare character,
    "unit" h/m/s run, "elapsed" bracketed unit, "ampm".
    """
    tokens: list[tuple[str, str]] = []
    i = 0
    while i < len(fmt):
        ch = fmt[i]
        if ch == '"':
            end = fmt.find('"', i + 1)
            if end == -1:
                end = len(fmt)
            tokens.append(("lit", fmt[i + 1 : end]))
            i = end + 1
            continue
        if ch == "\\" and i + 1 < len(fmt):
            tokens.append(("lit", fmt[i + 1]))
            i += 2
            continue
        if ch in "_*" and i + 1 < len(fmt):
            # padding / fill directives take the next character
            i += 2
            continue
        if ch == "[":
            end = fmt.find("]", i)
            if end == -1:
                break
            bracket = fmt[i : end + 1]
            if _ELAPSED_RE.match(bracket):
                tokens.append(("elapsed", bracket[1:-1].lower()))
            # colors, conditions and locale tags render nothing
            i = end + 1
            continue
        if fmt[i : i + 5].upper() == "AM/PM":
            tokens.append(("ampm", ""))
            i += 5
            continue
        lower = ch.lower()
        if lower in "hms":
            j = i
            while j < len(fmt) and fmt[j].lower() == lower:
                j += 1
            tokens.append(("unit", fmt[i:j].lower()))
            i = j
            continue
        tokens.append(("char", ch))
        i += 1
    return tokens


def is_time_format(number_format: str | None) -> bool:
    """True when the first format section lays out a time or a duration."""
    if not number_format:
        return False
    tokens = _tokenize(number_format.split(";")[0])
    if any(kind == "char" and text.lower() in "yd" for kind, text in tokens):
        return False
    return any(kind in ("unit", "elapsed") for kind, _ in tokens)


def _render_time(value: float, tokens: list[tuple[str, str]]) -> str:
    total = round_half_up(value * SECONDS_PER_DAY)
    elapsed = {text[0] for kind, text in tokens if kind == "elapsed"}
    has_hours = "h" in elapsed or any(kind == "unit" and text[0] == "h" for kind, text in tokens)
    has_minutes = "m" in elapsed or any(kind == "unit" and text[0] == "m" for kind, text in tokens)
    twelve_hour = any(kind == "ampm" for kind, _ in tokens)

    parts: list[str] = []
    for kind, text in tokens:
        if kind in ("lit", "char"):
            parts.append(text)
            continue
        if kind == "ampm":
            parts.append("PM" if (total // 3600) % 24 >= 12 else "AM")
            continue
        unit = text[0]
        width = 2 if len(text) >= 2 else 1
        if unit == "h":
            number = total // 3600
            if kind == "unit":
                number %= 24
                if twelve_hour:
                    number = number % 12 or 12
        elif unit == "m":
            number = total // 60
            if has_hours or kind == "unit":
                number %= 60
        else:
            number = total
            if has_hours or has_minutes or kind == "unit":
                number %= 60
        parts.append(str(number).zfill(width))
    return "".join(parts)


def display_text(value: CellValue, number_format: str | None = None) -> str:
    """Render the text a spreadsheet shows for a raw cell value."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if value >= 0 and is_time_format(number_format):
        return _render_time(value, _tokenize(number_format.split(";")[0]))
    return general_text(value)
