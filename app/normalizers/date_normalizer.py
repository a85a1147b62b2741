"""
app/normalizers/date_normalizer.py

Multi-format date parsing for spreadsheet cells.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any

# Spreadsheet serial day 25569 is 1970-01-01.
SERIAL_EPOCH = date(1970, 1, 1)
SERIAL_EPOCH_OFFSET = 25569

FALLBACK_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
    "%d-%m-%Y %H:%M",
    "%d %B %Y",
    "%B %d %Y",
)

MONTHS: dict[str, int] = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

_ISO_PATTERN = re.compile(r"^(\d{4})[/-](\d{1,2})[/-](\d{1,2})$")
_DAY_FIRST_PATTERN = re.compile(r"^(\d{1,2})[-/. ](\d{1,2})[-/. ](\d{2,4})$")
_MONTH_FIRST_PATTERN = re.compile(r"^(\d{1,2})[-/. ](\d{1,2})[-/. ](\d{4})$")
_DAY_MONTH_NAME_PATTERN = re.compile(r"^(\d{1,2})\s+([A-Za-z]+)\s+(\d{2,4})$")
_MONTH_NAME_DAY_PATTERN = re.compile(r"^([A-Za-z]+)\s+(\d{1,2}),?\s+(\d{2,4})$")
_DIGITS_PATTERN = re.compile(r"^\d+(\.\d+)?$")


def serial_to_date(serial: float) -> date | None:
    """
    Convert a spreadsheet serial day number to a date, dropping the time part.
    """

    try:
        return SERIAL_EPOCH + timedelta(days=int(serial) - SERIAL_EPOCH_OFFSET)
    except (OverflowError, ValueError):
        return None


def date_to_serial(value: date) -> int:
    return (value - SERIAL_EPOCH).days + SERIAL_EPOCH_OFFSET


def _expand_year(year: int) -> int:
    if year < 100:
        return 2000 + year if year < 50 else 1900 + year
    return year


def _build_date(year: int, month: int, day: int) -> date | None:
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_text(text: str) -> date | None:
    match = _ISO_PATTERN.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _build_date(year, month, day)

    match = _DAY_FIRST_PATTERN.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        parsed = _build_date(_expand_year(year), month, day)
        if parsed is not None:
            return parsed

    match = _MONTH_FIRST_PATTERN.match(text)
    if match:
        month, day, year = (int(part) for part in match.groups())
        parsed = _build_date(year, month, day)
        if parsed is not None:
            return parsed

    match = _DAY_MONTH_NAME_PATTERN.match(text)
    if match:
        month = MONTHS.get(match.group(2).lower())
        if month is not None:
            return _build_date(_expand_year(int(match.group(3))), month, int(match.group(1)))

    match = _MONTH_NAME_DAY_PATTERN.match(text)
    if match:
        month = MONTHS.get(match.group(1).lower())
        if month is not None:
            return _build_date(_expand_year(int(match.group(3))), month, int(match.group(2)))

    return _parse_fallback(text)


def _parse_fallback(text: str) -> date | None:
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass

    for date_format in FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(text, date_format).date()
        except ValueError:
            continue
    return None


def parse_date(value: Any) -> date | None:
    """
    Parse a cell into a calendar date.

    Accepts spreadsheet serial numbers (numbers or digit-only strings), native
    date/datetime values and common textual formats, tried in this order:
    ``YYYY-MM-DD``, ``DD/MM/YYYY`` (two-digit years pivot at 50),
    ``MM/DD/YYYY``, ``DD Mon YYYY``, ``Mon DD, YYYY``, then a generic
    fallback. Returns None for anything else; never raises.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        if value != value:
            return None
        return serial_to_date(value)

    text = str(value).strip()
    if not text:
        return None
    if _DIGITS_PATTERN.match(text):
        return serial_to_date(float(text))
    return _parse_text(text)
