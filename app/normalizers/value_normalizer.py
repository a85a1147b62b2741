"""
app/normalizers/value_normalizer.py

Text and integer coercion for uploaded cell values.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def normalize_text(value: Any) -> str | None:
    """
    Render a cell as trimmed text; blank cells become None.

    Integral floats (spreadsheet ids such as ``12345.0``) lose the trailing
    ``.0`` and dates render as ISO strings.
    """

    if is_blank(value):
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def normalize_integer(value: Any) -> tuple[int | None, bool]:
    """
    Coerce a cell to int.

    Returns ``(value, ok)``: blank cells give ``(None, True)``; values that
    cannot be read as a whole number give ``(None, False)``.
    """

    if is_blank(value):
        return None, True
    if isinstance(value, bool):
        return None, False
    if isinstance(value, int):
        return value, True
    if isinstance(value, float):
        if value.is_integer():
            return int(value), True
        return None, False

    text = str(value).strip().replace(",", "")
    try:
        parsed = Decimal(text)
    except InvalidOperation:
        return None, False
    if not parsed.is_finite() or parsed != parsed.to_integral_value():
        return None, False
    return int(parsed), True
