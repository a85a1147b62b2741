"""
app/normalizers/flag_normalizer.py

Single-character coercion for flag-like employee fields.
"""

from __future__ import annotations

from typing import Any

BOOLEAN_FLAG_FIELDS: frozenset[str] = frozenset(
    {
        "insurance_endorsement",
        "insurance_owlexa",
        "insurance_fpg",
        "blacklist_mti",
        "blacklist_imip",
    }
)

TRUTHY_TOKENS: frozenset[str] = frozenset({"y", "yes", "true", "1"})


def is_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    return str(value).strip().lower() in TRUTHY_TOKENS


def normalize_flag(field: str, value: Any) -> str | None:
    """
    Coerce a cell to the one-character form stored for ``field``.

    Boolean flags become ``Y``/``N``, gender becomes ``M``/``F`` (or its
    first character), anything else its first character upper-cased.
    Blank input gives None.
    """

    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None

    if field in BOOLEAN_FLAG_FIELDS:
        return "Y" if is_truthy(value) else "N"

    text = str(value).strip()
    if field == "gender":
        lowered = text.lower()
        if lowered.startswith("m"):
            return "M"
        if lowered.startswith("f"):
            return "F"
    return text[0].upper()
