"""
app/validators/header_validator.py

Compares uploaded headers against the expected template headers.
"""

from __future__ import annotations

from typing import Sequence

from app.domain.employee_import import HeaderMismatch, HeaderValidation
from app.mappers.header_mapper import normalize_header


def _first_original(headers: Sequence[str]) -> dict[str, str]:
    originals: dict[str, str] = {}
    for header in headers:
        originals.setdefault(normalize_header(header), header)
    return originals


def validate_headers(expected: Sequence[str], actual: Sequence[str]) -> HeaderValidation:
    """
    Report missing, extra and out-of-order headers.

    Keys are compared after normalization; the report carries the original
    header text. Order is checked index by index up to the shorter list.
    """

    expected_keys = [normalize_header(header) for header in expected]
    actual_keys = [normalize_header(header) for header in actual]
    expected_set = set(expected_keys)
    actual_set = set(actual_keys)
    expected_originals = _first_original(expected)
    actual_originals = _first_original(actual)

    missing = tuple(expected_originals[key] for key in expected_keys if key not in actual_set)
    extra = tuple(actual_originals[key] for key in actual_keys if key not in expected_set)

    order_mismatch = tuple(
        HeaderMismatch(index=index, expected=expected[index], actual=actual[index])
        for index in range(min(len(expected_keys), len(actual_keys)))
        if expected_keys[index] != actual_keys[index]
    )

    return HeaderValidation(missing=missing, extra=extra, order_mismatch=order_mismatch)
