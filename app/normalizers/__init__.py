"""
app/normalizers package marker.
"""

from app.normalizers.date_normalizer import parse_date
from app.normalizers.flag_normalizer import BOOLEAN_FLAG_FIELDS, normalize_flag
from app.normalizers.value_normalizer import is_blank, normalize_integer, normalize_text

__all__ = [
    "BOOLEAN_FLAG_FIELDS",
    "is_blank",
    "normalize_flag",
    "normalize_integer",
    "normalize_text",
    "parse_date",
]
