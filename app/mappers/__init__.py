"""
app/mappers package marker.
"""

from app.mappers.header_mapper import (
    BASE_HEADER_SYNONYMS,
    HeaderMapping,
    MappedHeader,
    UnmappedHeader,
    normalize_header,
    sanitize_header_text,
)

__all__ = [
    "BASE_HEADER_SYNONYMS",
    "HeaderMapping",
    "MappedHeader",
    "UnmappedHeader",
    "normalize_header",
    "sanitize_header_text",
]
