"""
app/parsers package marker.
"""

from app.parsers.spreadsheet_reader import ParsedSheet, read_spreadsheet

__all__ = ["ParsedSheet", "read_spreadsheet"]
