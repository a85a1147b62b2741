"""
app/parsers/spreadsheet_reader.py

Reads the first sheet of an uploaded workbook (or a CSV file) into ordered
``header -> value`` rows.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.domain.errors import SpreadsheetFormatError
from app.normalizers.value_normalizer import is_blank

CSV_EXTENSIONS = (".csv",)
WORKBOOK_EXTENSIONS = (".xlsx", ".xlsm")


@dataclass(frozen=True)
class ParsedSheet:
    """
    Header row plus data rows keyed by header, with their sheet row numbers.
    """

    headers: tuple[str, ...]
    rows: tuple[tuple[int, dict[str, Any]], ...] = field(default_factory=tuple)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def _dedupe_headers(raw_headers: Sequence[Any]) -> list[tuple[int, str]]:
    seen: dict[str, int] = {}
    columns: list[tuple[int, str]] = []
    for index, raw in enumerate(raw_headers):
        if is_blank(raw):
            continue
        header = str(raw).strip()
        count = seen.get(header, 0) + 1
        seen[header] = count
        columns.append((index, header if count == 1 else f"{header}_{count}"))
    return columns


def _build_sheet(raw_rows: Iterable[Sequence[Any]]) -> ParsedSheet:
    iterator = iter(raw_rows)
    try:
        header_row = next(iterator)
    except StopIteration:
        return ParsedSheet(headers=())

    columns = _dedupe_headers(header_row)
    rows: list[tuple[int, dict[str, Any]]] = []
    for offset, raw_row in enumerate(iterator):
        row_number = offset + 2
        values = {
            header: raw_row[index] if index < len(raw_row) else None
            for index, header in columns
        }
        if all(is_blank(value) for value in values.values()):
            continue
        rows.append((row_number, values))

    return ParsedSheet(headers=tuple(header for _, header in columns), rows=tuple(rows))


def _read_workbook(content: bytes) -> ParsedSheet:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (BadZipFile, InvalidFileException, KeyError, OSError) as exc:
        raise SpreadsheetFormatError("Uploaded file is not a readable Excel workbook.") from exc

    try:
        if not workbook.worksheets:
            return ParsedSheet(headers=())
        worksheet = workbook.worksheets[0]
        return _build_sheet(worksheet.iter_rows(values_only=True))
    finally:
        workbook.close()


def _read_csv(content: bytes) -> ParsedSheet:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise SpreadsheetFormatError("CSV file must be UTF-8 encoded.") from exc

    try:
        return _build_sheet(csv.reader(io.StringIO(text)))
    except csv.Error as exc:
        raise SpreadsheetFormatError(f"CSV file could not be parsed: {exc}") from exc


def read_spreadsheet(content: bytes, filename: str | None = None) -> ParsedSheet:
    """
    Parse upload bytes. CSV is chosen by file extension; anything else is
    read as an Excel workbook.
    """

    name = (filename or "").strip().lower()
    if name.endswith(CSV_EXTENSIONS):
        return _read_csv(content)
    return _read_workbook(content)
