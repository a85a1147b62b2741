"""
app/repositories/column_mapping_repository.py

Read access to the external column-mapping definition that describes which
columns each import profile expects.
"""

from __future__ import annotations

import csv
import hashlib
import io
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger(__name__)

PREFERRED_SHEET_NAME = "Column Name"
SHEET_HEADER_MARKERS: tuple[str, ...] = ("column name", "excel header", "display label")


class ColumnMappingSourceError(RuntimeError):
    """
    Raised when the mapping definition is missing or cannot be parsed.
    """


@dataclass(frozen=True)
class ColumnMappingFingerprint:
    source: str
    sha256: str
    updated_at: datetime


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split()).lower()


def _rows_to_dicts(raw_rows: list[tuple[Any, ...]]) -> list[dict[str, Any]]:
    if not raw_rows:
        return []
    headers = [str(value).strip() if value is not None else "" for value in raw_rows[0]]
    records: list[dict[str, Any]] = []
    for raw in raw_rows[1:]:
        record = {
            header: (raw[index] if index < len(raw) else None)
            for index, header in enumerate(headers)
            if header
        }
        if any(value not in (None, "") for value in record.values()):
            records.append(record)
    return records


class ColumnMappingRepository:
    """
    Loads the mapping definition from an ``.xlsx`` or ``.csv`` file on disk.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load_rows(self) -> list[dict[str, Any]]:
        """
        Return the definition rows keyed by the definition's own column labels.
        """

        if not self.exists():
            raise ColumnMappingSourceError(f"Column mapping definition not found: {self._path.name}")

        content = self._path.read_bytes()
        if self._path.suffix.lower() == ".csv":
            return self._load_csv(content)
        return self._load_workbook(content)

    def fingerprint(self) -> ColumnMappingFingerprint:
        if not self.exists():
            raise ColumnMappingSourceError(f"Column mapping definition not found: {self._path.name}")

        digest = hashlib.sha256(self._path.read_bytes()).hexdigest()
        modified = datetime.fromtimestamp(self._path.stat().st_mtime, tz=timezone.utc)
        return ColumnMappingFingerprint(source=self._path.name, sha256=digest, updated_at=modified)

    def _load_csv(self, content: bytes) -> list[dict[str, Any]]:
        try:
            reader = csv.reader(io.StringIO(content.decode("utf-8-sig")))
            return _rows_to_dicts([tuple(row) for row in reader])
        except (UnicodeDecodeError, csv.Error) as exc:
            raise ColumnMappingSourceError(f"Column mapping definition is unreadable: {exc}") from exc

    def _load_workbook(self, content: bytes) -> list[dict[str, Any]]:
        try:
            workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except (BadZipFile, InvalidFileException, KeyError, OSError) as exc:
            raise ColumnMappingSourceError(f"Column mapping definition is unreadable: {exc}") from exc

        try:
            sheet_rows = self._select_sheet_rows(workbook)
        finally:
            workbook.close()
        return _rows_to_dicts(sheet_rows)

    def _select_sheet_rows(self, workbook: Any) -> list[tuple[Any, ...]]:
        """
        Prefer the sheet named "Column Name", then the first sheet whose header
        row names a column label, then the first sheet.
        """

        if PREFERRED_SHEET_NAME in workbook.sheetnames:
            return list(workbook[PREFERRED_SHEET_NAME].iter_rows(values_only=True))

        first_rows: list[tuple[Any, ...]] | None = None
        for worksheet in workbook.worksheets:
            rows = list(worksheet.iter_rows(values_only=True))
            if first_rows is None:
                first_rows = rows
            header_text = " ".join(_cell_text(value) for value in (rows[0] if rows else ()))
            if any(marker in header_text for marker in SHEET_HEADER_MARKERS):
                logger.debug("Using sheet '%s' as column mapping definition", worksheet.title)
                return rows
        return first_rows or []
