"""
app/services/template_workbook.py

Builds the downloadable ``.xlsx`` upload template for a profile.
"""

from __future__ import annotations

import io
import re
from datetime import date
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font

from app.domain.employee_import import TemplateDefinition
from app.domain.employee_record import DATE_FIELDS
from app.mappers.header_mapper import HeaderMapping, sanitize_header_text
from app.normalizers.date_normalizer import parse_date
from app.services.template_resolver import ColumnEnumConfig

TEMPLATE_SHEET_TITLE = "Template"
READONLY_SUFFIX = " (readonly)"
DATE_NUMBER_FORMAT = "DD/MM/YYYY"
FALLBACK_EXAMPLE_DATE = date(2025, 1, 31)
MIN_COLUMN_WIDTH = 15

_PLACE_OF_BIRTH_PATTERN = re.compile(r"\bplace\s+of\s+birth\b", re.IGNORECASE)
_DATE_WORD_PATTERN = re.compile(r"\b(date|dob)\b", re.IGNORECASE)


def is_date_header(header: str, mapping: HeaderMapping) -> bool:
    """
    A column is a date when it maps to a date field or its label says "date"/"dob".
    """

    field_name = mapping.field_for(header)
    if field_name in DATE_FIELDS:
        return True
    clean = sanitize_header_text(header)
    if _PLACE_OF_BIRTH_PATTERN.search(clean):
        return False
    return bool(_DATE_WORD_PATTERN.search(clean))


def _example_date(example: Any) -> date:
    if isinstance(example, str) and not example.strip():
        return FALLBACK_EXAMPLE_DATE
    parsed = parse_date(example)
    return parsed or FALLBACK_EXAMPLE_DATE


def _example_row(
    definition: TemplateDefinition,
    enums: ColumnEnumConfig,
    mapping: HeaderMapping,
) -> list[Any]:
    examples: list[Any] = list(definition.examples)
    if len(examples) != len(definition.headers):
        examples = [""] * len(definition.headers)

    for index, header in enumerate(definition.headers):
        if header in definition.computed:
            examples[index] = ""
            continue

        field_name = mapping.field_for(header)
        if field_name is not None:
            options = enums.options_for(field_name)
            if options:
                examples[index] = f"{options[0]} (Dropdown: {', '.join(options)})"
            if field_name == "gender":
                examples[index] = "M"
            if enums.is_checklist(field_name):
                examples[index] = "0 (0,1)"

        if is_date_header(header, mapping):
            examples[index] = _example_date(examples[index])

    return examples


def build_template_workbook(
    definition: TemplateDefinition,
    enums: ColumnEnumConfig,
    mapping: HeaderMapping | None = None,
) -> bytes:
    """
    Render a one-sheet workbook: bold header row plus one example row.

    Computed headers are suffixed " (readonly)"; date columns carry a
    ``DD/MM/YYYY`` number format.
    """

    header_mapping = mapping or HeaderMapping()
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = TEMPLATE_SHEET_TITLE

    labels = [
        f"{header}{READONLY_SUFFIX}" if header in definition.computed else header
        for header in definition.headers
    ]
    worksheet.append(labels)
    for cell in worksheet[1]:
        cell.font = Font(bold=True)
        cell.alignment = Alignment(vertical="center")

    worksheet.append(_example_row(definition, enums, header_mapping))

    for index, header in enumerate(definition.headers, start=1):
        column = worksheet.cell(row=1, column=index).column_letter
        worksheet.column_dimensions[column].width = max(len(labels[index - 1]), MIN_COLUMN_WIDTH)
        if is_date_header(header, header_mapping):
            worksheet.cell(row=2, column=index).number_format = DATE_NUMBER_FORMAT

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
