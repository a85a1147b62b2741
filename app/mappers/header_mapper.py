"""
app/mappers/header_mapper.py

Maps human-authored spreadsheet headers onto internal employee fields.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from app.domain.employee_import import ImportRow
from app.domain.employee_record import EMPLOYEE_FIELDS
from app.normalizers.value_normalizer import is_blank

logger = logging.getLogger(__name__)

_PARENTHETICAL_PATTERN = re.compile(r"\s*\([^)]*\)\s*")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")

BASE_HEADER_SYNONYMS: dict[str, str] = {
    # core
    "emp. id": "employee_id",
    "emp id": "employee_id",
    "employee id": "employee_id",
    "employee_id": "employee_id",
    "imip id": "imip_id",
    "employee name": "name",
    "name": "name",
    "gender": "gender",
    "place of birth": "place_of_birth",
    "date of birth": "date_of_birth",
    "dob": "date_of_birth",
    "age": "age",
    "marital status": "marital_status",
    "tax status": "tax_status",
    "religion": "religion",
    "nationality": "nationality",
    "blood type": "blood_type",
    "kartu keluarga no": "kartu_keluarga_no",
    "kartu keluarga": "kartu_keluarga_no",
    "kk no": "kartu_keluarga_no",
    "ktp no": "ktp_no",
    "npwp": "npwp",
    "education": "education",
    # insurance
    "insurance": "insurance_endorsement",
    "insurance (card)": "insurance_endorsement",
    "insurance endorsement": "insurance_endorsement",
    "insurance owlexa": "insurance_owlexa",
    "owlexa": "insurance_owlexa",
    "insurance fpg": "insurance_fpg",
    "fpg": "insurance_fpg",
    "bpjs tk": "bpjs_tk",
    "bpjs tk no": "bpjs_tk",
    "bpjs kes": "bpjs_kes",
    "bpjs kes no": "bpjs_kes",
    "status bpjs kes": "status_bpjs_kes",
    "status bpjs kesehatan": "status_bpjs_kes",
    # contact
    "mobile phone": "phone_number",
    "phone number": "phone_number",
    "email": "email",
    "office email": "email",
    "ktp address": "address",
    "address": "address",
    "ktp city": "city",
    "city": "city",
    "emergency contact": "emergency_contact_name",
    "emergency contact name": "emergency_contact_name",
    "emergency contact phone": "emergency_contact_phone",
    "emergency phone": "emergency_contact_phone",
    "spouse name": "spouse_name",
    "spouse": "spouse_name",
    "child name 1": "child_name_1",
    "child name 2": "child_name_2",
    "child name 3": "child_name_3",
    "child 1": "child_name_1",
    "child 2": "child_name_2",
    "child 3": "child_name_3",
    # onboarding
    "poin of hire": "point_of_hire",
    "point of hire": "point_of_hire",
    "poh": "point_of_hire",
    "poin of origin": "point_of_origin",
    "point of origin": "point_of_origin",
    "schedule type": "schedule_type",
    "first join date (merdeka group)": "first_join_date_merdeka",
    "first join date merdeka group": "first_join_date_merdeka",
    "first join date merdeka": "first_join_date_merdeka",
    "transfer merdeka group": "transfer_merdeka",
    "transfer merdeka": "transfer_merdeka",
    "first join date": "first_join_date",
    "join date": "join_date",
    "employment status": "employment_status",
    "end contract": "end_contract",
    "years in service": "years_in_service",
    # employment
    "branch id": "company_office",
    "branch": "company_office",
    "company office": "company_office",
    "work location": "work_location",
    "division": "division",
    "department": "department",
    "section": "section",
    "direct report": "direct_report",
    "job tittle": "job_title",
    "job title": "job_title",
    "grade": "grade",
    "position grade": "position_grade",
    "group job tittle": "group_job_title",
    "group job title": "group_job_title",
    "terminated date": "terminated_date",
    "terminated type": "terminated_type",
    "terminated reason": "terminated_reason",
    "black list mti": "blacklist_mti",
    "blacklist mti": "blacklist_mti",
    "black list imip": "blacklist_imip",
    "blacklist imip": "blacklist_imip",
    "status": "status",
    # bank
    "bank name": "bank_name",
    "account name": "account_name",
    "account no": "account_no",
    "account number": "account_no",
    # travel
    "travel in": "travel_in",
    "travel out": "travel_out",
    "passport no": "passport_no",
    "passport": "passport_no",
    "kitas no": "kitas_no",
    "kitas": "kitas_no",
}

# Checked against the lower-cased raw header, before hints are stripped.
HEADER_HEURISTICS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\binsurance\b.*\bendor(s|se|sement|sment)\b"), "insurance_endorsement"),
    (re.compile(r"\bowlexa\b"), "insurance_owlexa"),
    (re.compile(r"\bfpg\b"), "insurance_fpg"),
    (re.compile(r"\bblack\b.*\bmti\b"), "blacklist_mti"),
    (re.compile(r"\bblack\b.*\bimip\b"), "blacklist_imip"),
)


def sanitize_header_text(header: Any) -> str:
    """
    Remove UI hints such as ``(Dropdown: ...)`` or ``(readonly)`` and collapse
    whitespace, keeping the original case.
    """

    if header is None:
        return ""
    cleaned = _PARENTHETICAL_PATTERN.sub(" ", str(header))
    return _WHITESPACE_PATTERN.sub(" ", cleaned).strip()


def normalize_header(header: Any) -> str:
    """
    Normalize a header for synonym lookup and header comparison.
    """

    return sanitize_header_text(header).lower()


def slugify_header(header: Any) -> str:
    return _SLUG_PATTERN.sub("_", normalize_header(header)).strip("_")


@dataclass(frozen=True)
class MappedHeader:
    field: str


@dataclass(frozen=True)
class UnmappedHeader:
    slug: str


HeaderResolution = MappedHeader | UnmappedHeader


def load_header_overrides(path: str | Path | None) -> dict[str, str]:
    """
    Read ``{"external header": "internal_field"}`` pairs from a JSON file.
    """

    if path is None:
        return {}
    override_path = Path(path)
    if not override_path.is_file():
        logger.warning("Header override file %s not found; using base synonyms only", override_path)
        return {}

    payload = json.loads(override_path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Header override file {override_path} must contain a JSON object.")
    return {str(key): str(value) for key, value in payload.items()}


class HeaderMapping:
    """
    Read-only lookup from normalized external headers to internal fields.
    """

    def __init__(self, overrides: Mapping[str, str] | None = None) -> None:
        table = dict(BASE_HEADER_SYNONYMS)
        for header, field_name in (overrides or {}).items():
            if field_name not in EMPLOYEE_FIELDS:
                raise ValueError(f"Header override targets unknown field '{field_name}'.")
            table[normalize_header(header)] = field_name
        self._table: dict[str, str] = table

    @classmethod
    def from_override_file(cls, path: str | Path | None) -> "HeaderMapping":
        return cls(load_header_overrides(path))

    def resolve(self, header: Any) -> HeaderResolution:
        raw = _WHITESPACE_PATTERN.sub(" ", str(header or "")).strip().lower()
        field_name = self._table.get(raw) or self._table.get(normalize_header(header))
        if field_name is not None:
            return MappedHeader(field=field_name)

        for pattern, heuristic_field in HEADER_HEURISTICS:
            if pattern.search(raw):
                return MappedHeader(field=heuristic_field)

        return UnmappedHeader(slug=slugify_header(header))

    def field_for(self, header: Any) -> str | None:
        resolution = self.resolve(header)
        if isinstance(resolution, MappedHeader):
            return resolution.field
        return None

    def map_row(self, row_number: int, raw_row: Mapping[str, Any]) -> ImportRow:
        """
        Split one raw ``header -> value`` row into mapped fields and extras.

        When two headers map to the same field the first non-blank value wins.
        """

        fields: dict[str, Any] = {}
        extras: dict[str, Any] = {}
        for header, value in raw_row.items():
            resolution = self.resolve(header)
            if isinstance(resolution, MappedHeader):
                if is_blank(fields.get(resolution.field)):
                    fields[resolution.field] = value
            else:
                extras[resolution.slug] = value
        return ImportRow(row_number=row_number, fields=fields, extras=extras)

    def log_unmapped(self, headers: list[str]) -> list[str]:
        """
        Log the slug fallback of every header with no internal field.
        """

        unmapped: list[str] = []
        for header in headers:
            resolution = self.resolve(header)
            if isinstance(resolution, UnmappedHeader):
                unmapped.append(header)
                logger.info("Header '%s' has no employee field; kept as '%s'", header, resolution.slug)
        return unmapped
