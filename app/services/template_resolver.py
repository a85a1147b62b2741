"""
app/services/template_resolver.py

Turns the column-mapping definition into per-profile upload templates.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

from app.domain.employee_import import Audience, TemplateDefinition, parse_profile, profile_audience
from app.mappers.header_mapper import normalize_header, sanitize_header_text
from app.normalizers.flag_normalizer import BOOLEAN_FLAG_FIELDS, is_truthy
from app.repositories.column_mapping_repository import ColumnMappingRepository, ColumnMappingSourceError

logger = logging.getLogger(__name__)

COLUMN_LABEL_KEYS: tuple[str, ...] = ("Column Name", "column_name", "Column", "Excel Header", "Display Label")
NOTES_KEYS: tuple[str, ...] = ("Notes", "Note")
COMPUTED_KEYS: tuple[str, ...] = ("Computed",)
EXAMPLE_KEYS: tuple[str, ...] = ("Data Example", "Example", "Sample")
DATA_TYPE_KEYS: tuple[str, ...] = ("Data Type", "Type")

AUDIENCE_FLAG_KEYS: dict[str, tuple[str, ...]] = {
    Audience.INDONESIA: ("Indonesia",),
    Audience.EXPATRIATE: ("Expat", "Expatriate"),
}

EMPLOYEE_ID_EXAMPLE = "MTI123456"
DATE_EXAMPLE = "31/01/2025"

_QUOTE_PATTERN = re.compile(r"^['\"]|['\"]$")


def _pick_value(row: Mapping[str, Any], candidates: Sequence[str]) -> Any:
    """
    Case-insensitive exact key match first, then substring match.
    """

    keys = list(row.keys())
    for candidate in candidates:
        wanted = normalize_header(candidate)
        for key in keys:
            if _normalize_key(key) == wanted:
                return row[key]
    for key in keys:
        normalized = _normalize_key(key)
        if any(normalize_header(candidate) in normalized for candidate in candidates):
            return row[key]
    return None


def _normalize_key(value: Any) -> str:
    return " ".join(str(value).split()).lower()


def _has_column(row: Mapping[str, Any], candidates: Sequence[str]) -> bool:
    wanted = {normalize_header(candidate) for candidate in candidates}
    return any(_normalize_key(key) in wanted for key in row.keys())


def _header_example(header: str) -> str | None:
    name = _normalize_key(header)
    if "emp. id" in name or "employee id" in name or "imip id" in name:
        return EMPLOYEE_ID_EXAMPLE
    if "email" in name:
        return "sample@example.com"
    if "phone" in name or "mobile" in name:
        return "+62 812-3456-7890"
    if "gender" in name:
        return "Male"
    if "place of birth" in name:
        return "Jakarta"
    if "date of birth" in name or "dob" in name or "date" in name:
        return DATE_EXAMPLE
    if "age" in name:
        return "30"
    if "address" in name:
        return "Jl. Contoh No. 123, Jakarta"
    return None


def _type_example(data_type: Any) -> str | None:
    kind = _normalize_key(data_type or "")
    if not kind:
        return None
    if "email" in kind:
        return "sample@example.com"
    if "phone" in kind or "tel" in kind:
        return "+62 812-3456-7890"
    if "date" in kind or "dob" in kind:
        return DATE_EXAMPLE
    if "bool" in kind:
        return "Yes"
    if "int" in kind or "number" in kind or "numeric" in kind:
        return "12345"
    if "id" in kind or "code" in kind:
        return EMPLOYEE_ID_EXAMPLE
    return "Sample Text"


def sanitize_example(value: Any) -> str:
    if value is None:
        return ""
    text = sanitize_header_text(str(value).strip())
    return _QUOTE_PATTERN.sub("", text)


@dataclass(frozen=True)
class ColumnEnumConfig:
    """
    Allowed values per internal field, used for template dropdown guidance.

    Built per template request; nothing here is shared between requests.
    """

    options: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    checklist_fields: frozenset[str] = BOOLEAN_FLAG_FIELDS

    def options_for(self, field_name: str) -> tuple[str, ...]:
        return tuple(self.options.get(field_name, ()))

    def is_checklist(self, field_name: str) -> bool:
        return field_name in self.checklist_fields


def load_column_enums(
    path: str | Path | None,
    *,
    departments: Sequence[str] = (),
) -> ColumnEnumConfig:
    """
    Build the enum config from the JSON file plus departments read from the store.
    """

    options: dict[str, tuple[str, ...]] = {}
    checklist = set(BOOLEAN_FLAG_FIELDS)

    if path is not None and Path(path).is_file():
        try:
            payload = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Failed to load column enums from %s: %s", path, exc)
            payload = {}
        if isinstance(payload, dict):
            for key, values in payload.items():
                if not isinstance(values, list):
                    continue
                if key == "checklist_fields":
                    checklist.update(str(value) for value in values)
                    continue
                options[str(key)] = tuple(str(value) for value in values if value not in (None, ""))

    cleaned_departments = tuple(department for department in departments if department)
    if cleaned_departments:
        options["department"] = cleaned_departments

    return ColumnEnumConfig(options=options, checklist_fields=frozenset(checklist))


class TemplateResolver:
    """
    Resolves the expected headers, computed subset and examples of a profile.
    """

    def __init__(self, repository: ColumnMappingRepository) -> None:
        self._repository = repository

    @property
    def repository(self) -> ColumnMappingRepository:
        return self._repository

    def resolve(self, profile: str) -> TemplateDefinition:
        """
        Return the template of one profile, or an unavailable definition when
        the mapping source cannot be read.
        """

        profile_key = parse_profile(profile)
        try:
            rows = self._repository.load_rows()
        except ColumnMappingSourceError as exc:
            logger.warning("Template for profile '%s' unavailable: %s", profile_key, exc)
            return TemplateDefinition(profile=profile_key, available=False, message=str(exc))

        include = self._audience_filter(profile_key)
        headers: list[str] = []
        computed: set[str] = set()
        examples: list[str] = []

        for row in rows:
            label = _pick_value(row, COLUMN_LABEL_KEYS)
            if label in (None, ""):
                continue
            header = str(label).strip()
            is_computed = self._is_computed(row)
            if is_computed:
                computed.add(header)
            if not include(row):
                continue
            headers.append(header)
            examples.append("" if is_computed else self._example_for(header, row))

        return TemplateDefinition(
            profile=profile_key,
            headers=tuple(headers),
            computed=frozenset(computed),
            examples=tuple(examples),
            available=True,
        )

    @staticmethod
    def _audience_filter(profile: str) -> Callable[[Mapping[str, Any]], bool]:
        flag_keys = AUDIENCE_FLAG_KEYS[profile_audience(profile)]

        def include(row: Mapping[str, Any]) -> bool:
            # A definition without the audience column applies to every profile.
            if not _has_column(row, flag_keys):
                return True
            for key in flag_keys:
                for row_key, value in row.items():
                    if _normalize_key(row_key) == normalize_header(key):
                        return is_truthy(value)
            return False

        return include

    @staticmethod
    def _is_computed(row: Mapping[str, Any]) -> bool:
        notes = _pick_value(row, NOTES_KEYS)
        if isinstance(notes, str):
            lowered = notes.lower()
            if "computed" in lowered or "derived" in lowered:
                return True
        return is_truthy(_pick_value(row, COMPUTED_KEYS))

    @staticmethod
    def _example_for(header: str, row: Mapping[str, Any]) -> str:
        name = _normalize_key(header)
        if "emp. id" in name or "employee id" in name:
            return EMPLOYEE_ID_EXAMPLE

        example = _pick_value(row, EXAMPLE_KEYS)
        if example in (None, ""):
            example = _header_example(header)
        if example in (None, ""):
            example = _type_example(_pick_value(row, DATA_TYPE_KEYS))
        return sanitize_example(example)
