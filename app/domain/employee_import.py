"""
app/domain/employee_import.py

Domain values shared by the dry-run and commit import flows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.domain.errors import (
    InvalidRowTransitionError,
    UnknownDuplicatePolicyError,
    UnknownProfileError,
)
from app.normalizers.value_normalizer import normalize_text


class ImportProfile:
    INDONESIA_ACTIVE = "indonesia_active"
    INDONESIA_INACTIVE = "indonesia_inactive"
    EXPATRIATE_ACTIVE = "expatriate_active"
    EXPATRIATE_INACTIVE = "expatriate_inactive"


PROFILE_KEYS: tuple[str, ...] = (
    ImportProfile.INDONESIA_ACTIVE,
    ImportProfile.INDONESIA_INACTIVE,
    ImportProfile.EXPATRIATE_ACTIVE,
    ImportProfile.EXPATRIATE_INACTIVE,
)


class Audience:
    INDONESIA = "indonesia"
    EXPATRIATE = "expatriate"


# Active and inactive share the nationality-level audience flag of the
# mapping definition.
_PROFILE_AUDIENCE: dict[str, str] = {
    ImportProfile.INDONESIA_ACTIVE: Audience.INDONESIA,
    ImportProfile.INDONESIA_INACTIVE: Audience.INDONESIA,
    ImportProfile.EXPATRIATE_ACTIVE: Audience.EXPATRIATE,
    ImportProfile.EXPATRIATE_INACTIVE: Audience.EXPATRIATE,
}


class DuplicatePolicy:
    UPDATE = "update"
    SKIP = "skip"
    ERROR = "error"


DUPLICATE_POLICIES: tuple[str, ...] = (
    DuplicatePolicy.UPDATE,
    DuplicatePolicy.SKIP,
    DuplicatePolicy.ERROR,
)


class DuplicateAction:
    INSERT = "insert"
    UPDATE = "update"
    SKIP = "skip"
    REJECT = "reject"


class Severity:
    ERROR = "error"
    WARNING = "warning"


class ImportMode:
    DRY_RUN = "dry-run"
    COMMIT = "commit"


class RowState:
    PENDING = "pending"
    VALIDATING = "validating"
    CLEARED = "cleared"
    REJECTED = "rejected"
    COMMITTING = "committing"
    COMMITTED = "committed"
    FAILED = "failed"


_ROW_TRANSITIONS: dict[str, frozenset[str]] = {
    RowState.PENDING: frozenset({RowState.VALIDATING}),
    RowState.VALIDATING: frozenset({RowState.CLEARED, RowState.REJECTED}),
    RowState.CLEARED: frozenset({RowState.COMMITTING}),
    RowState.COMMITTING: frozenset({RowState.COMMITTED, RowState.FAILED}),
    RowState.REJECTED: frozenset(),
    RowState.COMMITTED: frozenset(),
    RowState.FAILED: frozenset(),
}

TERMINAL_ROW_STATES = frozenset({RowState.REJECTED, RowState.COMMITTED, RowState.FAILED})


def advance_row_state(current: str, target: str) -> str:
    """
    Return ``target`` when the lifecycle allows moving there from ``current``.
    """

    allowed = _ROW_TRANSITIONS.get(current)
    if allowed is None or target not in allowed:
        raise InvalidRowTransitionError(f"Row cannot move from {current!r} to {target!r}.")
    return target


def parse_profile(value: str | None) -> str:
    normalized = (value or "").strip().lower()
    if normalized not in PROFILE_KEYS:
        raise UnknownProfileError(f"Invalid profile. Use one of: {', '.join(PROFILE_KEYS)}")
    return normalized


def parse_duplicate_policy(value: str | None) -> str:
    normalized = (value or DuplicatePolicy.UPDATE).strip().lower() or DuplicatePolicy.UPDATE
    if normalized not in DUPLICATE_POLICIES:
        raise UnknownDuplicatePolicyError(
            f"Invalid onDuplicate policy. Use one of: {', '.join(DUPLICATE_POLICIES)}"
        )
    return normalized


def profile_audience(profile: str) -> str:
    return _PROFILE_AUDIENCE[parse_profile(profile)]


@dataclass(frozen=True)
class ImportRow:
    """
    One uploaded data row after header mapping.

    ``fields`` holds values whose header resolved to an internal field;
    ``extras`` holds slug-keyed values of headers that did not, and never
    reaches a sub-entity write.
    """

    row_number: int
    fields: dict[str, Any]
    extras: dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    @property
    def employee_id(self) -> str:
        return normalize_text(self.fields.get("employee_id")) or ""


@dataclass(frozen=True)
class RowDiagnostic:
    """
    One error or warning tied to a row, or to the batch when row_number is None.
    """

    message: str
    severity: str
    row_number: int | None = None
    column: str | None = None
    value: str | None = None

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def render(self) -> str:
        if self.row_number is None:
            return self.message
        return f"Row {self.row_number}: {self.message}"


@dataclass(frozen=True)
class HeaderMismatch:
    index: int
    expected: str
    actual: str


@dataclass(frozen=True)
class HeaderValidation:
    missing: tuple[str, ...] = ()
    extra: tuple[str, ...] = ()
    order_mismatch: tuple[HeaderMismatch, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not (self.missing or self.extra or self.order_mismatch)


@dataclass(frozen=True)
class TemplateDefinition:
    """
    Expected layout of an upload for one profile.
    """

    profile: str
    headers: tuple[str, ...] = ()
    computed: frozenset[str] = frozenset()
    examples: tuple[str, ...] = ()
    available: bool = True
    message: str | None = None

    @property
    def importable_headers(self) -> tuple[str, ...]:
        return tuple(header for header in self.headers if header not in self.computed)


@dataclass(frozen=True)
class RowOutcome:
    row_number: int
    employee_id: str
    action: str
    state: str


@dataclass(frozen=True)
class RunLogHandles:
    json_handle: str | None
    csv_handle: str | None


@dataclass(frozen=True)
class ImportRunResult:
    """
    Finalized outcome of one dry-run or commit request.
    """

    run_id: str
    mode: str
    profile: str
    duplicate_policy: str
    started_at: datetime
    finished_at: datetime
    total_rows: int
    processed: int
    skipped: int
    diagnostics: tuple[RowDiagnostic, ...] = ()
    row_outcomes: tuple[RowOutcome, ...] = ()
    header_validation: HeaderValidation | None = None

    @property
    def errors(self) -> tuple[RowDiagnostic, ...]:
        return tuple(item for item in self.diagnostics if item.severity == Severity.ERROR)

    @property
    def warnings(self) -> tuple[RowDiagnostic, ...]:
        return tuple(item for item in self.diagnostics if item.severity == Severity.WARNING)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def success(self) -> bool:
        return self.error_count == 0
