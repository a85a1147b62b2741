"""
app/validators/row_validator.py

Per-row validation shared by dry-run and commit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.domain.employee_import import (
    DuplicateAction,
    ImportRow,
    RowDiagnostic,
    RowState,
    Severity,
    advance_row_state,
)
from app.domain.employee_record import DATE_FIELDS, INTEGER_FIELDS, NATURAL_KEY
from app.normalizers.date_normalizer import parse_date
from app.normalizers.value_normalizer import is_blank, normalize_integer
from app.services.duplicate_resolver import DuplicateDecision, classify


@dataclass(frozen=True)
class RowValidation:
    """
    Validation outcome of one row: its duplicate decision, diagnostics and
    whether it may continue to persistence.
    """

    row: ImportRow
    decision: DuplicateDecision
    diagnostics: tuple[RowDiagnostic, ...]
    state: str

    @property
    def cleared(self) -> bool:
        return self.state == RowState.CLEARED


def _display(value: Any) -> str:
    return "" if value is None else str(value)


class EmployeeRowValidator:
    """
    Checks required fields, date and integer parseability, and duplicate
    disposition of each uploaded row.
    """

    def validate(
        self,
        *,
        row: ImportRow,
        existing_keys: frozenset[str],
        policy: str,
        seen_keys: set[str],
    ) -> RowValidation:
        """
        Validate one row. ``seen_keys`` collects employee ids of earlier rows in
        the same upload and is updated in place.
        """

        state = advance_row_state(RowState.PENDING, RowState.VALIDATING)
        diagnostics: list[RowDiagnostic] = []
        decision = classify(row, existing_keys, policy)

        if not row.employee_id:
            diagnostics.append(
                RowDiagnostic(
                    row_number=row.row_number,
                    column=NATURAL_KEY,
                    message=decision.message or "employee_id is required",
                    severity=Severity.ERROR,
                )
            )
            return RowValidation(
                row=row,
                decision=decision,
                diagnostics=tuple(diagnostics),
                state=advance_row_state(state, RowState.REJECTED),
            )

        diagnostics.extend(self._check_dates(row))
        diagnostics.extend(self._check_integers(row))

        if row.employee_id in seen_keys:
            diagnostics.append(
                RowDiagnostic(
                    row_number=row.row_number,
                    column=NATURAL_KEY,
                    message=(
                        f"employee_id={row.employee_id} appears more than once in the file; "
                        "the later row overwrites the earlier one"
                    ),
                    severity=Severity.WARNING,
                    value=row.employee_id,
                )
            )
        seen_keys.add(row.employee_id)

        if decision.message is not None and decision.severity is not None:
            diagnostics.append(
                RowDiagnostic(
                    row_number=row.row_number,
                    column=NATURAL_KEY,
                    message=decision.message,
                    severity=decision.severity,
                    value=row.employee_id,
                )
            )

        target = RowState.CLEARED if decision.persists else RowState.REJECTED
        return RowValidation(
            row=row,
            decision=decision,
            diagnostics=tuple(diagnostics),
            state=advance_row_state(state, target),
        )

    def _check_dates(self, row: ImportRow) -> list[RowDiagnostic]:
        diagnostics: list[RowDiagnostic] = []
        for field_name in sorted(DATE_FIELDS):
            value = row.get(field_name)
            if is_blank(value):
                continue
            if parse_date(value) is None:
                diagnostics.append(
                    RowDiagnostic(
                        row_number=row.row_number,
                        column=field_name,
                        message=f"{field_name} could not be parsed, value='{_display(value)}'",
                        severity=Severity.WARNING,
                        value=_display(value),
                    )
                )
        return diagnostics

    def _check_integers(self, row: ImportRow) -> list[RowDiagnostic]:
        diagnostics: list[RowDiagnostic] = []
        for field_name in sorted(INTEGER_FIELDS):
            value = row.get(field_name)
            _, ok = normalize_integer(value)
            if not ok:
                diagnostics.append(
                    RowDiagnostic(
                        row_number=row.row_number,
                        column=field_name,
                        message=f"{field_name} is not a whole number, value='{_display(value)}'",
                        severity=Severity.WARNING,
                        value=_display(value),
                    )
                )
        return diagnostics


def is_skip(validation: RowValidation) -> bool:
    return validation.decision.action in {DuplicateAction.SKIP, DuplicateAction.REJECT}
