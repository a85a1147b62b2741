"""
app/services/upsert_engine.py

Builds per-row write plans and commits each employee in its own transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.employee_import import ImportRow, RowState, advance_row_state
from app.domain.employee_record import (
    CHAR1_FIELDS,
    DATE_FIELDS,
    INTEGER_FIELDS,
    SUB_ENTITIES,
    EmployeeWritePlan,
    SubEntityPayload,
)
from app.normalizers.date_normalizer import parse_date
from app.normalizers.flag_normalizer import normalize_flag
from app.normalizers.value_normalizer import normalize_integer, normalize_text
from app.repositories.employee_repository import EmployeeRepository
from db.session import SessionLocal

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]
RepositoryFactory = Callable[[Session], EmployeeRepository]


def normalize_field(field_name: str, value: Any) -> Any:
    """
    Coerce one raw cell to the value stored for ``field_name``.
    """

    if field_name in DATE_FIELDS:
        return parse_date(value)
    if field_name in CHAR1_FIELDS:
        return normalize_flag(field_name, value)
    if field_name in INTEGER_FIELDS:
        parsed, _ = normalize_integer(value)
        return parsed
    return normalize_text(value)


def build_write_plan(row: ImportRow) -> EmployeeWritePlan:
    """
    Build the seven sub-entity payloads of one row.

    Every column of every sub-entity is written; columns with no value in the
    upload are stored as NULL. Extras from unmapped headers are ignored.
    """

    employee_id = row.employee_id
    payloads = tuple(
        SubEntityPayload(
            entity=entity,
            employee_id=employee_id,
            values=tuple(
                (column, normalize_field(column, row.get(column))) for column in entity.columns
            ),
        )
        for entity in SUB_ENTITIES
    )
    return EmployeeWritePlan(row_number=row.row_number, employee_id=employee_id, payloads=payloads)


@dataclass(frozen=True)
class RowCommitResult:
    row_number: int
    employee_id: str
    state: str
    error: str | None = None
    failed_entity: str | None = None

    @property
    def committed(self) -> bool:
        return self.state == RowState.COMMITTED


def _describe(exc: SQLAlchemyError) -> str:
    original = getattr(exc, "orig", None)
    return str(original) if original is not None else str(exc)


class UpsertEngine:
    """
    Owns begin/commit/rollback for one employee at a time.
    """

    def __init__(
        self,
        *,
        session_factory: SessionFactory | None = None,
        repository_factory: RepositoryFactory = EmployeeRepository,
    ) -> None:
        self._session_factory = session_factory or SessionLocal
        self._repository_factory = repository_factory

    def commit_row(self, plan: EmployeeWritePlan) -> RowCommitResult:
        """
        Write Core, Insurance, Contact, Onboarding, Employment, Bank and Travel
        in one transaction. Any failure rolls the whole employee back.
        """

        state = advance_row_state(RowState.CLEARED, RowState.COMMITTING)
        session = self._session_factory()
        current_entity: str | None = None
        try:
            repository = self._repository_factory(session)
            for payload in plan.payloads:
                current_entity = payload.entity.name
                repository.upsert_sub_entity(payload)
            session.commit()
        except SQLAlchemyError as exc:
            self._rollback(session, plan)
            message = _describe(exc)
            logger.warning(
                "Row %s employee_id=%s failed while writing %s: %s",
                plan.row_number,
                plan.employee_id,
                current_entity,
                message,
            )
            return RowCommitResult(
                row_number=plan.row_number,
                employee_id=plan.employee_id,
                state=advance_row_state(state, RowState.FAILED),
                error=message,
                failed_entity=current_entity,
            )
        finally:
            session.close()

        return RowCommitResult(
            row_number=plan.row_number,
            employee_id=plan.employee_id,
            state=advance_row_state(state, RowState.COMMITTED),
        )

    @staticmethod
    def _rollback(session: Session, plan: EmployeeWritePlan) -> None:
        try:
            session.rollback()
        except SQLAlchemyError:
            logger.exception(
                "Rollback failed for row %s employee_id=%s",
                plan.row_number,
                plan.employee_id,
            )
