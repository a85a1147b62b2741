"""
app/repositories/employee_repository.py

SQL access for the seven employee sub-entity tables.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.orm import Session

from app.domain.employee_record import SubEntityPayload
from db.models.employee import (
    EmployeeBank,
    EmployeeContact,
    EmployeeCore,
    EmployeeEmployment,
    EmployeeInsurance,
    EmployeeOnboard,
    EmployeeTravel,
)

_DEFAULT_CHUNK_SIZE = 1000

MODELS_BY_TABLE: dict[str, Any] = {
    model.__tablename__: model
    for model in (
        EmployeeCore,
        EmployeeInsurance,
        EmployeeContact,
        EmployeeOnboard,
        EmployeeEmployment,
        EmployeeBank,
        EmployeeTravel,
    )
}


class EmployeeRepository:
    """
    Repository for employee existence checks and per-table upserts.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_existing_ids(
        self,
        employee_ids: Iterable[str],
        *,
        chunk_size: int = _DEFAULT_CHUNK_SIZE,
    ) -> set[str]:
        """
        Return the subset of ``employee_ids`` already present in employee_core.
        """

        keys = sorted({key for key in employee_ids if key})
        if not keys:
            return set()

        size = max(1, chunk_size)
        existing: set[str] = set()
        for start in range(0, len(keys), size):
            chunk = keys[start : start + size]
            stmt = select(EmployeeCore.employee_id).where(EmployeeCore.employee_id.in_(chunk))
            existing.update(str(value) for value in self._session.scalars(stmt).all())
        return existing

    def upsert_sub_entity(self, payload: SubEntityPayload) -> str:
        """
        Update the row keyed by employee_id when it exists, otherwise insert it.

        Returns ``"update"`` or ``"insert"``.
        """

        model = MODELS_BY_TABLE[payload.entity.table]
        values = payload.as_dict()

        stmt = select(model.employee_id).where(model.employee_id == payload.employee_id)
        exists = self._session.execute(stmt).first() is not None

        if exists:
            if values:
                self._session.execute(
                    update(model).where(model.employee_id == payload.employee_id).values(**values)
                )
            return "update"

        self._session.execute(insert(model).values(employee_id=payload.employee_id, **values))
        return "insert"

    def get_sub_entity(self, table: str, employee_id: str) -> dict[str, Any] | None:
        model = MODELS_BY_TABLE[table]
        row = self._session.execute(
            select(model.__table__).where(model.employee_id == employee_id)
        ).mappings().first()
        return dict(row) if row is not None else None

    def list_departments(self) -> list[str]:
        """
        Distinct non-empty departments, sorted, for template dropdown guidance.
        """

        stmt = (
            select(EmployeeEmployment.department)
            .where(EmployeeEmployment.department.is_not(None))
            .distinct()
            .order_by(EmployeeEmployment.department)
        )
        return [value for value in self._session.scalars(stmt).all() if value]
