"""
tests/test_upsert_engine.py

Write plans and per-employee transactions against a temporary SQLite store.
"""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from app.domain.employee_import import ImportRow, RowState
from app.domain.employee_record import SUB_ENTITIES
from app.repositories.employee_repository import EmployeeRepository
from app.services.upsert_engine import UpsertEngine, build_write_plan, normalize_field
from tests.conftest import FailingBankRepository


class _RollbackFailingSession(Session):
    def rollback(self) -> None:
        raise OperationalError("ROLLBACK", {}, Exception("connection reset"))


def _row(row_number: int = 2, **fields) -> ImportRow:
    return ImportRow(row_number=row_number, fields=dict(fields))


def _fetch(session_factory: sessionmaker[Session], table: str, employee_id: str):
    with session_factory() as session:
        return EmployeeRepository(session).get_sub_entity(table, employee_id)


class TestBuildWritePlan:
    def test_covers_all_sub_entities_in_write_order(self) -> None:
        plan = build_write_plan(_row(employee_id="E1"))

        assert [payload.entity.name for payload in plan.payloads] == [entity.name for entity in SUB_ENTITIES]
        assert plan.payloads[0].entity.table == "employee_core"

    def test_normalizes_values(self) -> None:
        plan = build_write_plan(
            _row(
                employee_id=" E1 ",
                name="  Budi ",
                gender="Male",
                date_of_birth="15/03/1990",
                age="34",
                insurance_owlexa="yes",
                account_no=1234567890.0,
            )
        )

        core = plan.payload_for("core").as_dict()
        assert plan.employee_id == "E1"
        assert core["name"] == "Budi"
        assert core["gender"] == "M"
        assert core["date_of_birth"] == date(1990, 3, 15)
        assert core["age"] == 34
        assert plan.payload_for("insurance").as_dict()["insurance_owlexa"] == "Y"
        assert plan.payload_for("bank").as_dict()["account_no"] == "1234567890"

    def test_absent_columns_are_written_as_null_and_extras_ignored(self) -> None:
        row = ImportRow(row_number=2, fields={"employee_id": "E1"}, extras={"shoe_size": 42})

        travel = build_write_plan(row).payload_for("travel").as_dict()

        assert travel == {"travel_in": None, "travel_out": None, "passport_no": None, "kitas_no": None}

    def test_normalize_field_unparseable_values_become_none(self) -> None:
        assert normalize_field("join_date", "soon") is None
        assert normalize_field("grade", "seven") is None


class TestUpsertEngine:
    def test_insert_then_update(self, session_factory: sessionmaker[Session]) -> None:
        engine = UpsertEngine(session_factory=session_factory)

        first = engine.commit_row(build_write_plan(_row(employee_id="E1", name="Budi", bank_name="BNI")))
        second = engine.commit_row(build_write_plan(_row(employee_id="E1", name="Budi S", bank_name="BRI")))

        assert first.committed and second.committed
        assert _fetch(session_factory, "employee_core", "E1")["name"] == "Budi S"
        assert _fetch(session_factory, "employee_bank", "E1")["bank_name"] == "BRI"
        for entity in SUB_ENTITIES:
            assert _fetch(session_factory, entity.table, "E1") is not None

    def test_committing_twice_is_idempotent(self, session_factory: sessionmaker[Session]) -> None:
        engine = UpsertEngine(session_factory=session_factory)
        plan = build_write_plan(_row(employee_id="E1", name="Budi", join_date="2020-01-06", grade=7))

        engine.commit_row(plan)
        snapshot = {
            entity.table: _strip_audit(_fetch(session_factory, entity.table, "E1")) for entity in SUB_ENTITIES
        }
        engine.commit_row(plan)

        for entity in SUB_ENTITIES:
            assert _strip_audit(_fetch(session_factory, entity.table, "E1")) == snapshot[entity.table]

    def test_bank_failure_rolls_back_only_that_employee(self, session_factory: sessionmaker[Session]) -> None:
        engine = UpsertEngine(session_factory=session_factory)
        engine.commit_row(build_write_plan(_row(employee_id="E1", name="Budi")))

        failing = UpsertEngine(session_factory=session_factory, repository_factory=FailingBankRepository)
        result = failing.commit_row(build_write_plan(_row(employee_id="BAD2", name="Sari")))

        assert result.state == RowState.FAILED
        assert result.failed_entity == "bank"
        assert "bank table locked" in (result.error or "")
        for entity in SUB_ENTITIES:
            assert _fetch(session_factory, entity.table, "BAD2") is None
        assert _fetch(session_factory, "employee_core", "E1")["name"] == "Budi"

    def test_failed_update_keeps_previous_values(self, session_factory: sessionmaker[Session]) -> None:
        UpsertEngine(session_factory=session_factory).commit_row(
            build_write_plan(_row(employee_id="BAD1", name="Budi"))
        )

        failing = UpsertEngine(session_factory=session_factory, repository_factory=FailingBankRepository)
        result = failing.commit_row(build_write_plan(_row(employee_id="BAD1", name="Changed")))

        assert not result.committed
        assert _fetch(session_factory, "employee_core", "BAD1")["name"] == "Budi"

    def test_rollback_failure_keeps_original_error(
        self,
        session_factory: sessionmaker[Session],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        broken_rollback = sessionmaker(
            bind=session_factory.kw["bind"],
            class_=_RollbackFailingSession,
            expire_on_commit=False,
        )
        engine = UpsertEngine(session_factory=broken_rollback, repository_factory=FailingBankRepository)

        result = engine.commit_row(build_write_plan(_row(employee_id="BAD3", name="Dewi")))

        assert result.state == RowState.FAILED
        assert result.failed_entity == "bank"
        assert result.error == "bank table locked"
        assert any("Rollback failed" in record.getMessage() for record in caplog.records)
        assert _fetch(session_factory, "employee_core", "BAD3") is None


class TestEmployeeRepository:
    def test_find_existing_ids_in_chunks(self, session_factory: sessionmaker[Session]) -> None:
        engine = UpsertEngine(session_factory=session_factory)
        for employee_id in ("E1", "E2", "E3"):
            engine.commit_row(build_write_plan(_row(employee_id=employee_id)))

        with session_factory() as session:
            found = EmployeeRepository(session).find_existing_ids(["E1", "E3", "E9", ""], chunk_size=1)

        assert found == {"E1", "E3"}

    def test_list_departments(self, session_factory: sessionmaker[Session]) -> None:
        engine = UpsertEngine(session_factory=session_factory)
        engine.commit_row(build_write_plan(_row(employee_id="E1", department="Mining")))
        engine.commit_row(build_write_plan(_row(employee_id="E2", department="HR")))
        engine.commit_row(build_write_plan(_row(employee_id="E3", department="HR")))
        engine.commit_row(build_write_plan(_row(employee_id="E4")))

        with session_factory() as session:
            assert EmployeeRepository(session).list_departments() == ["HR", "Mining"]


def _strip_audit(row):
    if row is None:
        return None
    return {key: value for key, value in row.items() if key not in {"created_at", "updated_at"}}


@pytest.fixture(autouse=True)
def _quiet_engine_logs(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level("ERROR", logger="app.services.upsert_engine")
