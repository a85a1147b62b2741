"""
tests/test_employee_import_service.py

End-to-end dry-run and commit scenarios against a temporary SQLite store.

Coverage
--------
- Unparseable date is a warning, not an error
- Duplicate policies update / skip / error
- Blank employee_id rows are rejected and counted as skipped
- Empty uploads and uploads without an employee id column
- Sub-entity write failure rolls back that row only
- Template download with fingerprint metadata
"""

from __future__ import annotations

import io
import json
from pathlib import Path

import pytest
from openpyxl import load_workbook
from sqlalchemy.orm import Session, sessionmaker

from app.domain.employee_import import TERMINAL_ROW_STATES, DuplicateAction, RowState
from app.domain.errors import (
    EmptyUploadError,
    InvalidRowTransitionError,
    MissingNaturalKeyError,
    SpreadsheetFormatError,
    TemplateUnavailableError,
    UnknownDuplicatePolicyError,
    UnknownProfileError,
)
from app.mappers.header_mapper import HeaderMapping
from app.repositories.column_mapping_repository import ColumnMappingRepository
from app.repositories.employee_repository import EmployeeRepository
from app.repositories.import_log_storage import ImportLogStorage
from app.services.employee_import_service import EmployeeImportService
from app.services.run_reporter import RunReporter
from app.services.template_resolver import TemplateResolver
from app.services.upsert_engine import RowCommitResult
from tests.conftest import INDONESIA_HEADERS, FailingBankRepository, build_workbook

HEADERS = ("Emp. ID", "Name", "Date of Birth", "Department")


def _run(service: EmployeeImportService, mode: str, rows, *, headers=HEADERS, on_duplicate=None):
    action = service.dry_run if mode == "dry-run" else service.commit
    return action(
        content=build_workbook(headers, rows),
        filename="employees.xlsx",
        profile="indonesia_active",
        on_duplicate=on_duplicate,
    )


def _seed(service: EmployeeImportService, *employee_ids: str) -> None:
    run = _run(service, "commit", [(employee_id, f"Seed {employee_id}", None, "HR") for employee_id in employee_ids])
    assert run.result.success


def _core(session_factory: sessionmaker[Session], employee_id: str):
    with session_factory() as session:
        return EmployeeRepository(session).get_sub_entity("employee_core", employee_id)


class _StalledUpsertEngine:
    """Leaves every row in the committing state."""

    def commit_row(self, plan) -> RowCommitResult:
        return RowCommitResult(row_number=plan.row_number, employee_id=plan.employee_id, state=RowState.COMMITTING)

class TestDryRun:
    def test_unparseable_date_is_only_a_warning(self, import_service: EmployeeImportService) -> None:
        run = _run(import_service, "dry-run", [("E1", "Budi", "not-a-date", "HR")])
        result = run.result

        assert result.success
        assert result.processed == 1
        assert result.error_count == 0
        assert result.warning_count == 1
        assert result.warnings[0].column == "date_of_birth"
        assert run.message == "Dry-run successful"

    def test_dry_run_never_writes(
        self,
        import_service: EmployeeImportService,
        session_factory: sessionmaker[Session],
    ) -> None:
        _run(import_service, "dry-run", [("E1", "Budi", "1990-01-01", "HR")])
        assert _core(session_factory, "E1") is None

    def test_header_validation_is_reported_not_counted(self, import_service: EmployeeImportService) -> None:
        run = _run(import_service, "dry-run", [("E1", "Budi", None, "HR")])
        validation = run.result.header_validation

        assert "Gender" in validation.missing
        assert validation.order_mismatch
        assert run.result.error_count == 0

    def test_full_template_upload_is_clean(self, import_service: EmployeeImportService) -> None:
        row = ("E1", "Budi", "Male", "15/03/1990", None, "7471012345678902", "HR", 7, "BNI")
        run = _run(import_service, "dry-run", [row], headers=INDONESIA_HEADERS)

        assert run.result.header_validation.is_clean
        assert run.result.diagnostics == ()

    def test_existing_with_error_policy(self, import_service: EmployeeImportService) -> None:
        _seed(import_service, "E3")

        run = _run(import_service, "dry-run", [("E3", "Budi", None, "HR")], on_duplicate="error")
        result = run.result

        assert not result.success
        assert result.skipped == 1
        assert result.processed == 0
        assert result.error_count == 1
        assert "already exists" in result.errors[0].message
        assert run.message == "Dry-run completed with errors"

    def test_blank_employee_id_rows(self, import_service: EmployeeImportService) -> None:
        run = _run(import_service, "dry-run", [(None, "No Id", None, "HR"), ("E1", "Budi", None, "HR")])
        result = run.result

        assert result.total_rows == 2
        assert result.processed == 1
        assert result.skipped == 1
        assert result.errors[0].render() == "Row 2: employee_id is required"

    def test_run_logs_are_written(self, import_service: EmployeeImportService, log_storage: ImportLogStorage) -> None:
        run = _run(import_service, "dry-run", [("E1", "Budi", None, "HR")])

        payload = json.loads(import_service.open_log(run.handles.json_handle).read_text(encoding="utf-8"))
        assert payload["summary"]["processed"] == 1
        assert (log_storage.root_dir / run.handles.csv_handle).is_file()


class TestCommit:
    def test_commit_then_recommit_under_update(
        self,
        import_service: EmployeeImportService,
        session_factory: sessionmaker[Session],
    ) -> None:
        rows = [("E1", "Budi", "15/03/1990", "HR"), ("E2", "Sari", None, "Mining")]

        first = _run(import_service, "commit", rows)
        second = _run(import_service, "commit", rows)

        assert first.result.processed == 2
        assert second.result.processed == 2
        assert [outcome.action for outcome in second.result.row_outcomes] == [DuplicateAction.UPDATE] * 2
        assert _core(session_factory, "E1")["name"] == "Budi"
        assert first.message == "Successfully processed 2 rows."

    def test_skip_policy_never_commits(
        self,
        import_service: EmployeeImportService,
        session_factory: sessionmaker[Session],
    ) -> None:
        _seed(import_service, "E1")

        run = _run(import_service, "commit", [("E1", "Changed", None, "HR"), ("E2", "Sari", None, "HR")], on_duplicate="skip")
        result = run.result

        assert result.processed == 1
        assert result.skipped == 1
        assert result.error_count == 0
        assert result.warning_count == 1
        assert _core(session_factory, "E1")["name"] == "Seed E1"
        assert [outcome.state for outcome in result.row_outcomes] == [RowState.REJECTED, RowState.COMMITTED]
        assert all(outcome.state in TERMINAL_ROW_STATES for outcome in result.row_outcomes)

    def test_failed_row_does_not_block_others(
        self,
        mapping_path: Path,
        log_storage: ImportLogStorage,
        session_factory: sessionmaker[Session],
    ) -> None:
        service = EmployeeImportService(
            template_resolver=TemplateResolver(ColumnMappingRepository(mapping_path)),
            reporter=RunReporter(storage=log_storage),
            session_factory=session_factory,
            repository_factory=FailingBankRepository,
        )

        run = _run(service, "commit", [("BAD1", "Budi", None, "HR"), ("E2", "Sari", None, "HR")])

        assert run.result.processed == 1
        assert run.result.error_count == 1
        assert "employee_id=BAD1 error: bank table locked" in run.result.errors[0].message
        assert [outcome.state for outcome in run.result.row_outcomes] == [RowState.FAILED, RowState.COMMITTED]
        assert run.message == "Imported with some errors."
        assert _core(session_factory, "BAD1") is None
        assert _core(session_factory, "E2")["name"] == "Sari"

    def test_commit_refuses_non_terminal_outcome(
        self,
        mapping_path: Path,
        log_storage: ImportLogStorage,
        session_factory: sessionmaker[Session],
    ) -> None:
        service = EmployeeImportService(
            template_resolver=TemplateResolver(ColumnMappingRepository(mapping_path)),
            reporter=RunReporter(storage=log_storage),
            session_factory=session_factory,
            upsert_engine=_StalledUpsertEngine(),
        )

        with pytest.raises(InvalidRowTransitionError):
            _run(service, "commit", [("E1", "Budi", None, "HR")])

    def test_csv_upload(self, import_service: EmployeeImportService, session_factory: sessionmaker[Session]) -> None:
        content = "Emp. ID,Name,Date of Birth\nE7,Rina,01/02/1991\n".encode("utf-8")

        run = import_service.commit(content=content, filename="employees.csv", profile="indonesia_active", on_duplicate=None)

        assert run.result.processed == 1
        assert _core(session_factory, "E7")["name"] == "Rina"


class TestDefinitionalFailures:
    def test_unknown_profile(self, import_service: EmployeeImportService) -> None:
        with pytest.raises(UnknownProfileError):
            import_service.dry_run(content=b"", filename="x.xlsx", profile="mars", on_duplicate=None)

    def test_unknown_policy(self, import_service: EmployeeImportService) -> None:
        with pytest.raises(UnknownDuplicatePolicyError):
            _run(import_service, "dry-run", [("E1",)], on_duplicate="merge")

    def test_empty_sheet(self, import_service: EmployeeImportService, log_storage: ImportLogStorage) -> None:
        with pytest.raises(EmptyUploadError) as excinfo:
            _run(import_service, "dry-run", [])

        assert excinfo.value.message == "Excel file empty"
        assert not log_storage.root_dir.exists()

    def test_empty_sheet_on_commit(
        self,
        import_service: EmployeeImportService,
        log_storage: ImportLogStorage,
    ) -> None:
        with pytest.raises(EmptyUploadError) as excinfo:
            _run(import_service, "commit", [])

        assert excinfo.value.message == "Excel file empty"
        assert excinfo.value.status_code == 400
        assert not log_storage.root_dir.exists()

    def test_no_employee_id_column(self, import_service: EmployeeImportService) -> None:
        with pytest.raises(MissingNaturalKeyError):
            _run(import_service, "dry-run", [("Budi",)], headers=("Name",))

    def test_unreadable_workbook(self, import_service: EmployeeImportService) -> None:
        with pytest.raises(SpreadsheetFormatError):
            import_service.dry_run(content=b"garbage", filename="x.xlsx", profile="indonesia_active", on_duplicate=None)

    def test_mapping_definition_unavailable(
        self,
        tmp_path: Path,
        log_storage: ImportLogStorage,
        session_factory: sessionmaker[Session],
    ) -> None:
        service = EmployeeImportService(
            template_resolver=TemplateResolver(ColumnMappingRepository(tmp_path / "absent.csv")),
            reporter=RunReporter(storage=log_storage),
            session_factory=session_factory,
        )

        with pytest.raises(TemplateUnavailableError):
            _run(service, "dry-run", [("E1", "Budi", None, "HR")])


class TestTemplateDownload:
    def test_build_template(self, import_service: EmployeeImportService) -> None:
        _seed(import_service, "E1")

        template = import_service.build_template("indonesia_active")
        worksheet = load_workbook(io.BytesIO(template.content)).active

        assert template.filename == "employee_template_indonesia_active.xlsx"
        assert len(template.sha256) == 64
        assert template.source == "mapping-excel"
        assert [cell.value for cell in worksheet[1]][:2] == ["Emp. ID", "Name"]
        department_index = INDONESIA_HEADERS.index("Department")
        assert worksheet.cell(row=2, column=department_index + 1).value == "HR (Dropdown: HR)"

    def test_template_without_definition(self, tmp_path: Path, session_factory: sessionmaker[Session]) -> None:
        service = EmployeeImportService(
            template_resolver=TemplateResolver(ColumnMappingRepository(tmp_path / "absent.csv")),
            reporter=RunReporter(storage=ImportLogStorage(tmp_path / "logs")),
            header_mapping=HeaderMapping(),
            session_factory=session_factory,
        )

        with pytest.raises(TemplateUnavailableError):
            service.build_template("expatriate_active")
