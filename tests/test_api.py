"""
tests/test_api.py

HTTP contract of the import, template and run-log endpoints.
"""

from __future__ import annotations

import io
import warnings
from pathlib import Path

import pytest
from fastapi import HTTPException, UploadFile
from fastapi.testclient import TestClient

from app.api.dependencies import read_upload_bytes
from app.config import EmployeeImportSettings, get_employee_import_settings
from app.main import app
from app.repositories.column_mapping_repository import ColumnMappingRepository
from app.repositories.import_log_storage import ImportLogStorage
from app.services.employee_import_service import EmployeeImportService, get_employee_import_service
from app.services.run_reporter import RunReporter
from app.services.template_resolver import TemplateResolver
from tests.conftest import build_workbook

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
HR_HEADERS = {"X-User-Role": "hr_general"}


def _upload(rows, headers=("Emp. ID", "Name", "Department"), filename="employees.xlsx"):
    return {"file": (filename, build_workbook(headers, rows), XLSX)}


@pytest.fixture()
def settings(mapping_path: Path) -> EmployeeImportSettings:
    return EmployeeImportSettings(mapping_path=mapping_path, max_upload_bytes=64 * 1024)


@pytest.fixture()
def client(import_service: EmployeeImportService, settings: EmployeeImportSettings):
    app.dependency_overrides[get_employee_import_service] = lambda: import_service
    app.dependency_overrides[get_employee_import_settings] = lambda: settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestImportEndpoints:
    def test_dry_run_response_shape(self, client: TestClient) -> None:
        response = client.post(
            "/api/employees/import/dry-run",
            params={"profile": "indonesia_active"},
            files=_upload([("E1", "Budi", "HR")]),
            headers=HR_HEADERS,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Dry-run successful"
        assert body["summary"] == {"rows": 1, "processed": 1, "skipped": 0, "errors": 0, "warnings": 0}
        assert "Gender" in body["headerValidation"]["missing"]
        assert "orderMismatch" in body["headerValidation"]
        assert body["logUrl"].startswith("/api/files?path=")
        assert body["logCsvUrl"].endswith(".csv")

    def test_commit_reports_processed_rows(self, client: TestClient) -> None:
        response = client.post(
            "/api/employees/import/commit",
            params={"profile": "indonesia_active", "onDuplicate": "update"},
            files=_upload([("E1", "Budi", "HR"), (None, "No Id", "HR")]),
            headers=HR_HEADERS,
        )

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is False
        assert body["message"] == "Imported with some errors."
        assert body["summary"]["processedRows"] == 1
        assert body["summary"]["skipped"] == 1
        assert body["rowErrors"] == [{"rowNumber": 3, "column": "employee_id", "message": "employee_id is required"}]
        assert "headerValidation" not in body

    def test_missing_role_header(self, client: TestClient) -> None:
        response = client.post(
            "/api/employees/import/dry-run",
            params={"profile": "indonesia_active"},
            files=_upload([("E1", "Budi", "HR")]),
        )
        assert response.status_code == 401

    def test_role_not_allowed(self, client: TestClient) -> None:
        response = client.post(
            "/api/employees/import/commit",
            params={"profile": "indonesia_active"},
            files=_upload([("E1", "Budi", "HR")]),
            headers={"X-User-Role": "viewer"},
        )
        assert response.status_code == 403

    def test_unknown_profile(self, client: TestClient) -> None:
        response = client.post(
            "/api/employees/import/dry-run",
            params={"profile": "mars_active"},
            files=_upload([("E1", "Budi", "HR")]),
            headers=HR_HEADERS,
        )

        body = response.json()
        assert response.status_code == 400
        assert body["success"] is False
        assert body["errors"] == [body["message"]]
        assert body["summary"]["rows"] == 0

    def test_empty_sheet(self, client: TestClient) -> None:
        response = client.post(
            "/api/employees/import/dry-run",
            params={"profile": "indonesia_active"},
            files=_upload([]),
            headers=HR_HEADERS,
        )

        body = response.json()
        assert response.status_code == 400
        assert body["success"] is False
        assert body["message"] == "Excel file empty"
        assert body["summary"] == {"rows": 0, "processed": 0, "skipped": 0, "errors": 0, "warnings": 0}

    def test_empty_sheet_on_commit_uses_commit_summary(self, client: TestClient) -> None:
        response = client.post(
            "/api/employees/import/commit",
            params={"profile": "indonesia_active"},
            files=_upload([]),
            headers=HR_HEADERS,
        )

        body = response.json()
        assert response.status_code == 400
        assert body["success"] is False
        assert body["message"] == "Excel file empty"
        assert body["summary"] == {"rows": 0, "processedRows": 0, "skipped": 0, "errors": 0, "warnings": 0}

    def test_non_spreadsheet_upload(self, client: TestClient) -> None:
        response = client.post(
            "/api/employees/import/dry-run",
            params={"profile": "indonesia_active"},
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=HR_HEADERS,
        )
        assert response.status_code == 400

    def test_upload_over_limit(self, client: TestClient, settings: EmployeeImportSettings) -> None:
        oversized = b"Emp. ID,Name\n" + b"E1,Budi\n" * (settings.max_upload_bytes // 8 + 1)

        response = client.post(
            "/api/employees/import/commit",
            params={"profile": "indonesia_active"},
            files={"file": ("employees.csv", oversized, "text/csv")},
            headers=HR_HEADERS,
        )
        assert response.status_code == 413


class TestTemplateEndpoint:
    def test_download_headers(self, client: TestClient) -> None:
        response = client.get("/api/employees/templates", params={"profile": "indonesia_active"})

        assert response.status_code == 200
        assert response.headers["content-type"] == XLSX
        assert 'filename="employee_template_indonesia_active.xlsx"' in response.headers["content-disposition"]
        assert response.headers["x-template-profile"] == "indonesia_active"
        assert response.headers["x-template-version"] == "0.0.0"
        assert len(response.headers["x-template-hash"]) == 64
        assert response.headers["x-template-source"] == "mapping-excel"
        assert response.headers["x-template-updated-at"]

    def test_missing_mapping_is_not_found(self, client: TestClient, tmp_path: Path) -> None:
        missing = EmployeeImportService(
            template_resolver=TemplateResolver(ColumnMappingRepository(tmp_path / "absent.csv")),
            reporter=RunReporter(storage=ImportLogStorage(tmp_path / "logs")),
        )
        app.dependency_overrides[get_employee_import_service] = lambda: missing

        response = client.get("/api/employees/templates", params={"profile": "expatriate_active"})

        assert response.status_code == 404
        assert response.json()["success"] is False


class TestImportLogEndpoint:
    def test_download_run_log(self, client: TestClient) -> None:
        run = client.post(
            "/api/employees/import/dry-run",
            params={"profile": "indonesia_active"},
            files=_upload([("E1", "Budi", "HR")]),
            headers=HR_HEADERS,
        ).json()

        response = client.get(run["logUrl"], headers=HR_HEADERS)

        assert response.status_code == 200
        assert response.json()["summary"]["processed"] == 1

    @pytest.mark.parametrize(
        ("path", "expected"),
        [("../x.json", 403), ("absent.json", 404), ("", 400)],
    )
    def test_refused_paths(self, client: TestClient, path: str, expected: int) -> None:
        response = client.get("/api/files", params={"path": path}, headers=HR_HEADERS)
        assert response.status_code == expected

    def test_requires_role(self, client: TestClient) -> None:
        assert client.get("/api/files", params={"path": "absent.json"}).status_code == 401


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_upload_limit_raises_without_deprecation_warnings() -> None:
    settings = EmployeeImportSettings(mapping_path=Path("unused.csv"), max_upload_bytes=4)
    upload = UploadFile(file=io.BytesIO(b"Emp. ID\nE1\n"), filename="employees.csv")

    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        with pytest.raises(HTTPException) as excinfo:
            read_upload_bytes(upload, settings)

    assert excinfo.value.status_code == 413
