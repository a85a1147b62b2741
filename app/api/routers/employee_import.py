"""
app/api/routers/employee_import.py

Employee bulk import HTTP endpoints.

POST /api/employees/import/dry-run   validate an upload, persist nothing
POST /api/employees/import/commit    validate and write cleared rows
GET  /api/employees/templates        download the upload template of a profile
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Response, UploadFile
from fastapi.responses import JSONResponse

from app.api.dependencies import get_spreadsheet_upload, read_upload_bytes, require_import_role
from app.config import EmployeeImportSettings, get_employee_import_settings
from app.domain.employee_import import ImportMode
from app.domain.errors import ImportDefinitionError
from app.schemas.employee_import import (
    CommitResponse,
    DryRunResponse,
    ImportFailureResponse,
)
from app.services.employee_import_service import (
    CompletedImportRun,
    EmployeeImportService,
    get_employee_import_service,
)
from app.services.run_reporter import (
    header_validation_payload,
    row_errors_payload,
    summarize,
    summary_payload,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/employees", tags=["employee-import"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def log_url(handle: str | None) -> str | None:
    if handle is None:
        return None
    return f"/api/files?path={quote(handle, safe='')}"


def _definition_failure(exc: ImportDefinitionError, mode: str = ImportMode.DRY_RUN) -> JSONResponse:
    body = ImportFailureResponse(
        message=exc.message,
        summary=summary_payload(mode),
        errors=[exc.message],
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(by_alias=True))


def _run_payload(run: CompletedImportRun) -> dict:
    result = run.result
    return {
        "success": result.success,
        "message": run.message,
        "summary": summarize(result),
        "errors": [item.render() for item in result.errors],
        "warnings": [item.render() for item in result.warnings],
        "rowErrors": row_errors_payload(result),
        "logUrl": log_url(run.handles.json_handle),
        "logCsvUrl": log_url(run.handles.csv_handle),
    }


@router.post("/import/dry-run", response_model=DryRunResponse)
def dry_run_import(
    file: UploadFile = Depends(get_spreadsheet_upload),
    profile: str = Query(..., description="Import profile, e.g. indonesia_active"),
    on_duplicate: str = Query(default="update", alias="onDuplicate", description="update | skip | error"),
    _role: str = Depends(require_import_role),
    settings: EmployeeImportSettings = Depends(get_employee_import_settings),
    import_service: EmployeeImportService = Depends(get_employee_import_service),
):
    """
    Validate an upload against the profile template and the employee store.
    """

    try:
        content = read_upload_bytes(file, settings)
        run = import_service.dry_run(
            content=content,
            filename=file.filename,
            profile=profile,
            on_duplicate=on_duplicate,
        )
    except ImportDefinitionError as exc:
        logger.info("Dry-run rejected: %s", exc.message)
        return _definition_failure(exc)
    finally:
        file.file.close()

    payload = _run_payload(run)
    payload["headerValidation"] = header_validation_payload(run.result.header_validation)
    return DryRunResponse.model_validate(payload)


@router.post("/import/commit", response_model=CommitResponse)
def commit_import(
    file: UploadFile = Depends(get_spreadsheet_upload),
    profile: str = Query(..., description="Import profile, e.g. indonesia_active"),
    on_duplicate: str = Query(default="update", alias="onDuplicate", description="update | skip | error"),
    _role: str = Depends(require_import_role),
    settings: EmployeeImportSettings = Depends(get_employee_import_settings),
    import_service: EmployeeImportService = Depends(get_employee_import_service),
):
    """
    Write every cleared row, one employee per transaction.
    """

    try:
        content = read_upload_bytes(file, settings)
        run = import_service.commit(
            content=content,
            filename=file.filename,
            profile=profile,
            on_duplicate=on_duplicate,
        )
    except ImportDefinitionError as exc:
        logger.info("Commit rejected: %s", exc.message)
        return _definition_failure(exc, ImportMode.COMMIT)
    finally:
        file.file.close()

    return CommitResponse.model_validate(_run_payload(run))


@router.get("/templates", summary="Download the upload template of a profile")
def download_template(
    profile: str = Query(..., description="Import profile, e.g. indonesia_active"),
    import_service: EmployeeImportService = Depends(get_employee_import_service),
):
    try:
        template = import_service.build_template(profile)
    except ImportDefinitionError as exc:
        return _definition_failure(exc)

    return Response(
        content=template.content,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{template.filename}"',
            "X-Template-Profile": template.profile,
            "X-Template-Version": template.version,
            "X-Template-Hash": template.sha256,
            "X-Template-Updated-At": template.updated_at,
            "X-Template-Source": template.source,
        },
    )
