"""
app/api/routers/import_logs.py

Download endpoint for import run-log artifacts.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse

from app.api.dependencies import require_import_role
from app.domain.errors import LogAccessDeniedError, LogNotFoundError
from app.services.employee_import_service import EmployeeImportService, get_employee_import_service

router = APIRouter(prefix="/api", tags=["employee-import"])

_MEDIA_TYPES = {
    ".json": "application/json",
    ".csv": "text/csv; charset=utf-8",
}


@router.get("/files")
def download_import_log(
    path: str = Query(default="", description="Run-log handle returned by an import"),
    _role: str = Depends(require_import_role),
    import_service: EmployeeImportService = Depends(get_employee_import_service),
) -> FileResponse:
    """
    Serve one run-log file from the import log directory.
    """

    if not path.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query parameter 'path' is required.",
        )

    try:
        resolved = import_service.open_log(path)
    except LogAccessDeniedError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except LogNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return FileResponse(
        resolved,
        media_type=_MEDIA_TYPES.get(resolved.suffix.lower(), "application/octet-stream"),
        filename=resolved.name,
    )
