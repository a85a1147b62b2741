"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import Depends, File, Header, HTTPException, UploadFile, status

from app.config import EmployeeImportSettings, get_employee_import_settings

SPREADSHEET_EXTENSIONS = (".xlsx", ".xlsm", ".csv")
SPREADSHEET_CONTENT_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel.sheet.macroenabled.12",
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
}


def get_spreadsheet_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a workbook or CSV by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    is_spreadsheet_filename = filename.endswith(SPREADSHEET_EXTENSIONS)
    is_spreadsheet_content_type = content_type in SPREADSHEET_CONTENT_TYPES

    if not is_spreadsheet_filename and not is_spreadsheet_content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only .xlsx, .xlsm or .csv files are allowed.",
        )

    return file


def read_upload_bytes(
    file: UploadFile,
    settings: EmployeeImportSettings,
) -> bytes:
    """
    Read the whole upload, refusing anything above the configured size.
    """

    content = file.file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Upload exceeds {settings.max_upload_bytes} bytes.",
        )
    return content


def get_caller_role(x_user_role: str | None = Header(default=None)) -> str:
    """
    Return the caller role asserted by the upstream authentication layer.
    """

    role = (x_user_role or "").strip().lower()
    if not role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required.",
        )
    return role


def require_import_role(
    role: str = Depends(get_caller_role),
    settings: EmployeeImportSettings = Depends(get_employee_import_settings),
) -> str:
    if role not in settings.allowed_roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Role not allowed to import employees.",
        )
    return role
