"""
app/schemas/employee_import.py

Response schemas for employee bulk import endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RowErrorResponse(_CamelModel):
    """
    API response model for one row-level error.
    """

    row_number: int = Field(..., ge=1, alias="rowNumber")
    column: str | None = None
    message: str


class HeaderMismatchResponse(_CamelModel):
    index: int = Field(..., ge=0)
    expected: str
    actual: str


class HeaderValidationResponse(_CamelModel):
    """
    Header comparison against the profile template; informational only.
    """

    missing: list[str] = Field(default_factory=list)
    extra: list[str] = Field(default_factory=list)
    order_mismatch: list[HeaderMismatchResponse] = Field(default_factory=list, alias="orderMismatch")


class DryRunSummaryResponse(_CamelModel):
    rows: int = Field(..., ge=0)
    processed: int = Field(..., ge=0)
    skipped: int = Field(..., ge=0)
    errors: int = Field(..., ge=0)
    warnings: int = Field(..., ge=0)


class CommitSummaryResponse(_CamelModel):
    rows: int = Field(..., ge=0)
    processed_rows: int = Field(..., ge=0, alias="processedRows")
    skipped: int = Field(..., ge=0)
    errors: int = Field(..., ge=0)
    warnings: int = Field(..., ge=0)


class _ImportRunResponse(_CamelModel):
    success: bool
    message: str
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    row_errors: list[RowErrorResponse] = Field(default_factory=list, alias="rowErrors")
    log_url: str | None = Field(default=None, alias="logUrl")
    log_csv_url: str | None = Field(default=None, alias="logCsvUrl")


class DryRunResponse(_ImportRunResponse):
    """
    API response model for a validation-only import run.
    """

    summary: DryRunSummaryResponse
    header_validation: HeaderValidationResponse = Field(
        default_factory=HeaderValidationResponse,
        alias="headerValidation",
    )


class CommitResponse(_ImportRunResponse):
    """
    API response model for a persisting import run.
    """

    summary: CommitSummaryResponse


class ImportFailureResponse(_CamelModel):
    """
    Body returned when a request fails before any row is processed.
    """

    success: bool = False
    message: str
    summary: dict[str, int]
    errors: list[str] = Field(default_factory=list)
