"""
app/schemas package marker.
"""

from app.schemas.employee_import import (
    CommitResponse,
    CommitSummaryResponse,
    DryRunResponse,
    DryRunSummaryResponse,
    HeaderValidationResponse,
    ImportFailureResponse,
    RowErrorResponse,
)

__all__ = [
    "CommitResponse",
    "CommitSummaryResponse",
    "DryRunResponse",
    "DryRunSummaryResponse",
    "HeaderValidationResponse",
    "ImportFailureResponse",
    "RowErrorResponse",
]
