"""
app/domain package marker.
"""

from app.domain.employee_import import (
    DuplicatePolicy,
    ImportMode,
    ImportProfile,
    ImportRow,
    ImportRunResult,
    RowDiagnostic,
    RowState,
    TemplateDefinition,
)
from app.domain.employee_record import EmployeeWritePlan, SubEntityPayload

__all__ = [
    "DuplicatePolicy",
    "EmployeeWritePlan",
    "ImportMode",
    "ImportProfile",
    "ImportRow",
    "ImportRunResult",
    "RowDiagnostic",
    "RowState",
    "SubEntityPayload",
    "TemplateDefinition",
]
