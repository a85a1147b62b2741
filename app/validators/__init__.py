"""
app/validators package marker.
"""

from app.validators.header_validator import validate_headers
from app.validators.row_validator import EmployeeRowValidator, RowValidation, is_skip

__all__ = [
    "EmployeeRowValidator",
    "RowValidation",
    "is_skip",
    "validate_headers",
]
