"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.employee import (
    EmployeeBank,
    EmployeeContact,
    EmployeeCore,
    EmployeeEmployment,
    EmployeeInsurance,
    EmployeeOnboard,
    EmployeeTravel,
)

__all__ = [
    "EmployeeBank",
    "EmployeeContact",
    "EmployeeCore",
    "EmployeeEmployment",
    "EmployeeInsurance",
    "EmployeeOnboard",
    "EmployeeTravel",
]
