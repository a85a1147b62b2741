"""
app/repositories package marker.
"""

from app.repositories.column_mapping_repository import ColumnMappingRepository, ColumnMappingSourceError
from app.repositories.employee_repository import EmployeeRepository
from app.repositories.import_log_storage import ImportLogStorage, ImportLogStorageError

__all__ = [
    "ColumnMappingRepository",
    "ColumnMappingSourceError",
    "EmployeeRepository",
    "ImportLogStorage",
    "ImportLogStorageError",
]
