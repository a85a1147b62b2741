"""
app/api/routers package marker.
"""

from app.api.routers.employee_import import router as employee_import_router
from app.api.routers.import_logs import router as import_logs_router

__all__ = [
    "employee_import_router",
    "import_logs_router",
]
