"""
app/domain/errors.py

Exceptions raised by the employee import pipeline.

Definitional errors abort a request before any row is processed and carry
the HTTP status the routers answer with. Row-level problems are never
raised; they become diagnostics on the run result.
"""

from __future__ import annotations


class ImportDefinitionError(ValueError):
    """
    Base class for request-fatal import errors.
    """

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnknownProfileError(ImportDefinitionError):
    """Raised when the profile selector is not one of the known profiles."""


class UnknownDuplicatePolicyError(ImportDefinitionError):
    """Raised when onDuplicate is not update, skip or error."""


class TemplateUnavailableError(ImportDefinitionError):
    """Raised when the external column-mapping definition cannot be read."""

    status_code = 404


class SpreadsheetFormatError(ImportDefinitionError):
    """Raised when the uploaded file cannot be parsed as a spreadsheet."""


class EmptyUploadError(ImportDefinitionError):
    """Raised when the uploaded sheet has no data rows."""


class MissingNaturalKeyError(ImportDefinitionError):
    """Raised when no uploaded column maps to employee_id."""


class EmployeeStoreUnavailableError(ImportDefinitionError):
    """Raised when the existence lookup cannot reach the employee store."""

    status_code = 503


class LogAccessError(Exception):
    """Base exception for run-log retrieval failures."""


class LogAccessDeniedError(LogAccessError):
    """Raised when a log handle resolves outside the import log directory."""


class LogNotFoundError(LogAccessError):
    """Raised when a log handle points to a file that does not exist."""


class InvalidRowTransitionError(RuntimeError):
    """Raised when a row is moved between lifecycle states out of order."""
