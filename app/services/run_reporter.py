"""
app/services/run_reporter.py

Finalizes import runs and writes their JSON and CSV run logs.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Protocol, Sequence

from app.domain.employee_import import (
    HeaderValidation,
    ImportMode,
    ImportRunResult,
    RowDiagnostic,
    RowOutcome,
    RunLogHandles,
    Severity,
)
from app.repositories.import_log_storage import ImportLogStorage, ImportLogStorageError

logger = logging.getLogger(__name__)

LOG_CSV_COLUMNS: tuple[str, ...] = ("Section", "Severity", "Row", "Column", "Message")


class LogSection:
    HEADER_VALIDATION = "HeaderValidation"
    ROW_ERROR = "RowError"
    ROW_WARNING = "RowWarning"
    PROCESSING = "Processing"


class ImportAuditSink(Protocol):
    """
    Receives every finalized run after its logs are written.
    """

    def record(self, result: ImportRunResult, handles: RunLogHandles) -> None:
        ...


class LoggingAuditSink:
    """
    Audit sink that writes one structured log line per run.
    """

    def record(self, result: ImportRunResult, handles: RunLogHandles) -> None:
        logger.info(
            "audit import run_id=%s mode=%s profile=%s on_duplicate=%s rows=%d processed=%d "
            "skipped=%d errors=%d warnings=%d log=%s",
            result.run_id,
            result.mode,
            result.profile,
            result.duplicate_policy,
            result.total_rows,
            result.processed,
            result.skipped,
            result.error_count,
            result.warning_count,
            handles.json_handle,
        )


def new_run_id() -> str:
    return uuid.uuid4().hex


def finalize(
    *,
    run_id: str,
    mode: str,
    profile: str,
    duplicate_policy: str,
    started_at: datetime,
    total_rows: int,
    processed: int,
    skipped: int,
    diagnostics: Sequence[RowDiagnostic],
    row_outcomes: Sequence[RowOutcome] = (),
    header_validation: HeaderValidation | None = None,
) -> ImportRunResult:
    """
    Freeze the counts and diagnostics of a run into its result.
    """

    return ImportRunResult(
        run_id=run_id,
        mode=mode,
        profile=profile,
        duplicate_policy=duplicate_policy,
        started_at=started_at,
        finished_at=datetime.now(timezone.utc),
        total_rows=total_rows,
        processed=processed,
        skipped=skipped,
        diagnostics=tuple(diagnostics),
        row_outcomes=tuple(row_outcomes),
        header_validation=header_validation,
    )


def summary_payload(
    mode: str,
    *,
    rows: int = 0,
    processed: int = 0,
    skipped: int = 0,
    errors: int = 0,
    warnings: int = 0,
) -> dict[str, int]:
    """
    Summary counters keyed the way each mode reports them.

    Commit runs report ``processedRows``; dry-runs report ``processed``.
    """

    processed_key = "processedRows" if mode == ImportMode.COMMIT else "processed"
    return {
        "rows": rows,
        processed_key: processed,
        "skipped": skipped,
        "errors": errors,
        "warnings": warnings,
    }


def summarize(result: ImportRunResult) -> dict[str, int]:
    return summary_payload(
        result.mode,
        rows=result.total_rows,
        processed=result.processed,
        skipped=result.skipped,
        errors=result.error_count,
        warnings=result.warning_count,
    )


def header_validation_payload(validation: HeaderValidation | None) -> dict[str, Any]:
    validation = validation or HeaderValidation()
    return {
        "missing": list(validation.missing),
        "extra": list(validation.extra),
        "orderMismatch": [
            {"index": item.index, "expected": item.expected, "actual": item.actual}
            for item in validation.order_mismatch
        ],
    }


def row_errors_payload(result: ImportRunResult) -> list[dict[str, Any]]:
    return [
        {"rowNumber": item.row_number, "column": item.column, "message": item.message}
        for item in result.errors
        if item.row_number is not None
    ]


def build_log_payload(result: ImportRunResult) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "runId": result.run_id,
        "timestamp": result.finished_at.isoformat(),
        "startedAt": result.started_at.isoformat(),
        "type": result.mode,
        "profile": result.profile,
        "onDuplicate": result.duplicate_policy,
        "summary": summarize(result),
        "errors": [item.render() for item in result.errors],
        "warnings": [item.render() for item in result.warnings],
        "rowErrors": row_errors_payload(result),
        "rows": [
            {
                "rowNumber": outcome.row_number,
                "employeeId": outcome.employee_id,
                "action": outcome.action,
                "state": outcome.state,
            }
            for outcome in result.row_outcomes
        ],
    }
    if result.header_validation is not None:
        payload["headerValidation"] = header_validation_payload(result.header_validation)
    return payload


def format_log_csv(result: ImportRunResult) -> str:
    """
    Render the run as CSV with columns Section, Severity, Row, Column, Message.
    """

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(LOG_CSV_COLUMNS)

    validation = result.header_validation
    if validation is not None:
        for header in validation.missing:
            writer.writerow(
                (LogSection.HEADER_VALIDATION, Severity.ERROR, "", "header", f"Missing header: {header}")
            )
        for header in validation.extra:
            writer.writerow(
                (LogSection.HEADER_VALIDATION, Severity.WARNING, "", "header", f"Unexpected extra header: {header}")
            )
        for mismatch in validation.order_mismatch:
            writer.writerow(
                (
                    LogSection.HEADER_VALIDATION,
                    Severity.WARNING,
                    "",
                    "header",
                    f'Order mismatch at index {mismatch.index}: expected "{mismatch.expected}", '
                    f'found "{mismatch.actual}"',
                )
            )

    for item in result.diagnostics:
        if item.row_number is None:
            section = LogSection.PROCESSING
        elif item.is_error:
            section = LogSection.ROW_ERROR
        else:
            section = LogSection.ROW_WARNING
        writer.writerow(
            (
                section,
                item.severity,
                "" if item.row_number is None else item.row_number,
                item.column or "",
                item.message,
            )
        )

    return buffer.getvalue()


class RunReporter:
    """
    Persists finalized runs and hands them to the audit sink.
    """

    def __init__(
        self,
        *,
        storage: ImportLogStorage,
        audit_sink: ImportAuditSink | None = None,
    ) -> None:
        self._storage = storage
        self._audit_sink = audit_sink or LoggingAuditSink()

    @property
    def storage(self) -> ImportLogStorage:
        return self._storage

    @staticmethod
    def handle_base(result: ImportRunResult) -> str:
        stamp = result.finished_at.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        return f"import-{result.mode}-{stamp}-{result.run_id[:8]}"

    def persist(self, result: ImportRunResult) -> RunLogHandles:
        """
        Write ``<base>.json`` and ``<base>.csv``. A failed write yields a None
        handle for that artifact and never fails the run.
        """

        base = self.handle_base(result)
        json_handle = self._write(
            f"{base}.json",
            lambda: json.dumps(build_log_payload(result), indent=2, ensure_ascii=False),
        )
        csv_handle = self._write(f"{base}.csv", lambda: format_log_csv(result))
        handles = RunLogHandles(json_handle=json_handle, csv_handle=csv_handle)

        try:
            self._audit_sink.record(result, handles)
        except Exception:
            logger.exception("Audit sink failed for import run %s", result.run_id)

        return handles

    def _write(self, handle: str, render: Callable[[], str]) -> str | None:
        try:
            return self._storage.write_text(handle, render())
        except (ImportLogStorageError, OSError, TypeError, ValueError):
            logger.exception("Failed writing import log %s", handle)
            return None
