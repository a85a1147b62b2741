"""
app/services/employee_import_service.py

Orchestrates the employee bulk import.

Dry-run and commit share one preparation path: profile and policy parsing,
template resolution, spreadsheet reading, header mapping, header
validation, one batched existence lookup and per-row validation. Dry-run
stops there and reports; commit additionally writes every cleared row in
its own transaction. Both end by writing a JSON and a CSV run log.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_employee_import_settings
from app.domain.employee_import import (
    HeaderValidation,
    ImportMode,
    ImportRow,
    ImportRunResult,
    RowDiagnostic,
    RowOutcome,
    RunLogHandles,
    TERMINAL_ROW_STATES,
    Severity,
    TemplateDefinition,
    parse_duplicate_policy,
    parse_profile,
)
from app.domain.employee_record import NATURAL_KEY
from app.domain.errors import (
    EmployeeStoreUnavailableError,
    EmptyUploadError,
    InvalidRowTransitionError,
    MissingNaturalKeyError,
    TemplateUnavailableError,
)
from app.mappers.header_mapper import HeaderMapping, sanitize_header_text
from app.parsers.spreadsheet_reader import read_spreadsheet
from app.repositories.column_mapping_repository import ColumnMappingRepository, ColumnMappingSourceError
from app.repositories.employee_repository import EmployeeRepository
from app.repositories.import_log_storage import ImportLogStorage
from app.services.duplicate_resolver import preload_existing
from app.services.run_reporter import RunReporter, finalize, new_run_id
from app.services.template_resolver import TemplateResolver, load_column_enums
from app.services.template_workbook import build_template_workbook
from app.services.upsert_engine import UpsertEngine, build_write_plan
from app.validators.header_validator import validate_headers
from app.validators.row_validator import EmployeeRowValidator, RowValidation, is_skip
from db.session import SessionLocal

logger = logging.getLogger(__name__)

EMPTY_UPLOAD_MESSAGE = "Excel file empty"
TEMPLATE_SOURCE = "mapping-excel"


@dataclass(frozen=True)
class CompletedImportRun:
    """
    Finalized run plus the handles of its run-log artifacts.
    """

    result: ImportRunResult
    handles: RunLogHandles

    @property
    def message(self) -> str:
        result = self.result
        if result.mode == ImportMode.DRY_RUN:
            return "Dry-run completed with errors" if result.error_count else "Dry-run successful"
        if result.error_count:
            return "Imported with some errors."
        return f"Successfully processed {result.processed} rows."


@dataclass(frozen=True)
class TemplateDownload:
    profile: str
    filename: str
    content: bytes
    version: str
    sha256: str
    updated_at: str
    source: str = TEMPLATE_SOURCE


@dataclass(frozen=True)
class _PreparedImport:
    run_id: str
    started_at: datetime
    profile: str
    policy: str
    definition: TemplateDefinition
    header_validation: HeaderValidation
    validations: tuple[RowValidation, ...]


class EmployeeImportService:
    """
    Coordinates template resolution, validation, persistence and reporting.
    """

    def __init__(
        self,
        *,
        template_resolver: TemplateResolver,
        reporter: RunReporter,
        header_mapping: HeaderMapping | None = None,
        validator: EmployeeRowValidator | None = None,
        session_factory: Callable[[], Session] | None = None,
        repository_factory: Callable[[Session], EmployeeRepository] = EmployeeRepository,
        upsert_engine: UpsertEngine | None = None,
        enums_path: Path | None = None,
        template_version: str = "0.0.0",
        existence_chunk_size: int = 1000,
        log_diagnostics: bool = True,
    ) -> None:
        self._template_resolver = template_resolver
        self._reporter = reporter
        self._header_mapping = header_mapping or HeaderMapping()
        self._validator = validator or EmployeeRowValidator()
        self._session_factory = session_factory or SessionLocal
        self._repository_factory = repository_factory
        self._upsert_engine = upsert_engine or UpsertEngine(
            session_factory=self._session_factory,
            repository_factory=repository_factory,
        )
        self._enums_path = enums_path
        self._template_version = template_version
        self._existence_chunk_size = max(1, existence_chunk_size)
        self._log_diagnostics = log_diagnostics

    def dry_run(
        self,
        *,
        content: bytes,
        filename: str | None,
        profile: str | None,
        on_duplicate: str | None,
    ) -> CompletedImportRun:
        """
        Validate an upload without touching the employee store.
        """

        prepared = self._prepare(
            content=content,
            filename=filename,
            profile=profile,
            on_duplicate=on_duplicate,
        )

        diagnostics: list[RowDiagnostic] = []
        outcomes: list[RowOutcome] = []
        processed = 0
        skipped = 0
        for validation in prepared.validations:
            self._collect(diagnostics, validation.diagnostics)
            if validation.cleared:
                processed += 1
            elif is_skip(validation):
                skipped += 1
            outcomes.append(self._outcome(validation, validation.state))

        result = finalize(
            run_id=prepared.run_id,
            mode=ImportMode.DRY_RUN,
            profile=prepared.profile,
            duplicate_policy=prepared.policy,
            started_at=prepared.started_at,
            total_rows=len(prepared.validations),
            processed=processed,
            skipped=skipped,
            diagnostics=diagnostics,
            row_outcomes=outcomes,
            header_validation=prepared.header_validation,
        )
        return self._complete(result)

    def commit(
        self,
        *,
        content: bytes,
        filename: str | None,
        profile: str | None,
        on_duplicate: str | None,
    ) -> CompletedImportRun:
        """
        Validate an upload and write every cleared row, one transaction per row.
        """

        prepared = self._prepare(
            content=content,
            filename=filename,
            profile=profile,
            on_duplicate=on_duplicate,
        )

        diagnostics: list[RowDiagnostic] = []
        outcomes: list[RowOutcome] = []
        committed = 0
        skipped = 0
        for validation in prepared.validations:
            self._collect(diagnostics, validation.diagnostics)
            if not validation.cleared:
                if is_skip(validation):
                    skipped += 1
                outcomes.append(self._final_outcome(validation, validation.state))
                continue

            commit_result = self._upsert_engine.commit_row(build_write_plan(validation.row))
            if commit_result.committed:
                committed += 1
            else:
                self._collect(
                    diagnostics,
                    (
                        RowDiagnostic(
                            row_number=validation.row.row_number,
                            column=commit_result.failed_entity,
                            message=f"employee_id={validation.row.employee_id} error: {commit_result.error}",
                            severity=Severity.ERROR,
                            value=validation.row.employee_id,
                        ),
                    ),
                )
            outcomes.append(self._final_outcome(validation, commit_result.state))

        result = finalize(
            run_id=prepared.run_id,
            mode=ImportMode.COMMIT,
            profile=prepared.profile,
            duplicate_policy=prepared.policy,
            started_at=prepared.started_at,
            total_rows=len(prepared.validations),
            processed=committed,
            skipped=skipped,
            diagnostics=diagnostics,
            row_outcomes=outcomes,
        )
        return self._complete(result)

    def build_template(self, profile: str | None) -> TemplateDownload:
        """
        Render the upload workbook of one profile with its fingerprint.
        """

        profile_key = parse_profile(profile)
        definition = self._resolve_definition(profile_key)
        enums = load_column_enums(self._enums_path, departments=self._load_departments())
        content = build_template_workbook(definition, enums, self._header_mapping)

        repository = self._template_resolver.repository
        try:
            fingerprint = repository.fingerprint()
        except ColumnMappingSourceError as exc:
            raise TemplateUnavailableError(str(exc)) from exc

        return TemplateDownload(
            profile=profile_key,
            filename=f"employee_template_{profile_key}.xlsx",
            content=content,
            version=self._template_version,
            sha256=fingerprint.sha256,
            updated_at=fingerprint.updated_at.isoformat(),
        )

    def open_log(self, handle: str) -> Path:
        return self._reporter.storage.resolve(handle)

    def _prepare(
        self,
        *,
        content: bytes,
        filename: str | None,
        profile: str | None,
        on_duplicate: str | None,
    ) -> _PreparedImport:
        started_at = datetime.now(timezone.utc)
        profile_key = parse_profile(profile)
        policy = parse_duplicate_policy(on_duplicate)
        definition = self._resolve_definition(profile_key)

        sheet = read_spreadsheet(content, filename)
        if sheet.row_count == 0:
            raise EmptyUploadError(EMPTY_UPLOAD_MESSAGE)

        headers = list(sheet.headers)
        if not any(self._header_mapping.field_for(header) == NATURAL_KEY for header in headers):
            raise MissingNaturalKeyError(
                "No uploaded column maps to employee_id. Add an 'Emp. ID' column and try again."
            )
        self._header_mapping.log_unmapped(headers)

        rows = [self._header_mapping.map_row(row_number, raw_row) for row_number, raw_row in sheet.rows]
        header_validation = validate_headers(
            definition.headers,
            [sanitize_header_text(header) for header in headers],
        )

        existing = self._preload_existing(rows)
        seen_keys: set[str] = set()
        validations = tuple(
            self._validator.validate(
                row=row,
                existing_keys=existing,
                policy=policy,
                seen_keys=seen_keys,
            )
            for row in rows
        )

        return _PreparedImport(
            run_id=new_run_id(),
            started_at=started_at,
            profile=profile_key,
            policy=policy,
            definition=definition,
            header_validation=header_validation,
            validations=validations,
        )

    def _resolve_definition(self, profile: str) -> TemplateDefinition:
        definition = self._template_resolver.resolve(profile)
        if not definition.available:
            raise TemplateUnavailableError(definition.message or "Mapping not available")
        return definition

    def _preload_existing(self, rows: Iterable[ImportRow]) -> frozenset[str]:
        session = self._session_factory()
        try:
            repository = self._repository_factory(session)
            return preload_existing(_ChunkedLookup(repository, self._existence_chunk_size), rows)
        except SQLAlchemyError as exc:
            logger.error("Employee existence lookup failed: %s", exc)
            raise EmployeeStoreUnavailableError("Employee store is unavailable; try again later.") from exc
        finally:
            session.close()

    def _load_departments(self) -> list[str]:
        session = self._session_factory()
        try:
            return self._repository_factory(session).list_departments()
        except SQLAlchemyError as exc:
            logger.warning("Template generation: failed to fetch departments: %s", exc)
            return []
        finally:
            session.close()

    def _collect(self, captured: list[RowDiagnostic], diagnostics: Iterable[RowDiagnostic]) -> None:
        for diagnostic in diagnostics:
            if self._log_diagnostics:
                logger.warning(
                    "Import %s row=%s column=%s message=%s",
                    diagnostic.severity,
                    diagnostic.row_number,
                    diagnostic.column,
                    diagnostic.message,
                )
            captured.append(diagnostic)

    @staticmethod
    def _outcome(validation: RowValidation, state: str) -> RowOutcome:
        return RowOutcome(
            row_number=validation.row.row_number,
            employee_id=validation.row.employee_id,
            action=validation.decision.action,
            state=state,
        )

    @classmethod
    def _final_outcome(cls, validation: RowValidation, state: str) -> RowOutcome:
        if state not in TERMINAL_ROW_STATES:
            raise InvalidRowTransitionError(
                f"Row {validation.row.row_number} left the commit pass in non-terminal state {state!r}."
            )
        return cls._outcome(validation, state)

    def _complete(self, result: ImportRunResult) -> CompletedImportRun:
        handles = self._reporter.persist(result)
        logger.info(
            "Employee import %s finished profile=%s policy=%s rows=%d processed=%d skipped=%d "
            "errors=%d warnings=%d",
            result.mode,
            result.profile,
            result.duplicate_policy,
            result.total_rows,
            result.processed,
            result.skipped,
            result.error_count,
            result.warning_count,
        )
        return CompletedImportRun(result=result, handles=handles)


class _ChunkedLookup:
    def __init__(self, repository: EmployeeRepository, chunk_size: int) -> None:
        self._repository = repository
        self._chunk_size = chunk_size

    def find_existing_ids(self, employee_ids: Iterable[str]) -> set[str]:
        return self._repository.find_existing_ids(employee_ids, chunk_size=self._chunk_size)


@lru_cache(maxsize=1)
def get_employee_import_service() -> EmployeeImportService:
    """
    Build and cache the import service with env-driven settings.
    """
    settings = get_employee_import_settings()
    return EmployeeImportService(
        template_resolver=TemplateResolver(ColumnMappingRepository(settings.mapping_path)),
        reporter=RunReporter(storage=ImportLogStorage(settings.log_dir)),
        header_mapping=HeaderMapping.from_override_file(settings.header_overrides_path),
        enums_path=settings.enums_path,
        template_version=settings.template_version,
        existence_chunk_size=settings.existence_chunk_size,
        log_diagnostics=settings.log_diagnostics,
    )
