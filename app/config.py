"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from db.config import PROJECT_ROOT, load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_path_env(name: str, default: str | None) -> Path | None:
    """
    Read a filesystem path; relative paths resolve against the project root.
    """

    raw = _get_optional_str_env(name) or default
    if raw is None:
        return None
    path = Path(raw)
    return path if path.is_absolute() else PROJECT_ROOT / path


def _get_csv_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list of lower-cased tokens.
    """

    raw = _get_optional_str_env(name)
    if raw is None:
        return default
    values = tuple(token.strip().lower() for token in raw.split(",") if token.strip())
    return values or default


@dataclass(frozen=True)
class EmployeeImportSettings:
    """
    Runtime settings for the employee bulk import pipeline.
    """

    mapping_path: Path
    enums_path: Path | None = None
    header_overrides_path: Path | None = None
    log_dir: Path = PROJECT_ROOT / "logs" / "imports"
    max_upload_bytes: int = 10 * 1024 * 1024
    log_diagnostics: bool = True
    existence_chunk_size: int = 1000
    allowed_roles: tuple[str, ...] = ("admin", "hr_general", "superadmin")
    template_version: str = "0.0.0"


@lru_cache(maxsize=1)
def get_employee_import_settings() -> EmployeeImportSettings:
    """
    Return cached employee import settings from environment variables.
    """

    return EmployeeImportSettings(
        mapping_path=_get_path_env("EMPLOYEE_IMPORT_MAPPING_PATH", "config/column_assignment.csv"),
        enums_path=_get_path_env("EMPLOYEE_IMPORT_ENUMS_PATH", "config/column_enums.json"),
        header_overrides_path=_get_path_env("EMPLOYEE_IMPORT_HEADER_OVERRIDES_PATH", None),
        log_dir=_get_path_env("EMPLOYEE_IMPORT_LOG_DIR", "logs/imports"),
        max_upload_bytes=max(1, _get_int_env("EMPLOYEE_IMPORT_MAX_UPLOAD_BYTES", 10 * 1024 * 1024)),
        log_diagnostics=_get_bool_env("EMPLOYEE_IMPORT_LOG_DIAGNOSTICS", True),
        existence_chunk_size=max(1, _get_int_env("EMPLOYEE_IMPORT_EXISTENCE_CHUNK_SIZE", 1000)),
        allowed_roles=_get_csv_env(
            "EMPLOYEE_IMPORT_ALLOWED_ROLES",
            ("admin", "hr_general", "superadmin"),
        ),
        template_version=_get_str_env("EMPLOYEE_IMPORT_TEMPLATE_VERSION", "0.0.0"),
    )
