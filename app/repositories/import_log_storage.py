"""
app/repositories/import_log_storage.py

Local filesystem storage for import run-log artifacts.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath, PureWindowsPath

from app.domain.errors import LogAccessDeniedError, LogNotFoundError


class ImportLogStorageError(OSError):
    """
    Raised when a run-log artifact cannot be written.
    """


class ImportLogStorage:
    """
    Writes run logs into one directory and resolves handles back to files
    inside that directory only.
    """

    def __init__(self, root_dir: str | Path = "logs/imports") -> None:
        self._root_dir = Path(root_dir)

    @property
    def root_dir(self) -> Path:
        return self._root_dir

    def write_text(self, handle: str, content: str) -> str:
        """
        Atomically write ``content`` under ``handle`` and return the handle.
        """

        target = self._root_dir / self._safe_relative(handle)
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = target.with_suffix(f"{target.suffix}.tmp")
        try:
            tmp_path.write_text(content, encoding="utf-8", newline="")
            tmp_path.replace(target)
        except OSError as exc:
            raise ImportLogStorageError(f"Failed to write import log {handle}.") from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass
        return handle

    def resolve(self, handle: str) -> Path:
        """
        Map a handle to an existing file under the log directory.

        Empty, absolute and escaping handles are refused.
        """

        relative = self._safe_relative(handle)
        root = self._root_dir.resolve()
        candidate = (root / relative).resolve()
        if candidate != root and root not in candidate.parents:
            raise LogAccessDeniedError("Access denied to requested file")
        if not candidate.is_file():
            raise LogNotFoundError(f"File not found: {relative.as_posix()}")
        return candidate

    @staticmethod
    def _safe_relative(handle: str) -> Path:
        text = (handle or "").strip()
        if not text:
            raise LogAccessDeniedError("Access denied to requested file")
        if PurePosixPath(text).is_absolute() or PureWindowsPath(text).is_absolute() or PureWindowsPath(text).drive:
            raise LogAccessDeniedError("Access denied to requested file")
        parts = PurePosixPath(text.replace("\\", "/")).parts
        if any(part == ".." for part in parts):
            raise LogAccessDeniedError("Access denied to requested file")
        return Path(*parts)
