"""Atomic tasks.md writer with backup support."""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteResult:
    """Result of writing a tasks file."""

    success: bool
    file_path: Path
    backup_path: Path | None
    error_message: str | None = None


class FileWriter:
    """Writes files atomically, optionally keeping a backup of the previous content."""

    def write_with_backup(self, file_path: Path, content: str, *, backup: bool = True) -> WriteResult:
        """Write content to file_path via a temp file and rename.

        Content is written byte-for-byte: no newline translation, so CRLF
        documents keep their line endings.

        Args:
            file_path: Path to file to write
            content: Content to write
            backup: Copy the existing file to a ``.backup`` sibling first

        Returns:
            WriteResult with success status and backup path
        """
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            return WriteResult(False, file_path, None, f"Failed to create directory: {err}")

        backup_path: Path | None = None
        if backup and file_path.exists():
            backup_path = self._create_backup_path(file_path)
            try:
                shutil.copy2(file_path, backup_path)
            except OSError as err:
                return WriteResult(False, file_path, None, f"Failed to create backup: {err}")

        try:
            temp_fd, temp_path_str = tempfile.mkstemp(
                dir=file_path.parent,
                prefix=f".{file_path.name}.",
                suffix=".tmp",
            )
        except OSError as err:
            return WriteResult(False, file_path, backup_path, f"Failed to create temp file: {err}")

        temp_path = Path(temp_path_str)
        try:
            with open(temp_fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(content)
            temp_path.replace(file_path)
        except OSError as err:
            temp_path.unlink(missing_ok=True)
            logger.error(
                "Tasks file write failed",
                extra={"extra_context": {"path": str(file_path), "error": str(err)}},
            )
            return WriteResult(False, file_path, backup_path, f"Failed to write file: {err}")

        logger.info(
            "Tasks file written",
            extra={
                "extra_context": {
                    "path": str(file_path),
                    "backup": str(backup_path) if backup_path else None,
                }
            },
        )
        return WriteResult(success=True, file_path=file_path, backup_path=backup_path)

    def _create_backup_path(self, file_path: Path) -> Path:
        """Return an unused ``<name>.backup[.N]`` path next to file_path."""
        backup_path = file_path.with_suffix(file_path.suffix + ".backup")
        counter = 1
        while backup_path.exists():
            backup_path = file_path.with_suffix(f"{file_path.suffix}.backup.{counter}")
            counter += 1
        return backup_path
