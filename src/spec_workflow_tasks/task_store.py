"""File-backed access to tasks.md: read, parse, validate and update status.

This is the I/O shell around the pure parser, mutator and validator. Callers
that may edit the same file concurrently must serialise their updates; the
store itself keeps no state between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .config import Config, discover_specs
from .diff_generator import DiffGenerator, DiffResult
from .exceptions import TaskStoreError
from .file_writer import FileWriter, WriteResult
from .models import ParseResult, TaskStatus, TaskSummary
from .task_mutator import update_task_status
from .task_parser import get_task_by_id, parse_tasks_from_markdown
from .validator import TaskValidator, ValidationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusUpdateResult:
    """Outcome of updating one task's status in a tasks file."""

    task_id: str
    status: TaskStatus
    found: bool
    diff_result: DiffResult
    write_result: WriteResult | None = None

    @property
    def has_changes(self) -> bool:
        return self.diff_result.has_changes

    @property
    def written(self) -> bool:
        return self.write_result is not None and self.write_result.success


@dataclass(frozen=True)
class SpecOverview:
    """Progress of one spec's tasks file."""

    name: str
    tasks_path: Path
    summary: TaskSummary | None  # None when the spec has no tasks file yet
    last_modified: float = 0.0

    @property
    def unfinished(self) -> bool:
        return self.summary is not None and self.summary.completed < self.summary.total


class TaskStore:
    """Reads and updates tasks.md files with dependency injection."""

    def __init__(
        self,
        file_writer: FileWriter | None = None,
        diff_generator: DiffGenerator | None = None,
        validator: TaskValidator | None = None,
        create_backup: bool = True,
    ) -> None:
        self._file_writer = file_writer or FileWriter()
        self._diff_generator = diff_generator or DiffGenerator()
        self._validator = validator or TaskValidator()
        self._create_backup = create_backup

    @classmethod
    def from_config(cls, cfg: Config, create_backup: bool | None = None) -> TaskStore:
        """Build a store from config; create_backup overrides the configured value."""
        return cls(
            diff_generator=DiffGenerator(context_lines=cfg.diff_context_lines),
            create_backup=cfg.create_backup if create_backup is None else create_backup,
        )

    def read(self, file_path: Path) -> str:
        """Read raw tasks.md content, keeping line endings as they are on disk.

        Raises:
            TaskStoreError: If the file is missing or unreadable
        """
        try:
            with file_path.open("r", encoding="utf-8", newline="") as handle:
                return handle.read()
        except FileNotFoundError as err:
            raise TaskStoreError(f"File not found: {file_path}") from err
        except (OSError, UnicodeDecodeError) as err:
            raise TaskStoreError(f"Could not read {file_path}: {err}") from err

    def list_specs(self, cfg: Config, *, unfinished_only: bool = False) -> list[SpecOverview]:
        """Summarize every spec under the configured specs directory.

        Specs are returned by name, or newest tasks file first when
        unfinished_only is set.

        Raises:
            FileNotFoundError: If the specs directory does not exist
            TaskStoreError: If a tasks file cannot be read
        """
        overviews: list[SpecOverview] = []
        for name, spec_path in discover_specs(cfg):
            tasks_path = spec_path / cfg.tasks_filename
            if not tasks_path.exists():
                overviews.append(SpecOverview(name, tasks_path, None))
                continue
            overviews.append(
                SpecOverview(
                    name=name,
                    tasks_path=tasks_path,
                    summary=self.load(tasks_path).summary,
                    last_modified=tasks_path.stat().st_mtime,
                )
            )

        if unfinished_only:
            overviews = [overview for overview in overviews if overview.unfinished]
            overviews.sort(key=lambda overview: overview.last_modified, reverse=True)
        logger.debug(
            "Specs listed",
            extra={"extra_context": {"specs_root": str(cfg.specs_root), "count": len(overviews)}},
        )
        return overviews

    def load(self, file_path: Path) -> ParseResult:
        """Read and parse a tasks file."""
        return parse_tasks_from_markdown(self.read(file_path))

    def validate(self, file_path: Path) -> ValidationResult:
        """Read and validate a tasks file."""
        return self._validator.validate(self.read(file_path))

    def update_status(
        self,
        file_path: Path,
        task_id: str,
        status: TaskStatus | str,
        reason: str | None = None,
        *,
        dry_run: bool = False,
    ) -> StatusUpdateResult:
        """Update one task's status in file_path.

        Args:
            file_path: tasks.md to update
            task_id: Dotted id of the task
            status: Target status
            reason: Blocked reason, only used for the blocked status
            dry_run: Compute the diff without writing

        Returns:
            StatusUpdateResult; ``found`` is False when no task has task_id

        Raises:
            TaskStoreError: If the file cannot be read or the write fails
            ValueError: If status is not a known status
        """
        target_status = TaskStatus.from_value(status)
        original = self.read(file_path)
        updated = update_task_status(original, task_id, target_status, reason)
        found = get_task_by_id(parse_tasks_from_markdown(original).tasks, task_id) is not None
        diff_result = self._diff_generator.generate_diff(
            original, updated, f"{file_path.name} (current)", f"{file_path.name} (updated)"
        )

        context = {
            "path": str(file_path),
            "task_id": task_id,
            "status": target_status.value,
            "found": found,
            "dry_run": dry_run,
        }
        if not found or not diff_result.has_changes or dry_run:
            logger.info("Status update not written", extra={"extra_context": context})
            return StatusUpdateResult(task_id, target_status, found, diff_result)

        write_result = self._file_writer.write_with_backup(
            file_path, updated, backup=self._create_backup
        )
        if not write_result.success:
            raise TaskStoreError(write_result.error_message or f"Could not write {file_path}")

        logger.info("Task status updated", extra={"extra_context": context})
        return StatusUpdateResult(task_id, target_status, found, diff_result, write_result)
