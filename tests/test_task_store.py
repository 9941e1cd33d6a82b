"""Tests for task_store module."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from spec_workflow_tasks.config import Config
from spec_workflow_tasks.exceptions import TaskStoreError
from spec_workflow_tasks.file_writer import FileWriter, WriteResult
from spec_workflow_tasks.models import TaskStatus
from spec_workflow_tasks.task_store import TaskStore

TASKS = """# Tasks Document

- [ ] 1. Create interfaces
  - File: src/types.ts
- [-] 2. Implement service
  - File: src/service.ts
"""


@pytest.fixture
def tasks_file(tmp_path: Path) -> Path:
    path = tmp_path / "tasks.md"
    path.write_text(TASKS, encoding="utf-8")
    return path


@pytest.fixture
def store() -> TaskStore:
    return TaskStore()


def test_load(store: TaskStore, tasks_file: Path) -> None:
    result = store.load(tasks_file)

    assert [task.id for task in result.tasks] == ["1", "2"]
    assert result.in_progress_task == "2"


def test_read_missing_file(store: TaskStore, tmp_path: Path) -> None:
    with pytest.raises(TaskStoreError, match="File not found"):
        store.read(tmp_path / "missing.md")


def test_read_keeps_crlf(store: TaskStore, tmp_path: Path) -> None:
    path = tmp_path / "tasks.md"
    path.write_bytes(b"- [ ] 1. Task\r\n")

    assert store.read(path) == "- [ ] 1. Task\r\n"


def test_validate(store: TaskStore, tmp_path: Path) -> None:
    path = tmp_path / "tasks.md"
    path.write_text("- [] 1. Task\n", encoding="utf-8")

    result = store.validate(path)

    assert not result.valid
    assert result.errors[0].field == "checkbox"


def test_update_status_writes_file(store: TaskStore, tasks_file: Path) -> None:
    outcome = store.update_status(tasks_file, "1", "completed")

    assert outcome.found
    assert outcome.written
    assert outcome.status is TaskStatus.COMPLETED
    assert outcome.diff_result.lines_modified == 1
    assert "- [x] 1. Create interfaces" in tasks_file.read_text(encoding="utf-8")
    assert outcome.write_result is not None
    assert outcome.write_result.backup_path == tasks_file.with_name("tasks.md.backup")


def test_update_status_blocked_with_reason(store: TaskStore, tasks_file: Path) -> None:
    store.update_status(tasks_file, "2", TaskStatus.BLOCKED, "API not ready")

    task = store.load(tasks_file).tasks[1]
    assert task.status is TaskStatus.BLOCKED
    assert task.blocked_reason == "API not ready"
    assert task.files == ["src/service.ts"]


def test_update_status_dry_run(store: TaskStore, tasks_file: Path) -> None:
    outcome = store.update_status(tasks_file, "1", "completed", dry_run=True)

    assert outcome.has_changes
    assert not outcome.written
    assert "+- [x] 1. Create interfaces" in outcome.diff_result.diff_text
    assert tasks_file.read_text(encoding="utf-8") == TASKS


def test_update_status_unknown_task(store: TaskStore, tasks_file: Path) -> None:
    outcome = store.update_status(tasks_file, "9", "completed")

    assert not outcome.found
    assert not outcome.has_changes
    assert outcome.write_result is None
    assert not tasks_file.with_name("tasks.md.backup").exists()


def test_update_status_no_change(store: TaskStore, tasks_file: Path) -> None:
    outcome = store.update_status(tasks_file, "2", "in_progress")

    assert outcome.found
    assert not outcome.has_changes
    assert outcome.write_result is None


def test_update_status_invalid_status(store: TaskStore, tasks_file: Path) -> None:
    with pytest.raises(ValueError, match="Unknown task status"):
        store.update_status(tasks_file, "1", "finished")


def test_update_status_write_failure(tasks_file: Path) -> None:
    writer = MagicMock(spec=FileWriter)
    writer.write_with_backup.return_value = WriteResult(
        False, tasks_file, None, "Failed to write file: disk full"
    )
    store = TaskStore(file_writer=writer)

    with pytest.raises(TaskStoreError, match="disk full"):
        store.update_status(tasks_file, "1", "completed")


def test_from_config_backup_setting(tasks_file: Path) -> None:
    cfg = Config.from_dict({"create_backup": False})

    TaskStore.from_config(cfg).update_status(tasks_file, "1", "completed")

    assert not tasks_file.with_name("tasks.md.backup").exists()


def test_from_config_override(tasks_file: Path) -> None:
    cfg = Config.from_dict({})

    TaskStore.from_config(cfg, create_backup=False).update_status(tasks_file, "1", "completed")

    assert not tasks_file.with_name("tasks.md.backup").exists()


@pytest.fixture
def project(tmp_path: Path) -> Config:
    """Create a project with a finished, an unfinished and an empty spec."""
    specs = tmp_path / ".spec-workflow" / "specs"
    for name, content in (
        ("billing", "- [x] 1. Done\n  - File: a.ts\n"),
        ("user-auth", "- [x] 1. Done\n  - File: a.ts\n- [ ] 2. Todo\n  - File: b.ts\n"),
        ("search", "- [ ] 1. Todo\n  - File: c.ts\n"),
    ):
        (specs / name).mkdir(parents=True)
        (specs / name / "tasks.md").write_text(content, encoding="utf-8")
    (specs / "drafts").mkdir()
    os.utime(specs / "search" / "tasks.md", (1_000_000, 1_000_000))
    return Config.from_dict({"project_root": str(tmp_path)})


def test_list_specs(store: TaskStore, project: Config) -> None:
    overviews = store.list_specs(project)

    assert [overview.name for overview in overviews] == ["billing", "drafts", "search", "user-auth"]
    billing, drafts, _, user_auth = overviews
    assert billing.summary is not None
    assert billing.summary.completed == billing.summary.total == 1
    assert not billing.unfinished
    assert drafts.summary is None
    assert not drafts.unfinished
    assert user_auth.unfinished


def test_list_specs_unfinished_newest_first(store: TaskStore, project: Config) -> None:
    overviews = store.list_specs(project, unfinished_only=True)

    assert [overview.name for overview in overviews] == ["user-auth", "search"]


def test_list_specs_without_specs_directory(store: TaskStore, tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="No specs directory"):
        store.list_specs(Config.from_dict({"project_root": str(tmp_path)}))
