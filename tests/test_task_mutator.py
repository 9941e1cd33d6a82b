"""Tests for task_mutator module."""

from __future__ import annotations

import logging

import pytest

from spec_workflow_tasks.models import TaskStatus
from spec_workflow_tasks.task_mutator import format_blocked_line, update_task_status
from spec_workflow_tasks.task_parser import get_task_by_id, parse_tasks_from_markdown

DOCUMENT = """# Tasks Document

## Tasks

- [ ] 1. Create core interfaces
  - File: src/types/feature.ts
  - _Requirements: 1.1_

- [-] 2. Build service layer

  - [x] 2.1. Repository
    - File: src/repo.ts
    - Implement caching

  - [~] 2.2. External client
    - _Blocked: Vendor sandbox down_
    - File: src/client.ts

* [ ] 3. Legacy star bullet
  - File: src/legacy.ts

Notes: [x] in prose is not a task.
"""

TASK_IDS = ["1", "2", "2.1", "2.2", "3"]


def test_update_to_blocked_without_reason() -> None:
    """Test that only the status character changes when no reason is given."""
    result = update_task_status("- [ ] 1. Some task", "1", "blocked")

    assert result == "- [~] 1. Some task"
    assert "_Blocked:" not in result


def test_update_to_blocked_with_reason_inserts_line() -> None:
    """Test that the reason line goes right after the task line."""
    result = update_task_status("- [ ] 1. Task", "1", "blocked", "Waiting on API")

    assert result == "- [~] 1. Task\n  - _Blocked: Waiting on API_"


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("pending", "- [ ] 1. Blocked task"),
        ("in-progress", "- [-] 1. Blocked task"),
        ("completed", "- [x] 1. Blocked task"),
        (TaskStatus.COMPLETED, "- [x] 1. Blocked task"),
        ("in_progress", "- [-] 1. Blocked task"),
    ],
)
def test_update_from_blocked(status, expected: str) -> None:
    """Test moving a blocked task to each other status."""
    assert update_task_status("- [~] 1. Blocked task", "1", status) == expected


def test_unblocking_removes_reason_line() -> None:
    """Test that leaving the blocked status drops the _Blocked:_ line."""
    content = "- [~] 1. Blocked task\n  - _Blocked: Waiting on API team_\n- [ ] 2. Another task"

    result = update_task_status(content, "1", "pending")

    assert result == "- [ ] 1. Blocked task\n- [ ] 2. Another task"


def test_reason_is_replaced_not_duplicated() -> None:
    """Test that re-blocking replaces the previous reason."""
    content = "- [~] 1. Blocked task\n  - _Blocked: Old reason_\n- [ ] 2. Other"

    result = update_task_status(content, "1", "blocked", "New reason")

    assert "_Blocked: New reason_" in result
    assert "Old reason" not in result
    assert result.count("_Blocked:") == 1


def test_reason_is_ignored_for_non_blocked_status() -> None:
    """Test that reason only matters for the blocked status."""
    result = update_task_status("- [ ] 1. Task", "1", "completed", "Ignored")

    assert result == "- [x] 1. Task"


def test_blank_reason_inserts_nothing() -> None:
    """Test that a whitespace-only reason is treated as absent."""
    assert update_task_status("- [ ] 1. Task", "1", "blocked", "   ") == "- [~] 1. Task"


def test_multiline_reason_stays_on_one_line() -> None:
    """Test that newlines in the reason cannot create extra lines."""
    result = update_task_status("- [ ] 1. Task", "1", "blocked", "first\n- [ ] 9. fake")

    assert result == "- [~] 1. Task\n  - _Blocked: first - [ ] 9. fake_"
    assert [task.id for task in parse_tasks_from_markdown(result).tasks] == ["1"]


def test_unknown_id_returns_content_unchanged() -> None:
    """Test that an unknown id is a no-op."""
    assert update_task_status(DOCUMENT, "nonexistent-id", "completed") is DOCUMENT
    assert update_task_status(DOCUMENT, "99", "blocked", "Reason") == DOCUMENT


def test_id_match_is_exact_string_comparison() -> None:
    """Test that "1" does not match "1.1" and "2.10" does not match "2.1"."""
    content = "- [ ] 1.1. Child\n- [ ] 2.10. Tenth\n"

    assert update_task_status(content, "1", "completed") == content
    assert update_task_status(content, "2.1", "completed") == content


def test_unknown_status_returns_content_unchanged(caplog: pytest.LogCaptureFixture) -> None:
    """Test that an unknown status value is a logged no-op, never an exception."""
    content = "- [ ] 1. Task"

    with caplog.at_level(logging.WARNING, logger="spec_workflow_tasks.task_mutator"):
        result = update_task_status(content, "1", "done")

    assert result is content
    assert "Unknown status" in caplog.text
    assert update_task_status(content, "1", None) is content


def test_preserves_star_bullet_and_indentation() -> None:
    """Test that bullet style and nesting are kept."""
    content = "- [-] 1. Parent\n  * [ ] 1.1. Child task\n    - File: src/child.ts"

    result = update_task_status(content, "1.1", "blocked", "Waiting")

    assert result == (
        "- [-] 1. Parent\n"
        "  * [~] 1.1. Child task\n"
        "    - _Blocked: Waiting_\n"
        "    - File: src/child.ts"
    )


def test_escaped_period_task_is_found() -> None:
    """Test that MDXEditor-escaped ids are matched like the parser does."""
    result = update_task_status("- [ ] 1\\. Escaped", "1", "completed")

    assert result == "- [x] 1\\. Escaped"


def test_first_duplicate_is_updated() -> None:
    """Test that only the first task with a duplicate id changes."""
    result = update_task_status("- [ ] 1. First\n- [ ] 1. Second", "1", "completed")

    assert result == "- [x] 1. First\n- [ ] 1. Second"


def test_subtask_reason_line_is_not_removed_from_parent() -> None:
    """Test that only the task's own window is searched for a reason line."""
    result = update_task_status(DOCUMENT, "2", "completed")

    assert "_Blocked: Vendor sandbox down_" in result


def test_preserves_other_lines_byte_for_byte() -> None:
    """Test that everything but the status line is untouched."""
    result = update_task_status(DOCUMENT, "2.1", "pending")

    original_lines = DOCUMENT.split("\n")
    updated_lines = result.split("\n")
    changed = [i for i, (a, b) in enumerate(zip(original_lines, updated_lines)) if a != b]
    assert len(original_lines) == len(updated_lines)
    assert changed == [original_lines.index("  - [x] 2.1. Repository")]
    assert updated_lines[changed[0]] == "  - [ ] 2.1. Repository"


def test_crlf_line_endings_are_kept() -> None:
    """Test that CRLF documents stay CRLF, including the inserted line."""
    content = "- [ ] 1. Task\r\n- [ ] 2. Other\r\n"

    result = update_task_status(content, "1", "blocked", "Reason")

    assert result == "- [~] 1. Task\r\n  - _Blocked: Reason_\r\n- [ ] 2. Other\r\n"


@pytest.mark.parametrize("task_id", TASK_IDS)
@pytest.mark.parametrize("status", list(TaskStatus))
def test_round_trip_status(task_id: str, status: TaskStatus) -> None:
    """Re-parsing the result reports the new status and the same task ids."""
    before = parse_tasks_from_markdown(DOCUMENT)

    after = parse_tasks_from_markdown(update_task_status(DOCUMENT, task_id, status))

    assert [task.id for task in after.tasks] == [task.id for task in before.tasks]
    assert get_task_by_id(after.tasks, task_id).status is status


@pytest.mark.parametrize("task_id", TASK_IDS)
def test_non_interference(task_id: str) -> None:
    """Updating one task never changes any other task's fields."""
    before = parse_tasks_from_markdown(DOCUMENT)

    after = parse_tasks_from_markdown(update_task_status(DOCUMENT, task_id, "blocked", "Reason"))

    for old, new in zip(before.tasks, after.tasks):
        if old.id == task_id:
            continue
        assert (old.description, old.status, old.files, old.requirements, old.blocked_reason) == (
            new.description,
            new.status,
            new.files,
            new.requirements,
            new.blocked_reason,
        )


def test_blocking_twice_is_idempotent() -> None:
    """Test that repeating the same blocked update changes nothing further."""
    once = update_task_status(DOCUMENT, "1", "blocked", "R")
    twice = update_task_status(once, "1", "blocked", "R")

    assert twice == once
    assert once.count("_Blocked: R_") == 1


def test_block_then_unblock_round_trip() -> None:
    """Test block with reason, parse, unblock, parse again."""
    original = "- [ ] 1. Task to block\n  - File: src/test.ts\n- [ ] 2. Other task"

    blocked = update_task_status(original, "1", "blocked", "Depends on task 2")
    parsed = parse_tasks_from_markdown(blocked)
    assert parsed.tasks[0].blocked_reason == "Depends on task 2"

    unblocked = update_task_status(blocked, "1", "pending")
    assert unblocked == original
    assert parse_tasks_from_markdown(unblocked).tasks[0].blocked_reason is None


def test_format_blocked_line() -> None:
    """Test the reason line layout."""
    assert format_blocked_line("    ", "Waiting") == "      - _Blocked: Waiting_"
