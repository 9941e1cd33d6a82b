"""Parse, validate and update spec-workflow tasks.md documents."""

from __future__ import annotations

from .models import ParsedTask, ParseResult, TaskProgress, TaskStatus, TaskSummary
from .task_mutator import update_task_status
from .task_parser import (
    find_next_pending_task,
    get_task_by_id,
    parse_task_progress,
    parse_tasks_from_markdown,
)
from .validator import (
    TaskValidator,
    ValidationIssue,
    ValidationResult,
    format_validation_errors,
    validate_tasks_markdown,
)

__all__ = [
    "ParsedTask",
    "ParseResult",
    "TaskProgress",
    "TaskStatus",
    "TaskSummary",
    "TaskValidator",
    "ValidationIssue",
    "ValidationResult",
    "find_next_pending_task",
    "format_validation_errors",
    "get_task_by_id",
    "parse_task_progress",
    "parse_tasks_from_markdown",
    "update_task_status",
    "validate_tasks_markdown",
]
