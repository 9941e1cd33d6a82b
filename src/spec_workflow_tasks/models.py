"""Data model for parsed tasks.md documents.

Everything here is rebuilt from scratch on every parse call. Nesting is
implied by dotted task ids ("2.1" belongs under "2"), never by object links.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class TaskStatus(Enum):
    """Status of a task, as encoded by its checkbox character."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"

    @classmethod
    def from_value(cls, value: TaskStatus | str) -> TaskStatus:
        """Coerce a status enum or its string value into a TaskStatus.

        Accepts "in_progress" as an alias for "in-progress".

        Raises:
            ValueError: If the value names no known status
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("_", "-")
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(status.value for status in cls)
            raise ValueError(f"Unknown task status {value!r} (expected one of: {valid})") from None


@dataclass(frozen=True)
class ParsedTask:
    """A single checklist task from tasks.md."""

    id: str  # Dotted task number (e.g., "1", "4.2")
    description: str
    status: TaskStatus
    line_number: int  # 0-based index of the checklist line
    indent_level: int = 0
    is_header: bool = False
    files: list[str] | None = None
    requirements: list[str] | None = None
    leverage: str | None = None
    prompt: str | None = None
    implementation_details: list[str] | None = None
    blocked_reason: str | None = None

    @property
    def completed(self) -> bool:
        return self.status is TaskStatus.COMPLETED

    @property
    def in_progress(self) -> bool:
        return self.status is TaskStatus.IN_PROGRESS

    @property
    def blocked(self) -> bool:
        return self.status is TaskStatus.BLOCKED

    @property
    def display_title(self) -> str:
        """Get display-ready task title."""
        return f"{self.id}. {self.description}"

    def to_dict(self) -> dict[str, object]:
        """Convert to the camelCase shape the dashboard consumes."""
        data: dict[str, object] = {
            "id": self.id,
            "description": self.description,
            "status": self.status.value,
            "lineNumber": self.line_number,
            "indentLevel": self.indent_level,
            "isHeader": self.is_header,
            "completed": self.completed,
            "inProgress": self.in_progress,
            "blocked": self.blocked,
        }
        optional = {
            "files": self.files,
            "requirements": self.requirements,
            "leverage": self.leverage,
            "prompt": self.prompt,
            "implementationDetails": self.implementation_details,
            "blockedReason": self.blocked_reason,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data


@dataclass(frozen=True)
class TaskSummary:
    """Aggregate counts over non-header tasks, plus the header tally."""

    total: int = 0
    completed: int = 0
    pending: int = 0
    in_progress: int = 0
    blocked: int = 0
    headers: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "completed": self.completed,
            "pending": self.pending,
            "inProgress": self.in_progress,
            "blocked": self.blocked,
            "headers": self.headers,
        }


@dataclass(frozen=True)
class ParseResult:
    """Result of parsing a tasks.md document."""

    tasks: list[ParsedTask] = field(default_factory=list)
    summary: TaskSummary = field(default_factory=TaskSummary)
    in_progress_task: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "tasks": [task.to_dict() for task in self.tasks],
            "summary": self.summary.to_dict(),
            "inProgressTask": self.in_progress_task,
        }


@dataclass(frozen=True)
class TaskProgress:
    """Task progress counts."""

    pending: int
    in_progress: int
    completed: int
    blocked: int = 0

    @property
    def total(self) -> int:
        """Total task count."""
        return self.pending + self.in_progress + self.completed + self.blocked

    @property
    def percentage(self) -> float:
        """Completion percentage."""
        if self.total == 0:
            return 0.0
        return (self.completed / self.total) * 100.0

    @classmethod
    def from_summary(cls, summary: TaskSummary) -> TaskProgress:
        return cls(
            pending=summary.pending,
            in_progress=summary.in_progress,
            completed=summary.completed,
            blocked=summary.blocked,
        )

    def to_dict(self) -> dict[str, int | float]:
        """Convert to dictionary for JSON serialization."""
        return {
            "pending": self.pending,
            "in_progress": self.in_progress,
            "completed": self.completed,
            "blocked": self.blocked,
            "total": self.total,
            "percentage": round(self.percentage, 1),
        }

    def summary(self) -> str:
        """Human-readable summary."""
        return (
            f"{self.completed}/{self.total} completed "
            f"({self.in_progress} in progress, {self.pending} pending, {self.blocked} blocked)"
        )
