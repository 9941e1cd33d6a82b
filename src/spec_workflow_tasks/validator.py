"""Task validation module for detecting format issues in tasks.md files.

The validator is stricter than the parser: it only accepts the canonical
``- [ ] 1. Title`` form, while the parser stays tolerant of ``*`` bullets and
uppercase ``X`` for older documents. It never modifies the content.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .grammar import (
    PROMPT_KEY,
    extract_task_id,
    is_bullet,
    read_prompt_block,
    strip_bullet,
)

logger = logging.getLogger(__name__)

# Anything shaped like a checklist item, including malformed ones ("-[ ]", "- []", "* [X]")
CANDIDATE_LINE = re.compile(
    r"^(?P<indent>[ \t]*)(?P<bullet>[-*])(?P<gap>[ \t]*)\[(?P<inner>[^\]]{0,3})\](?P<rest>.*?)\r?$"
)

VALID_CHECKBOX_CHARS = (" ", "x", "-", "~")
PROMPT_SECTIONS = ("Role:", "Task:", "Restrictions:", "Success:")


class Severity(Enum):
    """Severity of a validation issue."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    """Represents a single validation issue in a tasks.md file."""

    line: int  # 1-based
    field: str
    message: str
    suggestion: str
    severity: Severity
    task_id: str | None = None
    column: int = 1

    @property
    def rule_id(self) -> str:
        return f"{self.severity.value}/{self.field}"

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "line": self.line,
            "column": self.column,
            "field": self.field,
            "message": self.message,
            "suggestion": self.suggestion,
            "severity": self.severity.value,
        }
        if self.task_id is not None:
            data["taskId"] = self.task_id
        return data


@dataclass(frozen=True)
class ValidationSummary:
    """Task counts gathered during validation."""

    total_tasks: int = 0
    valid_tasks: int = 0
    invalid_tasks: int = 0


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating tasks.md content."""

    valid: bool
    errors: tuple[ValidationIssue, ...] = field(default_factory=tuple)
    warnings: tuple[ValidationIssue, ...] = field(default_factory=tuple)
    summary: ValidationSummary = field(default_factory=ValidationSummary)

    @property
    def issue_count(self) -> int:
        """Get total number of errors and warnings."""
        return len(self.errors) + len(self.warnings)

    @property
    def error_summary(self) -> str:
        """Get human-readable summary of errors and warnings."""
        if not self.issue_count:
            return "No validation issues found."

        summary_lines = [
            f"Found {len(self.errors)} error(s) and {len(self.warnings)} warning(s):"
        ]
        summary_lines.extend(f"  {message}" for message in format_validation_errors(self))
        return "\n".join(summary_lines)

    def to_dict(self) -> dict[str, object]:
        return {
            "valid": self.valid,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
            "summary": {
                "totalTasks": self.summary.total_tasks,
                "validTasks": self.summary.valid_tasks,
                "invalidTasks": self.summary.invalid_tasks,
            },
        }


class TaskValidator:
    """Validates tasks.md content for format compliance."""

    def validate_file(self, file_path: Path) -> ValidationResult:
        """Validate a tasks.md file for format issues.

        Args:
            file_path: Path to the tasks.md file to validate

        Returns:
            ValidationResult; an unreadable file is reported as a single error
        """
        try:
            with file_path.open("r", encoding="utf-8", newline="") as handle:
                content = handle.read()
        except (OSError, UnicodeDecodeError) as err:
            logger.warning(
                "Could not read tasks file for validation",
                extra={"extra_context": {"path": str(file_path), "error": str(err)}},
            )
            issue = ValidationIssue(
                line=0,
                field="file",
                message=f"Error reading file: {err}",
                suggestion="Check that the file exists and is UTF-8 encoded",
                severity=Severity.ERROR,
            )
            return ValidationResult(valid=False, errors=(issue,))
        return self.validate(content)

    def validate(self, content: str) -> ValidationResult:
        """Validate tasks.md content.

        Args:
            content: Raw markdown text

        Returns:
            ValidationResult with errors, warnings and task counts
        """
        if not isinstance(content, str) or not content:
            return ValidationResult(valid=True)

        lines = content.split("\n")
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []
        total_tasks = 0
        invalid_tasks = 0
        current_task_id: str | None = None
        in_task = False

        index = 0
        while index < len(lines):
            line = lines[index]
            candidate = CANDIDATE_LINE.match(line)
            if candidate:
                total_tasks += 1
                in_task = True
                issue = self._check_task_line(candidate, index + 1)
                extracted = extract_task_id(candidate.group("rest"))
                current_task_id = extracted[0] if extracted else None
                if issue is not None:
                    errors.append(issue)
                    invalid_tasks += 1
                index += 1
                continue

            if in_task:
                index = self._check_metadata_line(lines, index, current_task_id, warnings)
            index += 1

        if errors:
            logger.debug(
                "Tasks content failed validation",
                extra={"extra_context": {"errors": len(errors), "warnings": len(warnings)}},
            )

        return ValidationResult(
            valid=not errors,
            errors=tuple(errors),
            warnings=tuple(warnings),
            summary=ValidationSummary(
                total_tasks=total_tasks,
                valid_tasks=total_tasks - invalid_tasks,
                invalid_tasks=invalid_tasks,
            ),
        )

    def _check_task_line(self, candidate: re.Match[str], line_num: int) -> ValidationIssue | None:
        """Return the first format error on a task line, if any."""
        bullet_column = len(candidate.group("indent")) + 1
        bullet = candidate.group("bullet")
        gap = candidate.group("gap")
        inner = candidate.group("inner")
        rest = candidate.group("rest")

        def checkbox_error(message: str, suggestion: str) -> ValidationIssue:
            return ValidationIssue(
                line=line_num,
                field="checkbox",
                message=message,
                suggestion=suggestion,
                severity=Severity.ERROR,
                column=bullet_column,
            )

        if inner == "":
            return checkbox_error(
                "Empty checkbox brackets '[]'",
                "Use '[ ]' (with a space) for pending tasks",
            )
        if bullet == "-" and gap == "":
            return checkbox_error(
                "Missing space after bullet '-'",
                "Write the checkbox as '- [ ]'",
            )
        if bullet == "*":
            return checkbox_error(
                "Wrong bullet character '*'",
                "Use '-' as the list bullet: '- [ ]'",
            )
        if inner not in VALID_CHECKBOX_CHARS:
            return checkbox_error(
                f"Invalid checkbox '[{inner}]'",
                "Use one of '[ ]', '[-]', '[x]' or '[~]'",
            )
        if gap != " " or (rest and not rest.startswith(" ")) or rest.startswith("  "):
            return checkbox_error(
                "Invalid spacing around checkbox",
                "Use exactly one space around the checkbox: '- [ ] 1. Title'",
            )

        text = rest.strip()
        text_column = bullet_column + len(bullet) + len(gap) + len(inner) + 3
        if not text[:1].isdigit():
            return ValidationIssue(
                line=line_num,
                field="taskId",
                message="Missing task ID number",
                suggestion="Start the task with a numeric ID, e.g. '- [ ] 1. Title' or '- [ ] 2.1 Title'",
                severity=Severity.ERROR,
                column=text_column,
            )
        if extract_task_id(text) is None:
            return ValidationIssue(
                line=line_num,
                field="taskId",
                message="Malformed task ID",
                suggestion="Separate the ID from the title with '. ' or a space, e.g. '1. Title'",
                severity=Severity.ERROR,
                column=text_column,
            )
        return None

    def _check_metadata_line(
        self,
        lines: list[str],
        index: int,
        task_id: str | None,
        warnings: list[ValidationIssue],
    ) -> int:
        """Collect metadata warnings for the line at index.

        Returns:
            Index of the last line consumed (prompt blocks span several lines)
        """
        stripped = lines[index].strip()
        if not stripped or not is_bullet(stripped):
            return index
        content = strip_bullet(stripped)

        for key in ("Requirements", "Leverage"):
            if content.startswith(f"{key}:") or (
                content.startswith(f"_{key}:") and not content.endswith("_")
            ):
                warnings.append(
                    ValidationIssue(
                        line=index + 1,
                        field=key.lower(),
                        message=f"{key} metadata is missing underscore delimiters",
                        suggestion=f"Wrap the field as '_{key}: ..._'",
                        severity=Severity.WARNING,
                        task_id=task_id,
                        column=len(lines[index]) - len(lines[index].lstrip()) + 1,
                    )
                )
                return index

        if content.startswith(PROMPT_KEY):
            # An unterminated prompt must not swallow the next checklist line
            stop = next(
                (i for i in range(index + 1, len(lines)) if CANDIDATE_LINE.match(lines[i])),
                len(lines),
            )
            prompt, last = read_prompt_block(lines, index, stop)
            missing = [section for section in PROMPT_SECTIONS if section not in prompt]
            if missing:
                warnings.append(
                    ValidationIssue(
                        line=index + 1,
                        field="prompt_structure",
                        message=f"Prompt is missing sections: {', '.join(missing)}",
                        suggestion="Structure prompts as 'Role: ... | Task: ... | Restrictions: ... | Success: ...'",
                        severity=Severity.WARNING,
                        task_id=task_id,
                    )
                )
            return last
        return index


def validate_tasks_markdown(content: str) -> ValidationResult:
    """Validate tasks.md content with a default TaskValidator."""
    return TaskValidator().validate(content)


def format_validation_errors(result: ValidationResult) -> list[str]:
    """Format issues as "Line N:col [rule] message (suggestion)" strings, errors first."""
    formatted: list[str] = []
    for issue in (*result.errors, *result.warnings):
        message = f"Line {issue.line}:{issue.column} [{issue.rule_id}] {issue.message}"
        if issue.suggestion:
            message += f" ({issue.suggestion})"
        formatted.append(message)
    return formatted
