"""Task parser for reading tasks.md content.

This module parses tasks.md documents following the tasks-template.md format
into a flat list of ParsedTask objects plus summary counts. Parsing is
forgiving: malformed lines are skipped, nothing here raises on bad input.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from .grammar import (
    BLOCKED_META,
    FILES_META,
    LEVERAGE_META,
    PROMPT_KEY,
    REQUIREMENTS_META,
    ChecklistLine,
    extract_task_id,
    find_checklist_lines,
    is_bullet,
    read_prompt_block,
    split_lines,
    strip_bullet,
)
from .models import ParsedTask, ParseResult, TaskProgress, TaskStatus, TaskSummary

logger = logging.getLogger(__name__)


def _split_list(value: str) -> list[str]:
    return [item.strip().strip("`").strip() for item in value.split(",") if item.strip().strip("`")]


def _parse_task(lines: list[str], checklist: ChecklistLine) -> ParsedTask | None:
    """Build a task from its checklist line and metadata window."""
    extracted = extract_task_id(checklist.text)
    if extracted is None:
        logger.debug(
            "Skipping checklist line without task id",
            extra={"extra_context": {"line_number": checklist.index}},
        )
        return None
    task_id, description = extracted

    files: list[str] = []
    requirements: list[str] = []
    leverage: list[str] = []
    details: list[str] = []
    prompt: str | None = None
    blocked_reason: str | None = None

    index = checklist.index + 1
    while index < checklist.end:
        stripped = lines[index].strip()
        if not stripped:
            index += 1
            continue
        content = strip_bullet(stripped)

        if blocked_match := BLOCKED_META.match(content):
            blocked_reason = blocked_match.group("value").strip() or blocked_reason
        elif files_match := FILES_META.match(content):
            files.extend(_split_list(files_match.group("value")))
        elif requirements_match := REQUIREMENTS_META.match(content):
            requirements.extend(_split_list(requirements_match.group("value")))
        elif leverage_match := LEVERAGE_META.match(content):
            leverage.append(leverage_match.group("value").strip())
        elif content.startswith(PROMPT_KEY):
            text, index = read_prompt_block(lines, index, checklist.end)
            prompt = text or prompt
        elif is_bullet(stripped):
            details.append(content)
        index += 1

    status = checklist.status
    return ParsedTask(
        id=task_id,
        description=description,
        status=status,
        line_number=checklist.index,
        indent_level=len(checklist.indent.expandtabs(2)) // 2,
        files=files or None,
        requirements=requirements or None,
        leverage=", ".join(leverage) if leverage else None,
        prompt=prompt,
        implementation_details=details or None,
        blocked_reason=blocked_reason if status is TaskStatus.BLOCKED else None,
    )


def _is_header(task: ParsedTask, next_task: ParsedTask | None) -> bool:
    """A header carries no substantive metadata and is followed by its own sub-task.

    Leverage and prompt alone do not make a task substantive.
    """
    if task.files or task.implementation_details or task.requirements:
        return False
    return next_task is not None and next_task.id.startswith(f"{task.id}.")


def _summarize(tasks: Sequence[ParsedTask]) -> TaskSummary:
    counts = {status: 0 for status in TaskStatus}
    headers = 0
    for task in tasks:
        if task.is_header:
            headers += 1
            continue
        counts[task.status] += 1
    return TaskSummary(
        total=sum(counts.values()),
        completed=counts[TaskStatus.COMPLETED],
        pending=counts[TaskStatus.PENDING],
        in_progress=counts[TaskStatus.IN_PROGRESS],
        blocked=counts[TaskStatus.BLOCKED],
        headers=headers,
    )


def parse_tasks_from_markdown(content: str) -> ParseResult:
    """Parse tasks.md content into tasks, summary counts and the active task.

    Args:
        content: Raw markdown text

    Returns:
        ParseResult with tasks in document order. Empty or malformed input
        yields an empty result.
    """
    if not isinstance(content, str) or not content:
        return ParseResult()

    lines = split_lines(content)
    drafts = [
        task
        for task in (_parse_task(lines, checklist) for checklist in find_checklist_lines(lines))
        if task is not None
    ]

    tasks = [
        replace(task, is_header=_is_header(task, drafts[i + 1] if i + 1 < len(drafts) else None))
        for i, task in enumerate(drafts)
    ]
    in_progress_task = next((task.id for task in tasks if task.in_progress), None)

    return ParseResult(tasks=tasks, summary=_summarize(tasks), in_progress_task=in_progress_task)


def get_task_by_id(tasks: Sequence[ParsedTask], task_id: str) -> ParsedTask | None:
    """Return the first task whose id equals task_id exactly."""
    return next((task for task in tasks if task.id == task_id), None)


def find_next_pending_task(tasks: Sequence[ParsedTask]) -> ParsedTask | None:
    """Return the first pending non-header task in document order."""
    return next(
        (task for task in tasks if not task.is_header and task.status is TaskStatus.PENDING),
        None,
    )


def parse_task_progress(content: str) -> TaskProgress:
    """Count task progress for content, excluding header tasks."""
    return TaskProgress.from_summary(parse_tasks_from_markdown(content).summary)
