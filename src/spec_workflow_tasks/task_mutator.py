"""In-place status updates for tasks.md content.

Only the status character of one checklist line and that task's
``_Blocked: ..._`` line are touched; every other line comes back unchanged.
"""

from __future__ import annotations

import logging

from .grammar import (
    CHAR_BY_STATUS,
    extract_task_id,
    find_checklist_lines,
    is_blocked_line,
    split_lines,
)
from .models import TaskStatus

logger = logging.getLogger(__name__)


def format_blocked_line(indent: str, reason: str, line_ending: str = "") -> str:
    """Build the metadata line recording why a task is blocked."""
    # Collapse newlines so the reason cannot break out of its metadata line
    reason_text = " ".join(reason.split())
    return f"{indent}  - _Blocked: {reason_text}_{line_ending}"


def update_task_status(
    content: str,
    task_id: str,
    new_status: TaskStatus | str,
    reason: str | None = None,
) -> str:
    """Rewrite the status of one task in tasks.md content.

    Args:
        content: Raw markdown text
        task_id: Exact dotted id of the task to update (string comparison)
        new_status: Target status
        reason: Blocked reason; only written when new_status is blocked

    Returns:
        The updated content, or ``content`` itself when no task has task_id
        or new_status names no known status
    """
    if not isinstance(content, str) or not content:
        return content
    try:
        status = TaskStatus.from_value(new_status)
    except ValueError as err:
        logger.warning(
            "Unknown status, content left unchanged",
            extra={"extra_context": {"task_id": task_id, "error": str(err)}},
        )
        return content

    lines = split_lines(content)
    target = next(
        (
            checklist
            for checklist in find_checklist_lines(lines)
            if (extracted := extract_task_id(checklist.text)) and extracted[0] == task_id
        ),
        None,
    )
    if target is None:
        logger.debug(
            "Task not found, content left unchanged",
            extra={"extra_context": {"task_id": task_id}},
        )
        return content

    line = lines[target.index]
    start, end = target.match.span("state")
    status_line = line[:start] + CHAR_BY_STATUS[status] + line[end:]

    window = [
        metadata
        for metadata in lines[target.index + 1 : target.end]
        if not is_blocked_line(metadata)
    ]
    inserted: list[str] = []
    if status is TaskStatus.BLOCKED and reason and reason.strip():
        line_ending = "\r" if line.endswith("\r") else ""
        inserted.append(format_blocked_line(target.indent, reason, line_ending))

    updated = lines[: target.index] + [status_line, *inserted, *window] + lines[target.end :]

    logger.debug(
        "Task status rewritten",
        extra={
            "extra_context": {
                "task_id": task_id,
                "status": status.value,
                "line_number": target.index,
                "blocked_reason": bool(inserted),
            }
        },
    )
    return "\n".join(updated)
