"""Checkbox-based progress counts for a tasks.md file.

Only the ``## Tasks`` section is counted when the document has one, so
trailing checklists (review checklists, validation notes) do not inflate the
numbers. Header tasks are left out of every count.
"""

from __future__ import annotations

import re
from pathlib import Path

from .models import TaskProgress
from .task_parser import parse_tasks_from_markdown

# A line holding exactly "## Tasks"; "### Tasks overview" or "## Tasks Document" do not count
TASKS_HEADING = re.compile(r"^## Tasks[ \t]*\r?$", re.MULTILINE)
NEXT_SECTION = re.compile(r"\n## ")


def extract_tasks_section(content: str) -> str:
    """Return the ``## Tasks`` section (up to the next ``## `` heading), or all content."""
    heading = TASKS_HEADING.search(content)
    if heading is None:
        return content
    next_section = NEXT_SECTION.search(content, heading.end())
    if next_section is None:
        return content[heading.start() :]
    return content[heading.start() : next_section.start()]


def count_tasks(tasks_md_path: Path) -> TaskProgress:
    """Count tasks from tasks.md file.

    Args:
        tasks_md_path: Path to tasks.md file

    Returns:
        TaskProgress object with counts

    Raises:
        FileNotFoundError: If tasks.md doesn't exist
        ValueError: If no tasks found in file
    """
    if not tasks_md_path.exists():
        raise FileNotFoundError(f"File not found: {tasks_md_path}")

    content = tasks_md_path.read_text(encoding="utf-8")
    result = parse_tasks_from_markdown(extract_tasks_section(content))
    if not result.tasks:
        raise ValueError(
            f"No checkbox tasks found in {tasks_md_path}. Expected format: '- [ ] 1. Task title'"
        )
    return TaskProgress.from_summary(result.summary)
