"""Line grammar shared by the parser, the status mutator and the validator.

A task line looks like::

    <indent><bullet> [<status>] <id><sep> <description>
      <indent+2>- <metadata line>

The parser and the mutator must agree on which lines are tasks, otherwise a
task loses its identity across an update/re-parse round trip. Both go through
``find_checklist_lines`` and ``extract_task_id`` below.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .models import TaskStatus

# Matches: - [ ] 1. Task, * [x] 4.2 Task, "  - [~] 1.2. Nested" (tolerates extra spaces)
CHECKBOX_LINE = re.compile(
    r"^(?P<indent>[ \t]*)(?P<bullet>[-*])[ \t]+\[(?P<state>[ xX~-])\][ \t]+(?P<text>\S.*?)\r?$"
)

TASK_ID = re.compile(r"^(?P<id>\d+(?:\.\d+)*)\.?(?:\s+(?P<description>.*))?$")

# MDXEditor escapes the period after a list number ("1\. Task"). Kept apart from
# TASK_ID so it can be dropped once the editor stops producing it.
ESCAPED_ID_PERIOD = re.compile(r"^(?P<id>\d+(?:\.\d+)*)\\\.")

BULLET_PREFIX = re.compile(r"^[-*]\s+")

BLOCKED_META = re.compile(r"^_Blocked:\s*(?P<value>.+?)_\s*$")
FILES_META = re.compile(r"^(?:\*\*)?Files?(?:\*\*)?:\s*(?P<value>.*)$")
REQUIREMENTS_META = re.compile(r"^_Requirements:\s*(?P<value>.+?)_\s*$")
LEVERAGE_META = re.compile(r"^_Leverage:\s*(?P<value>.+?)_\s*$")

BLOCKED_KEY = "_Blocked:"
PROMPT_KEY = "_Prompt:"
METADATA_KEYS = (BLOCKED_KEY, "_Requirements:", "_Leverage:", PROMPT_KEY)

STATUS_BY_CHAR: dict[str, TaskStatus] = {
    " ": TaskStatus.PENDING,
    "x": TaskStatus.COMPLETED,
    "X": TaskStatus.COMPLETED,
    "-": TaskStatus.IN_PROGRESS,
    "~": TaskStatus.BLOCKED,
}

CHAR_BY_STATUS: dict[TaskStatus, str] = {
    TaskStatus.PENDING: " ",
    TaskStatus.IN_PROGRESS: "-",
    TaskStatus.COMPLETED: "x",
    TaskStatus.BLOCKED: "~",
}


@dataclass(frozen=True)
class ChecklistLine:
    """A recognised checklist line and the extent of its metadata window."""

    index: int  # 0-based line index
    end: int  # exclusive end of the metadata window
    match: re.Match[str]

    @property
    def indent(self) -> str:
        return self.match.group("indent")

    @property
    def status(self) -> TaskStatus:
        return STATUS_BY_CHAR[self.match.group("state")]

    @property
    def text(self) -> str:
        return self.match.group("text")


def split_lines(content: str) -> list[str]:
    """Split on newlines only, so a trailing "\\r" stays with its line."""
    return content.split("\n")


def find_checklist_lines(lines: list[str]) -> list[ChecklistLine]:
    """Locate every checklist line, with or without a numeric id.

    Each entry's window runs from the next line up to the following checklist
    line at any nesting depth, or the end of the document.
    """
    matches = [
        (index, match)
        for index, match in ((i, CHECKBOX_LINE.match(line)) for i, line in enumerate(lines))
        if match
    ]
    found: list[ChecklistLine] = []
    for position, (index, match) in enumerate(matches):
        end = matches[position + 1][0] if position + 1 < len(matches) else len(lines)
        found.append(ChecklistLine(index=index, end=end, match=match))
    return found


def normalize_escaped_period(text: str) -> str:
    """Turn "1\\. Task" into "1. Task"."""
    return ESCAPED_ID_PERIOD.sub(r"\g<id>.", text, count=1)


def extract_task_id(text: str) -> tuple[str, str] | None:
    """Split checklist text into (task_id, description).

    Returns None when the text does not start with a dotted numeric id.
    """
    match = TASK_ID.match(normalize_escaped_period(text.strip()))
    if not match:
        return None
    return match.group("id"), (match.group("description") or "").strip()


def strip_bullet(stripped_line: str) -> str:
    """Remove a leading "- " or "* " from an already stripped line."""
    return BULLET_PREFIX.sub("", stripped_line, count=1)


def is_bullet(stripped_line: str) -> bool:
    return bool(BULLET_PREFIX.match(stripped_line))


def is_metadata_key(content: str) -> bool:
    """Check whether bullet-less content starts a recognised metadata field."""
    return content.startswith(METADATA_KEYS) or bool(FILES_META.match(content))


def is_blocked_line(line: str) -> bool:
    return strip_bullet(line.strip()).startswith(BLOCKED_KEY)


def read_prompt_block(lines: list[str], start: int, stop: int) -> tuple[str, int]:
    """Read a possibly multi-line ``_Prompt: ..._`` field.

    Args:
        lines: Document lines
        start: Index of the line holding ``_Prompt:``
        stop: Exclusive index the block may not reach (next checklist line)

    Returns:
        Tuple of (prompt_text, index_of_last_consumed_line)
    """
    first = strip_bullet(lines[start].strip())
    body = first[len(PROMPT_KEY):].strip()
    if body.endswith("_"):
        return body[:-1].strip(), start

    parts = [body]
    last = start
    for index in range(start + 1, stop):
        raw = lines[index].strip()
        if not raw or is_metadata_key(strip_bullet(raw)):
            break
        last = index
        if raw.endswith("_"):
            parts.append(raw[:-1].strip())
            break
        parts.append(raw)
    return " ".join(part for part in parts if part), last
