"""Unified diffs for previewing tasks.md status updates."""

from __future__ import annotations

import difflib
from dataclasses import dataclass


@dataclass(frozen=True)
class DiffResult:
    """Diff between the current and the updated tasks.md content."""

    diff_text: str
    has_changes: bool
    lines_added: int
    lines_removed: int
    lines_modified: int

    @property
    def changes_summary(self) -> str:
        """Get a human-readable summary of changes."""
        if not self.has_changes:
            return "No changes"

        parts = []
        if self.lines_added > 0:
            parts.append(f"+{self.lines_added} added")
        if self.lines_removed > 0:
            parts.append(f"-{self.lines_removed} removed")
        if self.lines_modified > 0:
            parts.append(f"~{self.lines_modified} modified")
        return ", ".join(parts)


class DiffGenerator:
    """Generates unified diffs and line change counts."""

    def __init__(self, context_lines: int = 3) -> None:
        """Initialize the diff generator.

        Args:
            context_lines: Number of context lines to show around changes (default: 3)
        """
        self._context_lines = context_lines

    def generate_diff(
        self,
        original_content: str,
        updated_content: str,
        original_label: str = "current",
        updated_label: str = "updated",
    ) -> DiffResult:
        """Compare two versions of a document.

        A replaced line counts as modified; the surplus of an unequal
        replacement block counts as added or removed.
        """
        if original_content == updated_content:
            return DiffResult("", False, 0, 0, 0)

        original_lines = original_content.splitlines(keepends=True)
        updated_lines = updated_content.splitlines(keepends=True)

        added = removed = modified = 0
        matcher = difflib.SequenceMatcher(a=original_lines, b=updated_lines, autojunk=False)
        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "insert":
                added += j2 - j1
            elif tag == "delete":
                removed += i2 - i1
            elif tag == "replace":
                paired = min(i2 - i1, j2 - j1)
                modified += paired
                added += (j2 - j1) - paired
                removed += (i2 - i1) - paired

        diff_text = "".join(
            difflib.unified_diff(
                original_lines,
                updated_lines,
                fromfile=original_label,
                tofile=updated_label,
                n=self._context_lines,
            )
        )
        return DiffResult(
            diff_text=diff_text,
            has_changes=True,
            lines_added=added,
            lines_removed=removed,
            lines_modified=modified,
        )
