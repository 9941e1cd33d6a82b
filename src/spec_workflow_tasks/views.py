"""Rich renderables for parsed tasks, validation results and spec progress."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import ParsedTask, ParseResult, TaskStatus
from .task_store import SpecOverview
from .validator import Severity, ValidationResult

_STATUS_ICONS: dict[TaskStatus, tuple[str, str]] = {
    TaskStatus.COMPLETED: ("✓", "green"),
    TaskStatus.IN_PROGRESS: ("▶", "yellow"),
    TaskStatus.BLOCKED: ("⊘", "red"),
    TaskStatus.PENDING: ("○", "dim"),
}


def _describe(task: ParsedTask, max_length: int) -> Text:
    title = task.description
    if len(title) > max_length:
        title = title[: max_length - 3] + "..."
    text = Text("  " * task.indent_level + title, style="bold" if task.is_header else "white")
    if task.blocked_reason:
        text.append(f"\n{'  ' * task.indent_level}⊘ {task.blocked_reason}", style="red dim")
    return text


def render_task_table(title: str, result: ParseResult, max_title_length: int = 70) -> Panel:
    """Build a Rich Panel listing every parsed task with its status.

    Args:
        title: Panel title (spec name or file name)
        result: Parsed tasks document
        max_title_length: Descriptions longer than this are truncated

    Returns:
        Rich Panel component with the task table
    """
    table = Table(
        show_header=True,
        header_style="bold cyan",
        border_style="blue",
        padding=(0, 1),
        expand=True,
    )
    table.add_column("Status", style="cyan", no_wrap=True, width=6)
    table.add_column("ID", style="yellow", no_wrap=True, width=8)
    table.add_column("Task", style="white")

    for task in result.tasks:
        icon, color = _STATUS_ICONS[task.status]
        current = task.id == result.in_progress_task
        table.add_row(
            f"[{color}]{icon}[/{color}]",
            f"[bold]{task.id}[/bold]" if current else task.id,
            _describe(task, max_title_length),
        )
    if not result.tasks:
        table.add_row("", "", "[dim italic]No tasks found[/dim italic]")

    summary = result.summary
    counts = (
        f"[dim]{summary.completed}/{summary.total} done · "
        f"{summary.in_progress} in progress · {summary.blocked} blocked · "
        f"{summary.pending} pending[/dim]"
    )
    return Panel(
        table,
        title=f"[bold white]Tasks: {title}[/bold white]",
        subtitle=counts,
        border_style="blue",
        padding=(1, 2),
    )


def render_validation_table(result: ValidationResult) -> Table:
    """Build a Rich Table of validation errors followed by warnings."""
    table = Table(show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Line", style="yellow", no_wrap=True, width=8)
    table.add_column("Rule", no_wrap=True)
    table.add_column("Message")

    for issue in (*result.errors, *result.warnings):
        color = "red" if issue.severity is Severity.ERROR else "yellow"
        table.add_row(
            f"{issue.line}:{issue.column}",
            f"[{color}]{issue.rule_id}[/{color}]",
            f"{escape(issue.message)}\n[dim]{escape(issue.suggestion)}[/dim]",
        )
    summary = result.summary
    table.caption = (
        f"{summary.total_tasks} task(s): {summary.valid_tasks} valid, "
        f"{summary.invalid_tasks} invalid"
    )
    return table


def render_spec_table(overviews: Sequence[SpecOverview]) -> Table:
    """Build a Rich Table with one row of progress per spec."""
    table = Table(show_header=True, header_style="bold cyan", expand=True)
    table.add_column("#", style="dim", no_wrap=True, width=4)
    table.add_column("Spec", style="white")
    table.add_column("Progress", no_wrap=True)
    table.add_column("Last Active", style="dim", no_wrap=True)

    for index, overview in enumerate(overviews, start=1):
        summary = overview.summary
        if summary is None:
            progress = "[dim italic]no tasks file[/dim italic]"
            last_active = "-"
        else:
            color = "yellow" if overview.unfinished else "green"
            progress = (
                f"[{color}]{summary.completed}/{summary.total} tasks[/{color}] "
                f"({summary.in_progress} in progress, {summary.blocked} blocked)"
            )
            last_active = datetime.fromtimestamp(overview.last_modified).strftime("%Y-%m-%d %H:%M")
        table.add_row(str(index), escape(overview.name), progress, last_active)

    if not overviews:
        table.add_row("", "[dim italic]No specs found[/dim italic]", "", "")
    table.caption = f"Total: {len(overviews)} spec(s)"
    return table
