"""CLI entry point for inspecting, validating and updating tasks.md files.

This module handles command-line argument parsing, logging setup and
dispatch to the task store.
"""

from __future__ import annotations

import argparse
import json
import logging
import logging.handlers
import sys
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .config import Config, load_config, resolve_tasks_path
from .exceptions import SpecTasksError
from .models import TaskStatus
from .progress_count import count_tasks
from .task_parser import find_next_pending_task
from .task_store import TaskStore
from .validator import format_validation_errors
from .views import render_spec_table, render_task_table, render_validation_table

logger = logging.getLogger(__name__)

STATUS_CHOICES = [status.value for status in TaskStatus]


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "event": record.getMessage(),
            "context": {
                "module": record.module,
                "function": record.funcName,
                "line": record.lineno,
            },
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "extra_context"):
            log_data["context"].update(record.extra_context)
        return json.dumps(log_data, default=str)


def _setup_logging(log_file: Path | None, debug: bool, level_name: str = "WARNING") -> None:
    """Log JSON lines to log_file when given, otherwise to stderr through rich.

    Args:
        log_file: Optional rotating log file
        debug: Force debug level logging
        level_name: Level used when debug is off
    """
    root_logger = logging.getLogger()
    level = logging.DEBUG if debug else getattr(logging, level_name, logging.WARNING)
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler: logging.Handler
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=3,
            encoding="utf-8",
        )
        handler.setFormatter(JSONFormatter())
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=False)
    handler.setLevel(level)
    root_logger.addHandler(handler)

    logger.debug(
        "Logging initialized",
        extra={"extra_context": {"log_file": str(log_file) if log_file else None, "debug": debug}},
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spec-tasks",
        description="Inspect, validate and update spec-workflow tasks.md files",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.json (default: built-in defaults)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Write JSON logs to this file instead of stderr",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    show = subparsers.add_parser("show", help="List tasks with their status")
    show.add_argument("tasks", help="Path to tasks.md, a spec directory or a spec name")
    show.add_argument("--json", action="store_true", help="Print the parse result as JSON")

    progress = subparsers.add_parser("progress", help="Print progress counts as JSON")
    progress.add_argument("tasks", help="Path to tasks.md, a spec directory or a spec name")

    validate = subparsers.add_parser("validate", help="Check tasks.md format")
    validate.add_argument("tasks", help="Path to tasks.md, a spec directory or a spec name")
    validate.add_argument("--json", action="store_true", help="Print the result as JSON")

    set_status = subparsers.add_parser("set-status", help="Update one task's status")
    set_status.add_argument("tasks", help="Path to tasks.md, a spec directory or a spec name")
    set_status.add_argument("task_id", help="Dotted task id, e.g. 2.1")
    set_status.add_argument("status", choices=STATUS_CHOICES)
    set_status.add_argument("--reason", default=None, help="Why the task is blocked")
    set_status.add_argument("--dry-run", action="store_true", help="Show the diff only")
    set_status.add_argument("--no-backup", action="store_true", help="Skip the .backup copy")

    specs = subparsers.add_parser("specs", help="List specs with their progress")
    specs.add_argument(
        "--unfinished",
        action="store_true",
        help="Only specs with open tasks, most recently edited first",
    )

    next_task = subparsers.add_parser("next", help="Print the next pending task")
    next_task.add_argument("tasks", help="Path to tasks.md, a spec directory or a spec name")

    return parser


def _cmd_show(store: TaskStore, tasks_path: Path, args: argparse.Namespace, console: Console) -> int:
    result = store.load(tasks_path)
    if args.json:
        console.print_json(json.dumps(result.to_dict()))
    else:
        console.print(render_task_table(tasks_path.parent.name or tasks_path.name, result))
    return 0


def _cmd_progress(tasks_path: Path, console: Console) -> int:
    try:
        progress = count_tasks(tasks_path)
    except (FileNotFoundError, ValueError) as err:
        console.print(f"[red]❌ Error: {escape(str(err))}[/red]")
        return 1
    console.print_json(json.dumps(progress.to_dict()))
    return 0


def _cmd_validate(
    store: TaskStore, tasks_path: Path, args: argparse.Namespace, console: Console
) -> int:
    result = store.validate(tasks_path)
    if args.json:
        console.print_json(json.dumps(result.to_dict()))
    elif result.issue_count:
        console.print(render_validation_table(result))
    if result.valid:
        if not args.json:
            console.print("[green]✅ Format valid[/green]")
        return 0
    logger.info(
        "Validation failed",
        extra={"extra_context": {"messages": format_validation_errors(result)}},
    )
    if not args.json:
        console.print(f"[red]❌ {len(result.errors)} error(s) found[/red]")
    return 1


def _cmd_set_status(
    store: TaskStore, tasks_path: Path, args: argparse.Namespace, console: Console
) -> int:
    outcome = store.update_status(
        tasks_path, args.task_id, args.status, args.reason, dry_run=args.dry_run
    )
    if not outcome.found:
        console.print(f"[red]Task {args.task_id} not found in {tasks_path}[/red]")
        return 1
    if not outcome.has_changes:
        console.print(f"[green]✓ Task {args.task_id} is already {outcome.status.value}[/green]")
        return 0

    console.print(outcome.diff_result.diff_text, markup=False, highlight=False)
    console.print(f"[dim]{outcome.diff_result.changes_summary}[/dim]")
    if args.dry_run:
        console.print("[yellow]Dry run - no changes written[/yellow]")
    elif outcome.written:
        console.print(f"[green]✓ Task {args.task_id} set to {outcome.status.value}[/green]")
        if outcome.write_result and outcome.write_result.backup_path:
            console.print(f"[dim]Backup created at: {outcome.write_result.backup_path}[/dim]")
    return 0


def _cmd_specs(
    store: TaskStore, config: Config, args: argparse.Namespace, console: Console
) -> int:
    try:
        overviews = store.list_specs(config, unfinished_only=args.unfinished)
    except FileNotFoundError as err:
        console.print(f"[red]❌ Error: {escape(str(err))}[/red]")
        return 1
    if args.unfinished and not overviews:
        console.print("[green]✓ No unfinished specs found. All specs are complete![/green]")
        return 0
    console.print(render_spec_table(overviews))
    return 0


def _cmd_next(store: TaskStore, tasks_path: Path, console: Console) -> int:
    task = find_next_pending_task(store.load(tasks_path).tasks)
    if task is None:
        console.print("[green]No pending tasks[/green]")
        return 0
    console.print(task.display_title, markup=False, highlight=False)
    return 0


def main(argv: Sequence[str] | None = None, console: Console | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0=success, 1=error or validation failure)
    """
    args = _build_parser().parse_args(argv)
    console = console or Console()

    try:
        config: Config = load_config(args.config)
    except SpecTasksError as err:
        _setup_logging(args.log_file, args.debug)
        console.print(f"[red]Error loading config: {escape(str(err))}[/red]")
        logger.error("Config load failed", extra={"extra_context": {"error": str(err)}})
        return 1

    _setup_logging(args.log_file, args.debug, "WARNING" if args.log_file is None else config.log_level)

    no_backup = getattr(args, "no_backup", False)
    store = TaskStore.from_config(config, create_backup=False if no_backup else None)
    logger.info("Command invoked", extra={"extra_context": {"command": args.command}})

    try:
        if args.command == "specs":
            return _cmd_specs(store, config, args, console)

        tasks_path = resolve_tasks_path(args.tasks, config)
        logger.debug(
            "Tasks file resolved",
            extra={"extra_context": {"target": args.tasks, "tasks_path": str(tasks_path)}},
        )
        if args.command == "show":
            return _cmd_show(store, tasks_path, args, console)
        if args.command == "progress":
            return _cmd_progress(tasks_path, console)
        if args.command == "validate":
            return _cmd_validate(store, tasks_path, args, console)
        if args.command == "set-status":
            return _cmd_set_status(store, tasks_path, args, console)
        return _cmd_next(store, tasks_path, console)
    except SpecTasksError as err:
        console.print(f"[red]Error: {escape(str(err))}[/red]")
        logger.error(
            "Command failed",
            extra={"extra_context": {"command": args.command, "error": str(err)}},
            exc_info=True,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
