"""Configuration loading and spec discovery."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Config:
    """Runtime configuration loaded from config.json."""

    project_root: Path
    spec_workflow_dir_name: str = ".spec-workflow"
    specs_subdir: str = "specs"
    tasks_filename: str = "tasks.md"
    create_backup: bool = True
    diff_context_lines: int = 3
    log_level: str = "INFO"

    @property
    def specs_root(self) -> Path:
        return self.project_root / self.spec_workflow_dir_name / self.specs_subdir

    @classmethod
    def from_dict(cls, payload: dict) -> Config:
        """Create a Config object from a raw dictionary.

        Raises:
            ConfigError: If a value has the wrong type or is out of range
        """
        if not isinstance(payload, dict):
            raise ConfigError("Config must be a JSON object")

        project_root = Path(os.path.expanduser(payload.get("project_root", "."))).resolve()

        try:
            diff_context_lines = int(payload.get("diff_context_lines", 3))
        except (TypeError, ValueError) as err:
            raise ConfigError(f"diff_context_lines must be an integer: {err}") from err
        if diff_context_lines < 0:
            raise ConfigError(
                f"diff_context_lines must be zero or positive, got {diff_context_lines}"
            )

        create_backup = payload.get("create_backup", True)
        if not isinstance(create_backup, bool):
            raise ConfigError(f"create_backup must be true or false, got {create_backup!r}")

        log_level = str(payload.get("log_level", "INFO")).upper()
        if log_level not in _LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {log_level}")

        names = {}
        for key, default in (
            ("spec_workflow_dir_name", ".spec-workflow"),
            ("specs_subdir", "specs"),
            ("tasks_filename", "tasks.md"),
        ):
            value = payload.get(key, default)
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"{key} must be a non-empty string")
            names[key] = value

        return cls(
            project_root=project_root,
            create_backup=create_backup,
            diff_context_lines=diff_context_lines,
            log_level=log_level,
            **names,
        )


def load_config(path: Path | None) -> Config:
    """Load configuration from the provided path, or defaults when path is None."""
    if path is None:
        return Config.from_dict({})
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError as err:
        raise ConfigError(f"Config file not found: {path}") from err
    except (OSError, json.JSONDecodeError) as err:
        raise ConfigError(f"Could not load config {path}: {err}") from err
    logger.debug("Config loaded", extra={"extra_context": {"config_path": str(path)}})
    return Config.from_dict(data)


def discover_specs(cfg: Config) -> list[tuple[str, Path]]:
    """List specs for the configured project."""
    specs_root = cfg.specs_root
    if not specs_root.exists():
        raise FileNotFoundError(f"No specs directory at {specs_root}")
    return [(child.name, child) for child in sorted(specs_root.iterdir()) if child.is_dir()]


def resolve_tasks_path(target: str, cfg: Config) -> Path:
    """Map a tasks file path or a spec name to the tasks file it refers to.

    An existing path (file or spec directory) wins; otherwise target is looked
    up as a spec name under the configured specs directory.
    """
    candidate = Path(target).expanduser()
    if candidate.is_dir():
        return candidate / cfg.tasks_filename
    if candidate.exists() or candidate.suffix == ".md":
        return candidate
    return cfg.specs_root / target / cfg.tasks_filename
