"""Custom exceptions for the file and configuration layers.

The parser, mutator and validator never raise on document content; these
exceptions only cover reading/writing tasks files and loading configuration.
"""


class SpecTasksError(Exception):
    """Base exception for all spec-workflow-tasks errors."""


class TaskStoreError(SpecTasksError):
    """Raised when a tasks file cannot be read or written."""


class ConfigError(SpecTasksError):
    """Raised when configuration is invalid or cannot be loaded."""
