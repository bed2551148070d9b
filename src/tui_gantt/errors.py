"""Exception types raised by the Gantt engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tui_gantt.models import LoadIssue


class GanttError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(GanttError, ValueError):
    """Invalid chart configuration (non-positive step, column width, unknown view mode)."""


class ValidationError(GanttError, ValueError):
    """A task could not be accepted into the working set."""

    def __init__(self, issue: LoadIssue) -> None:
        super().__init__(issue.message)
        self.issue = issue


class TaskFileError(GanttError, ValueError):
    """A task file could not be read or has an unexpected structure."""
