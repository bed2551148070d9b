"""Bar geometry derived from a task and the current date axis."""

from __future__ import annotations

from datetime import datetime

from tui_gantt import dates
from tui_gantt.axis import DateAxis
from tui_gantt.errors import ConfigurationError
from tui_gantt.models import Bar, GanttOptions, Task


class TaskGeometry:
    """Computes bar position, size and progress width for tasks on an axis."""

    def __init__(self, axis: DateAxis, options: GanttOptions, today: datetime | None = None) -> None:
        if axis.column_width <= 0:
            raise ConfigurationError(f"Column width must be positive, got {axis.column_width}")
        if axis.step <= 0:
            raise ConfigurationError(f"Step must be positive, got {axis.step}")
        self.axis = axis
        self.options = options
        self.today = today

    def x(self, task: Task) -> float:
        return self.axis.x_for(task.start)

    def width(self, task: Task) -> float:
        return max(0.0, self.axis.x_for(task.end) - self.axis.x_for(task.start))

    def y(self, task: Task) -> float:
        opts = self.options
        return (
            opts.chart_header_height
            + (opts.padding + opts.bar_height) * task.index
            + opts.padding / 2
        )

    def progress_width(self, task: Task, x: float | None = None, width: float | None = None) -> float:
        """Width of the filled part of the bar, stepping over ignored regions.

        The progress share is taken from the non-ignored part of the bar, then
        widened by every ignored region it covers so the fill never ends
        inside one.
        """
        if task.invalid:
            return 0.0
        if x is None:
            x = self.x(task)
        if width is None:
            width = self.width(task)
        axis = self.axis
        total_ignored = axis.ignored_area(x, x + width)
        pw = (width - total_ignored) * task.progress / 100
        pw += axis.ignored_area(x, x + pw)
        region = axis.ignored_region_at(x + pw)
        while region is not None:
            pw += region.width
            region = axis.ignored_region_at(x + pw)
        return pw

    def expected_progress(self, task: Task) -> float:
        """Share of the task (0-100) that should be done by today."""
        if task.invalid:
            return 0.0
        total = (task.end - task.start).total_seconds()
        if total <= 0:
            return 0.0
        elapsed = ((self.today or datetime.now()) - task.start).total_seconds()
        return min(100.0, max(0.0, elapsed / total * 100))

    def bar(self, task: Task) -> Bar:
        x = self.x(task)
        width = self.width(task)
        expected = 0.0
        if self.options.show_expected_progress:
            expected = width * self.expected_progress(task) / 100
        return Bar(
            x=x,
            y=self.y(task),
            width=width,
            height=self.options.bar_height,
            progress_width=self.progress_width(task, x, width),
            expected_progress_width=expected,
        )

    def measure_duration(self, task: Task) -> tuple[float, float]:
        """Set and return ``(actual_duration, ignored_duration)`` in days."""
        actual = 0
        ignored = 0
        for day in dates.iter_days(task.start, task.end):
            if self.axis.is_ignored(day):
                ignored += 1
            else:
                actual += 1
        task.actual_duration = actual
        task.ignored_duration = ignored
        return actual, ignored

    def date_at(self, x: float) -> datetime:
        return self.axis.date_for(x)
