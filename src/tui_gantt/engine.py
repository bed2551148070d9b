"""GanttEngine: the facade tying axis, geometry, dependencies, interaction and arrows together."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Iterable

from tui_gantt import dates
from tui_gantt.arrows import Arrow, route_arrow
from tui_gantt.axis import DateAxis, build_axis, grow_axis
from tui_gantt.errors import ConfigurationError, ValidationError
from tui_gantt.geometry import TaskGeometry
from tui_gantt.graph import DependencyGraph
from tui_gantt.interaction import (
    DateChangeCallback,
    DragMode,
    InteractionController,
    ProgressChangeCallback,
)
from tui_gantt.models import Bar, GanttOptions, LoadIssue, Task, ViewMode
from tui_gantt.tasks import parse_dependencies, prepare_tasks, range_issues

logger = logging.getLogger("tui_gantt")

LogSink = Callable[[LoadIssue], None]

UPDATABLE_FIELDS = {"name", "start", "end", "duration", "progress", "dependencies", "custom_class"}


def log_issue(issue: LoadIssue) -> None:
    """Default sink: rejected tasks are errors, everything else a warning."""
    if issue.level == "error":
        logger.error("%s", issue)
    else:
        logger.warning("%s", issue)


class GanttEngine:
    """Holds the working set of tasks and derives the chart layout from it.

    Invalid task records never raise from :meth:`load`; they are collected in
    :attr:`issues` and sent to the log sink. Configuration problems raise
    :class:`ConfigurationError`.
    """

    def __init__(
        self,
        tasks: Iterable[Any] | None = None,
        options: GanttOptions | None = None,
        *,
        log_sink: LogSink | None = None,
        today: datetime | None = None,
    ) -> None:
        self.options = options or GanttOptions()
        self.log_sink = log_sink or log_issue
        self.today = today
        self.tasks: list[Task] = []
        self.issues: list[LoadIssue] = []
        self._by_id: dict[str, Task] = {}
        self.graph = DependencyGraph()
        self.interaction = InteractionController(self.options)
        self.interaction.on_date_change(self._after_date_change)
        self.view_mode: ViewMode = self._resolve_view(self.options.view_mode)
        self.axis: DateAxis
        self.task_geometry: TaskGeometry
        self.load(tasks or [])

    # ── Loading ──

    def _report(self, issues: Iterable[LoadIssue]) -> None:
        for issue in issues:
            self.issues.append(issue)
            self.log_sink(issue)

    def load(self, tasks: Iterable[Any]) -> list[LoadIssue]:
        """Replace the working set. Returns the issues found."""
        accepted, issues = prepare_tasks(tasks)
        self.issues = []
        self._report(issues)
        self.tasks = accepted
        self._by_id = {t.id: t for t in accepted}
        self._rebuild()
        return issues

    def refresh(self, tasks: Iterable[Any] | None = None) -> list[LoadIssue]:
        """Reload *tasks*, or re-derive everything from the current set."""
        if tasks is None:
            self._rebuild()
            return []
        return self.load(tasks)

    def _resolve_view(self, name: str) -> ViewMode:
        mode = self.options.get_view_mode(name)
        if mode is None:
            raise ConfigurationError(f"Unknown view mode: {name!r}")
        return mode

    def _rebuild(self) -> None:
        self.graph = DependencyGraph(self.tasks)
        self._rebuild_layout()

    def _rebuild_layout(self) -> None:
        self.view_mode = self._resolve_view(self.options.view_mode)
        self._set_axis(build_axis(self.tasks, self.view_mode, self.options, today=self.today))

    def _set_axis(self, axis: DateAxis) -> None:
        self.axis = axis
        self.task_geometry = TaskGeometry(axis, self.options, self.today)
        for task in self.tasks:
            self.task_geometry.measure_duration(task)
        self.interaction.bind(self._by_id, self.graph, self.task_geometry, self.view_mode)

    def _ensure_covered(self, task: Task) -> None:
        if task.start < self.axis.start or task.end > self.axis.end:
            self._rebuild_layout()
        else:
            self.task_geometry.measure_duration(task)

    def _after_date_change(
        self, task_id: str, old: tuple[datetime, datetime], new: tuple[datetime, datetime]
    ) -> None:
        self._ensure_covered(self._by_id[task_id])

    # ── View modes ──

    def set_view(self, mode: str | ViewMode) -> None:
        """Switch view mode by name, or register and switch to a ViewMode."""
        if isinstance(mode, ViewMode):
            modes = [m for m in self.options.view_modes if m.name.lower() != mode.name.lower()]
            modes.append(mode)
            self.options.view_modes = modes
            name = mode.name
        else:
            name = self._resolve_view(mode).name
        previous = self.options.view_mode
        self.options.view_mode = name
        try:
            self._rebuild_layout()
        except ConfigurationError:
            self.options.view_mode = previous
            self._rebuild_layout()
            raise

    def view_is(self, names: str | Iterable[str]) -> bool:
        if isinstance(names, str):
            names = [names]
        return any(self.view_mode.name.lower() == n.lower() for n in names)

    def update_options(self, **fields: Any) -> None:
        """Change options and re-derive the layout.

        On ConfigurationError the previous values are restored before the
        error propagates, so the engine keeps its last good layout.
        """
        for key in fields:
            if not hasattr(self.options, key):
                raise ConfigurationError(f"Unknown option: {key}")
        previous = {key: getattr(self.options, key) for key in fields}
        for key, value in fields.items():
            setattr(self.options, key, value)
        try:
            self._rebuild_layout()
        except ConfigurationError:
            for key, value in previous.items():
                setattr(self.options, key, value)
            self._rebuild_layout()
            raise

    # ── Queries ──

    def get_task(self, task_id: str) -> Task | None:
        return self._by_id.get(task_id)

    def _task(self, task_id: str) -> Task:
        try:
            return self._by_id[task_id]
        except KeyError:
            raise KeyError(f"Unknown task: {task_id}") from None

    def geometry(self, task_id: str) -> Bar:
        return self.task_geometry.bar(self._task(task_id))

    def bars(self) -> dict[str, Bar]:
        return {t.id: self.task_geometry.bar(t) for t in self.tasks}

    def _route(self, dependency: Task, task: Task) -> Arrow:
        return route_arrow(
            self.task_geometry.bar(dependency),
            self.task_geometry.bar(task),
            dependency.index,
            task.index,
            self.options.padding,
            self.options.arrow_curve,
            from_task_id=dependency.id,
            to_task_id=task.id,
        )

    def arrow_paths(self) -> list[Arrow]:
        arrows: list[Arrow] = []
        for task in self.tasks:
            for dep_id in task.dependencies:
                dependency = self._by_id.get(dep_id)
                if dependency is not None:
                    arrows.append(self._route(dependency, task))
        return arrows

    def arrows_for(self, task_ids: Iterable[str]) -> list[Arrow]:
        """Arrows with either end on one of *task_ids*."""
        wanted = set(task_ids)
        return [
            a for a in self.arrow_paths()
            if a.from_task_id in wanted or a.to_task_id in wanted
        ]

    def get_oldest_starting_date(self) -> datetime | None:
        if not self.tasks:
            return None
        return min(t.start for t in self.tasks)

    def _today(self) -> datetime:
        return dates.start_of(self.today or datetime.now(), dates.DAY)

    def today_x(self) -> float | None:
        """Pixel offset of today's date, or None when it is off the axis."""
        today = self._today()
        if not self.axis.start <= today < self.axis.end:
            return None
        return self.axis.x_for(today)

    def scroll_target(self) -> datetime | None:
        """Date a renderer should initially scroll to, per ``scroll_to``.

        Returns None when there is no such date or it lies off the axis.
        """
        target = self.options.scroll_to
        if target == "today":
            when = self._today()
        elif target == "start":
            when = self.get_oldest_starting_date()
        elif target == "end":
            when = max((t.end for t in self.tasks), default=None)
        else:
            try:
                when = dates.parse(target)
            except (ValueError, OverflowError) as e:
                raise ConfigurationError(f"Invalid scroll_to: {target!r}") from e
        if when is None or not self.axis.start <= when <= self.axis.end:
            return None
        return when

    def expected_progress(self, task_id: str) -> float:
        return self.task_geometry.expected_progress(self._task(task_id))

    def task_at(self, y: float) -> Task | None:
        """Row hit-test: the task whose row band contains *y*."""
        opts = self.options
        row_height = opts.padding + opts.bar_height
        if row_height <= 0:
            return None
        row = int((y - opts.chart_header_height) // row_height)
        if 0 <= row < len(self.tasks) and y >= opts.chart_header_height:
            return self.tasks[row]
        return None

    # ── Mutation ──

    def update_task(self, task_id: str, **fields: Any) -> Task:
        """Change fields of one task and re-derive what depends on them.

        Raises ValidationError when the resulting range is invalid.
        """
        task = self._task(task_id)
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise TypeError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        start = dates.parse(fields["start"]) if "start" in fields else task.start
        end = dates.parse(fields["end"]) if "end" in fields else task.end
        if fields.get("duration"):
            end = start
            for part in dates.parse_durations(str(fields["duration"])):
                end = dates.add(end, part.count, part.unit)
        elif "start" in fields and "end" not in fields:
            end = start + (task.end - task.start)

        name = str(fields.get("name", task.name))
        found = range_issues(task.id, name, start, end)
        for issue in found:
            if issue.level == "error":
                raise ValidationError(issue)
        self._report(found)

        task.name = name
        task.start = start
        task.end = end
        if "progress" in fields:
            task.progress = fields["progress"]
        if "custom_class" in fields:
            task.custom_class = str(fields["custom_class"] or "")
        if "dependencies" in fields:
            deps = []
            for dep in parse_dependencies(fields["dependencies"]):
                if dep in self._by_id and dep != task.id:
                    deps.append(dep)
                else:
                    self._report([
                        LoadIssue(
                            task.id, "unknown_dependency",
                            f"task \"{task.name}\" depends on unknown task \"{dep}\"",
                            "warning",
                        )
                    ])
            task.dependencies = tuple(deps)
            self.graph = DependencyGraph(self.tasks)
            cycle = self.graph.find_cycle()
            if cycle:
                self._report([
                    LoadIssue(cycle[0], "dependency_cycle", "dependency cycle: " + " -> ".join(cycle), "warning")
                ])
            self.interaction.bind(self._by_id, self.graph, self.task_geometry, self.view_mode)
        self._ensure_covered(task)
        return task

    # ── Interaction ──

    def on_date_change(self, callback: DateChangeCallback) -> None:
        self.interaction.on_date_change(callback)

    def on_progress_change(self, callback: ProgressChangeCallback) -> None:
        self.interaction.on_progress_change(callback)

    def pointer_down(self, task_id: str, x: float, mode: DragMode = DragMode.MOVE) -> bool:
        return self.interaction.pointer_down(task_id, x, mode)

    def pointer_move(self, x: float) -> list[str]:
        return self.interaction.pointer_move(x)

    def pointer_up(self) -> list[str]:
        return self.interaction.pointer_up()

    def cancel(self) -> list[str]:
        return self.interaction.cancel()

    def pointer_leave(self) -> list[str]:
        return self.interaction.pointer_leave()

    # ── Infinite padding ──

    def maybe_extend(self, scroll_x: float, viewport_width: float) -> float:
        """Grow the axis when the viewport nears an edge.

        Returns the pixel shift applied at the start edge (0 when the start
        did not move), so the caller can keep its scroll position stable.
        """
        if not self.options.infinite_padding or self.interaction.dragging:
            return 0.0
        axis = self.axis
        shift = 0.0
        if scroll_x <= axis.column_width:
            grown = grow_axis(axis, "start", self.options)
            shift = grown.x_for(axis.start)
            self._set_axis(grown)
        elif scroll_x + viewport_width >= axis.width - axis.column_width:
            self._set_axis(grow_axis(axis, "end", self.options))
        return shift
