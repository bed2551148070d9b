"""Pointer-driven drag, resize and progress editing of task bars."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from tui_gantt import dates
from tui_gantt.axis import DateAxis
from tui_gantt.geometry import TaskGeometry
from tui_gantt.graph import DependencyGraph
from tui_gantt.models import GanttOptions, Task, ViewMode

DateChangeCallback = Callable[[str, tuple[datetime, datetime], tuple[datetime, datetime]], None]
ProgressChangeCallback = Callable[[str, float, float], None]


class DragMode(Enum):
    MOVE = "move"
    RESIZE_LEFT = "resize_left"
    RESIZE_RIGHT = "resize_right"
    RESIZE_PROGRESS = "progress"


@dataclass(frozen=True)
class _Snapshot:
    start: datetime
    end: datetime
    progress: float

    @classmethod
    def of(cls, task: Task) -> _Snapshot:
        return cls(task.start, task.end, task.progress)


@dataclass
class DragState:
    task_id: str
    mode: DragMode
    origin_x: float
    bar_width: float
    snapshots: dict[str, _Snapshot] = field(default_factory=dict)
    dependents: list[str] = field(default_factory=list)


def _round_half_away(value: float) -> float:
    return math.copysign(math.floor(abs(value) + 0.5), value)


class InteractionController:
    """State machine ``Idle -> Dragging(mode) -> Idle``.

    The controller mutates tasks in place; the owner re-derives bars and
    arrows for the ids returned by :meth:`pointer_move`.
    """

    def __init__(self, options: GanttOptions) -> None:
        self.options = options
        self.tasks: dict[str, Task] = {}
        self.graph = DependencyGraph()
        self.geometry: TaskGeometry | None = None
        self.view_mode: ViewMode | None = None
        self.state: DragState | None = None
        self._date_listeners: list[DateChangeCallback] = []
        self._progress_listeners: list[ProgressChangeCallback] = []

    def bind(
        self,
        tasks: dict[str, Task],
        graph: DependencyGraph,
        geometry: TaskGeometry,
        view_mode: ViewMode,
    ) -> None:
        """Attach the current working set. Cancels an active drag."""
        if self.state is not None:
            self.cancel()
        self.tasks = tasks
        self.graph = graph
        self.geometry = geometry
        self.view_mode = view_mode

    def on_date_change(self, callback: DateChangeCallback) -> None:
        self._date_listeners.append(callback)

    def on_progress_change(self, callback: ProgressChangeCallback) -> None:
        self._progress_listeners.append(callback)

    @property
    def dragging(self) -> bool:
        return self.state is not None

    def _allowed(self, task: Task, mode: DragMode) -> bool:
        opts = self.options
        if opts.readonly:
            return False
        if mode is DragMode.RESIZE_PROGRESS:
            if opts.readonly_progress:
                return False
        elif opts.readonly_dates:
            return False
        if task.invalid and mode is not DragMode.MOVE:
            return False
        return True

    def pointer_down(self, task_id: str, x: float, mode: DragMode = DragMode.MOVE) -> bool:
        """Start a gesture on *task_id*. Returns False when it is not allowed."""
        if self.state is not None or self.geometry is None:
            return False
        task = self.tasks.get(task_id)
        if task is None or not self._allowed(task, mode):
            return False

        state = DragState(
            task_id=task_id,
            mode=mode,
            origin_x=x,
            bar_width=self.geometry.width(task),
            snapshots={task_id: _Snapshot.of(task)},
        )
        if mode is DragMode.MOVE and self.options.move_dependencies:
            for dep_id in self.graph.get_all_dependents(task_id):
                dependent = self.tasks.get(dep_id)
                if dependent is not None:
                    state.dependents.append(dep_id)
                    state.snapshots[dep_id] = _Snapshot.of(dependent)
        self.state = state
        return True

    def _snap_units(self, axis: DateAxis) -> float | None:
        """Snap interval in axis units, or None when snapping is off.

        The chart option wins, then the active view mode, then the settings
        default.
        """
        view_snap = self.view_mode.snap_at if self.view_mode else None
        snap_at = self.options.snap_at or view_snap or self.options.default_snap_at
        if not snap_at:
            return None
        if snap_at == "unit":
            return axis.step
        snap = dates.parse_duration(snap_at)
        if snap.unit == axis.unit:
            return snap.count
        return dates.convert_scales(snap, axis.unit)

    def _delta(self, axis: DateAxis, dx: float) -> float:
        delta = dx / axis.column_width * axis.step
        snap = self._snap_units(axis)
        if snap:
            delta = _round_half_away(delta / snap) * snap
        return delta

    def pointer_move(self, x: float) -> list[str]:
        """Apply the pointer position. Returns ids whose bars changed."""
        state = self.state
        if state is None or self.geometry is None:
            return []
        task = self.tasks[state.task_id]
        snap = state.snapshots[state.task_id]
        dx = x - state.origin_x

        if state.mode is DragMode.RESIZE_PROGRESS:
            if state.bar_width <= 0:
                return []
            before = task.progress
            task.progress = snap.progress + dx / state.bar_width * 100
            return [task.id] if task.progress != before else []

        axis = self.geometry.axis
        unit = axis.unit
        delta = self._delta(axis, dx)
        before = task.date_range

        if state.mode is DragMode.MOVE:
            new_start = dates.add(snap.start, delta, unit)
            for dep_id in self.graph.dependencies_of(task.id):
                dependency = self.tasks.get(dep_id)
                if dependency is not None and new_start < dependency.start:
                    return []
            task.start = new_start
            task.end = dates.add(snap.end, delta, unit)
            changed = [task.id] if task.date_range != before else []
            for dep_id in state.dependents:
                dependent = self.tasks[dep_id]
                dep_snap = state.snapshots[dep_id]
                prev = dependent.date_range
                dependent.start = dates.add(dep_snap.start, delta, unit)
                dependent.end = dates.add(dep_snap.end, delta, unit)
                if dependent.date_range != prev:
                    changed.append(dep_id)
            return changed

        if state.mode is DragMode.RESIZE_LEFT:
            latest = dates.add(snap.end, -1, unit)
            task.start = min(dates.add(snap.start, delta, unit), latest)
        else:
            earliest = dates.add(snap.start, 1, unit)
            task.end = max(dates.add(snap.end, delta, unit), earliest)
        return [task.id] if task.date_range != before else []

    def pointer_up(self) -> list[str]:
        """Commit the gesture and notify listeners. Returns the changed ids."""
        state = self.state
        if state is None:
            return []
        self.state = None
        changed: list[str] = []
        for task_id, snap in state.snapshots.items():
            task = self.tasks.get(task_id)
            if task is None:
                continue
            old_range = (snap.start, snap.end)
            if task.date_range != old_range:
                changed.append(task_id)
                for callback in self._date_listeners:
                    callback(task_id, old_range, task.date_range)
            if state.mode is DragMode.RESIZE_PROGRESS and task.progress != snap.progress:
                changed.append(task_id)
                for callback in self._progress_listeners:
                    callback(task_id, snap.progress, task.progress)
        return changed

    def cancel(self) -> list[str]:
        """Revert every snapshot of the active gesture."""
        state = self.state
        if state is None:
            return []
        self.state = None
        reverted: list[str] = []
        for task_id, snap in state.snapshots.items():
            task = self.tasks.get(task_id)
            if task is None:
                continue
            if (task.start, task.end, task.progress) != (snap.start, snap.end, snap.progress):
                reverted.append(task_id)
            task.start = snap.start
            task.end = snap.end
            task.progress = snap.progress
        return reverted

    def pointer_leave(self) -> list[str]:
        return self.cancel()
