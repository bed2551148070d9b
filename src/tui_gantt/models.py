"""Data models for TUI Gantt."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from tui_gantt.dates import Duration, parse_duration

__all__ = [
    "Bar",
    "DEFAULT_VIEW_MODES",
    "Duration",
    "GanttOptions",
    "LoadIssue",
    "Rect",
    "Task",
    "ViewMode",
    "clamp_progress",
]


@dataclass(frozen=True)
class ViewMode:
    """A named time granularity: step size, column width, padding and labels."""

    name: str
    step: str
    padding: str | tuple[str, str] = "7d"
    column_width: float | None = None
    snap_at: str | None = None
    date_format: str = "YYYY-MM-DD"
    lower_text: str = "D"
    upper_text: str = "MMMM"
    thick_line: Callable[[datetime], bool] | None = field(default=None, compare=False)

    @property
    def step_duration(self) -> Duration:
        return parse_duration(self.step)

    def padding_durations(self) -> tuple[Duration, Duration]:
        """Return (before, after) padding. A single value pads both sides."""
        if isinstance(self.padding, (tuple, list)):
            before = parse_duration(self.padding[0])
            after = parse_duration(self.padding[-1])
            return before, after
        pad = parse_duration(self.padding)
        return pad, pad


DEFAULT_VIEW_MODES: tuple[ViewMode, ...] = (
    ViewMode("Hour", step="1h", padding="7d", date_format="YYYY-MM-DD HH:",
             lower_text="HH", upper_text="D MMMM"),
    ViewMode("Quarter Day", step="6h", padding="7d", date_format="YYYY-MM-DD HH:",
             lower_text="HH", upper_text="D MMM"),
    ViewMode("Half Day", step="12h", padding="14d", date_format="YYYY-MM-DD HH:",
             lower_text="HH", upper_text="D MMM"),
    ViewMode("Day", step="1d", padding="7d", date_format="YYYY-MM-DD",
             lower_text="D", upper_text="MMMM",
             thick_line=lambda d: d.weekday() == 0),
    ViewMode("Week", step="7d", padding="1m", column_width=140, date_format="YYYY-MM-DD",
             lower_text="D MMM", upper_text="MMMM",
             thick_line=lambda d: 1 <= d.day <= 7),
    ViewMode("Month", step="1m", padding="2m", column_width=120, snap_at="7d",
             date_format="YYYY-MM", lower_text="MMMM", upper_text="YYYY",
             thick_line=lambda d: (d.month - 1) % 3 == 0),
    ViewMode("Year", step="1y", padding="2y", column_width=120, snap_at="30d",
             date_format="YYYY", lower_text="YYYY", upper_text="YYYY"),
)

DEFAULT_COLUMN_WIDTH = 45


def clamp_progress(value: Any) -> float:
    """Coerce *value* into the 0-100 range. Missing or negative values become 0."""
    if value is None:
        return 0.0
    value = float(value)
    if value != value or value < 0:  # NaN or negative
        return 0.0
    return min(100.0, value)


@dataclass(eq=False)
class Task:
    """A single scheduled task. ``end`` is exclusive.

    ``progress`` is clamped into [0, 100] on every assignment.
    """

    id: str
    name: str
    start: datetime
    end: datetime
    progress: float = 0.0
    dependencies: tuple[str, ...] = ()
    index: int = 0
    invalid: bool = False
    duration: Duration | None = None
    actual_duration: float = 0.0
    ignored_duration: float = 0.0
    custom_class: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "progress":
            value = clamp_progress(value)
        super().__setattr__(name, value)

    @property
    def date_range(self) -> tuple[datetime, datetime]:
        return self.start, self.end


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in renderer coordinates."""

    x: float
    y: float
    width: float
    height: float

    @property
    def end_x(self) -> float:
        return self.x + self.width

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2


@dataclass(frozen=True)
class Bar:
    """Derived geometry of a task bar."""

    x: float
    y: float
    width: float
    height: float
    progress_width: float
    expected_progress_width: float = 0.0

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    @property
    def end_x(self) -> float:
        return self.x + self.width

    @property
    def progress_end_x(self) -> float:
        return self.x + self.progress_width


@dataclass
class LoadIssue:
    """A problem found while loading tasks."""

    task_id: str
    key: str
    message: str
    level: str = "error"  # error (task rejected) or warning (task kept)

    def __str__(self) -> str:
        return f"[{self.level}] {self.task_id}: {self.message}"


@dataclass
class GanttOptions:
    """Chart options. Pixel values are in renderer units."""

    view_mode: str = "Day"
    view_modes: list[ViewMode] = field(default_factory=lambda: list(DEFAULT_VIEW_MODES))
    column_width: float | None = None
    bar_height: float = 30
    bar_corner_radius: float = 3
    padding: float = 18
    arrow_curve: float = 5
    upper_header_height: float = 45
    lower_header_height: float = 30
    header_height: float | None = None
    snap_at: str | None = None
    default_snap_at: str | None = None
    infinite_padding: bool = True
    extend_by_units: int = 10
    ignore: list[str] = field(default_factory=list)
    holidays: dict[str, Any] = field(default_factory=lambda: {"#f7f7f7": "weekend"})
    language: str = "en"
    scroll_to: str = "today"  # today, start, end or an ISO date
    show_expected_progress: bool = False
    move_dependencies: bool = True
    readonly: bool = False
    readonly_dates: bool = False
    readonly_progress: bool = False

    def get_view_mode(self, name: str) -> ViewMode | None:
        """Find a view mode by name (case-insensitive)."""
        for mode in self.view_modes:
            if mode.name.lower() == name.lower():
                return mode
        return None

    @property
    def chart_header_height(self) -> float:
        if self.header_height is not None:
            return self.header_height
        return self.upper_header_height + self.lower_header_height + 10
