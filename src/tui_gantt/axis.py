"""Date axis: the mapping between dates and horizontal positions for a view mode."""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable, NamedTuple

from tui_gantt import dates
from tui_gantt.dates import DAY, Duration
from tui_gantt.errors import ConfigurationError
from tui_gantt.models import DEFAULT_COLUMN_WIDTH, GanttOptions, Task, ViewMode

WEEKEND = "weekend"


class Span(NamedTuple):
    """Half-open pixel interval ``[start, end)``."""

    start: float
    end: float

    @property
    def width(self) -> float:
        return self.end - self.start

    def contains(self, pos: float) -> bool:
        return self.start <= pos < self.end


class Highlight(NamedTuple):
    color: str
    day: datetime
    span: Span


class ColumnLabel(NamedTuple):
    """Header text for one column. ``upper`` is empty unless it changed."""

    x: float
    date: datetime
    lower: str
    upper: str
    thick: bool


@dataclass(frozen=True)
class IgnoreRule:
    """Matches days by explicit date or by the ``weekend`` keyword."""

    days: frozenset[date] = frozenset()
    weekends: bool = False

    @classmethod
    def from_entries(cls, entries: Iterable[Any] | str | None) -> IgnoreRule:
        if entries is None:
            return cls()
        if isinstance(entries, (str, date)):
            entries = [entries]
        days: set[date] = set()
        weekends = False
        for entry in entries:
            if isinstance(entry, dict):
                entry = entry.get("date")
            if isinstance(entry, str) and entry.strip().lower() == WEEKEND:
                weekends = True
                continue
            try:
                days.add(dates.parse(entry).date())
            except (ValueError, OverflowError) as e:
                raise ConfigurationError(f"Invalid ignored date: {entry!r}") from e
        return cls(frozenset(days), weekends)

    def matches(self, d: date) -> bool:
        if isinstance(d, datetime):
            d = d.date()
        return (self.weekends and dates.is_weekend(d)) or d in self.days

    def __bool__(self) -> bool:
        return self.weekends or bool(self.days)


def resolve_step(view_mode: ViewMode) -> Duration:
    try:
        step = view_mode.step_duration
    except ValueError as e:
        raise ConfigurationError(f"View mode {view_mode.name!r}: {e}") from e
    if step.count <= 0:
        raise ConfigurationError(f"View mode {view_mode.name!r} has a non-positive step")
    return step


def resolve_column_width(view_mode: ViewMode, options: GanttOptions) -> float:
    width = options.column_width or view_mode.column_width or DEFAULT_COLUMN_WIDTH
    if width <= 0:
        raise ConfigurationError(f"Column width must be positive, got {width}")
    return float(width)


def _resolve_padding(
    view_mode: ViewMode, step: Duration, options: GanttOptions
) -> tuple[Duration, Duration]:
    if options.infinite_padding:
        pad = Duration(step.count * options.extend_by_units * 3, step.unit)
        return pad, pad
    try:
        before, after = view_mode.padding_durations()
    except ValueError as e:
        raise ConfigurationError(f"View mode {view_mode.name!r}: {e}") from e
    if before.count < 0 or after.count < 0:
        raise ConfigurationError(f"View mode {view_mode.name!r} has a negative padding")
    return before, after


@dataclass
class DateAxis:
    """Date-to-pixel mapping for one view mode.

    ``columns`` are strictly increasing and spaced by ``step`` units;
    ``ignored_regions`` are sorted by start.
    """

    start: datetime
    end: datetime
    unit: str
    step: float
    column_width: float
    view_mode: ViewMode
    columns: list[datetime] = field(default_factory=list)
    ignored_regions: list[Span] = field(default_factory=list)
    highlights: list[Highlight] = field(default_factory=list)
    ignore_rule: IgnoreRule = field(default_factory=IgnoreRule)

    def __post_init__(self) -> None:
        self.set_ignored_regions(self.ignored_regions)

    def set_ignored_regions(self, regions: list[Span]) -> None:
        self.ignored_regions = sorted(regions)
        self._region_starts = [r.start for r in self.ignored_regions]

    @property
    def step_duration(self) -> Duration:
        return Duration(self.step, self.unit)

    @property
    def width(self) -> float:
        return len(self.columns) * self.column_width

    def x_for(self, d: datetime) -> float:
        return dates.diff(d, self.start, self.unit) / self.step * self.column_width

    def date_for(self, x: float) -> datetime:
        return dates.add(self.start, x / self.column_width * self.step, self.unit)

    def is_ignored(self, d: datetime) -> bool:
        return self.ignore_rule.matches(d)

    def ignored_region_at(self, pos: float) -> Span | None:
        """Return the ignored region containing *pos*, if any."""
        i = bisect_right(self._region_starts, pos) - 1
        if i >= 0 and self.ignored_regions[i].contains(pos):
            return self.ignored_regions[i]
        return None

    def ignored_regions_between(self, lo: float, hi: float) -> list[Span]:
        """Regions whose start lies in ``[lo, hi)``."""
        i = bisect_left(self._region_starts, lo)
        j = bisect_left(self._region_starts, hi)
        return self.ignored_regions[i:j]

    def ignored_area(self, lo: float, hi: float) -> float:
        return sum(r.width for r in self.ignored_regions_between(lo, hi))

    def column_labels(self, locale: str = "en") -> list[ColumnLabel]:
        labels: list[ColumnLabel] = []
        last_upper = None
        for i, col in enumerate(self.columns):
            upper = dates.format_date(col, self.view_mode.upper_text, locale)
            lower = dates.format_date(col, self.view_mode.lower_text, locale)
            thick = bool(self.view_mode.thick_line and self.view_mode.thick_line(col))
            labels.append(
                ColumnLabel(
                    x=i * self.column_width,
                    date=col,
                    lower=lower,
                    upper=upper if upper != last_upper else "",
                    thick=thick,
                )
            )
            last_upper = upper
        return labels


def _holiday_rules(holidays: dict[str, Any] | None) -> list[tuple[str, IgnoreRule]]:
    return [(color, IgnoreRule.from_entries(value)) for color, value in (holidays or {}).items()]


def _make_axis(
    start: datetime,
    end: datetime,
    step: Duration,
    column_width: float,
    view_mode: ViewMode,
    options: GanttOptions,
) -> DateAxis:
    columns: list[datetime] = []
    col = start
    while col < end:
        columns.append(col)
        col = dates.add(start, step.count * len(columns), step.unit)
    if not columns:
        columns.append(start)
    end = dates.add(start, step.count * len(columns), step.unit)

    rule = IgnoreRule.from_entries(options.ignore)
    axis = DateAxis(
        start=start,
        end=end,
        unit=step.unit,
        step=step.count,
        column_width=column_width,
        view_mode=view_mode,
        columns=columns,
        ignore_rule=rule,
    )
    regions: list[Span] = []
    highlights: list[Highlight] = []
    holiday_rules = _holiday_rules(options.holidays)
    for day in dates.iter_days(dates.start_of(start, DAY), end):
        span = Span(axis.x_for(day), axis.x_for(day + timedelta(days=1)))
        if rule.matches(day):
            regions.append(span)
            continue
        for color, holiday in holiday_rules:
            if holiday.matches(day):
                highlights.append(Highlight(color, day, span))
                break
    axis.set_ignored_regions(regions)
    axis.highlights = highlights
    return axis


def build_axis(
    tasks: Iterable[Task],
    view_mode: ViewMode,
    options: GanttOptions,
    today: datetime | None = None,
) -> DateAxis:
    """Compute the axis spanning *tasks* plus padding under *view_mode*."""
    step = resolve_step(view_mode)
    column_width = resolve_column_width(view_mode, options)

    tasks = list(tasks)
    if tasks:
        lo = min(t.start for t in tasks)
        hi = max(t.end for t in tasks)
    else:
        lo = hi = dates.start_of(today or datetime.now(), DAY)

    lo = dates.start_of(lo, step.unit)
    hi_floor = dates.start_of(hi, step.unit)
    hi = hi_floor if hi_floor == hi else dates.add(hi_floor, 1, step.unit)

    before, after = _resolve_padding(view_mode, step, options)
    start = dates.start_of(dates.add(lo, -before.count, before.unit), DAY)
    if step.unit == DAY and step.count % 7 == 0:
        start -= timedelta(days=start.weekday())
    end = dates.add(hi, after.count, after.unit)
    if end <= start:
        end = dates.add(start, step.count, step.unit)
    return _make_axis(start, end, step, column_width, view_mode, options)


def grow_axis(axis: DateAxis, side: str, options: GanttOptions) -> DateAxis:
    """Extend *axis* by ``extend_by_units`` steps at ``"start"`` or ``"end"``."""
    units = axis.step * max(1, options.extend_by_units)
    step = axis.step_duration
    if side == "start":
        start = dates.add(axis.start, -units, axis.unit)
        end = axis.end
    elif side == "end":
        start = axis.start
        end = dates.add(axis.end, units, axis.unit)
    else:
        raise ValueError(f"side must be 'start' or 'end', got {side!r}")
    return _make_axis(start, end, step, axis.column_width, axis.view_mode, options)
