"""Gantt chart widget: renders the engine layout in terminal cells and drives it with the mouse."""

from __future__ import annotations

import math
from dataclasses import replace

from textual import events
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.css.query import NoMatches
from textual.geometry import Size
from textual.message import Message
from textual.scroll_view import ScrollView
from textual.strip import Strip
from textual.widget import Widget

from rich.segment import Segment
from rich.style import Style
from rich.text import Text

from tui_gantt import theme
from tui_gantt.engine import GanttEngine
from tui_gantt.interaction import DragMode
from tui_gantt.models import GanttOptions

# Cells per column for each built-in view mode.
CELL_COLUMN_WIDTHS: dict[str, int] = {
    "Hour": 3,
    "Quarter Day": 3,
    "Half Day": 3,
    "Day": 3,
    "Week": 7,
    "Month": 6,
    "Year": 6,
}
DEFAULT_CELL_COLUMN_WIDTH = 4
LABEL_GAP = 1


def terminal_options(options: GanttOptions) -> GanttOptions:
    """Copy *options* with geometry measured in terminal cells: one row per task."""
    modes = [
        replace(mode, column_width=CELL_COLUMN_WIDTHS.get(mode.name, DEFAULT_CELL_COLUMN_WIDTH))
        for mode in options.view_modes
    ]
    return replace(
        options,
        view_modes=modes,
        column_width=None,
        bar_height=1,
        padding=0,
        header_height=0,
        arrow_curve=0,
        ignore=list(options.ignore),
        holidays=dict(options.holidays),
    )


def _is_dark(widget: Widget) -> bool:
    try:
        return widget.app.current_theme.dark
    except (AttributeError, RuntimeError):
        return True


class GanttHeader(Widget):
    """Two fixed rows of column labels (upper and lower), scrolled with the view."""

    DEFAULT_CSS = """
    GanttHeader {
        height: 2;
        background: $background;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.engine: GanttEngine | None = None
        self.scroll_x_offset: int = 0

    def render_line(self, y: int) -> Strip:
        if self.engine is None or y > 1:
            return Strip.blank(self.size.width)
        axis = self.engine.axis
        width = max(self.size.width, math.ceil(axis.width))
        cw = int(axis.column_width)
        dark = _is_dark(self)
        style = Style(bold=True, color=theme.GANTT_HEADER.resolve(dark))
        thick = Style(color=theme.GANTT_THICK_LINE.resolve(dark))

        chars = [" "] * width
        styles = [style] * width
        for label in axis.column_labels(self.engine.options.language):
            x = int(label.x)
            text = label.upper if y == 0 else label.lower[:cw - 1]
            if y == 1 and label.thick and x < width:
                chars[x] = "▏"
                styles[x] = thick
            start = x + 1 if y == 1 else x
            for i, ch in enumerate(text):
                if start + i < width:
                    chars[start + i] = ch
        segments = [Segment(ch, st) for ch, st in zip(chars, styles)]
        return Strip(segments).crop(self.scroll_x_offset, self.scroll_x_offset + self.size.width)


class GanttView(ScrollView):
    """Renders one task per row and turns mouse gestures into engine interactions."""

    class Scrolled(Message):
        """Emitted when horizontal scroll position changes."""

        def __init__(self, scroll_x: float) -> None:
            super().__init__()
            self.scroll_x = scroll_x

    class Dragged(Message):
        """Emitted while a drag changes bars."""

        def __init__(self, task_ids: list[str]) -> None:
            super().__init__()
            self.task_ids = task_ids

    class Committed(Message):
        """Emitted when a drag ends with changes."""

        def __init__(self, task_ids: list[str]) -> None:
            super().__init__()
            self.task_ids = task_ids

    BINDINGS = [Binding("escape", "cancel_drag", "Cancel drag", show=False)]

    DEFAULT_CSS = """
    GanttView {
        height: 1fr;
        background: $background;
    }
    """

    can_focus = True

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.engine: GanttEngine | None = None
        self.selected_id: str = ""
        self._backgrounds: list[str] = []
        self._ticks: dict[int, Segment] = {}
        self._today_col: int | None = None

    def set_engine(self, engine: GanttEngine) -> None:
        self.engine = engine
        self.relayout()

    def relayout(self) -> None:
        """Recompute virtual size, per-column backgrounds and grid ticks after the axis changed."""
        if self.engine is None:
            return
        axis = self.engine.axis
        width = math.ceil(axis.width)
        dark = _is_dark(self)
        ignored = theme.GANTT_IGNORED_BG.resolve(dark)
        backgrounds = [theme.GANTT_BASE_BG.resolve(dark)] * width
        for highlight in axis.highlights:
            for c in range(int(highlight.span.start), min(width, math.ceil(highlight.span.end))):
                backgrounds[c] = theme.GANTT_HIGHLIGHT_BG.resolve(dark)
        for c in range(width):
            if axis.ignored_region_at(c + 0.5) is not None:
                backgrounds[c] = ignored
        self._backgrounds = backgrounds

        grid = Style(color=theme.GANTT_GRID_LINE.resolve(dark))
        thick = Style(color=theme.GANTT_THICK_LINE.resolve(dark))
        self._ticks = {
            int(label.x): Segment("▏", thick if label.thick else grid)
            for label in axis.column_labels(self.engine.options.language)
        }
        today_x = self.engine.today_x()
        self._today_col = None if today_x is None else math.floor(today_x)

        self.virtual_size = Size(width, len(self.engine.tasks))
        self.refresh()

    def watch_scroll_x(self, old: float, new: float) -> None:
        super().watch_scroll_x(old, new)
        self.post_message(self.Scrolled(new))
        if self.engine is None or self.size.width == 0:
            return
        shift = self.engine.maybe_extend(new, self.size.width)
        if shift or self.virtual_size.width < math.ceil(self.engine.axis.width):
            self.relayout()
            if shift:
                self.scroll_to(x=new + shift, animate=False)

    def scroll_to_date_x(self, x: float) -> None:
        self.scroll_to(x=max(0, x - 2), animate=False)

    # ── Rendering ──

    def render_line(self, y: int) -> Strip:
        width = self.size.width
        if self.engine is None or not self.engine.tasks:
            if y == 0:
                text = Text("  No tasks", style="dim")
                return Strip(text.render(self.app.console))
            return Strip.blank(width)

        scroll_x = int(self.scroll_x)
        row = y + int(self.scroll_y)
        if row >= len(self.engine.tasks):
            return self._blank_row(scroll_x, width)
        return self._render_task_row(row, scroll_x, width)

    def _bg(self, c: int) -> Style:
        if 0 <= c < len(self._backgrounds):
            return Style(bgcolor=self._backgrounds[c])
        return Style()

    def _empty_cell(self, c: int) -> Segment:
        """Background cell with the today marker or a column tick, if any."""
        bg = self._bg(c)
        if c == self._today_col:
            return Segment("│", Style(color=theme.GANTT_TODAY_MARKER.resolve(_is_dark(self))) + bg)
        tick = self._ticks.get(c)
        if tick is not None:
            return Segment(tick.text, tick.style + bg)
        return Segment(" ", bg)

    def _blank_row(self, scroll_x: int, width: int) -> Strip:
        return Strip([self._empty_cell(c) for c in range(scroll_x, scroll_x + width)])

    def _render_task_row(self, row: int, scroll_x: int, width: int) -> Strip:
        engine = self.engine
        task = engine.tasks[row]
        bar = engine.geometry(task.id)
        dark = _is_dark(self)

        start_col = math.floor(bar.x)
        end_col = max(start_col + 1, math.ceil(bar.end_x))
        filled = round(bar.progress_width)
        expected = round(bar.expected_progress_width)
        if task.invalid:
            bar_style = Style(color=theme.GANTT_BAR_INVALID.resolve(dark))
        elif task.id == self.selected_id:
            bar_style = Style(color=theme.GANTT_BAR_SELECTED.resolve(dark), bold=True)
        else:
            bar_style = Style(color=theme.GANTT_BAR.resolve(dark))
        progress_style = Style(color=theme.GANTT_BAR_PROGRESS.resolve(dark))
        expected_style = Style(color=theme.GANTT_BAR_EXPECTED.resolve(dark))
        dep_style = Style(color=theme.GANTT_DEPENDENCY_ARROW.resolve(dark))
        label_style = Style(color=theme.GANTT_LABEL.resolve(dark))
        label = f" {task.name} {int(task.progress)}%"
        label_start = end_col + LABEL_GAP

        segments: list[Segment] = []
        for c in range(scroll_x, scroll_x + width):
            bg = self._bg(c)
            if task.dependencies and c == start_col - 1:
                segments.append(Segment("→", dep_style + bg))
            elif start_col <= c < end_col:
                if c - start_col < filled:
                    segments.append(Segment("█", progress_style + bg))
                elif c - start_col < expected:
                    segments.append(Segment("▒", expected_style + bg))
                else:
                    segments.append(Segment("░", bar_style + bg))
            elif label_start <= c < label_start + len(label):
                segments.append(Segment(label[c - label_start], label_style + bg))
            else:
                segments.append(self._empty_cell(c))
        return Strip(segments)

    # ── Mouse ──

    def _content_x(self, event: events.MouseEvent) -> float:
        return event.x + self.scroll_x

    def _drag_mode(self, x: float, start_col: int, end_col: int, shift: bool) -> DragMode | None:
        col = math.floor(x)
        if not start_col <= col < end_col:
            return None
        if shift:
            return DragMode.RESIZE_PROGRESS
        if end_col - start_col >= 3:
            if col == start_col:
                return DragMode.RESIZE_LEFT
            if col == end_col - 1:
                return DragMode.RESIZE_RIGHT
        return DragMode.MOVE

    def on_mouse_down(self, event: events.MouseDown) -> None:
        if self.engine is None:
            return
        task = self.engine.task_at(event.y + self.scroll_y)
        if task is None:
            return
        bar = self.engine.geometry(task.id)
        x = self._content_x(event)
        mode = self._drag_mode(x, math.floor(bar.x), max(math.floor(bar.x) + 1, math.ceil(bar.end_x)), event.shift)
        if mode is None:
            return
        self.selected_id = task.id
        if self.engine.pointer_down(task.id, x, mode):
            self.capture_mouse()
        self.refresh()

    def on_mouse_move(self, event: events.MouseMove) -> None:
        if self.engine is None or not self.engine.interaction.dragging:
            return
        changed = self.engine.pointer_move(self._content_x(event))
        if changed:
            self.post_message(self.Dragged(changed))
            self.refresh()

    def on_mouse_up(self, event: events.MouseUp) -> None:
        if self.engine is None or not self.engine.interaction.dragging:
            return
        self.release_mouse()
        changed = self.engine.pointer_up()
        self.relayout()
        if changed:
            self.post_message(self.Committed(changed))

    def _abort_drag(self, left: bool = False) -> None:
        if self.engine is None or not self.engine.interaction.dragging:
            return
        self.release_mouse()
        if left:
            self.engine.pointer_leave()
        else:
            self.engine.cancel()
        self.refresh()

    def action_cancel_drag(self) -> None:
        self._abort_drag()

    def on_leave(self, event: events.Leave) -> None:
        self._abort_drag(left=True)


class GanttChart(Container):
    """Header plus scrollable bar view for a :class:`GanttEngine`."""

    DEFAULT_CSS = """
    GanttChart {
        width: 1fr;
        height: 1fr;
    }
    GanttChart #gantt-header {
        height: 2;
    }
    GanttChart #gantt-view {
        height: 1fr;
    }
    """

    class TaskChanged(Message):
        """Posted after a drag committed changes to one or more tasks."""

        def __init__(self, task_ids: list[str]) -> None:
            super().__init__()
            self.task_ids = task_ids

    def __init__(self, engine: GanttEngine | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.engine = engine

    def compose(self) -> ComposeResult:
        yield GanttHeader(id="gantt-header")
        yield GanttView(id="gantt-view")

    def on_mount(self) -> None:
        if self.engine is not None:
            self.set_engine(self.engine)

    def set_engine(self, engine: GanttEngine) -> None:
        self.engine = engine
        try:
            view = self.query_one("#gantt-view", GanttView)
            header = self.query_one("#gantt-header", GanttHeader)
        except NoMatches:
            return
        header.engine = engine
        view.set_engine(engine)
        header.refresh()

    def refresh_chart(self) -> None:
        """Re-read the engine after its axis or tasks changed."""
        if self.engine is not None:
            self.set_engine(self.engine)

    def scroll_to_first_task(self) -> None:
        if self.engine is None:
            return
        oldest = self.engine.get_oldest_starting_date()
        if oldest is None:
            return
        self.query_one("#gantt-view", GanttView).scroll_to_date_x(self.engine.axis.x_for(oldest))

    def scroll_to_initial(self) -> None:
        """Scroll to the ``scroll_to`` date, or the first task when it is off the chart."""
        if self.engine is None:
            return
        target = self.engine.scroll_target()
        if target is None:
            self.scroll_to_first_task()
            return
        self.query_one("#gantt-view", GanttView).scroll_to_date_x(self.engine.axis.x_for(target))

    def scroll_by_columns(self, columns: int) -> None:
        if self.engine is None:
            return
        view = self.query_one("#gantt-view", GanttView)
        view.scroll_to(x=view.scroll_x + columns * self.engine.axis.column_width, animate=False)

    def on_gantt_view_scrolled(self, event: GanttView.Scrolled) -> None:
        header = self.query_one("#gantt-header", GanttHeader)
        header.scroll_x_offset = int(event.scroll_x)
        header.refresh()

    def on_gantt_view_dragged(self, event: GanttView.Dragged) -> None:
        event.stop()

    def on_gantt_view_committed(self, event: GanttView.Committed) -> None:
        event.stop()
        self.query_one("#gantt-header", GanttHeader).refresh()
        self.post_message(self.TaskChanged(event.task_ids))
