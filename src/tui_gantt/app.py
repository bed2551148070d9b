"""Main Textual App for TUI Gantt."""

from __future__ import annotations

import os
from datetime import date, timedelta
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.css.query import NoMatches
from textual.widgets import Footer, Header, Static

from tui_gantt import theme
from tui_gantt.config import ProjectConfig, load_options
from tui_gantt.engine import GanttEngine
from tui_gantt.errors import GanttError
from tui_gantt.loader import load_tasks_file, write_tasks_file
from tui_gantt.models import LoadIssue
from tui_gantt.screens.help_screen import HelpScreen
from tui_gantt.screens.warning_screen import WarningScreen
from tui_gantt.widgets.gantt_chart import GanttChart, terminal_options

SCROLL_COLUMNS = 5


def build_sample_tasks(today: date | None = None) -> list[dict]:
    """Sample task records starting today, used by ``tui-gantt init``."""
    today = today or date.today()

    def d(offset: int) -> str:
        return (today + timedelta(days=offset)).isoformat()

    return [
        {"id": "design", "name": "Design", "start": d(0), "end": d(5), "progress": 40},
        {"id": "build", "name": "Build", "start": d(5), "end": d(15), "dependencies": ["design"]},
        {"id": "test", "name": "Test", "start": d(12), "end": d(18), "dependencies": ["build"]},
        {"id": "release", "name": "Release", "start": d(18), "duration": "1d", "dependencies": ["test"]},
    ]


class GanttApp(App):
    """TUI Gantt Application."""

    TITLE = "TUI Gantt"
    CSS = """
    #main-content {
        height: 1fr;
        border: round $surface-lighten-2;
        border-title-align: left;
    }
    #main-content:focus-within {
        border: round $accent;
        border-title-color: $accent;
    }
    #status-bar {
        dock: bottom;
        height: 1;
        padding: 0 1;
        background: $primary-background;
        color: $text;
    }
    """

    BINDINGS = [
        Binding("ctrl+s", "save", "Save", priority=True),
        Binding("question_mark", "help", "Help"),
        Binding("exclamation_mark", "warnings", "Issues"),
        Binding("q", "quit_app", "Quit"),
        Binding("left_square_bracket", "prev_view", "Prev View"),
        Binding("right_square_bracket", "next_view", "Next View"),
        Binding("h", "scroll_left", show=False),
        Binding("l", "scroll_right", show=False),
        Binding("t", "scroll_home", show=False),
    ]

    def __init__(self, tasks_path: Path, project_dir: Path | None = None, no_color: bool = False) -> None:
        if no_color:
            os.environ["NO_COLOR"] = "1"
        super().__init__()
        self.tasks_path = Path(tasks_path)
        self.project_dir = project_dir or self.tasks_path.parent
        self.config: ProjectConfig = ProjectConfig()
        self.engine: GanttEngine | None = None
        self._modified: bool = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield GanttChart(id="main-content")
        yield Static("", id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        self._load()

    def _load(self) -> None:
        theme.load_theme(self.project_dir)
        try:
            self.config = load_options(self.project_dir)
            records = load_tasks_file(self.tasks_path) if self.tasks_path.exists() else []
            self.engine = GanttEngine(records, terminal_options(self.config.options), log_sink=self._log_issue)
        except GanttError as e:
            self.notify(str(e), severity="error", timeout=10)
            self.engine = GanttEngine([], terminal_options(ProjectConfig().options))
        self.engine.on_date_change(self._on_date_change)
        self.engine.on_progress_change(self._on_progress_change)

        project_name = self.config.name or self.tasks_path.stem
        self.title = f"TUI Gantt - {project_name}"
        chart = self.query_one(GanttChart)
        chart.border_title = self.tasks_path.name
        chart.set_engine(self.engine)
        self.call_after_refresh(chart.scroll_to_initial)
        self._update_status_bar()
        if any(issue.level == "error" for issue in self.engine.issues):
            self.notify(
                f"{len(self.engine.issues)} task issue(s), press ! for details",
                severity="warning",
            )

    # ── Engine callbacks ──

    def _log_issue(self, issue: LoadIssue) -> None:
        if issue.level == "error":
            self.log.error(str(issue))
        else:
            self.log.warning(str(issue))

    def _on_date_change(self, task_id: str, old, new) -> None:
        self._modified = True

    def _on_progress_change(self, task_id: str, old: float, new: float) -> None:
        self._modified = True

    def on_gantt_chart_task_changed(self, event: GanttChart.TaskChanged) -> None:
        self._update_title()
        self._update_status_bar()

    # ── UI Refresh ──

    def _update_title(self) -> None:
        project_name = self.config.name or self.tasks_path.stem
        marker = " *" if self._modified else ""
        self.title = f"TUI Gantt - {project_name}{marker}"

    def _update_status_bar(self) -> None:
        try:
            bar = self.query_one("#status-bar", Static)
        except NoMatches:
            return
        parts: list[str] = []
        if self.engine is not None:
            parts.append(f"View: {self.engine.view_mode.name}")
            parts.append(f"{len(self.engine.tasks)} task(s)")
            issue_count = len(self.engine.issues)
            if issue_count:
                color = theme.STATUSBAR_WARNING.dark
                parts.append(f"[{color}]⚠ {issue_count} issue(s)[/{color}]")
        bar.update(" | ".join(parts))

    # ── Actions ──

    def _cycle_view(self, step: int) -> None:
        if self.engine is None:
            return
        modes = self.engine.options.view_modes
        names = [m.name for m in modes]
        current = names.index(self.engine.view_mode.name)
        self.engine.set_view(names[(current + step) % len(names)])
        chart = self.query_one(GanttChart)
        chart.refresh_chart()
        self.call_after_refresh(chart.scroll_to_initial)
        self._update_status_bar()

    def action_prev_view(self) -> None:
        self._cycle_view(-1)

    def action_next_view(self) -> None:
        self._cycle_view(1)

    def action_scroll_left(self) -> None:
        self.query_one(GanttChart).scroll_by_columns(-SCROLL_COLUMNS)

    def action_scroll_right(self) -> None:
        self.query_one(GanttChart).scroll_by_columns(SCROLL_COLUMNS)

    def action_scroll_home(self) -> None:
        self.query_one(GanttChart).scroll_to_first_task()

    def action_save(self) -> None:
        if self.engine is None:
            return
        try:
            write_tasks_file(self.tasks_path, self.engine.tasks)
        except (OSError, GanttError) as e:
            self.notify(f"Save failed: {e}", severity="error")
            return
        self._modified = False
        self._update_title()
        self.notify("Saved", severity="information")

    def action_help(self) -> None:
        self.push_screen(HelpScreen(), callback=self._on_help_action)

    def _on_help_action(self, action: str) -> None:
        if action:
            self.run_action(action)

    def action_warnings(self) -> None:
        self.push_screen(WarningScreen(self.engine.issues if self.engine else []))

    def action_quit_app(self) -> None:
        self.exit()
