"""Integration tests for the TUI app using Textual Pilot."""

from datetime import date, datetime

import pytest
import yaml
from textual import events

from tui_gantt.app import GanttApp, build_sample_tasks
from tui_gantt.interaction import DragMode
from tui_gantt.loader import load_tasks_file
from tui_gantt.models import GanttOptions
from tui_gantt.screens.help_screen import HelpScreen
from tui_gantt.screens.warning_screen import WarningScreen
from tui_gantt.widgets.gantt_chart import GanttView, terminal_options


PAUSE = 0.1


@pytest.fixture
def tasks_path(tmp_path):
    path = tmp_path / "tasks.yaml"
    path.write_text(
        yaml.safe_dump({"tasks": [
            {"id": "a", "name": "Design", "start": "2024-01-01", "end": "2024-01-05", "progress": 50},
            {"id": "b", "name": "Build", "start": "2024-01-05", "end": "2024-01-12", "dependencies": ["a"]},
        ]}),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def named_project(tasks_path):
    cfg_dir = tasks_path.parent / ".tui-gantt"
    cfg_dir.mkdir()
    (cfg_dir / "config.toml").write_text(
        '[project]\nname = "Launch"\n\n[chart]\nview_mode = "Week"\n', encoding="utf-8"
    )
    return tasks_path


@pytest.mark.asyncio
async def test_app_starts(tasks_path):
    app = GanttApp(tasks_path)
    async with app.run_test(size=(120, 30)) as pilot:
        await pilot.pause(delay=PAUSE)
        assert app.engine is not None
        assert [t.id for t in app.engine.tasks] == ["a", "b"]
        assert app.engine.view_mode.name == "Day"
        assert app.engine.options.bar_height == 1


@pytest.mark.asyncio
async def test_app_config_applied(named_project):
    app = GanttApp(named_project)
    async with app.run_test(size=(120, 30)) as pilot:
        await pilot.pause(delay=PAUSE)
        assert "Launch" in app.title
        assert app.engine.view_mode.name == "Week"


@pytest.mark.asyncio
async def test_cycle_view_modes(tasks_path):
    app = GanttApp(tasks_path)
    async with app.run_test(size=(120, 30)) as pilot:
        await pilot.pause(delay=PAUSE)
        await pilot.press("right_square_bracket")
        await pilot.pause(delay=PAUSE)
        assert app.engine.view_mode.name == "Week"
        await pilot.press("left_square_bracket")
        await pilot.press("left_square_bracket")
        await pilot.pause(delay=PAUSE)
        assert app.engine.view_mode.name == "Half Day"


@pytest.mark.asyncio
async def test_help_modal(tasks_path):
    app = GanttApp(tasks_path)
    async with app.run_test(size=(120, 30)) as pilot:
        await pilot.pause(delay=PAUSE)
        await pilot.press("question_mark")
        await pilot.pause(delay=PAUSE)
        assert isinstance(app.screen, HelpScreen)
        await pilot.press("escape")
        await pilot.pause(delay=PAUSE)
        assert not isinstance(app.screen, HelpScreen)


@pytest.mark.asyncio
async def test_issues_modal(tmp_path):
    path = tmp_path / "tasks.yaml"
    path.write_text(
        yaml.safe_dump([{"id": "x", "end": "2024-01-02"}, {"id": "y", "start": "2024-01-01", "end": "2024-01-03"}]),
        encoding="utf-8",
    )
    app = GanttApp(path)
    async with app.run_test(size=(120, 30)) as pilot:
        await pilot.pause(delay=PAUSE)
        assert [i.key for i in app.engine.issues] == ["missing_start"]
        await pilot.press("exclamation_mark")
        await pilot.pause(delay=PAUSE)
        assert isinstance(app.screen, WarningScreen)


@pytest.mark.asyncio
async def test_unreadable_task_file(tmp_path):
    path = tmp_path / "tasks.yaml"
    path.write_text("tasks: [broken", encoding="utf-8")
    app = GanttApp(path)
    async with app.run_test(size=(120, 30)) as pilot:
        await pilot.pause(delay=PAUSE)
        assert app.engine is not None
        assert app.engine.tasks == []


@pytest.mark.asyncio
async def test_drag_then_save(tasks_path):
    app = GanttApp(tasks_path)
    async with app.run_test(size=(120, 30)) as pilot:
        await pilot.pause(delay=PAUSE)
        engine = app.engine
        x = engine.geometry("a").x
        column = engine.axis.column_width
        assert engine.pointer_down("a", x, DragMode.MOVE)
        engine.pointer_move(x + 2 * column)
        assert engine.pointer_up() == ["a", "b"]
        assert app._modified
        await pilot.press("ctrl+s")
        await pilot.pause(delay=PAUSE)
        assert not app._modified

    records = load_tasks_file(tasks_path)
    assert records[0]["start"] == "2024-01-03"
    assert records[1]["start"] == "2024-01-07"


@pytest.mark.asyncio
async def test_quit(tasks_path):
    app = GanttApp(tasks_path)
    async with app.run_test(size=(120, 30)) as pilot:
        await pilot.pause(delay=PAUSE)
        await pilot.press("q")
        await pilot.pause(delay=PAUSE)
    assert app.return_code == 0


class TestTerminalOptions:
    def test_cell_geometry(self):
        options = terminal_options(GanttOptions(column_width=30, ignore=["weekend"]))
        assert options.bar_height == 1
        assert options.padding == 0
        assert options.chart_header_height == 0
        assert options.column_width is None
        assert options.get_view_mode("Day").column_width == 3
        assert options.get_view_mode("Week").column_width == 7
        assert options.ignore == ["weekend"]

    def test_source_untouched(self):
        source = GanttOptions()
        terminal_options(source).ignore.append("2024-01-01")
        assert source.ignore == []
        assert source.get_view_mode("Day").column_width is None


class TestDragMode:
    def test_edges_resize(self):
        view = GanttView()
        assert view._drag_mode(10.5, 10, 16, False) is DragMode.RESIZE_LEFT
        assert view._drag_mode(15.2, 10, 16, False) is DragMode.RESIZE_RIGHT
        assert view._drag_mode(12, 10, 16, False) is DragMode.MOVE

    def test_shift_edits_progress(self):
        assert GanttView()._drag_mode(10, 10, 16, True) is DragMode.RESIZE_PROGRESS

    def test_short_bar_only_moves(self):
        assert GanttView()._drag_mode(10, 10, 12, False) is DragMode.MOVE

    def test_outside_bar(self):
        assert GanttView()._drag_mode(20, 10, 16, False) is None


def test_sample_tasks_follow_today():
    records = build_sample_tasks(date(2024, 3, 1))
    assert records[0]["start"] == "2024-03-01"
    assert [r["id"] for r in records] == ["design", "build", "test", "release"]
    assert datetime.fromisoformat(records[-1]["start"]) == datetime(2024, 3, 19)


@pytest.mark.asyncio
async def test_bars_rendered(tasks_path):
    app = GanttApp(tasks_path)
    async with app.run_test(size=(120, 30)) as pilot:
        await pilot.pause(delay=PAUSE)
        view = app.query_one(GanttView)
        first = "".join(seg.text for seg in view.render_line(0))
        second = "".join(seg.text for seg in view.render_line(1))
        assert "█" in first
        assert "Design 50%" in first
        assert "→" in second
        assert "Build 0%" in second


@pytest.mark.asyncio
async def test_pointer_leaving_view_cancels_drag(tasks_path):
    app = GanttApp(tasks_path)
    async with app.run_test(size=(120, 30)) as pilot:
        await pilot.pause(delay=PAUSE)
        engine = app.engine
        view = app.query_one(GanttView)
        x = engine.geometry("a").x
        assert engine.pointer_down("a", x, DragMode.MOVE)
        engine.pointer_move(x + 2 * engine.axis.column_width)
        assert engine.get_task("a").start == datetime(2024, 1, 3)
        view.on_leave(events.Leave(view))
        await pilot.pause(delay=PAUSE)
        assert not engine.interaction.dragging
        assert engine.get_task("a").start == datetime(2024, 1, 1)
        assert engine.get_task("b").start == datetime(2024, 1, 5)
        assert not app._modified
