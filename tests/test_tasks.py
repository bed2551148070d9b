"""Tests for task record validation."""

from datetime import datetime

from tui_gantt.tasks import MISSING_END_PLACEHOLDER, parse_dependencies, prepare_tasks


def _keys(issues):
    return [issue.key for issue in issues]


class TestPrepareTasks:
    def test_basic_record(self):
        tasks, issues = prepare_tasks([
            {"id": "a", "name": "Design", "start": "2024-01-01", "end": "2024-01-05", "progress": 40},
        ])
        assert issues == []
        (task,) = tasks
        assert task.start == datetime(2024, 1, 1)
        assert task.end == datetime(2024, 1, 5)
        assert task.progress == 40
        assert task.duration.count == 4

    def test_missing_start_rejected(self):
        tasks, issues = prepare_tasks([{"id": "a", "end": "2024-01-05"}])
        assert tasks == []
        assert _keys(issues) == ["missing_start"]
        assert issues[0].level == "error"
        assert issues[0].message == 'task "a" doesn\'t have a start date'

    def test_end_before_start_rejected(self):
        tasks, issues = prepare_tasks([
            {"id": "a", "name": "Oops", "start": "2024-01-05", "end": "2024-01-01"},
        ])
        assert tasks == []
        assert _keys(issues) == ["end_before_start"]
        assert issues[0].message == 'start of task can\'t be after end of task: in task "Oops"'

    def test_invalid_date_rejected(self):
        tasks, issues = prepare_tasks([{"id": "a", "start": "someday", "end": "2024-01-01"}])
        assert tasks == []
        assert _keys(issues) == ["invalid_date"]

    def test_duration_overrides_end(self):
        tasks, _ = prepare_tasks([
            {"id": "a", "start": "2024-01-01", "end": "2024-03-01", "duration": "3d 12h"},
        ])
        assert tasks[0].end == datetime(2024, 1, 4, 12)

    def test_invalid_duration_rejected(self):
        tasks, issues = prepare_tasks([{"id": "a", "start": "2024-01-01", "duration": "soon"}])
        assert tasks == []
        assert _keys(issues) == ["invalid_duration"]

    def test_missing_end_is_placeholder(self):
        tasks, issues = prepare_tasks([{"id": "a", "start": "2024-01-01"}])
        assert _keys(issues) == ["missing_end"]
        assert issues[0].level == "warning"
        assert tasks[0].invalid
        assert tasks[0].end == datetime(2024, 1, 1) + MISSING_END_PLACEHOLDER

    def test_exactly_ten_years_warns(self):
        tasks, issues = prepare_tasks([
            {"id": "a", "name": "Long", "start": "2020-01-01", "end": "2030-01-01"},
        ])
        assert len(tasks) == 1
        assert _keys(issues) == ["duration_ten_years"]

    def test_above_ten_years_warns(self):
        tasks, issues = prepare_tasks([
            {"id": "a", "name": "Longer", "start": "2020-01-01", "end": "2030-01-02"},
        ])
        assert len(tasks) == 1
        assert _keys(issues) == ["duration_above_ten_years"]
        assert issues[0].message == 'the duration of task "Longer" is too long (above ten years)'

    def test_progress_clamped(self):
        tasks, _ = prepare_tasks([
            {"id": "a", "start": "2024-01-01", "end": "2024-01-02", "progress": 150},
            {"id": "b", "start": "2024-01-01", "end": "2024-01-02", "progress": -5},
        ])
        assert [t.progress for t in tasks] == [100, 0]

    def test_invalid_progress_warns(self):
        tasks, issues = prepare_tasks([
            {"id": "a", "start": "2024-01-01", "end": "2024-01-02", "progress": "lots"},
        ])
        assert tasks[0].progress == 0
        assert _keys(issues) == ["invalid_progress"]

    def test_generated_ids(self):
        tasks, _ = prepare_tasks([
            {"name": "First", "start": "2024-01-01", "end": "2024-01-02"},
            {"name": "Second", "start": "2024-01-01", "end": "2024-01-02"},
        ])
        assert [t.id for t in tasks] == ["task-1", "task-2"]

    def test_duplicate_id_rejected(self):
        tasks, issues = prepare_tasks([
            {"id": "a", "start": "2024-01-01", "end": "2024-01-02"},
            {"id": "a", "start": "2024-02-01", "end": "2024-02-02"},
        ])
        assert len(tasks) == 1
        assert tasks[0].start == datetime(2024, 1, 1)
        assert _keys(issues) == ["duplicate_id"]

    def test_indices_skip_rejected_records(self):
        tasks, _ = prepare_tasks([
            {"id": "a", "start": "2024-01-01", "end": "2024-01-02"},
            {"id": "bad", "end": "2024-01-02"},
            {"id": "c", "start": "2024-01-01", "end": "2024-01-02"},
        ])
        assert [(t.id, t.index) for t in tasks] == [("a", 0), ("c", 1)]

    def test_unknown_dependency_dropped(self):
        tasks, issues = prepare_tasks([
            {"id": "a", "start": "2024-01-01", "end": "2024-01-02", "dependencies": "ghost"},
        ])
        assert tasks[0].dependencies == ()
        assert _keys(issues) == ["unknown_dependency"]

    def test_cycle_warns_but_loads(self):
        tasks, issues = prepare_tasks([
            {"id": "a", "start": "2024-01-01", "end": "2024-01-02", "dependencies": ["b"]},
            {"id": "b", "start": "2024-01-01", "end": "2024-01-02", "dependencies": ["a"]},
        ])
        assert len(tasks) == 2
        assert _keys(issues) == ["dependency_cycle"]
        assert issues[0].level == "warning"

    def test_extra_fields_kept(self):
        tasks, _ = prepare_tasks([
            {"id": "a", "start": "2024-01-01", "end": "2024-01-02", "owner": "kim", "_internal": 1},
        ])
        assert tasks[0].extra == {"owner": "kim"}

    def test_tasks_round_trip(self):
        first, _ = prepare_tasks([
            {"id": "a", "start": "2024-01-01", "end": "2024-01-04", "progress": 20, "owner": "kim"},
            {"id": "b", "start": "2024-01-04", "duration": "2d", "dependencies": "a"},
        ])
        second, issues = prepare_tasks(first)
        assert issues == []
        assert [(t.id, t.start, t.end, t.progress, t.dependencies, t.extra) for t in second] == [
            (t.id, t.start, t.end, t.progress, t.dependencies, t.extra) for t in first
        ]


class TestParseDependencies:
    def test_comma_string(self):
        assert parse_dependencies("a, b,,c") == ("a", "b", "c")

    def test_list_deduplicated(self):
        assert parse_dependencies(["a", "b", "a"]) == ("a", "b")

    def test_empty(self):
        assert parse_dependencies(None) == ()
        assert parse_dependencies("") == ()
