"""Tests for reading and writing task files."""

import json
from datetime import datetime

import pytest
import yaml

from tui_gantt.engine import GanttEngine
from tui_gantt.errors import TaskFileError
from tui_gantt.loader import dump_tasks, load_tasks_file, task_to_record, write_tasks_file

RECORDS = [
    {"id": "a", "name": "Design", "start": "2024-01-01", "end": "2024-01-05", "progress": 40},
    {"id": "b", "name": "Build", "start": "2024-01-05 09:30", "duration": "3d",
     "dependencies": ["a"], "owner": "kim"},
]


def _tasks():
    return GanttEngine(RECORDS, log_sink=lambda issue: None).tasks


class TestLoad:
    def test_yaml_list(self, tmp_path):
        path = tmp_path / "tasks.yaml"
        path.write_text(yaml.safe_dump(RECORDS), encoding="utf-8")
        assert load_tasks_file(path) == RECORDS

    def test_yaml_tasks_key(self, tmp_path):
        path = tmp_path / "tasks.yml"
        path.write_text(yaml.safe_dump({"tasks": RECORDS}), encoding="utf-8")
        assert [r["id"] for r in load_tasks_file(path)] == ["a", "b"]

    def test_json(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"tasks": RECORDS}), encoding="utf-8")
        assert load_tasks_file(path) == RECORDS

    def test_toml(self, tmp_path):
        path = tmp_path / "tasks.toml"
        path.write_text(
            '[[tasks]]\nid = "a"\nstart = "2024-01-01"\nend = "2024-01-05"\n',
            encoding="utf-8",
        )
        assert load_tasks_file(path) == [{"id": "a", "start": "2024-01-01", "end": "2024-01-05"}]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "tasks.yaml"
        path.write_text("", encoding="utf-8")
        assert load_tasks_file(path) == []

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "tasks.csv"
        path.write_text("id,start\n", encoding="utf-8")
        with pytest.raises(TaskFileError):
            load_tasks_file(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "tasks.yaml"
        path.write_text("tasks: [unclosed", encoding="utf-8")
        with pytest.raises(TaskFileError):
            load_tasks_file(path)

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "tasks.yaml"
        path.write_text("tasks: 42\n", encoding="utf-8")
        with pytest.raises(TaskFileError):
            load_tasks_file(path)

    def test_non_mapping_task(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text('["not a task"]', encoding="utf-8")
        with pytest.raises(TaskFileError, match="task #1"):
            load_tasks_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(TaskFileError):
            load_tasks_file(tmp_path / "nope.yaml")


class TestRecords:
    def test_date_only_kept_short(self):
        record = task_to_record(_tasks()[0])
        assert record == {
            "id": "a", "name": "Design", "start": "2024-01-01", "end": "2024-01-05", "progress": 40,
        }

    def test_time_and_extras(self):
        record = task_to_record(_tasks()[1])
        assert record["start"] == "2024-01-05T09:30:00"
        assert record["end"] == "2024-01-08T09:30:00"
        assert record["dependencies"] == ["a"]
        assert record["owner"] == "kim"


class TestWrite:
    @pytest.mark.parametrize("suffix", [".yaml", ".json", ".toml"])
    def test_write_then_load(self, tmp_path, suffix):
        path = tmp_path / f"out{suffix}"
        write_tasks_file(path, _tasks())
        reloaded = GanttEngine(load_tasks_file(path), log_sink=lambda issue: None).tasks
        assert [(t.id, t.start, t.end, t.progress) for t in reloaded] == [
            ("a", datetime(2024, 1, 1), datetime(2024, 1, 5), 40),
            ("b", datetime(2024, 1, 5, 9, 30), datetime(2024, 1, 8, 9, 30), 0),
        ]
        assert not list(tmp_path.glob("*.tmp"))

    def test_yaml_layout(self):
        data = yaml.safe_load(dump_tasks(_tasks(), "yaml"))
        assert list(data) == ["tasks"]
        assert data["tasks"][0]["id"] == "a"

    def test_write_unsupported(self, tmp_path):
        with pytest.raises(TaskFileError):
            write_tasks_file(tmp_path / "out.txt", _tasks())
