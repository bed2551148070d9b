"""Reading and writing task files (YAML, JSON or TOML)."""

from __future__ import annotations

import json
import os
import tempfile
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable

import tomlkit
import yaml
from tomlkit.exceptions import TOMLKitError

from tui_gantt.errors import TaskFileError
from tui_gantt.models import Task

YAML_SUFFIXES = (".yaml", ".yml")
SUPPORTED_SUFFIXES = YAML_SUFFIXES + (".json", ".toml")


def _format_of(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in YAML_SUFFIXES:
        return "yaml"
    if suffix in (".json", ".toml"):
        return suffix[1:]
    raise TaskFileError(f"Unsupported task file type: {path.name} (use .yaml, .json or .toml)")


def _extract(data: Any, path: Path) -> list[dict[str, Any]]:
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("tasks", [])
    if not isinstance(data, list):
        raise TaskFileError(f"{path}: expected a list of tasks or a 'tasks' key")
    records: list[dict[str, Any]] = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise TaskFileError(f"{path}: task #{i + 1} is not a mapping")
        records.append(dict(item))
    return records


def load_tasks_file(path: Path) -> list[dict[str, Any]]:
    """Read raw task records from *path*. Validation happens in the engine."""
    path = Path(path)
    fmt = _format_of(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise TaskFileError(f"Cannot read {path}: {e}") from e

    try:
        if fmt == "yaml":
            data = yaml.safe_load(text)
        elif fmt == "json":
            data = json.loads(text) if text.strip() else None
        else:
            data = tomlkit.parse(text).unwrap()
    except (yaml.YAMLError, json.JSONDecodeError, TOMLKitError) as e:
        raise TaskFileError(f"{path}: {e}") from e
    return _extract(data, path)


def _date_text(value: datetime) -> str:
    if value.hour == value.minute == value.second == value.microsecond == 0:
        return value.date().isoformat()
    return value.isoformat(timespec="seconds" if not value.microsecond else "microseconds")


def task_to_record(task: Task) -> dict[str, Any]:
    """Serialisable mapping for *task*; ``end`` stays exclusive."""
    record: dict[str, Any] = {
        "id": task.id,
        "name": task.name,
        "start": _date_text(task.start),
        "end": _date_text(task.end),
        "progress": int(task.progress) if float(task.progress).is_integer() else task.progress,
    }
    if task.dependencies:
        record["dependencies"] = list(task.dependencies)
    if task.custom_class:
        record["custom_class"] = task.custom_class
    for key, value in task.extra.items():
        if isinstance(value, (date, datetime)):
            value = value.isoformat()
        record.setdefault(key, value)
    return record


def dump_tasks(tasks: Iterable[Task], fmt: str) -> str:
    records = [task_to_record(t) for t in tasks]
    if fmt == "yaml":
        return yaml.safe_dump({"tasks": records}, sort_keys=False, allow_unicode=True)
    if fmt == "json":
        return json.dumps({"tasks": records}, indent=2, ensure_ascii=False) + "\n"
    doc = tomlkit.document()
    aot = tomlkit.aot()
    for record in records:
        table = tomlkit.table()
        for key, value in record.items():
            table.add(key, value)
        aot.append(table)
    doc.add("tasks", aot)
    return tomlkit.dumps(doc)


def write_tasks_file(path: Path, tasks: Iterable[Task]) -> None:
    """Write *tasks* to *path* in the format implied by its suffix.

    The file is replaced atomically.
    """
    path = Path(path)
    content = dump_tasks(tasks, _format_of(path))
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix=".tui-gantt-")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
