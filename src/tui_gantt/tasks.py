"""Validation of raw task records into the working set."""

from __future__ import annotations

from dataclasses import fields
from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping

from dateutil.relativedelta import relativedelta

from tui_gantt import dates
from tui_gantt.dates import DAY, Duration
from tui_gantt.graph import DependencyGraph
from tui_gantt.models import LoadIssue, Task

KNOWN_KEYS = {
    "id", "name", "start", "end", "duration", "progress",
    "dependencies", "custom_class",
}

MISSING_END_PLACEHOLDER = timedelta(days=2)


def _as_mapping(item: Any) -> Mapping[str, Any]:
    if isinstance(item, Task):
        data = {f.name: getattr(item, f.name) for f in fields(item)}
        data.update(data.pop("extra") or {})
        data.pop("duration")
        return data
    if isinstance(item, Mapping):
        return item
    raise TypeError(f"Task must be a mapping or Task, got {type(item).__name__}")


def parse_dependencies(value: Any) -> tuple[str, ...]:
    """Accept ``"a, b"`` or a list of ids."""
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        parts = value.split(",")
    else:
        parts = list(value)
    result: list[str] = []
    for part in parts:
        dep = str(part).strip()
        if dep and dep not in result:
            result.append(dep)
    return tuple(result)


def range_issues(task_id: str, name: str, start: datetime, end: datetime) -> list[LoadIssue]:
    """Issues for a start/end pair: ordering error or ten-year warnings."""
    if end <= start:
        return [
            LoadIssue(
                task_id,
                "end_before_start",
                f"start of task can't be after end of task: in task \"{name}\"",
            )
        ]
    ten_years = start + relativedelta(years=10)
    if end == ten_years:
        return [
            LoadIssue(
                task_id,
                "duration_ten_years",
                f"the duration of task \"{name}\" is ten years",
                "warning",
            )
        ]
    if end > ten_years:
        return [
            LoadIssue(
                task_id,
                "duration_above_ten_years",
                f"the duration of task \"{name}\" is too long (above ten years)",
                "warning",
            )
        ]
    return []


def _build_task(
    data: Mapping[str, Any], position: int, issues: list[LoadIssue]
) -> Task | None:
    task_id = str(data.get("id") or "").strip() or f"task-{position + 1}"
    name = str(data.get("name") or task_id)

    raw_start = data.get("start")
    if raw_start is None or raw_start == "":
        issues.append(
            LoadIssue(task_id, "missing_start", f"task \"{task_id}\" doesn't have a start date")
        )
        return None
    try:
        start = dates.parse(raw_start)
    except (ValueError, OverflowError):
        issues.append(
            LoadIssue(task_id, "invalid_date", f"task \"{name}\" has an invalid start date: {raw_start!r}")
        )
        return None

    invalid = False
    raw_end = data.get("end")
    raw_duration = data.get("duration")
    if raw_duration not in (None, ""):
        try:
            end = start
            for part in dates.parse_durations(str(raw_duration)):
                end = dates.add(end, part.count, part.unit)
        except ValueError:
            issues.append(
                LoadIssue(task_id, "invalid_duration", f"task \"{name}\" has an invalid duration: {raw_duration!r}")
            )
            return None
    elif raw_end not in (None, ""):
        try:
            end = dates.parse(raw_end)
        except (ValueError, OverflowError):
            issues.append(
                LoadIssue(task_id, "invalid_date", f"task \"{name}\" has an invalid end date: {raw_end!r}")
            )
            return None
    else:
        issues.append(
            LoadIssue(
                task_id, "missing_end",
                f"task \"{name}\" doesn't have an end date",
                "warning",
            )
        )
        end = start + MISSING_END_PLACEHOLDER
        invalid = True

    found = range_issues(task_id, name, start, end)
    issues.extend(found)
    if any(issue.level == "error" for issue in found):
        return None

    raw_progress = data.get("progress")
    try:
        progress = float(raw_progress) if raw_progress not in (None, "") else 0.0
    except (TypeError, ValueError):
        issues.append(
            LoadIssue(task_id, "invalid_progress", f"task \"{name}\" has an invalid progress: {raw_progress!r}", "warning")
        )
        progress = 0.0

    extra = {k: v for k, v in data.items() if k not in KNOWN_KEYS and not k.startswith("_")}
    for key in ("index", "invalid", "actual_duration", "ignored_duration"):
        extra.pop(key, None)
    return Task(
        id=task_id,
        name=name,
        start=start,
        end=end,
        progress=progress,
        dependencies=parse_dependencies(data.get("dependencies")),
        invalid=invalid or bool(data.get("invalid", False)),
        duration=Duration(dates.diff(end, start, DAY), DAY),
        custom_class=str(data.get("custom_class") or ""),
        extra=extra,
    )


def prepare_tasks(raw_tasks: Iterable[Any]) -> tuple[list[Task], list[LoadIssue]]:
    """Validate *raw_tasks* into Task objects.

    Rejected records are reported as ``error`` issues and skipped; the rest
    load. Indices are assigned over the accepted tasks in input order.
    """
    issues: list[LoadIssue] = []
    accepted: list[Task] = []
    seen: set[str] = set()

    for position, item in enumerate(raw_tasks):
        task = _build_task(_as_mapping(item), position, issues)
        if task is None:
            continue
        if task.id in seen:
            issues.append(
                LoadIssue(task.id, "duplicate_id", f"task id \"{task.id}\" is used more than once")
            )
            continue
        seen.add(task.id)
        task.index = len(accepted)
        accepted.append(task)

    for task in accepted:
        kept = []
        for dep in task.dependencies:
            if dep in seen:
                kept.append(dep)
            else:
                issues.append(
                    LoadIssue(
                        task.id, "unknown_dependency",
                        f"task \"{task.name}\" depends on unknown task \"{dep}\"",
                        "warning",
                    )
                )
        task.dependencies = tuple(kept)

    cycle = DependencyGraph(accepted).find_cycle()
    if cycle:
        issues.append(
            LoadIssue(
                cycle[0], "dependency_cycle",
                "dependency cycle: " + " -> ".join(cycle),
                "warning",
            )
        )
    return accepted, issues
