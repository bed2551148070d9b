"""Project configuration: chart options in config.toml, calendar settings in settings.yaml."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import date
from pathlib import Path
from typing import Any

import tomlkit
import yaml
from tomlkit.exceptions import TOMLKitError

from tui_gantt import dates
from tui_gantt.errors import ConfigurationError
from tui_gantt.models import GanttOptions, ViewMode

CONFIG_DIR = ".tui-gantt"
CONFIG_FILE = "config.toml"
SETTINGS_FILE = "settings.yaml"
SCROLL_KEYWORDS = ("today", "start", "end")

# GanttOptions fields stored under [chart]
CHART_KEYS = (
    "view_mode",
    "column_width",
    "bar_height",
    "bar_corner_radius",
    "padding",
    "arrow_curve",
    "upper_header_height",
    "lower_header_height",
    "snap_at",
    "infinite_padding",
    "extend_by_units",
    "ignore",
    "language",
    "scroll_to",
    "show_expected_progress",
    "move_dependencies",
    "readonly",
    "readonly_dates",
    "readonly_progress",
)

VIEW_MODE_KEYS = ("name", "step", "padding", "column_width", "snap_at", "date_format", "lower_text", "upper_text")


@dataclass
class ProjectConfig:
    name: str = ""
    tasks_file: str = "tasks.yaml"
    options: GanttOptions = field(default_factory=GanttOptions)


def _get_config_path(project_dir: Path) -> Path:
    return project_dir / CONFIG_DIR / CONFIG_FILE


def _plain(value: Any) -> Any:
    """Unwrap tomlkit containers into plain Python values."""
    if hasattr(value, "unwrap"):
        return value.unwrap()
    return value


def _coerce(name: str, value: Any) -> Any:
    default = {f.name: f for f in fields(GanttOptions)}[name].default
    value = _plain(value)
    if name == "ignore":
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value]
    if name in ("snap_at", "column_width") and value in ("", None):
        return None
    if isinstance(default, bool):
        return bool(value)
    if isinstance(default, (int, float)) and not isinstance(default, bool):
        return type(default)(value)
    if isinstance(default, str):
        return str(value)
    return value


def _parse_view_mode(data: dict, existing: ViewMode | None) -> ViewMode:
    values = {k: _plain(data[k]) for k in VIEW_MODE_KEYS if k in data}
    if "padding" in values and isinstance(values["padding"], list):
        values["padding"] = tuple(str(p) for p in values["padding"])
    if existing is not None:
        values.pop("name", None)
        return replace(existing, **values)
    if not values.get("name") or not values.get("step"):
        raise ConfigurationError("[[view_modes]] entries need a name and a step")
    return ViewMode(**values)


def load_config(project_dir: Path) -> ProjectConfig:
    """Load project configuration from .tui-gantt/config.toml.

    A missing file yields the defaults; a malformed one raises
    ConfigurationError.
    """
    config_path = _get_config_path(project_dir)
    config = ProjectConfig()

    if not config_path.exists():
        return config

    try:
        doc = tomlkit.parse(config_path.read_text(encoding="utf-8"))
    except (OSError, TOMLKitError) as e:
        raise ConfigurationError(f"{config_path}: {e}") from e

    project_section = _plain(doc.get("project", {}))
    config.name = str(project_section.get("name", ""))
    config.tasks_file = str(project_section.get("tasks_file", config.tasks_file))

    options = config.options
    chart = _plain(doc.get("chart", {}))
    for key in CHART_KEYS:
        if key in chart:
            try:
                setattr(options, key, _coerce(key, chart[key]))
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"[chart] {key}: {e}") from e

    modes_data = _plain(doc.get("view_modes", []))
    if isinstance(modes_data, list):
        modes = list(options.view_modes)
        for mode_data in modes_data:
            if not isinstance(mode_data, dict):
                continue
            name = str(mode_data.get("name", ""))
            existing = options.get_view_mode(name) if name else None
            mode = _parse_view_mode(mode_data, existing)
            if existing is not None:
                modes[modes.index(existing)] = mode
            else:
                modes.append(mode)
        options.view_modes = modes

    if options.get_view_mode(options.view_mode) is None:
        raise ConfigurationError(f"[chart] view_mode: unknown view mode {options.view_mode!r}")
    if options.scroll_to not in SCROLL_KEYWORDS:
        try:
            dates.parse(options.scroll_to)
        except (ValueError, OverflowError) as e:
            raise ConfigurationError(f"[chart] scroll_to: {e}") from e
    return config


def save_config(project_dir: Path, config: ProjectConfig) -> None:
    """Save project configuration to .tui-gantt/config.toml."""
    config_path = _get_config_path(project_dir)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    doc = tomlkit.document()

    project_table = tomlkit.table()
    project_table.add("name", config.name)
    project_table.add("tasks_file", config.tasks_file)
    doc.add("project", project_table)

    chart_table = tomlkit.table()
    for key in CHART_KEYS:
        value = getattr(config.options, key)
        if value is None:
            continue
        chart_table.add(key, value)
    doc.add("chart", chart_table)

    defaults = {m.name: m for m in GanttOptions().view_modes}
    custom = [m for m in config.options.view_modes if defaults.get(m.name) != m]
    if custom:
        modes_array = tomlkit.aot()
        for mode in custom:
            mode_table = tomlkit.table()
            for key in VIEW_MODE_KEYS:
                value = getattr(mode, key)
                if value is None:
                    continue
                mode_table.add(key, list(value) if isinstance(value, tuple) else value)
            modes_array.append(mode_table)
        doc.add("view_modes", modes_array)

    config_path.write_text(tomlkit.dumps(doc), encoding="utf-8")


# ── Settings (YAML) ─────────────────────────────────────────────

def _load_yaml(path: Path) -> dict:
    """Load a YAML file and return a dict (empty dict on error)."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (returns a new dict)."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val  # lists are replaced, not appended
    return result


def load_settings(project_dir: Path | None = None) -> dict[str, Any]:
    """Load default_settings.yaml merged with the project's settings.yaml."""
    data = _load_yaml(Path(__file__).parent / "default_settings.yaml")

    if project_dir is not None:
        override_path = project_dir / CONFIG_DIR / SETTINGS_FILE
        if override_path.is_file():
            override = _load_yaml(override_path)
            if override:
                data = _deep_merge(data, override)

    return data


def get_holidays(settings: dict[str, Any]) -> list[date]:
    """Parse holiday date strings from settings into date objects."""
    raw = settings.get("holidays", [])
    holidays: list[date] = []
    if isinstance(raw, list):
        for item in raw:
            if isinstance(item, date):
                holidays.append(item)
                continue
            try:
                holidays.append(date.fromisoformat(str(item)))
            except ValueError as e:
                raise ConfigurationError(f"settings holidays: invalid date {item!r}") from e
    return holidays


def apply_settings(options: GanttOptions, settings: dict[str, Any]) -> GanttOptions:
    """Fold calendar settings into *options* (in place, also returned).

    Holidays and ``skip_weekends`` become ignored days, ``highlight`` maps
    colours to highlighted days, and ``snap_at`` becomes the fallback snap
    used when neither the chart nor the active view mode sets one.
    """
    ignore = list(options.ignore)
    if settings.get("skip_weekends") and "weekend" not in ignore:
        ignore.append("weekend")
    for day in get_holidays(settings):
        if day.isoformat() not in ignore:
            ignore.append(day.isoformat())
    options.ignore = ignore

    highlight = settings.get("highlight")
    if isinstance(highlight, dict):
        options.holidays = {str(k): v for k, v in highlight.items()}

    if settings.get("snap_at"):
        options.default_snap_at = str(settings["snap_at"])
    return options


def load_options(project_dir: Path) -> ProjectConfig:
    """Project config with settings.yaml applied to its chart options."""
    config = load_config(project_dir)
    apply_settings(config.options, load_settings(project_dir))
    return config
