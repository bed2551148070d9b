"""YAML-based colour theme for TUI Gantt.

Loads colours from default_theme.yaml and optionally merges
project-level overrides from {project_dir}/.tui-gantt/theme.yaml.
"""

from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import NamedTuple

from tui_gantt.config import CONFIG_DIR, _deep_merge, _load_yaml

THEME_FILE = "theme.yaml"


class ColorPair(NamedTuple):
    """A pair of colors for dark and light themes."""

    dark: str
    light: str

    def resolve(self, is_dark: bool) -> str:
        return self.dark if is_dark else self.light


# ── Module-level variables (populated by _apply) ──────────────────

GANTT_HEADER: ColorPair
GANTT_GRID_LINE: ColorPair
GANTT_THICK_LINE: ColorPair
GANTT_BAR: ColorPair
GANTT_BAR_PROGRESS: ColorPair
GANTT_BAR_EXPECTED: ColorPair
GANTT_BAR_INVALID: ColorPair
GANTT_BAR_SELECTED: ColorPair
GANTT_LABEL: ColorPair
GANTT_DEPENDENCY_ARROW: ColorPair
GANTT_IGNORED_BG: ColorPair
GANTT_HIGHLIGHT_BG: ColorPair
GANTT_BASE_BG: ColorPair
GANTT_TODAY_MARKER: ColorPair

STATUSBAR_WARNING: ColorPair
WARNING_ICON: ColorPair


def _pair(d: dict, fallback: str = "white") -> ColorPair:
    """Convert a {dark: ..., light: ...} dict to a ColorPair."""
    return ColorPair(str(d.get("dark", fallback)), str(d.get("light", fallback)))


def _apply(data: dict) -> None:
    """Map parsed YAML data onto module-level constants."""
    mod = sys.modules[__name__]

    gantt = data.get("gantt", {})
    mod.GANTT_HEADER = _pair(gantt.get("header", {}))
    mod.GANTT_GRID_LINE = _pair(gantt.get("grid_line", {}), "grey37")
    mod.GANTT_THICK_LINE = _pair(gantt.get("thick_line", {}), "grey50")
    mod.GANTT_BAR = _pair(gantt.get("bar", {}), "blue")
    mod.GANTT_BAR_PROGRESS = _pair(gantt.get("bar_progress", {}), "green")
    mod.GANTT_BAR_EXPECTED = _pair(gantt.get("bar_expected", {}), "grey62")
    mod.GANTT_BAR_INVALID = _pair(gantt.get("bar_invalid", {}), "red")
    mod.GANTT_BAR_SELECTED = _pair(gantt.get("bar_selected", {}), "yellow")
    mod.GANTT_LABEL = _pair(gantt.get("label", {}))
    mod.GANTT_DEPENDENCY_ARROW = _pair(gantt.get("dependency_arrow", {}), "grey50")
    mod.GANTT_IGNORED_BG = _pair(gantt.get("ignored_bg", {"dark": "#2a1a1a", "light": "#e8d8d8"}))
    mod.GANTT_HIGHLIGHT_BG = _pair(gantt.get("highlight_bg", {"dark": "#262626", "light": "#f7f7f7"}))
    mod.GANTT_BASE_BG = _pair(gantt.get("base_bg", {"dark": "#1a1a1a", "light": "#ffffff"}))
    mod.GANTT_TODAY_MARKER = _pair(gantt.get("today_marker", {}), "red")

    ui = data.get("ui", {})
    mod.STATUSBAR_WARNING = _pair(ui.get("statusbar_warning", {}), "yellow")
    mod.WARNING_ICON = _pair(ui.get("warning_icon", {}), "yellow")


# ── Public API ────────────────────────────────────────────────────

def init_theme(project_dir: Path) -> Path:
    """Copy default_theme.yaml → {project_dir}/.tui-gantt/theme.yaml.

    Raises FileExistsError if the destination already exists.
    """
    dest = project_dir / CONFIG_DIR / THEME_FILE
    if dest.exists():
        raise FileExistsError(str(dest))
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(Path(__file__).parent / "default_theme.yaml", dest)
    return dest


def load_theme(project_dir: Path | None = None) -> None:
    """Load the default theme and merge project overrides, if any."""
    data = _load_yaml(Path(__file__).parent / "default_theme.yaml")

    if project_dir is not None:
        override_path = project_dir / CONFIG_DIR / THEME_FILE
        if override_path.is_file():
            override = _load_yaml(override_path)
            if override:
                data = _deep_merge(data, override)

    _apply(data)


# Apply default theme on module import
load_theme()
