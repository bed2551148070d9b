"""Load issues modal screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Static
from rich.text import Text

from tui_gantt import theme
from tui_gantt.models import LoadIssue


class WarningScreen(ModalScreen[None]):
    """Modal screen listing the issues found while loading tasks."""

    BINDINGS = [("escape", "dismiss", "Close")]

    DEFAULT_CSS = """
    WarningScreen {
        align: center middle;
    }
    #warning-container {
        width: 80;
        max-height: 80%;
        background: $surface;
        border: thick $warning;
        padding: 1 2;
    }
    #warning-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    """

    def __init__(self, issues: list[LoadIssue]) -> None:
        super().__init__()
        self.issues = issues

    def compose(self) -> ComposeResult:
        rejected = sum(1 for issue in self.issues if issue.level == "error")
        with VerticalScroll(id="warning-container"):
            yield Static(
                f"[bold]Task Issues ({len(self.issues)}, {rejected} rejected)[/bold]",
                id="warning-title",
            )
            if not self.issues:
                yield Static("No issues.")
            else:
                icon = theme.WARNING_ICON.dark
                for issue in self.issues:
                    marker = "✖" if issue.level == "error" else "⚠"
                    yield Static(Text.assemble((marker, icon), " ", str(issue)), classes="warning-item")
