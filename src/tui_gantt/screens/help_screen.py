"""Help modal screen showing keybindings and mouse gestures."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import OptionList, Static
from textual.widgets.option_list import Option


HELP_ITEMS: list[tuple[str, str, str]] = [
    # (key_display, description, action_name_or_empty)
    ("[ / ]", "Previous / next view mode", ""),
    ("h / l", "Scroll left / right", ""),
    ("t", "Scroll to the first task", "scroll_home"),
    ("Ctrl+S", "Save task file", "save"),
    ("!", "Task issues", "warnings"),
    ("?", "This help", ""),
    ("q", "Quit", "quit_app"),
    # -- Mouse --
    ("Drag bar", "Move task (dependents follow)", ""),
    ("Drag bar edge", "Resize start / end", ""),
    ("Shift+drag", "Change progress", ""),
    ("Esc", "Cancel drag / close modal", ""),
]


class HelpScreen(ModalScreen[str]):
    """Modal screen showing keybindings as a selectable list."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("question_mark", "close", "Close"),
    ]

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }
    #help-container {
        width: 70;
        max-height: 80%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }
    #help-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    #help-list {
        height: auto;
        max-height: 100%;
    }
    """

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="help-container"):
            yield Static("[bold]Keybindings[/bold]  (Enter to execute)", id="help-title")
            ol = OptionList(id="help-list")
            for key_display, desc, action in HELP_ITEMS:
                label = f"  {key_display:<16} {desc}"
                ol.add_option(Option(label, id=action if action else None))
            yield ol

    def on_mount(self) -> None:
        self.query_one("#help-list", OptionList).focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(event.option.id or "")

    def action_close(self) -> None:
        self.dismiss("")
