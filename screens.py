"""Modal screens for the flextime application."""

from __future__ import annotations

from textual import events
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Label
from textual.screen import ModalScreen

from editor import EditOutcome, Key, SettingsEditor
from widgets import SettingsView

KEY_MAP = {
    "backspace": Key.CLEAR,
    "delete": Key.CLEAR,
    "left": Key.LEFT,
    "right": Key.RIGHT,
    "up": Key.UP,
    "down": Key.DOWN,
    "enter": Key.COMMIT,
    "escape": Key.CANCEL,
    "home": Key.TODAY,
}


def translate_key(key: str) -> Key | str | None:
    """Map a terminal key name to an editor keystroke, None when unused."""
    if len(key) == 1 and key.isdigit():
        return key
    return KEY_MAP.get(key)


class SettingsScreen(ModalScreen[SettingsEditor | None]):
    """Modal screen editing the weekly schedule, allowances and goal."""

    CSS = """
    SettingsScreen {
        align: center middle;
    }

    #settings-dialog {
        width: 50;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #settings-help {
        color: $text-muted;
        margin-top: 1;
    }
    """

    def __init__(self, settings_editor: SettingsEditor):
        super().__init__()
        self.settings_editor = settings_editor

    def compose(self) -> ComposeResult:
        with Vertical(id="settings-dialog"):
            yield SettingsView(id="settings-view")
            yield Label("Digits edit, arrows move, Enter saves, Esc cancels", id="settings-help")

    def on_mount(self) -> None:
        self.query_one("#settings-view", SettingsView).update_display(self.settings_editor)

    def on_key(self, event: events.Key) -> None:
        keystroke = translate_key(event.key)
        if keystroke is None or keystroke == Key.TODAY:
            return
        event.prevent_default()
        event.stop()

        outcome = self.settings_editor.handle(keystroke)
        if outcome == EditOutcome.COMMIT:
            self.dismiss(self.settings_editor)
        elif outcome == EditOutcome.CANCEL:
            self.dismiss(None)
        else:
            self.query_one("#settings-view", SettingsView).update_display(self.settings_editor)
