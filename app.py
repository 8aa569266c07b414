#!/usr/bin/env python3
"""Flextime TUI application."""

from __future__ import annotations

import logging
import os
from datetime import date

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer

import storage
from editor import DayEditor, EditOutcome, Key, SettingsEditor
from models import DayStatus, ScheduleError, Settings
from navigator import Direction, Navigator
from screens import SettingsScreen, translate_key
from utils import MONTH_NAMES
from widgets import StatusPanel, WeekView


class FlexTimeApp(App):
    """Week view of the flex-time grid with a month status panel."""

    CSS = """
    Screen {
        background: $surface;
    }

    #main {
        height: 1fr;
    }

    #week-view {
        width: 50;
        height: auto;
        padding: 1 2;
        color: $text;
    }

    #status-panel {
        width: 1fr;
        height: auto;
        padding: 1 2;
        color: $text;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("up", "up", "▲", show=False),
        Binding("down", "down", "▼", show=False),
        Binding("left", "left", "◄", show=False),
        Binding("right", "right", "►", show=False),
        Binding("pageup", "prev_month", "Prev month", show=False),
        Binding("pagedown", "next_month", "Next month", show=False),
        Binding("enter", "edit_day", "Edit"),
        Binding("escape", "cancel", "Cancel", show=False),
        Binding("home", "goto_today", "Today"),
        Binding("h", "toggle_holiday", "Holiday"),
        Binding("s", "toggle_sick", "Sick"),
        Binding("b", "punch_in", "In"),
        Binding("e", "punch_out", "Out"),
        Binding("o", "edit_settings", "Settings"),
    ]

    def __init__(self, today: date | None = None):
        super().__init__()
        storage.init_db()
        settings = storage.get_settings()
        self.first_run = settings is None
        self.navigator = Navigator(settings or Settings(), today)
        self.day_editor: DayEditor | None = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="main"):
            yield WeekView(id="week-view")
            yield StatusPanel(id="status-panel")
        yield Footer()

    def on_mount(self):
        self._refresh_display()
        if self.first_run:
            self.action_edit_settings()

    def _week_title(self) -> str:
        nav = self.navigator
        _, week_number = nav.current_week
        month_name = MONTH_NAMES[nav.month.month - 1]
        return f"{month_name} {nav.month.year} - week {week_number}/{len(nav.month.weeks)}"

    def _refresh_display(self):
        nav = self.navigator
        week, _ = nav.current_week
        self.query_one("#week-view", WeekView).update_display(
            week,
            self._week_title(),
            nav.current_date,
            nav.settings.holiday_duration,
            nav.week_goal_missed(week),
            self.day_editor,
        )
        self.query_one("#status-panel", StatusPanel).update_display(nav.status_summary())

    def _edit_key(self, keystroke: Key | str):
        """Route a keystroke to the open edit session."""
        outcome = self.navigator.handle_edit_key(self.day_editor, keystroke)
        if outcome != EditOutcome.EDITING:
            self.day_editor = None
        self._refresh_display()

    def on_key(self, event: events.Key) -> None:
        """Digits and clear go to the edit session; bound keys arrive as actions."""
        if self.day_editor is None:
            return
        keystroke = translate_key(event.key)
        if keystroke is None or not (keystroke == Key.CLEAR or isinstance(keystroke, str)):
            return
        self._edit_key(keystroke)
        event.prevent_default()
        event.stop()

    def action_up(self):
        if self.day_editor:
            self._edit_key(Key.UP)
            return
        self.navigator.select_prev_day()
        self._refresh_display()

    def action_down(self):
        if self.day_editor:
            self._edit_key(Key.DOWN)
            return
        self.navigator.select_next_day()
        self._refresh_display()

    def action_left(self):
        if self.day_editor:
            self._edit_key(Key.LEFT)
            return
        self.navigator.select_prev_week()
        self._refresh_display()

    def action_right(self):
        if self.day_editor:
            self._edit_key(Key.RIGHT)
            return
        self.navigator.select_next_week()
        self._refresh_display()

    def action_prev_month(self):
        if self.day_editor:
            return
        self.navigator.change_month(Direction.PREVIOUS)
        self._refresh_display()

    def action_next_month(self):
        if self.day_editor:
            return
        self.navigator.change_month(Direction.NEXT)
        self._refresh_display()

    def action_edit_day(self):
        if self.day_editor:
            self._edit_key(Key.COMMIT)
            return
        self.day_editor = self.navigator.start_edit()
        self._refresh_display()

    def action_cancel(self):
        if self.day_editor:
            self._edit_key(Key.CANCEL)

    def action_goto_today(self):
        if self.day_editor:
            self._edit_key(Key.TODAY)
            return
        self.navigator.jump_to_today(date.today())
        self._refresh_display()

    def _toggle(self, status: DayStatus):
        if self.day_editor:
            return
        self.navigator.toggle_status(status)
        self._refresh_display()

    def action_toggle_holiday(self):
        self._toggle(DayStatus.HOLIDAY)

    def action_toggle_sick(self):
        self._toggle(DayStatus.SICK)

    def action_punch_in(self):
        if self.day_editor:
            return
        if self.navigator.punch_in():
            self.day_editor = self.navigator.start_edit()
        self._refresh_display()

    def action_punch_out(self):
        if self.day_editor:
            return
        if self.navigator.punch_out():
            self.day_editor = self.navigator.start_edit()
        self._refresh_display()

    def action_edit_settings(self):
        if self.day_editor:
            return
        self.push_screen(SettingsScreen(self.navigator.start_settings_edit()), self._on_settings_edited)

    def _on_settings_edited(self, result: SettingsEditor | None) -> None:
        if result is not None:
            self.navigator.apply_settings(result)
            self.first_run = False
        self._refresh_display()


def _setup_logging():
    log_path = storage.DB_PATH.parent / "flextime.log"
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=log_path,
        level=os.environ.get("FLEXTIME_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main():
    import sys
    if len(sys.argv) > 1 and sys.argv[1] == "--db-info":
        from datetime import datetime
        db_path = storage.DB_PATH
        print(f"Database: {db_path}")
        if db_path.exists():
            mtime = datetime.fromtimestamp(db_path.stat().st_mtime)
            size = db_path.stat().st_size
            print(f"Modified: {mtime.strftime('%Y-%m-%d %H:%M:%S')}")
            print(f"Size: {size:,} bytes")
        else:
            print("Status: Does not exist (will be created on first run)")
        return

    _setup_logging()
    try:
        app = FlexTimeApp()
    except (storage.CorruptRecordError, ScheduleError) as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)
    app.run()


if __name__ == "__main__":
    main()
