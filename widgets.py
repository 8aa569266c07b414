"""Custom widgets for the flextime application."""

from __future__ import annotations

from datetime import date

from textual.widgets import Static
from rich.text import Text

from editor import ALLOWANCE_ROW, GOAL_ROW, DayEditor, Field, SettingsEditor
from models import DayStatus, FlexWeek
from navigator import StatusSummary
from utils import WEEKDAY_NAMES, format_minutes

# (start, end) columns of each editable field in FlexDay.display()
FIELD_SPANS = {
    Field.STATUS: (0, 1),
    Field.START_HOUR: (13, 15),
    Field.START_MINUTE: (16, 18),
    Field.END_HOUR: (22, 24),
    Field.END_MINUTE: (25, 27),
    Field.PAUSE_HOUR: (30, 32),
    Field.PAUSE_MINUTE: (33, 35),
}


class WeekView(Static):
    """Shows the selected week, one line per day, and its total."""

    def update_display(
        self,
        week: FlexWeek,
        title: str,
        selected: date,
        holiday_duration: int,
        goal_missed: bool,
        day_editor: DayEditor | None = None,
    ):
        text = Text()
        text.append(f"{title}\n\n", style="bold")

        for day in week:
            is_selected = day.date == selected
            if is_selected and day_editor is not None:
                day = day_editor.day
            line = Text(day.display(holiday_duration))

            if day.total_minutes(holiday_duration) < 0:
                line.stylize("red")
            if is_selected:
                line.stylize("bold")
            elif day.status != DayStatus.WORKED:
                line.stylize("dim")
            if is_selected and day_editor is not None:
                start, end = FIELD_SPANS[day_editor.field]
                line.stylize("reverse", start, end)

            text.append_text(line)
            text.append("\n")

        if day_editor is not None:
            total = sum(
                (day_editor.day if d.date == selected else d).total_minutes(holiday_duration)
                for d in week
            )
            total_line = f"Total: {format_minutes(total)}"
        else:
            total_line = week.total_str(holiday_duration)
        text.append(f"\n{total_line}", style="red" if goal_missed else "")

        self.update(text)


class StatusPanel(Static):
    """Shows month target, total and balance, then the days-off ledger."""

    def update_display(self, summary: StatusSummary):
        text = Text()
        text.append(f"{summary.month_name} statistics\n\n", style="underline")
        text.append(f"Target:    {format_minutes(summary.target):>8}\n")
        text.append(f"Total:     {format_minutes(summary.total):>8}\n")

        sign = "+" if summary.balance > 0 else ""
        text.append(
            f"Balance:   {sign + format_minutes(summary.balance):>8}\n",
            style="red" if summary.balance < 0 else "green",
        )

        text.append(f"\nDays off ({summary.year})\n\n", style="underline")
        text.append(f"Holidays left: {summary.holidays_left:g}\n")
        text.append(f"Sick days:     {summary.sick_days_taken} taken, {summary.sick_days_left} left")

        self.update(text)


class SettingsView(Static):
    """Shows the settings grid with the field being edited reversed."""

    def update_display(self, settings_editor: SettingsEditor):
        text = Text()
        text.append("Settings\n\n", style="bold")
        text.append("      Start   End     Pause\n", style="dim")

        for row in range(ALLOWANCE_ROW):
            text.append(f"{WEEKDAY_NAMES[row]}   ")
            for column in range(6):
                self._append_cell(text, settings_editor, row, column)
                text.append(":" if column % 2 == 0 else "   ")
            text.append("\n")

        text.append("\n")
        for column, label in enumerate(settings_editor.columns(ALLOWANCE_ROW)):
            text.append(f"{label}: ")
            self._append_cell(text, settings_editor, ALLOWANCE_ROW, column)
            text.append("\n")

        text.append("\nWeek goal: ")
        self._append_cell(text, settings_editor, GOAL_ROW, 0)
        text.append(":")
        self._append_cell(text, settings_editor, GOAL_ROW, 1)

        self.update(text)

    @staticmethod
    def _append_cell(text: Text, settings_editor: SettingsEditor, row: int, column: int):
        selected = row == settings_editor.row and column == settings_editor.column
        text.append(settings_editor.value_str(row, column), style="reverse" if selected else "")
