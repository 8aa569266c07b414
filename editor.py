"""Digit-by-digit field editing for days and settings.

A numeric field takes at most two keystrokes. The first replaces the value
with the typed digit, the second appends to it when the result stays in
range and is dropped otherwise. Clear shifts the value right on the first
keystroke and zeroes it on the second.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import replace
from datetime import time
from enum import Enum

from models import DayStatus, FlexDay, Settings


class Field(Enum):
    STATUS = 0
    START_HOUR = 1
    START_MINUTE = 2
    END_HOUR = 3
    END_MINUTE = 4
    PAUSE_HOUR = 5
    PAUSE_MINUTE = 6


DAY_FIELDS = list(Field)


class Key(Enum):
    CLEAR = "clear"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    COMMIT = "commit"
    CANCEL = "cancel"
    TODAY = "today"


class EditOutcome(Enum):
    EDITING = "editing"
    COMMIT = "commit"
    CANCEL = "cancel"
    COMMIT_AND_TODAY = "commit_and_today"


MAX_HOUR = 23
MAX_MINUTE = 59
MAX_GOAL_HOURS = 99


def parse_digit(key: Key | str) -> int | None:
    """Digit value of a keystroke, None for clear. Raises ValueError otherwise."""
    if key == Key.CLEAR:
        return None
    if isinstance(key, str) and len(key) == 1 and key.isdigit():
        return int(key)
    raise ValueError(f"not a digit keystroke: {key!r}")


def is_digit_key(key: Key | str) -> bool:
    return key == Key.CLEAR or (isinstance(key, str) and len(key) == 1 and key.isdigit())


def edit_two_digits(value: int, digit: int | None, position: int, maximum: int) -> tuple[int, bool]:
    """Apply one keystroke to a two-digit value.

    Returns the new value and whether the keystroke was accepted.
    """
    if position == 0:
        if digit is None:
            return value // 10, True
        return digit, True
    if digit is None:
        return 0, True
    candidate = value * 10 + digit
    if candidate > maximum:
        return value, False
    return candidate, True


def edit_time_hour(t: time, digit: int | None, position: int) -> tuple[time, bool]:
    hour, accepted = edit_two_digits(t.hour, digit, position, MAX_HOUR)
    return t.replace(hour=hour), accepted


def edit_time_minute(t: time, digit: int | None, position: int) -> tuple[time, bool]:
    minute, accepted = edit_two_digits(t.minute, digit, position, MAX_MINUTE)
    return t.replace(minute=minute), accepted


def edit_duration_hours(
    minutes: int, digit: int | None, position: int, max_hours: int = MAX_HOUR
) -> tuple[int, bool]:
    hours, rest = divmod(minutes, 60)
    hours, accepted = edit_two_digits(hours, digit, position, max_hours)
    return hours * 60 + rest, accepted


def edit_duration_minutes(minutes: int, digit: int | None, position: int) -> tuple[int, bool]:
    hours, rest = divmod(minutes, 60)
    rest, accepted = edit_two_digits(rest, digit, position, MAX_MINUTE)
    return hours * 60 + rest, accepted


def edit_number(value: float, digit: int | None, position: int) -> tuple[float, bool]:
    """Plain counter entry: first digit replaces, second appends, clear is ignored."""
    if digit is None:
        return value, True
    if position == 0:
        return float(digit), True
    return value * 10 + digit, True


def scroll_status(day: FlexDay, up: bool) -> DayStatus:
    """Next status when scrolling; Worked is the ceiling, Sick the floor."""
    status = day.status
    if up:
        if status in (DayStatus.WORKED, DayStatus.HOLIDAY, DayStatus.WEEKEND):
            return DayStatus.WORKED
        if status == DayStatus.HALF:
            return DayStatus.HOLIDAY
        return DayStatus.HALF
    if status == DayStatus.WORKED:
        return DayStatus.WEEKEND if day.on_weekend else DayStatus.HOLIDAY
    if status == DayStatus.HOLIDAY:
        return DayStatus.HALF
    if status == DayStatus.HALF:
        return DayStatus.SICK
    return status


def toggle_status(day: FlexDay, status: DayStatus) -> DayStatus:
    """Toggle between Worked and Holiday or Sick; weekend days never change."""
    if status not in (DayStatus.HOLIDAY, DayStatus.SICK):
        raise ValueError(f"only holiday and sick can be toggled, not {status.value}")
    if day.on_weekend:
        return day.status
    return DayStatus.WORKED if day.status == status else status


def shift_time(t: time, minutes: int) -> time:
    total = (t.hour * 60 + t.minute + minutes) % (24 * 60)
    return time(total // 60, total % 60)


class DayEditor:
    """Edit session over a buffered copy of one day.

    Keystrokes change the copy only. The owner applies it to the month and
    the ledger when the session ends with a commit.
    """

    def __init__(self, day: FlexDay, field: Field = Field.STATUS, max_pause_hours: int = MAX_HOUR):
        self.day = replace(day)
        self.original_status = day.status
        self.field = field
        self.position = 0
        self.max_pause_hours = max_pause_hours
        self.outcome = EditOutcome.EDITING

    def handle(self, key: Key | str) -> EditOutcome:
        if self.outcome != EditOutcome.EDITING:
            return self.outcome
        if is_digit_key(key):
            self.enter_digit(parse_digit(key))
        elif key == Key.LEFT:
            self.move(-1)
        elif key == Key.RIGHT:
            self.move(1)
        elif key in (Key.UP, Key.DOWN):
            self.scroll(key == Key.UP)
        elif key == Key.COMMIT:
            self.outcome = EditOutcome.COMMIT
        elif key == Key.CANCEL:
            self.outcome = EditOutcome.CANCEL
        elif key == Key.TODAY:
            self.outcome = EditOutcome.COMMIT_AND_TODAY
        return self.outcome

    def move(self, step: int):
        idx = min(max(self.field.value + step, 0), len(DAY_FIELDS) - 1)
        self.field = DAY_FIELDS[idx]
        self.position = 0

    def scroll(self, up: bool):
        self.position = 0
        day = self.day
        step = 1 if up else -1
        if self.field == Field.STATUS:
            day.status = scroll_status(day, up)
        elif self.field == Field.START_HOUR:
            day.start = shift_time(day.start, 60 * step)
        elif self.field == Field.START_MINUTE:
            day.start = shift_time(day.start, step)
        elif self.field == Field.END_HOUR:
            day.end = shift_time(day.end, 60 * step)
        elif self.field == Field.END_MINUTE:
            day.end = shift_time(day.end, step)
        elif self.field == Field.PAUSE_HOUR:
            day.pause = max(day.pause + 60 * step, 0)
        else:
            day.pause = max(day.pause + step, 0)

    def enter_digit(self, digit: int | None) -> bool:
        """Feed one digit (None for clear) to the current field.

        The status field only scrolls, digits are ignored there.
        """
        day = self.day
        pos = self.position
        if self.field == Field.STATUS:
            return False
        if self.field == Field.START_HOUR:
            day.start, accepted = edit_time_hour(day.start, digit, pos)
        elif self.field == Field.START_MINUTE:
            day.start, accepted = edit_time_minute(day.start, digit, pos)
        elif self.field == Field.END_HOUR:
            day.end, accepted = edit_time_hour(day.end, digit, pos)
        elif self.field == Field.END_MINUTE:
            day.end, accepted = edit_time_minute(day.end, digit, pos)
        elif self.field == Field.PAUSE_HOUR:
            day.pause, accepted = edit_duration_hours(day.pause, digit, pos, self.max_pause_hours)
        else:
            day.pause, accepted = edit_duration_minutes(day.pause, digit, pos)
        if accepted:
            self.position = (self.position + 1) % 2
        return accepted

    def total_minutes(self, holiday_duration: int) -> int:
        return self.day.total_minutes(holiday_duration)


SCHEDULE_COLUMNS = ["Start h", "Start m", "End h", "End m", "Pause h", "Pause m"]
ALLOWANCE_COLUMNS = ["Holidays/year", "Holidays left", "Sick days/year"]
GOAL_COLUMNS = ["Goal h", "Goal m"]

ALLOWANCE_ROW = 5
GOAL_ROW = 6


class SettingsEditor:
    """Edit session over copies of the settings and this year's holidays left.

    Rows 0-4 are the Monday to Friday schedule, then the allowances row and
    the weekly goal row.
    """

    def __init__(self, settings: Settings, holidays_left: float):
        self.settings = deepcopy(settings)
        self.holidays_left = holidays_left
        self.row = 0
        self.column = 0
        self.position = 0
        self.outcome = EditOutcome.EDITING

    @property
    def row_count(self) -> int:
        return GOAL_ROW + 1

    def columns(self, row: int) -> list[str]:
        if row == ALLOWANCE_ROW:
            return ALLOWANCE_COLUMNS
        if row == GOAL_ROW:
            return GOAL_COLUMNS
        return SCHEDULE_COLUMNS

    def handle(self, key: Key | str) -> EditOutcome:
        if self.outcome != EditOutcome.EDITING:
            return self.outcome
        if is_digit_key(key):
            self.enter_digit(parse_digit(key))
        elif key in (Key.UP, Key.DOWN):
            self.move_row(-1 if key == Key.UP else 1)
        elif key in (Key.LEFT, Key.RIGHT):
            self.move_column(-1 if key == Key.LEFT else 1)
        elif key == Key.COMMIT:
            self.outcome = EditOutcome.COMMIT
        elif key == Key.CANCEL:
            self.outcome = EditOutcome.CANCEL
        return self.outcome

    def move_row(self, step: int):
        self.row = min(max(self.row + step, 0), self.row_count - 1)
        self.column = min(self.column, len(self.columns(self.row)) - 1)
        self.position = 0

    def move_column(self, step: int):
        self.column = min(max(self.column + step, 0), len(self.columns(self.row)) - 1)
        self.position = 0

    def enter_digit(self, digit: int | None) -> bool:
        if self.row == ALLOWANCE_ROW:
            accepted = self._edit_allowance(digit)
        elif self.row == GOAL_ROW:
            accepted = self._edit_goal(digit)
        else:
            accepted = self._edit_schedule(digit)
        if accepted:
            self.position = (self.position + 1) % 2
        return accepted

    def _edit_schedule(self, digit: int | None) -> bool:
        sched = self.settings.week_schedule[self.row]
        pos = self.position
        if self.column == 0:
            sched.start, accepted = edit_time_hour(sched.start, digit, pos)
        elif self.column == 1:
            sched.start, accepted = edit_time_minute(sched.start, digit, pos)
        elif self.column == 2:
            sched.end, accepted = edit_time_hour(sched.end, digit, pos)
        elif self.column == 3:
            sched.end, accepted = edit_time_minute(sched.end, digit, pos)
        elif self.column == 4:
            sched.pause, accepted = edit_duration_hours(
                sched.pause, digit, pos, self.settings.max_pause_hours
            )
        else:
            sched.pause, accepted = edit_duration_minutes(sched.pause, digit, pos)
        return accepted

    def _edit_allowance(self, digit: int | None) -> bool:
        settings = self.settings
        if self.column == 0:
            settings.holidays_per_year, accepted = edit_number(
                settings.holidays_per_year, digit, self.position
            )
        elif self.column == 1:
            self.holidays_left, accepted = edit_number(self.holidays_left, digit, self.position)
        else:
            value, accepted = edit_number(settings.sick_days_per_year, digit, self.position)
            settings.sick_days_per_year = int(value)
        return accepted

    def _edit_goal(self, digit: int | None) -> bool:
        if self.column == 0:
            goal, accepted = edit_duration_hours(
                self.settings.week_goal, digit, self.position, MAX_GOAL_HOURS
            )
        else:
            goal, accepted = edit_duration_minutes(self.settings.week_goal, digit, self.position)
        self.settings.set_week_goal(goal)
        return accepted

    def value_str(self, row: int, column: int) -> str:
        """Two-digit rendering of one cell."""
        settings = self.settings
        if row == ALLOWANCE_ROW:
            values = [settings.holidays_per_year, self.holidays_left, settings.sick_days_per_year]
            return f"{values[column]:g}"
        if row == GOAL_ROW:
            hours, minutes = divmod(settings.week_goal, 60)
            return f"{(hours, minutes)[column]:02}"
        sched = settings.week_schedule[row]
        pause_h, pause_m = divmod(sched.pause, 60)
        values = [sched.start.hour, sched.start.minute, sched.end.hour, sched.end.minute, pause_h, pause_m]
        return f"{values[column]:02}"
