"""Interactive session over the loaded month and the days-off ledger."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from enum import Enum

import storage
from editor import DayEditor, EditOutcome, Field, Key, SettingsEditor, shift_time, toggle_status
from models import DaysOff, DayStatus, FlexDay, FlexMonth, FlexWeek, Settings
from utils import MONTH_NAMES, grid_month_for, next_month, prev_month

logger = logging.getLogger(__name__)

NOON = time(12, 0)


class Direction(Enum):
    PREVIOUS = "previous"
    NEXT = "next"


@dataclass
class StatusSummary:
    month_name: str
    year: int
    target: int
    total: int
    balance: int
    holidays_left: float
    sick_days_taken: int
    sick_days_left: int


class Navigator:
    """Owns the current month, the selected date and the ledger.

    Every committed change is saved straight away.
    """

    def __init__(self, settings: Settings, today: date | None = None):
        self.settings = settings
        self.today = today or date.today()
        self.days_off = storage.load_days_off(self.today.year, settings, self.today)
        self.ensure_year_end_months(self.today.year)
        year, month = grid_month_for(self.today)
        self.month: FlexMonth = self._load_month(year, month)
        self.current_date = self.today

    def ensure_year_end_months(self, year: int):
        """Create January and December of a year so their closures get seeded."""
        for month in (1, 12):
            storage.load_or_create_month(year, month, self.settings)

    def _load_month(self, year: int, month: int) -> FlexMonth:
        flex_month, _ = storage.load_or_create_month(year, month, self.settings)
        self.month = flex_month
        if self.days_off.year != year:
            self.days_off = storage.load_days_off(year, self.settings, self.today)
        return flex_month

    # --- Selection ---

    @property
    def current_day(self) -> FlexDay:
        found = self.month.find_day_and_week(self.current_date)
        if found is None:
            raise LookupError(f"{self.current_date} is not in the loaded month")
        return found[0]

    @property
    def current_week(self) -> tuple[FlexWeek, int]:
        """The selected week and its 1-based number in the month."""
        found = self.month.find_day_and_week(self.current_date)
        if found is None:
            raise LookupError(f"{self.current_date} is not in the loaded month")
        return found[1], found[2]

    def select_day(self, d: date) -> date:
        """Select a date, loading the month whose grid holds it when needed."""
        if not self.month.contains(d):
            self._load_month(*grid_month_for(d))
        self.current_date = d
        return d

    def select_prev_day(self) -> date:
        return self.select_day(self.current_date - timedelta(days=1))

    def select_next_day(self) -> date:
        return self.select_day(self.current_date + timedelta(days=1))

    def select_prev_week(self) -> date:
        return self.select_day(self.current_date - timedelta(days=7))

    def select_next_week(self) -> date:
        return self.select_day(self.current_date + timedelta(days=7))

    def change_month(self, direction: Direction) -> date:
        """Switch month keeping the weekday: first week going forward, last going back."""
        weekday = self.current_date.weekday()
        if direction == Direction.NEXT:
            self._load_month(*next_month(self.month.year, self.month.month))
            target = self.month.weeks[0][weekday].date
        else:
            self._load_month(*prev_month(self.month.year, self.month.month))
            target = self.month.weeks[-1][weekday].date
        return self.select_day(target)

    def jump_to_today(self, today: date | None = None) -> date:
        if today:
            self.today = today
        return self.select_day(self.today)

    # --- Changes ---

    def _ledger_for(self, year: int) -> DaysOff:
        if year == self.days_off.year:
            return self.days_off
        return storage.load_days_off(year, self.settings, self.today)

    def commit(self, day: FlexDay, old_status: DayStatus) -> FlexWeek:
        """Write an edited day back: ledger, month grid, balance, storage."""
        ledger = self._ledger_for(day.date.year)
        ledger.update_days_off(old_status, day, self.today)
        week = self.month.replace_day(day)
        self.month.update_balance(self.settings.holiday_duration)
        storage.save_month(self.month)
        storage.save_days_off(ledger)
        if ledger is not self.days_off:
            self.days_off.sick_days = list(ledger.sick_days)
        logger.debug("Committed %s (%s), balance %s", day.date, day.status.value, self.month.balance)
        return week

    def toggle_status(self, status: DayStatus) -> bool:
        """Mark the selected day holiday or sick, or back to worked."""
        day = replace(self.current_day)
        old_status = day.status
        day.status = toggle_status(day, status)
        if day.status == old_status:
            return False
        self.commit(day, old_status)
        return True

    def initial_field(self, day: FlexDay, now: datetime) -> Field:
        if day.status in (DayStatus.WEEKEND, DayStatus.SICK, DayStatus.HOLIDAY):
            return Field.STATUS
        if day.date > now.date() or now.time() < NOON:
            return Field.START_MINUTE
        return Field.END_MINUTE

    def start_edit(self, now: datetime | None = None) -> DayEditor:
        day = self.current_day
        field = self.initial_field(day, now or datetime.now())
        return DayEditor(day, field, max_pause_hours=self.settings.max_pause_hours)

    def handle_edit_key(self, day_editor: DayEditor, key: Key | str) -> EditOutcome:
        """Feed a keystroke to an edit session, committing when it ends."""
        outcome = day_editor.handle(key)
        if outcome in (EditOutcome.COMMIT, EditOutcome.COMMIT_AND_TODAY):
            self.commit(day_editor.day, day_editor.original_status)
        if outcome == EditOutcome.COMMIT_AND_TODAY:
            self.jump_to_today()
        return outcome

    def week_total_with(self, day: FlexDay) -> int:
        """Total of the selected week as if day were already committed."""
        week, _ = self.current_week
        hd = self.settings.holiday_duration
        return sum((day if d.date == day.date else d).total_minutes(hd) for d in week)

    def _punch(self, now: datetime, field: Field) -> bool:
        self.jump_to_today(now.date())
        day = replace(self.current_day)
        if not day.status.has_times:
            return False
        clock = time(now.hour, now.minute)
        if field == Field.START_MINUTE:
            day.start = shift_time(clock, -self.settings.entry_offset)
        else:
            day.end = shift_time(clock, self.settings.exit_offset)
        self.commit(day, day.status)
        return True

    def punch_in(self, now: datetime | None = None) -> bool:
        """Set today's start to now minus the entry offset."""
        return self._punch(now or datetime.now(), Field.START_MINUTE)

    def punch_out(self, now: datetime | None = None) -> bool:
        """Set today's end to now plus the exit offset."""
        return self._punch(now or datetime.now(), Field.END_MINUTE)

    # --- Settings ---

    def start_settings_edit(self) -> SettingsEditor:
        return SettingsEditor(self.settings, self.days_off.holidays_left)

    def apply_settings(self, settings_editor: SettingsEditor):
        self.settings = settings_editor.settings
        self.days_off.holidays_left = settings_editor.holidays_left
        storage.save_settings(self.settings)
        storage.save_days_off(self.days_off)
        self.month.update_balance(self.settings.holiday_duration)
        storage.save_month(self.month)
        logger.info("Settings saved, week goal %s", self.settings.week_goal)

    # --- Reporting ---

    def week_goal_missed(self, week: FlexWeek) -> bool:
        return week.total_minutes(self.settings.holiday_duration) < self.month.one_week_goal

    def status_summary(self) -> StatusSummary:
        days_off = self.days_off
        return StatusSummary(
            month_name=MONTH_NAMES[self.month.month - 1],
            year=self.month.year,
            target=self.month.target_minutes,
            total=self.month.total_minutes(self.settings.holiday_duration),
            balance=self.month.balance,
            holidays_left=days_off.holidays_left,
            sick_days_taken=days_off.sick_days_taken,
            sick_days_left=self.settings.sick_days_per_year - days_off.sick_days_taken,
        )
