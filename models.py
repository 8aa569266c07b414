from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum

from utils import WEEKDAY_NAMES, date_range, format_minutes, grid_end, grid_start, is_weekend

logger = logging.getLogger(__name__)


class ScheduleError(Exception):
    """Raised when the weekly schedule has no entry for a weekday."""


class DayNotFoundError(LookupError):
    """Raised when a day is replaced in a month whose grid does not hold its date."""


class DayStatus(Enum):
    WORKED = "Worked"
    HALF = "Half"
    HOLIDAY = "Holiday"
    SICK = "Sick"
    WEEKEND = "Weekend"

    @property
    def glyph(self) -> str:
        return _STATUS_GLYPHS[self]

    @property
    def has_times(self) -> bool:
        """Worked and half days carry start/end/pause."""
        return self in (DayStatus.WORKED, DayStatus.HALF)


_STATUS_GLYPHS = {
    DayStatus.WORKED: "N",
    DayStatus.HALF: "h",
    DayStatus.HOLIDAY: "H",
    DayStatus.SICK: "S",
    DayStatus.WEEKEND: "W",
}

PLACEHOLDER = "--:--"


def _minutes_of(t: time) -> int:
    return t.hour * 60 + t.minute


def _format_time(t: time) -> str:
    return t.strftime("%H:%M")


def _parse_time(val: str) -> time:
    parts = val.split(":")
    return time(int(parts[0]), int(parts[1]))


@dataclass
class FlexDay:
    date: date | None = None
    start: time = time(9, 0)
    end: time = time(17, 0)
    pause: int = 30
    status: DayStatus = DayStatus.WORKED

    @classmethod
    def for_date(cls, d: date, settings: Settings) -> FlexDay:
        """Create a day with the schedule defaults for its weekday."""
        defaults = settings.default_day(d)
        return cls(
            date=d,
            start=defaults.start,
            end=defaults.end,
            pause=defaults.pause,
            status=DayStatus.WEEKEND if is_weekend(d) else DayStatus.WORKED,
        )

    @property
    def weekday(self) -> int | None:
        return self.date.weekday() if self.date else None

    @property
    def on_weekend(self) -> bool:
        return self.date is not None and is_weekend(self.date)

    def worked_minutes(self) -> int:
        """End minus start minus pause; negative for an inconsistent entry."""
        return _minutes_of(self.end) - _minutes_of(self.start) - self.pause

    def total_minutes(self, holiday_duration: int) -> int:
        if self.status.has_times:
            return self.worked_minutes()
        if self.status in (DayStatus.HOLIDAY, DayStatus.SICK):
            return holiday_duration
        return 0

    def display(self, holiday_duration: int) -> str:
        """One line: glyph, weekday, date, start -> end - pause = total."""
        weekday = WEEKDAY_NAMES[self.weekday] if self.date else "???"
        day_month = self.date.strftime("%d/%m") if self.date else "--/--"
        if self.status.has_times:
            start = _format_time(self.start)
            end = _format_time(self.end)
            pause = format_minutes(self.pause)
        else:
            start = end = pause = PLACEHOLDER
        if self.status == DayStatus.WEEKEND:
            total = PLACEHOLDER
        else:
            total = format_minutes(self.total_minutes(holiday_duration))
        return f"{self.status.glyph} {weekday} {day_month}  {start} -> {end} - {pause} = {total}"

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat() if self.date else None,
            "weekday": WEEKDAY_NAMES[self.weekday] if self.date else None,
            "start": _format_time(self.start),
            "end": _format_time(self.end),
            "pause": self.pause,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> FlexDay:
        d = date.fromisoformat(data["date"]) if data.get("date") else None
        stored_weekday = data.get("weekday")
        if d and stored_weekday and stored_weekday != WEEKDAY_NAMES[d.weekday()]:
            raise ValueError(f"{d.isoformat()} is not a {stored_weekday}")
        pause = int(data["pause"])
        if pause < 0:
            raise ValueError(f"negative pause on {data.get('date')}")
        return cls(
            date=d,
            start=_parse_time(data["start"]),
            end=_parse_time(data["end"]),
            pause=pause,
            status=DayStatus(data["status"]),
        )


@dataclass
class FlexWeek:
    """Seven contiguous days, Monday to Sunday."""

    days: list[FlexDay]

    def __post_init__(self):
        if len(self.days) != 7:
            raise ValueError(f"a week holds 7 days, got {len(self.days)}")
        dates = [d.date for d in self.days]
        if all(dates):
            if dates[0].weekday() != 0:
                raise ValueError(f"week must start on a Monday, got {dates[0]}")
            for prev, cur in zip(dates, dates[1:]):
                if (cur - prev).days != 1:
                    raise ValueError(f"days are not contiguous: {prev} then {cur}")

    def __getitem__(self, idx: int) -> FlexDay:
        return self.days[idx]

    def __iter__(self):
        return iter(self.days)

    def __len__(self) -> int:
        return len(self.days)

    @property
    def first_date(self) -> date | None:
        return self.days[0].date

    @property
    def last_date(self) -> date | None:
        return self.days[-1].date

    def total_minutes(self, holiday_duration: int) -> int:
        return sum(d.total_minutes(holiday_duration) for d in self.days)

    def total_str(self, holiday_duration: int) -> str:
        return f"Total: {format_minutes(self.total_minutes(holiday_duration))}"

    def to_dict(self) -> dict:
        return {"days": [d.to_dict() for d in self.days]}

    @classmethod
    def from_dict(cls, data: dict) -> FlexWeek:
        return cls(days=[FlexDay.from_dict(d) for d in data["days"]])


@dataclass
class FlexMonth:
    year: int
    month: int
    weeks: list[FlexWeek]
    one_week_goal: int
    balance: int = 0

    @classmethod
    def create(cls, year: int, month: int, settings: Settings) -> FlexMonth:
        """Build a month grid of whole weeks filled with schedule defaults."""
        days = [
            FlexDay.for_date(d, settings)
            for d in date_range(grid_start(year, month), grid_end(year, month))
        ]
        weeks = [FlexWeek(days[i:i + 7]) for i in range(0, len(days), 7)]
        flex_month = cls(year=year, month=month, weeks=weeks, one_week_goal=settings.week_goal)
        flex_month.update_balance(settings.holiday_duration)
        return flex_month

    @property
    def first_date(self) -> date:
        return self.weeks[0].first_date

    @property
    def last_date(self) -> date:
        return self.weeks[-1].last_date

    @property
    def target_minutes(self) -> int:
        return self.one_week_goal * len(self.weeks)

    def contains(self, d: date) -> bool:
        return self.first_date <= d <= self.last_date

    def total_minutes(self, holiday_duration: int) -> int:
        return sum(w.total_minutes(holiday_duration) for w in self.weeks)

    def update_balance(self, holiday_duration: int) -> int:
        self.balance = self.total_minutes(holiday_duration) - self.target_minutes
        return self.balance

    def find_day_and_week(self, d: date) -> tuple[FlexDay, FlexWeek, int] | None:
        """Find the day for a date with its week and 1-based week number.

        Returns None when the date is outside the grid, the caller then
        loads the adjacent month.
        """
        for week_number, week in enumerate(self.weeks, start=1):
            for day in week:
                if day.date == d:
                    return day, week, week_number
        return None

    def replace_day(self, updated: FlexDay) -> FlexWeek:
        """Overwrite the day with the same date, returning its week."""
        for week in self.weeks:
            for i, day in enumerate(week.days):
                if day.date == updated.date:
                    week.days[i] = updated
                    return week
        raise DayNotFoundError(
            f"{updated.date} is not in the grid of {self.year}-{self.month:02}"
        )

    def sick_days(self) -> list[date]:
        return [
            day.date for week in self.weeks for day in week
            if day.status == DayStatus.SICK and day.date
        ]

    def seed_year_end_leave(self) -> bool:
        """Mark the fixed year-end closures on a freshly built month.

        January gets its first two worked weekdays of the first week as
        holiday, December gets every worked day of its last week.
        """
        changed = 0
        if self.month == 1:
            for day in self.weeks[0]:
                if changed == 2:
                    break
                if day.status == DayStatus.WORKED and not day.on_weekend:
                    day.status = DayStatus.HOLIDAY
                    changed += 1
        elif self.month == 12:
            for day in self.weeks[-1]:
                if day.status == DayStatus.WORKED:
                    day.status = DayStatus.HOLIDAY
                    changed += 1
        if changed:
            logger.info("Seeded %s leave days in %s-%02d", changed, self.year, self.month)
        return changed > 0

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "month": self.month,
            "one_week_goal": self.one_week_goal,
            "balance": self.balance,
            "weeks": [w.to_dict() for w in self.weeks],
        }

    @classmethod
    def from_dict(cls, data: dict) -> FlexMonth:
        return cls(
            year=int(data["year"]),
            month=int(data["month"]),
            weeks=[FlexWeek.from_dict(w) for w in data["weeks"]],
            one_week_goal=int(data["one_week_goal"]),
            balance=int(data["balance"]),
        )


# (old, new) -> change in holidays left
_HOLIDAY_DELTAS = {
    (DayStatus.WORKED, DayStatus.HOLIDAY): -1.0,
    (DayStatus.WORKED, DayStatus.HALF): -0.5,
    (DayStatus.HOLIDAY, DayStatus.WORKED): 1.0,
    (DayStatus.HOLIDAY, DayStatus.WEEKEND): 1.0,
    (DayStatus.HOLIDAY, DayStatus.HALF): 0.5,
    (DayStatus.HOLIDAY, DayStatus.SICK): 1.0,
    (DayStatus.HALF, DayStatus.WORKED): 0.5,
    (DayStatus.HALF, DayStatus.WEEKEND): 0.5,
    (DayStatus.HALF, DayStatus.HOLIDAY): -0.5,
    (DayStatus.HALF, DayStatus.SICK): 0.5,
    (DayStatus.SICK, DayStatus.HALF): -0.5,
    (DayStatus.SICK, DayStatus.HOLIDAY): -1.0,
}


def sick_window_start(today: date) -> date:
    """Sick days on or before this date fall out of the rolling window."""
    return date(today.year - 1, today.month, 1)


@dataclass
class DaysOff:
    year: int
    holidays_left: float
    sick_days: list[date] = field(default_factory=list)

    @classmethod
    def create(cls, year: int, settings: Settings, sick_days: list[date] | None = None) -> DaysOff:
        return cls(year=year, holidays_left=settings.holidays_per_year, sick_days=list(sick_days or []))

    @property
    def sick_days_taken(self) -> int:
        return len(self.sick_days)

    def update_days_off(self, old_status: DayStatus, day: FlexDay, today: date | None = None):
        """Apply the ledger effect of a day going from old_status to its current status."""
        new_status = day.status
        if old_status == new_status:
            return
        if old_status == DayStatus.SICK:
            self.remove_sick_day(day.date, today)
        self.holidays_left += _HOLIDAY_DELTAS.get((old_status, new_status), 0.0)
        if new_status == DayStatus.SICK and old_status != DayStatus.WEEKEND:
            self.add_sick_day(day.date, today)
        logger.debug(
            "%s: %s -> %s, holidays left %s, sick days %s",
            day.date, old_status.value, new_status.value,
            self.holidays_left, self.sick_days_taken,
        )

    def add_sick_day(self, d: date, today: date | None = None):
        if d is None:
            raise ValueError("a sick day needs a date")
        if d not in self.sick_days:
            self.sick_days.append(d)
            self.sick_days.sort()
        self.roll_sick_days(today)

    def remove_sick_day(self, d: date, today: date | None = None):
        if d in self.sick_days:
            self.sick_days.remove(d)
        self.roll_sick_days(today)

    def roll_sick_days(self, today: date | None = None):
        """Keep only the sick days of the trailing twelve months."""
        limit = sick_window_start(today or date.today())
        self.sick_days = [d for d in self.sick_days if d > limit]

    def to_dict(self) -> dict:
        return {"year": self.year, "holidays_left": self.holidays_left}

    @classmethod
    def from_dict(cls, data: dict, sick_days: list[date] | None = None) -> DaysOff:
        return cls(
            year=int(data["year"]),
            holidays_left=float(data["holidays_left"]),
            sick_days=sorted(sick_days or []),
        )


@dataclass
class SettingsDay:
    weekday: int
    start: time
    end: time
    pause: int

    def __str__(self) -> str:
        return (
            f"{WEEKDAY_NAMES[self.weekday]}  {_format_time(self.start)} -> "
            f"{_format_time(self.end)} - {format_minutes(self.pause)}"
        )

    def to_dict(self) -> dict:
        return {
            "weekday": WEEKDAY_NAMES[self.weekday],
            "start": _format_time(self.start),
            "end": _format_time(self.end),
            "pause": self.pause,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SettingsDay:
        return cls(
            weekday=WEEKDAY_NAMES.index(data["weekday"]),
            start=_parse_time(data["start"]),
            end=_parse_time(data["end"]),
            pause=int(data["pause"]),
        )


def _default_schedule() -> list[SettingsDay]:
    schedule = [SettingsDay(wd, time(9, 10), time(17, 10), 30) for wd in range(4)]
    schedule.append(SettingsDay(4, time(9, 10), time(16, 50), 30))
    return schedule


DEFAULT_WEEK_GOAL = 37 * 60


@dataclass
class Settings:
    week_schedule: list[SettingsDay] = field(default_factory=_default_schedule)
    holidays_per_year: float = 26.0
    week_goal: int = DEFAULT_WEEK_GOAL
    holiday_duration: int = DEFAULT_WEEK_GOAL // 5
    sick_days_per_year: int = 10
    entry_offset: int = 0
    exit_offset: int = 0
    max_pause_hours: int = 23

    def default_day(self, d: date) -> SettingsDay:
        """Get the default start/end/pause for the weekday of d."""
        if is_weekend(d):
            return SettingsDay(d.weekday(), time(9, 0), time(17, 0), 30)
        for sched in self.week_schedule:
            if sched.weekday == d.weekday():
                return sched
        raise ScheduleError(f"No schedule entry for {WEEKDAY_NAMES[d.weekday()]}")

    def set_week_goal(self, minutes: int):
        self.week_goal = minutes
        self.holiday_duration = minutes // 5

    def to_dict(self) -> dict:
        return {
            "week_schedule": [s.to_dict() for s in self.week_schedule],
            "holidays_per_year": self.holidays_per_year,
            "week_goal": self.week_goal,
            "holiday_duration": self.holiday_duration,
            "sick_days_per_year": self.sick_days_per_year,
            "entry_offset": self.entry_offset,
            "exit_offset": self.exit_offset,
            "max_pause_hours": self.max_pause_hours,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Settings:
        settings = cls()
        if "week_schedule" in data:
            settings.week_schedule = [SettingsDay.from_dict(s) for s in data["week_schedule"]]
        if "holidays_per_year" in data:
            settings.holidays_per_year = float(data["holidays_per_year"])
        if "week_goal" in data:
            settings.set_week_goal(int(data["week_goal"]))
        if "holiday_duration" in data:
            settings.holiday_duration = int(data["holiday_duration"])
        for key in ("sick_days_per_year", "entry_offset", "exit_offset", "max_pause_hours"):
            if key in data:
                setattr(settings, key, int(data[key]))
        return settings
