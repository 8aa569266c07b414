from __future__ import annotations

import json
import logging
import os
import sqlite3
from datetime import date
from pathlib import Path

from models import DaysOff, FlexMonth, Settings

logger = logging.getLogger(__name__)

SICK_JOURNAL = "sick_days"


class CorruptRecordError(Exception):
    """A stored record can't be read back; the user has to sort it out by hand."""


def _get_db_path() -> Path:
    """Get database path from environment variable or default location."""
    if env_path := os.environ.get("FLEXTIME_DB"):
        return Path(env_path)
    return Path(__file__).parent / "data" / "flextime.db"


DB_PATH = _get_db_path()


def _corrupt(what: str, exc: Exception) -> CorruptRecordError:
    logger.error("Corrupt %s in %s: %s", what, DB_PATH, exc)
    return CorruptRecordError(
        f"Failed to read {what} from {DB_PATH} ({exc}). "
        f"Please back up {DB_PATH.name} and remove it."
    )


def get_connection() -> sqlite3.Connection:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    """Create tables if they don't exist."""
    conn = get_connection()
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS months (
            year INTEGER NOT NULL,
            month INTEGER NOT NULL,
            data TEXT NOT NULL,
            PRIMARY KEY (year, month)
        );

        CREATE TABLE IF NOT EXISTS days_off (
            year INTEGER PRIMARY KEY,
            holidays_left TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS journals (
            name TEXT PRIMARY KEY,
            data TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS config (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );
    """)
    conn.commit()
    conn.close()


# --- Months ---


def save_month(flex_month: FlexMonth) -> None:
    """Insert or replace the whole month record."""
    conn = get_connection()
    conn.execute(
        "INSERT OR REPLACE INTO months (year, month, data) VALUES (?, ?, ?)",
        (flex_month.year, flex_month.month, json.dumps(flex_month.to_dict())),
    )
    conn.commit()
    conn.close()
    logger.debug("Saved month %s-%02d", flex_month.year, flex_month.month)


def _row_to_month(row: sqlite3.Row) -> FlexMonth:
    try:
        return FlexMonth.from_dict(json.loads(row["data"]))
    except (ValueError, KeyError, TypeError) as exc:
        raise _corrupt(f"month {row['year']}-{row['month']:02}", exc) from exc


def load_month(year: int, month: int) -> FlexMonth | None:
    """Get a stored month, None when it was never saved."""
    conn = get_connection()
    row = conn.execute(
        "SELECT * FROM months WHERE year = ? AND month = ?", (year, month)
    ).fetchone()
    conn.close()
    if row:
        return _row_to_month(row)
    return None


def load_or_create_month(year: int, month: int, settings: Settings) -> tuple[FlexMonth, bool]:
    """Load a month, building and saving it with defaults when absent.

    Returns the month and whether it was created. Year-end leave is only
    seeded on creation.
    """
    flex_month = load_month(year, month)
    if flex_month is not None:
        return flex_month, False

    flex_month = FlexMonth.create(year, month, settings)
    if flex_month.seed_year_end_leave():
        flex_month.update_balance(settings.holiday_duration)
    save_month(flex_month)
    logger.info("Created month %s-%02d (%s weeks)", year, month, len(flex_month.weeks))
    return flex_month, True


def get_all_months() -> list[FlexMonth]:
    conn = get_connection()
    rows = conn.execute("SELECT * FROM months ORDER BY year, month").fetchall()
    conn.close()
    return [_row_to_month(row) for row in rows]


# --- Days off ---


def _load_sick_journal() -> list[date] | None:
    """Get the sick-day journal, None when absent or unreadable."""
    conn = get_connection()
    row = conn.execute("SELECT data FROM journals WHERE name = ?", (SICK_JOURNAL,)).fetchone()
    conn.close()
    if not row:
        return None
    try:
        return sorted(date.fromisoformat(d) for d in json.loads(row["data"]))
    except (ValueError, TypeError) as exc:
        logger.warning("Sick day journal unreadable, rebuilding it: %s", exc)
        return None


def save_sick_journal(sick_days: list[date]) -> None:
    conn = get_connection()
    conn.execute(
        "INSERT OR REPLACE INTO journals (name, data) VALUES (?, ?)",
        (SICK_JOURNAL, json.dumps([d.isoformat() for d in sick_days])),
    )
    conn.commit()
    conn.close()


def rebuild_sick_days() -> list[date]:
    """Collect every Sick day from the stored months."""
    sick_days = sorted({d for m in get_all_months() for d in m.sick_days()})
    logger.info("Rebuilt sick day journal from stored months: %s days", len(sick_days))
    return sick_days


def load_days_off(year: int, settings: Settings, today: date | None = None) -> DaysOff:
    """Load the ledger of a year with the shared sick-day journal.

    A year that was never saved starts from the yearly allowance. The
    rolling sick-day window is applied before returning.
    """
    conn = get_connection()
    row = conn.execute("SELECT * FROM days_off WHERE year = ?", (year,)).fetchone()
    conn.close()

    sick_days = _load_sick_journal()
    need_save = sick_days is None
    if sick_days is None:
        sick_days = rebuild_sick_days()

    if row:
        try:
            days_off = DaysOff.from_dict(dict(row), sick_days)
        except (ValueError, TypeError) as exc:
            raise _corrupt(f"days off {year}", exc) from exc
    else:
        days_off = DaysOff.create(year, settings, sick_days)

    days_off.roll_sick_days(today)
    if need_save:
        save_days_off(days_off)
    logger.debug(
        "Loaded days off %s: %s holidays left, %s sick days",
        year, days_off.holidays_left, days_off.sick_days_taken,
    )
    return days_off


def save_days_off(days_off: DaysOff) -> None:
    """Save the year's holiday balance and the sick-day journal."""
    conn = get_connection()
    conn.execute(
        "INSERT OR REPLACE INTO days_off (year, holidays_left) VALUES (?, ?)",
        (days_off.year, str(days_off.holidays_left)),
    )
    conn.commit()
    conn.close()
    save_sick_journal(days_off.sick_days)


# --- Settings ---


def get_settings() -> Settings | None:
    """Load settings, None on first run."""
    conn = get_connection()
    row = conn.execute("SELECT value FROM config WHERE key = 'settings'").fetchone()
    conn.close()
    if not row:
        return None
    try:
        return Settings.from_dict(json.loads(row["value"]))
    except (ValueError, KeyError, TypeError) as exc:
        raise _corrupt("settings", exc) from exc


def save_settings(settings: Settings) -> None:
    conn = get_connection()
    conn.execute(
        "INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
        ("settings", json.dumps(settings.to_dict())),
    )
    conn.commit()
    conn.close()
