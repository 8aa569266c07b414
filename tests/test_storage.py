"""Tests for storage.py - SQLite persistence of months, ledger and settings."""

import importlib
import json
from dataclasses import replace
from datetime import date, time

import pytest

import storage
from models import DaysOff, DayStatus, FlexMonth, Settings


TODAY = date(2017, 5, 15)


class TestDbPath:
    """Tests for database location."""

    def test_env_var(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FLEXTIME_DB", str(tmp_path / "custom.db"))
        assert storage._get_db_path() == tmp_path / "custom.db"

    def test_default(self, monkeypatch):
        monkeypatch.delenv("FLEXTIME_DB", raising=False)
        path = storage._get_db_path()
        assert path.name == "flextime.db"
        assert path.parent.name == "data"

    def test_reload_picks_up_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FLEXTIME_DB", str(tmp_path / "reloaded.db"))
        importlib.reload(storage)
        try:
            assert storage.DB_PATH == tmp_path / "reloaded.db"
        finally:
            monkeypatch.undo()
            importlib.reload(storage)

    def test_init_db_creates_tables(self, temp_db):
        conn = temp_db.get_connection()
        names = {r["name"] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        conn.close()
        assert {"months", "days_off", "journals", "config"} <= names


class TestMonths:
    """Tests for month records."""

    def test_missing_month(self, temp_db):
        assert temp_db.load_month(2017, 5) is None

    def test_round_trip(self, temp_db, may_2017):
        may_2017.weeks[1][2].end = time(18, 5)
        may_2017.weeks[2][0].status = DayStatus.HOLIDAY
        temp_db.save_month(may_2017)
        assert temp_db.load_month(2017, 5) == may_2017

    def test_save_replaces(self, temp_db, may_2017):
        temp_db.save_month(may_2017)
        may_2017.balance = 99
        temp_db.save_month(may_2017)
        assert temp_db.load_month(2017, 5).balance == 99
        assert len(temp_db.get_all_months()) == 1

    def test_create_when_missing(self, temp_db, settings):
        flex_month, created = temp_db.load_or_create_month(2017, 5, settings)
        assert created is True
        assert temp_db.load_month(2017, 5) == flex_month

    def test_second_load_is_not_created(self, temp_db, settings):
        temp_db.load_or_create_month(2017, 5, settings)
        _, created = temp_db.load_or_create_month(2017, 5, settings)
        assert created is False

    def test_seeding_happens_once(self, temp_db, settings):
        """A user change to a seeded day survives reloading."""
        january, _ = temp_db.load_or_create_month(2017, 1, settings)
        assert january.weeks[0][0].status == DayStatus.HOLIDAY
        january.replace_day(replace(january.weeks[0][0], status=DayStatus.WORKED))
        temp_db.save_month(january)
        reloaded, _ = temp_db.load_or_create_month(2017, 1, settings)
        assert reloaded.weeks[0][0].status == DayStatus.WORKED

    def test_seeded_balance(self, temp_db, settings):
        """Balance accounts for the seeded holidays."""
        january, _ = temp_db.load_or_create_month(2017, 1, settings)
        hd = settings.holiday_duration
        assert january.balance == january.total_minutes(hd) - january.target_minutes

    def test_get_all_months_ordered(self, temp_db, settings):
        for year, month in [(2017, 3), (2016, 12), (2017, 1)]:
            temp_db.save_month(FlexMonth.create(year, month, settings))
        assert [(m.year, m.month) for m in temp_db.get_all_months()] == [
            (2016, 12), (2017, 1), (2017, 3),
        ]

    def test_corrupt_month(self, temp_db):
        conn = temp_db.get_connection()
        conn.execute("INSERT INTO months (year, month, data) VALUES (2017, 5, '{not json')")
        conn.commit()
        conn.close()
        with pytest.raises(temp_db.CorruptRecordError, match="back up"):
            temp_db.load_month(2017, 5)

    def test_month_with_wrong_weekday(self, temp_db, may_2017):
        data = may_2017.to_dict()
        data["weeks"][0]["days"][0]["weekday"] = "Sun"
        conn = temp_db.get_connection()
        conn.execute(
            "INSERT INTO months (year, month, data) VALUES (?, ?, ?)",
            (2017, 5, json.dumps(data)),
        )
        conn.commit()
        conn.close()
        with pytest.raises(temp_db.CorruptRecordError):
            temp_db.load_month(2017, 5)


class TestDaysOff:
    """Tests for the yearly ledger and the sick-day journal."""

    def test_new_year_starts_with_allowance(self, temp_db, settings):
        days_off = temp_db.load_days_off(2017, settings, TODAY)
        assert days_off.year == 2017
        assert days_off.holidays_left == 26.0
        assert days_off.sick_days == []

    def test_round_trip(self, temp_db, settings):
        temp_db.save_days_off(DaysOff(2017, 21.5, [date(2017, 3, 2), date(2017, 5, 3)]))
        days_off = temp_db.load_days_off(2017, settings, TODAY)
        assert days_off.holidays_left == 21.5
        assert days_off.sick_days == [date(2017, 3, 2), date(2017, 5, 3)]

    def test_years_are_separate(self, temp_db, settings):
        temp_db.save_days_off(DaysOff(2016, 3.0))
        assert temp_db.load_days_off(2017, settings, TODAY).holidays_left == 26.0
        assert temp_db.load_days_off(2016, settings, TODAY).holidays_left == 3.0

    def test_journal_shared_between_years(self, temp_db, settings):
        temp_db.save_days_off(DaysOff(2016, 3.0, [date(2016, 12, 20)]))
        assert temp_db.load_days_off(2017, settings, TODAY).sick_days == [date(2016, 12, 20)]

    def test_load_rolls_window(self, temp_db, settings):
        temp_db.save_days_off(DaysOff(2017, 26.0, [date(2016, 1, 4), date(2017, 5, 3)]))
        assert temp_db.load_days_off(2017, settings, TODAY).sick_days == [date(2017, 5, 3)]

    def test_journal_rebuilt_from_months(self, temp_db, settings, may_2017):
        may_2017.weeks[0][1].status = DayStatus.SICK
        temp_db.save_month(may_2017)
        days_off = temp_db.load_days_off(2017, settings, TODAY)
        assert days_off.sick_days == [date(2017, 5, 2)]
        assert temp_db._load_sick_journal() == [date(2017, 5, 2)]

    def test_unreadable_journal_rebuilt(self, temp_db, settings, may_2017):
        may_2017.weeks[0][3].status = DayStatus.SICK
        temp_db.save_month(may_2017)
        conn = temp_db.get_connection()
        conn.execute("INSERT INTO journals (name, data) VALUES ('sick_days', '[\"garbage\"]')")
        conn.commit()
        conn.close()
        assert temp_db.load_days_off(2017, settings, TODAY).sick_days == [date(2017, 5, 4)]

    def test_corrupt_days_off(self, temp_db, settings):
        conn = temp_db.get_connection()
        conn.execute("INSERT INTO days_off (year, holidays_left) VALUES (2017, 'lots')")
        conn.commit()
        conn.close()
        with pytest.raises(temp_db.CorruptRecordError):
            temp_db.load_days_off(2017, settings, TODAY)


class TestSettingsStorage:
    """Tests for the settings record."""

    def test_first_run(self, temp_db):
        assert temp_db.get_settings() is None

    def test_round_trip(self, temp_db, settings):
        settings.set_week_goal(40 * 60)
        settings.exit_offset = 3
        temp_db.save_settings(settings)
        assert temp_db.get_settings() == settings

    def test_save_replaces(self, temp_db, settings):
        temp_db.save_settings(settings)
        temp_db.save_settings(Settings(holidays_per_year=30.0))
        assert temp_db.get_settings().holidays_per_year == 30.0

    def test_corrupt_settings(self, temp_db):
        conn = temp_db.get_connection()
        conn.execute("INSERT INTO config (key, value) VALUES ('settings', '[1, 2')")
        conn.commit()
        conn.close()
        with pytest.raises(temp_db.CorruptRecordError):
            temp_db.get_settings()
