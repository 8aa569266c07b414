"""Shared fixtures for tests."""

from __future__ import annotations

import os
import tempfile
from datetime import date, time
from pathlib import Path
from typing import Generator

import pytest

# Set up test database before importing storage
_test_db_fd, _test_db_path = tempfile.mkstemp(suffix=".db")
os.environ["FLEXTIME_DB"] = _test_db_path


@pytest.fixture(scope="session", autouse=True)
def setup_test_db() -> Generator[Path, None, None]:
    """Set up a test database for the entire test session."""
    import storage

    storage.DB_PATH = Path(_test_db_path)
    storage.init_db()

    yield Path(_test_db_path)

    os.close(_test_db_fd)
    os.unlink(_test_db_path)


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    """Point storage at a fresh database for one test."""
    import storage

    monkeypatch.setattr(storage, "DB_PATH", tmp_path / "flextime_test.db")
    storage.init_db()
    yield storage


@pytest.fixture
def settings():
    """Default settings: 37h goal, Mon-Thu 09:10-17:10, Fri 09:10-16:50."""
    from models import Settings

    return Settings()


@pytest.fixture
def flat_settings():
    """Settings with a 450 minute day every weekday and a 2220 minute goal."""
    from models import Settings, SettingsDay

    return Settings(
        week_schedule=[SettingsDay(wd, time(9, 0), time(17, 0), 30) for wd in range(5)],
        week_goal=2220,
        holiday_duration=444,
    )


@pytest.fixture
def worked_day():
    """A worked Monday, 09:10 to 17:10 with a 30 minute pause."""
    from models import DayStatus, FlexDay

    return FlexDay(
        date=date(2017, 5, 1),
        start=time(9, 10),
        end=time(17, 10),
        pause=30,
        status=DayStatus.WORKED,
    )


@pytest.fixture
def may_2017(settings):
    """Freshly built May 2017, four full weeks from May 1 to May 28."""
    from models import FlexMonth

    return FlexMonth.create(2017, 5, settings)
