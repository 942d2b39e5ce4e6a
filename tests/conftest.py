"""
Shared pytest fixtures for bj tests.

This module provides common fixtures used across all test files, including:
- An isolated $BJ_HOME for every test
- Time freezing utilities
- A ready environment and controller
- Helpers for writing day files
"""

import pytest
from datetime import date, datetime
from freezegun import freeze_time

from bjournal.bj_env import JournalEnvironment
from bjournal.controller import Controller
from bjournal.model import DayStore

# Wednesday; its week runs from 2025-11-03 to 2025-11-09
TODAY = date(2025, 11, 5)

SAMPLE_DAY = """\
# Wednesday

- [ ] (!!) Write quarterly plan #work #planning
  - note: first draft by noon
  - note: ask Dana for numbers
- [x] Water plants
- [ ] [mtg 15:00 30] Team sync #work

Free text that is not a bullet.
- [ ] (!!!) Release train #work #urgent
"""


@pytest.fixture(autouse=True)
def bj_home(tmp_path, monkeypatch):
    """
    Every test gets its own home so config files and logs never touch
    the real ~/.config/bj.
    """
    home = tmp_path / "bj-home"
    monkeypatch.setenv("BJ_HOME", str(home))
    return home


@pytest.fixture
def frozen_time():
    """
    Freezes time to 2025-11-05 12:00:00 for the duration of the test.

    Usage:
        def test_something(frozen_time):
            frozen_time.tick(delta=timedelta(hours=2))
    """
    with freeze_time("2025-11-05 12:00:00") as frozen:
        yield frozen


@pytest.fixture
def freeze_at():
    """
    Returns a function that freezes time to a specific datetime.

    Usage:
        def test_something(freeze_at):
            with freeze_at("2025-11-05 14:50:00"):
                ...
    """
    return freeze_time


@pytest.fixture
def test_env():
    """Provides a JournalEnvironment with its home and journal dir created."""
    env = JournalEnvironment()
    env.ensure(init_config=True)
    return env


@pytest.fixture
def journal_dir(test_env):
    return test_env.journal_dir


@pytest.fixture
def write_day(test_env):
    """
    Returns a function that writes raw text as the file for a day.

    Usage:
        path = write_day(date(2025, 11, 5), "- [ ] task\\n")
    """

    def _write(day: date, text: str):
        path = test_env.path_for(day)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def load_day(test_env):
    """Returns a loader date -> DayStore bound to the test environment."""

    def _load(day: date) -> DayStore:
        return DayStore.load(day, test_env.path_for(day))

    return _load


@pytest.fixture
def fixed_clock():
    """A clock stuck at 2025-11-05 14:50:00."""
    return lambda: datetime(2025, 11, 5, 14, 50, 0)


@pytest.fixture
def test_controller(test_env, fixed_clock):
    """
    Provides a Controller with a fixed clock and a notifier that records
    (title, message) pairs in ``controller.sent``.
    """
    sent = []
    ctrl = Controller(
        test_env, clock=fixed_clock, notifier=lambda t, m: sent.append((t, m))
    )
    ctrl.sent = sent
    return ctrl
