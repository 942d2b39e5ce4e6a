from datetime import date, timedelta

import pytest

from bjournal.entry import Kind
from bjournal.errors import JournalIOError, MigrationError, NotFound
from bjournal.migrate import migrate
from bjournal.model import DayStore

from conftest import SAMPLE_DAY, TODAY

YESTERDAY = TODAY - timedelta(days=1)


def count(store, done):
    return sum(1 for e in store.entries() if e.done is done)


@pytest.mark.unit
class TestMigrate:
    def test_conservation(self, write_day, load_day):
        write_day(YESTERDAY, SAMPLE_DAY)
        write_day(TODAY, "- [ ] already here\n- [x] finished here\n")
        a_before, b_before = load_day(YESTERDAY), load_day(TODAY)

        result = migrate(load_day, YESTERDAY, TODAY)

        a_after, b_after = load_day(YESTERDAY), load_day(TODAY)
        assert result.count == 3
        assert count(a_before, False) == count(b_after, False) - count(b_before, False)
        assert count(a_after, True) == count(a_before, True)
        assert count(a_after, False) == 0

    def test_moved_entries_keep_content_and_order(self, write_day, load_day):
        write_day(YESTERDAY, SAMPLE_DAY)
        migrate(load_day, YESTERDAY, TODAY)

        moved = load_day(TODAY).entries()
        assert [e.text for e in moved] == [
            "Write quarterly plan",
            "Team sync",
            "Release train",
        ]
        assert moved[0].notes == ["first draft by noon", "ask Dana for numbers"]
        assert moved[0].tags == ["work", "planning"]
        assert moved[1].kind is Kind.MEETING
        assert moved[1].duration_minutes == 30

    def test_source_keeps_done_bullets_and_other_lines(self, write_day, load_day):
        path = write_day(YESTERDAY, SAMPLE_DAY)
        migrate(load_day, YESTERDAY, TODAY)
        assert path.read_text() == (
            "# Wednesday\n"
            "\n"
            "- [x] Water plants\n"
            "\n"
            "Free text that is not a bullet.\n"
        )

    def test_single_id(self, write_day, load_day):
        write_day(YESTERDAY, SAMPLE_DAY)
        result = migrate(load_day, YESTERDAY, TODAY, entry_id=4)

        assert [e.text for e in result.moved] == ["Release train"]
        assert [e.text for e in load_day(TODAY).entries()] == ["Release train"]
        assert len(load_day(YESTERDAY).entries()) == 3

    def test_done_id_moves_nothing(self, write_day, load_day):
        path = write_day(YESTERDAY, SAMPLE_DAY)
        result = migrate(load_day, YESTERDAY, TODAY, entry_id=2)

        assert result.count == 0
        assert path.read_text() == SAMPLE_DAY
        assert load_day(TODAY).exists is False

    def test_unknown_id(self, write_day, load_day):
        write_day(YESTERDAY, SAMPLE_DAY)
        with pytest.raises(NotFound):
            migrate(load_day, YESTERDAY, TODAY, entry_id=9)

    def test_same_day_is_rejected(self, load_day):
        with pytest.raises(MigrationError):
            migrate(load_day, TODAY, TODAY)

    def test_default_target_is_today(self, frozen_time, write_day, load_day):
        write_day(YESTERDAY, "- [ ] carry me\n")
        result = migrate(load_day, YESTERDAY)
        assert result.to_date == date(2025, 11, 5)
        assert load_day(TODAY).get(1).text == "carry me"

    def test_target_is_saved_before_source(self, write_day, load_day, monkeypatch):
        write_day(YESTERDAY, SAMPLE_DAY)
        saved = []
        original = DayStore.save

        def recording_save(self):
            saved.append(self.day)
            original(self)

        monkeypatch.setattr(DayStore, "save", recording_save)
        migrate(load_day, YESTERDAY, TODAY)
        assert saved == [TODAY, YESTERDAY]

    def test_interrupted_migration_duplicates_rather_than_loses(
        self, write_day, load_day, monkeypatch
    ):
        source_path = write_day(YESTERDAY, SAMPLE_DAY)
        original = DayStore.save

        def failing_save(self):
            if self.day == YESTERDAY:
                raise JournalIOError(self.path, OSError("disk full"))
            original(self)

        monkeypatch.setattr(DayStore, "save", failing_save)
        with pytest.raises(JournalIOError):
            migrate(load_day, YESTERDAY, TODAY)

        assert source_path.read_text() == SAMPLE_DAY
        assert len(load_day(TODAY).entries()) == 3
