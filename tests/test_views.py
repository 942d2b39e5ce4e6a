from datetime import date, datetime, time

import pytest

from bjournal.entry import Entry, Priority, decode
from bjournal.views import (
    EntryFilter,
    meetings_in_window,
    month_dates,
    month_markers,
    sorted_meetings,
    week_dates,
    week_view,
)

from conftest import SAMPLE_DAY, TODAY


@pytest.mark.unit
class TestEntryFilter:
    entries = [
        decode("First #work #urgent"),
        decode("Second #work"),
        decode("(!!!) Loud"),
        decode("(!!) Medium #urgent"),
    ]

    def test_tag_filter(self):
        assert [e.text for e in EntryFilter.build(["urgent"]).apply(self.entries)] == [
            "First",
            "Medium",
        ]

    def test_all_filter_tags_must_match(self):
        flt = EntryFilter.build(["work", "urgent"])
        assert [e.text for e in flt.apply(self.entries)] == ["First"]

    def test_priority_filter_is_exact(self):
        flt = EntryFilter.build(priority=Priority.HIGH)
        assert [e.text for e in flt.apply(self.entries)] == ["Loud"]

    def test_tag_and_priority(self):
        flt = EntryFilter.build(["urgent"], Priority.MEDIUM)
        assert [e.text for e in flt.apply(self.entries)] == ["Medium"]

    def test_empty_filter_is_identity(self):
        flt = EntryFilter()
        assert flt.is_empty
        assert flt.apply(self.entries) == self.entries

    def test_filter_tags_are_normalized(self):
        assert EntryFilter.build(["#Urgent"]).tags == ("urgent",)

    def test_invalid_filter_tag_matches_nothing(self):
        flt = EntryFilter.build(["foo_bar"])
        assert not flt.is_empty
        assert flt.apply(self.entries) == []


@pytest.mark.unit
class TestCalendarRanges:
    def test_week_starts_monday(self):
        days = week_dates(TODAY)
        assert days[0] == date(2025, 11, 3)
        assert days[-1] == date(2025, 11, 9)
        assert week_dates(date(2025, 11, 3)) == days
        assert week_dates(date(2025, 11, 9)) == days

    def test_week_across_year_end(self):
        days = week_dates(date(2026, 1, 1))
        assert days[0] == date(2025, 12, 29)
        assert days[-1] == date(2026, 1, 4)

    @pytest.mark.parametrize(
        "ref, length",
        [(date(2024, 2, 10), 29), (date(2025, 2, 1), 28), (date(2025, 12, 31), 31), (TODAY, 30)],
    )
    def test_month_lengths(self, ref, length):
        days = month_dates(ref)
        assert len(days) == length
        assert days[0].day == 1
        assert all(d.month == ref.month for d in days)


@pytest.mark.unit
class TestWeekView:
    def test_per_day_entries_in_date_order(self, write_day, load_day):
        write_day(date(2025, 11, 3), "- [ ] monday task #work\n")
        write_day(TODAY, SAMPLE_DAY)

        days = week_view(load_day, TODAY)

        assert [d.day for d in days] == week_dates(TODAY)
        assert [e.text for e in days[0].entries] == ["monday task"]
        assert days[1].entries == []
        assert len(days[2].entries) == 4
        assert (days[2].open_count, days[2].done_count) == (3, 1)

    def test_filter_applies_per_day(self, write_day, load_day):
        write_day(date(2025, 11, 3), "- [ ] monday task #work\n- [ ] other\n")
        write_day(TODAY, SAMPLE_DAY)

        days = week_view(load_day, TODAY, EntryFilter.build(["urgent"]))

        assert days[0].entries == []
        assert [e.text for e in days[2].entries] == ["Release train"]

    def test_unreadable_day_does_not_abort_week(self, test_env, write_day, load_day):
        test_env.path_for(date(2025, 11, 4)).mkdir()
        write_day(TODAY, SAMPLE_DAY)

        days = week_view(load_day, TODAY)

        assert days[1].entries == []
        assert days[1].error is not None
        assert days[2].error is None
        assert len(days[2].entries) == 4


@pytest.mark.unit
class TestMonthMarkers:
    def test_markers(self, test_env, write_day, load_day):
        write_day(date(2025, 11, 1), "- [x] only done\n")
        write_day(date(2025, 11, 2), "- [ ] open\n- [x] done\n")
        write_day(TODAY, SAMPLE_DAY)
        write_day(date(2025, 11, 6), "# empty heading\n")
        test_env.path_for(date(2025, 11, 7)).mkdir()

        markers = {m.day.day: m for m in month_markers(load_day, TODAY)}

        assert len(markers) == 30
        assert markers[1].marker == "."
        assert markers[2].marker == "+"
        assert markers[5].marker == "*"
        assert (markers[5].total, markers[5].open, markers[5].meetings) == (4, 3, 1)
        assert markers[6].marker == " "
        assert not markers[6].has_entries
        assert markers[7].marker == " "
        assert markers[7].error is not None
        assert markers[30].error is None


@pytest.mark.unit
class TestMeetingWindow:
    meetings = [
        Entry.meeting("Team sync", time(15, 0)),
        Entry.meeting("Early", time(9, 0)),
        Entry.task("Not a meeting"),
        Entry.meeting("Late", time(23, 59)),
    ]

    def test_inside_window(self):
        now = datetime(2025, 11, 5, 14, 50)
        selected = meetings_in_window(self.meetings, now, 15)
        assert [e.text for e in selected] == ["Team sync"]

    def test_outside_window(self):
        now = datetime(2025, 11, 5, 14, 50)
        assert meetings_in_window(self.meetings, now, 5) == []

    def test_window_edges_are_inclusive(self):
        assert meetings_in_window(self.meetings, datetime(2025, 11, 5, 15, 0), 0)
        assert meetings_in_window(self.meetings, datetime(2025, 11, 5, 14, 45), 15)

    def test_seconds_of_now_are_ignored(self):
        now = datetime(2025, 11, 5, 15, 0, 40)
        assert [e.text for e in meetings_in_window(self.meetings, now, 10)] == ["Team sync"]

    def test_started_meetings_are_not_selected(self):
        now = datetime(2025, 11, 5, 15, 1)
        assert [e.text for e in meetings_in_window(self.meetings, now, 60)] == []

    def test_no_cross_midnight_carry(self):
        meetings = [Entry.meeting("Breakfast", time(0, 10))]
        now = datetime(2025, 11, 5, 23, 55)
        assert meetings_in_window(meetings, now, 30) == []

    def test_sorted_meetings(self):
        assert [e.text for e in sorted_meetings(self.meetings)] == [
            "Early",
            "Team sync",
            "Late",
        ]
