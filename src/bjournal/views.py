from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from .entry import Entry, Priority, normalize_tag
from .errors import JournalIOError
from .model import DayStore
from .shared import log_msg


@dataclass(frozen=True)
class EntryFilter:
    """
    Narrow entries by tags (all must be present) and/or exact priority.
    An empty filter lets everything through.
    """

    tags: tuple[str, ...] = ()
    priority: Optional[Priority] = None

    @classmethod
    def build(cls, tags: Iterable[str] = (), priority: Optional[Priority] = None):
        # a token that can never be a tag is kept so that it matches nothing
        wanted: list[str] = []
        for tag in map(normalize_tag, tags):
            if tag and tag not in wanted:
                wanted.append(tag)
        return cls(tuple(wanted), priority)

    @property
    def is_empty(self) -> bool:
        return not self.tags and self.priority is None

    def matches(self, entry: Entry) -> bool:
        if self.priority is not None and entry.priority != self.priority:
            return False
        return set(self.tags) <= set(entry.tags)

    def apply(self, entries: Iterable[Entry]) -> List[Entry]:
        return [e for e in entries if self.matches(e)]


def week_dates(ref: date) -> List[date]:
    """Monday through Sunday of the week containing ``ref``."""
    monday = ref - timedelta(days=ref.weekday())
    return [monday + timedelta(days=i) for i in range(7)]


def month_dates(ref: date) -> List[date]:
    first = ref.replace(day=1)
    last = first + relativedelta(months=1) - timedelta(days=1)
    return [first + timedelta(days=i) for i in range(last.day)]


@dataclass
class DayView:
    day: date
    entries: List[Entry] = field(default_factory=list)
    error: Optional[JournalIOError] = None

    @property
    def open_count(self) -> int:
        return sum(1 for e in self.entries if not e.done)

    @property
    def done_count(self) -> int:
        return sum(1 for e in self.entries if e.done)


@dataclass
class DayMarker:
    day: date
    total: int = 0
    open: int = 0
    meetings: int = 0
    error: Optional[JournalIOError] = None

    @property
    def has_entries(self) -> bool:
        return self.total > 0

    @property
    def marker(self) -> str:
        if self.meetings:
            return "*"
        if self.open:
            return "+"
        if self.total:
            return "."
        return " "


def _read_day(load: Callable[[date], DayStore], day: date):
    """An unreadable day counts as empty; the error is logged and returned."""
    try:
        return load(day).entries(), None
    except JournalIOError as e:
        log_msg(f"skipping {day}: {e}")
        return [], e


def week_view(
    load: Callable[[date], DayStore],
    ref: date,
    entry_filter: Optional[EntryFilter] = None,
) -> List[DayView]:
    entry_filter = entry_filter or EntryFilter()
    days = []
    for day in week_dates(ref):
        entries, error = _read_day(load, day)
        days.append(DayView(day, entry_filter.apply(entries), error))
    return days


def month_markers(load: Callable[[date], DayStore], ref: date) -> List[DayMarker]:
    markers = []
    for day in month_dates(ref):
        entries, error = _read_day(load, day)
        markers.append(
            DayMarker(
                day,
                total=len(entries),
                open=sum(1 for e in entries if not e.done),
                meetings=sum(1 for e in entries if e.is_meeting),
                error=error,
            )
        )
    return markers


def sorted_meetings(entries: Iterable[Entry]) -> List[Entry]:
    return sorted((e for e in entries if e.is_meeting), key=lambda e: e.time)


def meetings_in_window(
    entries: Iterable[Entry], now: datetime, window_minutes: int
) -> List[Entry]:
    """
    Meetings starting in [now, now + window_minutes] on the day of ``now``.
    ``now`` is taken at minute resolution; nothing carries past midnight.
    """
    now = now.replace(second=0, microsecond=0)
    until = now + timedelta(minutes=window_minutes)
    selected = []
    for entry in sorted_meetings(entries):
        start = datetime.combine(now.date(), entry.time, tzinfo=now.tzinfo)
        if now <= start <= until:
            selected.append(entry)
    return selected
