from datetime import date
from typing import List, Optional

from rich import box
from rich.console import Group
from rich.table import Table
from rich.text import Text

from .entry import Entry, Priority, meeting_prefix
from .shared import NOTE_CHAR, WEEKDAY_HEADER, format_clock
from .views import DayMarker, DayView

DARK_GRAY = "#A9A9A9"
GOLDENROD = "#DAA520"
LEMON_CHIFFON = "#FFFACD"
LIGHT_SKY_BLUE = "#87CEFA"
LIME_GREEN = "#32CD32"
ORANGE_RED = "#FF4500"
DARK_ORANGE = "#FF8C00"
TOMATO = "#FF6347"

PRIORITY_COLOR = {
    Priority.HIGH: ORANGE_RED,
    Priority.MEDIUM: DARK_ORANGE,
    Priority.LOW: LIGHT_SKY_BLUE,
}
DONE_COLOR = DARK_GRAY
TAG_COLOR = GOLDENROD
MEETING_COLOR = LIME_GREEN
DAY_COLOR = LEMON_CHIFFON
TODAY_COLOR = TOMATO

MARKER_LEGEND = "legend: * meeting, + open bullets, . only done, ' ' empty"


def entry_text(entry: Entry, number: bool = True) -> Text:
    """One bullet as it appears in list and week output."""
    line = Text()
    if number and entry.id is not None:
        line.append(f"{entry.id:>3}. ")
    line.append("[x] " if entry.done else "[ ] ")
    if entry.priority:
        line.append(f"{entry.priority.marker} ", style=PRIORITY_COLOR[entry.priority])
    if entry.is_meeting:
        line.append(f"{meeting_prefix(entry)} ", style=MEETING_COLOR)
    line.append(entry.text)
    for tag in entry.tags:
        line.append(f" #{tag}", style=TAG_COLOR)
    if entry.done:
        line.stylize(DONE_COLOR)
    return line


def render_entries(entries: List[Entry], indent: int = 0) -> Group:
    rows = []
    pad = " " * indent
    for entry in entries:
        rows.append(Text(pad) + entry_text(entry))
        for note in entry.notes:
            rows.append(Text(f"{pad}     {NOTE_CHAR} {note}", style=DARK_GRAY))
    return Group(*rows)


def render_week(days: List[DayView], today: Optional[date] = None) -> Group:
    parts = []
    for view in days:
        flag = " (today)" if view.day == today else ""
        style = TODAY_COLOR if view.day == today else DAY_COLOR
        parts.append(Text(f"\n# {view.day:%a %Y-%m-%d}{flag}", style=f"bold {style}"))
        if view.error is not None:
            parts.append(Text(f"  unreadable: {view.error}", style=ORANGE_RED))
            continue
        parts.append(
            Text(f"  Open: {view.open_count}, Done: {view.done_count}", style=DARK_GRAY)
        )
        parts.append(render_entries(view.entries, indent=1))
    return Group(*parts)


def render_month(
    markers: List[DayMarker], today: Optional[date] = None
) -> Table:
    first = markers[0].day
    table = Table(
        title=f"{first:%B %Y}",
        box=box.SIMPLE,
        show_edge=False,
        pad_edge=False,
    )
    for name in WEEKDAY_HEADER:
        table.add_column(name, justify="right")

    week: List[Text] = [Text("") for _ in range(first.weekday())]
    for marker in markers:
        cell = Text(f"{marker.day.day:>2}{marker.marker}")
        if marker.day == today:
            cell.stylize(f"bold {TODAY_COLOR}")
        elif marker.meetings:
            cell.stylize(MEETING_COLOR)
        elif marker.error is not None:
            cell.stylize(ORANGE_RED)
        week.append(cell)
        if len(week) == 7:
            table.add_row(*week)
            week = []
    if week:
        week.extend(Text("") for _ in range(7 - len(week)))
        table.add_row(*week)
    table.caption = MARKER_LEGEND
    return table


def render_meetings(day: date, meetings: List[Entry], ampm: bool = False) -> Group:
    rows = []
    for entry in meetings:
        line = Text(f"{day} ")
        line.append(f"{format_clock(entry.time, ampm):>7}", style=MEETING_COLOR)
        line.append(f" ({entry.duration_minutes}m) ")
        line.append(entry.text)
        for tag in entry.tags:
            line.append(f" #{tag}", style=TAG_COLOR)
        if entry.done:
            line.stylize(DONE_COLOR)
        rows.append(line)
    return Group(*rows)
