from __future__ import annotations

import shlex
import shutil
import subprocess
from datetime import date, datetime, time, timedelta
from typing import Callable, List, Optional

from rich import print as rprint
from rich.markup import escape

from .bj_env import JournalEnvironment
from .entry import Entry, Priority, canonical, normalize_tags
from .migrate import MigrationResult, migrate
from .model import DayStore, atomic_write
from .shared import format_clock, log_msg
from .views import (
    DayMarker,
    DayView,
    EntryFilter,
    meetings_in_window,
    month_markers,
    sorted_meetings,
    week_view,
)

NOTIFY_TITLE = "Upcoming meeting"


class Controller:
    """
    Entry point for every journal operation. Owns nothing but the
    environment (configuration and date -> path resolution), the clock and
    the notification sink; every call loads the day files it needs.
    """

    def __init__(
        self,
        env: JournalEnvironment,
        clock: Optional[Callable[[], datetime]] = None,
        notifier: Optional[Callable[[str, str], None]] = None,
    ):
        self.env = env
        self.clock = clock or datetime.now
        self.notifier = notifier or self.send_notification

    @property
    def AMPM(self) -> bool:
        return self.env.config.ui.ampm

    def now(self) -> datetime:
        return self.clock()

    def today(self) -> date:
        return self.now().date()

    def load(self, day: date) -> DayStore:
        return DayStore.load(day, self.env.path_for(day))

    # ─── Bullets ─────────────────────────────────────────────

    def add_entry(
        self,
        day: date,
        text: str,
        priority: Optional[Priority] = None,
        tags=(),
        notes=(),
    ) -> Entry:
        store = self.load(day)
        entry = Entry.task(text, priority=priority, tags=tags, notes=notes)
        store.add(entry)
        store.save()
        return entry

    def add_meeting(
        self,
        day: date,
        start: time,
        text: str,
        duration: Optional[int] = None,
        tags=(),
        notes=(),
        priority: Optional[Priority] = None,
    ) -> Entry:
        if duration is None:
            duration = self.env.config.meetings.duration
        store = self.load(day)
        entry = Entry.meeting(
            text, start, duration, priority=priority, tags=tags, notes=notes
        )
        store.add(entry)
        store.save()
        return entry

    def list_entries(
        self, day: date, entry_filter: Optional[EntryFilter] = None
    ) -> List[Entry]:
        entries = self.load(day).entries()
        if entry_filter is None:
            return entries
        return entry_filter.apply(entries)

    def mark_done(self, day: date, entry_id: int, done: bool = True) -> Entry:
        store = self.load(day)
        entry = store.set_done(entry_id, done)
        store.save()
        return entry

    def delete_entry(self, day: date, entry_id: int) -> Entry:
        store = self.load(day)
        entry = store.delete(entry_id)
        store.save()
        return entry

    def edit_entry(
        self,
        day: date,
        entry_id: int,
        text: Optional[str] = None,
        priority: Optional[Priority] = None,
        clear_priority: bool = False,
        tags=None,
        notes=(),
    ) -> Entry:
        """
        Change the title, priority or tags of a bullet and append notes.
        ``tags`` replaces the existing tags when given.
        """
        store = self.load(day)
        entry = store.get(entry_id)
        if text is not None:
            entry.text = text.strip()
        if clear_priority:
            entry.priority = None
        elif priority is not None:
            entry.priority = priority
        if tags is not None:
            entry.tags = normalize_tags(tags)
        entry.notes.extend(n.strip() for n in notes)
        entry = canonical(entry)
        store.update(entry_id, entry)
        store.save()
        return entry

    def migrate(
        self,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        entry_id: Optional[int] = None,
    ) -> MigrationResult:
        """Defaults: from yesterday to today."""
        today = self.today()
        if to_date is None:
            to_date = today
        if from_date is None:
            from_date = today - timedelta(days=1)
        return migrate(self.load, from_date, to_date, entry_id)

    # ─── Views ───────────────────────────────────────────────

    def week(
        self, ref: Optional[date] = None, entry_filter: Optional[EntryFilter] = None
    ) -> List[DayView]:
        return week_view(self.load, ref or self.today(), entry_filter)

    def month(self, ref: Optional[date] = None) -> List[DayMarker]:
        return month_markers(self.load, ref or self.today())

    def meetings(self, day: date) -> List[Entry]:
        return sorted_meetings(self.load(day).entries())

    # ─── Meeting notifications ───────────────────────────────

    def upcoming_meetings(
        self, window: Optional[int] = None, now: Optional[datetime] = None
    ) -> List[Entry]:
        if window is None:
            window = self.env.config.meetings.window
        if now is None:
            now = self.now()
        return meetings_in_window(self.load(now.date()).entries(), now, window)

    def _read_notified(self) -> set[str]:
        path = self.env.notified_path
        try:
            return set(path.read_text(encoding="utf-8").split())
        except FileNotFoundError:
            return set()
        except OSError as e:
            log_msg(f"cannot read {path}: {e}")
            return set()

    def notify_upcoming(self, window: Optional[int] = None) -> List[Entry]:
        """
        Send one notification per meeting starting within ``window`` minutes.
        Meetings already notified today are skipped.
        """
        now = self.now().replace(second=0, microsecond=0)
        today = now.date().isoformat()
        sent = self._read_notified()
        notified = []
        for entry in self.upcoming_meetings(window, now):
            key = f"{today}|{entry.time:%H:%M}"
            if key in sent:
                continue
            start = datetime.combine(now.date(), entry.time, tzinfo=now.tzinfo)
            minutes = int((start - now).total_seconds() // 60)
            message = (
                f"{entry.text} at {format_clock(entry.time, self.AMPM)} "
                f"(in {minutes} min)"
            )
            self.notifier(NOTIFY_TITLE, message)
            sent.add(key)
            notified.append(entry)

        if notified:
            # keys from earlier days can never match again
            keep = sorted(k for k in sent if k.startswith(f"{today}|"))
            try:
                atomic_write(self.env.notified_path, "\n".join(keep) + "\n")
            except OSError as e:
                log_msg(f"cannot record notified meetings: {e}")
        return notified

    def send_notification(self, title: str, message: str):
        """
        Dispatch through the configured notify command. A missing command
        falls back to printing; failures are logged and otherwise ignored.
        """
        command = self.env.config.meetings.notify_command
        args = shlex.split(command) if command else []
        if not args or shutil.which(args[0]) is None:
            rprint(f"[bold]{title}:[/bold] {escape(message)}")
            return
        try:
            subprocess.run(args + [title, message], check=True)
            log_msg(f"notified: {message}")
        except (subprocess.CalledProcessError, OSError) as e:
            log_msg(f"notification failed for {message!r}: {e}")
