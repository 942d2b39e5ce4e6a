from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import time
from enum import Enum, IntEnum
from typing import Iterable, Optional

from .lines import note_line

DEFAULT_DURATION = 60

MEETING_REGEX = re.compile(r"^\[mtg (\d{1,2}):(\d{2})(?: (\d+))?\](?=\s|$)")
PRIORITY_REGEX = re.compile(r"^\((!{1,3})\)(?=\s|$)")
TAG_TAIL_REGEX = re.compile(r"(?:^|\s)#([A-Za-z0-9-]+)\s*$")
TAG_REGEX = re.compile(r"^[a-z0-9-]+$")


class Kind(str, Enum):
    TASK = "task"
    MEETING = "meeting"


class Priority(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @property
    def marker(self) -> str:
        return "(" + "!" * self.value + ")"


PRIORITY_WORDS = {
    "1": Priority.LOW,
    "l": Priority.LOW,
    "low": Priority.LOW,
    "2": Priority.MEDIUM,
    "m": Priority.MEDIUM,
    "med": Priority.MEDIUM,
    "medium": Priority.MEDIUM,
    "3": Priority.HIGH,
    "h": Priority.HIGH,
    "high": Priority.HIGH,
}


def parse_priority(value: Optional[str]) -> Optional[Priority]:
    """Map user input such as 'high', 'm' or '1' to a Priority."""
    if value is None:
        return None
    key = str(value).strip().lower()
    if key not in PRIORITY_WORDS:
        raise ValueError(f"invalid priority: {value}")
    return PRIORITY_WORDS[key]


def normalize_tag(value: str) -> str:
    return value.strip().lstrip("#").lower()


def is_valid_tag(value: str) -> bool:
    return bool(TAG_REGEX.match(normalize_tag(value)))


def normalize_tags(values: Iterable[str]) -> list[str]:
    """Lowercase, strip '#', drop invalid tokens and duplicates, keep order."""
    tags: list[str] = []
    for value in values:
        tag = normalize_tag(value)
        if TAG_REGEX.match(tag) and tag not in tags:
            tags.append(tag)
    return tags


@dataclass
class Entry:
    """
    One journal bullet, either a task or a meeting.

    ``id`` is the 1-based position of the bullet in its day file. It is
    filled in by DayStore.entries() and never written back to the file, so
    it takes no part in equality.
    """

    text: str = ""
    done: bool = False
    kind: Kind = Kind.TASK
    priority: Optional[Priority] = None
    tags: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    time: Optional[time] = None
    duration_minutes: int = DEFAULT_DURATION
    id: Optional[int] = field(default=None, compare=False)

    @classmethod
    def task(cls, text: str, priority=None, tags=(), notes=(), done=False):
        entry = cls(
            text=text.strip(),
            done=done,
            priority=priority,
            tags=normalize_tags(tags),
            notes=[n.strip() for n in notes],
        )
        return canonical(entry)

    @classmethod
    def meeting(
        cls,
        text: str,
        start: time,
        duration_minutes: int = DEFAULT_DURATION,
        priority=None,
        tags=(),
        notes=(),
        done=False,
    ):
        entry = cls(
            text=text.strip(),
            done=done,
            kind=Kind.MEETING,
            priority=priority,
            tags=normalize_tags(tags),
            notes=[n.strip() for n in notes],
            time=start.replace(second=0, microsecond=0),
            duration_minutes=duration_minutes,
        )
        return canonical(entry)

    @property
    def is_meeting(self) -> bool:
        return self.kind is Kind.MEETING and self.time is not None


def _split_meeting(rest: str) -> tuple[Optional[time], int, str]:
    m = MEETING_REGEX.match(rest)
    if not m:
        return None, DEFAULT_DURATION, rest
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        # keep the raw prefix as part of the title
        return None, DEFAULT_DURATION, rest
    duration = int(m.group(3)) if m.group(3) else DEFAULT_DURATION
    return time(hour, minute), duration, rest[m.end() :]


def _split_priority(rest: str) -> tuple[Optional[Priority], str]:
    m = PRIORITY_REGEX.match(rest)
    if not m:
        return None, rest
    return Priority(len(m.group(1))), rest[m.end() :]


def _split_tags(rest: str) -> tuple[str, list[str]]:
    found = []
    while True:
        m = TAG_TAIL_REGEX.search(rest)
        if not m:
            break
        found.append(m.group(1).lower())
        rest = rest[: m.start()]
    tags: list[str] = []
    for tag in reversed(found):
        if tag not in tags:
            tags.append(tag)
    return rest, tags


def decode(remainder: str, done: bool = False, notes: Iterable[str] = ()) -> Entry:
    """
    Decode the part of a bullet line after the checkbox.

    Never raises: a malformed meeting prefix or priority marker simply stays
    in the title.
    """
    rest = remainder.strip()
    start, duration, rest = _split_meeting(rest)
    rest = rest.lstrip()
    priority, rest = _split_priority(rest)
    text, tags = _split_tags(rest)
    entry = Entry(
        text=text.strip(),
        done=done,
        priority=priority,
        tags=tags,
        notes=[n.strip() for n in notes],
    )
    if start is not None:
        entry.kind = Kind.MEETING
        entry.time = start
        entry.duration_minutes = duration
    return entry


def meeting_prefix(entry: Entry) -> str:
    if not entry.is_meeting:
        return ""
    if entry.duration_minutes == DEFAULT_DURATION:
        return f"[mtg {entry.time:%H:%M}]"
    return f"[mtg {entry.time:%H:%M} {entry.duration_minutes}]"


def _encode_remainder(entry: Entry) -> str:
    parts = [
        meeting_prefix(entry),
        entry.priority.marker if entry.priority else "",
        entry.text.strip(),
    ]
    parts.extend(f"#{tag}" for tag in normalize_tags(entry.tags))
    return " ".join(p for p in parts if p)


def encode_bullet(entry: Entry) -> str:
    checkbox = "- [x]" if entry.done else "- [ ]"
    remainder = _encode_remainder(entry)
    return f"{checkbox} {remainder}" if remainder else checkbox


def canonical(entry: Entry) -> Entry:
    """
    Return ``entry`` as it reads back from a day file. Tags at the end of
    the title, or a priority marker or meeting prefix at its start, move
    into their fields; text that only looks like one stays in the title.
    """
    folded = decode(_encode_remainder(entry), done=entry.done, notes=entry.notes)
    folded.id = entry.id
    return folded


def encode(entry: Entry) -> list[str]:
    """Return the bullet line followed by one line per note."""
    return [encode_bullet(entry)] + [note_line(n) for n in entry.notes]
