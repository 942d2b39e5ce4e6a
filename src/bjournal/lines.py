"""
Line classification for day files.

Every raw line is exactly one of ``Bullet``, ``Note`` or ``Other``.
``classify`` is total: anything it does not recognise comes back as ``Other``
holding the raw text, so hand edited files never fail to load.
"""

import re
from dataclasses import dataclass
from typing import Union

BULLET_REGEX = re.compile(r"^\s*- \[([ x])\](?: (.*))?$")
NOTE_REGEX = re.compile(r"^ {2,}- note:(?: (.*))?$")

NOTE_PREFIX = "  - note: "


@dataclass(frozen=True)
class Bullet:
    done: bool
    remainder: str


@dataclass(frozen=True)
class Note:
    text: str


@dataclass(frozen=True)
class Other:
    raw: str


Line = Union[Bullet, Note, Other]


def classify(line: str) -> Line:
    """
    >>> classify("- [x] ship it")
    Bullet(done=True, remainder='ship it')
    >>> classify("  - note: call back")
    Note(text='call back')
    >>> classify("## Monday")
    Other(raw='## Monday')
    """
    m = BULLET_REGEX.match(line)
    if m:
        return Bullet(done=m.group(1) == "x", remainder=m.group(2) or "")
    m = NOTE_REGEX.match(line)
    if m:
        return Note(text=(m.group(1) or "").strip())
    return Other(raw=line)


def note_line(text: str) -> str:
    return f"{NOTE_PREFIX}{text.strip()}"
