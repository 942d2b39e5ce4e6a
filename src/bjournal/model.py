import os
import shutil
import tempfile
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import List, Optional

from .entry import Entry, decode, encode
from .errors import JournalIOError, NotFound
from .lines import Bullet, Note, classify
from .shared import log_msg


def atomic_write(path: Path, content: str) -> None:
    """
    Replace ``path`` with ``content`` via a temporary file in the same
    directory followed by a rename. The parent directory must exist.
    """
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        if path.exists():
            # mkstemp creates 0600; keep the mode of the file being replaced
            shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)


@dataclass(frozen=True)
class Span:
    """Location of one bullet: its line index and the number of note lines."""

    start: int
    notes: int

    @property
    def end(self) -> int:
        return self.start + 1 + self.notes


def scan(lines: List[str]) -> List[tuple[Span, Entry]]:
    """
    Pure function from the line sequence to the entries it holds, in file
    order, with 1-based ids. Notes belong to a bullet only when they follow
    it without any other line in between.
    """
    found = []
    idx = 0
    while idx < len(lines):
        kind = classify(lines[idx])
        if not isinstance(kind, Bullet):
            idx += 1
            continue
        notes = []
        nxt = idx + 1
        while nxt < len(lines):
            note = classify(lines[nxt])
            if not isinstance(note, Note):
                break
            notes.append(note.text)
            nxt += 1
        entry = decode(kind.remainder, done=kind.done, notes=notes)
        entry.id = len(found) + 1
        found.append((Span(idx, len(notes)), entry))
        idx = nxt
    return found


class DayStore:
    """
    The raw lines of one day's file together with the operations that
    address bullets by their positional id.

    Only lines of bullets that are changed get re-encoded; everything else
    is written back exactly as it was read.
    """

    def __init__(
        self,
        day: date,
        path: Path,
        lines: Optional[List[str]] = None,
        trailing_newline: bool = True,
        exists: bool = False,
    ):
        self.day = day
        self.path = Path(path)
        self.lines: List[str] = list(lines or [])
        self.trailing_newline = trailing_newline
        self.exists = exists

    @classmethod
    def load(cls, day: date, path: Path) -> "DayStore":
        """A missing file is an empty day; any other read failure is an error."""
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                content = f.read()
        except FileNotFoundError:
            return cls(day, path)
        except OSError as e:
            raise JournalIOError(path, e) from e
        except UnicodeDecodeError as e:
            raise JournalIOError(path, OSError(f"not valid UTF-8: {e.reason}")) from e

        # split on "\n" only so that every other character survives a save
        if content.endswith("\n"):
            lines, trailing = content[:-1].split("\n"), True
        elif content:
            lines, trailing = content.split("\n"), False
        else:
            lines, trailing = [], True
        return cls(day, path, lines, trailing_newline=trailing, exists=True)

    def text(self) -> str:
        if not self.lines:
            return ""
        body = "\n".join(self.lines)
        return body + "\n" if self.trailing_newline else body

    def save(self) -> None:
        try:
            atomic_write(self.path, self.text())
        except OSError as e:
            raise JournalIOError(self.path, e) from e
        self.exists = True
        log_msg(f"saved {len(self.entries())} bullets to {self.path}")

    # ─── Reading ─────────────────────────────────────────────

    def entries(self) -> List[Entry]:
        return [entry for _, entry in scan(self.lines)]

    def __len__(self) -> int:
        return len(scan(self.lines))

    def get(self, entry_id: int) -> Entry:
        return self._locate(entry_id)[1]

    def _locate(self, entry_id: int) -> tuple[Span, Entry]:
        found = scan(self.lines)
        if not 1 <= entry_id <= len(found):
            raise NotFound(entry_id, len(found))
        return found[entry_id - 1]

    # ─── Mutations ───────────────────────────────────────────

    def add(self, entry: Entry) -> int:
        """Append ``entry`` (and its notes) and return its new id."""
        new_id = len(self) + 1
        self.lines.extend(encode(entry))
        self.trailing_newline = True
        entry.id = new_id
        return new_id

    def update(self, entry_id: int, entry: Entry) -> Entry:
        """Replace the bullet and its notes with the encoding of ``entry``."""
        span, _ = self._locate(entry_id)
        self.lines[span.start : span.end] = encode(entry)
        entry.id = entry_id
        return entry

    def set_done(self, entry_id: int, done: bool = True) -> Entry:
        """Rewrite only the bullet line; its note lines stay as they are."""
        span, entry = self._locate(entry_id)
        entry.done = done
        self.lines[span.start] = encode(entry)[0]
        return entry

    def mark_done(self, entry_id: int) -> Entry:
        return self.set_done(entry_id, True)

    def add_note(self, entry_id: int, text: str) -> Entry:
        span, entry = self._locate(entry_id)
        entry.notes.append(text.strip())
        self.lines.insert(span.end, encode(entry)[-1])
        return entry

    def delete(self, entry_id: int) -> Entry:
        span, entry = self._locate(entry_id)
        del self.lines[span.start : span.end]
        return entry
