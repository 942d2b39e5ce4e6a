"""
Moving open bullets from one day to another.

The target day is saved before the source day. A crash between the two
saves leaves the moved bullets in both files, never in neither.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Callable, List, Optional

from .entry import Entry
from .errors import MigrationError
from .model import DayStore
from .shared import log_msg


@dataclass
class MigrationResult:
    from_date: date
    to_date: date
    moved: List[Entry] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.moved)


def migrate(
    load: Callable[[date], DayStore],
    from_date: date,
    to_date: Optional[date] = None,
    entry_id: Optional[int] = None,
) -> MigrationResult:
    """
    Move the open bullets of ``from_date`` (or only bullet ``entry_id``) to
    the end of ``to_date``. Raises NotFound for an unknown ``entry_id``; a
    bullet that is already done is simply not moved.
    """
    if to_date is None:
        to_date = date.today()
    if from_date == to_date:
        raise MigrationError(f"cannot migrate {from_date} onto itself")

    source = load(from_date)
    if entry_id is not None:
        candidates = [source.get(entry_id)]
    else:
        candidates = source.entries()
    selected = [e for e in candidates if not e.done]

    result = MigrationResult(from_date, to_date)
    if not selected:
        log_msg(f"nothing to migrate from {from_date}")
        return result

    target = load(to_date)
    for entry in selected:
        moved = replace(entry, done=False, tags=list(entry.tags), notes=list(entry.notes))
        target.add(moved)
        result.moved.append(moved)

    # highest id first so the remaining ids stay valid
    for entry in sorted(selected, key=lambda e: e.id, reverse=True):
        source.delete(entry.id)

    target.save()
    source.save()
    log_msg(f"migrated {result.count} bullets from {from_date} to {to_date}")
    return result
