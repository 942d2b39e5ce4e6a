from pathlib import Path


class JournalError(Exception):
    """Base class for errors raised by the journal core."""


class NotFound(JournalError):
    def __init__(self, entry_id: int, count: int):
        self.entry_id = entry_id
        self.count = count
        if count:
            msg = f"bullet {entry_id} not found (valid ids: 1-{count})"
        else:
            msg = f"bullet {entry_id} not found (no bullets)"
        super().__init__(msg)


class JournalIOError(JournalError):
    """Read/write failure for a day file. The OSError is kept as ``cause``."""

    def __init__(self, path: Path, cause: OSError):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"{self.path}: {cause.strerror or cause}")


class MigrationError(JournalError):
    pass
