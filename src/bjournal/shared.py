import inspect
import textwrap
import shutil
import os
from datetime import date, datetime, time, timedelta
from pathlib import Path
from dateutil.parser import parse as dateutil_parse
from dateutil.parser import ParserError

from .bj_env import JournalEnvironment

NOTE_CHAR = "↳"

WEEKDAY_HEADER = ["Mo", "Tu", "We", "Th", "Fr", "Sa", "Su"]


def parse_date_text(s: str, today: date | None = None) -> date:
    """
    Parse a user supplied date. Accepts 'today', 'yesterday', 'tomorrow',
    YYYY-MM-DD and anything dateutil understands (e.g. 'Nov 4').
    Raises ValueError when nothing sensible can be made of ``s``.
    """
    today = today or date.today()
    text = (s or "").strip().lower()
    if not text:
        raise ValueError("empty date")
    relative = {"today": 0, "now": 0, "yesterday": -1, "tomorrow": 1}
    if text in relative:
        return today + timedelta(days=relative[text])
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        pass
    try:
        return dateutil_parse(
            text, default=datetime.combine(today, time(0, 0)), yearfirst=True
        ).date()
    except (ParserError, OverflowError) as e:
        raise ValueError(f"invalid date: {s}") from e


def parse_time_text(s: str) -> time:
    """Parse HH:MM (24h)."""
    try:
        return datetime.strptime(s.strip(), "%H:%M").time()
    except ValueError as e:
        raise ValueError(f"invalid time: {s}") from e


def format_clock(t: time, ampm: bool = False) -> str:
    if not ampm:
        return t.strftime("%H:%M")
    suffix = "am" if t.hour < 12 else "pm"
    hour = t.hour % 12 or 12
    return f"{hour}:{t.minute:02d}{suffix}"


def _get_runtime_home() -> Path:
    override = os.environ.get("BJ_HOME")
    if override:
        return Path(override).expanduser()
    return JournalEnvironment().home


def _resolve_log_file_path(file_path: str | Path) -> Path:
    path = Path(file_path)
    if path.is_absolute():
        return path
    return _get_runtime_home() / path


def _default_log_relative_path(kind: str) -> Path:
    """Return logs/log_<YYMMDD>.md style paths under the runtime home."""
    suffix = datetime.now().strftime("%y%m%d")
    return Path("logs") / f"{kind}_{suffix}.md"


def log_msg(
    msg: str,
    file_path: str | Path | None = None,
    print_output: bool = False,
):
    """
    Log a message and save it directly to a file.

    Args:
        msg (str): The message to log.
        file_path (str | Path | None, optional): Overrides the default path when
            provided. Defaults to ``None`` which writes to ``logs/log_<YYMMDD>.md``.
        print_output (bool, optional): If True, also print to console.
    """
    frame = inspect.stack()[1].frame
    func_name = frame.f_code.co_name

    caller_name = func_name
    if "self" in frame.f_locals:
        cls_name = frame.f_locals["self"].__class__.__name__
        caller_name = f"{cls_name}.{func_name}"
    elif "cls" in frame.f_locals:
        cls_name = frame.f_locals["cls"].__name__
        caller_name = f"{cls_name}.{func_name}"

    lines = [
        f"- {datetime.now().strftime('%H:%M:%S')} log_msg ({caller_name}):  ",
    ]
    lines.extend(
        [
            f"\n{x}"
            for x in textwrap.wrap(
                msg.strip(),
                width=max(20, shutil.get_terminal_size()[0] - 6),
                initial_indent="   ",
                subsequent_indent="   ",
            )
        ]
    )
    lines.append("\n\n")

    # Best-effort file logging; fall back to console when the file is unwritable.
    if file_path is None:
        file_path = _default_log_relative_path("log")
    log_path = _resolve_log_file_path(file_path)

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(log_path, "a", encoding="utf-8") as f:
            f.writelines(lines)
    except OSError:
        print_output = True

    if print_output:
        print("".join(lines))
