import os
import sys
import functools
import click
from rich import print
from rich.console import Console
from rich.markup import escape

from datetime import date

from bjournal.bj_env import JournalEnvironment
from bjournal.controller import Controller
from bjournal.entry import is_valid_tag, parse_priority
from bjournal.errors import JournalError
from bjournal.shared import parse_date_text, parse_time_text
from bjournal.versioning import get_version
from bjournal.view import (
    render_entries,
    render_meetings,
    render_month,
    render_week,
)
from bjournal.views import EntryFilter


class _DateParam(click.ParamType):
    name = "date"

    def convert(self, value, param, ctx):
        if value is None:
            return None
        if isinstance(value, date):
            return value
        try:
            return parse_date_text(str(value))
        except ValueError:
            self.fail("Expected YYYY-MM-DD, 'today', 'yesterday' or 'tomorrow'", param, ctx)


class _PriorityParam(click.ParamType):
    name = "priority"

    def convert(self, value, param, ctx):
        if value is None:
            return None
        try:
            return parse_priority(value)
        except ValueError:
            self.fail("Expected low|med|high or 1|2|3", param, ctx)


class _TimeParam(click.ParamType):
    name = "HH:MM"

    def convert(self, value, param, ctx):
        try:
            return parse_time_text(str(value))
        except ValueError:
            self.fail(f"invalid time: {value}", param, ctx)


_DATE = _DateParam()
_PRIORITY = _PriorityParam()
_TIME = _TimeParam()

VERSION = get_version()


def _check_tags(ctx, param, value):
    bad = [t for t in value if not is_valid_tag(t)]
    if bad:
        raise click.BadParameter(
            f"tags may only contain letters, digits and '-': {', '.join(bad)}"
        )
    return value


def _date_option(help_text="Date YYYY-MM-DD (default: today)."):
    return click.option("--date", "-d", "day", type=_DATE, help=help_text)


def reports_errors(f):
    """Turn JournalError into a red message and exit status 1."""

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except JournalError as e:
            print(f"[red]✘ {escape(str(e))}[/red]")
            sys.exit(1)

    return wrapper


@click.group()
@click.version_option(VERSION, prog_name="bj", message="%(prog)s version %(version)s")
@click.option(
    "--home",
    help="Override the bj home directory (equivalent to setting $BJ_HOME).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, home, verbose):
    """bj – a bullet journal that stores one Markdown file per day."""
    if home:
        os.environ["BJ_HOME"] = home  # Must be set before JournalEnvironment is instantiated

    env = JournalEnvironment()
    try:
        env.ensure(init_config=True)
    except OSError as e:
        print(f"[red]✘ Cannot prepare {env.home}: {escape(str(e))}[/red]")
        sys.exit(1)
    config = env.config

    ctx.ensure_object(dict)
    ctx.obj["ENV"] = env
    ctx.obj["CONTROLLER"] = Controller(env)
    ctx.obj["CONSOLE"] = Console(
        no_color=not config.ui.color,
        highlight=False,
    )
    ctx.obj["VERBOSE"] = verbose
    if verbose:
        print(f"[blue]bj version:[/blue] {VERSION}")
        print(f"[blue]journal directory:[/blue] {env.journal_dir}")


@cli.command()
@click.argument("text", nargs=-1)
@_date_option()
@click.option("--priority", "-p", type=_PRIORITY, help="low, med, high (or 1/2/3).")
@click.option("--tag", "-t", "tags", multiple=True, callback=_check_tags, help="Tag (repeatable).")
@click.option("--note", "-n", "notes", multiple=True, help="Note line (repeatable).")
@click.pass_context
@reports_errors
def add(ctx, text, day, priority, tags, notes):
    """Add a bullet to a date (default today)."""
    controller = ctx.obj["CONTROLLER"]
    title = " ".join(text).strip()
    if not title:
        print("[red]✘ No bullet text provided.[/red]")
        sys.exit(1)
    day = day or controller.today()
    entry = controller.add_entry(day, title, priority=priority, tags=tags, notes=notes)
    print(f"[green]✔ Added[/green] #{entry.id} to {controller.env.path_for(day)}")


@cli.command(name="list")
@_date_option()
@click.option("--tag", "-t", "tags", multiple=True, callback=_check_tags, help="Filter by tag (repeatable).")
@click.option("--priority", "-p", type=_PRIORITY, help="Filter by priority.")
@click.pass_context
@reports_errors
def list_(ctx, day, tags, priority):
    """List bullets for a date (default today)."""
    controller = ctx.obj["CONTROLLER"]
    console = ctx.obj["CONSOLE"]
    day = day or controller.today()
    entries = controller.list_entries(day, EntryFilter.build(tags, priority))
    if not entries:
        console.print(f"No bullets for {day}")
        return
    console.print(render_entries(entries))


@cli.command()
@click.argument("entry_id", metavar="ID", type=int)
@_date_option()
@click.option("--undo", is_flag=True, help="Mark the bullet open again.")
@click.pass_context
@reports_errors
def done(ctx, entry_id, day, undo):
    """Mark a bullet done by ID."""
    controller = ctx.obj["CONTROLLER"]
    day = day or controller.today()
    entry = controller.mark_done(day, entry_id, done=not undo)
    state = "open" if undo else "done"
    print(f"[green]✔ Marked {state}:[/green] {day} #{entry_id} {escape(entry.text)}")


@cli.command()
@click.argument("entry_id", metavar="ID", type=int)
@_date_option()
@click.pass_context
@reports_errors
def delete(ctx, entry_id, day):
    """Delete a bullet (and its notes) by ID."""
    controller = ctx.obj["CONTROLLER"]
    day = day or controller.today()
    entry = controller.delete_entry(day, entry_id)
    print(f"[green]✔ Deleted:[/green] {day} #{entry_id} {escape(entry.text)}")


@cli.command()
@click.argument("entry_id", metavar="ID", type=int)
@_date_option()
@click.option("--text", "new_text", help="Replace the title.")
@click.option("--priority", "-p", type=_PRIORITY, help="Set the priority.")
@click.option("--no-priority", is_flag=True, help="Remove the priority marker.")
@click.option("--tag", "-t", "tags", multiple=True, callback=_check_tags, help="Replace the tags (repeatable).")
@click.option("--note", "-n", "notes", multiple=True, help="Append a note (repeatable).")
@click.pass_context
@reports_errors
def edit(ctx, entry_id, day, new_text, priority, no_priority, tags, notes):
    """Edit the title, priority, tags or notes of a bullet."""
    controller = ctx.obj["CONTROLLER"]
    day = day or controller.today()
    entry = controller.edit_entry(
        day,
        entry_id,
        text=new_text,
        priority=priority,
        clear_priority=no_priority,
        tags=tags or None,
        notes=notes,
    )
    print(f"[green]✔ Updated:[/green] {day} #{entry_id} {escape(entry.text)}")


@cli.command()
@click.option("--from", "from_date", type=_DATE, help="Source date (default: yesterday).")
@click.option("--to", "to_date", type=_DATE, help="Target date (default: today).")
@click.option("--id", "entry_id", type=int, help="Only migrate this bullet.")
@click.pass_context
@reports_errors
def migrate(ctx, from_date, to_date, entry_id):
    """Migrate open bullets from one date to another."""
    controller = ctx.obj["CONTROLLER"]
    result = controller.migrate(from_date, to_date, entry_id)
    if result.count:
        print(
            f"[green]✔ Migrated {result.count} open bullet{'' if result.count == 1 else 's'}"
            f"[/green] from {result.from_date} to {result.to_date}"
        )
    else:
        print(f"[yellow]No open bullets to migrate from {result.from_date}[/yellow]")


@cli.command()
@_date_option("Any date in the target week (default: today).")
@click.option("--tag", "-t", "tags", multiple=True, callback=_check_tags, help="Filter by tag (repeatable).")
@click.option("--priority", "-p", type=_PRIORITY, help="Filter by priority.")
@click.pass_context
@reports_errors
def week(ctx, day, tags, priority):
    """Show the Monday-Sunday week containing a date."""
    controller = ctx.obj["CONTROLLER"]
    console = ctx.obj["CONSOLE"]
    days = controller.week(day, EntryFilter.build(tags, priority))
    console.print(render_week(days, today=controller.today()))


@cli.command()
@_date_option("Any date in the month (default: today).")
@click.pass_context
@reports_errors
def cal(ctx, day):
    """Show a month calendar with markers for bullets and meetings."""
    controller = ctx.obj["CONTROLLER"]
    console = ctx.obj["CONSOLE"]
    markers = controller.month(day)
    console.print(render_month(markers, today=controller.today()))


@cli.group()
def meeting():
    """Manage meetings: add/list/notify."""


@meeting.command(name="add")
@click.argument("title", nargs=-1)
@_date_option()
@click.option("--time", "-t", "start", type=_TIME, required=True, help="Start time HH:MM (24h).")
@click.option("--duration", "-u", type=click.IntRange(1, None), help="Duration in minutes.")
@click.option("--priority", "-p", type=_PRIORITY, help="low, med, high (or 1/2/3).")
@click.option("--tag", "-g", "tags", multiple=True, callback=_check_tags, help="Tag (repeatable).")
@click.option("--note", "-n", "notes", multiple=True, help="Note line (repeatable).")
@click.pass_context
@reports_errors
def meeting_add(ctx, title, day, start, duration, priority, tags, notes):
    """Add a meeting."""
    controller = ctx.obj["CONTROLLER"]
    text = " ".join(title).strip()
    if not text:
        print("[red]✘ No meeting title provided.[/red]")
        sys.exit(1)
    day = day or controller.today()
    entry = controller.add_meeting(
        day, start, text, duration, tags=tags, notes=notes, priority=priority
    )
    print(
        f"[green]✔ Added meeting[/green] #{entry.id} {day} {start:%H:%M} "
        f"({entry.duration_minutes}m)"
    )


@meeting.command(name="list")
@_date_option()
@click.pass_context
@reports_errors
def meeting_list(ctx, day):
    """List meetings for a date (default today)."""
    controller = ctx.obj["CONTROLLER"]
    console = ctx.obj["CONSOLE"]
    day = day or controller.today()
    meetings = controller.meetings(day)
    if not meetings:
        console.print(f"No meetings for {day}")
        return
    console.print(render_meetings(day, meetings, controller.AMPM))


@meeting.command(name="notify")
@click.option("--window", "-w", type=click.IntRange(0, None), help="Lookahead in minutes (default from config).")
@click.pass_context
@reports_errors
def meeting_notify(ctx, window):
    """Notify about meetings starting within the window."""
    controller = ctx.obj["CONTROLLER"]
    sent = controller.notify_upcoming(window)
    if ctx.obj["VERBOSE"]:
        print(f"[blue]{len(sent)} notification{'' if len(sent) == 1 else 's'} sent[/blue]")


if __name__ == "__main__":
    cli()
