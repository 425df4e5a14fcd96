"""Planner CLI - inbox and week calendar."""

import json
import logging
import sys
from datetime import datetime

import click

from .adapters.file_state import FileStateStore
from .adapters.memory_store import InMemoryTaskStore
from .config import Config, load_config
from .core.calendar import Placement
from .core.results import OpResult
from .core.state import DENSITIES, VIEW_MODES, PlannerState
from .core.tasks import RecurrenceType, Task, duration_label, format_hm
from .scheduling import Planner

WHEN = click.DateTime(formats=["%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M:%S"])

DAY_NAMES = {
    "sun": 0, "sunday": 0,
    "mon": 1, "monday": 1,
    "tue": 2, "tues": 2, "tuesday": 2,
    "wed": 3, "wednesday": 3,
    "thu": 4, "thur": 4, "thurs": 4, "thursday": 4,
    "fri": 5, "friday": 5,
    "sat": 6, "saturday": 6,
}
DAY_ABBR = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


class Session:
    """Loaded state plus a planner over it, saved back on success."""

    def __init__(self, config: Config):
        self.config = config
        self.state_store = FileStateStore(config.state_file, seed_samples=config.seed_samples)
        first_run = not self.state_store.exists()
        self.state: PlannerState = self.state_store.load()
        if first_run:
            self.state.view.view_mode = config.view_mode
            self.state.view.density = config.density
        self.planner = Planner(
            InMemoryTaskStore(self.state.tasks),
            default_duration=config.default_duration,
        )

    def save(self) -> None:
        self.state.tasks = self.planner.store.all()
        self.state_store.save(self.state)

    def finish(self, result: OpResult, done: str) -> None:
        """Save and report success, or report the failure and exit 1."""
        if not result.ok:
            click.echo(f"Error: {result.message}", err=True)
            sys.exit(1)
        self.save()
        click.echo(done)


def parse_days(value: str | None) -> list[int]:
    """Parse 'mon,wed,fri' or '1,3,5' into weekday indices (Sunday=0)."""
    if not value:
        return []
    days = []
    for part in value.split(","):
        part = part.strip().lower()
        if not part:
            continue
        if part.isdigit() and 0 <= int(part) <= 6:
            days.append(int(part))
        elif part in DAY_NAMES:
            days.append(DAY_NAMES[part])
        else:
            raise click.BadParameter(f"Unknown weekday: {part}")
    return days


def _task_line(task: Task) -> str:
    parts = [task.id, task.title, duration_label(task.duration)]
    if task.scheduled_start:
        parts.append(task.scheduled_start.strftime("%a %b %d %H:%M"))
    if task.recurrence:
        days = ",".join(DAY_ABBR[d] for d in task.recurrence.days)
        parts.append(f"↻ {task.recurrence.type.value} ({days})")
    return "  ".join(parts)


def _placement_json(p: Placement) -> dict:
    return {
        "task_id": p.task.id,
        "title": p.task.title,
        "start": p.start.isoformat(),
        "end": p.end.isoformat(),
        "duration": p.task.duration,
        "is_recurring_instance": p.is_recurring_instance,
        "occurrence_key": p.occurrence_key,
    }


@click.group()
@click.version_option(package_name="planner")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, debug: bool):
    """Planner - inbox and week calendar."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )
    ctx.obj = load_config()


@main.command()
@click.argument("title")
@click.option("-d", "--duration", type=int, default=None, help="Duration in minutes")
@click.option("--at", "start", type=WHEN, default=None, help="Schedule immediately at this time")
@click.pass_obj
def add(config: Config, title: str, duration: int | None, start: datetime | None):
    """Add a task to the inbox (or straight onto the calendar)."""
    session = Session(config)
    result = session.planner.create_task(title, duration, start)
    task = result.task
    session.finish(result, f"Added {task.id}: {task.title}" if task else "")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def inbox(config: Config, as_json: bool):
    """List unscheduled tasks."""
    session = Session(config)
    tasks = session.planner.inbox(session.state.view.filter_text)

    if as_json:
        click.echo(json.dumps([t.to_dict() for t in tasks], indent=2))
        return

    if not tasks:
        click.echo("No tasks yet. Add some and schedule them.")
        return

    for task in tasks:
        click.echo(f"• {task.id}  {task.title}  ({duration_label(task.duration)})")


@main.command()
@click.argument("task_id")
@click.pass_obj
def show(config: Config, task_id: str):
    """Show one task."""
    session = Session(config)
    task = session.planner.find_task(task_id)
    if task is None:
        click.echo(f"Error: Task {task_id} not found", err=True)
        sys.exit(1)
    click.echo(_task_line(task))


@main.command()
@click.argument("task_id")
@click.argument("start", type=WHEN)
@click.option("-d", "--duration", type=int, default=None, help="Duration in minutes")
@click.pass_obj
def schedule(config: Config, task_id: str, start: datetime, duration: int | None):
    """Place a task on the calendar (or move it)."""
    session = Session(config)
    result = session.planner.schedule(task_id, start, duration)
    session.finish(result, f"Scheduled {task_id} at {start.strftime('%a %b %d')} {format_hm(start)}")


@main.command()
@click.argument("task_id")
@click.pass_obj
def unschedule(config: Config, task_id: str):
    """Move a task back to the inbox."""
    session = Session(config)
    session.finish(session.planner.unschedule(task_id), f"Moved {task_id} to the inbox")


@main.command()
@click.argument("task_id")
@click.argument("minutes", type=int, required=False)
@click.option("--by", "delta", type=int, default=None, help="Grow/shrink by minutes (snapped to 15)")
@click.pass_obj
def resize(config: Config, task_id: str, minutes: int | None, delta: int | None):
    """Change a task's duration."""
    if (minutes is None) == (delta is None):
        raise click.UsageError("Give either MINUTES or --by")
    session = Session(config)
    if delta is not None:
        result = session.planner.resize_by(task_id, delta)
    else:
        result = session.planner.resize(task_id, minutes)
    new = result.task.duration if result.ok and result.task else 0
    session.finish(result, f"Resized {task_id} to {duration_label(new)}")


@main.command()
@click.argument("task_id")
@click.argument("kind", type=click.Choice(["none"] + [t.value for t in RecurrenceType]))
@click.option("--days", default=None, help="Weekdays for custom, e.g. mon,wed,fri")
@click.pass_obj
def repeat(config: Config, task_id: str, kind: str, days: str | None):
    """Set how a scheduled task repeats."""
    session = Session(config)
    result = session.planner.set_repeat(task_id, kind, parse_days(days))
    done = f"Recurrence cleared on {task_id}" if kind == "none" else f"{task_id} repeats {kind}"
    session.finish(result, done)


@main.command()
@click.argument("task_id")
@click.argument("title")
@click.pass_obj
def rename(config: Config, task_id: str, title: str):
    """Change a task's title."""
    session = Session(config)
    session.finish(session.planner.rename(task_id, title), f"Renamed {task_id}")


@main.command()
@click.argument("task_id")
@click.pass_obj
def delete(config: Config, task_id: str):
    """Delete a task."""
    session = Session(config)
    session.finish(session.planner.delete(task_id), f"Deleted {task_id}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def week(config: Config, as_json: bool):
    """Show the calendar page currently in view."""
    session = Session(config)
    view = session.state.view
    now = datetime.now()
    start, end = view.window(now)
    placements = session.planner.list_visible(start, end, view.filter_text)

    if as_json:
        click.echo(json.dumps([_placement_json(p) for p in placements], indent=2))
        return

    click.echo(view.label(now))
    if not placements:
        click.echo("No events.")
        return

    current_date = None
    for p in placements:
        event_date = p.start.date()
        if event_date != current_date:
            click.echo()
            click.echo(f"### {event_date.strftime('%A, %B %d')}")
            current_date = event_date
        click.echo(f"  {p.format()}")


@main.command()
@click.argument("action", type=click.Choice(["today", "next", "prev", "mode", "density"]))
@click.argument("value", required=False)
@click.pass_obj
def view(config: Config, action: str, value: str | None):
    """Move the calendar page or change how it is shown."""
    session = Session(config)
    state_view = session.state.view
    now = datetime.now()

    match action:
        case "today":
            state_view.go_today(now)
        case "next":
            state_view.shift(1, now)
        case "prev":
            state_view.shift(-1, now)
        case "mode":
            if value not in VIEW_MODES:
                raise click.BadParameter(f"choose from {', '.join(VIEW_MODES)}", param_hint="VALUE")
            state_view.set_mode(value, now)
        case "density":
            if value not in DENSITIES:
                raise click.BadParameter(f"choose from {', '.join(DENSITIES)}", param_hint="VALUE")
            state_view.set_density(value)

    session.save()
    click.echo(f"{state_view.label(now)} ({state_view.view_mode}, {state_view.density})")


@main.command()
@click.argument("text", required=False, default="")
@click.pass_obj
def search(config: Config, text: str):
    """Filter the inbox and calendar by title (no text clears it)."""
    session = Session(config)
    session.state.view.filter_text = text
    session.save()
    click.echo(f"Filter set to {text!r}" if text else "Filter cleared")


@main.command()
@click.pass_obj
def watch(config: Config):
    """Print what is on now and next, refreshed periodically."""
    from .watch import run_watch

    click.echo("Press Ctrl+C to stop")
    run_watch(config, echo=click.echo)
