"""Recurrence expansion - pure functions, the cap is always passed in."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from .tasks import RECURRENCE_CAP_DAYS, Task
from .timeutil import add_days, at_time, start_of_day, weekday_index


@dataclass(frozen=True)
class Occurrence:
    """A concrete instant implied by a task's recurrence rule."""

    key: str
    task_id: str
    start: datetime
    parent: Task

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.parent.duration)


def occurrence_key(task_id: str, start: datetime) -> str:
    """Stable key for one occurrence: taskId::YYYY-MM-DD."""
    return f"{task_id}::{start.date().isoformat()}"


def recurrence_cap(now: datetime) -> datetime:
    """The hard horizon beyond which nothing is generated."""
    return add_days(now, RECURRENCE_CAP_DAYS)


def generate_occurrences(
    task: Task,
    window_start: datetime,
    window_end: datetime,
    cap: datetime,
) -> list[Occurrence]:
    """
    Expand a recurring task into occurrences within [window_start, min(window_end, cap)).

    Pure function - no I/O, no clock reads.

    Only instants strictly after the anchor are produced; the anchor itself is
    the task's stored placement. Tasks without a rule or an anchor yield [].

    Args:
        task: Task whose recurrence is expanded
        window_start: Start of the query window (its whole day is scanned)
        window_end: End of the query window (exclusive)
        cap: Hard horizon; nothing at or after it is emitted

    Returns:
        Occurrences ordered by start
    """
    if task.recurrence is None or task.scheduled_start is None:
        return []
    if not task.recurrence.days:
        return []

    anchor = task.scheduled_start
    effective_end = min(window_end, cap)
    if window_start >= effective_end:
        return []

    out = []
    day = start_of_day(window_start)
    while day < effective_end:
        if task.recurrence.includes(weekday_index(day)):
            occ = at_time(day, anchor.hour, anchor.minute)
            if anchor < occ < effective_end:
                out.append(
                    Occurrence(
                        key=occurrence_key(task.id, occ),
                        task_id=task.id,
                        start=occ,
                        parent=task,
                    )
                )
        day = add_days(day, 1)

    return out


def expand_all(
    tasks: list[Task],
    window_start: datetime,
    window_end: datetime,
    cap: datetime,
    exclude_task_id: str | None = None,
) -> list[Occurrence]:
    """Occurrences of every recurring task in a mixed list, ordered by start."""
    out = []
    for task in tasks:
        if exclude_task_id is not None and task.id == exclude_task_id:
            continue
        out.extend(generate_occurrences(task, window_start, window_end, cap))
    return sorted(out, key=lambda o: (o.start, o.task_id))
