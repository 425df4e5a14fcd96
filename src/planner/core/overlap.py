"""Overlap detection against concrete and recurring placements."""

import logging
from datetime import datetime

from .calendar import TimeSlot
from .recurrence import expand_all, generate_occurrences, recurrence_cap
from .results import Conflict
from .tasks import Task
from .timeutil import add_days, start_of_day

logger = logging.getLogger(__name__)


def intervals_overlap(s1: datetime, d1: int, s2: datetime, d2: int) -> bool:
    """Half-open overlap of [s1, s1+d1) and [s2, s2+d2), durations in minutes."""
    return TimeSlot.of(s1, d1).overlaps(TimeSlot.of(s2, d2))


def recurrence_check_window(now: datetime) -> tuple[datetime, datetime]:
    """One day of lookback before today, up to the recurrence cap."""
    return add_days(start_of_day(now), -1), recurrence_cap(now)


def find_overlap(
    tasks: list[Task],
    proposed_start: datetime,
    proposed_duration: int,
    exclude_task_id: str | None,
    now: datetime,
) -> Conflict | None:
    """
    Find the first placement a proposed [start, start+duration) collides with.

    Checks every other task's anchor, then every generated occurrence of every
    other recurring task in the bounded check window. Fails open: an internal
    fault (for example a malformed stored instant) is logged and reported as
    no conflict.
    """
    try:
        proposed = TimeSlot.of(proposed_start, proposed_duration)

        for task in tasks:
            if task.scheduled_start is None:
                continue
            if exclude_task_id is not None and task.id == exclude_task_id:
                continue
            if proposed.overlaps(TimeSlot.of(task.scheduled_start, task.duration)):
                return Conflict(
                    task_id=task.id,
                    title=task.title,
                    start=task.scheduled_start,
                    duration=task.duration,
                )

        window_start, window_end = recurrence_check_window(now)
        cap = recurrence_cap(now)
        for occ in expand_all(tasks, window_start, window_end, cap, exclude_task_id):
            if proposed.overlaps(TimeSlot(occ.start, occ.end)):
                return Conflict(
                    task_id=occ.task_id,
                    title=occ.parent.title,
                    start=occ.start,
                    duration=occ.parent.duration,
                    is_recurring_instance=True,
                    occurrence_key=occ.key,
                )
    except (TypeError, ValueError, OverflowError, AttributeError) as e:
        logger.warning(f"Overlap check failed, allowing placement: {e}")
        return None

    return None


def has_overlap(
    tasks: list[Task],
    proposed_start: datetime,
    proposed_duration: int,
    exclude_task_id: str | None,
    now: datetime,
) -> bool:
    """True if the proposed placement conflicts with anything else."""
    return find_overlap(tasks, proposed_start, proposed_duration, exclude_task_id, now) is not None


def simulate_recurrence(
    candidate: Task,
    tasks: list[Task],
    now: datetime,
) -> Conflict | None:
    """
    Check every projected occurrence of a candidate recurring task.

    Occurrences are expanded from the start of today to the cap; the first one
    that collides with another task is returned, tagged with its own start.
    """
    cap = recurrence_cap(now)
    for occ in generate_occurrences(candidate, start_of_day(now), cap, cap):
        conflict = find_overlap(tasks, occ.start, candidate.duration, candidate.id, now)
        if conflict is not None:
            conflict.proposed_start = occ.start
            return conflict
    return None

