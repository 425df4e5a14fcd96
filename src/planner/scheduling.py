"""Scheduling operations - validated, atomic transitions over the task store.

Each operation builds a candidate copy of the task, normalizes inputs, runs
the overlap checks, and only then writes to the store. Rejections come back
as OpResult values; the store is left untouched.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable

from .core.calendar import Placement, current_and_next, visible_placements
from .core.overlap import find_overlap, simulate_recurrence
from .core.recurrence import recurrence_cap
from .core.results import Conflict, ErrorKind, OpResult
from .core.tasks import (
    DEFAULT_DURATION,
    RecurrenceRule,
    RecurrenceType,
    Task,
    clamp_duration,
    filter_inbox,
    make_rule,
    new_task_id,
    snap_minutes,
)
from .core.timeutil import start_of_day
from .ports.task_store import TaskStore

logger = logging.getLogger(__name__)

# Marks an edit() argument that should keep its current value
UNCHANGED = object()


def _not_found(task_id: str) -> OpResult:
    return OpResult.fail(ErrorKind.NOT_FOUND, f"Task {task_id} not found")


def _conflict(conflict: Conflict, task: Task | None) -> OpResult:
    return OpResult.fail(
        ErrorKind.OVERLAP_CONFLICT,
        f"That time {conflict.describe()}",
        conflict=conflict,
        task=task,
    )


def _normalize_rule(rule: RecurrenceRule, anchor: datetime) -> RecurrenceRule:
    """Rebuild a rule so its days match its type and anchor. Raises ValueError."""
    return make_rule(rule.type, anchor, list(rule.days))


class Planner:
    """
    Orchestrates scheduling over a task store.

    The clock is read once per operation and the resulting cap is passed down
    to the pure core. Mutations and listings hold a re-entrant lock so a
    background reader never sees a half-applied change.
    """

    def __init__(
        self,
        store: TaskStore,
        clock: Callable[[], datetime] = datetime.now,
        default_duration: int = DEFAULT_DURATION,
    ):
        self.store = store
        self.clock = clock
        self.default_duration = clamp_duration(default_duration)
        self._lock = threading.RLock()

    # ============== Validation ==============

    def _duration(self, duration, fallback: int) -> int:
        """Clamp a requested duration; None means keep the fallback."""
        if duration is None:
            return clamp_duration(fallback)
        return clamp_duration(duration)

    def _check_placement(self, candidate: Task, now: datetime) -> Conflict | None:
        """Validate a candidate's anchor and, if it repeats, its projected occurrences."""
        if candidate.scheduled_start is None:
            return None
        tasks = self.store.all()
        conflict = find_overlap(
            tasks, candidate.scheduled_start, candidate.duration, candidate.id, now
        )
        if conflict is not None:
            return conflict
        if candidate.recurrence is not None:
            return simulate_recurrence(candidate, tasks, now)
        return None

    # ============== Lookup ==============

    def find_task(self, task_id: str) -> Task | None:
        task = self.store.get(task_id)
        return replace(task) if task is not None else None

    def inbox(self, filter_text: str = "") -> list[Task]:
        """Unscheduled tasks, optionally filtered by title."""
        with self._lock:
            return filter_inbox(self.store.all(), filter_text)

    def list_visible(
        self,
        window_start: datetime,
        window_end: datetime,
        filter_text: str = "",
    ) -> list[Placement]:
        """Anchors and recurring occurrences intersecting the window, by start."""
        with self._lock:
            cap = recurrence_cap(self.clock())
            return visible_placements(
                self.store.all(), window_start, window_end, cap, filter_text
            )

    def current_and_next(self, now: datetime | None = None) -> tuple[Placement | None, Placement | None]:
        """What is on right now and what comes next, within the recurrence cap."""
        with self._lock:
            now = now or self.clock()
            cap = recurrence_cap(now)
            placements = visible_placements(self.store.all(), start_of_day(now), cap, cap)
            return current_and_next(placements, now)

    # ============== Operations ==============

    def create_task(
        self,
        title: str,
        duration: int | None = None,
        start: datetime | None = None,
    ) -> OpResult:
        """Add a task to the inbox, or straight onto the calendar when start is given."""
        with self._lock:
            title = (title or "").strip()
            if not title:
                return OpResult.fail(ErrorKind.VALIDATION, "Title must not be empty")
            try:
                minutes = self._duration(duration, self.default_duration)
            except (TypeError, ValueError):
                return OpResult.fail(ErrorKind.VALIDATION, f"Invalid duration: {duration!r}")

            task = Task(id=new_task_id(), title=title, duration=minutes, scheduled_start=start)
            conflict = self._check_placement(task, self.clock())
            if conflict is not None:
                return _conflict(conflict, None)

            self.store.insert(task)
            logger.debug(f"Created task {task.id} ({task.title!r})")
            return OpResult.success(task)

    def schedule(self, task_id: str, start: datetime, duration: int | None = None) -> OpResult:
        """Place (or move) a task at start; a weekly rule follows the new weekday."""
        with self._lock:
            task = self.store.get(task_id)
            if task is None:
                return _not_found(task_id)
            try:
                minutes = self._duration(duration, task.duration)
            except (TypeError, ValueError):
                return OpResult.fail(ErrorKind.VALIDATION, f"Invalid duration: {duration!r}", task=task)

            recurrence = task.recurrence
            if recurrence is not None and recurrence.type is RecurrenceType.WEEKLY:
                recurrence = make_rule(RecurrenceType.WEEKLY, start)

            candidate = replace(task, scheduled_start=start, duration=minutes, recurrence=recurrence)
            conflict = self._check_placement(candidate, self.clock())
            if conflict is not None:
                return _conflict(conflict, task)

            self.store.update(candidate)
            logger.debug(f"Scheduled {task_id} at {start.isoformat()} for {minutes}m")
            return OpResult.success(candidate)

    def unschedule(self, task_id: str) -> OpResult:
        """Send a task back to the inbox. Its recurrence is cleared with the anchor."""
        with self._lock:
            task = self.store.get(task_id)
            if task is None:
                return _not_found(task_id)
            candidate = replace(task, scheduled_start=None, recurrence=None)
            self.store.update(candidate)
            logger.debug(f"Unscheduled {task_id}")
            return OpResult.success(candidate)

    def resize(self, task_id: str, new_duration: int) -> OpResult:
        """Change a task's duration, re-validating its current placement."""
        with self._lock:
            task = self.store.get(task_id)
            if task is None:
                return _not_found(task_id)
            try:
                minutes = self._duration(new_duration, task.duration)
            except (TypeError, ValueError):
                return OpResult.fail(
                    ErrorKind.VALIDATION, f"Invalid duration: {new_duration!r}", task=task
                )

            candidate = replace(task, duration=minutes)
            conflict = self._check_placement(candidate, self.clock())
            if conflict is not None:
                return _conflict(conflict, task)

            self.store.update(candidate)
            logger.debug(f"Resized {task_id} to {minutes}m")
            return OpResult.success(candidate)

    def resize_by(self, task_id: str, delta_minutes: int) -> OpResult:
        """Grow or shrink by a delta snapped to the resize step."""
        with self._lock:
            task = self.store.get(task_id)
            if task is None:
                return _not_found(task_id)
            try:
                delta = snap_minutes(delta_minutes)
            except (TypeError, ValueError):
                return OpResult.fail(
                    ErrorKind.VALIDATION, f"Invalid duration change: {delta_minutes!r}", task=task
                )
            return self.resize(task_id, task.duration + delta)

    def set_recurrence(self, task_id: str, rule: RecurrenceRule | None) -> OpResult:
        """
        Set or clear a task's recurrence.

        A new rule is simulated from today up to the cap; if any projected
        occurrence collides with another task the rule is not saved and the
        conflict names the offending occurrence.
        """
        with self._lock:
            task = self.store.get(task_id)
            if task is None:
                return _not_found(task_id)

            if rule is None:
                candidate = replace(task, recurrence=None)
                self.store.update(candidate)
                logger.debug(f"Cleared recurrence on {task_id}")
                return OpResult.success(candidate)

            if task.scheduled_start is None:
                return OpResult.fail(
                    ErrorKind.INVALID_RECURRENCE_RULE,
                    "Schedule the task first; recurrence applies to scheduled tasks",
                    task=task,
                )
            try:
                rule = _normalize_rule(rule, task.scheduled_start)
            except ValueError as e:
                return OpResult.fail(ErrorKind.INVALID_RECURRENCE_RULE, str(e), task=task)

            candidate = replace(task, recurrence=rule)
            conflict = simulate_recurrence(candidate, self.store.all(), self.clock())
            if conflict is not None:
                return OpResult.fail(
                    ErrorKind.OVERLAP_CONFLICT,
                    f"Recurrence not saved: {conflict.describe()}",
                    conflict=conflict,
                    task=task,
                )

            self.store.update(candidate)
            logger.debug(f"Set {rule.type.value} recurrence on {task_id}: days={list(rule.days)}")
            return OpResult.success(candidate)

    def set_repeat(
        self,
        task_id: str,
        rule_type: RecurrenceType | str | None,
        days: list[int] | None = None,
    ) -> OpResult:
        """Build a rule from its type (anchored on the task's start) and set it."""
        with self._lock:
            task = self.store.get(task_id)
            if task is None:
                return _not_found(task_id)
            if rule_type is None or rule_type == "none":
                return self.set_recurrence(task_id, None)
            if task.scheduled_start is None:
                return OpResult.fail(
                    ErrorKind.INVALID_RECURRENCE_RULE,
                    "Schedule the task first; recurrence applies to scheduled tasks",
                    task=task,
                )
            try:
                rule = make_rule(rule_type, task.scheduled_start, days)
            except ValueError as e:
                return OpResult.fail(ErrorKind.INVALID_RECURRENCE_RULE, str(e), task=task)
            return self.set_recurrence(task_id, rule)

    def rename(self, task_id: str, title: str) -> OpResult:
        with self._lock:
            task = self.store.get(task_id)
            if task is None:
                return _not_found(task_id)
            title = (title or "").strip()
            if not title:
                return OpResult.fail(ErrorKind.VALIDATION, "Title must not be empty", task=task)
            candidate = replace(task, title=title)
            self.store.update(candidate)
            return OpResult.success(candidate)

    def edit(
        self,
        task_id: str,
        title: str | None = None,
        duration: int | None = None,
        rule=UNCHANGED,
    ) -> OpResult:
        """
        Apply title, duration and recurrence changes together or not at all.

        An empty title keeps the current one. `rule` may be a RecurrenceRule,
        None to clear it, or UNCHANGED.
        """
        with self._lock:
            task = self.store.get(task_id)
            if task is None:
                return _not_found(task_id)

            new_title = (title or "").strip() or task.title
            try:
                minutes = self._duration(duration, task.duration)
            except (TypeError, ValueError):
                return OpResult.fail(ErrorKind.VALIDATION, f"Invalid duration: {duration!r}", task=task)

            recurrence = task.recurrence if rule is UNCHANGED else rule
            if recurrence is not None:
                if task.scheduled_start is None:
                    return OpResult.fail(
                        ErrorKind.INVALID_RECURRENCE_RULE,
                        "Schedule the task first; recurrence applies to scheduled tasks",
                        task=task,
                    )
                try:
                    recurrence = _normalize_rule(recurrence, task.scheduled_start)
                except ValueError as e:
                    return OpResult.fail(ErrorKind.INVALID_RECURRENCE_RULE, str(e), task=task)

            candidate = replace(task, title=new_title, duration=minutes, recurrence=recurrence)
            conflict = self._check_placement(candidate, self.clock())
            if conflict is not None:
                return _conflict(conflict, task)

            self.store.update(candidate)
            logger.debug(f"Edited {task_id}")
            return OpResult.success(candidate)

    def delete(self, task_id: str) -> OpResult:
        with self._lock:
            task = self.store.remove(task_id)
            if task is None:
                return _not_found(task_id)
            logger.debug(f"Deleted {task_id}")
            return OpResult.success(task)
