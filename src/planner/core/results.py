"""Result values returned by scheduling operations."""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

from .tasks import Task, format_hm


class ErrorKind(Enum):
    """Machine-readable reason an operation was rejected."""

    VALIDATION = "validation_error"
    OVERLAP_CONFLICT = "overlap_conflict"
    NOT_FOUND = "not_found"
    INVALID_RECURRENCE_RULE = "invalid_recurrence_rule"


@dataclass
class Conflict:
    """An existing placement that a proposed placement collides with."""

    task_id: str
    title: str
    start: datetime
    duration: int
    is_recurring_instance: bool = False
    occurrence_key: str | None = None
    # Set when a simulated recurrence occurrence (not the anchor) was rejected
    proposed_start: datetime | None = None

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration)

    def describe(self) -> str:
        """One-line description for user display."""
        span = f"{self.start.strftime('%a %b %d')} {format_hm(self.start)}-{format_hm(self.end)}"
        text = f"overlaps '{self.title}' ({span})"
        if self.proposed_start is not None:
            when = f"{self.proposed_start.strftime('%A, %b %d')} at {format_hm(self.proposed_start)}"
            text = f"occurrence on {when} {text}"
        return text


def _detached(task: Task | None) -> Task | None:
    return replace(task) if task is not None else None


@dataclass
class OpResult:
    """
    Outcome of a scheduling operation.

    The task is a detached copy; changing it does not touch the store.
    """

    ok: bool
    task: Task | None = None
    error: ErrorKind | None = None
    message: str = ""
    conflict: Conflict | None = None

    @classmethod
    def success(cls, task: Task | None = None) -> "OpResult":
        return cls(ok=True, task=_detached(task))

    @classmethod
    def fail(
        cls,
        error: ErrorKind,
        message: str,
        conflict: Conflict | None = None,
        task: Task | None = None,
    ) -> "OpResult":
        return cls(ok=False, task=_detached(task), error=error, message=message, conflict=conflict)

    def __bool__(self) -> bool:
        return self.ok
