"""Pure task domain logic - no I/O dependencies."""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .timeutil import weekday_index

MIN_EVENT_DURATION = 15
MAX_EVENT_DURATION = 480  # 8 hours
DEFAULT_DURATION = 60
RECURRENCE_CAP_DAYS = 30
RESIZE_SNAP_MINUTES = 15
NOW_REFRESH_SECONDS = 60

ALL_WEEKDAYS = (0, 1, 2, 3, 4, 5, 6)


class RecurrenceType(Enum):
    """How a recurrence rule picks its weekdays."""

    DAILY = "daily"  # Every day of the week
    WEEKLY = "weekly"  # Same weekday as the anchor
    CUSTOM = "custom"  # User-chosen weekdays


@dataclass(frozen=True)
class RecurrenceRule:
    """A weekly day-of-week pattern. Days use Sunday=0 ... Saturday=6."""

    type: RecurrenceType
    days: tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "days", tuple(sorted(set(self.days))))

    def includes(self, weekday: int) -> bool:
        return weekday in self.days

    def to_dict(self) -> dict:
        return {"type": self.type.value, "days": list(self.days)}

    @classmethod
    def from_dict(cls, data: dict) -> "RecurrenceRule":
        days = [int(d) for d in data.get("days", [])]
        if not days or any(d not in ALL_WEEKDAYS for d in days):
            raise ValueError(f"Invalid recurrence days: {data.get('days')!r}")
        return cls(type=RecurrenceType(data["type"]), days=tuple(days))


def make_rule(
    rule_type: RecurrenceType | str,
    anchor: datetime,
    days: list[int] | None = None,
) -> RecurrenceRule:
    """
    Build a rule with the day-set implied by its type.

    daily  -> all seven weekdays
    weekly -> the anchor's weekday
    custom -> the given days, which must be non-empty
    """
    rule_type = RecurrenceType(rule_type)
    if rule_type is RecurrenceType.DAILY:
        return RecurrenceRule(rule_type, ALL_WEEKDAYS)
    if rule_type is RecurrenceType.WEEKLY:
        return RecurrenceRule(rule_type, (weekday_index(anchor),))

    picked = [int(d) for d in days or []]
    if not picked:
        raise ValueError("Custom recurrence needs at least one weekday")
    bad = [d for d in picked if d not in ALL_WEEKDAYS]
    if bad:
        raise ValueError(f"Weekday out of range: {bad[0]}")
    return RecurrenceRule(rule_type, tuple(picked))


def new_task_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class Task:
    """A task, either in the inbox or placed on the calendar."""

    id: str
    title: str
    duration: int = DEFAULT_DURATION
    scheduled_start: datetime | None = None
    recurrence: RecurrenceRule | None = None

    @property
    def is_scheduled(self) -> bool:
        return self.scheduled_start is not None

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None and self.scheduled_start is not None

    def to_dict(self) -> dict:
        """Serialize to the persisted JSON shape."""
        return {
            "id": self.id,
            "title": self.title,
            "duration": self.duration,
            "scheduledStart": self.scheduled_start.isoformat() if self.scheduled_start else None,
            "recurrence": self.recurrence.to_dict() if self.recurrence else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from a persisted record."""
        start = None
        if data.get("scheduledStart"):
            start = datetime.fromisoformat(data["scheduledStart"])
        recurrence = None
        # A rule without an anchor is meaningless, so it is not kept.
        if start and data.get("recurrence"):
            recurrence = RecurrenceRule.from_dict(data["recurrence"])
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            duration=clamp_duration(DEFAULT_DURATION if data.get("duration") is None else data["duration"]),
            scheduled_start=start,
            recurrence=recurrence,
        )


def clamp_duration(minutes: int | float | str) -> int:
    """Clamp a duration into [MIN_EVENT_DURATION, MAX_EVENT_DURATION]."""
    try:
        value = int(minutes)
    except OverflowError as e:
        raise ValueError(f"Duration out of range: {minutes!r}") from e
    return max(MIN_EVENT_DURATION, min(MAX_EVENT_DURATION, value))


def snap_minutes(delta: int | float, step: int = RESIZE_SNAP_MINUTES) -> int:
    """Round a minute delta to the nearest resize step."""
    try:
        return int(round(delta / step)) * step
    except OverflowError as e:
        raise ValueError(f"Duration change out of range: {delta!r}") from e


def duration_label(mins: int) -> str:
    """Human-readable duration: 45m, 2h, 1h 30m."""
    if mins % 60 == 0:
        return f"{mins // 60}h"
    if mins < 60:
        return f"{mins}m"
    return f"{mins // 60}h {mins % 60}m"


def format_hm(dt: datetime) -> str:
    return dt.strftime("%H:%M")


def matches_filter(task: Task, text: str) -> bool:
    """Case-insensitive title match; an empty filter matches everything."""
    q = (text or "").strip().lower()
    if not q:
        return True
    return q in (task.title or "").lower()


def filter_inbox(tasks: list[Task], text: str = "") -> list[Task]:
    """Unscheduled tasks matching the filter, in their stored order."""
    return [t for t in tasks if not t.is_scheduled and matches_filter(t, text)]


def sample_tasks() -> list[Task]:
    """Starter inbox for a first run."""
    return [
        Task(id=new_task_id(), title="Read 20 pages", duration=45),
        Task(id=new_task_id(), title="Workout session", duration=60),
        Task(id=new_task_id(), title="Write blog paragraph", duration=30),
    ]
