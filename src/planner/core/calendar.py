"""Pure calendar domain logic - no I/O dependencies."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from .recurrence import generate_occurrences
from .tasks import Task, duration_label, format_hm, matches_filter
from .timeutil import add_days, start_of_day


@dataclass
class TimeSlot:
    """A half-open time interval [start, end)."""

    start: datetime
    end: datetime

    @classmethod
    def of(cls, start: datetime, minutes: int) -> "TimeSlot":
        return cls(start=start, end=start + timedelta(minutes=minutes))

    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() / 60)

    def format(self) -> str:
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')} ({self.duration_minutes()} min)"

    def contains(self, dt: datetime) -> bool:
        """Check if a datetime falls within this slot."""
        return self.start <= dt < self.end

    def overlaps(self, other: "TimeSlot") -> bool:
        """Check if this slot overlaps with another. Back-to-back slots do not."""
        return self.start < other.end and other.start < self.end


@dataclass
class Placement:
    """A task shown on the calendar: its anchor or one of its occurrences."""

    task: Task
    start: datetime
    is_recurring_instance: bool = False
    occurrence_key: str | None = None

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.task.duration)

    @property
    def slot(self) -> TimeSlot:
        return TimeSlot(self.start, self.end)

    def format(self) -> str:
        """Format for list display: time, duration and a repeat marker."""
        marker = ""
        if self.task.recurrence is not None:
            marker = " ↻" if not self.is_recurring_instance else " (repeat)"
        return f"{format_hm(self.start)} · {duration_label(self.task.duration)}  {self.task.title}{marker}"


def sort_placements(placements: list[Placement]) -> list[Placement]:
    """Sort by start time, ties broken by task id."""
    return sorted(placements, key=lambda p: (p.start, p.task.id))


def visible_placements(
    tasks: list[Task],
    window_start: datetime,
    window_end: datetime,
    cap: datetime,
    filter_text: str = "",
) -> list[Placement]:
    """
    Anchors and recurring occurrences intersecting [window_start, window_end).

    Pure function - no I/O. Occurrences are expanded from one day before the
    window so that an occurrence running past midnight into the window is
    still listed.
    """
    window = TimeSlot(window_start, window_end)
    placements = []

    for task in tasks:
        if task.scheduled_start is None or not matches_filter(task, filter_text):
            continue

        anchor = Placement(task=task, start=task.scheduled_start)
        if anchor.slot.overlaps(window):
            placements.append(anchor)

        occurrences = generate_occurrences(
            task, add_days(start_of_day(window_start), -1), window_end, cap
        )
        for occ in occurrences:
            placement = Placement(
                task=task,
                start=occ.start,
                is_recurring_instance=True,
                occurrence_key=occ.key,
            )
            if placement.slot.overlaps(window):
                placements.append(placement)

    return sort_placements(placements)


def current_and_next(
    placements: list[Placement],
    now: datetime,
) -> tuple[Placement | None, Placement | None]:
    """
    The placement in progress at `now` and the next one to start.

    Expects placements sorted by start.
    """
    current = None
    upcoming = None
    for p in placements:
        if current is None and p.slot.contains(now):
            current = p
        elif upcoming is None and p.start > now:
            upcoming = p
        if current is not None and upcoming is not None:
            break
    return current, upcoming
