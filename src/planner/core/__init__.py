"""Functional core - pure business logic with no I/O."""

from .tasks import (
    Task,
    RecurrenceRule,
    RecurrenceType,
    make_rule,
    clamp_duration,
    MIN_EVENT_DURATION,
    MAX_EVENT_DURATION,
    RECURRENCE_CAP_DAYS,
)
from .recurrence import Occurrence, generate_occurrences, recurrence_cap
from .calendar import Placement, TimeSlot, visible_placements
from .overlap import find_overlap, has_overlap
from .results import Conflict, ErrorKind, OpResult
from .state import PlannerState, ViewState

__all__ = [
    # Tasks
    "Task",
    "RecurrenceRule",
    "RecurrenceType",
    "make_rule",
    "clamp_duration",
    "MIN_EVENT_DURATION",
    "MAX_EVENT_DURATION",
    "RECURRENCE_CAP_DAYS",
    # Recurrence
    "Occurrence",
    "generate_occurrences",
    "recurrence_cap",
    # Calendar
    "Placement",
    "TimeSlot",
    "visible_placements",
    # Overlap
    "find_overlap",
    "has_overlap",
    # Results
    "Conflict",
    "ErrorKind",
    "OpResult",
    # State
    "PlannerState",
    "ViewState",
]
