"""Persisted planner state and view preferences - no I/O dependencies."""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from .tasks import Task
from .timeutil import add_days, start_of_day, start_of_week

logger = logging.getLogger(__name__)

VIEW_MODES = {"7d": 7, "4d": 4}
DENSITIES = ("compact", "cozy", "relaxed")


@dataclass
class ViewState:
    """Which calendar page is shown and how."""

    view_start: datetime | None = None
    view_mode: str = "7d"
    density: str = "cozy"
    filter_text: str = ""

    def days_count(self) -> int:
        return VIEW_MODES.get(self.view_mode, 7)

    def home(self, now: datetime) -> datetime:
        """Today for the 4-day view, this week's Monday otherwise."""
        if self.view_mode == "4d":
            return start_of_day(now)
        return start_of_week(now)

    def ensure_start(self, now: datetime) -> datetime:
        if self.view_start is None:
            self.view_start = self.home(now)
        return self.view_start

    def window(self, now: datetime) -> tuple[datetime, datetime]:
        """The [start, end) range currently on screen."""
        start = start_of_day(self.ensure_start(now))
        return start, add_days(start, self.days_count())

    def go_today(self, now: datetime) -> None:
        self.view_start = self.home(now)

    def shift(self, pages: int, now: datetime) -> None:
        """Move forward (positive) or back (negative) by whole pages."""
        self.view_start = add_days(self.ensure_start(now), pages * self.days_count())

    def set_mode(self, mode: str, now: datetime) -> None:
        if mode not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {mode}")
        self.view_mode = mode
        self.go_today(now)

    def set_density(self, density: str) -> None:
        if density not in DENSITIES:
            raise ValueError(f"Unknown density: {density}")
        self.density = density

    def label(self, now: datetime) -> str:
        """Range label, e.g. 'Jan 13 – Jan 19, 2025'."""
        start, end = self.window(now)
        last = add_days(end, -1)
        return f"{start.strftime('%b %d')} – {last.strftime('%b %d, %Y')}"


@dataclass
class PlannerState:
    """Everything that is saved between runs."""

    tasks: list[Task] = field(default_factory=list)
    view: ViewState = field(default_factory=ViewState)

    def to_dict(self) -> dict:
        return {
            "viewStart": self.view.view_start.isoformat() if self.view.view_start else None,
            "viewMode": self.view.view_mode,
            "density": self.view.density,
            "filterText": self.view.filter_text,
            "tasks": [t.to_dict() for t in self.tasks],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlannerState":
        """
        Rebuild state from a saved document.

        Missing view fields fall back to defaults. Task records that cannot be
        parsed are skipped with a warning rather than failing the whole load.
        """
        view = ViewState()
        if data.get("viewStart"):
            try:
                view.view_start = datetime.fromisoformat(data["viewStart"])
            except (TypeError, ValueError):
                logger.warning(f"Ignoring invalid viewStart: {data['viewStart']!r}")
        if data.get("viewMode") in VIEW_MODES:
            view.view_mode = data["viewMode"]
        if data.get("density") in DENSITIES:
            view.density = data["density"]
        if isinstance(data.get("filterText"), str):
            view.filter_text = data["filterText"]

        tasks = []
        for raw in data.get("tasks") or []:
            try:
                tasks.append(Task.from_dict(raw))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed task record {raw!r}: {e}")
        return cls(tasks=tasks, view=view)
