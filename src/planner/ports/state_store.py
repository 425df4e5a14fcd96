"""State persistence interface."""

from typing import Protocol

from planner.core.state import PlannerState


class StateStore(Protocol):
    """Interface for loading and saving the whole planner state."""

    def load(self) -> PlannerState:
        """Load saved state, or a fresh one if nothing is saved."""
        ...

    def save(self, state: PlannerState) -> None:
        """Write/overwrite the saved state."""
        ...
