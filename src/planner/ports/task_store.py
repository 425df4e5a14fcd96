"""Task store interface."""

from typing import Protocol

from planner.core.tasks import Task


class TaskStore(Protocol):
    """Interface for the single source of truth of task records."""

    def get(self, task_id: str) -> Task | None:
        """Look up a task. Returns None if not found."""
        ...

    def all(self) -> list[Task]:
        """All tasks in insertion order."""
        ...

    def insert(self, task: Task) -> None:
        """Add a new task. Raises KeyError if the id is taken."""
        ...

    def update(self, task: Task) -> None:
        """Replace an existing task. Raises KeyError if missing."""
        ...

    def remove(self, task_id: str) -> Task | None:
        """Remove a task, returning it, or None if it was not stored."""
        ...
