"""In-memory task store adapter."""

from planner.core.tasks import Task


class InMemoryTaskStore:
    """
    Dict-backed task store.

    Implements TaskStore protocol. Keeps insertion order so the inbox lists
    tasks in the order they were added.
    """

    def __init__(self, tasks: list[Task] | None = None):
        self._tasks: dict[str, Task] = {}
        for task in tasks or []:
            self.insert(task)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._tasks

    def get(self, task_id: str) -> Task | None:
        """Look up a task. Returns None if not found."""
        return self._tasks.get(task_id)

    def all(self) -> list[Task]:
        """All tasks in insertion order."""
        return list(self._tasks.values())

    def insert(self, task: Task) -> None:
        """Add a new task. Raises KeyError if the id is taken."""
        if task.id in self._tasks:
            raise KeyError(f"Duplicate task id: {task.id}")
        self._tasks[task.id] = task

    def update(self, task: Task) -> None:
        """Replace an existing task in place, keeping its position."""
        if task.id not in self._tasks:
            raise KeyError(f"Unknown task id: {task.id}")
        self._tasks[task.id] = task

    def remove(self, task_id: str) -> Task | None:
        """Remove a task, returning it, or None if it was not stored."""
        return self._tasks.pop(task_id, None)
