"""Ports - interfaces/protocols for external dependencies."""

from .task_store import TaskStore
from .state_store import StateStore

__all__ = [
    "TaskStore",
    "StateStore",
]
