"""Adapters - I/O implementations of ports."""

from .memory_store import InMemoryTaskStore
from .file_state import FileStateStore

__all__ = [
    "InMemoryTaskStore",
    "FileStateStore",
]
