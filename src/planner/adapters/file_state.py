"""JSON file state storage adapter."""

import json
import logging
import os
from pathlib import Path

from planner.core.state import PlannerState
from planner.core.tasks import sample_tasks

logger = logging.getLogger(__name__)


class FileStateStore:
    """
    File-based planner state storage.

    Implements StateStore protocol. The whole state lives in one JSON
    document; a missing file seeds the inbox with sample tasks and a corrupt
    one starts fresh.
    """

    def __init__(self, path: Path | str, seed_samples: bool = True):
        self.path = Path(path).expanduser()
        self.seed_samples = seed_samples

    def _fresh(self) -> PlannerState:
        return PlannerState(tasks=sample_tasks() if self.seed_samples else [])

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> PlannerState:
        """Load saved state, or a fresh one if nothing usable is saved."""
        if not self.path.exists():
            logger.info(f"No state at {self.path}, starting fresh")
            return self._fresh()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load state from {self.path}, starting fresh: {e}")
            return self._fresh()
        if not isinstance(data, dict):
            logger.warning(f"Unexpected state document in {self.path}, starting fresh")
            return self._fresh()

        state = PlannerState.from_dict(data)
        logger.info(f"Loaded {len(state.tasks)} tasks from {self.path}")
        return state

    def save(self, state: PlannerState) -> None:
        """Write/overwrite the saved state via a temp file and rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(state.to_dict(), indent=2), encoding="utf-8")
        os.replace(tmp, self.path)
        logger.debug(f"Saved {len(state.tasks)} tasks to {self.path}")
