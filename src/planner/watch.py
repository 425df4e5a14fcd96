"""Periodic "now" refresh - read-only, safe to skip or coalesce."""

import logging
from datetime import datetime
from typing import Callable

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .adapters.file_state import FileStateStore
from .adapters.memory_store import InMemoryTaskStore
from .config import Config, load_config
from .core.tasks import format_hm
from .scheduling import Planner

logger = logging.getLogger(__name__)


def render_now(planner: Planner, now: datetime) -> str:
    """One status line: the placement in progress and the next one."""
    current, upcoming = planner.current_and_next(now)
    parts = [f"[{format_hm(now)}]"]
    if current:
        parts.append(f"Now: {current.task.title} (until {format_hm(current.end)})")
    else:
        parts.append("Now: free")
    if upcoming:
        day = "" if upcoming.start.date() == now.date() else upcoming.start.strftime("%a %b %d ")
        parts.append(f"Next: {upcoming.task.title} at {day}{format_hm(upcoming.start)}")
    else:
        parts.append("Next: nothing scheduled")
    return " | ".join(parts)


def refresh(
    state_store: FileStateStore,
    echo: Callable[[str], None],
    clock: Callable[[], datetime] = datetime.now,
) -> None:
    """Reload saved state and print the current status."""
    state = state_store.load()
    planner = Planner(InMemoryTaskStore(state.tasks), clock=clock)
    echo(render_now(planner, clock()))


def setup_scheduler(
    state_store: FileStateStore,
    config: Config | None = None,
    echo: Callable[[str], None] = print,
) -> BlockingScheduler:
    """Set up the refresh job."""
    if config is None:
        config = load_config()

    scheduler = BlockingScheduler()
    scheduler.add_job(
        refresh,
        IntervalTrigger(seconds=config.refresh_seconds),
        args=[state_store, echo],
        id="now_refresh",
        coalesce=True,
        max_instances=1,
        next_run_time=datetime.now(),
    )
    logger.info(f"Scheduled now refresh every {config.refresh_seconds}s")
    return scheduler


def run_watch(config: Config | None = None, echo: Callable[[str], None] = print) -> None:
    """Print the current status until interrupted."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    if config is None:
        config = load_config()

    state_store = FileStateStore(config.state_file, seed_samples=config.seed_samples)
    scheduler = setup_scheduler(state_store, config, echo)
    logger.info("Starting now refresh...")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Now refresh stopped")
