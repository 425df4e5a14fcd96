"""Tests for the periodic now refresh."""

from datetime import datetime, timedelta

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from planner.adapters.file_state import FileStateStore
from planner.adapters.memory_store import InMemoryTaskStore
from planner.config import Config
from planner.core.state import PlannerState
from planner.core.tasks import Task, make_rule
from planner.scheduling import Planner
from planner.watch import refresh, render_now, setup_scheduler


@pytest.fixture
def now():
    return datetime(2025, 1, 13, 9, 10)


@pytest.fixture
def tasks():
    nine = datetime(2025, 1, 13, 9, 0)
    return [
        Task(id="a", title="Standup", duration=30, scheduled_start=nine, recurrence=make_rule("daily", nine)),
        Task(id="b", title="Lunch", duration=60, scheduled_start=datetime(2025, 1, 13, 12, 0)),
    ]


class TestRenderNow:
    def test_current_and_next(self, tasks, now):
        planner = Planner(InMemoryTaskStore(tasks), clock=lambda: now)
        assert render_now(planner, now) == "[09:10] | Now: Standup (until 09:30) | Next: Lunch at 12:00"

    def test_next_on_another_day(self, tasks, now):
        planner = Planner(InMemoryTaskStore(tasks), clock=lambda: now)
        evening = now.replace(hour=20, minute=0)
        assert render_now(planner, evening) == "[20:00] | Now: free | Next: Standup at Tue Jan 14 09:00"

    def test_nothing_scheduled(self, now):
        planner = Planner(InMemoryTaskStore(), clock=lambda: now)
        assert render_now(planner, now) == "[09:10] | Now: free | Next: nothing scheduled"


def test_refresh_reads_saved_state(tmp_path, tasks, now):
    store = FileStateStore(tmp_path / "state.json")
    store.save(PlannerState(tasks=tasks))
    lines = []

    refresh(store, lines.append, clock=lambda: now)

    assert lines == ["[09:10] | Now: Standup (until 09:30) | Next: Lunch at 12:00"]


def test_setup_scheduler(tmp_path):
    store = FileStateStore(tmp_path / "state.json")
    scheduler = setup_scheduler(store, Config(refresh_seconds=30), echo=lambda line: None)

    job = scheduler.get_job("now_refresh")
    assert job is not None
    assert isinstance(job.trigger, IntervalTrigger)
    assert job.trigger.interval == timedelta(seconds=30)
    assert job.coalesce is True
    assert job.max_instances == 1
