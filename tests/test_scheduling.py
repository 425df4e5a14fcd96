"""Tests for the scheduling operations layer."""

import copy
from datetime import datetime, timedelta

import pytest

from planner.adapters.memory_store import InMemoryTaskStore
from planner.core.results import ErrorKind
from planner.core.tasks import RecurrenceRule, RecurrenceType, make_rule
from planner.scheduling import UNCHANGED, Planner


@pytest.fixture
def now():
    # Monday morning
    return datetime(2025, 1, 13, 8, 0)


@pytest.fixture
def planner(now):
    return Planner(InMemoryTaskStore(), clock=lambda: now)


@pytest.fixture
def monday_nine():
    return datetime(2025, 1, 13, 9, 0)


def snapshot(planner):
    return copy.deepcopy(planner.store.all())


class TestCreateTask:
    def test_inbox_task(self, planner):
        result = planner.create_task("Read 20 pages", 45)
        assert result.ok
        assert result.task.scheduled_start is None
        assert planner.find_task(result.task.id) == result.task
        assert planner.inbox() == [result.task]

    def test_default_duration(self, now):
        planner = Planner(InMemoryTaskStore(), clock=lambda: now, default_duration=30)
        assert planner.create_task("Quick").task.duration == 30

    def test_duration_clamped(self, planner):
        assert planner.create_task("Long", 1000).task.duration == 480
        assert planner.create_task("Short", 5).task.duration == 15

    def test_empty_title_rejected(self, planner):
        result = planner.create_task("   ")
        assert not result.ok
        assert result.error is ErrorKind.VALIDATION
        assert planner.store.all() == []

    def test_bad_duration_rejected(self, planner):
        result = planner.create_task("Read", "soon")
        assert result.error is ErrorKind.VALIDATION

    def test_infinite_duration_rejected(self, planner):
        result = planner.create_task("Read", float("inf"))
        assert result.error is ErrorKind.VALIDATION
        assert planner.store.all() == []

    def test_result_task_is_detached(self, planner):
        result = planner.create_task("Read", 45)
        result.task.duration = 5
        result.task.title = "Changed"
        stored = planner.find_task(result.task.id)
        assert (stored.title, stored.duration) == ("Read", 45)

        stored.title = "Changed again"
        assert planner.find_task(result.task.id).title == "Read"

    def test_quick_create_on_slot(self, planner, monday_nine):
        result = planner.create_task("Call", 30, monday_nine)
        assert result.ok
        assert result.task.scheduled_start == monday_nine

    def test_quick_create_conflict(self, planner, monday_nine):
        planner.create_task("A", 60, monday_nine)
        result = planner.create_task("B", 30, monday_nine + timedelta(minutes=30))
        assert result.error is ErrorKind.OVERLAP_CONFLICT
        assert len(planner.store) == 1


class TestSchedule:
    def test_overlap_rejected(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        b = planner.create_task("B", 30).task
        assert planner.schedule(a.id, monday_nine).ok

        before = snapshot(planner)
        result = planner.schedule(b.id, monday_nine + timedelta(minutes=30))

        assert not result.ok
        assert result.error is ErrorKind.OVERLAP_CONFLICT
        assert result.conflict.task_id == a.id
        assert result.conflict.start == monday_nine
        assert result.conflict.end == monday_nine + timedelta(hours=1)
        assert planner.store.all() == before

    def test_back_to_back_allowed(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        b = planner.create_task("B", 30).task
        planner.schedule(a.id, monday_nine)
        assert planner.schedule(b.id, monday_nine + timedelta(hours=1)).ok

    def test_move_ignores_own_placement(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        planner.schedule(a.id, monday_nine)
        result = planner.schedule(a.id, monday_nine + timedelta(minutes=30))
        assert result.ok
        assert planner.find_task(a.id).scheduled_start == monday_nine + timedelta(minutes=30)

    @pytest.mark.parametrize("given,expected", [(0, 15), (5, 15), (600, 480), (90, 90)])
    def test_clamps_duration(self, planner, monday_nine, given, expected):
        a = planner.create_task("A").task
        assert planner.schedule(a.id, monday_nine, given).task.duration == expected

    def test_clamped_duration_is_what_gets_validated(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        b = planner.create_task("B").task
        planner.schedule(a.id, monday_nine + timedelta(minutes=15))
        # 1 minute would fit before A, but it clamps to 15 which still fits exactly
        assert planner.schedule(b.id, monday_nine, 1).ok
        planner.unschedule(b.id)
        # 20 minutes does not fit
        assert planner.schedule(b.id, monday_nine, 20).error is ErrorKind.OVERLAP_CONFLICT

    def test_conflict_with_recurring_occurrence(self, planner, monday_nine):
        a = planner.create_task("Standup", 30).task
        b = planner.create_task("Dentist", 60).task
        planner.schedule(a.id, monday_nine)
        planner.set_recurrence(a.id, make_rule("daily", monday_nine))

        result = planner.schedule(b.id, datetime(2025, 1, 16, 9, 15))
        assert result.error is ErrorKind.OVERLAP_CONFLICT
        assert result.conflict.is_recurring_instance is True
        assert result.conflict.occurrence_key == f"{a.id}::2025-01-16"

    def test_moving_recurring_task_checks_its_occurrences(self, planner, monday_nine):
        a = planner.create_task("Standup", 30).task
        b = planner.create_task("Dentist", 60).task
        planner.schedule(a.id, monday_nine)
        planner.set_recurrence(a.id, make_rule("daily", monday_nine))
        planner.schedule(b.id, datetime(2025, 1, 16, 14, 0))

        before = snapshot(planner)
        result = planner.schedule(a.id, datetime(2025, 1, 13, 14, 0))
        assert result.error is ErrorKind.OVERLAP_CONFLICT
        assert result.conflict.task_id == b.id
        assert result.conflict.proposed_start == datetime(2025, 1, 16, 14, 0)
        assert planner.store.all() == before

    def test_weekly_rule_follows_new_weekday(self, planner, monday_nine):
        a = planner.create_task("Review", 60).task
        planner.schedule(a.id, monday_nine)
        planner.set_recurrence(a.id, make_rule("weekly", monday_nine))

        result = planner.schedule(a.id, datetime(2025, 1, 15, 9, 0))
        assert result.ok
        assert result.task.recurrence.days == (3,)

    def test_not_found(self, planner, monday_nine):
        assert planner.schedule("missing", monday_nine).error is ErrorKind.NOT_FOUND


class TestUnschedule:
    def test_clears_start_and_recurrence(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        planner.schedule(a.id, monday_nine)
        planner.set_recurrence(a.id, make_rule("daily", monday_nine))

        result = planner.unschedule(a.id)
        assert result.ok
        assert result.task.scheduled_start is None
        assert result.task.recurrence is None
        assert planner.inbox() == [result.task]

    def test_recurring_task_leaves_no_occurrences(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        planner.schedule(a.id, monday_nine)
        planner.set_recurrence(a.id, make_rule("daily", monday_nine))
        planner.unschedule(a.id)

        for offset in (1, 7, 20):
            start = datetime(2025, 1, 13) + timedelta(days=offset)
            assert planner.list_visible(start, start + timedelta(days=7)) == []

    def test_frees_the_slot(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        b = planner.create_task("B", 60).task
        planner.schedule(a.id, monday_nine)
        planner.unschedule(a.id)
        assert planner.schedule(b.id, monday_nine).ok

    def test_not_found(self, planner):
        assert planner.unschedule("missing").error is ErrorKind.NOT_FOUND


class TestResize:
    def test_grow(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        planner.schedule(a.id, monday_nine)
        assert planner.resize(a.id, 90).task.duration == 90

    def test_conflict_leaves_duration(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        b = planner.create_task("B", 60).task
        planner.schedule(a.id, monday_nine)
        planner.schedule(b.id, monday_nine + timedelta(hours=1))

        result = planner.resize(a.id, 90)
        assert result.error is ErrorKind.OVERLAP_CONFLICT
        assert planner.find_task(a.id).duration == 60

    def test_clamps(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        planner.schedule(a.id, monday_nine)
        assert planner.resize(a.id, 2000).task.duration == 480
        assert planner.resize(a.id, -5).task.duration == 15

    def test_inbox_task_not_checked(self, planner):
        a = planner.create_task("A", 60).task
        assert planner.resize(a.id, 120).task.duration == 120

    def test_resize_by_snaps(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        planner.schedule(a.id, monday_nine)
        assert planner.resize_by(a.id, 22).task.duration == 75
        assert planner.resize_by(a.id, -38).task.duration == 30

    def test_infinite_duration_rejected(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        planner.schedule(a.id, monday_nine)
        assert planner.resize(a.id, float("inf")).error is ErrorKind.VALIDATION
        assert planner.resize_by(a.id, float("-inf")).error is ErrorKind.VALIDATION
        assert planner.schedule(a.id, monday_nine, float("inf")).error is ErrorKind.VALIDATION
        assert planner.edit(a.id, duration=float("inf")).error is ErrorKind.VALIDATION
        assert planner.find_task(a.id).duration == 60

    def test_not_found(self, planner):
        assert planner.resize("missing", 30).error is ErrorKind.NOT_FOUND
        assert planner.resize_by("missing", 15).error is ErrorKind.NOT_FOUND


class TestSetRecurrence:
    def test_daily_visible_on_wednesday(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        planner.schedule(a.id, monday_nine)
        assert planner.set_recurrence(a.id, make_rule("daily", monday_nine)).ok

        wednesday = datetime(2025, 1, 15)
        placements = planner.list_visible(wednesday, wednesday + timedelta(days=1))
        assert len(placements) == 1
        assert placements[0].start == datetime(2025, 1, 15, 9, 0)
        assert placements[0].is_recurring_instance is True
        assert placements[0].task.id == a.id

    def test_requires_schedule(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        result = planner.set_recurrence(a.id, make_rule("daily", monday_nine))
        assert result.error is ErrorKind.INVALID_RECURRENCE_RULE
        assert planner.find_task(a.id).recurrence is None

    def test_empty_custom_days_rejected(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        planner.schedule(a.id, monday_nine)
        result = planner.set_recurrence(a.id, RecurrenceRule(RecurrenceType.CUSTOM, ()))
        assert result.error is ErrorKind.INVALID_RECURRENCE_RULE

    def test_rule_days_follow_its_type(self, planner, monday_nine):
        a = planner.create_task("A", 30).task
        planner.schedule(a.id, monday_nine)

        result = planner.set_recurrence(a.id, RecurrenceRule(RecurrenceType.DAILY, (3,)))
        assert result.ok
        assert planner.find_task(a.id).recurrence.days == (0, 1, 2, 3, 4, 5, 6)

        result = planner.set_recurrence(a.id, RecurrenceRule(RecurrenceType.WEEKLY, (5,)))
        assert result.ok
        assert planner.find_task(a.id).recurrence.days == (1,)

    def test_out_of_range_custom_day_rejected(self, planner, monday_nine):
        a = planner.create_task("A", 30).task
        planner.schedule(a.id, monday_nine)
        result = planner.set_recurrence(a.id, RecurrenceRule(RecurrenceType.CUSTOM, (1, 9)))
        assert result.error is ErrorKind.INVALID_RECURRENCE_RULE
        assert planner.find_task(a.id).recurrence is None

    def test_set_repeat_empty_custom_days_rejected(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        planner.schedule(a.id, monday_nine)
        result = planner.set_repeat(a.id, "custom", [])
        assert result.error is ErrorKind.INVALID_RECURRENCE_RULE
        assert planner.find_task(a.id).recurrence is None

    def test_conflict_rejects_whole_rule(self, planner, monday_nine):
        a = planner.create_task("Standup", 30).task
        b = planner.create_task("Dentist", 60).task
        planner.schedule(a.id, monday_nine)
        planner.schedule(b.id, datetime(2025, 1, 17, 9, 15))

        before = snapshot(planner)
        result = planner.set_recurrence(a.id, make_rule("daily", monday_nine))

        assert result.error is ErrorKind.OVERLAP_CONFLICT
        assert result.conflict.task_id == b.id
        assert result.conflict.proposed_start == datetime(2025, 1, 17, 9, 0)
        assert "Friday, Jan 17 at 09:00" in result.message
        assert planner.store.all() == before

    def test_conflict_beyond_cap_ignored(self, planner, monday_nine):
        a = planner.create_task("Standup", 30).task
        b = planner.create_task("Far away", 60).task
        planner.schedule(a.id, monday_nine)
        planner.schedule(b.id, datetime(2025, 3, 3, 9, 0))
        assert planner.set_recurrence(a.id, make_rule("daily", monday_nine)).ok

    def test_clear_unconditionally(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        planner.schedule(a.id, monday_nine)
        planner.set_recurrence(a.id, make_rule("daily", monday_nine))
        assert planner.set_recurrence(a.id, None).task.recurrence is None
        assert planner.set_repeat(a.id, "none").ok

    def test_set_repeat_weekly(self, planner):
        a = planner.create_task("A", 60).task
        tuesday = datetime(2025, 1, 14, 9, 0)
        planner.schedule(a.id, tuesday)
        result = planner.set_repeat(a.id, "weekly")
        assert result.task.recurrence.days == (2,)

    def test_not_found(self, planner):
        assert planner.set_recurrence("missing", None).error is ErrorKind.NOT_FOUND


class TestEdit:
    def test_applies_everything(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        planner.schedule(a.id, monday_nine)
        result = planner.edit(a.id, title="Renamed", duration=30, rule=make_rule("daily", monday_nine))
        assert result.ok
        assert result.task.title == "Renamed"
        assert result.task.duration == 30
        assert result.task.recurrence.type is RecurrenceType.DAILY

    def test_all_or_nothing(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        b = planner.create_task("B", 60).task
        planner.schedule(a.id, monday_nine)
        planner.schedule(b.id, monday_nine + timedelta(hours=1))

        before = snapshot(planner)
        result = planner.edit(a.id, title="Renamed", duration=120)
        assert result.error is ErrorKind.OVERLAP_CONFLICT
        assert planner.store.all() == before

    def test_blank_title_keeps_current(self, planner):
        a = planner.create_task("A", 60).task
        assert planner.edit(a.id, title="  ").task.title == "A"

    def test_unchanged_rule_kept(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        planner.schedule(a.id, monday_nine)
        planner.set_recurrence(a.id, make_rule("daily", monday_nine))
        assert planner.edit(a.id, duration=45, rule=UNCHANGED).task.recurrence is not None

    def test_rule_on_inbox_task_rejected(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        result = planner.edit(a.id, rule=make_rule("daily", monday_nine))
        assert result.error is ErrorKind.INVALID_RECURRENCE_RULE

    def test_weekly_rule_normalized_to_anchor(self, planner, monday_nine):
        a = planner.create_task("A", 30).task
        planner.schedule(a.id, monday_nine)
        result = planner.edit(a.id, rule=RecurrenceRule(RecurrenceType.WEEKLY, (4,)))
        assert result.ok
        assert result.task.recurrence.days == (1,)


class TestRenameAndDelete:
    def test_rename(self, planner):
        a = planner.create_task("A").task
        assert planner.rename(a.id, " Better ").task.title == "Better"
        assert planner.rename(a.id, "").error is ErrorKind.VALIDATION

    def test_delete(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        planner.schedule(a.id, monday_nine)
        assert planner.delete(a.id).ok
        assert planner.find_task(a.id) is None
        assert planner.delete(a.id).error is ErrorKind.NOT_FOUND


class TestListing:
    def test_list_visible_orders_by_start(self, planner, monday_nine):
        late = planner.create_task("Late", 60).task
        early = planner.create_task("Early", 60).task
        planner.schedule(late.id, monday_nine + timedelta(hours=3))
        planner.schedule(early.id, monday_nine)

        start = datetime(2025, 1, 13)
        placements = planner.list_visible(start, start + timedelta(days=7))
        assert [p.task.id for p in placements] == [early.id, late.id]
        assert all(not p.is_recurring_instance for p in placements)

    def test_list_visible_never_past_cap(self, planner, now, monday_nine):
        a = planner.create_task("A", 60).task
        planner.schedule(a.id, monday_nine)
        planner.set_recurrence(a.id, make_rule("daily", monday_nine))

        start = datetime(2025, 1, 13)
        placements = planner.list_visible(start, start + timedelta(days=90))
        assert max(p.start for p in placements) < now + timedelta(days=30)

    def test_inbox_filter(self, planner):
        planner.create_task("Read book")
        planner.create_task("Workout")
        assert [t.title for t in planner.inbox("read")] == ["Read book"]

    def test_current_and_next(self, planner, monday_nine):
        a = planner.create_task("A", 60).task
        b = planner.create_task("B", 60).task
        planner.schedule(a.id, monday_nine)
        planner.schedule(b.id, monday_nine + timedelta(hours=2))

        current, upcoming = planner.current_and_next(monday_nine + timedelta(minutes=10))
        assert current.task.id == a.id
        assert upcoming.task.id == b.id
