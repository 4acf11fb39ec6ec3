"""Tests for materializing task and event instances."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from calrecur import (
    MONDAY,
    Event,
    EventSeries,
    InstanceOverride,
    Priority,
    RecurrenceRule,
    Task,
    TaskSeries,
    generate_event_instances,
    generate_task_instances,
)

NY = ZoneInfo("America/New_York")


@dataclass(frozen=True, kw_only=True)
class TaggedTask(Task):
    tags: tuple[str, ...] = ()


def _daily_task(**kwargs) -> Task:
    return Task(
        id="t1",
        title="Standup notes",
        priority=Priority("A", 3),
        scheduled_date=date(2026, 2, 2),
        recurrence=RecurrenceRule(kind="daily", **kwargs),
    )


def test_task_instances():
    """Test ids, flags and per-day fields of task instances."""
    template = _daily_task()
    instances = generate_task_instances(template, None, None, "2026-02-02", "2026-02-04")

    assert [t.id for t in instances] == [
        "t1_2026-02-02",
        "t1_2026-02-03",
        "t1_2026-02-04",
    ]
    for task, day in zip(instances, [2, 3, 4]):
        assert task.scheduled_date == date(2026, 2, day)
        assert task.instance_date == date(2026, 2, day)
        assert task.is_recurring_instance
        assert task.recurring_parent_id == "t1"
        assert task.recurrence is None
        assert task.priority == Priority("A", 0)
        assert task.title == "Standup notes"

    # The template itself is untouched
    assert template.priority == Priority("A", 3)
    assert not template.is_recurring_instance


def test_task_overrides():
    """Test per-date overrides keyed by any date representation."""
    template = _daily_task(
        instance_overrides={
            "2026-02-03T00:00:00.000Z": {"status": "complete"},
            date(2026, 2, 4): InstanceOverride(title="Moved to noon", description=""),
        }
    )
    instances = generate_task_instances(template, None, None, "2026-02-02", "2026-02-04")

    assert instances[0].status == "in_progress"
    assert instances[1].status == "complete"
    assert instances[2].title == "Moved to noon"
    # Empty override fields keep the template value
    assert instances[2].description == template.description


def test_task_exceptions_skip_instances():
    """Test that exception days produce no instance."""
    template = _daily_task(exceptions=("2026-02-03",))
    instances = generate_task_instances(template, None, None, "2026-02-02", "2026-02-04")
    assert [t.instance_date for t in instances] == [date(2026, 2, 2), date(2026, 2, 4)]


def test_explicit_rule_and_anchor():
    """Test passing the rule and anchor instead of reading the template."""
    template = Task(id="t2", title="Water plants")
    rule = RecurrenceRule(kind="weekly", days_of_week=(MONDAY,))
    instances = generate_task_instances(
        template, rule, "2026-02-02", "2026-02-01", "2026-02-16"
    )
    assert [t.scheduled_date for t in instances] == [
        date(2026, 2, 2),
        date(2026, 2, 9),
        date(2026, 2, 16),
    ]


def test_subclass_fields_are_kept():
    """Test that extra fields of a Task subclass reach every instance."""
    template = TaggedTask(
        id="t3",
        tags=("home",),
        scheduled_date=date(2026, 2, 2),
        recurrence=RecurrenceRule(kind="daily"),
    )
    instances = TaskSeries(template)["2026-02-02":"2026-02-03"]
    assert all(isinstance(t, TaggedTask) for t in instances)
    assert all(t.tags == ("home",) for t in instances)


def test_task_without_rule():
    """Test that a non-recurring task has no instances."""
    template = Task(id="t4", scheduled_date=date(2026, 2, 2))
    assert generate_task_instances(template, None, None, "2026-02-01", "2026-02-28") == []


def test_template_must_be_dataclass():
    """Test that arbitrary objects are rejected as templates."""
    with pytest.raises(TypeError, match="dataclass instance"):
        TaskSeries({"id": "t5"}, RecurrenceRule(kind="daily"), "2026-02-01")


def _weekly_event(**kwargs) -> Event:
    return Event(
        id="evt-1",
        title="Team sync",
        start_time=datetime(2026, 2, 2, 14, 0, tzinfo=NY),
        end_time=datetime(2026, 2, 2, 15, 0, tzinfo=NY),
        recurrence=RecurrenceRule(kind="weekly", days_of_week=(MONDAY,), **kwargs),
    )


def test_event_instances():
    """Test weekly event instances keep time of day and duration."""
    template = _weekly_event()
    instances = generate_event_instances(template, None, None, "2026-02-01", "2026-02-28")

    assert [e.id for e in instances] == [
        "evt-1_2026-02-02",
        "evt-1_2026-02-09",
        "evt-1_2026-02-16",
        "evt-1_2026-02-23",
    ]
    for event in instances:
        assert event.start_time.hour == 14
        assert event.start_time.tzinfo is NY
        assert event.end_time - event.start_time == timedelta(hours=1)
        assert event.is_recurring_instance
        assert event.recurring_parent_id == "evt-1"
        assert event.recurrence is None
        assert event.start_time.date() == event.instance_date


def test_event_wall_clock_across_dst():
    """Test that instances stay at 14:00 local across the DST change."""
    template = _weekly_event()
    # Clocks in New York move forward on Sunday, March 8, 2026
    instances = EventSeries(template)["2026-03-01":"2026-03-16"]
    assert [e.start_time.date() for e in instances] == [
        date(2026, 3, 2),
        date(2026, 3, 9),
        date(2026, 3, 16),
    ]
    assert all(e.start_time.hour == 14 for e in instances)
    assert instances[0].start_time.utcoffset() == timedelta(hours=-5)
    assert instances[1].start_time.utcoffset() == timedelta(hours=-4)


def test_event_overrides_apply_known_fields_only():
    """Test that overrides for fields an event lacks are ignored."""
    template = _weekly_event(
        instance_overrides={
            "2026-02-09": {"title": "Sync (moved room)", "status": "cancelled"}
        }
    )
    instances = generate_event_instances(template, None, None, "2026-02-09", "2026-02-09")
    assert len(instances) == 1
    assert instances[0].title == "Sync (moved room)"
    assert not hasattr(instances[0], "status")


def test_overnight_event():
    """Test an event that ends on the following day."""
    template = Event(
        id="evt-2",
        title="Night shift",
        start_time=datetime(2026, 2, 2, 22, 0),
        end_time=datetime(2026, 2, 3, 1, 0),
        recurrence=RecurrenceRule(kind="daily"),
    )
    instances = generate_event_instances(template, None, None, "2026-02-03", "2026-02-03")
    assert len(instances) == 1
    assert instances[0].start_time == datetime(2026, 2, 3, 22, 0)
    assert instances[0].end_time == datetime(2026, 2, 4, 1, 0)


def test_event_rejects_negative_duration():
    """Test that an event cannot end before it starts."""
    with pytest.raises(ValueError, match="must be >="):
        Event(
            id="evt-3",
            start_time=datetime(2026, 2, 2, 15, 0),
            end_time=datetime(2026, 2, 2, 14, 0),
        )
