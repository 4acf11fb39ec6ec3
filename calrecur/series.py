"""Expand recurrence rules over a date window.

A series pairs a rule with its anchor (the first possible occurrence) and is
queried by slicing, with both bounds inclusive:

    >>> series = DateSeries(RecurrenceRule(kind="daily"), "2026-01-01")
    >>> series["2026-03-01":"2026-03-03"]
    [datetime.date(2026, 3, 1), datetime.date(2026, 3, 2), datetime.date(2026, 3, 3)]

Expansion holds no state between calls: the same arguments always yield the
same sequence. Windows that start after the anchor are reached by walking the
rule forward from the anchor, so occurrence-count end conditions stay correct
no matter where the window begins.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import fields, is_dataclass, replace
from datetime import date, datetime, timedelta
from typing import Any, Generic, NamedTuple, TypeVar

from typing_extensions import override

from calrecur.dates import to_comparable, weekday_index
from calrecur.exdates import exception_keys
from calrecur.items import Event, Task
from calrecur.recurrence import advance
from calrecur.rule import InstanceOverride, RecurrenceRule, has_ended
from calrecur.util import DEFAULT_GENERATION_DAYS, MAX_OCCURRENCES

logger = logging.getLogger(__name__)

T = TypeVar("T")
TaskT = TypeVar("TaskT", bound=Task)
EventT = TypeVar("EventT", bound=Event)


class Expansion(NamedTuple):
    """Occurrence dates of one expansion.

    ``truncated`` is True when the occurrence limit stopped the expansion
    while further occurrences remained in the window.
    """

    dates: tuple[date, ...]
    truncated: bool


_EMPTY = Expansion(dates=(), truncated=False)


def _first_weekly(rule: RecurrenceRule, anchor: date) -> date:
    """First day on or after ``anchor`` whose weekday the rule lists."""
    days = set(rule.days_of_week)
    for offset in range(7):
        candidate = anchor + timedelta(days=offset)
        if weekday_index(candidate) in days:
            return candidate
    return anchor


def expand(
    rule: RecurrenceRule,
    anchor: Any,
    start: Any,
    end: Any,
    *,
    limit: int = MAX_OCCURRENCES,
    source: str = "recurrence",
) -> Expansion:
    """
    Compute every occurrence of ``rule`` within ``[start, end]``.

    Args:
        rule: Recurrence rule
        anchor: First possible occurrence
        start: First day of the window (inclusive)
        end: Last day of the window (inclusive)
        limit: Maximum occurrences emitted by this call
        source: Name used in log messages (e.g. the template id)

    Returns:
        Expansion with the ordered, duplicate-free occurrence dates. Invalid
        rules or dates produce an empty expansion, never an exception.
    """
    problems = rule.problems()
    if problems:
        logger.warning(
            "Ignoring invalid %s rule for %s: %s",
            rule.kind,
            source,
            "; ".join(problems),
        )
        return _EMPTY

    first = to_comparable(anchor)
    window_start = to_comparable(start)
    window_end = to_comparable(end)
    if first is None or window_start is None or window_end is None:
        logger.debug(
            "Invalid date for %s: anchor=%r start=%r end=%r", source, anchor, start, end
        )
        return _EMPTY
    if first > window_end or window_start > window_end:
        return _EMPTY

    # The engine only knows the first occurrence of a completion-based rule
    if rule.kind == "after_completion":
        if first < window_start:
            return _EMPTY
        return Expansion(dates=(first,), truncated=False)

    skipped = exception_keys(rule.exceptions)
    end_condition = rule.end_condition
    if rule.kind == "weekly":
        first = _first_weekly(rule, first)

    # Walk up to the window; excepted days do not count as occurrences
    current: date | None = first
    count = 0
    counting = end_condition.kind == "occurrences"
    while current is not None and current < window_start:
        if counting and current.isoformat() not in skipped:
            count += 1
            if has_ended(end_condition, count, current):
                return _EMPTY
        current = advance(rule, current)

    emitted: list[date] = []
    truncated = False
    while (
        current is not None
        and current <= window_end
        and not has_ended(end_condition, count, current)
    ):
        if current.isoformat() not in skipped:
            if len(emitted) >= limit:
                truncated = True
                break
            emitted.append(current)
            count += 1
        current = advance(rule, current)

    if truncated:
        logger.warning(
            "Reached the limit of %d occurrences for %s between %s and %s; "
            "later occurrences were dropped",
            limit,
            source,
            window_start,
            window_end,
        )
    return Expansion(dates=tuple(emitted), truncated=truncated)


class Series(ABC, Generic[T]):
    """A recurrence anchored at a date, queried by inclusive date windows."""

    def __init__(
        self,
        rule: RecurrenceRule | None,
        anchor: Any,
        *,
        limit: int = MAX_OCCURRENCES,
    ):
        self.rule: RecurrenceRule | None = rule
        self.anchor: Any = anchor
        self.limit: int = limit

    @property
    def source(self) -> str:
        """Name of this series in log messages."""
        return "recurrence"

    def expand(self, start: Any, end: Any) -> Expansion:
        if self.rule is None:
            return _EMPTY
        return expand(
            self.rule, self.anchor, start, end, limit=self.limit, source=self.source
        )

    @abstractmethod
    def fetch(self, start: Any, end: Any) -> Iterable[T]:
        """Yield occurrences within ``[start, end]`` in date order."""
        pass

    def __getitem__(self, item: slice) -> list[T]:
        if not isinstance(item, slice):
            raise TypeError(
                f"Series must be sliced with a date window, got {item!r}.\n"
                f"Example: series['2026-02-01':'2026-02-28']"
            )
        if item.step is not None:
            raise TypeError(
                f"Series slices do not take a step, got step={item.step!r}.\n"
                f"Example: series[date(2026, 2, 1):date(2026, 2, 28)]"
            )
        if item.start is None or item.stop is None:
            raise ValueError(
                "Series requires finite start and end bounds.\n"
                f"Got start={item.start!r}, end={item.stop!r}\n"
                "Fix: pass both window edges, e.g. series[start:end]\n"
                "Use generation_window(today) for the rolling planner window."
            )
        return list(self.fetch(item.start, item.stop))


class DateSeries(Series[date]):
    """Occurrence dates of a rule."""

    @override
    def fetch(self, start: Any, end: Any) -> Iterable[date]:
        return self.expand(start, end).dates


class _ItemSeries(Series[T], Generic[T]):
    """Occurrences materialized as copies of a template item."""

    def __init__(
        self,
        template: T,
        rule: RecurrenceRule | None = None,
        anchor: Any = None,
        *,
        limit: int = MAX_OCCURRENCES,
    ):
        if not is_dataclass(template) or isinstance(template, type):
            raise TypeError(
                f"Template must be a dataclass instance, got "
                f"{type(template).__name__!r}.\n"
                f"Example: TaskSeries(Task(id='t1', scheduled_date=date(2026, 2, 1)), rule)"
            )
        if rule is None:
            rule = getattr(template, "recurrence", None)
        if anchor is None:
            anchor = self._default_anchor(template)
        super().__init__(rule, anchor, limit=limit)
        self.template: T = template
        self._field_names: frozenset[str] = frozenset(f.name for f in fields(template))
        self._overrides: dict[str, InstanceOverride] = (
            rule.overrides_by_day() if rule is not None else {}
        )

    @property
    @override
    def source(self) -> str:
        return f"{type(self.template).__name__.lower()} {getattr(self.template, 'id', '?')}"

    def _default_anchor(self, template: T) -> Any:
        return None

    def _changes(self, day: date) -> dict[str, Any]:
        """Fields set on every instance; subclasses extend this."""
        parent_id = getattr(self.template, "id", "")
        changes: dict[str, Any] = {
            "id": f"{parent_id}_{day.isoformat()}",
            "instance_date": day,
            "recurrence": None,
            "is_recurring_instance": True,
            "recurring_parent_id": parent_id,
        }
        override = self._overrides.get(day.isoformat())
        if override is not None:
            changes.update(override.changes())
        return changes

    def instance(self, day: date) -> T:
        """Materialize the occurrence on ``day``."""
        changes = {
            name: value
            for name, value in self._changes(day).items()
            if name in self._field_names
        }
        return replace(self.template, **changes)

    @override
    def fetch(self, start: Any, end: Any) -> Iterable[T]:
        for day in self.expand(start, end).dates:
            yield self.instance(day)


class TaskSeries(_ItemSeries[TaskT], Generic[TaskT]):
    """Task instances of a recurring task.

    The anchor defaults to the template's ``scheduled_date``. Instances get
    priority number 0 so that the caller can number them within their day.
    """

    @override
    def _default_anchor(self, template: TaskT) -> Any:
        return template.scheduled_date

    @override
    def _changes(self, day: date) -> dict[str, Any]:
        changes = super()._changes(day)
        changes["scheduled_date"] = day
        changes["priority"] = replace(self.template.priority, number=0)
        return changes


class EventSeries(_ItemSeries[EventT], Generic[EventT]):
    """Event instances of a recurring event.

    Each instance keeps the template's time of day (and tzinfo) on its own
    date, and the template's duration.
    """

    @override
    def _default_anchor(self, template: EventT) -> Any:
        return template.start_time

    @override
    def _changes(self, day: date) -> dict[str, Any]:
        changes = super()._changes(day)
        template = self.template
        start_time = datetime.combine(day, template.start_time.timetz())
        changes["start_time"] = start_time
        changes["end_time"] = start_time + (template.end_time - template.start_time)
        return changes


def generate_dates(
    rule: RecurrenceRule,
    anchor: Any,
    start: Any,
    end: Any,
    *,
    limit: int = MAX_OCCURRENCES,
) -> list[date]:
    """
    List the occurrence dates of ``rule`` within ``[start, end]``.

    Args:
        rule: Recurrence rule
        anchor: First possible occurrence (date, datetime or ISO string)
        start: First day of the window (inclusive)
        end: Last day of the window (inclusive)
        limit: Safety cap on returned occurrences (default 1000)

    Returns:
        Ordered occurrence dates; empty for invalid rules or dates

    Examples:
        >>> from calrecur import RecurrenceRule, generate_dates
        >>>
        >>> # Every other week on Monday and Wednesday
        >>> rule = RecurrenceRule(kind="weekly", interval=2, days_of_week=(1, 3))
        >>> generate_dates(rule, "2026-02-02", "2026-02-01", "2026-02-20")
        [datetime.date(2026, 2, 2), datetime.date(2026, 2, 4), datetime.date(2026, 2, 16), datetime.date(2026, 2, 18)]
    """
    return list(DateSeries(rule, anchor, limit=limit).fetch(start, end))


def generate_task_instances(
    template: TaskT,
    rule: RecurrenceRule | None,
    anchor: Any,
    start: Any,
    end: Any,
    *,
    limit: int = MAX_OCCURRENCES,
) -> list[TaskT]:
    """Materialize task instances of ``template`` within ``[start, end]``.

    ``rule`` and ``anchor`` default to the template's ``recurrence`` and
    ``scheduled_date`` when None.
    """
    return list(TaskSeries(template, rule, anchor, limit=limit).fetch(start, end))


def generate_event_instances(
    template: EventT,
    rule: RecurrenceRule | None,
    anchor: Any,
    start: Any,
    end: Any,
    *,
    limit: int = MAX_OCCURRENCES,
) -> list[EventT]:
    """Materialize event instances of ``template`` within ``[start, end]``.

    ``rule`` and ``anchor`` default to the template's ``recurrence`` and
    ``start_time`` when None.
    """
    return list(EventSeries(template, rule, anchor, limit=limit).fetch(start, end))


def generation_window(
    since: Any, days: int = DEFAULT_GENERATION_DAYS
) -> tuple[date, date] | None:
    """The ``(start, end)`` window materialized ahead of ``since``.

    Returns None if ``since`` is not a valid date.
    """
    if days < 0:
        raise ValueError(
            f"days must be >= 0, got {days}.\n"
            f"Example: generation_window(date.today(), days=90)"
        )
    start = to_comparable(since)
    if start is None:
        return None
    return start, start + timedelta(days=days)
