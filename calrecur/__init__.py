from .dates import INVALID, canonicalize, same_day, to_comparable, weekday_index
from .exdates import add_exception, is_exception, remove_exception
from .items import Event, Priority, Task
from .nth_weekday import nth_weekday_of
from .recurrence import after_completion_date, next_occurrence
from .rule import EndCondition, InstanceOverride, NthWeekday, RecurrenceRule, has_ended
from .series import (
    DateSeries,
    EventSeries,
    Expansion,
    TaskSeries,
    expand,
    generate_dates,
    generate_event_instances,
    generate_task_instances,
    generation_window,
)
from .util import (
    DEFAULT_GENERATION_DAYS,
    FRIDAY,
    MAX_OCCURRENCES,
    MONDAY,
    SATURDAY,
    SUNDAY,
    THURSDAY,
    TUESDAY,
    WEDNESDAY,
)

__all__ = [
    "RecurrenceRule",
    "EndCondition",
    "NthWeekday",
    "InstanceOverride",
    "Task",
    "Event",
    "Priority",
    "canonicalize",
    "to_comparable",
    "same_day",
    "weekday_index",
    "INVALID",
    "has_ended",
    "nth_weekday_of",
    "add_exception",
    "remove_exception",
    "is_exception",
    "next_occurrence",
    "after_completion_date",
    "expand",
    "Expansion",
    "DateSeries",
    "TaskSeries",
    "EventSeries",
    "generate_dates",
    "generate_task_instances",
    "generate_event_instances",
    "generation_window",
    "MAX_OCCURRENCES",
    "DEFAULT_GENERATION_DAYS",
    "SUNDAY",
    "MONDAY",
    "TUESDAY",
    "WEDNESDAY",
    "THURSDAY",
    "FRIDAY",
    "SATURDAY",
]
