"""Planner items that can carry a recurrence rule.

Generated instances are copies made with ``dataclasses.replace``, so subclasses
may add their own fields and have them carried onto every occurrence.
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from calrecur.rule import RecurrenceRule


@dataclass(frozen=True)
class Priority:
    """Task priority such as "A1". A number of 0 means "assign on that day"."""

    letter: str = "A"
    number: int = 0

    def __str__(self) -> str:
        return f"{self.letter}{self.number}"


@dataclass(frozen=True, kw_only=True)
class Task:
    """A to-do item scheduled on a calendar day.

    Attributes:
        id: Item identifier (instances use ``{parent_id}_{YYYY-MM-DD}``)
        scheduled_date: Day the task is planned for
        start_time / end_time: Optional "HH:MM" times for calendar display
        duration: Optional length in minutes
        recurrence: Rule the task repeats by (None on instances)
        is_recurring_instance: True for generated occurrences
        recurring_parent_id: Template id an instance was generated from
        instance_date: Occurrence day an instance represents
    """

    id: str
    user_id: str = ""
    title: str = ""
    description: str = ""
    category_id: str | None = None
    priority: Priority = field(default_factory=Priority)
    status: str = "in_progress"
    scheduled_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    duration: int | None = None
    recurrence: RecurrenceRule | None = None
    is_recurring_instance: bool = False
    recurring_parent_id: str | None = None
    instance_date: date | None = None


@dataclass(frozen=True, kw_only=True)
class Event:
    """A time-blocked calendar entry.

    ``start_time`` and ``end_time`` are datetimes, naive or timezone-aware.
    Instances keep the template's time of day and duration.
    """

    id: str
    start_time: datetime
    end_time: datetime
    user_id: str = ""
    title: str = ""
    description: str = ""
    category_id: str | None = None
    location: str = ""
    is_confidential: bool = False
    alternate_title: str | None = None
    recurrence: RecurrenceRule | None = None
    linked_note_ids: tuple[str, ...] = ()
    linked_task_ids: tuple[str, ...] = ()
    reminder_ids: tuple[str, ...] = ()
    is_recurring_instance: bool = False
    recurring_parent_id: str | None = None
    instance_date: date | None = None

    def __post_init__(self) -> None:
        if self.end_time < self.start_time:
            raise ValueError(
                f"Event end_time ({self.end_time}) must be >= "
                f"start_time ({self.start_time})"
            )

    def __str__(self) -> str:
        return f"Event('{self.title}', {self.start_time}→{self.end_time})"
