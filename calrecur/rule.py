"""Recurrence rules and their end conditions.

A :class:`RecurrenceRule` is plain data. Structural problems are reported by
:meth:`RecurrenceRule.problems` rather than raised, so that one malformed rule
among many yields "no occurrences" instead of an exception in the caller.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias

from calrecur.dates import INVALID, canonicalize

Kind: TypeAlias = Literal[
    "daily", "weekly", "monthly", "yearly", "after_completion", "custom"
]
EndKind: TypeAlias = Literal["never", "date", "occurrences"]

KINDS: tuple[Kind, ...] = (
    "daily",
    "weekly",
    "monthly",
    "yearly",
    "after_completion",
    "custom",
)

# Document-store spelling of each kind
_KIND_NAMES: dict[str, Kind] = {
    "daily": "daily",
    "weekly": "weekly",
    "monthly": "monthly",
    "yearly": "yearly",
    "afterCompletion": "after_completion",
    "after_completion": "after_completion",
    "custom": "custom",
}
_DOC_KIND: dict[Kind, str] = {
    "daily": "daily",
    "weekly": "weekly",
    "monthly": "monthly",
    "yearly": "yearly",
    "after_completion": "afterCompletion",
    "custom": "custom",
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _in_range(value: Any, low: int, high: int) -> bool:
    return _is_int(value) and low <= value <= high


@dataclass(frozen=True)
class NthWeekday:
    """The nth (1-5) or last (-1) ``weekday`` (0=Sun..6=Sat) of a month."""

    n: int
    weekday: int

    @property
    def is_valid(self) -> bool:
        return (_in_range(self.n, 1, 5) or self.n == -1) and _in_range(
            self.weekday, 0, 6
        )


@dataclass(frozen=True)
class EndCondition:
    """When a recurrence stops.

    Attributes:
        kind: "never", "date" (inclusive ``end_date``) or "occurrences"
        end_date: Last permitted occurrence date, any accepted representation
        max_occurrences: Number of occurrences before the series ends
    """

    kind: EndKind = "never"
    end_date: Any = None
    max_occurrences: int | None = None

    @classmethod
    def never(cls) -> "EndCondition":
        return cls()

    @classmethod
    def by_date(cls, end_date: Any) -> "EndCondition":
        return cls(kind="date", end_date=end_date)

    @classmethod
    def after(cls, max_occurrences: int) -> "EndCondition":
        return cls(kind="occurrences", max_occurrences=max_occurrences)


@dataclass(frozen=True, kw_only=True)
class InstanceOverride:
    """Per-date field overrides for a single materialized occurrence."""

    title: str | None = None
    description: str | None = None
    status: str | None = None

    def changes(self) -> dict[str, str]:
        """Overridden fields, skipping unset or empty values."""
        return {
            name: value
            for name, value in (
                ("title", self.title),
                ("description", self.description),
                ("status", self.status),
            )
            if value
        }


def _coerce_override(value: "InstanceOverride | Mapping[str, Any]") -> InstanceOverride:
    if isinstance(value, InstanceOverride):
        return value
    return InstanceOverride(
        title=value.get("title"),
        description=value.get("description"),
        status=value.get("status"),
    )


@dataclass(frozen=True, kw_only=True)
class RecurrenceRule:
    """How an item repeats.

    Attributes:
        kind: Recurrence type, see ``KINDS``
        interval: Every N days/weeks/months/years (>= 1)
        days_of_week: Weekday indices (0=Sun..6=Sat) for weekly rules
        day_of_month: Day (1-31) for monthly/yearly rules
        month_of_year: Month (1-12) for yearly rules
        nth_weekday: "2nd Tuesday" / "last Friday" style monthly or yearly day
        specific_dates_of_month: Several days of the month, e.g. (1, 15)
        days_after_completion: Offset used by after_completion rules
        end_condition: When the series stops
        exceptions: Dates to skip, any accepted representation
        instance_overrides: Date -> overrides for that single occurrence
    """

    kind: Kind
    interval: int = 1
    days_of_week: tuple[int, ...] = ()
    day_of_month: int | None = None
    month_of_year: int | None = None
    nth_weekday: NthWeekday | None = None
    specific_dates_of_month: tuple[int, ...] | None = None
    days_after_completion: int | None = None
    end_condition: EndCondition = field(default_factory=EndCondition)
    exceptions: tuple[Any, ...] = ()
    instance_overrides: Mapping[Any, InstanceOverride] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Frozen dataclass: normalize collections through object.__setattr__
        set_ = object.__setattr__
        set_(self, "days_of_week", tuple(dict.fromkeys(self.days_of_week or ())))
        if self.specific_dates_of_month is not None:
            days = tuple(dict.fromkeys(self.specific_dates_of_month))
            # Non-integers are left for problems() to report
            if all(_is_int(d) for d in days):
                days = tuple(sorted(days))
            set_(self, "specific_dates_of_month", days)
        if isinstance(self.nth_weekday, Mapping):
            set_(self, "nth_weekday", NthWeekday(**self.nth_weekday))
        set_(self, "exceptions", tuple(self.exceptions or ()))
        set_(
            self,
            "instance_overrides",
            {
                key: _coerce_override(value)
                for key, value in (self.instance_overrides or {}).items()
            },
        )

    def problems(self) -> list[str]:
        """Describe every structural problem; empty when the rule is usable."""
        found: list[str] = []
        if self.kind not in KINDS:
            return [f"unknown recurrence kind {self.kind!r}"]
        if self.kind == "custom":
            found.append("custom recurrence is not implemented")
        if not _is_int(self.interval) or self.interval < 1:
            found.append(f"interval must be an integer >= 1, got {self.interval!r}")

        if self.kind == "weekly":
            if not self.days_of_week:
                found.append("weekly recurrence requires at least one day of week")
            elif not all(_in_range(d, 0, 6) for d in self.days_of_week):
                found.append(
                    f"days_of_week must be in 0-6, got {list(self.days_of_week)}"
                )

        elif self.kind == "monthly":
            has_nth = self.nth_weekday is not None
            has_specific = bool(self.specific_dates_of_month)
            if has_nth and has_specific:
                found.append(
                    "monthly recurrence takes nth_weekday or "
                    "specific_dates_of_month, not both"
                )
            elif has_nth:
                if not self.nth_weekday.is_valid:
                    found.append(f"invalid nth_weekday {self.nth_weekday!r}")
            elif has_specific:
                if not all(_in_range(d, 1, 31) for d in self.specific_dates_of_month):
                    found.append(
                        "specific_dates_of_month must be in 1-31, "
                        f"got {list(self.specific_dates_of_month)}"
                    )
            elif not _in_range(self.day_of_month, 1, 31):
                found.append(
                    "monthly recurrence requires day_of_month in 1-31, "
                    f"got {self.day_of_month!r}"
                )

        elif self.kind == "yearly":
            if not _in_range(self.month_of_year, 1, 12):
                found.append(
                    "yearly recurrence requires month_of_year in 1-12, "
                    f"got {self.month_of_year!r}"
                )
            if self.nth_weekday is not None:
                if not self.nth_weekday.is_valid:
                    found.append(f"invalid nth_weekday {self.nth_weekday!r}")
            elif not _in_range(self.day_of_month, 1, 31):
                found.append(
                    "yearly recurrence requires day_of_month in 1-31, "
                    f"got {self.day_of_month!r}"
                )

        return found

    @property
    def is_valid(self) -> bool:
        return not self.problems()

    def overrides_by_day(self) -> dict[str, InstanceOverride]:
        """Instance overrides keyed by canonical date; invalid keys dropped."""
        keyed: dict[str, InstanceOverride] = {}
        for day, override in self.instance_overrides.items():
            key = canonicalize(day)
            if key != INVALID:
                keyed[key] = override
        return keyed

    def override_for(self, day: Any) -> InstanceOverride | None:
        """Overrides registered for ``day``, matched by calendar day."""
        return self.overrides_by_day().get(canonicalize(day))

    @classmethod
    def from_dict(cls, doc: Mapping[str, Any]) -> "RecurrenceRule":
        """Build a rule from its document-store (camelCase) shape.

        Raises:
            ValueError: If ``type`` is not a known recurrence kind
        """
        raw_kind = doc.get("type")
        if raw_kind not in _KIND_NAMES:
            valid = ", ".join(sorted(set(_DOC_KIND.values())))
            raise ValueError(
                f"Invalid recurrence type: {raw_kind!r}\n"
                f"Valid types: {valid}\n"
                f"Example: {{'type': 'weekly', 'interval': 1, 'daysOfWeek': [1, 3]}}"
            )

        nth = doc.get("nthWeekday")
        end = doc.get("endCondition") or {}
        return cls(
            kind=_KIND_NAMES[raw_kind],
            interval=doc.get("interval", 1),
            days_of_week=tuple(doc.get("daysOfWeek") or ()),
            day_of_month=doc.get("dayOfMonth"),
            month_of_year=doc.get("monthOfYear"),
            nth_weekday=NthWeekday(n=nth["n"], weekday=nth["weekday"]) if nth else None,
            specific_dates_of_month=doc.get("specificDatesOfMonth") or None,
            days_after_completion=doc.get("daysAfterCompletion"),
            end_condition=EndCondition(
                kind=end.get("type", "never"),
                end_date=end.get("endDate"),
                max_occurrences=end.get("maxOccurrences"),
            ),
            exceptions=tuple(doc.get("exceptions") or ()),
            instance_overrides=dict(doc.get("instanceModifications") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        """Document-store shape of this rule, with dates as canonical strings."""
        end = self.end_condition
        return {
            "type": _DOC_KIND.get(self.kind, self.kind),
            "interval": self.interval,
            "daysOfWeek": list(self.days_of_week),
            "dayOfMonth": self.day_of_month,
            "monthOfYear": self.month_of_year,
            "nthWeekday": (
                {"n": self.nth_weekday.n, "weekday": self.nth_weekday.weekday}
                if self.nth_weekday is not None
                else None
            ),
            "specificDatesOfMonth": (
                list(self.specific_dates_of_month)
                if self.specific_dates_of_month is not None
                else None
            ),
            "daysAfterCompletion": self.days_after_completion,
            "endCondition": {
                "type": end.kind,
                "endDate": canonicalize(end.end_date) or None,
                "maxOccurrences": end.max_occurrences,
            },
            "exceptions": [key for key in map(canonicalize, self.exceptions) if key],
            "instanceModifications": {
                canonicalize(key): override.changes()
                for key, override in self.instance_overrides.items()
                if canonicalize(key)
            },
        }


def has_ended(end_condition: EndCondition, count: int, candidate: Any) -> bool:
    """Check whether a series has terminated before ``candidate``.

    Args:
        end_condition: The rule's end condition
        count: Occurrences already emitted, not counting ``candidate``
        candidate: Date being considered for emission

    Returns:
        True if ``candidate`` must not be emitted. Invalid dates never end a
        series by date; an unset ``max_occurrences`` never ends it by count.
    """
    if end_condition.kind == "date":
        candidate_key = canonicalize(candidate)
        end_key = canonicalize(end_condition.end_date)
        if not candidate_key or not end_key:
            return False
        return candidate_key > end_key
    if end_condition.kind == "occurrences":
        if not end_condition.max_occurrences:
            return False
        return count >= end_condition.max_occurrences
    return False
