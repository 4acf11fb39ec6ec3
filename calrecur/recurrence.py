"""Next-occurrence arithmetic for each recurrence kind.

``next_occurrence`` answers a single question: given a rule and one of its
occurrences, which calendar day comes next? Range expansion in
:mod:`calrecur.series` is built by stepping this function forward.
"""

from calendar import isleap
from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from typing import Any

from dateutil.rrule import SU, WEEKLY, rrule

from calrecur.dates import add_months, days_in_month, to_comparable, week_start
from calrecur.nth_weekday import WEEKDAYS, nth_weekday_of
from calrecur.rule import Kind, RecurrenceRule
from calrecur.util import NTH_WEEKDAY_SEARCH_LIMIT


def _daily(rule: RecurrenceRule, current: date) -> date | None:
    return current + timedelta(days=rule.interval)


def _weekly(rule: RecurrenceRule, current: date) -> date | None:
    """Next listed weekday, staying on the every-Nth-week grid.

    Weeks start on Sunday and are counted from the week of ``current``, so
    "every 2 weeks on Mon/Wed" from Wed Feb 4 skips straight to Mon Feb 16.
    """
    rules = rrule(
        WEEKLY,
        interval=rule.interval,
        byweekday=[WEEKDAYS[d] for d in rule.days_of_week],
        wkst=SU,
        dtstart=datetime.combine(week_start(current), time()),
    )
    found = rules.after(datetime.combine(current, time()))
    if found is None:
        return current + timedelta(weeks=rule.interval)
    return found.date()


def _monthly(rule: RecurrenceRule, current: date) -> date | None:
    first = current.replace(day=1)

    if rule.nth_weekday is not None:
        nth = rule.nth_weekday
        for step in range(1, NTH_WEEKDAY_SEARCH_LIMIT + 1):
            month = add_months(first, step * rule.interval)
            found = nth_weekday_of(month.year, month.month, nth.n, nth.weekday)
            if found is not None:
                return found
        return None

    if rule.specific_dates_of_month:
        days = sorted(set(rule.specific_dates_of_month))
        month_length = days_in_month(current.year, current.month)
        for day in days:
            if current.day < day <= month_length:
                return current.replace(day=day)
        target = add_months(first, rule.interval)
        return target.replace(
            day=min(days[0], days_in_month(target.year, target.month))
        )

    # Clamp rather than skip: the 31st becomes the 30th in a 30-day month
    target = add_months(first, rule.interval)
    return target.replace(
        day=min(rule.day_of_month, days_in_month(target.year, target.month))
    )


def _yearly(rule: RecurrenceRule, current: date) -> date | None:
    month = rule.month_of_year

    if rule.nth_weekday is not None:
        nth = rule.nth_weekday
        for step in range(1, NTH_WEEKDAY_SEARCH_LIMIT + 1):
            found = nth_weekday_of(
                current.year + step * rule.interval, month, nth.n, nth.weekday
            )
            if found is not None:
                return found
        return None

    year = current.year + rule.interval
    if month == 2 and rule.day_of_month == 29 and not isleap(year):
        return date(year, 2, 28)
    return date(year, month, min(rule.day_of_month, days_in_month(year, month)))


def _never(rule: RecurrenceRule, current: date) -> date | None:
    return None


# after_completion depends on a completion event the engine never sees, and
# custom has no defined semantics: neither has a calendar successor.
_STEPS: dict[Kind, Callable[[RecurrenceRule, date], date | None]] = {
    "daily": _daily,
    "weekly": _weekly,
    "monthly": _monthly,
    "yearly": _yearly,
    "after_completion": _never,
    "custom": _never,
}


def advance(rule: RecurrenceRule, current: date) -> date | None:
    """Step a structurally valid rule from ``current``; no validation.

    Returns None when the kind has no successor or the arithmetic leaves the
    supported date range.
    """
    step = _STEPS.get(rule.kind, _never)
    try:
        return step(rule, current)
    except (OverflowError, ValueError):
        return None


def next_occurrence(rule: RecurrenceRule, current: Any) -> date | None:
    """
    Compute the occurrence that follows ``current``.

    ``current`` is assumed to be an occurrence of ``rule`` and is not checked
    against it. The result is strictly later than ``current``.

    Args:
        rule: Recurrence rule
        current: Current occurrence, any accepted date representation

    Returns:
        The next occurrence date, or None when the rule is structurally
        invalid, ``current`` is not a date, or the kind has no calendar
        successor (after_completion, custom).

    Examples:
        >>> rule = RecurrenceRule(kind="monthly", day_of_month=31)
        >>> next_occurrence(rule, "2026-01-31")
        datetime.date(2026, 2, 28)
        >>> rule = RecurrenceRule(kind="weekly", interval=2, days_of_week=(1, 3))
        >>> next_occurrence(rule, "2026-02-04")
        datetime.date(2026, 2, 16)
    """
    day = to_comparable(current)
    if day is None or not rule.is_valid:
        return None
    return advance(rule, day)


def after_completion_date(rule: RecurrenceRule, completed_at: Any) -> date | None:
    """Schedule the next instance of an after_completion rule.

    Args:
        rule: A rule of kind "after_completion"
        completed_at: When the current instance was completed

    Returns:
        The completion day plus ``days_after_completion``, or None for other
        kinds, a missing/non-positive offset, or an invalid completion date.
    """
    if rule.kind != "after_completion":
        return None
    offset = rule.days_after_completion
    if not isinstance(offset, int) or isinstance(offset, bool) or offset < 1:
        return None
    day = to_comparable(completed_at)
    if day is None:
        return None
    try:
        return day + timedelta(days=offset)
    except OverflowError:
        return None
