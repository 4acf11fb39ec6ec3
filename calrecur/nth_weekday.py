"""Resolve "the nth weekday of a month" (e.g. 2nd Tuesday, last Friday)."""

from datetime import date

from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta, weekday

# dateutil weekday constants indexed by planner weekday (0=Sunday)
WEEKDAYS: tuple[weekday, ...] = (SU, MO, TU, WE, TH, FR, SA)


def nth_weekday_of(year: int, month: int, n: int, day: int) -> date | None:
    """
    Find the nth occurrence of a weekday within a month.

    Args:
        year: Calendar year
        month: Month (1-12)
        n: Occurrence (1-5), or -1 for the last one
        day: Weekday (0=Sunday .. 6=Saturday)

    Returns:
        The date, or None when the arguments are out of range or the month
        has no such occurrence (a 5th Monday in most months).

    Examples:
        >>> nth_weekday_of(2026, 3, 2, 2)  # 2nd Tuesday of March 2026
        datetime.date(2026, 3, 10)
        >>> nth_weekday_of(2026, 2, 5, 1) is None  # no 5th Monday
        True
    """
    if not (1 <= month <= 12) or not (0 <= day <= 6):
        return None
    if not (1 <= n <= 5 or n == -1):
        return None

    first = date(year, month, 1)
    if n == -1:
        # day=31 clamps to the month's last day, then walk back to the weekday
        return first + relativedelta(day=31, weekday=WEEKDAYS[day](-1))

    found = first + relativedelta(weekday=WEEKDAYS[day](+n))
    if found.month != month:
        return None
    return found
