"""Canonical calendar dates.

Every date that enters the engine passes through :func:`canonicalize`, which
reduces it to a zero-padded ``"YYYY-MM-DD"`` string. Comparisons between
canonical strings are lexicographic, which matches chronological order.

Values carrying a time component are reduced to the calendar day they were
written for: an aware ``datetime`` keeps its own wall-clock date and ISO
strings keep their leading date part. Nothing is re-derived through UTC, since
that shifts the day for callers west of Greenwich.

Invalid input never raises. It canonicalizes to ``INVALID`` (the empty string)
and compares unequal to everything, including another invalid value.
"""

import logging
import re
from calendar import monthrange
from datetime import date, datetime
from typing import Any

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

INVALID = ""

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})[T ]")

# Conversion methods exposed by datastore timestamp wrappers
_TIMESTAMP_METHODS = ("to_datetime", "ToDatetime", "toDate", "to_date")

# Fill-ins for fields missing from free-form text; they must differ in every field
_PARSE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def _format(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def _checked(text: str) -> str:
    """Return ``text`` if it names a real calendar day, else INVALID."""
    try:
        date.fromisoformat(text)
    except ValueError:
        return INVALID
    return text


def _from_string(text: str) -> str:
    text = text.strip()
    if not text:
        return INVALID
    if _DATE_ONLY.match(text):
        return _checked(text)

    # ISO string with a time component: keep the date as written
    match = _DATE_PREFIX.match(text)
    if match:
        return _checked(match.group(1))

    # Parse against two unrelated defaults: any field the text leaves out
    # (year, month or day) shows up as a difference and the text is rejected
    try:
        parsed = [date_parser.parse(text, default=d) for d in _PARSE_DEFAULTS]
    except (ValueError, OverflowError):
        return INVALID
    first, second = (_format(p) for p in parsed)
    if first != second:
        return INVALID
    return first


def _from_timestamp(value: Any) -> str:
    for name in _TIMESTAMP_METHODS:
        method = getattr(value, name, None)
        if callable(method):
            try:
                converted = method()
            except (TypeError, ValueError, OverflowError):
                return INVALID
            if isinstance(converted, date):
                return _format(converted)
            return INVALID
    return INVALID


def canonicalize(value: Any) -> str:
    """Reduce any supported date representation to ``"YYYY-MM-DD"``.

    Accepts:
    - date / datetime: the value's own calendar day (aware datetimes are
      not converted to UTC first)
    - "YYYY-MM-DD": validated and passed through
    - ISO-8601 with time and/or offset: the leading date part
    - other date strings understood by ``dateutil.parser``
    - timestamp wrappers exposing ``to_datetime()``, ``ToDatetime()``,
      ``toDate()`` or ``to_date()``

    Returns:
        The canonical string, or INVALID ("") for anything else.

    Examples:
        >>> canonicalize("2026-01-24T00:00:00.000Z")
        '2026-01-24'
        >>> canonicalize(date(2026, 1, 24))
        '2026-01-24'
        >>> canonicalize("not a date")
        ''
    """
    if value is None or isinstance(value, bool):
        return INVALID
    # datetime is a date subclass; both expose their local calendar day
    if isinstance(value, date):
        return _format(value)
    if isinstance(value, str):
        return _from_string(value)
    canonical = _from_timestamp(value)
    if not canonical:
        logger.debug("Cannot canonicalize %s value: %r", type(value).__name__, value)
    return canonical


def to_comparable(value: Any) -> date | None:
    """Return the canonical ``date`` for ``value``, or None when invalid."""
    canonical = canonicalize(value)
    if not canonical:
        return None
    return date.fromisoformat(canonical)


def same_day(a: Any, b: Any) -> bool:
    """True if both values denote the same, valid calendar day."""
    left = canonicalize(a)
    return left != INVALID and left == canonicalize(b)


def weekday_index(d: date) -> int:
    """Weekday of ``d`` with 0=Sunday .. 6=Saturday."""
    return d.isoweekday() % 7


def days_in_month(year: int, month: int) -> int:
    return monthrange(year, month)[1]


def add_months(d: date, months: int) -> date:
    """Shift ``d`` by whole months, clamping the day to the target month."""
    return d + relativedelta(months=months)


def week_start(d: date) -> date:
    """The Sunday on or before ``d``."""
    return date.fromordinal(d.toordinal() - weekday_index(d))
