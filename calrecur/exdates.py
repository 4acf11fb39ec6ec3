"""Exception dates (exdates): calendar days skipped by a recurrence.

Exdates arrive in whatever representation the caller stored them in (dates,
ISO strings, datastore timestamps). Membership is always decided on the
canonical day, so the same day written two ways counts once.
"""

from collections.abc import Iterable
from datetime import date
from typing import Any

from calrecur.dates import INVALID, canonicalize


def exception_keys(exceptions: Iterable[Any]) -> frozenset[str]:
    """Canonical day strings for ``exceptions``, invalid members dropped."""
    return frozenset(key for key in map(canonicalize, exceptions) if key != INVALID)


def is_exception(value: Any, exceptions: Iterable[Any]) -> bool:
    """True if ``value`` falls on one of the exception days."""
    key = canonicalize(value)
    return key != INVALID and key in exception_keys(exceptions)


def add_exception(existing: Iterable[Any], new: Any) -> tuple[date, ...]:
    """Add ``new`` to an exception set.

    Every member, old and new, is canonicalized before deduplication, so adding
    a day that is already present (in any representation) leaves the set
    unchanged. Invalid members are dropped.

    Returns:
        The exception days as ``date`` values, in first-seen order.
    """
    keys = dict.fromkeys(map(canonicalize, [*existing, new]))
    keys.pop(INVALID, None)
    return tuple(date.fromisoformat(key) for key in keys)


def remove_exception(existing: Iterable[Any], value: Any) -> tuple[date, ...]:
    """Drop every member of ``existing`` that falls on the day of ``value``."""
    target = canonicalize(value)
    keys = dict.fromkeys(map(canonicalize, existing))
    keys.pop(INVALID, None)
    keys.pop(target, None)
    return tuple(date.fromisoformat(key) for key in keys)
