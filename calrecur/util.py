"""Utility constants for calrecur.

Weekday indices follow the planner convention (0=Sunday .. 6=Saturday), which
differs from Python's ``date.weekday()`` (0=Monday).
"""

# Weekday indices
SUNDAY = 0
MONDAY = 1
TUESDAY = 2
WEDNESDAY = 3
THURSDAY = 4
FRIDAY = 5
SATURDAY = 6

# Hard cap on occurrences emitted by a single expansion
MAX_OCCURRENCES = 1000

# Rolling horizon the planner materializes ahead of "today"
DEFAULT_GENERATION_DAYS = 90

# Attempts made to find a month where an nth weekday exists
NTH_WEEKDAY_SEARCH_LIMIT = 12
