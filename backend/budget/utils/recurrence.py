"""
Recurrence expansion for transaction templates.

A recurring template (start date, end date, rule) is materialized into a list
of concrete occurrence dates. Calendar steps use ``relativedelta`` offsets
computed from the start date, so month and year steps clamp to the last day
of short months without drifting: a series starting on the 31st comes back
to the 31st in every month that has one.
"""

from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from ..models import Recurrence

MAX_OCCURRENCES = 366

_STEPS = {
    Recurrence.DAILY: lambda n: timedelta(days=n),
    Recurrence.WEEKLY: lambda n: timedelta(weeks=n),
    Recurrence.MONTHLY: lambda n: relativedelta(months=n),
    Recurrence.YEARLY: lambda n: relativedelta(years=n),
}


def _nth_occurrence(start, rule, n):
    """Date of the n-th occurrence (0-based), or None past the calendar's end."""
    try:
        return start + _STEPS[rule](n)
    except (OverflowError, ValueError):
        return None


def expand(start: date, end: date, rule: str) -> list[date]:
    """
    Expand a recurrence rule into its occurrence dates.

    Args:
        start: First occurrence, always included
        end: Inclusive upper bound for occurrences
        rule: One of DAILY, WEEKLY, MONTHLY, YEARLY

    Returns:
        list[date]: Strictly increasing dates within ``[start, end]``, at
            least one and at most ``MAX_OCCURRENCES``. An ``end`` before
            ``start`` yields ``[start]``.

    Raises:
        ValueError: If ``rule`` is NONE or unknown
    """
    if rule not in _STEPS:
        raise ValueError(f"Cannot expand recurrence rule {rule!r}")

    if end < start:
        return [start]

    occurrences = []
    while len(occurrences) < MAX_OCCURRENCES:
        current = _nth_occurrence(start, rule, len(occurrences))
        if current is None or current > end:
            break
        occurrences.append(current)

    return occurrences


def occurrence_dates(start, end, rule):
    """Like ``expand`` but a NONE rule (or missing end) yields just ``[start]``."""
    if rule == Recurrence.NONE or end is None:
        return [start]
    return expand(start, end, rule)


def occurs_on(template_date: date, rule: str, candidate: date) -> bool:
    """
    Whether a template row is effective on ``candidate`` without expanding it.

    Used by the calendar for rows that still carry a recurrence rule.
    """
    if candidate == template_date:
        return True
    if rule == Recurrence.NONE or candidate < template_date:
        return False
    if rule == Recurrence.DAILY:
        return True
    if rule == Recurrence.WEEKLY:
        return candidate.weekday() == template_date.weekday()
    if rule == Recurrence.MONTHLY:
        return candidate.day == template_date.day
    if rule == Recurrence.YEARLY:
        return (candidate.day, candidate.month) == (
            template_date.day,
            template_date.month,
        )
    return False
