"""
Week utility functions for resolving week boundaries.

This module provides the date arithmetic behind the weekly reports:
finding the Monday and Sunday around a date, listing the days of a week
and picking the reference date for "previous day/week" listings.
"""

from datetime import date, timedelta
from typing import List


DAYS_PER_WEEK = 7
WEEKDAY_NAMES = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']


def days_since_sunday(day: date) -> int:
    """
    Return the weekday index counted from Sunday (Sunday=0 .. Saturday=6).

    Examples:
        >>> days_since_sunday(date(2023, 2, 19))
        0
        >>> days_since_sunday(date(2023, 2, 16))
        4
    """
    return day.isoweekday() % DAYS_PER_WEEK


def monday_of(day: date) -> date:
    """
    Return the Monday of the week containing ``day``.

    Examples:
        >>> monday_of(date(2023, 2, 16))
        datetime.date(2023, 2, 13)
    """
    return day - timedelta(days=day.weekday())


def sunday_of(day: date) -> date:
    """
    Return the Sunday of the week containing ``day``.

    A Sunday is returned unchanged.

    Examples:
        >>> sunday_of(date(2023, 2, 16))
        datetime.date(2023, 2, 19)
        >>> sunday_of(date(2023, 2, 19))
        datetime.date(2023, 2, 19)
    """
    offset = days_since_sunday(day)
    if offset == 0:
        return day
    return day + timedelta(days=DAYS_PER_WEEK - offset)


def week_dates(day: date) -> List[date]:
    """
    List the seven dates (Monday to Sunday) of the week containing ``day``.

    Args:
        day: Any date inside the week

    Returns:
        Seven consecutive dates starting on Monday
    """
    monday = monday_of(day)
    return [monday + timedelta(days=i) for i in range(DAYS_PER_WEEK)]


def reference_date(today: date, previous: bool = False, week: bool = False) -> date:
    """
    Pick the date a listing is built around.

    ``previous`` shifts the reference back by one week for weekly listings
    and by one day otherwise. The shifted date is then resolved to its own
    week by the caller, not derived from the current Monday.

    Args:
        today: The current date
        previous: Whether the previous day/week was requested
        week: Whether a weekly listing was requested

    Returns:
        The reference date
    """
    if not previous:
        return today
    return today - timedelta(days=DAYS_PER_WEEK if week else 1)


def format_week_label(day: date) -> str:
    """
    Format the ISO week of ``day`` for display.

    Examples:
        >>> format_week_label(date(2023, 2, 16))
        'Week 7, 2023'
    """
    year, week, _ = day.isocalendar()
    return f"Week {week}, {year}"
