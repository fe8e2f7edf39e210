"""
Datetime utilities.

Provides timezone-aware datetime functions and capping windows.
"""

from datetime import UTC, date, datetime, timedelta


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def capping_day(moment: datetime) -> date:
    """
    Get the capping day of a moment (UTC calendar day).

    Args:
        moment: Aware or naive datetime (naive is taken as UTC)

    Returns:
        Calendar day used as the daily capping key
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(UTC)
    return moment.date()


def week_start(day: date) -> date:
    """
    Get the Monday of the ISO week containing day.

    Args:
        day: Any calendar day

    Returns:
        First day of the weekly capping window
    """
    return day - timedelta(days=day.weekday())
