"""Pure calendar arithmetic on local instants - no I/O dependencies."""

from datetime import datetime, timedelta

SECONDS_PER_DAY = 86400


def start_of_day(dt: datetime) -> datetime:
    """Midnight of the same local date."""
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def weekday_index(dt: datetime) -> int:
    """Weekday with Sunday=0 ... Saturday=6."""
    return (dt.weekday() + 1) % 7


def start_of_week(dt: datetime) -> datetime:
    """Midnight of the Monday on or before dt."""
    days_since_monday = (weekday_index(dt) + 6) % 7
    return start_of_day(dt) - timedelta(days=days_since_monday)


def add_days(dt: datetime, n: int) -> datetime:
    """Shift by n calendar days (n may be negative), keeping the time of day."""
    return dt + timedelta(days=n)


def diff_days(a: datetime, b: datetime) -> int:
    """Whole days from a's date to b's date."""
    delta = start_of_day(b) - start_of_day(a)
    return round(delta.total_seconds() / SECONDS_PER_DAY)


def is_same_day(a: datetime, b: datetime) -> bool:
    return start_of_day(a) == start_of_day(b)


def at_time(day: datetime, hour: int, minute: int) -> datetime:
    """The given day at hour:minute, seconds zeroed."""
    return day.replace(hour=hour, minute=minute, second=0, microsecond=0)
