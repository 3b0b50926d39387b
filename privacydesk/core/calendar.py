# privacydesk/core/calendar.py
"""
Calendar arithmetic for SLA deadlines.

Turns (start, number of days, calendar policy, holiday set) into a concrete
date. Everything here is a pure function and safe to call from any number of
requests at once.
"""
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, FrozenSet, TypeVar, Union

from privacydesk.core.enums import CalendarPolicy
from privacydesk.exceptions.errors import InvalidArgumentError

DateLike = TypeVar("DateLike", date, datetime)

ONE_DAY = timedelta(days=1)


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def freeze_holidays(holidays: Optional[Iterable[Union[date, datetime]]]) -> FrozenSet[date]:
    """Normalize any iterable of dates/datetimes into an immutable set of dates"""
    if not holidays:
        return frozenset()
    return frozenset(_as_date(h) for h in holidays)


def is_weekend(day: Union[date, datetime]) -> bool:
    """Saturday or Sunday"""
    return day.weekday() >= 5


def is_business_day(day: Union[date, datetime], holidays: FrozenSet[date] = frozenset()) -> bool:
    return not is_weekend(day) and _as_date(day) not in holidays


def add_calendar_days(start: DateLike, days: int) -> DateLike:
    return start + timedelta(days=days)


def add_business_days(start: DateLike, days: int, holidays: FrozenSet[date] = frozenset()) -> DateLike:
    """Step forward one day at a time, counting only business days"""
    current = start
    added = 0
    while added < days:
        current = current + ONE_DAY
        if is_business_day(current, holidays):
            added += 1
    return current


def add_duration(
        start: DateLike,
        days: int,
        policy: CalendarPolicy = CalendarPolicy.CALENDAR,
        holidays: Optional[Iterable[Union[date, datetime]]] = None
) -> DateLike:
    """
    Add an SLA duration to a start date or instant.

    Args:
        start: date or datetime to count from (time of day is preserved)
        days: number of days to add, must be >= 0
        policy: CALENDAR counts every day, BUSINESS_DAYS skips weekends and holidays
        holidays: dates skipped under BUSINESS_DAYS; never modified

    Raises:
        InvalidArgumentError: negative days or unknown policy
    """
    if isinstance(days, bool) or not isinstance(days, int):
        raise InvalidArgumentError(f"Duration must be an integer number of days, got {days!r}")
    if days < 0:
        raise InvalidArgumentError(f"Duration must be >= 0 days, got {days}")

    try:
        policy = CalendarPolicy(policy)
    except ValueError:
        raise InvalidArgumentError(f"Unknown calendar policy: {policy!r}")

    if policy == CalendarPolicy.CALENDAR:
        return add_calendar_days(start, days)
    return add_business_days(start, days, freeze_holidays(holidays))


def count_business_days(
        start: Union[date, datetime],
        end: Union[date, datetime],
        holidays: Optional[Iterable[Union[date, datetime]]] = None
) -> int:
    """Business days in (start, end]; 0 when end is not after start"""
    frozen = freeze_holidays(holidays)
    current = _as_date(start)
    last = _as_date(end)
    count = 0
    while current < last:
        current += ONE_DAY
        if is_business_day(current, frozen):
            count += 1
    return count
