"""
Date period iteration for budgets and periodic reports.

A ``PeriodIterator`` splits a date range into a sequence of buckets, either
fixed-length windows measured from the range start or, with calendar lock,
windows aligned to calendar month or year boundaries.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import NamedTuple

from .dates import (
    CIVIL_CALENDAR,
    NULL_DATE,
    AdjustDirection,
    CalendarDate,
    CalendarInfo,
    PeriodUnit,
    add_period,
    find_valid_day,
    format_date,
    month_string,
    year_string,
)


class DatePeriod(NamedTuple):
    """
    One bucket produced by a ``PeriodIterator``.

    Attributes:
        start: First date in the bucket (inclusive)
        end: Last date in the bucket (inclusive)
        title: Human-readable name, e.g. ``"June 2003"`` or ``"01-06-2003 - 30-06-2003"``
    """

    start: CalendarDate
    end: CalendarDate
    title: str


def _day_before(value: CalendarDate) -> CalendarDate:
    # Only the day field is decremented; find_valid_day tidies a day of zero.
    if value.is_null:
        return NULL_DATE
    return value.replace(day=value.day - 1) if value.day > 0 else value


class PeriodIterator:
    """
    State machine producing the buckets of a date range.

    The iterator is either active or done. ``initialise`` always starts a new,
    independent sequence; ``next`` returns buckets until the cursor passes the
    end of the range and then returns None. The iterator can also be used
    directly in a ``for`` loop.

    **Example:**
        ```python
        from cashbook.core.dates import PeriodUnit, combine
        from cashbook.core.periods import PeriodIterator

        periods = PeriodIterator()
        periods.initialise(
            combine(10, 1, 2024), combine(10, 3, 2024), 1, PeriodUnit.MONTHS, lock=True
        )
        for bucket in periods:
            print(bucket.title, bucket.start, bucket.end)
        # January 2024   10-01-2024 31-01-2024
        # February 2024  01-02-2024 29-02-2024
        # March 2024     01-03-2024 10-03-2024
        ```

    **Note:**
        A period of zero (or a ``PeriodUnit.NONE`` unit) means no grouping:
        the whole range is returned as a single bucket.
    """

    def __init__(self, calendar: CalendarInfo = CIVIL_CALENDAR, separator: str = "-"):
        self.calendar = calendar
        self.separator = separator
        self._start = NULL_DATE
        self._end = NULL_DATE
        self._period = 0
        self._unit = PeriodUnit.NONE
        self._lock = False
        self._first = False
        self._done = True

    def initialise(
        self,
        start: CalendarDate,
        end: CalendarDate,
        period: int,
        unit: PeriodUnit,
        lock: bool,
    ) -> None:
        """
        Start a new sequence over ``[start, end]``.

        Args:
            start: First date of the range
            end: Last date of the range
            period: Number of units per bucket; 0 for a single bucket
            unit: Unit of ``period``
            lock: True to align buckets to calendar months or years
        """
        self._start = start
        self._end = end
        self._period = period if unit is not PeriodUnit.NONE and period > 0 else 0
        self._unit = unit
        self._lock = lock
        self._first = lock
        self._done = start.is_null or end.is_null

    @property
    def done(self) -> bool:
        return self._done or self._start > self._end

    def next(self) -> DatePeriod | None:
        """Return the next bucket, or None when the range is exhausted."""
        if self.done:
            self._done = True
            return None

        cal = self.calendar

        if self._period > 0:
            if self._first and self._unit is PeriodUnit.MONTHS:
                raw_end = add_period(self._start, self._unit, self._period - 1, cal)
                raw_end = raw_end.replace(
                    day=cal.days_in_month(raw_end.month, raw_end.year)
                )
            elif self._first and self._unit is PeriodUnit.YEARS:
                raw_end = add_period(self._start, self._unit, self._period - 1, cal)
                last_month = cal.months_in_year(raw_end.year)
                raw_end = raw_end.replace(
                    month=last_month, day=cal.days_in_month(last_month, raw_end.year)
                )
            else:
                raw_end = _day_before(
                    add_period(self._start, self._unit, self._period, cal)
                )

            if raw_end > self._end:
                raw_end = self._end
        else:
            raw_end = self._end

        start = find_valid_day(self._start, AdjustDirection.BACKWARD, cal)
        end = find_valid_day(raw_end, AdjustDirection.FORWARD, cal)

        if self._period > 0:
            cursor = add_period(self._start, self._unit, self._period, cal)

            if self._first:
                if self._unit is PeriodUnit.MONTHS:
                    cursor = cursor.replace(day=1)
                elif self._unit is PeriodUnit.YEARS:
                    cursor = cursor.replace(month=1, day=1)
                self._first = False

            self._start = cursor
        else:
            self._done = True

        return DatePeriod(start, end, self._title(start, end))

    def _title(self, start: CalendarDate, end: CalendarDate) -> str:
        if self._lock and self._unit is PeriodUnit.MONTHS:
            if (start.year, start.month) == (end.year, end.month):
                return month_string(start)
            return f"{month_string(start)} - {month_string(end)}"

        if self._lock and self._unit is PeriodUnit.YEARS:
            if start.year == end.year:
                return year_string(start)
            return f"{year_string(start)} - {year_string(end)}"

        if start == end:
            return format_date(start, self.separator)
        return f"{format_date(start, self.separator)} - {format_date(end, self.separator)}"

    def __iter__(self) -> Iterator[DatePeriod]:
        return self

    def __next__(self) -> DatePeriod:
        bucket = self.next()
        if bucket is None:
            raise StopIteration
        return bucket


def iterate_periods(
    start: CalendarDate,
    end: CalendarDate,
    period: int,
    unit: PeriodUnit,
    lock: bool = False,
    calendar: CalendarInfo = CIVIL_CALENDAR,
) -> list[DatePeriod]:
    """Return every bucket of a range as a list."""
    periods = PeriodIterator(calendar)
    periods.initialise(start, end, period, unit, lock)
    return list(periods)
