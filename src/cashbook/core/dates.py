"""
Calendar values and date arithmetic for CashBook.

Dates are held as small immutable values with day, month and year fields.
They order exactly like the packed ``0xYYYYMMDD`` integers used by the ledger
files, so sorting by date is plain comparison, and the ``NULL_DATE`` sentinel
(all fields at their packing maximum) sorts after every real date.

All arithmetic is tolerant of invalid input: functions return ``NULL_DATE``
rather than raising, and callers are expected to test for the sentinel.
"""

from __future__ import annotations

import calendar as _stdlib_calendar
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum, IntEnum
from typing import Protocol, runtime_checkable

import numpy as np

_DAY_LIMIT = 0xFF
_MONTH_LIMIT = 0xFF
_YEAR_LIMIT = 0xFFFF


class PeriodUnit(Enum):
    """Units in which a date period can be expressed."""

    NONE = "none"
    DAYS = "days"
    MONTHS = "months"
    YEARS = "years"


class AdjustDirection(IntEnum):
    """
    Direction used when pulling an out-of-range date back into the calendar.

    FORWARD clamps an overflowing day down to the last day of its month;
    BACKWARD rolls it over to the first day of the following month. When
    stepping to a working day, FORWARD moves later and BACKWARD earlier.
    """

    FORWARD = 1
    BACKWARD = -1


@dataclass(frozen=True, order=True)
class CalendarDate:
    """
    A calendar date with packed-integer ordering.

    Fields may temporarily hold a day that is not valid for the month (for
    example the 31st after adding a month to January); ``find_valid_day``
    resolves such values. The fields are bounded by their packing widths:
    day and month to 8 bits, year to 16 bits.

    Attributes:
        year: Year (0-65535)
        month: Month (0-255, normally 1-12)
        day: Day of month (0-255, normally 1-31)
    """

    year: int
    month: int
    day: int

    def __post_init__(self):
        if not (0 <= self.day <= _DAY_LIMIT):
            raise ValueError(f"day out of range: {self.day}")
        if not (0 <= self.month <= _MONTH_LIMIT):
            raise ValueError(f"month out of range: {self.month}")
        if not (0 <= self.year <= _YEAR_LIMIT):
            raise ValueError(f"year out of range: {self.year}")

    @property
    def packed(self) -> int:
        """The date as a ``0xYYYYMMDD`` integer."""
        return self.day | (self.month << 8) | (self.year << 16)

    @classmethod
    def from_packed(cls, value: int) -> CalendarDate:
        """Unpack a ``0xYYYYMMDD`` integer; out-of-range input gives ``NULL_DATE``."""
        if not (0 <= value <= 0xFFFFFFFF):
            return NULL_DATE
        return cls(
            year=(value >> 16) & _YEAR_LIMIT,
            month=(value >> 8) & _MONTH_LIMIT,
            day=value & _DAY_LIMIT,
        )

    @classmethod
    def from_date(cls, value: date) -> CalendarDate:
        """Convert a ``datetime.date``."""
        return cls(year=value.year, month=value.month, day=value.day)

    @classmethod
    def today(cls) -> CalendarDate:
        """Read today's date from the system clock."""
        return cls.from_date(date.today())

    @property
    def is_null(self) -> bool:
        return self == NULL_DATE

    def to_date(self) -> date | None:
        """Convert to ``datetime.date``; None for the null date or an invalid day."""
        if self.is_null:
            return None
        try:
            return date(self.year, self.month, self.day)
        except ValueError:
            return None

    def to_datetime64(self) -> np.datetime64:
        """Convert to a day-precision numpy datetime64 (``NaT`` if not representable)."""
        value = self.to_date()
        if value is None:
            return np.datetime64("NaT", "D")
        return np.datetime64(value, "D")

    def replace(self, **changes) -> CalendarDate:
        fields = {"year": self.year, "month": self.month, "day": self.day}
        fields.update(changes)
        return _compose(fields["day"], fields["month"], fields["year"])

    def __str__(self) -> str:
        return format_date(self)

    def __repr__(self) -> str:
        if self.is_null:
            return "NULL_DATE"
        return f"CalendarDate({self.year}, {self.month}, {self.day})"


NULL_DATE = CalendarDate(year=_YEAR_LIMIT, month=_MONTH_LIMIT, day=_DAY_LIMIT)

# Absolute limits used when a report range cannot be found from the ledger.
MIN_DATE = CalendarDate(year=100, month=1, day=1)
MAX_DATE = CalendarDate(year=9999, month=12, day=31)


def _compose(day: int, month: int, year: int) -> CalendarDate:
    if (
        0 <= day <= _DAY_LIMIT
        and 0 <= month <= _MONTH_LIMIT
        and 0 <= year <= _YEAR_LIMIT
    ):
        return CalendarDate(year=year, month=month, day=day)
    return NULL_DATE


def combine(day: int, month: int, year: int) -> CalendarDate:
    """
    Build a date from its component parts.

    The fields are only checked against their packing widths, not against the
    calendar: ``combine(31, 2, 2021)`` is a legal value that
    ``find_valid_day`` can later resolve.

    Returns:
        The combined date, or ``NULL_DATE`` if a field does not fit
    """
    return _compose(day, month, year)


def extract(value: CalendarDate) -> tuple[int, int, int]:
    """Split a date into ``(day, month, year)``."""
    return value.day, value.month, value.year


# ---------------------------------------------------------------------------
# Calendar information providers
# ---------------------------------------------------------------------------


@runtime_checkable
class CalendarInfo(Protocol):
    """
    Source of calendar facts used by the date arithmetic.

    Providers may additionally implement ``day_of_week(value) -> int | None``
    returning 1 (Sunday) to 7 (Saturday); when they do, ``day_of_week``
    delegates to them instead of using the closed-form congruence.
    """

    def months_in_year(self, year: int) -> int:
        ...

    def days_in_month(self, month: int, year: int) -> int:
        ...


class CivilCalendar:
    """Gregorian calendar with twelve months and the usual leap-year rule."""

    def months_in_year(self, year: int) -> int:
        return 12

    def days_in_month(self, month: int, year: int) -> int:
        if month == 2:
            leap = (year % 4 == 0) and ((year % 100 != 0) or (year % 400 == 0))
            return 29 if leap else 28
        if month in (4, 6, 9, 11):
            return 30
        return 31

    def __repr__(self) -> str:
        return "CivilCalendar()"


class SystemCalendar(CivilCalendar):
    """
    Calendar that delegates weekday lookup to the Python runtime.

    Month lengths match the civil calendar, but weekdays come from
    ``datetime.date`` and so are available for every year it supports
    (proleptic Gregorian), including years before 1752.
    """

    def day_of_week(self, value: CalendarDate) -> int | None:
        real = value.to_date()
        if real is None:
            return None
        return real.isoweekday() % 7 + 1

    def __repr__(self) -> str:
        return "SystemCalendar()"


CIVIL_CALENDAR = CivilCalendar()


@dataclass
class CalendarSettings:
    """
    User-configurable calendar behaviour.

    Attributes:
        weekend_days: Bitmask of non-working days; bit ``n-1`` is weekday ``n``
            (1 = Sunday ... 7 = Saturday). Defaults to Saturday and Sunday.
        date_sep_out: Separator written between date fields
        date_sep_in: Characters accepted as field separators when parsing
        calendar: Calendar information provider
    """

    weekend_days: int = 0b1000001
    date_sep_out: str = "-"
    date_sep_in: str = "-/\\.,"
    calendar: CalendarInfo = field(default_factory=CivilCalendar)


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------


def days_in_month(month: int, year: int, calendar: CalendarInfo = CIVIL_CALENDAR) -> int:
    return calendar.days_in_month(month, year)


def months_in_year(year: int, calendar: CalendarInfo = CIVIL_CALENDAR) -> int:
    return calendar.months_in_year(year)


def add_period(
    value: CalendarDate,
    unit: PeriodUnit,
    count: int,
    calendar: CalendarInfo = CIVIL_CALENDAR,
) -> CalendarDate:
    """
    Add a signed number of days, months or years to a date.

    Years are added directly. Months carry whole years in or out until the
    month is back in range. Days carry whole months (and so years) until the
    day fits its month. Month and year arithmetic can leave a day that does not
    exist in the target month; pass the result through ``find_valid_day``
    before using it as a real date.

    **Args:**
        value: Starting date
        unit: Period unit; ``PeriodUnit.NONE`` returns the date unchanged
        count: Number of units to add (negative to subtract)
        calendar: Calendar information provider

    **Returns:**
        The shifted date, or ``NULL_DATE`` for a null input or a result
        outside the representable years

    **Example:**
        ```python
        add_period(combine(31, 1, 2021), PeriodUnit.MONTHS, 1)
        # CalendarDate(2021, 2, 31) -> find_valid_day(..., FORWARD) gives 28-02-2021

        add_period(combine(1, 3, 2024), PeriodUnit.DAYS, -1)
        # CalendarDate(2024, 2, 29)
        ```
    """
    if value.is_null:
        return NULL_DATE

    day, month, year = value.day, value.month, value.year

    if unit is PeriodUnit.YEARS:
        year += count

    elif unit is PeriodUnit.MONTHS:
        month += count

        while month > calendar.months_in_year(year):
            month -= calendar.months_in_year(year)
            year += 1

        while month <= 0:
            year -= 1
            month += calendar.months_in_year(year)

    elif unit is PeriodUnit.DAYS:
        day += count

        while day > calendar.days_in_month(month, year):
            day -= calendar.days_in_month(month, year)
            month += 1

            if month > calendar.months_in_year(year):
                month = 1
                year += 1

        while day <= 0:
            month -= 1

            if month <= 0:
                year -= 1
                month = calendar.months_in_year(year)

            day += calendar.days_in_month(month, year)

    return _compose(day, month, year)


def find_valid_day(
    value: CalendarDate,
    direction: AdjustDirection,
    calendar: CalendarInfo = CIVIL_CALENDAR,
) -> CalendarDate:
    """
    Pull a date whose day is outside its month back onto the calendar.

    FORWARD clamps an overflowing day to the month's last day, and a day of
    zero to the last day of the previous month. BACKWARD rolls an overflowing
    day on to the 1st of the next month, and a day of zero up to the 1st.
    Period start edges use BACKWARD so they are never pulled into the previous
    month; end edges use FORWARD so they never spill into the next one.
    """
    if value.is_null:
        return NULL_DATE

    day, month, year = value.day, value.month, value.year
    limit = calendar.days_in_month(month, year)

    if day > limit:
        if direction is AdjustDirection.FORWARD:
            day = limit
        else:
            day = 1
            month += 1
            if month > calendar.months_in_year(year):
                month = 1
                year += 1

    elif day < 1:
        if direction is AdjustDirection.FORWARD:
            month -= 1
            if month < 1:
                year -= 1
                month = calendar.months_in_year(year)
            day = calendar.days_in_month(month, year)
        else:
            day = 1

    return _compose(day, month, year)


_MONTH_OFFSETS = (0, 3, 2, 5, 0, 3, 5, 1, 4, 6, 2, 4)

# Earliest year for which the Gregorian congruence is applied.
_GREGORIAN_ADOPTION = 1752


def day_of_week(value: CalendarDate, calendar: CalendarInfo | None = None) -> int | None:
    """
    Return the weekday of a date, 1 (Sunday) to 7 (Saturday).

    If the calendar provider implements ``day_of_week`` it is used; otherwise
    a closed-form Gregorian congruence is applied, which does not cover years
    before 1752.

    Returns:
        The weekday index, or None for the null date, an invalid date or an
        unsupported year
    """
    if value.is_null:
        return None

    lookup = getattr(calendar, "day_of_week", None)
    if lookup is not None:
        return lookup(value)

    day, month, year = value.day, value.month, value.year
    if year < _GREGORIAN_ADOPTION or not 1 <= month <= 12:
        return None
    if not 1 <= day <= CIVIL_CALENDAR.days_in_month(month, year):
        return None

    if month < 3:
        year -= 1
    weekday = (
        year + year // 4 - year // 100 + year // 400 + _MONTH_OFFSETS[month - 1] + day
    ) % 7
    return weekday + 1


def find_working_day(
    value: CalendarDate,
    direction: AdjustDirection,
    weekend_days: int,
    calendar: CalendarInfo = CIVIL_CALENDAR,
) -> CalendarDate:
    """
    Move a date on to the nearest working day.

    The day is first clamped into its month, then the date is stepped one day
    at a time in ``direction`` while its weekday is set in ``weekend_days``.

    **Args:**
        value: Raw date, possibly with an out-of-range day
        direction: FORWARD to move later, BACKWARD to move earlier
        weekend_days: Non-working day bitmask (bit ``n-1`` for weekday ``n``)
        calendar: Calendar information provider

    **Returns:**
        The working day, or ``NULL_DATE`` if the input is null, the weekday
        cannot be determined, or every day of the week is a non-working day
    """
    result = find_valid_day(value, AdjustDirection.FORWARD, calendar)
    if result.is_null:
        return NULL_DATE

    if weekend_days & 0x7F == 0x7F:
        return NULL_DATE

    step = 1 if direction is AdjustDirection.FORWARD else -1

    while True:
        weekday = day_of_week(result, calendar)
        if weekday is None:
            return NULL_DATE
        if not (1 << (weekday - 1)) & weekend_days:
            return result
        result = add_period(result, PeriodUnit.DAYS, step, calendar)
        if result.is_null:
            return NULL_DATE


def count_days(
    start: CalendarDate, end: CalendarDate, calendar: CalendarInfo = CIVIL_CALENDAR
) -> int:
    """
    Count the days from ``start`` to ``end`` inclusive.

    Returns 0 if either date is null or the range is reversed.
    """
    if start.is_null or end.is_null or end < start:
        return 0

    day1, month1, year1 = start.day, start.month, start.year
    day2, month2, year2 = end.day, end.month, end.year

    if month1 == month2 and year1 == year2:
        return day2 - day1 + 1

    result = calendar.days_in_month(month1, year1) - day1 + 1

    month1 += 1
    if month1 > calendar.months_in_year(year1):
        month1 = 1
        year1 += 1

    while year1 < year2 or (year1 == year2 and month1 < month2):
        result += calendar.days_in_month(month1, year1)

        month1 += 1
        if month1 > calendar.months_in_year(year1):
            month1 = 1
            year1 += 1

    return result + day2


def full_month(
    start: CalendarDate, end: CalendarDate, calendar: CalendarInfo = CIVIL_CALENDAR
) -> bool:
    """True if the range covers exactly one whole calendar month."""
    if start.is_null or end.is_null:
        return False
    return (
        start.day == 1
        and end.day == calendar.days_in_month(end.month, end.year)
        and start.month == end.month
        and start.year == end.year
    )


def full_year(
    start: CalendarDate, end: CalendarDate, calendar: CalendarInfo = CIVIL_CALENDAR
) -> bool:
    """True if the range covers exactly one whole calendar year."""
    if start.is_null or end.is_null:
        return False
    return (
        start.day == 1
        and start.month == 1
        and end.day == calendar.days_in_month(end.month, end.year)
        and end.month == calendar.months_in_year(end.year)
        and start.year == end.year
    )


# ---------------------------------------------------------------------------
# Text conversion
# ---------------------------------------------------------------------------


def format_date(value: CalendarDate, separator: str = "-") -> str:
    """Format as ``DD-MM-YYYY``; the null date formats as an empty string."""
    if value.is_null:
        return ""
    return f"{value.day:02d}{separator}{value.month:02d}{separator}{value.year:04d}"


def month_string(value: CalendarDate) -> str:
    """Name the month of a date, e.g. ``"June 2003"``."""
    if value.is_null:
        return ""
    if 1 <= value.month <= 12:
        name = _stdlib_calendar.month_name[value.month]
    else:
        name = f"Month {value.month}"
    return f"{name} {value.year}"


def year_string(value: CalendarDate) -> str:
    if value.is_null:
        return ""
    return f"{value.year}"


def parse_date(
    text: str,
    previous: CalendarDate = NULL_DATE,
    month_days: int = 0,
    separators: str = "-/\\.,",
    calendar: CalendarInfo = CIVIL_CALENDAR,
    today: CalendarDate | None = None,
) -> CalendarDate:
    """
    Parse a ``day[/month[/year]]`` string.

    Missing month and year fields are taken from ``previous`` if given,
    otherwise from ``today`` (the system clock by default). Two-digit years
    00-79 are read as 20xx and 80-99 as 19xx. The month is clamped to the
    months in the year, and the day to the days in the month (or to
    ``month_days`` when that is non-zero).

    Returns:
        The parsed date, or ``NULL_DATE`` if the text is empty, a field is not
        numeric, or the day or month is zero
    """
    base = previous if not previous.is_null else (today or CalendarDate.today())

    pattern = "[" + re.escape(separators) + "]" if separators else None
    text = text.strip()
    tokens = [t for t in (re.split(pattern, text) if pattern else [text]) if t]
    if not tokens:
        return NULL_DATE

    fields = tokens[:3]
    if not all(t.isdigit() for t in fields):
        return NULL_DATE

    day = int(fields[0])
    month = int(fields[1]) if len(fields) > 1 else base.month
    year = int(fields[2]) if len(fields) > 2 else base.year

    if 0 <= year < 80:
        year += 2000
    elif 80 <= year <= 99:
        year += 1900

    if day < 1 or month < 1:
        return NULL_DATE

    month = min(month, calendar.months_in_year(year))
    day_limit = month_days if month_days else calendar.days_in_month(month, year)
    day = min(day, day_limit)

    return _compose(day, month, year)
