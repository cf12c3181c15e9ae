"""
Core module for CashBook.

This module contains the date arithmetic, period iteration, ledger store and
balance engine that the rest of the package builds on.
"""

from .accounts import Account, AccountType, BalanceKind
from .budget import BudgetSettings
from .calculation import BalanceEngine, RecalcState
from .dates import (
    CIVIL_CALENDAR,
    MAX_DATE,
    MIN_DATE,
    NULL_DATE,
    AdjustDirection,
    CalendarDate,
    CalendarInfo,
    CalendarSettings,
    CivilCalendar,
    PeriodUnit,
    SystemCalendar,
    add_period,
    combine,
    count_days,
    day_of_week,
    days_in_month,
    extract,
    find_valid_day,
    find_working_day,
    format_date,
    full_month,
    full_year,
    month_string,
    months_in_year,
    parse_date,
    year_string,
)
from .errors import ConfigError
from .exceptions import AccountInUseError
from .ledger import DISPLAY_TYPES, Ledger, PurgeResult
from .periods import DatePeriod, PeriodIterator, iterate_periods
from .sections import DisplayLine, DisplayList, LineType, aggregate, line_values
from .transactions import Transaction, TransactionFlags

__all__ = [
    # Errors
    "ConfigError",
    "AccountInUseError",
    # Dates
    "CalendarDate",
    "CalendarInfo",
    "CalendarSettings",
    "CivilCalendar",
    "SystemCalendar",
    "CIVIL_CALENDAR",
    "NULL_DATE",
    "MIN_DATE",
    "MAX_DATE",
    "PeriodUnit",
    "AdjustDirection",
    "combine",
    "extract",
    "days_in_month",
    "months_in_year",
    "add_period",
    "find_valid_day",
    "day_of_week",
    "find_working_day",
    "count_days",
    "full_month",
    "full_year",
    "format_date",
    "month_string",
    "year_string",
    "parse_date",
    # Periods
    "DatePeriod",
    "PeriodIterator",
    "iterate_periods",
    # Ledger
    "Account",
    "AccountType",
    "BalanceKind",
    "Transaction",
    "TransactionFlags",
    "BudgetSettings",
    "Ledger",
    "PurgeResult",
    "DISPLAY_TYPES",
    # Sections
    "DisplayLine",
    "DisplayList",
    "LineType",
    "aggregate",
    "line_values",
    # Engine
    "BalanceEngine",
    "RecalcState",
]
