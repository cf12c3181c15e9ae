"""
CashBook - Personal Account Book with Budgeting and Periodic Analysis

CashBook keeps a ledger of accounts, income and expenditure headings and the
transactions between them, and maintains a set of running balances for every
account as the ledger changes.

Key Features:
- **Calendar Arithmetic**: Compact dates with month/year arithmetic, validity
  adjustment, weekday and working-day calculations
- **Period Iteration**: Split a date range into consecutive periods, optionally
  locked to calendar months or years
- **Balance Engine**: Statement, current, future, budget, available and trial
  balances, kept in step by full or incremental recalculation
- **Sectioned Lists**: User-ordered account lists with header/footer sub-totals
- **Analysis**: Cashflow, balance and unreconciled reports as pandas DataFrames

Quick Start:
    ```python
    from cashbook import AccountType, BalanceEngine, BalanceKind, Ledger, combine

    ledger = Ledger()
    current = ledger.add_account("Current Account", "CUR", AccountType.FULL,
                                 opening_balance=100000)
    food = ledger.add_account("Food", "FOOD", AccountType.EXPENDITURE,
                              budget_amount=30000)
    ledger.add_transaction(combine(5, 1, 2024), current, food, 4500)

    engine = BalanceEngine(ledger)
    engine.recalculate_all(today=combine(31, 1, 2024))
    ledger.get_balance(current, BalanceKind.CURRENT)  # 95500
    ```

Amounts are integers in minor currency units (pence, cents).
"""

# Version information
__version__ = "0.1.0"
__author__ = "CashBook Team"
__description__ = "Personal account book with budgeting and periodic analysis"

from .analysis import AnalysisAggregator, ReportOptions, resolve_date_range
from .core import (
    MAX_DATE,
    MIN_DATE,
    NULL_DATE,
    Account,
    AccountInUseError,
    AccountType,
    AdjustDirection,
    BalanceEngine,
    BalanceKind,
    BudgetSettings,
    CalendarDate,
    CalendarSettings,
    ConfigError,
    DatePeriod,
    Ledger,
    PeriodIterator,
    PeriodUnit,
    Transaction,
    TransactionFlags,
    add_period,
    combine,
    day_of_week,
    find_valid_day,
    find_working_day,
    iterate_periods,
    parse_date,
)

# Define what gets imported with "from cashbook import *"
__all__ = [
    # Dates
    "CalendarDate",
    "CalendarSettings",
    "NULL_DATE",
    "MIN_DATE",
    "MAX_DATE",
    "PeriodUnit",
    "AdjustDirection",
    "combine",
    "add_period",
    "find_valid_day",
    "day_of_week",
    "find_working_day",
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
    # Engine
    "BalanceEngine",
    # Analysis
    "AnalysisAggregator",
    "ReportOptions",
    "resolve_date_range",
    # Errors
    "ConfigError",
    "AccountInUseError",
]
