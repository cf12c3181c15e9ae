"""
Periodic analysis reports for CashBook.

This module combines the period iterator with per-account transaction
movements to build cashflow, balance and unreconciled-transaction reports.
All reports are returned as pandas DataFrames with one row per period (or per
transaction for the unreconciled report); amounts are integers in minor
currency units.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from .core.accounts import AccountType
from .core.dates import MAX_DATE, MIN_DATE, NULL_DATE, CalendarDate, PeriodUnit
from .core.ledger import DISPLAY_TYPES, REPORT_COLUMNS, Ledger
from .core.periods import DatePeriod, PeriodIterator

TOTAL_COLUMN = REPORT_COLUMNS[-1]


@dataclass
class ReportOptions:
    """
    Settings for a periodic report.

    Attributes:
        date_from: First date to report on (``NULL_DATE`` = earliest transaction)
        date_to: Last date to report on (``NULL_DATE`` = latest transaction)
        budget: True to report over the budget window instead of the dates above
        group: True to split the report into periods
        period: Number of units per period when grouping
        unit: Unit of the grouping period
        lock: True to align periods to calendar months or years
        accounts: Account indexes to include; None or empty includes every account
        show_empty: True to include periods with no transactions (cashflow only)
    """

    date_from: CalendarDate = NULL_DATE
    date_to: CalendarDate = NULL_DATE
    budget: bool = False
    group: bool = False
    period: int = 1
    unit: PeriodUnit = PeriodUnit.MONTHS
    lock: bool = False
    accounts: list[int] | None = None
    show_empty: bool = False


def resolve_date_range(
    ledger: Ledger,
    date_from: CalendarDate = NULL_DATE,
    date_to: CalendarDate = NULL_DATE,
    budget: bool = False,
) -> tuple[CalendarDate, CalendarDate]:
    """
    Work out the effective date range of a report.

    **Args:**
        ledger: The ledger being reported on
        date_from: Explicit start, or ``NULL_DATE``
        date_to: Explicit end, or ``NULL_DATE``
        budget: True to take the range from the budget window instead

    **Returns:**
        ``(start, end)``. Unspecified edges fall back to the earliest and
        latest transaction dates, and to ``MIN_DATE``/``MAX_DATE`` if the
        ledger has no dated transactions.
    """
    if budget:
        start, end = ledger.budget.start, ledger.budget.finish
    else:
        start, end = date_from, date_to

    if start.is_null or end.is_null:
        earliest, latest = ledger.date_span()
        if start.is_null:
            start = earliest
        if end.is_null:
            end = latest

    if start.is_null:
        start = MIN_DATE
    if end.is_null:
        end = MAX_DATE

    return start, end


class AnalysisAggregator:
    """
    Builds periodic reports from a ledger.

    **Example Usage:**
        ```python
        reports = AnalysisAggregator(ledger)
        options = ReportOptions(group=True, period=1, unit=PeriodUnit.MONTHS, lock=True)
        cashflow = reports.cashflow(options)
        balances = reports.balance(options)
        ```
    """

    def __init__(self, ledger: Ledger):
        self.ledger = ledger

    def periods(self, options: ReportOptions) -> list[DatePeriod]:
        """Return the report periods for a set of options."""
        start, end = resolve_date_range(
            self.ledger, options.date_from, options.date_to, options.budget
        )
        period = options.period if options.group else 0
        lock = options.lock and options.unit in (PeriodUnit.MONTHS, PeriodUnit.YEARS)

        iterator = PeriodIterator(
            self.ledger.settings.calendar, self.ledger.settings.date_sep_out
        )
        iterator.initialise(start, end, period, options.unit, lock)
        return list(iterator)

    def included_accounts(
        self, options: ReportOptions, type_mask: AccountType = AccountType.ANY
    ) -> list[int]:
        """
        Included account indexes in display order.

        Accounts are listed as they appear in the full account list, then the
        income headings, then the expenditure headings.
        """
        wanted = set(options.accounts) if options.accounts else None
        result = []
        for account_type in DISPLAY_TYPES:
            if not account_type & type_mask:
                continue
            for index in self.ledger.sections[account_type].accounts():
                if not self.ledger.is_valid_account(index):
                    continue
                if wanted is None or index in wanted:
                    result.append(index)
        return result

    def cashflow(self, options: ReportOptions) -> pd.DataFrame:
        """
        Net movement of each included account in each period.

        Periods with no transactions are skipped unless ``options.show_empty``.
        """
        included = self.included_accounts(options)
        rows = []

        for bucket in self.periods(options):
            movement, found = self._movements(bucket.start, bucket.end)
            if found or options.show_empty:
                rows.append(self._row(bucket, movement, included))

        return self._frame(rows, included)

    def balance(self, options: ReportOptions) -> pd.DataFrame:
        """Balance of each included account at the end of each period."""
        included = self.included_accounts(options)
        opening = np.array(
            [account.opening_balance for account in self.ledger.accounts], dtype=np.int64
        )
        rows = []

        for bucket in self.periods(options):
            movement, _ = self._movements(MIN_DATE, bucket.end)
            rows.append(self._row(bucket, opening + movement, included))

        return self._frame(rows, included)

    def unreconciled(self, options: ReportOptions) -> pd.DataFrame:
        """
        Transactions with an unreconciled side on an included account.

        The from-side is checked on full accounts and income headings, the
        to-side on full accounts and expenditure headings.

        Returns:
            DataFrame with period, date, from, to, reference, description and
            amount columns, in date order within each period
        """
        from_side = set(self.included_accounts(options, AccountType.FULL | AccountType.INCOME))
        to_side = set(
            self.included_accounts(options, AccountType.FULL | AccountType.EXPENDITURE)
        )
        ledger = self.ledger
        ordered = sorted(ledger.transactions, key=lambda t: t.date)
        rows = []

        for bucket in self.periods(options):
            for t in ordered:
                if not bucket.start <= t.date <= bucket.end:
                    continue
                open_from = t.from_account in from_side and not t.reconciled_from
                open_to = t.to_account in to_side and not t.reconciled_to
                if not (open_from or open_to):
                    continue
                rows.append(
                    {
                        "period": bucket.title,
                        "date": t.date.to_datetime64(),
                        "from": self._ident(t.from_account),
                        "to": self._ident(t.to_account),
                        "reference": t.reference,
                        "description": t.description,
                        "amount": t.amount,
                    }
                )

        columns = ["period", "date", "from", "to", "reference", "description", "amount"]
        frame = pd.DataFrame(rows, columns=columns)
        return frame.astype({"amount": "int64"})

    def _movements(self, start: CalendarDate, end: CalendarDate) -> tuple[np.ndarray, int]:
        ledger = self.ledger
        movement = np.zeros(len(ledger.accounts), dtype=np.int64)
        found = 0

        for t in ledger.transactions:
            if not start <= t.date <= end:
                continue
            if ledger.is_valid_account(t.from_account):
                movement[t.from_account] -= t.amount
            if ledger.is_valid_account(t.to_account):
                movement[t.to_account] += t.amount
            found += 1

        return movement, found

    def _row(self, bucket: DatePeriod, values: np.ndarray, included: list[int]) -> dict:
        row = {
            "period": bucket.title,
            "start": bucket.start.to_datetime64(),
            "end": bucket.end.to_datetime64(),
        }
        total = 0
        for index in included:
            amount = int(values[index])
            row[self._ident(index)] = amount
            total += amount
        row[TOTAL_COLUMN] = total
        return row

    def _frame(self, rows: list[dict], included: list[int]) -> pd.DataFrame:
        amount_columns = [self._ident(index) for index in included] + [TOTAL_COLUMN]
        frame = pd.DataFrame(rows, columns=["period", "start", "end"] + amount_columns)
        frame = frame.astype({column: "int64" for column in amount_columns})
        return frame.set_index("period")

    def _ident(self, index: int | None) -> str:
        account = self.ledger.get_account(index)
        return account.ident if account is not None else ""
