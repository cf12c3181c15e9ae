"""
Display sections for the account and heading lists.

Each account type has a user-ordered display list made of account lines
grouped into sections by header and footer lines. Section aggregation walks a
list once and fills in the sub-totals that each footer shows, together with
the grand totals for the whole list.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum

from .accounts import Account, AccountType

TOTAL_COLUMNS = 4

# Column captions for each kind of display list.
FULL_COLUMNS = ("statement", "current", "trial", "budget")
HEADING_COLUMNS = ("future", "budget_amount", "budget_balance", "budget_result")

Totals = tuple[int, int, int, int]
ZERO_TOTALS: Totals = (0, 0, 0, 0)


class LineType(Enum):
    """Kinds of line in a display list."""

    BLANK = "blank"
    DATA = "data"
    HEADER = "header"
    FOOTER = "footer"


@dataclass
class DisplayLine:
    """
    A single line in a display list.

    Attributes:
        type: Line kind
        account: Account index for data lines
        heading: Caption for header and footer lines
        total: Sub-total captured by footer lines during aggregation
    """

    type: LineType = LineType.BLANK
    account: int | None = None
    heading: str = ""
    total: Totals = ZERO_TOTALS


@dataclass
class DisplayList:
    """
    Ordered display lines for one account type.

    Attributes:
        account_type: The type of account listed (FULL, INCOME or EXPENDITURE)
        lines: Display lines in user order
        totals: Grand totals from the most recent aggregation
    """

    account_type: AccountType
    lines: list[DisplayLine] = field(default_factory=list)
    totals: Totals = ZERO_TOTALS

    @property
    def columns(self) -> tuple[str, ...]:
        if self.account_type == AccountType.FULL:
            return FULL_COLUMNS
        return HEADING_COLUMNS

    def append_account(self, account: int) -> int:
        return self._append(DisplayLine(LineType.DATA, account=account))

    def append_header(self, heading: str) -> int:
        return self._append(DisplayLine(LineType.HEADER, heading=heading))

    def append_footer(self, heading: str) -> int:
        return self._append(DisplayLine(LineType.FOOTER, heading=heading))

    def append_blank(self) -> int:
        return self._append(DisplayLine())

    def insert_line(self, position: int, line: DisplayLine) -> int:
        """Insert a line before ``position``, clamped to the list; returns its index."""
        position = max(0, min(position, len(self.lines)))
        self.lines.insert(position, line)
        return position

    def delete_line(self, position: int) -> None:
        if 0 <= position < len(self.lines):
            del self.lines[position]

    def remove_account(self, account: int) -> int:
        """Drop every data line for ``account``; returns the number removed."""
        before = len(self.lines)
        self.lines = [
            line
            for line in self.lines
            if not (line.type is LineType.DATA and line.account == account)
        ]
        return before - len(self.lines)

    def accounts(self) -> Iterator[int]:
        """Account indexes of the data lines, in display order."""
        for line in self.lines:
            if line.type is LineType.DATA and line.account is not None:
                yield line.account

    def footers(self) -> dict[int, Totals]:
        """Captured footer totals keyed by display line number."""
        return {
            i: line.total
            for i, line in enumerate(self.lines)
            if line.type is LineType.FOOTER
        }

    def _append(self, line: DisplayLine) -> int:
        self.lines.append(line)
        return len(self.lines) - 1


def line_values(account: Account, account_type: AccountType) -> Totals:
    """
    Return the figures an account contributes to its display list.

    Full accounts contribute their statement, current, trial and budget
    balances. Headings contribute their future balance, budget amount, budget
    balance and budget result; the budget result is derived here as
    budgeted-minus-actual, sign-flipped for income so that a positive result
    always reads as favourable. Income figures are negated for display, since
    money arriving from an income heading leaves it with a negative balance.
    """
    if account_type == AccountType.FULL:
        return (
            account.statement_balance,
            account.current_balance,
            account.trial_balance,
            account.budget_balance,
        )

    if account_type == AccountType.INCOME:
        if account.budget_amount != 0:
            account.budget_result = -account.budget_amount - account.budget_balance
        else:
            account.budget_result = 0
        return (
            -account.future_balance,
            account.budget_amount,
            -account.budget_balance,
            account.budget_result,
        )

    if account.budget_amount != 0:
        account.budget_result = account.budget_amount - account.budget_balance
    else:
        account.budget_result = 0
    return (
        account.future_balance,
        account.budget_amount,
        account.budget_balance,
        account.budget_result,
    )


def aggregate(
    display: DisplayList, lookup: Callable[[int], Account | None]
) -> Totals:
    """
    Compute section sub-totals and grand totals for a display list.

    Data lines add into the running sub-total and the grand total; a header
    resets the sub-total; a footer captures the current sub-total. Data lines
    whose account no longer resolves contribute nothing.

    **Args:**
        display: The display list to aggregate; footer totals are updated in place
        lookup: Returns the account for an index, or None if it is not valid

    **Returns:**
        The grand totals, also stored on ``display.totals``
    """
    sub_total = [0] * TOTAL_COLUMNS
    total = [0] * TOTAL_COLUMNS

    for line in display.lines:
        if line.type is LineType.DATA:
            account = lookup(line.account) if line.account is not None else None
            if account is None:
                continue
            values = line_values(account, display.account_type)
            for i in range(TOTAL_COLUMNS):
                sub_total[i] += values[i]
                total[i] += values[i]

        elif line.type is LineType.HEADER:
            sub_total = [0] * TOTAL_COLUMNS

        elif line.type is LineType.FOOTER:
            line.total = tuple(sub_total)

    display.totals = tuple(total)
    return display.totals
