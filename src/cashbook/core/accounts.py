"""
Account and heading records for CashBook.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntFlag


class AccountType(IntFlag):
    """
    Account type classification.

    FULL accounts are real asset or liability accounts; INCOME and
    EXPENDITURE are analysis headings. NULL marks a deleted slot. The values
    are bit flags so that several types can be matched with one mask.
    """

    NULL = 0x0000
    FULL = 0x0001
    INCOME = 0x0100
    EXPENDITURE = 0x0200
    HEADING = INCOME | EXPENDITURE
    ANY = FULL | INCOME | EXPENDITURE


class BalanceKind(Enum):
    """The derived balances kept for every account."""

    STATEMENT = "statement_balance"  # Reconciled against the bank statement
    CURRENT = "current_balance"  # Up to today
    FUTURE = "future_balance"  # Including post-dated entries
    BUDGET = "budget_balance"  # Within the budget window
    TRIAL = "trial_balance"  # Future plus standing-order trial
    AVAILABLE = "available_balance"  # Future plus credit limit


@dataclass
class Account:
    """
    An account or analysis heading.

    Amounts are signed integers in minor currency units. The balance fields
    are derived by the balance engine and are never edited directly.

    Attributes:
        ident: Short identifying code (e.g. ``"CUR"``)
        name: Display name
        type: Account type flag
        opening_balance: Balance before the first transaction
        credit_limit: Overdraft or credit facility (full accounts)
        budget_amount: Budgeted amount (headings); 0 means no budget
        offset_against: Index of an account this one is offset against, if any
        account_no: Bank account number
        sort_code: Bank sort code
    """

    ident: str
    name: str
    type: AccountType = AccountType.FULL
    opening_balance: int = 0
    credit_limit: int = 0
    budget_amount: int = 0
    offset_against: int | None = None
    account_no: str = ""
    sort_code: str = ""

    statement_balance: int = field(default=0, init=False)
    current_balance: int = field(default=0, init=False)
    future_balance: int = field(default=0, init=False)
    budget_balance: int = field(default=0, init=False)
    trial_balance: int = field(default=0, init=False)
    available_balance: int = field(default=0, init=False)
    budget_result: int = field(default=0, init=False)
    sorder_trial: int = field(default=0, init=False)

    def is_null(self) -> bool:
        """Check if the slot belongs to a deleted account."""
        return self.type == AccountType.NULL

    def is_full(self) -> bool:
        return bool(self.type & AccountType.FULL)

    def is_heading(self) -> bool:
        return bool(self.type & AccountType.HEADING)

    def is_income(self) -> bool:
        return bool(self.type & AccountType.INCOME)

    def is_expenditure(self) -> bool:
        return bool(self.type & AccountType.EXPENDITURE)

    def balance(self, kind: BalanceKind) -> int:
        return getattr(self, kind.value)

    def balances(self) -> dict[str, int]:
        """Snapshot of every derived balance, keyed by field name."""
        snapshot = {kind.value: self.balance(kind) for kind in BalanceKind}
        snapshot["budget_result"] = self.budget_result
        return snapshot

    def reset_balances(self) -> None:
        """Reset the primary balances ready for a full recalculation."""
        self.statement_balance = self.opening_balance
        self.current_balance = self.opening_balance
        self.future_balance = self.opening_balance
        self.budget_balance = 0

    def clear(self) -> None:
        """Blank the slot so that it can be reused by a new account."""
        self.ident = ""
        self.name = ""
        self.type = AccountType.NULL
        self.opening_balance = 0
        self.credit_limit = 0
        self.budget_amount = 0
        self.offset_against = None
        self.account_no = ""
        self.sort_code = ""
        for kind in BalanceKind:
            setattr(self, kind.value, 0)
        self.budget_result = 0
        self.sorder_trial = 0

    def __str__(self) -> str:
        return f"{self.ident} ({self.name})"
