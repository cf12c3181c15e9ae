"""
Transaction records for CashBook.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag

from .dates import NULL_DATE, CalendarDate


class TransactionFlags(IntFlag):
    """Reconciliation flags, set independently for each side of a transfer."""

    NONE = 0x0000
    REC_FROM = 0x0001
    REC_TO = 0x0002
    RECONCILED = REC_FROM | REC_TO


@dataclass
class Transaction:
    """
    A dated transfer of money between two accounts.

    Either account may be None, meaning money entering or leaving the ledger.

    Attributes:
        date: Transaction date (``NULL_DATE`` if not yet set)
        from_account: Index of the account the money leaves
        to_account: Index of the account the money enters
        amount: Signed amount in minor currency units
        flags: Reconciliation flags
        reference: Cheque number or similar reference
        description: Free-text description
    """

    date: CalendarDate = NULL_DATE
    from_account: int | None = None
    to_account: int | None = None
    amount: int = 0
    flags: TransactionFlags = TransactionFlags.NONE
    reference: str = ""
    description: str = ""

    @property
    def reconciled_from(self) -> bool:
        return bool(self.flags & TransactionFlags.REC_FROM)

    @property
    def reconciled_to(self) -> bool:
        return bool(self.flags & TransactionFlags.REC_TO)

    @property
    def fully_reconciled(self) -> bool:
        return self.flags & TransactionFlags.RECONCILED == TransactionFlags.RECONCILED

    def references(self, account: int) -> bool:
        """Check if either side of the transaction uses ``account``."""
        return self.from_account == account or self.to_account == account

    def __str__(self) -> str:
        return f"{self.date} {self.from_account}->{self.to_account}: {self.amount}"
