"""
Custom exceptions for CashBook.

This module provides specialized exception classes for ledger editing
operations that must be refused.
"""

from __future__ import annotations


class AccountInUseError(Exception):
    """
    Raised when deleting an account that is still referenced.

    An account may only be deleted once no transaction, standing order or
    preset uses it, and no other account is offset against it.

    Attributes:
        account: Index of the account that could not be deleted
        ident: The account's ident
        reasons: Descriptions of the remaining references
    """

    def __init__(self, account: int, ident: str, reasons: list[str] | None = None):
        self.account = account
        self.ident = ident
        self.reasons = reasons or []
        super().__init__(self._fmt())

    def _fmt(self) -> str:
        """Format the error message with the remaining references."""
        suffix = ""
        if self.reasons:
            preview = ", ".join(self.reasons[:5])
            more = f" (+{len(self.reasons)-5} more)" if len(self.reasons) > 5 else ""
            suffix = f" | used by: {preview}{more}"
        return f"[Account {self.ident}] cannot be deleted while in use{suffix}"
