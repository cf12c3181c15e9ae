"""
Error classes for CashBook.

This module defines custom exception classes used throughout the CashBook
system for handling configuration errors and invalid ledger construction data.
"""


class ConfigError(Exception):
    """
    Configuration error during ledger setup or validation.

    This exception is raised when there are issues with ledger construction
    data or settings. Ordinary balance and date queries never raise it: they
    return zero or ``NULL_DATE`` instead.

    **Common Causes:**
    - An account created with an empty, duplicate or reserved ident
    - An unknown account type or display line type in ``Ledger.from_dict``
    - A negative standing-order trial length in ``BudgetSettings``
    - A transaction referring to an account index that does not exist

    **Example Usage:**
        ```python
        from cashbook.core.errors import ConfigError
        from cashbook.core.accounts import AccountType
        from cashbook.core.ledger import Ledger

        ledger = Ledger()
        try:
            ledger.add_account("Current", "", AccountType.FULL)
        except ConfigError as e:
            print(f"Configuration error: {e}")
        ```
    """

    pass
