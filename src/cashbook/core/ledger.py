"""
Ledger store for CashBook.

The ``Ledger`` owns the accounts, transactions and display lists of one
account book. Accounts are addressed by index; deleting an account blanks its
slot rather than shifting later accounts, so transaction references stay
valid, and a blank slot is reused by the next account created.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from .accounts import Account, AccountType, BalanceKind
from .budget import BudgetSettings
from .dates import NULL_DATE, CalendarDate, CalendarSettings, combine, parse_date
from .errors import ConfigError
from .exceptions import AccountInUseError
from .sections import DisplayLine, DisplayList, LineType
from .transactions import Transaction, TransactionFlags

logger = logging.getLogger(__name__)

DISPLAY_TYPES = (AccountType.FULL, AccountType.INCOME, AccountType.EXPENDITURE)

# Column names used by the analysis reports; not available as account idents.
REPORT_COLUMNS = ("period", "start", "end", "total")

_TYPE_NAMES = {
    "full": AccountType.FULL,
    "account": AccountType.FULL,
    "income": AccountType.INCOME,
    "in": AccountType.INCOME,
    "expenditure": AccountType.EXPENDITURE,
    "out": AccountType.EXPENDITURE,
}

ReferenceSource = Callable[[], Iterable["int | None"]]


@dataclass
class PurgeResult:
    """Counts of what a purge removed."""

    transactions: int = 0
    accounts: int = 0
    headings: int = 0


@dataclass
class Ledger:
    """
    An account book: accounts, transactions, display lists and settings.

    Attributes:
        accounts: Account slots, indexed by account number
        transactions: Transactions in stored order
        sections: Display list for each account type
        budget: Budget window and forecasting settings
        settings: Calendar and date-format settings

    **Example Usage:**
        ```python
        from cashbook.core.accounts import AccountType
        from cashbook.core.dates import combine
        from cashbook.core.ledger import Ledger

        ledger = Ledger()
        current = ledger.add_account("Current Account", "CUR", AccountType.FULL)
        salary = ledger.add_account("Salary", "SAL", AccountType.INCOME)
        ledger.add_transaction(combine(25, 1, 2024), salary, current, 250000)
        ```
    """

    accounts: list[Account] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    sections: dict[AccountType, DisplayList] = field(default_factory=dict)
    budget: BudgetSettings = field(default_factory=BudgetSettings)
    settings: CalendarSettings = field(default_factory=CalendarSettings)
    _reference_sources: list[ReferenceSource] = field(
        default_factory=list, init=False, repr=False
    )

    def __post_init__(self):
        for account_type in DISPLAY_TYPES:
            self.sections.setdefault(account_type, DisplayList(account_type))

    # ------------------------------------------------------------------
    # Account access
    # ------------------------------------------------------------------

    def get_account(self, account: int | None) -> Account | None:
        """Return the account at an index, or None if it is out of range or deleted."""
        if account is None or not isinstance(account, int):
            return None
        if not 0 <= account < len(self.accounts):
            return None
        found = self.accounts[account]
        return None if found.is_null() else found

    def is_valid_account(self, account: int | None) -> bool:
        return self.get_account(account) is not None

    def get_balance(self, account: int | None, kind: BalanceKind) -> int:
        """Return a derived balance, or 0 for an invalid account reference."""
        found = self.get_account(account)
        return found.balance(kind) if found is not None else 0

    def iter_accounts(self, type_mask: AccountType = AccountType.ANY) -> Iterator[tuple[int, Account]]:
        """Yield ``(index, account)`` for live accounts matching ``type_mask``."""
        for i, account in enumerate(self.accounts):
            if not account.is_null() and account.type & type_mask:
                yield i, account

    def find_account(self, ident: str, type_mask: AccountType = AccountType.ANY) -> int | None:
        """Find an account by ident (case-insensitive) among the given types."""
        wanted = ident.strip().lower()
        for i, account in self.iter_accounts(type_mask):
            if account.ident.lower() == wanted:
                return i
        return None

    def count_accounts(self, type_mask: AccountType = AccountType.ANY) -> int:
        return sum(1 for _ in self.iter_accounts(type_mask))

    # ------------------------------------------------------------------
    # Account lifecycle
    # ------------------------------------------------------------------

    def add_account(
        self, name: str, ident: str, account_type: AccountType, **details: Any
    ) -> int:
        """
        Create an account and add it to the end of its display list.

        The first deleted slot is reused if there is one; otherwise the
        account is appended.

        Args:
            name: Display name
            ident: Short identifying code; must not be empty
            account_type: FULL, INCOME or EXPENDITURE
            **details: Further ``Account`` fields (opening_balance, credit_limit, ...)

        Returns:
            The new account's index

        Raises:
            ConfigError: If the ident is empty, already used or reserved, or the
                type is not listable
        """
        if not ident or not ident.strip():
            raise ConfigError(f"Account '{name}' needs an ident")
        if ident.strip().lower() in REPORT_COLUMNS:
            raise ConfigError(f"Account ident '{ident.strip()}' is reserved")
        if self.find_account(ident) is not None:
            raise ConfigError(f"Duplicate account ident '{ident.strip()}'")
        if account_type not in DISPLAY_TYPES:
            raise ConfigError(f"Cannot create an account of type {account_type!r}")

        try:
            account = Account(ident=ident.strip(), name=name, type=account_type, **details)
        except TypeError as e:
            raise ConfigError(f"Invalid details for account '{ident}': {e}") from e

        for i, existing in enumerate(self.accounts):
            if existing.is_null():
                self.accounts[i] = account
                index = i
                break
        else:
            self.accounts.append(account)
            index = len(self.accounts) - 1

        self.sections[account_type].append_account(index)
        return index

    def add_reference_source(self, source: ReferenceSource) -> None:
        """
        Register a collaborator that holds account references.

        Standing orders and presets live outside the ledger; each source is a
        callable returning the account indexes it currently uses, and is
        consulted before an account is deleted.
        """
        self._reference_sources.append(source)

    def account_references(self, account: int) -> list[str]:
        """Describe everything that still refers to an account."""
        reasons = []

        used = sum(1 for t in self.transactions if t.references(account))
        if used:
            reasons.append(f"{used} transaction(s)")

        for source in self._reference_sources:
            if account in set(source()):
                reasons.append(getattr(source, "__name__", "external reference"))

        for i, other in self.iter_accounts():
            if i != account and other.offset_against == account:
                reasons.append(f"offset link from {other.ident}")

        return reasons

    def account_used(self, account: int) -> bool:
        return bool(self.account_references(account))

    def delete_account(self, account: int) -> None:
        """
        Delete an unused account.

        Raises:
            AccountInUseError: If anything still refers to the account
        """
        found = self.get_account(account)
        if found is None:
            return

        reasons = self.account_references(account)
        if reasons:
            raise AccountInUseError(account, found.ident, reasons)

        for display in self.sections.values():
            display.remove_account(account)

        logger.info("Deleted account %s (%s)", found.ident, found.name)
        found.clear()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def add_transaction(
        self,
        date: CalendarDate,
        from_account: int | None,
        to_account: int | None,
        amount: int,
        flags: TransactionFlags = TransactionFlags.NONE,
        reference: str = "",
        description: str = "",
    ) -> Transaction:
        """Append a transaction to the ledger and return it."""
        transaction = Transaction(
            date=date,
            from_account=from_account,
            to_account=to_account,
            amount=amount,
            flags=flags,
            reference=reference,
            description=description,
        )
        self.transactions.append(transaction)
        return transaction

    def delete_transaction(self, transaction: Transaction) -> None:
        """Remove a transaction; the caller owns keeping balances in step."""
        self.transactions.remove(transaction)

    def sort_transactions(self) -> None:
        """Sort transactions by date, keeping entry order within a day; null dates sort last."""
        self.transactions.sort(key=lambda t: t.date)

    def date_span(self) -> tuple[CalendarDate, CalendarDate]:
        """Return the earliest and latest real transaction dates (``NULL_DATE`` if none)."""
        dates = [t.date for t in self.transactions if not t.date.is_null]
        if not dates:
            return NULL_DATE, NULL_DATE
        return min(dates), max(dates)

    # ------------------------------------------------------------------
    # Standing-order trial
    # ------------------------------------------------------------------

    def reset_sorder_trial(self) -> None:
        """Zero every account's standing-order trial adjustment."""
        for account in self.accounts:
            account.sorder_trial = 0

    def add_sorder_trial(self, account: int | None, amount: int) -> None:
        """Accumulate a standing-order trial adjustment; invalid accounts are ignored."""
        found = self.get_account(account)
        if found is not None:
            found.sorder_trial += amount

    # ------------------------------------------------------------------
    # Purge
    # ------------------------------------------------------------------

    def purge(
        self,
        before: CalendarDate = NULL_DATE,
        transactions: bool = True,
        accounts: bool = False,
        headings: bool = False,
    ) -> PurgeResult:
        """
        Remove settled data from the ledger.

        Fully reconciled transactions dated before ``before`` (or all of them
        if ``before`` is null) are removed, with their amounts folded into the
        opening balances of the full accounts they touch. Unused accounts
        and/or headings can then be deleted. A full recalculation is needed
        afterwards.

        Returns:
            Counts of the transactions, accounts and headings removed
        """
        result = PurgeResult()

        if transactions:
            kept = []
            for t in self.transactions:
                if t.fully_reconciled and (before.is_null or t.date < before):
                    source = self.get_account(t.from_account)
                    if source is not None and source.is_full():
                        source.opening_balance -= t.amount

                    target = self.get_account(t.to_account)
                    if target is not None and target.is_full():
                        target.opening_balance += t.amount

                    result.transactions += 1
                else:
                    kept.append(t)
            self.transactions = kept
            self.sort_transactions()

        if accounts or headings:
            for i, account in list(self.iter_accounts()):
                wanted = (accounts and account.is_full()) or (headings and account.is_heading())
                if wanted and not self.account_used(i):
                    if account.is_full():
                        result.accounts += 1
                    else:
                        result.headings += 1
                    self.delete_account(i)

        logger.info(
            "Purged %d transaction(s), %d account(s), %d heading(s)",
            result.transactions,
            result.accounts,
            result.headings,
        )
        return result

    # ------------------------------------------------------------------
    # Construction from plain data
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any], settings: CalendarSettings | None = None) -> Ledger:
        """
        Build a ledger from plain Python data.

        **Args:**
            data: Mapping with optional ``accounts``, ``transactions``,
                ``sections`` and ``budget`` keys
            settings: Calendar settings (defaults used if omitted)

        **Returns:**
            The populated ledger; balances still need a full recalculation

        **Raises:**
            ConfigError: If the data is malformed

        **Example:**
            ```python
            ledger = Ledger.from_dict({
                "accounts": [
                    {"ident": "CUR", "name": "Current", "type": "full", "opening_balance": 10000},
                    {"ident": "FOOD", "name": "Food", "type": "expenditure", "budget_amount": 20000},
                ],
                "transactions": [
                    {"date": "05-01-2024", "from": "CUR", "to": "FOOD", "amount": 4500,
                     "reconciled": ["from"]},
                ],
                "sections": {
                    "full": [{"header": "Bank"}, "CUR", {"footer": "Bank total"}],
                },
                "budget": {"start": "01-01-2024", "finish": "31-12-2024", "sorder_trial": 31},
            })
            ```
        """
        if not isinstance(data, dict):
            raise ConfigError("Ledger data must be a mapping")

        settings = settings or CalendarSettings()
        ledger = cls(settings=settings)
        offsets: list[tuple[int, str]] = []

        for spec in data.get("accounts", []):
            if not isinstance(spec, dict):
                raise ConfigError(f"Account entries must be mappings, got {spec!r}")
            spec = dict(spec)
            ident = spec.pop("ident", "")
            name = spec.pop("name", ident)
            account_type = _parse_account_type(spec.pop("type", "full"))
            offset = spec.pop("offset_against", None)

            index = ledger.add_account(name, ident, account_type, **spec)
            if offset is not None:
                offsets.append((index, offset))

        for index, offset in offsets:
            ledger.accounts[index].offset_against = ledger._resolve_account(offset)

        for spec in data.get("transactions", []):
            if not isinstance(spec, dict):
                raise ConfigError(f"Transaction entries must be mappings, got {spec!r}")
            ledger.add_transaction(
                date=ledger._coerce_date(spec.get("date")),
                from_account=ledger._resolve_account(spec.get("from")),
                to_account=ledger._resolve_account(spec.get("to")),
                amount=_coerce_amount(spec.get("amount", 0)),
                flags=_parse_flags(spec.get("reconciled", ())),
                reference=spec.get("reference", ""),
                description=spec.get("description", ""),
            )

        for type_name, lines in data.get("sections", {}).items():
            account_type = _parse_account_type(type_name)
            ledger.sections[account_type] = ledger._build_display_list(account_type, lines)

        budget = data.get("budget")
        if budget is not None:
            if not isinstance(budget, dict):
                raise ConfigError(f"Budget settings must be a mapping, got {budget!r}")
            ledger.budget = BudgetSettings(
                start=ledger._coerce_date(budget.get("start")),
                finish=ledger._coerce_date(budget.get("finish")),
                sorder_trial=budget.get("sorder_trial", 0),
                limit_postdate=bool(budget.get("limit_postdate", False)),
            )

        return ledger

    def _resolve_account(self, ref: Any) -> int | None:
        if ref is None or ref == "":
            return None
        if isinstance(ref, int) and not isinstance(ref, bool):
            if not self.is_valid_account(ref):
                raise ConfigError(f"Unknown account index {ref}")
            return ref
        if isinstance(ref, str):
            index = self.find_account(ref)
            if index is None:
                raise ConfigError(f"Unknown account ident '{ref}'")
            return index
        raise ConfigError(f"Cannot resolve account reference {ref!r}")

    def _coerce_date(self, value: Any) -> CalendarDate:
        if value is None or value == "":
            return NULL_DATE
        if isinstance(value, CalendarDate):
            return value
        if isinstance(value, date):
            return CalendarDate.from_date(value)
        if isinstance(value, (tuple, list)) and len(value) == 3:
            try:
                result = combine(*(int(v) for v in value))
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Cannot read a date from {value!r}") from e
        elif isinstance(value, str):
            result = parse_date(
                value,
                separators=self.settings.date_sep_in,
                calendar=self.settings.calendar,
            )
        else:
            raise ConfigError(f"Cannot read a date from {value!r}")
        if result.is_null:
            raise ConfigError(f"Invalid date {value!r}")
        return result

    def _build_display_list(self, account_type: AccountType, lines: Any) -> DisplayList:
        display = DisplayList(account_type)
        for line in lines:
            if isinstance(line, str):
                index = self.find_account(line, account_type)
                if index is None:
                    raise ConfigError(
                        f"Account '{line}' is not a {account_type.name.lower()} account"
                    )
                display.append_account(index)
            elif isinstance(line, dict) and "header" in line:
                display.append_header(str(line["header"]))
            elif isinstance(line, dict) and "footer" in line:
                display.append_footer(str(line["footer"]))
            elif line is None or (isinstance(line, dict) and line.get("blank")):
                display.lines.append(DisplayLine(LineType.BLANK))
            else:
                raise ConfigError(f"Unknown display line {line!r}")
        return display


def _parse_account_type(value: Any) -> AccountType:
    if isinstance(value, AccountType):
        if value in DISPLAY_TYPES:
            return value
    elif isinstance(value, str) and value.lower() in _TYPE_NAMES:
        return _TYPE_NAMES[value.lower()]
    raise ConfigError(f"Unknown account type {value!r}")


def _parse_flags(value: Any) -> TransactionFlags:
    if isinstance(value, TransactionFlags):
        return value
    if isinstance(value, bool):
        return TransactionFlags.RECONCILED if value else TransactionFlags.NONE
    if isinstance(value, str):
        value = [value]

    flags = TransactionFlags.NONE
    for side in value:
        if side == "from":
            flags |= TransactionFlags.REC_FROM
        elif side == "to":
            flags |= TransactionFlags.REC_TO
        else:
            raise ConfigError(f"Unknown reconciled side {side!r}")
    return flags


def _coerce_amount(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"Amounts must be integers in minor currency units, got {value!r}")
    return value
