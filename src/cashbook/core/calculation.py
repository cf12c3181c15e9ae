"""
Balance engine for CashBook.

The engine keeps six running balances for every account in step with the
transaction log. A full recalculation rebuilds them from the opening balances
in a single pass; the incremental ``remove_transaction`` and
``restore_transaction`` pair takes one transaction's contribution out and puts
it back, so that a transaction can be edited without rescanning the ledger.

Incremental updates always use the settings captured by the last full
recalculation (the date used as today, the budget window and the post-dating
cutoff), never the live clock. A remove followed by a restore with no change
in between is therefore exactly idempotent, and after any sequence of
bracketed edits the balances agree with a fresh full recalculation made on
the same day with the same settings. Changing the budget settings requires a
new full recalculation.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from .accounts import Account
from .budget import BudgetSettings
from .dates import NULL_DATE, CalendarDate
from .ledger import DISPLAY_TYPES, Ledger
from .sections import aggregate
from .transactions import Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecalcState:
    """
    Settings frozen by the most recent full recalculation.

    Attributes:
        today: The date used as today
        post_cutoff: Last date counted in future balances when post-dating is limited
        budget: Copy of the budget settings in force
    """

    today: CalendarDate
    post_cutoff: CalendarDate
    budget: BudgetSettings

    def in_future(self, value: CalendarDate) -> bool:
        return not self.budget.limit_postdate or value <= self.post_cutoff


class BalanceEngine:
    """
    Maintains the derived balances of a ledger.

    **Use Cases:**
    - Rebuilding every balance after loading a ledger or changing budget settings
    - Editing a single transaction in place with O(1) balance maintenance
    - Producing section sub-totals for the account lists

    **Example Usage:**
        ```python
        engine = BalanceEngine(ledger)
        engine.recalculate_all(today=combine(15, 1, 2024))

        with engine.editing(transaction):
            transaction.amount = 5000

        ledger.get_balance(account, BalanceKind.CURRENT)
        ```

    **Note:**
        Every mutation of a transaction must be bracketed by
        ``remove_transaction`` and ``restore_transaction`` (or done inside
        ``editing``); a half-applied bracket leaves the balances inconsistent.
    """

    def __init__(self, ledger: Ledger):
        self.ledger = ledger
        self._state: RecalcState | None = None

    @property
    def last_full_recalc(self) -> CalendarDate:
        """The date used as today by the last full recalculation."""
        return self._state.today if self._state is not None else NULL_DATE

    @property
    def state(self) -> RecalcState | None:
        return self._state

    # ------------------------------------------------------------------
    # Full recalculation
    # ------------------------------------------------------------------

    def recalculate_all(self, today: CalendarDate | None = None) -> None:
        """
        Rebuild every balance from the opening balances and the transaction log.

        **Args:**
            today: Date to treat as today; the system clock is read if omitted

        **Note:**
            The standing-order trial adjustments (``Account.sorder_trial``)
            must already have been supplied by the standing-order collaborator.
        """
        ledger = self.ledger
        if today is None:
            today = CalendarDate.today()

        budget = copy.copy(ledger.budget)
        state = RecalcState(
            today=today,
            post_cutoff=budget.post_cutoff(today, ledger.settings.calendar),
            budget=budget,
        )

        for account in ledger.accounts:
            account.reset_balances()

        invalid = 0
        for transaction in ledger.transactions:
            invalid += self._apply(transaction, 1, state, incremental=False)

        if invalid:
            logger.warning(
                "%d transaction side(s) refer to missing or deleted accounts and were skipped",
                invalid,
            )

        for account in ledger.accounts:
            account.available_balance = account.future_balance + account.credit_limit
            account.trial_balance = account.available_balance + account.sorder_trial

        self._state = state

        logger.debug(
            "Full recalculation of %d account(s) and %d transaction(s) as at %s",
            len(ledger.accounts),
            len(ledger.transactions),
            today,
        )

        self.recalculate_sections()

    # ------------------------------------------------------------------
    # Incremental updates
    # ------------------------------------------------------------------

    def remove_transaction(self, transaction: Transaction) -> None:
        """Take a transaction's contribution out of the balances before editing it."""
        self._apply(transaction, -1, self._require_state(), incremental=True)

    def restore_transaction(self, transaction: Transaction) -> None:
        """Put an edited transaction back into the balances and refresh section totals."""
        self._apply(transaction, 1, self._require_state(), incremental=True)
        self.recalculate_sections()

    @contextmanager
    def editing(self, transaction: Transaction) -> Iterator[Transaction]:
        """Bracket an in-place edit of a transaction with remove and restore."""
        self.remove_transaction(transaction)
        try:
            yield transaction
        finally:
            self.restore_transaction(transaction)

    def _require_state(self) -> RecalcState:
        if self._state is None:
            raise RuntimeError(
                "Incremental balance updates need a prior full recalculation"
            )
        return self._state

    def _apply(
        self, transaction: Transaction, sign: int, state: RecalcState, incremental: bool
    ) -> int:
        """
        Add (``sign=1``) or remove (``sign=-1``) one transaction's contribution.

        The full pass updates only the primary balances; the available and
        trial balances are derived from them afterwards. Incremental updates
        move those two with the future balance.

        Returns:
            The number of sides that referred to an invalid account
        """
        invalid = 0
        sides = (
            (transaction.from_account, -1, transaction.reconciled_from),
            (transaction.to_account, 1, transaction.reconciled_to),
        )

        for index, direction, reconciled in sides:
            if index is None:
                continue
            account = self.ledger.get_account(index)
            if account is None:
                invalid += 1
                continue

            amount = sign * direction * transaction.amount
            self._post(account, transaction.date, amount, reconciled, state, incremental)

        return invalid

    @staticmethod
    def _post(
        account: Account,
        when: CalendarDate,
        amount: int,
        reconciled: bool,
        state: RecalcState,
        incremental: bool,
    ) -> None:
        if reconciled:
            account.statement_balance += amount

        if when <= state.today:
            account.current_balance += amount

        if state.budget.contains(when):
            account.budget_balance += amount

        if state.in_future(when):
            account.future_balance += amount
            if incremental:
                account.available_balance += amount
                account.trial_balance += amount

    # ------------------------------------------------------------------
    # Section aggregation
    # ------------------------------------------------------------------

    def recalculate_sections(self) -> dict:
        """
        Recompute the footer sub-totals and grand totals of every display list.

        Returns:
            Grand totals keyed by account type
        """
        totals: dict = {}
        for account_type in DISPLAY_TYPES:
            display = self.ledger.sections.get(account_type)
            if display is not None:
                totals[account_type] = aggregate(display, self.ledger.get_account)
        return totals

    def section_totals(self) -> dict:
        """Captured footer totals for each account type, keyed by display line."""
        result: dict = {}
        for account_type, display in self.ledger.sections.items():
            result[account_type] = display.footers()
        return result
