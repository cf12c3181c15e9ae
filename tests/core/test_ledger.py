"""
Tests for the ledger store: account lifecycle, transactions, purge and
construction from plain data.
"""

import logging
from datetime import date

import pytest

from cashbook.core.accounts import AccountType, BalanceKind
from cashbook.core.dates import NULL_DATE, combine
from cashbook.core.errors import ConfigError
from cashbook.core.exceptions import AccountInUseError
from cashbook.core.ledger import Ledger
from cashbook.core.sections import LineType
from cashbook.core.transactions import TransactionFlags


@pytest.fixture
def ledger():
    book = Ledger()
    book.add_account("Current Account", "CUR", AccountType.FULL, opening_balance=10000)
    book.add_account("Savings", "SAV", AccountType.FULL)
    book.add_account("Salary", "SAL", AccountType.INCOME)
    book.add_account("Food", "FOOD", AccountType.EXPENDITURE, budget_amount=20000)
    return book


class TestAccounts:
    """Test account access and lifecycle."""

    def test_add_account_appends_display_line(self, ledger):
        assert list(ledger.sections[AccountType.FULL].accounts()) == [0, 1]
        assert list(ledger.sections[AccountType.INCOME].accounts()) == [2]
        assert list(ledger.sections[AccountType.EXPENDITURE].accounts()) == [3]

    def test_add_account_validation(self, ledger):
        with pytest.raises(ConfigError, match="needs an ident"):
            ledger.add_account("Nameless", "  ", AccountType.FULL)
        with pytest.raises(ConfigError, match="Cannot create"):
            ledger.add_account("Any", "ANY", AccountType.ANY)
        with pytest.raises(ConfigError, match="Invalid details"):
            ledger.add_account("Odd", "ODD", AccountType.FULL, colour="red")

    def test_duplicate_ident_rejected(self, ledger):
        with pytest.raises(ConfigError, match="Duplicate account ident 'cur'"):
            ledger.add_account("Joint Account", " cur ", AccountType.FULL)
        assert ledger.count_accounts() == 4

        ledger.delete_account(1)
        assert ledger.add_account("New Savings", "SAV", AccountType.FULL) == 1

    @pytest.mark.parametrize("ident", ["period", "start", "End", "TOTAL"])
    def test_report_column_idents_rejected(self, ledger, ident):
        with pytest.raises(ConfigError, match="is reserved"):
            ledger.add_account("Odd", ident, AccountType.FULL)

    def test_get_account(self, ledger):
        assert ledger.get_account(0).ident == "CUR"
        assert ledger.get_account(None) is None
        assert ledger.get_account(-1) is None
        assert ledger.get_account(99) is None

    def test_invalid_balance_queries_return_zero(self, ledger):
        assert ledger.get_balance(99, BalanceKind.CURRENT) == 0
        assert ledger.get_balance(None, BalanceKind.STATEMENT) == 0

    def test_find_and_count(self, ledger):
        assert ledger.find_account("sal") == 2
        assert ledger.find_account("SAL", AccountType.FULL) is None
        assert ledger.count_accounts() == 4
        assert ledger.count_accounts(AccountType.HEADING) == 2

    def test_delete_unused_account(self, ledger, caplog):
        with caplog.at_level(logging.INFO, logger="cashbook.core.ledger"):
            ledger.delete_account(1)

        assert ledger.get_account(1) is None
        assert ledger.accounts[1].type == AccountType.NULL
        assert list(ledger.sections[AccountType.FULL].accounts()) == [0]
        assert "Deleted account SAV" in caplog.text

    def test_deleted_slot_is_reused(self, ledger):
        ledger.delete_account(1)
        index = ledger.add_account("Credit Card", "CARD", AccountType.FULL, credit_limit=50000)
        assert index == 1
        assert ledger.get_account(1).credit_limit == 50000
        assert list(ledger.sections[AccountType.FULL].accounts()) == [0, 1]

    def test_delete_account_used_by_transaction(self, ledger):
        ledger.add_transaction(combine(5, 1, 2024), 0, 3, 4500)

        with pytest.raises(AccountInUseError) as excinfo:
            ledger.delete_account(3)

        assert excinfo.value.ident == "FOOD"
        assert "1 transaction(s)" in str(excinfo.value)
        assert ledger.get_account(3) is not None

    def test_delete_account_used_by_offset(self, ledger):
        ledger.accounts[1].offset_against = 0
        with pytest.raises(AccountInUseError, match="offset link from SAV"):
            ledger.delete_account(0)

    def test_delete_account_used_by_reference_source(self, ledger):
        def standing_orders():
            return [0, None, 2]

        ledger.add_reference_source(standing_orders)
        assert ledger.account_used(2)
        with pytest.raises(AccountInUseError, match="standing_orders"):
            ledger.delete_account(2)
        ledger.delete_account(3)

    def test_delete_invalid_account_is_noop(self, ledger):
        ledger.delete_account(99)
        assert ledger.count_accounts() == 4


class TestTransactions:
    """Test the transaction store."""

    def test_add_and_delete(self, ledger):
        t = ledger.add_transaction(
            combine(5, 1, 2024), 0, 3, 4500, TransactionFlags.REC_FROM, "101", "Groceries"
        )
        assert ledger.transactions == [t]
        assert t.reconciled_from and not t.reconciled_to
        ledger.delete_transaction(t)
        assert ledger.transactions == []

    def test_sort_is_stable_with_null_last(self, ledger):
        a = ledger.add_transaction(NULL_DATE, 0, 3, 1)
        b = ledger.add_transaction(combine(5, 1, 2024), 0, 3, 2)
        c = ledger.add_transaction(combine(1, 1, 2024), 0, 3, 3)
        d = ledger.add_transaction(combine(5, 1, 2024), 0, 3, 4)

        ledger.sort_transactions()
        assert ledger.transactions == [c, b, d, a]

    def test_date_span(self, ledger):
        assert ledger.date_span() == (NULL_DATE, NULL_DATE)
        ledger.add_transaction(NULL_DATE, 0, 3, 1)
        ledger.add_transaction(combine(5, 3, 2024), 0, 3, 1)
        ledger.add_transaction(combine(1, 1, 2024), 0, 3, 1)
        assert ledger.date_span() == (combine(1, 1, 2024), combine(5, 3, 2024))

    def test_sorder_trial(self, ledger):
        ledger.add_sorder_trial(0, -500)
        ledger.add_sorder_trial(0, -250)
        ledger.add_sorder_trial(99, 1000)
        assert ledger.accounts[0].sorder_trial == -750
        ledger.reset_sorder_trial()
        assert ledger.accounts[0].sorder_trial == 0


class TestPurge:
    """Test removal of settled data."""

    def test_purge_folds_reconciled_into_opening(self, ledger):
        ledger.add_transaction(combine(5, 1, 2024), 0, 3, 4500, TransactionFlags.RECONCILED)
        ledger.add_transaction(combine(6, 1, 2024), 2, 0, 100000, TransactionFlags.REC_TO)
        ledger.add_transaction(combine(7, 1, 2024), 0, 1, 2000, TransactionFlags.RECONCILED)
        kept = ledger.add_transaction(combine(8, 2, 2024), 0, 1, 3000, TransactionFlags.RECONCILED)

        result = ledger.purge(before=combine(1, 2, 2024))

        assert result.transactions == 2
        assert len(ledger.transactions) == 2
        assert kept in ledger.transactions
        assert ledger.accounts[0].opening_balance == 10000 - 4500 - 2000
        assert ledger.accounts[1].opening_balance == 2000
        # Headings have no opening balance to fold into
        assert ledger.accounts[3].opening_balance == 0

    def test_purge_unused_accounts_and_headings(self, ledger):
        ledger.add_transaction(combine(5, 1, 2024), 0, 3, 4500)

        result = ledger.purge(transactions=False, accounts=True, headings=True)

        assert (result.accounts, result.headings) == (1, 1)
        assert ledger.get_account(1) is None
        assert ledger.get_account(2) is None
        assert ledger.get_account(0) is not None

    def test_purge_logs_summary(self, ledger, caplog):
        with caplog.at_level(logging.INFO, logger="cashbook.core.ledger"):
            ledger.purge()
        assert "Purged 0 transaction(s)" in caplog.text


class TestFromDict:
    """Test building a ledger from plain data."""

    @pytest.fixture
    def data(self):
        return {
            "accounts": [
                {"ident": "CUR", "name": "Current", "type": "full", "opening_balance": 10000},
                {"ident": "CARD", "name": "Card", "type": "full", "offset_against": "CUR"},
                {"ident": "SAL", "name": "Salary", "type": "income", "budget_amount": 300000},
                {"ident": "FOOD", "name": "Food", "type": "out", "budget_amount": 20000},
            ],
            "transactions": [
                {"date": "05-01-2024", "from": "CUR", "to": "FOOD", "amount": 4500,
                 "reconciled": ["from"], "reference": "101"},
                {"date": date(2024, 1, 25), "from": "SAL", "to": "CUR", "amount": 250000},
                {"date": (31, 1, 2024), "from": None, "to": "CARD", "amount": 100},
            ],
            "sections": {
                "full": [{"header": "Bank"}, "CUR", "CARD", {"footer": "Bank total"}, None],
            },
            "budget": {"start": "01-01-2024", "finish": "31-12-2024", "sorder_trial": 31},
        }

    def test_builds_ledger(self, data):
        ledger = Ledger.from_dict(data)

        assert ledger.count_accounts() == 4
        assert ledger.accounts[1].offset_against == 0
        assert ledger.accounts[3].type == AccountType.EXPENDITURE

        first, second, third = ledger.transactions
        assert first.date == combine(5, 1, 2024)
        assert first.flags == TransactionFlags.REC_FROM
        assert first.reference == "101"
        assert second.date == combine(25, 1, 2024)
        assert third.from_account is None
        assert third.date == combine(31, 1, 2024)

        lines = ledger.sections[AccountType.FULL].lines
        assert [line.type for line in lines] == [
            LineType.HEADER,
            LineType.DATA,
            LineType.DATA,
            LineType.FOOTER,
            LineType.BLANK,
        ]
        assert list(ledger.sections[AccountType.INCOME].accounts()) == [2]

        assert ledger.budget.start == combine(1, 1, 2024)
        assert ledger.budget.sorder_trial == 31

    @pytest.mark.parametrize(
        "change,message",
        [
            ({"accounts": [{"ident": "X", "type": "loan"}]}, "Unknown account type"),
            ({"accounts": [{"ident": "X"}, {"ident": "x"}]}, "Duplicate account ident"),
            ({"transactions": [{"date": "05-01-2024", "from": "NOPE", "amount": 1}]}, "Unknown account ident"),
            ({"transactions": [{"date": "05-01-2024", "from": 7, "amount": 1}]}, "Unknown account index"),
            ({"transactions": [{"date": "05-01-2024", "amount": 1.5}]}, "minor currency units"),
            ({"transactions": [{"date": "not a date", "amount": 1}]}, "Invalid date"),
            ({"transactions": [{"date": 20240105, "amount": 1}]}, "Cannot read a date"),
            ({"transactions": [{"date": "05-01-2024", "amount": 1, "reconciled": ["up"]}]}, "reconciled side"),
            ({"sections": {"income": ["CUR"]}}, "not a income account"),
            ({"sections": {"full": [{"separator": True}]}}, "Unknown display line"),
            ({"budget": {"sorder_trial": -1}}, "non-negative"),
            ({"budget": "01-01-2024"}, "Budget settings must be a mapping"),
            ({"transactions": [{"date": ("x", 1, 2024), "amount": 1}]}, "Cannot read a date"),
        ],
    )
    def test_rejects_malformed_data(self, change, message):
        data = {"accounts": [{"ident": "CUR", "type": "full"}]}
        data.update(change)

        with pytest.raises(ConfigError, match=message):
            Ledger.from_dict(data)

    def test_rejects_non_mapping(self):
        with pytest.raises(ConfigError):
            Ledger.from_dict([])

    def test_reconciled_shorthand(self):
        ledger = Ledger.from_dict(
            {
                "accounts": [{"ident": "CUR"}, {"ident": "SAV"}],
                "transactions": [
                    {"date": "1-1-2024", "from": "CUR", "to": "SAV", "amount": 5, "reconciled": True},
                    {"date": "1-1-2024", "from": "CUR", "to": "SAV", "amount": 5, "reconciled": "to"},
                ],
            }
        )
        assert ledger.transactions[0].fully_reconciled
        assert ledger.transactions[1].flags == TransactionFlags.REC_TO
