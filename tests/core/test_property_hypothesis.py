"""
Property-based tests using Hypothesis for date arithmetic, period iteration
and balance engine identities.
"""

import copy
from datetime import date, timedelta

from hypothesis import assume, given, settings
from hypothesis import strategies as st

from cashbook.core.accounts import AccountType
from cashbook.core.budget import BudgetSettings
from cashbook.core.calculation import BalanceEngine
from cashbook.core.dates import (
    NULL_DATE,
    AdjustDirection,
    CalendarDate,
    PeriodUnit,
    add_period,
    combine,
    count_days,
    day_of_week,
    extract,
    find_valid_day,
)
from cashbook.core.ledger import Ledger
from cashbook.core.periods import iterate_periods
from cashbook.core.transactions import TransactionFlags

ACCOUNT_TYPES = [
    AccountType.FULL,
    AccountType.FULL,
    AccountType.INCOME,
    AccountType.EXPENDITURE,
]

civil_dates = st.dates(min_value=date(1800, 1, 1), max_value=date(2200, 12, 31))
ledger_dates = st.dates(min_value=date(2023, 6, 1), max_value=date(2024, 6, 30))
account_refs = st.one_of(st.none(), st.integers(min_value=0, max_value=len(ACCOUNT_TYPES) - 1))
amounts = st.integers(min_value=-1_000_000, max_value=1_000_000)
flags = st.sampled_from(
    [
        TransactionFlags.NONE,
        TransactionFlags.REC_FROM,
        TransactionFlags.REC_TO,
        TransactionFlags.RECONCILED,
    ]
)

transaction_fields = st.fixed_dictionaries(
    {
        "date": ledger_dates,
        "from_account": account_refs,
        "to_account": account_refs,
        "amount": amounts,
        "flags": flags,
    }
)


@st.composite
def ledgers(draw):
    """A small ledger with random transactions and budget settings."""
    start = draw(st.one_of(st.none(), ledger_dates))
    finish = draw(st.one_of(st.none(), ledger_dates))
    if start is not None and finish is not None and start > finish:
        start, finish = finish, start

    book = Ledger(
        budget=BudgetSettings(
            start=CalendarDate.from_date(start) if start else NULL_DATE,
            finish=CalendarDate.from_date(finish) if finish else NULL_DATE,
            sorder_trial=draw(st.integers(min_value=0, max_value=90)),
            limit_postdate=draw(st.booleans()),
        )
    )
    for i, account_type in enumerate(ACCOUNT_TYPES):
        book.add_account(
            f"Account {i}",
            f"A{i}",
            account_type,
            opening_balance=draw(amounts),
            credit_limit=draw(st.integers(min_value=0, max_value=100_000)),
            budget_amount=draw(amounts),
        )
        book.add_sorder_trial(i, draw(amounts))

    for fields in draw(st.lists(transaction_fields, max_size=15)):
        fields["date"] = CalendarDate.from_date(fields["date"])
        book.add_transaction(**fields)
    return book


def snapshot(ledger):
    return [account.balances() for account in ledger.accounts]


class TestDateProperties:
    """Date arithmetic agrees with the calendar."""

    @given(value=civil_dates)
    def test_combine_extract_round_trip(self, value):
        assert extract(combine(value.day, value.month, value.year)) == (
            value.day,
            value.month,
            value.year,
        )

    @given(value=civil_dates)
    def test_order_matches_packed_order(self, value):
        other = value + timedelta(days=1)
        assert CalendarDate.from_date(value) < CalendarDate.from_date(other)
        assert CalendarDate.from_date(value).packed < CalendarDate.from_date(other).packed

    @given(value=civil_dates, days=st.integers(min_value=-2000, max_value=2000))
    def test_add_days_matches_timedelta(self, value, days):
        result = add_period(CalendarDate.from_date(value), PeriodUnit.DAYS, days)
        assert result.to_date() == value + timedelta(days=days)

    @given(value=civil_dates, months=st.integers(min_value=-60, max_value=60))
    def test_add_months_then_clamp_is_valid(self, value, months):
        raw = add_period(CalendarDate.from_date(value), PeriodUnit.MONTHS, months)
        total = value.year * 12 + value.month - 1 + months
        assert (raw.year, raw.month) == (total // 12, total % 12 + 1)

        for direction in AdjustDirection:
            assert find_valid_day(raw, direction).to_date() is not None

    @given(value=civil_dates)
    def test_day_of_week_matches_datetime(self, value):
        expected = value.isoweekday() % 7 + 1
        assert day_of_week(CalendarDate.from_date(value)) == expected

    @given(start=civil_dates, span=st.integers(min_value=0, max_value=3000))
    def test_count_days_inclusive(self, start, span):
        end = start + timedelta(days=span)
        assert count_days(CalendarDate.from_date(start), CalendarDate.from_date(end)) == span + 1


class TestPeriodProperties:
    """Buckets partition the range without gaps or overlaps."""

    @given(
        start=st.dates(min_value=date(2000, 1, 1), max_value=date(2030, 12, 31)),
        span=st.integers(min_value=0, max_value=1500),
        period=st.integers(min_value=0, max_value=4),
        unit=st.sampled_from([PeriodUnit.DAYS, PeriodUnit.MONTHS, PeriodUnit.YEARS]),
        lock=st.booleans(),
    )
    @settings(max_examples=200)
    def test_buckets_partition_range(self, start, span, period, unit, lock):
        end = start + timedelta(days=span)
        buckets = iterate_periods(
            CalendarDate.from_date(start), CalendarDate.from_date(end), period, unit, lock
        )

        assert buckets
        assert buckets[0].start.to_date() == start
        assert buckets[-1].end.to_date() == end

        for bucket in buckets:
            assert bucket.start.to_date() is not None
            assert bucket.end.to_date() is not None
            assert bucket.start <= bucket.end

        for previous, following in zip(buckets, buckets[1:]):
            assert previous.end.to_date() + timedelta(days=1) == following.start.to_date()

        if period == 0:
            assert len(buckets) == 1


class TestBalanceProperties:
    """Incremental updates agree with full recalculation."""

    @given(book=ledgers())
    @settings(max_examples=100, deadline=None)
    def test_remove_restore_idempotent(self, book):
        engine = BalanceEngine(book)
        engine.recalculate_all(today=combine(1, 1, 2024))
        before = snapshot(book)

        for transaction in book.transactions:
            engine.remove_transaction(transaction)
            engine.restore_transaction(transaction)

        assert snapshot(book) == before

    @given(book=ledgers(), edits=st.lists(transaction_fields, max_size=15))
    @settings(max_examples=100, deadline=None)
    def test_edit_pass_matches_full_recalculation(self, book, edits):
        today = combine(1, 1, 2024)
        engine = BalanceEngine(book)
        engine.recalculate_all(today=today)

        for transaction, fields in zip(book.transactions, edits):
            with engine.editing(transaction):
                transaction.date = CalendarDate.from_date(fields["date"])
                transaction.from_account = fields["from_account"]
                transaction.to_account = fields["to_account"]
                transaction.amount = fields["amount"]
                transaction.flags = fields["flags"]

        edited = snapshot(book)

        fresh = copy.deepcopy(book)
        BalanceEngine(fresh).recalculate_all(today=today)
        assert snapshot(fresh) == edited

    @given(book=ledgers(), data=st.data())
    @settings(max_examples=50, deadline=None)
    def test_statement_balance_ignores_dates(self, book, data):
        assume(book.transactions)
        engine = BalanceEngine(book)
        engine.recalculate_all(today=combine(1, 1, 2024))
        transaction = data.draw(st.sampled_from(book.transactions))

        statements = [account.statement_balance for account in book.accounts]
        for moved in (combine(1, 6, 2023), combine(30, 6, 2024)):
            with engine.editing(transaction):
                transaction.date = moved
            assert [account.statement_balance for account in book.accounts] == statements
