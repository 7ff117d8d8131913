"""
Tests for statement computation and rendering
"""

from decimal import Decimal
from datetime import date, datetime, timedelta, timezone

from hypothesis import given, strategies as st

from tenant_ledger.jobs import window_bounds
from tenant_ledger.statement_engine import (
    build_statement, reconstruct_opening_balance, render_statement, replay_balance
)
from tenant_ledger.transactions import Transaction, TransactionType


BASE = datetime(2025, 10, 1, 12, 0, tzinfo=timezone.utc)
WINDOW = window_bounds(date(2025, 10, 1), date(2025, 10, 31))


def txn(kind, amount, offset_minutes=0, txn_id=None):
    ts = BASE + timedelta(minutes=offset_minutes)
    return Transaction(
        id=txn_id or f"T{offset_minutes}",
        tenant_id="BANK001",
        created_at=ts,
        updated_at=ts,
        account_id="A123",
        transaction_type=kind,
        amount=Decimal(amount),
        timestamp=ts
    )


class TestOpeningBalance:

    def test_single_deposit(self):
        opening = reconstruct_opening_balance(
            Decimal("1000.00"), [txn(TransactionType.DEPOSIT, "200.00")]
        )
        assert opening == Decimal("800.00")

    def test_withdrawal_is_added_back(self):
        opening = reconstruct_opening_balance(
            Decimal("50.00"),
            [txn(TransactionType.DEPOSIT, "25.00", 0), txn(TransactionType.WITHDRAWAL, "75.00", 1)]
        )
        assert opening == Decimal("100.00")

    def test_no_transactions(self):
        assert reconstruct_opening_balance(Decimal("12.34"), []) == Decimal("12.34")

    @given(
        current=st.integers(min_value=-10**9, max_value=10**9),
        moves=st.lists(
            st.tuples(st.booleans(), st.integers(min_value=1, max_value=10**8)),
            max_size=40
        )
    )
    def test_replay_reproduces_current_balance(self, current, moves):
        current_balance = Decimal(current).scaleb(-2)
        transactions = [
            txn(
                TransactionType.DEPOSIT if is_deposit else TransactionType.WITHDRAWAL,
                Decimal(cents).scaleb(-2),
                offset_minutes=i
            )
            for i, (is_deposit, cents) in enumerate(moves)
        ]

        opening = reconstruct_opening_balance(current_balance, transactions)

        assert replay_balance(opening, transactions) == current_balance


class TestBuildStatement:

    def test_account_a123_scenario(self):
        statement = build_statement(
            account_id="A123",
            customer_name="Alice",
            current_balance=Decimal("1000.00"),
            transactions=[txn(TransactionType.DEPOSIT, "200.00")],
            window_start=WINDOW[0],
            window_end=WINDOW[1]
        )

        assert statement.opening_balance == Decimal("800.00")
        assert statement.closing_balance == Decimal("1000.00")
        assert len(statement.lines) == 1
        assert statement.lines[0].signed_amount == Decimal("200.00")
        assert statement.net_change == Decimal("200.00")

    def test_empty_window_opening_equals_closing(self):
        statement = build_statement("A123", "Alice", Decimal("42.00"), [], *WINDOW)

        assert statement.opening_balance == statement.closing_balance == Decimal("42.00")
        assert statement.lines == []

    def test_lines_are_chronological(self):
        later = txn(TransactionType.WITHDRAWAL, "5.00", 30)
        earlier = txn(TransactionType.DEPOSIT, "10.00", 10)

        statement = build_statement("A123", "Alice", Decimal("100.00"), [later, earlier], *WINDOW)

        assert [line.transaction_type for line in statement.lines] == ["DEPOSIT", "WITHDRAWAL"]


class TestRenderStatement:

    def test_render_with_transactions(self):
        statement = build_statement(
            "A123", "Alice", Decimal("1000.00"),
            [txn(TransactionType.DEPOSIT, "200.00"), txn(TransactionType.WITHDRAWAL, "50.00", 5)],
            *WINDOW
        )

        text = render_statement(statement)
        lines = text.splitlines()

        assert lines[0] == "=== ACCOUNT STATEMENT ==="
        assert "Account ID: A123" in lines
        assert "Customer: Alice" in lines
        assert "Opening Balance: $850.00" in lines
        assert f"{BASE.isoformat()} | DEPOSIT | +$200.00" in lines
        assert f"{(BASE + timedelta(minutes=5)).isoformat()} | WITHDRAWAL | -$50.00" in lines
        assert "Closing Balance: $1000.00" in lines
        assert lines[-1] == "========================"

    def test_render_empty_window(self):
        statement = build_statement("A123", "Alice", Decimal("10.00"), [], *WINDOW)

        text = render_statement(statement, currency_symbol="EUR ")

        assert "(no transactions)" in text
        assert "Opening Balance: EUR 10.00" in text
        assert "Closing Balance: EUR 10.00" in text
