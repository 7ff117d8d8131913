"""
Statement Engine

Pure statement computation. Given an account's current balance and the
transactions inside a window, reconstruct the balance as it stood before the
window opened and render the statement text.

Opening balance reconstruction walks the window transactions once, undoing
each: deposits are subtracted and withdrawals added back. Replaying the same
transactions forward from the result yields the current balance again, to
the cent, because every step is exact Decimal arithmetic.

Nothing in this module touches storage.
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass, field
from typing import Iterable, List

from .money import ZERO, format_amount, format_signed, to_amount
from .transactions import Transaction


@dataclass(frozen=True)
class StatementLine:
    """One transaction as it appears on a statement"""
    timestamp: datetime
    transaction_type: str
    signed_amount: Decimal


@dataclass
class Statement:
    """Computed account statement for a window"""
    account_id: str
    customer_name: str
    window_start: datetime
    window_end: datetime
    opening_balance: Decimal
    closing_balance: Decimal
    lines: List[StatementLine] = field(default_factory=list)

    @property
    def net_change(self) -> Decimal:
        return sum((line.signed_amount for line in self.lines), ZERO)


def reconstruct_opening_balance(current_balance: Decimal, transactions: Iterable[Transaction]) -> Decimal:
    """Balance immediately before the first window transaction"""
    balance = to_amount(current_balance)
    for txn in transactions:
        balance -= txn.signed_amount
    return balance


def replay_balance(opening_balance: Decimal, transactions: Iterable[Transaction]) -> Decimal:
    """Apply transactions forward from an opening balance"""
    balance = to_amount(opening_balance)
    for txn in transactions:
        balance += txn.signed_amount
    return balance


def build_statement(
    account_id: str,
    customer_name: str,
    current_balance: Decimal,
    transactions: Iterable[Transaction],
    window_start: datetime,
    window_end: datetime
) -> Statement:
    """
    Build a statement for the window.

    The closing balance is the current balance: every window transaction is
    already reflected in it.
    """
    ordered = sorted(transactions, key=lambda t: (t.timestamp, t.created_at))
    return Statement(
        account_id=account_id,
        customer_name=customer_name,
        window_start=window_start,
        window_end=window_end,
        opening_balance=reconstruct_opening_balance(current_balance, ordered),
        closing_balance=to_amount(current_balance),
        lines=[
            StatementLine(
                timestamp=txn.timestamp,
                transaction_type=txn.transaction_type.value,
                signed_amount=txn.signed_amount
            )
            for txn in ordered
        ]
    )


def render_statement(statement: Statement, currency_symbol: str = "$") -> str:
    """Render a statement as plain text"""
    out = [
        "=== ACCOUNT STATEMENT ===",
        f"Account ID: {statement.account_id}",
        f"Customer: {statement.customer_name}",
        f"Period: {statement.window_start.isoformat()} to {statement.window_end.isoformat()}",
        "",
        f"Opening Balance: {format_amount(statement.opening_balance, currency_symbol)}",
        "",
        "TRANSACTIONS:",
    ]
    if statement.lines:
        for line in statement.lines:
            out.append(
                f"{line.timestamp.isoformat()} | {line.transaction_type} | "
                f"{format_signed(line.signed_amount, currency_symbol)}"
            )
    else:
        out.append("(no transactions)")
    out.extend([
        "",
        f"Closing Balance: {format_amount(statement.closing_balance, currency_symbol)}",
        "========================",
    ])
    return "\n".join(out)
