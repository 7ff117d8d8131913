"""
Monetary Amount Helpers

All balances and transaction amounts are Decimal values with two decimal
places. NEVER uses float for monetary values.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, getcontext
from typing import Union

# High precision for intermediate arithmetic
getcontext().prec = 28

CENTS = Decimal('0.01')
ZERO = Decimal('0.00')


def to_amount(value: Union[Decimal, str, int]) -> Decimal:
    """
    Convert a value to a two-place Decimal amount.

    Floats are refused outright: a float has already lost the exact cents
    value by the time it reaches us.
    """
    if isinstance(value, float):
        raise TypeError("Monetary amounts must not be float; pass a Decimal or string")
    if isinstance(value, bool):
        raise TypeError("Monetary amounts must not be bool")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid monetary amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Invalid monetary amount: {value!r}")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_amount(amount: Decimal, symbol: str = "$") -> str:
    """Format for display, e.g. $1000.00 / -$25.50"""
    amount = to_amount(amount)
    if amount < 0:
        return f"-{symbol}{-amount}"
    return f"{symbol}{amount}"


def format_signed(amount: Decimal, symbol: str = "$") -> str:
    """Format with an explicit sign, e.g. +$200.00 / -$50.00"""
    amount = to_amount(amount)
    if amount < 0:
        return f"-{symbol}{-amount}"
    return f"+{symbol}{amount}"
