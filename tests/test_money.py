"""
Tests for monetary amount helpers
"""

import pytest
from decimal import Decimal

from tenant_ledger.money import format_amount, format_signed, to_amount


class TestToAmount:

    def test_quantizes_to_cents(self):
        assert to_amount("10") == Decimal("10.00")
        assert to_amount(Decimal("1.005")) == Decimal("1.01")
        assert to_amount(7) == Decimal("7.00")

    def test_rejects_float(self):
        with pytest.raises(TypeError):
            to_amount(10.5)

    def test_rejects_bool(self):
        with pytest.raises(TypeError):
            to_amount(True)

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            to_amount("ten dollars")
        with pytest.raises(ValueError):
            to_amount("NaN")


class TestFormatting:

    def test_format_amount(self):
        assert format_amount(Decimal("1000")) == "$1000.00"
        assert format_amount(Decimal("-25.5")) == "-$25.50"
        assert format_amount(Decimal("3"), symbol="EUR ") == "EUR 3.00"

    def test_format_signed(self):
        assert format_signed(Decimal("200")) == "+$200.00"
        assert format_signed(Decimal("-50")) == "-$50.00"
