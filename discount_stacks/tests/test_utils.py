"""Tests for money and number formatting helpers."""

import decimal

import pytest

from discount_stacks.utils import format_currency, format_number, is_positive, to_decimal


class TestFormatCurrency:
    @pytest.mark.parametrize(
        "amount, expected",
        [
            (0, "$0.00"),
            (100, "$100.00"),
            (1234.5, "$1,234.50"),
            ("19.999", "$20.00"),
            (0.125, "$0.13"),
            (-5, "-$5.00"),
            (None, "$0.00"),
            ("not a number", "$0.00"),
            ("1e27", "$1" + ",000" * 9 + ".00"),
            (-1e27, "-$1" + ",000" * 9 + ".00"),
        ],
    )
    def test_formats(self, amount, expected):
        assert format_currency(amount) == expected


class TestToDecimal:
    def test_parses_strings_and_numbers(self):
        assert to_decimal(" 8.25 ") == decimal.Decimal("8.25")
        assert to_decimal(3) == decimal.Decimal(3)

    @pytest.mark.parametrize("value", [None, "", "abc", True, "Infinity", "NaN"])
    def test_rejects(self, value):
        assert to_decimal(value, default="x") == "x"


class TestFormatNumber:
    def test_whole_floats_drop_fraction(self):
        assert format_number(2.0) == "2"
        assert format_number(decimal.Decimal("3.00")) == "3"

    def test_keeps_fractions_and_ints(self):
        assert format_number(12.5) == "12.5"
        assert format_number(7) == "7"


def test_is_positive():
    assert is_positive(0.01)
    assert not is_positive(0)
    assert not is_positive(None)
    assert not is_positive("-1")
