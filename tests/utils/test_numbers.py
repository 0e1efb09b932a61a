"""Tests for utils/numbers.py - lenient numeric coercion."""

from decimal import Decimal

import pytest

from utils.numbers import to_number


class TestToNumber:

    @pytest.mark.parametrize("value,expected", [
        (3, 3.0),
        (2.5, 2.5),
        (Decimal("1.25"), 1.25),
        ("42", 42.0),
        (" 7.5 ", 7.5),
        ("-3", -3.0),
        ("1e2", 100.0),
    ])
    def test_parses(self, value, expected):
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", [
        None, True, False, "", "   ", "abc", "12abc", "nan", "inf",
        float("nan"), float("inf"), Decimal("NaN"), [], {}, object(),
    ])
    def test_falls_back_to_default(self, value):
        assert to_number(value) == 0.0

    def test_custom_default(self):
        assert to_number(None, 1.0) == 1.0
        assert to_number("x", default=1.0) == 1.0

    def test_returns_float(self):
        assert isinstance(to_number(2), float)
