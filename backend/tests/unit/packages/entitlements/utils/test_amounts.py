"""
Unit tests for amount conversions.
"""

import pytest

from common.core.exceptions import ValidationError
from packages.entitlements.utils.amounts import amount_to_cents, display_amount


class TestDisplayAmount:
    def test_whole_amounts_are_ints(self):
        value = display_amount(8000)
        assert value == 80
        assert isinstance(value, int)

    def test_fractional_amounts_keep_fraction(self):
        assert display_amount(8050) == 80.5
        assert display_amount(1999) == 19.99

    def test_missing_amount_is_zero(self):
        assert display_amount(None) == 0

    def test_negative_amounts(self):
        assert display_amount(-2000) == -20
        assert display_amount(-150) == -1.5


class TestAmountToCents:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("80.50", 8050),
            ("1,000", 100000),
            (19.99, 1999),
            (80, 8000),
            (" 12.345 ", 1235),
        ],
    )
    def test_parses_major_units(self, value, expected):
        assert amount_to_cents(value) == expected

    def test_blank_is_none(self):
        assert amount_to_cents(None) is None
        assert amount_to_cents("  ") is None

    def test_garbage_raises(self):
        with pytest.raises(ValidationError):
            amount_to_cents("eighty")
