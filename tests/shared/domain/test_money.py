"""Tests for minor-unit money conversion."""

from decimal import Decimal

import pytest
from shared.errors import InvalidAmount
from shared.money import format_amount, from_minor_units, minor_unit_factor, to_minor_units


class TestToMinorUnits:
    def test_decimal_string(self):
        assert to_minor_units("49.99") == 4999

    def test_float_does_not_drift(self):
        # 0.1 + 0.2 style drift must not leak into minor units
        assert to_minor_units(0.29) == 29
        assert to_minor_units(49.99) == 4999

    def test_integer_amount(self):
        assert to_minor_units(25) == 2500

    def test_zero_decimal_currency_factor(self):
        assert to_minor_units(500, minor_unit_factor("JPY")) == 500

    def test_rejects_excess_precision(self):
        with pytest.raises(InvalidAmount):
            to_minor_units("1.005")

    @pytest.mark.parametrize("value", [None, True, "abc", float("nan"), float("inf")])
    def test_rejects_non_amounts(self, value):
        with pytest.raises(InvalidAmount):
            to_minor_units(value)


class TestFromMinorUnits:
    def test_webhook_amount_conversion(self):
        assert from_minor_units(250000, 100) == Decimal("2500.00")

    def test_keeps_two_places(self):
        assert str(from_minor_units(9998)) == "99.98"

    def test_format_amount(self):
        assert format_amount(5) == "0.05"
        assert format_amount(500, 1) == "500"


class TestMinorUnitFactor:
    def test_default_factor(self):
        assert minor_unit_factor("USD") == 100
        assert minor_unit_factor("inr") == 100
        assert minor_unit_factor(None) == 100

    def test_zero_decimal_currency(self):
        assert minor_unit_factor("JPY") == 1
