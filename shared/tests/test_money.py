from __future__ import annotations

from decimal import Decimal

import pytest

from shared.domain.value_objects import Money, minor_unit_exponent, to_decimal


def test_money_keeps_minor_unit_precision() -> None:
    assert Money(Decimal("10.5"), "usd") == Money(Decimal("10.50"), "USD")
    assert Money("12", "JPY").amount == Decimal("12")


@pytest.mark.parametrize("amount", [Decimal("10.001"), Decimal("-1.00")])
def test_money_rejects_bad_amounts(amount) -> None:
    with pytest.raises(ValueError):
        Money(amount, "USD")


def test_money_rejects_fractional_yen() -> None:
    with pytest.raises(ValueError):
        Money(Decimal("1.5"), "JPY")


def test_money_rejects_floats() -> None:
    with pytest.raises(TypeError):
        Money(0.1, "USD")


def test_arithmetic_requires_same_currency() -> None:
    total = Money(Decimal("25.00")) * 3 - Money(Decimal("5.00"))
    assert total == Money(Decimal("70.00"))
    with pytest.raises(ValueError):
        Money(Decimal("1.00"), "USD") + Money(Decimal("1.00"), "EUR")


def test_to_decimal_and_exponent() -> None:
    assert to_decimal(" 3.10 ") == Decimal("3.10")
    assert minor_unit_exponent("krw") == Decimal("1")
    with pytest.raises(ValueError):
        to_decimal("NaN")
