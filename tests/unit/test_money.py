"""Unit tests for currency conversion."""

from decimal import Decimal

import pytest
from pydantic import BaseModel

from services.shared.money import Money, quantize_amount, to_minor_units


class Priced(BaseModel):
    amount: Money


@pytest.mark.parametrize(
    ("amount", "expected"),
    [
        (Decimal("19.99"), 1999),
        (19.99, 1999),
        (0.1 + 0.2, 30),
        ("1234.5", 123450),
        (100, 10000),
        (Decimal("0.005"), 1),
        (Decimal("2.675"), 268),
    ],
)
def test_to_minor_units_is_exact(amount: object, expected: int) -> None:
    assert to_minor_units(amount) == expected  # type: ignore[arg-type]


def test_quantize_rounds_half_up() -> None:
    assert quantize_amount(Decimal("10.125")) == Decimal("10.13")


def test_money_field_quantizes_input() -> None:
    assert Priced(amount="12.345").amount == Decimal("12.35")


def test_money_serializes_as_json_number() -> None:
    assert Priced(amount=Decimal("1500.50")).model_dump_json() == '{"amount":1500.5}'


def test_money_stays_decimal_in_python_mode() -> None:
    assert Priced(amount=7).model_dump() == {"amount": Decimal("7.00")}
