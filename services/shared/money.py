"""Exact currency handling.

Amounts are ``Decimal`` quantized to cents in Python and in storage. Vendor
APIs that want integer minor units get them through ``to_minor_units``; the
JSON wire format renders amounts as plain numbers for the web client.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from pydantic import AfterValidator, PlainSerializer

CENTS = Decimal("0.01")


def quantize_amount(value: Decimal) -> Decimal:
    """Round an amount to whole cents (half-up)."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal | int | float | str) -> int:
    """Convert a currency amount to integer cents.

    Floats are routed through ``str`` so that 19.99 becomes 1999 rather than
    1998.

    Args:
        amount: Amount in major units (e.g. dollars)

    Returns:
        Amount in minor units (e.g. cents)
    """
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return int(quantize_amount(value) * 100)


Money = Annotated[
    Decimal,
    AfterValidator(quantize_amount),
    PlainSerializer(float, return_type=float, when_used="json"),
]
