"""Exact-money helpers.

Every currency amount and rate in the engine is a Decimal. Floats coming in
from JSON or YAML go through str() first so 0.093 stays 0.093 instead of
its binary expansion. Only final amounts are rounded (to cents, half-up);
intermediate bracket math keeps full precision.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, Union

from pydantic import BeforeValidator, PlainSerializer

CENTS = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

Numeric = Union[int, float, str, Decimal]


def to_decimal(value: Numeric) -> Decimal:
    """Convert a number to Decimal without picking up float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a currency amount")
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(amount: Numeric) -> Decimal:
    """Round to cents, 0.005 rounds up."""
    return to_decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def _coerce(value):
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return to_decimal(value)
    return value


# Decimal internally, JSON number on the wire.
Money = Annotated[
    Decimal,
    BeforeValidator(_coerce),
    PlainSerializer(float, return_type=float, when_used="json"),
]
