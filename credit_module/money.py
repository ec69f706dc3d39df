"""
Money Helpers

Decimal conversion and half-up rounding for monetary values. NEVER uses float
for monetary values; the system is single-currency.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from typing import Union

from .exceptions import InvalidArgumentError

# Set global decimal context for financial precision
getcontext().prec = 28

ZERO = Decimal("0")

DEFAULT_PRECISION = 2

Amount = Union[Decimal, int, str]


def to_decimal(value: Amount) -> Decimal:
    """
    Convert a value to a finite Decimal without passing through float

    Raises InvalidArgumentError for malformed strings, NaN and infinities.
    """
    if isinstance(value, float):
        raise TypeError("Monetary values must not be floats")
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidArgumentError(f"Invalid decimal amount: {value!r}")
    if not value.is_finite():
        raise InvalidArgumentError(f"Amount must be a finite number: {value}")
    return value


def round_half_up(value: Decimal, precision: int = DEFAULT_PRECISION) -> Decimal:
    """Round to the given number of decimal places, ties away from zero"""
    return value.quantize(Decimal("0.1") ** precision, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal) -> str:
    """Plain string form used in messages and serialised records"""
    return format(value, "f")
