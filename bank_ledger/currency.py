"""
Amount Handling Module

Normalises monetary input to Decimal with two fractional digits.
NEVER uses float arithmetic for balances.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from typing import Union

from .errors import InvalidAmount

# Set global decimal context for financial precision
getcontext().prec = 28

AMOUNT_PRECISION = 2
_QUANTUM = Decimal('0.1') ** AMOUNT_PRECISION

AmountLike = Union[Decimal, int, float, str]


def to_amount(value: AmountLike) -> Decimal:
    """
    Convert a value to a Decimal amount at currency precision.

    Floats go through str() so 0.1 stays 0.1 rather than its binary
    approximation. Amounts are never rounded: input finer than one cent
    is rejected.

    Raises:
        InvalidAmount: if the value is not a finite number, has more than
            two fractional digits, or is too large for the decimal context
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"Invalid amount: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        if not amount.is_finite():
            raise InvalidAmount(f"Invalid amount: {value!r}")
        quantized = amount.quantize(_QUANTUM, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"Invalid amount: {value!r}")
    if quantized != amount:
        raise InvalidAmount(
            f"Invalid amount: {value!r} has more than {AMOUNT_PRECISION} decimal places"
        )
    return quantized


def format_amount(amount: Decimal) -> str:
    """Format for display"""
    return f"{amount:,.{AMOUNT_PRECISION}f}"
