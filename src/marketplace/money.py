"""
Two-decimal formatting for prices and bids.

Rounding happens on the shortest decimal form of the float (its repr), half
up, so 1.005 shows as "1.01" and 2.675 as "2.68". Formatting the binary
value directly with :.2f would give "1.00" and "2.67".
"""

from decimal import ROUND_HALF_UP, Context, Decimal


CENT = Decimal("0.01")

# Wide enough for any finite float quantized to cents
_CONTEXT = Context(prec=400)


def format_amount(value: float) -> str:
    """
    Format a finite amount with exactly two decimals.

    Args:
        value: The amount, as stored.

    Returns:
        e.g. "15.00", "1.01", "-3.50"
    """
    cents = Decimal(repr(float(value))).quantize(CENT, rounding=ROUND_HALF_UP, context=_CONTEXT)
    return format(cents, "f")
