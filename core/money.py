"""Fixed-point money handling.

All amounts are Decimal with two fractional digits, matching the
NUMERIC(12, 2) columns. Binary floats never enter the ledger.
"""

from decimal import Decimal, InvalidOperation

from core.exceptions import InvalidAmountError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """
    Parse a monetary value into a two-place Decimal.

    Accepts Decimal, int, or a numeric string. Floats are rejected because
    their binary value is already inexact by the time they arrive here.

    Raises:
        InvalidAmountError: If the value is malformed, non-finite, out of
            range, or has more than two fractional digits.
    """
    if isinstance(value, (bool, float)):
        raise InvalidAmountError(f"Amount must be a decimal string or integer, got {value!r}")

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(f"Malformed amount: {value!r}")

    if not amount.is_finite():
        raise InvalidAmountError(f"Amount must be finite, got {value!r}")

    try:
        quantized = amount.quantize(CENT)
    except InvalidOperation:
        raise InvalidAmountError(f"Amount {value!r} is out of range")

    if quantized != amount:
        raise InvalidAmountError(f"Amount {value!r} has more than two decimal places")

    return quantized


def format_money(amount: Decimal) -> str:
    """Render an amount for activity descriptions, e.g. 70000.00."""
    return f"{amount.quantize(CENT):.2f}"
