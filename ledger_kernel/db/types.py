"""
Module: ledger_kernel.db.types
Responsibility: Monetary column precision and the single sanctioned rounding
    function for monetary values.

CRITICAL: No floats anywhere in the ledger.  All monetary amounts use Decimal.
"""

from decimal import ROUND_HALF_UP, Decimal

# Numeric(precision, scale) for ledger amounts
MONEY_PRECISION = 38
MONEY_SCALE = 9

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to ``decimal_places``.

    The only rounding function used by the mapper (even shares of an order
    total); everything else keeps full precision.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)
