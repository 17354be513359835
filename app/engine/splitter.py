"""
Commission split computation.

The commission is ``floor(total * rate)`` computed on Python integers, so
18-decimal token amounts far beyond 2**64 split exactly. The truncation
remainder always goes to the merchant, which makes
``commission + merchant == total`` hold by construction.
"""

from decimal import Decimal
from fractions import Fraction
from typing import Union

from app.models.payment import CommissionSplit

Rate = Union[Fraction, Decimal, str, int, float]


def _as_fraction(rate: Rate) -> Fraction:
    # float input would carry its binary representation error into the split
    if isinstance(rate, float):
        rate = str(rate)
    return Fraction(rate)


def split_amount(total_amount: int, rate: Rate) -> CommissionSplit:
    """
    Split a total into commission and merchant amounts.

    Args:
        total_amount: Total in atomic token units.
        rate: Commission rate, strictly between 0 and 1.

    Returns:
        CommissionSplit. A commission of 0 is possible for very small totals.

    Raises:
        ValueError: On a negative total or a rate outside (0, 1).
    """
    if total_amount < 0:
        raise ValueError(f"Total amount must be non-negative: {total_amount}")

    fraction = _as_fraction(rate)
    if not 0 < fraction < 1:
        raise ValueError(f"Commission rate must be between 0 and 1 (exclusive): {rate}")

    commission = total_amount * fraction.numerator // fraction.denominator
    return CommissionSplit(
        total_amount=total_amount,
        commission_amount=commission,
        merchant_amount=total_amount - commission,
    )
