"""Fee calculation for partner payments"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple

CENT = Decimal("0.01")


def calculate_fee(amount: Decimal, percentage: Decimal, fixed_fee: Decimal) -> Tuple[Decimal, Decimal]:
    """
    Apply a partner fee policy to a payment amount.

    Requirements:
    - Percentage part rounded to 2 decimal places, half-up
    - Fixed fee added after rounding
    - Net amount is whatever remains, so fee + net == amount exactly

    Args:
        amount: Charged amount (>= 0, validated by the caller)
        percentage: Rate as a fraction in [0, 1], e.g. Decimal("0.0235")
        fixed_fee: Flat fee added to every payment

    Returns:
        (fee, net) as Decimals

    Example:
        10000 at 2.35% + 100 → fee 335.00, net 9665.00
    """
    fee = (amount * percentage).quantize(CENT, rounding=ROUND_HALF_UP) + fixed_fee
    net = amount - fee
    return fee, net
