"""Unit tests for partner fee calculation"""

from decimal import Decimal
from pg_gateway.domain.fees import calculate_fee


def test_calculate_fee_percentage_plus_fixed():
    """Test 2.35% + 100 on 10,000"""
    fee, net = calculate_fee(Decimal("10000"), Decimal("0.0235"), Decimal("100"))

    assert fee == Decimal("335.00")
    assert net == Decimal("9665.00")


def test_calculate_fee_rounds_half_up():
    """Test percentage part rounds half-up to cents before the fixed fee"""
    # 1.50 * 0.0300 = 0.045 -> 0.05
    fee, net = calculate_fee(Decimal("1.50"), Decimal("0.0300"), Decimal("0"))

    assert fee == Decimal("0.05")
    assert net == Decimal("1.45")


def test_calculate_fee_fixed_added_after_rounding():
    """Test fixed fee is not part of the rounded product"""
    # 333 * 0.0235 = 7.8255 -> 7.83, then + 0.10
    fee, _ = calculate_fee(Decimal("333"), Decimal("0.0235"), Decimal("0.10"))
    assert fee == Decimal("7.93")


def test_calculate_fee_conserves_amount():
    """Test fee + net equals the charged amount exactly"""
    for amount in (Decimal("1"), Decimal("999.99"), Decimal("123456.78")):
        fee, net = calculate_fee(amount, Decimal("0.0235"), Decimal("100"))
        assert fee + net == amount


def test_calculate_fee_zero_rate():
    """Test zero percentage charges only the fixed fee"""
    fee, net = calculate_fee(Decimal("5000"), Decimal("0"), Decimal("100"))

    assert fee == Decimal("100")
    assert net == Decimal("4900")


def test_calculate_fee_can_exceed_small_amount():
    """Test net goes negative when the fixed fee exceeds the amount"""
    fee, net = calculate_fee(Decimal("50"), Decimal("0.0235"), Decimal("100"))

    assert fee == Decimal("101.18")
    assert net == Decimal("-51.18")
