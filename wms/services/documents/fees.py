"""
Warehouse fee tiers charged per received unit

    price <= 1,000,000           5%
    1,000,000 < price <= 10M     3%
    price > 10,000,000           1%
"""
from decimal import Decimal
from typing import Tuple

TIER_1_THRESHOLD = Decimal("1000000")
TIER_2_THRESHOLD = Decimal("10000000")

TIER_1_RATE = Decimal("0.05")
TIER_2_RATE = Decimal("0.03")
TIER_3_RATE = Decimal("0.01")


def fee_rate(actual_price: Decimal) -> Decimal:
    price = Decimal(actual_price)
    if price <= 0:
        return Decimal("0")
    if price <= TIER_1_THRESHOLD:
        return TIER_1_RATE
    if price <= TIER_2_THRESHOLD:
        return TIER_2_RATE
    return TIER_3_RATE


def fee_tier(actual_price: Decimal) -> int:
    """1, 2 or 3; 0 for a non-positive price"""
    price = Decimal(actual_price)
    if price <= 0:
        return 0
    if price <= TIER_1_THRESHOLD:
        return 1
    if price <= TIER_2_THRESHOLD:
        return 2
    return 3


def unit_fee(actual_price: Decimal) -> Tuple[Decimal, Decimal]:
    """(rate, fee per unit)"""
    rate = fee_rate(actual_price)
    return rate, Decimal(actual_price) * rate


def total_fee(actual_price: Decimal, quantity: int) -> Decimal:
    if quantity <= 0:
        return Decimal("0")
    return unit_fee(actual_price)[1] * quantity
