"""
Deposit and platform fee math.

All amounts go through ``round_money`` so the booking page, the engine and
the stats agree on the same figures. Percentages and the rounding rule come
from ``settings.pricing`` unless a provider overrides the deposit share.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from inkbook.config import settings

_QUANTUM = {"cent": Decimal("0.01"), "dollar": Decimal("1")}


@dataclass(frozen=True)
class DepositQuote:
    """What a client pays up front and how it splits."""

    total_price: float
    deposit_amount: float
    platform_fee: float
    provider_payout: float


def round_money(amount: float, rule: Optional[str] = None) -> float:
    """Round half-up to the configured precision ("cent" or "dollar")."""
    rule = rule or settings.pricing.rounding
    if rule not in _QUANTUM:
        raise ValueError(f"Unknown rounding rule: {rule!r}")
    value = Decimal(str(amount)).quantize(_QUANTUM[rule], rounding=ROUND_HALF_UP)
    return float(value)


def calculate_deposit(total_price: float, percentage: Optional[float] = None) -> float:
    """
    Deposit for a priced design, or the flat minimum when the price is still TBD.

    Examples (50%, cent rounding):
        calculate_deposit(200)    -> 100.0
        calculate_deposit(125.25) -> 62.63
        calculate_deposit(0)      -> 50.0  (custom design awaiting a quote)
    """
    if total_price < 0:
        raise ValueError(f"total_price must be >= 0, got {total_price}")
    if total_price == 0:
        return round_money(settings.pricing.min_custom_deposit)
    pct = settings.pricing.deposit_percentage if percentage is None else percentage
    return round_money(total_price * pct / 100)


def calculate_platform_fee(amount: float) -> float:
    return round_money(amount * settings.pricing.platform_fee_percentage / 100)


def quote_deposit(total_price: float, percentage: Optional[float] = None) -> DepositQuote:
    """Build the full deposit breakdown shown before payment."""
    deposit = calculate_deposit(total_price, percentage)
    fee = calculate_platform_fee(deposit)
    return DepositQuote(
        total_price=round_money(total_price),
        deposit_amount=deposit,
        platform_fee=fee,
        provider_payout=round_money(deposit - fee),
    )
