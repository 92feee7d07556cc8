from __future__ import annotations

from decimal import Decimal
from typing import TypeVar

BPS_DENOMINATOR = 10_000

Amount = TypeVar("Amount", int, Decimal)


def minus_fee_bps(value: Amount, fee_bps: int | Decimal) -> Amount:
    """
    value - value * fee_bps / 10000.

    Integer inputs stay integers (fee rounded down, like on-chain math);
    Decimal inputs stay exact.
    """
    if fee_bps < 0 or fee_bps >= BPS_DENOMINATOR:
        raise ValueError("fee_bps must be in [0, 10000)")
    if isinstance(value, int):
        if isinstance(fee_bps, Decimal):
            raise TypeError("integer amounts need an integer fee_bps")
        return value - value * fee_bps // BPS_DENOMINATOR
    return value - value * Decimal(fee_bps) / Decimal(BPS_DENOMINATOR)
