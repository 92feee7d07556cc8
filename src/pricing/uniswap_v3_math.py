from __future__ import annotations

from decimal import Decimal

from core.errors import InvalidSnapshot

from .fixed_point import (
    MAX_UINT160,
    Q96,
    Q192,
    RESOLUTION,
    div_rounding_up,
    mul_div,
    mul_div_rounding_up,
    shl,
    wrapping_add,
    wrapping_mul,
)

# Uniswap V3 fee tiers are quoted in hundredths of a basis point
FEE_UNITS_PER_BPS = 100


def fee_units_to_bps(fee_units: int) -> int:
    """Convert a pool ``fee()`` value (e.g. 500) to basis points (5)."""
    if fee_units < 0:
        raise ValueError("fee must be non-negative")
    if fee_units % FEE_UNITS_PER_BPS:
        raise ValueError(f"fee {fee_units} is not a whole number of basis points")
    return fee_units // FEE_UNITS_PER_BPS


def price_from_sqrt_price(sqrt_price_x96: int) -> Decimal:
    """
    Linear raw price (token1 per token0, in base units) of a Q64.96 sqrt price.

    Squaring a Q64.96 value gives Q128.192; the square is kept exact as an int
    and only the final division by 2**192 happens in Decimal, so prices far
    below 1 (e.g. USDT wei per WETH wei) keep their significant digits.
    """
    if sqrt_price_x96 <= 0:
        raise InvalidSnapshot("sqrt price must be positive")
    return Decimal(sqrt_price_x96 * sqrt_price_x96) / Decimal(Q192)


def next_sqrt_price_from_input(
    sqrt_price_x96: int,
    liquidity: int,
    amount_in: int,
    zero_for_one: bool,
) -> int:
    """
    Sqrt price after swapping ``amount_in`` into the pool within one range.

    Mirrors SqrtPriceMath.getNextSqrtPriceFromInput, including the overflow
    probe on the zero-for-one branch.
    """
    if sqrt_price_x96 <= 0:
        raise InvalidSnapshot("sqrt price must be positive")
    if liquidity <= 0:
        raise InvalidSnapshot("liquidity must be positive")
    if amount_in < 0:
        raise ValueError("amount_in must be non-negative")
    if amount_in == 0:
        return sqrt_price_x96

    if zero_for_one:
        return _next_sqrt_price_from_amount0(sqrt_price_x96, liquidity, amount_in)
    return _next_sqrt_price_from_amount1(sqrt_price_x96, liquidity, amount_in)


def _next_sqrt_price_from_amount0(
    sqrt_price_x96: int, liquidity: int, amount_in: int
) -> int:
    numerator1 = shl(liquidity, RESOLUTION)
    product = wrapping_mul(amount_in, sqrt_price_x96)
    if product // amount_in == sqrt_price_x96:
        denominator = wrapping_add(numerator1, product)
        if denominator >= numerator1:
            return mul_div_rounding_up(numerator1, sqrt_price_x96, denominator)
    return div_rounding_up(numerator1, amount_in + numerator1 // sqrt_price_x96)


def _next_sqrt_price_from_amount1(
    sqrt_price_x96: int, liquidity: int, amount_in: int
) -> int:
    if amount_in <= MAX_UINT160:
        quotient = shl(amount_in, RESOLUTION) // liquidity
    else:
        quotient = mul_div(amount_in, Q96, liquidity)
    return sqrt_price_x96 + quotient


def _ordered(sqrt_a: int, sqrt_b: int) -> tuple[int, int]:
    if sqrt_a == sqrt_b:
        raise ValueError("sqrt prices must differ")
    if sqrt_a <= 0 or sqrt_b <= 0:
        raise InvalidSnapshot("sqrt price must be positive")
    return (sqrt_a, sqrt_b) if sqrt_a < sqrt_b else (sqrt_b, sqrt_a)


def amount0_delta(sqrt_a: int, sqrt_b: int, liquidity: int) -> int:
    """
    Token0 between two sqrt prices:
    liquidity * 2**96 * (upper - lower) / upper / lower, rounded down.
    """
    lower, upper = _ordered(sqrt_a, sqrt_b)
    numerator1 = liquidity << RESOLUTION
    return mul_div(numerator1, upper - lower, upper) // lower


def amount1_delta(sqrt_a: int, sqrt_b: int, liquidity: int) -> int:
    """Token1 between two sqrt prices: liquidity * (upper - lower) / 2**96."""
    lower, upper = _ordered(sqrt_a, sqrt_b)
    return mul_div(liquidity, upper - lower, Q96)
