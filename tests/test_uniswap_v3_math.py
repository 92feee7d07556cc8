from decimal import Decimal
from math import isqrt

import pytest

from core.errors import InvalidSnapshot
from pricing.fixed_point import Q96, wrapping_mul
from pricing.uniswap_v3_math import (
    amount0_delta,
    amount1_delta,
    fee_units_to_bps,
    next_sqrt_price_from_input,
    price_from_sqrt_price,
)

# ETH at 2000 USDC with WETH (18 decimals) as token0 and USDC (6) as token1
SQRT_PRICE_2000 = isqrt(2000 * 10**6 * 2**192 // 10**18)
LIQUIDITY = isqrt(2500 * 10**18 * 5_000_000 * 10**6)


def test_fee_units_to_bps():
    assert fee_units_to_bps(500) == 5
    assert fee_units_to_bps(3000) == 30
    assert fee_units_to_bps(100) == 1
    assert fee_units_to_bps(0) == 0


@pytest.mark.parametrize("fee_units", [250, 1, 3050, -100])
def test_fee_units_outside_whole_bps_rejected(fee_units):
    with pytest.raises(ValueError):
        fee_units_to_bps(fee_units)


def test_price_from_sqrt_price():
    assert price_from_sqrt_price(Q96) == Decimal(1)
    assert price_from_sqrt_price(2 * Q96) == Decimal(4)


def test_price_from_sqrt_price_keeps_small_prices():
    price = price_from_sqrt_price(SQRT_PRICE_2000)
    assert abs(price - Decimal("2E-9")) < Decimal("1E-20")


def test_price_from_zero_sqrt_price_is_invalid():
    with pytest.raises(InvalidSnapshot):
        price_from_sqrt_price(0)


def test_zero_amount_leaves_price_unchanged():
    assert next_sqrt_price_from_input(SQRT_PRICE_2000, LIQUIDITY, 0, True) == SQRT_PRICE_2000
    assert next_sqrt_price_from_input(SQRT_PRICE_2000, LIQUIDITY, 0, False) == SQRT_PRICE_2000


def test_zero_liquidity_is_invalid():
    with pytest.raises(InvalidSnapshot):
        next_sqrt_price_from_input(SQRT_PRICE_2000, 0, 10**18, True)


def test_token0_input_moves_price_down_monotonically():
    amounts = [10**15, 10**16, 10**17, 10**18, 10**19]
    prices = [
        next_sqrt_price_from_input(SQRT_PRICE_2000, LIQUIDITY, amount, True)
        for amount in amounts
    ]
    assert prices[0] < SQRT_PRICE_2000
    assert all(later < earlier for earlier, later in zip(prices, prices[1:]))


def test_token1_input_moves_price_up_monotonically():
    amounts = [10**6, 10**8, 10**10, 10**12]
    prices = [
        next_sqrt_price_from_input(SQRT_PRICE_2000, LIQUIDITY, amount, False)
        for amount in amounts
    ]
    assert prices[0] > SQRT_PRICE_2000
    assert all(later > earlier for earlier, later in zip(prices, prices[1:]))


def test_token0_input_known_value():
    liquidity = 10**18
    result = next_sqrt_price_from_input(Q96, liquidity, 10**17, True)
    # L * sqrtP / (L + amount), rounded up
    assert result == -(-Q96 * 10 // 11)


def test_token1_input_known_value():
    liquidity = 10**18
    result = next_sqrt_price_from_input(Q96, liquidity, 10**17, False)
    assert result == Q96 + Q96 // 10


def test_token0_overflowing_product_uses_fallback():
    liquidity = 10**18
    amount = 2**170
    assert wrapping_mul(amount, Q96) // amount != Q96
    result = next_sqrt_price_from_input(Q96, liquidity, amount, True)
    numerator1 = liquidity << 96
    assert result == -(-numerator1 // (amount + numerator1 // Q96))


def test_token1_input_above_uint160_is_widened():
    liquidity = 2**100
    result = next_sqrt_price_from_input(Q96, liquidity, 2**161, False)
    assert result == Q96 + 2**157


def test_amount_deltas():
    liquidity = 10**18
    assert amount1_delta(Q96, 2 * Q96, liquidity) == liquidity
    assert amount0_delta(Q96, 2 * Q96, liquidity) == liquidity // 2


def test_amount_deltas_ignore_argument_order():
    lower, upper = SQRT_PRICE_2000, SQRT_PRICE_2000 + 10**20
    assert amount0_delta(lower, upper, LIQUIDITY) == amount0_delta(upper, lower, LIQUIDITY)
    assert amount1_delta(lower, upper, LIQUIDITY) == amount1_delta(upper, lower, LIQUIDITY)


def test_amount_delta_of_equal_prices_raises():
    with pytest.raises(ValueError):
        amount0_delta(Q96, Q96, 10**18)


def test_delta_matches_swap_input():
    amount_in = 10**18
    end = next_sqrt_price_from_input(SQRT_PRICE_2000, LIQUIDITY, amount_in, True)
    # rounding favours the pool: the range never needs more than was paid in
    assert amount0_delta(end, SQRT_PRICE_2000, LIQUIDITY) <= amount_in
