"""
256-bit unsigned fixed-point primitives.

Python ints are unbounded, so every helper here states its width explicitly:
the wrapping_* helpers reduce mod 2**256 like EVM arithmetic, and the
mul_div helpers keep the full product (the 512-bit intermediate of
Solidity's FullMath) before dividing. No floats anywhere.
"""

from __future__ import annotations

from core.errors import ArithmeticOverflow, DivisionByZero

MAX_UINT256 = (1 << 256) - 1
MAX_UINT160 = (1 << 160) - 1
RESOLUTION = 96
Q96 = 1 << 96
Q192 = 1 << 192


def wrapping_mul(a: int, b: int) -> int:
    """a * b mod 2**256."""
    return (a * b) & MAX_UINT256


def wrapping_add(a: int, b: int) -> int:
    """a + b mod 2**256."""
    return (a + b) & MAX_UINT256


def shl(value: int, bits: int) -> int:
    """value << bits, truncated to 256 bits."""
    if bits < 0:
        raise ValueError("shift must be non-negative")
    return (value << bits) & MAX_UINT256


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) with a full-width intermediate."""
    if denominator == 0:
        raise DivisionByZero("mul_div denominator is zero")
    result = (a * b) // denominator
    if result > MAX_UINT256:
        raise ArithmeticOverflow("mul_div result exceeds 256 bits")
    return result


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """
    ceil(a * b / denominator) with a full-width intermediate.

    Equal to mul_div exactly when denominator divides a * b.
    """
    if denominator == 0:
        raise DivisionByZero("mul_div_rounding_up denominator is zero")
    product = a * b
    result, remainder = divmod(product, denominator)
    if remainder:
        result += 1
    if result > MAX_UINT256:
        raise ArithmeticOverflow("mul_div_rounding_up result exceeds 256 bits")
    return result


def div_rounding_up(a: int, b: int) -> int:
    if b == 0:
        raise DivisionByZero("div_rounding_up denominator is zero")
    quotient, remainder = divmod(a, b)
    return quotient + (1 if remainder else 0)
