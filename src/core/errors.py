"""Arbitrage engine exceptions.

All of these are local to one direction of one detection cycle: the detector
catches them, logs, and skips that direction.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional


class ArbError(Exception):
    """Base class for arbitrage engine errors."""


class ArithmeticOverflow(ArbError):
    """A fixed-point result does not fit in 256 bits."""


class DivisionByZero(ArbError, ZeroDivisionError):
    """Denominator of a rounding division is zero."""


class InsufficientDepth(ArbError):
    """Order book side exhausted before reaching a target."""

    def __init__(
        self,
        message: str,
        requested: Optional[Decimal] = None,
        available: Optional[Decimal] = None,
    ):
        self.requested = requested
        self.available = available
        super().__init__(message)


class InvalidSnapshot(ArbError, ValueError):
    """Pool or book snapshot cannot be priced (zero liquidity, empty side)."""
