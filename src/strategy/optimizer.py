"""
Trade-size search.

Profit is assumed unimodal in size near the crossover (rises while the
pool/book gap pays for price impact, then falls). Each step compares the
profit at ``mid`` with the profit one grid step later and keeps the half
that slopes upward. The search is best effort: on books where profit is
not unimodal it still returns the best pair it actually observed, never an
extrapolated one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import Callable, Optional

from core.errors import InsufficientDepth

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class SizeResult:
    size: Decimal
    profit: Decimal
    evaluations: int = 0
    iterations: int = 0

    @property
    def found(self) -> bool:
        return self.profit > 0


class SizeOptimizer:
    def __init__(
        self,
        min_size: Decimal = Decimal("1"),
        resolution: Decimal = Decimal("0.0001"),
        max_iterations: int = 128,
    ):
        if min_size <= 0:
            raise ValueError("min_size must be positive")
        if resolution <= 0:
            raise ValueError("resolution must be positive")
        if max_iterations <= 0:
            raise ValueError("max_iterations must be positive")
        self.min_size = min_size
        self.resolution = resolution
        self.max_iterations = max_iterations

    def _snap(self, value: Decimal) -> Decimal:
        return value.quantize(self.resolution, rounding=ROUND_DOWN)

    def optimize(
        self,
        objective: Callable[[Decimal], Decimal],
        upper_bound: Decimal,
    ) -> SizeResult:
        """
        Search [min_size, upper_bound] for the size with the highest profit.

        Returns SizeResult(0, 0) when no probed size is profitable. A probe
        that exhausts the book counts as infeasible and pulls the upper
        bound down to it.
        """
        lo = self._snap(self.min_size)
        hi = self._snap(upper_bound)
        if hi < lo:
            logger.debug("search skipped: bound %s below min size %s", hi, lo)
            return SizeResult(size=ZERO, profit=ZERO)

        seen: dict[Decimal, Optional[Decimal]] = {}
        best_size, best_profit = ZERO, ZERO

        def probe(size: Decimal) -> Optional[Decimal]:
            nonlocal best_size, best_profit
            if size in seen:
                return seen[size]
            try:
                profit: Optional[Decimal] = objective(size)
            except InsufficientDepth:
                profit = None
            seen[size] = profit
            if profit is not None and profit > best_profit:
                best_size, best_profit = size, profit
            return profit

        iterations = 0
        while hi - lo > self.resolution and iterations < self.max_iterations:
            iterations += 1
            mid = self._snap((lo + hi) / 2)
            here = probe(mid)
            if here is None:
                hi = mid
                continue
            ahead = probe(mid + self.resolution)
            if ahead is not None and ahead > here:
                lo = mid + self.resolution
            else:
                hi = mid

        probe(lo)
        probe(hi)

        if iterations >= self.max_iterations:
            logger.warning(
                "size search hit iteration cap %s (lo=%s hi=%s)",
                self.max_iterations,
                lo,
                hi,
            )
        logger.debug(
            "size search: best size=%s profit=%s after %s iterations, %s probes",
            best_size,
            best_profit,
            iterations,
            len(seen),
        )
        return SizeResult(
            size=best_size,
            profit=best_profit,
            evaluations=len(seen),
            iterations=iterations,
        )
