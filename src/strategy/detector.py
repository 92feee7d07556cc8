"""
Arbitrage detector: one synchronous cycle per call.

  spot price -> select directions -> bound domain -> optimise -> report

Both directions are checked every cycle; they are not mutually exclusive.
A direction that fails (thin book, unusable snapshot, zero denominator) is
logged and dropped without affecting the other one. Nothing here mutates
the pool or the book, so independent snapshots can be run in parallel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterator, Optional

from core.base_types import Address
from core.errors import DivisionByZero, InsufficientDepth, InvalidSnapshot
from exchange.orderbook import DepthBook
from pricing.constants import USDC, USDC_WETH_500_POOL, WETH
from pricing.uniswap_v3_pool import (
    PoolState,
    SwapDirection,
    Token,
    TokensPrice,
    UniswapV3Pool,
)
from strategy.evaluator import ProfitEvaluator, book_side_for
from strategy.optimizer import SizeOptimizer
from strategy.signal import LegOrder, ProfitResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArbConfig:
    """Everything a detection cycle needs besides the two snapshots."""

    pool_address: Address
    base_token: Token
    quote_token: Token
    leg_order: LegOrder = LegOrder.AMM_FIRST
    pool_venue: str = "Uniswap"
    book_venue: str = "Binance"
    min_size: Decimal = Decimal("1")
    size_resolution: Decimal = Decimal("0.0001")
    max_iterations: int = 128
    book_fee_bps: Decimal = Decimal("0")

    @classmethod
    def mainnet_usdc_weth(cls, **overrides) -> "ArbConfig":
        """USDC/WETH 0.05% pool priced as ETH/USDC."""
        values = dict(
            pool_address=USDC_WETH_500_POOL, base_token=WETH, quote_token=USDC
        )
        values.update(overrides)
        return cls(**values)

    def build_pool(self, state: PoolState, fee_bps: int) -> UniswapV3Pool:
        # pools order their tokens by address
        token0, token1 = sorted(
            (self.base_token, self.quote_token), key=lambda token: token.address.lower
        )
        return UniswapV3Pool(
            address=self.pool_address,
            token0=token0,
            token1=token1,
            state=state,
            fee_bps=fee_bps,
            base_token=self.base_token,
            venue_name=self.pool_venue,
        )


class ArbitrageDetector:
    def __init__(self, config: ArbConfig):
        self.config = config
        self.optimizer = SizeOptimizer(
            min_size=config.min_size,
            resolution=config.size_resolution,
            max_iterations=config.max_iterations,
        )

    def detect(self, pool: UniswapV3Pool, book: DepthBook) -> list[ProfitResult]:
        """Zero, one or two profitable results for this pool/book snapshot."""
        try:
            pool_price = pool.spot_price()
        except InvalidSnapshot as exc:
            logger.info("cycle skipped: %s", exc)
            return []

        evaluator = ProfitEvaluator(pool, book, self.config.book_fee_bps)
        results: list[ProfitResult] = []
        for direction in self._select_directions(pool_price, book):
            try:
                result = self._size_direction(evaluator, pool_price, direction)
            except (InsufficientDepth, InvalidSnapshot, DivisionByZero) as exc:
                logger.info("%s  skip: %s", direction.value, exc)
                continue
            if not result.is_profitable():
                logger.debug("%s  skip: no profitable size", direction.value)
                continue
            logger.info(
                "%s  opportunity: size=%s %s profit=%s %s (first leg %s)",
                direction.value,
                result.optimal_size,
                result.profit_symbol,
                result.profit,
                result.profit_symbol,
                result.venue_name,
            )
            results.append(result)
        return results

    def _select_directions(
        self, pool_price: TokensPrice, book: DepthBook
    ) -> Iterator[SwapDirection]:
        best_ask = book.best_ask
        if best_ask is None:
            logger.info("base_to_quote  skip: ask side empty")
        elif pool_price.quote_amount_per_base > best_ask.price:
            yield SwapDirection.BASE_TO_QUOTE
        else:
            logger.debug(
                "base_to_quote  skip: pool %s <= best ask %s",
                pool_price.quote_amount_per_base,
                best_ask.price,
            )

        best_bid = book.best_bid
        if best_bid is None:
            logger.info("quote_to_base  skip: bid side empty")
        elif pool_price.effective_buy_price < best_bid.price:
            yield SwapDirection.QUOTE_TO_BASE
        else:
            logger.debug(
                "quote_to_base  skip: pool %s >= best bid %s",
                pool_price.effective_buy_price,
                best_bid.price,
            )

    def _bound_domain(
        self,
        evaluator: ProfitEvaluator,
        pool_price: TokensPrice,
        direction: SwapDirection,
    ) -> Decimal:
        """Book depth priced better than the pool, in the unit of the size."""
        if direction is SwapDirection.BASE_TO_QUOTE:
            limit = pool_price.quote_amount_per_base
        else:
            limit = pool_price.effective_buy_price
        size_token = evaluator.size_token(direction, self.config.leg_order)
        value_in_quote = size_token.address == evaluator.pool.quote.address
        total, levels = evaluator.book.accumulate_until(
            book_side_for(direction), limit, value_in_quote=value_in_quote
        )
        logger.debug(
            "%s  bound: %s %s over %s levels (limit %s)",
            direction.value,
            total,
            size_token.symbol,
            levels,
            limit,
        )
        return total

    def _size_direction(
        self,
        evaluator: ProfitEvaluator,
        pool_price: TokensPrice,
        direction: SwapDirection,
    ) -> ProfitResult:
        if evaluator.pool.state.liquidity <= 0:
            raise InvalidSnapshot("pool liquidity is zero")
        leg_order = self.config.leg_order
        upper_bound = self._bound_domain(evaluator, pool_price, direction)
        best = self.optimizer.optimize(
            lambda size: evaluator.evaluate(size, direction, leg_order),
            upper_bound,
        )
        venue = (
            evaluator.pool.venue_name
            if leg_order is LegOrder.AMM_FIRST
            else self.config.book_venue
        )
        return ProfitResult(
            profit=best.profit,
            optimal_size=best.size,
            venue_name=venue,
            direction=direction,
            leg_order=leg_order,
            profit_symbol=evaluator.size_token(direction, leg_order).symbol,
        )


def detect(
    pool_state: PoolState,
    book: DepthBook,
    fee_bps: int,
    config: Optional[ArbConfig] = None,
) -> list[ProfitResult]:
    """
    Run one detection cycle over a pool snapshot and a depth snapshot.

    Returns at most two results (one per direction), order not significant.
    """
    config = config or ArbConfig.mainnet_usdc_weth()
    pool = config.build_pool(pool_state, fee_bps)
    return ArbitrageDetector(config).detect(pool, book)
