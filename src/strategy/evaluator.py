"""
Round-trip profit simulation across the pool and the order book.

``direction`` always names the pool leg. For BASE_TO_QUOTE the book leg
buys base on the asks, for QUOTE_TO_BASE it sells base into the bids, so
the round trip ends in the asset it started with:

  AMM-first  BASE_TO_QUOTE : base  -> pool -> quote -> asks -> base
  AMM-first  QUOTE_TO_BASE : quote -> pool -> base  -> bids -> quote
  book-first BASE_TO_QUOTE : quote -> asks -> base  -> pool -> quote
  book-first QUOTE_TO_BASE : base  -> bids -> quote -> pool -> base
"""

from __future__ import annotations

from decimal import Decimal

from core.fees import minus_fee_bps
from exchange.orderbook import BookSide, DepthBook
from pricing.uniswap_v3_pool import SwapDirection, Token, UniswapV3Pool
from strategy.signal import LegOrder


def book_side_for(direction: SwapDirection) -> BookSide:
    """Book side that closes a pool leg in ``direction``."""
    if direction is SwapDirection.BASE_TO_QUOTE:
        return BookSide.ASK
    return BookSide.BID


class ProfitEvaluator:
    """
    Net profit of one candidate size, in the unit of that size.

    Raises InsufficientDepth when the book runs out before the book leg is
    filled.
    """

    def __init__(
        self,
        pool: UniswapV3Pool,
        book: DepthBook,
        book_fee_bps: Decimal = Decimal("0"),
    ):
        self.pool = pool
        self.book = book
        self.book_fee_bps = book_fee_bps

    def size_token(self, direction: SwapDirection, leg_order: LegOrder) -> Token:
        """Token the candidate size (and the profit) is denominated in."""
        if leg_order is LegOrder.AMM_FIRST:
            return self.pool.token_in(direction)
        return self.pool.token_out(direction)

    def evaluate(
        self, size: Decimal, direction: SwapDirection, leg_order: LegOrder
    ) -> Decimal:
        if leg_order is LegOrder.AMM_FIRST:
            return self.amm_first(size, direction)
        return self.book_first(size, direction)

    def amm_first(self, size: Decimal, direction: SwapDirection) -> Decimal:
        pool_out = self.pool.swap_human(size, direction)
        proceeds = self._book_leg(pool_out, direction)
        return proceeds - size

    def book_first(self, size: Decimal, direction: SwapDirection) -> Decimal:
        book_out = self._book_leg(size, direction)
        proceeds = self.pool.swap_human(book_out, direction)
        return proceeds - size

    def _book_leg(self, amount: Decimal, direction: SwapDirection) -> Decimal:
        # asks are walked with quote (buying base), bids with base (selling it)
        side = book_side_for(direction)
        received = self.book.fill(
            side, amount, amount_in_quote=side is BookSide.ASK
        )
        return minus_fee_bps(received, self.book_fee_bps)
