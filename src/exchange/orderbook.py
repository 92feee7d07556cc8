from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional

from core.errors import InsufficientDepth, InvalidSnapshot


class BookSide(Enum):
    BID = "bid"
    ASK = "ask"


@dataclass(frozen=True)
class DepthLevel:
    price: Decimal
    quantity: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.price, Decimal) or not isinstance(
            self.quantity, Decimal
        ):
            raise TypeError("price and quantity must be Decimal")
        if self.price <= 0:
            raise InvalidSnapshot("level price must be positive")
        if self.quantity < 0:
            raise InvalidSnapshot("level quantity must be non-negative")

    @property
    def value(self) -> Decimal:
        """Level size in quote currency."""
        return self.price * self.quantity


@dataclass(frozen=True)
class DepthBook:
    """
    Depth-of-book snapshot: bids best (highest) first, asks best (lowest) first.

    Quantities are in base currency, prices in quote per base.
    """

    bids: tuple[DepthLevel, ...]
    asks: tuple[DepthLevel, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "bids", tuple(self.bids))
        object.__setattr__(self, "asks", tuple(self.asks))
        for prev, nxt in zip(self.bids, self.bids[1:]):
            if nxt.price >= prev.price:
                raise InvalidSnapshot("bids must be sorted by descending price")
        for prev, nxt in zip(self.asks, self.asks[1:]):
            if nxt.price <= prev.price:
                raise InvalidSnapshot("asks must be sorted by ascending price")

    @classmethod
    def from_levels(
        cls,
        bids: Iterable[tuple[Any, Any]],
        asks: Iterable[tuple[Any, Any]],
    ) -> "DepthBook":
        """Build from raw (price, qty) pairs in any order; empty levels are dropped."""
        bid_levels = _merge_levels(bids)
        ask_levels = _merge_levels(asks)
        bid_levels.sort(key=lambda level: level.price, reverse=True)
        ask_levels.sort(key=lambda level: level.price)
        return cls(bids=tuple(bid_levels), asks=tuple(ask_levels))

    def levels(self, side: BookSide) -> tuple[DepthLevel, ...]:
        return self.bids if side is BookSide.BID else self.asks

    @property
    def best_bid(self) -> Optional[DepthLevel]:
        return self.bids[0] if self.bids else None

    @property
    def best_ask(self) -> Optional[DepthLevel]:
        return self.asks[0] if self.asks else None

    def side_total(self, side: BookSide, value_in_quote: bool = False) -> Decimal:
        return sum(
            (
                (level.value if value_in_quote else level.quantity)
                for level in self.levels(side)
            ),
            Decimal("0"),
        )

    def accumulate_until(
        self,
        side: BookSide,
        price_limit: Decimal,
        value_in_quote: bool = False,
    ) -> tuple[Decimal, int]:
        """
        Sum depth from the best level outward until a level crosses
        ``price_limit`` (asks above it, bids below it).

        Returns (total, levels_consumed). Levels priced exactly at the limit
        are included. Raises InsufficientDepth if the side runs out before
        any level crosses the limit, since the true bound is then unknown.
        """
        levels = self.levels(side)
        if not levels:
            raise InvalidSnapshot(f"{side.value} side is empty")

        total = Decimal("0")
        for consumed, level in enumerate(levels):
            if _crosses(side, level.price, price_limit):
                return total, consumed
            total += level.value if value_in_quote else level.quantity
        raise InsufficientDepth(
            f"{side.value} side exhausted before price limit {price_limit}",
            available=total,
        )

    def fill(
        self,
        side: BookSide,
        amount: Decimal,
        amount_in_quote: bool,
    ) -> Decimal:
        """
        Trade exactly ``amount`` against one side and return what comes back.

        ``amount_in_quote=True`` spends quote and returns base (walk asks to
        buy); ``False`` delivers base and returns quote (walk bids to sell).
        The last level touched is split proportionally.
        """
        if amount < 0:
            raise ValueError("amount must be non-negative")
        if amount == 0:
            return Decimal("0")

        consumed = Decimal("0")
        received = Decimal("0")
        for level in self.levels(side):
            level_amount = level.value if amount_in_quote else level.quantity
            if consumed + level_amount < amount:
                consumed += level_amount
                received += level.quantity if amount_in_quote else level.value
                continue
            remaining = amount - consumed
            if amount_in_quote:
                received += remaining / level.price
            else:
                received += remaining * level.price
            return received
        raise InsufficientDepth(
            f"{side.value} side exhausted after {consumed} of {amount}",
            requested=amount,
            available=consumed,
        )


def _crosses(side: BookSide, price: Decimal, limit: Decimal) -> bool:
    if side is BookSide.ASK:
        return price > limit
    return price < limit


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, float):
        # ccxt hands back floats; go through str to keep the quoted digits
        return Decimal(str(value))
    return Decimal(value)


def _merge_levels(raw_levels: Iterable[tuple[Any, Any]]) -> list[DepthLevel]:
    merged: dict[Decimal, Decimal] = {}
    for entry in raw_levels:
        price, qty = entry[0], entry[1]
        price_dec = _to_decimal(price)
        qty_dec = _to_decimal(qty)
        if qty_dec == 0:
            continue
        merged[price_dec] = merged.get(price_dec, Decimal("0")) + qty_dec
    return [DepthLevel(price=price, quantity=qty) for price, qty in merged.items()]
