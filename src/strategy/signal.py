from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from pricing.uniswap_v3_pool import SwapDirection


class LegOrder(Enum):
    AMM_FIRST = "amm_first"
    BOOK_FIRST = "book_first"


@dataclass(frozen=True)
class ProfitResult:
    """
    A sized opportunity: the trade size that maximised net profit.

    ``direction`` is the pool leg; ``venue_name`` is the venue that takes
    the first leg. Profit and size share a unit (``profit_symbol``).
    """

    profit: Decimal
    optimal_size: Decimal
    venue_name: str
    direction: SwapDirection
    leg_order: LegOrder
    profit_symbol: str

    def is_profitable(self) -> bool:
        return self.profit > 0 and self.optimal_size > 0

    def to_dict(self) -> dict:
        return {
            "profit": str(self.profit),
            "optimal_size": str(self.optimal_size),
            "venue": self.venue_name,
            "direction": self.direction.value,
            "leg_order": self.leg_order.value,
            "unit": self.profit_symbol,
        }
