"""Address and raw token amounts, shared by the pool reader and pool math."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal

from eth_utils.address import is_address, to_checksum_address


@dataclass(frozen=True)
class Address:
    """Ethereum address, stored checksummed so equal addresses compare equal."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not is_address(self.value):
            raise ValueError(f"invalid Ethereum address: {self.value!r}")
        object.__setattr__(self, "value", to_checksum_address(self.value))

    @classmethod
    def from_string(cls, s: str) -> "Address":
        return cls(s)

    @property
    def checksum(self) -> str:
        return self.value

    @property
    def lower(self) -> str:
        return self.value.lower()


@dataclass(frozen=True)
class TokenAmount:
    """
    A token amount in raw integer units plus its decimals.

    Pool math runs on ``raw``; the order book and profit figures use ``human``.
    """

    raw: int
    decimals: int

    def __post_init__(self) -> None:
        if not isinstance(self.raw, int):
            raise TypeError("raw must be an int")
        if not isinstance(self.decimals, int) or self.decimals < 0:
            raise ValueError("decimals must be a non-negative integer")

    @classmethod
    def floor_from_human(cls, amount: Decimal, decimals: int) -> "TokenAmount":
        """Raw units of a human amount; dust below one raw unit is dropped."""
        if isinstance(amount, float):
            raise TypeError("amount must be a Decimal, not float")
        scaled = Decimal(amount) * (Decimal(10) ** decimals)
        return cls(raw=int(scaled.to_integral_value(rounding=ROUND_DOWN)), decimals=decimals)

    @property
    def human(self) -> Decimal:
        return Decimal(self.raw) / (Decimal(10) ** self.decimals)
