from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from eth_abi import decode
from eth_utils.crypto import keccak

from chain.client import ChainClient
from core.base_types import Address, TokenAmount
from core.errors import InvalidSnapshot
from core.fees import minus_fee_bps

from .uniswap_v3_math import (
    amount0_delta,
    amount1_delta,
    fee_units_to_bps,
    next_sqrt_price_from_input,
    price_from_sqrt_price,
)

SLOT0_TYPES = ["uint160", "int24", "uint16", "uint16", "uint16", "uint8", "bool"]


@dataclass(frozen=True)
class Token:
    address: Address
    symbol: str
    decimals: int


@dataclass(frozen=True)
class PoolState:
    """Pool snapshot for one detection cycle: Q64.96 sqrt price and liquidity."""

    sqrt_price_x96: int
    liquidity: int

    def __post_init__(self) -> None:
        if not isinstance(self.sqrt_price_x96, int) or not isinstance(
            self.liquidity, int
        ):
            raise TypeError("sqrt_price_x96 and liquidity must be int")
        if self.sqrt_price_x96 < 0 or self.liquidity < 0:
            raise ValueError("sqrt_price_x96 and liquidity must be non-negative")


class SwapDirection(Enum):
    BASE_TO_QUOTE = "base_to_quote"
    QUOTE_TO_BASE = "quote_to_base"


@dataclass(frozen=True)
class TokensPrice:
    """A venue price quoted both ways, so callers never re-invert it."""

    quote_amount_per_base: Decimal
    base_amount_per_quote: Decimal
    venue_name: str

    @property
    def effective_buy_price(self) -> Decimal:
        """Quote paid per base when buying base on this venue."""
        return Decimal(1) / self.base_amount_per_quote


class UniswapV3Pool:
    """
    A concentrated-liquidity pool priced within its current tick range.
    All swap math uses integers only, no floats anywhere.

    ``base_token`` picks which pool token the pair treats as base; the pool
    itself only knows token0/token1, so directions are mapped onto
    zero_for_one here.
    """

    def __init__(
        self,
        address: Address,
        token0: Token,
        token1: Token,
        state: PoolState,
        fee_bps: int = 5,  # 0.05% tier
        base_token: Optional[Token] = None,
        venue_name: str = "Uniswap",
    ):
        if token0.address == token1.address:
            raise ValueError("token0 and token1 must be different")
        if not isinstance(fee_bps, int):
            raise TypeError("fee_bps must be int")
        if fee_bps < 0 or fee_bps >= 10000:
            raise ValueError("fee_bps must be in [0, 10000)")
        base = base_token or token0
        if base.address not in (token0.address, token1.address):
            raise ValueError("base_token not in pool")

        self.address = address
        self.token0 = token0
        self.token1 = token1
        self.state = state
        self.fee_bps = fee_bps
        self.base_is_token0 = base.address == token0.address
        self.venue_name = venue_name

    @property
    def base(self) -> Token:
        return self.token0 if self.base_is_token0 else self.token1

    @property
    def quote(self) -> Token:
        return self.token1 if self.base_is_token0 else self.token0

    def token_in(self, direction: SwapDirection) -> Token:
        return self.base if direction is SwapDirection.BASE_TO_QUOTE else self.quote

    def token_out(self, direction: SwapDirection) -> Token:
        return self.quote if direction is SwapDirection.BASE_TO_QUOTE else self.base

    def zero_for_one(self, direction: SwapDirection) -> bool:
        return (direction is SwapDirection.BASE_TO_QUOTE) == self.base_is_token0

    def with_state(self, state: PoolState) -> "UniswapV3Pool":
        """Same pool, fresh snapshot."""
        return UniswapV3Pool(
            address=self.address,
            token0=self.token0,
            token1=self.token1,
            state=state,
            fee_bps=self.fee_bps,
            base_token=self.base,
            venue_name=self.venue_name,
        )

    def _require_liquidity(self) -> None:
        if self.state.liquidity <= 0:
            raise InvalidSnapshot("pool liquidity is zero")

    def spot_price(self) -> TokensPrice:
        """
        Human spot price in both directions, net of the pool fee.

        The raw token1/token0 price is scaled by the decimal difference
        (10**12 for WETH/USDC) and the fee is taken once from each side, so
        ``base_amount_per_quote`` is not ``1 / quote_amount_per_base``; their
        product is ``(1 - fee)**2``.
        """
        raw = price_from_sqrt_price(self.state.sqrt_price_x96)
        if raw == 0:
            raise InvalidSnapshot("sqrt price too small to price")
        token1_per_token0 = raw * Decimal(10) ** (
            self.token0.decimals - self.token1.decimals
        )
        if self.base_is_token0:
            quote_per_base = token1_per_token0
        else:
            quote_per_base = Decimal(1) / token1_per_token0
        return TokensPrice(
            quote_amount_per_base=minus_fee_bps(quote_per_base, self.fee_bps),
            base_amount_per_quote=minus_fee_bps(
                Decimal(1) / quote_per_base, self.fee_bps
            ),
            venue_name=self.venue_name,
        )

    def price_after_swap(self, amount_in: int, direction: SwapDirection) -> int:
        """Sqrt price after swapping raw ``amount_in`` of the input token."""
        if not isinstance(amount_in, int):
            raise TypeError("amount_in must be int")
        self._require_liquidity()
        return next_sqrt_price_from_input(
            self.state.sqrt_price_x96,
            self.state.liquidity,
            amount_in,
            self.zero_for_one(direction),
        )

    def amount_out(
        self, sqrt_price_start: int, sqrt_price_end: int, direction: SwapDirection
    ) -> int:
        """
        Output token amount between two sqrt prices, net of the pool fee.

        Argument order does not matter; the delta is direction-agnostic.
        """
        self._require_liquidity()
        if self.zero_for_one(direction):
            gross = amount1_delta(
                sqrt_price_start, sqrt_price_end, self.state.liquidity
            )
        else:
            gross = amount0_delta(
                sqrt_price_start, sqrt_price_end, self.state.liquidity
            )
        return minus_fee_bps(gross, self.fee_bps)

    def get_amount_out(self, amount_in: int, direction: SwapDirection) -> int:
        """Raw output for raw input; dust that does not move the price yields 0."""
        if amount_in <= 0:
            return 0
        next_price = self.price_after_swap(amount_in, direction)
        if next_price == self.state.sqrt_price_x96:
            return 0
        return self.amount_out(self.state.sqrt_price_x96, next_price, direction)

    def swap_human(self, amount_in: Decimal, direction: SwapDirection) -> Decimal:
        """get_amount_out on human amounts; input is floored to token decimals."""
        token_in = self.token_in(direction)
        token_out = self.token_out(direction)
        raw_in = TokenAmount.floor_from_human(amount_in, token_in.decimals).raw
        raw_out = self.get_amount_out(raw_in, direction)
        return TokenAmount(raw=raw_out, decimals=token_out.decimals).human

    @classmethod
    def from_chain(
        cls,
        address: Address,
        client: ChainClient,
        base_symbol: Optional[str] = None,
        venue_name: str = "Uniswap",
    ) -> "UniswapV3Pool":
        """
        Fetch tokens, fee tier and current state from on-chain.
        """
        token0_addr = _call_address(client, address, "token0()")
        token1_addr = _call_address(client, address, "token1()")
        fee_units = _call_uint(client, address, "fee()", "uint24")
        state = read_pool_state(address, client)

        token0 = _build_token(client, token0_addr)
        token1 = _build_token(client, token1_addr)
        base_token = None
        if base_symbol is not None:
            base_token = _match_symbol([token0, token1], base_symbol)

        return cls(
            address=address,
            token0=token0,
            token1=token1,
            state=state,
            fee_bps=fee_units_to_bps(fee_units),
            base_token=base_token,
            venue_name=venue_name,
        )


def read_pool_state(address: Address, client: ChainClient) -> PoolState:
    """slot0().sqrtPriceX96 and liquidity() at the latest block."""
    raw = _eth_call(client, address, "slot0()")
    sqrt_price_x96 = decode(SLOT0_TYPES, raw)[0]
    liquidity = _call_uint(client, address, "liquidity()", "uint128")
    return PoolState(sqrt_price_x96=int(sqrt_price_x96), liquidity=liquidity)


def normalize_symbol(symbol: str) -> str:
    symbol = symbol.upper()
    if symbol == "ETH":
        return "WETH"
    return symbol


def _match_symbol(tokens: list[Token], symbol: str) -> Token:
    wanted = normalize_symbol(symbol)
    for token in tokens:
        if normalize_symbol(token.symbol) == wanted:
            return token
    raise ValueError(f"{symbol} is not a token of this pool")


def _selector(signature: str) -> bytes:
    return keccak(text=signature)[:4]


def _eth_call(client: ChainClient, to: Address, signature: str) -> bytes:
    return client.eth_call(to, _selector(signature))


def _call_address(client: ChainClient, target: Address, signature: str) -> Address:
    (decoded,) = decode(["address"], _eth_call(client, target, signature))
    return Address.from_string(decoded)


def _call_uint(client: ChainClient, target: Address, signature: str, abi_type: str) -> int:
    (decoded,) = decode([abi_type], _eth_call(client, target, signature))
    return int(decoded)


def _build_token(client: ChainClient, token_address: Address) -> Token:
    symbol = _call_token_string(client, token_address, "symbol()")
    decimals = _call_uint(client, token_address, "decimals()", "uint8")
    return Token(address=token_address, symbol=symbol, decimals=decimals)


def _call_token_string(client: ChainClient, token: Address, signature: str) -> str:
    raw = _eth_call(client, token, signature)
    if len(raw) == 32:
        return raw.rstrip(b"\x00").decode("utf-8", errors="ignore")
    (decoded,) = decode(["string"], raw)
    return str(decoded)
