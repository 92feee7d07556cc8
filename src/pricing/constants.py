"""Mainnet addresses and fee tiers for the default USDC/WETH pool."""

from core.base_types import Address

from .uniswap_v3_pool import Token

# V3 fee tiers in Uniswap units (hundredths of a basis point)
V3_FEE_LOWEST = 100  # 0.01%
V3_FEE_LOW = 500  # 0.05%
V3_FEE_MEDIUM = 3000  # 0.30%
V3_FEE_HIGH = 10000  # 1.00%

USDC_WETH_500_POOL = Address("0x88e6A0c2dDD26FEEb64F039a2c41296FcB3f5640")

USDC = Token(Address("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"), "USDC", 6)
WETH = Token(Address("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"), "WETH", 18)
