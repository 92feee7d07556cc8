import importlib
import os
from decimal import Decimal
from pathlib import Path

from core.base_types import Address
from strategy.detector import ArbConfig
from strategy.signal import LegOrder

_ENV_LOADED = False


def _load_env() -> None:
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    try:
        dotenv = importlib.import_module("dotenv")
    except ImportError as exc:  # pragma: no cover
        raise SystemExit("python-dotenv is required (pip install -e .)") from exc
    env_path = Path(__file__).resolve().parent / ".env"
    dotenv.load_dotenv(dotenv_path=env_path)
    _ENV_LOADED = True


def get_env(
    name: str, default: str | None = None, required: bool = False
) -> str | None:
    _load_env()
    value = os.environ.get(name, default)
    if required and (value is None or value == ""):
        raise SystemExit(f"{name} env var is required")
    return value


BINANCE_CONFIG = {
    "exchange_id": "binance",
    "apiKey": get_env("BINANCE_API_KEY"),
    "secret": get_env("BINANCE_SECRET"),
    "sandbox": False,
    "options": {"defaultType": "spot"},
    "enableRateLimit": True,
}


def load_arb_config(**overrides) -> ArbConfig:
    """
    ArbConfig for the mainnet USDC/WETH pool, tuned from ARB_* env vars.
    Keyword overrides win over the environment.
    """
    values: dict = {}
    pool_address = get_env("ARB_POOL_ADDRESS")
    if pool_address:
        values["pool_address"] = Address.from_string(pool_address)
    leg_order = get_env("ARB_LEG_ORDER")
    if leg_order:
        values["leg_order"] = LegOrder(leg_order.lower())
    for key, env_name in (
        ("min_size", "ARB_MIN_SIZE"),
        ("size_resolution", "ARB_SIZE_RESOLUTION"),
        ("book_fee_bps", "ARB_BOOK_FEE_BPS"),
    ):
        raw = get_env(env_name)
        if raw:
            values[key] = Decimal(raw)
    max_iterations = get_env("ARB_MAX_ITERATIONS")
    if max_iterations:
        values["max_iterations"] = int(max_iterations)
    values.update(overrides)
    return ArbConfig.mainnet_usdc_weth(**values)
