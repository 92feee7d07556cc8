"""
Block-driven runner around the detector.

Each new block: read the pool's slot0/liquidity, fetch a depth snapshot,
run one detection cycle, log what it found. Snapshot failures skip the
block; the next block is a fresh attempt. Signals only, never trades.
"""

from __future__ import annotations

import argparse
import csv
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from eth_abi.exceptions import DecodingError

import config
from chain.client import ChainClient
from chain.errors import ChainError
from core.base_types import Address
from core.errors import ArbError
from exchange.client import ExchangeClient
from pricing.uniswap_v3_pool import UniswapV3Pool, read_pool_state
from strategy.detector import ArbConfig, ArbitrageDetector
from strategy.signal import LegOrder, ProfitResult

logger = logging.getLogger(__name__)

CSV_FIELDS = [
    "timestamp",
    "block",
    "direction",
    "leg_order",
    "venue",
    "optimal_size",
    "profit",
    "unit",
]


class ArbWatcher:
    """
    Poll for new blocks and run the detector once per block.
    """

    def __init__(
        self,
        chain_client: ChainClient,
        exchange_client: ExchangeClient,
        pool: UniswapV3Pool,
        arb_config: ArbConfig,
        symbol: str = "ETH/USDC",
        depth: int = 100,
        log_csv: Optional[Path] = None,
    ):
        self._chain = chain_client
        self._exchange = exchange_client
        self._pool = pool
        self._detector = ArbitrageDetector(arb_config)
        self._symbol = symbol
        self._depth = depth
        self._log_csv = log_csv
        self._last_block: Optional[int] = None
        self.running = False

    @property
    def last_block(self) -> Optional[int]:
        return self._last_block

    def poll_once(self) -> Optional[list[ProfitResult]]:
        """Run a cycle if a new block arrived; None when there was none."""
        try:
            block_number = self._chain.block_number()
        except (ChainError, RuntimeError) as exc:
            logger.warning("block number unavailable, retrying next poll: %s", exc)
            return None
        if self._last_block is not None and block_number <= self._last_block:
            return None
        self._last_block = block_number
        return self.on_block(block_number)

    def on_block(self, block_number: int) -> list[ProfitResult]:
        logger.info("block %s", block_number)
        try:
            state = read_pool_state(self._pool.address, self._chain)
            book = self._exchange.fetch_depth_book(self._symbol, self._depth)
        except (ChainError, DecodingError, ArbError, RuntimeError) as exc:
            logger.warning("block %s skipped: snapshot failed: %s", block_number, exc)
            return []

        results = self._detector.detect(self._pool.with_state(state), book)
        if self._log_csv is not None:
            for result in results:
                _append_opportunity_log(self._log_csv, block_number, result)
        return results

    def run(self, poll_interval: float = 1.0, max_blocks: Optional[int] = None) -> None:
        self.running = True
        blocks_seen = 0
        logger.info(
            "watching %s against %s", self._pool.address.checksum, self._symbol
        )
        while self.running:
            if self.poll_once() is not None:
                blocks_seen += 1
                if max_blocks is not None and blocks_seen >= max_blocks:
                    break
            time.sleep(poll_interval)
        self.running = False

    def stop(self) -> None:
        self.running = False


def _append_opportunity_log(
    filepath: Path, block_number: int, result: ProfitResult
) -> None:
    file_exists = filepath.exists()
    row = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "block": block_number,
        "direction": result.direction.value,
        "leg_order": result.leg_order.value,
        "venue": result.venue_name,
        "optimal_size": str(result.optimal_size),
        "profit": str(result.profit),
        "unit": result.profit_symbol,
    }
    with filepath.open("a", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=CSV_FIELDS)
        if not file_exists:
            writer.writeheader()
        writer.writerow(row)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pool vs order book arbitrage watcher")
    parser.add_argument("--rpc-url", help="Ethereum RPC URL (default: RPC_URL env)")
    parser.add_argument("--pool", help="Uniswap V3 pool address override")
    parser.add_argument("--base", default="WETH", help="Pool token used as base")
    parser.add_argument("--symbol", default="ETH/USDC", help="Exchange symbol")
    parser.add_argument(
        "--leg-order",
        choices=[order.value for order in LegOrder],
        help="Which venue takes the first leg",
    )
    parser.add_argument("--depth", type=int, default=100, help="Order book levels")
    parser.add_argument(
        "--poll-interval", type=float, default=1.0, help="Seconds between polls"
    )
    parser.add_argument("--log-csv", help="Append opportunities to this CSV file")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    parser.add_argument(
        "--once", action="store_true", help="Run a single cycle and exit"
    )
    return parser


def main() -> None:
    args = _build_parser().parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    rpc_url = args.rpc_url or config.get_env("RPC_URL", required=True)
    if rpc_url is None:
        raise SystemExit("RPC_URL is required")
    chain_client = ChainClient([rpc_url])

    overrides: dict = {}
    if args.leg_order:
        overrides["leg_order"] = LegOrder(args.leg_order)
    if args.pool:
        overrides["pool_address"] = Address.from_string(args.pool)
    arb_config = config.load_arb_config(**overrides)

    pool = UniswapV3Pool.from_chain(
        arb_config.pool_address,
        chain_client,
        base_symbol=args.base,
        venue_name=arb_config.pool_venue,
    )
    arb_config = config.load_arb_config(
        base_token=pool.base, quote_token=pool.quote, **overrides
    )
    exchange_client = ExchangeClient(config.BINANCE_CONFIG)

    watcher = ArbWatcher(
        chain_client,
        exchange_client,
        pool,
        arb_config,
        symbol=args.symbol,
        depth=args.depth,
        log_csv=Path(args.log_csv) if args.log_csv else None,
    )
    if args.once:
        for result in watcher.on_block(chain_client.block_number()):
            print(result.to_dict())
        return
    try:
        watcher.run(poll_interval=args.poll_interval)
    except KeyboardInterrupt:
        logger.info("stopped")


if __name__ == "__main__":
    main()
