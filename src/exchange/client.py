# exchange/client.py

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import ccxt

from .orderbook import DepthBook

logger = logging.getLogger(__name__)


class ExchangeClient:
    """
    Depth-of-book reader around a ccxt exchange (Binance by default).

    Requests are paced by ccxt's built-in rate limiter. Transient failures
    (every ccxt.NetworkError: timeouts, rate limits, maintenance) are retried
    with exponential backoff; exhausted retries and exchange rejections are
    raised as RuntimeError so a caller can skip the cycle.
    """

    # consumed here, never forwarded to ccxt
    _CLIENT_KEYS = frozenset({"exchange_id", "sandbox", "max_retries", "backoff_base"})

    def __init__(self, config: dict[str, Any], validate: bool = True):
        exchange_id = str(config.get("exchange_id", "binance"))
        exchange_cls = getattr(ccxt, exchange_id, None)
        if exchange_cls is None:
            raise ValueError(f"Unknown ccxt exchange: {exchange_id}")
        ccxt_config = {
            key: value for key, value in config.items() if key not in self._CLIENT_KEYS
        }
        ccxt_config.setdefault("enableRateLimit", True)
        self._exchange = exchange_cls(ccxt_config)
        if config.get("sandbox"):
            self._exchange.set_sandbox_mode(True)
        self._max_retries = int(config.get("max_retries", 3))
        self._backoff_base = float(config.get("backoff_base", 0.5))
        if validate:
            self._with_retries("load_markets", self._exchange.load_markets)

    def fetch_depth_book(self, symbol: str, limit: int = 100) -> DepthBook:
        """L2 snapshot of ``symbol`` with up to ``limit`` levels per side."""
        raw = self._with_retries(
            "fetch_order_book", self._exchange.fetch_order_book, symbol, limit
        )
        book = DepthBook.from_levels(raw.get("bids") or [], raw.get("asks") or [])
        logger.info(
            "depth %s: %s bids / %s asks (nonce %s)",
            symbol,
            len(book.bids),
            len(book.asks),
            raw.get("nonce"),
        )
        return book

    def _with_retries(self, name: str, func: Callable[..., Any], *args: Any) -> Any:
        attempt = 0
        while True:
            try:
                return func(*args)
            except ccxt.NetworkError as exc:
                attempt += 1
                if attempt > self._max_retries:
                    raise RuntimeError(
                        f"{name} failed after {attempt} attempts: "
                        f"{exc.__class__.__name__}"
                    ) from exc
                delay = self._backoff_base * (2 ** (attempt - 1))
                logger.warning(
                    "%s retry %s/%s in %.2fs: %s",
                    name,
                    attempt,
                    self._max_retries,
                    delay,
                    exc.__class__.__name__,
                )
                time.sleep(delay)
            except ccxt.BaseError as exc:
                raise RuntimeError(f"{name} rejected by exchange: {exc}") from exc
