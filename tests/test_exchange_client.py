from decimal import Decimal

import ccxt
import pytest

from exchange.client import ExchangeClient
from exchange.orderbook import DepthBook

RAW_BOOK = {
    "bids": [[1990.5, 1.0], [1991.0, 2.0], [1990.5, 0.5]],
    "asks": [[1995.0, 5.0], [1994.5, 0.5], [1999.0, 0.0]],
    "timestamp": 1700000000000,
    "nonce": 42,
}


def _client(**config):
    return ExchangeClient({"exchange_id": "binance", **config}, validate=False)


def test_unknown_exchange_id():
    with pytest.raises(ValueError, match="Unknown ccxt exchange"):
        ExchangeClient({"exchange_id": "not-an-exchange"}, validate=False)


def test_client_keys_are_not_forwarded_to_ccxt():
    client = _client(max_retries=5, backoff_base=0.1)
    assert client._exchange.enableRateLimit is True
    assert client._max_retries == 5


def test_fetch_depth_book_from_raw_ccxt_payload(monkeypatch):
    client = _client()
    captured = {}

    def fake_fetch(symbol, limit):
        captured["args"] = (symbol, limit)
        return RAW_BOOK

    monkeypatch.setattr(client._exchange, "fetch_order_book", fake_fetch)

    book = client.fetch_depth_book("ETH/USDC", limit=5)

    assert isinstance(book, DepthBook)
    assert captured["args"] == ("ETH/USDC", 5)
    assert book.best_bid.price == Decimal("1991.0")
    assert book.bids[1].quantity == Decimal("1.5")
    assert book.best_ask.price == Decimal("1994.5")
    assert len(book.asks) == 2


def test_empty_payload_gives_empty_book(monkeypatch):
    client = _client()
    monkeypatch.setattr(client._exchange, "fetch_order_book", lambda *a: {"bids": None})

    book = client.fetch_depth_book("ETH/USDC")
    assert book.best_bid is None
    assert book.best_ask is None


def test_transient_error_is_retried(monkeypatch):
    client = _client(max_retries=2)
    calls = {"count": 0}
    sleeps = []

    def flaky(*args):
        calls["count"] += 1
        if calls["count"] == 1:
            raise ccxt.RateLimitExceeded("slow down")
        return RAW_BOOK

    monkeypatch.setattr(client._exchange, "fetch_order_book", flaky)
    monkeypatch.setattr("exchange.client.time.sleep", sleeps.append)

    assert client.fetch_depth_book("ETH/USDC").best_bid.price == Decimal("1991.0")
    assert calls["count"] == 2
    assert sleeps == [0.5]


def test_retries_exhausted_raise_runtime_error(monkeypatch):
    client = _client(max_retries=1)
    calls = {"count": 0}

    def down(*args):
        calls["count"] += 1
        raise ccxt.RequestTimeout("slow")

    monkeypatch.setattr(client._exchange, "fetch_order_book", down)
    monkeypatch.setattr("exchange.client.time.sleep", lambda *_: None)

    with pytest.raises(RuntimeError, match="failed after 2 attempts"):
        client.fetch_depth_book("ETH/USDC")
    assert calls["count"] == 2


def test_exchange_rejection_is_not_retried(monkeypatch):
    client = _client()
    calls = {"count": 0}

    def bad_symbol(*args):
        calls["count"] += 1
        raise ccxt.BadSymbol("no such market")

    monkeypatch.setattr(client._exchange, "fetch_order_book", bad_symbol)

    with pytest.raises(RuntimeError, match="rejected by exchange"):
        client.fetch_depth_book("NOPE/USDC")
    assert calls["count"] == 1
