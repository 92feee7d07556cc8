"""Read-only Ethereum JSON-RPC: block height and eth_call, nothing else."""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

import requests

from core.base_types import Address

from .errors import ChainError, RPCError, rpc_error_from

logger = logging.getLogger(__name__)


class ChainClient:
    """
    Reads the two things a pool snapshot needs: the latest block number and
    the result of an ``eth_call``.

    Endpoints are tried in order. Transport failures (timeouts, dropped
    connections, unparseable bodies) are retried ``max_retries`` times per
    endpoint with exponential backoff; a node that answers with an error is
    not retried and raises RPCError (ExecutionReverted for reverts).
    """

    def __init__(
        self,
        rpc_urls: list[str],
        timeout: float = 30,
        max_retries: int = 3,
        backoff_base: float = 0.5,
    ):
        if not rpc_urls:
            raise ValueError("rpc_urls must not be empty")
        self._rpc_urls = list(rpc_urls)
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._session = requests.Session()

    def block_number(self) -> int:
        return int(_expect_hex("eth_blockNumber", self._request("eth_blockNumber", [])), 16)

    def eth_call(self, to: Address, data: bytes, block: str = "latest") -> bytes:
        call = {"to": to.checksum, "data": "0x" + data.hex()}
        result = _expect_hex("eth_call", self._request("eth_call", [call, block]))
        return bytes.fromhex(result[2:])

    def _request(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        last_error: Optional[Exception] = None
        for url in self._rpc_urls:
            for attempt in range(self._max_retries):
                try:
                    return self._post(url, method, payload)
                except (
                    requests.Timeout,
                    requests.ConnectionError,
                    requests.exceptions.JSONDecodeError,
                ) as exc:
                    last_error = exc
                    delay = self._backoff_base * (2**attempt)
                    logger.warning(
                        "rpc %s via %s attempt %s/%s failed (%s), retrying in %.2fs",
                        method,
                        url,
                        attempt + 1,
                        self._max_retries,
                        exc.__class__.__name__,
                        delay,
                    )
                    time.sleep(delay)
        raise ChainError(f"{method} failed on every endpoint") from last_error

    def _post(self, url: str, method: str, payload: dict) -> Any:
        started = time.perf_counter()
        response = self._session.post(url, json=payload, timeout=self._timeout)
        logger.debug("rpc %s %s in %.3fs", method, url, time.perf_counter() - started)
        if response.status_code >= 400:
            raise RPCError(f"HTTP {response.status_code} from {url}", method=method)
        body = response.json()
        if body.get("error") is not None:
            raise rpc_error_from(method, body["error"])
        return body.get("result")


def _expect_hex(method: str, result: Any) -> str:
    if not isinstance(result, str) or not result.startswith("0x"):
        raise RPCError(f"{method} returned {result!r}, expected a hex string", method=method)
    return result
