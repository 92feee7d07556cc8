"""Failures of on-chain reads."""

from __future__ import annotations

from typing import Optional


class ChainError(Exception):
    """A chain read could not be completed on any endpoint."""


class RPCError(ChainError):
    """The node answered, but with an HTTP error status or a JSON-RPC error object."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        code: Optional[int] = None,
        data: Optional[object] = None,
    ):
        super().__init__(message)
        self.method = method
        self.code = code
        self.data = data


class ExecutionReverted(RPCError):
    """eth_call reverted: wrong target address, or not a V3 pool."""


def rpc_error_from(method: str, error: dict) -> RPCError:
    """Classify a JSON-RPC ``error`` object."""
    message = str(error.get("message", "RPC error"))
    error_cls = ExecutionReverted if "execution reverted" in message.lower() else RPCError
    return error_cls(message, method=method, code=error.get("code"), data=error.get("data"))
