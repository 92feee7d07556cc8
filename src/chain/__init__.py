from .client import ChainClient
from .errors import ChainError, RPCError

__all__ = [
    "ChainClient",
    "ChainError",
    "RPCError",
]
