"""
Infrastructure layer for Whirlpool Adapter

Provides:
- AsyncRpcClient: async HTTP RPC wrapper with retry logic
- AccountStateProber: batched account fetching
- gather_all: concurrent awaits that cancel siblings on failure
- Correlation ID helpers for log tracing
"""

from .rpc import AsyncRpcClient, RpcClientConfig, decode_account
from .prober import AccountStateProber, gather_all
from .tracing import (
    CorrelationContext,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
    log_with_correlation,
)

__all__ = [
    "AsyncRpcClient",
    "RpcClientConfig",
    "decode_account",
    "AccountStateProber",
    "gather_all",
    "CorrelationContext",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
    "log_with_correlation",
]
