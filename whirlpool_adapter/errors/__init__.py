"""
Error definitions for the Whirlpool adapter
"""

from .exceptions import (
    ErrorCode,
    WhirlpoolAdapterError,
    RpcError,
    QuoteError,
    AccountNotFound,
    PoolNotFound,
    PositionNotFound,
    MintNotFound,
    AccountDecodeError,
    InsufficientFunds,
    PreconditionViolation,
    ConfigurationError,
)

__all__ = [
    "ErrorCode",
    "WhirlpoolAdapterError",
    "RpcError",
    "QuoteError",
    "AccountNotFound",
    "PoolNotFound",
    "PositionNotFound",
    "MintNotFound",
    "AccountDecodeError",
    "InsufficientFunds",
    "PreconditionViolation",
    "ConfigurationError",
]
