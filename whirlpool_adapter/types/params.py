"""
Caller-facing parameter variants

A liquidity change is specified by exactly one of: a liquidity delta, an
amount of token A, or an amount of token B. Each variant is its own frozen
dataclass; the Quote Adapter is the only place that dispatches on them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


@dataclass(frozen=True)
class LiquidityParam:
    """Target liquidity delta (u128)"""
    liquidity: int


@dataclass(frozen=True)
class TokenAParam:
    """Target amount of token A (u64)"""
    amount: int


@dataclass(frozen=True)
class TokenBParam:
    """Target amount of token B (u64)"""
    amount: int


IncreaseLiquidityParam = Union[LiquidityParam, TokenAParam, TokenBParam]
DecreaseLiquidityParam = Union[LiquidityParam, TokenAParam, TokenBParam]


class SwapType(Enum):
    """Whether the specified amount is the swap input or output"""
    EXACT_IN = "exact_in"
    EXACT_OUT = "exact_out"
