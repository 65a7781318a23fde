"""
Quote type definitions

All amounts are raw integer token units (u64), liquidity and sqrt prices
are u128 Q64.64 integers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class PositionStatus(Enum):
    """Where the current price sits relative to a tick range"""
    PRICE_IN_RANGE = "in_range"
    PRICE_BELOW_RANGE = "below_range"
    PRICE_ABOVE_RANGE = "above_range"
    INVALID = "invalid"


@dataclass(frozen=True)
class TickRange:
    tick_lower_index: int
    tick_upper_index: int


@dataclass(frozen=True)
class TransferFee:
    """
    Token-2022 transfer fee active for the current epoch

    Attributes:
        fee_bps: Fee in basis points of the transferred amount
        max_fee: Absolute cap on the fee, in raw token units
    """
    fee_bps: int
    max_fee: int


@dataclass
class IncreaseLiquidityQuote:
    liquidity_delta: int = 0
    token_est_a: int = 0
    token_est_b: int = 0
    token_max_a: int = 0
    token_max_b: int = 0


@dataclass
class DecreaseLiquidityQuote:
    liquidity_delta: int = 0
    token_est_a: int = 0
    token_est_b: int = 0
    token_min_a: int = 0
    token_min_b: int = 0


@dataclass
class CollectFeesQuote:
    fee_owed_a: int = 0
    fee_owed_b: int = 0


@dataclass
class CollectRewardQuote:
    rewards_owed: int = 0


@dataclass
class CollectRewardsQuote:
    rewards: List[CollectRewardQuote] = field(
        default_factory=lambda: [CollectRewardQuote() for _ in range(3)]
    )


@dataclass
class ExactInSwapQuote:
    """
    Quote for a swap with a fixed input amount

    Attributes:
        token_in: Input amount including transfer fee
        token_est_out: Expected output after transfer fee
        token_min_out: Minimum output under slippage (used as threshold)
        trade_fee: Total pool fee paid, in input token units
    """
    token_in: int = 0
    token_est_out: int = 0
    token_min_out: int = 0
    trade_fee: int = 0


@dataclass
class ExactOutSwapQuote:
    """
    Quote for a swap with a fixed output amount

    Attributes:
        token_out: Output amount after transfer fee
        token_est_in: Expected input including transfer fee
        token_max_in: Maximum input under slippage (used as threshold)
        trade_fee: Total pool fee paid, in input token units
    """
    token_out: int = 0
    token_est_in: int = 0
    token_max_in: int = 0
    trade_fee: int = 0
