"""
Type definitions for Whirlpool Adapter
"""

from .accounts import (
    AccountInfo,
    WhirlpoolState,
    WhirlpoolRewardInfo,
    PositionState,
    PositionRewardInfo,
    TickState,
    TickArrayState,
    FeeTierState,
    WhirlpoolsConfigState,
    LockConfigState,
    PositionBundleState,
    MintState,
    TransferFeeConfig,
    TransferFeeEpoch,
    TokenAccountState,
)
from .params import (
    LiquidityParam,
    TokenAParam,
    TokenBParam,
    IncreaseLiquidityParam,
    DecreaseLiquidityParam,
    SwapType,
)
from .quotes import (
    PositionStatus,
    TickRange,
    TransferFee,
    IncreaseLiquidityQuote,
    DecreaseLiquidityQuote,
    CollectFeesQuote,
    CollectRewardQuote,
    CollectRewardsQuote,
    ExactInSwapQuote,
    ExactOutSwapQuote,
)
from .plans import (
    InstructionPlan,
    TokenAccountInstructions,
    CreatePoolInstructions,
    OpenPositionInstructions,
    IncreaseLiquidityInstructions,
    DecreaseLiquidityInstructions,
    ClosePositionInstructions,
    HarvestPositionInstructions,
    SwapInstructions,
    TransferLockedPositionInstructions,
)
from .pool import InitializedPool, UninitializedPool, PoolInfo, PositionInfo, PositionBundleInfo, PositionOrBundle

__all__ = [
    # Accounts
    "AccountInfo",
    "WhirlpoolState",
    "WhirlpoolRewardInfo",
    "PositionState",
    "PositionRewardInfo",
    "TickState",
    "TickArrayState",
    "FeeTierState",
    "WhirlpoolsConfigState",
    "LockConfigState",
    "PositionBundleState",
    "MintState",
    "TransferFeeConfig",
    "TransferFeeEpoch",
    "TokenAccountState",
    # Params
    "LiquidityParam",
    "TokenAParam",
    "TokenBParam",
    "IncreaseLiquidityParam",
    "DecreaseLiquidityParam",
    "SwapType",
    # Quotes
    "PositionStatus",
    "TickRange",
    "TransferFee",
    "IncreaseLiquidityQuote",
    "DecreaseLiquidityQuote",
    "CollectFeesQuote",
    "CollectRewardQuote",
    "CollectRewardsQuote",
    "ExactInSwapQuote",
    "ExactOutSwapQuote",
    # Plans
    "InstructionPlan",
    "TokenAccountInstructions",
    "CreatePoolInstructions",
    "OpenPositionInstructions",
    "IncreaseLiquidityInstructions",
    "DecreaseLiquidityInstructions",
    "ClosePositionInstructions",
    "HarvestPositionInstructions",
    "SwapInstructions",
    "TransferLockedPositionInstructions",
    # Pools
    "InitializedPool",
    "UninitializedPool",
    "PoolInfo",
    "PositionInfo",
    "PositionBundleInfo",
    "PositionOrBundle",
]
