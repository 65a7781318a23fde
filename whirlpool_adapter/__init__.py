"""
Whirlpool Adapter - async instruction builder for Orca Whirlpools (Solana CLMM)

Builds ordered, minimal instruction lists for:
- Pool creation (concentrated liquidity and splash pools)
- Opening, increasing, decreasing and closing positions
- Harvesting fees and rewards
- Swaps (exact in / exact out)
- Transferring locked positions

Nothing is signed or submitted; callers get the instructions, the extra
signers, quotes and rent cost back.

Usage:
    from whirlpool_adapter import AsyncRpcClient, set_funder, swap_instructions

    set_funder(wallet.pubkey())
    async with AsyncRpcClient("https://api.mainnet-beta.solana.com") as rpc:
        result = await swap_instructions(rpc, pool, 1_000_000, usdc_mint)
        tx_instructions = result.instructions
"""

from .config import (
    WhirlpoolDefaults,
    WhirlpoolsNetwork,
    NativeMintWrappingStrategy,
    DEFAULT_SLIPPAGE_TOLERANCE_BPS,
    get_defaults,
    set_whirlpools_config_address,
    set_funder,
    set_slippage_tolerance_bps,
    set_native_mint_wrapping_strategy,
    set_enforce_token_balance_check,
    reset_configuration,
    setup_logging,
    enable_file_logging,
)
from .errors import (
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
from .types import (
    LiquidityParam,
    TokenAParam,
    TokenBParam,
    SwapType,
    InitializedPool,
    UninitializedPool,
    PositionInfo,
    PositionBundleInfo,
)
from .infra import AsyncRpcClient, RpcClientConfig
from .protocols.whirlpool import SPLASH_POOL_TICK_SPACING
from .modules import (
    create_concentrated_liquidity_pool_instructions,
    create_splash_pool_instructions,
    open_full_range_position_instructions,
    open_position_instructions,
    open_position_instructions_with_tick_bounds,
    increase_liquidity_instructions,
    decrease_liquidity_instructions,
    close_position_instructions,
    harvest_position_instructions,
    swap_instructions,
    transfer_locked_position_instructions,
    fetch_concentrated_liquidity_pool,
    fetch_splash_pool,
    fetch_fee_tiers,
    fetch_whirlpools_by_token_pair,
    fetch_positions_for_owner,
    fetch_positions_in_whirlpool,
)

__all__ = [
    # Config
    "WhirlpoolDefaults",
    "WhirlpoolsNetwork",
    "NativeMintWrappingStrategy",
    "DEFAULT_SLIPPAGE_TOLERANCE_BPS",
    "SPLASH_POOL_TICK_SPACING",
    "get_defaults",
    "set_whirlpools_config_address",
    "set_funder",
    "set_slippage_tolerance_bps",
    "set_native_mint_wrapping_strategy",
    "set_enforce_token_balance_check",
    "reset_configuration",
    "setup_logging",
    "enable_file_logging",
    # Errors
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
    # Types
    "LiquidityParam",
    "TokenAParam",
    "TokenBParam",
    "SwapType",
    "InitializedPool",
    "UninitializedPool",
    "PositionInfo",
    "PositionBundleInfo",
    # Transport
    "AsyncRpcClient",
    "RpcClientConfig",
    # Actions
    "create_concentrated_liquidity_pool_instructions",
    "create_splash_pool_instructions",
    "open_full_range_position_instructions",
    "open_position_instructions",
    "open_position_instructions_with_tick_bounds",
    "increase_liquidity_instructions",
    "decrease_liquidity_instructions",
    "close_position_instructions",
    "harvest_position_instructions",
    "swap_instructions",
    "transfer_locked_position_instructions",
    # Fetchers
    "fetch_concentrated_liquidity_pool",
    "fetch_splash_pool",
    "fetch_fee_tiers",
    "fetch_whirlpools_by_token_pair",
    "fetch_positions_for_owner",
    "fetch_positions_in_whirlpool",
]

__version__ = "0.1.0"
