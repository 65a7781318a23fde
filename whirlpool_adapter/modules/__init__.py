"""
Action modules for the Whirlpool adapter

Provides:
- Pool creation: create_concentrated_liquidity_pool_instructions, create_splash_pool_instructions
- Positions: open / increase / decrease / close / harvest
- Swap: swap_instructions
- Locked positions: transfer_locked_position_instructions
- Fetchers: pools, fee tiers and positions
- Token account provisioning and quote dispatch shared by the above
"""

from .create_pool import create_concentrated_liquidity_pool_instructions, create_splash_pool_instructions
from .increase_liquidity import (
    open_full_range_position_instructions,
    open_position_instructions,
    open_position_instructions_with_tick_bounds,
    increase_liquidity_instructions,
)
from .decrease_liquidity import decrease_liquidity_instructions, close_position_instructions
from .harvest import harvest_position_instructions
from .swap import swap_instructions
from .lock import transfer_locked_position_instructions
from .pool import (
    fetch_concentrated_liquidity_pool,
    fetch_splash_pool,
    fetch_fee_tiers,
    fetch_whirlpools_by_token_pair,
)
from .position import fetch_positions_for_owner, fetch_positions_in_whirlpool
from .token_accounts import prepare_token_accounts_instructions
from .quote import get_increase_liquidity_quote, get_decrease_liquidity_quote, get_current_transfer_fee
from .cost import RentCalculator, get_token_size_for_mint

__all__ = [
    # Pool creation
    "create_concentrated_liquidity_pool_instructions",
    "create_splash_pool_instructions",
    # Positions
    "open_full_range_position_instructions",
    "open_position_instructions",
    "open_position_instructions_with_tick_bounds",
    "increase_liquidity_instructions",
    "decrease_liquidity_instructions",
    "close_position_instructions",
    "harvest_position_instructions",
    # Swap
    "swap_instructions",
    # Locked positions
    "transfer_locked_position_instructions",
    # Fetchers
    "fetch_concentrated_liquidity_pool",
    "fetch_splash_pool",
    "fetch_fee_tiers",
    "fetch_whirlpools_by_token_pair",
    "fetch_positions_for_owner",
    "fetch_positions_in_whirlpool",
    # Shared
    "prepare_token_accounts_instructions",
    "get_increase_liquidity_quote",
    "get_decrease_liquidity_quote",
    "get_current_transfer_fee",
    "RentCalculator",
    "get_token_size_for_mint",
]
