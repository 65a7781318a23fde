"""
Orca Whirlpool Protocol

Program constants, PDA derivation, instruction builders, account parsers
and the pure quote math used by the action modules.
"""

from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    NATIVE_MINT,
    MIN_TICK_INDEX,
    MAX_TICK_INDEX,
    TICK_ARRAY_SIZE,
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
    SPLASH_POOL_TICK_SPACING,
)
from .pda import (
    is_canonical_order,
    order_mints,
    resolve_pool,
    get_whirlpool_address,
    get_fee_tier_address,
    get_tick_array_address,
    get_position_address,
    get_oracle_address,
    get_token_badge_address,
    get_lock_config_address,
    get_associated_token_address,
)
from .math import (
    tick_index_to_sqrt_price,
    sqrt_price_to_tick_index,
    price_to_sqrt_price,
    sqrt_price_to_price,
    price_to_tick_index,
    tick_index_to_price,
    get_initializable_tick_index,
    get_full_range_tick_indexes,
    get_tick_array_start_tick_index,
    is_full_range_only,
    position_status,
)
from .quote_math import (
    increase_liquidity_quote,
    increase_liquidity_quote_a,
    increase_liquidity_quote_b,
    decrease_liquidity_quote,
    decrease_liquidity_quote_a,
    decrease_liquidity_quote_b,
    collect_fees_quote,
    collect_rewards_quote,
    swap_quote_by_input_token,
    swap_quote_by_output_token,
)

__all__ = [
    # Constants
    "WHIRLPOOL_PROGRAM_ID",
    "TOKEN_PROGRAM_ID",
    "TOKEN_2022_PROGRAM_ID",
    "NATIVE_MINT",
    "MIN_TICK_INDEX",
    "MAX_TICK_INDEX",
    "TICK_ARRAY_SIZE",
    "MIN_SQRT_PRICE",
    "MAX_SQRT_PRICE",
    "SPLASH_POOL_TICK_SPACING",
    # Addresses
    "is_canonical_order",
    "order_mints",
    "resolve_pool",
    "get_whirlpool_address",
    "get_fee_tier_address",
    "get_tick_array_address",
    "get_position_address",
    "get_oracle_address",
    "get_token_badge_address",
    "get_lock_config_address",
    "get_associated_token_address",
    # Math
    "tick_index_to_sqrt_price",
    "sqrt_price_to_tick_index",
    "price_to_sqrt_price",
    "sqrt_price_to_price",
    "price_to_tick_index",
    "tick_index_to_price",
    "get_initializable_tick_index",
    "get_full_range_tick_indexes",
    "get_tick_array_start_tick_index",
    "is_full_range_only",
    "position_status",
    # Quotes
    "increase_liquidity_quote",
    "increase_liquidity_quote_a",
    "increase_liquidity_quote_b",
    "decrease_liquidity_quote",
    "decrease_liquidity_quote_a",
    "decrease_liquidity_quote_b",
    "collect_fees_quote",
    "collect_rewards_quote",
    "swap_quote_by_input_token",
    "swap_quote_by_output_token",
]
