"""
Create Pool Module

Builds the instructions that initialize a new Whirlpool and the tick arrays
a first full-range or at-price position will need.
"""

import logging
from typing import Optional

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ..config import WhirlpoolDefaults, resolve_defaults
from ..errors import PreconditionViolation
from ..infra import AccountStateProber, CorrelationContext, gather_all, log_with_correlation
from ..protocols.whirlpool import instructions as ix
from ..protocols.whirlpool.constants import SPLASH_POOL_TICK_SPACING, TICK_ARRAY_ACCOUNT_SIZE, WHIRLPOOL_SIZE
from ..protocols.whirlpool.math import (
    get_full_range_tick_indexes,
    get_tick_array_start_tick_index,
    price_to_sqrt_price,
    sqrt_price_to_tick_index,
)
from ..protocols.whirlpool.pda import (
    get_fee_tier_address,
    get_tick_array_address,
    get_token_badge_address,
    resolve_pool,
)
from ..types.plans import CreatePoolInstructions, InstructionPlan
from .accounts import fetch_mints
from .common import Signer, resolve_funder
from .cost import RentCalculator, get_token_size_for_mint

logger = logging.getLogger(__name__)


async def create_splash_pool_instructions(
    rpc,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    initial_price: float = 1.0,
    funder: Signer = None,
    defaults: Optional[WhirlpoolDefaults] = None,
) -> CreatePoolInstructions:
    """Create a full-range-only pool (tick spacing 32896)"""
    return await create_concentrated_liquidity_pool_instructions(
        rpc, token_mint_a, token_mint_b, SPLASH_POOL_TICK_SPACING, initial_price, funder, defaults,
    )


async def create_concentrated_liquidity_pool_instructions(
    rpc,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    tick_spacing: int,
    initial_price: float = 1.0,
    funder: Signer = None,
    defaults: Optional[WhirlpoolDefaults] = None,
) -> CreatePoolInstructions:
    """
    Build instructions to create a pool

    Args:
        rpc: Async RPC client
        token_mint_a: First mint in canonical order
        token_mint_b: Second mint in canonical order
        tick_spacing: Fee tier tick spacing
        initial_price: Price of token A in token B (decimal-adjusted)
        funder: Payer; defaults to the configured funder
        defaults: Explicit defaults

    Returns:
        CreatePoolInstructions with the pool address and the rent the
        pool, both vaults and the initialized tick arrays lock up.
        Both vault keypairs are in additional_signers.

    Raises:
        PreconditionViolation: If no funder is set, the mints are not in
            canonical order, or the price is not positive
        MintNotFound: If either mint is absent
    """
    defaults = resolve_defaults(defaults)
    funder = resolve_funder(funder, defaults)
    whirlpools_config = defaults.whirlpools_config_address
    pool_address = resolve_pool(whirlpools_config, token_mint_a, token_mint_b, tick_spacing)
    if initial_price <= 0:
        raise PreconditionViolation.invalid_price(f"initial price must be positive, got {initial_price}")

    with CorrelationContext("create_pool"):
        prober = AccountStateProber(rpc)
        (mint_a, mint_b), rent = await gather_all(
            fetch_mints(prober, [token_mint_a, token_mint_b]),
            RentCalculator.fetch(rpc),
        )
        initial_sqrt_price = price_to_sqrt_price(initial_price, mint_a.decimals, mint_b.decimals)

        vault_a = Keypair()
        vault_b = Keypair()
        plan = InstructionPlan(additional_signers=[vault_a, vault_b])
        plan.core.append(ix.initialize_pool_v2(
            whirlpools_config,
            token_mint_a,
            token_mint_b,
            get_token_badge_address(whirlpools_config, token_mint_a)[0],
            get_token_badge_address(whirlpools_config, token_mint_b)[0],
            funder,
            pool_address,
            vault_a.pubkey(),
            vault_b.pubkey(),
            get_fee_tier_address(whirlpools_config, tick_spacing)[0],
            mint_a.token_program,
            mint_b.token_program,
            tick_spacing,
            initial_sqrt_price,
        ))
        cost = rent.total([
            get_token_size_for_mint(mint_a),
            get_token_size_for_mint(mint_b),
            WHIRLPOOL_SIZE,
        ])

        full_range = get_full_range_tick_indexes(tick_spacing)
        start_indexes = []
        for tick_index in (
            full_range.tick_lower_index,
            full_range.tick_upper_index,
            sqrt_price_to_tick_index(initial_sqrt_price),
        ):
            start_index = get_tick_array_start_tick_index(tick_index, tick_spacing)
            if start_index not in start_indexes:
                start_indexes.append(start_index)

        for start_index in start_indexes:
            plan.core.append(ix.initialize_tick_array(
                pool_address,
                funder,
                get_tick_array_address(pool_address, start_index)[0],
                start_index,
            ))
            cost += rent.minimum_balance(TICK_ARRAY_ACCOUNT_SIZE)

        log_with_correlation(
            logger, logging.INFO,
            f"Create pool {pool_address}: {len(plan)} instructions, cost {cost} lamports",
            "create_pool",
            tick_spacing=tick_spacing,
            tick_arrays=len(start_indexes),
        )
        return CreatePoolInstructions(plan=plan, initialization_cost=cost, pool_address=pool_address)
