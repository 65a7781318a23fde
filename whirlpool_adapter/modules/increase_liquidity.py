"""
Increase Liquidity Module

Opens positions (by price range, by tick bounds, or full range) and adds
liquidity to existing positions.

Usage:
    result = await open_position_instructions(
        rpc, pool_address, TokenAParam(1_000_000), lower_price=0.9, upper_price=1.1,
    )
    signers = [wallet] + result.additional_signers
"""

import logging
from typing import Optional

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ..config import WhirlpoolDefaults, resolve_defaults
from ..errors import PreconditionViolation
from ..infra import AccountStateProber, CorrelationContext, gather_all, log_with_correlation
from ..protocols.whirlpool import instructions as ix
from ..protocols.whirlpool.constants import (
    MINT_SIZE,
    POSITION_METADATA_RENT,
    POSITION_SIZE,
    TICK_ARRAY_ACCOUNT_SIZE,
    TOKEN_2022_PROGRAM_ID,
)
from ..protocols.whirlpool.math import (
    get_full_range_tick_indexes,
    get_initializable_tick_index,
    is_full_range_only,
    is_tick_index_in_bounds,
    is_tick_initializable,
    order_tick_indexes,
    price_to_tick_index,
)
from ..protocols.whirlpool.pda import get_associated_token_address, get_position_address
from ..types.accounts import MintState, WhirlpoolState
from ..types.params import IncreaseLiquidityParam
from ..types.plans import IncreaseLiquidityInstructions, InstructionPlan, OpenPositionInstructions
from ..types.quotes import TickRange
from .accounts import fetch_current_epoch, fetch_mints, fetch_position_by_mint, fetch_whirlpool
from .common import Signer, resolve_funder, resolve_slippage, tick_array_for
from .cost import RentCalculator
from .quote import get_current_transfer_fee, get_increase_liquidity_quote
from .token_accounts import prepare_token_accounts_instructions

logger = logging.getLogger(__name__)


async def _load_pool(rpc, pool_address: Pubkey):
    prober = AccountStateProber(rpc)
    whirlpool = await fetch_whirlpool(prober, pool_address)
    mint_a, mint_b = await fetch_mints(prober, [whirlpool.token_mint_a, whirlpool.token_mint_b])
    return whirlpool, mint_a, mint_b


async def _open_position(
    rpc,
    pool_address: Pubkey,
    whirlpool: WhirlpoolState,
    mint_a: MintState,
    mint_b: MintState,
    param: IncreaseLiquidityParam,
    tick_range: TickRange,
    slippage_tolerance_bps: int,
    funder: Pubkey,
    defaults: WhirlpoolDefaults,
) -> OpenPositionInstructions:
    """Shared tail of every open-position variant; tick_range is already initializable"""
    tick_spacing = whirlpool.tick_spacing
    if tick_range.tick_lower_index == tick_range.tick_upper_index:
        raise PreconditionViolation.invalid_tick_range("lower and upper tick are equal")

    current_epoch = await fetch_current_epoch(rpc)
    quote = get_increase_liquidity_quote(
        param,
        slippage_tolerance_bps,
        whirlpool.sqrt_price,
        tick_range,
        get_current_transfer_fee(mint_a, current_epoch),
        get_current_transfer_fee(mint_b, current_epoch),
    )

    position_mint = Keypair()
    position_address = get_position_address(position_mint.pubkey())[0]
    position_token_account = get_associated_token_address(funder, position_mint.pubkey(), TOKEN_2022_PROGRAM_ID)

    lower_start, lower_tick_array = tick_array_for(pool_address, tick_range.tick_lower_index, tick_spacing)
    upper_start, upper_tick_array = tick_array_for(pool_address, tick_range.tick_upper_index, tick_spacing)

    prober = AccountStateProber(rpc)
    token_accounts, (lower_account, upper_account), rent = await gather_all(
        prepare_token_accounts_instructions(
            rpc,
            funder,
            {whirlpool.token_mint_a: quote.token_max_a, whirlpool.token_mint_b: quote.token_max_b},
            defaults,
        ),
        prober.fetch_accounts([lower_tick_array, upper_tick_array]),
        RentCalculator.fetch(rpc),
    )

    plan = InstructionPlan()
    plan.add_token_accounts(token_accounts)
    cost = rent.total([POSITION_SIZE, MINT_SIZE]) + POSITION_METADATA_RENT

    if lower_account is None:
        plan.core.append(ix.initialize_tick_array(pool_address, funder, lower_tick_array, lower_start))
        cost += rent.minimum_balance(TICK_ARRAY_ACCOUNT_SIZE)
    if upper_account is None and upper_start != lower_start:
        plan.core.append(ix.initialize_tick_array(pool_address, funder, upper_tick_array, upper_start))
        cost += rent.minimum_balance(TICK_ARRAY_ACCOUNT_SIZE)

    plan.core.append(ix.open_position_with_token_extensions(
        funder,
        funder,
        position_address,
        position_mint.pubkey(),
        position_token_account,
        pool_address,
        tick_range.tick_lower_index,
        tick_range.tick_upper_index,
        with_token_metadata_extension=True,
    ))
    plan.core.append(ix.increase_liquidity_v2(
        pool_address,
        mint_a.token_program,
        mint_b.token_program,
        funder,
        position_address,
        position_token_account,
        whirlpool.token_mint_a,
        whirlpool.token_mint_b,
        token_accounts.token_account_addresses[whirlpool.token_mint_a],
        token_accounts.token_account_addresses[whirlpool.token_mint_b],
        whirlpool.token_vault_a,
        whirlpool.token_vault_b,
        lower_tick_array,
        upper_tick_array,
        quote.liquidity_delta,
        quote.token_max_a,
        quote.token_max_b,
    ))
    plan.additional_signers.append(position_mint)

    log_with_correlation(
        logger, logging.INFO,
        f"Open position {position_mint.pubkey()} in {pool_address} "
        f"[{tick_range.tick_lower_index}, {tick_range.tick_upper_index}]: "
        f"liquidity {quote.liquidity_delta}, cost {cost} lamports",
        "open_position",
        instructions=len(plan),
    )
    return OpenPositionInstructions(
        plan=plan,
        quote=quote,
        initialization_cost=cost,
        position_mint=position_mint.pubkey(),
    )


async def open_full_range_position_instructions(
    rpc,
    pool_address: Pubkey,
    param: IncreaseLiquidityParam,
    slippage_tolerance_bps: Optional[int] = None,
    funder: Signer = None,
    defaults: Optional[WhirlpoolDefaults] = None,
) -> OpenPositionInstructions:
    """
    Open a position covering the whole price range

    This is the only way to open a position on a full-range-only pool
    (splash pools included).
    """
    defaults = resolve_defaults(defaults)
    funder = resolve_funder(funder, defaults)
    slippage_tolerance_bps = resolve_slippage(slippage_tolerance_bps, defaults)

    with CorrelationContext("open_position"):
        whirlpool, mint_a, mint_b = await _load_pool(rpc, pool_address)
        tick_range = get_full_range_tick_indexes(whirlpool.tick_spacing)
        return await _open_position(
            rpc, pool_address, whirlpool, mint_a, mint_b, param,
            tick_range, slippage_tolerance_bps, funder, defaults,
        )


async def open_position_instructions(
    rpc,
    pool_address: Pubkey,
    param: IncreaseLiquidityParam,
    lower_price: float,
    upper_price: float,
    slippage_tolerance_bps: Optional[int] = None,
    funder: Signer = None,
    defaults: Optional[WhirlpoolDefaults] = None,
) -> OpenPositionInstructions:
    """
    Open a position between two prices

    Prices are decimal-adjusted prices of token A in token B. They are
    converted to ticks and rounded outward to initializable ticks.

    Args:
        rpc: Async RPC client
        pool_address: Pool to open the position in
        param: Liquidity, token A amount or token B amount to deposit
        lower_price: Lower bound of the range
        upper_price: Upper bound of the range
        slippage_tolerance_bps: Defaults to the configured tolerance
        funder: Payer and position owner; defaults to the configured funder
        defaults: Explicit defaults

    Raises:
        PreconditionViolation: If a price is not positive, the pool is
            full-range-only, or no funder is set
        PoolNotFound: If the pool does not exist
    """
    defaults = resolve_defaults(defaults)
    funder = resolve_funder(funder, defaults)
    slippage_tolerance_bps = resolve_slippage(slippage_tolerance_bps, defaults)
    if lower_price <= 0 or upper_price <= 0:
        raise PreconditionViolation.invalid_price(
            f"prices must be positive, got {lower_price} and {upper_price}"
        )

    with CorrelationContext("open_position"):
        whirlpool, mint_a, mint_b = await _load_pool(rpc, pool_address)
        tick_spacing = whirlpool.tick_spacing
        if is_full_range_only(tick_spacing):
            raise PreconditionViolation.full_range_only(tick_spacing)

        lower_tick = price_to_tick_index(lower_price, mint_a.decimals, mint_b.decimals)
        upper_tick = price_to_tick_index(upper_price, mint_a.decimals, mint_b.decimals)
        ordered = order_tick_indexes(lower_tick, upper_tick)
        tick_range = TickRange(
            get_initializable_tick_index(ordered.tick_lower_index, tick_spacing, False),
            get_initializable_tick_index(ordered.tick_upper_index, tick_spacing, True),
        )
        return await _open_position(
            rpc, pool_address, whirlpool, mint_a, mint_b, param,
            tick_range, slippage_tolerance_bps, funder, defaults,
        )


async def open_position_instructions_with_tick_bounds(
    rpc,
    pool_address: Pubkey,
    param: IncreaseLiquidityParam,
    tick_lower_index: int,
    tick_upper_index: int,
    slippage_tolerance_bps: Optional[int] = None,
    funder: Signer = None,
    defaults: Optional[WhirlpoolDefaults] = None,
) -> OpenPositionInstructions:
    """
    Open a position between two explicit ticks

    Both ticks must be in bounds, multiples of the pool's tick spacing and
    strictly ordered.
    """
    defaults = resolve_defaults(defaults)
    funder = resolve_funder(funder, defaults)
    slippage_tolerance_bps = resolve_slippage(slippage_tolerance_bps, defaults)
    if tick_lower_index >= tick_upper_index:
        raise PreconditionViolation.invalid_tick_range(
            f"lower tick {tick_lower_index} must be below upper tick {tick_upper_index}"
        )
    for tick_index in (tick_lower_index, tick_upper_index):
        if not is_tick_index_in_bounds(tick_index):
            raise PreconditionViolation.invalid_tick_range(f"tick {tick_index} is out of bounds")

    with CorrelationContext("open_position"):
        whirlpool, mint_a, mint_b = await _load_pool(rpc, pool_address)
        tick_spacing = whirlpool.tick_spacing
        if is_full_range_only(tick_spacing):
            full_range = get_full_range_tick_indexes(tick_spacing)
            if (tick_lower_index, tick_upper_index) != (full_range.tick_lower_index, full_range.tick_upper_index):
                raise PreconditionViolation.full_range_only(tick_spacing)
        for tick_index in (tick_lower_index, tick_upper_index):
            if not is_tick_initializable(tick_index, tick_spacing):
                raise PreconditionViolation.invalid_tick_range(
                    f"tick {tick_index} is not a multiple of tick spacing {tick_spacing}"
                )

        return await _open_position(
            rpc, pool_address, whirlpool, mint_a, mint_b, param,
            TickRange(tick_lower_index, tick_upper_index),
            slippage_tolerance_bps, funder, defaults,
        )


async def increase_liquidity_instructions(
    rpc,
    position_mint: Pubkey,
    param: IncreaseLiquidityParam,
    slippage_tolerance_bps: Optional[int] = None,
    authority: Signer = None,
    defaults: Optional[WhirlpoolDefaults] = None,
) -> IncreaseLiquidityInstructions:
    """
    Add liquidity to an existing position

    The position's tick arrays already exist, so no initialization is
    emitted. Token accounts are provisioned with the quoted max amounts.

    Raises:
        PositionNotFound: If the position does not exist
    """
    defaults = resolve_defaults(defaults)
    authority = resolve_funder(authority, defaults)
    slippage_tolerance_bps = resolve_slippage(slippage_tolerance_bps, defaults)

    with CorrelationContext("increase_liquidity"):
        prober = AccountStateProber(rpc)
        position_address, position, position_mint_state = await fetch_position_by_mint(prober, position_mint)
        whirlpool, mint_a, mint_b = await _load_pool(rpc, position.whirlpool)
        tick_spacing = whirlpool.tick_spacing

        current_epoch = await fetch_current_epoch(rpc)
        quote = get_increase_liquidity_quote(
            param,
            slippage_tolerance_bps,
            whirlpool.sqrt_price,
            TickRange(position.tick_lower_index, position.tick_upper_index),
            get_current_transfer_fee(mint_a, current_epoch),
            get_current_transfer_fee(mint_b, current_epoch),
        )

        token_accounts = await prepare_token_accounts_instructions(
            rpc,
            authority,
            {whirlpool.token_mint_a: quote.token_max_a, whirlpool.token_mint_b: quote.token_max_b},
            defaults,
        )
        plan = InstructionPlan()
        plan.add_token_accounts(token_accounts)

        plan.core.append(ix.increase_liquidity_v2(
            position.whirlpool,
            mint_a.token_program,
            mint_b.token_program,
            authority,
            position_address,
            get_associated_token_address(authority, position_mint, position_mint_state.token_program),
            whirlpool.token_mint_a,
            whirlpool.token_mint_b,
            token_accounts.token_account_addresses[whirlpool.token_mint_a],
            token_accounts.token_account_addresses[whirlpool.token_mint_b],
            whirlpool.token_vault_a,
            whirlpool.token_vault_b,
            tick_array_for(position.whirlpool, position.tick_lower_index, tick_spacing)[1],
            tick_array_for(position.whirlpool, position.tick_upper_index, tick_spacing)[1],
            quote.liquidity_delta,
            quote.token_max_a,
            quote.token_max_b,
        ))

        log_with_correlation(
            logger, logging.INFO,
            f"Increase liquidity of {position_mint} by {quote.liquidity_delta}",
            "increase_liquidity",
            instructions=len(plan),
        )
        return IncreaseLiquidityInstructions(plan=plan, quote=quote)
