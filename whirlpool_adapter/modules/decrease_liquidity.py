"""
Decrease Liquidity Module

Removes liquidity from a position, or empties and closes it.
"""

import logging
from typing import Optional

from solders.instruction import Instruction
from solders.pubkey import Pubkey

from ..config import WhirlpoolDefaults, resolve_defaults
from ..errors import ConfigurationError
from ..infra import AccountStateProber, CorrelationContext, log_with_correlation
from ..protocols.whirlpool import instructions as ix
from ..protocols.whirlpool.constants import TOKEN_2022_PROGRAM_ID, TOKEN_PROGRAM_ID
from ..protocols.whirlpool.pda import get_associated_token_address
from ..types.params import DecreaseLiquidityParam, LiquidityParam
from ..types.plans import ClosePositionInstructions, DecreaseLiquidityInstructions, InstructionPlan
from ..types.quotes import TickRange
from .accounts import fetch_current_epoch, fetch_mints, fetch_position_by_mint, fetch_whirlpool
from .common import Signer, resolve_funder, resolve_slippage, tick_array_for
from .harvest import (
    collect_instructions,
    load_position_snapshot,
    position_token_account_for,
    required_collect_mints,
)
from .quote import get_current_transfer_fee, get_decrease_liquidity_quote
from .token_accounts import prepare_token_accounts_instructions

logger = logging.getLogger(__name__)


def _close_instruction(
    position_mint_program: Pubkey,
    authority: Pubkey,
    position_address: Pubkey,
    position_mint: Pubkey,
    position_token_account: Pubkey,
) -> Instruction:
    """Close variant matching the token program of the position NFT"""
    if position_mint_program == TOKEN_PROGRAM_ID:
        return ix.close_position(
            authority, authority, position_address, position_mint, position_token_account, TOKEN_PROGRAM_ID,
        )
    if position_mint_program == TOKEN_2022_PROGRAM_ID:
        return ix.close_position_with_token_extensions(
            authority, authority, position_address, position_mint, position_token_account,
        )
    raise ConfigurationError.unknown_token_program(str(position_mint_program))


async def decrease_liquidity_instructions(
    rpc,
    position_mint: Pubkey,
    param: DecreaseLiquidityParam,
    slippage_tolerance_bps: Optional[int] = None,
    authority: Signer = None,
    defaults: Optional[WhirlpoolDefaults] = None,
) -> DecreaseLiquidityInstructions:
    """
    Remove liquidity from a position

    Args:
        rpc: Async RPC client
        position_mint: Position NFT mint
        param: Liquidity, token A amount or token B amount to withdraw
        slippage_tolerance_bps: Defaults to the configured tolerance
        authority: Position owner; defaults to the configured funder
        defaults: Explicit defaults

    Returns:
        DecreaseLiquidityInstructions with the quote whose minimums are
        passed to decrease_liquidity_v2
    """
    defaults = resolve_defaults(defaults)
    authority = resolve_funder(authority, defaults)
    slippage_tolerance_bps = resolve_slippage(slippage_tolerance_bps, defaults)

    with CorrelationContext("decrease_liquidity"):
        prober = AccountStateProber(rpc)
        position_address, position, position_mint_state = await fetch_position_by_mint(prober, position_mint)
        whirlpool = await fetch_whirlpool(prober, position.whirlpool)
        mint_a, mint_b = await fetch_mints(prober, [whirlpool.token_mint_a, whirlpool.token_mint_b])
        tick_spacing = whirlpool.tick_spacing

        current_epoch = await fetch_current_epoch(rpc)
        quote = get_decrease_liquidity_quote(
            param,
            slippage_tolerance_bps,
            whirlpool.sqrt_price,
            TickRange(position.tick_lower_index, position.tick_upper_index),
            get_current_transfer_fee(mint_a, current_epoch),
            get_current_transfer_fee(mint_b, current_epoch),
        )

        token_accounts = await prepare_token_accounts_instructions(
            rpc, authority, [whirlpool.token_mint_a, whirlpool.token_mint_b], defaults,
        )
        plan = InstructionPlan()
        plan.add_token_accounts(token_accounts)

        plan.core.append(ix.decrease_liquidity_v2(
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
            quote.token_min_a,
            quote.token_min_b,
        ))

        log_with_correlation(
            logger, logging.INFO,
            f"Decrease liquidity of {position_mint} by {quote.liquidity_delta}",
            "decrease_liquidity",
            instructions=len(plan),
        )
        return DecreaseLiquidityInstructions(plan=plan, quote=quote)


async def close_position_instructions(
    rpc,
    position_mint: Pubkey,
    slippage_tolerance_bps: Optional[int] = None,
    authority: Signer = None,
    defaults: Optional[WhirlpoolDefaults] = None,
) -> ClosePositionInstructions:
    """
    Withdraw everything from a position and close it

    Emits, in order: update_fees_and_rewards and decrease_liquidity_v2
    (only when the position has liquidity), collect_fees_v2 (only when
    fees are owed), one collect_reward_v2 per owed reward, then the close
    variant for the NFT's token program.

    Raises:
        PositionNotFound: If the position does not exist
        ConfigurationError: If the position NFT is owned by an unknown token program
    """
    defaults = resolve_defaults(defaults)
    authority = resolve_funder(authority, defaults)
    slippage_tolerance_bps = resolve_slippage(slippage_tolerance_bps, defaults)

    with CorrelationContext("close_position"):
        snapshot = await load_position_snapshot(rpc, position_mint)
        position = snapshot.position

        quote = get_decrease_liquidity_quote(
            LiquidityParam(position.liquidity),
            slippage_tolerance_bps,
            snapshot.whirlpool.sqrt_price,
            TickRange(position.tick_lower_index, position.tick_upper_index),
            get_current_transfer_fee(snapshot.mint_a, snapshot.current_epoch),
            get_current_transfer_fee(snapshot.mint_b, snapshot.current_epoch),
        )
        position_token_account = position_token_account_for(snapshot, authority)
        close = _close_instruction(
            snapshot.position_mint.token_program,
            authority,
            snapshot.position_address,
            position_mint,
            position_token_account,
        )

        token_accounts = await prepare_token_accounts_instructions(
            rpc,
            authority,
            required_collect_mints(snapshot, include_pool_mints=quote.liquidity_delta > 0),
            defaults,
        )

        plan = InstructionPlan()
        plan.add_token_accounts(token_accounts)
        if position.liquidity > 0:
            plan.core.append(ix.update_fees_and_rewards(
                position.whirlpool,
                snapshot.position_address,
                snapshot.tick_array_lower,
                snapshot.tick_array_upper,
            ))
        if quote.liquidity_delta > 0:
            plan.core.append(ix.decrease_liquidity_v2(
                position.whirlpool,
                snapshot.mint_a.token_program,
                snapshot.mint_b.token_program,
                authority,
                snapshot.position_address,
                position_token_account,
                snapshot.whirlpool.token_mint_a,
                snapshot.whirlpool.token_mint_b,
                token_accounts.token_account_addresses[snapshot.whirlpool.token_mint_a],
                token_accounts.token_account_addresses[snapshot.whirlpool.token_mint_b],
                snapshot.whirlpool.token_vault_a,
                snapshot.whirlpool.token_vault_b,
                snapshot.tick_array_lower,
                snapshot.tick_array_upper,
                quote.liquidity_delta,
                quote.token_min_a,
                quote.token_min_b,
            ))
        plan.core.extend(collect_instructions(snapshot, authority, position_token_account, token_accounts))
        plan.core.append(close)

        log_with_correlation(
            logger, logging.INFO,
            f"Close position {position_mint}: liquidity {quote.liquidity_delta}, "
            f"{len(snapshot.owed_reward_indexes())} reward(s) owed",
            "close_position",
            instructions=len(plan),
        )
        return ClosePositionInstructions(
            plan=plan,
            quote=quote,
            fees_quote=snapshot.fees_quote,
            rewards_quote=snapshot.rewards_quote,
        )
