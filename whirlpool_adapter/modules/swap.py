"""
Swap Module

Quotes a swap against the five tick arrays around the current price and
builds the swap_v2 instruction with its token accounts.
"""

import logging
from typing import List, Optional, Tuple

from solders.pubkey import Pubkey

from ..config import WhirlpoolDefaults, resolve_defaults
from ..errors import PreconditionViolation
from ..infra import AccountStateProber, CorrelationContext, log_with_correlation
from ..protocols.whirlpool import instructions as ix
from ..protocols.whirlpool.constants import TICK_ARRAY_SIZE
from ..protocols.whirlpool.math import get_tick_array_start_tick_index
from ..protocols.whirlpool.parser import parse_tick_array
from ..protocols.whirlpool.pda import get_oracle_address, get_tick_array_address
from ..protocols.whirlpool.quote_math import swap_quote_by_input_token, swap_quote_by_output_token
from ..types.accounts import TickArrayState, WhirlpoolState
from ..types.params import SwapType
from ..types.plans import InstructionPlan, SwapInstructions
from .accounts import fetch_current_epoch, fetch_mints, fetch_whirlpool
from .common import Signer, resolve_funder, resolve_slippage
from .quote import get_current_transfer_fee, tick_arrays_or_default
from .token_accounts import prepare_token_accounts_instructions

logger = logging.getLogger(__name__)


def swap_tick_array_start_indexes(whirlpool: WhirlpoolState) -> List[int]:
    """Start indexes of the current tick array and two neighbours on each side"""
    start_index = get_tick_array_start_tick_index(whirlpool.tick_current_index, whirlpool.tick_spacing)
    offset = whirlpool.tick_spacing * TICK_ARRAY_SIZE
    return [
        start_index,
        start_index + offset,
        start_index + offset * 2,
        start_index - offset,
        start_index - offset * 2,
    ]


async def fetch_swap_tick_arrays(
    prober: AccountStateProber,
    pool_address: Pubkey,
    whirlpool: WhirlpoolState,
) -> Tuple[List[Pubkey], List[TickArrayState]]:
    """
    Fetch the five swap tick arrays in one batch

    Returns:
        Tuple of (addresses, tick arrays) in start-index order
        [current, +1, +2, -1, -2]; missing arrays come back empty
    """
    start_indexes = swap_tick_array_start_indexes(whirlpool)
    addresses = [get_tick_array_address(pool_address, start)[0] for start in start_indexes]
    accounts = await prober.fetch_accounts(addresses)
    fetched = [parse_tick_array(account.data) if account is not None else None for account in accounts]
    return addresses, tick_arrays_or_default(start_indexes, fetched)


async def swap_instructions(
    rpc,
    pool_address: Pubkey,
    amount: int,
    specified_mint: Pubkey,
    swap_type: SwapType = SwapType.EXACT_IN,
    slippage_tolerance_bps: Optional[int] = None,
    signer: Signer = None,
    defaults: Optional[WhirlpoolDefaults] = None,
) -> SwapInstructions:
    """
    Build a swap

    Args:
        rpc: Async RPC client
        pool_address: Pool to swap through
        amount: Exact input (EXACT_IN) or exact output (EXACT_OUT) amount
        specified_mint: Mint that amount refers to
        swap_type: SwapType.EXACT_IN or SwapType.EXACT_OUT
        slippage_tolerance_bps: Defaults to the configured tolerance
        signer: Token owner; defaults to the configured funder
        defaults: Explicit defaults

    Returns:
        SwapInstructions with an ExactInSwapQuote or ExactOutSwapQuote

    Raises:
        PreconditionViolation: If specified_mint is not one of the pool's mints
        QuoteError: If the swap runs past the fetched tick arrays
    """
    defaults = resolve_defaults(defaults)
    signer = resolve_funder(signer, defaults)
    slippage_tolerance_bps = resolve_slippage(slippage_tolerance_bps, defaults)

    with CorrelationContext("swap"):
        prober = AccountStateProber(rpc)
        whirlpool = await fetch_whirlpool(prober, pool_address)
        if specified_mint not in (whirlpool.token_mint_a, whirlpool.token_mint_b):
            raise PreconditionViolation.invalid_mint(str(specified_mint), str(pool_address))

        mint_a, mint_b = await fetch_mints(prober, [whirlpool.token_mint_a, whirlpool.token_mint_b])
        tick_array_addresses, tick_arrays = await fetch_swap_tick_arrays(prober, pool_address, whirlpool)
        current_epoch = await fetch_current_epoch(rpc)
        transfer_fee_a = get_current_transfer_fee(mint_a, current_epoch)
        transfer_fee_b = get_current_transfer_fee(mint_b, current_epoch)

        specified_token_a = specified_mint == whirlpool.token_mint_a
        exact_in = swap_type == SwapType.EXACT_IN
        a_to_b = specified_token_a == exact_in

        if exact_in:
            quote = swap_quote_by_input_token(
                amount, specified_token_a, slippage_tolerance_bps,
                whirlpool, tick_arrays, transfer_fee_a, transfer_fee_b,
            )
            max_in = quote.token_in
            other_amount_threshold = quote.token_min_out
        else:
            quote = swap_quote_by_output_token(
                amount, specified_token_a, slippage_tolerance_bps,
                whirlpool, tick_arrays, transfer_fee_a, transfer_fee_b,
            )
            max_in = quote.token_max_in
            other_amount_threshold = quote.token_max_in

        token_accounts = await prepare_token_accounts_instructions(
            rpc,
            signer,
            {
                whirlpool.token_mint_a: max_in if a_to_b else 0,
                whirlpool.token_mint_b: 0 if a_to_b else max_in,
            },
            defaults,
        )
        plan = InstructionPlan()
        plan.add_token_accounts(token_accounts)

        current, up_1, up_2, down_1, down_2 = tick_array_addresses
        # The program walks toward lower ticks when a_to_b
        if a_to_b:
            swap_arrays, supplemental = [current, down_1, down_2], [up_1, up_2]
        else:
            swap_arrays, supplemental = [current, up_1, up_2], [down_1, down_2]

        plan.core.append(ix.swap_v2(
            mint_a.token_program,
            mint_b.token_program,
            signer,
            pool_address,
            whirlpool.token_mint_a,
            whirlpool.token_mint_b,
            token_accounts.token_account_addresses[whirlpool.token_mint_a],
            whirlpool.token_vault_a,
            token_accounts.token_account_addresses[whirlpool.token_mint_b],
            whirlpool.token_vault_b,
            swap_arrays[0],
            swap_arrays[1],
            swap_arrays[2],
            get_oracle_address(pool_address)[0],
            amount,
            other_amount_threshold,
            0,
            exact_in,
            a_to_b,
            supplemental_tick_arrays=supplemental,
        ))

        log_with_correlation(
            logger, logging.INFO,
            f"Swap {swap_type.value} {amount} of {specified_mint} in {pool_address} "
            f"(a_to_b={a_to_b}, threshold {other_amount_threshold})",
            "swap",
            instructions=len(plan),
        )
        return SwapInstructions(plan=plan, quote=quote)
