"""
Harvest Module

Collects the fees and rewards a position has earned without changing its
liquidity. The owed-amount quoting and collect instruction building here
are shared with close_position_instructions.
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from solders.instruction import Instruction
from solders.pubkey import Pubkey

from ..config import WhirlpoolDefaults, resolve_defaults
from ..errors import AccountNotFound, MintNotFound
from ..infra import AccountStateProber, CorrelationContext, log_with_correlation
from ..protocols.whirlpool import instructions as ix
from ..protocols.whirlpool.parser import parse_tick_array
from ..protocols.whirlpool.pda import get_associated_token_address
from ..protocols.whirlpool.quote_math import collect_fees_quote, collect_rewards_quote
from ..types.accounts import MintState, PositionState, WhirlpoolState
from ..types.plans import HarvestPositionInstructions, InstructionPlan, TokenAccountInstructions
from ..types.quotes import CollectFeesQuote, CollectRewardsQuote
from .accounts import fetch_current_epoch, fetch_maybe_mints, fetch_position_by_mint, fetch_whirlpool
from .common import Signer, resolve_funder, tick_array_for, tick_in_array
from .quote import get_current_transfer_fee
from .token_accounts import prepare_token_accounts_instructions

logger = logging.getLogger(__name__)


@dataclass
class PositionSnapshot:
    """
    Everything needed to collect from or close a position

    Attributes:
        position_address: Position PDA
        position: Decoded position
        position_mint: Decoded position NFT mint
        whirlpool: Decoded pool
        mint_a: Pool token A mint
        mint_b: Pool token B mint
        reward_mints: Mint per reward slot, None for unused slots
        tick_array_lower: Tick array holding the lower bound
        tick_array_upper: Tick array holding the upper bound
        fees_quote: Fees owed now
        rewards_quote: Rewards owed now
        current_epoch: Epoch the transfer fees were read at
    """
    position_address: Pubkey
    position: PositionState
    position_mint: MintState
    whirlpool: WhirlpoolState
    mint_a: MintState
    mint_b: MintState
    reward_mints: List[Optional[MintState]]
    tick_array_lower: Pubkey
    tick_array_upper: Pubkey
    fees_quote: CollectFeesQuote
    rewards_quote: CollectRewardsQuote
    current_epoch: int

    @property
    def has_fees(self) -> bool:
        return self.fees_quote.fee_owed_a > 0 or self.fees_quote.fee_owed_b > 0

    def owed_reward_indexes(self) -> List[int]:
        return [i for i, reward in enumerate(self.rewards_quote.rewards) if reward.rewards_owed > 0]


async def load_position_snapshot(
    rpc,
    position_mint: Pubkey,
    current_timestamp: Optional[int] = None,
) -> PositionSnapshot:
    """
    Fetch a position with its pool, mints and tick arrays and quote what it is owed

    Raises:
        PositionNotFound: If the position does not exist
        PoolNotFound: If its pool does not exist
        MintNotFound: If a pool mint or an owed reward's mint is absent
    """
    prober = AccountStateProber(rpc)
    position_address, position, position_mint_state = await fetch_position_by_mint(prober, position_mint)
    whirlpool = await fetch_whirlpool(prober, position.whirlpool)
    tick_spacing = whirlpool.tick_spacing

    reward_mint_addresses = [reward.mint for reward in whirlpool.reward_infos if reward.initialized]
    _, lower_address = tick_array_for(position.whirlpool, position.tick_lower_index, tick_spacing)
    _, upper_address = tick_array_for(position.whirlpool, position.tick_upper_index, tick_spacing)

    mints = await fetch_maybe_mints(
        prober, [whirlpool.token_mint_a, whirlpool.token_mint_b] + reward_mint_addresses,
    )
    mint_by_address: Dict[Pubkey, MintState] = {mint.address: mint for mint in mints if mint is not None}
    for address in (whirlpool.token_mint_a, whirlpool.token_mint_b):
        if address not in mint_by_address:
            raise MintNotFound.not_found(str(address))

    lower_account, upper_account = await prober.fetch_accounts([lower_address, upper_address])
    for address, account in ((lower_address, lower_account), (upper_address, upper_account)):
        if account is None:
            raise AccountNotFound.not_found("Tick array", str(address))
    lower_tick = tick_in_array(parse_tick_array(lower_account.data), position.tick_lower_index, tick_spacing)
    upper_tick = tick_in_array(parse_tick_array(upper_account.data), position.tick_upper_index, tick_spacing)

    current_epoch = await fetch_current_epoch(rpc)
    mint_a = mint_by_address[whirlpool.token_mint_a]
    mint_b = mint_by_address[whirlpool.token_mint_b]
    reward_mints = [
        mint_by_address.get(reward.mint) if reward.initialized else None
        for reward in whirlpool.reward_infos
    ]

    fees_quote = collect_fees_quote(
        whirlpool,
        position,
        lower_tick,
        upper_tick,
        get_current_transfer_fee(mint_a, current_epoch),
        get_current_transfer_fee(mint_b, current_epoch),
    )
    rewards_quote = collect_rewards_quote(
        whirlpool,
        position,
        lower_tick,
        upper_tick,
        current_timestamp if current_timestamp is not None else int(time.time()),
        [get_current_transfer_fee(mint, current_epoch) for mint in reward_mints],
    )

    snapshot = PositionSnapshot(
        position_address=position_address,
        position=position,
        position_mint=position_mint_state,
        whirlpool=whirlpool,
        mint_a=mint_a,
        mint_b=mint_b,
        reward_mints=reward_mints,
        tick_array_lower=lower_address,
        tick_array_upper=upper_address,
        fees_quote=fees_quote,
        rewards_quote=rewards_quote,
        current_epoch=current_epoch,
    )
    for index in snapshot.owed_reward_indexes():
        if reward_mints[index] is None:
            raise MintNotFound.not_found(str(whirlpool.reward_infos[index].mint))
    return snapshot


def collect_instructions(
    snapshot: PositionSnapshot,
    authority: Pubkey,
    position_token_account: Pubkey,
    token_accounts: TokenAccountInstructions,
) -> List[Instruction]:
    """collect_fees_v2 and collect_reward_v2 for every non-zero owed amount"""
    whirlpool = snapshot.whirlpool
    position_whirlpool = snapshot.position.whirlpool
    instructions = []

    if snapshot.has_fees:
        instructions.append(ix.collect_fees_v2(
            position_whirlpool,
            authority,
            snapshot.position_address,
            position_token_account,
            whirlpool.token_mint_a,
            whirlpool.token_mint_b,
            token_accounts.token_account_addresses[whirlpool.token_mint_a],
            whirlpool.token_vault_a,
            token_accounts.token_account_addresses[whirlpool.token_mint_b],
            whirlpool.token_vault_b,
            snapshot.mint_a.token_program,
            snapshot.mint_b.token_program,
        ))

    for index in snapshot.owed_reward_indexes():
        reward_info = whirlpool.reward_infos[index]
        reward_mint = snapshot.reward_mints[index]
        instructions.append(ix.collect_reward_v2(
            position_whirlpool,
            authority,
            snapshot.position_address,
            position_token_account,
            token_accounts.token_account_addresses[reward_mint.address],
            reward_mint.address,
            reward_info.vault,
            reward_mint.token_program,
            index,
        ))
    return instructions


def position_token_account_for(snapshot: PositionSnapshot, authority: Pubkey) -> Pubkey:
    """Authority's ATA for the position NFT, under the NFT's token program"""
    return get_associated_token_address(
        authority, snapshot.position.position_mint, snapshot.position_mint.token_program,
    )


def required_collect_mints(snapshot: PositionSnapshot, include_pool_mints: bool) -> List[Pubkey]:
    """Mints that need a token account to receive collected amounts"""
    mints = []
    if include_pool_mints or snapshot.has_fees:
        mints.extend([snapshot.whirlpool.token_mint_a, snapshot.whirlpool.token_mint_b])
    for index in snapshot.owed_reward_indexes():
        mint = snapshot.whirlpool.reward_infos[index].mint
        if mint not in mints:
            mints.append(mint)
    return mints


async def harvest_position_instructions(
    rpc,
    position_mint: Pubkey,
    authority: Signer = None,
    defaults: Optional[WhirlpoolDefaults] = None,
) -> HarvestPositionInstructions:
    """
    Collect all fees and rewards owed to a position

    Owed amounts are refreshed on chain with update_fees_and_rewards when the
    position has liquidity; collect instructions are only emitted for
    non-zero amounts.

    Args:
        rpc: Async RPC client
        position_mint: Position NFT mint
        authority: Position owner; defaults to the configured funder
        defaults: Explicit defaults

    Returns:
        HarvestPositionInstructions with the fee and reward quotes
    """
    defaults = resolve_defaults(defaults)
    authority = resolve_funder(authority, defaults)

    with CorrelationContext("harvest"):
        snapshot = await load_position_snapshot(rpc, position_mint)
        token_accounts = await prepare_token_accounts_instructions(
            rpc, authority, required_collect_mints(snapshot, include_pool_mints=False), defaults,
        )
        position_token_account = position_token_account_for(snapshot, authority)

        plan = InstructionPlan()
        plan.add_token_accounts(token_accounts)
        if snapshot.position.liquidity > 0:
            plan.core.append(ix.update_fees_and_rewards(
                snapshot.position.whirlpool,
                snapshot.position_address,
                snapshot.tick_array_lower,
                snapshot.tick_array_upper,
            ))
        plan.core.extend(collect_instructions(snapshot, authority, position_token_account, token_accounts))

        log_with_correlation(
            logger, logging.INFO,
            f"Harvest {position_mint}: fees ({snapshot.fees_quote.fee_owed_a}, {snapshot.fees_quote.fee_owed_b}), "
            f"{len(snapshot.owed_reward_indexes())} reward(s) owed",
            "harvest",
            instructions=len(plan),
        )
        return HarvestPositionInstructions(
            plan=plan,
            fees_quote=snapshot.fees_quote,
            rewards_quote=snapshot.rewards_quote,
        )
