"""
Locked Position Module

Moves a locked position NFT to another wallet. The lock stays in force;
only the holder of the NFT changes.
"""

import logging
from typing import Optional

from solders.pubkey import Pubkey

from ..config import WhirlpoolDefaults, resolve_defaults
from ..errors import PositionNotFound
from ..infra import AccountStateProber, CorrelationContext, log_with_correlation
from ..protocols import spl
from ..protocols.whirlpool import instructions as ix
from ..protocols.whirlpool.constants import TOKEN_2022_PROGRAM_ID
from ..protocols.whirlpool.parser import parse_lock_config
from ..protocols.whirlpool.pda import get_associated_token_address, get_lock_config_address
from ..types.plans import InstructionPlan, TransferLockedPositionInstructions
from .accounts import fetch_position_by_mint
from .common import Signer, resolve_funder

logger = logging.getLogger(__name__)


async def transfer_locked_position_instructions(
    rpc,
    position_mint: Pubkey,
    receiver: Pubkey,
    authority: Signer = None,
    defaults: Optional[WhirlpoolDefaults] = None,
) -> TransferLockedPositionInstructions:
    """
    Transfer a locked position to a new owner

    The receiver's Token-2022 ATA for the position NFT is created
    idempotently when it does not exist yet.

    Args:
        rpc: Async RPC client
        position_mint: Position NFT mint
        receiver: Wallet receiving the position
        authority: Current owner; defaults to the configured funder
        defaults: Explicit defaults

    Returns:
        TransferLockedPositionInstructions with the receiver's token account

    Raises:
        PositionNotFound: If the position does not exist or is not locked
    """
    defaults = resolve_defaults(defaults)
    authority = resolve_funder(authority, defaults)

    with CorrelationContext("transfer_locked_position"):
        prober = AccountStateProber(rpc)
        position_address, _, position_mint_state = await fetch_position_by_mint(prober, position_mint)

        lock_config_address = get_lock_config_address(position_address)[0]
        destination = get_associated_token_address(receiver, position_mint, TOKEN_2022_PROGRAM_ID)
        lock_account, destination_account = await prober.fetch_accounts([lock_config_address, destination])
        if lock_account is None:
            raise PositionNotFound.not_locked(str(position_mint))
        lock_config = parse_lock_config(lock_account.data)

        plan = InstructionPlan()
        if destination_account is None:
            plan.setup.append(spl.create_associated_token_account_idempotent(
                authority, destination, receiver, position_mint, TOKEN_2022_PROGRAM_ID,
            ))
        plan.core.append(ix.transfer_locked_position(
            authority,
            authority,
            position_address,
            position_mint,
            get_associated_token_address(authority, position_mint, position_mint_state.token_program),
            destination,
            lock_config_address,
        ))

        log_with_correlation(
            logger, logging.INFO,
            f"Transfer locked position {position_mint} to {receiver} (lock type {lock_config.lock_type})",
            "transfer_locked_position",
            instructions=len(plan),
        )
        return TransferLockedPositionInstructions(plan=plan, destination_token_account=destination)
