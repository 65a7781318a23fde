"""
Account fetch helpers shared by the assemblers

Thin wrappers that fetch through AccountStateProber, decode with the
protocol parsers, and raise the matching AccountNotFound subclass when a
required account is absent.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from solders.pubkey import Pubkey

from ..errors import MintNotFound, PoolNotFound, PositionNotFound, RpcError
from ..infra import AccountStateProber
from ..protocols.whirlpool.parser import parse_mint, parse_position, parse_whirlpool
from ..protocols.whirlpool.pda import get_position_address
from ..types.accounts import MintState, PositionState, WhirlpoolState

logger = logging.getLogger(__name__)


async def fetch_whirlpool(prober: AccountStateProber, address: Pubkey) -> WhirlpoolState:
    """Fetch and decode a pool, raising PoolNotFound if absent"""
    account = await prober.fetch_account(address)
    if account is None:
        raise PoolNotFound.not_found(str(address))
    return parse_whirlpool(account.data)


async def fetch_mints(prober: AccountStateProber, addresses: Sequence[Pubkey]) -> List[MintState]:
    """
    Fetch mints in one batch

    Raises:
        MintNotFound: If any mint does not exist
    """
    accounts = await prober.fetch_accounts(addresses)
    mints = []
    for address, account in zip(addresses, accounts):
        if account is None:
            raise MintNotFound.not_found(str(address))
        mints.append(parse_mint(account))
    return mints


async def fetch_maybe_mints(
    prober: AccountStateProber,
    addresses: Sequence[Pubkey],
) -> List[Optional[MintState]]:
    accounts = await prober.fetch_accounts(addresses)
    return [parse_mint(account) if account is not None else None for account in accounts]


async def fetch_position_by_mint(
    prober: AccountStateProber,
    position_mint: Pubkey,
) -> Tuple[Pubkey, PositionState, MintState]:
    """
    Fetch a position and its NFT mint together

    Returns:
        Tuple of (position address, decoded position, decoded position mint)

    Raises:
        PositionNotFound: If the position account does not exist
        MintNotFound: If the position mint does not exist
    """
    position_address = get_position_address(position_mint)[0]
    position_account, mint_account = await prober.fetch_accounts([position_address, position_mint])
    if position_account is None:
        raise PositionNotFound.not_found(str(position_mint))
    if mint_account is None:
        raise MintNotFound.not_found(str(position_mint))
    return position_address, parse_position(position_account.data), parse_mint(mint_account)


async def fetch_current_epoch(rpc) -> int:
    epoch_info = await rpc.get_epoch_info()
    if not epoch_info or "epoch" not in epoch_info:
        raise RpcError.invalid_response("", "getEpochInfo returned no epoch")
    return int(epoch_info["epoch"])
