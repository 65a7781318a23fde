"""
Position Module

Lists positions and position bundles held by a wallet, or positions
opened in a pool.
"""

import logging
from typing import List

import base58
from solders.pubkey import Pubkey

from ..infra import AccountStateProber, CorrelationContext, gather_all, log_with_correlation
from ..protocols.whirlpool.constants import (
    POSITION_BUNDLE_ACCOUNT_SIZE,
    POSITION_BUNDLE_DISCRIMINATOR,
    POSITION_DISCRIMINATOR,
    POSITION_SIZE,
    TOKEN_2022_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    WHIRLPOOL_PROGRAM_ID,
)
from ..protocols.whirlpool.parser import parse_position, parse_position_bundle, parse_token_account
from ..protocols.whirlpool.pda import get_bundled_position_address, get_position_address, get_position_bundle_address
from ..types.pool import PositionBundleInfo, PositionInfo, PositionOrBundle

logger = logging.getLogger(__name__)

# Position layout: discriminator (8) | whirlpool (32) | position_mint (32) | ...
POSITION_WHIRLPOOL_OFFSET = 8


def _is_whirlpool_account(account, discriminator: bytes, size: int) -> bool:
    return (
        account is not None
        and account.owner == WHIRLPOOL_PROGRAM_ID
        and len(account.data) == size
        and account.data[:8] == discriminator
    )


async def _fetch_bundled_positions(prober: AccountStateProber, bundles: List[PositionBundleInfo]) -> None:
    """Fill each bundle's positions from the open bits of its bitmap"""
    slots = [
        (bundle, get_bundled_position_address(bundle.data.position_bundle_mint, index)[0])
        for bundle in bundles
        for index in bundle.data.open_indexes()
    ]
    accounts = await prober.fetch_accounts([address for _, address in slots])

    for (bundle, address), account in zip(slots, accounts):
        if not _is_whirlpool_account(account, POSITION_DISCRIMINATOR, POSITION_SIZE):
            logger.debug(f"Skipping bundled position {address}: no position account")
            continue
        bundle.positions.append(
            PositionInfo(address=address, data=parse_position(account.data), token_program=bundle.token_program)
        )


async def fetch_positions_for_owner(rpc, owner: Pubkey) -> List[PositionOrBundle]:
    """
    Positions and position bundles whose NFT is held by owner

    Every token account holding exactly one token is a candidate. Both its
    position PDA and its position bundle PDA are derived and fetched in one
    batch; bundles are then expanded into their open bundled positions.
    Both Token and Token-2022 NFTs are covered.

    Returns:
        PositionInfo and PositionBundleInfo entries, in token account order
    """
    with CorrelationContext("fetch_positions"):
        token_accounts, token_2022_accounts = await gather_all(
            rpc.get_token_accounts_by_owner(owner, TOKEN_PROGRAM_ID),
            rpc.get_token_accounts_by_owner(owner, TOKEN_2022_PROGRAM_ID),
        )

        candidates = []
        for account in list(token_accounts) + list(token_2022_accounts):
            state = parse_token_account(account)
            if state.amount == 1:
                candidates.append((
                    get_position_address(state.mint)[0],
                    get_position_bundle_address(state.mint)[0],
                    account.owner,
                ))

        prober = AccountStateProber(rpc)
        accounts = await prober.fetch_account_map(
            [position for position, _, _ in candidates] + [bundle for _, bundle, _ in candidates]
        )

        results: List[PositionOrBundle] = []
        bundles: List[PositionBundleInfo] = []
        for position_address, bundle_address, token_program in candidates:
            account = accounts[position_address]
            if _is_whirlpool_account(account, POSITION_DISCRIMINATOR, POSITION_SIZE):
                results.append(PositionInfo(
                    address=position_address, data=parse_position(account.data), token_program=token_program,
                ))

            account = accounts[bundle_address]
            if _is_whirlpool_account(account, POSITION_BUNDLE_DISCRIMINATOR, POSITION_BUNDLE_ACCOUNT_SIZE):
                bundle = PositionBundleInfo(
                    address=bundle_address, data=parse_position_bundle(account.data), token_program=token_program,
                )
                bundles.append(bundle)
                results.append(bundle)

        await _fetch_bundled_positions(prober, bundles)

        log_with_correlation(
            logger, logging.INFO,
            f"Found {len(results) - len(bundles)} positions and {len(bundles)} bundles for {owner}",
            "fetch_positions",
            candidates=len(candidates),
            bundled_positions=sum(len(bundle.positions) for bundle in bundles),
        )
        return results


async def fetch_positions_in_whirlpool(rpc, whirlpool: Pubkey) -> List[PositionInfo]:
    """
    All positions opened in a pool

    The token program of each position comes from its mint's owner.
    """
    with CorrelationContext("fetch_pool_positions"):
        filters = [
            {"dataSize": POSITION_SIZE},
            {"memcmp": {"offset": POSITION_WHIRLPOOL_OFFSET, "bytes": base58.b58encode(bytes(whirlpool)).decode()}},
        ]
        accounts = await rpc.get_program_accounts(WHIRLPOOL_PROGRAM_ID, filters)
        decoded = [(account.address, parse_position(account.data)) for account in accounts]

        mint_accounts = await AccountStateProber(rpc).fetch_accounts(
            [position.position_mint for _, position in decoded]
        )
        positions = []
        for (address, position), mint_account in zip(decoded, mint_accounts):
            if mint_account is None:
                logger.debug(f"Skipping position {address}: mint {position.position_mint} not found")
                continue
            positions.append(PositionInfo(address=address, data=position, token_program=mint_account.owner))

        log_with_correlation(
            logger, logging.INFO,
            f"Found {len(positions)} positions in {whirlpool}",
            "fetch_pool_positions",
        )
        return positions
