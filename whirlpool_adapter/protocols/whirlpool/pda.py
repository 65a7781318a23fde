"""
Whirlpool PDA derivation

Every address the assemblers query or reference is derived here, so that the
account that is probed and the account that is put in an instruction can
never drift apart.
"""

import struct
from typing import Tuple

from solders.pubkey import Pubkey

from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
)
from ...errors import PreconditionViolation


def is_canonical_order(mint_a: Pubkey, mint_b: Pubkey) -> bool:
    """True when mint_a sorts strictly before mint_b by raw bytes."""
    return bytes(mint_a) < bytes(mint_b)


def order_mints(mint_1: Pubkey, mint_2: Pubkey) -> Tuple[Pubkey, Pubkey]:
    """Return the two mints in canonical (byte-wise) order."""
    if is_canonical_order(mint_1, mint_2):
        return mint_1, mint_2
    return mint_2, mint_1


def get_whirlpool_address(
    whirlpools_config: Pubkey,
    mint_a: Pubkey,
    mint_b: Pubkey,
    tick_spacing: int,
) -> Tuple[Pubkey, int]:
    """Derive whirlpool PDA. Mints are used as given."""
    return Pubkey.find_program_address(
        [
            b"whirlpool",
            bytes(whirlpools_config),
            bytes(mint_a),
            bytes(mint_b),
            struct.pack("<H", tick_spacing),
        ],
        WHIRLPOOL_PROGRAM_ID,
    )


def resolve_pool(
    whirlpools_config: Pubkey,
    mint_a: Pubkey,
    mint_b: Pubkey,
    tick_spacing: int,
) -> Pubkey:
    """
    Resolve a pool address from its identity.

    Mints presented out of canonical order are rejected rather than swapped,
    so that one pool never answers to two perceived identities.

    Raises:
        PreconditionViolation: If mint_a does not sort before mint_b
    """
    if not is_canonical_order(mint_a, mint_b):
        raise PreconditionViolation.mints_not_ordered(str(mint_a), str(mint_b))
    return get_whirlpool_address(whirlpools_config, mint_a, mint_b, tick_spacing)[0]


def get_fee_tier_address(whirlpools_config: Pubkey, tick_spacing: int) -> Tuple[Pubkey, int]:
    return Pubkey.find_program_address(
        [b"fee_tier", bytes(whirlpools_config), struct.pack("<H", tick_spacing)],
        WHIRLPOOL_PROGRAM_ID,
    )


def get_tick_array_address(whirlpool: Pubkey, start_tick_index: int) -> Tuple[Pubkey, int]:
    """Tick array seed is the decimal string of the start index."""
    return Pubkey.find_program_address(
        [b"tick_array", bytes(whirlpool), str(start_tick_index).encode()],
        WHIRLPOOL_PROGRAM_ID,
    )


def get_position_address(position_mint: Pubkey) -> Tuple[Pubkey, int]:
    return Pubkey.find_program_address(
        [b"position", bytes(position_mint)],
        WHIRLPOOL_PROGRAM_ID,
    )


def get_position_bundle_address(position_bundle_mint: Pubkey) -> Tuple[Pubkey, int]:
    return Pubkey.find_program_address(
        [b"position_bundle", bytes(position_bundle_mint)],
        WHIRLPOOL_PROGRAM_ID,
    )


def get_bundled_position_address(position_bundle_mint: Pubkey, bundle_index: int) -> Tuple[Pubkey, int]:
    """Position at bundle_index of a bundle; the index seed is its decimal string"""
    return Pubkey.find_program_address(
        [b"bundled_position", bytes(position_bundle_mint), str(bundle_index).encode()],
        WHIRLPOOL_PROGRAM_ID,
    )


def get_oracle_address(whirlpool: Pubkey) -> Tuple[Pubkey, int]:
    return Pubkey.find_program_address(
        [b"oracle", bytes(whirlpool)],
        WHIRLPOOL_PROGRAM_ID,
    )


def get_token_badge_address(whirlpools_config: Pubkey, mint: Pubkey) -> Tuple[Pubkey, int]:
    return Pubkey.find_program_address(
        [b"token_badge", bytes(whirlpools_config), bytes(mint)],
        WHIRLPOOL_PROGRAM_ID,
    )


def get_lock_config_address(position: Pubkey) -> Tuple[Pubkey, int]:
    return Pubkey.find_program_address(
        [b"lock_config", bytes(position)],
        WHIRLPOOL_PROGRAM_ID,
    )


def get_whirlpools_config_extension_address(whirlpools_config: Pubkey) -> Tuple[Pubkey, int]:
    return Pubkey.find_program_address(
        [b"config_extension", bytes(whirlpools_config)],
        WHIRLPOOL_PROGRAM_ID,
    )


def get_associated_token_address(
    owner: Pubkey,
    mint: Pubkey,
    token_program_id: Pubkey = TOKEN_PROGRAM_ID,
) -> Pubkey:
    """Associated token account for (owner, mint) under the given token program."""
    address, _ = Pubkey.find_program_address(
        [bytes(owner), bytes(token_program_id), bytes(mint)],
        ASSOCIATED_TOKEN_PROGRAM_ID,
    )
    return address
