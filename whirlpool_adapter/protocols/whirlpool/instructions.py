"""
Whirlpool Instruction Builders

Anchor instructions for the Whirlpool program. Each builder takes the
resolved accounts and arguments and returns a solders Instruction; account
order matches the program's Accounts structs exactly.

Data layout: 8-byte discriminator (sha256("global:<name>")[:8]) followed by
Borsh-encoded arguments.
"""

import struct
from typing import List, Optional

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    MEMO_PROGRAM_ID,
    SYSVAR_RENT_ID,
    WP_NFT_UPDATE_AUTH,
    instruction_discriminator,
)

# RemainingAccountsInfo slice type for swap_v2 supplemental tick arrays
ACCOUNTS_TYPE_SUPPLEMENTAL_TICK_ARRAYS = 6

DISCRIMINATORS = {
    name: instruction_discriminator(name)
    for name in (
        "initialize_pool_v2",
        "initialize_tick_array",
        "open_position_with_token_extensions",
        "increase_liquidity_v2",
        "decrease_liquidity_v2",
        "update_fees_and_rewards",
        "collect_fees_v2",
        "collect_reward_v2",
        "close_position",
        "close_position_with_token_extensions",
        "swap_v2",
        "transfer_locked_position",
    )
}


def _readonly(pubkey: Pubkey) -> AccountMeta:
    return AccountMeta(pubkey, is_signer=False, is_writable=False)


def _writable(pubkey: Pubkey) -> AccountMeta:
    return AccountMeta(pubkey, is_signer=False, is_writable=True)


def _signer(pubkey: Pubkey, writable: bool = False) -> AccountMeta:
    return AccountMeta(pubkey, is_signer=True, is_writable=writable)


def _u128(value: int) -> bytes:
    return value.to_bytes(16, "little")


def _remaining_accounts_info(slice_lengths: Optional[List[tuple]] = None) -> bytes:
    """
    Borsh Option<RemainingAccountsInfo>

    Args:
        slice_lengths: List of (accounts_type, length) pairs, or None
    """
    if not slice_lengths:
        return b"\x00"
    data = bytearray(b"\x01")
    data.extend(struct.pack("<I", len(slice_lengths)))
    for accounts_type, length in slice_lengths:
        data.extend(struct.pack("<BB", accounts_type, length))
    return bytes(data)


def initialize_pool_v2(
    whirlpools_config: Pubkey,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    token_badge_a: Pubkey,
    token_badge_b: Pubkey,
    funder: Pubkey,
    whirlpool: Pubkey,
    token_vault_a: Pubkey,
    token_vault_b: Pubkey,
    fee_tier: Pubkey,
    token_program_a: Pubkey,
    token_program_b: Pubkey,
    tick_spacing: int,
    initial_sqrt_price: int,
) -> Instruction:
    """
    Build initialize_pool_v2

    Both vaults are fresh keypairs and must sign the transaction.
    """
    data = bytearray(DISCRIMINATORS["initialize_pool_v2"])
    data.extend(struct.pack("<H", tick_spacing))
    data.extend(_u128(initial_sqrt_price))

    accounts = [
        _readonly(whirlpools_config),          # 0: whirlpools_config
        _readonly(token_mint_a),               # 1: token_mint_a
        _readonly(token_mint_b),               # 2: token_mint_b
        _readonly(token_badge_a),              # 3: token_badge_a
        _readonly(token_badge_b),              # 4: token_badge_b
        _signer(funder, writable=True),        # 5: funder
        _writable(whirlpool),                  # 6: whirlpool
        _signer(token_vault_a, writable=True), # 7: token_vault_a
        _signer(token_vault_b, writable=True), # 8: token_vault_b
        _readonly(fee_tier),                   # 9: fee_tier
        _readonly(token_program_a),            # 10: token_program_a
        _readonly(token_program_b),            # 11: token_program_b
        _readonly(SYSTEM_PROGRAM_ID),          # 12: system_program
        _readonly(SYSVAR_RENT_ID),             # 13: rent
    ]
    return Instruction(WHIRLPOOL_PROGRAM_ID, bytes(data), accounts)


def initialize_tick_array(
    whirlpool: Pubkey,
    funder: Pubkey,
    tick_array: Pubkey,
    start_tick_index: int,
) -> Instruction:
    data = bytearray(DISCRIMINATORS["initialize_tick_array"])
    data.extend(struct.pack("<i", start_tick_index))

    accounts = [
        _readonly(whirlpool),
        _signer(funder, writable=True),
        _writable(tick_array),
        _readonly(SYSTEM_PROGRAM_ID),
    ]
    return Instruction(WHIRLPOOL_PROGRAM_ID, bytes(data), accounts)


def open_position_with_token_extensions(
    funder: Pubkey,
    owner: Pubkey,
    position: Pubkey,
    position_mint: Pubkey,
    position_token_account: Pubkey,
    whirlpool: Pubkey,
    tick_lower_index: int,
    tick_upper_index: int,
    with_token_metadata_extension: bool = True,
) -> Instruction:
    """
    Build open_position_with_token_extensions

    The position NFT is a Token-2022 mint; position_mint is a fresh keypair
    and must sign.

    Args:
        funder: Pays for position and mint rent
        owner: Receives the position NFT
        position: Position PDA for position_mint
        position_mint: New position mint
        position_token_account: Owner's Token-2022 ATA for position_mint
        whirlpool: Pool address
        tick_lower_index: Lower tick (initializable)
        tick_upper_index: Upper tick (initializable)
        with_token_metadata_extension: Attach the metadata pointer extension
    """
    data = bytearray(DISCRIMINATORS["open_position_with_token_extensions"])
    data.extend(struct.pack("<ii", tick_lower_index, tick_upper_index))
    data.extend(struct.pack("<?", with_token_metadata_extension))

    accounts = [
        _signer(funder, writable=True),            # 0: funder
        _readonly(owner),                          # 1: owner
        _writable(position),                       # 2: position
        _signer(position_mint, writable=True),     # 3: position_mint
        _writable(position_token_account),         # 4: position_token_account
        _readonly(whirlpool),                      # 5: whirlpool
        _readonly(TOKEN_2022_PROGRAM_ID),          # 6: token_2022_program
        _readonly(SYSTEM_PROGRAM_ID),              # 7: system_program
        _readonly(ASSOCIATED_TOKEN_PROGRAM_ID),    # 8: associated_token_program
        _readonly(WP_NFT_UPDATE_AUTH),             # 9: metadata_update_auth
    ]
    return Instruction(WHIRLPOOL_PROGRAM_ID, bytes(data), accounts)


def _modify_liquidity_accounts(
    whirlpool: Pubkey,
    token_program_a: Pubkey,
    token_program_b: Pubkey,
    position_authority: Pubkey,
    position: Pubkey,
    position_token_account: Pubkey,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    token_owner_account_a: Pubkey,
    token_owner_account_b: Pubkey,
    token_vault_a: Pubkey,
    token_vault_b: Pubkey,
    tick_array_lower: Pubkey,
    tick_array_upper: Pubkey,
) -> List[AccountMeta]:
    return [
        _writable(whirlpool),                # 0: whirlpool
        _readonly(token_program_a),          # 1: token_program_a
        _readonly(token_program_b),          # 2: token_program_b
        _readonly(MEMO_PROGRAM_ID),          # 3: memo_program
        _signer(position_authority),         # 4: position_authority
        _writable(position),                 # 5: position
        _readonly(position_token_account),   # 6: position_token_account
        _readonly(token_mint_a),             # 7: token_mint_a
        _readonly(token_mint_b),             # 8: token_mint_b
        _writable(token_owner_account_a),    # 9: token_owner_account_a
        _writable(token_owner_account_b),    # 10: token_owner_account_b
        _writable(token_vault_a),            # 11: token_vault_a
        _writable(token_vault_b),            # 12: token_vault_b
        _writable(tick_array_lower),         # 13: tick_array_lower
        _writable(tick_array_upper),         # 14: tick_array_upper
    ]


def increase_liquidity_v2(
    whirlpool: Pubkey,
    token_program_a: Pubkey,
    token_program_b: Pubkey,
    position_authority: Pubkey,
    position: Pubkey,
    position_token_account: Pubkey,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    token_owner_account_a: Pubkey,
    token_owner_account_b: Pubkey,
    token_vault_a: Pubkey,
    token_vault_b: Pubkey,
    tick_array_lower: Pubkey,
    tick_array_upper: Pubkey,
    liquidity_amount: int,
    token_max_a: int,
    token_max_b: int,
) -> Instruction:
    data = bytearray(DISCRIMINATORS["increase_liquidity_v2"])
    data.extend(_u128(liquidity_amount))
    data.extend(struct.pack("<QQ", token_max_a, token_max_b))
    data.extend(_remaining_accounts_info())

    accounts = _modify_liquidity_accounts(
        whirlpool, token_program_a, token_program_b, position_authority,
        position, position_token_account, token_mint_a, token_mint_b,
        token_owner_account_a, token_owner_account_b, token_vault_a,
        token_vault_b, tick_array_lower, tick_array_upper,
    )
    return Instruction(WHIRLPOOL_PROGRAM_ID, bytes(data), accounts)


def decrease_liquidity_v2(
    whirlpool: Pubkey,
    token_program_a: Pubkey,
    token_program_b: Pubkey,
    position_authority: Pubkey,
    position: Pubkey,
    position_token_account: Pubkey,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    token_owner_account_a: Pubkey,
    token_owner_account_b: Pubkey,
    token_vault_a: Pubkey,
    token_vault_b: Pubkey,
    tick_array_lower: Pubkey,
    tick_array_upper: Pubkey,
    liquidity_amount: int,
    token_min_a: int,
    token_min_b: int,
) -> Instruction:
    data = bytearray(DISCRIMINATORS["decrease_liquidity_v2"])
    data.extend(_u128(liquidity_amount))
    data.extend(struct.pack("<QQ", token_min_a, token_min_b))
    data.extend(_remaining_accounts_info())

    accounts = _modify_liquidity_accounts(
        whirlpool, token_program_a, token_program_b, position_authority,
        position, position_token_account, token_mint_a, token_mint_b,
        token_owner_account_a, token_owner_account_b, token_vault_a,
        token_vault_b, tick_array_lower, tick_array_upper,
    )
    return Instruction(WHIRLPOOL_PROGRAM_ID, bytes(data), accounts)


def update_fees_and_rewards(
    whirlpool: Pubkey,
    position: Pubkey,
    tick_array_lower: Pubkey,
    tick_array_upper: Pubkey,
) -> Instruction:
    accounts = [
        _writable(whirlpool),
        _writable(position),
        _readonly(tick_array_lower),
        _readonly(tick_array_upper),
    ]
    return Instruction(WHIRLPOOL_PROGRAM_ID, DISCRIMINATORS["update_fees_and_rewards"], accounts)


def collect_fees_v2(
    whirlpool: Pubkey,
    position_authority: Pubkey,
    position: Pubkey,
    position_token_account: Pubkey,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    token_owner_account_a: Pubkey,
    token_vault_a: Pubkey,
    token_owner_account_b: Pubkey,
    token_vault_b: Pubkey,
    token_program_a: Pubkey,
    token_program_b: Pubkey,
) -> Instruction:
    data = bytearray(DISCRIMINATORS["collect_fees_v2"])
    data.extend(_remaining_accounts_info())

    accounts = [
        _readonly(whirlpool),                # 0: whirlpool
        _signer(position_authority),         # 1: position_authority
        _writable(position),                 # 2: position
        _readonly(position_token_account),   # 3: position_token_account
        _readonly(token_mint_a),             # 4: token_mint_a
        _readonly(token_mint_b),             # 5: token_mint_b
        _writable(token_owner_account_a),    # 6: token_owner_account_a
        _writable(token_vault_a),            # 7: token_vault_a
        _writable(token_owner_account_b),    # 8: token_owner_account_b
        _writable(token_vault_b),            # 9: token_vault_b
        _readonly(token_program_a),          # 10: token_program_a
        _readonly(token_program_b),          # 11: token_program_b
        _readonly(MEMO_PROGRAM_ID),          # 12: memo_program
    ]
    return Instruction(WHIRLPOOL_PROGRAM_ID, bytes(data), accounts)


def collect_reward_v2(
    whirlpool: Pubkey,
    position_authority: Pubkey,
    position: Pubkey,
    position_token_account: Pubkey,
    reward_owner_account: Pubkey,
    reward_mint: Pubkey,
    reward_vault: Pubkey,
    reward_token_program: Pubkey,
    reward_index: int,
) -> Instruction:
    data = bytearray(DISCRIMINATORS["collect_reward_v2"])
    data.extend(struct.pack("<B", reward_index))
    data.extend(_remaining_accounts_info())

    accounts = [
        _readonly(whirlpool),
        _signer(position_authority),
        _writable(position),
        _readonly(position_token_account),
        _writable(reward_owner_account),
        _readonly(reward_mint),
        _writable(reward_vault),
        _readonly(reward_token_program),
        _readonly(MEMO_PROGRAM_ID),
    ]
    return Instruction(WHIRLPOOL_PROGRAM_ID, bytes(data), accounts)


def close_position(
    position_authority: Pubkey,
    receiver: Pubkey,
    position: Pubkey,
    position_mint: Pubkey,
    position_token_account: Pubkey,
    token_program: Pubkey,
) -> Instruction:
    """Close a position whose NFT is a legacy SPL Token mint"""
    accounts = [
        _signer(position_authority),
        _writable(receiver),
        _writable(position),
        _writable(position_mint),
        _writable(position_token_account),
        _readonly(token_program),
    ]
    return Instruction(WHIRLPOOL_PROGRAM_ID, DISCRIMINATORS["close_position"], accounts)


def close_position_with_token_extensions(
    position_authority: Pubkey,
    receiver: Pubkey,
    position: Pubkey,
    position_mint: Pubkey,
    position_token_account: Pubkey,
) -> Instruction:
    """Close a position whose NFT is a Token-2022 mint; also closes the mint"""
    accounts = [
        _signer(position_authority),
        _writable(receiver),
        _writable(position),
        _writable(position_mint),
        _writable(position_token_account),
        _readonly(TOKEN_2022_PROGRAM_ID),
    ]
    return Instruction(
        WHIRLPOOL_PROGRAM_ID,
        DISCRIMINATORS["close_position_with_token_extensions"],
        accounts,
    )


def swap_v2(
    token_program_a: Pubkey,
    token_program_b: Pubkey,
    token_authority: Pubkey,
    whirlpool: Pubkey,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    token_owner_account_a: Pubkey,
    token_vault_a: Pubkey,
    token_owner_account_b: Pubkey,
    token_vault_b: Pubkey,
    tick_array_0: Pubkey,
    tick_array_1: Pubkey,
    tick_array_2: Pubkey,
    oracle: Pubkey,
    amount: int,
    other_amount_threshold: int,
    sqrt_price_limit: int,
    amount_specified_is_input: bool,
    a_to_b: bool,
    supplemental_tick_arrays: Optional[List[Pubkey]] = None,
) -> Instruction:
    """
    Build swap_v2

    Args:
        amount: Specified amount (input if amount_specified_is_input)
        other_amount_threshold: Min out for exact-in, max in for exact-out
        sqrt_price_limit: Price limit, 0 for none
        amount_specified_is_input: Exact-in when True
        a_to_b: Swap direction
        supplemental_tick_arrays: Extra tick arrays passed as remaining accounts
    """
    supplemental_tick_arrays = supplemental_tick_arrays or []

    data = bytearray(DISCRIMINATORS["swap_v2"])
    data.extend(struct.pack("<QQ", amount, other_amount_threshold))
    data.extend(_u128(sqrt_price_limit))
    data.extend(struct.pack("<??", amount_specified_is_input, a_to_b))
    if supplemental_tick_arrays:
        data.extend(_remaining_accounts_info(
            [(ACCOUNTS_TYPE_SUPPLEMENTAL_TICK_ARRAYS, len(supplemental_tick_arrays))]
        ))
    else:
        data.extend(_remaining_accounts_info())

    accounts = [
        _readonly(token_program_a),          # 0: token_program_a
        _readonly(token_program_b),          # 1: token_program_b
        _readonly(MEMO_PROGRAM_ID),          # 2: memo_program
        _signer(token_authority),            # 3: token_authority
        _writable(whirlpool),                # 4: whirlpool
        _readonly(token_mint_a),             # 5: token_mint_a
        _readonly(token_mint_b),             # 6: token_mint_b
        _writable(token_owner_account_a),    # 7: token_owner_account_a
        _writable(token_vault_a),            # 8: token_vault_a
        _writable(token_owner_account_b),    # 9: token_owner_account_b
        _writable(token_vault_b),            # 10: token_vault_b
        _writable(tick_array_0),             # 11: tick_array_0
        _writable(tick_array_1),             # 12: tick_array_1
        _writable(tick_array_2),             # 13: tick_array_2
        _writable(oracle),                   # 14: oracle
    ]
    accounts.extend(_writable(tick_array) for tick_array in supplemental_tick_arrays)
    return Instruction(WHIRLPOOL_PROGRAM_ID, bytes(data), accounts)


def transfer_locked_position(
    position_authority: Pubkey,
    receiver: Pubkey,
    position: Pubkey,
    position_mint: Pubkey,
    position_token_account: Pubkey,
    destination_token_account: Pubkey,
    lock_config: Pubkey,
) -> Instruction:
    accounts = [
        _signer(position_authority),         # 0: position_authority
        _writable(receiver),                 # 1: receiver
        _readonly(position),                 # 2: position
        _readonly(position_mint),            # 3: position_mint
        _writable(position_token_account),   # 4: position_token_account
        _writable(destination_token_account),  # 5: destination_token_account
        _writable(lock_config),              # 6: lock_config
        _readonly(TOKEN_2022_PROGRAM_ID),    # 7: token_2022_program
    ]
    return Instruction(WHIRLPOOL_PROGRAM_ID, DISCRIMINATORS["transfer_locked_position"], accounts)
