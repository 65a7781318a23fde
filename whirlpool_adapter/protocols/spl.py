"""
System, SPL Token and Associated Token Account instruction builders

Hand-encoded instruction data: system instructions use a u32 tag, token
instructions a u8 tag. The token builders take the owning token program so
they work for both Token and Token-2022 accounts.
"""

import struct

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from .whirlpool.constants import (
    TOKEN_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
)

# System program instruction tags
_SYSTEM_CREATE_ACCOUNT = 0
_SYSTEM_TRANSFER = 2
_SYSTEM_CREATE_ACCOUNT_WITH_SEED = 3

# Token program instruction tags
_TOKEN_CLOSE_ACCOUNT = 9
_TOKEN_SYNC_NATIVE = 17
_TOKEN_INITIALIZE_ACCOUNT3 = 18

# Associated token program instruction tags
_ATA_CREATE_IDEMPOTENT = 1


def create_account(
    from_pubkey: Pubkey,
    new_account: Pubkey,
    lamports: int,
    space: int,
    owner: Pubkey,
) -> Instruction:
    data = struct.pack("<IQQ", _SYSTEM_CREATE_ACCOUNT, lamports, space) + bytes(owner)
    accounts = [
        AccountMeta(from_pubkey, is_signer=True, is_writable=True),
        AccountMeta(new_account, is_signer=True, is_writable=True),
    ]
    return Instruction(SYSTEM_PROGRAM_ID, data, accounts)


def create_account_with_seed(
    from_pubkey: Pubkey,
    new_account: Pubkey,
    base: Pubkey,
    seed: str,
    lamports: int,
    space: int,
    owner: Pubkey,
) -> Instruction:
    """
    Create an account at Pubkey.create_with_seed(base, seed, owner)

    The seed is bincode-encoded as a u64 length followed by UTF-8 bytes.
    """
    seed_bytes = seed.encode("utf-8")
    data = bytearray(struct.pack("<I", _SYSTEM_CREATE_ACCOUNT_WITH_SEED))
    data.extend(bytes(base))
    data.extend(struct.pack("<Q", len(seed_bytes)))
    data.extend(seed_bytes)
    data.extend(struct.pack("<QQ", lamports, space))
    data.extend(bytes(owner))

    accounts = [
        AccountMeta(from_pubkey, is_signer=True, is_writable=True),
        AccountMeta(new_account, is_signer=False, is_writable=True),
    ]
    if base != from_pubkey:
        accounts.append(AccountMeta(base, is_signer=True, is_writable=False))
    return Instruction(SYSTEM_PROGRAM_ID, bytes(data), accounts)


def transfer(from_pubkey: Pubkey, to_pubkey: Pubkey, lamports: int) -> Instruction:
    data = struct.pack("<IQ", _SYSTEM_TRANSFER, lamports)
    accounts = [
        AccountMeta(from_pubkey, is_signer=True, is_writable=True),
        AccountMeta(to_pubkey, is_signer=False, is_writable=True),
    ]
    return Instruction(SYSTEM_PROGRAM_ID, data, accounts)


def initialize_account3(
    account: Pubkey,
    mint: Pubkey,
    owner: Pubkey,
    token_program: Pubkey = TOKEN_PROGRAM_ID,
) -> Instruction:
    data = struct.pack("<B", _TOKEN_INITIALIZE_ACCOUNT3) + bytes(owner)
    accounts = [
        AccountMeta(account, is_signer=False, is_writable=True),
        AccountMeta(mint, is_signer=False, is_writable=False),
    ]
    return Instruction(token_program, data, accounts)


def sync_native(account: Pubkey, token_program: Pubkey = TOKEN_PROGRAM_ID) -> Instruction:
    accounts = [AccountMeta(account, is_signer=False, is_writable=True)]
    return Instruction(token_program, bytes([_TOKEN_SYNC_NATIVE]), accounts)


def close_account(
    account: Pubkey,
    destination: Pubkey,
    owner: Pubkey,
    token_program: Pubkey = TOKEN_PROGRAM_ID,
) -> Instruction:
    accounts = [
        AccountMeta(account, is_signer=False, is_writable=True),
        AccountMeta(destination, is_signer=False, is_writable=True),
        AccountMeta(owner, is_signer=True, is_writable=False),
    ]
    return Instruction(token_program, bytes([_TOKEN_CLOSE_ACCOUNT]), accounts)


def create_associated_token_account_idempotent(
    payer: Pubkey,
    associated_account: Pubkey,
    owner: Pubkey,
    mint: Pubkey,
    token_program: Pubkey = TOKEN_PROGRAM_ID,
) -> Instruction:
    """
    Create an ATA, succeeding without effect if it already exists

    Args:
        payer: Pays rent for the new account
        associated_account: ATA address for (owner, token_program, mint)
        owner: Wallet that will own the ATA
        mint: Token mint
        token_program: Owner program of the mint
    """
    accounts = [
        AccountMeta(payer, is_signer=True, is_writable=True),
        AccountMeta(associated_account, is_signer=False, is_writable=True),
        AccountMeta(owner, is_signer=False, is_writable=False),
        AccountMeta(mint, is_signer=False, is_writable=False),
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(token_program, is_signer=False, is_writable=False),
    ]
    return Instruction(ASSOCIATED_TOKEN_PROGRAM_ID, bytes([_ATA_CREATE_IDEMPOTENT]), accounts)
