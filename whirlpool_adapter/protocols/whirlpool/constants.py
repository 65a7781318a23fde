"""
Whirlpool program constants

Program ids, account sizes, tick bounds and well-known config addresses.
"""

import hashlib

from solders.pubkey import Pubkey

# Programs
WHIRLPOOL_PROGRAM_ID = Pubkey.from_string("whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc")
TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
TOKEN_2022_PROGRAM_ID = Pubkey.from_string("TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb")
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string("ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL")
SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")
MEMO_PROGRAM_ID = Pubkey.from_string("MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr")
SYSVAR_RENT_ID = Pubkey.from_string("SysvarRent111111111111111111111111111111111")

# Wrapped SOL
NATIVE_MINT = Pubkey.from_string("So11111111111111111111111111111111111111112")

# Update authority of the position NFT metadata
WP_NFT_UPDATE_AUTH = Pubkey.from_string("3axbTs2z5GBy6usVbNVoqEgZMng3vZvMnAoX29BFfwhr")

# Whirlpools config accounts per network
SOLANA_MAINNET_WHIRLPOOLS_CONFIG = Pubkey(bytes([
    19, 228, 65, 248, 57, 19, 202, 104, 176, 99, 79, 176, 37, 253, 234, 168,
    135, 55, 232, 65, 16, 209, 37, 94, 53, 123, 51, 119, 221, 238, 28, 205,
]))
SOLANA_DEVNET_WHIRLPOOLS_CONFIG = Pubkey(bytes([
    217, 51, 106, 61, 244, 143, 54, 30, 87, 6, 230, 156, 60, 182, 182, 217,
    23, 116, 228, 121, 53, 200, 82, 109, 229, 160, 245, 159, 33, 90, 35, 106,
]))
ECLIPSE_MAINNET_WHIRLPOOLS_CONFIG = Pubkey(bytes([
    215, 64, 234, 8, 195, 52, 100, 209, 19, 230, 37, 101, 156, 135, 37, 41,
    139, 254, 65, 104, 208, 137, 96, 39, 84, 13, 60, 221, 36, 203, 151, 49,
]))
ECLIPSE_TESTNET_WHIRLPOOLS_CONFIG = Pubkey(bytes([
    213, 230, 107, 150, 137, 123, 254, 203, 164, 137, 81, 181, 70, 54, 172, 140,
    176, 39, 16, 72, 150, 84, 130, 137, 232, 108, 97, 236, 197, 119, 201, 83,
]))
SOLANA_MAINNET_WHIRLPOOLS_CONFIG_EXTENSION = Pubkey(bytes([
    90, 182, 180, 56, 174, 38, 113, 211, 112, 187, 90, 174, 90, 115, 121, 167,
    83, 122, 96, 10, 152, 57, 209, 52, 207, 240, 174, 74, 201, 7, 87, 54,
]))

# Tick bounds
MIN_TICK_INDEX = -443636
MAX_TICK_INDEX = 443636
TICK_ARRAY_SIZE = 88
NUM_REWARDS = 3

# Sqrt price bounds (Q64.64)
MIN_SQRT_PRICE = 4295048016
MAX_SQRT_PRICE = 79226673515401279992447579055

# Pools with tick spacing at or above this value only accept full-range positions
FULL_RANGE_ONLY_TICK_SPACING_THRESHOLD = 32768
SPLASH_POOL_TICK_SPACING = 32896

# Denominators
FEE_RATE_DENOMINATOR = 1_000_000
BPS_DENOMINATOR = 10_000

U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1

# Account sizes (bytes)
WHIRLPOOL_SIZE = 653
POSITION_SIZE = 216
TICK_ARRAY_ACCOUNT_SIZE = 9988
FEE_TIER_SIZE = 44
TOKEN_ACCOUNT_SIZE = 165
MINT_SIZE = 82
POSITION_BUNDLE_ACCOUNT_SIZE = 136

# Slots per position bundle, one bit each in the bitmap
POSITION_BUNDLE_CAPACITY = 256

# Rent plus protocol fee for the position NFT metadata
POSITION_METADATA_RENT = 15_616_720

# Sysvar and system program constants
SYSTEM_ACCOUNT_STORAGE_OVERHEAD = 128


def account_discriminator(name: str) -> bytes:
    """Anchor account discriminator: sha256("account:<Name>")[:8]"""
    return hashlib.sha256(f"account:{name}".encode()).digest()[:8]


def instruction_discriminator(name: str) -> bytes:
    """Anchor instruction discriminator: sha256("global:<snake_name>")[:8]"""
    return hashlib.sha256(f"global:{name}".encode()).digest()[:8]


WHIRLPOOL_DISCRIMINATOR = account_discriminator("Whirlpool")
POSITION_DISCRIMINATOR = account_discriminator("Position")
TICK_ARRAY_DISCRIMINATOR = account_discriminator("TickArray")
FEE_TIER_DISCRIMINATOR = account_discriminator("FeeTier")
WHIRLPOOLS_CONFIG_DISCRIMINATOR = account_discriminator("WhirlpoolsConfig")
LOCK_CONFIG_DISCRIMINATOR = account_discriminator("LockConfig")
POSITION_BUNDLE_DISCRIMINATOR = account_discriminator("PositionBundle")
