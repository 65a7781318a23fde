"""
Whirlpool and SPL Account Parsers

Decodes raw account bytes into the dataclasses in types.accounts. Anchor
accounts are checked against their 8-byte discriminator and minimum size
before any field is read.
"""

import struct
from dataclasses import dataclass
from typing import List

from solders.pubkey import Pubkey

from .constants import (
    WHIRLPOOL_DISCRIMINATOR,
    POSITION_DISCRIMINATOR,
    TICK_ARRAY_DISCRIMINATOR,
    FEE_TIER_DISCRIMINATOR,
    WHIRLPOOLS_CONFIG_DISCRIMINATOR,
    LOCK_CONFIG_DISCRIMINATOR,
    POSITION_BUNDLE_DISCRIMINATOR,
    WHIRLPOOL_SIZE,
    POSITION_SIZE,
    TICK_ARRAY_ACCOUNT_SIZE,
    TICK_ARRAY_SIZE,
    FEE_TIER_SIZE,
    TOKEN_ACCOUNT_SIZE,
    MINT_SIZE,
    POSITION_BUNDLE_ACCOUNT_SIZE,
    POSITION_BUNDLE_CAPACITY,
    NUM_REWARDS,
)
from ...errors import AccountDecodeError
from ...types.accounts import (
    AccountInfo,
    FeeTierState,
    LockConfigState,
    MintState,
    PositionRewardInfo,
    PositionBundleState,
    PositionState,
    TickArrayState,
    TickState,
    TokenAccountState,
    TransferFeeConfig,
    TransferFeeEpoch,
    WhirlpoolRewardInfo,
    WhirlpoolState,
    WhirlpoolsConfigState,
)

WHIRLPOOLS_CONFIG_SIZE = 108
LOCK_CONFIG_SIZE = 113

TICK_SIZE = 113
WHIRLPOOL_REWARD_INFO_SIZE = 128
POSITION_REWARD_INFO_SIZE = 24

# Token-2022 layout: base account padded to 165 bytes, then account type, then TLV
TOKEN_2022_ACCOUNT_TYPE_OFFSET = 165
TOKEN_2022_TLV_OFFSET = 166
EXTENSION_TYPE_TRANSFER_FEE_CONFIG = 1


def _u128(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 16], "little")


def _i128(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 16], "little", signed=True)


def _pubkey(data: bytes, offset: int) -> Pubkey:
    return Pubkey.from_bytes(data[offset:offset + 32])


def _check_anchor_account(data: bytes, discriminator: bytes, name: str, size: int) -> None:
    if len(data) < size:
        raise AccountDecodeError.too_short(name, size, len(data))
    if data[:8] != discriminator:
        raise AccountDecodeError.wrong_discriminator(name)


def parse_whirlpool(data: bytes) -> WhirlpoolState:
    """
    Parse Whirlpool account

    Layout:
    - blob(8): discriminator
    - publicKey: whirlpools_config (offset 8)
    - u8: whirlpool_bump (offset 40)
    - u16: tick_spacing (offset 41)
    - u16: fee_tier_index_seed (offset 43)
    - u16: fee_rate (offset 45)
    - u16: protocol_fee_rate (offset 47)
    - u128: liquidity (offset 49)
    - u128: sqrt_price (offset 65)
    - i32: tick_current_index (offset 81)
    - u64: protocol_fee_owed_a / protocol_fee_owed_b (offset 85 / 93)
    - publicKey, publicKey, u128: mint, vault, fee growth for A (offset 101)
    - publicKey, publicKey, u128: mint, vault, fee growth for B (offset 181)
    - u64: reward_last_updated_timestamp (offset 261)
    - 3 x reward info, 128 bytes each (offset 269)
    """
    _check_anchor_account(data, WHIRLPOOL_DISCRIMINATOR, "Whirlpool", WHIRLPOOL_SIZE)

    tick_spacing, fee_tier_index_seed, fee_rate, protocol_fee_rate = struct.unpack_from("<HHHH", data, 41)
    tick_current_index = struct.unpack_from("<i", data, 81)[0]
    protocol_fee_owed_a, protocol_fee_owed_b = struct.unpack_from("<QQ", data, 85)
    reward_last_updated_timestamp = struct.unpack_from("<Q", data, 261)[0]

    reward_infos = []
    for i in range(NUM_REWARDS):
        offset = 269 + i * WHIRLPOOL_REWARD_INFO_SIZE
        reward_infos.append(WhirlpoolRewardInfo(
            mint=_pubkey(data, offset),
            vault=_pubkey(data, offset + 32),
            authority=_pubkey(data, offset + 64),
            emissions_per_second_x64=_u128(data, offset + 96),
            growth_global_x64=_u128(data, offset + 112),
        ))

    return WhirlpoolState(
        whirlpools_config=_pubkey(data, 8),
        whirlpool_bump=data[40],
        tick_spacing=tick_spacing,
        fee_tier_index_seed=fee_tier_index_seed,
        fee_rate=fee_rate,
        protocol_fee_rate=protocol_fee_rate,
        liquidity=_u128(data, 49),
        sqrt_price=_u128(data, 65),
        tick_current_index=tick_current_index,
        protocol_fee_owed_a=protocol_fee_owed_a,
        protocol_fee_owed_b=protocol_fee_owed_b,
        token_mint_a=_pubkey(data, 101),
        token_vault_a=_pubkey(data, 133),
        fee_growth_global_a=_u128(data, 165),
        token_mint_b=_pubkey(data, 181),
        token_vault_b=_pubkey(data, 213),
        fee_growth_global_b=_u128(data, 245),
        reward_last_updated_timestamp=reward_last_updated_timestamp,
        reward_infos=reward_infos,
    )


def parse_position(data: bytes) -> PositionState:
    """
    Parse Position account

    Layout:
    - blob(8): discriminator
    - publicKey: whirlpool (offset 8)
    - publicKey: position_mint (offset 40)
    - u128: liquidity (offset 72)
    - i32: tick_lower_index / tick_upper_index (offset 88 / 92)
    - u128, u64: fee checkpoint and owed for A (offset 96)
    - u128, u64: fee checkpoint and owed for B (offset 120)
    - 3 x (u128 growth checkpoint, u64 amount owed) (offset 144)
    """
    _check_anchor_account(data, POSITION_DISCRIMINATOR, "Position", POSITION_SIZE)

    tick_lower_index, tick_upper_index = struct.unpack_from("<ii", data, 88)

    reward_infos = []
    for i in range(NUM_REWARDS):
        offset = 144 + i * POSITION_REWARD_INFO_SIZE
        reward_infos.append(PositionRewardInfo(
            growth_inside_checkpoint=_u128(data, offset),
            amount_owed=struct.unpack_from("<Q", data, offset + 16)[0],
        ))

    return PositionState(
        whirlpool=_pubkey(data, 8),
        position_mint=_pubkey(data, 40),
        liquidity=_u128(data, 72),
        tick_lower_index=tick_lower_index,
        tick_upper_index=tick_upper_index,
        fee_growth_checkpoint_a=_u128(data, 96),
        fee_owed_a=struct.unpack_from("<Q", data, 112)[0],
        fee_growth_checkpoint_b=_u128(data, 120),
        fee_owed_b=struct.unpack_from("<Q", data, 136)[0],
        reward_infos=reward_infos,
    )


def _parse_tick(data: bytes, offset: int) -> TickState:
    return TickState(
        initialized=data[offset] != 0,
        liquidity_net=_i128(data, offset + 1),
        liquidity_gross=_u128(data, offset + 17),
        fee_growth_outside_a=_u128(data, offset + 33),
        fee_growth_outside_b=_u128(data, offset + 49),
        reward_growths_outside=[_u128(data, offset + 65 + 16 * i) for i in range(NUM_REWARDS)],
    )


def parse_tick_array(data: bytes) -> TickArrayState:
    """Parse fixed TickArray account: i32 start at 8, 88 ticks of 113 bytes, whirlpool at 9956"""
    _check_anchor_account(data, TICK_ARRAY_DISCRIMINATOR, "TickArray", TICK_ARRAY_ACCOUNT_SIZE)

    start_tick_index = struct.unpack_from("<i", data, 8)[0]
    ticks = [_parse_tick(data, 12 + i * TICK_SIZE) for i in range(TICK_ARRAY_SIZE)]

    return TickArrayState(
        start_tick_index=start_tick_index,
        ticks=ticks,
        whirlpool=_pubkey(data, 12 + TICK_ARRAY_SIZE * TICK_SIZE),
    )


def parse_fee_tier(data: bytes) -> FeeTierState:
    _check_anchor_account(data, FEE_TIER_DISCRIMINATOR, "FeeTier", FEE_TIER_SIZE)
    tick_spacing, default_fee_rate = struct.unpack_from("<HH", data, 40)
    return FeeTierState(
        whirlpools_config=_pubkey(data, 8),
        tick_spacing=tick_spacing,
        default_fee_rate=default_fee_rate,
    )


def parse_whirlpools_config(data: bytes) -> WhirlpoolsConfigState:
    _check_anchor_account(data, WHIRLPOOLS_CONFIG_DISCRIMINATOR, "WhirlpoolsConfig", WHIRLPOOLS_CONFIG_SIZE)
    return WhirlpoolsConfigState(
        fee_authority=_pubkey(data, 8),
        collect_protocol_fees_authority=_pubkey(data, 40),
        reward_emissions_super_authority=_pubkey(data, 72),
        default_protocol_fee_rate=struct.unpack_from("<H", data, 104)[0],
    )


def parse_lock_config(data: bytes) -> LockConfigState:
    _check_anchor_account(data, LOCK_CONFIG_DISCRIMINATOR, "LockConfig", LOCK_CONFIG_SIZE)
    return LockConfigState(
        position=_pubkey(data, 8),
        position_owner=_pubkey(data, 40),
        whirlpool=_pubkey(data, 72),
        locked_timestamp=struct.unpack_from("<Q", data, 104)[0],
        lock_type=data[112],
    )


def parse_position_bundle(data: bytes) -> PositionBundleState:
    _check_anchor_account(data, POSITION_BUNDLE_DISCRIMINATOR, "PositionBundle", POSITION_BUNDLE_ACCOUNT_SIZE)
    return PositionBundleState(
        position_bundle_mint=_pubkey(data, 8),
        position_bitmap=bytes(data[40:40 + POSITION_BUNDLE_CAPACITY // 8]),
    )


# ---------------------------------------------------------------------------
# SPL Token / Token-2022
# ---------------------------------------------------------------------------

def _iter_tlv(data: bytes):
    """Yield (extension_type, value) from a Token-2022 TLV region"""
    offset = TOKEN_2022_TLV_OFFSET
    while offset + 4 <= len(data):
        extension_type, length = struct.unpack_from("<HH", data, offset)
        if extension_type == 0:
            break
        yield extension_type, data[offset + 4:offset + 4 + length]
        offset += 4 + length


def _parse_transfer_fee_config(value: bytes) -> TransferFeeConfig:
    # 2 x publicKey authorities, u64 withheld, 2 x (u64 epoch, u64 max fee, u16 bps)
    withheld_amount = struct.unpack_from("<Q", value, 64)[0]
    older = struct.unpack_from("<QQH", value, 72)
    newer = struct.unpack_from("<QQH", value, 90)
    return TransferFeeConfig(
        withheld_amount=withheld_amount,
        older_transfer_fee=TransferFeeEpoch(*older),
        newer_transfer_fee=TransferFeeEpoch(*newer),
    )


def parse_mint(account: AccountInfo) -> MintState:
    """
    Parse SPL mint (Token or Token-2022)

    Token-2022 mints longer than the base account carry TLV extensions;
    extension type ids are recorded and TransferFeeConfig is decoded.
    """
    data = account.data
    if len(data) < MINT_SIZE:
        raise AccountDecodeError.too_short("Mint", MINT_SIZE, len(data))

    supply = struct.unpack_from("<Q", data, 36)[0]
    decimals = data[44]

    extension_types: List[int] = []
    transfer_fee_config = None
    if len(data) > TOKEN_2022_TLV_OFFSET:
        for extension_type, value in _iter_tlv(data):
            extension_types.append(extension_type)
            if extension_type == EXTENSION_TYPE_TRANSFER_FEE_CONFIG:
                transfer_fee_config = _parse_transfer_fee_config(value)

    return MintState(
        address=account.address,
        token_program=account.owner,
        supply=supply,
        decimals=decimals,
        extension_types=extension_types,
        transfer_fee_config=transfer_fee_config,
    )


def parse_token_account(account: AccountInfo) -> TokenAccountState:
    data = account.data
    if len(data) < TOKEN_ACCOUNT_SIZE:
        raise AccountDecodeError.too_short("TokenAccount", TOKEN_ACCOUNT_SIZE, len(data))
    return TokenAccountState(
        address=account.address,
        mint=_pubkey(data, 0),
        owner=_pubkey(data, 32),
        amount=struct.unpack_from("<Q", data, 64)[0],
        token_program=account.owner,
    )


@dataclass(frozen=True)
class RentState:
    """Rent sysvar parameters"""
    lamports_per_byte_year: int
    exemption_threshold: float
    burn_percent: int


def parse_rent(data: bytes) -> RentState:
    if len(data) < 17:
        raise AccountDecodeError.too_short("Rent", 17, len(data))
    lamports_per_byte_year, exemption_threshold, burn_percent = struct.unpack_from("<QdB", data, 0)
    return RentState(lamports_per_byte_year, exemption_threshold, burn_percent)
