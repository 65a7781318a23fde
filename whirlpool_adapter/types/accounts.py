"""
Decoded on-chain account types

Produced by protocols.whirlpool.parser; consumed by quote math and the
instruction assemblers.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from solders.pubkey import Pubkey


@dataclass
class AccountInfo:
    """
    Raw account as returned by the RPC

    Attributes:
        address: Account address
        owner: Owning program
        lamports: Balance in lamports
        data: Raw account data
        executable: Whether the account is a program
    """
    address: Pubkey
    owner: Pubkey
    lamports: int
    data: bytes
    executable: bool = False


@dataclass
class WhirlpoolRewardInfo:
    mint: Pubkey
    vault: Pubkey
    authority: Pubkey
    emissions_per_second_x64: int
    growth_global_x64: int

    @property
    def initialized(self) -> bool:
        return self.mint != Pubkey.default()


@dataclass
class WhirlpoolState:
    """Decoded Whirlpool account (653 bytes)"""
    whirlpools_config: Pubkey
    whirlpool_bump: int
    tick_spacing: int
    fee_tier_index_seed: int
    fee_rate: int
    protocol_fee_rate: int
    liquidity: int
    sqrt_price: int
    tick_current_index: int
    protocol_fee_owed_a: int
    protocol_fee_owed_b: int
    token_mint_a: Pubkey
    token_vault_a: Pubkey
    fee_growth_global_a: int
    token_mint_b: Pubkey
    token_vault_b: Pubkey
    fee_growth_global_b: int
    reward_last_updated_timestamp: int
    reward_infos: List[WhirlpoolRewardInfo] = field(default_factory=list)


@dataclass
class PositionRewardInfo:
    growth_inside_checkpoint: int = 0
    amount_owed: int = 0


@dataclass
class PositionState:
    """Decoded Position account (216 bytes)"""
    whirlpool: Pubkey
    position_mint: Pubkey
    liquidity: int
    tick_lower_index: int
    tick_upper_index: int
    fee_growth_checkpoint_a: int
    fee_owed_a: int
    fee_growth_checkpoint_b: int
    fee_owed_b: int
    reward_infos: List[PositionRewardInfo] = field(default_factory=list)


@dataclass
class TickState:
    initialized: bool = False
    liquidity_net: int = 0
    liquidity_gross: int = 0
    fee_growth_outside_a: int = 0
    fee_growth_outside_b: int = 0
    reward_growths_outside: List[int] = field(default_factory=lambda: [0, 0, 0])


@dataclass
class TickArrayState:
    """Decoded fixed TickArray account: 88 ticks starting at start_tick_index"""
    start_tick_index: int
    ticks: List[TickState]
    whirlpool: Optional[Pubkey] = None

    @classmethod
    def empty(cls, start_tick_index: int, size: int = 88) -> "TickArrayState":
        """Stand-in for a tick array that does not exist on chain"""
        return cls(
            start_tick_index=start_tick_index,
            ticks=[TickState() for _ in range(size)],
        )


@dataclass
class FeeTierState:
    whirlpools_config: Pubkey
    tick_spacing: int
    default_fee_rate: int


@dataclass
class WhirlpoolsConfigState:
    fee_authority: Pubkey
    collect_protocol_fees_authority: Pubkey
    reward_emissions_super_authority: Pubkey
    default_protocol_fee_rate: int


@dataclass
class LockConfigState:
    position: Pubkey
    position_owner: Pubkey
    whirlpool: Pubkey
    locked_timestamp: int
    lock_type: int


@dataclass
class PositionBundleState:
    """
    Bundle of up to 256 positions sharing one NFT

    Bit i of position_bitmap (byte i // 8, bit i % 8) is set when the
    bundled position at index i is open.
    """
    position_bundle_mint: Pubkey
    position_bitmap: bytes

    def open_indexes(self) -> List[int]:
        return [
            index for index in range(len(self.position_bitmap) * 8)
            if self.position_bitmap[index // 8] & (1 << (index % 8))
        ]


@dataclass
class TransferFeeEpoch:
    epoch: int
    maximum_fee: int
    transfer_fee_basis_points: int


@dataclass
class TransferFeeConfig:
    """Token-2022 TransferFeeConfig extension"""
    withheld_amount: int
    older_transfer_fee: TransferFeeEpoch
    newer_transfer_fee: TransferFeeEpoch


@dataclass
class MintState:
    """
    Decoded SPL mint (Token or Token-2022)

    Attributes:
        address: Mint address
        token_program: Owner program of the mint
        supply: Total supply
        decimals: Decimal places
        extension_types: Token-2022 extension type ids present on the mint
        transfer_fee_config: TransferFeeConfig extension, if any
    """
    address: Pubkey
    token_program: Pubkey
    supply: int
    decimals: int
    extension_types: List[int] = field(default_factory=list)
    transfer_fee_config: Optional[TransferFeeConfig] = None


@dataclass
class TokenAccountState:
    address: Pubkey
    mint: Pubkey
    owner: Pubkey
    amount: int
    token_program: Pubkey
