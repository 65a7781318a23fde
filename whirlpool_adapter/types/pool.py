"""
Pool and position lookup results
"""

from dataclasses import dataclass, field
from typing import List, Union

from solders.pubkey import Pubkey

from .accounts import PositionBundleState, PositionState, WhirlpoolState


@dataclass
class InitializedPool:
    """
    Pool that exists on chain

    Attributes:
        address: Pool address
        data: Decoded whirlpool account
        price: Human-readable price of token A in token B
    """
    address: Pubkey
    data: WhirlpoolState
    price: float

    @property
    def initialized(self) -> bool:
        return True

    @property
    def tick_spacing(self) -> int:
        return self.data.tick_spacing

    @property
    def fee_rate(self) -> int:
        return self.data.fee_rate


@dataclass
class UninitializedPool:
    """
    Pool that could be created for (config, mints, tick spacing)

    Fee rates are the defaults the pool would be created with.
    """
    address: Pubkey
    whirlpools_config: Pubkey
    tick_spacing: int
    fee_rate: int
    protocol_fee_rate: int
    token_mint_a: Pubkey
    token_mint_b: Pubkey

    @property
    def initialized(self) -> bool:
        return False


PoolInfo = Union[InitializedPool, UninitializedPool]


@dataclass
class PositionInfo:
    """Decoded position with its address"""
    address: Pubkey
    data: PositionState
    token_program: Pubkey


@dataclass
class PositionBundleInfo:
    """
    Position bundle held by a wallet, with its open bundled positions

    Bundled positions share the bundle NFT, so each PositionInfo in
    positions carries the bundle's token_program.
    """
    address: Pubkey
    data: PositionBundleState
    token_program: Pubkey
    positions: List[PositionInfo] = field(default_factory=list)


PositionOrBundle = Union[PositionInfo, PositionBundleInfo]
