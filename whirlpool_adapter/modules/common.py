"""
Helpers shared by the instruction assemblers
"""

from typing import Optional, Tuple, Union

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ..config import WhirlpoolDefaults, _validate_slippage
from ..errors import PreconditionViolation
from ..protocols.whirlpool.math import get_tick_array_start_tick_index, get_tick_index_in_array
from ..protocols.whirlpool.pda import get_tick_array_address
from ..types.accounts import TickArrayState, TickState

Signer = Union[Pubkey, Keypair, str, None]


def resolve_funder(funder: Signer, defaults: WhirlpoolDefaults) -> Pubkey:
    """
    Signer for an action: the explicit one, else the default funder

    Raises:
        PreconditionViolation: If neither is set
    """
    if isinstance(funder, Keypair):
        funder = funder.pubkey()
    elif isinstance(funder, str):
        funder = Pubkey.from_string(funder)

    if funder is None or funder == Pubkey.default():
        if not defaults.has_funder:
            raise PreconditionViolation.funder_not_set()
        return defaults.funder
    return funder


def resolve_slippage(slippage_tolerance_bps: Optional[int], defaults: WhirlpoolDefaults) -> int:
    if slippage_tolerance_bps is None:
        return defaults.slippage_tolerance_bps
    return _validate_slippage(slippage_tolerance_bps)


def tick_array_for(whirlpool: Pubkey, tick_index: int, tick_spacing: int) -> Tuple[int, Pubkey]:
    """Start index and address of the tick array containing tick_index"""
    start_index = get_tick_array_start_tick_index(tick_index, tick_spacing)
    return start_index, get_tick_array_address(whirlpool, start_index)[0]


def tick_in_array(tick_array: TickArrayState, tick_index: int, tick_spacing: int) -> TickState:
    return tick_array.ticks[get_tick_index_in_array(tick_index, tick_array.start_tick_index, tick_spacing)]
