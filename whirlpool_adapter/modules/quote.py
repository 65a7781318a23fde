"""
Quote Adapter

Single dispatch point between caller-facing parameter variants and the
quote math, plus the transfer-fee lookup and the "missing tick array
means empty" merge used by swaps.
"""

import logging
from typing import List, Optional, Sequence

from ..config import _validate_slippage
from ..errors import ConfigurationError
from ..protocols.whirlpool import quote_math
from ..types.accounts import MintState, TickArrayState
from ..types.params import (
    DecreaseLiquidityParam,
    IncreaseLiquidityParam,
    LiquidityParam,
    TokenAParam,
    TokenBParam,
)
from ..types.quotes import DecreaseLiquidityQuote, IncreaseLiquidityQuote, TickRange, TransferFee

logger = logging.getLogger(__name__)


def get_increase_liquidity_quote(
    param: IncreaseLiquidityParam,
    slippage_tolerance_bps: int,
    current_sqrt_price: int,
    tick_range: TickRange,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> IncreaseLiquidityQuote:
    """
    Quote an increase for any parameter variant

    Args:
        param: LiquidityParam, TokenAParam or TokenBParam
        slippage_tolerance_bps: Slippage tolerance (0-10000)
        current_sqrt_price: Pool sqrt price (Q64.64)
        tick_range: Position bounds
        transfer_fee_a: Current transfer fee on token A
        transfer_fee_b: Current transfer fee on token B

    Raises:
        ConfigurationError: If param is not a known variant
    """
    _validate_slippage(slippage_tolerance_bps)
    args = (
        slippage_tolerance_bps,
        current_sqrt_price,
        tick_range.tick_lower_index,
        tick_range.tick_upper_index,
        transfer_fee_a,
        transfer_fee_b,
    )
    if isinstance(param, LiquidityParam):
        return quote_math.increase_liquidity_quote(param.liquidity, *args)
    if isinstance(param, TokenAParam):
        return quote_math.increase_liquidity_quote_a(param.amount, *args)
    if isinstance(param, TokenBParam):
        return quote_math.increase_liquidity_quote_b(param.amount, *args)
    raise ConfigurationError.invalid("param", f"unsupported increase liquidity parameter {param!r}")


def get_decrease_liquidity_quote(
    param: DecreaseLiquidityParam,
    slippage_tolerance_bps: int,
    current_sqrt_price: int,
    tick_range: TickRange,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> DecreaseLiquidityQuote:
    """Quote a decrease for any parameter variant (see get_increase_liquidity_quote)"""
    _validate_slippage(slippage_tolerance_bps)
    args = (
        slippage_tolerance_bps,
        current_sqrt_price,
        tick_range.tick_lower_index,
        tick_range.tick_upper_index,
        transfer_fee_a,
        transfer_fee_b,
    )
    if isinstance(param, LiquidityParam):
        return quote_math.decrease_liquidity_quote(param.liquidity, *args)
    if isinstance(param, TokenAParam):
        return quote_math.decrease_liquidity_quote_a(param.amount, *args)
    if isinstance(param, TokenBParam):
        return quote_math.decrease_liquidity_quote_b(param.amount, *args)
    raise ConfigurationError.invalid("param", f"unsupported decrease liquidity parameter {param!r}")


def get_current_transfer_fee(mint: Optional[MintState], current_epoch: int) -> Optional[TransferFee]:
    """
    Transfer fee in force for a mint at current_epoch

    Returns:
        TransferFee, or None for mints without the TransferFeeConfig extension
    """
    if mint is None or mint.transfer_fee_config is None:
        return None
    fee_config = mint.transfer_fee_config
    if current_epoch >= fee_config.newer_transfer_fee.epoch:
        transfer_fee = fee_config.newer_transfer_fee
    else:
        transfer_fee = fee_config.older_transfer_fee
    return TransferFee(
        fee_bps=transfer_fee.transfer_fee_basis_points,
        max_fee=transfer_fee.maximum_fee,
    )


def tick_arrays_or_default(
    start_tick_indexes: Sequence[int],
    fetched: Sequence[Optional[TickArrayState]],
) -> List[TickArrayState]:
    """
    Replace tick arrays that do not exist on chain with empty ones

    Args:
        start_tick_indexes: Start index of each requested array
        fetched: Decoded array or None, aligned with start_tick_indexes
    """
    return [
        tick_array if tick_array is not None else TickArrayState.empty(start_index)
        for start_index, tick_array in zip(start_tick_indexes, fetched)
    ]
