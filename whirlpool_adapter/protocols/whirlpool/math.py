"""
Whirlpool Math Utilities

Tick/price conversion, tick-array helpers, token amount deltas and amount
adjustments (slippage, swap fee, transfer fee). All values are Python ints
holding the program's fixed-width integers: sqrt prices and liquidity are
u128 Q64.64, token amounts are u64.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .constants import (
    MIN_TICK_INDEX,
    MAX_TICK_INDEX,
    TICK_ARRAY_SIZE,
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
    FULL_RANGE_ONLY_TICK_SPACING_THRESHOLD,
    FEE_RATE_DENOMINATOR,
    BPS_DENOMINATOR,
    U64_MAX,
    U128_MAX,
)
from ...errors import QuoteError
from ...types.quotes import PositionStatus, TickRange, TransferFee

Q64 = 1 << 64

_LOG_B_2_X32 = 59543866431248
_BIT_PRECISION = 14
_LOG_B_P_ERR_MARGIN_LOWER_X64 = 184467440737095516  # 0.01
_LOG_B_P_ERR_MARGIN_UPPER_X64 = 15793534762490258745  # 2^-precision / log_2_b + 0.01

# sqrt(1.0001)^(2^i) in Q32.96, for bits 1..18 of a positive tick
_POSITIVE_TICK_FACTORS = [
    (2, 79236085330515764027303304731),
    (4, 79244008939048815603706035061),
    (8, 79259858533276714757314932305),
    (16, 79291567232598584799939703904),
    (32, 79355022692464371645785046466),
    (64, 79482085999252804386437311141),
    (128, 79736823300114093921829183326),
    (256, 80248749790819932309965073892),
    (512, 81282483887344747381513967011),
    (1024, 83390072131320151908154831281),
    (2048, 87770609709833776024991924138),
    (4096, 97234110755111693312479820773),
    (8192, 119332217159966728226237229890),
    (16384, 179736315981702064433883588727),
    (32768, 407748233172238350107850275304),
    (65536, 2098478828474011932436660412517),
    (131072, 55581415166113811149459800483533),
    (262144, 38992368544603139932233054999993551),
]

# sqrt(1.0001)^(-2^i) in Q64.64
_NEGATIVE_TICK_FACTORS = [
    (2, 18444899583751176498),
    (4, 18443055278223354162),
    (8, 18439367220385604838),
    (16, 18431993317065449817),
    (32, 18417254355718160513),
    (64, 18387811781193591352),
    (128, 18329067761203520168),
    (256, 18212142134806087854),
    (512, 17980523815641551639),
    (1024, 17526086738831147013),
    (2048, 16651378430235024244),
    (4096, 15030750278693429944),
    (8192, 12247334978882834399),
    (16384, 8131365268884726200),
    (32768, 3584323654723342297),
    (65536, 696457651847595233),
    (131072, 26294789957452057),
    (262144, 37481735321082),
]


# ---------------------------------------------------------------------------
# Tick helpers
# ---------------------------------------------------------------------------

def get_tick_array_start_tick_index(tick_index: int, tick_spacing: int) -> int:
    """
    First tick index of the tick array containing tick_index

    Uses floor division, so negative ticks map to the array below zero.
    """
    ticks_in_array = tick_spacing * TICK_ARRAY_SIZE
    return (tick_index // tick_spacing // TICK_ARRAY_SIZE) * ticks_in_array


def get_initializable_tick_index(
    tick_index: int,
    tick_spacing: int,
    round_up: Optional[bool] = None,
) -> int:
    """
    Round a tick index to a multiple of tick_spacing

    Args:
        tick_index: Raw tick index
        tick_spacing: Pool tick spacing
        round_up: True rounds up, False rounds down, None rounds to nearest

    Returns:
        Initializable tick index (unchanged if already aligned)
    """
    remainder = tick_index % tick_spacing
    result = (tick_index // tick_spacing) * tick_spacing

    if round_up is None:
        should_round_up = remainder >= tick_spacing // 2 and remainder > 0
    else:
        should_round_up = round_up and remainder > 0

    return result + tick_spacing if should_round_up else result


def get_prev_initializable_tick_index(tick_index: int, tick_spacing: int) -> int:
    remainder = tick_index % tick_spacing
    if remainder == 0:
        return tick_index - tick_spacing
    return tick_index - remainder


def get_next_initializable_tick_index(tick_index: int, tick_spacing: int) -> int:
    return tick_index - (tick_index % tick_spacing) + tick_spacing


def is_tick_index_in_bounds(tick_index: int) -> bool:
    return MIN_TICK_INDEX <= tick_index <= MAX_TICK_INDEX


def is_tick_initializable(tick_index: int, tick_spacing: int) -> bool:
    return tick_index % tick_spacing == 0


def is_full_range_only(tick_spacing: int) -> bool:
    return tick_spacing >= FULL_RANGE_ONLY_TICK_SPACING_THRESHOLD


def order_tick_indexes(tick_index_1: int, tick_index_2: int) -> TickRange:
    if tick_index_1 < tick_index_2:
        return TickRange(tick_index_1, tick_index_2)
    return TickRange(tick_index_2, tick_index_1)


def get_full_range_tick_indexes(tick_spacing: int) -> TickRange:
    """
    Widest aligned tick range for a tick spacing

    Division truncates toward zero so both bounds stay inside
    [MIN_TICK_INDEX, MAX_TICK_INDEX].
    """
    min_tick = int(MIN_TICK_INDEX / tick_spacing) * tick_spacing
    max_tick = int(MAX_TICK_INDEX / tick_spacing) * tick_spacing
    return TickRange(min_tick, max_tick)


def get_tick_index_in_array(tick_index: int, tick_array_start_index: int, tick_spacing: int) -> int:
    """
    Offset of tick_index inside the tick array starting at tick_array_start_index

    Raises:
        QuoteError: If the tick is outside the array
    """
    if tick_index < tick_array_start_index:
        raise QuoteError.tick_index_not_in_array(tick_index, tick_array_start_index)
    if tick_index >= tick_array_start_index + TICK_ARRAY_SIZE * tick_spacing:
        raise QuoteError.tick_index_not_in_array(tick_index, tick_array_start_index)
    return (tick_index - tick_array_start_index) // tick_spacing


# ---------------------------------------------------------------------------
# Tick <-> sqrt price
# ---------------------------------------------------------------------------

def _sqrt_price_positive_tick(tick: int) -> int:
    ratio = 79232123823359799118286999567 if tick & 1 else 79228162514264337593543950336
    for bit, factor in _POSITIVE_TICK_FACTORS:
        if tick & bit:
            ratio = (ratio * factor) >> 96
    return ratio >> 32


def _sqrt_price_negative_tick(tick: int) -> int:
    abs_tick = abs(tick)
    ratio = 18445821805675392311 if abs_tick & 1 else 18446744073709551616
    for bit, factor in _NEGATIVE_TICK_FACTORS:
        if abs_tick & bit:
            ratio = (ratio * factor) >> 64
    return ratio


def tick_index_to_sqrt_price(tick_index: int) -> int:
    """
    Convert tick index to sqrt price (Q64.64)

    Precision is only guaranteed within [MIN_TICK_INDEX, MAX_TICK_INDEX].
    """
    if tick_index >= 0:
        return _sqrt_price_positive_tick(tick_index)
    return _sqrt_price_negative_tick(tick_index)


def sqrt_price_to_tick_index(sqrt_price: int) -> int:
    """
    Convert sqrt price (Q64.64) to the tick index at or below it

    Uses a 14-bit log2 approximation, then resolves the two candidate ticks
    against tick_index_to_sqrt_price.
    """
    msb = sqrt_price.bit_length() - 1
    log2p_integer_x32 = (msb - 64) << 32

    bit = 0x8000_0000_0000_0000
    precision = 0
    log2p_fraction_x64 = 0

    if msb >= 64:
        r = sqrt_price >> (msb - 63)
    else:
        r = sqrt_price << (63 - msb)

    while bit > 0 and precision < _BIT_PRECISION:
        r *= r
        is_r_more_than_two = r >> 127
        r >>= 63 + is_r_more_than_two
        log2p_fraction_x64 += bit * is_r_more_than_two
        bit >>= 1
        precision += 1

    log2p_fraction_x32 = log2p_fraction_x64 >> 32
    log2p_x32 = log2p_integer_x32 + log2p_fraction_x32

    logbp_x64 = log2p_x32 * _LOG_B_2_X32

    tick_low = (logbp_x64 - _LOG_B_P_ERR_MARGIN_LOWER_X64) >> 64
    tick_high = (logbp_x64 + _LOG_B_P_ERR_MARGIN_UPPER_X64) >> 64

    if tick_low == tick_high:
        return tick_low
    if tick_index_to_sqrt_price(tick_high) <= sqrt_price:
        return tick_high
    return tick_low


# ---------------------------------------------------------------------------
# Price conversion
# ---------------------------------------------------------------------------

def price_to_sqrt_price(price: float, decimals_a: int, decimals_b: int) -> int:
    """
    Convert a human-readable price (token B per token A) to sqrt price

    Args:
        price: Price of one whole token A in whole token B
        decimals_a: Token A decimals
        decimals_b: Token B decimals

    Returns:
        Sqrt price as Q64.64 integer
    """
    power = math.pow(10, decimals_a - decimals_b)
    return int(math.floor(math.sqrt(price / power) * float(Q64)))


def sqrt_price_to_price(sqrt_price: int, decimals_a: int, decimals_b: int) -> float:
    power = math.pow(10, decimals_a - decimals_b)
    return math.pow(sqrt_price / float(Q64), 2) * power


def tick_index_to_price(tick_index: int, decimals_a: int, decimals_b: int) -> float:
    return sqrt_price_to_price(tick_index_to_sqrt_price(tick_index), decimals_a, decimals_b)


def price_to_tick_index(price: float, decimals_a: int, decimals_b: int) -> int:
    return sqrt_price_to_tick_index(price_to_sqrt_price(price, decimals_a, decimals_b))


def invert_tick_index(tick_index: int) -> int:
    return -tick_index


def invert_price(price: float, decimals_a: int, decimals_b: int) -> float:
    tick_index = price_to_tick_index(price, decimals_a, decimals_b)
    return tick_index_to_price(invert_tick_index(tick_index), decimals_a, decimals_b)


# ---------------------------------------------------------------------------
# Position helpers
# ---------------------------------------------------------------------------

def position_status(current_sqrt_price: int, tick_lower_index: int, tick_upper_index: int) -> PositionStatus:
    if tick_lower_index == tick_upper_index:
        return PositionStatus.INVALID

    tick_range = order_tick_indexes(tick_lower_index, tick_upper_index)
    sqrt_price_lower = tick_index_to_sqrt_price(tick_range.tick_lower_index)
    sqrt_price_upper = tick_index_to_sqrt_price(tick_range.tick_upper_index)

    if current_sqrt_price <= sqrt_price_lower:
        return PositionStatus.PRICE_BELOW_RANGE
    if current_sqrt_price >= sqrt_price_upper:
        return PositionStatus.PRICE_ABOVE_RANGE
    return PositionStatus.PRICE_IN_RANGE


def is_position_in_range(current_sqrt_price: int, tick_lower_index: int, tick_upper_index: int) -> bool:
    return position_status(current_sqrt_price, tick_lower_index, tick_upper_index) == PositionStatus.PRICE_IN_RANGE


# ---------------------------------------------------------------------------
# Token math
# ---------------------------------------------------------------------------

def _check_u64(value: int) -> int:
    if value > U64_MAX:
        raise QuoteError.amount_exceeds_max_u64(value)
    return value


def _check_sqrt_price(sqrt_price: int) -> int:
    if not MIN_SQRT_PRICE <= sqrt_price <= MAX_SQRT_PRICE:
        raise QuoteError.sqrt_price_out_of_bounds(sqrt_price)
    return sqrt_price


def try_get_amount_delta_a(
    current_sqrt_price: int,
    target_sqrt_price: int,
    current_liquidity: int,
    round_up: bool,
) -> int:
    """Token A amount between two sqrt prices: L * (sqrt_u - sqrt_l) / (sqrt_u * sqrt_l)"""
    sqrt_price_lower, sqrt_price_upper = sorted((current_sqrt_price, target_sqrt_price))
    numerator = (current_liquidity * (sqrt_price_upper - sqrt_price_lower)) << 64
    denominator = sqrt_price_lower * sqrt_price_upper

    quotient, remainder = divmod(numerator, denominator)
    if round_up and remainder != 0:
        quotient += 1
    return _check_u64(quotient)


def try_get_amount_delta_b(
    current_sqrt_price: int,
    target_sqrt_price: int,
    current_liquidity: int,
    round_up: bool,
) -> int:
    """Token B amount between two sqrt prices: L * (sqrt_u - sqrt_l)"""
    sqrt_price_lower, sqrt_price_upper = sorted((current_sqrt_price, target_sqrt_price))
    product = current_liquidity * (sqrt_price_upper - sqrt_price_lower)
    quotient = product >> 64
    if round_up and product & U64_MAX > 0:
        quotient += 1
    return _check_u64(quotient)


def try_get_next_sqrt_price_from_a(
    current_sqrt_price: int,
    current_liquidity: int,
    amount: int,
    specified_input: bool,
) -> int:
    if amount == 0:
        return current_sqrt_price

    product = current_sqrt_price * amount
    numerator = (current_liquidity * current_sqrt_price) << 64
    liquidity_shifted = current_liquidity << 64
    denominator = liquidity_shifted + product if specified_input else liquidity_shifted - product
    if denominator <= 0:
        raise QuoteError.sqrt_price_out_of_bounds(0)

    quotient, remainder = divmod(numerator, denominator)
    if remainder != 0:
        quotient += 1
    return _check_sqrt_price(quotient)


def try_get_next_sqrt_price_from_b(
    current_sqrt_price: int,
    current_liquidity: int,
    amount: int,
    specified_input: bool,
) -> int:
    if amount == 0:
        return current_sqrt_price

    quotient, remainder = divmod(amount << 64, current_liquidity)
    if not specified_input and remainder != 0:
        quotient += 1

    if specified_input:
        result = current_sqrt_price + quotient
    else:
        result = current_sqrt_price - quotient
    return _check_sqrt_price(result)


# ---------------------------------------------------------------------------
# Amount adjustments
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Adjustment:
    """
    Proportional amount adjustment

    Attributes:
        numerator: Rate numerator (bps or fee rate)
        denominator: 10_000 for bps, 1_000_000 for pool fee rates
        max_fee: Cap on the absolute adjustment
    """
    numerator: int = 0
    denominator: int = BPS_DENOMINATOR
    max_fee: int = U128_MAX

    @classmethod
    def none(cls) -> "Adjustment":
        return cls()

    @classmethod
    def slippage(cls, slippage_tolerance_bps: int) -> "Adjustment":
        return cls(numerator=slippage_tolerance_bps)

    @classmethod
    def swap_fee(cls, fee_rate: int) -> "Adjustment":
        return cls(numerator=fee_rate, denominator=FEE_RATE_DENOMINATOR)

    @classmethod
    def transfer_fee(cls, transfer_fee: Optional[TransferFee]) -> "Adjustment":
        if transfer_fee is None:
            return cls()
        return cls(numerator=transfer_fee.fee_bps, max_fee=transfer_fee.max_fee)


def try_adjust_amount(amount: int, adjustment: Adjustment, adjust_up: bool) -> int:
    """
    Apply an adjustment to an amount

    Up: amount * (d + n) / d rounded up. Down: amount * (d - n) / d rounded
    down. The absolute change is capped at adjustment.max_fee.
    """
    if amount == 0:
        return 0
    if adjustment.numerator == 0:
        return amount

    denominator = adjustment.denominator
    if adjust_up:
        product = denominator + adjustment.numerator
    else:
        product = denominator - adjustment.numerator

    quotient, remainder = divmod(amount * product, denominator)
    result = quotient + 1 if adjust_up and remainder != 0 else quotient

    fee_amount = result - amount if adjust_up else amount - result
    if fee_amount >= adjustment.max_fee:
        result = amount + adjustment.max_fee if adjust_up else amount - adjustment.max_fee

    return _check_u64(result)


def apply_slippage_max(amount: int, slippage_tolerance_bps: int) -> int:
    """Upper bound on amount under slippage, rounded up"""
    return try_adjust_amount(amount, Adjustment.slippage(slippage_tolerance_bps), True)


def apply_slippage_min(amount: int, slippage_tolerance_bps: int) -> int:
    """Lower bound on amount under slippage, rounded down"""
    return try_adjust_amount(amount, Adjustment.slippage(slippage_tolerance_bps), False)


def try_inverse_adjust_amount(amount: int, adjustment: Adjustment, adjust_up: bool) -> int:
    """
    Undo try_adjust_amount

    Given an amount after adjustment, recover the amount before it. With
    adjust_up=False this answers "how much must be sent so that `amount`
    arrives after the fee is taken".
    """
    if amount == 0:
        return 0
    if adjustment.numerator == 0:
        return amount

    denominator = adjustment.denominator
    if adjust_up:
        divisor = denominator + adjustment.numerator
    else:
        divisor = denominator - adjustment.numerator
    if divisor <= 0:
        # 100% fee: only the cap bounds the pre-fee amount
        return _check_u64(amount + adjustment.max_fee)

    quotient, remainder = divmod(amount * denominator, divisor)
    result = quotient + 1 if not adjust_up and remainder != 0 else quotient

    fee_amount = amount - result if adjust_up else result - amount
    if fee_amount >= adjustment.max_fee:
        result = amount - adjustment.max_fee if adjust_up else amount + adjustment.max_fee

    return _check_u64(result)
