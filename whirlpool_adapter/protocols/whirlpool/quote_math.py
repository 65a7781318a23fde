"""
Whirlpool Quote Math

Pure quote functions over decoded account state: liquidity increase and
decrease quotes (by liquidity, token A or token B), owed fees, owed rewards,
and exact-in / exact-out swap quotes walking a five-array tick sequence.

Every function takes and returns integers in raw on-chain units. Transfer
fees are passed as Optional[TransferFee]; None means a plain SPL mint.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .constants import (
    MIN_TICK_INDEX,
    MAX_TICK_INDEX,
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
    NUM_REWARDS,
    TICK_ARRAY_SIZE,
    U64_MAX,
    U128_MAX,
)
from .math import (
    Adjustment,
    apply_slippage_max,
    apply_slippage_min,
    get_initializable_tick_index,
    get_next_initializable_tick_index,
    get_prev_initializable_tick_index,
    order_tick_indexes,
    position_status,
    sqrt_price_to_tick_index,
    tick_index_to_sqrt_price,
    try_adjust_amount,
    try_get_amount_delta_a,
    try_get_amount_delta_b,
    try_get_next_sqrt_price_from_a,
    try_get_next_sqrt_price_from_b,
    try_inverse_adjust_amount,
)
from ...errors import QuoteError
from ...types.accounts import PositionState, TickArrayState, TickState, WhirlpoolState
from ...types.quotes import (
    CollectFeesQuote,
    CollectRewardQuote,
    CollectRewardsQuote,
    DecreaseLiquidityQuote,
    ExactInSwapQuote,
    ExactOutSwapQuote,
    IncreaseLiquidityQuote,
    PositionStatus,
    TransferFee,
)

_U128_MOD = U128_MAX + 1


# ---------------------------------------------------------------------------
# Liquidity
# ---------------------------------------------------------------------------

def _liquidity_from_a(token_delta_a: int, sqrt_price_lower: int, sqrt_price_upper: int) -> int:
    sqrt_price_diff = sqrt_price_upper - sqrt_price_lower
    product = token_delta_a * sqrt_price_lower * sqrt_price_upper
    return (product // sqrt_price_diff) >> 64


def _liquidity_from_b(token_delta_b: int, sqrt_price_lower: int, sqrt_price_upper: int) -> int:
    sqrt_price_diff = sqrt_price_upper - sqrt_price_lower
    return (token_delta_b << 64) // sqrt_price_diff


def get_token_estimates_from_liquidity(
    liquidity_delta: int,
    current_sqrt_price: int,
    tick_lower_index: int,
    tick_upper_index: int,
    round_up: bool,
) -> Tuple[int, int]:
    """
    Token A and B amounts backing liquidity_delta over a tick range

    Args:
        liquidity_delta: Liquidity amount (u128)
        current_sqrt_price: Pool sqrt price
        tick_lower_index: Lower tick of the range
        tick_upper_index: Upper tick of the range
        round_up: True for deposits, False for withdrawals

    Returns:
        (token_a, token_b)
    """
    if liquidity_delta == 0:
        return 0, 0

    tick_range = order_tick_indexes(tick_lower_index, tick_upper_index)
    sqrt_price_lower = tick_index_to_sqrt_price(tick_range.tick_lower_index)
    sqrt_price_upper = tick_index_to_sqrt_price(tick_range.tick_upper_index)
    status = position_status(current_sqrt_price, tick_range.tick_lower_index, tick_range.tick_upper_index)

    if status == PositionStatus.PRICE_BELOW_RANGE:
        token_a = try_get_amount_delta_a(sqrt_price_lower, sqrt_price_upper, liquidity_delta, round_up)
        return token_a, 0
    if status == PositionStatus.PRICE_IN_RANGE:
        token_a = try_get_amount_delta_a(current_sqrt_price, sqrt_price_upper, liquidity_delta, round_up)
        token_b = try_get_amount_delta_b(sqrt_price_lower, current_sqrt_price, liquidity_delta, round_up)
        return token_a, token_b
    if status == PositionStatus.PRICE_ABOVE_RANGE:
        token_b = try_get_amount_delta_b(sqrt_price_lower, sqrt_price_upper, liquidity_delta, round_up)
        return 0, token_b
    return 0, 0


def _liquidity_for_token_a(token_delta_a: int, current_sqrt_price: int, tick_lower_index: int, tick_upper_index: int) -> int:
    tick_range = order_tick_indexes(tick_lower_index, tick_upper_index)
    sqrt_price_lower = tick_index_to_sqrt_price(tick_range.tick_lower_index)
    sqrt_price_upper = tick_index_to_sqrt_price(tick_range.tick_upper_index)
    status = position_status(current_sqrt_price, tick_range.tick_lower_index, tick_range.tick_upper_index)

    if status == PositionStatus.PRICE_BELOW_RANGE:
        return _liquidity_from_a(token_delta_a, sqrt_price_lower, sqrt_price_upper)
    if status == PositionStatus.PRICE_IN_RANGE:
        return _liquidity_from_a(token_delta_a, current_sqrt_price, sqrt_price_upper)
    return 0


def _liquidity_for_token_b(token_delta_b: int, current_sqrt_price: int, tick_lower_index: int, tick_upper_index: int) -> int:
    tick_range = order_tick_indexes(tick_lower_index, tick_upper_index)
    sqrt_price_lower = tick_index_to_sqrt_price(tick_range.tick_lower_index)
    sqrt_price_upper = tick_index_to_sqrt_price(tick_range.tick_upper_index)
    status = position_status(current_sqrt_price, tick_range.tick_lower_index, tick_range.tick_upper_index)

    if status == PositionStatus.PRICE_ABOVE_RANGE:
        return _liquidity_from_b(token_delta_b, sqrt_price_lower, sqrt_price_upper)
    if status == PositionStatus.PRICE_IN_RANGE:
        return _liquidity_from_b(token_delta_b, sqrt_price_lower, current_sqrt_price)
    return 0


def increase_liquidity_quote(
    liquidity_delta: int,
    slippage_tolerance_bps: int,
    current_sqrt_price: int,
    tick_lower_index: int,
    tick_upper_index: int,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> IncreaseLiquidityQuote:
    """
    Quote the token amounts needed to add liquidity_delta

    Estimates include the transfer fee on top of the pool amount; maximums
    widen the estimates by the slippage tolerance.
    """
    if liquidity_delta == 0:
        return IncreaseLiquidityQuote()

    est_before_fee_a, est_before_fee_b = get_token_estimates_from_liquidity(
        liquidity_delta, current_sqrt_price, tick_lower_index, tick_upper_index, True,
    )

    token_est_a = try_inverse_adjust_amount(est_before_fee_a, Adjustment.transfer_fee(transfer_fee_a), False)
    token_est_b = try_inverse_adjust_amount(est_before_fee_b, Adjustment.transfer_fee(transfer_fee_b), False)

    return IncreaseLiquidityQuote(
        liquidity_delta=liquidity_delta,
        token_est_a=token_est_a,
        token_est_b=token_est_b,
        token_max_a=apply_slippage_max(token_est_a, slippage_tolerance_bps),
        token_max_b=apply_slippage_max(token_est_b, slippage_tolerance_bps),
    )


def increase_liquidity_quote_a(
    token_amount_a: int,
    slippage_tolerance_bps: int,
    current_sqrt_price: int,
    tick_lower_index: int,
    tick_upper_index: int,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> IncreaseLiquidityQuote:
    token_delta_a = try_adjust_amount(token_amount_a, Adjustment.transfer_fee(transfer_fee_a), False)
    if token_delta_a == 0:
        return IncreaseLiquidityQuote()

    liquidity = _liquidity_for_token_a(token_delta_a, current_sqrt_price, tick_lower_index, tick_upper_index)
    return increase_liquidity_quote(
        liquidity, slippage_tolerance_bps, current_sqrt_price,
        tick_lower_index, tick_upper_index, transfer_fee_a, transfer_fee_b,
    )


def increase_liquidity_quote_b(
    token_amount_b: int,
    slippage_tolerance_bps: int,
    current_sqrt_price: int,
    tick_lower_index: int,
    tick_upper_index: int,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> IncreaseLiquidityQuote:
    token_delta_b = try_adjust_amount(token_amount_b, Adjustment.transfer_fee(transfer_fee_b), False)
    if token_delta_b == 0:
        return IncreaseLiquidityQuote()

    liquidity = _liquidity_for_token_b(token_delta_b, current_sqrt_price, tick_lower_index, tick_upper_index)
    return increase_liquidity_quote(
        liquidity, slippage_tolerance_bps, current_sqrt_price,
        tick_lower_index, tick_upper_index, transfer_fee_a, transfer_fee_b,
    )


def decrease_liquidity_quote(
    liquidity_delta: int,
    slippage_tolerance_bps: int,
    current_sqrt_price: int,
    tick_lower_index: int,
    tick_upper_index: int,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> DecreaseLiquidityQuote:
    """
    Quote the token amounts received for removing liquidity_delta

    Estimates are net of transfer fees; minimums narrow the estimates by
    the slippage tolerance.
    """
    if liquidity_delta == 0:
        return DecreaseLiquidityQuote()

    est_before_fee_a, est_before_fee_b = get_token_estimates_from_liquidity(
        liquidity_delta, current_sqrt_price, tick_lower_index, tick_upper_index, False,
    )

    token_est_a = try_adjust_amount(est_before_fee_a, Adjustment.transfer_fee(transfer_fee_a), False)
    token_est_b = try_adjust_amount(est_before_fee_b, Adjustment.transfer_fee(transfer_fee_b), False)

    return DecreaseLiquidityQuote(
        liquidity_delta=liquidity_delta,
        token_est_a=token_est_a,
        token_est_b=token_est_b,
        token_min_a=apply_slippage_min(token_est_a, slippage_tolerance_bps),
        token_min_b=apply_slippage_min(token_est_b, slippage_tolerance_bps),
    )


def decrease_liquidity_quote_a(
    token_amount_a: int,
    slippage_tolerance_bps: int,
    current_sqrt_price: int,
    tick_lower_index: int,
    tick_upper_index: int,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> DecreaseLiquidityQuote:
    token_delta_a = try_inverse_adjust_amount(token_amount_a, Adjustment.transfer_fee(transfer_fee_a), False)
    if token_delta_a == 0:
        return DecreaseLiquidityQuote()

    liquidity = _liquidity_for_token_a(token_delta_a, current_sqrt_price, tick_lower_index, tick_upper_index)
    return decrease_liquidity_quote(
        liquidity, slippage_tolerance_bps, current_sqrt_price,
        tick_lower_index, tick_upper_index, transfer_fee_a, transfer_fee_b,
    )


def decrease_liquidity_quote_b(
    token_amount_b: int,
    slippage_tolerance_bps: int,
    current_sqrt_price: int,
    tick_lower_index: int,
    tick_upper_index: int,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> DecreaseLiquidityQuote:
    token_delta_b = try_inverse_adjust_amount(token_amount_b, Adjustment.transfer_fee(transfer_fee_b), False)
    if token_delta_b == 0:
        return DecreaseLiquidityQuote()

    liquidity = _liquidity_for_token_b(token_delta_b, current_sqrt_price, tick_lower_index, tick_upper_index)
    return decrease_liquidity_quote(
        liquidity, slippage_tolerance_bps, current_sqrt_price,
        tick_lower_index, tick_upper_index, transfer_fee_a, transfer_fee_b,
    )


# ---------------------------------------------------------------------------
# Fees and rewards
# ---------------------------------------------------------------------------

def _growth_inside(
    tick_current_index: int,
    tick_lower_index: int,
    tick_upper_index: int,
    growth_global: int,
    growth_outside_lower: int,
    growth_outside_upper: int,
) -> int:
    if tick_current_index < tick_lower_index:
        growth_below = (growth_global - growth_outside_lower) % _U128_MOD
    else:
        growth_below = growth_outside_lower

    if tick_current_index < tick_upper_index:
        growth_above = growth_outside_upper
    else:
        growth_above = (growth_global - growth_outside_upper) % _U128_MOD

    return (growth_global - growth_below - growth_above) % _U128_MOD


def collect_fees_quote(
    whirlpool: WhirlpoolState,
    position: PositionState,
    tick_lower: TickState,
    tick_upper: TickState,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> CollectFeesQuote:
    """
    Fees owed to a position, as if update_fees_and_rewards ran now

    Args:
        whirlpool: Pool state
        position: Position state
        tick_lower: Tick at the position's lower bound
        tick_upper: Tick at the position's upper bound
        transfer_fee_a: Transfer fee on token A
        transfer_fee_b: Transfer fee on token B

    Returns:
        CollectFeesQuote net of transfer fees
    """
    fee_growth_inside_a = _growth_inside(
        whirlpool.tick_current_index,
        position.tick_lower_index,
        position.tick_upper_index,
        whirlpool.fee_growth_global_a,
        tick_lower.fee_growth_outside_a,
        tick_upper.fee_growth_outside_a,
    )
    fee_growth_inside_b = _growth_inside(
        whirlpool.tick_current_index,
        position.tick_lower_index,
        position.tick_upper_index,
        whirlpool.fee_growth_global_b,
        tick_lower.fee_growth_outside_b,
        tick_upper.fee_growth_outside_b,
    )

    delta_a = (fee_growth_inside_a - position.fee_growth_checkpoint_a) % _U128_MOD
    delta_b = (fee_growth_inside_b - position.fee_growth_checkpoint_b) % _U128_MOD

    # The program truncates owed fees to u64
    fee_owed_delta_a = ((delta_a * position.liquidity) >> 64) & U64_MAX
    fee_owed_delta_b = ((delta_b * position.liquidity) >> 64) & U64_MAX

    fee_owed_a = position.fee_owed_a + fee_owed_delta_a
    fee_owed_b = position.fee_owed_b + fee_owed_delta_b

    return CollectFeesQuote(
        fee_owed_a=try_adjust_amount(fee_owed_a, Adjustment.transfer_fee(transfer_fee_a), False),
        fee_owed_b=try_adjust_amount(fee_owed_b, Adjustment.transfer_fee(transfer_fee_b), False),
    )


def collect_rewards_quote(
    whirlpool: WhirlpoolState,
    position: PositionState,
    tick_lower: TickState,
    tick_upper: TickState,
    current_timestamp: int,
    transfer_fees: Sequence[Optional[TransferFee]] = (None, None, None),
) -> CollectRewardsQuote:
    """
    Rewards owed to a position at current_timestamp

    Pool reward growth is first advanced by emissions since the last update,
    then the in-range growth since the position's checkpoint is applied.
    """
    time_delta = max(current_timestamp - whirlpool.reward_last_updated_timestamp, 0)
    rewards: List[CollectRewardQuote] = []

    for i in range(NUM_REWARDS):
        if i >= len(whirlpool.reward_infos) or not whirlpool.reward_infos[i].initialized:
            rewards.append(CollectRewardQuote())
            continue

        reward_info = whirlpool.reward_infos[i]
        reward_growth = reward_info.growth_global_x64
        if whirlpool.liquidity != 0:
            reward_growth_delta = reward_info.emissions_per_second_x64 * time_delta // whirlpool.liquidity
            reward_growth = (reward_growth + reward_growth_delta) % _U128_MOD

        reward_growth_inside = _growth_inside(
            whirlpool.tick_current_index,
            position.tick_lower_index,
            position.tick_upper_index,
            reward_growth,
            tick_lower.reward_growths_outside[i],
            tick_upper.reward_growths_outside[i],
        )

        position_reward = position.reward_infos[i]
        growth_delta = (reward_growth_inside - position_reward.growth_inside_checkpoint) % _U128_MOD
        amount_owed_delta = (position.liquidity * growth_delta) >> 64

        rewards_owed = position_reward.amount_owed + amount_owed_delta
        transfer_fee = transfer_fees[i] if i < len(transfer_fees) else None
        rewards.append(CollectRewardQuote(
            rewards_owed=try_adjust_amount(rewards_owed, Adjustment.transfer_fee(transfer_fee), False),
        ))

    return CollectRewardsQuote(rewards=rewards)


# ---------------------------------------------------------------------------
# Swap
# ---------------------------------------------------------------------------

class TickArraySequence:
    """
    Contiguous run of tick arrays used to walk a swap

    Arrays are sorted by start index on construction. Ticks past either end
    are reported as the sequence bound with no tick data.
    """

    def __init__(self, tick_arrays: Sequence[TickArrayState], tick_spacing: int):
        if not tick_arrays:
            raise QuoteError.tick_sequence_exhausted(0)
        self.tick_arrays = sorted(tick_arrays, key=lambda ta: ta.start_tick_index)
        self.tick_spacing = tick_spacing

    @property
    def start_index(self) -> int:
        return max(self.tick_arrays[0].start_tick_index, MIN_TICK_INDEX)

    @property
    def end_index(self) -> int:
        last_start = self.tick_arrays[-1].start_tick_index
        return min(last_start + TICK_ARRAY_SIZE * self.tick_spacing - 1, MAX_TICK_INDEX)

    def tick(self, tick_index: int) -> TickState:
        if tick_index < self.start_index or tick_index > self.end_index:
            raise QuoteError.tick_sequence_exhausted(tick_index)
        ticks_in_array = TICK_ARRAY_SIZE * self.tick_spacing
        first_start = self.tick_arrays[0].start_tick_index
        tick_array = self.tick_arrays[(tick_index - first_start) // ticks_in_array]
        return tick_array.ticks[(tick_index - tick_array.start_tick_index) // self.tick_spacing]

    def next_initialized_tick(self, tick_index: int) -> Tuple[Optional[TickState], int]:
        end_index = self.end_index
        if tick_index >= end_index:
            raise QuoteError.tick_sequence_exhausted(tick_index)
        next_index = tick_index
        while True:
            next_index = get_next_initializable_tick_index(next_index, self.tick_spacing)
            if next_index > end_index:
                return None, end_index
            tick = self.tick(next_index)
            if tick.initialized:
                return tick, next_index

    def prev_initialized_tick(self, tick_index: int) -> Tuple[Optional[TickState], int]:
        start_index = self.start_index
        if tick_index < start_index:
            raise QuoteError.tick_sequence_exhausted(tick_index)
        prev_index = get_initializable_tick_index(tick_index, self.tick_spacing, False)
        while True:
            if prev_index < start_index:
                return None, start_index
            tick = self.tick(prev_index)
            if tick.initialized:
                return tick, prev_index
            prev_index = get_prev_initializable_tick_index(prev_index, self.tick_spacing)


@dataclass
class SwapResult:
    token_a: int
    token_b: int
    trade_fee: int


@dataclass
class SwapStepQuote:
    amount_in: int
    amount_out: int
    next_sqrt_price: int
    fee_amount: int


def _amount_fixed_delta(current_sqrt_price, target_sqrt_price, liquidity, a_to_b, specified_input):
    if a_to_b == specified_input:
        return try_get_amount_delta_a(current_sqrt_price, target_sqrt_price, liquidity, specified_input)
    return try_get_amount_delta_b(current_sqrt_price, target_sqrt_price, liquidity, specified_input)


def _amount_unfixed_delta(current_sqrt_price, target_sqrt_price, liquidity, a_to_b, specified_input):
    if a_to_b == specified_input:
        return try_get_amount_delta_b(current_sqrt_price, target_sqrt_price, liquidity, not specified_input)
    return try_get_amount_delta_a(current_sqrt_price, target_sqrt_price, liquidity, not specified_input)


def _next_sqrt_price(current_sqrt_price, liquidity, amount, a_to_b, specified_input):
    if a_to_b == specified_input:
        return try_get_next_sqrt_price_from_a(current_sqrt_price, liquidity, amount, specified_input)
    return try_get_next_sqrt_price_from_b(current_sqrt_price, liquidity, amount, specified_input)


def _next_liquidity(current_liquidity: int, next_tick: Optional[TickState], a_to_b: bool) -> int:
    liquidity_net = next_tick.liquidity_net if next_tick is not None else 0
    if a_to_b:
        return current_liquidity - liquidity_net
    return current_liquidity + liquidity_net


def compute_swap_step(
    amount_remaining: int,
    fee_rate: int,
    current_liquidity: int,
    current_sqrt_price: int,
    target_sqrt_price: int,
    a_to_b: bool,
    specified_input: bool,
) -> SwapStepQuote:
    """Swap within a single tick interval, stopping at target_sqrt_price"""
    swap_fee = Adjustment.swap_fee(fee_rate)

    amount_fixed_delta = _amount_fixed_delta(
        current_sqrt_price, target_sqrt_price, current_liquidity, a_to_b, specified_input,
    )

    if specified_input:
        amount_calculated = try_adjust_amount(amount_remaining, swap_fee, False)
    else:
        amount_calculated = amount_remaining

    if amount_calculated >= amount_fixed_delta:
        next_sqrt_price = target_sqrt_price
    else:
        next_sqrt_price = _next_sqrt_price(
            current_sqrt_price, current_liquidity, amount_calculated, a_to_b, specified_input,
        )

    is_max_swap = next_sqrt_price == target_sqrt_price

    amount_unfixed_delta = _amount_unfixed_delta(
        current_sqrt_price, next_sqrt_price, current_liquidity, a_to_b, specified_input,
    )

    if not is_max_swap:
        amount_fixed_delta = _amount_fixed_delta(
            current_sqrt_price, next_sqrt_price, current_liquidity, a_to_b, specified_input,
        )

    if specified_input:
        amount_in, amount_out = amount_fixed_delta, amount_unfixed_delta
    else:
        amount_in, amount_out = amount_unfixed_delta, amount_fixed_delta

    if not specified_input and amount_out > amount_remaining:
        amount_out = amount_remaining

    if specified_input and not is_max_swap:
        fee_amount = amount_remaining - amount_in
    else:
        pre_fee_amount = try_inverse_adjust_amount(amount_in, swap_fee, False)
        fee_amount = pre_fee_amount - amount_in

    return SwapStepQuote(
        amount_in=amount_in,
        amount_out=amount_out,
        next_sqrt_price=next_sqrt_price,
        fee_amount=fee_amount,
    )


def compute_swap(
    token_amount: int,
    whirlpool: WhirlpoolState,
    tick_sequence: TickArraySequence,
    a_to_b: bool,
    specified_input: bool,
) -> SwapResult:
    """
    Walk the tick sequence until token_amount is consumed or price hits a bound

    Returns:
        SwapResult with token A and B amounts and the total pool fee
    """
    amount_remaining = token_amount
    amount_calculated = 0
    current_sqrt_price = whirlpool.sqrt_price
    current_tick_index = whirlpool.tick_current_index
    current_liquidity = whirlpool.liquidity
    trade_fee = 0

    while amount_remaining > 0 and MIN_SQRT_PRICE < current_sqrt_price < MAX_SQRT_PRICE:
        if a_to_b:
            next_tick, next_tick_index = tick_sequence.prev_initialized_tick(current_tick_index)
        else:
            next_tick, next_tick_index = tick_sequence.next_initialized_tick(current_tick_index)

        next_tick_sqrt_price = tick_index_to_sqrt_price(next_tick_index)
        if a_to_b:
            target_sqrt_price = max(next_tick_sqrt_price, MIN_SQRT_PRICE)
        else:
            target_sqrt_price = min(next_tick_sqrt_price, MAX_SQRT_PRICE)

        step = compute_swap_step(
            amount_remaining,
            whirlpool.fee_rate,
            current_liquidity,
            current_sqrt_price,
            target_sqrt_price,
            a_to_b,
            specified_input,
        )

        trade_fee += step.fee_amount
        if specified_input:
            amount_remaining -= step.amount_in + step.fee_amount
            amount_calculated += step.amount_out
        else:
            amount_remaining -= step.amount_out
            amount_calculated += step.amount_in + step.fee_amount

        if step.next_sqrt_price == next_tick_sqrt_price:
            current_liquidity = _next_liquidity(current_liquidity, next_tick, a_to_b)
            # Moving down, the crossed tick belongs to the interval above
            current_tick_index = next_tick_index - 1 if a_to_b else next_tick_index
        else:
            current_tick_index = sqrt_price_to_tick_index(step.next_sqrt_price)

        current_sqrt_price = step.next_sqrt_price

    swapped_amount = token_amount - amount_remaining
    if a_to_b == specified_input:
        token_a, token_b = swapped_amount, amount_calculated
    else:
        token_a, token_b = amount_calculated, swapped_amount

    return SwapResult(token_a=token_a, token_b=token_b, trade_fee=trade_fee)


def swap_quote_by_input_token(
    token_in: int,
    specified_token_a: bool,
    slippage_tolerance_bps: int,
    whirlpool: WhirlpoolState,
    tick_arrays: Sequence[TickArrayState],
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> ExactInSwapQuote:
    """
    Quote an exact-in swap

    Args:
        token_in: Amount of the input token sent by the user
        specified_token_a: True if the input token is token A
        slippage_tolerance_bps: Slippage tolerance for token_min_out
        whirlpool: Pool state
        tick_arrays: Tick arrays around the current price (any order)
        transfer_fee_a: Transfer fee on token A
        transfer_fee_b: Transfer fee on token B
    """
    if specified_token_a:
        transfer_fee_in, transfer_fee_out = transfer_fee_a, transfer_fee_b
    else:
        transfer_fee_in, transfer_fee_out = transfer_fee_b, transfer_fee_a

    token_in_after_fee = try_adjust_amount(token_in, Adjustment.transfer_fee(transfer_fee_in), False)

    tick_sequence = TickArraySequence(tick_arrays, whirlpool.tick_spacing)
    swap_result = compute_swap(token_in_after_fee, whirlpool, tick_sequence, specified_token_a, True)

    if specified_token_a:
        token_in_after_fees, token_est_out_before_fee = swap_result.token_a, swap_result.token_b
    else:
        token_in_after_fees, token_est_out_before_fee = swap_result.token_b, swap_result.token_a

    token_min_out_before_fee = apply_slippage_min(token_est_out_before_fee, slippage_tolerance_bps)

    return ExactInSwapQuote(
        token_in=try_inverse_adjust_amount(token_in_after_fees, Adjustment.transfer_fee(transfer_fee_in), False),
        token_est_out=try_adjust_amount(token_est_out_before_fee, Adjustment.transfer_fee(transfer_fee_out), False),
        token_min_out=try_adjust_amount(token_min_out_before_fee, Adjustment.transfer_fee(transfer_fee_out), False),
        trade_fee=swap_result.trade_fee,
    )


def swap_quote_by_output_token(
    token_out: int,
    specified_token_a: bool,
    slippage_tolerance_bps: int,
    whirlpool: WhirlpoolState,
    tick_arrays: Sequence[TickArrayState],
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> ExactOutSwapQuote:
    """
    Quote an exact-out swap

    specified_token_a is True when token A is the output token.
    """
    if specified_token_a:
        transfer_fee_in, transfer_fee_out = transfer_fee_b, transfer_fee_a
    else:
        transfer_fee_in, transfer_fee_out = transfer_fee_a, transfer_fee_b

    token_out_before_fee = try_inverse_adjust_amount(token_out, Adjustment.transfer_fee(transfer_fee_out), False)

    tick_sequence = TickArraySequence(tick_arrays, whirlpool.tick_spacing)
    swap_result = compute_swap(token_out_before_fee, whirlpool, tick_sequence, not specified_token_a, False)

    if specified_token_a:
        token_out_before_fee, token_est_in_after_fee = swap_result.token_a, swap_result.token_b
    else:
        token_out_before_fee, token_est_in_after_fee = swap_result.token_b, swap_result.token_a

    token_max_in_after_fee = apply_slippage_max(token_est_in_after_fee, slippage_tolerance_bps)

    return ExactOutSwapQuote(
        token_out=try_adjust_amount(token_out_before_fee, Adjustment.transfer_fee(transfer_fee_out), False),
        token_est_in=try_inverse_adjust_amount(token_est_in_after_fee, Adjustment.transfer_fee(transfer_fee_in), False),
        token_max_in=try_inverse_adjust_amount(token_max_in_after_fee, Adjustment.transfer_fee(transfer_fee_in), False),
        trade_fee=swap_result.trade_fee,
    )
