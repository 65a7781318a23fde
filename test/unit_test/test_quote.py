"""
Test Quote Module

Tests for the quote adapter: parameter dispatch, slippage helpers, transfer
fee epoch selection, tick array defaults and swap quotes.
"""

import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def _whirlpool_state(liquidity=10 ** 12, tick_current_index=0, tick_spacing=64):
    from solders.keypair import Keypair
    from whirlpool_adapter.protocols.whirlpool.math import tick_index_to_sqrt_price
    from whirlpool_adapter.protocols.whirlpool.parser import parse_whirlpool
    from mock_rpc import whirlpool_data

    keys = [Keypair().pubkey() for _ in range(5)]
    return parse_whirlpool(whirlpool_data(
        keys[0], tick_spacing, 3000, liquidity,
        tick_index_to_sqrt_price(tick_current_index), tick_current_index,
        keys[1], keys[2], keys[3], keys[4],
    ))


def test_slippage_helpers():
    """Test slippage rounds against the caller and drives the quote bounds"""
    from whirlpool_adapter.modules.quote import get_decrease_liquidity_quote, get_increase_liquidity_quote
    from whirlpool_adapter.protocols.whirlpool.math import (
        apply_slippage_max,
        apply_slippage_min,
        tick_index_to_sqrt_price,
    )
    from whirlpool_adapter.types.params import LiquidityParam
    from whirlpool_adapter.types.quotes import TickRange

    print("Testing slippage helpers...")

    assert apply_slippage_max(10_000, 100) == 10_100
    assert apply_slippage_min(10_000, 100) == 9_900
    assert apply_slippage_max(1, 1) == 2
    assert apply_slippage_min(1, 1) == 0
    assert apply_slippage_max(0, 500) == 0
    assert apply_slippage_min(12_345, 0) == 12_345

    previous = (12_345, 12_345)
    for bps in (1, 50, 100, 500, 10_000):
        upper, lower = apply_slippage_max(12_345, bps), apply_slippage_min(12_345, bps)
        assert upper >= previous[0] and lower <= previous[1]
        previous = (upper, lower)
    assert previous == (24_690, 0)

    sqrt_price = tick_index_to_sqrt_price(0)
    tick_range = TickRange(-640, 640)
    increase = get_increase_liquidity_quote(LiquidityParam(10 ** 9), 250, sqrt_price, tick_range)
    assert increase.token_max_a == apply_slippage_max(increase.token_est_a, 250)
    assert increase.token_max_b == apply_slippage_max(increase.token_est_b, 250)

    decrease = get_decrease_liquidity_quote(LiquidityParam(10 ** 9), 250, sqrt_price, tick_range)
    assert decrease.token_min_a == apply_slippage_min(decrease.token_est_a, 250)
    assert decrease.token_min_b == apply_slippage_min(decrease.token_est_b, 250)

    print("  Slippage helpers: PASSED")


def test_liquidity_quote_dispatch():
    """Test each parameter variant reaches its quote"""
    from whirlpool_adapter.errors import ConfigurationError
    from whirlpool_adapter.modules.quote import (
        get_decrease_liquidity_quote,
        get_increase_liquidity_quote,
    )
    from whirlpool_adapter.protocols.whirlpool.math import tick_index_to_sqrt_price
    from whirlpool_adapter.types.params import LiquidityParam, TokenAParam, TokenBParam
    from whirlpool_adapter.types.quotes import TickRange

    print("Testing liquidity quote dispatch...")

    sqrt_price = tick_index_to_sqrt_price(0)
    tick_range = TickRange(-640, 640)

    zero = get_increase_liquidity_quote(LiquidityParam(0), 100, sqrt_price, tick_range)
    assert zero.liquidity_delta == 0 and zero.token_max_a == 0

    by_liquidity = get_increase_liquidity_quote(LiquidityParam(10 ** 9), 100, sqrt_price, tick_range)
    assert by_liquidity.liquidity_delta == 10 ** 9
    assert by_liquidity.token_max_a >= by_liquidity.token_est_a > 0
    assert by_liquidity.token_max_b >= by_liquidity.token_est_b > 0

    by_a = get_increase_liquidity_quote(TokenAParam(1_000_000), 100, sqrt_price, tick_range)
    assert by_a.liquidity_delta > 0
    assert by_a.token_est_a <= 1_000_000

    by_b = get_increase_liquidity_quote(TokenBParam(1_000_000), 100, sqrt_price, tick_range)
    assert by_b.liquidity_delta > 0

    decrease = get_decrease_liquidity_quote(LiquidityParam(10 ** 9), 100, sqrt_price, tick_range)
    assert decrease.token_min_a <= decrease.token_est_a
    assert decrease.token_min_b <= decrease.token_est_b

    for quote_fn in (get_increase_liquidity_quote, get_decrease_liquidity_quote):
        try:
            quote_fn(object(), 100, sqrt_price, tick_range)
            assert False, "Should reject unknown parameter"
        except ConfigurationError:
            pass

    print("  Liquidity quote dispatch: PASSED")


def test_current_transfer_fee():
    """Test the transfer fee in force is chosen by epoch"""
    from solders.keypair import Keypair
    from whirlpool_adapter.modules.quote import get_current_transfer_fee
    from whirlpool_adapter.protocols.whirlpool.constants import TOKEN_2022_PROGRAM_ID
    from whirlpool_adapter.types.accounts import MintState, TransferFeeConfig, TransferFeeEpoch
    from whirlpool_adapter.types.quotes import TransferFee

    print("Testing current transfer fee...")

    mint = MintState(
        address=Keypair().pubkey(),
        token_program=TOKEN_2022_PROGRAM_ID,
        supply=0,
        decimals=6,
        extension_types=[1],
        transfer_fee_config=TransferFeeConfig(
            withheld_amount=0,
            older_transfer_fee=TransferFeeEpoch(epoch=0, maximum_fee=10, transfer_fee_basis_points=50),
            newer_transfer_fee=TransferFeeEpoch(epoch=700, maximum_fee=20, transfer_fee_basis_points=80),
        ),
    )

    assert get_current_transfer_fee(mint, 699) == TransferFee(fee_bps=50, max_fee=10)
    assert get_current_transfer_fee(mint, 700) == TransferFee(fee_bps=80, max_fee=20)
    assert get_current_transfer_fee(None, 700) is None

    plain = MintState(address=Keypair().pubkey(), token_program=TOKEN_2022_PROGRAM_ID, supply=0, decimals=6)
    assert get_current_transfer_fee(plain, 700) is None

    print("  Current transfer fee: PASSED")


def test_tick_arrays_or_default():
    """Test missing tick arrays become empty ones"""
    from whirlpool_adapter.modules.quote import tick_arrays_or_default
    from whirlpool_adapter.types.accounts import TickArrayState

    print("Testing tick_arrays_or_default...")

    existing = TickArrayState.empty(0)
    merged = tick_arrays_or_default([0, 5632, -5632], [existing, None, None])

    assert len(merged) == 3
    assert merged[0] is existing
    assert merged[1].start_tick_index == 5632
    assert merged[2].start_tick_index == -5632
    assert len(merged[2].ticks) == 88
    assert not any(tick.initialized for tick in merged[1].ticks)

    print("  tick_arrays_or_default: PASSED")


def test_swap_quotes():
    """Test exact-in and exact-out swap quotes over empty tick arrays"""
    from whirlpool_adapter.protocols.whirlpool.quote_math import (
        swap_quote_by_input_token,
        swap_quote_by_output_token,
    )
    from whirlpool_adapter.modules.swap import swap_tick_array_start_indexes
    from whirlpool_adapter.types.accounts import TickArrayState

    print("Testing swap quotes...")

    whirlpool = _whirlpool_state()
    tick_arrays = [TickArrayState.empty(start) for start in swap_tick_array_start_indexes(whirlpool)]

    for specified_token_a in (True, False):
        quote = swap_quote_by_input_token(1_000_000, specified_token_a, 100, whirlpool, tick_arrays)
        assert quote.token_in == 1_000_000
        assert 0 < quote.token_est_out < 1_000_000
        assert quote.token_min_out <= quote.token_est_out
        assert quote.trade_fee > 0

        exact_out = swap_quote_by_output_token(1_000_000, specified_token_a, 100, whirlpool, tick_arrays)
        assert exact_out.token_out == 1_000_000
        assert exact_out.token_est_in > 1_000_000
        assert exact_out.token_max_in >= exact_out.token_est_in

    print("  Swap quotes: PASSED")


def main():
    """Run all quote tests"""
    print("=" * 60)
    print("Whirlpool Quote Tests")
    print("=" * 60)

    tests = [
        test_slippage_helpers,
        test_liquidity_quote_dispatch,
        test_current_transfer_fee,
        test_tick_arrays_or_default,
        test_swap_quotes,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"  FAILED: {e}")
            failed += 1

    print("=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
