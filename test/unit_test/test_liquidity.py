"""
Test Liquidity Assemblers

Tests for pool creation, opening positions, increasing and decreasing
liquidity, harvesting and closing, against the in-memory MockRpc.
"""

import asyncio
import struct
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def _wallet():
    from solders.keypair import Keypair
    from mock_rpc import MockRpc, make_defaults

    rpc = MockRpc()
    owner = Keypair().pubkey()
    return rpc, owner, make_defaults(owner)


def test_create_pool():
    """Test pool creation instructions and cost"""
    from whirlpool_adapter.modules import create_concentrated_liquidity_pool_instructions
    from whirlpool_adapter.protocols.whirlpool.constants import (
        TICK_ARRAY_ACCOUNT_SIZE,
        TOKEN_ACCOUNT_SIZE,
        WHIRLPOOL_SIZE,
    )
    from whirlpool_adapter.protocols.whirlpool.pda import order_mints, resolve_pool
    from mock_rpc import add_mint, instruction_names, rent_for

    print("Testing create pool...")

    async def run():
        rpc, owner, defaults = _wallet()
        mint_a, mint_b = order_mints(add_mint(rpc), add_mint(rpc))

        result = await create_concentrated_liquidity_pool_instructions(
            rpc, mint_a, mint_b, 64, 1.0, defaults=defaults,
        )
        # Full range lower, full range upper and the array at the initial price
        assert instruction_names(result.instructions) == [
            "initialize_pool_v2",
            "initialize_tick_array",
            "initialize_tick_array",
            "initialize_tick_array",
        ]
        assert result.pool_address == resolve_pool(defaults.whirlpools_config_address, mint_a, mint_b, 64)
        assert len(result.additional_signers) == 2
        assert result.initialization_cost == (
            2 * rent_for(TOKEN_ACCOUNT_SIZE)
            + rent_for(WHIRLPOOL_SIZE)
            + 3 * rent_for(TICK_ARRAY_ACCOUNT_SIZE)
        )

    asyncio.run(run())
    print("  Create pool: PASSED")


def test_create_splash_pool():
    """Test splash pools share a tick array between price and upper bound"""
    from whirlpool_adapter.modules import create_splash_pool_instructions
    from whirlpool_adapter.protocols.whirlpool.pda import order_mints
    from mock_rpc import add_mint, instruction_names

    print("Testing create splash pool...")

    async def run():
        rpc, owner, defaults = _wallet()
        mint_a, mint_b = order_mints(add_mint(rpc), add_mint(rpc))

        result = await create_splash_pool_instructions(rpc, mint_a, mint_b, defaults=defaults)
        names = instruction_names(result.instructions)
        assert names == ["initialize_pool_v2", "initialize_tick_array", "initialize_tick_array"]

    asyncio.run(run())
    print("  Create splash pool: PASSED")


def test_create_pool_preconditions():
    """Test create pool rejects bad input before touching the RPC"""
    from whirlpool_adapter.config import WhirlpoolDefaults
    from whirlpool_adapter.errors import ErrorCode, PreconditionViolation
    from whirlpool_adapter.modules import create_concentrated_liquidity_pool_instructions
    from whirlpool_adapter.protocols.whirlpool.pda import order_mints
    from mock_rpc import add_mint

    print("Testing create pool preconditions...")

    async def run():
        rpc, owner, defaults = _wallet()
        mint_a, mint_b = order_mints(add_mint(rpc), add_mint(rpc))

        cases = [
            ((mint_b, mint_a, 64, 1.0, None, defaults), ErrorCode.MINTS_NOT_ORDERED),
            ((mint_a, mint_b, 64, 0.0, None, defaults), ErrorCode.INVALID_PRICE),
            ((mint_a, mint_b, 64, 1.0, None, WhirlpoolDefaults()), ErrorCode.FUNDER_NOT_SET),
        ]
        for args, code in cases:
            try:
                await create_concentrated_liquidity_pool_instructions(rpc, *args)
                assert False, f"Should raise {code}"
            except PreconditionViolation as e:
                assert e.code == code

        assert rpc.calls == []

    asyncio.run(run())
    print("  Create pool preconditions: PASSED")


def test_open_full_range_position():
    """Test full range open initializes both tick arrays"""
    from whirlpool_adapter.modules import open_full_range_position_instructions
    from whirlpool_adapter.protocols.whirlpool.constants import (
        MINT_SIZE,
        POSITION_METADATA_RENT,
        POSITION_SIZE,
        TICK_ARRAY_ACCOUNT_SIZE,
    )
    from whirlpool_adapter.types.params import TokenAParam
    from mock_rpc import add_pool, instruction_names, rent_for

    print("Testing open full range position...")

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults)

        result = await open_full_range_position_instructions(
            rpc, pool.address, TokenAParam(1_000_000), defaults=defaults,
        )
        assert instruction_names(result.instructions) == [
            "create_ata",
            "create_ata",
            "initialize_tick_array",
            "initialize_tick_array",
            "open_position_with_token_extensions",
            "increase_liquidity_v2",
        ]
        assert result.position_mint == result.additional_signers[0].pubkey()
        assert result.quote.liquidity_delta > 0
        assert result.initialization_cost == (
            rent_for(POSITION_SIZE) + rent_for(MINT_SIZE) + POSITION_METADATA_RENT
            + 2 * rent_for(TICK_ARRAY_ACCOUNT_SIZE)
        )

        open_ix = result.instructions[4]
        lower, upper = struct.unpack_from("<ii", bytes(open_ix.data), 8)
        assert (lower, upper) == (-443584, 443584)

    asyncio.run(run())
    print("  Open full range position: PASSED")


def test_open_position_by_price():
    """Test prices are rounded outward to initializable ticks"""
    from whirlpool_adapter.errors import PreconditionViolation, ErrorCode
    from whirlpool_adapter.modules import open_position_instructions
    from whirlpool_adapter.protocols.whirlpool.constants import SPLASH_POOL_TICK_SPACING
    from whirlpool_adapter.types.params import TokenBParam
    from mock_rpc import add_pool, add_tick_array, instruction_names

    print("Testing open position by price...")

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults)
        add_tick_array(rpc, pool, -1)
        add_tick_array(rpc, pool, 0)

        result = await open_position_instructions(
            rpc, pool.address, TokenBParam(1_000_000), 0.9, 1.1, defaults=defaults,
        )
        # Both tick arrays exist already
        assert "initialize_tick_array" not in instruction_names(result.instructions)

        open_ix = next(
            i for i in result.instructions
            if instruction_names([i]) == ["open_position_with_token_extensions"]
        )
        lower, upper = struct.unpack_from("<ii", bytes(open_ix.data), 8)
        assert lower % 64 == 0 and upper % 64 == 0
        assert lower < -1000 < 900 < upper

        splash = add_pool(rpc, defaults, tick_spacing=SPLASH_POOL_TICK_SPACING)
        try:
            await open_position_instructions(rpc, splash.address, TokenBParam(1), 0.9, 1.1, defaults=defaults)
            assert False, "Should reject range on a splash pool"
        except PreconditionViolation as e:
            assert e.code == ErrorCode.FULL_RANGE_ONLY

        try:
            await open_position_instructions(rpc, pool.address, TokenBParam(1), -1.0, 1.1, defaults=defaults)
            assert False, "Should reject negative price"
        except PreconditionViolation as e:
            assert e.code == ErrorCode.INVALID_PRICE

    asyncio.run(run())
    print("  Open position by price: PASSED")


def test_open_position_reversed_prices():
    """Test reversed prices are ordered before rounding outward"""
    from whirlpool_adapter.modules import open_position_instructions
    from whirlpool_adapter.types.params import TokenAParam
    from mock_rpc import add_pool, instruction_names

    print("Testing open position with reversed prices...")

    async def ticks(rpc, pool, defaults, lower_price, upper_price):
        result = await open_position_instructions(
            rpc, pool.address, TokenAParam(1_000_000), lower_price, upper_price, defaults=defaults,
        )
        open_ix = next(
            i for i in result.instructions
            if instruction_names([i]) == ["open_position_with_token_extensions"]
        )
        return struct.unpack_from("<ii", bytes(open_ix.data), 8)

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults)

        forward = await ticks(rpc, pool, defaults, 0.9, 1.1)
        backward = await ticks(rpc, pool, defaults, 1.1, 0.9)
        assert forward == backward
        assert forward[0] <= -1054 and forward[1] >= 953

        # Both prices inside one tick spacing still give a one-spacing range
        assert await ticks(rpc, pool, defaults, 1.002, 1.001) == (0, 64)

    asyncio.run(run())
    print("  Open position with reversed prices: PASSED")


def test_open_position_with_tick_bounds():
    """Test explicit tick bounds sharing one tick array"""
    from whirlpool_adapter.errors import PreconditionViolation, PoolNotFound
    from whirlpool_adapter.modules import open_position_instructions_with_tick_bounds
    from whirlpool_adapter.types.params import LiquidityParam
    from solders.keypair import Keypair
    from mock_rpc import add_pool, instruction_names

    print("Testing open position with tick bounds...")

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults)

        result = await open_position_instructions_with_tick_bounds(
            rpc, pool.address, LiquidityParam(10 ** 9), 64, 128, defaults=defaults,
        )
        names = instruction_names(result.instructions)
        assert names.count("initialize_tick_array") == 1
        # Price below range: only token A is deposited
        assert result.quote.token_est_b == 0
        assert result.quote.token_est_a > 0

        for lower, upper in ((128, 64), (65, 128), (64, 443700)):
            try:
                await open_position_instructions_with_tick_bounds(
                    rpc, pool.address, LiquidityParam(1), lower, upper, defaults=defaults,
                )
                assert False, f"Should reject ({lower}, {upper})"
            except PreconditionViolation:
                pass

        try:
            await open_position_instructions_with_tick_bounds(
                rpc, Keypair().pubkey(), LiquidityParam(1), 64, 128, defaults=defaults,
            )
            assert False, "Should raise PoolNotFound"
        except PoolNotFound:
            pass

    asyncio.run(run())
    print("  Open position with tick bounds: PASSED")


def test_increase_liquidity():
    """Test increase emits no tick array initialization"""
    from whirlpool_adapter.modules import increase_liquidity_instructions
    from whirlpool_adapter.types.params import LiquidityParam
    from mock_rpc import add_pool, add_position, add_token_account, instruction_names

    print("Testing increase liquidity...")

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults)
        add_token_account(rpc, owner, pool.mint_a, 10 ** 9)
        add_token_account(rpc, owner, pool.mint_b, 10 ** 9)
        position = add_position(rpc, pool, owner, -640, 640, 10 ** 9)

        result = await increase_liquidity_instructions(
            rpc, position.mint, LiquidityParam(5 * 10 ** 8), defaults=defaults,
        )
        assert instruction_names(result.instructions) == ["increase_liquidity_v2"]
        increase = result.instructions[0]
        assert increase.accounts[6].pubkey == position.token_account
        assert int.from_bytes(bytes(increase.data)[8:24], "little") == 5 * 10 ** 8
        token_max_a, token_max_b = struct.unpack_from("<QQ", bytes(increase.data), 24)
        assert (token_max_a, token_max_b) == (result.quote.token_max_a, result.quote.token_max_b)

    asyncio.run(run())
    print("  Increase liquidity: PASSED")


def test_decrease_liquidity():
    """Test decrease passes the quoted minimums"""
    from whirlpool_adapter.errors import PositionNotFound
    from whirlpool_adapter.modules import decrease_liquidity_instructions
    from whirlpool_adapter.types.params import LiquidityParam
    from solders.keypair import Keypair
    from mock_rpc import add_pool, add_position, instruction_names

    print("Testing decrease liquidity...")

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults)
        position = add_position(rpc, pool, owner, -640, 640, 10 ** 9)

        result = await decrease_liquidity_instructions(
            rpc, position.mint, LiquidityParam(10 ** 8), slippage_tolerance_bps=50, defaults=defaults,
        )
        assert instruction_names(result.instructions) == ["create_ata", "create_ata", "decrease_liquidity_v2"]
        decrease = result.instructions[-1]
        token_min_a, token_min_b = struct.unpack_from("<QQ", bytes(decrease.data), 24)
        assert (token_min_a, token_min_b) == (result.quote.token_min_a, result.quote.token_min_b)
        assert result.quote.token_min_a <= result.quote.token_est_a

        try:
            await decrease_liquidity_instructions(rpc, Keypair().pubkey(), LiquidityParam(1), defaults=defaults)
            assert False, "Should raise PositionNotFound"
        except PositionNotFound:
            pass

    asyncio.run(run())
    print("  Decrease liquidity: PASSED")


def test_harvest_nothing_owed():
    """Test harvest with nothing owed only refreshes the position"""
    from whirlpool_adapter.modules import harvest_position_instructions
    from mock_rpc import add_pool, add_position, instruction_names

    print("Testing harvest with nothing owed...")

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults)
        position = add_position(rpc, pool, owner, -640, 640, 10 ** 9)

        result = await harvest_position_instructions(rpc, position.mint, defaults=defaults)
        assert instruction_names(result.instructions) == ["update_fees_and_rewards"]
        assert result.fees_quote.fee_owed_a == 0

        empty = add_position(rpc, pool, owner, -640, 640, 0)
        result = await harvest_position_instructions(rpc, empty.mint, defaults=defaults)
        assert result.instructions == []

    asyncio.run(run())
    print("  Harvest with nothing owed: PASSED")


def test_harvest_fees_and_rewards():
    """Test harvest collects only the non-zero owed amounts"""
    from whirlpool_adapter.modules import harvest_position_instructions
    from mock_rpc import add_pool, add_position, instruction_names

    print("Testing harvest fees and rewards...")

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults, rewards=3)
        position = add_position(
            rpc, pool, owner, -640, 640, 10 ** 9, fee_owed=(10, 0), rewards_owed=(0, 7, 0),
        )

        result = await harvest_position_instructions(rpc, position.mint, defaults=defaults)
        assert instruction_names(result.instructions) == [
            "create_ata",
            "create_ata",
            "create_ata",
            "update_fees_and_rewards",
            "collect_fees_v2",
            "collect_reward_v2",
        ]
        assert result.fees_quote.fee_owed_a == 10
        assert result.rewards_quote.rewards[1].rewards_owed == 7

        collect_reward = result.instructions[-1]
        # reward_index follows the discriminator and matches the slot
        assert bytes(collect_reward.data)[8] == 1

    asyncio.run(run())
    print("  Harvest fees and rewards: PASSED")


def test_close_position():
    """Test close with liquidity, fees and three rewards"""
    from whirlpool_adapter.modules import close_position_instructions
    from mock_rpc import add_pool, add_position, instruction_names

    print("Testing close position...")

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults, rewards=3)
        position = add_position(
            rpc, pool, owner, -640, 640, 10 ** 9, fee_owed=(10, 20), rewards_owed=(1, 2, 3),
        )

        result = await close_position_instructions(rpc, position.mint, defaults=defaults)
        core = [
            name for name in instruction_names(result.instructions) if name != "create_ata"
        ]
        assert core == [
            "update_fees_and_rewards",
            "decrease_liquidity_v2",
            "collect_fees_v2",
            "collect_reward_v2",
            "collect_reward_v2",
            "collect_reward_v2",
            "close_position_with_token_extensions",
        ]
        assert instruction_names(result.instructions).count("create_ata") == 5
        assert result.quote.liquidity_delta == 10 ** 9
        assert [r.rewards_owed for r in result.rewards_quote.rewards] == [1, 2, 3]

    asyncio.run(run())
    print("  Close position: PASSED")


def test_close_empty_position():
    """Test closing an empty position emits only the close"""
    from whirlpool_adapter.modules import close_position_instructions
    from whirlpool_adapter.protocols.whirlpool.constants import TOKEN_PROGRAM_ID
    from mock_rpc import add_pool, add_position, instruction_names

    print("Testing close empty position...")

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults)

        empty = add_position(rpc, pool, owner, -640, 640, 0)
        result = await close_position_instructions(rpc, empty.mint, defaults=defaults)
        assert instruction_names(result.instructions) == ["close_position_with_token_extensions"]

        # Legacy positions minted under the Token program
        legacy = add_position(rpc, pool, owner, -640, 640, 0, nft_program=TOKEN_PROGRAM_ID)
        result = await close_position_instructions(rpc, legacy.mint, defaults=defaults)
        assert instruction_names(result.instructions) == ["close_position"]

    asyncio.run(run())
    print("  Close empty position: PASSED")


def main():
    """Run all liquidity assembler tests"""
    print("=" * 60)
    print("Liquidity Assembler Tests")
    print("=" * 60)

    tests = [
        test_create_pool,
        test_create_splash_pool,
        test_create_pool_preconditions,
        test_open_full_range_position,
        test_open_position_by_price,
        test_open_position_reversed_prices,
        test_open_position_with_tick_bounds,
        test_increase_liquidity,
        test_decrease_liquidity,
        test_harvest_nothing_owed,
        test_harvest_fees_and_rewards,
        test_close_position,
        test_close_empty_position,
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
