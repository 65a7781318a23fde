"""
Test Swap and Locked Position Assemblers

Tests for swap_instructions (direction, tick array selection, thresholds,
native SOL wrapping) and transfer_locked_position_instructions.
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


def _swap_args(instruction):
    """(amount, threshold, sqrt_price_limit, exact_in, a_to_b) from swap_v2 data"""
    data = bytes(instruction.data)
    amount, threshold = struct.unpack_from("<QQ", data, 8)
    sqrt_price_limit = int.from_bytes(data[24:40], "little")
    return amount, threshold, sqrt_price_limit, bool(data[40]), bool(data[41])


def _tick_array(pool, start_index):
    from whirlpool_adapter.protocols.whirlpool.pda import get_tick_array_address
    return get_tick_array_address(pool.address, start_index)[0]


def test_swap_exact_in_a_to_b():
    """Test exact in of token A walks down with lower arrays first"""
    from whirlpool_adapter.modules import swap_instructions
    from whirlpool_adapter.protocols.whirlpool.pda import get_oracle_address
    from whirlpool_adapter.types.params import SwapType
    from mock_rpc import add_pool, instruction_names

    print("Testing swap exact in a to b...")

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults)

        result = await swap_instructions(
            rpc, pool.address, 1_000_000, pool.mint_a, SwapType.EXACT_IN, defaults=defaults,
        )
        assert instruction_names(result.instructions) == ["create_ata", "create_ata", "swap_v2"]

        swap = result.instructions[-1]
        amount, threshold, limit, exact_in, a_to_b = _swap_args(swap)
        assert (amount, exact_in, a_to_b, limit) == (1_000_000, True, True, 0)
        assert threshold == result.quote.token_min_out
        assert result.quote.token_min_out <= result.quote.token_est_out

        accounts = [meta.pubkey for meta in swap.accounts]
        assert accounts[11:14] == [_tick_array(pool, 0), _tick_array(pool, -5632), _tick_array(pool, -11264)]
        assert accounts[14] == get_oracle_address(pool.address)[0]
        assert accounts[15:] == [_tick_array(pool, 5632), _tick_array(pool, 11264)]

    asyncio.run(run())
    print("  Swap exact in a to b: PASSED")


def test_swap_exact_in_b_to_a():
    """Test exact in of token B walks up with upper arrays first"""
    from whirlpool_adapter.modules import swap_instructions
    from mock_rpc import add_pool, add_token_account

    print("Testing swap exact in b to a...")

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults)
        add_token_account(rpc, owner, pool.mint_a, 0)
        add_token_account(rpc, owner, pool.mint_b, 10 ** 9)

        result = await swap_instructions(rpc, pool.address, 1_000_000, pool.mint_b, defaults=defaults)
        assert len(result.instructions) == 1

        swap = result.instructions[0]
        _, _, _, exact_in, a_to_b = _swap_args(swap)
        assert exact_in and not a_to_b

        accounts = [meta.pubkey for meta in swap.accounts]
        assert accounts[11:14] == [_tick_array(pool, 0), _tick_array(pool, 5632), _tick_array(pool, 11264)]
        assert accounts[15:] == [_tick_array(pool, -5632), _tick_array(pool, -11264)]

        # All five arrays are read in one request
        assert any(
            name == "getMultipleAccounts" and len(args) == 5 and _tick_array(pool, 0) in args
            for name, args in rpc.calls
        )

    asyncio.run(run())
    print("  Swap exact in b to a: PASSED")


def test_swap_exact_out():
    """Test exact out of token B swaps A for B with max in as threshold"""
    from whirlpool_adapter.modules import swap_instructions
    from whirlpool_adapter.types.params import SwapType
    from whirlpool_adapter.types.quotes import ExactOutSwapQuote

    from mock_rpc import add_pool

    print("Testing swap exact out...")

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults)

        result = await swap_instructions(
            rpc, pool.address, 500_000, pool.mint_b, SwapType.EXACT_OUT,
            slippage_tolerance_bps=100, defaults=defaults,
        )
        assert isinstance(result.quote, ExactOutSwapQuote)
        amount, threshold, _, exact_in, a_to_b = _swap_args(result.instructions[-1])
        assert amount == 500_000
        assert not exact_in and a_to_b
        assert threshold == result.quote.token_max_in
        assert result.quote.token_max_in >= result.quote.token_est_in > 500_000

    asyncio.run(run())
    print("  Swap exact out: PASSED")


def test_swap_native_input():
    """Test swapping native SOL wraps exactly the input amount"""
    from whirlpool_adapter.modules import swap_instructions
    from whirlpool_adapter.protocols.whirlpool.constants import NATIVE_MINT
    from mock_rpc import add_pool, instruction_names

    print("Testing swap native input...")

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults, mint_a=NATIVE_MINT)

        result = await swap_instructions(rpc, pool.address, 2_000_000, NATIVE_MINT, defaults=defaults)
        names = instruction_names(result.instructions)
        assert names == [
            "create_ata",
            "create_account",
            "initialize_account3",
            "transfer",
            "sync_native",
            "swap_v2",
            "close_account",
        ]
        transfer = result.instructions[names.index("transfer")]
        assert struct.unpack_from("<Q", bytes(transfer.data), 4)[0] == result.quote.token_in == 2_000_000
        assert len(result.additional_signers) == 1

    asyncio.run(run())
    print("  Swap native input: PASSED")


def test_swap_errors():
    """Test swap rejects foreign mints and missing pools"""
    from solders.keypair import Keypair
    from whirlpool_adapter.errors import ErrorCode, PoolNotFound, PreconditionViolation
    from whirlpool_adapter.config import WhirlpoolDefaults
    from whirlpool_adapter.modules import swap_instructions
    from mock_rpc import add_pool

    print("Testing swap errors...")

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults)

        try:
            await swap_instructions(rpc, pool.address, 1, Keypair().pubkey(), defaults=defaults)
            assert False, "Should reject a mint outside the pool"
        except PreconditionViolation as e:
            assert e.code == ErrorCode.INVALID_MINT
            assert e.details["pool"] == str(pool.address)

        try:
            await swap_instructions(rpc, Keypair().pubkey(), 1, pool.mint_a, defaults=defaults)
            assert False, "Should raise PoolNotFound"
        except PoolNotFound:
            pass

        try:
            await swap_instructions(rpc, pool.address, 1, pool.mint_a, defaults=WhirlpoolDefaults())
            assert False, "Should require a funder"
        except PreconditionViolation:
            pass

        # An explicit signer works without a default funder
        result = await swap_instructions(
            rpc, pool.address, 1_000, pool.mint_a, signer=Keypair(), defaults=WhirlpoolDefaults(),
        )
        assert result.instructions

    asyncio.run(run())
    print("  Swap errors: PASSED")


def test_transfer_locked_position():
    """Test locked transfers create the receiver account when needed"""
    from solders.keypair import Keypair
    from whirlpool_adapter.errors import AccountNotFound, ErrorCode, PositionNotFound
    from whirlpool_adapter.modules import transfer_locked_position_instructions
    from whirlpool_adapter.protocols.whirlpool.constants import TOKEN_2022_PROGRAM_ID, WHIRLPOOL_PROGRAM_ID
    from whirlpool_adapter.protocols.whirlpool.pda import get_associated_token_address, get_lock_config_address
    from mock_rpc import add_pool, add_position, add_token_account, instruction_names, lock_config_data

    print("Testing transfer locked position...")

    async def run():
        rpc, owner, defaults = _wallet()
        pool = add_pool(rpc, defaults)
        position = add_position(rpc, pool, owner, -640, 640, 10 ** 9)
        receiver = Keypair().pubkey()

        try:
            await transfer_locked_position_instructions(rpc, position.mint, receiver, defaults=defaults)
            assert False, "Should reject an unlocked position"
        except PositionNotFound as e:
            assert e.code == ErrorCode.POSITION_NOT_LOCKED
            assert isinstance(e, AccountNotFound)

        lock_config = get_lock_config_address(position.address)[0]
        rpc.add_account(lock_config, WHIRLPOOL_PROGRAM_ID, lock_config_data(position.address, owner, pool.address))

        result = await transfer_locked_position_instructions(rpc, position.mint, receiver, defaults=defaults)
        destination = get_associated_token_address(receiver, position.mint, TOKEN_2022_PROGRAM_ID)
        assert result.destination_token_account == destination
        assert instruction_names(result.instructions) == ["create_ata", "transfer_locked_position"]

        transfer = result.instructions[-1]
        accounts = [meta.pubkey for meta in transfer.accounts]
        assert accounts[4] == position.token_account
        assert accounts[5] == destination
        assert accounts[6] == lock_config

        add_token_account(rpc, receiver, position.mint, 0, TOKEN_2022_PROGRAM_ID)
        result = await transfer_locked_position_instructions(rpc, position.mint, receiver, defaults=defaults)
        assert instruction_names(result.instructions) == ["transfer_locked_position"]

    asyncio.run(run())
    print("  Transfer locked position: PASSED")


def main():
    """Run all swap and lock tests"""
    print("=" * 60)
    print("Swap and Locked Position Tests")
    print("=" * 60)

    tests = [
        test_swap_exact_in_a_to_b,
        test_swap_exact_in_b_to_a,
        test_swap_exact_out,
        test_swap_native_input,
        test_swap_errors,
        test_transfer_locked_position,
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
