"""
Test Token Account Provisioner

Tests for prepare_token_accounts_instructions across the native SOL
wrapping strategies, idempotent ATA creation and the balance check.
"""

import asyncio
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def _setup(strategy, **kwargs):
    from solders.keypair import Keypair
    from whirlpool_adapter.protocols.whirlpool.constants import NATIVE_MINT
    from mock_rpc import MockRpc, add_mint, make_defaults

    rpc = MockRpc()
    owner = Keypair().pubkey()
    add_mint(rpc, NATIVE_MINT, decimals=9)
    usdc = add_mint(rpc)
    return rpc, owner, usdc, make_defaults(owner, strategy, **kwargs)


def _count(names, *kinds):
    return sum(1 for name in names if name in kinds)


def test_keypair_strategy():
    """Test keypair wrapping creates, funds and closes a fresh account"""
    from whirlpool_adapter.config import NativeMintWrappingStrategy
    from whirlpool_adapter.modules.token_accounts import prepare_token_accounts_instructions
    from whirlpool_adapter.protocols.whirlpool.constants import NATIVE_MINT
    from mock_rpc import instruction_names

    print("Testing keypair strategy...")

    async def run():
        rpc, owner, usdc, defaults = _setup(NativeMintWrappingStrategy.KEYPAIR)
        result = await prepare_token_accounts_instructions(
            rpc, owner, {NATIVE_MINT: 5_000, usdc: 100}, defaults=defaults,
        )

        create = instruction_names(result.create_instructions)
        cleanup = instruction_names(result.cleanup_instructions)
        assert create == ["create_ata", "create_account", "initialize_account3", "transfer", "sync_native"]
        assert cleanup == ["close_account"]
        assert len(result.additional_signers) == 1
        assert result.token_account_addresses[NATIVE_MINT] == result.additional_signers[0].pubkey()

    asyncio.run(run())
    print("  Keypair strategy: PASSED")


def test_seed_strategy():
    """Test seed wrapping derives the account from the owner"""
    from whirlpool_adapter.config import NativeMintWrappingStrategy
    from whirlpool_adapter.modules.token_accounts import prepare_token_accounts_instructions
    from whirlpool_adapter.protocols.whirlpool.constants import NATIVE_MINT
    from mock_rpc import instruction_names

    print("Testing seed strategy...")

    async def run():
        rpc, owner, _, defaults = _setup(NativeMintWrappingStrategy.SEED)
        result = await prepare_token_accounts_instructions(rpc, owner, {NATIVE_MINT: 5_000}, defaults=defaults)

        create = instruction_names(result.create_instructions)
        cleanup = instruction_names(result.cleanup_instructions)
        assert create == ["create_account_with_seed", "initialize_account3", "transfer", "sync_native"]
        assert cleanup == ["close_account"]
        assert result.additional_signers == []

    asyncio.run(run())
    print("  Seed strategy: PASSED")


def test_ata_strategy():
    """Test ATA wrapping only closes an ATA it created and tops up the shortfall"""
    from whirlpool_adapter.config import NativeMintWrappingStrategy
    from whirlpool_adapter.modules.token_accounts import prepare_token_accounts_instructions
    from whirlpool_adapter.protocols.whirlpool.constants import NATIVE_MINT
    from mock_rpc import add_token_account, instruction_names

    print("Testing ATA strategy...")

    async def run():
        rpc, owner, _, defaults = _setup(NativeMintWrappingStrategy.ATA)

        # Absent: created and closed again
        result = await prepare_token_accounts_instructions(rpc, owner, {NATIVE_MINT: 5_000}, defaults=defaults)
        assert instruction_names(result.create_instructions) == ["create_ata", "transfer", "sync_native"]
        assert instruction_names(result.cleanup_instructions) == ["close_account"]

        # Present with 2_000: left open, only the shortfall is wrapped
        ata = add_token_account(rpc, owner, NATIVE_MINT, 2_000)
        result = await prepare_token_accounts_instructions(rpc, owner, {NATIVE_MINT: 5_000}, defaults=defaults)
        assert instruction_names(result.create_instructions) == ["transfer", "sync_native"]
        assert result.cleanup_instructions == []
        assert result.token_account_addresses[NATIVE_MINT] == ata
        transfer = result.create_instructions[0]
        assert int.from_bytes(bytes(transfer.data)[4:12], "little") == 3_000

    asyncio.run(run())
    print("  ATA strategy: PASSED")


def test_none_strategy():
    """Test the none strategy treats native SOL as an ordinary mint"""
    from whirlpool_adapter.config import NativeMintWrappingStrategy
    from whirlpool_adapter.modules.token_accounts import prepare_token_accounts_instructions
    from whirlpool_adapter.protocols.whirlpool.constants import NATIVE_MINT
    from mock_rpc import instruction_names

    print("Testing none strategy...")

    async def run():
        rpc, owner, _, defaults = _setup(NativeMintWrappingStrategy.NONE)
        result = await prepare_token_accounts_instructions(rpc, owner, {NATIVE_MINT: 5_000}, defaults=defaults)
        assert instruction_names(result.create_instructions) == ["create_ata"]
        assert result.cleanup_instructions == []

    asyncio.run(run())
    print("  None strategy: PASSED")


def test_zero_native_amount():
    """Test a zero native amount still gets a temporary account but no funding"""
    from whirlpool_adapter.config import NativeMintWrappingStrategy
    from whirlpool_adapter.modules.token_accounts import prepare_token_accounts_instructions
    from whirlpool_adapter.protocols.whirlpool.constants import NATIVE_MINT
    from mock_rpc import instruction_names

    print("Testing zero native amount...")

    async def run():
        for strategy in (NativeMintWrappingStrategy.KEYPAIR, NativeMintWrappingStrategy.SEED):
            rpc, owner, _, defaults = _setup(strategy)
            result = await prepare_token_accounts_instructions(rpc, owner, [NATIVE_MINT], defaults=defaults)
            create = instruction_names(result.create_instructions)
            assert "transfer" not in create and "sync_native" not in create
            assert _count(create, "create_account", "create_account_with_seed") == 1
            assert instruction_names(result.cleanup_instructions) == ["close_account"]

    asyncio.run(run())
    print("  Zero native amount: PASSED")


def test_balanced_create_and_close():
    """Test every temporary account created is closed exactly once"""
    from whirlpool_adapter.config import NativeMintWrappingStrategy
    from whirlpool_adapter.modules.token_accounts import prepare_token_accounts_instructions
    from whirlpool_adapter.protocols.whirlpool.constants import NATIVE_MINT
    from mock_rpc import instruction_names

    print("Testing balanced create and close...")

    async def run():
        for strategy in NativeMintWrappingStrategy:
            rpc, owner, usdc, defaults = _setup(strategy)
            result = await prepare_token_accounts_instructions(
                rpc, owner, {NATIVE_MINT: 1_000, usdc: 0}, defaults=defaults,
            )
            create = instruction_names(result.create_instructions)
            temporary = _count(create, "create_account", "create_account_with_seed")
            if strategy == NativeMintWrappingStrategy.ATA:
                temporary += 1  # the native ATA did not exist before
            closes = _count(instruction_names(result.cleanup_instructions), "close_account")
            assert temporary == closes, strategy

    asyncio.run(run())
    print("  Balanced create and close: PASSED")


def test_existing_account_idempotent():
    """Test provisioning twice gives the same accounts and no new instructions"""
    from whirlpool_adapter.modules.token_accounts import prepare_token_accounts_instructions
    from whirlpool_adapter.config import NativeMintWrappingStrategy
    from mock_rpc import add_token_account, instruction_names

    print("Testing existing account...")

    async def run():
        rpc, owner, usdc, defaults = _setup(NativeMintWrappingStrategy.KEYPAIR)

        first = await prepare_token_accounts_instructions(rpc, owner, [usdc], defaults=defaults)
        assert instruction_names(first.create_instructions) == ["create_ata"]

        # Land the account the first call asked for
        ata = add_token_account(rpc, owner, usdc, 500)
        assert first.token_account_addresses == {usdc: ata}

        second = await prepare_token_accounts_instructions(rpc, owner, [usdc, usdc], defaults=defaults)
        third = await prepare_token_accounts_instructions(rpc, owner, [usdc], defaults=defaults)
        for result in (second, third):
            assert result.create_instructions == []
            assert result.cleanup_instructions == []
            assert result.additional_signers == []
        assert second.token_account_addresses == third.token_account_addresses == {usdc: ata}

    asyncio.run(run())
    print("  Existing account: PASSED")


def test_balance_check():
    """Test the optional balance check"""
    from whirlpool_adapter.config import NativeMintWrappingStrategy, WhirlpoolDefaults
    from whirlpool_adapter.errors import InsufficientFunds, MintNotFound, ConfigurationError
    from whirlpool_adapter.modules.token_accounts import prepare_token_accounts_instructions
    from whirlpool_adapter.protocols.whirlpool.constants import NATIVE_MINT
    from solders.keypair import Keypair
    from mock_rpc import add_token_account

    print("Testing balance check...")

    async def run():
        rpc, owner, usdc, defaults = _setup(NativeMintWrappingStrategy.KEYPAIR, enforce_token_balance_check=True)
        add_token_account(rpc, owner, usdc, 500)

        await prepare_token_accounts_instructions(rpc, owner, {usdc: 500}, defaults=defaults)
        try:
            await prepare_token_accounts_instructions(rpc, owner, {usdc: 501}, defaults=defaults)
            assert False, "Should raise InsufficientFunds"
        except InsufficientFunds as e:
            assert e.required == 501
            assert e.available == 500

        # Without wrapping, native SOL must already sit in the ATA
        rpc, owner, _, defaults = _setup(NativeMintWrappingStrategy.NONE, enforce_token_balance_check=True)
        add_token_account(rpc, owner, NATIVE_MINT, 10)
        try:
            await prepare_token_accounts_instructions(rpc, owner, {NATIVE_MINT: 5_000}, defaults=defaults)
            assert False, "Should raise InsufficientFunds for unwrapped native SOL"
        except InsufficientFunds as e:
            assert e.required == 5_000
            assert e.available == 10

        # Wrapping strategies fund the shortfall instead
        rpc, owner, _, defaults = _setup(NativeMintWrappingStrategy.ATA, enforce_token_balance_check=True)
        add_token_account(rpc, owner, NATIVE_MINT, 10)
        await prepare_token_accounts_instructions(rpc, owner, {NATIVE_MINT: 5_000}, defaults=defaults)

        try:
            await prepare_token_accounts_instructions(rpc, owner, [Keypair().pubkey()], defaults=defaults)
            assert False, "Should raise MintNotFound"
        except MintNotFound:
            pass

        bad_defaults = WhirlpoolDefaults(funder=owner, native_mint_wrapping_strategy="wrap")
        try:
            await prepare_token_accounts_instructions(rpc, owner, [usdc], defaults=bad_defaults)
            assert False, "Should raise ConfigurationError"
        except ConfigurationError:
            pass

    asyncio.run(run())
    print("  Balance check: PASSED")


def main():
    """Run all token account tests"""
    print("=" * 60)
    print("Token Account Provisioner Tests")
    print("=" * 60)

    tests = [
        test_keypair_strategy,
        test_seed_strategy,
        test_ata_strategy,
        test_none_strategy,
        test_zero_native_amount,
        test_balanced_create_and_close,
        test_existing_account_idempotent,
        test_balance_check,
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
