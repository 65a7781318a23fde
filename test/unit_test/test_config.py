"""
Test Config Module

Tests for whirlpool_adapter.config: environment-backed settings, the
process-wide Whirlpool defaults and logging setup.
"""

import logging
import os
import sys
import tempfile
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def test_rpc_config_from_env():
    """Test RpcConfig reads environment overrides"""
    from whirlpool_adapter.config import RpcConfig

    print("Testing RpcConfig env...")

    os.environ["RPC_MAX_RETRIES"] = "7"
    os.environ["RPC_TIMEOUT_SECONDS"] = "not-a-number"
    try:
        rpc_config = RpcConfig()
        assert rpc_config.max_retries == 7
        # Invalid values fall back to the default
        assert rpc_config.timeout_seconds == 30.0
        assert rpc_config.max_accounts_per_request == 100
    finally:
        del os.environ["RPC_MAX_RETRIES"]
        del os.environ["RPC_TIMEOUT_SECONDS"]

    print("  RpcConfig env: PASSED")


def test_default_values():
    """Test built-in Whirlpool defaults"""
    from whirlpool_adapter.config import (
        WhirlpoolDefaults,
        NativeMintWrappingStrategy,
        DEFAULT_SLIPPAGE_TOLERANCE_BPS,
    )
    from whirlpool_adapter.protocols.whirlpool.constants import SOLANA_MAINNET_WHIRLPOOLS_CONFIG

    print("Testing default values...")

    defaults = WhirlpoolDefaults()
    assert defaults.whirlpools_config_address == SOLANA_MAINNET_WHIRLPOOLS_CONFIG
    assert defaults.slippage_tolerance_bps == DEFAULT_SLIPPAGE_TOLERANCE_BPS == 100
    assert defaults.native_mint_wrapping_strategy == NativeMintWrappingStrategy.KEYPAIR
    assert not defaults.enforce_token_balance_check
    assert not defaults.has_funder

    print("  Default values: PASSED")


def test_setters_and_reset():
    """Test the narrow mutation API"""
    from solders.keypair import Keypair
    from whirlpool_adapter import config as cfg
    from whirlpool_adapter.protocols.whirlpool.constants import (
        SOLANA_DEVNET_WHIRLPOOLS_CONFIG,
        SOLANA_MAINNET_WHIRLPOOLS_CONFIG,
    )
    from whirlpool_adapter.protocols.whirlpool.pda import get_whirlpools_config_extension_address

    print("Testing setters and reset...")

    funder = Keypair().pubkey()
    try:
        before = cfg.get_defaults()
        cfg.set_funder(funder)
        cfg.set_slippage_tolerance_bps(250)
        cfg.set_native_mint_wrapping_strategy("ata")
        cfg.set_enforce_token_balance_check(True)
        cfg.set_whirlpools_config_address(cfg.WhirlpoolsNetwork.SOLANA_DEVNET)

        defaults = cfg.get_defaults()
        assert defaults.funder == funder
        assert defaults.has_funder
        assert defaults.slippage_tolerance_bps == 250
        assert defaults.native_mint_wrapping_strategy == cfg.NativeMintWrappingStrategy.ATA
        assert defaults.enforce_token_balance_check
        assert defaults.whirlpools_config_address == SOLANA_DEVNET_WHIRLPOOLS_CONFIG
        assert defaults.config_extension_address == get_whirlpools_config_extension_address(
            SOLANA_DEVNET_WHIRLPOOLS_CONFIG
        )[0]

        # Earlier snapshots are immutable
        assert before.slippage_tolerance_bps == 100

        # Network names and explicit addresses are both accepted
        cfg.set_whirlpools_config_address("solana_mainnet")
        assert cfg.get_defaults().whirlpools_config_address == SOLANA_MAINNET_WHIRLPOOLS_CONFIG
        cfg.set_whirlpools_config_address(str(SOLANA_DEVNET_WHIRLPOOLS_CONFIG))
        assert cfg.get_defaults().whirlpools_config_address == SOLANA_DEVNET_WHIRLPOOLS_CONFIG

        cfg.set_funder(None)
        assert not cfg.get_defaults().has_funder
    finally:
        defaults = cfg.reset_configuration()

    assert defaults.whirlpools_config_address == SOLANA_MAINNET_WHIRLPOOLS_CONFIG
    assert defaults.slippage_tolerance_bps == 100
    assert not defaults.has_funder

    print("  Setters and reset: PASSED")


def test_invalid_values():
    """Test setters reject invalid input"""
    from whirlpool_adapter import config as cfg
    from whirlpool_adapter.errors import ConfigurationError, PreconditionViolation

    print("Testing invalid values...")

    for bad in (-1, 10_001):
        try:
            cfg.set_slippage_tolerance_bps(bad)
            assert False, f"Should reject slippage {bad}"
        except PreconditionViolation:
            pass

    try:
        cfg.set_native_mint_wrapping_strategy("wrap-it")
        assert False, "Should reject unknown strategy"
    except ConfigurationError:
        pass

    # Neither a network name nor a base58 address
    try:
        cfg.set_whirlpools_config_address("not-a-network")
        assert False, "Should reject unknown network"
    except ConfigurationError:
        pass

    cfg.reset_configuration()
    print("  Invalid values: PASSED")


def test_resolve_defaults():
    """Test explicit defaults win over the process-wide ones"""
    from whirlpool_adapter.config import WhirlpoolDefaults, get_defaults, resolve_defaults

    print("Testing resolve_defaults...")

    explicit = WhirlpoolDefaults(slippage_tolerance_bps=5)
    assert resolve_defaults(explicit) is explicit
    assert resolve_defaults(None) is get_defaults()

    print("  resolve_defaults: PASSED")


def test_setup_logging():
    """Test setup_logging attaches file and console handlers"""
    from whirlpool_adapter.config import LoggingConfig, setup_logging

    print("Testing setup_logging...")

    with tempfile.TemporaryDirectory() as tmp:
        log_file = os.path.join(tmp, "nested", "adapter.log")
        logger = setup_logging(
            LoggingConfig(log_file=log_file, log_level="DEBUG", console_output=True),
            logger_name="whirlpool_adapter_test",
        )
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        assert os.path.exists(log_file)

        # Re-running replaces handlers instead of stacking them
        logger = setup_logging(
            LoggingConfig(log_file="", log_level="WARNING", console_output=True),
            logger_name="whirlpool_adapter_test",
        )
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING

        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    print("  setup_logging: PASSED")


def main():
    """Run all config tests"""
    print("=" * 60)
    print("Whirlpool Adapter Config Tests")
    print("=" * 60)

    tests = [
        test_rpc_config_from_env,
        test_default_values,
        test_setters_and_reset,
        test_invalid_values,
        test_resolve_defaults,
        test_setup_logging,
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
