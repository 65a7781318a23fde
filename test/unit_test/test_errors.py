"""
Test Errors Module

Tests for whirlpool_adapter.errors package.
"""

import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def test_error_code():
    """Test ErrorCode enum"""
    from whirlpool_adapter.errors import ErrorCode

    print("Testing ErrorCode...")

    assert ErrorCode.RPC_CONNECTION_FAILED.value == "1001"
    assert ErrorCode.AMOUNT_EXCEEDS_MAX_U64.value == "3001"
    assert ErrorCode.POOL_NOT_FOUND.value == "4001"
    assert ErrorCode.POSITION_NOT_FOUND.value == "5001"
    assert ErrorCode.FUNDER_NOT_SET.value == "7001"
    assert ErrorCode.UNKNOWN_TOKEN_PROGRAM.value == "9004"

    print("  ErrorCode: PASSED")


def test_base_error():
    """Test WhirlpoolAdapterError base class"""
    from whirlpool_adapter.errors import WhirlpoolAdapterError, ErrorCode

    print("Testing WhirlpoolAdapterError...")

    error = WhirlpoolAdapterError(
        message="Test error",
        code=ErrorCode.RPC_CONNECTION_FAILED,
        recoverable=True,
    )

    # __str__ returns "[code] message" format
    assert "[1001] Test error" == str(error)
    assert error.code == ErrorCode.RPC_CONNECTION_FAILED
    assert error.should_retry
    assert error.details == {}

    print("  WhirlpoolAdapterError: PASSED")


def test_rpc_error():
    """Test RpcError factories"""
    from whirlpool_adapter.errors import RpcError, ErrorCode

    print("Testing RpcError...")

    error1 = RpcError.connection_failed("https://rpc.example.com")
    assert error1.code == ErrorCode.RPC_CONNECTION_FAILED
    assert error1.recoverable
    assert error1.endpoint == "https://rpc.example.com"

    error2 = RpcError.timeout("https://rpc.example.com", 30.0)
    assert error2.code == ErrorCode.RPC_TIMEOUT

    error3 = RpcError.rate_limited("https://rpc.example.com")
    assert error3.code == ErrorCode.RPC_RATE_LIMITED

    error4 = RpcError.invalid_response("", "getEpochInfo returned no epoch")
    assert error4.code == ErrorCode.RPC_INVALID_RESPONSE
    assert "no epoch" in str(error4)

    print("  RpcError: PASSED")


def test_not_found_family():
    """Test AccountNotFound and its subclasses"""
    from whirlpool_adapter.errors import (
        AccountNotFound,
        PoolNotFound,
        PositionNotFound,
        MintNotFound,
        ErrorCode,
    )

    print("Testing AccountNotFound family...")

    pool_error = PoolNotFound.not_found("pool123")
    assert pool_error.code == ErrorCode.POOL_NOT_FOUND
    assert pool_error.pool_address == "pool123"
    assert pool_error.address == "pool123"

    position_error = PositionNotFound.not_found("pos123")
    assert position_error.code == ErrorCode.POSITION_NOT_FOUND
    assert position_error.position_id == "pos123"

    not_locked = PositionNotFound.not_locked("pos123")
    assert not_locked.code == ErrorCode.POSITION_NOT_LOCKED

    mint_error = MintNotFound.not_found("mint123")
    assert mint_error.mint == "mint123"

    for error in (pool_error, position_error, not_locked, mint_error):
        assert isinstance(error, AccountNotFound)
        assert not error.recoverable

    tick_array_error = AccountNotFound.not_found("Tick array", "ta123")
    assert tick_array_error.code == ErrorCode.ACCOUNT_NOT_FOUND
    assert "Tick array not found: ta123" in str(tick_array_error)

    print("  AccountNotFound family: PASSED")


def test_insufficient_funds():
    """Test InsufficientFunds exception"""
    from whirlpool_adapter.errors import InsufficientFunds

    print("Testing InsufficientFunds...")

    error = InsufficientFunds.token_balance("mint123", required=10, available=5)

    assert not error.recoverable
    assert error.required == 10
    assert error.available == 5
    assert error.mint == "mint123"
    assert error.details["required"] == 10

    print("  InsufficientFunds: PASSED")


def test_precondition_violation():
    """Test PreconditionViolation factories"""
    from whirlpool_adapter.errors import PreconditionViolation, ErrorCode

    print("Testing PreconditionViolation...")

    assert PreconditionViolation.funder_not_set().code == ErrorCode.FUNDER_NOT_SET

    error = PreconditionViolation.mints_not_ordered("b", "a")
    assert error.code == ErrorCode.MINTS_NOT_ORDERED
    assert error.details == {"mint_a": "b", "mint_b": "a"}

    assert PreconditionViolation.full_range_only(32896).details["tick_spacing"] == 32896
    assert PreconditionViolation.invalid_tick_range("x").code == ErrorCode.INVALID_TICK_RANGE
    assert PreconditionViolation.invalid_price("x").code == ErrorCode.INVALID_PRICE
    assert PreconditionViolation.invalid_slippage(20000).code == ErrorCode.INVALID_SLIPPAGE

    print("  PreconditionViolation: PASSED")


def test_configuration_error():
    """Test ConfigurationError factories"""
    from whirlpool_adapter.errors import ConfigurationError, ErrorCode

    print("Testing ConfigurationError...")

    assert ConfigurationError.missing("RPC endpoint").code == ErrorCode.CONFIG_MISSING
    assert ConfigurationError.invalid("network", "bad").code == ErrorCode.CONFIG_INVALID
    assert ConfigurationError.unknown_wrapping_strategy("wrap").code == ErrorCode.UNKNOWN_WRAPPING_STRATEGY
    assert ConfigurationError.unknown_token_program("prog").code == ErrorCode.UNKNOWN_TOKEN_PROGRAM

    print("  ConfigurationError: PASSED")


def test_error_inheritance():
    """Test error class inheritance"""
    from whirlpool_adapter.errors import (
        WhirlpoolAdapterError,
        RpcError,
        QuoteError,
        AccountNotFound,
        AccountDecodeError,
        InsufficientFunds,
        PreconditionViolation,
        ConfigurationError,
    )

    print("Testing Error Inheritance...")

    for cls in (
        RpcError,
        QuoteError,
        AccountNotFound,
        AccountDecodeError,
        InsufficientFunds,
        PreconditionViolation,
        ConfigurationError,
    ):
        assert issubclass(cls, WhirlpoolAdapterError)

    # All should be catchable as WhirlpoolAdapterError
    try:
        raise QuoteError.amount_exceeds_max_u64(1 << 64)
    except WhirlpoolAdapterError as e:
        assert not e.recoverable

    print("  Error Inheritance: PASSED")


def main():
    """Run all error tests"""
    print("=" * 60)
    print("Whirlpool Adapter Errors Tests")
    print("=" * 60)

    tests = [
        test_error_code,
        test_base_error,
        test_rpc_error,
        test_not_found_family,
        test_insufficient_funds,
        test_precondition_violation,
        test_configuration_error,
        test_error_inheritance,
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
