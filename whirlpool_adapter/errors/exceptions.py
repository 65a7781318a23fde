"""
Exception definitions for the Whirlpool adapter
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """
    Unified error codes for instruction assembly

    1xxx - RPC errors
    3xxx - Quote/math errors
    4xxx - Pool and account data errors
    5xxx - Position errors
    6xxx - Token account errors
    7xxx - Precondition errors
    9xxx - Configuration errors
    """
    # RPC errors (recoverable)
    RPC_CONNECTION_FAILED = "1001"
    RPC_TIMEOUT = "1002"
    RPC_RATE_LIMITED = "1003"
    RPC_INVALID_RESPONSE = "1004"

    # Quote errors
    AMOUNT_EXCEEDS_MAX_U64 = "3001"
    SQRT_PRICE_OUT_OF_BOUNDS = "3002"
    TICK_INDEX_NOT_IN_ARRAY = "3003"
    ARITHMETIC_OVERFLOW = "3004"
    TICK_SEQUENCE_EXHAUSTED = "3005"

    # Pool / account data errors
    POOL_NOT_FOUND = "4001"
    POOL_INVALID_STATE = "4002"
    ACCOUNT_INVALID_DATA = "4003"
    ACCOUNT_NOT_FOUND = "4004"

    # Position errors
    POSITION_NOT_FOUND = "5001"
    POSITION_NOT_LOCKED = "5002"

    # Token account errors
    MINT_NOT_FOUND = "6001"
    TOKEN_ACCOUNT_NOT_FOUND = "6002"
    INSUFFICIENT_FUNDS = "6003"

    # Precondition errors
    FUNDER_NOT_SET = "7001"
    MINTS_NOT_ORDERED = "7002"
    FULL_RANGE_ONLY = "7003"
    INVALID_TICK_RANGE = "7004"
    INVALID_PRICE = "7005"
    INVALID_SLIPPAGE = "7006"
    INVALID_MINT = "7007"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"
    UNKNOWN_WRAPPING_STRATEGY = "9003"
    UNKNOWN_TOKEN_PROGRAM = "9004"


class WhirlpoolAdapterError(Exception):
    """
    Base exception for all Whirlpool adapter errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on retry
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"

    @property
    def should_retry(self) -> bool:
        """Indicate if the operation should be retried"""
        return self.recoverable


class RpcError(WhirlpoolAdapterError):
    """
    RPC-related errors - typically recoverable

    Raised when:
    - Connection to RPC endpoint fails
    - Request times out
    - Rate limit is hit
    - Invalid response received
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RPC_CONNECTION_FAILED,
        original_error: Optional[Exception] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=True,
            original_error=original_error,
            details={"endpoint": endpoint} if endpoint else None,
        )
        self.endpoint = endpoint

    @classmethod
    def connection_failed(cls, endpoint: str, error: Exception = None) -> "RpcError":
        return cls(
            f"Failed to connect to RPC endpoint: {endpoint}",
            ErrorCode.RPC_CONNECTION_FAILED,
            original_error=error,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, endpoint: str, timeout_seconds: float) -> "RpcError":
        return cls(
            f"RPC request timed out after {timeout_seconds}s",
            ErrorCode.RPC_TIMEOUT,
            endpoint=endpoint,
        )

    @classmethod
    def rate_limited(cls, endpoint: str) -> "RpcError":
        return cls(
            "RPC rate limit exceeded",
            ErrorCode.RPC_RATE_LIMITED,
            endpoint=endpoint,
        )

    @classmethod
    def invalid_response(cls, endpoint: str, reason: str) -> "RpcError":
        return cls(
            f"Invalid RPC response: {reason}",
            ErrorCode.RPC_INVALID_RESPONSE,
            endpoint=endpoint,
        )


class QuoteError(WhirlpoolAdapterError):
    """
    Arithmetic failure inside quote math - not recoverable

    Raised when:
    - A token amount does not fit in u64
    - A sqrt price leaves [MIN_SQRT_PRICE, MAX_SQRT_PRICE]
    - A tick index is looked up in the wrong tick array
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.ARITHMETIC_OVERFLOW):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def amount_exceeds_max_u64(cls, amount: int) -> "QuoteError":
        return cls(f"Amount exceeds u64: {amount}", ErrorCode.AMOUNT_EXCEEDS_MAX_U64)

    @classmethod
    def sqrt_price_out_of_bounds(cls, sqrt_price: int) -> "QuoteError":
        return cls(f"Sqrt price out of bounds: {sqrt_price}", ErrorCode.SQRT_PRICE_OUT_OF_BOUNDS)

    @classmethod
    def tick_index_not_in_array(cls, tick_index: int, start_index: int) -> "QuoteError":
        return cls(
            f"Tick index {tick_index} is not in tick array starting at {start_index}",
            ErrorCode.TICK_INDEX_NOT_IN_ARRAY,
        )

    @classmethod
    def tick_sequence_exhausted(cls, tick_index: int) -> "QuoteError":
        return cls(
            f"Swap ran past the loaded tick arrays at tick {tick_index}",
            ErrorCode.TICK_SEQUENCE_EXHAUSTED,
        )


class AccountNotFound(WhirlpoolAdapterError):
    """
    Required on-chain account is missing - not recoverable

    Callers can catch this base class to branch on every "not found"
    condition separately from precondition violations.
    """

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        code: ErrorCode = ErrorCode.ACCOUNT_NOT_FOUND,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"address": address},
        )
        self.address = address

    @classmethod
    def not_found(cls, kind: str, address: str) -> "AccountNotFound":
        return cls(f"{kind} not found: {address}", address=address)


class PoolNotFound(AccountNotFound):
    """Whirlpool account does not exist"""

    def __init__(self, message: str, pool_address: Optional[str] = None):
        super().__init__(message, address=pool_address, code=ErrorCode.POOL_NOT_FOUND)
        self.pool_address = pool_address

    @classmethod
    def not_found(cls, pool_address: str) -> "PoolNotFound":
        return cls(f"Whirlpool not found: {pool_address}", pool_address=pool_address)


class PositionNotFound(AccountNotFound):
    """
    Position not found - not recoverable

    Raised when:
    - Position PDA doesn't exist
    - Position mint doesn't exist
    - Position is not locked when a locked transfer is requested
    """

    def __init__(
        self,
        message: str,
        position_id: Optional[str] = None,
        code: ErrorCode = ErrorCode.POSITION_NOT_FOUND,
    ):
        super().__init__(message, address=position_id, code=code)
        self.position_id = position_id

    @classmethod
    def not_found(cls, position_id: str) -> "PositionNotFound":
        return cls(f"Position not found: {position_id}", position_id=position_id)

    @classmethod
    def not_locked(cls, position_id: str) -> "PositionNotFound":
        return cls(
            f"Position is not locked: {position_id}",
            position_id=position_id,
            code=ErrorCode.POSITION_NOT_LOCKED,
        )


class MintNotFound(AccountNotFound):
    """Token mint account does not exist"""

    def __init__(self, message: str, mint: Optional[str] = None):
        super().__init__(message, address=mint, code=ErrorCode.MINT_NOT_FOUND)
        self.mint = mint

    @classmethod
    def not_found(cls, mint: str) -> "MintNotFound":
        return cls(f"Mint not found: {mint}", mint=mint)


class AccountDecodeError(WhirlpoolAdapterError):
    """Account data does not match the expected layout"""

    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.ACCOUNT_INVALID_DATA,
            recoverable=False,
            details={"address": address},
        )
        self.address = address

    @classmethod
    def wrong_discriminator(cls, account_name: str) -> "AccountDecodeError":
        return cls(f"Account data is not a {account_name} (discriminator mismatch)")

    @classmethod
    def too_short(cls, account_name: str, expected: int, actual: int) -> "AccountDecodeError":
        return cls(f"{account_name} data too short: expected {expected} bytes, got {actual}")


class InsufficientFunds(WhirlpoolAdapterError):
    """
    Insufficient balance - not recoverable without deposit

    Raised when the balance check is enforced and a token account holds
    less than the amount an action requires.
    """

    def __init__(
        self,
        message: str,
        mint: Optional[str] = None,
        required: Optional[int] = None,
        available: Optional[int] = None,
    ):
        super().__init__(
            message,
            ErrorCode.INSUFFICIENT_FUNDS,
            recoverable=False,
            details={
                "mint": mint,
                "required": required,
                "available": available,
            },
        )
        self.mint = mint
        self.required = required
        self.available = available

    @classmethod
    def token_balance(cls, mint: str, required: int, available: int) -> "InsufficientFunds":
        return cls(
            f"Insufficient balance for {mint}: need {required}, have {available}",
            mint=mint,
            required=required,
            available=available,
        )


class PreconditionViolation(WhirlpoolAdapterError):
    """
    Caller input rejected before any instruction is built - never retried

    Raised when:
    - No funder/signer is configured
    - Mints are not in canonical order
    - A bounded range is requested on a full-range-only pool
    - Tick bounds, prices or slippage are invalid
    - A swap names a mint the pool does not hold
    """

    def __init__(self, message: str, code: ErrorCode, details: Optional[dict] = None):
        super().__init__(message, code, recoverable=False, details=details)

    @classmethod
    def funder_not_set(cls) -> "PreconditionViolation":
        return cls(
            "Funder must be provided or set with set_funder()",
            ErrorCode.FUNDER_NOT_SET,
        )

    @classmethod
    def mints_not_ordered(cls, mint_a: str, mint_b: str) -> "PreconditionViolation":
        return cls(
            f"Token order needs to be flipped to match the canonical ordering: {mint_a} > {mint_b}",
            ErrorCode.MINTS_NOT_ORDERED,
            details={"mint_a": mint_a, "mint_b": mint_b},
        )

    @classmethod
    def full_range_only(cls, tick_spacing: int) -> "PreconditionViolation":
        return cls(
            f"Pool with tick spacing {tick_spacing} only supports full-range positions",
            ErrorCode.FULL_RANGE_ONLY,
            details={"tick_spacing": tick_spacing},
        )

    @classmethod
    def invalid_tick_range(cls, reason: str) -> "PreconditionViolation":
        return cls(f"Invalid tick range: {reason}", ErrorCode.INVALID_TICK_RANGE)

    @classmethod
    def invalid_price(cls, reason: str) -> "PreconditionViolation":
        return cls(f"Invalid price: {reason}", ErrorCode.INVALID_PRICE)

    @classmethod
    def invalid_slippage(cls, slippage_bps: int) -> "PreconditionViolation":
        return cls(
            f"Slippage tolerance must be between 0 and 10000 bps, got {slippage_bps}",
            ErrorCode.INVALID_SLIPPAGE,
            details={"slippage_bps": slippage_bps},
        )

    @classmethod
    def invalid_mint(cls, mint: str, pool: str) -> "PreconditionViolation":
        return cls(
            f"Mint {mint} is not one of the mints of pool {pool}",
            ErrorCode.INVALID_MINT,
            details={"mint": mint, "pool": pool},
        )


class ConfigurationError(WhirlpoolAdapterError):
    """
    Configuration-related errors - treated as programming errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    - An unknown wrapping strategy or token program is encountered
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)

    @classmethod
    def unknown_wrapping_strategy(cls, strategy) -> "ConfigurationError":
        return cls(
            f"Unknown native mint wrapping strategy: {strategy!r}",
            ErrorCode.UNKNOWN_WRAPPING_STRATEGY,
        )

    @classmethod
    def unknown_token_program(cls, program_id: str) -> "ConfigurationError":
        return cls(
            f"Unknown token program: {program_id}",
            ErrorCode.UNKNOWN_TOKEN_PROGRAM,
        )
