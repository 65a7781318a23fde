"""
Configuration management for the Whirlpool adapter

Loads settings from environment variables and .env file, and holds the
process-wide Whirlpool defaults (config account, funder, slippage, native
mint wrapping strategy). Defaults are an immutable WhirlpoolDefaults object:
assemblers read it once per call, and it only changes through the setter
functions below.
"""

import os
import logging
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Optional, List, Union

from dotenv import load_dotenv
from solders.pubkey import Pubkey

from .errors import ConfigurationError, PreconditionViolation
from .protocols.whirlpool.constants import (
    SOLANA_MAINNET_WHIRLPOOLS_CONFIG,
    SOLANA_MAINNET_WHIRLPOOLS_CONFIG_EXTENSION,
    SOLANA_DEVNET_WHIRLPOOLS_CONFIG,
    ECLIPSE_MAINNET_WHIRLPOOLS_CONFIG,
    ECLIPSE_TESTNET_WHIRLPOOLS_CONFIG,
    SPLASH_POOL_TICK_SPACING,
)
from .protocols.whirlpool.pda import get_whirlpools_config_extension_address


def _load_env_file():
    """Load .env file from project root"""
    current = Path(__file__).parent.parent  # whirlpool_adapter package parent
    env_file = current / ".env"

    if env_file.exists():
        load_dotenv(env_file)


# Load .env on module import
_load_env_file()


def _get_env(key: str, default: Optional[str] = "") -> Optional[str]:
    """Get environment variable with default"""
    value = os.getenv(key)
    if value is None:
        return default
    return value


def _get_env_float(key: str, default: float) -> float:
    """Get environment variable as float"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid float value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as int"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid int value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as bool"""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


@dataclass
class RpcConfig:
    """RPC client configuration"""
    url: str = field(default_factory=lambda: _get_env("SOLANA_RPC_URL", ""))
    timeout_seconds: float = field(default_factory=lambda: _get_env_float("RPC_TIMEOUT_SECONDS", 30.0))
    max_retries: int = field(default_factory=lambda: _get_env_int("RPC_MAX_RETRIES", 3))
    retry_delay_seconds: float = field(default_factory=lambda: _get_env_float("RPC_RETRY_DELAY_SECONDS", 0.5))
    commitment: str = field(default_factory=lambda: _get_env("RPC_COMMITMENT", "confirmed"))
    # getMultipleAccounts accepts at most 100 addresses per request
    max_accounts_per_request: int = field(default_factory=lambda: _get_env_int("RPC_MAX_ACCOUNTS_PER_REQUEST", 100))


@dataclass
class WhirlpoolEnvConfig:
    """Environment overrides for the initial Whirlpool defaults"""
    network: str = field(default_factory=lambda: _get_env("WHIRLPOOLS_NETWORK", "solana_mainnet"))
    funder: str = field(default_factory=lambda: _get_env("WHIRLPOOLS_FUNDER", ""))
    slippage_tolerance_bps: int = field(default_factory=lambda: _get_env_int("WHIRLPOOLS_SLIPPAGE_BPS", 100))
    wrapping_strategy: str = field(default_factory=lambda: _get_env("WHIRLPOOLS_WRAPPING_STRATEGY", "keypair"))
    enforce_token_balance_check: bool = field(
        default_factory=lambda: _get_env_bool("WHIRLPOOLS_ENFORCE_BALANCE_CHECK", False)
    )


def _get_default_log_path() -> str:
    """Get default log file path under whirlpool_adapter/log/ with UTC timestamp"""
    from datetime import datetime, timezone
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_dir = Path(__file__).parent / "log"
    return str(log_dir / f"whirlpool_adapter_{timestamp}.log")


@dataclass
class LoggingConfig:
    """
    Logging configuration with file output and correlation ID support.

    Environment variables:
        LOG_FILE: Path to log file (empty disables file output)
        LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
        LOG_FORMAT: Custom log format string
        LOG_CONSOLE: Enable console output (default: true)
        LOG_MAX_BYTES: Max log file size before rotation (default: 10MB)
        LOG_BACKUP_COUNT: Number of backup files to keep (default: 5)
    """
    log_file: str = field(default_factory=lambda: _get_env("LOG_FILE", _get_default_log_path()))
    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: _get_env(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    ))
    console_output: bool = field(default_factory=lambda: _get_env_bool("LOG_CONSOLE", True))
    max_bytes: int = field(default_factory=lambda: _get_env_int("LOG_MAX_BYTES", 10 * 1024 * 1024))  # 10MB
    backup_count: int = field(default_factory=lambda: _get_env_int("LOG_BACKUP_COUNT", 5))

    @property
    def level(self) -> int:
        """Get numeric log level"""
        return getattr(logging, self.log_level.upper(), logging.INFO)


@dataclass
class Config:
    """
    Main configuration container

    Usage:
        from whirlpool_adapter.config import config

        print(config.rpc.url)
        print(config.whirlpool.slippage_tolerance_bps)
    """
    rpc: RpcConfig = field(default_factory=RpcConfig)
    whirlpool: WhirlpoolEnvConfig = field(default_factory=WhirlpoolEnvConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def reload(cls) -> "Config":
        """Reload configuration from environment"""
        _load_env_file()
        return cls()


# Global config instance
config = Config()


def get_config() -> Config:
    """Get global configuration instance"""
    return config


def reload_config() -> Config:
    """Reload and return new configuration"""
    global config
    config = Config.reload()
    return config


# ---------------------------------------------------------------------------
# Whirlpool defaults
# ---------------------------------------------------------------------------

DEFAULT_ADDRESS = Pubkey.default()
DEFAULT_SLIPPAGE_TOLERANCE_BPS = 100


class NativeMintWrappingStrategy(Enum):
    """How native SOL is represented as a token account during an action"""
    KEYPAIR = "keypair"
    SEED = "seed"
    ATA = "ata"
    NONE = "none"


class WhirlpoolsNetwork(Enum):
    """Networks with a known WhirlpoolsConfig account"""
    SOLANA_MAINNET = "solana_mainnet"
    SOLANA_DEVNET = "solana_devnet"
    ECLIPSE_MAINNET = "eclipse_mainnet"
    ECLIPSE_TESTNET = "eclipse_testnet"


NETWORK_CONFIG_ADDRESSES = {
    WhirlpoolsNetwork.SOLANA_MAINNET: SOLANA_MAINNET_WHIRLPOOLS_CONFIG,
    WhirlpoolsNetwork.SOLANA_DEVNET: SOLANA_DEVNET_WHIRLPOOLS_CONFIG,
    WhirlpoolsNetwork.ECLIPSE_MAINNET: ECLIPSE_MAINNET_WHIRLPOOLS_CONFIG,
    WhirlpoolsNetwork.ECLIPSE_TESTNET: ECLIPSE_TESTNET_WHIRLPOOLS_CONFIG,
}


@dataclass(frozen=True)
class WhirlpoolDefaults:
    """
    Immutable set of defaults read by every assembler

    Pass an instance as ``defaults=`` to any assembler to bypass the
    process-wide defaults entirely (useful in tests and multi-tenant code).

    Attributes:
        whirlpools_config_address: WhirlpoolsConfig account pools are created under
        config_extension_address: WhirlpoolsConfigExtension PDA of that config
        funder: Default payer/signer. Pubkey.default() means "not set"
        slippage_tolerance_bps: Default slippage tolerance (0-10000)
        native_mint_wrapping_strategy: Strategy for wrapping native SOL
        enforce_token_balance_check: Fail early if token balances are too low
    """
    whirlpools_config_address: Pubkey = SOLANA_MAINNET_WHIRLPOOLS_CONFIG
    config_extension_address: Pubkey = SOLANA_MAINNET_WHIRLPOOLS_CONFIG_EXTENSION
    funder: Pubkey = DEFAULT_ADDRESS
    slippage_tolerance_bps: int = DEFAULT_SLIPPAGE_TOLERANCE_BPS
    native_mint_wrapping_strategy: NativeMintWrappingStrategy = NativeMintWrappingStrategy.KEYPAIR
    enforce_token_balance_check: bool = False

    @property
    def has_funder(self) -> bool:
        return self.funder != DEFAULT_ADDRESS


def _parse_network(value: Union[str, WhirlpoolsNetwork]) -> WhirlpoolsNetwork:
    if isinstance(value, WhirlpoolsNetwork):
        return value
    try:
        return WhirlpoolsNetwork(value.lower())
    except ValueError:
        raise ConfigurationError.invalid("network", f"unknown network '{value}'")


def _parse_strategy(value: Union[str, NativeMintWrappingStrategy]) -> NativeMintWrappingStrategy:
    if isinstance(value, NativeMintWrappingStrategy):
        return value
    try:
        return NativeMintWrappingStrategy(str(value).lower())
    except ValueError:
        raise ConfigurationError.unknown_wrapping_strategy(value)


def _validate_slippage(slippage_bps: int) -> int:
    if not 0 <= slippage_bps <= 10_000:
        raise PreconditionViolation.invalid_slippage(slippage_bps)
    return slippage_bps


def _defaults_from_env(env: WhirlpoolEnvConfig) -> WhirlpoolDefaults:
    """Build the initial defaults from WHIRLPOOLS_* environment variables"""
    network = _parse_network(env.network)
    config_address = NETWORK_CONFIG_ADDRESSES[network]
    return WhirlpoolDefaults(
        whirlpools_config_address=config_address,
        config_extension_address=get_whirlpools_config_extension_address(config_address)[0],
        funder=Pubkey.from_string(env.funder) if env.funder else DEFAULT_ADDRESS,
        slippage_tolerance_bps=_validate_slippage(env.slippage_tolerance_bps),
        native_mint_wrapping_strategy=_parse_strategy(env.wrapping_strategy),
        enforce_token_balance_check=env.enforce_token_balance_check,
    )


_defaults_lock = threading.Lock()
_defaults: WhirlpoolDefaults = _defaults_from_env(config.whirlpool)


def get_defaults() -> WhirlpoolDefaults:
    """Current process-wide defaults"""
    return _defaults


def resolve_defaults(defaults: Optional[WhirlpoolDefaults] = None) -> WhirlpoolDefaults:
    """Explicit defaults win over the process-wide ones"""
    return defaults if defaults is not None else _defaults


def _update(**changes) -> WhirlpoolDefaults:
    global _defaults
    with _defaults_lock:
        _defaults = replace(_defaults, **changes)
        return _defaults


def set_whirlpools_config_address(
    network_or_address: Union[WhirlpoolsNetwork, str, Pubkey],
) -> WhirlpoolDefaults:
    """
    Select the WhirlpoolsConfig account used by default.

    Args:
        network_or_address: A WhirlpoolsNetwork, its name ("solana_devnet"),
            or an explicit config Pubkey / base58 string

    Returns:
        The updated defaults. The config extension address is re-derived.
    """
    if isinstance(network_or_address, Pubkey):
        address = network_or_address
    elif isinstance(network_or_address, WhirlpoolsNetwork):
        address = NETWORK_CONFIG_ADDRESSES[network_or_address]
    elif network_or_address.lower() in {n.value for n in WhirlpoolsNetwork}:
        address = NETWORK_CONFIG_ADDRESSES[_parse_network(network_or_address)]
    else:
        try:
            address = Pubkey.from_string(network_or_address)
        except ValueError as e:
            raise ConfigurationError.invalid(
                "whirlpools_config_address", f"'{network_or_address}' is neither a network nor an address"
            ) from e

    extension = get_whirlpools_config_extension_address(address)[0]
    logging.getLogger(__name__).info(f"Whirlpools config set to {address}")
    return _update(whirlpools_config_address=address, config_extension_address=extension)


def set_funder(funder: Union[Pubkey, str, None]) -> WhirlpoolDefaults:
    """Set the default funder. None resets it to "not set"."""
    if funder is None:
        funder = DEFAULT_ADDRESS
    elif isinstance(funder, str):
        funder = Pubkey.from_string(funder)
    return _update(funder=funder)


def set_slippage_tolerance_bps(slippage_tolerance_bps: int) -> WhirlpoolDefaults:
    return _update(slippage_tolerance_bps=_validate_slippage(slippage_tolerance_bps))


def set_native_mint_wrapping_strategy(
    strategy: Union[NativeMintWrappingStrategy, str],
) -> WhirlpoolDefaults:
    return _update(native_mint_wrapping_strategy=_parse_strategy(strategy))


def set_enforce_token_balance_check(enforce: bool) -> WhirlpoolDefaults:
    return _update(enforce_token_balance_check=bool(enforce))


def reset_configuration() -> WhirlpoolDefaults:
    """Restore the built-in defaults (Solana mainnet, no funder, 100 bps, keypair)"""
    global _defaults
    with _defaults_lock:
        _defaults = WhirlpoolDefaults()
        return _defaults


def setup_logging(
    log_config: Optional[LoggingConfig] = None,
    logger_name: str = "whirlpool_adapter",
) -> logging.Logger:
    """
    Set up logging based on configuration.

    Creates handlers for file and/or console output with optional rotation.
    The log file directory is created automatically if it doesn't exist.

    Args:
        log_config: Logging configuration (uses global config if None)
        logger_name: Name of the logger to configure (default: whirlpool_adapter)

    Returns:
        Configured logger instance

    Example:
        from whirlpool_adapter.config import LoggingConfig, setup_logging
        logger = setup_logging(LoggingConfig(log_file="", log_level="DEBUG"))
    """
    if log_config is None:
        log_config = config.logging

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_config.level)

    # Close before removing to flush buffers and release file handles
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(log_config.log_format)

    handlers: List[logging.Handler] = []

    if log_config.log_file:
        from logging.handlers import RotatingFileHandler

        log_path = Path(log_config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_config.log_file,
            maxBytes=log_config.max_bytes,
            backupCount=log_config.backup_count,
            encoding='utf-8',
        )
        file_handler.setLevel(log_config.level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if log_config.console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_config.level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    for handler in handlers:
        logger.addHandler(handler)

    # Child loggers inherit handlers from the package logger
    for name in [
        f"{logger_name}.infra",
        f"{logger_name}.modules",
        f"{logger_name}.protocols",
    ]:
        logging.getLogger(name).setLevel(log_config.level)

    if log_config.log_file:
        logger.info(f"Logging initialized: file={log_config.log_file}, level={log_config.log_level}")

    return logger


def enable_file_logging(
    log_file: Optional[str] = None,
    level: str = "INFO",
    console: bool = True,
) -> logging.Logger:
    """
    Quick setup for file logging.

    Args:
        log_file: Path to log file (defaults to whirlpool_adapter/log/...)
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        console: Also output to console

    Returns:
        Configured logger
    """
    if log_file is None:
        log_file = config.logging.log_file

    log_config = LoggingConfig(
        log_file=log_file,
        log_level=level,
        console_output=console,
    )
    return setup_logging(log_config)
