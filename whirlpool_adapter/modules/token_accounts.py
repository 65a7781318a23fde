"""
Token Account Provisioner

Works out which token accounts an action will use and the instructions
needed to make them usable: idempotent ATA creation for ordinary mints, and
the native SOL wrapping flow selected by NativeMintWrappingStrategy.

Usage:
    accounts = await prepare_token_accounts_instructions(
        rpc, owner, {mint_a: quote.token_max_a, mint_b: quote.token_max_b},
    )
    plan.add_token_accounts(accounts)
    owner_account_a = accounts.token_account_addresses[mint_a]
"""

import logging
import time
from typing import Dict, Mapping, Optional, Sequence, Union

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ..config import NativeMintWrappingStrategy, WhirlpoolDefaults, resolve_defaults
from ..errors import ConfigurationError, InsufficientFunds
from ..infra import AccountStateProber, log_with_correlation
from ..protocols import spl
from ..protocols.whirlpool.constants import NATIVE_MINT, TOKEN_ACCOUNT_SIZE, TOKEN_PROGRAM_ID
from ..protocols.whirlpool.parser import parse_token_account
from ..protocols.whirlpool.pda import get_associated_token_address
from ..types.plans import TokenAccountInstructions
from .accounts import fetch_mints

logger = logging.getLogger(__name__)

TokenRequirements = Union[Sequence[Pubkey], Mapping[Pubkey, int]]


def _normalize_requirements(requirements: TokenRequirements) -> Dict[Pubkey, int]:
    """Mint -> required amount, keeping first-seen order"""
    if isinstance(requirements, Mapping):
        return {mint: int(amount) for mint, amount in requirements.items()}
    normalized: Dict[Pubkey, int] = {}
    for mint in requirements:
        normalized.setdefault(mint, 0)
    return normalized


def _check_strategy(strategy) -> NativeMintWrappingStrategy:
    if not isinstance(strategy, NativeMintWrappingStrategy):
        raise ConfigurationError.unknown_wrapping_strategy(strategy)
    return strategy


def wrapped_sol_seed() -> str:
    """Seed for a seed-derived wrapped SOL account: unix time in milliseconds"""
    return str(int(time.time() * 1000))


async def prepare_token_accounts_instructions(
    rpc,
    owner: Pubkey,
    requirements: TokenRequirements,
    defaults: Optional[WhirlpoolDefaults] = None,
) -> TokenAccountInstructions:
    """
    Resolve token accounts for a set of mints

    Args:
        rpc: Async RPC client
        owner: Wallet that owns (and pays for) the token accounts
        requirements: Mints the action touches, either as a list or as a
            mapping of mint to the amount the action needs in that account
        defaults: Explicit defaults (wrapping strategy, balance check)

    Returns:
        TokenAccountInstructions with create/cleanup instructions, the
        mint -> account map and any keypairs that must co-sign

    Raises:
        MintNotFound: If a requested mint does not exist
        InsufficientFunds: If the balance check is enabled and an existing
            account holds less than required
        ConfigurationError: If the wrapping strategy is not recognized
    """
    defaults = resolve_defaults(defaults)
    strategy = _check_strategy(defaults.native_mint_wrapping_strategy)
    required = _normalize_requirements(requirements)
    result = TokenAccountInstructions()

    has_native = NATIVE_MINT in required
    # keypair and seed strategies never touch the native ATA
    temporary_native = has_native and strategy in (
        NativeMintWrappingStrategy.KEYPAIR,
        NativeMintWrappingStrategy.SEED,
    )
    ata_mints = [mint for mint in required if not (temporary_native and mint == NATIVE_MINT)]

    prober = AccountStateProber(rpc)
    mints = await fetch_mints(prober, ata_mints)
    ata_addresses = [
        get_associated_token_address(owner, mint.address, mint.token_program)
        for mint in mints
    ]
    ata_accounts = await prober.fetch_accounts(ata_addresses)

    native_balance = 0
    for mint, ata, account in zip(mints, ata_addresses, ata_accounts):
        result.token_account_addresses[mint.address] = ata
        balance = parse_token_account(account).amount if account is not None else 0

        if account is None:
            result.create_instructions.append(
                spl.create_associated_token_account_idempotent(
                    owner, ata, owner, mint.address, mint.token_program,
                )
            )

        if mint.address == NATIVE_MINT:
            native_balance = balance
            if account is None and strategy == NativeMintWrappingStrategy.ATA:
                result.cleanup_instructions.append(
                    spl.close_account(ata, owner, owner, TOKEN_PROGRAM_ID)
                )
            # wrapped SOL is topped up from lamports unless the strategy is none
            if strategy != NativeMintWrappingStrategy.NONE:
                continue

        if defaults.enforce_token_balance_check and balance < required[mint.address]:
            raise InsufficientFunds.token_balance(str(mint.address), required[mint.address], balance)

    if temporary_native:
        rent = await rpc.get_minimum_balance_for_rent_exemption(TOKEN_ACCOUNT_SIZE)

        if strategy == NativeMintWrappingStrategy.KEYPAIR:
            keypair = Keypair()
            native_account = keypair.pubkey()
            result.create_instructions.append(
                spl.create_account(owner, native_account, rent, TOKEN_ACCOUNT_SIZE, TOKEN_PROGRAM_ID)
            )
            result.additional_signers.append(keypair)
        else:
            seed = wrapped_sol_seed()
            native_account = Pubkey.create_with_seed(owner, seed, TOKEN_PROGRAM_ID)
            result.create_instructions.append(
                spl.create_account_with_seed(
                    owner, native_account, owner, seed, rent, TOKEN_ACCOUNT_SIZE, TOKEN_PROGRAM_ID,
                )
            )

        result.create_instructions.append(
            spl.initialize_account3(native_account, NATIVE_MINT, owner, TOKEN_PROGRAM_ID)
        )
        result.cleanup_instructions.append(
            spl.close_account(native_account, owner, owner, TOKEN_PROGRAM_ID)
        )
        result.token_account_addresses[NATIVE_MINT] = native_account

    if has_native and strategy != NativeMintWrappingStrategy.NONE:
        amount = required[NATIVE_MINT]
        if strategy == NativeMintWrappingStrategy.ATA:
            amount = max(amount - native_balance, 0)
        if amount > 0:
            native_account = result.token_account_addresses[NATIVE_MINT]
            result.create_instructions.append(spl.transfer(owner, native_account, amount))
            result.create_instructions.append(spl.sync_native(native_account, TOKEN_PROGRAM_ID))

    log_with_correlation(
        logger, logging.DEBUG,
        f"Prepared {len(result.token_account_addresses)} token accounts: "
        f"{len(result.create_instructions)} setup, {len(result.cleanup_instructions)} cleanup",
        "token_accounts",
        strategy=strategy.value,
    )
    return result
