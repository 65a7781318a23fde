"""
Pool Module

Looks up Whirlpools for a token pair under the configured WhirlpoolsConfig.
Pools that do not exist yet are reported with the fee rates they would be
created with.
"""

import logging
from typing import List, Optional

import base58
from solders.pubkey import Pubkey

from ..config import WhirlpoolDefaults, resolve_defaults
from ..errors import AccountNotFound
from ..infra import AccountStateProber, CorrelationContext, gather_all, log_with_correlation
from ..protocols.whirlpool.constants import FEE_TIER_SIZE, SPLASH_POOL_TICK_SPACING, WHIRLPOOL_PROGRAM_ID
from ..protocols.whirlpool.math import sqrt_price_to_price
from ..protocols.whirlpool.parser import parse_fee_tier, parse_whirlpool, parse_whirlpools_config
from ..protocols.whirlpool.pda import get_fee_tier_address, get_whirlpool_address, order_mints
from ..types.accounts import AccountInfo, FeeTierState, MintState, WhirlpoolsConfigState
from ..types.pool import InitializedPool, PoolInfo, UninitializedPool
from .accounts import fetch_mints

logger = logging.getLogger(__name__)

# FeeTier layout: discriminator (8) | whirlpools_config (32) | tick_spacing | default_fee_rate
FEE_TIER_CONFIG_OFFSET = 8


def _pool_info(
    address: Pubkey,
    account: Optional[AccountInfo],
    whirlpools_config: Pubkey,
    config_state: WhirlpoolsConfigState,
    fee_tier: Optional[FeeTierState],
    tick_spacing: int,
    mint_a: MintState,
    mint_b: MintState,
) -> PoolInfo:
    if account is not None:
        data = parse_whirlpool(account.data)
        return InitializedPool(
            address=address,
            data=data,
            price=sqrt_price_to_price(data.sqrt_price, mint_a.decimals, mint_b.decimals),
        )

    if fee_tier is None:
        raise AccountNotFound.not_found(
            "Fee tier", str(get_fee_tier_address(whirlpools_config, tick_spacing)[0]),
        )
    return UninitializedPool(
        address=address,
        whirlpools_config=whirlpools_config,
        tick_spacing=tick_spacing,
        fee_rate=fee_tier.default_fee_rate,
        protocol_fee_rate=config_state.default_protocol_fee_rate,
        token_mint_a=mint_a.address,
        token_mint_b=mint_b.address,
    )


async def fetch_concentrated_liquidity_pool(
    rpc,
    token_mint_1: Pubkey,
    token_mint_2: Pubkey,
    tick_spacing: int,
    defaults: Optional[WhirlpoolDefaults] = None,
) -> PoolInfo:
    """
    Fetch the pool for a token pair and tick spacing

    Mints may be given in either order.

    Returns:
        InitializedPool with its price, or UninitializedPool with the
        default fee rate of the fee tier and the config's protocol fee rate

    Raises:
        AccountNotFound: If the config (or, for a missing pool, the fee tier) is absent
        MintNotFound: If either mint is absent
    """
    defaults = resolve_defaults(defaults)
    whirlpools_config = defaults.whirlpools_config_address
    mint_a, mint_b = order_mints(token_mint_1, token_mint_2)

    with CorrelationContext("fetch_pool"):
        prober = AccountStateProber(rpc)
        pool_address = get_whirlpool_address(whirlpools_config, mint_a, mint_b, tick_spacing)[0]
        fee_tier_address = get_fee_tier_address(whirlpools_config, tick_spacing)[0]

        (config_account, fee_tier_account, pool_account), mints = await gather_all(
            prober.fetch_accounts([whirlpools_config, fee_tier_address, pool_address]),
            fetch_mints(prober, [mint_a, mint_b]),
        )
        if config_account is None:
            raise AccountNotFound.not_found("WhirlpoolsConfig", str(whirlpools_config))

        fee_tier = parse_fee_tier(fee_tier_account.data) if fee_tier_account is not None else None
        pool = _pool_info(
            pool_address,
            pool_account,
            whirlpools_config,
            parse_whirlpools_config(config_account.data),
            fee_tier,
            tick_spacing,
            mints[0],
            mints[1],
        )
        log_with_correlation(
            logger, logging.DEBUG,
            f"Pool {pool_address} initialized={pool.initialized}",
            "fetch_pool",
            tick_spacing=tick_spacing,
        )
        return pool


async def fetch_splash_pool(
    rpc,
    token_mint_1: Pubkey,
    token_mint_2: Pubkey,
    defaults: Optional[WhirlpoolDefaults] = None,
) -> PoolInfo:
    """Fetch the splash pool (tick spacing 32896) for a token pair"""
    return await fetch_concentrated_liquidity_pool(
        rpc, token_mint_1, token_mint_2, SPLASH_POOL_TICK_SPACING, defaults,
    )


async def fetch_fee_tiers(rpc, whirlpools_config: Pubkey) -> List[FeeTierState]:
    """All fee tiers registered under a WhirlpoolsConfig"""
    filters = [
        {"dataSize": FEE_TIER_SIZE},
        {"memcmp": {"offset": FEE_TIER_CONFIG_OFFSET, "bytes": base58.b58encode(bytes(whirlpools_config)).decode()}},
    ]
    accounts = await rpc.get_program_accounts(WHIRLPOOL_PROGRAM_ID, filters)
    return [parse_fee_tier(account.data) for account in accounts]


async def fetch_whirlpools_by_token_pair(
    rpc,
    token_mint_1: Pubkey,
    token_mint_2: Pubkey,
    defaults: Optional[WhirlpoolDefaults] = None,
) -> List[PoolInfo]:
    """
    Fetch every pool for a token pair, one per fee tier of the config

    Returns:
        PoolInfo per fee tier, initialized or not
    """
    defaults = resolve_defaults(defaults)
    whirlpools_config = defaults.whirlpools_config_address
    mint_a, mint_b = order_mints(token_mint_1, token_mint_2)

    with CorrelationContext("fetch_pools_by_pair"):
        prober = AccountStateProber(rpc)
        fee_tiers = await fetch_fee_tiers(rpc, whirlpools_config)
        pool_addresses = [
            get_whirlpool_address(whirlpools_config, mint_a, mint_b, fee_tier.tick_spacing)[0]
            for fee_tier in fee_tiers
        ]

        accounts, mints = await gather_all(
            prober.fetch_accounts([whirlpools_config] + pool_addresses),
            fetch_mints(prober, [mint_a, mint_b]),
        )
        config_account, pool_accounts = accounts[0], accounts[1:]
        if config_account is None:
            raise AccountNotFound.not_found("WhirlpoolsConfig", str(whirlpools_config))
        config_state = parse_whirlpools_config(config_account.data)

        pools = [
            _pool_info(
                address, account, whirlpools_config, config_state,
                fee_tier, fee_tier.tick_spacing, mints[0], mints[1],
            )
            for address, account, fee_tier in zip(pool_addresses, pool_accounts, fee_tiers)
        ]
        log_with_correlation(
            logger, logging.INFO,
            f"Found {sum(1 for p in pools if p.initialized)} of {len(pools)} pools for {mint_a}/{mint_b}",
            "fetch_pools_by_pair",
        )
        return pools
