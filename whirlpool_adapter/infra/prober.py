"""
Account State Prober

Fetches existence and contents for a set of addresses in as few round trips
as the RPC allows. Requests above the per-call limit are split into chunks
that are fetched concurrently; results always come back in input order.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from solders.pubkey import Pubkey

from ..config import config as global_config
from ..types.accounts import AccountInfo
from .tracing import log_with_correlation

logger = logging.getLogger(__name__)


async def gather_all(*aws):
    """
    Await several awaitables concurrently

    Unlike a bare asyncio.gather, the first failure cancels the siblings
    that are still pending and waits for them to settle before re-raising.

    Returns:
        Results in argument order
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class AccountStateProber:
    """
    Batched account reader over an RPC client

    Usage:
        prober = AccountStateProber(rpc)
        pool, position = await prober.fetch_accounts([pool_address, position_address])
    """

    def __init__(self, rpc, max_accounts_per_request: Optional[int] = None):
        """
        Args:
            rpc: Client exposing async get_multiple_accounts(addresses)
            max_accounts_per_request: Chunk size (defaults to RpcConfig)
        """
        self._rpc = rpc
        self._chunk_size = max_accounts_per_request or global_config.rpc.max_accounts_per_request

    async def fetch_accounts(self, addresses: Sequence[Pubkey]) -> List[Optional[AccountInfo]]:
        """
        Fetch many accounts

        Args:
            addresses: Addresses to fetch (duplicates allowed)

        Returns:
            AccountInfo or None per address, in input order
        """
        addresses = list(addresses)
        if not addresses:
            return []

        chunks = [
            addresses[i:i + self._chunk_size]
            for i in range(0, len(addresses), self._chunk_size)
        ]
        results = await gather_all(*(self._rpc.get_multiple_accounts(chunk) for chunk in chunks))

        accounts: List[Optional[AccountInfo]] = []
        for chunk_result in results:
            accounts.extend(chunk_result)

        found = sum(1 for account in accounts if account is not None)
        log_with_correlation(
            logger, logging.DEBUG,
            f"Probed {len(addresses)} accounts in {len(chunks)} request(s), {found} exist",
            "probe",
            requested=len(addresses),
            found=found,
        )
        return accounts

    async def fetch_account(self, address: Pubkey) -> Optional[AccountInfo]:
        accounts = await self.fetch_accounts([address])
        return accounts[0]

    async def fetch_account_map(self, addresses: Sequence[Pubkey]) -> Dict[Pubkey, Optional[AccountInfo]]:
        """Fetch accounts keyed by address"""
        addresses = list(addresses)
        accounts = await self.fetch_accounts(addresses)
        return dict(zip(addresses, accounts))
