"""
Async RPC Client for Solana

Provides the read-side JSON-RPC interface used by the assemblers:
- Multiple endpoint fallback
- Retry logic with linear backoff
- Rate limit handling
- Base64 account decoding into AccountInfo
"""

from __future__ import annotations

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx
from solders.pubkey import Pubkey

from ..errors import RpcError, ConfigurationError
from ..config import config as global_config
from ..types.accounts import AccountInfo

logger = logging.getLogger(__name__)

AddressLike = Union[Pubkey, str]


@dataclass
class RpcClientConfig:
    """
    RPC client runtime configuration

    Allows per-client overrides while pulling defaults from the global config
    (whirlpool_adapter.config.RpcConfig).

    Usage:
        # Use all defaults from environment
        client = AsyncRpcClient(endpoint)

        # Override specific settings
        config = RpcClientConfig(timeout_seconds=60, max_retries=5)
        client = AsyncRpcClient(endpoint, config=config)
    """
    timeout_seconds: float = None
    max_retries: int = None
    retry_delay_seconds: float = None
    commitment: str = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.timeout_seconds is None:
            self.timeout_seconds = global_config.rpc.timeout_seconds
        if self.max_retries is None:
            self.max_retries = global_config.rpc.max_retries
        if self.retry_delay_seconds is None:
            self.retry_delay_seconds = global_config.rpc.retry_delay_seconds
        if self.commitment is None:
            self.commitment = global_config.rpc.commitment


def decode_account(address: AddressLike, value: Optional[Dict[str, Any]]) -> Optional[AccountInfo]:
    """
    Decode a base64 account payload from the RPC

    Args:
        address: Account address
        value: "value" entry from getAccountInfo / getMultipleAccounts

    Returns:
        AccountInfo, or None if the account does not exist
    """
    if value is None:
        return None

    data = value.get("data", [])
    if isinstance(data, list) and len(data) > 0:
        raw_data = base64.b64decode(data[0])
    elif isinstance(data, str):
        raw_data = base64.b64decode(data)
    else:
        raise RpcError.invalid_response("", f"unexpected account data encoding for {address}")

    return AccountInfo(
        address=address if isinstance(address, Pubkey) else Pubkey.from_string(address),
        owner=Pubkey.from_string(value["owner"]),
        lamports=int(value.get("lamports", 0)),
        data=raw_data,
        executable=bool(value.get("executable", False)),
    )


class AsyncRpcClient:
    """
    Async Solana RPC client

    Supports:
    - Multiple RPC endpoints with automatic fallback
    - Retry logic for transient failures
    - Rate limit handling with backoff
    - Configurable timeouts

    Usage:
        rpc = AsyncRpcClient("https://api.mainnet-beta.solana.com")

        async with rpc:
            account = await rpc.get_account_info(pool_address)
    """

    def __init__(
        self,
        endpoint: Union[str, List[str], None] = None,
        config: Optional[RpcClientConfig] = None,
    ):
        """
        Initialize RPC client

        Args:
            endpoint: RPC endpoint URL or list of URLs (for fallback).
                Defaults to SOLANA_RPC_URL.
            config: RPC configuration options
        """
        if endpoint is None:
            endpoint = global_config.rpc.url
        self._endpoints = [endpoint] if isinstance(endpoint, str) else list(endpoint)
        self._endpoints = [e for e in self._endpoints if e]
        if not self._endpoints:
            raise ConfigurationError.missing("RPC endpoint")

        self._config = config or RpcClientConfig()
        self._current_endpoint_idx = 0
        self._client: Optional[httpx.AsyncClient] = None
        self._request_id = 0

    @property
    def endpoint(self) -> str:
        """Current active endpoint"""
        return self._endpoints[self._current_endpoint_idx]

    @property
    def commitment(self) -> str:
        """Default commitment level"""
        return self._config.commitment

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    def _rotate_endpoint(self):
        """Rotate to next endpoint on failure"""
        if len(self._endpoints) > 1:
            self._current_endpoint_idx = (self._current_endpoint_idx + 1) % len(self._endpoints)
            logger.info(f"Rotating to RPC endpoint: {self.endpoint}")

    async def call(
        self,
        method: str,
        params: List[Any],
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Make JSON-RPC call

        Args:
            method: RPC method name
            params: RPC parameters
            timeout: Optional timeout override

        Returns:
            RPC result

        Raises:
            RpcError: On RPC failure
        """
        client = self._get_client()
        self._request_id += 1
        body = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }
        timeout_val = timeout or self._config.timeout_seconds

        last_error: Optional[Exception] = None
        endpoints_tried = 0
        max_endpoints = len(self._endpoints)

        while endpoints_tried < max_endpoints:
            for attempt in range(self._config.max_retries):
                try:
                    response = await client.post(
                        self.endpoint,
                        json=body,
                        timeout=timeout_val,
                    )

                    # Handle rate limiting
                    if response.status_code == 429:
                        logger.warning(f"Rate limited by {self.endpoint}")
                        last_error = RpcError.rate_limited(self.endpoint)
                        await asyncio.sleep(self._config.retry_delay_seconds * (attempt + 1))
                        continue

                    response.raise_for_status()
                    result = response.json()

                    # Check for RPC error
                    if "error" in result:
                        error = result["error"]
                        error_msg = error.get("message", str(error))
                        rpc_error = RpcError(
                            f"RPC error: {error_msg}",
                            endpoint=self.endpoint,
                        )
                        if rpc_error.details is None:
                            rpc_error.details = {}
                        rpc_error.details["rpc_error_code"] = error.get("code")
                        rpc_error.details["rpc_error_data"] = error.get("data")
                        raise rpc_error

                    return result.get("result")

                except httpx.TimeoutException:
                    last_error = RpcError.timeout(self.endpoint, timeout_val)
                    logger.warning(f"RPC timeout (attempt {attempt + 1}): {self.endpoint}")

                except httpx.HTTPStatusError as e:
                    last_error = RpcError(
                        f"HTTP error {e.response.status_code}",
                        endpoint=self.endpoint,
                        original_error=e,
                    )
                    logger.warning(f"RPC HTTP error (attempt {attempt + 1}): {e}")

                except httpx.RequestError as e:
                    last_error = RpcError.connection_failed(self.endpoint, e)
                    logger.warning(f"RPC connection error (attempt {attempt + 1}): {e}")

                except ValueError as e:
                    last_error = RpcError.invalid_response(self.endpoint, str(e))
                    logger.warning(f"RPC invalid response (attempt {attempt + 1}): {e}")

                # Wait before retry
                if attempt < self._config.max_retries - 1:
                    await asyncio.sleep(self._config.retry_delay_seconds * (attempt + 1))

            # All retries failed, try next endpoint
            self._rotate_endpoint()
            endpoints_tried += 1

        raise last_error or RpcError("All RPC endpoints failed")

    def _account_config(self, commitment: Optional[str]) -> Dict[str, Any]:
        return {"encoding": "base64", "commitment": commitment or self.commitment}

    async def get_account_info(
        self,
        address: AddressLike,
        commitment: Optional[str] = None,
    ) -> Optional[AccountInfo]:
        """
        Get account information

        Returns:
            AccountInfo or None if not found
        """
        result = await self.call("getAccountInfo", [str(address), self._account_config(commitment)])
        return decode_account(address, result.get("value") if result else None)

    async def get_multiple_accounts(
        self,
        addresses: List[AddressLike],
        commitment: Optional[str] = None,
    ) -> List[Optional[AccountInfo]]:
        """
        Get multiple accounts in one call

        The RPC caps a single request at 100 addresses; use
        AccountStateProber for larger sets.

        Returns:
            List of AccountInfo in input order (None for accounts not found)
        """
        if not addresses:
            return []
        params = [[str(a) for a in addresses], self._account_config(commitment)]
        result = await self.call("getMultipleAccounts", params)
        values = result.get("value", []) if result else []
        return [decode_account(address, value) for address, value in zip(addresses, values)]

    async def get_program_accounts(
        self,
        program_id: AddressLike,
        filters: Optional[List[Dict[str, Any]]] = None,
        commitment: Optional[str] = None,
    ) -> List[AccountInfo]:
        """
        Get all accounts owned by a program

        Example filters:
            [
                {"memcmp": {"offset": 8, "bytes": "base58_data"}},
                {"dataSize": 216}
            ]
        """
        config = self._account_config(commitment)
        if filters:
            config["filters"] = filters

        result = await self.call("getProgramAccounts", [str(program_id), config])
        if isinstance(result, dict):
            result = result.get("value", [])
        return [decode_account(entry["pubkey"], entry["account"]) for entry in result or []]

    async def get_token_accounts_by_owner(
        self,
        owner: AddressLike,
        program_id: AddressLike,
        commitment: Optional[str] = None,
    ) -> List[AccountInfo]:
        """
        Get token accounts owned by address under one token program

        Returns:
            List of raw token accounts
        """
        params = [
            str(owner),
            {"programId": str(program_id)},
            self._account_config(commitment),
        ]
        result = await self.call("getTokenAccountsByOwner", params)
        entries = result.get("value", []) if result else []
        return [decode_account(entry["pubkey"], entry["account"]) for entry in entries]

    async def get_epoch_info(self, commitment: Optional[str] = None) -> Dict[str, Any]:
        """
        Get current epoch info

        Returns:
            Dict with epoch, slotIndex, slotsInEpoch, absoluteSlot
        """
        return await self.call("getEpochInfo", [{"commitment": commitment or self.commitment}])

    async def get_minimum_balance_for_rent_exemption(self, data_size: int) -> int:
        return int(await self.call("getMinimumBalanceForRentExemption", [data_size]))

    async def close(self):
        """Close HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
