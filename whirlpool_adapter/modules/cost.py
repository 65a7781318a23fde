"""
Rent cost estimation

Non-refundable lamports an action locks into new accounts, computed from
the rent sysvar the same way the runtime does.
"""

import logging
from typing import Iterable

from ..errors import AccountNotFound
from ..protocols.whirlpool.constants import (
    SYSTEM_ACCOUNT_STORAGE_OVERHEAD,
    SYSVAR_RENT_ID,
    TOKEN_2022_PROGRAM_ID,
    TOKEN_ACCOUNT_SIZE,
)
from ..protocols.whirlpool.parser import RentState, parse_rent
from ..types.accounts import MintState

logger = logging.getLogger(__name__)

# Token-2022 mint extension -> (account extension type, account extension length)
_MINT_TO_ACCOUNT_EXTENSIONS = {
    1: (2, 8),    # TransferFeeConfig -> TransferFeeAmount
    9: (13, 0),   # NonTransferable -> NonTransferableAccount
    14: (15, 1),  # TransferHook -> TransferHookAccount
}

_ACCOUNT_TYPE_SIZE = 1
_TLV_HEADER_SIZE = 4


def get_token_size_for_mint(mint: MintState) -> int:
    """
    Size of a token account for mint, including required account extensions

    Plain Token mints and Token-2022 mints without account-side extensions
    use the base 165-byte layout.
    """
    if mint.token_program != TOKEN_2022_PROGRAM_ID:
        return TOKEN_ACCOUNT_SIZE

    extension_lengths = [
        _MINT_TO_ACCOUNT_EXTENSIONS[extension_type][1]
        for extension_type in mint.extension_types
        if extension_type in _MINT_TO_ACCOUNT_EXTENSIONS
    ]
    if not extension_lengths:
        return TOKEN_ACCOUNT_SIZE
    return (
        TOKEN_ACCOUNT_SIZE
        + _ACCOUNT_TYPE_SIZE
        + sum(_TLV_HEADER_SIZE + length for length in extension_lengths)
    )


class RentCalculator:
    """
    Minimum balance for rent exemption

    Usage:
        rent = await RentCalculator.fetch(rpc)
        cost = rent.minimum_balance(WHIRLPOOL_SIZE)
    """

    def __init__(self, rent: RentState):
        self._rent = rent

    @classmethod
    async def fetch(cls, rpc) -> "RentCalculator":
        """Load the rent sysvar"""
        account = await rpc.get_account_info(SYSVAR_RENT_ID)
        if account is None:
            raise AccountNotFound.not_found("Rent sysvar", str(SYSVAR_RENT_ID))
        return cls(parse_rent(account.data))

    @property
    def rent(self) -> RentState:
        return self._rent

    def minimum_balance(self, data_size: int) -> int:
        return int(
            (SYSTEM_ACCOUNT_STORAGE_OVERHEAD + data_size)
            * self._rent.lamports_per_byte_year
            * self._rent.exemption_threshold
        )

    def total(self, data_sizes: Iterable[int]) -> int:
        """Sum of minimum balances for several accounts"""
        return sum(self.minimum_balance(size) for size in data_sizes)
