"""
Instruction plan and action result types

An InstructionPlan keeps the setup / core / cleanup segments separate so
assemblers can append to each independently; `instructions` flattens them
in the only valid order.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Union

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .quotes import (
    CollectFeesQuote,
    CollectRewardsQuote,
    DecreaseLiquidityQuote,
    ExactInSwapQuote,
    ExactOutSwapQuote,
    IncreaseLiquidityQuote,
)


@dataclass
class TokenAccountInstructions:
    """
    Output of the token account provisioner

    Attributes:
        create_instructions: Account creation and native SOL funding
        cleanup_instructions: Close instructions for temporary accounts
        token_account_addresses: Mint -> token account to use in the action
        additional_signers: Keypairs for freshly generated accounts
    """
    create_instructions: List[Instruction] = field(default_factory=list)
    cleanup_instructions: List[Instruction] = field(default_factory=list)
    token_account_addresses: Dict[Pubkey, Pubkey] = field(default_factory=dict)
    additional_signers: List[Keypair] = field(default_factory=list)


@dataclass
class InstructionPlan:
    """Ordered instruction list split into setup, core and cleanup"""
    setup: List[Instruction] = field(default_factory=list)
    core: List[Instruction] = field(default_factory=list)
    cleanup: List[Instruction] = field(default_factory=list)
    additional_signers: List[Keypair] = field(default_factory=list)

    @property
    def instructions(self) -> List[Instruction]:
        return self.setup + self.core + self.cleanup

    def add_token_accounts(self, token_accounts: TokenAccountInstructions) -> None:
        """Merge provisioner output into the setup and cleanup segments"""
        self.setup.extend(token_accounts.create_instructions)
        self.cleanup.extend(token_accounts.cleanup_instructions)
        self.additional_signers.extend(token_accounts.additional_signers)

    def __len__(self) -> int:
        return len(self.setup) + len(self.core) + len(self.cleanup)


@dataclass
class PlanResult:
    plan: InstructionPlan

    @property
    def instructions(self) -> List[Instruction]:
        return self.plan.instructions

    @property
    def additional_signers(self) -> List[Keypair]:
        return self.plan.additional_signers


@dataclass
class CreatePoolInstructions(PlanResult):
    """
    Attributes:
        initialization_cost: Non-refundable rent in lamports
        pool_address: Address of the new pool
    """
    initialization_cost: int
    pool_address: Pubkey


@dataclass
class OpenPositionInstructions(PlanResult):
    """
    Attributes:
        quote: Liquidity quote used for the deposit
        initialization_cost: Rent for position, mint, metadata and new tick arrays
        position_mint: Mint of the new position NFT
    """
    quote: IncreaseLiquidityQuote
    initialization_cost: int
    position_mint: Pubkey


@dataclass
class IncreaseLiquidityInstructions(PlanResult):
    quote: IncreaseLiquidityQuote


@dataclass
class DecreaseLiquidityInstructions(PlanResult):
    quote: DecreaseLiquidityQuote


@dataclass
class ClosePositionInstructions(PlanResult):
    quote: DecreaseLiquidityQuote
    fees_quote: CollectFeesQuote
    rewards_quote: CollectRewardsQuote


@dataclass
class HarvestPositionInstructions(PlanResult):
    fees_quote: CollectFeesQuote
    rewards_quote: CollectRewardsQuote


@dataclass
class SwapInstructions(PlanResult):
    quote: Union[ExactInSwapQuote, ExactOutSwapQuote]


@dataclass
class TransferLockedPositionInstructions(PlanResult):
    destination_token_account: Pubkey
