"""
Domain objects for a single payment request.

None of these are persisted. A ``PaymentResult`` is created by the
orchestrator for one request and dropped once the response is sent.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from app.models.enums import Chain, LegRole, Token


@dataclass(frozen=True)
class PaymentRequest:
    """A payment request that passed validation."""

    merchant_address: str
    total_amount: int  # Atomic token units
    token: Token
    chain: Chain
    token_contract: str
    decimals: int


@dataclass(frozen=True)
class CommissionSplit:
    """Server-computed division of a total into commission and merchant parts."""

    total_amount: int
    commission_amount: int
    merchant_amount: int


@dataclass(frozen=True)
class TransferLeg:
    """One of the two ERC-20 transfers of a payment."""

    recipient: str
    amount: int
    role: LegRole


@dataclass(frozen=True)
class PendingTransfer:
    """Handle for a broadcast, not yet confirmed, transfer."""

    tx_hash: str
    chain: Chain
    token_contract: str
    recipient: str
    amount: int


@dataclass(frozen=True)
class TransferReceipt:
    """On-chain result of a transfer as reported by the chain client."""

    tx_hash: str
    block_number: int
    status: int  # 1 = success, 0 = reverted
    gas_used: int

    @property
    def succeeded(self) -> bool:
        return self.status == 1


@dataclass(frozen=True)
class TransferOutcome:
    """Confirmed outcome of one leg."""

    leg: TransferLeg
    tx_hash: str
    block_number: Optional[int]
    confirmed: bool
    gas_used: int = 0


def to_display_amount(atomic: int, decimals: int) -> Decimal:
    """Scale atomic units to whole tokens. Display only, never on-chain."""
    return Decimal(atomic).scaleb(-decimals)


@dataclass
class PaymentResult:
    """Everything the response needs after both legs confirmed."""

    request: PaymentRequest
    split: CommissionSplit
    commission: TransferOutcome
    merchant: TransferOutcome
    from_address: str

    @property
    def total_display(self) -> Decimal:
        return to_display_amount(self.split.total_amount, self.request.decimals)

    @property
    def commission_display(self) -> Decimal:
        return to_display_amount(self.split.commission_amount, self.request.decimals)

    @property
    def merchant_display(self) -> Decimal:
        return to_display_amount(self.split.merchant_amount, self.request.decimals)

    @property
    def gas_used(self) -> int:
        return self.commission.gas_used + self.merchant.gas_used
