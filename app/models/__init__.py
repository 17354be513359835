from app.models.enums import AuthOutcome, Chain, LegRole, PaymentState, Token
from app.models.payment import (
    CommissionSplit,
    PaymentRequest,
    PaymentResult,
    PendingTransfer,
    TransferLeg,
    TransferOutcome,
    TransferReceipt,
)

__all__ = [
    "AuthOutcome",
    "Chain",
    "LegRole",
    "PaymentState",
    "Token",
    "CommissionSplit",
    "PaymentRequest",
    "PaymentResult",
    "PendingTransfer",
    "TransferLeg",
    "TransferOutcome",
    "TransferReceipt",
]
