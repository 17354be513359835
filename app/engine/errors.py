"""
Error taxonomy for the signing service.

Two families live here:

  - Chain client exceptions, raised by ``ChainClient`` implementations
    when talking to an RPC node. The orchestrator translates them.
  - ``PaymentError``, the client-visible failure of a payment request.
    Every ``ErrorKind`` maps to exactly one HTTP status and one
    human-readable error title.

Validation and authorization errors are produced before any network call.
Chain errors are produced after at least one call; ``MERCHANT_FAILED`` is
the only kind that discloses a completed side effect (the commission
transfer) so an operator can reconcile.
"""

from enum import Enum
from typing import Any, Optional


class ConfigurationError(Exception):
    """Required configuration is missing or inconsistent."""


class ChainClientError(Exception):
    """Base exception for chain client failures."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class InsufficientFundsError(ChainClientError):
    """Signing wallet cannot cover the token amount or the gas."""


class ConfirmationTimeoutError(ChainClientError):
    """A broadcast transaction was not confirmed within the wait bound.

    The transaction is still in flight and may confirm later.
    """

    def __init__(self, message: str, tx_hash: str, timeout: float):
        super().__init__(message, tx_hash=tx_hash)
        self.timeout = timeout


class ErrorKind(str, Enum):
    """Client-visible failure categories."""

    INVALID_BODY = "invalid_body"
    MISSING_FIELDS = "missing_fields"
    UNSUPPORTED_CHAIN = "unsupported_chain"
    UNSUPPORTED_TOKEN = "unsupported_token"
    TOKEN_NOT_ON_CHAIN = "token_not_on_chain"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_MERCHANT_ADDRESS = "invalid_merchant_address"
    MISSING_CREDENTIAL = "missing_credential"
    UNAUTHORIZED = "unauthorized"
    MISCONFIGURED_OWNER = "misconfigured_owner"
    MISCONFIGURED_COMMISSION = "misconfigured_commission"
    COMMISSION_FAILED = "commission_failed"
    MERCHANT_FAILED = "merchant_failed"
    CONFIRMATION_TIMEOUT = "confirmation_timeout"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    UNEXPECTED_CHAIN_ERROR = "unexpected_chain_error"


# kind -> (HTTP status, error title)
ERROR_CATEGORIES: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.INVALID_BODY: (400, "Invalid request"),
    ErrorKind.MISSING_FIELDS: (400, "Invalid request"),
    ErrorKind.UNSUPPORTED_CHAIN: (400, "Unsupported chain"),
    ErrorKind.UNSUPPORTED_TOKEN: (400, "Unsupported token"),
    ErrorKind.TOKEN_NOT_ON_CHAIN: (400, "Token not supported on chain"),
    ErrorKind.INVALID_AMOUNT: (400, "Invalid amount"),
    ErrorKind.INVALID_MERCHANT_ADDRESS: (400, "Invalid merchant address"),
    ErrorKind.MISSING_CREDENTIAL: (401, "Unauthorized"),
    ErrorKind.UNAUTHORIZED: (403, "Forbidden"),
    ErrorKind.MISCONFIGURED_OWNER: (500, "Owner API key not configured"),
    ErrorKind.MISCONFIGURED_COMMISSION: (500, "Commission address not configured"),
    ErrorKind.COMMISSION_FAILED: (500, "Commission transfer failed"),
    ErrorKind.MERCHANT_FAILED: (500, "Merchant transfer failed"),
    ErrorKind.CONFIRMATION_TIMEOUT: (500, "Confirmation timeout"),
    ErrorKind.INSUFFICIENT_FUNDS: (400, "Insufficient funds"),
    ErrorKind.UNEXPECTED_CHAIN_ERROR: (500, "Payment failed"),
}


class PaymentError(Exception):
    """A payment request that ended in a documented failure category."""

    def __init__(self, kind: ErrorKind, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details or {}

    @property
    def status_code(self) -> int:
        return ERROR_CATEGORIES[self.kind][0]

    @property
    def title(self) -> str:
        return ERROR_CATEGORIES[self.kind][1]

    def __repr__(self) -> str:
        return f"PaymentError({self.kind.value!r}, {self.message!r})"
