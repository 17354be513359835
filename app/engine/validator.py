"""
Payment request validation with categorized errors.

Before anything touches the network, we verify in this fixed order:
  1. All four fields are present
  2. Chain has a configured RPC endpoint
  3. Token is known
  4. Token is deployed on that chain
  5. Amount is a positive integer string (atomic units)
  6. Merchant address is a well-formed EVM address

The order matters: a request that is missing fields and names an unknown
chain always reports the missing fields. No I/O happens here.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from app.chains.registry import TOKENS, TokenConfig, is_valid_address
from app.engine.errors import ErrorKind, PaymentError
from app.models.enums import Chain, Token
from app.models.payment import PaymentRequest

REQUIRED_FIELDS = ("merchant_address", "total_amount", "token", "chain")
MAX_UINT256 = 2**256 - 1

_DIGITS = re.compile(r"[0-9]+")


@dataclass
class ValidationResult:
    """Result of validating a payment request."""

    valid: bool
    error: Optional[PaymentError] = None
    request: Optional[PaymentRequest] = None


def _reject(kind: ErrorKind, message: str, **details: Any) -> ValidationResult:
    return ValidationResult(valid=False, error=PaymentError(kind, message, details))


def parse_atomic_amount(value: Any) -> Optional[int]:
    """Parse a decimal-integer string of atomic units. None when malformed."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str) or not _DIGITS.fullmatch(value):
        return None
    return int(value)


def validate_payment_request(
    merchant_address: Any,
    total_amount: Any,
    token: Any,
    chain: Any,
    rpc_urls: Mapping[str, str],
    tokens: Mapping[str, TokenConfig] = TOKENS,
) -> ValidationResult:
    """
    Validate raw request fields and resolve the token contract.

    Args:
        merchant_address: Recipient of the merchant leg.
        total_amount: Total in atomic units, as a decimal string.
        token: Token symbol (USDC, USDT, DAI).
        chain: Chain name (ethereum, base, polygon, arbitrum).
        rpc_urls: Configured chain -> RPC endpoint table.
        tokens: Token table (decimals and per-chain contracts).

    Returns:
        ValidationResult carrying either a PaymentRequest or a PaymentError.
    """
    fields = {
        "merchant_address": merchant_address,
        "total_amount": total_amount,
        "token": token,
        "chain": chain,
    }
    missing = [name for name in REQUIRED_FIELDS if fields[name] is None or fields[name] == ""]
    if missing:
        return _reject(
            ErrorKind.MISSING_FIELDS,
            f"Required fields: {', '.join(REQUIRED_FIELDS)}",
            missing=missing,
        )

    if not isinstance(chain, str) or chain not in rpc_urls:
        return _reject(
            ErrorKind.UNSUPPORTED_CHAIN,
            f"Unsupported chain: {chain}",
            supported=sorted(rpc_urls),
        )

    if not isinstance(token, str) or token not in tokens:
        return _reject(
            ErrorKind.UNSUPPORTED_TOKEN,
            f"Unsupported token: {token}",
            supported=sorted(tokens),
        )

    contract = tokens[token]["contracts"].get(chain)
    if not contract:
        return _reject(ErrorKind.TOKEN_NOT_ON_CHAIN, f"{token} not supported on {chain}")

    amount = parse_atomic_amount(total_amount)
    if amount is None or amount <= 0 or amount > MAX_UINT256:
        return _reject(
            ErrorKind.INVALID_AMOUNT,
            f"total_amount must be a positive integer string in atomic units: {total_amount!r}",
        )

    if not is_valid_address(merchant_address):
        return _reject(
            ErrorKind.INVALID_MERCHANT_ADDRESS,
            f"Invalid merchant address: {merchant_address}",
        )

    return ValidationResult(
        valid=True,
        request=PaymentRequest(
            merchant_address=merchant_address,
            total_amount=amount,
            token=Token(token),
            chain=Chain(chain),
            token_contract=contract,
            decimals=tokens[token]["decimals"],
        ),
    )
