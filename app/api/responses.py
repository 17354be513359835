"""
Response documents for the signing endpoints.

Pure functions: no I/O, no validation that an explorer actually exists.
Display amounts (``*_usd``) are derived from atomic units for humans only.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from app.chains.registry import EXPLORERS
from app.engine.errors import PaymentError
from app.models.payment import PaymentResult


def explorer_url(chain: str, tx_hash: str) -> str:
    return f"{EXPLORERS[chain]}/tx/{tx_hash}"


def format_success(
    result: PaymentResult,
    commission_rate: Decimal,
    commission_address: Optional[str],
) -> dict[str, Any]:
    """Build the 200 response for a payment whose two legs confirmed."""
    request = result.request
    chain = request.chain.value

    return {
        "success": True,
        # Merchant transaction (main payment)
        "tx_hash": result.merchant.tx_hash,
        "block_number": result.merchant.block_number,
        "explorer_url": explorer_url(chain, result.merchant.tx_hash),
        # Commission transaction
        "tx_hash_commission": result.commission.tx_hash,
        "block_number_commission": result.commission.block_number,
        "explorer_url_commission": explorer_url(chain, result.commission.tx_hash),
        # Payment details
        "from": result.from_address,
        "merchant": request.merchant_address,
        "commission_address": commission_address,
        "total_amount": str(result.split.total_amount),
        "merchant_amount": str(result.split.merchant_amount),
        "commission_amount": str(result.split.commission_amount),
        "commission_rate": float(commission_rate),
        "token": request.token.value,
        "chain": chain,
        # Display values
        "total_usd": float(result.total_display),
        "merchant_usd": float(result.merchant_display),
        "commission_usd": float(result.commission_display),
        "gas_used": str(result.gas_used),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def format_error(error: PaymentError) -> tuple[int, dict[str, Any]]:
    """
    Map a PaymentError to (HTTP status, body).

    Tx hashes present in the details get explorer links next to them.
    """
    body: dict[str, Any] = {
        "error": error.title,
        "message": error.message,
        "kind": error.kind.value,
    }
    body.update(error.details)

    chain = error.details.get("chain")
    if chain in EXPLORERS:
        if "tx_hash" in error.details:
            body["explorer_url"] = explorer_url(chain, error.details["tx_hash"])
        if "tx_hash_commission" in error.details:
            body["explorer_url_commission"] = explorer_url(chain, error.details["tx_hash_commission"])

    return error.status_code, body
