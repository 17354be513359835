"""
Payment signing endpoints.

POST /sign-payment  Split a payment and sign both transfers (owner only).
POST /sign          Legacy single-transfer signing, permanently retired.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.api.responses import format_error, format_success
from app.config import Settings
from app.engine.orchestrator import PaymentOrchestrator

logger = logging.getLogger("signing_service.api")

router = APIRouter(tags=["payments"])


class SignPaymentRequest(BaseModel):
    """Inbound payment. Fields are untyped here: absent or malformed values
    are judged by the validator, in its fixed order, not by pydantic."""

    merchant_address: Any = None
    total_amount: Any = None  # Atomic units, e.g. "15000000" = 15 USDC
    token: Any = None
    chain: Any = None


def get_orchestrator(request: Request) -> PaymentOrchestrator:
    return request.app.state.orchestrator


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.post("/sign-payment")
async def sign_payment(
    body: Optional[SignPaymentRequest] = None,
    x_api_key: Optional[str] = Header(default=None),
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_settings),
):
    """
    Sign a payment with automatic commission.

    The server computes the split and signs two transfers: commission first,
    merchant second, each confirmed before moving on. The client cannot
    influence the commission amount or recipient.
    """
    fields = body.model_dump() if body is not None else {}
    flow = await orchestrator.execute(x_api_key, fields)

    if flow.error is not None:
        status_code, content = format_error(flow.error)
        return JSONResponse(status_code=status_code, content=content)

    return format_success(flow.result, settings.commission_rate, settings.commission_address)


@router.post("/sign")
async def sign_legacy():
    """Single transaction signing without commission. Deprecated."""
    return JSONResponse(
        status_code=410,
        content={
            "error": "Endpoint deprecated",
            "message": "Please use POST /sign-payment instead for automatic commission enforcement",
            "migration": {
                "old": "POST /sign with {to, amount, token, chain}",
                "new": "POST /sign-payment with {merchant_address, total_amount, token, chain}",
                "benefit": "Automatic commission enforcement - client cannot bypass",
            },
        },
    )
