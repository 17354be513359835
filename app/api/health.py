"""Service health and configuration summary."""

from fastapi import APIRouter, Depends

from app.api.payments import get_orchestrator, get_settings
from app.chains.registry import SUPPORTED_TOKENS
from app.config import Settings
from app.engine.orchestrator import PaymentOrchestrator

SERVICE_NAME = "AgentGatePay Signing Service"
SERVICE_VERSION = "3.0.0"

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_settings),
):
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "mode": "secure_two_transaction",
        "wallet_address": orchestrator.chain_client.address,
        "supported_chains": sorted(settings.rpc_urls),
        "supported_tokens": SUPPORTED_TOKENS,
        "commission_rate": f"{float(settings.commission_rate) * 100:g}%",
        "commission_address": settings.commission_address or "not configured",
        "owner_protection": orchestrator.authorizer.protection,
        "note": "This service automatically enforces commission payments. Owner API key required.",
    }
