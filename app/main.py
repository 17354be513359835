"""
AgentGatePay Transaction Signing Service.

Accepts a payment request from the owner, computes the commission split
server-side and signs two ERC-20 transfers from the gateway wallet:
commission first, merchant second, each confirmed before moving on.
The client cannot bypass or change the commission.

Start the server:
    uvicorn app.main:app --port 3000
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.health import router as health_router
from app.api.payments import router as payments_router
from app.config import Settings, check_startup, settings as default_settings
from app.engine.authorizer import OwnerAuthorizer
from app.engine.orchestrator import PaymentOrchestrator
from app.providers.base import ChainClient
from app.providers.identity import IdentityServiceClient
from app.providers.mock_provider import MockChainClient
from app.providers.web3_provider import Web3ChainClient

logging.basicConfig(
    level=getattr(logging, default_settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger("signing_service")

AVAILABLE_ENDPOINTS = {
    "GET /health": "Health check",
    "POST /sign-payment": "Sign payment with automatic commission (requires owner API key)",
}


def build_chain_client(settings: Settings) -> ChainClient:
    if settings.chain_client == "mock":
        return MockChainClient()
    return Web3ChainClient(settings.gateway_private_key, settings.rpc_urls)


def build_identity_client(settings: Settings) -> Optional[IdentityServiceClient]:
    if not settings.verify_owner_with_identity_service:
        return None
    return IdentityServiceClient(settings.agentpay_api_url, timeout=settings.identity_timeout_seconds)


def create_app(
    settings: Settings = default_settings,
    chain_client: Optional[ChainClient] = None,
    identity_client: Optional[IdentityServiceClient] = None,
) -> FastAPI:
    """Build the application. Clients not passed in are built from settings at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        check_startup(settings)

        chain = chain_client or build_chain_client(settings)
        identity = identity_client or build_identity_client(settings)
        authorizer = OwnerAuthorizer(settings.owner_api_key, settings.owner_auth_mode, identity)

        app.state.settings = settings
        app.state.orchestrator = PaymentOrchestrator(settings, authorizer, chain)

        logger.info(
            "Signing service ready: wallet=%s chains=%s commission=%s%% owner_protection=%s",
            chain.address,
            ",".join(sorted(settings.rpc_urls)),
            f"{float(settings.commission_rate) * 100:g}",
            authorizer.protection,
        )
        yield

        await chain.aclose()
        if identity is not None:
            await identity.aclose()

    app = FastAPI(
        title="AgentGatePay Signing Service",
        description=(
            "Signs owner-authorized stablecoin payments as two ERC-20 transfers "
            "with a server-enforced commission split."
        ),
        version="3.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid request",
                "message": "Body must be a JSON object with merchant_address, total_amount, token, chain",
                "kind": "invalid_body",
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Not found",
                    "available_endpoints": AVAILABLE_ENDPOINTS,
                    "note": "This signing service enforces mandatory commission payments. "
                    "Owner authentication required.",
                },
            )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail, "message": exc.detail})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "Payment failed", "message": str(exc), "kind": "unexpected_chain_error"},
        )

    app.include_router(health_router)
    app.include_router(payments_router)
    return app


app = create_app()
