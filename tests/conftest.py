"""Shared test fixtures."""

import pytest

from app.config import Settings
from app.engine.authorizer import OwnerAuthorizer
from app.engine.orchestrator import PaymentOrchestrator
from app.providers.mock_provider import MockChainClient

OWNER_KEY = "agp_live_owner_key_123"
COMMISSION_ADDRESS = "0x1111111111111111111111111111111111111111"
MERCHANT_ADDRESS = "0x2222222222222222222222222222222222222222"


def make_settings(**overrides) -> Settings:
    values = {
        "owner_api_key": OWNER_KEY,
        "owner_auth_mode": "fail_closed",
        "verify_owner_with_identity_service": False,
        "commission_address": COMMISSION_ADDRESS,
        "commission_rate": "0.005",
        "chain_client": "mock",
        "mock_failure_rate": 0.0,
        "mock_latency_ms": 0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def payment_body(**overrides) -> dict:
    body = {
        "merchant_address": MERCHANT_ADDRESS,
        "total_amount": "15000000",  # 15 USDC
        "token": "USDC",
        "chain": "base",
    }
    body.update(overrides)
    return body


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def chain() -> MockChainClient:
    return MockChainClient(failure_rate=0.0, latency_ms=0)


@pytest.fixture
def make_orchestrator(settings):
    """Build an orchestrator around a mock chain with scripted behaviors."""

    def _make(script=None, settings_override=None, chain_client=None):
        cfg = settings_override or settings
        client = chain_client or MockChainClient(script=script, failure_rate=0.0, latency_ms=0)
        authorizer = OwnerAuthorizer(cfg.owner_api_key, cfg.owner_auth_mode)
        return PaymentOrchestrator(cfg, authorizer, client), client

    return _make
