"""Application configuration via environment variables."""

import logging
from decimal import Decimal
from fractions import Fraction
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from app.chains.registry import is_valid_address
from app.engine.errors import ConfigurationError

logger = logging.getLogger("signing_service.config")


class Settings(BaseSettings):
    log_level: str = "INFO"

    # Signing wallet. Never logged.
    gateway_private_key: Optional[str] = None

    # Owner protection
    owner_api_key: Optional[str] = None
    owner_auth_mode: Literal["fail_closed", "fail_open"] = "fail_closed"
    verify_owner_with_identity_service: bool = True
    agentpay_api_url: str = "https://api.agentgatepay.com"
    identity_timeout_seconds: float = 10.0

    # Commission
    commission_rate: Decimal = Field(default=Decimal("0.005"), gt=0, lt=1)  # 0.5%
    commission_address: Optional[str] = None

    # RPC endpoints
    base_rpc: str = "https://mainnet.base.org"
    ethereum_rpc: str = "https://cloudflare-eth.com"
    polygon_rpc: str = "https://polygon-rpc.com"
    arbitrum_rpc: str = "https://arb1.arbitrum.io/rpc"

    required_confirmations: int = Field(default=1, ge=1)
    confirmation_timeout_seconds: float = Field(default=60.0, gt=0)

    chain_client: Literal["web3", "mock"] = "web3"
    mock_failure_rate: float = 0.0
    mock_latency_ms: int = 100

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "frozen": True}

    @property
    def rpc_urls(self) -> dict[str, str]:
        return {
            "base": self.base_rpc,
            "ethereum": self.ethereum_rpc,
            "polygon": self.polygon_rpc,
            "arbitrum": self.arbitrum_rpc,
        }

    @property
    def commission_fraction(self) -> Fraction:
        """Exact rational form of the commission rate."""
        return Fraction(self.commission_rate)


def check_startup(settings: Settings) -> list[str]:
    """
    Validate configuration before the service accepts traffic.

    Raises:
        ConfigurationError: When a required secret is absent.

    Returns:
        Warnings for settings that are allowed but degrade the service.
    """
    if settings.chain_client == "web3" and not settings.gateway_private_key:
        raise ConfigurationError("GATEWAY_PRIVATE_KEY is required to sign transactions")

    warnings: list[str] = []

    if not settings.owner_api_key:
        if settings.owner_auth_mode == "fail_closed":
            raise ConfigurationError(
                "OWNER_API_KEY is not set and OWNER_AUTH_MODE=fail_closed; "
                "set the key or explicitly choose OWNER_AUTH_MODE=fail_open"
            )
        warnings.append("OWNER_API_KEY not set and OWNER_AUTH_MODE=fail_open: anyone can use this service")

    if not settings.commission_address:
        warnings.append("COMMISSION_ADDRESS not set: every payment will be rejected")
    elif not is_valid_address(settings.commission_address):
        raise ConfigurationError(f"COMMISSION_ADDRESS is not a valid EVM address: {settings.commission_address}")

    if settings.chain_client == "mock":
        warnings.append("CHAIN_CLIENT=mock: no real transactions will be broadcast")

    for warning in warnings:
        logger.warning(warning)

    return warnings


settings = Settings()
