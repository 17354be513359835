"""
AgentGatePay identity service client.

Used by the owner authorizer to confirm that a locally matching API key is
still valid upstream (``GET /v1/users/me``). A rejection and an unreachable
service are reported differently so the authorizer can log them apart.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger("signing_service.identity")


class IdentityServiceError(Exception):
    """The identity service could not be reached or answered garbage."""


@dataclass
class IdentityCheck:
    """Answer of the identity service for one credential."""

    valid: bool
    status_code: int
    user: Optional[dict[str, Any]] = None

    @property
    def display_name(self) -> str:
        if not self.user:
            return "unknown"
        return str(self.user.get("email") or self.user.get("user_id") or "unknown")


class IdentityServiceClient:
    """Thin async wrapper around the identity HTTP API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def verify_api_key(self, api_key: str) -> IdentityCheck:
        """
        Ask the identity service who owns ``api_key``.

        Raises:
            IdentityServiceError: On network failure or an unparseable body.
        """
        try:
            response = await self._client.get("/v1/users/me", headers={"x-api-key": api_key})
        except httpx.HTTPError as e:
            raise IdentityServiceError(f"Identity service request failed: {e}") from e

        if not response.is_success:
            return IdentityCheck(valid=False, status_code=response.status_code)

        try:
            user = response.json()
        except ValueError as e:
            raise IdentityServiceError("Identity service returned a non-JSON body") from e

        return IdentityCheck(valid=True, status_code=response.status_code, user=user)

    async def aclose(self) -> None:
        await self._client.aclose()
