"""
Owner authorization for the signing service.

Only the owner's API key may spend from the gateway wallet. The check is:
  1. No owner key configured -> governed by OWNER_AUTH_MODE
     (fail_closed rejects everything, fail_open allows with a warning)
  2. Constant-time comparison against the configured key
  3. Optional confirmation with the identity service

Steps 2 and 3 both surface as UNAUTHORIZED to the client; the ``reason``
field keeps a network failure distinguishable from a genuine mismatch.
"""

import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from app.models.enums import AuthOutcome
from app.providers.identity import IdentityServiceClient, IdentityServiceError

logger = logging.getLogger("signing_service.authorizer")


@dataclass
class AuthResult:
    """Result of an owner credential check."""

    outcome: AuthOutcome
    reason: str = ""

    @property
    def authorized(self) -> bool:
        return self.outcome == AuthOutcome.AUTHORIZED


class OwnerAuthorizer:
    def __init__(
        self,
        owner_api_key: Optional[str],
        mode: str = "fail_closed",
        identity_client: Optional[IdentityServiceClient] = None,
    ):
        if mode not in ("fail_closed", "fail_open"):
            raise ValueError(f"Unknown owner auth mode: {mode}")
        self._owner_api_key = owner_api_key or None
        self._mode = mode
        self._identity = identity_client

    @property
    def protection(self) -> str:
        """Human-readable protection state for the health endpoint."""
        if self._owner_api_key:
            return "enabled"
        return "disabled" if self._mode == "fail_open" else "misconfigured"

    async def authorize(self, credential: str) -> AuthResult:
        if not self._owner_api_key:
            if self._mode == "fail_open":
                logger.warning("OWNER_API_KEY not configured, allowing request (OWNER_AUTH_MODE=fail_open)")
                return AuthResult(AuthOutcome.AUTHORIZED, reason="fail_open")
            logger.error("OWNER_API_KEY not configured, rejecting request (OWNER_AUTH_MODE=fail_closed)")
            return AuthResult(AuthOutcome.MISCONFIGURED, reason="owner_key_missing")

        if not hmac.compare_digest(credential.encode(), self._owner_api_key.encode()):
            logger.warning("Unauthorized API key attempted access")
            return AuthResult(AuthOutcome.UNAUTHORIZED, reason="credential_mismatch")

        if self._identity is None:
            return AuthResult(AuthOutcome.AUTHORIZED, reason="local_match")

        try:
            check = await self._identity.verify_api_key(credential)
        except IdentityServiceError as e:
            logger.error("Owner key verification unavailable: %s", e)
            return AuthResult(AuthOutcome.UNAUTHORIZED, reason="identity_unreachable")

        if not check.valid:
            logger.warning("Owner key rejected by identity service (HTTP %d)", check.status_code)
            return AuthResult(AuthOutcome.UNAUTHORIZED, reason="identity_rejected")

        logger.info("Owner authenticated: %s", check.display_name)
        return AuthResult(AuthOutcome.AUTHORIZED, reason="identity_confirmed")
