"""
Payment orchestrator: the core execution engine.

Turns one inbound request into two ordered, confirmed ERC-20 transfers:

  1. Authorization (owner API key)
  2. Validation (fields, chain, token, amount, address)
  3. Commission split (server-side, integer arithmetic)
  4. Commission leg: submit, wait for confirmation
  5. Merchant leg: submit, wait for confirmation

The merchant leg is never submitted before the commission leg is confirmed
with a success status. Failure policy:
  - Commission leg reverted -> COMMISSION_FAILED, merchant never submitted
  - Merchant leg fails after commission confirmed -> MERCHANT_FAILED, with the
    commission tx hash so an operator can reconcile (no automatic reversal)
  - Confirmation wait exceeded -> CONFIRMATION_TIMEOUT; the transaction may
    still land later, so this is not reported as a failure

There are no retries. Resubmitting after MERCHANT_FAILED pays commission
a second time unless the caller intervenes.
"""

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from app.audit.logger import log_event
from app.chains.registry import is_valid_address
from app.config import Settings
from app.engine.authorizer import OwnerAuthorizer
from app.engine.errors import (
    ChainClientError,
    ConfirmationTimeoutError,
    ErrorKind,
    InsufficientFundsError,
    PaymentError,
)
from app.engine.splitter import split_amount
from app.engine.validator import validate_payment_request
from app.models.enums import AuthOutcome, LegRole, PaymentState
from app.models.payment import (
    CommissionSplit,
    PaymentRequest,
    PaymentResult,
    TransferLeg,
    TransferOutcome,
)
from app.providers.base import ChainClient

logger = logging.getLogger("signing_service.orchestrator")

ALLOWED_TRANSITIONS: dict[PaymentState, set[PaymentState]] = {
    PaymentState.AUTHORIZING: {PaymentState.VALIDATING},
    PaymentState.VALIDATING: {PaymentState.SPLITTING},
    PaymentState.SPLITTING: {PaymentState.COMMISSION_PENDING},
    PaymentState.COMMISSION_PENDING: {PaymentState.COMMISSION_CONFIRMED},
    PaymentState.COMMISSION_CONFIRMED: {PaymentState.MERCHANT_PENDING},
    PaymentState.MERCHANT_PENDING: {PaymentState.MERCHANT_CONFIRMED},
    PaymentState.MERCHANT_CONFIRMED: set(),
    PaymentState.FAILED: set(),
}

LEG_STATES = {
    LegRole.COMMISSION: (PaymentState.COMMISSION_PENDING, PaymentState.COMMISSION_CONFIRMED),
    LegRole.MERCHANT: (PaymentState.MERCHANT_PENDING, PaymentState.MERCHANT_CONFIRMED),
}


@dataclass
class PaymentFlow:
    """State of one payment request as it moves through the orchestrator."""

    payment_id: str
    state: PaymentState = PaymentState.AUTHORIZING
    history: list[PaymentState] = field(default_factory=lambda: [PaymentState.AUTHORIZING])
    request: Optional[PaymentRequest] = None
    split: Optional[CommissionSplit] = None
    pending_tx: dict[LegRole, str] = field(default_factory=dict)
    commission: Optional[TransferOutcome] = None
    merchant: Optional[TransferOutcome] = None
    result: Optional[PaymentResult] = None
    error: Optional[PaymentError] = None

    @property
    def succeeded(self) -> bool:
        return self.state == PaymentState.MERCHANT_CONFIRMED

    def advance(self, state: PaymentState, details: Optional[dict[str, Any]] = None) -> None:
        if state != PaymentState.FAILED and state not in ALLOWED_TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal payment transition {self.state.value} -> {state.value}")
        if self.state in (PaymentState.MERCHANT_CONFIRMED, PaymentState.FAILED):
            raise RuntimeError(f"Payment {self.payment_id} already terminal ({self.state.value})")

        self.state = state
        self.history.append(state)
        log_event(
            state.value,
            payment_id=self.payment_id,
            details=details,
            level=logging.WARNING if state == PaymentState.FAILED else logging.INFO,
        )


class PaymentOrchestrator:
    def __init__(
        self,
        settings: Settings,
        authorizer: OwnerAuthorizer,
        chain_client: ChainClient,
    ):
        self._settings = settings
        self._authorizer = authorizer
        self._chain = chain_client

    @property
    def chain_client(self) -> ChainClient:
        return self._chain

    @property
    def authorizer(self) -> OwnerAuthorizer:
        return self._authorizer

    async def execute(self, credential: Optional[str], body: Mapping[str, Any]) -> PaymentFlow:
        """
        Run a payment request to a terminal state.

        Never raises for documented failures: the returned flow is either
        MERCHANT_CONFIRMED with ``result`` set, or FAILED with ``error`` set.

        Args:
            credential: Value of the owner API key header, if any.
            body: Raw request fields (merchant_address, total_amount, token, chain).

        Returns:
            The finished PaymentFlow.
        """
        flow = PaymentFlow(payment_id=uuid.uuid4().hex[:12])
        log_event("payment_received", payment_id=flow.payment_id, details={
            "chain": body.get("chain"),
            "token": body.get("token"),
            "total_amount": body.get("total_amount"),
            "merchant_address": body.get("merchant_address"),
        })

        try:
            await self._authorize(flow, credential)
            self._validate(flow, body)
            self._split(flow)
            flow.commission = await self._run_leg(flow, TransferLeg(
                recipient=self._settings.commission_address or "",
                amount=flow.split.commission_amount,
                role=LegRole.COMMISSION,
            ))
            flow.merchant = await self._run_leg(flow, TransferLeg(
                recipient=flow.request.merchant_address,
                amount=flow.split.merchant_amount,
                role=LegRole.MERCHANT,
            ))
        except PaymentError as e:
            flow.error = e
            flow.advance(PaymentState.FAILED, details={
                "kind": e.kind.value,
                "message": e.message,
                "from_state": flow.history[-1].value,
                **e.details,
            })
            return flow

        flow.result = PaymentResult(
            request=flow.request,
            split=flow.split,
            commission=flow.commission,
            merchant=flow.merchant,
            from_address=self._chain.address,
        )
        logger.info(
            "Payment %s confirmed: commission=%s merchant=%s",
            flow.payment_id,
            flow.commission.tx_hash,
            flow.merchant.tx_hash,
        )
        return flow

    async def _authorize(self, flow: PaymentFlow, credential: Optional[str]) -> None:
        if not credential:
            raise PaymentError(
                ErrorKind.MISSING_CREDENTIAL,
                "x-api-key header required (owner API key only)",
            )

        auth = await self._authorizer.authorize(credential)
        if auth.outcome == AuthOutcome.MISCONFIGURED:
            raise PaymentError(
                ErrorKind.MISCONFIGURED_OWNER,
                "Set OWNER_API_KEY or explicitly choose OWNER_AUTH_MODE=fail_open",
            )
        if auth.outcome != AuthOutcome.AUTHORIZED:
            raise PaymentError(
                ErrorKind.UNAUTHORIZED,
                "This signing service only accepts requests from the owner. "
                "Your API key is not authorized.",
                {"reason": auth.reason},
            )

        flow.advance(PaymentState.VALIDATING, details={"auth": auth.reason})

    def _validate(self, flow: PaymentFlow, body: Mapping[str, Any]) -> None:
        result = validate_payment_request(
            merchant_address=body.get("merchant_address"),
            total_amount=body.get("total_amount"),
            token=body.get("token"),
            chain=body.get("chain"),
            rpc_urls=self._settings.rpc_urls,
        )
        if not result.valid:
            raise result.error

        if not self._settings.commission_address:
            raise PaymentError(
                ErrorKind.MISCONFIGURED_COMMISSION,
                "Set COMMISSION_ADDRESS environment variable",
            )
        if not is_valid_address(self._settings.commission_address):
            raise PaymentError(
                ErrorKind.MISCONFIGURED_COMMISSION,
                "COMMISSION_ADDRESS is not a valid EVM address",
            )

        flow.request = result.request
        flow.advance(PaymentState.SPLITTING)

    def _split(self, flow: PaymentFlow) -> None:
        flow.split = split_amount(flow.request.total_amount, self._settings.commission_fraction)
        logger.info(
            "Payment %s split (rate %s): commission %d -> %s, merchant %d -> %s",
            flow.payment_id,
            self._settings.commission_rate,
            flow.split.commission_amount,
            self._settings.commission_address,
            flow.split.merchant_amount,
            flow.request.merchant_address,
        )

    async def _run_leg(self, flow: PaymentFlow, leg: TransferLeg) -> TransferOutcome:
        pending_state, confirmed_state = LEG_STATES[leg.role]
        request = flow.request
        flow.advance(pending_state, details={
            "recipient": leg.recipient,
            "amount": str(leg.amount),
            "token": request.token.value,
            "chain": request.chain.value,
        })

        try:
            pending = await self._chain.submit_transfer(
                request.chain,
                request.token_contract,
                leg.recipient,
                leg.amount,
            )
        except InsufficientFundsError as e:
            raise self._leg_error(flow, leg, "insufficient_funds", str(e)) from e
        except ChainClientError as e:
            raise self._leg_error(flow, leg, "chain_error", str(e)) from e
        except Exception as e:
            logger.exception("Unexpected error submitting %s leg", leg.role.value)
            raise self._leg_error(flow, leg, "chain_error", str(e)) from e

        flow.pending_tx[leg.role] = pending.tx_hash

        try:
            receipt = await self._chain.await_confirmation(
                pending,
                confirmations=self._settings.required_confirmations,
                timeout=self._settings.confirmation_timeout_seconds,
            )
        except ConfirmationTimeoutError as e:
            raise self._leg_error(flow, leg, "timeout", str(e), tx_hash=pending.tx_hash) from e
        except ChainClientError as e:
            raise self._leg_error(flow, leg, "chain_error", str(e), tx_hash=pending.tx_hash) from e
        except Exception as e:
            logger.exception("Unexpected error confirming %s leg %s", leg.role.value, pending.tx_hash)
            raise self._leg_error(flow, leg, "chain_error", str(e), tx_hash=pending.tx_hash) from e

        if not receipt.succeeded:
            raise self._leg_error(
                flow,
                leg,
                "reverted",
                f"{leg.role.value.capitalize()} transaction failed on-chain",
                tx_hash=pending.tx_hash,
                block_number=receipt.block_number,
            )

        outcome = TransferOutcome(
            leg=leg,
            tx_hash=receipt.tx_hash,
            block_number=receipt.block_number,
            confirmed=True,
            gas_used=receipt.gas_used,
        )
        flow.advance(confirmed_state, details={
            "tx_hash": outcome.tx_hash,
            "block_number": outcome.block_number,
            "gas_used": outcome.gas_used,
        })
        return outcome

    def _leg_error(
        self,
        flow: PaymentFlow,
        leg: TransferLeg,
        cause: str,
        message: str,
        tx_hash: Optional[str] = None,
        block_number: Optional[int] = None,
    ) -> PaymentError:
        details: dict[str, Any] = {
            "leg": leg.role.value,
            "cause": cause,
            "chain": flow.request.chain.value,
        }
        if tx_hash:
            details["tx_hash"] = tx_hash
        if block_number is not None:
            details["block_number"] = block_number

        if leg.role == LegRole.COMMISSION:
            if cause == "timeout":
                return PaymentError(
                    ErrorKind.CONFIRMATION_TIMEOUT,
                    f"Commission transaction not confirmed yet and may still succeed: {message}",
                    details,
                )
            if cause == "insufficient_funds":
                return PaymentError(
                    ErrorKind.INSUFFICIENT_FUNDS,
                    "Gateway wallet does not have enough tokens or native currency for gas",
                    details,
                )
            if cause == "reverted":
                return PaymentError(ErrorKind.COMMISSION_FAILED, message, details)
            return PaymentError(ErrorKind.UNEXPECTED_CHAIN_ERROR, message, details)

        # The commission leg is confirmed at this point; always disclose it.
        details["tx_hash_commission"] = flow.commission.tx_hash
        details["block_number_commission"] = flow.commission.block_number
        details["commission_amount"] = str(flow.commission.leg.amount)

        if cause == "timeout":
            return PaymentError(
                ErrorKind.CONFIRMATION_TIMEOUT,
                f"Commission confirmed but merchant transaction not confirmed yet: {message}",
                details,
            )
        return PaymentError(
            ErrorKind.MERCHANT_FAILED,
            f"Commission confirmed but merchant transfer failed ({cause}): {message}. "
            "Reconcile manually; resubmitting will pay commission again.",
            details,
        )
