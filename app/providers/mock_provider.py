"""
Mock chain client for local runs and tests.

Simulates RPC node behavior:
  - Configurable latency (default 100ms)
  - Configurable revert rate (default 0%)
  - Scripted per-submission behaviors (revert, timeout, insufficient funds)
  - Realistic 32-byte transaction hashes and increasing block numbers

Every submission is recorded so tests can assert exactly which transfers
were broadcast and in which order.
"""

import asyncio
import random
import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from app.config import settings
from app.engine.errors import ChainClientError, ConfirmationTimeoutError, InsufficientFundsError
from app.models.enums import Chain
from app.models.payment import PendingTransfer, TransferReceipt
from app.providers.base import ChainClient

MOCK_WALLET_ADDRESS = "0x000000000000000000000000000000000000dEaD"


class MockBehavior(str, Enum):
    """What the mock does with one submitted transfer."""

    SUCCESS = "success"
    REVERT = "revert"
    TIMEOUT = "timeout"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    REJECT = "reject"  # Node refuses the broadcast


@dataclass
class MockSubmission:
    chain: Chain
    token_contract: str
    recipient: str
    amount: int
    tx_hash: str
    behavior: MockBehavior


class MockChainClient(ChainClient):
    """
    In-memory chain client.

    Behaviors listed in ``script`` are consumed one per submission; once the
    script is exhausted, transfers succeed except for a random revert at
    ``failure_rate``.
    """

    def __init__(
        self,
        script: Optional[Iterable[MockBehavior]] = None,
        failure_rate: Optional[float] = None,
        latency_ms: Optional[int] = None,
        address: str = MOCK_WALLET_ADDRESS,
        start_block: int = 1_000_000,
    ):
        self._script = list(script or [])
        self._failure_rate = failure_rate if failure_rate is not None else settings.mock_failure_rate
        self._latency_ms = latency_ms if latency_ms is not None else settings.mock_latency_ms
        self._address = address
        self._block = start_block
        self._lock = asyncio.Lock()
        self._behaviors: dict[str, MockBehavior] = {}
        self.submissions: list[MockSubmission] = []
        self.events: list[tuple[str, str]] = []  # ("submit" | "confirmed", tx_hash)

    @property
    def address(self) -> str:
        return self._address

    async def _simulate_latency(self) -> None:
        if self._latency_ms > 0:
            jitter = random.uniform(0.5, 1.5)
            await asyncio.sleep(self._latency_ms * jitter / 1000)

    def _next_behavior(self) -> MockBehavior:
        if self._script:
            return self._script.pop(0)
        if random.random() < self._failure_rate:
            return MockBehavior.REVERT
        return MockBehavior.SUCCESS

    async def submit_transfer(
        self,
        chain: Chain,
        token_contract: str,
        recipient: str,
        amount: int,
    ) -> PendingTransfer:
        async with self._lock:
            await self._simulate_latency()
            behavior = self._next_behavior()
            tx_hash = "0x" + secrets.token_hex(32)
            self.submissions.append(MockSubmission(
                chain=chain,
                token_contract=token_contract,
                recipient=recipient,
                amount=amount,
                tx_hash=tx_hash,
                behavior=behavior,
            ))
            self.events.append(("submit", tx_hash))

        if behavior == MockBehavior.INSUFFICIENT_FUNDS:
            raise InsufficientFundsError("Mock insufficient funds for transfer")
        if behavior == MockBehavior.REJECT:
            raise ChainClientError("Mock node rejected transaction")

        self._behaviors[tx_hash] = behavior
        return PendingTransfer(
            tx_hash=tx_hash,
            chain=chain,
            token_contract=token_contract,
            recipient=recipient,
            amount=amount,
        )

    async def await_confirmation(
        self,
        pending: PendingTransfer,
        confirmations: int,
        timeout: float,
    ) -> TransferReceipt:
        await self._simulate_latency()

        behavior = self._behaviors.pop(pending.tx_hash, None)
        if behavior is None:
            raise ChainClientError(f"Unknown transaction: {pending.tx_hash}", tx_hash=pending.tx_hash)
        if behavior == MockBehavior.TIMEOUT:
            raise ConfirmationTimeoutError(
                f"Transaction {pending.tx_hash} not confirmed within {timeout}s",
                tx_hash=pending.tx_hash,
                timeout=timeout,
            )

        self._block += confirmations
        self.events.append(("confirmed", pending.tx_hash))
        return TransferReceipt(
            tx_hash=pending.tx_hash,
            block_number=self._block,
            status=0 if behavior == MockBehavior.REVERT else 1,
            gas_used=random.randint(45_000, 65_000),
        )
