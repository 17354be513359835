"""
Abstract chain client interface.

The orchestrator never talks to an RPC node directly. Key management,
signing, nonce handling and gas pricing live behind this interface. The
production implementation wraps web3.py; tests use the mock.
"""

from abc import ABC, abstractmethod

from app.models.enums import Chain
from app.models.payment import PendingTransfer, TransferReceipt


class ChainClient(ABC):
    """Abstract base class for ERC-20 transfer backends."""

    @property
    @abstractmethod
    def address(self) -> str:
        """Address of the signing wallet."""
        ...

    @abstractmethod
    async def submit_transfer(
        self,
        chain: Chain,
        token_contract: str,
        recipient: str,
        amount: int,
    ) -> PendingTransfer:
        """
        Sign and broadcast ``transfer(recipient, amount)`` on ``token_contract``.

        Implementations must serialize submissions per signing account so
        concurrent requests do not collide on nonces.

        Raises:
            InsufficientFundsError: Wallet cannot cover amount or gas.
            ChainClientError: Any other rejection by the node.
        """
        ...

    @abstractmethod
    async def await_confirmation(
        self,
        pending: PendingTransfer,
        confirmations: int,
        timeout: float,
    ) -> TransferReceipt:
        """
        Wait until ``pending`` has ``confirmations`` blocks on top.

        A timeout does not cancel the broadcast transaction.

        Raises:
            ConfirmationTimeoutError: Not confirmed within ``timeout`` seconds.
            ChainClientError: Node failure while polling.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources."""
