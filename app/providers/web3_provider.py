"""
web3.py chain client.

Signs ERC-20 ``transfer`` calls with the gateway private key and broadcasts
them through the configured RPC endpoint of each chain. Gas and fee fields
are filled in by web3's ``build_transaction``.

Nonces: submissions from the gateway wallet are serialized per chain with
an asyncio lock held from the pending-nonce lookup until the raw
transaction is accepted by the node. Confirmation waits run outside the
lock, so a slow block does not block other requests' broadcasts.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import TimeExhausted, Web3Exception

from app.engine.errors import ChainClientError, ConfirmationTimeoutError, InsufficientFundsError
from app.models.enums import Chain
from app.models.payment import PendingTransfer, TransferReceipt
from app.providers.base import ChainClient

logger = logging.getLogger("signing_service.web3")

ERC20_TRANSFER_ABI = [
    {
        "constant": False,
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    }
]

_INSUFFICIENT_MARKERS = ("insufficient funds", "exceeds balance", "insufficient balance")
_RPC_ERRORS = (Web3Exception, ValueError, OSError, asyncio.TimeoutError)


def _translate(error: Exception) -> ChainClientError:
    message = str(error)
    if any(marker in message.lower() for marker in _INSUFFICIENT_MARKERS):
        return InsufficientFundsError(message)
    return ChainClientError(message or error.__class__.__name__)


class Web3ChainClient(ChainClient):
    def __init__(
        self,
        private_key: str,
        rpc_urls: Mapping[str, str],
        poll_interval: float = 1.0,
    ):
        self._account = Account.from_key(private_key)
        self._rpc_urls = dict(rpc_urls)
        self._poll_interval = poll_interval
        self._clients: dict[str, AsyncWeb3] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def address(self) -> str:
        return self._account.address

    def _web3(self, chain: Chain) -> AsyncWeb3:
        key = Chain(chain).value
        if key not in self._clients:
            self._clients[key] = AsyncWeb3(AsyncHTTPProvider(self._rpc_urls[key]))
        return self._clients[key]

    def _lock(self, chain: Chain) -> asyncio.Lock:
        return self._locks.setdefault(Chain(chain).value, asyncio.Lock())

    async def submit_transfer(
        self,
        chain: Chain,
        token_contract: str,
        recipient: str,
        amount: int,
    ) -> PendingTransfer:
        w3 = self._web3(chain)
        contract = w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(token_contract),
            abi=ERC20_TRANSFER_ABI,
        )
        call = contract.functions.transfer(AsyncWeb3.to_checksum_address(recipient), amount)

        async with self._lock(chain):
            try:
                nonce = await w3.eth.get_transaction_count(self._account.address, "pending")
                tx: dict[str, Any] = await call.build_transaction({
                    "from": self._account.address,
                    "nonce": nonce,
                })
                signed = self._account.sign_transaction(tx)
                raw_hash = await w3.eth.send_raw_transaction(signed.raw_transaction)
            except _RPC_ERRORS as e:
                raise _translate(e) from e

        tx_hash = AsyncWeb3.to_hex(raw_hash)
        logger.info("Broadcast transfer on %s: %s (nonce %d)", Chain(chain).value, tx_hash, nonce)
        return PendingTransfer(
            tx_hash=tx_hash,
            chain=Chain(chain),
            token_contract=token_contract,
            recipient=recipient,
            amount=amount,
        )

    async def _wait(self, pending: PendingTransfer, confirmations: int, timeout: float) -> TransferReceipt:
        w3 = self._web3(pending.chain)
        receipt = await w3.eth.wait_for_transaction_receipt(
            pending.tx_hash,
            timeout=timeout,
            poll_latency=self._poll_interval,
        )
        block_number = receipt["blockNumber"]
        while await w3.eth.block_number - block_number + 1 < confirmations:
            await asyncio.sleep(self._poll_interval)

        return TransferReceipt(
            tx_hash=pending.tx_hash,
            block_number=block_number,
            status=receipt["status"],
            gas_used=receipt["gasUsed"],
        )

    async def await_confirmation(
        self,
        pending: PendingTransfer,
        confirmations: int,
        timeout: float,
    ) -> TransferReceipt:
        try:
            return await asyncio.wait_for(self._wait(pending, confirmations, timeout), timeout)
        except (TimeExhausted, asyncio.TimeoutError) as e:
            raise ConfirmationTimeoutError(
                f"Transaction {pending.tx_hash} not confirmed within {timeout:.0f}s",
                tx_hash=pending.tx_hash,
                timeout=timeout,
            ) from e
        except _RPC_ERRORS as e:
            raise ChainClientError(str(e), tx_hash=pending.tx_hash) from e

    async def aclose(self) -> None:
        for w3 in self._clients.values():
            disconnect = getattr(w3.provider, "disconnect", None)
            if disconnect is not None:
                await disconnect()
        self._clients.clear()
